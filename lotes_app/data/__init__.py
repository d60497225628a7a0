# Datos semilla (mock) del almacén en memoria.

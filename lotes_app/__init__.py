# Gestión de venta de lotes: proyectos, apartados, pagos y comisiones.

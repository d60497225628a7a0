# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# Punto de entrada para servidores WSGI.
#
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── lotes_app/       <- Paquete Python
#       ├── main.py
#       ├── services/
#       └── repositories/
# ==============================================================================

from lotes_app.main import app

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)

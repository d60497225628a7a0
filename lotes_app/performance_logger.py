# ==============================================================================
# MEDICIÓN DE RENDIMIENTO - Rutas de la API y cálculos clave
# ==============================================================================
# Toma el tiempo de cada petición y de las funciones decoradas con
# @profile_function (estado de cuenta, resumen de comisiones, reportes).
# Nunca cambia argumentos ni respuestas.
#
# Archivos (texto plano, un bloque por evento) en LOTES_LOGS_DIR:
#   performance.log     → todas las peticiones
#   slow_routes.log     → peticiones sobre el umbral
#   slow_functions.log  → funciones lentas + resumen bajo demanda
#
# ACTIVAR/DESACTIVAR: LOTES_ENABLE_PROFILING=0
# ==============================================================================

import os
import threading
import time
from datetime import datetime
from functools import wraps

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

ENABLE_PROFILING = os.environ.get('LOTES_ENABLE_PROFILING', '1').lower() in ('1', 'true', 'yes')

# Milisegundos a partir de los cuales una medición es lenta / crítica
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

LOGS_DIR = os.environ.get(
    'LOTES_LOGS_DIR',
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
)

PERFORMANCE_LOG = os.path.join(LOGS_DIR, 'performance.log')
SLOW_ROUTES_LOG = os.path.join(LOGS_DIR, 'slow_routes.log')
SLOW_FUNCTIONS_LOG = os.path.join(LOGS_DIR, 'slow_functions.log')

# Nombres legibles de las rutas de la API
ROUTE_NAMES = {
    # Sesión
    'POST /api/login': 'Iniciar sesión',
    'POST /api/logout': 'Cerrar sesión',
    'GET /api/me': 'Ver perfil y permisos',

    # Proyectos
    'GET /api/projects': 'Listar proyectos',
    'POST /api/projects': 'Crear proyecto',
    'GET /api/projects/<project_id>': 'Ver detalle de proyecto',
    'PUT /api/projects/<project_id>': 'Editar proyecto',
    'DELETE /api/projects/<project_id>': 'Eliminar proyecto',

    # Lotes
    'GET /api/lots': 'Listar lotes',
    'POST /api/lots': 'Crear lote',
    'GET /api/lots/<lot_id>': 'Ver lote',
    'PUT /api/lots/<lot_id>': 'Editar lote',
    'POST /api/lots/<lot_id>/assign': 'Apartar lote a cliente',
    'POST /api/lots/<lot_id>/sell': 'Marcar lote vendido',
    'POST /api/lots/<lot_id>/release': 'Liberar lote',
    'GET /api/lots/<lot_id>/suggested-plan': 'Ver plan de pagos sugerido',

    # Pagos
    'GET /api/payments': 'Listar pagos',
    'POST /api/payments': 'Registrar pago',
    'POST /api/payments/gateway': 'Pago en línea',
    'GET /api/payments/<payment_id>/receipt': 'Ver recibo',
    'GET /api/payments/export': 'Exportar pagos CSV',

    # Estados de cuenta
    'GET /api/statements/<lot_id>': 'Ver estado de cuenta',
    'GET /api/clients/<client_id>/statements': 'Ver estados de cuenta del cliente',

    # Comisiones
    'GET /api/commissions': 'Listar comisiones',
    'GET /api/commissions/summary': 'Resumen de comisiones',
    'POST /api/commissions/<commission_id>/approve': 'Aprobar comisión',
    'POST /api/commissions/<commission_id>/pay': 'Pagar comisión',
    'POST /api/commissions/<commission_id>/cancel': 'Cancelar comisión',

    # Usuarios
    'GET /api/users': 'Listar usuarios',
    'POST /api/users': 'Crear usuario',
    'PUT /api/users/<user_id>': 'Editar usuario',
    'DELETE /api/users/<user_id>': 'Eliminar usuario',
    'GET /api/clients': 'Listar clientes',

    # Reportes
    'GET /api/dashboard': 'Ver panel principal',
    'GET /api/my-sales': 'Ver mis ventas',
    'GET /api/reports/executive': 'Ver reporte ejecutivo',
    'GET /api/audit': 'Ver registro de actividad',

    # Profiling
    'GET /api/profiling': 'Ver rendimiento',
    'POST /api/profiling/report': 'Generar reporte de rendimiento',
    'DELETE /api/profiling/logs': 'Borrar logs de rendimiento',
}


# ═══════════════════════════════════════════════════════════════════════════
# ACUMULADOS EN MEMORIA
# ═══════════════════════════════════════════════════════════════════════════

class _Timing:
    """Llamadas, tiempo total y pico de una función medida."""

    __slots__ = ('calls', 'total_ms', 'peak_ms')

    def __init__(self):
        self.calls = 0
        self.total_ms = 0.0
        self.peak_ms = 0.0

    def add(self, elapsed_ms):
        self.calls += 1
        self.total_ms += elapsed_ms
        self.peak_ms = max(self.peak_ms, elapsed_ms)

    @property
    def avg_ms(self):
        return self.total_ms / self.calls if self.calls else 0.0


_timings = {}
_timings_lock = threading.Lock()
_file_lock = threading.Lock()


def _severity(elapsed_ms):
    """None, 'WARNING' o 'CRITICAL' según los umbrales."""
    if elapsed_ms >= THRESHOLD_CRITICAL:
        return 'CRITICAL'
    if elapsed_ms >= THRESHOLD_WARNING:
        return 'WARNING'
    return None


# ═══════════════════════════════════════════════════════════════════════════
# ESCRITURA DE BLOQUES
# ═══════════════════════════════════════════════════════════════════════════

_RULE = '─' * 48


def _now_text():
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _block(title, fields):
    """Bloque legible: título con hora y una línea "Campo: valor" por dato."""
    lines = ['', f'[{title}] {_now_text()}', _RULE]
    lines.extend(f'{label}: {value}' for label, value in fields)
    lines.append(_RULE)
    return '\n'.join(lines) + '\n'


def _append(filepath, text):
    # Un disco lleno o sin permisos no debe tumbar la petición
    try:
        with _file_lock:
            os.makedirs(os.path.dirname(filepath), exist_ok=True)
            with open(filepath, 'a', encoding='utf-8') as handle:
                handle.write(text)
    except OSError:
        pass


def describe_route(method, path, rule=None):
    """
    Nombre legible de una petición.

    Se busca primero la ruta exacta y luego la regla de Flask con
    parámetros (/api/lots/<lot_id>/assign). Sin coincidencia se
    devuelve "MÉTODO /ruta".
    """
    for candidate in (path, rule):
        if candidate and f'{method} {candidate}' in ROUTE_NAMES:
            return ROUTE_NAMES[f'{method} {candidate}']
    return f'{method} {path}'


# ═══════════════════════════════════════════════════════════════════════════
# PETICIONES
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, user=None):
    """
    Registra una petición en performance.log y, si pasó el umbral,
    también en slow_routes.log.

    Args:
        method: Verbo HTTP
        path: Ruta pedida (/api/lots/lot-001/assign)
        rule: Regla de Flask (/api/lots/<lot_id>/assign)
        time_ms: Duración en milisegundos
        user: Email del usuario en sesión
    """
    if not ENABLE_PROFILING:
        return

    action = describe_route(method, path, rule)
    who = user or 'anónimo'
    _append(PERFORMANCE_LOG, _block('PETICIÓN', [
        ('Acción', action),
        ('Usuario', who),
        ('Ruta', f'{method} {path}'),
        ('Tiempo', f'{time_ms:.0f} ms'),
    ]))

    level = _severity(time_ms)
    if level:
        threshold = THRESHOLD_CRITICAL if level == 'CRITICAL' else THRESHOLD_WARNING
        _append(SLOW_ROUTES_LOG, _block(f'{level} RUTA', [
            ('Acción', action),
            ('Usuario', who),
            ('Ruta', f'{method} {path}'),
            ('Tiempo', f'{time_ms:.0f} ms (umbral {threshold} ms)'),
        ]))


def init_profiling(app):
    """
    Engancha la medición de peticiones a una app Flask.

    Uso:
        from lotes_app.performance_logger import init_profiling
        init_profiling(app)
    """
    if not ENABLE_PROFILING:
        return

    from flask import g, request, session

    @app.before_request
    def _profiling_start():
        g.profiling_started = time.perf_counter()

    @app.after_request
    def _profiling_finish(response):
        started = g.pop('profiling_started', None)
        if started is None:
            return response

        auth_user = session.get('auth_user') or {}
        log_route_performance(
            request.method,
            request.path,
            request.url_rule.rule if request.url_rule else None,
            (time.perf_counter() - started) * 1000,
            auth_user.get('email')
        )
        return response


# ═══════════════════════════════════════════════════════════════════════════
# FUNCIONES
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Mide las llamadas de una función y acumula sus tiempos.

    Uso:
        @profile_function
        def build_statement(...): ...

        @profile_function(name="Reporte ejecutivo")
        def executive_report(...): ...

    Con el profiling apagado la función se devuelve sin envolver.
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn

        label = name or fn.__name__

        @wraps(fn)
        def timed(*args, **kwargs):
            started = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - started) * 1000
                with _timings_lock:
                    _timings.setdefault(label, _Timing()).add(elapsed_ms)
                level = _severity(elapsed_ms)
                if level:
                    _append(SLOW_FUNCTIONS_LOG, _block(
                        f'{level} FUNCIÓN', [('Función', label), ('Tiempo', f'{elapsed_ms:.0f} ms')]
                    ))

        return timed

    if func is not None:
        return decorator(func)
    return decorator


def get_function_stats():
    """
    Returns:
        {nombre: {calls, avg_time, max_time}} con tiempos en ms
    """
    with _timings_lock:
        return {
            label: {
                'calls': t.calls,
                'avg_time': round(t.avg_ms, 2),
                'max_time': round(t.peak_ms, 2),
            }
            for label, t in _timings.items()
        }


def write_function_stats_report():
    """Agrega a slow_functions.log un resumen de todas las funciones medidas."""
    if not ENABLE_PROFILING:
        return

    stats = get_function_stats()
    if not stats:
        return

    ranking = sorted(stats.items(), key=lambda item: item[1]['avg_time'], reverse=True)
    lines = ['', '═' * 48, f'RESUMEN DE FUNCIONES {_now_text()}', '═' * 48]
    for label, data in ranking:
        flag = _severity(data['avg_time']) or ('PICOS' if _severity(data['max_time']) else '')
        lines.append(f"{label:<32} {data['calls']:>6} llamadas  "
                     f"prom {data['avg_time']:>8.0f} ms  máx {data['max_time']:>8.0f} ms  {flag}".rstrip())
    _append(SLOW_FUNCTIONS_LOG, '\n'.join(lines) + '\n')


def reset_stats():
    with _timings_lock:
        _timings.clear()


# ═══════════════════════════════════════════════════════════════════════════
# ARCHIVOS
# ═══════════════════════════════════════════════════════════════════════════

_LOG_FILES = (
    ('performance', lambda: PERFORMANCE_LOG),
    ('slow_routes', lambda: SLOW_ROUTES_LOG),
    ('slow_functions', lambda: SLOW_FUNCTIONS_LOG),
)


def clear_logs():
    for _, path_of in _LOG_FILES:
        path = path_of()
        if os.path.exists(path):
            os.remove(path)


def get_log_summary():
    """
    Returns:
        {archivo: {exists, size_kb, lines}}
    """
    summary = {}
    for key, path_of in _LOG_FILES:
        path = path_of()
        if not os.path.exists(path):
            summary[key] = {'exists': False, 'size_kb': 0, 'lines': 0}
            continue
        with open(path, 'r', encoding='utf-8') as handle:
            line_count = sum(1 for _ in handle)
        summary[key] = {
            'exists': True,
            'size_kb': round(os.path.getsize(path) / 1024, 2),
            'lines': line_count,
        }
    return summary


__all__ = [
    'ENABLE_PROFILING',
    'init_profiling',
    'profile_function',
    'describe_route',
    'log_route_performance',
    'get_function_stats',
    'write_function_stats_report',
    'reset_stats',
    'clear_logs',
    'get_log_summary',
]

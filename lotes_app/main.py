# ==============================================================================
# API WEB - Gestión de venta de lotes
# ==============================================================================
# Rutas JSON sobre los servicios del contenedor. Las rutas solo orquestan
# request → servicio → respuesta: la lógica de negocio y el filtrado por
# rol viven en services/.
# ==============================================================================

import os
from functools import wraps

from flask import Flask, Response, jsonify, request, session
from werkzeug.exceptions import BadRequest, Forbidden, HTTPException, NotFound, Unauthorized

from lotes_app.app_container import get_container
from lotes_app.models import InvalidTransitionError, UserRole
from lotes_app import performance_logger
from lotes_app.performance_logger import init_profiling
from lotes_app.services.permission_service import (
    PermissionDeniedError,
    has_permission,
    resolve_capabilities,
)
from lotes_app.services.statement_service import StatementValidationError


app = Flask(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZAR SISTEMA DE PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Mide rendimiento de rutas. Para desactivar: LOTES_ENABLE_PROFILING=0
init_profiling(app)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

PRODUCTION_MODE = os.environ.get('LOTES_PRODUCTION_MODE', '0') == '1'

# SECRET_KEY: En producción DEBE definirse via variable de entorno
# Comando: export LOTES_SECRET_KEY="clave_secreta_larga_y_aleatoria"
_DEFAULT_SECRET = "lotes_app_dev_secret_key_change_in_production"
_SECRET_KEY = os.environ.get("LOTES_SECRET_KEY")

if PRODUCTION_MODE and not _SECRET_KEY:
    print("[ADVERTENCIA] LOTES_PRODUCTION_MODE activo sin LOTES_SECRET_KEY definida")
    print("[ADVERTENCIA] Define la variable de entorno para mayor seguridad")

app.secret_key = _SECRET_KEY or _DEFAULT_SECRET

app.config.update(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SECURE=PRODUCTION_MODE,
    SESSION_COOKIE_SAMESITE='Lax',
    PERMANENT_SESSION_LIFETIME=86400,  # 24 horas
)

# Clave fija de la sesión donde vive el usuario autenticado
SESSION_USER_KEY = 'auth_user'


# ═══════════════════════════════════════════════════════════════════════════
# SESIÓN Y PERMISOS
# ═══════════════════════════════════════════════════════════════════════════

def current_user():
    """
    Usuario en sesión, releído del repositorio.
    Si el usuario fue eliminado la sesión deja de ser válida.
    """
    auth_user = session.get(SESSION_USER_KEY)
    if not auth_user:
        return None
    user = get_container().user_service.get_user(auth_user.get('id'))
    if user is None:
        session.pop(SESSION_USER_KEY, None)
    return user


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            raise Unauthorized('Debes iniciar sesión.')
        return f(*args, **kwargs)
    return wrapper


def permission_required(capability):
    """Exige que el rol del usuario en sesión tenga la capacidad indicada."""
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user is None:
                raise Unauthorized('Debes iniciar sesión.')
            if not has_permission(user['role'], capability):
                raise Forbidden('Permiso denegado.')
            return f(*args, **kwargs)
        return wrapper
    return deco


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest('Se esperaba un objeto JSON')
    return data


def _service_response(result, success_code=200):
    """Traduce el dict {'ok': ...} de un servicio a una respuesta HTTP."""
    if result.get('ok'):
        return jsonify(result), success_code
    if result.get('not_found'):
        return jsonify({'ok': False, 'error': result.get('error')}), 404
    return jsonify(result), 400


# ═══════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════

@app.errorhandler(HTTPException)
def handle_http_error(e):
    return jsonify({'ok': False, 'error': e.description}), e.code


@app.errorhandler(PermissionDeniedError)
def handle_permission_denied(e):
    return jsonify({'ok': False, 'error': 'Permiso denegado.', 'capability': e.capability}), 403


@app.errorhandler(InvalidTransitionError)
def handle_invalid_transition(e):
    return jsonify({
        'ok': False,
        'error': str(e),
        'current': e.current,
        'target': e.target,
    }), 409


@app.errorhandler(StatementValidationError)
def handle_statement_error(e):
    return jsonify({'ok': False, 'error': str(e)}), 422


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Cache-Control'] = 'no-store'
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# SESIÓN
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/login', methods=['POST'])
def login():
    data = _json_body()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        raise BadRequest('Email y contraseña son requeridos')

    user = get_container().user_service.authenticate(email, password)
    if user is None:
        raise Unauthorized('Credenciales inválidas')

    session.clear()
    session.permanent = True
    session[SESSION_USER_KEY] = user
    return jsonify({'ok': True, 'user': user, 'capabilities': resolve_capabilities(user['role'])})


@app.route('/api/logout', methods=['POST'])
def logout():
    user = current_user()
    if user:
        get_container().user_service.logout(user['email'])
    session.clear()
    return jsonify({'ok': True})


@app.route('/api/me')
@login_required
def me():
    user = current_user()
    return jsonify({'user': user, 'capabilities': resolve_capabilities(user['role'])})


# ═══════════════════════════════════════════════════════════════════════════
# PROYECTOS
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/projects', methods=['GET'])
@login_required
def list_projects():
    projects = get_container().project_service.list_for_user(
        current_user(),
        query=request.args.get('q', ''),
        status=request.args.get('status')
    )
    return jsonify({'projects': projects})


@app.route('/api/projects', methods=['POST'])
@permission_required('can_create_project')
def create_project():
    result = get_container().project_service.add_project(_json_body(), current_user())
    return _service_response(result, 201)


@app.route('/api/projects/<project_id>', methods=['GET'])
@login_required
def project_detail(project_id):
    detail = get_container().project_service.get_project_detail(project_id, current_user())
    if detail is None:
        raise NotFound('Proyecto no encontrado')
    return jsonify(detail)


@app.route('/api/projects/<project_id>', methods=['PUT'])
@permission_required('can_edit_project')
def update_project(project_id):
    result = get_container().project_service.update_project(project_id, _json_body(), current_user())
    return _service_response(result)


@app.route('/api/projects/<project_id>', methods=['DELETE'])
@permission_required('can_delete_project')
def delete_project(project_id):
    result = get_container().project_service.delete_project(project_id, current_user())
    return _service_response(result)


# ═══════════════════════════════════════════════════════════════════════════
# LOTES
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/lots', methods=['GET'])
@login_required
def list_lots():
    lots = get_container().lot_service.list_for_user(
        current_user(),
        project_id=request.args.get('project_id'),
        status=request.args.get('status'),
        query=request.args.get('q', '')
    )
    return jsonify({'lots': lots})


@app.route('/api/lots', methods=['POST'])
@permission_required('can_edit_project')
def create_lot():
    result = get_container().lot_service.add_lot(_json_body(), current_user())
    return _service_response(result, 201)


@app.route('/api/lots/<lot_id>', methods=['GET'])
@login_required
def lot_detail(lot_id):
    lot = get_container().lot_service.get_lot_for_user(lot_id, current_user())
    if lot is None:
        raise NotFound('Lote no encontrado')
    return jsonify({'lot': lot})


@app.route('/api/lots/<lot_id>', methods=['PUT'])
@permission_required('can_edit_project')
def update_lot(lot_id):
    result = get_container().lot_service.update_lot(lot_id, _json_body(), current_user())
    return _service_response(result)


@app.route('/api/lots/<lot_id>/suggested-plan', methods=['GET'])
@permission_required('can_assign_lots')
def lot_suggested_plan(lot_id):
    container = get_container()
    lot = container.lot_service.get_lot_for_user(lot_id, current_user())
    if lot is None:
        raise NotFound('Lote no encontrado')
    return jsonify({'plan': container.lot_service.suggested_plan(lot)})


@app.route('/api/lots/<lot_id>/assign', methods=['POST'])
@permission_required('can_assign_lots')
def assign_lot(lot_id):
    result = get_container().lot_service.assign_lot(lot_id, _json_body(), current_user())
    return _service_response(result)


@app.route('/api/lots/<lot_id>/sell', methods=['POST'])
@permission_required('can_assign_lots')
def sell_lot(lot_id):
    data = _json_body()
    result = get_container().lot_service.sell_lot(lot_id, current_user(), data.get('sale_date'))
    return _service_response(result)


@app.route('/api/lots/<lot_id>/release', methods=['POST'])
@permission_required('can_assign_lots')
def release_lot(lot_id):
    data = _json_body()
    result = get_container().lot_service.release_lot(lot_id, current_user(), data.get('reason', ''))
    return _service_response(result)


# ═══════════════════════════════════════════════════════════════════════════
# PAGOS
# ═══════════════════════════════════════════════════════════════════════════

def _payment_filters():
    return {
        'lot_id': request.args.get('lot_id'),
        'client_id': request.args.get('client_id'),
        'payment_type': request.args.get('type'),
        'query': request.args.get('q', ''),
    }


@app.route('/api/payments', methods=['GET'])
@login_required
def list_payments():
    payments = get_container().payment_service.list_for_user(current_user(), **_payment_filters())
    return jsonify({'payments': payments})


@app.route('/api/payments', methods=['POST'])
@permission_required('can_register_payments')
def register_payment():
    result = get_container().payment_service.register_payment(_json_body(), current_user())
    return _service_response(result, 201)


@app.route('/api/payments/gateway', methods=['POST'])
@login_required
def gateway_payment():
    user = current_user()
    if user['role'] != UserRole.CLIENTE.value:
        raise Forbidden('El pago en línea es solo para clientes')
    result = get_container().payment_service.gateway_payment(_json_body(), user)
    return _service_response(result, 201)


@app.route('/api/payments/<payment_id>/receipt', methods=['GET'])
@permission_required('can_download_pdf')
def payment_receipt(payment_id):
    receipt = get_container().payment_service.get_receipt(payment_id, current_user())
    if receipt is None:
        raise NotFound('Pago no encontrado')
    return jsonify(receipt)


@app.route('/api/payments/export', methods=['GET'])
@login_required
def export_payments():
    output = get_container().payment_service.export_csv(current_user(), **_payment_filters())
    return Response(
        output,
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment;filename=pagos.csv'}
    )


# ═══════════════════════════════════════════════════════════════════════════
# ESTADOS DE CUENTA
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/statements/<lot_id>', methods=['GET'])
@permission_required('can_view_own_statement')
def lot_statement(lot_id):
    statement = get_container().statement_service.get_statement_for_user(current_user(), lot_id)
    if statement is None:
        raise NotFound('Lote no encontrado')
    return jsonify(statement)


@app.route('/api/clients/<client_id>/statements', methods=['GET'])
@permission_required('can_view_own_statement')
def client_statements(client_id):
    user = current_user()
    if user['id'] != client_id and not has_permission(user['role'], 'can_view_all_clients'):
        raise Forbidden('Permiso denegado.')

    container = get_container()
    client = container.user_service.get_client_by_id(client_id)
    if client is None:
        raise NotFound('Cliente no encontrado')
    return jsonify({
        'client': client,
        'statements': container.statement_service.get_client_statements(client_id, viewer=user),
    })


# ═══════════════════════════════════════════════════════════════════════════
# COMISIONES
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/commissions', methods=['GET'])
@login_required
def list_commissions():
    commissions = get_container().commission_service.list_for_user(
        current_user(),
        status=request.args.get('status'),
        sales_person_id=request.args.get('sales_person_id'),
        query=request.args.get('q', '')
    )
    return jsonify({'commissions': commissions})


@app.route('/api/commissions/summary', methods=['GET'])
@login_required
def commissions_summary():
    return jsonify(get_container().commission_service.summary_for_user(current_user()))


@app.route('/api/commissions/<commission_id>/approve', methods=['POST'])
@permission_required('can_approve_commissions')
def approve_commission(commission_id):
    result = get_container().commission_service.approve(commission_id, current_user())
    return _service_response(result)


@app.route('/api/commissions/<commission_id>/pay', methods=['POST'])
@permission_required('can_pay_commissions')
def pay_commission(commission_id):
    result = get_container().commission_service.pay(commission_id, current_user())
    return _service_response(result)


@app.route('/api/commissions/<commission_id>/cancel', methods=['POST'])
@permission_required('can_cancel_commissions')
def cancel_commission(commission_id):
    data = _json_body()
    result = get_container().commission_service.cancel(commission_id, current_user(), data.get('reason', ''))
    return _service_response(result)


# ═══════════════════════════════════════════════════════════════════════════
# USUARIOS Y CLIENTES
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/users', methods=['GET'])
@permission_required('can_manage_users')
def list_users():
    users = get_container().user_service.get_all_users(
        role=request.args.get('role'),
        query=request.args.get('q', '')
    )
    return jsonify({'users': users})


@app.route('/api/users', methods=['POST'])
@permission_required('can_manage_users')
def create_user():
    result = get_container().user_service.create_user(_json_body(), current_user()['email'])
    return _service_response(result, 201)


@app.route('/api/users/<user_id>', methods=['PUT'])
@permission_required('can_manage_users')
def update_user(user_id):
    result = get_container().user_service.update_user(user_id, _json_body(), current_user()['email'])
    return _service_response(result)


@app.route('/api/users/<user_id>', methods=['DELETE'])
@permission_required('can_manage_users')
def delete_user(user_id):
    admin = current_user()
    result = get_container().user_service.delete_user(user_id, admin['id'], admin['email'])
    return _service_response(result)


@app.route('/api/clients', methods=['GET'])
@permission_required('can_view_all_clients')
def list_clients():
    return jsonify({'clients': get_container().user_service.get_clients()})


# ═══════════════════════════════════════════════════════════════════════════
# PANEL Y REPORTES
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/dashboard', methods=['GET'])
@login_required
def dashboard():
    return jsonify(get_container().report_service.dashboard(current_user()))


@app.route('/api/my-sales', methods=['GET'])
@permission_required('can_assign_lots')
def my_sales():
    return jsonify(get_container().report_service.my_sales(current_user()))


@app.route('/api/reports/executive', methods=['GET'])
@permission_required('can_view_reports')
def executive_report():
    period = request.args.get('period', 'month')
    try:
        report = get_container().report_service.executive_report(current_user(), period)
    except ValueError as e:
        raise BadRequest(str(e))
    return jsonify(report)


@app.route('/api/audit', methods=['GET'])
@permission_required('can_view_reports')
def audit_log():
    logs = get_container().audit_service.get_logs(
        query=request.args.get('q', ''),
        log_type=request.args.get('type')
    )
    return jsonify({'logs': logs})


# ═══════════════════════════════════════════════════════════════════════════
# PROFILING
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/profiling', methods=['GET'])
@permission_required('can_manage_users')
def profiling_summary():
    return jsonify({
        'enabled': performance_logger.ENABLE_PROFILING,
        'functions': performance_logger.get_function_stats(),
        'logs': performance_logger.get_log_summary(),
    })


@app.route('/api/profiling/report', methods=['POST'])
@permission_required('can_manage_users')
def profiling_report():
    """Vuelca las estadísticas al log y las reinicia."""
    performance_logger.write_function_stats_report()
    performance_logger.reset_stats()
    return jsonify({'ok': True})


@app.route('/api/profiling/logs', methods=['DELETE'])
@permission_required('can_manage_users')
def profiling_clear_logs():
    performance_logger.clear_logs()
    return jsonify({'ok': True})


if __name__ == "__main__":
    # En producción usar WSGI (gunicorn wsgi:app)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '127.0.0.1')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    if not DEBUG:
        print(f"\n{'='*50}")
        print(f"  API iniciada en http://{HOST}:{PORT}")
        print(f"{'='*50}\n")

    app.run(host=HOST, port=PORT, debug=DEBUG)

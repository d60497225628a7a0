import pytest

from lotes_app.services.user_service import ProtectedRoleError, UserService


def test_mock_password():
    assert UserService.expected_password('master@lotes.com') == 'master123'
    assert UserService.expected_password('cliente1@email.com') == 'cliente1123'


def test_authenticate(container):
    service = container.user_service
    user = service.authenticate('master@lotes.com', 'master123')
    assert user['id'] == 'usr-001'
    assert user['role'] == 'master'

    # el email no distingue mayúsculas
    assert service.authenticate('  Admin@Lotes.com', 'admin123')['id'] == 'usr-002'


def test_authenticate_failures(container):
    service = container.user_service
    assert service.authenticate('master@lotes.com', 'admin123') is None
    assert service.authenticate('nadie@lotes.com', 'nadie123') is None
    assert service.authenticate('', '') is None


def test_login_is_audited(container):
    container.user_service.authenticate('ventas@lotes.com', 'ventas123')
    logs = container.audit_service.get_logs(log_type='SISTEMA')
    assert logs[0]['user'] == 'ventas@lotes.com'


def test_create_user(container):
    data = {'name': 'Nuevo Comercial', 'email': 'nuevo@lotes.com', 'role': 'Comercial',
            'assigned_projects': ['proj-002']}
    result = container.user_service.create_user(data, 'master@lotes.com')
    assert result['ok']
    assert result['user']['id'] == 'usr-009'
    assert result['user']['role'] == 'comercial'
    assert result['user']['assigned_projects'] == ['proj-002']


def test_create_user_validation(container):
    data = {'name': '', 'email': 'ADMIN@lotes.com', 'role': 'gerente'}
    result = container.user_service.create_user(data)
    assert not result['ok']
    assert set(result['errors']) == {'name', 'email', 'role'}

    result = container.user_service.create_user({'name': 'X', 'email': 'sin-arroba', 'role': 'cliente'})
    assert result['errors']['email'] == 'Email inválido'


def test_last_master_cannot_be_deleted_or_demoted(container):
    service = container.user_service
    result = service.delete_user('usr-001', 'usr-002', 'admin@lotes.com')
    assert not result['ok']
    assert 'último master' in result['error']

    result = service.update_user('usr-001', {'role': 'admin'})
    assert not result['ok']
    assert container.user_repo.get_user('usr-001')['role'] == 'master'


def test_master_can_go_when_another_exists(container):
    service = container.user_service
    service.create_user({'name': 'Otra Master', 'email': 'otra@lotes.com', 'role': 'master'})
    assert service.count_masters() == 2
    assert service.delete_user('usr-001', 'usr-009')['ok']
    assert service.count_masters() == 1


def test_ensure_master_remains_raises(container):
    master = container.user_repo.get_user('usr-001')
    with pytest.raises(ProtectedRoleError):
        container.user_service.ensure_master_remains(master, is_delete=True)
    container.user_service.ensure_master_remains(master, new_role='master')


def test_no_self_delete(container):
    result = container.user_service.delete_user('usr-002', 'usr-002')
    assert not result['ok']
    assert container.user_repo.get_user('usr-002') is not None


def test_update_user_email_uniqueness(container):
    result = container.user_service.update_user('usr-005', {'email': 'cliente2@email.com'})
    assert 'email' in result['errors']

    result = container.user_service.update_user('usr-005', {'phone': '555-999-0000'})
    assert result['ok']
    assert result['user']['phone'] == '555-999-0000'


def test_unknown_user(container):
    assert container.user_service.update_user('usr-999', {'name': 'X'})['not_found']
    assert container.user_service.delete_user('usr-999')['not_found']


def test_client_queries(container):
    service = container.user_service
    assert len(service.get_clients()) == 4
    assert service.get_client_by_id('usr-005')['name'] == 'Juan Pérez'
    assert service.get_client_by_id('usr-003') is None
    assert len(service.get_all_users(query='lotes.com')) == 4

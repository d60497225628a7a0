import pytest

from lotes_app.models import Commission, InvalidTransitionError
from lotes_app.services.commission_service import commission_amount
from lotes_app.services.permission_service import PermissionDeniedError


def test_commission_amount():
    assert commission_amount(700000, 3) == 21000
    assert commission_amount(704000, 3.5) == 24640
    assert commission_amount(1001, 2.5) == pytest.approx(25.03)
    assert commission_amount(0, 3) == 0


def test_transition_table_on_entity():
    c = Commission.from_dict({
        'id': 'com-x', 'lot_id': 'lot-x', 'sales_person_id': 'usr-003',
        'sale_amount': 100, 'commission_rate': 3, 'commission_amount': 3,
    })
    assert c.can_transition_to('approved')
    assert c.can_transition_to('cancelled')
    assert not c.can_transition_to('paid')

    c.transition_to('approved', 'usr-002', '2024-01-01T00:00:00')
    assert c.approved_by == 'usr-002'
    c.transition_to('paid', 'usr-001', '2024-01-02T00:00:00')
    assert c.paid_by == 'usr-001'

    for target in ('pending', 'approved', 'cancelled'):
        with pytest.raises(InvalidTransitionError):
            c.transition_to(target, 'usr-001', '2024-01-03T00:00:00')


def test_admin_approves_master_pays(container, users):
    service = container.commission_service

    result = service.approve('com-003', users['admin'])
    assert result['ok']
    assert result['commission']['status'] == 'approved'
    assert result['commission']['approved_by'] == 'usr-002'

    with pytest.raises(PermissionDeniedError):
        service.pay('com-003', users['admin'])

    result = service.pay('com-003', users['master'])
    assert result['commission']['status'] == 'paid'
    assert container.commission_repo.get_commission('com-003')['paid_by'] == 'usr-001'


def test_pending_cannot_be_paid_directly(container, users):
    with pytest.raises(InvalidTransitionError):
        container.commission_service.pay('com-005', users['master'])
    assert container.commission_repo.get_commission('com-005')['status'] == 'pending'


def test_terminal_states(container, users):
    service = container.commission_service
    with pytest.raises(InvalidTransitionError):
        service.cancel('com-002', users['master'], 'error')
    with pytest.raises(InvalidTransitionError):
        service.approve('com-004', users['admin'])


def test_cancel_keeps_reason(container, users):
    result = container.commission_service.cancel('com-001', users['admin'], 'Cliente desistió')
    assert result['commission']['status'] == 'cancelled'
    assert result['commission']['cancel_reason'] == 'Cliente desistió'
    assert result['commission']['cancelled_by'] == 'usr-002'


def test_comercial_cannot_approve(container, users):
    with pytest.raises(PermissionDeniedError):
        container.commission_service.approve('com-003', users['ventas'])


def test_unknown_commission(container, users):
    result = container.commission_service.approve('com-999', users['master'])
    assert not result['ok']
    assert result['not_found']


def test_paying_commission_is_audited_as_money_out(container, users):
    service = container.commission_service
    service.approve('com-005', users['admin'])
    service.pay('com-005', users['master'])
    logs = container.audit_service.get_logs(query='com-005', log_type='PAGO')
    assert len(logs) == 1


def test_list_scoping(container, users):
    service = container.commission_service
    assert len(service.list_for_user(users['master'])) == 5
    assert len(service.list_for_user(users['admin'])) == 5

    own = service.list_for_user(users['ventas'])
    assert {c['id'] for c in own} == {'com-001', 'com-003', 'com-004'}

    assert service.list_for_user(users['juan']) == []


def test_list_filters(container, users):
    service = container.commission_service
    pending = service.list_for_user(users['master'], status='pending')
    assert {c['id'] for c in pending} == {'com-003', 'com-005'}

    by_maria = service.list_for_user(users['master'], sales_person_id='usr-004')
    assert {c['id'] for c in by_maria} == {'com-002', 'com-005'}

    found = service.list_for_user(users['master'], query='sierra')
    assert [c['id'] for c in found] == ['com-005']


def test_summary_for_comercial(container, users):
    summary = container.commission_service.summary_for_user(users['maria'])
    assert summary['total'] == 26250 + 24640
    assert summary['by_status']['paid']['count'] == 1
    assert summary['by_status']['pending']['amount'] == 24640
    assert [m['sales_person_id'] for m in summary['sales_persons']] == ['usr-004']
    assert summary['sales_persons'][0]['pending'] == 24640


def test_summary_for_client_is_empty(container, users):
    summary = container.commission_service.summary_for_user(users['juan'])
    assert summary['total'] == 0

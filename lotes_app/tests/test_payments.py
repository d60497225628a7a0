import csv
import io
import re

import pytest

from lotes_app.services import payment_service as payment_module
from lotes_app.services.payment_service import (
    generate_gateway_reference,
    generate_receipt_number,
    to_base36,
)
from lotes_app.services.permission_service import PermissionDeniedError


RECEIPT_RE = re.compile(r'^REC-[0-9A-Z]+-[0-9A-Z]{4}$')

MONTHLY = {
    'lot_id': 'lot-001',
    'amount': 9333,
    'type': 'monthly',
    'method': 'cash',
    'date': '2024-04-15',
    'payment_number': 3,
}


def test_base36():
    assert to_base36(0) == '0'
    assert to_base36(35) == 'Z'
    assert to_base36(36) == '10'


def test_receipt_and_reference_format():
    assert RECEIPT_RE.match(generate_receipt_number())
    assert re.match(r'^PAY-\d+-[0-9A-Z]{9}$', generate_gateway_reference())


def test_register_payment(container, users):
    result = container.payment_service.register_payment(MONTHLY, users['admin'])
    assert result['ok']
    payment = result['payment']
    assert payment['id'] == 'pay-017'
    assert payment['client_id'] == 'usr-005'
    assert payment['created_by'] == 'usr-002'
    assert payment['payment_number'] == 3
    assert RECEIPT_RE.match(payment['receipt_number'])

    balance = result['receipt']['balance_after']
    assert balance['total_paid'] == 158666 + 9333
    assert balance['months_paid'] == 3
    assert result['receipt']['type_label'] == 'Mensualidad'


def test_every_payment_is_audited(container, users):
    result = container.payment_service.register_payment(MONTHLY, users['ventas'])
    receipt = result['payment']['receipt_number']
    logs = container.audit_service.get_logs(log_type='PAGO')
    assert logs[0]['related_id'] == receipt
    assert logs[0]['user'] == 'ventas@lotes.com'


def test_receipts_are_unique(container, users):
    receipts = set()
    for _ in range(25):
        result = container.payment_service.register_payment(MONTHLY, users['admin'])
        receipts.add(result['payment']['receipt_number'])
    assert len(receipts) == 25


def test_existing_receipt_is_never_reused(container, users, monkeypatch):
    candidates = iter(['REC-LRFD2K1C-A7Q2', 'REC-NEW1-ABCD'])
    monkeypatch.setattr(payment_module, 'generate_receipt_number', lambda: next(candidates))
    result = container.payment_service.register_payment(MONTHLY, users['admin'])
    assert result['payment']['receipt_number'] == 'REC-NEW1-ABCD'


def test_register_payment_validation(container, users):
    data = dict(MONTHLY, amount=0, type='loan', method='bitcoin', date='15/04/2024')
    result = container.payment_service.register_payment(data, users['admin'])
    assert not result['ok']
    assert set(result['errors']) == {'amount', 'type', 'method', 'date'}
    assert len(container.payment_repo.get_all()) == 16


def test_register_payment_rejects_wrong_client(container, users):
    data = dict(MONTHLY, client_id='usr-006')
    result = container.payment_service.register_payment(data, users['admin'])
    assert 'client_id' in result['errors']


def test_register_payment_unknown_lot(container, users):
    result = container.payment_service.register_payment(dict(MONTHLY, lot_id='lot-999'), users['admin'])
    assert 'lot_id' in result['errors']


def test_client_cannot_register_payment(container, users):
    with pytest.raises(PermissionDeniedError):
        container.payment_service.register_payment(MONTHLY, users['juan'])


def test_gateway_payment_on_own_lot(container, users):
    data = {'lot_id': 'lot-001', 'amount': 9333, 'method': 'card'}
    result = container.payment_service.gateway_payment(data, users['juan'])
    assert result['ok']
    assert result['reference'].startswith('PAY-')
    payment = result['payment']
    assert payment['client_id'] == 'usr-005'
    assert payment['created_by'] == 'usr-005'
    assert payment['type'] == 'monthly'


def test_gateway_payment_on_other_lot_is_denied(container, users):
    data = {'lot_id': 'lot-003', 'amount': 19444, 'method': 'card'}
    with pytest.raises(PermissionDeniedError):
        container.payment_service.gateway_payment(data, users['juan'])
    assert len(container.payment_repo.get_by_lot('lot-003')) == 5


def test_gateway_rejects_cash(container, users):
    data = {'lot_id': 'lot-001', 'amount': 9333, 'method': 'cash'}
    result = container.payment_service.gateway_payment(data, users['juan'])
    assert not result['ok']
    assert 'method' in result['errors']


def test_client_sees_only_own_payments(container, users):
    service = container.payment_service
    own = service.list_for_user(users['juan'])
    assert len(own) == 8
    assert {p['client_id'] for p in own} == {'usr-005'}

    # el filtro de cliente no amplía el alcance
    assert service.list_for_user(users['juan'], client_id='usr-006') == []
    assert len(service.list_for_user(users['admin'])) == 16


def test_payment_list_is_newest_first_and_searchable(container, users):
    payments = container.payment_service.list_for_user(users['admin'], lot_id='lot-003')
    dates = [p['date'] for p in payments]
    assert dates == sorted(dates, reverse=True)

    found = container.payment_service.list_for_user(users['admin'], query='laura')
    assert len(found) == 5


def test_receipt_access(container, users):
    service = container.payment_service
    receipt = service.get_receipt('pay-002', users['juan'])
    assert receipt['payment']['project_name'] == 'Residencial Los Álamos'
    assert receipt['balance_after']['total_paid'] == 149333

    with pytest.raises(PermissionDeniedError):
        service.get_receipt('pay-002', users['laura'])
    assert service.get_receipt('pay-999', users['admin']) is None


def test_export_csv_is_scoped(container, users):
    output = container.payment_service.export_csv(users['laura'])
    rows = list(csv.reader(io.StringIO(output)))
    assert rows[0][0] == 'Recibo'
    assert len(rows) == 6
    assert all(r[2] == 'Laura Martínez' for r in rows[1:])


@pytest.mark.parametrize('amount', ['nan', 'inf', '-inf', 'Infinity', float('nan'), 1e309, 'abc', [100]])
def test_register_payment_rejects_non_numeric_amount(container, users, amount):
    result = container.payment_service.register_payment(dict(MONTHLY, amount=amount), users['admin'])
    assert not result['ok']
    assert set(result['errors']) == {'amount'}
    assert len(container.payment_repo.get_all()) == 16

    totals = container.statement_service.build_statement('lot-001')['totals']
    assert totals['total_paid'] == 158666


@pytest.mark.parametrize('amount', ['nan', 'inf'])
def test_gateway_rejects_non_finite_amount(container, users, amount):
    data = {'lot_id': 'lot-001', 'amount': amount, 'method': 'card'}
    result = container.payment_service.gateway_payment(data, users['juan'])
    assert not result['ok']
    assert 'amount' in result['errors']


def test_comercial_sees_payments_of_assigned_projects(container, users):
    payments = container.payment_service.list_for_user(users['ventas'])
    assert len(payments) == 15
    assert 'pay-016' not in {p['id'] for p in payments}
    assert 'Mirador de la Sierra' not in {p['project_name'] for p in payments}

    maria = container.payment_service.list_for_user(users['maria'])
    assert {p['lot_id'] for p in maria} == {'lot-001', 'lot-003', 'lot-009'}


def test_comercial_cannot_register_outside_assigned_projects(container, users):
    data = dict(MONTHLY, lot_id='lot-009', amount=23467, payment_number=1)
    with pytest.raises(PermissionDeniedError):
        container.payment_service.register_payment(data, users['ventas'])
    assert len(container.payment_repo.get_by_lot('lot-009')) == 1

    assert container.payment_service.register_payment(data, users['maria'])['ok']


def test_comercial_receipt_scope(container, users):
    service = container.payment_service
    assert service.get_receipt('pay-001', users['ventas'])['receipt_number']
    with pytest.raises(PermissionDeniedError):
        service.get_receipt('pay-016', users['ventas'])


def test_export_csv_for_comercial_is_scoped(container, users):
    output = container.payment_service.export_csv(users['ventas'])
    rows = list(csv.reader(io.StringIO(output)))
    assert len(rows) == 16
    assert all(r[3] != 'Mirador de la Sierra' for r in rows[1:])

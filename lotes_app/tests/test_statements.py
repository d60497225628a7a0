import copy
from datetime import date

import pytest

from lotes_app.models import Lot, Payment
from lotes_app.services.permission_service import PermissionDeniedError
from lotes_app.services.statement_service import (
    StatementValidationError,
    add_months,
    compute_statement,
    next_payment_date,
    payment_status,
)


LOT = {
    'id': 'lot-001', 'project_id': 'proj-001', 'number': 'A-01', 'area': 200,
    'price': 700000, 'status': 'reserved', 'client_id': 'usr-005',
    'down_payment': 140000, 'monthly_payment': 9333, 'total_months': 60,
    'start_date': '2024-01-15',
}

PAYMENTS = [
    {'id': 'pay-001', 'lot_id': 'lot-001', 'amount': 140000, 'type': 'down_payment'},
    {'id': 'pay-002', 'lot_id': 'lot-001', 'amount': 9333, 'type': 'monthly'},
    {'id': 'pay-003', 'lot_id': 'lot-001', 'amount': 9333, 'type': 'monthly'},
    {'id': 'pay-099', 'lot_id': 'lot-999', 'amount': 50000, 'type': 'monthly'},
]


def test_statement_totals():
    totals = compute_statement(LOT, PAYMENTS)
    assert totals['total_price'] == 700000
    assert totals['total_paid'] == 158666
    assert totals['remaining'] == 541334
    assert totals['months_paid'] == 2
    assert totals['months_remaining'] == 58
    assert totals['paid_percentage'] == pytest.approx(22.6666, rel=1e-4)


def test_statement_without_payments():
    totals = compute_statement(LOT, [])
    assert totals['total_paid'] == 0
    assert totals['remaining'] == 700000
    assert totals['paid_percentage'] == 0
    assert totals['months_remaining'] == 60


def test_overpayment_gives_negative_remaining():
    payments = [{'lot_id': 'lot-001', 'amount': 750000, 'type': 'extra'}]
    totals = compute_statement(LOT, payments)
    assert totals['remaining'] == -50000
    assert totals['paid_percentage'] > 100


def test_extra_payments_do_not_count_as_months():
    payments = PAYMENTS + [{'lot_id': 'lot-001', 'amount': 50000, 'type': 'extra'}]
    totals = compute_statement(LOT, payments)
    assert totals['months_paid'] == 2
    assert totals['total_paid'] == 208666


@pytest.mark.parametrize('price', [0, -1])
def test_non_positive_price_is_rejected(price):
    lot = dict(LOT, price=price)
    with pytest.raises(StatementValidationError):
        compute_statement(lot, PAYMENTS)


def test_statement_is_pure():
    lot = copy.deepcopy(LOT)
    payments = copy.deepcopy(PAYMENTS)
    first = compute_statement(lot, payments)
    second = compute_statement(lot, payments)
    assert first == second
    assert lot == LOT
    assert payments == PAYMENTS


def test_statement_accepts_entities():
    lot = Lot.from_dict(LOT)
    payments = [Payment.from_dict(dict(p, client_id='usr-005', date='2024-02-15',
                                       receipt_number='REC-X', method='cash'))
                for p in PAYMENTS]
    totals = compute_statement(lot, payments)
    assert totals['total_paid'] == 158666
    assert totals['months_paid'] == 2


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 3, 15), -3) == date(2023, 12, 15)


def test_next_payment_date():
    assert next_payment_date('2024-01-15', 2) == '2024-04-15'
    assert next_payment_date('2024-01-15', 0) == '2024-02-15'
    assert next_payment_date(None, 2) is None


def test_payment_status():
    assert payment_status('2024-04-15', date(2024, 4, 16)) == 'overdue'
    assert payment_status('2024-04-15', date(2024, 4, 15)) == 'due_soon'
    assert payment_status('2024-04-15', date(2024, 4, 10)) == 'due_soon'
    assert payment_status('2024-04-15', date(2024, 4, 9)) == 'on_time'
    assert payment_status(None, date(2024, 4, 9)) is None


# ═══════════════════════════════════════════════════════════════════════════
# Servicio con datos semilla
# ═══════════════════════════════════════════════════════════════════════════

def test_build_statement_for_seed_lot(container):
    statement = container.statement_service.build_statement('lot-001', today=date(2024, 4, 12))
    assert statement['project_name'] == 'Residencial Los Álamos'
    assert statement['client_name'] == 'Juan Pérez'
    assert statement['totals']['total_paid'] == 158666
    dates = [p['date'] for p in statement['payments']]
    assert dates == sorted(dates)

    nxt = statement['next_payment']
    assert nxt['date'] == '2024-04-15'
    assert nxt['payment_number'] == 3
    assert nxt['amount'] == 9333
    assert nxt['status'] == 'due_soon'


def test_statement_shows_na_for_deleted_project(container):
    container.project_repo.delete_project('proj-001')
    statement = container.statement_service.build_statement('lot-001')
    assert statement['project_name'] == 'N/A'
    assert statement['totals']['total_paid'] == 158666


def test_unknown_lot_returns_none(container):
    assert container.statement_service.build_statement('lot-999') is None


def test_client_cannot_read_other_statement(container, users):
    service = container.statement_service
    assert service.get_statement_for_user(users['juan'], 'lot-001') is not None
    with pytest.raises(PermissionDeniedError):
        service.get_statement_for_user(users['juan'], 'lot-003')


def test_client_statements_cover_all_active_lots(container):
    statements = container.statement_service.get_client_statements('usr-005')
    assert sorted(s['lot']['id'] for s in statements) == ['lot-001', 'lot-007']


def test_comercial_statement_limited_to_assigned_projects(container, users):
    service = container.statement_service
    assert service.get_statement_for_user(users['ventas'], 'lot-005') is not None
    with pytest.raises(PermissionDeniedError):
        service.get_statement_for_user(users['ventas'], 'lot-009')
    assert service.get_statement_for_user(users['maria'], 'lot-009')['client_name'] == 'Sofia Ramírez'


def test_client_statements_scoped_by_viewer(container, users):
    service = container.statement_service
    # usr-005 tiene lot-001 (proj-001) y lot-007 (proj-002)
    statements = service.get_client_statements('usr-005', viewer=users['maria'])
    assert [s['lot']['id'] for s in statements] == ['lot-001']
    assert len(service.get_client_statements('usr-005', viewer=users['admin'])) == 2

from datetime import date

import pytest

from lotes_app.services.permission_service import PermissionDeniedError
from lotes_app.services.report_service import ReportService


TODAY = date(2024, 3, 20)


def test_period_ranges():
    assert ReportService.get_period_range('week', TODAY) == (date(2024, 3, 13), TODAY)
    assert ReportService.get_period_range('month', TODAY) == (date(2024, 2, 20), TODAY)
    assert ReportService.get_period_range('quarter', TODAY) == (date(2023, 12, 20), TODAY)
    assert ReportService.get_period_range('year', TODAY) == (date(2023, 3, 20), TODAY)
    with pytest.raises(ValueError):
        ReportService.get_period_range('decade', TODAY)


def test_executive_report_month(container, users):
    report = container.report_service.executive_report(users['master'], 'month', TODAY)
    # pay-003, pay-010 y pay-016
    assert report['total_collected'] == 9333 + 56000 + 140800
    assert report['clients_count'] == 3
    assert report['lots_sold'] == 2
    assert report['lots_reserved'] == 3
    assert report['lots_available'] == 7
    assert report['total_sales'] == 875000 + 896000

    # periodo anterior: 2024-01-22 a 2024-02-19
    prev = 9333 + 168000 + 19444
    assert report['collected_change'] == pytest.approx((206133 - prev) / prev * 100)

    expected = 9333 + 19444 + 56000 + 29867 + 23467
    assert report['expected_collection'] == expected
    assert report['collection_rate'] == pytest.approx(206133 / expected * 100)
    assert report['collected_by_type']['down_payment'] == 140800


def test_overdue_portfolio_uses_thirty_day_months(container, users):
    report = container.report_service.executive_report(users['admin'], 'month', TODAY)
    overdue = {o['lot_id']: o for o in report['overdue_clients']}
    assert set(overdue) == {'lot-003', 'lot-007'}
    assert overdue['lot-003']['amount'] == 19444
    assert overdue['lot-003']['days_overdue'] == 51
    assert overdue['lot-007']['amount'] == 29867 * 4
    assert report['overdue_amount'] == 19444 + 29867 * 4


def test_trend_and_projects(container, users):
    report = container.report_service.executive_report(users['master'], 'year', TODAY)
    trend = report['monthly_trend']
    assert len(trend) == 6
    assert trend[-1]['month'] == 'Mar'
    assert trend[-1]['amount'] == 9333 + 56000 + 140800

    summary = {p['project_id']: p for p in report['projects_summary']}
    assert summary['proj-001']['sold_lots'] == 1
    assert summary['proj-001']['reserved_lots'] == 1
    assert summary['proj-001']['progress'] == 50.0


def test_collection_rate_without_expected_income(container, users):
    for lot_id in ('lot-001', 'lot-005', 'lot-009'):
        container.lot_service.release_lot(lot_id, users['master'])
    for lot_id in ('lot-003', 'lot-007'):
        lot = container.lot_repo.get_lot(lot_id)
        lot.pop('monthly_payment')
        container.lot_repo.save_lot(lot)
    report = container.report_service.executive_report(users['master'], 'week', TODAY)
    assert report['expected_collection'] == 0
    assert report['collection_rate'] == 100.0


def test_report_requires_permission(container, users):
    with pytest.raises(PermissionDeniedError):
        container.report_service.executive_report(users['ventas'], 'month', TODAY)
    with pytest.raises(ValueError):
        container.report_service.executive_report(users['master'], 'siglo', TODAY)


def test_staff_dashboard(container, users):
    data = container.report_service.dashboard(users['master'], TODAY)
    assert data['total_projects'] == 3
    assert data['total_lots'] == 12
    assert data['lots_by_status'] == {'available': 7, 'reserved': 3, 'sold': 2}
    assert data['clients_count'] == 4
    assert len(data['recent_payments']) == 5


def test_comercial_dashboard_is_scoped(container, users):
    data = container.report_service.dashboard(users['maria'], TODAY)
    assert data['total_projects'] == 2
    assert data['total_lots'] == 8


def test_client_dashboard(container, users):
    data = container.report_service.dashboard(users['juan'], TODAY)
    assert data['lots_count'] == 2
    assert data['payments_count'] == 8
    assert data['total_paid'] == 158666 + 179200 + 29867 * 3 + 50000
    progress = {l['lot_id']: l for l in data['lots']}
    assert progress['lot-001']['paid'] == 158666


def test_my_sales_for_comercial(container, users):
    data = container.report_service.my_sales(users['ventas'], TODAY)
    assert data['total_sales'] == 3
    assert data['sold_lots'] == 1
    assert data['reserved_lots'] == 2
    assert data['total_sales_amount'] == 700000 + 840000 + 896000
    assert data['pending_commissions'] == 25200
    assert data['approved_commissions'] == 21000
    assert data['paid_commissions'] == 26880
    assert data['total_commissions'] == 25200 + 21000 + 26880
    assert data['sales_this_month'] == 0
    assert data['avg_commission_rate'] == pytest.approx(3.0)
    assert [c['id'] for c in data['commissions']] == ['com-003', 'com-001', 'com-004']


def test_my_sales_counts_sales_this_month(container, users):
    data = container.report_service.my_sales(users['maria'], TODAY)
    # lot-003 vendido el 2024-03-01
    assert data['sales_this_month'] == 1
    assert data['avg_commission_rate'] == pytest.approx(3.25)
    sales = {s['lot_id']: s for s in data['sales']}
    assert sales['lot-009']['client_name'] == 'Sofia Ramírez'
    assert sales['lot-003']['project_name'] == 'Residencial Los Álamos'


def test_my_sales_excludes_cancelled_commissions(container, users):
    container.lot_service.release_lot('lot-005', users['admin'])
    data = container.report_service.my_sales(users['ventas'], TODAY)
    assert data['total_sales'] == 2
    assert data['pending_commissions'] == 0
    assert data['total_commissions'] == 21000 + 26880
    assert len(data['commissions']) == 3


def test_my_sales_without_sales(container, users):
    data = container.report_service.my_sales(users['admin'], TODAY)
    assert data['total_sales'] == 0
    assert data['avg_commission_rate'] == 0.0
    assert data['commissions'] == []


def test_client_has_no_sales_view(container, users):
    with pytest.raises(PermissionDeniedError):
        container.report_service.my_sales(users['juan'], TODAY)

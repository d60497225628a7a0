from datetime import date

from lotes_app import performance_logger
from lotes_app.formatters import (
    commission_status_label,
    format_area,
    format_currency,
    format_date_short,
    format_percentage,
    lot_status_label,
    payment_method_label,
    payment_type_label,
)
from lotes_app.models import LotStatus


def test_currency():
    assert format_currency(1234567.5) == '$1,234,567.50'
    assert format_currency(0) == '$0.00'
    assert format_currency(-50) == '-$50.00'


def test_percentage_and_area():
    assert format_percentage(22.66657) == '22.7%'
    assert format_area(200) == '200 m²'
    assert format_area(1250.5) == '1,250.50 m²'


def test_short_dates():
    assert format_date_short('2024-01-15') == '15/01/2024'
    assert format_date_short(date(2024, 3, 1)) == '01/03/2024'
    assert format_date_short(None) == 'N/A'
    assert format_date_short('pronto') == 'pronto'


def test_labels():
    assert lot_status_label(LotStatus.RESERVED) == 'Apartado'
    assert lot_status_label('sold') == 'Vendido'
    assert payment_type_label('down_payment') == 'Enganche'
    assert payment_method_label('transfer') == 'Transferencia'
    assert commission_status_label('cancelled') == 'Cancelada'
    assert payment_type_label('otro') == 'otro'


def test_audit_messages_are_humanized(container, users):
    container.lot_service.release_lot('lot-005', users['admin'])
    lot_logs = container.audit_service.get_logs(log_type='LOTE')
    assert 'Apartado → Disponible' in lot_logs[0]['message']

    commission_logs = container.audit_service.get_logs(log_type='COMISION')
    assert 'Pendiente → Cancelada' in commission_logs[0]['message']
    assert '$25,200.00' in commission_logs[0]['message']


def test_audit_search_and_limit(container):
    audit = container.audit_service
    for n in range(5):
        audit.log(audit.TYPE_SISTEMA, 'master@lotes.com', f'Mantenimiento {n}')
    assert len(audit.get_logs(query='mantenimiento')) == 5
    assert len(audit.get_logs(query='mantenimiento', limit=2)) == 2
    assert audit.get_logs(query='mantenimiento', log_type='PAGO') == []


def test_log_summary_and_stats_report(tmp_path, monkeypatch):
    monkeypatch.setattr(performance_logger, 'ENABLE_PROFILING', True)
    monkeypatch.setattr(performance_logger, 'PERFORMANCE_LOG', str(tmp_path / 'performance.log'))
    monkeypatch.setattr(performance_logger, 'SLOW_ROUTES_LOG', str(tmp_path / 'slow_routes.log'))
    monkeypatch.setattr(performance_logger, 'SLOW_FUNCTIONS_LOG', str(tmp_path / 'slow_functions.log'))
    performance_logger.reset_stats()

    @performance_logger.profile_function(name='Prueba')
    def doubled(x):
        return x * 2

    assert doubled(21) == 42
    stats = performance_logger.get_function_stats()
    assert stats['Prueba']['calls'] == 1

    performance_logger.log_route_performance('GET', '/api/lots', '/api/lots', 12, 'admin@lotes.com')
    performance_logger.write_function_stats_report()
    summary = performance_logger.get_log_summary()
    assert summary['performance']['exists']
    assert summary['slow_functions']['exists']
    assert not summary['slow_routes']['exists']
    assert 'Listar lotes' in (tmp_path / 'performance.log').read_text(encoding='utf-8')

    performance_logger.clear_logs()
    performance_logger.reset_stats()
    assert not performance_logger.get_log_summary()['performance']['exists']
    assert performance_logger.get_function_stats() == {}

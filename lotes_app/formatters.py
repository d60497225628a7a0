# ==============================================================================
# FORMATEADORES - Moneda, porcentajes y etiquetas en español
# ==============================================================================

from datetime import date, datetime
from typing import Union

from lotes_app.models import LotStatus, PaymentMethod, PaymentType, CommissionStatus


LOT_STATUS_LABELS = {
    LotStatus.AVAILABLE.value: 'Disponible',
    LotStatus.RESERVED.value: 'Apartado',
    LotStatus.SOLD.value: 'Vendido',
}

PAYMENT_TYPE_LABELS = {
    PaymentType.DOWN_PAYMENT.value: 'Enganche',
    PaymentType.MONTHLY.value: 'Mensualidad',
    PaymentType.EXTRA.value: 'Pago Extra',
}

PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH.value: 'Efectivo',
    PaymentMethod.TRANSFER.value: 'Transferencia',
    PaymentMethod.CARD.value: 'Tarjeta',
    PaymentMethod.CHECK.value: 'Cheque',
}

COMMISSION_STATUS_LABELS = {
    CommissionStatus.PENDING.value: 'Pendiente',
    CommissionStatus.APPROVED.value: 'Aprobada',
    CommissionStatus.PAID.value: 'Pagada',
    CommissionStatus.CANCELLED.value: 'Cancelada',
}

MONTH_ABBR = ['Ene', 'Feb', 'Mar', 'Abr', 'May', 'Jun', 'Jul', 'Ago', 'Sep', 'Oct', 'Nov', 'Dic']


def _label(labels, value) -> str:
    value = getattr(value, 'value', value)
    return labels.get(value, str(value))


def format_currency(amount: float) -> str:
    """
    Formatea un monto en pesos mexicanos.

    >>> format_currency(1234567.5)
    '$1,234,567.50'
    """
    amount = float(amount or 0)
    sign = '-' if amount < 0 else ''
    return f'{sign}${abs(amount):,.2f}'


def format_percentage(value: float) -> str:
    return f'{float(value or 0):.1f}%'


def format_area(area: float) -> str:
    area = float(area or 0)
    text = f'{area:,.0f}' if area == int(area) else f'{area:,.2f}'
    return f'{text} m²'


def format_date_short(value: Union[str, date, None]) -> str:
    """YYYY-MM-DD → DD/MM/YYYY. Cadenas no válidas se devuelven tal cual."""
    if not value:
        return 'N/A'
    if isinstance(value, date):
        return value.strftime('%d/%m/%Y')
    try:
        return datetime.strptime(value[:10], '%Y-%m-%d').strftime('%d/%m/%Y')
    except ValueError:
        return value


def lot_status_label(status) -> str:
    return _label(LOT_STATUS_LABELS, status)


def payment_type_label(payment_type) -> str:
    return _label(PAYMENT_TYPE_LABELS, payment_type)


def payment_method_label(method) -> str:
    return _label(PAYMENT_METHOD_LABELS, method)


def commission_status_label(status) -> str:
    return _label(COMMISSION_STATUS_LABELS, status)

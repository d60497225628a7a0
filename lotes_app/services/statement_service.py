# ==============================================================================
# SERVICIO DE ESTADOS DE CUENTA
# ==============================================================================
# Cálculo del estado de cuenta de un lote a partir de sus pagos.
#
# compute_statement() es PURA: mismo lote + mismos pagos → mismo resultado,
# sin tocar las entradas. Todo lo derivado (pagado, restante, porcentaje,
# meses) se recalcula en cada lectura, nunca se guarda.
# ==============================================================================

import calendar
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from lotes_app.models import Lot, LotStatus, PaymentType
from lotes_app.performance_logger import profile_function
from lotes_app.services.permission_service import (
    PermissionDeniedError,
    can_access_lot,
    scope_lots_for_user,
)


NOT_AVAILABLE = 'N/A'

# Días antes del vencimiento en que un pago se considera "por vencer"
DUE_SOON_DAYS = 5


class StatementValidationError(ValueError):
    """El lote no permite calcular un estado de cuenta (precio no positivo)."""
    pass


def _field(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def _enum_text(value: Any) -> Any:
    return getattr(value, 'value', value)


@profile_function(name="Calcular estado de cuenta")
def compute_statement(lot: Union[Lot, Mapping[str, Any]], payments: Iterable[Any]) -> Dict[str, Any]:
    """
    Calcula los totales del estado de cuenta de un lote.

    Solo cuentan los pagos cuyo lot_id coincide con el lote. El restante
    NO se recorta a cero: un sobrepago produce un restante negativo.

    Args:
        lot: Lote (entidad o dict) con price y total_months
        payments: Pagos (entidades o dicts); los de otros lotes se ignoran

    Returns:
        Dict con total_price, total_paid, remaining, paid_percentage,
        months_paid y months_remaining

    Raises:
        StatementValidationError: si el precio del lote no es positivo
    """
    lot_id = _field(lot, 'id')
    total_price = float(_field(lot, 'price', 0) or 0)
    if total_price <= 0:
        raise StatementValidationError(
            f'El lote {lot_id} tiene precio no positivo ({total_price})'
        )

    lot_payments = [p for p in payments if _field(p, 'lot_id') == lot_id]
    total_paid = sum(float(_field(p, 'amount', 0) or 0) for p in lot_payments)
    months_paid = sum(
        1 for p in lot_payments
        if _enum_text(_field(p, 'type')) == PaymentType.MONTHLY.value
    )
    total_months = int(_field(lot, 'total_months') or 0)

    return {
        'total_price': total_price,
        'total_paid': total_paid,
        'remaining': total_price - total_paid,
        'paid_percentage': total_paid / total_price * 100,
        'months_paid': months_paid,
        'months_remaining': total_months - months_paid,
    }


# =========================================================================
# FECHAS DE PAGO
# =========================================================================

def add_months(start: date, months: int) -> date:
    """Suma meses a una fecha; el día se ajusta al último día del mes destino."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return datetime.strptime(value[:10], '%Y-%m-%d').date()


def next_payment_date(start_date: Optional[str], months_paid: int) -> Optional[str]:
    """
    Próxima fecha de pago: start_date + months_paid + 1 meses.

    Returns:
        Fecha YYYY-MM-DD o None si el lote no tiene plan
    """
    start = parse_date(start_date)
    if start is None:
        return None
    return add_months(start, months_paid + 1).isoformat()


def payment_status(due_date: Optional[str], today: date = None) -> Optional[str]:
    """
    Clasifica el próximo pago.

    Returns:
        'overdue' si ya venció, 'due_soon' si vence en DUE_SOON_DAYS días
        o menos, 'on_time' en otro caso; None sin fecha
    """
    due = parse_date(due_date)
    if due is None:
        return None
    today = today or date.today()
    if today > due:
        return 'overdue'
    if (due - today).days <= DUE_SOON_DAYS:
        return 'due_soon'
    return 'on_time'


# =========================================================================
# SERVICIO
# =========================================================================

class StatementService:
    """
    Arma el estado de cuenta completo: totales + lote, proyecto y cliente
    (con "N/A" si la referencia ya no existe) + pagos ordenados por fecha.
    """

    def __init__(self, lot_repo, project_repo, user_repo, payment_repo):
        self.lot_repo = lot_repo
        self.project_repo = project_repo
        self.user_repo = user_repo
        self.payment_repo = payment_repo

    def build_statement(self, lot_id: str, today: date = None) -> Optional[Dict[str, Any]]:
        """
        Estado de cuenta de un lote.

        Args:
            lot_id: ID del lote
            today: Fecha de referencia para el estatus de pago

        Returns:
            Dict con lot, project, client, payments, totals y next_payment;
            None si el lote no existe

        Raises:
            StatementValidationError: precio del lote no positivo
        """
        lot = self.lot_repo.get_lot(lot_id)
        if lot is None:
            return None

        payments = sorted(self.payment_repo.get_by_lot(lot_id), key=lambda p: p.get('date', ''))
        totals = compute_statement(lot, payments)

        project = self.project_repo.get_project(lot.get('project_id'))
        client = self.user_repo.get_user(lot.get('client_id')) if lot.get('client_id') else None

        next_payment = None
        if lot.get('monthly_payment') and totals['months_remaining'] > 0 and totals['remaining'] > 0:
            due = next_payment_date(lot.get('start_date'), totals['months_paid'])
            next_payment = {
                'date': due,
                'amount': float(lot['monthly_payment']),
                'payment_number': totals['months_paid'] + 1,
                'status': payment_status(due, today),
            }

        return {
            'lot': lot,
            'lot_number': lot.get('number') or NOT_AVAILABLE,
            'project_name': project['name'] if project else NOT_AVAILABLE,
            'project_location': project['location'] if project else NOT_AVAILABLE,
            'client_name': client['name'] if client else NOT_AVAILABLE,
            'client_email': client['email'] if client else NOT_AVAILABLE,
            'payments': payments,
            'totals': totals,
            'next_payment': next_payment,
            'generated_at': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        }

    def get_statement_for_user(self, user: Dict[str, Any], lot_id: str, today: date = None) -> Optional[Dict[str, Any]]:
        """
        Estado de cuenta visible para un usuario.

        Raises:
            PermissionDeniedError: el lote está fuera del alcance del usuario
                (otro cliente, o un proyecto no asignado al comercial)
        """
        lot = self.lot_repo.get_lot(lot_id)
        if lot is None:
            return None
        if not can_access_lot(user, lot):
            raise PermissionDeniedError('can_view_own_statement', user.get('role', ''))
        return self.build_statement(lot_id, today)

    def get_client_statements(
        self,
        client_id: str,
        today: date = None,
        viewer: Dict[str, Any] = None
    ) -> List[Dict[str, Any]]:
        """
        Estados de cuenta de los lotes apartados o vendidos de un cliente.

        Con `viewer` solo se incluyen los lotes a su alcance (un comercial
        no ve lotes de proyectos que no tiene asignados).
        """
        lots = self.lot_repo.get_by_client(client_id)
        if viewer is not None:
            lots = scope_lots_for_user(viewer, lots)
        statements = []
        for lot in lots:
            if lot.get('status') == LotStatus.AVAILABLE.value:
                continue
            statement = self.build_statement(lot['id'], today)
            if statement is not None:
                statements.append(statement)
        return statements

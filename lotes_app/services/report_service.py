# ==============================================================================
# SERVICIO DE REPORTES
# ==============================================================================
# Métricas del panel principal, ventas propias y reporte ejecutivo por período.
#
# Todo se calcula al vuelo a partir de lotes y pagos: nada se guarda.
# El reporte ejecutivo calcula la cartera vencida con meses de 30 días.
# ==============================================================================

from datetime import date, timedelta
from typing import Any, Dict, List, Tuple

from lotes_app.formatters import MONTH_ABBR, payment_type_label
from lotes_app.models import CommissionStatus, LotStatus, PaymentType, UserRole
from lotes_app.performance_logger import profile_function
from lotes_app.services.permission_service import (
    require_permission,
    scope_lots_for_user,
    scope_projects_for_role,
)
from lotes_app.services.statement_service import (
    add_months,
    compute_statement,
    next_payment_date,
    parse_date,
    payment_status,
)


# Meses hacia atrás de cada período
PERIOD_MONTHS = {
    'month': 1,
    'quarter': 3,
    'year': 12,
}
VALID_PERIODS = ('week', 'month', 'quarter', 'year')

TREND_MONTHS = 6
DAYS_PER_MONTH = 30


class ReportService:
    """
    Servicio de métricas y reportes.

    Responsabilidades:
    - Panel principal (personal y cliente)
    - Ventas y comisiones propias de un comercial
    - Reporte ejecutivo por período (semana, mes, trimestre, año)
    """

    def __init__(self, project_repo, lot_repo, payment_repo, user_repo, commission_repo=None):
        self.project_repo = project_repo
        self.lot_repo = lot_repo
        self.payment_repo = payment_repo
        self.user_repo = user_repo
        self.commission_repo = commission_repo

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    @staticmethod
    def get_period_range(period: str, today: date = None) -> Tuple[date, date]:
        """
        Rango de fechas de un período que termina hoy.

        Args:
            period: 'week', 'month', 'quarter' o 'year'

        Returns:
            Tupla (inicio, fin)

        Raises:
            ValueError: período desconocido
        """
        if period not in VALID_PERIODS:
            raise ValueError(f'Período inválido: {period}')
        end = today or date.today()
        if period == 'week':
            return end - timedelta(days=7), end
        return add_months(end, -PERIOD_MONTHS[period]), end

    @staticmethod
    def _in_range(payment: Dict[str, Any], start: date, end: date) -> bool:
        paid_on = parse_date(payment.get('date'))
        return paid_on is not None and start <= paid_on <= end

    @staticmethod
    def _sum(payments: List[Dict[str, Any]]) -> float:
        return sum(float(p.get('amount', 0) or 0) for p in payments)

    def _active_lots(self, lots: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        active = (LotStatus.RESERVED.value, LotStatus.SOLD.value)
        return [l for l in lots if l.get('status') in active]

    # =========================================================================
    # PANEL PRINCIPAL
    # =========================================================================

    @profile_function(name="Panel principal")
    def dashboard(self, user: Dict[str, Any], today: date = None) -> Dict[str, Any]:
        """
        Métricas del panel según el rol.

        Para un cliente solo se usan sus lotes y pagos.
        """
        if UserRole(user['role']) == UserRole.CLIENTE:
            return self._client_dashboard(user)

        today = today or date.today()
        projects = scope_projects_for_role(
            user['role'], user.get('assigned_projects'), self.project_repo.list_all()
        )
        lots = scope_lots_for_user(user, self.lot_repo.list_all())
        lot_ids = {l['id'] for l in lots}
        payments = [p for p in self.payment_repo.get_all() if p.get('lot_id') in lot_ids]

        by_status = {s.value: 0 for s in LotStatus}
        for lot in lots:
            by_status[lot.get('status', LotStatus.AVAILABLE.value)] += 1

        pending_collection = 0.0
        overdue_count = 0
        for lot in self._active_lots(lots):
            if float(lot.get('price', 0) or 0) <= 0:
                continue
            totals = compute_statement(lot, payments)
            pending_collection += max(totals['remaining'], 0)
            if lot.get('monthly_payment') and totals['months_remaining'] > 0 and totals['remaining'] > 0:
                due = next_payment_date(lot.get('start_date'), totals['months_paid'])
                if payment_status(due, today) == 'overdue':
                    overdue_count += 1

        recent = sorted(payments, key=lambda p: p.get('date', ''), reverse=True)[:5]

        return {
            'role': user['role'],
            'total_projects': len(projects),
            'total_lots': len(lots),
            'lots_by_status': by_status,
            'total_sales': sum(
                l.get('price', 0) for l in lots if l.get('status') == LotStatus.SOLD.value
            ),
            'total_collected': self._sum(payments),
            'pending_collection': pending_collection,
            'clients_count': len(self.user_repo.get_users_by_role(UserRole.CLIENTE.value)),
            'overdue_count': overdue_count,
            'recent_payments': recent,
        }

    def _client_dashboard(self, user: Dict[str, Any]) -> Dict[str, Any]:
        lots = self.lot_repo.get_by_client(user['id'])
        payments = self.payment_repo.get_by_client(user['id'])

        lots_progress = []
        for lot in lots:
            project = self.project_repo.get_project(lot.get('project_id'))
            paid = self._sum([p for p in payments if p.get('lot_id') == lot['id']])
            price = float(lot.get('price', 0) or 0)
            lots_progress.append({
                'lot_id': lot['id'],
                'number': lot.get('number', 'N/A'),
                'project_name': project['name'] if project else 'N/A',
                'status': lot.get('status'),
                'price': price,
                'paid': paid,
                'progress': paid / price * 100 if price > 0 else 0.0,
            })

        return {
            'role': user['role'],
            'lots_count': len(lots),
            'total_paid': self._sum(payments),
            'payments_count': len(payments),
            'lots': lots_progress,
        }

    # =========================================================================
    # MIS VENTAS
    # =========================================================================

    @profile_function(name="Mis ventas")
    def my_sales(self, user: Dict[str, Any], today: date = None) -> Dict[str, Any]:
        """
        Ventas y comisiones propias de quien vende.

        Args:
            user: Usuario en sesión (requiere can_assign_lots)
            today: Fecha de referencia (para pruebas)

        Returns:
            Métricas de lotes y comisiones, los lotes vendidos/apartados
            y las comisiones de la más reciente a la más antigua

        Raises:
            PermissionDeniedError: el rol no aparta ni vende lotes
        """
        require_permission(user['role'], 'can_assign_lots')
        today = today or date.today()
        month_start = today.replace(day=1)

        lots = self.lot_repo.get_by_sales_person(user['id'])
        commissions = sorted(
            self.commission_repo.get_by_sales_person(user['id']) if self.commission_repo else [],
            key=lambda c: c.get('created_at', ''),
            reverse=True
        )

        def commission_total(status: CommissionStatus) -> float:
            return sum(
                float(c.get('commission_amount', 0) or 0)
                for c in commissions if c.get('status') == status.value
            )

        # Las canceladas no cuentan como ganadas
        earned = [c for c in commissions if c.get('status') != CommissionStatus.CANCELLED.value]
        sales_this_month = [
            l for l in lots
            if (parse_date(l.get('sale_date')) or date.min) >= month_start
        ]

        sales = []
        for lot in lots:
            project = self.project_repo.get_project(lot.get('project_id'))
            client = self.user_repo.get_user(lot['client_id']) if lot.get('client_id') else None
            sales.append({
                'lot_id': lot['id'],
                'number': lot.get('number', 'N/A'),
                'project_name': project['name'] if project else 'N/A',
                'client_name': client['name'] if client else 'N/A',
                'status': lot.get('status'),
                'price': float(lot.get('price', 0) or 0),
                'reservation_date': lot.get('reservation_date'),
                'sale_date': lot.get('sale_date'),
            })

        return {
            'total_sales': len(lots),
            'sold_lots': sum(1 for l in lots if l.get('status') == LotStatus.SOLD.value),
            'reserved_lots': sum(1 for l in lots if l.get('status') == LotStatus.RESERVED.value),
            'total_sales_amount': sum(s['price'] for s in sales),
            'total_commissions': sum(float(c.get('commission_amount', 0) or 0) for c in earned),
            'pending_commissions': commission_total(CommissionStatus.PENDING),
            'approved_commissions': commission_total(CommissionStatus.APPROVED),
            'paid_commissions': commission_total(CommissionStatus.PAID),
            'sales_this_month': len(sales_this_month),
            'avg_commission_rate': (
                sum(float(c.get('commission_rate', 0) or 0) for c in commissions) / len(commissions)
                if commissions else 0.0
            ),
            'sales': sales,
            'commissions': commissions,
        }

    # =========================================================================
    # REPORTE EJECUTIVO
    # =========================================================================

    def _monthly_trend(self, payments: List[Dict[str, Any]], today: date) -> List[Dict[str, Any]]:
        trend = []
        for offset in range(TREND_MONTHS - 1, -1, -1):
            month_start = add_months(today.replace(day=1), -offset)
            month_end = add_months(month_start, 1) - timedelta(days=1)
            amount = self._sum([p for p in payments if self._in_range(p, month_start, month_end)])
            trend.append({
                'month': MONTH_ABBR[month_start.month - 1],
                'year': month_start.year,
                'amount': amount,
            })
        return trend

    def _overdue_portfolio(
        self,
        lots: List[Dict[str, Any]],
        payments: List[Dict[str, Any]],
        today: date
    ) -> List[Dict[str, Any]]:
        """
        Cartera vencida con meses de 30 días: un lote está atrasado si los
        meses transcurridos desde el inicio superan las mensualidades pagadas.
        """
        overdue = []
        for lot in self._active_lots(lots):
            start = parse_date(lot.get('start_date'))
            monthly = lot.get('monthly_payment')
            if start is None or not monthly:
                continue

            months_paid = sum(
                1 for p in payments
                if p.get('lot_id') == lot['id'] and p.get('type') == PaymentType.MONTHLY.value
            )
            months_elapsed = (today - start).days // DAYS_PER_MONTH
            if months_elapsed <= months_paid:
                continue

            days_overdue = (today - (start + timedelta(days=months_paid * DAYS_PER_MONTH))).days
            if days_overdue <= 0:
                continue

            client = self.user_repo.get_user(lot['client_id']) if lot.get('client_id') else None
            overdue.append({
                'lot_id': lot['id'],
                'client': client['name'] if client else 'N/A',
                'lot': lot.get('number', 'N/A'),
                'amount': float(monthly) * (months_elapsed - months_paid),
                'days_overdue': days_overdue,
            })
        return overdue

    def _projects_summary(self, lots: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        summary = []
        for project in self.project_repo.list_all():
            project_lots = [l for l in lots if l.get('project_id') == project['id']]
            sold = sum(1 for l in project_lots if l.get('status') == LotStatus.SOLD.value)
            reserved = sum(1 for l in project_lots if l.get('status') == LotStatus.RESERVED.value)
            total = len(project_lots)
            summary.append({
                'project_id': project['id'],
                'name': project['name'],
                'total_lots': total,
                'sold_lots': sold,
                'reserved_lots': reserved,
                'available_lots': total - sold - reserved,
                'revenue': sum(l.get('price', 0) for l in self._active_lots(project_lots)),
                'progress': (sold + reserved) / total * 100 if total else 0.0,
            })
        return summary

    def _recent_payments(self, payments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows = []
        for p in sorted(payments, key=lambda x: x.get('date', ''), reverse=True):
            client = self.user_repo.get_user(p.get('client_id'))
            lot = self.lot_repo.get_lot(p.get('lot_id'))
            rows.append({
                'date': p.get('date'),
                'client': client['name'] if client else 'N/A',
                'lot': lot['number'] if lot else 'N/A',
                'amount': p.get('amount', 0),
                'type': payment_type_label(p.get('type')),
                'receipt_number': p.get('receipt_number'),
            })
        return rows

    @profile_function(name="Reporte ejecutivo")
    def executive_report(self, user: Dict[str, Any], period: str = 'month', today: date = None) -> Dict[str, Any]:
        """
        Reporte ejecutivo de un período.

        Args:
            user: Usuario en sesión (requiere can_view_reports)
            period: 'week', 'month', 'quarter' o 'year'
            today: Fecha de referencia (para pruebas)

        Returns:
            Dict con cobranza, lotes, clientes, tendencia, cartera vencida,
            resumen por proyecto y pagos recientes

        Raises:
            PermissionDeniedError: el rol no puede ver reportes
            ValueError: período desconocido
        """
        require_permission(user['role'], 'can_view_reports')

        today = today or date.today()
        start, end = self.get_period_range(period, today)
        prev_start = start - (end - start)

        payments = self.payment_repo.get_all()
        lots = self.lot_repo.list_all()

        period_payments = [p for p in payments if self._in_range(p, start, end)]
        prev_payments = [
            p for p in payments
            if (parse_date(p.get('date')) or date.min) >= prev_start
            and (parse_date(p.get('date')) or date.max) < start
        ]

        total_collected = self._sum(period_payments)
        prev_collected = self._sum(prev_payments)
        collected_change = (
            (total_collected - prev_collected) / prev_collected * 100 if prev_collected > 0 else 0.0
        )

        sold = [l for l in lots if l.get('status') == LotStatus.SOLD.value]
        reserved = [l for l in lots if l.get('status') == LotStatus.RESERVED.value]
        available = [l for l in lots if l.get('status') == LotStatus.AVAILABLE.value]

        expected_collection = sum(
            float(l.get('monthly_payment') or 0) for l in self._active_lots(lots)
        )
        collection_rate = (
            total_collected / expected_collection * 100 if expected_collection > 0 else 100.0
        )

        by_type = {
            t.value: self._sum([p for p in period_payments if p.get('type') == t.value])
            for t in PaymentType
        }

        overdue = self._overdue_portfolio(lots, payments, today)

        return {
            'period': period,
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
            'total_sales': sum(l.get('price', 0) for l in sold),
            'total_collected': total_collected,
            'collected_change': collected_change,
            'lots_sold': len(sold),
            'lots_reserved': len(reserved),
            'lots_available': len(available),
            'clients_count': len({p.get('client_id') for p in period_payments}),
            'expected_collection': expected_collection,
            'collection_rate': collection_rate,
            'collected_by_type': by_type,
            'monthly_trend': self._monthly_trend(payments, today),
            'overdue_amount': sum(o['amount'] for o in overdue),
            'overdue_clients': overdue,
            'projects_summary': self._projects_summary(lots),
            'recent_payments': self._recent_payments(period_payments),
        }

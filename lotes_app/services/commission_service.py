# ==============================================================================
# SERVICIO DE COMISIONES
# ==============================================================================
# Monto de comisión y su ciclo de vida:
#
#   pending ──aprobar──► approved ──pagar──► paid
#      │                    │
#      └──────cancelar──────┴──────────────► cancelled
#
# - Aprobar: master o admin. Pagar: SOLO master. Cancelar: master o admin.
# - paid y cancelled son terminales; pending → paid directo NO existe.
# - La transición la valida Commission.transition_to() ANTES de guardar.
# - Pagar una comisión es salida de dinero → siempre log (REGLA DE ORO).
# ==============================================================================

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from lotes_app.models import (
    Commission,
    CommissionStatus,
    CommissionTrigger,
    UserRole,
)
from lotes_app.performance_logger import profile_function
from lotes_app.services.audit_service import AuditService
from lotes_app.services.permission_service import has_permission, require_permission


DEFAULT_COMMISSION_RATE = 3.0

_CENTS = Decimal('0.01')


def commission_amount(sale_amount: float, rate: float) -> float:
    """
    Monto de comisión = venta × tasa / 100, redondeado a centavos.

    La tasa es porcentaje: 3 significa 3 %.

    >>> commission_amount(700000, 3)
    21000.0
    """
    amount = Decimal(str(sale_amount)) * Decimal(str(rate)) / Decimal(100)
    return float(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))


class CommissionService:
    """
    Servicio para gestión de comisiones de comerciales.

    Responsabilidades:
    - Generar la comisión al apartar un lote
    - Transiciones aprobar / pagar / cancelar con control de permisos
    - Listas filtradas por rol y resúmenes
    """

    # Estados que todavía se pueden cancelar al liberar un lote
    OPEN_STATUSES = frozenset([CommissionStatus.PENDING.value, CommissionStatus.APPROVED.value])

    def __init__(
        self,
        commission_repo,
        user_repo,
        project_repo,
        audit_service: AuditService = None
    ):
        self.commission_repo = commission_repo
        self.user_repo = user_repo
        self.project_repo = project_repo
        self.audit_service = audit_service

    @staticmethod
    def _now() -> str:
        return datetime.now().isoformat(timespec='seconds')

    def _rate_for_project(self, project_id: str) -> float:
        project = self.project_repo.get_project(project_id) if project_id else None
        if project and project.get('commission_rate') is not None:
            return float(project['commission_rate'])
        return DEFAULT_COMMISSION_RATE

    # =========================================================================
    # GENERACIÓN
    # =========================================================================

    def create_for_lot(
        self,
        lot: Dict[str, Any],
        sales_person_id: str,
        trigger: CommissionTrigger = CommissionTrigger.RESERVATION
    ) -> Dict[str, Any]:
        """
        Genera una comisión pendiente para el comercial que cerró el lote.

        Args:
            lot: Lote apartado o vendido
            sales_person_id: Comercial que recibe la comisión
            trigger: Evento que la genera

        Returns:
            Comisión creada
        """
        project = self.project_repo.get_project(lot.get('project_id')) or {}
        client = self.user_repo.get_user(lot.get('client_id')) if lot.get('client_id') else None
        rate = self._rate_for_project(lot.get('project_id'))
        sale_amount = float(lot.get('price', 0) or 0)

        record = {
            'lot_id': lot['id'],
            'sales_person_id': sales_person_id,
            'client_name': client['name'] if client else 'N/A',
            'lot_number': lot.get('number', ''),
            'project_name': project.get('name', 'N/A'),
            'sale_amount': sale_amount,
            'commission_rate': rate,
            'commission_amount': commission_amount(sale_amount, rate),
            'status': CommissionStatus.PENDING.value,
            'trigger': CommissionTrigger(trigger).value,
            'created_at': self._now(),
        }
        created = self.commission_repo.add_commission(record)

        if self.audit_service:
            self.audit_service.log_commission_created(
                created['id'], sales_person_id, created['commission_amount']
            )
        return created

    def get_open_for_lot(self, lot_id: str) -> Optional[Dict[str, Any]]:
        """Comisión pendiente o aprobada de un lote (la más reciente)."""
        open_ones = [
            c for c in self.commission_repo.get_by_lot(lot_id)
            if c.get('status') in self.OPEN_STATUSES
        ]
        return open_ones[-1] if open_ones else None

    def confirm_sale(self, lot: Dict[str, Any], sales_person_id: str = None) -> Dict[str, Any]:
        """
        Al vender un lote, confirma el monto de la comisión con el precio final.
        Si el lote no tenía comisión abierta, la genera con trigger "sale".
        """
        current = self.get_open_for_lot(lot['id'])
        if current is None:
            sales_person_id = sales_person_id or lot.get('sales_person_id')
            sales_person = self.user_repo.get_user(sales_person_id) if sales_person_id else None
            if not sales_person or sales_person.get('role') != UserRole.COMERCIAL.value:
                return {}
            return self.create_for_lot(lot, sales_person_id, CommissionTrigger.SALE)

        if current['status'] == CommissionStatus.PENDING.value:
            sale_amount = float(lot.get('price', 0) or 0)
            current['sale_amount'] = sale_amount
            current['commission_amount'] = commission_amount(sale_amount, current['commission_rate'])
            self.commission_repo.save_commission(current)
        return current

    def cancel_for_lot(self, lot_id: str, actor: Dict[str, Any], reason: str) -> Optional[Dict[str, Any]]:
        """Cancela la comisión abierta de un lote liberado (si existe)."""
        current = self.get_open_for_lot(lot_id)
        if current is None:
            return None
        return self._apply_transition(current, CommissionStatus.CANCELLED, actor, reason)

    # =========================================================================
    # TRANSICIONES
    # =========================================================================

    def _apply_transition(
        self,
        record: Dict[str, Any],
        target: CommissionStatus,
        actor: Dict[str, Any],
        reason: str = None
    ) -> Dict[str, Any]:
        commission = Commission.from_dict(record)
        old_status = commission.status.value
        commission.transition_to(target, actor['id'], self._now())
        if target == CommissionStatus.CANCELLED and reason:
            commission.cancel_reason = reason

        saved = commission.to_dict()
        self.commission_repo.save_commission(saved)

        if self.audit_service:
            self.audit_service.log_commission_change(
                actor.get('email') or actor['id'],
                commission.id,
                old_status,
                commission.status.value,
                commission.commission_amount
            )
        return saved

    def _transition(
        self,
        commission_id: str,
        target: CommissionStatus,
        capability: str,
        actor: Dict[str, Any],
        reason: str = None
    ) -> Dict[str, Any]:
        """
        Verifica permiso y estado, y aplica la transición.

        Raises:
            PermissionDeniedError: el rol del actor no tiene la capacidad
            InvalidTransitionError: el estado actual no permite el destino
        """
        require_permission(actor['role'], capability)

        record = self.commission_repo.get_commission(commission_id)
        if record is None:
            return {'ok': False, 'error': 'Comisión no encontrada', 'not_found': True}

        saved = self._apply_transition(record, target, actor, reason)
        return {'ok': True, 'commission': saved}

    def approve(self, commission_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        return self._transition(
            commission_id, CommissionStatus.APPROVED, 'can_approve_commissions', actor
        )

    def pay(self, commission_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        """Marca como pagada una comisión aprobada. Solo master."""
        return self._transition(
            commission_id, CommissionStatus.PAID, 'can_pay_commissions', actor
        )

    def cancel(self, commission_id: str, actor: Dict[str, Any], reason: str = '') -> Dict[str, Any]:
        return self._transition(
            commission_id, CommissionStatus.CANCELLED, 'can_cancel_commissions', actor,
            reason or None
        )

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_for_user(
        self,
        user: Dict[str, Any],
        status: str = None,
        sales_person_id: str = None,
        query: str = ''
    ) -> List[Dict[str, Any]]:
        """
        Comisiones visibles para un usuario.

        - master/admin: todas
        - comercial: solo las propias
        - cliente: ninguna

        Args:
            user: Usuario en sesión
            status: Filtro de estado (opcional)
            sales_person_id: Filtro de comercial (opcional)
            query: Texto en cliente, lote o proyecto
        """
        role = UserRole(user['role'])
        if role == UserRole.CLIENTE:
            return []

        commissions = self.commission_repo.list_all()
        if not has_permission(role, 'can_view_all_commissions'):
            commissions = [c for c in commissions if c.get('sales_person_id') == user['id']]

        if status:
            commissions = [c for c in commissions if c.get('status') == status]
        if sales_person_id:
            commissions = [c for c in commissions if c.get('sales_person_id') == sales_person_id]

        q = (query or '').strip().lower()
        if q:
            commissions = [
                c for c in commissions
                if q in (c.get('client_name') or '').lower()
                or q in (c.get('lot_number') or '').lower()
                or q in (c.get('project_name') or '').lower()
            ]
        return commissions

    @profile_function(name="Resumen de comisiones")
    def summary_for_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Totales por estado y métricas por comercial.

        Returns:
            {'total', 'by_status': {estado: {count, amount}}, 'sales_persons': [...]}
        """
        commissions = self.list_for_user(user)

        by_status = {
            status.value: {'count': 0, 'amount': 0.0} for status in CommissionStatus
        }
        for c in commissions:
            bucket = by_status[c['status']]
            bucket['count'] += 1
            bucket['amount'] += c.get('commission_amount', 0)

        if UserRole(user['role']) == UserRole.COMERCIAL:
            sales_persons = [self.user_repo.get_user(user['id']) or user]
        else:
            sales_persons = self.user_repo.get_users_by_role(UserRole.COMERCIAL.value)

        metrics = []
        for sp in sales_persons:
            own = [c for c in commissions if c.get('sales_person_id') == sp['id']]
            metrics.append({
                'sales_person_id': sp['id'],
                'name': sp.get('name', 'N/A'),
                'sales': len(own),
                'total_amount': sum(c.get('sale_amount', 0) for c in own),
                'commissions': sum(c.get('commission_amount', 0) for c in own),
                'pending': sum(
                    c.get('commission_amount', 0) for c in own
                    if c.get('status') in self.OPEN_STATUSES
                ),
            })

        return {
            'total': sum(c.get('commission_amount', 0) for c in commissions),
            'by_status': by_status,
            'sales_persons': metrics,
        }

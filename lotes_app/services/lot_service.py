# ==============================================================================
# SERVICIO DE LOTES
# ==============================================================================
# Inventario de lotes y su ciclo de venta:
#
#   available ──apartar──► reserved ──vender──► sold
#       ▲                     │
#       └──────liberar────────┘
#
# - Apartar: guarda cliente, comercial y plan de pagos, y genera la
#   comisión pendiente del comercial.
# - Vender: confirma el monto de la comisión con el precio final.
# - Liberar: limpia cliente y plan, y cancela la comisión abierta.
# - Cualquier otro cambio de estado lanza InvalidTransitionError.
# ==============================================================================

from typing import Any, Dict, List, Optional

from lotes_app.models import Lot, LotStatus, UserRole
from lotes_app.services.audit_service import AuditService
from lotes_app.services.commission_service import CommissionService
from lotes_app.services.permission_service import (
    PermissionDeniedError,
    can_access_lot,
    require_permission,
    scope_lots_for_user,
)
from lotes_app.services.validation import (
    invalid,
    parse_number,
    require_date,
    require_positive,
    require_text,
    today_iso,
)


# Plan sugerido al apartar: 20 % de enganche y el resto a 12 meses
SUGGESTED_DOWN_PAYMENT_RATIO = 0.2
SUGGESTED_TOTAL_MONTHS = 12

# Campos del plan que se limpian al liberar un lote
PLAN_FIELDS = (
    'client_id',
    'sales_person_id',
    'down_payment',
    'monthly_payment',
    'total_months',
    'start_date',
    'reservation_date',
    'sale_date',
)


class LotService:
    """
    Servicio para inventario y ciclo de venta de lotes.

    Responsabilidades:
    - Alta y edición de lotes con validación
    - Apartar / vender / liberar mediante la máquina de estados
    - Listas filtradas por rol (un cliente solo ve sus lotes)
    """

    EDITABLE_FIELDS = ('number', 'block', 'area', 'price', 'notes')

    def __init__(
        self,
        lot_repo,
        project_repo,
        user_repo,
        commission_service: CommissionService,
        audit_service: AuditService = None
    ):
        self.lot_repo = lot_repo
        self.project_repo = project_repo
        self.user_repo = user_repo
        self.commission_service = commission_service
        self.audit_service = audit_service

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def _enrich(self, lot: Dict[str, Any]) -> Dict[str, Any]:
        project = self.project_repo.get_project(lot.get('project_id'))
        client = self.user_repo.get_user(lot['client_id']) if lot.get('client_id') else None
        result = dict(lot)
        result['project_name'] = project['name'] if project else 'N/A'
        if lot.get('client_id'):
            result['client_name'] = client['name'] if client else 'N/A'
        return result

    def _scope(self, user: Dict[str, Any], lots: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Cliente: solo sus lotes. Comercial: solo lotes de sus proyectos."""
        return scope_lots_for_user(user, lots)

    def list_for_user(
        self,
        user: Dict[str, Any],
        project_id: str = None,
        status: str = None,
        query: str = ''
    ) -> List[Dict[str, Any]]:
        """
        Lotes visibles para el usuario.

        Args:
            user: Usuario en sesión
            project_id: Filtro de proyecto
            status: Filtro de estado
            query: Texto en número de lote o manzana
        """
        lots = self._scope(user, self.lot_repo.list_all())
        if project_id:
            lots = [l for l in lots if l.get('project_id') == project_id]
        if status:
            lots = [l for l in lots if l.get('status') == status]
        q = (query or '').strip().lower()
        if q:
            lots = [
                l for l in lots
                if q in (l.get('number') or '').lower() or q in (l.get('block') or '').lower()
            ]
        return [self._enrich(l) for l in lots]

    def get_lot(self, lot_id: str) -> Optional[Dict[str, Any]]:
        lot = self.lot_repo.get_lot(lot_id)
        return self._enrich(lot) if lot else None

    def get_lot_for_user(self, lot_id: str, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Raises:
            PermissionDeniedError: el lote está fuera del alcance del usuario
        """
        lot = self.lot_repo.get_lot(lot_id)
        if lot is None:
            return None
        if not self._scope(user, [lot]):
            raise PermissionDeniedError('can_view_own_statement', user['role'])
        return self._enrich(lot)

    @staticmethod
    def suggested_plan(lot: Dict[str, Any], start_date: str = None) -> Dict[str, Any]:
        """
        Plan de pagos propuesto al apartar.

        Returns:
            {down_payment, monthly_payment, total_months, start_date}
        """
        price = float(lot.get('price', 0) or 0)
        down_payment = round(price * SUGGESTED_DOWN_PAYMENT_RATIO)
        return {
            'down_payment': down_payment,
            'monthly_payment': round((price - down_payment) / SUGGESTED_TOTAL_MONTHS),
            'total_months': SUGGESTED_TOTAL_MONTHS,
            'start_date': start_date or today_iso(),
        }

    # =========================================================================
    # ALTA Y EDICIÓN
    # =========================================================================

    def validate_lot_data(self, data: Dict[str, Any], partial: bool = False) -> Dict[str, str]:
        errors = {}
        if not partial or 'number' in data:
            require_text(data, 'number', 'El número de lote', errors)
        if not partial or 'area' in data:
            require_positive(data, 'area', 'El área', errors)
        if not partial or 'price' in data:
            require_positive(data, 'price', 'El precio', errors)
        return errors

    def _number_taken(self, project_id: str, number: str, exclude_id: str = None) -> bool:
        target = number.strip().lower()
        return any(
            (l.get('number') or '').strip().lower() == target and l['id'] != exclude_id
            for l in self.lot_repo.get_by_project(project_id)
        )

    def add_lot(self, data: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega un lote disponible a un proyecto.

        Returns:
            {'ok': True, 'lot': {...}} o {'ok': False, 'error', 'errors'}
        """
        require_permission(actor['role'], 'can_edit_project')

        errors = self.validate_lot_data(data)
        project_id = data.get('project_id')
        if not project_id or self.project_repo.get_project(project_id) is None:
            errors['project_id'] = 'Proyecto no encontrado'
        elif 'number' not in errors and self._number_taken(project_id, data['number']):
            errors['number'] = 'Ya existe un lote con ese número en el proyecto'
        if errors:
            return invalid(errors, 'Datos de lote inválidos')

        record = {
            'project_id': project_id,
            'number': data['number'].strip(),
            'area': parse_number(data['area']),
            'price': parse_number(data['price']),
            'status': LotStatus.AVAILABLE.value,
        }
        if data.get('block'):
            record['block'] = str(data['block']).strip()
        if data.get('notes'):
            record['notes'] = str(data['notes']).strip()

        created = self.lot_repo.add_lot(record)
        if self.audit_service:
            self.audit_service.log(
                AuditService.TYPE_LOTE, actor['email'],
                f"Lote {created['number']} creado en {project_id}", created['id']
            )
        return {'ok': True, 'lot': self._enrich(created)}

    def update_lot(self, lot_id: str, data: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Edita los datos descriptivos de un lote.
        El estado NO se edita aquí: solo mediante apartar/vender/liberar.
        """
        require_permission(actor['role'], 'can_edit_project')

        lot = self.lot_repo.get_lot(lot_id)
        if lot is None:
            return {'ok': False, 'error': 'Lote no encontrado', 'not_found': True}

        if 'status' in data and data['status'] != lot.get('status'):
            return invalid(
                {'status': 'El estado solo cambia al apartar, vender o liberar'},
                'Datos de lote inválidos'
            )

        changes = {k: data[k] for k in self.EDITABLE_FIELDS if k in data}
        errors = self.validate_lot_data(changes, partial=True)
        if 'number' in changes and 'number' not in errors and \
                self._number_taken(lot['project_id'], changes['number'], exclude_id=lot_id):
            errors['number'] = 'Ya existe un lote con ese número en el proyecto'
        if errors:
            return invalid(errors, 'Datos de lote inválidos')

        for field in ('area', 'price'):
            if field in changes:
                changes[field] = parse_number(changes[field])
        lot.update(changes)
        self.lot_repo.save_lot(lot)
        return {'ok': True, 'lot': self._enrich(lot)}

    # =========================================================================
    # CICLO DE VENTA
    # =========================================================================

    def _load_for_transition(self, lot_id: str, actor: Dict[str, Any]) -> Optional[Lot]:
        require_permission(actor['role'], 'can_assign_lots')
        record = self.lot_repo.get_lot(lot_id)
        if record is None:
            return None
        if not can_access_lot(actor, record):
            raise PermissionDeniedError('can_assign_lots', actor['role'])
        return Lot.from_dict(record)

    def _audit_transition(self, actor, lot: Lot, old_status: str) -> None:
        if self.audit_service:
            self.audit_service.log_lot_status_change(
                actor['email'], lot.id, lot.number, old_status, lot.status.value, lot.client_id
            )

    def validate_assignment(self, data: Dict[str, Any]) -> Dict[str, str]:
        errors = {}
        client_id = data.get('client_id')
        client = self.user_repo.get_user(client_id) if client_id else None
        if not client or client.get('role') != UserRole.CLIENTE.value:
            errors['client_id'] = 'Cliente no encontrado'

        down_payment = parse_number(data.get('down_payment'))
        if down_payment is None:
            errors['down_payment'] = (
                'El enganche es requerido' if data.get('down_payment') in (None, '')
                else 'El enganche debe ser un número válido'
            )
        elif down_payment < 0:
            errors['down_payment'] = 'El enganche no puede ser negativo'

        require_positive(data, 'monthly_payment', 'La mensualidad', errors)
        months = require_positive(data, 'total_months', 'El plazo', errors)
        if months is not None and months > 0 and months != int(months):
            errors['total_months'] = 'El plazo debe ser un número entero de meses'
        require_date(data, 'start_date', 'La fecha de inicio', errors)

        sales_person_id = data.get('sales_person_id')
        if sales_person_id:
            sales_person = self.user_repo.get_user(sales_person_id)
            if not sales_person or sales_person.get('role') == UserRole.CLIENTE.value:
                errors['sales_person_id'] = 'Comercial no encontrado'
        return errors

    def assign_lot(self, lot_id: str, data: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Aparta un lote disponible a un cliente (available → reserved).

        Args:
            lot_id: Lote a apartar
            data: {client_id, down_payment, monthly_payment, total_months,
                   start_date, sales_person_id?}
            actor: Usuario que aparta (comercial por defecto)

        Returns:
            {'ok': True, 'lot', 'commission'} o {'ok': False, 'error', 'errors'}

        Raises:
            InvalidTransitionError: el lote no está disponible
        """
        lot = self._load_for_transition(lot_id, actor)
        if lot is None:
            return {'ok': False, 'error': 'Lote no encontrado', 'not_found': True}

        errors = self.validate_assignment(data)
        if errors:
            return invalid(errors, 'Datos de apartado inválidos')

        old_status = lot.status.value
        lot.transition_to(LotStatus.RESERVED)
        lot.client_id = data['client_id']
        lot.sales_person_id = data.get('sales_person_id') or actor['id']
        lot.down_payment = parse_number(data['down_payment'])
        lot.monthly_payment = parse_number(data['monthly_payment'])
        lot.total_months = int(parse_number(data['total_months']))
        lot.start_date = str(data['start_date'])[:10]
        lot.reservation_date = today_iso()

        saved = lot.to_dict()
        self.lot_repo.save_lot(saved)
        self._audit_transition(actor, lot, old_status)

        commission = None
        sales_person = self.user_repo.get_user(lot.sales_person_id) or {}
        if sales_person.get('role') == UserRole.COMERCIAL.value:
            commission = self.commission_service.create_for_lot(saved, lot.sales_person_id)

        return {'ok': True, 'lot': self._enrich(saved), 'commission': commission}

    def sell_lot(self, lot_id: str, actor: Dict[str, Any], sale_date: str = None) -> Dict[str, Any]:
        """
        Marca un lote apartado como vendido (reserved → sold).

        Raises:
            InvalidTransitionError: el lote no está apartado
        """
        lot = self._load_for_transition(lot_id, actor)
        if lot is None:
            return {'ok': False, 'error': 'Lote no encontrado', 'not_found': True}

        if sale_date:
            errors = {}
            sale_date = require_date({'sale_date': sale_date}, 'sale_date', 'La fecha de venta', errors)
            if errors:
                return invalid(errors, 'Datos de venta inválidos')

        old_status = lot.status.value
        lot.transition_to(LotStatus.SOLD)
        lot.sale_date = sale_date or today_iso()

        saved = lot.to_dict()
        self.lot_repo.save_lot(saved)
        self._audit_transition(actor, lot, old_status)

        commission = self.commission_service.confirm_sale(saved) or None
        return {'ok': True, 'lot': self._enrich(saved), 'commission': commission}

    def release_lot(self, lot_id: str, actor: Dict[str, Any], reason: str = '') -> Dict[str, Any]:
        """
        Libera un lote apartado (reserved → available).
        Limpia cliente y plan, y cancela la comisión abierta.

        Raises:
            InvalidTransitionError: el lote no está apartado
        """
        lot = self._load_for_transition(lot_id, actor)
        if lot is None:
            return {'ok': False, 'error': 'Lote no encontrado', 'not_found': True}

        old_status = lot.status.value
        previous_client = lot.client_id
        lot.transition_to(LotStatus.AVAILABLE)
        for field in PLAN_FIELDS:
            setattr(lot, field, None)

        saved = lot.to_dict()
        self.lot_repo.save_lot(saved)
        if self.audit_service:
            self.audit_service.log_lot_status_change(
                actor['email'], lot.id, lot.number, old_status, lot.status.value, previous_client
            )

        commission = self.commission_service.cancel_for_lot(
            lot_id, actor, reason or 'Lote liberado'
        )
        return {'ok': True, 'lot': self._enrich(saved), 'commission': commission}

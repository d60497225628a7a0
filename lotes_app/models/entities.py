# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio inmobiliario.
# Son registros planos: la lógica vive en services/, no aquí.
# La única excepción son las máquinas de estado de Lote y Comisión, que
# validan la transición ANTES de tocar el registro.
# ==============================================================================

from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any
from enum import Enum


class InvalidTransitionError(Exception):
    """Excepción lanzada cuando se intenta un cambio de estado no permitido."""

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(
            f'Transición inválida de {entity}: "{current}" → "{target}"'
        )


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    MASTER = "master"        # Dueño: todo, incluido pagar comisiones
    ADMIN = "admin"          # Operación diaria
    COMERCIAL = "comercial"  # Vendedor
    CLIENTE = "cliente"      # Comprador de lotes


class ProjectStatus(str, Enum):
    """Estados posibles de un proyecto."""
    ACTIVE = "active"
    SOLD_OUT = "sold_out"
    COMING_SOON = "coming_soon"


class LotStatus(str, Enum):
    """Estados posibles de un lote."""
    AVAILABLE = "available"  # Disponible
    RESERVED = "reserved"    # Apartado con enganche
    SOLD = "sold"            # Contrato firmado


class PaymentType(str, Enum):
    """Tipos de pago."""
    DOWN_PAYMENT = "down_payment"  # Enganche
    MONTHLY = "monthly"            # Mensualidad
    EXTRA = "extra"                # Abono extra


class PaymentMethod(str, Enum):
    """Métodos de pago aceptados."""
    CASH = "cash"
    TRANSFER = "transfer"
    CARD = "card"
    CHECK = "check"


class CommissionStatus(str, Enum):
    """Estados de una comisión."""
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class CommissionTrigger(str, Enum):
    """Evento que generó la comisión."""
    RESERVATION = "reservation"
    SALE = "sale"


class AuditType(str, Enum):
    """Tipos de eventos de auditoría."""
    PAGO = "PAGO"
    LOTE = "LOTE"
    COMISION = "COMISION"
    PROYECTO = "PROYECTO"
    USUARIO = "USUARIO"
    SISTEMA = "SISTEMA"


# Transiciones permitidas: {estado_actual: {estados_destino}}
LOT_TRANSITIONS = {
    LotStatus.AVAILABLE: frozenset([LotStatus.RESERVED]),
    LotStatus.RESERVED: frozenset([LotStatus.SOLD, LotStatus.AVAILABLE]),
    LotStatus.SOLD: frozenset(),
}

COMMISSION_TRANSITIONS = {
    CommissionStatus.PENDING: frozenset([CommissionStatus.APPROVED, CommissionStatus.CANCELLED]),
    CommissionStatus.APPROVED: frozenset([CommissionStatus.PAID, CommissionStatus.CANCELLED]),
    CommissionStatus.PAID: frozenset(),
    CommissionStatus.CANCELLED: frozenset(),
}


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


# ==============================================================================
# USUARIOS
# ==============================================================================

@dataclass
class User:
    """
    Usuario del sistema.

    Attributes:
        id: Identificador único (usr-001)
        email: Correo con el que inicia sesión
        name: Nombre para mostrar
        role: Rol que define sus permisos
        phone: Teléfono (opcional)
        assigned_projects: Proyectos asignados (solo comerciales)
    """
    id: str
    email: str
    name: str
    role: UserRole = UserRole.CLIENTE
    phone: Optional[str] = None
    assigned_projects: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para la API."""
        data = {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': _enum_value(self.role),
            'phone': self.phone,
        }
        if self.role == UserRole.COMERCIAL or self.assigned_projects:
            data['assigned_projects'] = list(self.assigned_projects)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Crea instancia desde diccionario. Un rol desconocido falla."""
        return cls(
            id=data['id'],
            email=data.get('email', ''),
            name=data.get('name', ''),
            role=UserRole(data.get('role', 'cliente')),
            phone=data.get('phone'),
            assigned_projects=list(data.get('assigned_projects') or []),
        )


# ==============================================================================
# PROYECTOS Y LOTES
# ==============================================================================

@dataclass
class Project:
    """
    Desarrollo inmobiliario. Padre de cero o más lotes.

    Attributes:
        id: Identificador (proj-001)
        name: Nombre comercial
        location: Ubicación
        description: Texto descriptivo
        price_per_m2: Precio por metro cuadrado
        status: Estado del proyecto
        commission_rate: Tasa de comisión (%) para ventas del proyecto
        created_at / updated_at: Fechas YYYY-MM-DD
    """
    id: str
    name: str
    location: str
    description: str = ''
    price_per_m2: float = 0.0
    status: ProjectStatus = ProjectStatus.ACTIVE
    commission_rate: float = 3.0
    created_at: str = ''
    updated_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['status'] = _enum_value(self.status)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            location=data.get('location', ''),
            description=data.get('description', ''),
            price_per_m2=float(data.get('price_per_m2', 0) or 0),
            status=ProjectStatus(data.get('status', 'active')),
            commission_rate=float(data.get('commission_rate', 3.0)),
            created_at=data.get('created_at', ''),
            updated_at=data.get('updated_at', ''),
        )


@dataclass
class Lot:
    """
    Parcela vendible dentro de un proyecto.

    El estado solo cambia mediante transition_to(), que rechaza
    transiciones ilegales (por ejemplo re-asignar un lote vendido).

    Attributes:
        id: Identificador (lot-001)
        project_id: Proyecto al que pertenece
        number: Número legible ("A-01")
        block: Manzana (opcional)
        area: Superficie en m²
        price: Precio total
        status: available / reserved / sold
        client_id: Cliente asignado
        sales_person_id: Comercial que hizo la venta
        down_payment: Enganche acordado
        monthly_payment: Mensualidad
        total_months: Plazo en meses
        start_date: Inicio del plan de pagos
        reservation_date / sale_date: Fechas del ciclo de venta
    """
    id: str
    project_id: str
    number: str
    area: float
    price: float
    block: Optional[str] = None
    status: LotStatus = LotStatus.AVAILABLE
    client_id: Optional[str] = None
    sales_person_id: Optional[str] = None
    down_payment: Optional[float] = None
    monthly_payment: Optional[float] = None
    total_months: Optional[int] = None
    start_date: Optional[str] = None
    reservation_date: Optional[str] = None
    sale_date: Optional[str] = None
    notes: Optional[str] = None

    @property
    def has_payment_plan(self) -> bool:
        return bool(self.monthly_payment and self.total_months)

    def can_transition_to(self, target: LotStatus) -> bool:
        return LotStatus(target) in LOT_TRANSITIONS[LotStatus(self.status)]

    def transition_to(self, target: LotStatus) -> None:
        """Cambia el estado o lanza InvalidTransitionError."""
        target = LotStatus(target)
        if not self.can_transition_to(target):
            raise InvalidTransitionError('lote', _enum_value(self.status), target.value)
        self.status = target

    def to_dict(self) -> Dict[str, Any]:
        data = _drop_none(asdict(self))
        data['status'] = _enum_value(self.status)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Lot':
        total_months = data.get('total_months')
        return cls(
            id=data['id'],
            project_id=data.get('project_id', ''),
            number=data.get('number', ''),
            area=float(data.get('area', 0) or 0),
            price=float(data.get('price', 0) or 0),
            block=data.get('block'),
            status=LotStatus(data.get('status', 'available')),
            client_id=data.get('client_id'),
            sales_person_id=data.get('sales_person_id'),
            down_payment=data.get('down_payment'),
            monthly_payment=data.get('monthly_payment'),
            total_months=int(total_months) if total_months is not None else None,
            start_date=data.get('start_date'),
            reservation_date=data.get('reservation_date'),
            sale_date=data.get('sale_date'),
            notes=data.get('notes'),
        )


# ==============================================================================
# PAGOS
# ==============================================================================

@dataclass
class Payment:
    """
    Pago registrado contra un lote. Solo se agregan, nunca se editan.

    Attributes:
        id: Identificador (pay-001)
        lot_id: Lote pagado
        client_id: Cliente que paga
        amount: Monto
        type: Enganche, mensualidad o extra
        date: Fecha del pago YYYY-MM-DD
        receipt_number: Número de recibo REC-XXXX-XXXX
        method: Efectivo, transferencia, tarjeta o cheque
        created_by: Usuario que registró el pago
        payment_number: Número de mensualidad (opcional)
        reference: Referencia de la pasarela (pagos en línea)
    """
    id: str
    lot_id: str
    client_id: str
    amount: float
    type: PaymentType
    date: str
    receipt_number: str
    method: PaymentMethod = PaymentMethod.CASH
    created_by: str = ''
    payment_number: Optional[int] = None
    notes: Optional[str] = None
    reference: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = _drop_none(asdict(self))
        data['type'] = _enum_value(self.type)
        data['method'] = _enum_value(self.method)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Payment':
        number = data.get('payment_number')
        return cls(
            id=data['id'],
            lot_id=data.get('lot_id', ''),
            client_id=data.get('client_id', ''),
            amount=float(data.get('amount', 0) or 0),
            type=PaymentType(data.get('type', 'monthly')),
            date=data.get('date', ''),
            receipt_number=data.get('receipt_number', ''),
            method=PaymentMethod(data.get('method', 'cash')),
            created_by=data.get('created_by', ''),
            payment_number=int(number) if number is not None else None,
            notes=data.get('notes'),
            reference=data.get('reference'),
        )


# ==============================================================================
# COMISIONES
# ==============================================================================

@dataclass
class Commission:
    """
    Comisión del comercial que cerró la venta de un lote.

    Ciclo de vida: pending → approved → paid, con cancelled alcanzable
    desde pending o approved. paid y cancelled son terminales.

    Attributes:
        id: Identificador (com-001)
        lot_id: Lote vendido
        sales_person_id: Comercial que recibe la comisión
        client_name / lot_number / project_name: Datos desnormalizados
        sale_amount: Monto de la venta
        commission_rate: Tasa en porcentaje (3 = 3%)
        commission_amount: sale_amount × rate / 100
        status: Estado actual
        trigger: Evento que la generó
        created_at: Timestamp ISO de creación
    """
    id: str
    lot_id: str
    sales_person_id: str
    sale_amount: float
    commission_rate: float
    commission_amount: float
    client_name: str = ''
    lot_number: str = ''
    project_name: str = ''
    status: CommissionStatus = CommissionStatus.PENDING
    trigger: CommissionTrigger = CommissionTrigger.RESERVATION
    created_at: str = ''
    sale_id: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    paid_by: Optional[str] = None
    paid_at: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancel_reason: Optional[str] = None
    notes: Optional[str] = None

    def can_transition_to(self, target: CommissionStatus) -> bool:
        return CommissionStatus(target) in COMMISSION_TRANSITIONS[CommissionStatus(self.status)]

    def transition_to(self, target: CommissionStatus, actor_id: str, timestamp: str) -> None:
        """
        Aplica una transición registrando actor y momento.

        Raises:
            InvalidTransitionError: si el estado actual no permite el destino
        """
        target = CommissionStatus(target)
        if not self.can_transition_to(target):
            raise InvalidTransitionError('comisión', _enum_value(self.status), target.value)
        self.status = target
        if target == CommissionStatus.APPROVED:
            self.approved_by, self.approved_at = actor_id, timestamp
        elif target == CommissionStatus.PAID:
            self.paid_by, self.paid_at = actor_id, timestamp
        elif target == CommissionStatus.CANCELLED:
            self.cancelled_by, self.cancelled_at = actor_id, timestamp

    def to_dict(self) -> Dict[str, Any]:
        data = _drop_none(asdict(self))
        data['status'] = _enum_value(self.status)
        data['trigger'] = _enum_value(self.trigger)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Commission':
        known = {f for f in cls.__dataclass_fields__}
        values = {k: v for k, v in data.items() if k in known}
        values['status'] = CommissionStatus(values.get('status', 'pending'))
        values['trigger'] = CommissionTrigger(values.get('trigger', 'reservation'))
        values['sale_amount'] = float(values.get('sale_amount', 0) or 0)
        values['commission_rate'] = float(values.get('commission_rate', 0) or 0)
        values['commission_amount'] = float(values.get('commission_amount', 0) or 0)
        return cls(**values)


# ==============================================================================
# AUDITORÍA
# ==============================================================================

@dataclass
class AuditLog:
    """
    Registro de auditoría.

    Attributes:
        type: Tipo de evento (PAGO, LOTE, COMISION, ...)
        user: Usuario que realizó la acción
        message: Mensaje descriptivo humanizado
        timestamp: Fecha y hora del evento
        related_id: ID relacionado (recibo, lote, comisión)
        details: Detalles adicionales
    """
    type: str
    user: str
    message: str
    timestamp: str
    related_id: str = ''
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditLog':
        return cls(
            type=data.get('type', 'SISTEMA'),
            user=data.get('user', 'sistema'),
            message=data.get('message', ''),
            timestamp=data.get('timestamp', ''),
            related_id=data.get('related_id', ''),
            details=data.get('details') or {},
        )

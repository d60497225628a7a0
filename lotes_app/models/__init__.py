# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Los registros son planos; los estados de Lote y Comisión se cambian
# solo mediante transition_to(), que valida la transición.
# ==============================================================================

from .entities import (
    # Usuarios
    User,
    UserRole,

    # Proyectos y lotes
    Project,
    ProjectStatus,
    Lot,
    LotStatus,
    LOT_TRANSITIONS,

    # Pagos
    Payment,
    PaymentType,
    PaymentMethod,

    # Comisiones
    Commission,
    CommissionStatus,
    CommissionTrigger,
    COMMISSION_TRANSITIONS,

    # Auditoría
    AuditLog,
    AuditType,

    # Errores
    InvalidTransitionError,
)

__all__ = [
    'User',
    'UserRole',
    'Project',
    'ProjectStatus',
    'Lot',
    'LotStatus',
    'LOT_TRANSITIONS',
    'Payment',
    'PaymentType',
    'PaymentMethod',
    'Commission',
    'CommissionStatus',
    'CommissionTrigger',
    'COMMISSION_TRANSITIONS',
    'AuditLog',
    'AuditType',
    'InvalidTransitionError',
]

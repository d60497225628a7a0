# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
# Los servicios usan repositorios para acceder a datos.
#
# ESTRUCTURA:
# ├── permission_service.py  → Roles, capacidades y filtrado por rol
# ├── statement_service.py   → Estado de cuenta (cálculo puro)
# ├── commission_service.py  → Monto y ciclo de vida de comisiones
# ├── user_service.py        → Autenticación mock y usuarios
# ├── project_service.py     → Proyectos
# ├── lot_service.py         → Lotes y ciclo de venta
# ├── payment_service.py     → Pagos, recibos, pasarela y CSV
# ├── report_service.py      → Panel y reporte ejecutivo
# ├── audit_service.py       → Auditoría
# └── validation.py          → Validaciones comunes de formularios
# ==============================================================================

from lotes_app.services.audit_service import AuditService
from lotes_app.services.permission_service import (
    PermissionDeniedError,
    resolve_capabilities,
    has_permission,
    scope_projects_for_role,
    scope_records_for_user,
)
from lotes_app.services.statement_service import (
    StatementService,
    StatementValidationError,
    compute_statement,
)
from lotes_app.services.commission_service import CommissionService, commission_amount
from lotes_app.services.user_service import UserService, ProtectedRoleError
from lotes_app.services.project_service import ProjectService
from lotes_app.services.lot_service import LotService
from lotes_app.services.payment_service import PaymentService
from lotes_app.services.report_service import ReportService

__all__ = [
    'AuditService',
    'PermissionDeniedError',
    'resolve_capabilities',
    'has_permission',
    'scope_projects_for_role',
    'scope_records_for_user',
    'StatementService',
    'StatementValidationError',
    'compute_statement',
    'CommissionService',
    'commission_amount',
    'UserService',
    'ProtectedRoleError',
    'ProjectService',
    'LotService',
    'PaymentService',
    'ReportService',
]

# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso al almacén en memoria.
# Las interfaces (métodos públicos) son el contrato con los servicios.
#
# ESTRUCTURA:
# ├── interfaces.py             → Protocolos (contratos)
# ├── base.py                   → DictRepository, ListRepository en memoria
# ├── user_repository.py        → Usuarios
# ├── project_repository.py     → Proyectos
# ├── lot_repository.py         → Lotes
# ├── payment_repository.py     → Pagos (solo agregar)
# ├── commission_repository.py  → Comisiones
# └── audit_repository.py       → Auditoría
# ==============================================================================

from lotes_app.repositories.interfaces import (
    IRepository,
    IDictRepository,
    IListRepository,
    IUserRepository,
    IProjectRepository,
    ILotRepository,
    IPaymentRepository,
    ICommissionRepository,
    IAuditRepository,
)

from lotes_app.repositories.base import (
    BaseRepository,
    DictRepository,
    ListRepository,
    next_sequential_id,
)
from lotes_app.repositories.user_repository import UserRepository
from lotes_app.repositories.project_repository import ProjectRepository
from lotes_app.repositories.lot_repository import LotRepository
from lotes_app.repositories.payment_repository import PaymentRepository
from lotes_app.repositories.commission_repository import CommissionRepository
from lotes_app.repositories.audit_repository import AuditRepository

__all__ = [
    # Interfaces
    'IRepository',
    'IDictRepository',
    'IListRepository',
    'IUserRepository',
    'IProjectRepository',
    'ILotRepository',
    'IPaymentRepository',
    'ICommissionRepository',
    'IAuditRepository',

    # Clases base
    'BaseRepository',
    'DictRepository',
    'ListRepository',
    'next_sequential_id',

    # Implementaciones en memoria
    'UserRepository',
    'ProjectRepository',
    'LotRepository',
    'PaymentRepository',
    'CommissionRepository',
    'AuditRepository',
]

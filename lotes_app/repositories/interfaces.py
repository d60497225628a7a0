# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos que cumplen los repositorios en memoria. Los servicios dependen
# de estos protocolos, de modo que otro almacenamiento (SQL, API) solo
# requiere una implementación nueva registrada en app_container.py.
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


# ==============================================================================
# CONTRATOS GENÉRICOS
# ==============================================================================

@runtime_checkable
class IRepository(Protocol):
    """Operaciones mínimas que cualquier repositorio debe soportar."""

    def reload(self) -> None:
        """Restaura los datos semilla."""
        ...


@runtime_checkable
class IDictRepository(IRepository, Protocol):
    """Registros por ID (usuarios, proyectos, lotes, comisiones)."""

    def get_all(self) -> Dict[str, Any]:
        ...

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        ...

    def put(self, record_id: Any, record: Dict[str, Any]) -> None:
        ...

    def remove(self, record_id: Any) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class IListRepository(IRepository, Protocol):
    """Registros en orden de llegada (pagos, auditoría)."""

    def get_all(self) -> List[Dict[str, Any]]:
        ...

    def add(self, record: Dict[str, Any]) -> None:
        ...


# ==============================================================================
# CONTRATOS POR ENTIDAD
# ==============================================================================

@runtime_checkable
class IUserRepository(Protocol):
    """Contrato del repositorio de usuarios."""

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        ...

    def create_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_user(self, user_id: str) -> bool:
        ...

    def get_users_by_role(self, role: str) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class IProjectRepository(Protocol):
    """Contrato del repositorio de proyectos."""

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        ...

    def add_project(self, project_data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def delete_project(self, project_id: str) -> bool:
        ...


@runtime_checkable
class ILotRepository(Protocol):
    """Contrato del repositorio de lotes."""

    def get_lot(self, lot_id: str) -> Optional[Dict[str, Any]]:
        ...

    def add_lot(self, lot_data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def save_lot(self, lot_data: Dict[str, Any]) -> None:
        ...

    def get_by_project(self, project_id: str) -> List[Dict[str, Any]]:
        ...

    def get_by_client(self, client_id: str) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class IPaymentRepository(Protocol):
    """Contrato del repositorio de pagos (solo agregar)."""

    def add_payment(self, payment_data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def get_by_lot(self, lot_id: str) -> List[Dict[str, Any]]:
        ...

    def get_by_client(self, client_id: str) -> List[Dict[str, Any]]:
        ...

    def receipt_exists(self, receipt_number: str) -> bool:
        ...


@runtime_checkable
class ICommissionRepository(Protocol):
    """Contrato del repositorio de comisiones."""

    def get_commission(self, commission_id: str) -> Optional[Dict[str, Any]]:
        ...

    def add_commission(self, commission_data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def save_commission(self, commission_data: Dict[str, Any]) -> None:
        ...

    def get_by_sales_person(self, sales_person_id: str) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class IAuditRepository(Protocol):
    """Contrato del repositorio de auditoría."""

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        ...

    def load(self) -> List[Dict[str, Any]]:
        ...

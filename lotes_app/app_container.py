# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único donde se crean repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (reset_instance() devuelve los datos semilla)
#   - Cambiar el almacenamiento sin tocar servicios
#
# ═══════════════════════════════════════════════════════════════════════════════
# CAMBIAR EL ALMACENAMIENTO
# ═══════════════════════════════════════════════════════════════════════════════
#
# Hoy todo vive en memoria. Para otro almacenamiento basta con crear
# repositorios que cumplan las interfaces de repositories/interfaces.py
# (IUserRepository, ILotRepository, ...) y construirlos aquí.
# Los servicios NO cambian.
# ==============================================================================

import os
from typing import Optional

from lotes_app.data import seed
from lotes_app.repositories import (
    UserRepository,
    ProjectRepository,
    LotRepository,
    PaymentRepository,
    CommissionRepository,
    AuditRepository,
)
from lotes_app.services import (
    AuditService,
    UserService,
    ProjectService,
    LotService,
    PaymentService,
    StatementService,
    CommissionService,
    ReportService,
)


def _env_float(name: str, default: float = 0.0) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


class AppContainer:
    """
    Dueño de los repositorios y servicios del proceso.

    Hay un único contenedor; cada dependencia se construye la primera
    vez que se pide.

    Uso:
        container = get_container()
        lots = container.lot_service.list_for_user(user)
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, login_delay: float = None, gateway_delay: float = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, login_delay: float = None, gateway_delay: float = None):
        """
        Args:
            login_delay: Segundos de espera simulada en login
                         (por defecto LOTES_LOGIN_DELAY o 0)
            gateway_delay: Segundos de procesamiento de la pasarela
                           (por defecto LOTES_GATEWAY_DELAY o 0)
        """
        if self._initialized:
            return

        self.login_delay = login_delay if login_delay is not None else _env_float('LOTES_LOGIN_DELAY')
        self.gateway_delay = gateway_delay if gateway_delay is not None else _env_float('LOTES_GATEWAY_DELAY')

        self.reset()
        self._initialized = True

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def user_repo(self) -> UserRepository:
        if self._user_repo is None:
            self._user_repo = UserRepository(seed.index_by_id(seed.USERS))
        return self._user_repo

    @property
    def project_repo(self) -> ProjectRepository:
        if self._project_repo is None:
            self._project_repo = ProjectRepository(seed.index_by_id(seed.PROJECTS))
        return self._project_repo

    @property
    def lot_repo(self) -> LotRepository:
        if self._lot_repo is None:
            self._lot_repo = LotRepository(seed.index_by_id(seed.LOTS))
        return self._lot_repo

    @property
    def payment_repo(self) -> PaymentRepository:
        """Repositorio de pagos (solo agregar)."""
        if self._payment_repo is None:
            self._payment_repo = PaymentRepository(seed.PAYMENTS)
        return self._payment_repo

    @property
    def commission_repo(self) -> CommissionRepository:
        if self._commission_repo is None:
            self._commission_repo = CommissionRepository(seed.index_by_id(seed.COMMISSIONS))
        return self._commission_repo

    @property
    def audit_repo(self) -> AuditRepository:
        """Arranca vacío; los eventos se generan durante la sesión."""
        if self._audit_repo is None:
            self._audit_repo = AuditRepository()
        return self._audit_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo)
        return self._audit_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(
                self.user_repo,
                self.audit_service,
                login_delay=self.login_delay
            )
        return self._user_service

    @property
    def project_service(self) -> ProjectService:
        if self._project_service is None:
            self._project_service = ProjectService(
                self.project_repo,
                self.lot_repo,
                self.audit_service
            )
        return self._project_service

    @property
    def commission_service(self) -> CommissionService:
        """lot_service lo usa al apartar, vender y liberar lotes."""
        if self._commission_service is None:
            self._commission_service = CommissionService(
                self.commission_repo,
                self.user_repo,
                self.project_repo,
                self.audit_service
            )
        return self._commission_service

    @property
    def lot_service(self) -> LotService:
        if self._lot_service is None:
            self._lot_service = LotService(
                self.lot_repo,
                self.project_repo,
                self.user_repo,
                self.commission_service,
                self.audit_service
            )
        return self._lot_service

    @property
    def payment_service(self) -> PaymentService:
        if self._payment_service is None:
            self._payment_service = PaymentService(
                self.payment_repo,
                self.lot_repo,
                self.project_repo,
                self.user_repo,
                self.audit_service,
                gateway_delay=self.gateway_delay
            )
        return self._payment_service

    @property
    def statement_service(self) -> StatementService:
        if self._statement_service is None:
            self._statement_service = StatementService(
                self.lot_repo,
                self.project_repo,
                self.user_repo,
                self.payment_repo
            )
        return self._statement_service

    @property
    def report_service(self) -> ReportService:
        if self._report_service is None:
            self._report_service = ReportService(
                self.project_repo,
                self.lot_repo,
                self.payment_repo,
                self.user_repo,
                self.commission_repo
            )
        return self._report_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """Olvida repositorios y servicios; se recrean desde la semilla al usarse."""
        self._user_repo = None
        self._project_repo = None
        self._lot_repo = None
        self._payment_repo = None
        self._commission_repo = None
        self._audit_repo = None

        self._audit_service = None
        self._user_service = None
        self._project_service = None
        self._commission_service = None
        self._lot_service = None
        self._payment_service = None
        self._statement_service = None
        self._report_service = None

    @classmethod
    def get_instance(cls) -> 'AppContainer':
        """Obtiene la instancia singleton del contenedor."""
        if cls._instance is None:
            return cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Descarta el contenedor global (los tests parten de la semilla)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container() -> AppContainer:
    """Obtiene el contenedor de dependencias global."""
    return AppContainer.get_instance()

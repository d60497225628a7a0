# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Autenticación mock y gestión de usuarios.
#
# AUTENTICACIÓN MOCK:
# La contraseña es la parte del email antes de "@" + "123"
# (master@lotes.com → master123). El email no distingue mayúsculas.
#
# REGLA CRÍTICA - ROL "master":
# Siempre debe quedar AL MENOS un master. El último master no puede:
# - Ser eliminado
# - Ser degradado a otro rol
# Además, nadie puede eliminar su propia cuenta.
# Estas validaciones se hacen AQUÍ, no en las rutas.
# ==============================================================================

import re
import time
from typing import Any, Dict, List, Optional

from lotes_app.models import User, UserRole
from lotes_app.services.audit_service import AuditService


EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class ProtectedRoleError(Exception):
    """Excepción lanzada cuando una operación dejaría al sistema sin master."""
    pass


class UserService:
    """
    Servicio para gestión de usuarios.

    Responsabilidades:
    - Autenticación mock (login/logout)
    - CRUD de usuarios con validación
    - Protección del último master
    - Consultas de clientes
    """

    VALID_ROLES = frozenset(role.value for role in UserRole)

    def __init__(
        self,
        user_repo,
        audit_service: AuditService = None,
        login_delay: float = 0.0
    ):
        """
        Args:
            user_repo: Repositorio de usuarios
            audit_service: Servicio de auditoría (opcional)
            login_delay: Segundos de espera simulada en el login
        """
        self.user_repo = user_repo
        self.audit_service = audit_service
        self.login_delay = login_delay

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    @staticmethod
    def expected_password(email: str) -> str:
        """Contraseña mock: parte local del email + "123"."""
        return (email or '').split('@')[0] + '123'

    def authenticate(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Autentica un usuario con el esquema mock.

        Args:
            email: Email (sin distinguir mayúsculas)
            password: Contraseña en texto plano

        Returns:
            Datos públicos del usuario o None si no coincide
        """
        if self.login_delay > 0:
            time.sleep(self.login_delay)

        email = (email or '').strip()
        user = self.user_repo.get_by_email(email)
        if not user:
            return None

        if password != self.expected_password(user['email']):
            return None

        if self.audit_service:
            self.audit_service.log_login(user['email'])

        return User.from_dict(user).to_dict()

    def logout(self, email: str) -> None:
        if self.audit_service:
            self.audit_service.log_logout(email)

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        user = self.user_repo.get_user(user_id)
        return User.from_dict(user).to_dict() if user else None

    def get_all_users(self, role: str = None, query: str = '') -> List[Dict[str, Any]]:
        """
        Lista usuarios, opcionalmente por rol y texto (nombre o email).
        """
        users = self.user_repo.get_users_by_role(role) if role else self.user_repo.list_all()
        q = (query or '').strip().lower()
        if q:
            users = [
                u for u in users
                if q in (u.get('name') or '').lower() or q in (u.get('email') or '').lower()
            ]
        return [User.from_dict(u).to_dict() for u in users]

    def get_clients(self) -> List[Dict[str, Any]]:
        return self.get_all_users(role=UserRole.CLIENTE.value)

    def get_client_by_id(self, client_id: str) -> Optional[Dict[str, Any]]:
        """Solo devuelve usuarios con rol cliente."""
        user = self.user_repo.get_user(client_id)
        if not user or user.get('role') != UserRole.CLIENTE.value:
            return None
        return User.from_dict(user).to_dict()

    def get_sales_persons(self) -> List[Dict[str, Any]]:
        return self.get_all_users(role=UserRole.COMERCIAL.value)

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def normalize_role(self, role: str) -> Optional[str]:
        """
        Normaliza un rol a su forma canónica.

        Returns:
            Rol válido en minúsculas o None si no existe
        """
        normalized = (role or '').strip().lower()
        return normalized if normalized in self.VALID_ROLES else None

    def validate_user_data(
        self,
        data: Dict[str, Any],
        user_id: str = None,
        partial: bool = False
    ) -> Dict[str, str]:
        """
        Valida los campos de un usuario.

        Args:
            data: Campos recibidos
            user_id: ID del usuario editado (para la unicidad del email)
            partial: True en ediciones (solo se validan los campos presentes)

        Returns:
            Dict {campo: mensaje}; vacío si todo es válido
        """
        errors = {}

        if not partial or 'name' in data:
            if not (data.get('name') or '').strip():
                errors['name'] = 'El nombre es requerido'

        if not partial or 'email' in data:
            email = (data.get('email') or '').strip()
            if not email:
                errors['email'] = 'El email es requerido'
            elif not EMAIL_PATTERN.match(email):
                errors['email'] = 'Email inválido'
            else:
                existing = self.user_repo.get_by_email(email)
                if existing and existing['id'] != user_id:
                    errors['email'] = 'El email ya está registrado'

        if not partial or 'role' in data:
            if self.normalize_role(data.get('role')) is None:
                errors['role'] = 'Rol inválido'

        return errors

    # =========================================================================
    # PROTECCIÓN DEL ÚLTIMO MASTER
    # =========================================================================

    def count_masters(self) -> int:
        return self.user_repo.count_by_role(UserRole.MASTER.value)

    def ensure_master_remains(self, user: Dict[str, Any], new_role: str = None, is_delete: bool = False) -> None:
        """
        Verifica que la operación no deje al sistema sin master.

        Raises:
            ProtectedRoleError: si el usuario es el último master
        """
        if user.get('role') != UserRole.MASTER.value:
            return
        losing_role = is_delete or (new_role is not None and new_role != UserRole.MASTER.value)
        if losing_role and self.count_masters() <= 1:
            action = 'eliminar' if is_delete else 'cambiar el rol de'
            raise ProtectedRoleError(f'No se puede {action} el último master')

    # =========================================================================
    # CRUD
    # =========================================================================

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = {}
        if 'name' in data:
            record['name'] = data['name'].strip()
        if 'email' in data:
            record['email'] = data['email'].strip()
        if 'role' in data:
            record['role'] = self.normalize_role(data['role'])
        if 'phone' in data:
            record['phone'] = (data.get('phone') or '').strip() or None
        if 'assigned_projects' in data:
            record['assigned_projects'] = list(data.get('assigned_projects') or [])
        return record

    def create_user(self, data: Dict[str, Any], admin_user: str = None) -> Dict[str, Any]:
        """
        Crea un usuario.

        Args:
            data: {name, email, role, phone?, assigned_projects?}
            admin_user: Quien crea (para auditoría)

        Returns:
            {'ok': True, 'user': {...}} o {'ok': False, 'error', 'errors'}
        """
        errors = self.validate_user_data(data)
        if errors:
            return {'ok': False, 'error': 'Datos de usuario inválidos', 'errors': errors}

        record = self._clean(data)
        if record['role'] != UserRole.COMERCIAL.value:
            record.pop('assigned_projects', None)
        created = self.user_repo.create_user(record)

        if self.audit_service and admin_user:
            self.audit_service.log_user_change(admin_user, created['id'], f"creado con rol {created['role']}")

        return {'ok': True, 'user': User.from_dict(created).to_dict()}

    def update_user(self, user_id: str, data: Dict[str, Any], admin_user: str = None) -> Dict[str, Any]:
        """
        Actualiza un usuario.

        VALIDACIONES:
        1. El usuario debe existir
        2. Los campos presentes deben ser válidos
        3. El último master no puede perder su rol
        """
        user = self.user_repo.get_user(user_id)
        if not user:
            return {'ok': False, 'error': 'Usuario no encontrado', 'not_found': True}

        errors = self.validate_user_data(data, user_id=user_id, partial=True)
        if errors:
            return {'ok': False, 'error': 'Datos de usuario inválidos', 'errors': errors}

        changes = self._clean(data)
        try:
            self.ensure_master_remains(user, new_role=changes.get('role'))
        except ProtectedRoleError as e:
            return {'ok': False, 'error': str(e)}

        updated = self.user_repo.update_user(user_id, changes)

        if self.audit_service and admin_user:
            self.audit_service.log_user_change(admin_user, user_id, f"actualizado ({', '.join(sorted(changes))})")

        return {'ok': True, 'user': User.from_dict(updated).to_dict()}

    def delete_user(self, user_id: str, admin_user_id: str = None, admin_user: str = None) -> Dict[str, Any]:
        """
        Elimina un usuario.

        VALIDACIONES:
        1. El usuario debe existir
        2. No se puede auto-eliminar
        3. No se puede eliminar el último master
        """
        user = self.user_repo.get_user(user_id)
        if not user:
            return {'ok': False, 'error': 'Usuario no encontrado', 'not_found': True}

        if admin_user_id and admin_user_id == user_id:
            return {'ok': False, 'error': 'No puedes eliminar tu propia cuenta'}

        try:
            self.ensure_master_remains(user, is_delete=True)
        except ProtectedRoleError as e:
            return {'ok': False, 'error': str(e)}

        success = self.user_repo.delete_user(user_id)

        if success and self.audit_service and admin_user:
            self.audit_service.log_user_change(admin_user, user_id, 'eliminado')

        return {'ok': success}

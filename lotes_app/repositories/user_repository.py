# ==============================================================================
# REPOSITORIO DE USUARIOS
# ==============================================================================
# Usuarios indexados por ID: {"usr-001": {id, email, name, role, ...}}
# ==============================================================================

from typing import Any, Dict, List, Optional

from lotes_app.repositories.base import DictRepository


class UserRepository(DictRepository):
    """
    Repositorio para gestión de usuarios.

    La validación de credenciales se hace SOLO en UserService.
    El repositorio solo maneja almacenamiento, no lógica de autenticación.
    """

    id_prefix = 'usr'

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Obtiene un usuario por su ID."""
        return self.get_by_id(user_id)

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Busca un usuario por email (sin distinguir mayúsculas).

        Args:
            email: Correo a buscar

        Returns:
            Datos del usuario o None
        """
        target = (email or '').strip().lower()
        for user in self.list_all():
            if (user.get('email') or '').lower() == target:
                return user
        return None

    def create_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un usuario asignándole el siguiente ID libre.

        Args:
            user_data: Campos del usuario (sin ID)

        Returns:
            Usuario creado
        """
        with self._lock:
            record = dict(user_data)
            record['id'] = self.next_id()
            self.put(record['id'], record)
            return record

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Actualiza campos de un usuario. None si no existe."""
        return self.patch(user_id, updates)

    def delete_user(self, user_id: str) -> bool:
        return self.remove(user_id) is not None

    def get_users_by_role(self, role: str) -> List[Dict[str, Any]]:
        """
        Obtiene usuarios con un rol específico.

        Args:
            role: Rol a filtrar

        Returns:
            Lista de usuarios
        """
        return self.find_all_by('role', role)

    def count_by_role(self, role: str) -> int:
        return len(self.get_users_by_role(role))

# ==============================================================================
# SERVICIO DE PERMISOS
# ==============================================================================
# Tabla fija rol → capacidades y el filtrado de listas por rol.
#
# REGLA CRÍTICA - AISLAMIENTO DE CLIENTES:
# Un usuario con rol "cliente" SOLO ve lotes, pagos y estados de cuenta
# propios. El filtro se aplica AQUÍ, antes de que los datos salgan de la
# capa de servicios. Las rutas no filtran por su cuenta.
# ==============================================================================

from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from lotes_app.models import UserRole


class PermissionDeniedError(Exception):
    """Excepción lanzada cuando el rol no tiene la capacidad requerida."""

    def __init__(self, capability: str, role: str = ''):
        self.capability = capability
        self.role = role
        super().__init__(f'El rol "{role}" no tiene permiso: {capability}')


# Capacidades conocidas. Cada rol debe definir TODAS.
CAPABILITIES = (
    'can_view_all_projects',
    'can_create_project',
    'can_edit_project',
    'can_delete_project',
    'can_view_all_clients',
    'can_assign_lots',
    'can_register_payments',
    'can_view_own_statement',
    'can_download_pdf',
    'can_manage_users',
    'can_view_reports',
    'can_view_all_commissions',
    'can_approve_commissions',
    'can_pay_commissions',
    'can_cancel_commissions',
)

_ROLE_TABLE = {
    UserRole.MASTER: {
        'can_view_all_projects': True,
        'can_create_project': True,
        'can_edit_project': True,
        'can_delete_project': True,
        'can_view_all_clients': True,
        'can_assign_lots': True,
        'can_register_payments': True,
        'can_view_own_statement': True,
        'can_download_pdf': True,
        'can_manage_users': True,
        'can_view_reports': True,
        'can_view_all_commissions': True,
        'can_approve_commissions': True,
        'can_pay_commissions': True,
        'can_cancel_commissions': True,
    },
    UserRole.ADMIN: {
        'can_view_all_projects': True,
        'can_create_project': True,
        'can_edit_project': True,
        'can_delete_project': False,
        'can_view_all_clients': True,
        'can_assign_lots': True,
        'can_register_payments': True,
        'can_view_own_statement': True,
        'can_download_pdf': True,
        'can_manage_users': False,
        'can_view_reports': True,
        'can_view_all_commissions': True,
        'can_approve_commissions': True,
        'can_pay_commissions': False,
        'can_cancel_commissions': True,
    },
    UserRole.COMERCIAL: {
        'can_view_all_projects': True,
        'can_create_project': False,
        'can_edit_project': False,
        'can_delete_project': False,
        'can_view_all_clients': True,
        'can_assign_lots': True,
        'can_register_payments': True,
        'can_view_own_statement': True,
        'can_download_pdf': True,
        'can_manage_users': False,
        'can_view_reports': False,
        'can_view_all_commissions': False,
        'can_approve_commissions': False,
        'can_pay_commissions': False,
        'can_cancel_commissions': False,
    },
    UserRole.CLIENTE: {
        'can_view_all_projects': False,
        'can_create_project': False,
        'can_edit_project': False,
        'can_delete_project': False,
        'can_view_all_clients': False,
        'can_assign_lots': False,
        'can_register_payments': False,
        'can_view_own_statement': True,
        'can_download_pdf': True,
        'can_manage_users': False,
        'can_view_reports': False,
        'can_view_all_commissions': False,
        'can_approve_commissions': False,
        'can_pay_commissions': False,
        'can_cancel_commissions': False,
    },
}


def _build_role_permissions(table) -> Mapping[UserRole, Mapping[str, bool]]:
    """Congela la tabla y falla al importar si falta un rol o una capacidad."""
    missing_roles = [role.value for role in UserRole if role not in table]
    if missing_roles:
        raise RuntimeError(f'Roles sin permisos definidos: {missing_roles}')

    frozen = {}
    for role, row in table.items():
        missing = [cap for cap in CAPABILITIES if cap not in row]
        unknown = [cap for cap in row if cap not in CAPABILITIES]
        if missing or unknown:
            raise RuntimeError(
                f'Permisos incompletos para "{role.value}": '
                f'faltan {missing}, desconocidos {unknown}'
            )
        frozen[role] = MappingProxyType({cap: bool(row[cap]) for cap in CAPABILITIES})
    return MappingProxyType(frozen)


ROLE_PERMISSIONS = _build_role_permissions(_ROLE_TABLE)

ROLE_LABELS = {
    UserRole.MASTER: 'Master',
    UserRole.ADMIN: 'Administrador',
    UserRole.COMERCIAL: 'Comercial',
    UserRole.CLIENTE: 'Cliente',
}

STAFF_ROLES = frozenset([UserRole.MASTER, UserRole.ADMIN, UserRole.COMERCIAL])


# =========================================================================
# CONSULTAS DE PERMISOS
# =========================================================================

def resolve_capabilities(role) -> Dict[str, bool]:
    """
    Devuelve el conjunto completo de capacidades de un rol.

    Args:
        role: UserRole o su valor en texto

    Returns:
        Dict {capacidad: bool} con todas las capacidades

    Raises:
        ValueError: si el rol no existe
    """
    return dict(ROLE_PERMISSIONS[UserRole(role)])


def has_permission(role, capability: str) -> bool:
    """
    Verifica una capacidad puntual.

    Raises:
        ValueError: rol desconocido
        KeyError: capacidad desconocida
    """
    return ROLE_PERMISSIONS[UserRole(role)][capability]


def require_permission(role, capability: str) -> None:
    """Lanza PermissionDeniedError si el rol no tiene la capacidad."""
    if not has_permission(role, capability):
        raise PermissionDeniedError(capability, UserRole(role).value)


def get_role_label(role) -> str:
    return ROLE_LABELS[UserRole(role)]


def is_staff(role) -> bool:
    return UserRole(role) in STAFF_ROLES


# =========================================================================
# FILTRADO DE LISTAS POR ROL
# =========================================================================

def scope_projects_for_role(
    role,
    assigned_project_ids: Optional[Iterable[str]],
    all_projects: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    Filtra los proyectos visibles para un rol.

    - comercial: solo los proyectos asignados
    - roles con can_view_all_projects: todos
    - resto: ninguno

    Args:
        role: Rol del usuario
        assigned_project_ids: Proyectos asignados al usuario
        all_projects: Todos los proyectos

    Returns:
        Lista filtrada (el orden original se conserva)
    """
    role = UserRole(role)
    if role == UserRole.COMERCIAL:
        assigned = set(assigned_project_ids or [])
        return [p for p in all_projects if p.get('id') in assigned]
    if has_permission(role, 'can_view_all_projects'):
        return list(all_projects)
    return []


def scope_records_for_user(
    user: Dict[str, Any],
    records: Iterable[Dict[str, Any]],
    client_of: Callable[[Dict[str, Any]], Optional[str]] = None,
    project_of: Callable[[Dict[str, Any]], Optional[str]] = None
) -> List[Dict[str, Any]]:
    """
    Filtro central de alcance por rol.

    - cliente: solo los registros cuyo cliente es el propio usuario
    - comercial: si se indica `project_of`, solo registros de sus
      proyectos asignados
    - resto del personal: todo

    Args:
        user: Usuario en sesión ({id, role, ...})
        records: Lotes, pagos o cualquier registro con client_id
        client_of: Función que obtiene el client_id de un registro
            (por defecto record['client_id'])
        project_of: Función que obtiene el proyecto de un registro

    Returns:
        Lista filtrada
    """
    records = list(records)
    role = UserRole(user['role'])
    if role == UserRole.CLIENTE:
        getter = client_of or (lambda record: record.get('client_id'))
        return [r for r in records if getter(r) == user['id']]
    if role == UserRole.COMERCIAL and project_of is not None:
        assigned = set(user.get('assigned_projects') or [])
        return [r for r in records if project_of(r) in assigned]
    return records


def scope_lots_for_user(user: Dict[str, Any], lots: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Lotes visibles: el cliente ve los suyos y el comercial los de sus proyectos."""
    return scope_records_for_user(user, lots, project_of=lambda lot: lot.get('project_id'))


def can_access_lot(user: Dict[str, Any], lot: Dict[str, Any]) -> bool:
    return bool(scope_lots_for_user(user, [lot]))

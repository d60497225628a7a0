# ==============================================================================
# SERVICIO DE PROYECTOS
# ==============================================================================
# Alta, edición y baja de desarrollos, con los contadores de lotes
# derivados del almacén de lotes (nunca guardados en el proyecto).
#
# Al eliminar un proyecto sus lotes NO se borran: quedan huérfanos y las
# vistas los muestran con "N/A".
# ==============================================================================

from typing import Any, Dict, List, Optional

from lotes_app.models import LotStatus, ProjectStatus
from lotes_app.services.audit_service import AuditService
from lotes_app.services.permission_service import (
    PermissionDeniedError,
    require_permission,
    scope_projects_for_role,
)
from lotes_app.services.validation import (
    invalid,
    parse_number,
    require_positive,
    require_text,
    today_iso,
)


class ProjectService:
    """Servicio para gestión de proyectos inmobiliarios."""

    VALID_STATUSES = frozenset(s.value for s in ProjectStatus)

    def __init__(self, project_repo, lot_repo, audit_service: AuditService = None):
        self.project_repo = project_repo
        self.lot_repo = lot_repo
        self.audit_service = audit_service

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    @staticmethod
    def lot_summary(lots: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Resumen de lotes de un proyecto.

        Returns:
            Conteos por estado, ingresos (apartados + vendidos) y avance %
        """
        sold = [l for l in lots if l.get('status') == LotStatus.SOLD.value]
        reserved = [l for l in lots if l.get('status') == LotStatus.RESERVED.value]
        available = [l for l in lots if l.get('status') == LotStatus.AVAILABLE.value]
        total = len(lots)
        return {
            'total_lots': total,
            'available_lots': len(available),
            'reserved_lots': len(reserved),
            'sold_lots': len(sold),
            'revenue': sum(l.get('price', 0) for l in sold + reserved),
            'progress': (len(sold) + len(reserved)) / total * 100 if total else 0.0,
        }

    def _with_counters(self, project: Dict[str, Any]) -> Dict[str, Any]:
        summary = self.lot_summary(self.lot_repo.get_by_project(project['id']))
        result = dict(project)
        result['total_lots'] = summary['total_lots']
        result['available_lots'] = summary['available_lots']
        return result

    def list_for_user(self, user: Dict[str, Any], query: str = '', status: str = None) -> List[Dict[str, Any]]:
        """
        Proyectos visibles para el usuario, con contadores de lotes.

        Args:
            user: Usuario en sesión
            query: Texto en nombre o ubicación
            status: Filtro de estado
        """
        projects = scope_projects_for_role(
            user['role'],
            user.get('assigned_projects'),
            self.project_repo.list_all()
        )
        if status:
            projects = [p for p in projects if p.get('status') == status]
        q = (query or '').strip().lower()
        if q:
            projects = [
                p for p in projects
                if q in (p.get('name') or '').lower() or q in (p.get('location') or '').lower()
            ]
        return [self._with_counters(p) for p in projects]

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        project = self.project_repo.get_project(project_id)
        return self._with_counters(project) if project else None

    def get_project_detail(self, project_id: str, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Proyecto con sus lotes y resumen.

        Raises:
            PermissionDeniedError: el proyecto no está en el alcance del usuario
        """
        project = self.project_repo.get_project(project_id)
        if project is None:
            return None
        visible = scope_projects_for_role(user['role'], user.get('assigned_projects'), [project])
        if not visible:
            raise PermissionDeniedError('can_view_all_projects', user['role'])

        lots = sorted(self.lot_repo.get_by_project(project_id), key=lambda l: l.get('number', ''))
        return {
            'project': self._with_counters(project),
            'lots': lots,
            'summary': self.lot_summary(lots),
        }

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def validate_project_data(self, data: Dict[str, Any], partial: bool = False) -> Dict[str, str]:
        errors = {}
        if not partial or 'name' in data:
            require_text(data, 'name', 'El nombre', errors)
        if not partial or 'location' in data:
            require_text(data, 'location', 'La ubicación', errors)
        if not partial or 'price_per_m2' in data:
            require_positive(data, 'price_per_m2', 'El precio por m²', errors)
        if 'status' in data and data['status'] not in self.VALID_STATUSES:
            errors['status'] = 'Estado inválido'
        if 'commission_rate' in data:
            rate = parse_number(data['commission_rate'])
            if rate is None or rate < 0 or rate > 100:
                errors['commission_rate'] = 'La tasa de comisión debe estar entre 0 y 100'
        return errors

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = {}
        for field in ('name', 'location', 'description'):
            if field in data:
                record[field] = str(data.get(field) or '').strip()
        if 'price_per_m2' in data:
            record['price_per_m2'] = parse_number(data['price_per_m2'])
        if 'commission_rate' in data:
            record['commission_rate'] = parse_number(data['commission_rate'])
        if 'status' in data:
            record['status'] = data['status']
        return record

    # =========================================================================
    # MUTACIONES
    # =========================================================================

    def add_project(self, data: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un proyecto.

        Returns:
            {'ok': True, 'project': {...}} o {'ok': False, 'error', 'errors'}
        """
        require_permission(actor['role'], 'can_create_project')

        errors = self.validate_project_data(data)
        if errors:
            return invalid(errors, 'Datos de proyecto inválidos')

        record = self._clean(data)
        record.setdefault('description', '')
        record.setdefault('status', ProjectStatus.ACTIVE.value)
        record.setdefault('commission_rate', 3.0)
        now = today_iso()
        record['created_at'] = now
        record['updated_at'] = now

        created = self.project_repo.add_project(record)
        if self.audit_service:
            self.audit_service.log_project_change(actor['email'], created['id'], 'creado', created['name'])
        return {'ok': True, 'project': self._with_counters(created)}

    def update_project(self, project_id: str, data: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        require_permission(actor['role'], 'can_edit_project')

        if self.project_repo.get_project(project_id) is None:
            return {'ok': False, 'error': 'Proyecto no encontrado', 'not_found': True}

        errors = self.validate_project_data(data, partial=True)
        if errors:
            return invalid(errors, 'Datos de proyecto inválidos')

        changes = self._clean(data)
        changes['updated_at'] = today_iso()
        updated = self.project_repo.update_project(project_id, changes)

        if self.audit_service:
            self.audit_service.log_project_change(actor['email'], project_id, 'actualizado', updated['name'])
        return {'ok': True, 'project': self._with_counters(updated)}

    def delete_project(self, project_id: str, actor: Dict[str, Any]) -> Dict[str, Any]:
        """Elimina un proyecto. Requiere can_delete_project (solo master)."""
        require_permission(actor['role'], 'can_delete_project')

        project = self.project_repo.get_project(project_id)
        if project is None:
            return {'ok': False, 'error': 'Proyecto no encontrado', 'not_found': True}

        self.project_repo.delete_project(project_id)
        if self.audit_service:
            self.audit_service.log_project_change(actor['email'], project_id, 'eliminado', project['name'])
        return {'ok': True}

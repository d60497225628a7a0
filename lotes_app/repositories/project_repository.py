# ==============================================================================
# REPOSITORIO DE PROYECTOS
# ==============================================================================

from typing import Any, Dict, Optional

from lotes_app.repositories.base import DictRepository


class ProjectRepository(DictRepository):
    """Repositorio de proyectos inmobiliarios indexados por ID."""

    id_prefix = 'proj'

    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(project_id)

    def add_project(self, project_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega un proyecto con el siguiente ID libre.

        Args:
            project_data: Campos del proyecto (sin ID)

        Returns:
            Proyecto creado
        """
        with self._lock:
            record = dict(project_data)
            record['id'] = self.next_id()
            self.put(record['id'], record)
            return record

    def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.patch(project_id, changes)

    def delete_project(self, project_id: str) -> bool:
        return self.remove(project_id) is not None

# ==============================================================================
# REPOSITORIO DE LOTES
# ==============================================================================
# Lotes indexados por ID. El cambio de estado NO se valida aquí: lo hace
# LotService mediante Lot.transition_to() antes de guardar.
# ==============================================================================

from typing import Any, Dict, List, Optional

from lotes_app.repositories.base import DictRepository


class LotRepository(DictRepository):
    """Repositorio de lotes."""

    id_prefix = 'lot'

    def get_lot(self, lot_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(lot_id)

    def add_lot(self, lot_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega un lote con el siguiente ID libre.

        Args:
            lot_data: Campos del lote (sin ID)

        Returns:
            Lote creado
        """
        with self._lock:
            record = dict(lot_data)
            record['id'] = self.next_id()
            self.put(record['id'], record)
            return record

    def save_lot(self, lot_data: Dict[str, Any]) -> None:
        """Reemplaza el registro completo de un lote."""
        self.put(lot_data['id'], lot_data)

    def get_by_project(self, project_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('project_id', project_id)

    def get_by_client(self, client_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('client_id', client_id)

    def get_by_sales_person(self, sales_person_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('sales_person_id', sales_person_id)

# ==============================================================================
# REPOSITORIO DE COMISIONES
# ==============================================================================

from typing import Any, Dict, List, Optional

from lotes_app.repositories.base import DictRepository


class CommissionRepository(DictRepository):
    """Repositorio de comisiones indexadas por ID."""

    id_prefix = 'com'

    def get_commission(self, commission_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(commission_id)

    def add_commission(self, commission_data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            record = dict(commission_data)
            record['id'] = self.next_id()
            self.put(record['id'], record)
            return record

    def save_commission(self, commission_data: Dict[str, Any]) -> None:
        self.put(commission_data['id'], commission_data)

    def get_by_sales_person(self, sales_person_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('sales_person_id', sales_person_id)

    def get_by_lot(self, lot_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('lot_id', lot_id)

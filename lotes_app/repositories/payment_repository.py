# ==============================================================================
# REPOSITORIO DE PAGOS
# ==============================================================================
# Los pagos se almacenan como lista en orden de registro.
# Solo se agregan: no existe edición ni eliminación.
# ==============================================================================

from typing import Any, Dict, List, Optional

from lotes_app.repositories.base import ListRepository


class PaymentRepository(ListRepository):
    """Repositorio de pagos (append-only)."""

    id_prefix = 'pay'

    def add_payment(self, payment_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega un pago con el siguiente ID libre.

        Args:
            payment_data: Campos del pago (sin ID)

        Returns:
            Pago registrado
        """
        with self._lock:
            record = dict(payment_data)
            record['id'] = self.next_id()
            self.add(record)
            return record

    def get_payment(self, payment_id: str) -> Optional[Dict[str, Any]]:
        return self.first_where('id', payment_id)

    def get_by_lot(self, lot_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('lot_id', lot_id)

    def get_by_client(self, client_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('client_id', client_id)

    def receipt_exists(self, receipt_number: str) -> bool:
        return self.first_where('receipt_number', receipt_number) is not None

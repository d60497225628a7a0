# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# La auditoría se almacena como lista, el más reciente primero:
# [{type, user, message, timestamp, related_id, details}, ...]
# ==============================================================================

from datetime import datetime
from typing import Any, Dict, List

from lotes_app.repositories.base import ListRepository


class AuditRepository(ListRepository):
    """
    Bitácora de eventos en memoria, acotada a MAX_LOGS entradas.

    Cada entrada:
        {
            "type": "PAGO",
            "user": "ventas@lotes.com",
            "message": "Pago recibido en lote A-01 ...",
            "timestamp": "2024-01-01 10:00:00",
            "related_id": "REC-LQ3Z8K-4F2A",
            "details": {...}
        }
    """

    # Se descartan las entradas más viejas al pasar el tope
    MAX_LOGS = 10000

    def load(self) -> List[Dict[str, Any]]:
        """Todas las entradas, la más reciente primero."""
        return self.get_all()

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """
        Inserta una entrada al inicio de la bitácora.

        Args:
            log_type: PAGO, LOTE, COMISION, PROYECTO, USUARIO o SISTEMA
            user: Email de quien actuó (vacío = "sistema")
            message: Texto ya humanizado
            related_id: Recibo, lote o comisión involucrada
            details: Datos extra para consulta

        Returns:
            Copia de la entrada guardada
        """
        entry = {
            'type': log_type,
            'user': user or 'sistema',
            'message': message,
            'timestamp': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            'related_id': related_id,
            'details': details or {}
        }

        with self._lock:
            self._data.insert(0, entry)
            if len(self._data) > self.MAX_LOGS:
                del self._data[self.MAX_LOGS:]
        return dict(entry)

    def search(self, query: str = '', log_type: str = None) -> List[Dict[str, Any]]:
        """
        Filtra logs por texto libre y/o tipo.

        Args:
            query: Texto a buscar en mensaje, usuario o ID relacionado
            log_type: Tipo exacto (opcional)
        """
        q = (query or '').strip().lower()
        results = []
        for entry in self.load():
            if log_type and entry.get('type') != log_type:
                continue
            if q:
                haystack = ' '.join([
                    str(entry.get('message', '')),
                    str(entry.get('user', '')),
                    str(entry.get('related_id', '')),
                ]).lower()
                if q not in haystack:
                    continue
            results.append(entry)
        return results

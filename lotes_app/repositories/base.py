# ==============================================================================
# REPOSITORIO BASE - Almacén en memoria con snapshots
# ==============================================================================
# Los datos viven mientras dure el proceso. Toda lectura entrega una copia
# y toda escritura guarda una copia: un registro sólo cambia a través de
# una operación con nombre del repositorio.
# ==============================================================================

import copy
import re
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional


def next_sequential_id(prefix: str, existing_ids: Iterable[str], width: int = 3) -> str:
    """
    Siguiente ID <prefix>-<n> libre (lot-012 → lot-013).

    Args:
        prefix: "lot", "pay", "com", ...
        existing_ids: IDs en uso; los de otro prefijo se ignoran
        width: Dígitos mínimos del número

    Returns:
        ID mayor a todos los existentes con ese prefijo
    """
    pattern = re.compile(rf'^{re.escape(prefix)}-(\d+)$')
    highest = 0
    for record_id in existing_ids:
        match = pattern.match(str(record_id))
        if match:
            highest = max(highest, int(match.group(1)))
    return f'{prefix}-{highest + 1:0{width}d}'


class BaseRepository(ABC):
    """Estado en memoria protegido por un lock, con semilla recargable."""

    id_prefix = 'rec'

    def __init__(self, seed: Any = None):
        self._lock = threading.RLock()
        self._seed = copy.deepcopy(seed) if seed is not None else None
        self._data = self._blank()
        if seed is not None:
            self._replace(seed)

    @abstractmethod
    def _blank(self) -> Any:
        """Contenedor vacío propio del repositorio ({} o [])."""

    def _snapshot(self) -> Any:
        with self._lock:
            return copy.deepcopy(self._data)

    def _replace(self, data: Any) -> None:
        # last write wins
        with self._lock:
            self._data = copy.deepcopy(data)

    def reload(self) -> None:
        """Descarta los cambios de la sesión y vuelve a la semilla."""
        with self._lock:
            self._data = self._blank()
            if self._seed is not None:
                self._replace(self._seed)


class DictRepository(BaseRepository):
    """Registros indexados por ID: {"lot-001": {...}, ...}"""

    def _blank(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Any]:
        return self._snapshot()

    def list_all(self) -> List[Dict[str, Any]]:
        """Registros en orden de inserción."""
        return list(self._snapshot().values())

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            found = self._data.get(record_id)
            return copy.deepcopy(found) if found is not None else None

    def next_id(self) -> str:
        with self._lock:
            return next_sequential_id(self.id_prefix, self._data.keys())

    def put(self, record_id: Any, record: Dict[str, Any]) -> None:
        """Inserta o reemplaza el registro completo."""
        with self._lock:
            self._data[record_id] = copy.deepcopy(record)

    def patch(self, record_id: Any, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Mezcla `changes` sobre un registro existente.

        Returns:
            El registro ya modificado, o None si el ID no existe
        """
        with self._lock:
            if record_id not in self._data:
                return None
            self._data[record_id].update(copy.deepcopy(changes))
            return copy.deepcopy(self._data[record_id])

    def remove(self, record_id: Any) -> Optional[Dict[str, Any]]:
        """Quita el registro y lo devuelve (None si no estaba)."""
        with self._lock:
            return self._data.pop(record_id, None)

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.list_all() if r.get(field) == value]


class ListRepository(BaseRepository):
    """Registros en lista, en orden de creación: [{...}, {...}]"""

    def _blank(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        return self._snapshot()

    def add(self, record: Dict[str, Any]) -> None:
        with self._lock:
            self._data.append(copy.deepcopy(record))

    def next_id(self) -> str:
        with self._lock:
            return next_sequential_id(self.id_prefix, (r.get('id') for r in self._data))

    def first_where(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """Primer registro con `field == value`, o None."""
        with self._lock:
            for record in self._data:
                if record.get(field) == value:
                    return copy.deepcopy(record)
        return None

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.get_all() if r.get(field) == value]

# ==============================================================================
# VALIDACIONES COMUNES DE FORMULARIOS
# ==============================================================================
# Las mutaciones validan todo ANTES de tocar los repositorios y devuelven
# los errores por campo: {campo: mensaje}.
# ==============================================================================

import math
from datetime import datetime
from typing import Any, Dict, Optional


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value: Any) -> Optional[float]:
    """
    Convierte a float.

    Returns:
        El número, o None si no es numérico o no es finito ("nan", "inf", 1e309)
    """
    if _is_blank(value) or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def require_positive(data: Dict[str, Any], field: str, label: str, errors: Dict[str, str]) -> Optional[float]:
    """
    Valida un número > 0 y lo devuelve.
    Agrega el error en `errors` si falta, no es un número finito o no es positivo.
    """
    raw = data.get(field)
    number = parse_number(raw)
    if number is None:
        if _is_blank(raw):
            errors[field] = f'{label} es requerido'
        else:
            errors[field] = f'{label} debe ser un número válido'
    elif number <= 0:
        errors[field] = f'{label} debe ser mayor a 0'
    return number


def require_text(data: Dict[str, Any], field: str, label: str, errors: Dict[str, str]) -> str:
    text = str(data.get(field) or '').strip()
    if not text:
        errors[field] = f'{label} es requerido'
    return text


def require_date(data: Dict[str, Any], field: str, label: str, errors: Dict[str, str]) -> str:
    """Valida una fecha YYYY-MM-DD."""
    text = str(data.get(field) or '').strip()
    if not text:
        errors[field] = f'{label} es requerida'
        return text
    try:
        datetime.strptime(text[:10], '%Y-%m-%d')
    except ValueError:
        errors[field] = f'{label} debe tener formato AAAA-MM-DD'
    return text[:10]


def invalid(errors: Dict[str, str], message: str = 'Datos inválidos') -> Dict[str, Any]:
    return {'ok': False, 'error': message, 'errors': errors}


def today_iso() -> str:
    return datetime.now().strftime('%Y-%m-%d')

"""Funciones de saneamiento numérico para la ingesta.

Política:
- La ingesta NUNCA lanza excepciones hacia la aplicación monitorizada.
- NaN / Infinity se descartan (o se sustituyen por el default).
- Duraciones y tamaños negativos se recortan a 0.
"""

from __future__ import annotations

import math
from typing import Optional


def safe_float(value, default: Optional[float] = 0.0) -> Optional[float]:
    """Convierte un valor a float con validación de NaN/Infinity.

    Args:
        value: Valor a convertir (puede ser None, str, int, etc.)
        default: Valor por defecto si es inválido

    Returns:
        Float válido o default si el valor es None, NaN o Infinity
    """
    if value is None:
        return default
    try:
        f = float(value)
        if not math.isfinite(f):
            return default
        return f
    except (TypeError, ValueError):
        return default


def non_negative(value, default: float = 0.0) -> float:
    """Como safe_float, pero recorta valores negativos a 0."""
    f = safe_float(value, default)
    if f is None or f < 0:
        return 0.0
    return f


def clamp(value: float, lower: float, upper: float) -> float:
    if value < lower:
        return lower
    if value > upper:
        return upper
    return value

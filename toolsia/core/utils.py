from __future__ import annotations
import math
from typing import Any, List


def ensure_list(obj: Any) -> List[Any]:
    """Ensure object is a list. If None, return empty list. If already list, return as-is."""
    if obj is None:
        return []
    if isinstance(obj, list):
        return obj
    if isinstance(obj, tuple):
        return list(obj)
    return [obj]


def round_half_up(x: float) -> int:
    """Round to nearest integer, .5 going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(x + 0.5))

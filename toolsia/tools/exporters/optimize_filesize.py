from __future__ import annotations
from typing import Any, Dict

from toolsia.core.utils import round_half_up


def reduction_percent(source_bytes: int, output_bytes: int) -> int:
    """
    round((source - output) / source * 100), half-up.
    Negative when the output grew; 0 for an empty source.
    """
    if source_bytes <= 0:
        return 0
    return round_half_up((source_bytes - output_bytes) / source_bytes * 100)


def size_report(
    *,
    source_bytes: int,
    output_bytes: int,
    mime: str = "image/jpeg",
) -> Dict[str, Any]:
    """
    Size statistics for a finished artifact.
    """
    reduction = reduction_percent(source_bytes, output_bytes)
    return {
        "source_bytes": source_bytes,
        "output_bytes": output_bytes,
        "saved_bytes": source_bytes - output_bytes,
        "reduction_pct": reduction,
        "mime": mime,
        "grew": output_bytes > source_bytes,
    }

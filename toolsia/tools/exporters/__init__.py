from __future__ import annotations

from toolsia.tools.exporters import encode, optimize_filesize

__all__ = [
    "encode",
    "optimize_filesize",
]

from __future__ import annotations

"""
Core building blocks shared by every pipeline stage.

It includes the RGBA pixel buffer, hashing, ID generation, and general utilities.
"""

from toolsia.core import buffer, hashing, ids, utils

__all__ = [
    "buffer",
    "hashing",
    "ids",
    "utils",
]

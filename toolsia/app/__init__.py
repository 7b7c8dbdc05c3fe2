from __future__ import annotations

"""
Application-level utilities:
- settings
- logging
- error taxonomy
"""

from toolsia.app import errors, logging, settings

__all__ = [
    "errors",
    "logging",
    "settings",
]

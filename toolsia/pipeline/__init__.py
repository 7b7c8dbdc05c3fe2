from __future__ import annotations

"""
Per-run pipeline plumbing: request/result models, graph state,
stage nodes and progress reporting.
"""

from toolsia.pipeline import state, progress, nodes

__all__ = [
    "state",
    "progress",
    "nodes",
]

from __future__ import annotations

"""
Caller-facing entry points (the pipeline orchestrator).
"""

from toolsia.api.runner import BatchItem, run_compress_batch, run_tool, run_tool_sync

__all__ = [
    "BatchItem",
    "run_compress_batch",
    "run_tool",
    "run_tool_sync",
]

from __future__ import annotations

"""
Tools package for the toolsIA image pipeline.

This package contains the deterministic stages the orchestrator drives:
- image_ops: decode, resize, background masking, enhancement, watermark, step composition
- exporters: encoding and output size statistics
"""

from toolsia.tools import image_ops, exporters

__all__ = [
    "image_ops",
    "exporters",
]

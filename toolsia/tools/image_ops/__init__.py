from __future__ import annotations

from toolsia.tools.image_ops import decode, resize, remove_bg, enhance, watermark, steps

__all__ = [
    "decode",
    "resize",
    "remove_bg",
    "enhance",
    "watermark",
    "steps",
]

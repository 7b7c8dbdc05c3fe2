from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from toolsia.core.buffer import PixelBuffer

DEFAULT_TEXT = "toolsIA"
MARGIN_PX = 4
INK = (96, 96, 96, 255)


@lru_cache(maxsize=1)
def _font():
    return ImageFont.load_default()


def _text_size(text: str) -> Tuple[int, int, int, int]:
    measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    measure.fontmode = "1"
    return tuple(int(v) for v in measure.textbbox((0, 0), text, font=_font()))  # type: ignore[return-value]


def watermark_origin(width: int, height: int, text: str = DEFAULT_TEXT) -> Tuple[int, int]:
    bottom = _text_size(text)[3]
    return MARGIN_PX, height - MARGIN_PX - bottom


def watermark_box(width: int, height: int, text: str = DEFAULT_TEXT) -> Tuple[int, int, int, int]:
    """(x0, y0, x1, y1) of the stamped text, clipped to the image."""
    x, y = watermark_origin(width, height, text)
    left, top, right, bottom = _text_size(text)
    return (
        max(0, x + left),
        max(0, y + top),
        min(width, x + right),
        min(height, y + bottom),
    )


@dataclass(frozen=True)
class StampWatermark:
    """Opaque text in the bottom-left corner. Applied after masking."""
    text: str = DEFAULT_TEXT
    op: str = "stamp_watermark"

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        img = buffer.check().to_image()
        draw = ImageDraw.Draw(img)
        # no anti-aliasing: every glyph pixel is written with alpha 255
        draw.fontmode = "1"
        draw.text(watermark_origin(img.width, img.height, self.text), self.text, fill=INK, font=_font())
        return PixelBuffer(img.width, img.height, np.array(img, dtype=np.uint8))

    def describe(self) -> Dict[str, Any]:
        return {"op": self.op, "params": {"text": self.text, "position": "bottom-left"}}

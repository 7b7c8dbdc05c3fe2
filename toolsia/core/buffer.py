from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image

from toolsia.app.errors import CorruptBuffer, InvalidDimensions

CHANNELS = 4  # R, G, B, A


@dataclass
class PixelBuffer:
    """
    In-memory RGBA raster, one byte per channel.

    `data` is a C-contiguous uint8 array of shape (height, width, 4), so
    `data.size == width * height * 4`. Resizing never happens in place:
    resamplers allocate a new PixelBuffer.
    """
    width: int
    height: int
    data: np.ndarray

    @classmethod
    def blank(cls, width: int, height: int) -> "PixelBuffer":
        if width < 1 or height < 1:
            raise InvalidDimensions(f"Cannot allocate {width}x{height} buffer")
        return cls(width, height, np.zeros((height, width, CHANNELS), dtype=np.uint8))

    @classmethod
    def from_image(cls, img: Image.Image) -> "PixelBuffer":
        if img.width < 1 or img.height < 1:
            raise InvalidDimensions(f"Image has no pixels ({img.width}x{img.height})")
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        arr = np.ascontiguousarray(np.asarray(img, dtype=np.uint8))
        return cls(img.width, img.height, arr.copy())

    def check(self) -> "PixelBuffer":
        """Raise CorruptBuffer unless the layout invariant holds; returns self."""
        d = self.data
        if not isinstance(d, np.ndarray):
            raise CorruptBuffer(f"Buffer data is {type(d).__name__}, expected ndarray")
        if self.width < 1 or self.height < 1:
            raise CorruptBuffer(f"Buffer has invalid size {self.width}x{self.height}")
        if d.dtype != np.uint8:
            raise CorruptBuffer(f"Buffer dtype is {d.dtype}, expected uint8")
        if d.size != self.width * self.height * CHANNELS:
            raise CorruptBuffer(
                f"Buffer holds {d.size} bytes, expected {self.width * self.height * CHANNELS}"
            )
        if d.shape != (self.height, self.width, CHANNELS) or not d.flags["C_CONTIGUOUS"]:
            raise CorruptBuffer(f"Buffer shape {d.shape} does not match {self.width}x{self.height}x4")
        return self

    def to_image(self) -> Image.Image:
        self.check()
        # (h, w, 4) uint8 is inferred as RGBA
        return Image.fromarray(self.data)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data.copy())

    @property
    def nbytes(self) -> int:
        return int(self.data.size)


def clamp_to_u8(values: np.ndarray) -> np.ndarray:
    """Round half-up and clamp float channel values into [0, 255]."""
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)

from __future__ import annotations

import math
from typing import Tuple

from PIL import Image

from toolsia.app.errors import InvalidDimensions
from toolsia.core.buffer import PixelBuffer
from toolsia.core.utils import round_half_up

# Upper bound on the enhancement scale at factor 1.0
ENHANCE_MAX_SCALE = 2.5

_FILTERS = {
    "high": Image.Resampling.LANCZOS,
    "medium": Image.Resampling.BILINEAR,
}


def _require_positive(width: int, height: int, max_dimension: int) -> None:
    if width < 1 or height < 1:
        raise InvalidDimensions(f"Source is {width}x{height}", stage="resampling")
    if max_dimension < 1:
        raise InvalidDimensions(f"max_dimension must be >= 1, got {max_dimension}", stage="resampling")


def scale_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    """
    Scale each axis independently with half-up rounding, never below 1px.
    The small aspect drift from rounding per axis is expected.
    """
    if not math.isfinite(scale) or scale <= 0:
        raise InvalidDimensions(f"Scale must be a positive number, got {scale}", stage="resampling")
    return max(1, round_half_up(width * scale)), max(1, round_half_up(height * scale))


def fit_within(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """Downscale-only target size: unchanged when the long edge already fits."""
    _require_positive(width, height, max_dimension)
    long_edge = max(width, height)
    if long_edge <= max_dimension:
        return width, height
    return scale_size(width, height, max_dimension / long_edge)


def enhancement_size(width: int, height: int, max_dimension: int, factor: float) -> Tuple[int, int]:
    """
    Enhancer target size: scale = min(max_dimension / long_edge, 2.5 * factor).
    This path may upscale; the long edge never exceeds max_dimension.
    """
    _require_positive(width, height, max_dimension)
    scale = min(max_dimension / max(width, height), ENHANCE_MAX_SCALE * factor)
    w, h = scale_size(width, height, scale)
    return min(w, max_dimension), min(h, max_dimension)


def resize_to(buffer: PixelBuffer, width: int, height: int, smoothing: str = "medium") -> PixelBuffer:
    """Return a newly allocated buffer at width x height."""
    if width < 1 or height < 1:
        raise InvalidDimensions(f"Target is {width}x{height}", stage="resampling")
    if (width, height) == (buffer.width, buffer.height):
        return buffer
    img = buffer.to_image().resize((width, height), _FILTERS.get(smoothing, Image.Resampling.BILINEAR))
    return PixelBuffer.from_image(img)


def resample(buffer: PixelBuffer, max_dimension: int, smoothing: str = "medium") -> PixelBuffer:
    w, h = fit_within(buffer.width, buffer.height, max_dimension)
    return resize_to(buffer, w, h, smoothing)


def upscale_for_enhancement(
    buffer: PixelBuffer,
    max_dimension: int,
    factor: float,
    smoothing: str = "medium",
) -> PixelBuffer:
    w, h = enhancement_size(buffer.width, buffer.height, max_dimension, factor)
    return resize_to(buffer, w, h, smoothing)

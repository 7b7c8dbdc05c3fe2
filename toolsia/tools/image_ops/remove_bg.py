from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

import numpy as np

from toolsia.core.buffer import PixelBuffer

# High-fidelity thresholds (luma / chroma spread)
CLEAR_BRIGHTNESS = 240
BRIGHT_FLAT_BRIGHTNESS = 200
BRIGHT_FLAT_SATURATION = 30
SOFT_BRIGHTNESS = 180
SOFT_SATURATION = 50
SOFT_ALPHA_SCALE = 0.3

# Basic variant: plain channel mean
BASIC_MEAN_BRIGHTNESS = 220


def luminance_mask_hifi(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return (clear, soften) boolean masks for an (h, w, 3) uint8 array."""
    c = rgb.astype(np.float64)
    brightness = 0.299 * c[..., 0] + 0.587 * c[..., 1] + 0.114 * c[..., 2]
    saturation = rgb.max(axis=-1).astype(np.int16) - rgb.min(axis=-1).astype(np.int16)

    clear = (brightness > CLEAR_BRIGHTNESS) | (
        (brightness > BRIGHT_FLAT_BRIGHTNESS) & (saturation < BRIGHT_FLAT_SATURATION)
    )
    soften = ~clear & (brightness > SOFT_BRIGHTNESS) & (saturation < SOFT_SATURATION)
    return clear, soften


def luminance_mask_basic(rgb: np.ndarray) -> np.ndarray:
    # (R+G+B)/3 > 220  <=>  R+G+B > 660, kept in integers
    total = rgb.astype(np.int32).sum(axis=-1)
    return total > BASIC_MEAN_BRIGHTNESS * 3


@dataclass(frozen=True)
class MaskByLuminance:
    """
    Background removal by brightness/saturation thresholds.

    Single pass, per pixel, no flood fill and no edge refinement: it
    treats bright, low-chroma pixels as background. Only alpha is written.
    """
    high_fidelity: bool = False
    op: str = "mask_by_luminance"

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        out = buffer.check().copy()
        rgb = out.data[..., :3]
        alpha = out.data[..., 3]

        if self.high_fidelity:
            clear, soften = luminance_mask_hifi(rgb)
            softened = np.floor(alpha.astype(np.float64) * SOFT_ALPHA_SCALE + 0.5).astype(np.uint8)
            alpha[soften] = softened[soften]
            alpha[clear] = 0
        else:
            alpha[luminance_mask_basic(rgb)] = 0
        return out

    def describe(self) -> Dict[str, Any]:
        return {
            "op": self.op,
            "params": {"variant": "high_fidelity" if self.high_fidelity else "basic"},
            "notes": "Brightness/saturation heuristic, not true segmentation.",
        }


def remove_bg(buffer: PixelBuffer, *, high_fidelity: bool = False) -> PixelBuffer:
    return MaskByLuminance(high_fidelity=high_fidelity).apply(buffer)

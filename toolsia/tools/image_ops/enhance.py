from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np
from PIL import Image, ImageFilter

from toolsia.core.buffer import PixelBuffer, clamp_to_u8
from toolsia.core.utils import round_half_up

CONTRAST_GAIN = 0.2
BRIGHTNESS_GAIN = 0.1
SATURATION_GAIN = 0.15
BLUR_BASE_PX = 0.5
UNSHARP_GAIN = 0.3


def _contrast(rgb: np.ndarray, amount: float) -> np.ndarray:
    # CSS contrast(): v * c + (0.5 - 0.5c) * 255
    return np.clip(rgb * amount + (0.5 - 0.5 * amount) * 255.0, 0.0, 255.0)


def _brightness(rgb: np.ndarray, amount: float) -> np.ndarray:
    return np.clip(rgb * amount, 0.0, 255.0)


def _saturate(rgb: np.ndarray, amount: float) -> np.ndarray:
    # CSS saturate() colour matrix
    s = amount
    m = np.array(
        [
            [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
        ]
    )
    return np.clip(rgb @ m.T, 0.0, 255.0)


def filter_amounts(factor: float) -> Dict[str, float]:
    return {
        "contrast": 1 + CONTRAST_GAIN * factor,
        "brightness": 1 + BRIGHTNESS_GAIN * factor,
        "saturation": 1 + SATURATION_GAIN * factor,
        "blur_px": max(0.0, BLUR_BASE_PX - BLUR_BASE_PX * factor),
    }


def unsharp_boost(channel: np.ndarray, factor: float) -> np.ndarray:
    """channel' = clamp(channel + (channel - 128) * 0.3 * factor)"""
    c = channel.astype(np.float64)
    return clamp_to_u8(c + (c - 128.0) * UNSHARP_GAIN * factor)


@dataclass(frozen=True)
class SharpenContrast:
    """
    Enhancement step, driven by a factor in [0, 1].

    First a global colour filter (contrast, brightness, saturation, then a
    blur that shrinks to nothing as the factor grows), then a per-channel
    push away from mid-grey. Alpha is left alone.
    """
    factor: float
    op: str = "sharpen_contrast"

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        src = buffer.check()
        amounts = filter_amounts(self.factor)

        rgb = src.data[..., :3].astype(np.float64)
        rgb = _contrast(rgb, amounts["contrast"])
        rgb = _brightness(rgb, amounts["brightness"])
        rgb = _saturate(rgb, amounts["saturation"])
        filtered = clamp_to_u8(rgb)

        if amounts["blur_px"] > 0:
            blurred = Image.fromarray(filtered).filter(ImageFilter.GaussianBlur(amounts["blur_px"]))
            filtered = np.asarray(blurred, dtype=np.uint8)

        out = np.empty_like(src.data)
        out[..., :3] = unsharp_boost(filtered, self.factor)
        out[..., 3] = src.data[..., 3]
        return PixelBuffer(src.width, src.height, out)

    def describe(self) -> Dict[str, Any]:
        return {
            "op": self.op,
            "params": {"factor": self.factor, **filter_amounts(self.factor)},
        }


def enhancement_factor(level: int) -> float:
    """Map the user-facing level (percent) to a factor in [0, 1]."""
    return max(0.0, min(1.0, level / 100.0))


# --- Camera effects (unlocked enhance only) ---

FOCUS_START = 0.3  # focused centre spans 30%..70% of each axis
FOCUS_SPAN = 0.4
BACKGROUND_BLUR_PX_PER_STEP = 0.5
BACKGROUND_BLUR_OPACITY = 0.7


def _sepia(rgb: np.ndarray, amount: float) -> np.ndarray:
    # CSS sepia() colour matrix
    k = 1.0 - amount
    m = np.array(
        [
            [0.393 + 0.607 * k, 0.769 - 0.769 * k, 0.189 - 0.189 * k],
            [0.349 - 0.349 * k, 0.686 + 0.314 * k, 0.168 - 0.168 * k],
            [0.272 - 0.272 * k, 0.534 - 0.534 * k, 0.131 + 0.869 * k],
        ]
    )
    return np.clip(rgb @ m.T, 0.0, 255.0)


def _hue_rotate(rgb: np.ndarray, degrees: float) -> np.ndarray:
    # CSS hue-rotate() colour matrix
    c = math.cos(math.radians(degrees))
    s = math.sin(math.radians(degrees))
    m = np.array(
        [
            [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
            [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
            [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
        ]
    )
    return np.clip(rgb @ m.T, 0.0, 255.0)


def focus_box(width: int, height: int) -> Tuple[int, int, int, int]:
    """(x0, y0, x1, y1) of the centre region kept sharp by the background blur."""
    x0 = round_half_up(width * FOCUS_START)
    y0 = round_half_up(height * FOCUS_START)
    return x0, y0, x0 + round_half_up(width * FOCUS_SPAN), y0 + round_half_up(height * FOCUS_SPAN)


@dataclass(frozen=True)
class CameraEffects:
    """
    Manual colour grading plus a simulated shallow depth of field.

    Each knob is a 0..100 slider; 50 is the midpoint. Sliders map to
      exposure   -> brightness 0.8..1.2
      sharpness  -> contrast   0.9..1.3
      vibrance   -> saturate   0.8..1.4
      warmth     -> sepia |w-50|/200, plus a hue shift when warmer than 50
    background_blur > 0 blurs the frame at 0.5px per step, lays it over the
    original at 70% opacity and leaves the centre 40% untouched.
    """
    exposure: int = 50
    sharpness: int = 50
    vibrance: int = 50
    warmth: int = 50
    background_blur: int = 0
    op: str = "camera_effects"

    def amounts(self) -> Dict[str, float]:
        sepia = (self.warmth - 50) / 200.0
        return {
            "brightness": 0.8 + self.exposure / 100.0 * 0.4,
            "contrast": 0.9 + self.sharpness / 100.0 * 0.4,
            "saturation": 0.8 + self.vibrance / 100.0 * 0.6,
            "sepia": abs(sepia),
            "hue_rotate_deg": sepia * 60.0 if sepia > 0 else 0.0,
            "blur_px": self.background_blur * BACKGROUND_BLUR_PX_PER_STEP,
        }

    def _blur_background(self, rgb: np.ndarray, radius: float) -> np.ndarray:
        img = Image.fromarray(clamp_to_u8(rgb))
        blurred = np.asarray(img.filter(ImageFilter.GaussianBlur(radius)), dtype=np.float64)
        out = blurred * BACKGROUND_BLUR_OPACITY + rgb * (1.0 - BACKGROUND_BLUR_OPACITY)
        h, w = rgb.shape[:2]
        x0, y0, x1, y1 = focus_box(w, h)
        out[y0:y1, x0:x1] = rgb[y0:y1, x0:x1]
        return out

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        src = buffer.check()
        a = self.amounts()

        rgb = src.data[..., :3].astype(np.float64)
        if a["blur_px"] > 0:
            rgb = self._blur_background(rgb, a["blur_px"])
        rgb = _brightness(rgb, a["brightness"])
        rgb = _contrast(rgb, a["contrast"])
        rgb = _saturate(rgb, a["saturation"])
        if a["sepia"] > 0:
            rgb = _sepia(rgb, a["sepia"])
        if a["hue_rotate_deg"]:
            rgb = _hue_rotate(rgb, a["hue_rotate_deg"])

        out = np.empty_like(src.data)
        out[..., :3] = clamp_to_u8(rgb)
        out[..., 3] = src.data[..., 3]
        return PixelBuffer(src.width, src.height, out)

    def describe(self) -> Dict[str, Any]:
        return {"op": self.op, "params": self.amounts()}

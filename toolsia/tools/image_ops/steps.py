from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence

from toolsia.app.errors import FeatureLocked
from toolsia.core.buffer import PixelBuffer
from toolsia.graph.policies import TierPolicy
from toolsia.tools.image_ops.enhance import CameraEffects, SharpenContrast, enhancement_factor
from toolsia.tools.image_ops.remove_bg import MaskByLuminance
from toolsia.tools.image_ops.watermark import DEFAULT_TEXT, StampWatermark


class TransformStep(Protocol):
    op: str

    def apply(self, buffer: PixelBuffer) -> PixelBuffer: ...

    def describe(self) -> Dict[str, Any]: ...


def build_steps(
    tool_kind: str,
    policy: TierPolicy,
    *,
    enhancement_level: int = 100,
    watermark_text: str = DEFAULT_TEXT,
    effects: Optional[Any] = None,
) -> List[TransformStep]:
    """
    Ordered transform steps for one tool:
      enhance           -> SharpenContrast [+ CameraEffects when `effects` is given]
      remove_background -> MaskByLuminance [+ StampWatermark on watermarked tiers]
      compress          -> nothing (resample + encode only)
    """
    steps: List[TransformStep] = []
    if tool_kind == "enhance":
        steps.append(SharpenContrast(factor=enhancement_factor(enhancement_level)))
        if effects is not None:
            if not policy.allow_camera_effects:
                raise FeatureLocked(f"Camera effects are not available on the {policy.tier} tier")
            steps.append(
                CameraEffects(
                    exposure=effects.exposure,
                    sharpness=effects.sharpness,
                    vibrance=effects.vibrance,
                    warmth=effects.warmth,
                    background_blur=effects.background_blur,
                )
            )
    elif tool_kind == "remove_background":
        steps.append(MaskByLuminance(high_fidelity=policy.allow_high_fidelity_segmentation))
        if policy.watermark:
            steps.append(StampWatermark(text=watermark_text))
    elif tool_kind != "compress":
        raise KeyError(f"Unknown tool kind: {tool_kind}")
    return steps


def apply_steps(buffer: PixelBuffer, steps: Sequence[TransformStep]) -> PixelBuffer:
    out = buffer
    for step in steps:
        out = step.apply(out)
    return out.check()


def describe_steps(steps: Sequence[TransformStep]) -> List[Dict[str, Any]]:
    return [s.describe() for s in steps]

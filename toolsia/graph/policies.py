# toolsia/graph/policies.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Tuple

ToolKind = Literal["enhance", "remove_background", "compress"]
Tier = Literal["basic", "unlocked"]
Smoothing = Literal["high", "medium"]

TOOL_KINDS: Tuple[str, ...] = ("enhance", "remove_background", "compress")

MB = 1024 * 1024


@dataclass(frozen=True)
class TierPolicy:
    """
    Concrete limits for one tool run.
    Resolved once per invocation; every stage reads the same instance.
    """
    tier: Tier
    max_dimension_px: int
    max_source_bytes: Optional[int]  # None -> unbounded
    quality_factor: float
    watermark: bool
    allow_high_fidelity_segmentation: bool
    smoothing: Smoothing = "medium"
    max_batch_files: int = 1
    allow_camera_effects: bool = False

    def __post_init__(self) -> None:
        if self.max_dimension_px < 1:
            raise ValueError(f"max_dimension_px must be >= 1, got {self.max_dimension_px}")
        if not 0.0 < self.quality_factor <= 1.0:
            raise ValueError(f"quality_factor must be in (0, 1], got {self.quality_factor}")
        if self.max_source_bytes is not None and self.max_source_bytes < 1:
            raise ValueError("max_source_bytes must be positive or None")

    @property
    def is_unlocked(self) -> bool:
        return self.tier == "unlocked"


# --- Limits per (tool, tier). The only place these numbers live. ---
_POLICY_TABLE: Dict[Tuple[str, Tier], TierPolicy] = {
    ("enhance", "basic"): TierPolicy(
        tier="basic",
        max_dimension_px=1280,  # 720p class
        max_source_bytes=5 * MB,
        quality_factor=0.8,
        watermark=False,
        allow_high_fidelity_segmentation=False,
    ),
    ("enhance", "unlocked"): TierPolicy(
        tier="unlocked",
        max_dimension_px=3840,  # 4K class
        max_source_bytes=None,
        quality_factor=0.95,
        watermark=False,
        allow_high_fidelity_segmentation=True,
        smoothing="high",
        allow_camera_effects=True,
    ),
    ("remove_background", "basic"): TierPolicy(
        tier="basic",
        max_dimension_px=512,
        max_source_bytes=5 * MB,
        quality_factor=0.8,
        watermark=True,
        allow_high_fidelity_segmentation=False,
    ),
    ("remove_background", "unlocked"): TierPolicy(
        tier="unlocked",
        max_dimension_px=2048,
        max_source_bytes=None,
        quality_factor=1.0,
        watermark=False,
        allow_high_fidelity_segmentation=True,
        smoothing="high",
    ),
    ("compress", "basic"): TierPolicy(
        tier="basic",
        max_dimension_px=1024,
        max_source_bytes=10 * MB,
        quality_factor=0.8,
        watermark=False,
        allow_high_fidelity_segmentation=False,
        max_batch_files=5,
    ),
    ("compress", "unlocked"): TierPolicy(
        tier="unlocked",
        max_dimension_px=2048,
        max_source_bytes=None,
        quality_factor=1.0,
        watermark=False,
        allow_high_fidelity_segmentation=True,
        smoothing="high",
        max_batch_files=50,
    ),
}


def tier_name(is_unlocked: bool) -> Tier:
    return "unlocked" if is_unlocked else "basic"


def resolve_policy(is_unlocked: bool, tool_kind: str) -> TierPolicy:
    """
    Resolve the entitlement flag into the limits for `tool_kind`.
    Raises KeyError for an unknown tool kind.
    """
    if tool_kind not in TOOL_KINDS:
        raise KeyError(f"Unknown tool kind: {tool_kind}")
    return _POLICY_TABLE[(tool_kind, tier_name(bool(is_unlocked)))]


def list_tool_kinds() -> List[str]:
    return list(TOOL_KINDS)

from __future__ import annotations

from pathlib import PurePath
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, TypedDict

from pydantic import BaseModel, ConfigDict, Field, model_validator

from toolsia.graph.policies import Tier, TierPolicy, ToolKind
from toolsia.tools.exporters.optimize_filesize import reduction_percent

RunStatus = Literal[
    "idle",
    "decoding",
    "resampling",
    "transforming",
    "encoding",
    "done",
    "failed",
]

ProgressCallback = Callable[[str, int], None]


class SourceImage(BaseModel):
    """
    Encoded upload as captured from the file picker. Never mutated.
    """
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime: str = "application/octet-stream"
    filename: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class EnhanceEffects(BaseModel):
    """Manual camera sliders for the enhancer, 0..100 each."""
    model_config = ConfigDict(frozen=True)

    exposure: int = Field(default=50, ge=0, le=100)
    sharpness: int = Field(default=50, ge=0, le=100)
    vibrance: int = Field(default=50, ge=0, le=100)
    warmth: int = Field(default=50, ge=0, le=100)
    background_blur: int = Field(default=0, ge=0, le=100)


class ProcessingRequest(BaseModel):
    """User-tunable knobs for one run; validated before anything starts."""
    model_config = ConfigDict(frozen=True)

    tool_kind: ToolKind
    enhancement_level: int = Field(default=75, ge=30, le=100)
    quality_percent: int = Field(default=80, ge=10, le=100)
    effects: Optional[EnhanceEffects] = None

    @model_validator(mode="after")
    def _effects_only_for_enhance(self) -> "ProcessingRequest":
        if self.effects is not None and self.tool_kind != "enhance":
            raise ValueError("effects apply to the enhance tool only")
        return self


class ProcessingResult(BaseModel):
    """
    Final artifact plus metadata. Ownership passes to the caller.
    """
    model_config = ConfigDict(frozen=True)

    artifact_bytes: bytes
    mime_type: str
    width_px: int
    height_px: int
    source_bytes: int
    output_bytes: int

    tool_kind: ToolKind
    tier: Tier
    steps: List[Dict[str, Any]] = Field(default_factory=list)
    sha256: Optional[str] = None
    suggested_filename: Optional[str] = None

    @property
    def reduction_percent(self) -> int:
        return reduction_percent(self.source_bytes, self.output_bytes)


_FILENAME_PATTERNS = {
    "enhance": ("enhanced-{stem}", ".jpg"),
    "remove_background": ("no-bg-{stem}", ".png"),
    "compress": ("compressed_{stem}", ".jpg"),
}


def suggest_filename(tool_kind: str, original: Optional[str]) -> str:
    stem = PurePath(original).stem if original else "image"
    pattern, ext = _FILENAME_PATTERNS[tool_kind]
    return pattern.format(stem=stem or "image") + ext


class PipelineState(TypedDict, total=False):
    """
    LangGraph state for one run. Buffers live here only while the run is
    in flight; the failed node drops them.
    """
    run_id: str
    status: RunStatus
    request: ProcessingRequest
    source: SourceImage
    policy: TierPolicy
    stage_timeout_s: float
    watermark_text: str

    # Working data (owned by exactly one stage at a time)
    buffer: Any
    artifact: Any
    output_size: Tuple[int, int]
    steps: List[Dict[str, Any]]

    # Bookkeeping
    progress: Any
    timings_ms: Dict[str, int]
    error: Optional[Exception]
    result: Optional[ProcessingResult]

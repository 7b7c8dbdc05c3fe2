from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv

load_dotenv()  # Load .env file

from toolsia.app.errors import BatchLimitExceeded, ProcessingError
from toolsia.app.settings import Settings, load_settings
from toolsia.core.ids import new_batch_id, new_run_id
from toolsia.core.utils import ensure_list
from toolsia.graph.build_graph import build_graph
from toolsia.graph.policies import resolve_policy
from toolsia.pipeline.progress import StageProgress
from toolsia.pipeline.state import (
    EnhanceEffects,
    ProcessingRequest,
    ProcessingResult,
    ProgressCallback,
    SourceImage,
)
from toolsia.tools.image_ops.steps import build_steps

logger = logging.getLogger(__name__)

SourceLike = Union[SourceImage, bytes, bytearray]


def _as_source(source: SourceLike) -> SourceImage:
    if isinstance(source, SourceImage):
        return source
    return SourceImage(data=bytes(source))


async def run_tool(
    source: SourceLike,
    tool_kind: str,
    is_unlocked: bool,
    *,
    enhancement_level: int = 75,
    quality_percent: int = 80,
    effects: Optional[Union[EnhanceEffects, Dict[str, int]]] = None,
    on_progress: Optional[ProgressCallback] = None,
    settings: Optional[Settings] = None,
) -> ProcessingResult:
    """
    Run one tool over one uploaded image:
    - validate the user knobs (pydantic ValidationError if out of range)
    - resolve the tier policy once; the whole run reads that snapshot
    - refuse effects the tier does not include (FeatureLocked), before any work
    - drive decode -> resample -> transform -> encode through the graph
    - return the ProcessingResult, or raise the typed ProcessingError
    """
    s = settings or load_settings()
    request = ProcessingRequest(
        tool_kind=tool_kind,
        enhancement_level=enhancement_level,
        quality_percent=quality_percent,
        effects=effects,
    )
    src = _as_source(source)
    policy = resolve_policy(is_unlocked, request.tool_kind)

    has_transform = bool(
        build_steps(
            request.tool_kind,
            policy,
            enhancement_level=request.enhancement_level,
            effects=request.effects,
        )
    )
    progress = StageProgress(on_progress, has_transform=has_transform)
    progress.start()

    run_id = new_run_id()
    state: Dict[str, Any] = {
        "run_id": run_id,
        "status": "idle",
        "request": request,
        "source": src,
        "policy": policy,
        "stage_timeout_s": s.stage_timeout_s,
        "watermark_text": s.watermark_text,
        "progress": progress,
        "timings_ms": {},
        "error": None,
        "result": None,
    }
    logger.debug(
        "run %s: %s on %d bytes (%s tier)",
        run_id,
        request.tool_kind,
        src.size_bytes,
        policy.tier,
        extra={"run_id": run_id},
    )

    graph = build_graph().compile()
    final_state = await graph.ainvoke(state)

    err = final_state.get("error")
    if final_state.get("status") == "failed" or err is not None:
        raise err if err is not None else ProcessingError("Run ended without a result")

    result = final_state["result"]
    logger.info(
        "run %s done: %s %dx%d, %d -> %d bytes (%d%%), timings %s",
        run_id,
        result.mime_type,
        result.width_px,
        result.height_px,
        result.source_bytes,
        result.output_bytes,
        result.reduction_percent,
        final_state.get("timings_ms"),
        extra={"run_id": run_id},
    )
    return result


def run_tool_sync(
    source: SourceLike,
    tool_kind: str,
    is_unlocked: bool,
    **kwargs: Any,
) -> ProcessingResult:
    """Blocking wrapper around run_tool for callers without an event loop."""
    return asyncio.run(run_tool(source, tool_kind, is_unlocked, **kwargs))


@dataclass
class BatchItem:
    source_name: Optional[str]
    result: Optional[ProcessingResult] = None
    error: Optional[ProcessingError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


async def run_compress_batch(
    sources: Union[SourceLike, List[SourceLike]],
    is_unlocked: bool,
    *,
    quality_percent: int = 80,
    settings: Optional[Settings] = None,
) -> List[BatchItem]:
    """
    Compress several uploads, one independent run per file, in order.
    The tier caps how many files one batch may hold; a failing file is
    reported in its item and the rest still run.
    """
    items_in = [_as_source(x) for x in ensure_list(sources)]
    limit = resolve_policy(is_unlocked, "compress").max_batch_files
    if len(items_in) > limit:
        raise BatchLimitExceeded(f"{len(items_in)} files submitted; this tier allows {limit} per batch")

    batch_id = new_batch_id()
    s = settings or load_settings()
    out: List[BatchItem] = []
    for src in items_in:
        try:
            res = await run_tool(src, "compress", is_unlocked, quality_percent=quality_percent, settings=s)
        except ProcessingError as e:
            out.append(BatchItem(source_name=src.filename, error=e))
            continue
        out.append(BatchItem(source_name=src.filename, result=res))

    logger.info(
        "batch %s: %d/%d files compressed",
        batch_id,
        sum(1 for i in out if i.ok),
        len(out),
    )
    return out

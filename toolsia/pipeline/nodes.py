from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict

from toolsia.app.errors import ProcessingError, ProcessingTimeout
from toolsia.core.hashing import sha256_of_bytes
from toolsia.pipeline.state import ProcessingResult, suggest_filename
from toolsia.tools.exporters.encode import encode
from toolsia.tools.image_ops.decode import decode
from toolsia.tools.image_ops.enhance import enhancement_factor
from toolsia.tools.image_ops.resize import resample, upscale_for_enhancement
from toolsia.tools.image_ops.steps import apply_steps, build_steps, describe_steps
from toolsia.tools.image_ops.watermark import DEFAULT_TEXT

logger = logging.getLogger(__name__)

# Output container per tool
OUTPUT_FORMAT = {
    "enhance": "JPEG",
    "remove_background": "PNG",
    "compress": "JPEG",
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _log_extra(state: Dict[str, Any]) -> Dict[str, Any]:
    return {"run_id": state.get("run_id")}


async def _run_stage(state: Dict[str, Any], stage: str, fn: Callable[..., Any], *args: Any) -> Any:
    """
    Run one blocking stage on a worker thread and suspend until it finishes.
    The stage budget is enforced here; a late thread's result is discarded.
    """
    state["status"] = stage
    timeout = state.get("stage_timeout_s")
    t0 = _now_ms()
    logger.debug("stage %s started", stage, extra=_log_extra(state))
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ProcessingTimeout(f"{stage} exceeded {timeout}s budget", stage=stage) from e
    finally:
        state.setdefault("timings_ms", {})[stage] = _now_ms() - t0


def _record_failure(state: Dict[str, Any], stage: str, err: ProcessingError) -> Dict[str, Any]:
    if err.stage is None:
        err.stage = stage
    state["error"] = err
    return state


def effective_quality(state: Dict[str, Any]) -> float:
    """Compressor uses the user's slider, capped by the tier; other tools use the tier value."""
    policy = state["policy"]
    request = state["request"]
    if request.tool_kind == "compress":
        return min(request.quality_percent / 100.0, policy.quality_factor)
    return policy.quality_factor


async def decode_node(state: Dict[str, Any]) -> Dict[str, Any]:
    source = state["source"]
    try:
        buf = await _run_stage(state, "decoding", decode, source.data, source.mime, state["policy"])
    except ProcessingError as e:
        return _record_failure(state, "decoding", e)

    state["buffer"] = buf
    state["progress"].stage_done("decoding")
    return state


def _resample_for(tool_kind: str, buffer: Any, policy: Any, level: int) -> Any:
    if tool_kind == "enhance":
        return upscale_for_enhancement(
            buffer, policy.max_dimension_px, enhancement_factor(level), policy.smoothing
        )
    return resample(buffer, policy.max_dimension_px, policy.smoothing)


async def resample_node(state: Dict[str, Any]) -> Dict[str, Any]:
    request = state["request"]
    try:
        buf = await _run_stage(
            state,
            "resampling",
            _resample_for,
            request.tool_kind,
            state["buffer"],
            state["policy"],
            request.enhancement_level,
        )
    except ProcessingError as e:
        return _record_failure(state, "resampling", e)

    state["buffer"] = buf
    state["progress"].stage_done("resampling")
    return state


async def transform_node(state: Dict[str, Any]) -> Dict[str, Any]:
    request = state["request"]
    steps = build_steps(
        request.tool_kind,
        state["policy"],
        enhancement_level=request.enhancement_level,
        watermark_text=state.get("watermark_text") or DEFAULT_TEXT,
        effects=request.effects,
    )
    state["steps"] = describe_steps(steps)
    try:
        buf = await _run_stage(state, "transforming", apply_steps, state["buffer"], steps)
    except ProcessingError as e:
        return _record_failure(state, "transforming", e)

    state["buffer"] = buf
    state["progress"].stage_done("transforming")
    return state


async def encode_node(state: Dict[str, Any]) -> Dict[str, Any]:
    fmt = OUTPUT_FORMAT[state["request"].tool_kind]
    try:
        artifact = await _run_stage(state, "encoding", encode, state["buffer"], fmt, effective_quality(state))
    except ProcessingError as e:
        return _record_failure(state, "encoding", e)

    buf = state["buffer"]
    state["output_size"] = (buf.width, buf.height)
    state["artifact"] = artifact
    state["buffer"] = None  # consumed by the encoder
    state["progress"].stage_done("encoding")
    return state


def done_node(state: Dict[str, Any]) -> Dict[str, Any]:
    source = state["source"]
    request = state["request"]
    artifact = state["artifact"]
    img_w, img_h = state["output_size"]

    state["result"] = ProcessingResult(
        artifact_bytes=artifact.data,
        mime_type=artifact.mime,
        width_px=img_w,
        height_px=img_h,
        source_bytes=source.size_bytes,
        output_bytes=artifact.size_bytes,
        tool_kind=request.tool_kind,
        tier=state["policy"].tier,
        steps=state.get("steps") or [],
        sha256=sha256_of_bytes(artifact.data),
        suggested_filename=suggest_filename(request.tool_kind, source.filename),
    )
    state["artifact"] = None
    state["status"] = "done"
    return state


def failed_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """Drop every intermediate so nothing partial escapes the run."""
    err = state.get("error")
    state["buffer"] = None
    state["artifact"] = None
    state["result"] = None
    state["status"] = "failed"
    logger.warning(
        "run failed at %s: %s",
        getattr(err, "stage", None),
        err,
        extra=_log_extra(state),
    )
    return state

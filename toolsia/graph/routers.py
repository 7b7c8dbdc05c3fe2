from __future__ import annotations
from typing import Any, Dict, Literal

def _failed(state: Dict[str, Any]) -> bool:
    return state.get("error") is not None


def route_after_decode(state: Dict[str, Any]) -> Literal["resample", "failed"]:
    return "failed" if _failed(state) else "resample"


def route_after_resample(state: Dict[str, Any]) -> Literal["transform", "failed"]:
    return "failed" if _failed(state) else "transform"


def route_after_transform(state: Dict[str, Any]) -> Literal["encode", "failed"]:
    return "failed" if _failed(state) else "encode"


def route_after_encode(state: Dict[str, Any]) -> Literal["done", "failed"]:
    """
    Terminal routing:
    - artifact produced -> "done"
    - any recorded error -> "failed" (no partial result)
    """
    if _failed(state) or state.get("artifact") is None:
        return "failed"
    return "done"

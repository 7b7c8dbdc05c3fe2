from __future__ import annotations

from langgraph.graph import StateGraph, START, END

from toolsia.pipeline import nodes
from toolsia.pipeline.state import PipelineState
from toolsia.graph.routers import (
    route_after_decode,
    route_after_resample,
    route_after_transform,
    route_after_encode,
)


def build_graph() -> "StateGraph":
    """
    One tool run as a state machine:
    - START -> decode -> resample -> transform -> encode -> done -> END
    - every stage -> failed -> END when it records a typed error
    Exactly one tool pipeline runs per invocation; transform picks the
    steps for the tool kind held in state.
    """
    g = StateGraph(PipelineState)

    g.add_node("decode", nodes.decode_node)
    g.add_node("resample", nodes.resample_node)
    g.add_node("transform", nodes.transform_node)
    g.add_node("encode", nodes.encode_node)
    g.add_node("done", nodes.done_node)
    g.add_node("failed", nodes.failed_node)

    g.add_edge(START, "decode")

    g.add_conditional_edges(
        "decode",
        route_after_decode,
        {
            "resample": "resample",
            "failed": "failed",
        },
    )

    g.add_conditional_edges(
        "resample",
        route_after_resample,
        {
            "transform": "transform",
            "failed": "failed",
        },
    )

    g.add_conditional_edges(
        "transform",
        route_after_transform,
        {
            "encode": "encode",
            "failed": "failed",
        },
    )

    g.add_conditional_edges(
        "encode",
        route_after_encode,
        {
            "done": "done",
            "failed": "failed",
        },
    )

    g.add_edge("done", END)
    g.add_edge("failed", END)

    return g

from __future__ import annotations

"""
Tier policies + LangGraph run topology.

`build_graph` imports the stage nodes, so import it explicitly:
    from toolsia.graph.build_graph import build_graph
"""

from toolsia.graph import policies, routers

__all__ = [
    "policies",
    "routers",
]

"""
Graph Index - id lookup and adjacency for a flow.

Pure and I/O free. Built once per run from the (read-only) Flow.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Flow, FlowEdge, FlowNode


logger = logging.getLogger(__name__)


class GraphIndex:
    """
    Lookup structures over a flow.

    - nodes: id -> node
    - forward: id -> [(edge, target id)], in edge order
    - reverse: id -> [source id], in edge order (edge identity discarded)

    Edges whose source is unknown get no forward entry; edges whose target is
    unknown get no reverse entry. Missing ids resolve to empty collections.
    """

    def __init__(self, flow: Flow):
        self.nodes: Dict[str, FlowNode] = {}
        self.forward: Dict[str, List[Tuple[FlowEdge, str]]] = {}
        self.reverse: Dict[str, List[str]] = {}

        for node in flow.nodes:
            self.nodes[node.id] = node
            self.forward[node.id] = []
            self.reverse[node.id] = []

        for edge in flow.edges:
            if edge.source in self.forward:
                self.forward[edge.source].append((edge, edge.target))
            if edge.target in self.reverse:
                self.reverse[edge.target].append(edge.source)

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        return self.nodes.get(node_id)

    def successors(self, node_id: str) -> List[Tuple[FlowEdge, str]]:
        """Outgoing (edge, target id) pairs of a node."""
        return self.forward.get(node_id, [])

    def predecessors(self, node_id: str) -> List[str]:
        """Source ids of a node's incoming edges."""
        return self.reverse.get(node_id, [])

    def initial_ready_ids(self, entry_types: Iterable[str] = ("start",)) -> List[str]:
        """
        Initial ready set of the dispatch loop.

        Every node with zero incoming edges plus every node of an entry type,
        sorted ascending and de-duplicated. Callers treat the list as a stack.
        """
        entry_types = set(entry_types)
        ready = {
            node_id
            for node_id, node in self.nodes.items()
            if not self.reverse.get(node_id) or node.type in entry_types
        }
        return sorted(ready)


__all__ = [
    "GraphIndex",
]

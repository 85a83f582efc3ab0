"""
Graph Validator - Structural checks for node-lab graphs.

Dangling edges are errors. Cycles and duplicate edges are reported as
warnings: inputs are only read from direct predecessors, so a cycle
cannot make a run loop.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import networkx as nx

from node_lab.models.factory.EdgeNodeModel import EdgeNodeModel
from node_lab.models.factory.Nodes import BaseNodeModel

logger = logging.getLogger(__name__)


def build_graph(nodes: Sequence[BaseNodeModel], edges: Sequence[EdgeNodeModel]) -> nx.MultiDiGraph:
    """Create a directed multigraph; every edge keeps its id as key."""
    graph = nx.MultiDiGraph()
    graph.add_nodes_from(node.id for node in nodes)
    for edge in edges:
        graph.add_edge(edge.source, edge.target, key=edge.id, handle=edge.targetHandle)
    return graph


def find_cycles(graph: nx.MultiDiGraph) -> List[List[str]]:
    return [list(cycle) for cycle in nx.simple_cycles(nx.DiGraph(graph))]


class GraphValidator:

    @staticmethod
    def validate(nodes: Sequence[BaseNodeModel], edges: Sequence[EdgeNodeModel]) -> List[Dict[str, Any]]:
        """
        Returns:
            List of validation errors/warnings (empty if valid)
        """
        errors: List[Dict[str, Any]] = []
        node_ids = {node.id for node in nodes}

        for edge in edges:
            missing = [end for end in (edge.source, edge.target) if end not in node_ids]
            if missing:
                errors.append({
                    "error_type": "DanglingEdge",
                    "severity": "error",
                    "edge_id": edge.id,
                    "error_message": f"Edge {edge.id} references unknown node(s): {missing}",
                })

        seen = {}
        for edge in edges:
            signature = (edge.source, edge.target, edge.sourceHandle, edge.targetHandle)
            if signature in seen:
                errors.append({
                    "error_type": "DuplicateEdge",
                    "severity": "warning",
                    "edge_id": edge.id,
                    "error_message": f"Edge {edge.id} duplicates {seen[signature]}",
                })
            else:
                seen[signature] = edge.id

        graph = build_graph(nodes, [e for e in edges if e.source in node_ids and e.target in node_ids])
        for cycle in find_cycles(graph):
            kind = "SelfLoop" if len(cycle) == 1 else "Cycle"
            errors.append({
                "error_type": kind,
                "severity": "warning",
                "nodes": cycle,
                "error_message": f"{kind} through {' -> '.join(cycle + cycle[:1])}",
            })

        for err in errors:
            if err['severity'] == 'warning':
                logger.warning("Graph validation warning: %s", err['error_message'])
            else:
                logger.error("Graph validation error: %s", err['error_message'])
        return errors

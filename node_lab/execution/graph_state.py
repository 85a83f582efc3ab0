"""
GraphState - Owns the node and edge collections.

Every mutation is a read-snapshot / compute / replace-whole-collection
command. Commands never suspend, so on a single event loop each one is
atomic with respect to other tasks. A caller that computes a patch from a
snapshot, awaits, and then writes may overwrite changes made in between;
``commit(expected_version=...)`` turns that last-writer-wins case into a
``GraphError``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from node_lab.models.factory.EdgeNodeModel import EdgeNodeModel
from node_lab.models.factory.GraphFlowModel import GraphFlowModel
from node_lab.models.factory.Nodes import BaseNodeModel, parse_node
from node_lab.util.const import ORDERED_TARGET_HANDLES
from node_lab.util.errors import GraphError

logger = logging.getLogger(__name__)

DUPLICATE_OFFSET = 40


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable view of the graph at one version."""
    nodes: Tuple[BaseNodeModel, ...]
    edges: Tuple[EdgeNodeModel, ...]
    version: int = 0

    def get_node(self, node_id: str) -> Optional[BaseNodeModel]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def incoming(self, target_id: str) -> List[EdgeNodeModel]:
        """Edges ending at ``target_id`` in edge-collection order."""
        return [e for e in self.edges if e.target == target_id]


Patch = Callable[[GraphSnapshot], Tuple[Sequence[BaseNodeModel], Sequence[EdgeNodeModel]]]
Listener = Callable[[GraphSnapshot], None]


class GraphState:
    """
    Explicitly owned graph store injected into the executor and handlers.

    Listeners registered with ``subscribe`` receive the new snapshot after
    every committed change.
    """

    def __init__(
        self,
        nodes: Optional[Iterable[BaseNodeModel]] = None,
        edges: Optional[Iterable[EdgeNodeModel]] = None,
        viewport: Optional[Dict[str, Any]] = None,
    ):
        self._nodes: Tuple[BaseNodeModel, ...] = tuple(nodes or ())
        self._edges: Tuple[EdgeNodeModel, ...] = tuple(edges or ())
        self._version = 0
        self._listeners: List[Listener] = []
        self.viewport = viewport

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphState":
        """Load a graph snapshot; ``viewport`` and unknown keys are carried as-is."""
        try:
            flow = GraphFlowModel.model_validate(data)
        except ValidationError as e:
            raise GraphError(f"Invalid graph snapshot: {e}") from e
        return cls(flow.nodes, flow.edges, viewport=flow.viewport)

    def to_dict(self) -> Dict[str, Any]:
        edges = []
        for edge in self._edges:
            raw = edge.model_dump(exclude_none=True)
            data = dict(raw.get('data') or {})
            if edge.order is not None:
                data['order'] = edge.order
            if data:
                data.setdefault('targetHandle', edge.targetHandle)
                raw['data'] = data
            edges.append(raw)
        return {
            'nodes': [n.model_dump(by_alias=True, exclude_none=True) for n in self._nodes],
            'edges': edges,
            'viewport': self.viewport,
        }

    # Reads

    @property
    def nodes(self) -> Tuple[BaseNodeModel, ...]:
        return self._nodes

    @property
    def edges(self) -> Tuple[EdgeNodeModel, ...]:
        return self._edges

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(self._nodes, self._edges, self._version)

    def get_node(self, node_id: str) -> Optional[BaseNodeModel]:
        return self.snapshot().get_node(node_id)

    def require_node(self, node_id: str) -> BaseNodeModel:
        node = self.get_node(node_id)
        if node is None:
            raise GraphError(f"Unknown node: {node_id}")
        return node

    # Writes

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def commit(self, patch: Patch, expected_version: Optional[int] = None) -> GraphSnapshot:
        """
        Apply ``patch`` to the current snapshot and replace both collections.

        Args:
            patch: Receives the current snapshot, returns the new (nodes, edges)
            expected_version: When given, refuse to write over a newer state

        Returns:
            The committed snapshot
        """
        if expected_version is not None and expected_version != self._version:
            raise GraphError(
                f"Stale snapshot: expected version {expected_version}, current is {self._version}"
            )
        nodes, edges = patch(self.snapshot())
        self._nodes = tuple(nodes)
        self._edges = tuple(edges)
        self._version += 1
        committed = self.snapshot()
        for listener in list(self._listeners):
            listener(committed)
        return committed

    def add_node(self, node: BaseNodeModel | Dict[str, Any]) -> BaseNodeModel:
        if isinstance(node, dict):
            node = parse_node(node)
        self.merge([node], [])
        return node

    def merge(self, nodes: Sequence[BaseNodeModel], edges: Sequence[EdgeNodeModel]) -> GraphSnapshot:
        """Append nodes and edges in a single write."""
        return self.commit(lambda s: ([*s.nodes, *nodes], [*s.edges, *edges]))

    def update_node_data(self, node_id: str, **changes) -> Optional[BaseNodeModel]:
        """
        Merge ``changes`` into the node's data payload.

        A node deleted while it was running is left deleted; the update is dropped.
        """
        updated: List[BaseNodeModel] = []

        def patch(s: GraphSnapshot):
            nodes = []
            for node in s.nodes:
                if node.id == node_id:
                    node = node.with_data(**changes)
                    updated.append(node)
                nodes.append(node)
            return nodes, s.edges

        self.commit(patch)
        if not updated:
            logger.debug("update_node_data: node %s no longer exists, dropped %s", node_id, list(changes))
            return None
        return updated[0]

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
        edge_id: Optional[str] = None,
    ) -> EdgeNodeModel:
        """
        Create an edge. For ranked target handles the order is the number of
        existing edges on the same target handle plus one.
        """
        self._check_connection(source, target)
        order = None
        if target_handle in ORDERED_TARGET_HANDLES:
            order = self._handle_count(target, target_handle) + 1
        edge = EdgeNodeModel(
            id=edge_id or f"e-{source}-{target}-{uuid.uuid4().hex[:8]}",
            source=source,
            target=target,
            sourceHandle=source_handle,
            targetHandle=target_handle,
            order=order,
        )
        self.merge([], [edge])
        logger.debug("Connected %s -> %s (%s, order=%s)", source, target, target_handle, order)
        return edge

    def connect_many(
        self,
        sources: Iterable[str],
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> List[EdgeNodeModel]:
        """
        Connect several sources to one target handle at once. Ranks follow
        the sources' vertical position, top first, continuing after the
        edges already on that handle.
        """
        snapshot = self.snapshot()
        nodes = [self.require_node(s) for s in sources if s != target]
        nodes.sort(key=lambda n: n.y)
        base_order = self._handle_count(target, target_handle)
        edges = []
        for node in nodes:
            self._check_connection(node.id, target)
            order = None
            if target_handle in ORDERED_TARGET_HANDLES:
                base_order += 1
                order = base_order
            edges.append(EdgeNodeModel(
                id=f"e-{node.id}-{target}-{uuid.uuid4().hex[:8]}",
                source=node.id,
                target=target,
                sourceHandle=source_handle,
                targetHandle=target_handle,
                order=order,
            ))
        self.commit(lambda s: (s.nodes, [*s.edges, *edges]), expected_version=snapshot.version)
        return edges

    def delete_node(self, node_id: str) -> None:
        """Remove a node together with every incident edge."""
        self.commit(lambda s: (
            [n for n in s.nodes if n.id != node_id],
            [e for e in s.edges if e.source != node_id and e.target != node_id],
        ))

    def delete_edges(self, edge_ids: Iterable[str]) -> None:
        ids = set(edge_ids)
        self.commit(lambda s: (s.nodes, [e for e in s.edges if e.id not in ids]))

    def duplicate_node(self, node_id: str) -> BaseNodeModel:
        """Copy a node with a fresh id, offset position and reset lifecycle fields."""
        original = self.require_node(node_id)
        copy = original.model_copy(deep=True, update={
            'id': uuid.uuid4().hex,
            'position': {'x': original.x + DUPLICATE_OFFSET, 'y': original.y + DUPLICATE_OFFSET},
        })
        copy = copy.with_data(status='idle', progress=0, status_msg=None)
        self.merge([copy], [])
        return copy

    def _handle_count(self, target: str, target_handle: Optional[str]) -> int:
        return sum(1 for e in self._edges if e.target == target and e.targetHandle == target_handle)

    def _check_connection(self, source: str, target: str) -> None:
        if source == target:
            raise GraphError(f"Cannot connect node {source} to itself")
        for node_id in (source, target):
            self.require_node(node_id)

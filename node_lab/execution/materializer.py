"""
ResultMaterializer - Turns handler output into downstream result nodes.

Each result is one 'outputResult' node placed to the right of its source
plus one edge whose handles are the payload kind. Batches are written in a
single merge so observers never see a half-built fan-out.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from node_lab.execution.graph_state import GraphSnapshot, GraphState
from node_lab.models.factory.EdgeNodeModel import EdgeNodeModel
from node_lab.models.factory.Nodes import BaseNodeModel, ResultDataModel, ResultKind, ResultNodeModel

logger = logging.getLogger(__name__)


@dataclass
class ResultPayload:
    kind: ResultKind
    content: Optional[str] = None
    url: Optional[str] = None
    medium_url: Optional[str] = None
    label: Optional[str] = None


class ResultMaterializer:

    def __init__(self, state: GraphState, offset_x: float = 400, spacing_y: float = 220):
        self.state = state
        self.offset_x = offset_x
        self.spacing_y = spacing_y

    def place(self, source: BaseNodeModel, index: int = 0, count: int = 1) -> dict:
        """Position of result ``index`` of ``count``, spread symmetrically about the source."""
        offset = (index - (count - 1) / 2) * self.spacing_y if count > 1 else 0
        return {'x': source.x + self.offset_x, 'y': source.y + offset}

    def build(self,
              source: BaseNodeModel,
              payload: ResultPayload,
              index: int = 0,
              count: int = 1) -> Tuple[ResultNodeModel, EdgeNodeModel]:
        result = ResultNodeModel(
            id=uuid.uuid4().hex,
            position=self.place(source, index, count),
            data=ResultDataModel(
                kind=payload.kind,
                label=payload.label,
                content=payload.content,
                url=payload.url,
                medium_url=payload.medium_url,
                status='idle',
            ),
        )
        edge = EdgeNodeModel(
            id=f"e-{source.id}-{result.id}",
            source=source.id,
            target=result.id,
            sourceHandle=payload.kind,
            targetHandle=payload.kind,
        )
        return result, edge

    def materialize(self,
                    source: BaseNodeModel,
                    payload: ResultPayload,
                    index: int = 0,
                    count: int = 1) -> Optional[ResultNodeModel]:
        """Create one result node and its edge in a single write; None when the source is gone."""
        results = self._append(source, [self.build(source, payload, index, count)])
        return results[0] if results else None

    def materialize_many(self, source: BaseNodeModel, payloads: Sequence[ResultPayload]) -> List[ResultNodeModel]:
        """Create N result nodes and N edges in a single write."""
        if not payloads:
            return []
        return self._append(source, [self.build(source, p, i, len(payloads)) for i, p in enumerate(payloads)])

    def _append(self, source: BaseNodeModel, built: List[Tuple[ResultNodeModel, EdgeNodeModel]]) -> List[ResultNodeModel]:
        appended: List[ResultNodeModel] = []

        def patch(s: GraphSnapshot):
            # a source deleted during its run gets no results
            if s.get_node(source.id) is None:
                return s.nodes, s.edges
            appended.extend(node for node, _ in built)
            return [*s.nodes, *appended], [*s.edges, *(edge for _, edge in built)]

        self.state.commit(patch)
        if not appended:
            logger.warning("Source %s no longer exists, dropped %d result(s)", source.id, len(built))
        else:
            logger.debug("Materialized %d result(s) from %s", len(appended), source.id)
        return appended

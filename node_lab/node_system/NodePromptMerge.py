import logging
from typing import List

from node_lab.execution.materializer import ResultPayload
from node_lab.models.factory.Nodes import PromptMergeNodeModel
from node_lab.node_system.Node import Node
from node_lab.util.const import DEFAULT_CHARACTER_ANCHOR, GRID_CELLS, HANDLE_TEXT
from node_lab.util.errors import InputError
from node_lab.util.prompts import render_merged_prompt

logger = logging.getLogger(__name__)


def pad_shots(shots: List[str], target: int) -> List[str]:
    """Repeat the last shot up to ``target`` entries, or cut the list down to it."""
    if not shots:
        return []
    padded = list(shots)
    while len(padded) < target:
        padded.append(padded[-1])
    return padded[:target]


class NodePromptMerge(Node):
    """Merges a character anchor and a shot list into one grid-sequence prompt."""

    def __init__(self, data: PromptMergeNodeModel, **kwargs):
        super().__init__(data, **kwargs)
        self.grid_type = data.data.grid_type or '3x3'
        self.character_anchor = data.data.character_anchor
        self.sequence_content = data.data.sequence_content

    def shot_count(self) -> int:
        return GRID_CELLS[self.grid_type] ** 2

    async def process(self, inputs):
        anchor = inputs.anchor or self.character_anchor or DEFAULT_CHARACTER_ANCHOR

        if inputs.sequence:
            shots = list(inputs.sequence)
        else:
            shots = [line for line in (self.sequence_content or '').split('\n') if line.strip()]
        if not shots:
            raise InputError("Missing sequence content")

        active = pad_shots(shots, self.shot_count())
        logger.debug("NodePromptMerge:%s %d shot(s) -> %d", self.node_id, len(shots), len(active))
        merged = render_merged_prompt(self.grid_type, anchor, active)

        self.materialize(ResultPayload(kind=HANDLE_TEXT, label='Merged prompt', content=merged))
        return {'status_msg': 'Merged'}

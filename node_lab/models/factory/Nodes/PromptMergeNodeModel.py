from typing import Literal

from pydantic import Field

from node_lab.models.factory.Nodes.BaseNodeModel import BaseNodeModel, NodeDataModel
from node_lab.models.factory.Nodes.ImageSplitNodeModel import GridType


class PromptMergeDataModel(NodeDataModel):
    grid_type: GridType = '3x3'
    character_anchor: str = ''
    sequence_content: str = ''


class PromptMergeNodeModel(BaseNodeModel):
    type: Literal['promptMerge'] = 'promptMerge'
    data: PromptMergeDataModel = Field(default_factory=PromptMergeDataModel)

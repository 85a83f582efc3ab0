from typing import Literal

from pydantic import Field

from node_lab.models.factory.Nodes.BaseNodeModel import BaseNodeModel, NodeDataModel

GridType = Literal['2x2', '3x3']


class ImageSplitDataModel(NodeDataModel):
    grid_type: GridType = '2x2'
    grid_select: str = '0'
    grid_trim: int = 10


class ImageSplitNodeModel(BaseNodeModel):
    type: Literal['imageSplit'] = 'imageSplit'
    data: ImageSplitDataModel = Field(default_factory=ImageSplitDataModel)

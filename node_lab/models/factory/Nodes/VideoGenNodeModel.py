from typing import Literal, Optional

from pydantic import Field

from node_lab.models.factory.Nodes.BaseNodeModel import BaseNodeModel, NodeDataModel
from node_lab.util.const import DEFAULT_VIDEO_MODEL

Resolution = Literal['720p', '1080p', '4k']


class VideoGenDataModel(NodeDataModel):
    model: str = DEFAULT_VIDEO_MODEL
    resolution: Optional[Resolution] = None
    duration_seconds: Optional[str] = None


class VideoGenNodeModel(BaseNodeModel):
    type: Literal['aiVideoGen'] = 'aiVideoGen'
    data: VideoGenDataModel = Field(default_factory=VideoGenDataModel)

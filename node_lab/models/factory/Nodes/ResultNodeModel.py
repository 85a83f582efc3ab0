from typing import Literal, Optional

from pydantic import Field

from node_lab.models.factory.Nodes.BaseNodeModel import BaseNodeModel, NodeDataModel

ResultKind = Literal['text', 'image', 'video']


class ResultDataModel(NodeDataModel):
    # snapshots store the payload kind under data.type
    kind: Optional[ResultKind] = Field(default=None, alias='type')


class ResultNodeModel(BaseNodeModel):
    type: Literal['outputResult'] = 'outputResult'
    data: ResultDataModel = Field(default_factory=ResultDataModel)

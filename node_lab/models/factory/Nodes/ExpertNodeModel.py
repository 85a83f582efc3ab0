from typing import Literal, Optional

from pydantic import Field

from node_lab.models.factory.Nodes.BaseNodeModel import BaseNodeModel, NodeDataModel

ExpertNodeType = Literal[
    'aiExpert',
    'expertOptimizer',
    'expertStoryboard',
    'expertAction',
    'expertCharacter',
    'expertEnvironment',
]


class ExpertDataModel(NodeDataModel):
    expert_type: Optional[str] = None
    storyboard_consistency: bool = False
    output_lang: str = 'zh'


class ExpertNodeModel(BaseNodeModel):
    """
    Text-generation node. Dedicated tags fix the variant;
    the generic 'aiExpert' tag reads it from ``data.expert_type``.
    """
    type: ExpertNodeType = 'aiExpert'
    data: ExpertDataModel = Field(default_factory=ExpertDataModel)

    @property
    def variant(self) -> str:
        if self.type == 'aiExpert':
            return self.data.expert_type or 'default'
        return self.type[len('expert'):].lower()

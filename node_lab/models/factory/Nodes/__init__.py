from typing import Annotated, Union

from pydantic import Field, TypeAdapter

from node_lab.models.factory.Nodes.BaseNodeModel import (
    BaseNodeModel,
    NodeDataModel,
    NodeStatus,
    ModelLabNodeType,
    ModelLabNodeTypesModel,
)
from node_lab.models.factory.Nodes.TextInputNodeModel import TextInputNodeModel
from node_lab.models.factory.Nodes.ImageInputNodeModel import ImageInputNodeModel, ImageProcessingNodeModel
from node_lab.models.factory.Nodes.ResultNodeModel import ResultNodeModel, ResultDataModel, ResultKind
from node_lab.models.factory.Nodes.ExpertNodeModel import ExpertNodeModel, ExpertDataModel
from node_lab.models.factory.Nodes.ImageGenNodeModel import (
    ImageGenNodeModel,
    ImageGenDataModel,
    ImageGenRoute,
    split_model,
)
from node_lab.models.factory.Nodes.VideoGenNodeModel import VideoGenNodeModel, VideoGenDataModel
from node_lab.models.factory.Nodes.ImageSplitNodeModel import ImageSplitNodeModel, ImageSplitDataModel
from node_lab.models.factory.Nodes.PromptMergeNodeModel import PromptMergeNodeModel, PromptMergeDataModel

LabNodeModel = Annotated[
    Union[
        TextInputNodeModel,
        ImageInputNodeModel,
        ImageProcessingNodeModel,
        ResultNodeModel,
        ExpertNodeModel,
        ImageGenNodeModel,
        VideoGenNodeModel,
        ImageSplitNodeModel,
        PromptMergeNodeModel,
    ],
    Field(discriminator='type'),
]

_node_adapter = TypeAdapter(LabNodeModel)


def parse_node(raw: dict) -> BaseNodeModel:
    """Validate a raw node dict into its typed variant."""
    return _node_adapter.validate_python(raw)

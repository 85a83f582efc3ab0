from enum import Enum
from typing import Literal

from pydantic import Field

from node_lab.models.factory.Nodes.BaseNodeModel import BaseNodeModel, NodeDataModel
from node_lab.util.const import MODEL_GEMINI_NATIVE, PROVIDER_COMFLY, PROVIDER_GRSAI

ImageSize = Literal['1K', '2K', '4K']


def split_model(model: str) -> tuple[str, str]:
    """Split 'comfly:veo3.1-fast' into ('comfly', 'veo3.1-fast'); unprefixed ids belong to GRSAI."""
    provider, sep, actual = model.partition(':')
    if sep and provider == PROVIDER_COMFLY:
        return PROVIDER_COMFLY, actual
    return PROVIDER_GRSAI, model


class ImageGenRoute(Enum):
    NATIVE = "native"            # single call returning an inline image
    COMFLY_TASK = "comfly_task"  # submit + poll
    COMFLY_SYNC = "comfly_sync"  # single call returning a remote URL
    GRSAI_TASK = "grsai_task"    # submit + poll


class ImageGenDataModel(NodeDataModel):
    model: str = MODEL_GEMINI_NATIVE
    image_size: ImageSize = '1K'
    comfly_async: bool = True


class ImageGenNodeModel(BaseNodeModel):
    type: Literal['aiImageGen'] = 'aiImageGen'
    data: ImageGenDataModel = Field(default_factory=ImageGenDataModel)

    @property
    def route(self) -> ImageGenRoute:
        model = self.data.model or MODEL_GEMINI_NATIVE
        if model == MODEL_GEMINI_NATIVE:
            return ImageGenRoute.NATIVE
        provider, _ = split_model(model)
        if provider == PROVIDER_COMFLY:
            return ImageGenRoute.COMFLY_TASK if self.data.comfly_async else ImageGenRoute.COMFLY_SYNC
        return ImageGenRoute.GRSAI_TASK

from typing import Literal

from node_lab.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class ImageInputNodeModel(BaseNodeModel):
    """Holds an already hosted image in ``data.url`` plus an optional ``data.remark``."""
    type: Literal['inputImage'] = 'inputImage'


class ImageProcessingNodeModel(BaseNodeModel):
    """An image edited outside the engine; behaves like an image input."""
    type: Literal['imageProcessing'] = 'imageProcessing'

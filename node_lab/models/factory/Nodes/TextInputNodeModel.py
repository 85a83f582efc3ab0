from typing import Literal

from node_lab.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class TextInputNodeModel(BaseNodeModel):
    """Holds user text in ``data.content``; feeds downstream text handles."""
    type: Literal['inputText'] = 'inputText'

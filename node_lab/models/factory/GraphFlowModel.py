from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from node_lab.models.factory.EdgeNodeModel import EdgeNodeModel
from node_lab.models.factory.Nodes import LabNodeModel


class GraphFlowModel(BaseModel):
    """
    A graph snapshot as stored by project files.

    Attributes:
        nodes: Typed nodes
        edges: Edge connections
        viewport: Editor viewport, carried through untouched
    """
    model_config = ConfigDict(extra='allow')

    nodes: list[LabNodeModel] = Field(default_factory=list)
    edges: list[EdgeNodeModel] = Field(default_factory=list)
    viewport: Optional[dict[str, Any]] = None

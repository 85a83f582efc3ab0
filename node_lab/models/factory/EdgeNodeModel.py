import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EdgeNodeModel(BaseModel):
    model_config = ConfigDict(extra='allow')

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    source: str
    target: str
    sourceHandle: Optional[str] = None
    targetHandle: Optional[str] = None
    order: Optional[int] = None

    @model_validator(mode='before')
    @classmethod
    def lift_order(cls, values: Any) -> Any:
        """Snapshots keep the rank under ``data.order``."""
        if isinstance(values, dict) and values.get('order') is None:
            data = values.get('data')
            if isinstance(data, dict) and data.get('order') is not None:
                values = {**values, 'order': data['order']}
        return values

    @property
    def rank(self) -> int:
        return self.order or 0

import uuid
from typing import Literal, Optional, Any

from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

ModelLabNodeType = Literal[
    'inputText',
    'inputImage',
    'outputResult',
    'aiExpert',
    'expertOptimizer',
    'expertStoryboard',
    'expertAction',
    'expertCharacter',
    'expertEnvironment',
    'aiImageGen',
    'aiVideoGen',
    'imageProcessing',
    'imageSplit',
    'promptMerge',
]

NodeStatus = Literal['idle', 'running', 'success', 'error']


class ModelLabNodeTypesModel:
    INPUT_TEXT = 'inputText'
    INPUT_IMAGE = 'inputImage'
    OUTPUT_RESULT = 'outputResult'
    AI_EXPERT = 'aiExpert'
    EXPERT_OPTIMIZER = 'expertOptimizer'
    EXPERT_STORYBOARD = 'expertStoryboard'
    EXPERT_ACTION = 'expertAction'
    EXPERT_CHARACTER = 'expertCharacter'
    EXPERT_ENVIRONMENT = 'expertEnvironment'
    IMAGE_GEN = 'aiImageGen'
    VIDEO_GEN = 'aiVideoGen'
    IMAGE_PROCESSING = 'imageProcessing'
    IMAGE_SPLIT = 'imageSplit'
    PROMPT_MERGE = 'promptMerge'


class NodeDataModel(BaseModel):
    """
    Payload shared by every node type.
    Field names are snake_case in Python and camelCase in snapshots.
    Unknown keys from the snapshot are kept as extras.
    """
    model_config = ConfigDict(extra='allow', populate_by_name=True, alias_generator=to_camel)

    label: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None
    medium_url: Optional[str] = None
    remark: Optional[str] = None
    aspect_ratio: Optional[str] = None
    read_image_remarks: bool = False
    status: NodeStatus = 'idle'
    progress: int = 0
    status_msg: Optional[str] = None
    start_time: Optional[float] = None
    duration: Optional[float] = None

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        # 'loading' is an in-flight run saved by an older snapshot; it cannot resume
        if v == 'loading':
            return 'idle'
        return v or 'idle'


class BaseNodeModel(BaseModel):
    """
    Base model for all node types.
    Configured to accept extra fields from JSON without raising errors.
    """
    model_config = ConfigDict(extra='allow')

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: ModelLabNodeType
    position: dict[str, float] = Field(default_factory=lambda: {'x': 0, 'y': 0})
    data: NodeDataModel = Field(default_factory=NodeDataModel)

    @property
    def x(self) -> float:
        return self.position.get('x', 0)

    @property
    def y(self) -> float:
        return self.position.get('y', 0)

    def with_data(self, **changes) -> 'BaseNodeModel':
        """Return a copy with ``changes`` merged into the data payload."""
        return self.model_copy(update={'data': self.data.model_copy(update=changes)})

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LabSettings(BaseModel):
    """
    Global settings injected into every execution.
    Credentials are owned by the caller; the engine only reads them.
    """
    model_config = ConfigDict(extra='ignore', populate_by_name=True, alias_generator=to_camel)

    aspect_ratio: str = '16:9'
    grsai_key: str = ''
    comfly_key: str = ''
    imgbb_key: str = ''
    google_api_key: str = ''
    expert_engine: str = 'google'
    expert_model: str = 'gemini-3-pro-preview'

from dataclasses import dataclass
from typing import Optional

from node_lab.models.model_settings import LabSettings
from node_lab.services.base import (
    Artifact,
    ArtifactStore,
    ExpertOutput,
    ExpertResult,
    ImageCodec,
    InlineImage,
    NativeImageService,
    PollResult,
    PollStatus,
    TextGenerationService,
    parse_progress,
)
from node_lab.services.codec import PillowImageCodec
from node_lab.services.comfly import ComflyClient
from node_lab.services.expert import MagicLLMExpertService
from node_lab.services.gemini import GeminiImageClient
from node_lab.services.grsai import GrsaiClient
from node_lab.services.imgbb import ImgBBStore


@dataclass
class LabServices:
    """External collaborators used by the node handlers."""
    expert: Optional[TextGenerationService] = None
    native_image: Optional[NativeImageService] = None
    grsai: Optional[GrsaiClient] = None
    comfly: Optional[ComflyClient] = None
    artifacts: Optional[ArtifactStore] = None
    codec: Optional[ImageCodec] = None

    @classmethod
    def from_settings(cls, settings: LabSettings) -> "LabServices":
        return cls(
            expert=MagicLLMExpertService(
                engine=settings.expert_engine,
                model=settings.expert_model,
                api_key=settings.google_api_key,
            ),
            native_image=GeminiImageClient(settings.google_api_key),
            grsai=GrsaiClient(settings.grsai_key),
            comfly=ComflyClient(settings.comfly_key),
            artifacts=ImgBBStore(settings.imgbb_key),
            codec=PillowImageCodec(),
        )

import logging
from typing import List

from node_lab.execution.materializer import ResultPayload
from node_lab.models.factory.Nodes import VideoGenNodeModel, split_model
from node_lab.node_system.Node import Node
from node_lab.util.const import (
    DEFAULT_VIDEO_MODEL,
    DEFAULT_VIDEO_PROMPT,
    HANDLE_VIDEO,
    PROVIDER_COMFLY,
    UPSAMPLE_RESOLUTION,
    UPSAMPLE_VIDEO_MODEL,
)
from node_lab.util.errors import OperationFailed

logger = logging.getLogger(__name__)

MAX_REFERENCE_IMAGES = 3


def video_frames(urls: List[str]) -> List[str]:
    """Positional images: first frame, first + last frame, or up to three references."""
    return list(urls[:MAX_REFERENCE_IMAGES])


def video_mode_message(count: int) -> str:
    if count == 1:
        return "First Frame Mode..."
    if count == 2:
        return "I2V Start-End Mode..."
    if count >= 3:
        return "Reference Image Mode..."
    return "Generating..."


def wants_upsample(model: str, resolution) -> bool:
    return resolution == UPSAMPLE_RESOLUTION and model == UPSAMPLE_VIDEO_MODEL


class NodeVideoGen(Node):
    """Video generator on GRSAI or, with a 'comfly:' model prefix, on Comfly."""

    def __init__(self, data: VideoGenNodeModel, **kwargs):
        super().__init__(data, **kwargs)
        self.provider, self.model = split_model(data.data.model or DEFAULT_VIDEO_MODEL)
        self.resolution = data.data.resolution
        self.duration_seconds = data.data.duration_seconds
        self.read_remarks = data.data.read_image_remarks

    async def process(self, inputs):
        prompt = inputs.compose_prompt(self.read_remarks) or DEFAULT_VIDEO_PROMPT
        urls = video_frames(inputs.image_urls)
        self.status(video_mode_message(len(urls)))

        if self.provider == PROVIDER_COMFLY:
            comfly = self.service('comfly')
            upsample = wants_upsample(self.model, self.resolution)
            logger.debug("NodeVideoGen:%s comfly model=%s images=%d upsample=%s",
                         self.node_id, self.model, len(urls), upsample)
            result = await self.runner(self.context.config.comfly_video_poll_interval).run(
                submit=lambda: comfly.submit_video(self.model, prompt, self.aspect_ratio, urls, upsample),
                poll=comfly.poll_video,
            )
        else:
            grsai = self.service('grsai')
            logger.debug("NodeVideoGen:%s grsai model=%s images=%d", self.node_id, self.model, len(urls))
            result = await self.runner(self.context.config.grsai_poll_interval).run(
                submit=lambda: grsai.submit_video(
                    self.model, prompt, self.aspect_ratio, urls, self.resolution, self.duration_seconds
                ),
                poll=grsai.poll,
            )

        if not result.result_url:
            raise OperationFailed("no result URL in success response")
        self.materialize(ResultPayload(kind=HANDLE_VIDEO, url=result.result_url))
        return {'url': result.result_url, 'progress': 100, 'status_msg': 'Success'}

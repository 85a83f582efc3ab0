import logging

from node_lab.execution.materializer import ResultPayload
from node_lab.models.factory.Nodes import ExpertNodeModel
from node_lab.node_system.Node import Node
from node_lab.util.const import DEFAULT_EXPERT_PROMPT, HANDLE_TEXT
from node_lab.util.prompts import build_system_instruction

logger = logging.getLogger(__name__)


class NodeExpert(Node):
    """
    Text-generation expert.

    Sends the resolved prompt and the attached images to the text service
    with a variant-specific system instruction. The summary becomes the
    node content; every returned output becomes a text result node.
    """

    def __init__(self, data: ExpertNodeModel, **kwargs):
        super().__init__(data, **kwargs)
        self.variant = data.variant
        self.consistency = data.data.storyboard_consistency
        self.output_lang = data.data.output_lang or 'zh'
        self.read_remarks = data.data.read_image_remarks

    def system_instruction(self) -> str:
        return build_system_instruction(self.variant, self.consistency, self.output_lang)

    async def process(self, inputs):
        prompt = inputs.compose_prompt(self.read_remarks) or DEFAULT_EXPERT_PROMPT
        images = await self.inline_images(inputs.image_urls)

        logger.debug("NodeExpert:%s variant=%s lang=%s images=%d",
                     self.node_id, self.variant, self.output_lang, len(images))
        result = await self.service('expert').generate(prompt, self.system_instruction(), images)

        limit = self.context.config.max_expert_outputs
        if len(result.outputs) > limit:
            logger.info("NodeExpert:%s keeping %d of %d outputs", self.node_id, limit, len(result.outputs))
        self.materialize_many([
            ResultPayload(kind=HANDLE_TEXT, label=output.title, content=output.prompt)
            for output in result.outputs[:limit]
        ])
        return {'content': result.display_summary, 'status_msg': 'Success'}

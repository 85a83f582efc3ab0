import logging

from node_lab.execution.materializer import ResultPayload
from node_lab.models.factory.Nodes import ImageGenNodeModel, ImageGenRoute, split_model
from node_lab.node_system.Node import Node
from node_lab.util.const import DEFAULT_IMAGE_PROMPT, DEFAULT_TASK_IMAGE_PROMPT, HANDLE_IMAGE
from node_lab.util.errors import OperationFailed

logger = logging.getLogger(__name__)


class NodeImageGen(Node):
    """
    Image generator. The model id selects the route:

    - 'gemini-native': one native call returning inline data
    - 'comfly:<model>': Comfly task (default) or synchronous call
    - anything else: GRSAI draw task

    Every route ends with a re-hosted image and one image result node.
    """

    def __init__(self, data: ImageGenNodeModel, **kwargs):
        super().__init__(data, **kwargs)
        self.route = data.route
        self.model = data.data.model
        self.image_size = data.data.image_size or '1K'
        self.read_remarks = data.data.read_image_remarks
        self.routes = {
            ImageGenRoute.NATIVE: self.generate_native,
            ImageGenRoute.COMFLY_TASK: self.generate_comfly_task,
            ImageGenRoute.COMFLY_SYNC: self.generate_comfly_sync,
            ImageGenRoute.GRSAI_TASK: self.generate_grsai_task,
        }

    def default_prompt(self) -> str:
        if self.route == ImageGenRoute.NATIVE:
            return DEFAULT_IMAGE_PROMPT
        return DEFAULT_TASK_IMAGE_PROMPT

    async def process(self, inputs):
        prompt = inputs.compose_prompt(self.read_remarks) or self.default_prompt()
        logger.debug("NodeImageGen:%s route=%s model=%s size=%s ratio=%s",
                     self.node_id, self.route.value, self.model, self.image_size, self.aspect_ratio)

        artifact, status_msg = await self.routes[self.route](prompt, inputs.image_urls)

        self.materialize(ResultPayload(kind=HANDLE_IMAGE, url=artifact.url, medium_url=artifact.display_url))
        return {
            'url': artifact.url,
            'medium_url': artifact.display_url,
            'progress': 100,
            'status_msg': status_msg,
        }

    async def generate_native(self, prompt, urls):
        images = await self.inline_images(urls)
        data_uri = await self.service('native_image').generate(prompt, self.aspect_ratio, self.image_size, images)
        return await self.rehost(data_uri), 'Success'

    async def generate_comfly_task(self, prompt, urls):
        comfly = self.service('comfly')
        _, model = split_model(self.model)
        self.status('Queueing Task...')
        result = await self.runner(self.context.config.comfly_image_poll_interval).run(
            submit=lambda: comfly.submit_draw_task(model, prompt, self.aspect_ratio, self.image_size, urls),
            poll=comfly.poll_image_task,
        )
        return await self.rehost_result(result.result_url), 'Done'

    async def generate_comfly_sync(self, prompt, urls):
        _, model = split_model(self.model)
        url = await self.service('comfly').draw(model, prompt, self.aspect_ratio, self.image_size, urls)
        return await self.rehost_result(url), 'Done'

    async def generate_grsai_task(self, prompt, urls):
        grsai = self.service('grsai')
        result = await self.runner(self.context.config.grsai_poll_interval).run(
            submit=lambda: grsai.submit_draw(self.model, prompt, self.aspect_ratio, self.image_size, urls),
            poll=lambda task_id: grsai.poll(task_id, failed_message='Violated/Failed'),
        )
        return await self.rehost_result(result.result_url), 'Done'

    async def rehost_result(self, url):
        if not url:
            raise OperationFailed("no result URL in success response")
        self.status('Uploading Result...')
        return await self.rehost(url)

import abc
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from node_lab.execution.context import ExecutionContext
from node_lab.execution.input_resolver import InputBundle, resolve_inputs
from node_lab.execution.materializer import ResultPayload
from node_lab.execution.operation_runner import OperationRunner
from node_lab.models.factory.Nodes import BaseNodeModel
from node_lab.services.base import Artifact, InlineImage
from node_lab.util.errors import ProviderError
from node_lab.util.telemetry import lab_telemetry

logger = logging.getLogger(__name__)


class Node(abc.ABC):
    """
    Base class of the node type handlers.

    A handler is created per run. ``__call__`` drives the lifecycle:
    running -> process(inputs) -> success. Errors propagate to the
    executor, which marks the node as failed.
    """

    def __init__(self,
                 node: BaseNodeModel,
                 context: ExecutionContext,
                 debug: bool = False,
                 **kwargs):
        self.node = node
        self.node_id = node.id
        self.context = context
        self.debug = debug or context.config.debug
        self.started_at: Optional[float] = None
        self.produced: List[str] = []

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # Automatically decorate the `process` method of the subclass
        if 'process' in cls.__dict__:
            cls.process = lab_telemetry(cls.process)

    async def __call__(self) -> Dict[str, Any]:
        self.start()
        inputs = resolve_inputs(self.context.state.snapshot(), self.node_id)
        updates = await self.process(inputs) or {}
        self.finish('success', **updates)
        return updates

    @abc.abstractmethod
    async def process(self, inputs: InputBundle) -> Optional[Dict[str, Any]]:
        """Run the node; return the data fields written on success."""

    def get_debug(self):
        return self.debug

    # Lifecycle

    def start(self) -> None:
        self.started_at = self.context.clock()
        self.update(status='running', progress=0, status_msg='Running...', start_time=self.started_at, duration=None)

    def finish(self, status: str, **changes) -> None:
        duration = None
        if self.started_at is not None:
            duration = round(self.context.clock() - self.started_at, 1)
        self.update(status=status, duration=duration, **changes)

    def update(self, **changes) -> None:
        self.context.state.update_node_data(self.node_id, **changes)

    def status(self, message: str) -> None:
        self.update(status_msg=message)

    def report(self, progress: int, message: str) -> None:
        self.update(progress=progress, status_msg=message)

    # Helpers shared by the handlers

    @property
    def settings(self):
        return self.context.settings

    @property
    def services(self):
        return self.context.services

    @property
    def aspect_ratio(self) -> str:
        return self.node.data.aspect_ratio or self.settings.aspect_ratio

    def current(self) -> BaseNodeModel:
        """The node as it is now; results are placed next to its latest position."""
        return self.context.state.get_node(self.node_id) or self.node

    def service(self, name: str):
        service = getattr(self.services, name, None)
        if service is None:
            raise ProviderError(f"No '{name}' service configured")
        return service

    def runner(self, interval: float) -> OperationRunner:
        return OperationRunner(
            interval=interval,
            report=self.report,
            sleep=self.context.sleep,
            max_attempts=self.context.config.max_poll_attempts,
            label=f"{self.__class__.__name__}:{self.node_id}",
        )

    async def inline_images(self, urls: Sequence[str]) -> List[InlineImage]:
        if not urls:
            return []
        self.status('Processing Media...')
        codec = self.service('codec')
        return list(await asyncio.gather(*(codec.fetch_inline(url) for url in urls)))

    async def rehost(self, source: Union[bytes, str], name: Optional[str] = None) -> Artifact:
        """Upload an image (bytes, data URI or remote URL) to the artifact store."""
        store = self.service('artifacts')
        if isinstance(source, str) and not source.startswith('data:'):
            source = await self.service('codec').fetch(source)
        return await store.upload(source, name)

    def materialize(self, payload: ResultPayload, index: int = 0, count: int = 1):
        result = self.context.materializer.materialize(self.current(), payload, index, count)
        if result is not None:
            self.produced.append(result.id)
        return result

    def materialize_many(self, payloads: Sequence[ResultPayload]):
        results = self.context.materializer.materialize_many(self.current(), payloads)
        self.produced.extend(r.id for r in results)
        return results

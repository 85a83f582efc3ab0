"""
NodeExecutor - Runs node handlers inside an isolated failure boundary.

Each node run is one asyncio task. A batch ("run selected") starts all
tasks before awaiting any of them, so their provider calls and poll
waits interleave on the event loop. A failing node is marked as error
and never affects its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from node_lab.execution.context import ExecutionContext
from node_lab.models.factory.Nodes import BaseNodeModel

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[BaseNodeModel, ExecutionContext], Any]


class ExecutionState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"    # node type has no execution behaviour


@dataclass
class NodeExecution:
    """Outcome of one node run."""
    node_id: str
    node_type: Optional[str] = None
    state: ExecutionState = ExecutionState.PENDING
    produced: List[str] = field(default_factory=list)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state in (ExecutionState.COMPLETED, ExecutionState.SKIPPED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'node_id': self.node_id,
            'node_type': self.node_type,
            'state': self.state.value,
            'produced': list(self.produced),
            'error_type': self.error_type,
            'error_message': self.error_message,
        }


class NodeExecutor:
    """
    Args:
        context: Shared state, services and configuration
        factory: Builds the handler of a node; returns None for node types
            that are not executable
    """

    def __init__(self, context: ExecutionContext, factory: HandlerFactory):
        self.context = context
        self.factory = factory
        self.tasks: Dict[str, asyncio.Task] = {}

    async def execute_node(self, node_id: str) -> NodeExecution:
        record = NodeExecution(node_id=node_id)
        node = self.context.state.get_node(node_id)
        if node is None:
            logger.error("execute_node: unknown node %s", node_id)
            record.state = ExecutionState.ERROR
            record.error_type = "GraphError"
            record.error_message = f"Unknown node: {node_id}"
            return record
        record.node_type = node.type

        try:
            handler = self.factory(node, self.context)
        except Exception as e:
            message = self._fail(record, node, e)
            self.context.state.update_node_data(node_id, status='error', progress=0, status_msg=message)
            return record
        if handler is None:
            logger.debug("execute_node: %s (%s) has nothing to execute", node_id, node.type)
            record.state = ExecutionState.SKIPPED
            return record

        record.state = ExecutionState.RUNNING
        try:
            await handler()
            record.state = ExecutionState.COMPLETED
        except Exception as e:
            message = self._fail(record, node, e)
            handler.finish('error', status_msg=message)
        record.produced = list(handler.produced)
        return record

    def _fail(self, record: NodeExecution, node: BaseNodeModel, error: Exception) -> str:
        message = str(error) or type(error).__name__
        logger.error("Node %s (%s) failed: %s: %s", node.id, node.type, type(error).__name__, message)
        if self.context.config.debug:
            logger.debug("Node %s traceback", node.id, exc_info=True)
        record.state = ExecutionState.ERROR
        record.error_type = type(error).__name__
        record.error_message = message
        return message

    def start_node(self, node_id: str) -> asyncio.Task:
        """Schedule a node run without awaiting it."""
        task = asyncio.create_task(self.execute_node(node_id), name=f"node-{node_id}")
        self.tasks[node_id] = task
        task.add_done_callback(lambda t, nid=node_id: self._forget(nid, t))
        return task

    async def run_nodes(self, node_ids: Iterable[str]) -> List[NodeExecution]:
        """Start every node at once, then wait for all of them."""
        node_ids = list(node_ids)
        logger.info("Running %d node(s) concurrently", len(node_ids))
        tasks = [self.start_node(node_id) for node_id in node_ids]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        executions = []
        for node_id, result in zip(node_ids, results):
            if isinstance(result, BaseException):
                logger.error("Node %s task ended abnormally: %s", node_id, result)
                executions.append(NodeExecution(
                    node_id=node_id,
                    state=ExecutionState.ERROR,
                    error_type=type(result).__name__,
                    error_message=str(result),
                ))
            else:
                executions.append(result)

        failed = sum(1 for e in executions if e.state == ExecutionState.ERROR)
        logger.info("Run finished: %d completed, %d failed", len(executions) - failed, failed)
        return executions

    def _forget(self, node_id: str, task: asyncio.Task) -> None:
        if self.tasks.get(node_id) is task:
            del self.tasks[node_id]

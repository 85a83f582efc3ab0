"""
Node Lab Flow Module

Entry points for loading a graph snapshot and running its nodes.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from node_lab.execution import (
    ExecutionConfig,
    ExecutionContext,
    GraphState,
    NodeExecution,
    NodeExecutor,
)
from node_lab.models.factory.Nodes import BaseNodeModel, ModelLabNodeTypesModel
from node_lab.models.model_settings import LabSettings
from node_lab.node_system import (
    Node,
    NodeExpert,
    NodeImageGen,
    NodeImageSplit,
    NodePromptMerge,
    NodeVideoGen,
)
from node_lab.services import LabServices
from node_lab.util.graph_validator import GraphValidator

logger = logging.getLogger(__name__)

# Mapping of node types to handler constructors; missing types only hold data
NODE_MAP = {
    ModelLabNodeTypesModel.AI_EXPERT: NodeExpert,
    ModelLabNodeTypesModel.EXPERT_OPTIMIZER: NodeExpert,
    ModelLabNodeTypesModel.EXPERT_STORYBOARD: NodeExpert,
    ModelLabNodeTypesModel.EXPERT_ACTION: NodeExpert,
    ModelLabNodeTypesModel.EXPERT_CHARACTER: NodeExpert,
    ModelLabNodeTypesModel.EXPERT_ENVIRONMENT: NodeExpert,
    ModelLabNodeTypesModel.IMAGE_GEN: NodeImageGen,
    ModelLabNodeTypesModel.VIDEO_GEN: NodeVideoGen,
    ModelLabNodeTypesModel.IMAGE_SPLIT: NodeImageSplit,
    ModelLabNodeTypesModel.PROMPT_MERGE: NodePromptMerge,
}


def create_node(node: BaseNodeModel, context: ExecutionContext, debug: bool = False) -> Optional[Node]:
    """
    Factory method to create the handler of a node.

    Args:
        node: Typed node from the graph.
        context: Execution context shared by the run.
        debug: Debug mode. Defaults to False.

    Returns:
        Handler instance, or None for input, result and processed-image nodes.
    """
    constructor = NODE_MAP.get(node.type)
    if constructor is None:
        logger.debug("create_node: %s (%s) is not executable", node.id, node.type)
        return None
    logger.debug("Creating handler %s for node %s", constructor.__name__, node.id)
    return constructor(node, context=context, debug=debug)


def validate_graph(state: GraphState) -> Dict[str, Any]:
    """
    Validate the graph structure.

    Returns:
        dict: Validation result with 'valid' (bool), 'errors' and 'warnings' keys.
    """
    issues = GraphValidator.validate(state.nodes, state.edges)
    errors = [i for i in issues if i['severity'] == 'error']
    warnings = [i for i in issues if i['severity'] == 'warning']
    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


def build(graph_data: Dict[str, Any]) -> GraphState:
    """
    Load a graph snapshot.

    Args:
        graph_data: Either flat {'nodes': [...], 'edges': [...], 'viewport': ...}
            or nested {'content': {'nodes': [...], 'edges': [...]}, ...}

    Returns:
        GraphState

    Raises:
        GraphError: If the snapshot does not validate.
    """
    # Normalize data structure - handle nested 'content' wrapper
    if 'content' in graph_data and isinstance(graph_data['content'], dict):
        content = graph_data['content']
        graph_data = {
            'nodes': content.get('nodes', []),
            'edges': content.get('edges', []),
            'viewport': content.get('viewport', graph_data.get('viewport')),
        }

    state = GraphState.from_dict(graph_data)
    result = validate_graph(state)
    if not result['valid']:
        logger.error("Graph validation failed with %d error(s)", len(result['errors']))
    logger.info("Loaded graph with %d node(s) and %d edge(s)", len(state.nodes), len(state.edges))
    return state


def create_executor(state: GraphState,
                    services: Optional[LabServices] = None,
                    settings: Optional[Union[LabSettings, Dict[str, Any]]] = None,
                    config: Optional[Union[ExecutionConfig, Dict[str, Any]]] = None,
                    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                    clock: Callable[[], float] = time.time) -> NodeExecutor:
    """
    Wire an executor for ``state``. Without ``services`` the real provider
    clients are built from ``settings``.
    """
    if not isinstance(settings, LabSettings):
        settings = LabSettings.model_validate(settings or {})
    if not isinstance(config, ExecutionConfig):
        config = ExecutionConfig.from_dict(config)
    if services is None:
        services = LabServices.from_settings(settings)

    context = ExecutionContext(
        state=state,
        services=services,
        settings=settings,
        config=config,
        sleep=sleep,
        clock=clock,
    )
    return NodeExecutor(context, lambda node, ctx: create_node(node, ctx, debug=config.debug))


async def run_node(executor: NodeExecutor, node_id: str) -> NodeExecution:
    """Run one node. Failures are recorded on the node, never raised."""
    return await executor.execute_node(node_id)


async def run_selected(executor: NodeExecutor, node_ids: Iterable[str]) -> List[NodeExecution]:
    """Run several nodes concurrently; each one succeeds or fails on its own."""
    return await executor.run_nodes(node_ids)

"""
Execution engine for node-lab graphs.

Architecture:
- GraphState: Owns nodes and edges; every write replaces whole collections
- resolve_inputs: One-hop aggregation of a node's incoming edges
- OperationRunner: Submit/poll state machine for provider operations
- ResultMaterializer: Appends result nodes and edges after a run
- NodeExecutor: Per-node failure boundary and concurrent batch runs
"""

from node_lab.execution.config import ExecutionConfig, get_preset
from node_lab.execution.graph_state import GraphSnapshot, GraphState
from node_lab.execution.input_resolver import InputBundle, ResolvedImage, resolve_inputs
from node_lab.execution.operation_runner import OperationRunner, OperationState
from node_lab.execution.materializer import ResultMaterializer, ResultPayload
from node_lab.execution.context import ExecutionContext
from node_lab.execution.executor import ExecutionState, NodeExecution, NodeExecutor

__all__ = [
    "ExecutionConfig",
    "get_preset",
    "GraphSnapshot",
    "GraphState",
    "InputBundle",
    "ResolvedImage",
    "resolve_inputs",
    "OperationRunner",
    "OperationState",
    "ResultMaterializer",
    "ResultPayload",
    "ExecutionContext",
    "ExecutionState",
    "NodeExecution",
    "NodeExecutor",
]

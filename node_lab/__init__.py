from node_lab.lab_flow import build, create_executor, create_node, run_node, run_selected, validate_graph

__all__ = [
    "build",
    "create_executor",
    "create_node",
    "run_node",
    "run_selected",
    "validate_graph",
]

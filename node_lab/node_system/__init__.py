from node_lab.node_system.Node import Node
from node_lab.node_system.NodeExpert import NodeExpert
from node_lab.node_system.NodeImageGen import NodeImageGen
from node_lab.node_system.NodeImageSplit import NodeImageSplit, cell_boxes, parse_cell_selection
from node_lab.node_system.NodePromptMerge import NodePromptMerge, pad_shots
from node_lab.node_system.NodeVideoGen import NodeVideoGen, video_frames, video_mode_message

__all__ = [
    "Node",
    "NodeExpert",
    "NodeImageGen",
    "NodeImageSplit",
    "NodePromptMerge",
    "NodeVideoGen",
    "cell_boxes",
    "parse_cell_selection",
    "pad_shots",
    "video_frames",
    "video_mode_message",
]

"""
Input resolution - computes a node's aggregated inputs from its incoming edges.

Resolution is one hop: only the direct predecessors' current data is read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from node_lab.execution.graph_state import GraphSnapshot
from node_lab.util.const import HANDLE_ANCHOR, HANDLE_IMAGE, HANDLE_SEQUENCE, TEXT_TARGET_HANDLES
from node_lab.util.prompts import render_remarks_prompt

logger = logging.getLogger(__name__)


@dataclass
class ResolvedImage:
    url: str
    remark: Optional[str] = None


@dataclass
class InputBundle:
    """
    Inputs of one node.

    Attributes:
        texts: Source contents of text-like edges, in edge-collection order
        images: Source images of 'image' edges, ranked by edge order
        anchor: Content (or label) of the first 'anchor' source, if any
        sequence: Contents (or labels) of 'sequence' sources, ranked by edge order
    """
    texts: List[str] = field(default_factory=list)
    images: List[ResolvedImage] = field(default_factory=list)
    anchor: Optional[str] = None
    sequence: List[str] = field(default_factory=list)

    @property
    def image_urls(self) -> List[str]:
        return [image.url for image in self.images]

    @property
    def remarks(self) -> List[Optional[str]]:
        """Remarks aligned with ``images``; None where the source has none."""
        return [image.remark for image in self.images]

    @property
    def prompt(self) -> str:
        return '\n\n'.join(self.texts)

    def compose_prompt(self, read_remarks: bool = False) -> str:
        """The joined prompt, prefixed with the image remarks when requested and present."""
        if read_remarks and any(self.remarks):
            return render_remarks_prompt(self.prompt, self.images)
        return self.prompt

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _ranked(edges):
    # sorted() is stable: equal ranks keep edge-collection order
    return sorted(edges, key=lambda e: e.rank)


def resolve_inputs(snapshot: GraphSnapshot, target_id: str) -> InputBundle:
    """
    Resolve the input bundle of ``target_id`` from ``snapshot``.

    Args:
        snapshot: Graph snapshot to read; it is never modified
        target_id: Node whose inputs are resolved

    Returns:
        InputBundle
    """
    incoming = snapshot.incoming(target_id)
    bundle = InputBundle()

    for edge in incoming:
        if edge.targetHandle not in TEXT_TARGET_HANDLES:
            continue
        source = snapshot.get_node(edge.source)
        if source is not None and source.data.content:
            bundle.texts.append(source.data.content)

    for edge in _ranked(e for e in incoming if e.targetHandle == HANDLE_IMAGE):
        source = snapshot.get_node(edge.source)
        if source is not None and source.data.url:
            bundle.images.append(ResolvedImage(url=source.data.url, remark=source.data.remark or None))

    anchor_edge = next((e for e in incoming if e.targetHandle == HANDLE_ANCHOR), None)
    if anchor_edge is not None:
        source = snapshot.get_node(anchor_edge.source)
        if source is not None:
            bundle.anchor = source.data.content or source.data.label or None

    for edge in _ranked(e for e in incoming if e.targetHandle == HANDLE_SEQUENCE):
        source = snapshot.get_node(edge.source)
        if source is None:
            continue
        text = source.data.content or source.data.label
        if text:
            bundle.sequence.append(text)

    logger.debug(
        "Resolved inputs for %s: texts=%d images=%d anchor=%s sequence=%d",
        target_id, len(bundle.texts), len(bundle.images), bundle.anchor is not None, len(bundle.sequence)
    )
    return bundle

"""
Execution context shared by every node handler of one executor.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from node_lab.execution.config import ExecutionConfig
from node_lab.execution.graph_state import GraphState
from node_lab.execution.materializer import ResultMaterializer
from node_lab.models.model_settings import LabSettings
from node_lab.services import LabServices


@dataclass
class ExecutionContext:
    """
    Attributes:
        state: Graph the handlers read and write
        services: External collaborators
        settings: Global defaults and credentials
        config: Timing, layout and limits
        materializer: Writes result nodes; built from ``state`` and ``config`` when omitted
        sleep: Coroutine used between polls
        clock: Seconds clock used for start timestamps and durations
    """
    state: GraphState
    services: LabServices = field(default_factory=LabServices)
    settings: LabSettings = field(default_factory=LabSettings)
    config: ExecutionConfig = field(default_factory=ExecutionConfig)
    materializer: Optional[ResultMaterializer] = None
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    clock: Callable[[], float] = time.time

    def __post_init__(self):
        if self.materializer is None:
            self.materializer = ResultMaterializer(
                self.state,
                offset_x=self.config.result_offset_x,
                spacing_y=self.config.result_spacing_y,
            )

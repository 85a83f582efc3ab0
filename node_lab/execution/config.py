"""
Execution Configuration.

Timing, layout and limits used by the executor, the node handlers and
the operation runner.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional


@dataclass
class ExecutionConfig:
    """
    Configuration for node execution.

    Attributes:
        grsai_poll_interval: Seconds between GRSAI task polls
        comfly_image_poll_interval: Seconds between Comfly image task polls
        comfly_video_poll_interval: Seconds between Comfly video task polls
        max_poll_attempts: Poll cap per operation; None polls until the provider answers
        result_offset_x: Horizontal distance of result nodes from their source
        result_spacing_y: Vertical pitch between sibling result nodes
        max_expert_outputs: Maximum result nodes created by one expert run
        debug: Log redacted handler inputs and produced nodes
    """

    grsai_poll_interval: float = 3.0
    comfly_image_poll_interval: float = 3.0
    comfly_video_poll_interval: float = 4.0
    max_poll_attempts: Optional[int] = None

    result_offset_x: float = 400
    result_spacing_y: float = 220

    max_expert_outputs: int = 16

    debug: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ExecutionConfig":
        """
        Create an ExecutionConfig from a dictionary (e.g., from JSON).

        A ``preset`` key selects the starting point; every other known key
        overrides it. Unknown keys are ignored.

        Args:
            data: Dictionary with configuration values

        Returns:
            ExecutionConfig instance
        """
        if not data:
            return cls()

        data = dict(data)
        preset_name = data.pop("preset", None)
        base_config = get_preset(preset_name) if preset_name else cls()

        known = {f.name for f in fields(cls)}
        overrides = {k: v for k, v in data.items() if k in known}
        return replace(base_config, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def default_config() -> ExecutionConfig:
    return ExecutionConfig()


def fast_config() -> ExecutionConfig:
    """No waiting between polls and a bounded poll count; meant for tests and dry runs."""
    return ExecutionConfig(
        grsai_poll_interval=0,
        comfly_image_poll_interval=0,
        comfly_video_poll_interval=0,
        max_poll_attempts=50,
    )


def debug_config() -> ExecutionConfig:
    return ExecutionConfig(debug=True)


PRESETS = {
    "default": default_config,
    "fast": fast_config,
    "debug": debug_config,
}


def get_preset(name: str) -> ExecutionConfig:
    """
    Get a preset configuration by name.

    Raises:
        ValueError: If preset name is not recognized
    """
    if name not in PRESETS:
        raise ValueError(f"Unknown preset: {name}. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()

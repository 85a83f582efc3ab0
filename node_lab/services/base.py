"""
Service contracts consumed by the node handlers.

Concrete transports live beside this module; tests substitute in-memory fakes.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class InlineImage:
    """Base64 image data with its mime type."""
    data: str
    mime_type: str = "image/png"

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str = "image/png") -> "InlineImage":
        return cls(base64.b64encode(raw).decode("ascii"), mime_type)

    @classmethod
    def from_data_uri(cls, uri: str) -> "InlineImage":
        header, _, data = uri.partition(",")
        mime_type = header[len("data:"):].split(";")[0] or "image/png"
        return cls(data, mime_type)


@dataclass
class Artifact:
    url: str
    display_url: Optional[str] = None


class ExpertOutput(BaseModel):
    title: str = ""
    prompt: str = ""


class ExpertResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_summary: str = Field(default="", alias="displaySummary")
    outputs: List[ExpertOutput] = Field(default_factory=list)


_PERCENT = re.compile(r'-?\d+(?:\.\d+)?')


def parse_progress(value: Any) -> int:
    """Parse provider progress (45, 45.5, '45%', '45.5 %') into an int clamped to 0-100."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _PERCENT.search(str(value))
        if not match:
            return 0
        number = float(match.group())
    return max(0, min(100, int(number)))


class PollStatus(Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PollResult:
    """Provider poll answer normalized for the OperationRunner."""
    status: PollStatus = PollStatus.RUNNING
    progress: int = 0
    result_url: Optional[str] = None
    failure_reason: Optional[str] = None
    status_text: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class TextGenerationService(Protocol):
    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        images: Optional[List[InlineImage]] = None,
    ) -> ExpertResult: ...


@runtime_checkable
class NativeImageService(Protocol):
    async def generate(
        self,
        prompt: str,
        aspect_ratio: str,
        image_size: str = "1K",
        images: Optional[List[InlineImage]] = None,
    ) -> str:
        """Return the generated image as a data URI."""
        ...


@runtime_checkable
class ArtifactStore(Protocol):
    async def upload(self, source: Union[bytes, str], name: Optional[str] = None) -> Artifact: ...


@runtime_checkable
class ImageCodec(Protocol):
    async def fetch(self, url: str) -> bytes: ...

    async def fetch_inline(self, url: str) -> InlineImage: ...

    async def load(self, url: str) -> Any: ...

    def crop(self, raster: Any, box: tuple[int, int, int, int]) -> Any: ...

    def encode_png(self, raster: Any) -> bytes: ...

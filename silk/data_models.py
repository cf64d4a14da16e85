# silk/data_models.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from silk.errors import SilkError


class File(BaseModel):
    """One source file offered to the model as context.

    ``content`` is None for metadata-only entries (gathered for stats and
    limit checks before anything is read from disk).
    """
    path: str
    content: Optional[str] = None
    size: int = Field(default=0, ge=0)
    model_config = ConfigDict(extra='ignore', frozen=True)

    @property
    def is_resolved(self) -> bool:
        return self.content is not None

    def with_content(self, content: str) -> "File":
        return File(path=self.path, content=content, size=len(content.encode("utf-8")))


class PendingInvocation(BaseModel):
    tool_name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    # (start, end) offsets of the whole directive in the reassembled stream
    source_span: Tuple[int, int]
    index: int
    model_config = ConfigDict(extra='ignore', frozen=True)


class DirectivePayload(BaseModel):
    """Decoded body of a ``<TOOL>...</TOOL>`` directive."""
    name: str = Field(min_length=1)
    args: Dict[str, Any] = Field(default_factory=dict)
    model_config = ConfigDict(extra='ignore', frozen=True)


@dataclass(frozen=True)
class InvocationOutcome:
    invocation: PendingInvocation
    result: Optional[str] = None
    error: Optional[SilkError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProcessorEventType(Enum):
    TEXT = "text"
    INVOCATION_QUEUED = "invocation_queued"
    PARSE_ERROR = "parse_error"
    INVOCATION_STARTED = "invocation_started"
    INVOCATION_SETTLED = "invocation_settled"


@dataclass(frozen=True)
class ProcessorEvent:
    type: ProcessorEventType
    text: str = ""
    invocation: Optional[PendingInvocation] = None
    outcome: Optional[InvocationOutcome] = None
    error: Optional[SilkError] = None


# Argument models for the basic tools. Their JSON schema is what the model sees.

class WriteFileArgs(BaseModel):
    path: str = Field(description="Path of the file to create or overwrite, relative to the output directory")
    content: str = Field(description="Full content to write to the file")
    model_config = ConfigDict(extra='forbid', frozen=True)


class EditFileArgs(BaseModel):
    path: str = Field(description="Path of the file to edit")
    original_snippet: str = Field(description="Exact text to find; must occur exactly once")
    new_snippet: str = Field(description="Replacement text")
    model_config = ConfigDict(extra='forbid', frozen=True)


class ReadFileArgs(BaseModel):
    path: str = Field(description="Path of the file to read")
    model_config = ConfigDict(extra='forbid', frozen=True)


class FetchUrlArgs(BaseModel):
    url: str = Field(description="HTTP or HTTPS URL to fetch")
    max_chars: int = Field(default=10000, gt=0, description="Truncate the body after this many characters")
    model_config = ConfigDict(extra='forbid', frozen=True)

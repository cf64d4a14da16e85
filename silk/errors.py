# silk/errors.py
from typing import Optional


class SilkError(Exception):
    """Base class for all errors raised by silk."""


class ParseError(SilkError):
    """A directive span could not be decoded into a tool name and arguments."""

    def __init__(self, message: str, raw_span: str = ""):
        super().__init__(message)
        self.raw_span = raw_span


class UnknownToolError(SilkError):
    """An invocation names a tool that is not registered for the task."""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: '{tool_name}'")
        self.tool_name = tool_name


class HandlerError(SilkError):
    """A tool handler failed, timed out, or got arguments that violate its schema."""

    def __init__(self, tool_name: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name
        self.cause = cause


class TransportError(SilkError):
    """The model stream could not be opened or read. Fatal to the current task only."""


class DuplicateToolError(SilkError, ValueError):
    def __init__(self, tool_name: str):
        super().__init__(f"Duplicate tool name: '{tool_name}'")
        self.tool_name = tool_name


class LimitExceededError(SilkError):
    """Context gathering exceeded a configured size limit."""


class PromptFileError(SilkError):
    pass

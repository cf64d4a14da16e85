# silk/tool_defs.py
import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Type

import httpx
from pydantic import BaseModel, ConfigDict

from silk.data_models import EditFileArgs, FetchUrlArgs, ReadFileArgs, WriteFileArgs
from silk.errors import DuplicateToolError
from silk.file_utils import apply_diff_edit, create_file, normalize_path, read_local_file


@dataclass
class ToolContext:
    """Passed to every handler alongside its validated arguments."""
    root: Path = field(default_factory=Path.cwd)
    max_file_size: int = 5_000_000
    extra: Dict[str, Any] = field(default_factory=dict)


ToolHandler = Callable[[BaseModel, ToolContext], Awaitable[str]]


class ToolDescriptor(BaseModel):
    name: str
    description: str
    args_model: Type[BaseModel]
    handler: ToolHandler
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def parameters_schema(self) -> Dict[str, Any]:
        return self.args_model.model_json_schema()

    def to_schema(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }


def build_tool_registry(tools: Iterable[ToolDescriptor]) -> Mapping[str, ToolDescriptor]:
    """Builds the read-only name -> descriptor mapping. Order is kept; duplicates are rejected."""
    registry: Dict[str, ToolDescriptor] = {}
    for tool in tools:
        if tool.name in registry:
            raise DuplicateToolError(tool.name)
        registry[tool.name] = tool
    return MappingProxyType(registry)


def create_basic_tools(output: Optional[str] = None) -> List[ToolDescriptor]:
    """File and network tools offered to the model by default.

    Files are written and edited under `output` (relative to the context root)
    when given, otherwise under the root itself.
    """

    def _base(ctx: ToolContext) -> Path:
        return ctx.root / output if output else ctx.root

    async def write_file(args: WriteFileArgs, ctx: ToolContext) -> str:
        written = await asyncio.to_thread(create_file, args.path, args.content, ctx.max_file_size, _base(ctx))
        return f"Successfully created file '{written}'"

    async def edit_file(args: EditFileArgs, ctx: ToolContext) -> str:
        edited = await asyncio.to_thread(
            apply_diff_edit, args.path, args.original_snippet, args.new_snippet, ctx.max_file_size, _base(ctx)
        )
        return f"Successfully edited file '{edited}'"

    async def read_file(args: ReadFileArgs, ctx: ToolContext) -> str:
        normalized_path = normalize_path(args.path, ctx.root)
        content = await asyncio.to_thread(read_local_file, normalized_path)
        return f"Content of file '{normalized_path}':\n\n{content}"

    async def fetch_url(args: FetchUrlArgs, ctx: ToolContext) -> str:
        parsed_url = httpx.URL(args.url)
        if parsed_url.scheme.lower() not in ("http", "https"):
            raise ValueError(f"fetch_url only supports HTTP/HTTPS URLs. Provided: {args.url}")
        async with httpx.AsyncClient(timeout=30, follow_redirects=True) as client:
            response = await client.get(args.url)
            response.raise_for_status()
        body = response.text
        if len(body) > args.max_chars:
            body = body[:args.max_chars] + f"\n... [truncated after {args.max_chars} chars]"
        return f"Response from '{args.url}' (HTTP {response.status_code}):\n\n{body}"

    return [
        ToolDescriptor(
            name="write_file",
            description="Create a new file or overwrite an existing file with the provided content",
            args_model=WriteFileArgs,
            handler=write_file,
        ),
        ToolDescriptor(
            name="edit_file",
            description="Edit an existing file by replacing a specific snippet with new content",
            args_model=EditFileArgs,
            handler=edit_file,
        ),
        ToolDescriptor(
            name="read_file",
            description="Read the content of a single file from the project",
            args_model=ReadFileArgs,
            handler=read_file,
        ),
        ToolDescriptor(
            name="fetch_url",
            description="Fetch a web page or API endpoint over HTTP(S) and return its body",
            args_model=FetchUrlArgs,
            handler=fetch_url,
        ),
    ]


def describe_tools(registry: Mapping[str, ToolDescriptor]) -> str:
    """Serializes the registry for the system prompt. Deterministic for a given registry."""
    return json.dumps([tool.to_schema() for tool in registry.values()], indent=2, sort_keys=True)

# silk/llm_interaction.py
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

from litellm import acompletion
from rich.console import Console
from rich.json import JSON as RichJSON

from silk.config_utils import get_config_value
from silk.errors import TransportError
from silk.task import Task
from silk.tool_processor import ToolProcessor

logger = logging.getLogger(__name__)

MAX_HISTORY_MESSAGES = 30


def trim_conversation_history(conversation_history: list, max_messages: int = MAX_HISTORY_MESSAGES):
    """
    Trims the conversation history if it exceeds a certain length,
    prioritizing system messages and recent non-system messages.
    """
    if len(conversation_history) <= max_messages:
        return

    system_msgs = [msg for msg in conversation_history if msg["role"] == "system"]
    other_msgs = [msg for msg in conversation_history if msg["role"] != "system"]
    other_msgs = other_msgs[-max_messages:]

    conversation_history.clear()
    conversation_history.extend(system_msgs + other_msgs)


def build_messages(task: Task, history: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    return [
        {"role": "system", "content": task.system_text()},
        *(history or []),
        {"role": "user", "content": task.user_text()},
    ]


def build_completion_params(messages: List[Dict[str, Any]], runtime_overrides: Dict[str, Any]) -> Dict[str, Any]:
    model_name = get_config_value("model", runtime_overrides)
    completion_params: Dict[str, Any] = {
        "model": model_name,
        "messages": messages,
        "max_tokens": get_config_value("max_tokens", runtime_overrides),
        "temperature": get_config_value("temperature", runtime_overrides),
        "stream": True,
    }
    api_base = get_config_value("api_base", runtime_overrides)
    if api_base:
        completion_params["api_base"] = api_base
    # LM Studio accepts any key but LiteLLM requires one.
    if model_name.startswith("lm_studio/"):
        completion_params["api_key"] = "dummy"
    return completion_params


async def litellm_stream(
    messages: List[Dict[str, Any]],
    runtime_overrides: Dict[str, Any],
    debug: bool = False,
) -> AsyncIterator[str]:
    """Opens a streaming completion and yields the text fragments of the answer."""
    completion_params = build_completion_params(messages, runtime_overrides)

    if debug:
        debug_params_log = {k: v for k, v in completion_params.items() if k != "messages"}
        debug_params_log["messages"] = f"{len(messages)} message(s), {len(json.dumps(messages))} chars"
        Console(stderr=True).print("[dim bold red]LLM DEBUG: Request Params:[/dim bold red]")
        Console(stderr=True).print(RichJSON(json.dumps(debug_params_log, default=str)))

    try:
        response = await acompletion(**completion_params)
    except Exception as e:
        raise TransportError(f"Could not open model stream ({completion_params['model']}): {e}") from e

    try:
        async for chunk in response:
            if not chunk.choices:
                continue
            content = getattr(chunk.choices[0].delta, "content", None)
            if content:
                yield content
    except Exception as e:
        raise TransportError(f"Model stream interrupted: {e}") from e


async def drive_stream(processor: ToolProcessor, chunks: AsyncIterable[str]) -> str:
    """
    Forwards each fragment to the processor, one at a time and in order, then
    finishes it. Returns the full response text.

    A failure while reading the stream is raised as TransportError after the
    processor has been finished, so buffered text is still shown.
    """
    parts: List[str] = []
    iterator = chunks.__aiter__()
    while True:
        try:
            chunk = await iterator.__anext__()
        except StopAsyncIteration:
            break
        except TransportError:
            processor.finish()
            raise
        except Exception as e:
            processor.finish()
            raise TransportError(f"Model stream failed: {e}") from e
        if not chunk:
            continue
        parts.append(chunk)
        processor.process(chunk)

    processor.finish()
    return "".join(parts)

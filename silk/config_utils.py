# silk/config_utils.py
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import toml
from dotenv import load_dotenv

DEFAULT_CONFIG_FILENAME = "config.toml"

# --- Ultimate Fallback Defaults ---
# These are used if config.toml is missing or a key is not found,
# and no environment variable or runtime override is set.
ULTIMATE_DEFAULTS: Dict[str, Any] = {
    "model": "ollama_chat/qwen2.5-coder:14b",
    "models": [],
    "api_base": None,
    "max_tokens": 8192,
    "temperature": 0.2,
    "include": [],
    "ignore": [],
    "root": None,
    "output": None,
    "max_file_size": 1_000_000,     # 1MB per context file
    "max_total_size": 5_000_000,    # 5MB for the whole context
    "max_concurrency": 0,           # 0 = unbounded fan-out
    "tool_timeout": 0,              # seconds, 0 = no timeout
    "raw": False,
    "stats": True,
}

# This dictionary will hold configurations loaded from config.toml
_CONFIG_FROM_TOML: Dict[str, Any] = {}
# Directory of the loaded config file; relative prompt files are also looked up there.
CONFIG_ROOT: Path = Path.cwd()

MAX_TOOL_FILE_SIZE_BYTES = 5_000_000  # 5MB, limit for files written by tools

# TOML section/key -> flat parameter name
_TOML_KEY_MAP = {
    ("project", "root"): "root",
    ("models", "default"): "model",
    ("models", "available"): "models",
    ("api", "base"): "api_base",
    ("context", "include"): "include",
    ("context", "ignore"): "ignore",
    ("limits", "max_file_size"): "max_file_size",
    ("limits", "max_total_size"): "max_total_size",
    ("tools", "output"): "output",
    ("tools", "max_concurrency"): "max_concurrency",
    ("tools", "timeout"): "tool_timeout",
    ("generation", "max_tokens"): "max_tokens",
    ("generation", "temperature"): "temperature",
    ("ui", "raw"): "raw",
    ("ui", "stats"): "stats",
}

_INT_PARAMS = {"max_tokens", "max_file_size", "max_total_size", "max_concurrency"}
_FLOAT_PARAMS = {"temperature", "tool_timeout"}
_BOOL_PARAMS = {"raw", "stats"}
_LIST_PARAMS = {"include", "ignore"}

SUPPORTED_SET_PARAMS = {
    "model": {
        "env_var": "SILK_MODEL",
        "description": "The LiteLLM model name used for requests (e.g., 'ollama_chat/qwen2.5-coder:14b', 'gpt-4o')."
    },
    "api_base": {
        "env_var": "SILK_API_BASE",
        "description": "API base URL passed to LiteLLM (leave unset for the provider default)."
    },
    "max_tokens": {
        "env_var": "SILK_MAX_TOKENS",
        "description": "Maximum number of tokens for the model response (e.g., 4096)."
    },
    "temperature": {
        "env_var": "SILK_TEMPERATURE",
        "description": "Controls the randomness of the response (0.0 to 2.0, lower is more deterministic)."
    },
    "include": {
        "env_var": "SILK_INCLUDE",
        "description": "Comma separated glob patterns selecting the context files (e.g., 'src/**/*.py,README.md')."
    },
    "output": {
        "env_var": "SILK_OUTPUT",
        "description": "Directory (relative to the project root) where tools write files."
    },
    "max_file_size": {
        "env_var": "SILK_MAX_FILE_SIZE",
        "description": "Largest single context file, in bytes."
    },
    "max_total_size": {
        "env_var": "SILK_MAX_TOTAL_SIZE",
        "description": "Largest total context size, in bytes."
    },
    "max_concurrency": {
        "env_var": "SILK_MAX_CONCURRENCY",
        "description": "Maximum number of tool invocations running at once (0 = unbounded)."
    },
    "tool_timeout": {
        "env_var": "SILK_TOOL_TIMEOUT",
        "description": "Per-invocation timeout in seconds (0 = none)."
    },
    "raw": {
        "env_var": "SILK_RAW",
        "allowed_values": ["true", "false"],
        "description": "Print the model output without styling."
    },
    "stats": {
        "env_var": "SILK_STATS",
        "allowed_values": ["true", "false"],
        "description": "Show context file statistics before each request."
    },
}


def _coerce(param_name: str, value: Any) -> Any:
    """Converts a raw string (env var, /set, CLI) to the parameter's type. Raises ValueError."""
    if value is None:
        return None
    if param_name in _INT_PARAMS:
        value = int(value)
        if value < 0 or (param_name == "max_tokens" and value == 0):
            raise ValueError(f"{param_name} must be a positive integer.")
        return value
    if param_name in _FLOAT_PARAMS:
        value = float(value)
        if param_name == "temperature" and not (0.0 <= value <= 2.0):
            raise ValueError("Temperature must be between 0.0 and 2.0.")
        if value < 0:
            raise ValueError(f"{param_name} must not be negative.")
        return value
    if param_name in _BOOL_PARAMS:
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"{param_name} must be true or false.")
    if param_name in _LIST_PARAMS:
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [part.strip() for part in str(value).split(",") if part.strip()]
    return value


def update_runtime_override(param_name: str, value: Any, runtime_overrides: Dict[str, Any], console_obj=None) -> bool:
    """
    Updates a runtime override for a given parameter.
    Validates against SUPPORTED_SET_PARAMS. Returns True when the override was stored.
    """
    param_name_lower = param_name.lower()
    if param_name_lower not in SUPPORTED_SET_PARAMS:
        if console_obj:
            console_obj.print(f"[red]Error: Unknown parameter '{param_name}'. Cannot set override.[/red]")
        return False

    allowed_values = SUPPORTED_SET_PARAMS[param_name_lower].get("allowed_values")
    if allowed_values and str(value).lower() not in allowed_values:
        if console_obj:
            console_obj.print(f"[red]Error: Invalid value '{value}' for {param_name_lower}. Allowed values: {', '.join(allowed_values)}[/red]")
        return False

    try:
        value = _coerce(param_name_lower, value)
    except ValueError as e:
        if console_obj:
            console_obj.print(f"[red]Error: Invalid value '{value}' for {param_name_lower}. {e}[/red]")
        return False

    runtime_overrides[param_name_lower] = value
    if console_obj:
        console_obj.print(f"[green]✓ Runtime override set: {param_name_lower} = {value}[/green]")
    return True


def remove_runtime_override(param_name: str, runtime_overrides: Dict[str, Any], console_obj=None):
    """Removes a runtime override."""
    if param_name.lower() in runtime_overrides:
        del runtime_overrides[param_name.lower()]
        if console_obj: console_obj.print(f"[yellow]✓ Runtime override removed for: {param_name.lower()}[/yellow]")
    elif console_obj: console_obj.print(f"[dim]No runtime override found for '{param_name.lower()}' to remove.[/dim]")


def list_runtime_overrides(runtime_overrides: Dict[str, Any], console_obj):
    """Lists current runtime overrides."""
    if not runtime_overrides:
        console_obj.print("[dim]No active runtime overrides.[/dim]")
        return
    console_obj.print("[bold blue]Active Runtime Overrides:[/bold blue]")
    for key, value in runtime_overrides.items():
        console_obj.print(f"  - {key}: {value}")


def load_configuration(console_obj=None, config_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """
    Loads .env into environment variables and config.toml into _CONFIG_FROM_TOML.
    Returns the path of the loaded TOML file, or None when there is none.
    """
    global CONFIG_ROOT
    load_dotenv()
    _CONFIG_FROM_TOML.clear()

    toml_config_path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_FILENAME)
    CONFIG_ROOT = toml_config_path.resolve().parent
    if not toml_config_path.exists():
        if config_path and console_obj:
            console_obj.print(f"[yellow]Warning: Config file '{toml_config_path}' not found. Using defaults and environment variables.[/yellow]")
        return None

    try:
        loaded_toml = toml.load(toml_config_path)
    except (toml.TomlDecodeError, OSError) as e:
        if console_obj:
            console_obj.print(f"[yellow]Warning: Could not parse {toml_config_path}: {e}. Using defaults and environment variables.[/yellow]")
        return None

    # Flatten the TOML structure, e.g. [models] default -> "model"
    for (section, key), param_name in _TOML_KEY_MAP.items():
        section_values = loaded_toml.get(section)
        if isinstance(section_values, dict) and key in section_values:
            _CONFIG_FROM_TOML[param_name] = section_values[key]
    return toml_config_path


def get_config_value(param_name: str, runtime_overrides: Dict[str, Any], console_obj=None) -> Any:
    """
    Retrieves a configuration value based on precedence:
    1. Runtime overrides
    2. Environment variables
    3. Values from config.toml (_CONFIG_FROM_TOML)
    4. Ultimate hardcoded defaults (ULTIMATE_DEFAULTS)
    """
    if param_name not in SUPPORTED_SET_PARAMS:
        if param_name not in ULTIMATE_DEFAULTS and console_obj:
            console_obj.print(f"[yellow]Warning: Attempted to get unknown config param '{param_name}'. Using default.[/yellow]")
        return _coerce(param_name, _CONFIG_FROM_TOML.get(param_name, ULTIMATE_DEFAULTS.get(param_name)))

    runtime_val = runtime_overrides.get(param_name)
    if runtime_val is not None:
        return runtime_val

    env_var_name = SUPPORTED_SET_PARAMS[param_name].get("env_var")
    env_val = os.getenv(env_var_name) if env_var_name else None
    if env_val is not None:
        try:
            return _coerce(param_name, env_val)
        except ValueError:
            if console_obj:
                console_obj.print(f"[yellow]Warning: Ignoring invalid value '{env_val}' in ${env_var_name}.[/yellow]")

    toml_val = _CONFIG_FROM_TOML.get(param_name)
    if toml_val is not None:
        try:
            return _coerce(param_name, toml_val)
        except ValueError:
            if console_obj:
                console_obj.print(f"[yellow]Warning: Ignoring invalid value '{toml_val}' for '{param_name}' in config file.[/yellow]")

    return ULTIMATE_DEFAULTS.get(param_name)


def get_available_models(runtime_overrides: Dict[str, Any]) -> List[str]:
    """Models offered by /model: the configured list, always including the current model."""
    models = list(_CONFIG_FROM_TOML.get("models") or [])
    current = get_config_value("model", runtime_overrides)
    if current and current not in models:
        models.insert(0, current)
    return models


def effective_configuration(runtime_overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Every supported parameter with its resolved value, in declaration order."""
    return {name: get_config_value(name, runtime_overrides) for name in SUPPORTED_SET_PARAMS}

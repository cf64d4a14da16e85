# silk/file_utils.py
import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

# MAX_FILE_SIZE_BYTES is resolved from config by the caller and passed in.


def normalize_path(path_str: str, base: Optional[Union[str, Path]] = None) -> str:
    """Return a canonical, absolute version of the path with security checks.

    Relative paths are resolved against `base` (default: CWD). When `base` is
    given the result must stay inside it.
    """
    try:
        if not path_str:
            raise ValueError("Path cannot be empty.")
        expanded_path = Path(path_str).expanduser()
        if ".." in expanded_path.parts:
            raise ValueError(f"Invalid path: {path_str} contains parent directory references")
        if base is not None and not expanded_path.is_absolute():
            expanded_path = Path(base) / expanded_path
        resolved_path = expanded_path.resolve()
        if base is not None:
            base_resolved = Path(base).resolve()
            if resolved_path != base_resolved and base_resolved not in resolved_path.parents:
                raise ValueError(f"Invalid path: {path_str} is outside of '{base_resolved}'")
        return str(resolved_path)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid path: \"{path_str}\". Error: {e}") from e
    except Exception as e:
        raise ValueError(f"Error normalizing path: \"{path_str}\". Details: {e}") from e


def is_binary_file(file_path: str, peek_size: int = 1024) -> bool:
    """Checks if a file is likely binary by looking for null bytes."""
    try:
        with open(file_path, 'rb') as f:
            chunk = f.read(peek_size)
        return b'\0' in chunk
    except OSError:
        return True  # Err on the side of caution


def read_local_file(file_path: str) -> str:
    """Return the text content of a local file.
    Raises FileNotFoundError or OSError on issues.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        return f.read()


def create_file(path: str, content: str, max_file_size_bytes: int, base: Optional[Union[str, Path]] = None) -> str:
    """Create (or overwrite) a file at 'path' with the given 'content'. Returns the absolute path."""
    if path.lstrip().startswith('~'):
        raise ValueError("Home directory references not allowed for create_file.")

    normalized_file_path_obj = Path(normalize_path(path, base))

    if len(content.encode("utf-8")) > max_file_size_bytes:
        raise ValueError(f"File content exceeds {max_file_size_bytes} bytes size limit")

    try:
        normalized_file_path_obj.parent.mkdir(parents=True, exist_ok=True)
        with open(normalized_file_path_obj, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise OSError(f"Failed to write file '{normalized_file_path_obj}': {e}") from e
    logger.info("Created/updated file at '%s'", normalized_file_path_obj)
    return str(normalized_file_path_obj)


def apply_diff_edit(path: str, original_snippet: str, new_snippet: str, max_file_size_bytes: int,
                    base: Optional[Union[str, Path]] = None) -> str:
    """Reads the file at 'path', replaces 'original_snippet' with 'new_snippet', then overwrites."""
    normalized_path_str = normalize_path(path, base)
    try:
        content = read_local_file(normalized_path_str)
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found for diff editing: '{normalized_path_str}'") from None

    occurrences = content.count(original_snippet) if original_snippet else 0
    if occurrences == 0:
        raise ValueError(f"Original snippet not found in '{normalized_path_str}'. No changes made.")
    if occurrences > 1:
        raise ValueError(f"Ambiguous edit: {occurrences} matches in '{normalized_path_str}'. No changes made.")

    updated_content = content.replace(original_snippet, new_snippet, 1)
    create_file(normalized_path_str, updated_content, max_file_size_bytes)
    logger.info("Applied diff edit to '%s'", normalized_path_str)
    return normalized_path_str

# silk/file_context_utils.py
import asyncio
import logging
import os
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pathspec
from rich.console import Console
from rich.table import Table

from silk.data_models import File
from silk.errors import LimitExceededError
from silk.file_utils import is_binary_file, read_local_file

logger = logging.getLogger(__name__)

DEFAULT_IGNORE = [
    "node_modules/**",
    "dist/**",
    "build/**",
    ".git/**",
    "coverage/**",
    "test/**",
    ".silk/**",
    "__pycache__/",
    ".venv/**",
    "venv/**",
    ".env",
    ".DS_Store",
    "yarn.lock",
    "package-lock.json",
    "npm-debug.log",
    "pnpm-lock.yaml",
    "uv.lock",
]


def load_gitignore(base: Path) -> Optional[pathspec.PathSpec]:
    """Loads the project root's .gitignore, if there is one."""
    gitignore_path = base / ".gitignore"
    if not gitignore_path.is_file():
        return None
    try:
        lines = gitignore_path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read %s: %s", gitignore_path, e)
        return None
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def build_ignore_spec(ignore: Sequence[str] = ()) -> pathspec.PathSpec:
    # Patterns containing a slash are anchored to the project root
    return pathspec.PathSpec.from_lines("gitwildmatch", [*DEFAULT_IGNORE, *ignore])


def gather_context_info(
    patterns: Union[str, Sequence[str], None],
    ignore: Sequence[str] = (),
    cwd: Optional[Union[str, Path]] = None,
) -> List[File]:
    """
    Expands the include globs into metadata-only File entries (no content).

    Files matched by an ignore pattern or by the project root's .gitignore are
    left out. Results are deduplicated and sorted by path so the system prompt
    is stable from one run to the next.
    """
    if not patterns:
        return []
    globs = [patterns] if isinstance(patterns, str) else list(patterns)
    base = Path(cwd) if cwd else Path.cwd()
    ignore_spec = build_ignore_spec([ignore] if isinstance(ignore, str) else ignore)
    gitignore_spec = load_gitignore(base)

    found: Dict[str, File] = {}
    for pattern in globs:
        if Path(pattern).is_absolute():
            logger.warning("Skipping absolute include pattern '%s'; patterns are relative to the project root", pattern)
            continue
        try:
            matches = list(base.glob(pattern))
        except (ValueError, OSError) as e:
            logger.warning("Invalid include pattern '%s': %s", pattern, e)
            continue
        for match in matches:
            relative_path = match.relative_to(base).as_posix()
            if relative_path in found or ignore_spec.match_file(relative_path):
                continue
            if gitignore_spec is not None and gitignore_spec.match_file(relative_path):
                logger.debug("Skipping %s (matched by .gitignore)", relative_path)
                continue
            try:
                if not match.is_file():
                    continue
                size = match.stat().st_size
            except OSError as e:
                logger.warning("Could not read file %s: %s", relative_path, e)
                continue
            found[relative_path] = File(path=relative_path, size=size)

    return [found[path] for path in sorted(found)]


def _load_file(file: File, cwd: Optional[Union[str, Path]] = None) -> Optional[File]:
    full_path = os.path.join(cwd, file.path) if cwd else file.path
    if is_binary_file(full_path):
        logger.warning("Skipping binary file %s", file.path)
        return None
    try:
        return file.with_content(read_local_file(full_path))
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read file %s: %s", file.path, e)
        return None


async def resolve_content(files: Sequence[File], cwd: Optional[Union[str, Path]] = None) -> List[File]:
    """Loads content for metadata-only entries, keeping order. Unreadable files are dropped."""

    async def _resolve(file: File) -> Optional[File]:
        if file.is_resolved:
            return file
        return await asyncio.to_thread(_load_file, file, cwd)

    resolved = await asyncio.gather(*(_resolve(f) for f in files))
    return [f for f in resolved if f is not None]


class FileStats:
    def __init__(self):
        self.files: List[File] = []
        self.size_by_extension: Dict[str, int] = defaultdict(int)
        self.count_by_extension: Dict[str, int] = defaultdict(int)

    def add_file(self, file: File) -> None:
        self.files.append(file)
        extension = Path(file.path).suffix.lower() or "(none)"
        self.size_by_extension[extension] += file.size
        self.count_by_extension[extension] += 1

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    def largest_files(self, count: int) -> List[File]:
        return sorted(self.files, key=lambda f: (-f.size, f.path))[:count]

    def print_summary(self, console: Console, show_largest_files: int = 10) -> None:
        if not self.files:
            console.print("[yellow]No context files matched the include patterns.[/yellow]")
            return

        table = Table(title="Context", title_justify="left", show_header=True, header_style="bold blue")
        table.add_column("Extension")
        table.add_column("Files", justify="right")
        table.add_column("Size", justify="right")
        for extension in sorted(self.size_by_extension, key=lambda e: -self.size_by_extension[e]):
            table.add_row(extension, str(self.count_by_extension[extension]), format_size(self.size_by_extension[extension]))
        table.add_row("[bold]Total[/bold]", f"[bold]{len(self.files)}[/bold]", f"[bold]{format_size(self.total_size)}[/bold]")
        console.print(table)

        if show_largest_files:
            console.print("[bold bright_blue]Largest files:[/bold bright_blue]")
            for file in self.largest_files(show_largest_files):
                console.print(f"  [bright_cyan]{file.path}[/bright_cyan] [dim]({format_size(file.size)})[/dim]")


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


class LimitChecker:
    """Rejects context that is too large before any content is read."""

    def __init__(self, max_file_size: int, max_total_size: int):
        self.max_file_size = max_file_size
        self.max_total_size = max_total_size
        self.total_size = 0

    def check_file(self, path: str, size: int) -> None:
        if self.max_file_size and size > self.max_file_size:
            raise LimitExceededError(
                f"File '{path}' is {format_size(size)}, over the {format_size(self.max_file_size)} per-file limit."
            )
        self.total_size += size
        if self.max_total_size and self.total_size > self.max_total_size:
            raise LimitExceededError(
                f"Context reached {format_size(self.total_size)} at '{path}', over the {format_size(self.max_total_size)} total limit."
            )

    def check_files(self, files: Iterable[File]) -> None:
        for file in files:
            self.check_file(file.path, file.size)

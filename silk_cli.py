#!/usr/bin/env python3

"""
Silk: an AI coding assistant for the terminal.

Sends a prompt plus selected project files to a LiteLLM model, streams the
answer, and runs the tool directives the model writes into it (file writes,
edits, reads, URL fetches) once the answer is complete.
"""
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import litellm
from rich.console import Console
from rich.logging import RichHandler

from silk import config_utils
from silk.app_state import AppState
from silk.command_handlers import dispatch_command
from silk.config_utils import get_config_value, load_configuration, update_runtime_override
from silk.errors import PromptFileError, TransportError
from silk.prompts import extract_prompt
from silk.task_runner import display_prompt, handle_chat_prompt, run_prompt
from silk.ui_display import display_config_info, display_welcome_panel

__version__ = "0.3.0"

# Suppress LiteLLM debug info
litellm.suppress_debug_info = True


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, markup=False)],
        force=True,
    )
    logging.getLogger("litellm").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', metavar='PATH', help='Path to the config file (default: ./config.toml).')
    common.add_argument('--root', metavar='DIR', help='Project root; created if missing and used as working directory.')
    common.add_argument('--include', metavar='GLOB', action='append', help='Context glob pattern (repeatable).')
    common.add_argument('--output', metavar='DIR', help='Directory where tools write files, relative to the root.')
    common.add_argument('--model', help='LiteLLM model name.')
    common.add_argument('--raw', action='store_true', help='Print model output without styling.')
    common.add_argument('--no-stats', action='store_true', help='Do not print context statistics.')
    common.add_argument('--verbose', '-v', action='store_true', help='Verbose logging on stderr.')
    common.add_argument('--debug', action='store_true', help='Print LLM request parameters.')

    parser = argparse.ArgumentParser(
        prog="silk",
        description="Silk: an AI coding assistant for the terminal.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command', required=True)

    run_parser = subparsers.add_parser('run', parents=[common], help='Run one prompt against the project.')
    run_parser.add_argument('prompt', metavar='PROMPT_OR_FILE', help='Prompt text, or a file containing the prompt.')
    run_parser.add_argument('--dry', action='store_true', help='Gather and check context without calling the model.')

    subparsers.add_parser('chat', parents=[common], help='Interactive chat with the project as context.')
    subparsers.add_parser('info', parents=[common], help='Show the effective configuration.')
    return parser


def apply_cli_overrides(args: argparse.Namespace, app_state: AppState):
    overrides = {
        "model": args.model,
        "include": ",".join(args.include) if args.include else None,
        "output": args.output,
        "raw": "true" if args.raw else None,
        "stats": "false" if args.no_stats else None,
    }
    for name, value in overrides.items():
        if value is not None:
            update_runtime_override(name, value, app_state.RUNTIME_OVERRIDES)
    app_state.DEBUG_LLM_INTERACTIONS = args.debug


def setup_root(root: Optional[str]):
    if root:
        Path(root).mkdir(parents=True, exist_ok=True)
        os.chdir(root)


def run_command(args: argparse.Namespace, app_state: AppState) -> int:
    try:
        prompt = extract_prompt(args.prompt, config_utils.CONFIG_ROOT)
    except PromptFileError as e:
        app_state.console.print(f"[bold red]✗ {e}[/bold red]")
        return 1

    setup_root(args.root or get_config_value("root", app_state.RUNTIME_OVERRIDES))
    app_state.console.print(f"[dim]Project root: {os.getcwd()}[/dim]")
    display_prompt(prompt, app_state)

    try:
        result = asyncio.run(run_prompt(prompt, app_state, dry=args.dry))
    except TransportError as e:
        app_state.console.print(f"\n[bold red]❌ {e}[/bold red]")
        return 1

    if result is not None and result.failures:
        app_state.console.print(f"[yellow]{len(result.failures)} of {len(result.outcomes)} tool invocation(s) failed.[/yellow]")
    return 0


def chat_loop(app_state: AppState) -> int:
    display_welcome_panel(app_state)

    while True:
        try:
            user_input = app_state.prompt_session.prompt("🔵 You> ").strip()
        except (EOFError, KeyboardInterrupt):
            app_state.console.print("\n[bold yellow]👋 Exiting gracefully...[/bold yellow]")
            return 0

        if not user_input:
            continue

        if user_input.lower() in ["exit", "quit", "/exit", "/quit"]:
            app_state.console.print("[bold bright_blue]👋 Goodbye! Happy coding![/bold bright_blue]")
            return 0

        if user_input.startswith("/"):
            if not dispatch_command(user_input, app_state):
                app_state.console.print(f"[yellow]Unknown command: '{user_input.split()[0]}'. Type '/help' for a list of commands.[/yellow]")
            continue

        try:
            asyncio.run(handle_chat_prompt(user_input, app_state))
        except TransportError as e:
            app_state.console.print(f"\n[bold red]❌ {e}[/bold red]")
        except KeyboardInterrupt:
            app_state.console.print("\n[yellow]Request interrupted.[/yellow]")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    app_state = AppState()
    app_state.config_path = load_configuration(app_state.console, args.config)
    apply_cli_overrides(args, app_state)

    if args.command == 'run':
        return run_command(args, app_state)

    setup_root(args.root or get_config_value("root", app_state.RUNTIME_OVERRIDES))
    if args.command == 'info':
        display_config_info(app_state)
        return 0
    return chat_loop(app_state)


if __name__ == "__main__":
    sys.exit(main())

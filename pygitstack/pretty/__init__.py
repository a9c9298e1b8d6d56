"""Pretty formatting utilities for CLI output."""

import shutil
import sys
from typing import IO, Optional

import click

from ..commitstack import Inference, Stack

def get_term_width() -> int:
    """Get terminal width, default to 80 if can't detect."""
    try:
        return shutil.get_terminal_size().columns
    except (OSError, ValueError):
        return 80

def header(text: str, use_emoji: bool = True) -> str:
    """Create a boxed header with optional emoji."""
    width = min(get_term_width(), 80)
    h_line = "─" * (width - 2)
    v_line = "│"
    emoji = "⚠️  " if use_emoji else ""
    title = f" {emoji}{text}"
    return "\n".join([
        f"┌{h_line}┐",
        f"{v_line}{title.ljust(width - 2)}{v_line}",
        f"└{h_line}┘",
    ])

def branch_count(stack: Stack) -> str:
    count = len(stack.all_branches())
    if count == 1:
        return "(1 branch)"
    return f"({count} branches)"

def format_stack_line(stack: Stack, current: bool, color: bool = True) -> str:
    """One `list` line: current marker, stack name and branch count."""
    suffix = branch_count(stack)
    if color:
        suffix = click.style(suffix, dim=True)
    if current:
        name = click.style(stack.name, fg="cyan", bold=True) if color else stack.name
        return f"* {name} {suffix}"
    return f"  {stack.name} {suffix}"

def print_problems(inference: Inference, use_emoji: bool = True, file: Optional[IO[str]] = None) -> None:
    """Print inference problems, if any, after a header."""
    if not inference.problems:
        return
    if file is None:
        file = sys.stdout
    print("", file=file)
    print(header("Problems", use_emoji), file=file)
    for problem in inference.problems:
        print(f"- {problem}", file=file)

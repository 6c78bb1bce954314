"""Shared rich console for diagnostics.

Library code reports through this console with a bracketed tag
(``[Import]``, ``[Store]``) so output lines up with the CLI.
"""

from __future__ import annotations

import os

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True, highlight=False)


def is_verbose() -> bool:
    return os.getenv("HIPPOCAMPUS_VERBOSE", "").lower() in ("1", "true", "yes")


def log(tag: str, message: str, style: str = "dim") -> None:
    """Print a tagged diagnostic line."""
    console.print(f"[{style}]\\[{tag}] {escape(message)}[/{style}]")


def debug(tag: str, message: str) -> None:
    """Print a tagged line only when HIPPOCAMPUS_VERBOSE is set."""
    if is_verbose():
        log(tag, message)

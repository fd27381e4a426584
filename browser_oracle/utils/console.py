"""
Rich console utilities for dual-mode CLI output.

Provides readable terminal output for humans and structured JSON for scripts
and agents. All output functions adapt to the global output_mode setting.

This module provides:
- OutputMode: Class to manage output format (text/json/quiet)
- spinner(): Context manager showing a status spinner
- Output functions: success(), error(), warning(), info()
- Display functions: print_banner(), print_answer(), print_progress_chunk()

Human Mode (--format text):
    - Rich spinners and panels
    - ANSI colors and Unicode symbols

Agent Mode (--format json):
    - Structured JSON output to stdout
    - No ANSI codes or spinners

Quiet Mode (--quiet):
    - Only the answer text is printed

Examples:
    >>> from browser_oracle.utils.console import output_mode, spinner, success
    >>> output_mode.format = "text"
    >>> with spinner("Launching browser..."):
    ...     ...
    >>> success("Answer received")
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel


class OutputMode:
    """
    Output mode configuration for dual-mode CLI.

    Attributes:
        format: Output format - "text" (human) or "json" (agent)
        quiet: If True, suppress non-essential output
        _json_buffer: Internal buffer for JSON output in agent mode

    Examples:
        >>> mode = OutputMode()
        >>> mode.is_human()
        True
        >>> mode.format = "json"
        >>> mode.is_agent()
        True
    """

    def __init__(self, format_type: str = "text", quiet: bool = False):
        """
        Initialize output mode.

        Args:
            format_type: Output format - "text" for human, "json" for agent
            quiet: If True, suppress non-essential output

        Raises:
            ValueError: If format_type is not "text" or "json"
        """
        if format_type not in ["text", "json"]:
            raise ValueError(f"Invalid format: {format_type}. Must be 'text' or 'json'")

        self.format = format_type
        self.quiet = quiet
        self._json_buffer: dict[str, Any] = {}

    def is_human(self) -> bool:
        """Return True if format is "text"."""
        return self.format == "text"

    def is_agent(self) -> bool:
        """Return True if format is "json"."""
        return self.format == "json"

    def add_json(self, key: str, value: Any) -> None:
        """
        Add key-value pair to JSON buffer.

        Used in agent mode to accumulate structured data
        before final output via flush_json().
        """
        self._json_buffer[key] = value

    def flush_json(self) -> None:
        """
        Output buffered JSON to stdout and clear buffer.

        Only outputs in agent mode. In human mode, this is a no-op.
        """
        if self.is_agent() and self._json_buffer:
            json.dump(self._json_buffer, sys.stdout, indent=2)
            sys.stdout.write("\n")
            sys.stdout.flush()
            self._json_buffer.clear()


# Global output mode instance (set by CLI flags)
output_mode = OutputMode()

# Global Rich console instances for human mode
console = Console()  # stdout
console_err = Console(stderr=True)  # stderr


@contextmanager
def spinner(message: str):
    """
    Context manager for showing a spinner during operations.

    Displays a Rich spinner with message in human mode.
    Silent in agent/quiet modes.

    Args:
        message: Status message to display

    Yields:
        Status context in human mode, None otherwise
    """
    if output_mode.is_human() and not output_mode.quiet:
        with console.status(f"[bold blue]{message}", spinner="dots") as status:
            yield status
    else:
        yield None


def success(message: str) -> None:
    """
    Print a success message.

    Human mode: Green checkmark with message
    Agent mode: Buffer to JSON
    Quiet mode: Silent
    """
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[green]✓[/green] {message}")
    elif output_mode.is_agent():
        output_mode.add_json("status", "success")
        output_mode.add_json("message", message)


def error(message: str) -> None:
    """
    Print an error message.

    Human mode: Red X with message to stderr (also in quiet mode)
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        console_err.print(f"[red]✗[/red] {message}", style="red")
    elif output_mode.is_agent():
        output_mode.add_json("status", "error")
        output_mode.add_json("error", message)


def warning(message: str) -> None:
    """
    Print a warning message.

    Human mode: Yellow warning symbol with message
    Agent mode: Buffer to JSON
    Quiet mode: Silent
    """
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")
    elif output_mode.is_agent():
        output_mode.add_json("warning", message)


def info(message: str) -> None:
    """
    Print an info message.

    Human mode: Blue info symbol with message
    Agent/Quiet mode: Silent
    """
    if output_mode.is_human() and not output_mode.quiet:
        console.print(f"[blue]ℹ[/blue] {message}")


def print_progress_chunk(chunk: str) -> None:
    """
    Echo a newly streamed piece of the answer.

    Only shown in human mode; the final answer is printed by print_answer()
    in every mode, so this is purely a live view.
    """
    if output_mode.is_human() and not output_mode.quiet:
        console_err.print(chunk, end="", style="dim", markup=False, highlight=False)


def print_banner(version: str) -> None:
    """
    Print a startup banner.

    Displays a boxed banner with version in human mode.
    Silent in agent/quiet modes.

    Args:
        version: Version string (e.g., "0.1.0")
    """
    if not output_mode.is_human() or output_mode.quiet:
        return

    banner = f"""
[bold cyan]╔{"═" * 39}╗
║   Browser Oracle v{version:<19} ║
║   Ask a chat UI through a browser     ║
╚{"═" * 39}╝[/bold cyan]
"""

    console.print(banner)


def print_answer(answer_text: str, elapsed_ms: float, details: dict[str, Any]) -> None:
    """
    Print the extracted answer.

    Human mode: Rich panel with the answer rendered as Markdown
    Agent mode: Flush all buffered JSON including the answer and details
    Quiet mode: Raw answer text only

    Args:
        answer_text: Final answer text
        elapsed_ms: Run duration in milliseconds
        details: Extra run fields (html, completion exit, submission method...)
    """
    if output_mode.is_agent():
        output_mode.add_json("answer_text", answer_text)
        output_mode.add_json("elapsed_ms", round(elapsed_ms, 1))
        for key, value in details.items():
            output_mode.add_json(key, value)
        output_mode.flush_json()
        return

    if output_mode.quiet:
        print(answer_text)
        return

    title = f"[bold green]✓ Answer[/bold green] ({elapsed_ms / 1000:.1f}s)"
    body = Markdown(answer_text) if answer_text else "[dim](empty answer)[/dim]"
    console.print(Panel(body, title=title, border_style="green", box=box.ROUNDED))

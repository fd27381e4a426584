"""
CLI entrypoint for Browser Oracle.

Provides a dual-mode command-line interface with:
- Human-friendly output: Rich panels, live answer stream, colored text
- Agent-friendly output: Structured JSON for AI automation
- Quiet mode: Only the answer text, for shell scripts

Commands:
    run: Send a prompt through the chat UI and print the answer
    validate: Validate a configuration file without opening a browser

Exit codes:
    0: Success - an answer was captured
    1: Configuration error (missing file, invalid YAML, invalid values)
    2: Prompt error (empty prompt, unreadable file, prompt input never usable)
    3: Answer did not arrive after submission
    4: Browser could not be launched

Examples:
    # Ask a question, attaching two files
    browser-oracle run "Why does this test fail?" --file tests/test_app.py --file app.py

    # Agent-friendly JSON output
    browser-oracle run "Summarize this file" --file README.md --format json

    # Attach to a running Chrome instead of launching one
    PLAYWRIGHT_CDP_URL=http://127.0.0.1:9222 browser-oracle run "Hello"
"""

import asyncio
from pathlib import Path
from typing import NoReturn

import typer
from rich.traceback import install as install_rich_traceback

from browser_oracle.browser import run as run_browser
from browser_oracle.config.loader import build_config, load_config
from browser_oracle.config.schema import BrowserConfig
from browser_oracle.exceptions import (
    AnswerDidNotArriveError,
    BrowserLaunchError,
    ConfigFileNotFoundError,
    ConfigurationError,
    PromptFileError,
    PromptHandleNotFoundError,
    PromptRequiredError,
)
from browser_oracle.prompt import assemble_prompt
from browser_oracle.utils.console import (
    error,
    info,
    output_mode,
    print_answer,
    print_banner,
    print_progress_chunk,
    spinner,
    success,
    warning,
)
from browser_oracle.utils.logging import setup_logging

# Install Rich tracebacks for better error messages
install_rich_traceback(show_locals=False)

# Exit codes
EXIT_SUCCESS = 0  # Answer captured
EXIT_CONFIG_ERROR = 1  # Config loading or validation failed
EXIT_PROMPT_ERROR = 2  # Prompt empty, unreadable, or input never usable
EXIT_NO_ANSWER = 3  # Reply never arrived
EXIT_LAUNCH_ERROR = 4  # Browser could not be started

# Create Typer app
app = typer.Typer(
    name="browser-oracle",
    help="Ask a chat web UI a question through a real browser",
    add_completion=False,
)


def _fail(message: str, error_type: str, exit_code: int) -> NoReturn:
    """Report an error in the current output mode and exit."""
    error(message)
    if output_mode.is_agent():
        output_mode.add_json("success", False)
        output_mode.add_json("error", message)
        output_mode.add_json("error_type", error_type)
        output_mode.flush_json()
    raise typer.Exit(exit_code)


def _resolve_config(
    config_path: Path | None,
    url: str | None,
    model: str | None,
    headless: bool | None,
    timeout_ms: int | None,
    keep_browser: bool | None,
) -> BrowserConfig:
    base = load_config(config_path) if config_path is not None else None
    return build_config(
        base,
        url=url,
        desired_model=model,
        headless=headless,
        timeout_ms=timeout_ms,
        keep_browser=keep_browser,
    )


@app.command()
def run(
    prompt: str = typer.Argument(..., help="Prompt to send"),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        file_okay=True,
        dir_okay=False,
    ),
    file: list[Path] = typer.Option(
        [],
        "--file",
        help="File to include in the prompt (repeatable)",
    ),
    system: str | None = typer.Option(
        None,
        "--system",
        help="System prompt placed before the user prompt",
    ),
    url: str | None = typer.Option(None, "--url", help="Chat UI URL"),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model label to pick in the UI model switcher",
    ),
    headless: bool | None = typer.Option(
        None,
        "--headless/--headed",
        help="Run the launched browser without a window",
    ),
    timeout_ms: int | None = typer.Option(
        None,
        "--timeout-ms",
        help="Overall answer timeout in milliseconds",
    ),
    keep_browser: bool | None = typer.Option(
        None,
        "--keep-browser/--close-browser",
        help="Leave the browser open after the run",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' (human-friendly) or 'json' (machine-readable)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Print only the answer text",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
):
    """
    Send a prompt through the chat UI and print the answer.

    Exit codes:
      0: Answer captured
      1: Configuration error
      2: Prompt error
      3: Answer did not arrive
      4: Browser launch failure

    Examples:
      browser-oracle run "Explain this stack trace" --file trace.txt
      browser-oracle run "Hello" --model "GPT-5 Thinking" --format json
    """
    output_mode.format = format
    output_mode.quiet = quiet

    # Suppress JSON logs in human mode (unless verbose=True)
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())
    print_banner(_read_version())

    try:
        browser_config = _resolve_config(config, url, model, headless, timeout_ms, keep_browser)
    except ConfigFileNotFoundError as e:
        _fail(f"Configuration file not found: {e}", "file_not_found", EXIT_CONFIG_ERROR)
    except ConfigurationError as e:
        _fail(f"Invalid configuration: {e}", "validation_error", EXIT_CONFIG_ERROR)

    if not prompt.strip():
        _fail("Prompt text is required", "prompt_required", EXIT_PROMPT_ERROR)

    try:
        bundle = assemble_prompt(prompt, file, system=system)
    except PromptFileError as e:
        _fail(str(e), "prompt_file", EXIT_PROMPT_ERROR)

    info(f"Opening {browser_config.url}")
    if bundle.files:
        info(f"Attached files: {', '.join(f.display_path for f in bundle.files)}")

    try:
        result = asyncio.run(
            run_browser(bundle.composer_text, browser_config, on_progress=print_progress_chunk)
        )
    except PromptRequiredError as e:
        _fail(str(e), "prompt_required", EXIT_PROMPT_ERROR)
    except PromptHandleNotFoundError as e:
        _fail(f"Prompt input not found: {e}", "prompt_handle_not_found", EXIT_PROMPT_ERROR)
    except AnswerDidNotArriveError as e:
        _fail(f"No answer: {e}", "answer_did_not_arrive", EXIT_NO_ANSWER)
    except BrowserLaunchError as e:
        _fail(f"Browser launch failed: {e}", "browser_launch", EXIT_LAUNCH_ERROR)

    if output_mode.is_human() and not quiet:
        # Terminate the live stream line before the final panel
        print_progress_chunk("\n")
    if not result.completion_exit.is_clean:
        warning(f"Answer may be incomplete ({result.completion_exit.value})")

    details = result.to_dict()
    details.pop("answer_text")
    details.pop("elapsed_ms")
    if output_mode.is_agent():
        details["success"] = True
        details["prompt_markdown"] = bundle.markdown
    print_answer(result.answer_text, result.elapsed_ms, details)
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def validate(
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
):
    """
    Validate configuration file without opening a browser.

    Exit codes:
      0: Configuration is valid
      1: Configuration is invalid

    Examples:
      browser-oracle validate --config oracle.config.yaml
      browser-oracle validate --config oracle.config.yaml --format json
    """
    output_mode.format = format

    with spinner("Validating configuration..."):
        try:
            browser_config = load_config(config)
        except ConfigurationError as e:
            error(f"Validation failed: {e}")
            if output_mode.is_agent():
                output_mode.add_json("valid", False)
                output_mode.add_json("error", str(e))
                output_mode.flush_json()
            raise typer.Exit(EXIT_CONFIG_ERROR)

    success("Configuration is valid")
    info(f"URL: {browser_config.url}")
    info(f"Model: {browser_config.desired_model or 'UI default'}")
    info(f"Attach via CDP: {browser_config.remote_cdp_url or 'no'}")

    if output_mode.is_agent():
        output_mode.add_json("valid", True)
        output_mode.add_json("url", browser_config.url)
        output_mode.add_json("desired_model", browser_config.desired_model)
        output_mode.add_json("remote_cdp_url", browser_config.remote_cdp_url)
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    Browser Oracle - ask a chat web UI through a real browser.

    Use 'browser-oracle COMMAND --help' for detailed command documentation.
    """
    if version:
        from rich.console import Console

        Console().print(f"[bold cyan]browser-oracle[/bold cyan] version {_read_version()}")
        raise typer.Exit(EXIT_SUCCESS)

    if ctx.invoked_subcommand is None:
        from rich.console import Console

        console = Console()
        console.print("[yellow]Use --help to see available commands[/yellow]")
        console.print()
        console.print("Commands:")
        console.print("  run       Send a prompt and print the answer")
        console.print("  validate  Validate configuration without running")


def _read_version() -> str:
    """Read version from package metadata."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("browser-oracle")
    except PackageNotFoundError:
        from browser_oracle import __version__

        return __version__


if __name__ == "__main__":
    app()

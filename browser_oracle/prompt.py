"""
Prompt bundle assembly.

Combines the user prompt, an optional system prompt and attached files into:
- markdown: a labelled bundle ([SYSTEM], [USER], [FILE: path] blocks) for
  logs and --format json output
- composer_text: the same content as plain text, ready to paste into the
  chat composer

Example:
    >>> bundle = assemble_prompt("Explain the bug", ["src/app.py"], cwd=Path("/repo"))
    >>> print(bundle.markdown)
    [USER]
    Explain the bug

    [FILE: src/app.py]
    print("hi")
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from browser_oracle.exceptions import PromptFileError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptFile:
    """
    A file attached to the prompt.

    Attributes:
        path: Absolute path on disk
        display_path: Path shown in the bundle, relative to cwd when possible
        content: File contents
    """

    path: Path
    display_path: str
    content: str


@dataclass(frozen=True)
class PromptBundle:
    """Assembled prompt in both output forms."""

    markdown: str
    composer_text: str
    files: tuple[PromptFile, ...] = ()


def _display_path(path: Path, cwd: Path) -> str:
    try:
        return path.relative_to(cwd).as_posix()
    except ValueError:
        return path.as_posix()


def read_files(paths: list[str | Path], cwd: Path | None = None) -> list[PromptFile]:
    """
    Read attached files as UTF-8 text.

    Relative paths are resolved against cwd (default: the process cwd).

    Raises:
        PromptFileError: If a file is missing, not a regular file, or not
            valid UTF-8
    """
    cwd = (cwd or Path.cwd()).resolve()
    files = []
    for entry in paths:
        path = Path(entry)
        if not path.is_absolute():
            path = cwd / path
        path = path.resolve()

        if not path.is_file():
            raise PromptFileError(f"Prompt file not found: {entry}")
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PromptFileError(f"Failed to read prompt file {entry}: {e}") from e

        files.append(PromptFile(path, _display_path(path, cwd), content))
        logger.debug(f"Attached {path} ({len(content)} chars)")
    return files


def _file_blocks(files: list[PromptFile]) -> list[str]:
    lines = []
    for f in files:
        lines.extend([f"[FILE: {f.display_path}]", f.content.rstrip(), ""])
    return lines


def assemble_prompt(
    prompt: str,
    files: list[str | Path] | None = None,
    system: str | None = None,
    cwd: Path | None = None,
) -> PromptBundle:
    """
    Build the prompt bundle.

    Args:
        prompt: User prompt
        files: Paths of files to attach
        system: Optional system prompt; blank means none
        cwd: Base directory for relative file paths

    Returns:
        PromptBundle with markdown and composer text

    Raises:
        PromptFileError: If an attached file cannot be read
    """
    attached = read_files(files or [], cwd)
    user = prompt.strip()
    system = (system or "").strip()

    lines = []
    if system:
        lines.extend(["[SYSTEM]", system, ""])
    lines.extend(["[USER]", user, ""])
    lines.extend(_file_blocks(attached))
    markdown = "\n".join(lines).rstrip()

    composer = [system, user] if system else [user]
    composer_text = "\n\n".join(part for part in composer if part)
    if attached:
        composer_text = "\n\n".join([composer_text, "\n".join(_file_blocks(attached)).rstrip()])

    return PromptBundle(
        markdown=markdown,
        composer_text=composer_text.strip(),
        files=tuple(attached),
    )

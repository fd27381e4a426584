#!/usr/bin/env python3
"""
Example usage of the Browser Oracle runner from Python.

This script shows two ways to drive a run:
1. Against the in-memory FakePage (no browser, finishes instantly)
2. Against the real chat UI through Playwright

Usage:
    # Offline demo
    python examples/ask_example.py

    # Real browser (a window opens; log in or pass the challenge if asked)
    python examples/ask_example.py --live "Explain asyncio in one paragraph"

    # Reuse a Chrome started with --remote-debugging-port=9222
    PLAYWRIGHT_CDP_URL=http://127.0.0.1:9222 python examples/ask_example.py --live "Hello"

Note:
    Install the browser once with `playwright install chromium`.
"""

import asyncio
import sys

from browser_oracle.browser import run, run_on_page
from browser_oracle.browser.fake_page import FakePage, FakeReplyFrame
from browser_oracle.config.loader import build_config
from browser_oracle.utils.logging import setup_logging


def print_chunk(chunk: str) -> None:
    print(chunk, end="", flush=True)


async def offline_demo():
    """Run the full interaction flow against a scripted page."""
    print("=" * 80)
    print("Example 1: FakePage run")
    print("=" * 80)

    page = FakePage(
        challenge_readings=[True, True],
        challenge_checkbox=True,
        reply_frames=[
            FakeReplyFrame("Asyncio ", generating=True),
            FakeReplyFrame("Asyncio runs coroutines ", generating=True),
            FakeReplyFrame("Asyncio runs coroutines on one event loop.", marker=True),
        ],
    )
    config = build_config()

    result = await run_on_page(page, "Explain asyncio in one sentence", config, print_chunk)

    print(f"\n\n✓ Answer: {result.answer_text}")
    print(f"  Exit: {result.completion_exit.value}")
    print(f"  Submitted: {page.submitted_prompts}")


async def live_demo(prompt: str):
    """Ask the real chat UI."""
    print("=" * 80)
    print("Example 2: Live browser run")
    print("=" * 80)

    config = build_config(timeout_ms=300_000)
    result = await run(prompt, config, on_progress=print_chunk)

    print(f"\n\n✓ Answer ({result.answer_chars} chars, {result.elapsed_ms / 1000:.1f}s)")
    print(result.answer_text)


def main():
    setup_logging(verbose=False, quiet_logs=True)
    if len(sys.argv) >= 3 and sys.argv[1] == "--live":
        asyncio.run(live_demo(" ".join(sys.argv[2:])))
    else:
        asyncio.run(offline_demo())


if __name__ == "__main__":
    main()

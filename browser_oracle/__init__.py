"""
Browser Oracle - ask a chat web UI a question through a real browser.

Drives a Playwright-controlled Chromium through the ChatGPT web UI: clears
anti-bot interstitials, delivers the prompt, and captures the streamed answer.
"""

__version__ = "0.1.0"

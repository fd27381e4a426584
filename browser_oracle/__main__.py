"""
Entry point for running Browser Oracle as a module.

Enables execution via:
    python -m browser_oracle [command] [options]

This is equivalent to running the installed CLI:
    browser-oracle [command] [options]
"""

from browser_oracle.cli import app

if __name__ == "__main__":
    app()

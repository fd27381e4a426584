"""
Browser interaction flow for chat web UIs.

Public entry points are run() (launch or attach a browser, then run) and
run_on_page() (run on a page the caller already holds).
"""

from .completion import CompletionExit
from .runner import RunResult, run, run_on_page
from .submission import SubmissionMethod

__all__ = [
    "CompletionExit",
    "RunResult",
    "SubmissionMethod",
    "run",
    "run_on_page",
]

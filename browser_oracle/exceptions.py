"""
Custom exceptions for Browser Oracle.

This module provides a hierarchy of exceptions that lets callers tell the
different ways a browser run can fail apart from each other. All exceptions
inherit from the base BrowserOracleError for consistent catching.

Exception Hierarchy:
    BrowserOracleError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   └── ConfigValidationError
    ├── BrowserLaunchError
    ├── PromptFileError
    ├── BrowserRunError
    │   ├── PromptRequiredError
    │   ├── PromptHandleNotFoundError
    │   └── AnswerDidNotArriveError
    └── PollTimeoutError

Only the BrowserRunError family is raised out of a run. Everything the
interaction flow can recover from (challenge timeouts, failed delivery
strategies, disabled send buttons, overlay sweep failures) is logged instead.

Usage:
    from browser_oracle.exceptions import AnswerDidNotArriveError

    try:
        result = await run(prompt, config)
    except AnswerDidNotArriveError as e:
        logger.error(f"No answer: {e}")
        sys.exit(3)
"""


class BrowserOracleError(Exception):
    """
    Base exception for all Browser Oracle errors.

    Example:
        try:
            # application code
            pass
        except BrowserOracleError as e:
            logger.error(f"Application error: {e}")
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(BrowserOracleError):
    """
    Base class for configuration-related errors.

    Raised when configuration loading, parsing, or validation fails.
    Should be caught and result in exit code 1 (configuration error).
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """
    Configuration file does not exist at the specified path.

    Example:
        raise ConfigFileNotFoundError("/path/to/oracle.yaml")
    """

    pass


class ConfigValidationError(ConfigurationError):
    """
    Configuration file is invalid (schema validation failed).

    Example:
        raise ConfigValidationError("Field 'timeout_ms' must be positive")
    """

    pass


# ============================================================================
# Browser Errors
# ============================================================================


class BrowserLaunchError(BrowserOracleError):
    """
    The browser could not be launched or attached to.

    Example:
        raise BrowserLaunchError("Chromium executable not found")
    """

    pass


class BrowserRunError(BrowserOracleError):
    """
    Base class for errors that abort a single interaction run.

    These are the only failures surfaced to the caller of run().
    """

    pass


class PromptRequiredError(BrowserRunError):
    """
    Prompt text is empty or whitespace only.

    Example:
        raise PromptRequiredError("Prompt text is required when using browser mode.")
    """

    pass


class PromptHandleNotFoundError(BrowserRunError):
    """
    The prompt input surface never became visible, enabled and sized.

    Example:
        raise PromptHandleNotFoundError("Prompt textarea did not become visible")
    """

    pass


class AnswerDidNotArriveError(BrowserRunError):
    """
    No new assistant reply appeared before the arrival deadline.

    Example:
        raise AnswerDidNotArriveError("Assistant response did not arrive before timeout")
    """

    pass


class PromptFileError(BrowserOracleError):
    """
    A file attached to the prompt could not be read.

    Raised while assembling the prompt, before any browser is started.
    """

    pass


# ============================================================================
# Polling
# ============================================================================


class PollTimeoutError(BrowserOracleError):
    """
    A polled condition did not become true before its deadline.

    Raised by await_condition(). Callers translate it into either a fatal
    BrowserRunError or a logged warning; it never escapes a run on its own.

    Attributes:
        description: Human-readable name of the awaited condition
        timeout_ms: Deadline that was exceeded, in milliseconds
    """

    def __init__(self, description: str, timeout_ms: float):
        super().__init__(f"Timed out after {timeout_ms:.0f}ms waiting for {description}")
        self.description = description
        self.timeout_ms = timeout_ms

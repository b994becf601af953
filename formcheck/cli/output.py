"""Output formatting, logging setup and progress indicators for CLI operations.

This module provides:
- ProgressIndicator: TTY-aware progress indicators for long operations
- handle_error: Error messages with context, a next-step hint for profile and
  registry errors, and optional stack traces
- configure_logging: Root logger setup from --log-level / --log-file
"""

import logging
import sys
import traceback
from pathlib import Path
from typing import TextIO

from formcheck.core.exceptions import ProfileLoadError, RegistryError

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

REGISTRY_HINTS = {
    "filter": "Run 'formcheck list-filters' to see the registered filters",
    "constraint": "Run 'formcheck list-constraints' to see the registered constraints",
    "package": "Check that the validator package is importable from the current environment",
}


class ProgressIndicator:
    """Progress indicator for batch evaluation.

    The "Evaluating <table>... ✓" marker goes to ``stream`` and only when it
    is a TTY; the outcome line always goes to stdout (or stderr for errors)
    so redirected output still carries the row counts.

    Example:
        progress = ProgressIndicator(enabled=not quiet)
        progress.start("Evaluating signups.csv")
        # ... evaluate rows ...
        progress.success("Evaluated 120 rows")
    """

    def __init__(self, enabled: bool = True, stream: TextIO = sys.stderr):
        self.enabled = enabled and stream.isatty()
        self.stream = stream

    def start(self, message: str) -> None:
        """Write ``message`` followed by an ellipsis, without a newline."""
        if self.enabled:
            self.stream.write(f"{message}... ")
            self.stream.flush()

    def success(self, message: str) -> None:
        """Close the marker with a check mark and print ``message``."""
        if self.enabled:
            self.stream.write("✓\n")
        print(message)

    def error(self, message: str) -> None:
        """Close the marker with a cross and print ``message`` to stderr."""
        if self.enabled:
            self.stream.write("✗\n")
        print(f"Error: {message}", file=sys.stderr)


def _hint(error: Exception) -> str | None:
    if isinstance(error, RegistryError):
        return REGISTRY_HINTS.get(error.context.get("kind", ""))
    if isinstance(error, ProfileLoadError) and error.context.get("reason") == "Unknown profile":
        file_path = error.context.get("file_path")
        if file_path:
            return f"Run 'formcheck check-profile {file_path}' to list its profiles"
    return None


def handle_error(error: Exception, verbose: bool = False) -> None:
    """Display an error on stderr.

    Prints the message, the context fields of FormcheckError exceptions and,
    for unresolvable registry names or unknown profile names, a hint naming
    the command that lists what is available. ``verbose`` adds the stack
    trace.

    Args:
        error: Exception to display
        verbose: Whether to show stack trace (default False)
    """
    print(f"Error: {error}", file=sys.stderr)

    context = getattr(error, "context", None)
    if context:
        print("Context:", file=sys.stderr)
        for key, value in context.items():
            print(f"  {key}: {value}", file=sys.stderr)

    hint = _hint(error)
    if hint:
        print(f"Hint: {hint}", file=sys.stderr)

    if verbose:
        print("\nStack trace:", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)


def configure_logging(log_level: str = "warning", log_file: Path | None = None) -> None:
    """Configure the root logger for a CLI run.

    Args:
        log_level: One of debug, info, warning, error
        log_file: Write log records to this file instead of stderr

    Raises:
        ValueError: If the level name is not recognized
    """
    level = LOG_LEVELS.get(log_level.lower())
    if level is None:
        raise ValueError(
            f"Unknown log level '{log_level}'. Available: {', '.join(LOG_LEVELS)}"
        )
    logging.basicConfig(
        level=level,
        filename=str(log_file) if log_file is not None else None,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )

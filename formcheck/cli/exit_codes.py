"""Exit code constants for CLI commands.

Exit codes:
    0: SUCCESS - Every record passed its profile
    1: UNEXPECTED_ERROR - Unexpected/unhandled exception
    2: VALIDATION_ERROR - A record has missing or invalid fields
    3: INPUT_ERROR - Input record or table could not be read
    4: OUTPUT_ERROR - Report could not be written
    6: CONFIG_ERROR - Profile file, profile or registry reference error
"""


class ExitCode:
    """Standard exit codes for CLI commands.

    Example:
        >>> from formcheck.cli.exit_codes import ExitCode
        >>> import sys
        >>>
        >>> results = validator.check(record, "signup")
        >>> sys.exit(ExitCode.SUCCESS if results.success() else ExitCode.VALIDATION_ERROR)
    """

    SUCCESS = 0
    """Evaluation completed and nothing is missing or invalid."""

    UNEXPECTED_ERROR = 1
    """Unexpected or unhandled exception occurred."""

    VALIDATION_ERROR = 2
    """At least one field is missing or invalid."""

    INPUT_ERROR = 3
    """Input record or table reading failed."""

    OUTPUT_ERROR = 4
    """Report writing failed."""

    CONFIG_ERROR = 6
    """Profile file, profile structure or registry reference error."""

"""CLI command implementations.

This module implements the CLI commands for the formcheck tool:
- check: Evaluate one JSON record against a named profile
- batch: Evaluate every row of a table
- list_*: List registered filters and constraints
- check_profile: Validate a profile file

Each command is implemented as a function that returns an exit code,
enabling both direct invocation and subprocess-based testing.
"""

import json
import sys
from pathlib import Path
from typing import Annotated, Any, Literal

from cyclopts import Parameter

from formcheck.cli.exit_codes import ExitCode
from formcheck.cli.output import ProgressIndicator, configure_logging, handle_error
from formcheck.core.exceptions import (
    FormcheckError,
    MessageFormatError,
    ProfileError,
    ProfileLoadError,
    RegistryError,
)
from formcheck.validation.batch import evaluate_frame, read_records, summarize, write_report
from formcheck.validation.declarative import ProfileStore, load_profiles
from formcheck.validation.engine import Engine
from formcheck.validation.registry import default_registry


def _load_record(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FormcheckError(f"Input file not found: {path}", {"file_path": str(path)})
    try:
        record = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise FormcheckError(f"Invalid JSON in {path}: {e}", {"file_path": str(path)}) from e
    if not isinstance(record, dict):
        raise FormcheckError(
            f"Input record must be a JSON object, got: {type(record).__name__}",
            {"file_path": str(path)},
        )
    return record


def check(
    profiles: Annotated[Path, Parameter(help="Profile file (YAML or JSON)")],
    name: Annotated[str, Parameter(help="Profile name")],
    input_path: Annotated[Path, Parameter(help="JSON record to evaluate")],
    format: Annotated[Literal["text", "json"], Parameter(help="Output format")] = "text",
    messages: Annotated[bool, Parameter(help="Include formatted error messages")] = False,
    verbose: Annotated[bool, Parameter(help="Show detailed error information")] = False,
    log_level: Annotated[str, Parameter(help="Log level (debug, info, warning, error)")] = "warning",
    log_file: Annotated[Path | None, Parameter(help="Log file path")] = None,
) -> int:
    """Evaluate one record against a named profile.

    Args:
        profiles: Path to the profile file
        name: Name of the profile to apply
        input_path: Path to a JSON object holding the record
        format: "text" for a readable summary, "json" for a machine-readable one
        messages: Also print the formatted error messages
        verbose: Show stack traces for errors
        log_level: Logging level (debug, info, warning, error)
        log_file: Optional path for log output

    Returns:
        Exit code (0 valid, 2 missing/invalid, 3 unreadable record, 6 profile error)

    Example:
        >>> from pathlib import Path
        >>> from formcheck.cli.commands import check
        >>>
        >>> exit_code = check(Path("profiles.yaml"), "signup", Path("record.json"))
    """
    try:
        configure_logging(log_level, log_file)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    try:
        profile = ProfileStore(profiles).get(name)
        record = _load_record(input_path)
    except ProfileLoadError as e:
        handle_error(e, verbose=verbose)
        return ExitCode.CONFIG_ERROR
    except FormcheckError as e:
        handle_error(e, verbose=verbose)
        return ExitCode.INPUT_ERROR

    try:
        results = Engine().evaluate(profile, record)
        msgs = results.messages() if messages else None
    except (ProfileError, RegistryError, MessageFormatError) as e:
        handle_error(e, verbose=verbose)
        return ExitCode.CONFIG_ERROR
    except Exception as e:
        handle_error(e, verbose=verbose)
        return ExitCode.UNEXPECTED_ERROR

    if format == "json":
        payload = results.to_dict()
        payload["success"] = results.success()
        if msgs is not None:
            payload["messages"] = msgs
        print(json.dumps(payload, indent=2, sort_keys=True, default=str))
    else:
        print(results.format())
        if msgs:
            print("Messages:")
            for key in sorted(msgs):
                print(f"  {key}: {msgs[key]}")

    return ExitCode.SUCCESS if results.success() else ExitCode.VALIDATION_ERROR


def batch(
    profiles: Annotated[Path, Parameter(help="Profile file (YAML or JSON)")],
    name: Annotated[str, Parameter(help="Profile name")],
    table: Annotated[Path, Parameter(help="Table to evaluate (CSV, JSON, NDJSON, Parquet)")],
    output: Annotated[Path | None, Parameter(help="Write the per-row report here")] = None,
    quiet: Annotated[bool, Parameter(help="Suppress progress output")] = False,
    verbose: Annotated[bool, Parameter(help="Show detailed error information")] = False,
    log_level: Annotated[str, Parameter(help="Log level (debug, info, warning, error)")] = "warning",
    log_file: Annotated[Path | None, Parameter(help="Log file path")] = None,
) -> int:
    """Evaluate every row of a table against a named profile.

    Prints a summary with total, valid and failed row counts and the fields
    that failed most. The per-row report is written when ``output`` is given
    (format chosen by extension).

    Returns:
        Exit code (0 if every row passes, 2 if any row fails, 3 unreadable
        table, 4 unwritable report, 6 profile error)

    Example:
        >>> from pathlib import Path
        >>> from formcheck.cli.commands import batch
        >>>
        >>> exit_code = batch(
        ...     Path("profiles.yaml"), "signup", Path("signups.csv"),
        ...     output=Path("report.parquet"),
        ... )
    """
    try:
        configure_logging(log_level, log_file)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    try:
        engine = Engine()
        profile = engine.check_profile(ProfileStore(profiles).get(name))
    except (ProfileLoadError, ProfileError, RegistryError) as e:
        handle_error(e, verbose=verbose)
        return ExitCode.CONFIG_ERROR

    progress = ProgressIndicator(enabled=not quiet)
    try:
        progress.start(f"Evaluating {table.name}")
        df = read_records(table)
        report = evaluate_frame(df, profile, engine)
    except FormcheckError as e:
        progress.error(str(e))
        handle_error(e, verbose=verbose)
        return ExitCode.INPUT_ERROR
    except Exception as e:
        handle_error(e, verbose=verbose)
        return ExitCode.UNEXPECTED_ERROR

    summary = summarize(report)
    progress.success(f"Evaluated {summary['rows']} rows")
    print("\nBatch evaluation complete:")
    print(f"  Total: {summary['rows']}")
    print(f"  Valid: {summary['valid_rows']}")
    print(f"  Failed: {summary['failed_rows']}")
    for kind in ("missing", "invalid", "unknown"):
        if summary[kind]:
            print(f"\n{kind.capitalize()} fields:")
            for field, count in summary[kind].items():
                print(f"  {field}: {count}")

    if output is not None:
        try:
            write_report(report, output)
        except (FormcheckError, OSError) as e:
            handle_error(e, verbose=verbose)
            return ExitCode.OUTPUT_ERROR
        print(f"\nReport written to {output}")

    return ExitCode.SUCCESS if summary["failed_rows"] == 0 else ExitCode.VALIDATION_ERROR


def list_filters() -> int:
    """List registered filters with descriptions.

    Returns:
        Exit code (always 0 for success)
    """
    filters = default_registry().list_filters()

    if not filters:
        print("No filters registered.")
        return ExitCode.SUCCESS

    print("Available filters:")
    for name, description in filters.items():
        print(f"  {name:20} {description}")

    return ExitCode.SUCCESS


def list_constraints() -> int:
    """List registered constraints with descriptions.

    Returns:
        Exit code (always 0 for success)
    """
    constraints = default_registry().list_constraints()

    if not constraints:
        print("No constraints registered.")
        return ExitCode.SUCCESS

    print("Available constraints:")
    for name, description in constraints.items():
        print(f"  {name:20} {description}")

    return ExitCode.SUCCESS


def check_profile(
    profiles: Annotated[Path, Parameter(help="Profile file (YAML or JSON)")],
    name: Annotated[str | None, Parameter(help="Only check this profile")] = None,
) -> int:
    """Validate a profile file.

    Loads the file, checks the structure of every profile (or only ``name``)
    and resolves every filter, constraint and validator package each profile
    refers to. Displays specific errors if found.

    Returns:
        Exit code (0 for valid profiles, 6 for invalid ones)

    Example:
        >>> from pathlib import Path
        >>> from formcheck.cli.commands import check_profile
        >>>
        >>> exit_code = check_profile(Path("profiles.yaml"))
    """
    try:
        loaded = load_profiles(profiles)
    except ProfileLoadError as e:
        print("✗ Profile error:", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    if name is not None:
        if name not in loaded:
            available = ", ".join(sorted(loaded)) or "none"
            print(f"✗ No such profile '{name}'. Available: {available}", file=sys.stderr)
            return ExitCode.CONFIG_ERROR
        loaded = {name: loaded[name]}

    engine = Engine()
    errors = []
    for profile_name, profile in loaded.items():
        try:
            engine.check_profile(profile)
        except (ProfileError, RegistryError) as e:
            errors.append(f"{profile_name}: {e}")

    if errors:
        print("✗ Profile validation failed:", file=sys.stderr)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    print(f"✓ {len(loaded)} profile(s) valid")
    for profile_name, profile in sorted(loaded.items()):
        print(
            f"  {profile_name}: {len(profile.required)} required, "
            f"{len(profile.optional)} optional, {len(profile.constraints)} constrained"
        )

    return ExitCode.SUCCESS

"""Tabular batch evaluation.

Evaluates every row of a table against one profile and reports the outcome
per row as a polars DataFrame:

    row        int         zero-based row index
    is_valid   bool        nothing missing and nothing invalid
    missing    list[str]   missing fields and require_some groups
    invalid    list[str]   fields that failed a constraint
    unknown    list[str]   columns the profile does not know

Null cells are absent fields; empty strings are empty values and are stripped
like any other empty input.
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import polars as pl

from formcheck.core.exceptions import FormcheckError
from formcheck.validation.engine import Engine
from formcheck.validation.profile import Profile

logger = logging.getLogger(__name__)

REPORT_SCHEMA = {
    "row": pl.Int64,
    "is_valid": pl.Boolean,
    "missing": pl.List(pl.String),
    "invalid": pl.List(pl.String),
    "unknown": pl.List(pl.String),
}


def read_records(path: str | Path) -> pl.DataFrame:
    """Read a CSV, JSON, NDJSON or Parquet table with string cells.

    Every column that is not a list column is cast to strings, so values reach
    filters and constraints the way form input would.

    Raises:
        FormcheckError: If the file is missing or its format is not supported
    """
    path = Path(path)
    if not path.exists():
        raise FormcheckError(f"Input table not found: {path}", {"file_path": str(path)})

    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pl.read_csv(path, infer_schema_length=0)
    elif suffix == ".json":
        df = pl.read_json(path)
    elif suffix in (".ndjson", ".jsonl"):
        df = pl.read_ndjson(path)
    elif suffix == ".parquet":
        df = pl.read_parquet(path)
    else:
        raise FormcheckError(
            f"Unsupported table format '{suffix}'. Supported: .csv, .json, .ndjson, .jsonl, .parquet",
            {"file_path": str(path)},
        )

    return df.with_columns(
        [
            pl.col(name).cast(pl.String)
            for name, dtype in df.schema.items()
            if not isinstance(dtype, pl.List)
        ]
    )


def evaluate_frame(
    df: pl.DataFrame,
    profile: Profile | Mapping[str, Any],
    engine: Engine | None = None,
) -> pl.DataFrame:
    """Evaluate each row of ``df`` against ``profile``.

    Args:
        df: Input table, one record per row (not mutated)
        profile: Profile or profile mapping
        engine: Engine to use (default: one on the shared registry)

    Returns:
        Report DataFrame with the columns described in the module docstring

    Example:
        >>> df = pl.DataFrame({"email": ["a@example.com", "nope"]})
        >>> report = evaluate_frame(df, {"required": ["email"], "constraints": {"email": "email"}})
        >>> report["is_valid"].to_list()
        [True, False]
    """
    engine = engine if engine is not None else Engine()
    profile = Profile.from_dict(profile)

    rows = []
    for index, record in enumerate(df.iter_rows(named=True)):
        data = {name: value for name, value in record.items() if value is not None}
        results = engine.evaluate(profile, data)
        rows.append(
            {
                "row": index,
                "is_valid": results.success(),
                "missing": results.missing(),
                "invalid": results.invalid(),
                "unknown": results.unknown(),
            }
        )

    report = pl.DataFrame(rows, schema=REPORT_SCHEMA)
    logger.debug("Evaluated %d row(s), %d valid", report.height, report["is_valid"].sum())
    return report


def _field_counts(report: pl.DataFrame, column: str) -> dict[str, int]:
    counts = (
        report.select(pl.col(column).explode())
        .drop_nulls()
        .group_by(column)
        .len()
        .sort(column)
    )
    return {row[column]: row["len"] for row in counts.iter_rows(named=True)}


def summarize(report: pl.DataFrame) -> dict[str, Any]:
    """Aggregate a report into row totals and per-field failure counts."""
    valid_rows = int(report["is_valid"].sum()) if report.height else 0
    return {
        "rows": report.height,
        "valid_rows": valid_rows,
        "failed_rows": report.height - valid_rows,
        "missing": _field_counts(report, "missing"),
        "invalid": _field_counts(report, "invalid"),
        "unknown": _field_counts(report, "unknown"),
    }


def write_report(report: pl.DataFrame, path: str | Path) -> None:
    """Write a report as CSV, JSON or Parquet, chosen by extension.

    CSV has no list type, so list columns are written comma-joined.

    Raises:
        FormcheckError: If the extension is not supported
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        report.with_columns(
            [pl.col(name).list.join(",") for name in ("missing", "invalid", "unknown")]
        ).write_csv(path)
    elif suffix == ".json":
        report.write_json(path)
    elif suffix == ".parquet":
        report.write_parquet(path)
    else:
        raise FormcheckError(
            f"Unsupported report format '{suffix}'. Supported: .csv, .json, .parquet",
            {"file_path": str(path)},
        )

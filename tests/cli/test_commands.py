"""Tests for the CLI commands.

Commands are called directly and return exit codes; output is checked with
capsys.
"""

import json
import logging
from pathlib import Path

import polars as pl
import pytest

from formcheck.cli.commands import batch, check, check_profile, list_constraints, list_filters
from formcheck.cli.exit_codes import ExitCode

PROFILES_YAML = """\
signup:
  required: [email, name]
  optional: [zip]
  filters: [trim]
  constraints:
    email: email
    zip: zip
  msgs:
    format: '%s'
    prefix: err_
"""


@pytest.fixture(autouse=True)
def restore_logging():
    """Commands reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def profiles(tmp_path: Path) -> Path:
    path = tmp_path / "profiles.yaml"
    path.write_text(PROFILES_YAML)
    return path


def _record(tmp_path: Path, data) -> Path:
    path = tmp_path / "record.json"
    path.write_text(json.dumps(data))
    return path


class TestCheckCommand:
    """Single record evaluation."""

    def test_valid_record(self, profiles, tmp_path, capsys) -> None:
        record = _record(tmp_path, {"email": "a@example.com", "name": " Ann "})
        assert check(profiles, "signup", record) == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert "Validation passed" in out
        assert "name: 'Ann'" in out

    def test_failing_record(self, profiles, tmp_path, capsys) -> None:
        record = _record(tmp_path, {"email": "nope", "zip": "123"})
        assert check(profiles, "signup", record, messages=True) == ExitCode.VALIDATION_ERROR
        out = capsys.readouterr().out
        assert "Validation failed" in out
        assert "  - name" in out
        assert "  - email (email)" in out
        assert "Messages:" in out
        assert "err_name: Missing" in out

    def test_json_output(self, profiles, tmp_path, capsys) -> None:
        record = _record(tmp_path, {"email": "nope", "name": "Ann", "extra": "x"})
        code = check(profiles, "signup", record, format="json", messages=True)
        assert code == ExitCode.VALIDATION_ERROR

        payload = json.loads(capsys.readouterr().out)
        assert payload["success"] is False
        assert payload["valid"] == {"name": "Ann"}
        assert payload["invalid"] == {"email": ["email"]}
        assert payload["unknown"] == ["extra"]
        assert payload["messages"] == {"err_email": "Invalid"}

    def test_unknown_profile(self, profiles, tmp_path, capsys) -> None:
        record = _record(tmp_path, {})
        assert check(profiles, "login", record) == ExitCode.CONFIG_ERROR
        assert "No such profile 'login'" in capsys.readouterr().err

    def test_missing_record(self, profiles, tmp_path, capsys) -> None:
        assert check(profiles, "signup", tmp_path / "nope.json") == ExitCode.INPUT_ERROR
        assert "Input file not found" in capsys.readouterr().err

    def test_record_must_be_object(self, profiles, tmp_path, capsys) -> None:
        record = _record(tmp_path, ["email"])
        assert check(profiles, "signup", record) == ExitCode.INPUT_ERROR
        assert "must be a JSON object" in capsys.readouterr().err

    def test_unknown_constraint_is_config_error(self, tmp_path, capsys) -> None:
        path = tmp_path / "profiles.yaml"
        path.write_text("p:\n  required: [a]\n  constraints:\n    a: no_such_check\n")
        record = _record(tmp_path, {"a": "1"})
        assert check(path, "p", record) == ExitCode.CONFIG_ERROR

    def test_bad_log_level(self, profiles, tmp_path, capsys) -> None:
        record = _record(tmp_path, {})
        assert check(profiles, "signup", record, log_level="loud") == ExitCode.CONFIG_ERROR
        assert "Unknown log level 'loud'" in capsys.readouterr().err


class TestBatchCommand:
    """Table evaluation."""

    @pytest.fixture
    def table(self, tmp_path: Path) -> Path:
        path = tmp_path / "signups.csv"
        pl.DataFrame(
            {
                "email": ["a@example.com", "nope", "c@example.com"],
                "name": ["Ann", "Bob", None],
            }
        ).write_csv(path)
        return path

    def test_summary(self, profiles, table, capsys) -> None:
        assert batch(profiles, "signup", table, quiet=True) == ExitCode.VALIDATION_ERROR
        out = capsys.readouterr().out
        assert "Batch evaluation complete:" in out
        assert "Total: 3" in out
        assert "Valid: 1" in out
        assert "Failed: 2" in out
        assert "Invalid fields:" in out

    def test_all_valid(self, profiles, tmp_path) -> None:
        path = tmp_path / "ok.csv"
        pl.DataFrame({"email": ["a@example.com"], "name": ["Ann"]}).write_csv(path)
        assert batch(profiles, "signup", path, quiet=True) == ExitCode.SUCCESS

    def test_writes_report(self, profiles, table, tmp_path, capsys) -> None:
        output = tmp_path / "report.parquet"
        batch(profiles, "signup", table, output=output, quiet=True)
        report = pl.read_parquet(output)
        assert report["is_valid"].to_list() == [True, False, False]
        assert "Report written to" in capsys.readouterr().out

    def test_unwritable_report(self, profiles, table, tmp_path) -> None:
        code = batch(profiles, "signup", table, output=tmp_path / "report.txt", quiet=True)
        assert code == ExitCode.OUTPUT_ERROR

    def test_missing_table(self, profiles, tmp_path) -> None:
        assert batch(profiles, "signup", tmp_path / "nope.csv", quiet=True) == ExitCode.INPUT_ERROR

    def test_profile_error(self, tmp_path) -> None:
        path = tmp_path / "profiles.yaml"
        path.write_text("p:\n  filters: [no_such_filter]\n")
        table = tmp_path / "t.csv"
        table.write_text("a\n1\n")
        assert batch(path, "p", table, quiet=True) == ExitCode.CONFIG_ERROR


class TestListCommands:
    """Registry listings."""

    def test_list_filters(self, capsys) -> None:
        assert list_filters() == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert out.startswith("Available filters:")
        assert "  trim " in out

    def test_list_constraints(self, capsys) -> None:
        assert list_constraints() == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert out.startswith("Available constraints:")
        assert "  email " in out


class TestCheckProfileCommand:
    """Profile file validation."""

    def test_valid(self, profiles, capsys) -> None:
        assert check_profile(profiles) == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert "✓ 1 profile(s) valid" in out
        assert "signup: 2 required, 1 optional, 2 constrained" in out

    def test_unresolvable_names(self, tmp_path, capsys) -> None:
        path = tmp_path / "profiles.yaml"
        path.write_text("a:\n  filters: [no_such_filter]\nb:\n  required: [x]\n")
        assert check_profile(path) == ExitCode.CONFIG_ERROR
        err = capsys.readouterr().err
        assert "✗ Profile validation failed:" in err
        assert "a: " in err

    def test_single_profile(self, tmp_path, capsys) -> None:
        path = tmp_path / "profiles.yaml"
        path.write_text("a:\n  filters: [no_such_filter]\nb:\n  required: [x]\n")
        assert check_profile(path, name="b") == ExitCode.SUCCESS

    def test_unknown_name(self, profiles, capsys) -> None:
        assert check_profile(profiles, name="login") == ExitCode.CONFIG_ERROR
        assert "✗ No such profile 'login'" in capsys.readouterr().err

    def test_structural_error(self, tmp_path, capsys) -> None:
        path = tmp_path / "profiles.yaml"
        path.write_text("a:\n  requird: [x]\n")
        assert check_profile(path) == ExitCode.CONFIG_ERROR
        assert "✗ Profile error:" in capsys.readouterr().err

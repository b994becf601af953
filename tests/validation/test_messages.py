"""Tests for error message formatting."""

import pytest

from formcheck.core.exceptions import MessageFormatError
from formcheck.validation.engine import evaluate
from formcheck.validation.messages import DEFAULT_FORMAT, MessageConfig
from formcheck.validation.result import Results


def _results(**kwargs) -> Results:
    return Results(valid={}, missing=["name"], invalid={"email": ["email"]}, **kwargs)


class TestDefaults:
    """Messages with default controls."""

    def test_default_messages(self) -> None:
        msgs = _results().messages()
        assert msgs == {
            "name": DEFAULT_FORMAT.replace("%s", "Missing"),
            "email": DEFAULT_FORMAT.replace("%s", "Invalid"),
        }

    def test_no_errors(self) -> None:
        assert Results(valid={"a": "1"}).messages({"any_errors": "some_errors"}) == {}


class TestControls:
    """Caller supplied controls."""

    def test_all_controls(self) -> None:
        msgs = _results().messages(
            {
                "format": "%s",
                "prefix": "err_",
                "missing": "Required",
                "constraints": {"email": "Bad email"},
                "any_errors": "some_errors",
            }
        )
        assert msgs == {"err_name": "Required", "err_email": "Bad email", "some_errors": "1"}

    def test_separator_for_several_failures(self) -> None:
        results = Results(valid={}, invalid={"zip": ["zip", "west_coast"]})
        msgs = results.messages({"format": "%s", "invalid_seperator": " / "})
        assert msgs == {"zip": "Invalid / Invalid"}

    def test_separator_spelling(self) -> None:
        results = Results(valid={}, invalid={"zip": ["zip", "west_coast"]})
        msgs = results.messages(
            {"format": "%s", "invalid_separator": "; ", "constraints": {"west_coast": "Not in the west"}}
        )
        assert msgs == {"zip": "Invalid; Not in the west"}

    def test_literal_percent(self) -> None:
        assert _results().messages({"format": "100%% %s"})["name"] == "100% Missing"

    def test_controls_accumulate(self) -> None:
        results = _results()
        results.messages({"prefix": "e_"})
        assert results.messages({"format": "%s"}) == {"e_name": "Missing", "e_email": "Invalid"}

    def test_profile_msgs_win(self) -> None:
        results = _results(msgs={"format": "<%s>"})
        assert results.messages({"format": "%s"})["name"] == "<Missing>"

    def test_profile_msgs_through_engine(self) -> None:
        results = evaluate({"required": ["name"], "msgs": {"prefix": "err_", "format": "%s"}}, {})
        assert results.messages() == {"err_name": "Missing"}


class TestErrors:
    """Unusable controls."""

    @pytest.mark.parametrize("fmt", ["no placeholder", "%s and %s", "%d"])
    def test_bad_format(self, fmt) -> None:
        with pytest.raises(MessageFormatError, match="exactly one %s") as exc_info:
            _results().messages({"format": fmt})
        assert exc_info.value.context["format"] == fmt

    def test_unknown_control(self) -> None:
        with pytest.raises(MessageFormatError, match="Unknown message control 'colour'"):
            _results().messages({"colour": "red"})

    def test_controls_must_be_mapping(self) -> None:
        with pytest.raises(MessageFormatError, match="must be a mapping"):
            _results().messages(["format"])

    def test_constraint_texts_must_be_mapping(self) -> None:
        with pytest.raises(MessageFormatError, match="'constraints' must be a mapping") as exc_info:
            _results().messages({"constraints": "oops"})
        assert exc_info.value.context["control"] == "constraints"

    def test_failed_call_keeps_earlier_controls(self) -> None:
        results = _results()
        results.messages({"format": "%s"})
        with pytest.raises(MessageFormatError):
            results.messages({"format": "broken"})
        assert results.messages()["name"] == "Missing"


class TestMessageConfig:
    """Direct use of the formatting policy."""

    def test_from_controls_layers(self) -> None:
        config = MessageConfig.from_controls({"prefix": "a_", "missing": "M"}, {"prefix": "b_"})
        assert config.prefix == "b_"
        assert config.missing == "M"

    def test_wrap(self) -> None:
        assert MessageConfig(format="[%s]").wrap("x") == "[x]"

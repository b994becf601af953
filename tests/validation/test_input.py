"""Tests for input normalization."""

import pytest

from formcheck.core.exceptions import FormcheckError
from formcheck.core.values import Multi, Scalar
from formcheck.validation.input import normalize


class MultiDict:
    """Minimal multi-dict exposing keys() and getlist()."""

    def __init__(self, data: dict[str, list[str]]) -> None:
        self.data = data

    def keys(self):
        return self.data.keys()

    def getlist(self, key):
        return self.data[key]


class TestNormalize:
    """Both input shapes yield the same working set."""

    def test_mapping(self) -> None:
        assert normalize({"name": "Mark", "colors": ["red", "blue"]}) == {
            "name": Scalar("Mark"),
            "colors": Multi(("red", "blue")),
        }

    def test_param_source(self) -> None:
        source = MultiDict({"name": ["Mark"], "colors": ["red", "blue"], "empty": []})
        assert normalize(source) == {
            "name": Scalar("Mark"),
            "colors": Multi(("red", "blue")),
            "empty": Scalar(None),
        }

    def test_shapes_are_equivalent(self) -> None:
        source = MultiDict({"name": ["Mark"], "colors": ["red", "blue"]})
        assert normalize(source) == normalize({"name": "Mark", "colors": ["red", "blue"]})

    def test_returns_new_dict(self) -> None:
        data = {"a": "1"}
        working = normalize(data)
        working["b"] = Scalar("2")
        assert data == {"a": "1"}

    def test_rejects_other_types(self) -> None:
        with pytest.raises(FormcheckError, match="got: str") as exc_info:
            normalize("a=1")
        assert exc_info.value.context == {"input_type": "str"}

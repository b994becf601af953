"""Input normalization.

Converts caller input into the working set the engine mutates. Two input
shapes are accepted and treated the same afterwards:

- a plain mapping of field name to a value or a list of values
- a param source (multi-dict) exposing ``keys()`` and ``getlist(name)``; a
  name with more than one value becomes a multi-valued field, otherwise the
  single value is unwrapped

The caller's object is never modified.
"""

from collections.abc import Mapping
from typing import Any

from formcheck.core.exceptions import FormcheckError
from formcheck.core.protocols import ParamSource
from formcheck.core.values import FieldValue, Multi, Scalar, wrap


def normalize(data: Mapping[str, Any] | ParamSource) -> dict[str, FieldValue]:
    """Build a working set from caller input.

    Args:
        data: Mapping or param source

    Returns:
        New dictionary of field name to tagged value

    Raises:
        FormcheckError: If ``data`` is neither a mapping nor a param source

    Example:
        >>> normalize({"name": "Mark", "colors": ["red", "blue"]})
        {'name': Scalar(value='Mark'), 'colors': Multi(items=('red', 'blue'))}
    """
    if isinstance(data, ParamSource):
        working: dict[str, FieldValue] = {}
        for key in data.keys():
            values = list(data.getlist(key))
            if len(values) > 1:
                working[key] = Multi(tuple(values))
            else:
                working[key] = Scalar(values[0] if values else None)
        return working

    if isinstance(data, Mapping):
        return {key: wrap(value) for key, value in data.items()}

    msg = f"Input data must be a mapping or a param source, got: {type(data).__name__}"
    raise FormcheckError(msg, {"input_type": type(data).__name__})

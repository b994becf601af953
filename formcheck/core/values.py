"""Field value and constraint outcome types.

Field values in the working set are tagged: a field either holds a single
value (Scalar) or an ordered sequence of values from a multi-valued input
such as a multi-select (Multi). Filters, empty-value stripping and constraint
evaluation dispatch on the tag instead of inspecting the raw Python type.

Constraint invocations produce an explicit outcome: Matched carries the value
to keep (the matched substring when untainting), Rejected carries the name
recorded in the invalid list.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any


def value_length(value: Any) -> int:
    """Length of a value as text; None has length 0."""
    if value is None:
        return 0
    if isinstance(value, str):
        return len(value)
    return len(str(value))


@dataclass(frozen=True)
class Scalar:
    """A single-valued field."""

    value: Any

    def map(self, func: Callable[[Any], Any]) -> "Scalar":
        if self.value is None:
            return self
        return Scalar(func(self.value))

    def is_empty(self) -> bool:
        return value_length(self.value) == 0

    def unwrap(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Multi:
    """A multi-valued field; element order is significant.

    Elements that were empty after filtering are held as None so that the
    shape of the list survives while the element carries no content.
    """

    items: tuple[Any, ...]

    def map(self, func: Callable[[Any], Any]) -> "Multi":
        return Multi(tuple(None if item is None else func(item) for item in self.items))

    def is_empty(self) -> bool:
        return len(self.items) == 0

    def without_empty_elements(self) -> "Multi":
        return Multi(tuple(None if value_length(item) == 0 else item for item in self.items))

    def replace(self, index: int, value: Any) -> "Multi":
        items = list(self.items)
        items[index] = value
        return Multi(tuple(items))

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def unwrap(self) -> list[Any]:
        return list(self.items)


FieldValue = Scalar | Multi


def wrap(raw: Any) -> FieldValue:
    """Tag a raw Python value: lists and tuples become Multi, anything else Scalar."""
    if isinstance(raw, (Scalar, Multi)):
        return raw
    if isinstance(raw, (list, tuple)):
        return Multi(tuple(raw))
    return Scalar(raw)


def is_present(value: FieldValue | None) -> bool:
    """True when a working-set value counts as supplied (present and non-empty)."""
    if value is None:
        return False
    if isinstance(value, Multi):
        return any(value_length(item) > 0 for item in value)
    return not value.is_empty()


@dataclass(frozen=True)
class Matched:
    """Successful constraint outcome; value is what untainting keeps."""

    value: Any


@dataclass(frozen=True)
class Rejected:
    """Failed constraint outcome; name is recorded in the invalid list."""

    name: str


Outcome = Matched | Rejected

"""Protocol definitions for formcheck collaborators.

This module defines the interfaces of the pieces the evaluation engine calls
but does not own: filters, constraints and param-bearing input sources.

Protocols:
    - Filter: Rewrites one input value before constraints run
    - Constraint: Accepts resolved parameters and matches or rejects them
    - ParamSource: Web-form-like input exposing field names and value lists

All implementations must:
    - Be synchronous and free of side effects on the caller's input
    - Report bad user input by returning a falsy result, never by raising
"""

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable


class Filter(Protocol):
    """Protocol for filters.

    A filter receives one value (for multi-valued fields, one element) and
    returns its replacement. Filters run before required-ness is resolved,
    so a filter that returns an empty string makes the field absent.

    Example:
        >>> def filter_trim(value: str) -> str:
        ...     return value.strip()
    """

    def __call__(self, value: Any) -> Any:
        ...


class Constraint(Protocol):
    """Protocol for constraints.

    A constraint receives its resolved parameters (by default the value being
    checked) and returns a truthy result when the value is acceptable. Matchers
    return the value to keep when untainting; predicates return a flag.

    When a constraint is declared with ``constraint_method`` it receives the
    evaluation context as its first argument.

    Example:
        >>> def match_zip(value: str) -> str | None:
        ...     m = re.match(r"^\\s*(\\d{5}(?:-\\d{4})?)\\s*$", value)
        ...     return m.group(1) if m else None
    """

    def __call__(self, *params: Any) -> Any:
        ...


@runtime_checkable
class ParamSource(Protocol):
    """Protocol for param-bearing input objects.

    Matches the multi-dict interface used by web frameworks (werkzeug's
    MultiDict, Django's QueryDict): ``keys()`` lists field names and
    ``getlist(name)`` returns every value submitted under that name.

    Example:
        >>> from werkzeug.datastructures import MultiDict
        >>> source = MultiDict([("color", "red"), ("color", "blue")])
        >>> source.getlist("color")
        ['red', 'blue']
    """

    def keys(self) -> Iterable[str]:
        ...

    def getlist(self, key: str) -> list[Any]:
        ...

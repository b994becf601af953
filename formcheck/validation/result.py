"""Results data structure.

This module defines the Results class that holds the outcome of evaluating an
input record against a profile. Every field that took part in the evaluation
ends in exactly one classification:

- valid: accepted, with its (filtered, possibly untainted) value
- missing: required (or a require_some group) but not supplied
- invalid: supplied but failed one or more constraints
- unknown: supplied but neither required nor optional

Results is built once per evaluation. The only mutation afterwards is the
``valid(field, value)`` write form.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from formcheck.core.values import Multi, Scalar
from formcheck.validation.messages import MessageConfig

_UNSET: Any = object()


def _plain(value: Any) -> Any:
    if isinstance(value, (Scalar, Multi)):
        return value.unwrap()
    return value


class Results:
    """Classification of every field after evaluation.

    Query methods work in two modes: with a field name they answer for that
    field, without one they enumerate the whole classification.

    Example:
        >>> results = evaluate({"required": ["email"], "constraints": {"email": "email"}},
        ...                    {"email": "not-an-email"})
        >>> results.invalid()
        ['email']
        >>> results.invalid("email")
        ['email']
        >>> results.has_missing()
        False
    """

    def __init__(
        self,
        valid: Mapping[str, Any],
        missing: Iterable[str] = (),
        invalid: Mapping[str, Iterable[str]] | None = None,
        unknown: Iterable[str] = (),
        msgs: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize results.

        Args:
            valid: Field name to accepted value (tagged or plain)
            missing: Missing field and group names
            invalid: Field name to the ordered names of its failed constraints
            unknown: Names of fields that are not part of the profile
            msgs: Message controls declared by the profile; these take
                  precedence over controls passed to ``messages``
        """
        self._valid: dict[str, Any] = {name: _plain(value) for name, value in valid.items()}
        self._missing: set[str] = set(missing)
        self._invalid: dict[str, list[str]] = {
            name: list(failed) for name, failed in (invalid or {}).items()
        }
        self._unknown: set[str] = set(unknown)
        self._profile_msgs: dict[str, Any] = dict(msgs or {})
        self._msg_controls: dict[str, Any] = {}

    def valid(self, field: str | None = None, value: Any = _UNSET) -> Any:
        """Query or update valid fields.

        ``valid()`` returns a copy of the valid mapping, ``valid(field)`` the
        value of one field (None if it is not valid) and ``valid(field, value)``
        stores a value for the field and returns it. Storing None is a no-op
        that returns the current value.
        """
        if value is not _UNSET:
            if field is None:
                raise TypeError("valid() needs a field name to store a value")
            if value is not None:
                self._valid[field] = value
                return value
        if field is None:
            return dict(self._valid)
        return self._valid.get(field)

    def missing(self, field: str | None = None) -> Any:
        """Sorted names of missing fields, or whether ``field`` is missing."""
        if field is not None:
            return field in self._missing
        return sorted(self._missing)

    def invalid(self, field: str | None = None) -> Any:
        """Sorted names of invalid fields, or the failed constraint names of ``field``.

        For a field that is not invalid, ``invalid(field)`` returns None.
        """
        if field is not None:
            failed = self._invalid.get(field)
            return list(failed) if failed is not None else None
        return sorted(self._invalid)

    def invalid_map(self) -> dict[str, list[str]]:
        """Field name to failed constraint names, for every invalid field."""
        return {name: list(failed) for name, failed in self._invalid.items()}

    def unknown(self, field: str | None = None) -> Any:
        """Sorted names of unknown fields, or whether ``field`` is unknown."""
        if field is not None:
            return field in self._unknown
        return sorted(self._unknown)

    def has_valid(self) -> bool:
        return len(self._valid) > 0

    def has_missing(self) -> bool:
        return len(self._missing) > 0

    def has_invalid(self) -> bool:
        return len(self._invalid) > 0

    def has_unknown(self) -> bool:
        return len(self._unknown) > 0

    def success(self) -> bool:
        """True when nothing is missing or invalid (unknown fields are ignored)."""
        return not (self.has_missing() or self.has_invalid())

    def messages(self, controls: Mapping[str, Any] | None = None) -> dict[str, str]:
        """Format error messages for missing and invalid fields.

        Controls accumulate across calls: each call merges its controls over
        those of earlier calls. Message controls declared in the profile
        (``msgs``) always win.

        Args:
            controls: Message controls (see formcheck.validation.messages)

        Returns:
            Mapping of (prefixed) field name to formatted message

        Raises:
            MessageFormatError: If the controls are unusable
        """
        accumulated = dict(self._msg_controls)
        if controls is not None:
            accumulated = MessageConfig.merge_layers(accumulated, controls)
        config = MessageConfig.from_controls(accumulated, self._profile_msgs)
        self._msg_controls = accumulated
        return config.render(self.missing(), self._invalid)

    def format(self) -> str:
        """Format results as a human-readable summary.

        Example:
            >>> print(results.format())
            Validation failed
            Missing:
              - cc_type
            Invalid:
              - email (email)
        """
        lines = [f"Validation {'passed' if self.success() else 'failed'}"]

        if self._valid:
            lines.append("Valid:")
            for name in sorted(self._valid):
                lines.append(f"  - {name}: {self._valid[name]!r}")

        if self._missing:
            lines.append("Missing:")
            for name in self.missing():
                lines.append(f"  - {name}")

        if self._invalid:
            lines.append("Invalid:")
            for name in self.invalid():
                lines.append(f"  - {name} ({', '.join(map(str, self._invalid[name]))})")

        if self._unknown:
            lines.append("Unknown:")
            for name in self.unknown():
                lines.append(f"  - {name}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Plain dictionary of all classifications (JSON serializable for str input)."""
        return {
            "valid": self.valid(),
            "missing": self.missing(),
            "invalid": self.invalid_map(),
            "unknown": self.unknown(),
        }

    def __repr__(self) -> str:
        return (
            f"Results(valid={sorted(self._valid)!r}, missing={self.missing()!r}, "
            f"invalid={self.invalid()!r}, unknown={self.unknown()!r})"
        )

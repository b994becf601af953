"""Error message formatting policy.

Turns the missing and invalid classifications of a Results object into a flat
mapping of field name to display string, ready for template interpolation.

Controls (all optional):
    prefix: Prepended to every field name key (default "")
    missing: Text for missing fields (default "Missing")
    invalid: Text for a failed constraint without its own text (default "Invalid")
    invalid_separator: Joins the texts of several failed constraints (default " ")
    format: printf-style wrapper with exactly one %s (default: an HTML span)
    constraints: Mapping of constraint name to its own text
    any_errors: Key set to "1" when there is at least one message
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from formcheck.core.exceptions import MessageFormatError

DEFAULT_FORMAT = '<span style="color:red;font-weight:bold"><span id="dfv_errors">* %s</span></span>'

_PLACEHOLDER_RE = re.compile(r"%([%s])")


@dataclass(frozen=True)
class MessageConfig:
    """Resolved message controls."""

    prefix: str = ""
    missing: str = "Missing"
    invalid: str = "Invalid"
    invalid_separator: str = " "
    format: str = DEFAULT_FORMAT
    constraints: dict[str, str] = field(default_factory=dict)
    any_errors: str | None = None

    def __post_init__(self) -> None:
        placeholders = [m for m in _PLACEHOLDER_RE.findall(self.format) if m == "s"]
        if len(placeholders) != 1:
            raise MessageFormatError(
                "format must contain exactly one %s placeholder", format=self.format
            )

    @classmethod
    def from_controls(cls, *layers: Mapping[str, Any]) -> "MessageConfig":
        """Merge control mappings; later layers win.

        ``invalid_seperator`` is accepted as a spelling of ``invalid_separator``.

        Raises:
            MessageFormatError: If a layer is not a mapping, has an unknown key,
                               or the resulting format is unusable
        """
        return cls(**cls.merge_layers(*layers))

    @classmethod
    def merge_layers(cls, *layers: Mapping[str, Any]) -> dict[str, Any]:
        """Merge control mappings into one, checking keys but not the format."""
        known = {f.name for f in fields(cls)}
        merged: dict[str, Any] = {}
        for layer in layers:
            if not isinstance(layer, Mapping):
                raise MessageFormatError(
                    f"Message controls must be a mapping, got: {type(layer).__name__}"
                )
            for key, value in layer.items():
                key = "invalid_separator" if key == "invalid_seperator" else key
                if key not in known:
                    raise MessageFormatError(f"Unknown message control '{key}'", control=key)
                if key == "constraints":
                    if not isinstance(value, Mapping):
                        raise MessageFormatError(
                            f"Message control 'constraints' must be a mapping, got: {type(value).__name__}",
                            control=key,
                        )
                    value = dict(value)
                merged[key] = value
        return merged

    def wrap(self, text: str) -> str:
        """Substitute ``text`` into the format; ``%%`` yields a literal percent."""
        return _PLACEHOLDER_RE.sub(lambda m: "%" if m.group(1) == "%" else text, self.format)

    def render(
        self, missing: Iterable[str], invalid: Mapping[str, Iterable[str]]
    ) -> dict[str, str]:
        """Build the message mapping.

        Args:
            missing: Names of missing fields and require_some groups
            invalid: Field name to the names of its failed constraints, in order

        Returns:
            Mapping of prefixed field name to formatted message
        """
        msgs: dict[str, str] = {}
        for name, failed in invalid.items():
            msgs[name] = self.invalid_separator.join(
                self.wrap(self.constraints.get(constraint, self.invalid)) for constraint in failed
            )
        for name in missing:
            msgs[name] = self.wrap(self.missing)

        prefixed = {f"{self.prefix}{name}": text for name, text in msgs.items()}
        if self.any_errors is not None and prefixed:
            prefixed[self.any_errors] = "1"
        return prefixed

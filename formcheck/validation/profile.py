"""Validation profiles.

A profile declares which fields are required or optional, how values are
filtered and which constraints they must satisfy. Profiles are usually written
as plain mappings (in Python or in a YAML/JSON file) and converted with
``Profile.from_dict``, which rejects unknown options and malformed values and
compiles every pattern up front.

Example profile:
    {
        "required": ["email", "first_name"],
        "optional": ["phone"],
        "filters": ["trim"],
        "field_filter_regexp_map": {"/_name$/": "ucfirst"},
        "constraints": {
            "email": "email",
            "phone": ["phone", {"constraint": "/^[\\d-]+$/", "name": "digits"}],
        },
        "require_some": {"contact": [1, "phone", "email"]},
    }
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from formcheck.core.exceptions import ProfileError
from formcheck.validation.patterns import (
    compile_pattern,
    is_pattern_literal,
    pattern_text,
)

PROFILE_OPTIONS = frozenset(
    {
        "required",
        "optional",
        "required_regexp",
        "optional_regexp",
        "require_some",
        "dependencies",
        "dependency_groups",
        "defaults",
        "filters",
        "field_filters",
        "field_filter_regexp_map",
        "constraints",
        "constraint_regexp_map",
        "untaint_all_constraints",
        "untaint_constraint_fields",
        "missing_optional_valid",
        "validator_packages",
        "msgs",
        "debug",
    }
)

CONSTRAINT_SPEC_KEYS = frozenset({"constraint", "constraint_method", "name", "params"})

FilterRef = str | Callable[[Any], Any]


@dataclass(frozen=True)
class Literal:
    """A constraint parameter passed through as-is.

    Plain strings in ``params`` name fields whose current value is passed;
    wrap a string in Literal to pass the string itself.
    """

    value: Any


@dataclass(frozen=True)
class ConstraintSpec:
    """One constraint attached to a field.

    Attributes:
        constraint: Registered constraint name, compiled pattern or callable
        name: Name recorded when the constraint fails
        params: Parameters to call the constraint with; None passes the value
               being checked. Strings are field references, anything else
               (including Literal) is passed literally.
        is_method: The callable also receives the evaluation context first
    """

    constraint: str | re.Pattern[str] | Callable[..., Any]
    name: str
    params: tuple[Any, ...] | None = None
    is_method: bool = False

    @classmethod
    def from_value(cls, value: Any, option: str = "constraints") -> "ConstraintSpec":
        """Build a spec from a profile value.

        Raises:
            ProfileError: If the value is not a recognized constraint form
        """
        if isinstance(value, ConstraintSpec):
            return value
        if isinstance(value, Mapping):
            return cls._from_mapping(value, option)
        if is_pattern_literal(value):
            return cls(constraint=compile_pattern(value), name=pattern_text(value))
        if isinstance(value, str) and value:
            return cls(constraint=value, name=value)
        if callable(value):
            return cls(constraint=value, name=getattr(value, "__name__", "constraint"))

        msg = f"Invalid constraint in '{option}': {value!r}"
        raise ProfileError(msg, option=option, value=value, reason="Unrecognized constraint")

    @classmethod
    def _from_mapping(cls, spec: Mapping[str, Any], option: str) -> "ConstraintSpec":
        unknown = set(spec) - CONSTRAINT_SPEC_KEYS
        if unknown:
            msg = f"Invalid constraint specification in '{option}': unknown keys {sorted(unknown)}"
            raise ProfileError(msg, option=option, reason="Unknown constraint key")

        is_method = spec.get("constraint_method") is not None
        target = spec["constraint_method"] if is_method else spec.get("constraint")
        if target is None:
            msg = f"Constraint specification in '{option}' has no constraint"
            raise ProfileError(msg, option=option, reason="Required key missing")
        if is_method and (isinstance(target, str) or not callable(target)):
            msg = f"constraint_method in '{option}' must be a callable, got: {target!r}"
            raise ProfileError(msg, option=option, value=target, reason="Invalid constraint method")

        inner = cls.from_value(target, option)
        params = spec.get("params")
        if params is not None:
            if isinstance(params, Mapping):
                msg = f"Constraint params in '{option}' must be a list, got a mapping"
                raise ProfileError(msg, option=option, value=dict(params), reason="Invalid params type")
            params = (params,) if isinstance(params, str) else tuple(params)

        return cls(
            constraint=inner.constraint,
            name=spec.get("name") or inner.name,
            params=params,
            is_method=is_method,
        )


@dataclass(frozen=True)
class RequireSome:
    """A group satisfied when at least ``minimum`` members are present."""

    minimum: int
    members: tuple[str, ...]

    @classmethod
    def from_value(cls, value: Any) -> "RequireSome":
        """Parse ``[count, member, ...]`` or ``[member, ...]``.

        The first element is the count when it is an int or a string of
        digits; otherwise the count is 1 and the first element is a member.
        """
        if isinstance(value, RequireSome):
            return value
        items = _arrayify(value, "require_some")
        if len(items) == 2 and isinstance(items[1], (list, tuple, set, frozenset)):
            items = (items[0], *items[1])
        if items and _is_count(items[0]):
            return cls(minimum=int(items[0]), members=tuple(str(m) for m in items[1:]))
        return cls(minimum=1, members=tuple(str(m) for m in items))


def _is_count(item: Any) -> bool:
    if isinstance(item, bool):
        return False
    if isinstance(item, int):
        return True
    return isinstance(item, str) and item.isdigit()


def _arrayify(value: Any, option: str) -> tuple[Any, ...]:
    """Normalize a single value or a collection to a tuple; None and '' vanish."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, (list, tuple)):
        return tuple(item for item in value if item is not None and item != "")
    if isinstance(value, (set, frozenset)):
        return tuple(sorted(item for item in value if item is not None and item != ""))
    if callable(value) or isinstance(value, re.Pattern):
        return (value,)
    msg = f"Option '{option}' must be a string or a list, got: {type(value).__name__}"
    raise ProfileError(msg, option=option, value=value, reason="Invalid option type")


def _mapping(value: Any, option: str) -> Mapping[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        msg = f"Option '{option}' must be a mapping, got: {type(value).__name__}"
        raise ProfileError(msg, option=option, value=value, reason="Invalid option type")
    return value


def _field_names(value: Any, option: str) -> tuple[str, ...]:
    names = _arrayify(value, option)
    for name in names:
        if not isinstance(name, str):
            msg = f"Option '{option}' must list field names, got: {name!r}"
            raise ProfileError(msg, option=option, value=name, reason="Invalid field name")
    return names


def _filter_list(value: Any, option: str) -> tuple[FilterRef, ...]:
    refs = _arrayify(value, option)
    for ref in refs:
        if not (isinstance(ref, str) or callable(ref)):
            msg = f"Filters in '{option}' must be names or callables, got: {ref!r}"
            raise ProfileError(msg, option=option, value=ref, reason="Invalid filter")
    return refs


def _constraint_list(value: Any, option: str) -> tuple[ConstraintSpec, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(ConstraintSpec.from_value(item, option) for item in value)
    return (ConstraintSpec.from_value(value, option),)


def _optional_pattern(value: Any) -> re.Pattern[str] | None:
    if value is None or value == "":
        return None
    return compile_pattern(value)


@dataclass(frozen=True)
class Profile:
    """A normalized validation profile.

    Build one with ``Profile.from_dict``; the engine also accepts plain
    mappings and converts them itself. ``options`` keeps the mapping the
    profile was built from (None for a Profile constructed directly).
    """

    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    required_regexp: re.Pattern[str] | None = None
    optional_regexp: re.Pattern[str] | None = None
    require_some: dict[str, RequireSome] = field(default_factory=dict)
    dependencies: dict[str, tuple[str, ...] | dict[str, tuple[str, ...]]] = field(
        default_factory=dict
    )
    dependency_groups: dict[str, tuple[str, ...]] = field(default_factory=dict)
    defaults: dict[str, Any] = field(default_factory=dict)
    filters: tuple[FilterRef, ...] = ()
    field_filters: dict[str, tuple[FilterRef, ...]] = field(default_factory=dict)
    field_filter_regexp_map: dict[re.Pattern[str], tuple[FilterRef, ...]] = field(
        default_factory=dict
    )
    constraints: dict[str, tuple[ConstraintSpec, ...]] = field(default_factory=dict)
    constraint_regexp_map: dict[re.Pattern[str], tuple[ConstraintSpec, ...]] = field(
        default_factory=dict
    )
    untaint_all_constraints: bool = False
    untaint_constraint_fields: tuple[str, ...] | None = None
    missing_optional_valid: bool = False
    validator_packages: tuple[str, ...] = ()
    msgs: dict[str, Any] = field(default_factory=dict)
    debug: bool = False
    options: dict[str, Any] | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_dict(cls, options: "Mapping[str, Any] | Profile") -> "Profile":
        """Validate and normalize a profile mapping.

        Args:
            options: Profile options (see module docstring)

        Returns:
            Normalized Profile

        Raises:
            ProfileError: If an option is unknown or has a malformed value
            PatternError: If a pattern fails to compile
        """
        if isinstance(options, Profile):
            return options
        if not isinstance(options, Mapping):
            msg = f"Invalid input profile: expected a mapping, got: {type(options).__name__}"
            raise ProfileError(msg, reason="Invalid profile type")

        unknown = sorted(set(options) - PROFILE_OPTIONS)
        if unknown:
            msg = f"Invalid input profile: unknown option(s) {', '.join(map(str, unknown))}"
            raise ProfileError(msg, option=str(unknown[0]), reason="Unknown profile option")

        def get(option: str) -> Any:
            return options.get(option)

        dependencies: dict[str, tuple[str, ...] | dict[str, tuple[str, ...]]] = {}
        for trigger, deps in _mapping(get("dependencies"), "dependencies").items():
            if isinstance(deps, Mapping):
                dependencies[trigger] = {
                    str(key): _field_names(names, "dependencies") for key, names in deps.items()
                }
            else:
                dependencies[trigger] = _field_names(deps, "dependencies")

        untaint_fields = get("untaint_constraint_fields")

        return cls(
            required=_field_names(get("required"), "required"),
            optional=_field_names(get("optional"), "optional"),
            required_regexp=_optional_pattern(get("required_regexp")),
            optional_regexp=_optional_pattern(get("optional_regexp")),
            require_some={
                group: RequireSome.from_value(spec)
                for group, spec in _mapping(get("require_some"), "require_some").items()
            },
            dependencies=dependencies,
            dependency_groups={
                group: _field_names(members, "dependency_groups")
                for group, members in _mapping(get("dependency_groups"), "dependency_groups").items()
            },
            defaults=dict(_mapping(get("defaults"), "defaults")),
            filters=_filter_list(get("filters"), "filters"),
            field_filters={
                name: _filter_list(refs, "field_filters")
                for name, refs in _mapping(get("field_filters"), "field_filters").items()
            },
            field_filter_regexp_map={
                compile_pattern(pattern): _filter_list(refs, "field_filter_regexp_map")
                for pattern, refs in _mapping(
                    get("field_filter_regexp_map"), "field_filter_regexp_map"
                ).items()
            },
            constraints={
                name: _constraint_list(spec, "constraints")
                for name, spec in _mapping(get("constraints"), "constraints").items()
            },
            constraint_regexp_map={
                compile_pattern(pattern): _constraint_list(spec, "constraint_regexp_map")
                for pattern, spec in _mapping(
                    get("constraint_regexp_map"), "constraint_regexp_map"
                ).items()
            },
            untaint_all_constraints=bool(get("untaint_all_constraints")),
            untaint_constraint_fields=(
                None
                if untaint_fields is None
                else _field_names(untaint_fields, "untaint_constraint_fields")
            ),
            missing_optional_valid=bool(get("missing_optional_valid")),
            validator_packages=_field_names(get("validator_packages"), "validator_packages"),
            msgs=dict(_mapping(get("msgs"), "msgs")),
            debug=bool(get("debug")),
            options=dict(options),
        )

    def constraint_names(self) -> set[str]:
        """Names of registered constraints this profile refers to."""
        specs = [spec for specs in self.constraints.values() for spec in specs]
        specs += [spec for specs in self.constraint_regexp_map.values() for spec in specs]
        return {spec.constraint for spec in specs if isinstance(spec.constraint, str)}

    def filter_names(self) -> set[str]:
        """Names of registered filters this profile refers to."""
        refs = list(self.filters)
        refs += [ref for refs in self.field_filters.values() for ref in refs]
        refs += [ref for refs in self.field_filter_regexp_map.values() for ref in refs]
        return {ref for ref in refs if isinstance(ref, str)}

"""Profile evaluation engine.

This module implements the evaluation of one input record against one
profile. The steps run in a fixed order, each feeding the next:

1. Parse the profile, merge requested validator packages into the registry
   and resolve every filter and constraint name
2. Normalize the input into a private working set
3. Apply unconditional filters, then per-field filters, then regexp-mapped
   filters (matched against the field names present after the earlier filters)
4. Resolve the required and optional sets, including required_regexp and
   optional_regexp matches over the filtered field names
5. Collect require_some membership
6. Strip empty values: empty scalars are removed, empty list elements are
   set to None while the list itself survives
7. Add dependencies and dependency groups of present fields to required
8. Remove unknown fields (neither required, optional nor a require_some member)
9. Fill defaults for absent fields
10. Report absent required fields and unsatisfied require_some groups as missing
11. Attach regexp-mapped constraints (appending to declared ones)
12. Check constraints, untainting where requested; fields with any failure
    move to invalid with the ordered names of the failed constraints
13. Backfill absent optional input fields as valid when missing_optional_valid

Structural problems (unknown options, unresolvable names, bad patterns) raise
before any field is classified. Everything else is an outcome in Results.
"""

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from formcheck.core.protocols import ParamSource
from formcheck.core.values import (
    FieldValue,
    Matched,
    Multi,
    Outcome,
    Rejected,
    Scalar,
    is_present,
    wrap,
)
from formcheck.validation.input import normalize
from formcheck.validation.patterns import resolve
from formcheck.validation.profile import ConstraintSpec, FilterRef, Literal, Profile
from formcheck.validation.registry import Registry, default_registry
from formcheck.validation.result import Results

logger = logging.getLogger(__name__)

_UNSET: Any = object()
_KEEP: Any = object()

Check = Callable[[list[Any]], Outcome]


class ConstraintContext:
    """Evaluation context handed to constraint methods.

    A constraint declared with ``constraint_method`` receives this object as
    its first argument. It exposes the field and value being checked, the
    caller's original input and read/write access to the working values.

    Example:
        >>> def same_as_password(ctx, value):
        ...     return value == ctx.valid("password")
        >>> profile = {
        ...     "required": ["password", "confirm"],
        ...     "constraints": {"confirm": {"constraint_method": same_as_password}},
        ... }
    """

    def __init__(self, input_data: Any, working: dict[str, FieldValue]) -> None:
        self._input_data = input_data
        self._working = working
        self.field: str | None = None
        self.value: Any = None
        self.constraint_name: str | None = None

    @property
    def input_data(self) -> Any:
        """The caller's original, unmodified input object."""
        return self._input_data

    def valid(self, field: str, value: Any = _UNSET) -> Any:
        """Read the current working value of ``field`` or replace it.

        Writes are seen by constraints that run afterwards, including later
        constraints of the same field. Writing None stores nothing.
        """
        if value is not _UNSET and value is not None:
            self._working[field] = wrap(value)
            return value
        current = self._working.get(field)
        return current.unwrap() if current is not None else None


class Engine:
    """Evaluates input records against profiles.

    Attributes:
        registry: Registry used to resolve filter and constraint names

    Example:
        >>> engine = Engine()
        >>> results = engine.evaluate(
        ...     {"required": ["a"], "optional": ["b"]},
        ...     {"a": "x", "c": "y"},
        ... )
        >>> results.valid()
        {'a': 'x'}
        >>> results.unknown()
        ['c']
    """

    def __init__(self, registry: Registry | None = None) -> None:
        self.registry = registry if registry is not None else default_registry()

    def evaluate(
        self,
        profile: Profile | Mapping[str, Any],
        data: Mapping[str, Any] | ParamSource,
    ) -> Results:
        """Evaluate ``data`` against ``profile``.

        Args:
            profile: Profile or profile mapping
            data: Mapping of field name to value(s), or a param source

        Returns:
            Results classifying every field

        Raises:
            ProfileError: If the profile is structurally invalid
            PatternError: If a profile pattern fails to compile
            RegistryError: If a filter, constraint or package cannot be resolved
        """
        profile = self.check_profile(profile)
        working = normalize(data)
        input_keys = list(working)

        self._apply_filters(profile, working)

        required = set(profile.required)
        optional = set(profile.optional)
        for key in working:
            if profile.required_regexp is not None and profile.required_regexp.search(key):
                required.add(key)
            if profile.optional_regexp is not None and profile.optional_regexp.search(key):
                optional.add(key)

        require_some_members = {
            member for group in profile.require_some.values() for member in group.members
        }

        _strip_empty(working)

        self._resolve_dependencies(profile, working, required)

        known = required | optional | require_some_members
        unknown = {key for key in working if key not in known}
        for key in unknown:
            del working[key]

        for name, default in profile.defaults.items():
            if name not in working:
                working[name] = wrap(default)

        missing = {name for name in required if name not in working}
        for group, spec in profile.require_some.items():
            present = sum(1 for member in spec.members if member in working)
            if present < spec.minimum:
                missing.add(group)

        attached = self._attach_constraints(profile, working)
        context = ConstraintContext(data, working)
        invalid = self._apply_constraints(profile, attached, working, context)
        for name in invalid:
            working.pop(name, None)

        if profile.missing_optional_valid:
            for key in input_keys:
                if key in optional and key not in working and key not in invalid and key not in missing:
                    working[key] = Scalar(None)

        logger.debug(
            "Evaluated profile: %d valid, %d missing, %d invalid, %d unknown",
            len(working),
            len(missing),
            len(invalid),
            len(unknown),
        )
        return Results(working, missing, invalid, unknown, msgs=profile.msgs)

    def check_profile(self, profile: Profile | Mapping[str, Any]) -> Profile:
        """Parse a profile and resolve everything it refers to.

        Merges the profile's validator packages into the registry and checks
        that every named filter and constraint exists.

        Returns:
            The parsed Profile

        Raises:
            ProfileError: If the profile is structurally invalid
            RegistryError: If a package, filter or constraint cannot be resolved
        """
        profile = Profile.from_dict(profile)
        for package in profile.validator_packages:
            self.registry.merge_package(package)
        for name in sorted(profile.filter_names()):
            self.registry.get_filter(name)
        for name in sorted(profile.constraint_names()):
            if not self.registry.has_constraint(name):
                raise self.registry.missing_constraint(name)
        return profile

    def _filter(self, ref: FilterRef) -> Callable[[Any], Any]:
        if isinstance(ref, str):
            return self.registry.get_filter(ref)
        return ref

    def _apply_filters(self, profile: Profile, working: dict[str, FieldValue]) -> None:
        for ref in profile.filters:
            func = self._filter(ref)
            for name in working:
                working[name] = working[name].map(func)

        for name, refs in profile.field_filters.items():
            if name not in working:
                continue
            for ref in refs:
                working[name] = working[name].map(self._filter(ref))

        for pattern, refs in profile.field_filter_regexp_map.items():
            for ref in refs:
                func = self._filter(ref)
                for name in resolve(pattern, list(working)):
                    working[name] = working[name].map(func)

    def _resolve_dependencies(
        self, profile: Profile, working: dict[str, FieldValue], required: set[str]
    ) -> None:
        for trigger, deps in profile.dependencies.items():
            value = working.get(trigger)
            if not is_present(value):
                continue
            if isinstance(deps, Mapping):
                for key, names in deps.items():
                    if _equals(value, key):
                        required.update(names)
            else:
                required.update(deps)

        for members in profile.dependency_groups.values():
            if any(is_present(working.get(member)) for member in members):
                required.update(members)

    def _attach_constraints(
        self, profile: Profile, working: dict[str, FieldValue]
    ) -> dict[str, list[ConstraintSpec]]:
        attached = {name: list(specs) for name, specs in profile.constraints.items()}
        level = logging.INFO if profile.debug else logging.DEBUG
        for pattern, specs in profile.constraint_regexp_map.items():
            for name in sorted(resolve(pattern, list(working))):
                attached.setdefault(name, []).extend(specs)
                logger.log(level, "constraint_regexp_map: %s matches %s", name, pattern.pattern)
        return attached

    def _apply_constraints(
        self,
        profile: Profile,
        attached: dict[str, list[ConstraintSpec]],
        working: dict[str, FieldValue],
        context: ConstraintContext,
    ) -> dict[str, list[str]]:
        if profile.untaint_constraint_fields is not None:
            untaint_all = False
            untaint_fields = set(profile.untaint_constraint_fields)
        else:
            untaint_all = profile.untaint_all_constraints
            untaint_fields = set()

        invalid: dict[str, list[str]] = {}
        for name, specs in attached.items():
            if name not in working:
                continue
            untaint = untaint_all or name in untaint_fields
            failed = self._check_field(name, specs, untaint, working, context)
            if failed:
                invalid[name] = failed
                del working[name]
        return invalid

    def _check_field(
        self,
        name: str,
        specs: list[ConstraintSpec],
        untaint: bool,
        working: dict[str, FieldValue],
        context: ConstraintContext,
    ) -> list[str]:
        failed: list[str] = []
        for spec in specs:
            check = self._build_check(spec, untaint)
            context.field = name
            context.constraint_name = spec.name
            current = working.get(name)
            if current is None:
                break

            rejected = False
            if isinstance(current, Multi):
                for index, item in enumerate(current):
                    if item is None:
                        continue
                    context.value = item
                    outcome = check(_params(spec, item, working, context))
                    if isinstance(outcome, Rejected):
                        rejected = True
                    elif untaint and outcome.value is not _KEEP:
                        element_list = working.get(name)
                        # a constraint method may have replaced the list
                        if isinstance(element_list, Multi) and index < len(element_list):
                            working[name] = element_list.replace(index, outcome.value)
            else:
                context.value = current.value
                outcome = check(_params(spec, current.value, working, context))
                if isinstance(outcome, Rejected):
                    rejected = True
                elif untaint and outcome.value is not _KEEP:
                    working[name] = Scalar(outcome.value)

            if rejected:
                failed.append(spec.name)
        return failed

    def _build_check(self, spec: ConstraintSpec, untaint: bool) -> Check:
        """Resolve a constraint spec into a function from parameters to an outcome."""
        target = spec.constraint
        name = spec.name

        if isinstance(target, re.Pattern):
            return _pattern_check(target, name, untaint)

        if isinstance(target, str):
            matcher = self.registry.get_matcher(target)
            predicate = self.registry.get_predicate(target)
            if untaint and matcher is None:
                raise self.registry.missing_constraint(target, untainting=True)
            if matcher is not None:
                return _matcher_check(matcher, name, untaint)
            if predicate is not None:
                return _callable_check(predicate, name, untaint=False)
            raise self.registry.missing_constraint(target)

        return _callable_check(target, name, untaint)


def _params(
    spec: ConstraintSpec, value: Any, working: dict[str, FieldValue], context: ConstraintContext
) -> list[Any]:
    """Build constraint arguments; field references read the current working values."""
    if spec.params is None:
        params = [value]
    else:
        params = []
        for param in spec.params:
            if isinstance(param, Literal):
                params.append(param.value)
            elif isinstance(param, str):
                current = working.get(param)
                params.append(current.unwrap() if current is not None else None)
            else:
                params.append(param)
    if spec.is_method:
        params.insert(0, context)
    return params


def _pattern_check(pattern: re.Pattern[str], name: str, untaint: bool) -> Check:
    def check(params: list[Any]) -> Outcome:
        value = params[0] if params else None
        if value is None:
            return Rejected(name)
        match = pattern.search(value if isinstance(value, str) else str(value))
        if match is None:
            return Rejected(name)
        if untaint:
            span = match.group(0)
            return Matched(span) if span else Rejected(name)
        return Matched(value)

    return check


def _matcher_check(matcher: Callable[..., Any], name: str, untaint: bool) -> Check:
    def check(params: list[Any]) -> Outcome:
        result = matcher(*params)
        if result is None or result is False or (untaint and not result):
            return Rejected(name)
        return Matched(result)

    return check


def _callable_check(func: Callable[..., Any], name: str, untaint: bool) -> Check:
    def check(params: list[Any]) -> Outcome:
        result = func(*params)
        if not result:
            return Rejected(name)
        if untaint and isinstance(result, re.Match):
            return Matched(result.group(0))
        if untaint and isinstance(result, str):
            return Matched(result)
        return Matched(_KEEP)

    return check


def _equals(value: FieldValue | None, key: str) -> bool:
    if isinstance(value, Multi):
        return any(item is not None and str(item) == key for item in value)
    if isinstance(value, Scalar):
        return value.value is not None and str(value.value) == key
    return False


def _strip_empty(working: dict[str, FieldValue]) -> None:
    for name in list(working):
        value = working[name]
        if isinstance(value, Multi):
            working[name] = value.without_empty_elements()
        elif value.is_empty():
            del working[name]


def evaluate(
    profile: Profile | Mapping[str, Any],
    data: Mapping[str, Any] | ParamSource,
    registry: Registry | None = None,
) -> Results:
    """Evaluate ``data`` against ``profile`` with ``registry`` (default: shared).

    Example:
        >>> evaluate({"required": ["email"], "constraints": {"email": "email"}},
        ...          {"email": "not-an-email"}).invalid()
        ['email']
    """
    return Engine(registry).evaluate(profile, data)

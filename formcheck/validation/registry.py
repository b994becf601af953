"""Filter and constraint registry.

This module provides the registry the engine resolves filter and constraint
names against. Names are looked up explicitly; an unregistered name is a
structural error raised at evaluation time.

The registry supports:
- Registration of filters, matchers (return the value to keep) and predicates
- Merging every conventionally named function from a module or an importable
  package (``filter_<name>``, ``match_<name>``, ``valid_<name>``)
- Listing registered names with descriptions taken from docstrings
- Error handling for unknown names, listing what is available

A registry is an ordinary object owned by the caller and passed to the
Engine. ``default_registry()`` returns a shared instance preloaded with the
built-in filters and constraints. Registration is guarded by a lock and
merging a package twice is a no-op.
"""

import importlib
import inspect
import logging
import threading
from collections.abc import Callable
from types import ModuleType
from typing import Any

from formcheck.core.exceptions import RegistryError
from formcheck.core.protocols import Constraint, Filter
from formcheck.validation import constraints as builtin_constraints
from formcheck.validation import filters as builtin_filters

logger = logging.getLogger(__name__)

FILTER_PREFIX = "filter_"
MATCHER_PREFIX = "match_"
PREDICATE_PREFIX = "valid_"


def _describe(func: Callable[..., Any]) -> str:
    doc = inspect.getdoc(func)
    return doc.splitlines()[0].strip() if doc else "No description"


class Registry:
    """Registry of named filters and constraints.

    Example:
        >>> registry = Registry()
        >>> registry.register_filter("squash", lambda v: v.replace(" ", ""))
        >>> registry.register_constraint("even", lambda v: int(v) % 2 == 0)
        >>> registry.get_filter("squash")(" a b ")
        'ab'
    """

    def __init__(self, include_builtins: bool = True) -> None:
        """Initialize the registry.

        Args:
            include_builtins: Preload the built-in filters and constraints
        """
        self._filters: dict[str, Filter] = {}
        self._matchers: dict[str, Constraint] = {}
        self._predicates: dict[str, Constraint] = {}
        self._packages: set[str] = set()
        self._lock = threading.RLock()

        if include_builtins:
            self.merge_module(builtin_filters)
            self.merge_module(builtin_constraints)

    def register_filter(self, name: str, func: Filter) -> None:
        """Register a filter under ``name``, replacing any previous one."""
        with self._lock:
            self._filters[name] = func

    def register_constraint(
        self, name: str, func: Constraint, matcher: bool = False
    ) -> None:
        """Register a constraint under ``name``.

        Args:
            name: Name profiles refer to the constraint by
            func: The constraint function
            matcher: True if ``func`` returns the value to keep (or None on
                     failure) and can therefore be used for untainting. False
                     registers a plain predicate judged by truthiness.
        """
        with self._lock:
            if matcher:
                self._matchers[name] = func
            else:
                self._predicates[name] = func

    def merge_module(self, module: ModuleType) -> int:
        """Register every conventionally named function of ``module``.

        Returns:
            Number of functions registered
        """
        count = 0
        with self._lock:
            for attr, obj in vars(module).items():
                if not inspect.isroutine(obj):
                    continue
                if attr.startswith(FILTER_PREFIX):
                    self._filters[attr[len(FILTER_PREFIX):]] = obj
                elif attr.startswith(MATCHER_PREFIX):
                    self._matchers[attr[len(MATCHER_PREFIX):]] = obj
                elif attr.startswith(PREDICATE_PREFIX):
                    self._predicates[attr[len(PREDICATE_PREFIX):]] = obj
                else:
                    continue
                count += 1
        return count

    def merge_package(self, package: str) -> None:
        """Import ``package`` and merge its conventionally named functions.

        Merging is idempotent: a package already merged into this registry
        is not imported again.

        Raises:
            RegistryError: If the package cannot be imported
        """
        with self._lock:
            if package in self._packages:
                return
            try:
                module = importlib.import_module(package)
            except ImportError as e:
                raise RegistryError(
                    f"Couldn't load validator package '{package}': {e}",
                    kind="package",
                    name=package,
                ) from e
            count = self.merge_module(module)
            self._packages.add(package)
        logger.info("Merged %d functions from validator package %s", count, package)

    def merged_packages(self) -> list[str]:
        with self._lock:
            return sorted(self._packages)

    def get_filter(self, name: str) -> Filter:
        """Get a filter by name.

        Raises:
            RegistryError: If no filter is registered under ``name``, with a
                          message listing the available filters
        """
        try:
            return self._filters[name]
        except KeyError:
            available = ", ".join(sorted(self._filters)) or "none"
            raise RegistryError(
                f"No filter found named '{name}'. Available: {available}",
                kind="filter",
                name=name,
            ) from None

    def get_matcher(self, name: str) -> Constraint | None:
        return self._matchers.get(name)

    def get_predicate(self, name: str) -> Constraint | None:
        return self._predicates.get(name)

    def has_filter(self, name: str) -> bool:
        return name in self._filters

    def has_constraint(self, name: str) -> bool:
        return name in self._matchers or name in self._predicates

    def constraint_names(self) -> list[str]:
        return sorted(set(self._matchers) | set(self._predicates))

    def missing_constraint(self, name: str, untainting: bool = False) -> RegistryError:
        """Build the error raised for an unresolvable constraint name."""
        available = ", ".join(self.constraint_names()) or "none"
        if untainting:
            message = f"No untainting constraint found named '{name}'"
        else:
            message = f"No constraint found named '{name}'"
        return RegistryError(
            f"{message}. Available: {available}", kind="constraint", name=name
        )

    def list_filters(self) -> dict[str, str]:
        """List registered filters with descriptions (first docstring line)."""
        return {name: _describe(func) for name, func in sorted(self._filters.items())}

    def list_constraints(self) -> dict[str, str]:
        """List registered constraints with descriptions (first docstring line)."""
        listing: dict[str, str] = {}
        for name in self.constraint_names():
            func = self._matchers.get(name) or self._predicates[name]
            listing[name] = _describe(func)
        return listing


_default_registry: Registry | None = None
_default_lock = threading.Lock()


def default_registry() -> Registry:
    """Return the shared registry preloaded with the built-ins."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = Registry()
        return _default_registry

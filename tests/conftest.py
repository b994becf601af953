"""Shared test fixtures and Hypothesis strategies for formcheck tests."""

import pytest
from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from formcheck.validation.registry import Registry

settings.register_profile("formcheck", max_examples=100, deadline=None)
settings.load_profile("formcheck")


FIELD_NAME_ALPHABET = st.characters(
    whitelist_categories=("Ll", "Nd"),
    whitelist_characters="_",
)


def field_names() -> st.SearchStrategy[str]:
    """Generate field names (lowercase letters, digits and underscores).

    Example:
        >>> from hypothesis import given
        >>> @given(field_names())
        ... def test_something(name):
        ...     assert name
    """
    return st.text(alphabet=FIELD_NAME_ALPHABET, min_size=1, max_size=12)


def scalar_values() -> st.SearchStrategy[str]:
    """Generate form values, including empty and whitespace-only strings."""
    return st.one_of(
        st.just(""),
        st.just("  "),
        st.text(
            alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd", "Zs")),
            max_size=15,
        ),
    )


def field_values() -> st.SearchStrategy[str | list[str]]:
    """Generate a single form value or a list of them (multi-select input)."""
    return st.one_of(scalar_values(), st.lists(scalar_values(), min_size=1, max_size=4))


@composite
def records(draw: st.DrawFn, max_fields: int = 8) -> dict[str, str | list[str]]:
    """Generate input records mapping field names to values.

    Args:
        draw: Hypothesis draw function
        max_fields: Maximum number of fields in the record

    Returns:
        Dictionary of field name to value or list of values
    """
    names = draw(st.lists(field_names(), max_size=max_fields, unique=True))
    return {name: draw(field_values()) for name in names}


@composite
def records_with_profile(draw: st.DrawFn) -> tuple[dict[str, object], dict[str, object]]:
    """Generate a record and a profile splitting some of its fields into
    required and optional, plus some required fields the record lacks.

    Returns:
        Tuple of (profile, record)
    """
    record = draw(records())
    names = list(record)
    known = draw(st.lists(st.sampled_from(names), unique=True)) if names else []
    extra = draw(
        st.lists(field_names().filter(lambda n: n not in record), max_size=3, unique=True)
    )
    split = draw(st.integers(min_value=0, max_value=len(known)))
    profile = {
        "required": known[:split] + extra,
        "optional": known[split:],
    }
    return profile, record


@pytest.fixture
def registry() -> Registry:
    """A fresh registry with the built-ins, isolated from the shared one."""
    return Registry()

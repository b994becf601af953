"""formcheck: declarative validation of form input and records.

Example:
    >>> from formcheck import evaluate
    >>> results = evaluate(
    ...     {"required": ["email"], "optional": ["name"], "constraints": {"email": "email"}},
    ...     {"email": "mark@example.com", "name": " Mark ", "extra": "x"},
    ... )
    >>> results.valid()
    {'email': 'mark@example.com', 'name': ' Mark '}
    >>> results.unknown()
    ['extra']
"""

from formcheck.core.exceptions import (
    FormcheckError,
    MessageFormatError,
    PatternError,
    ProfileError,
    ProfileLoadError,
    RegistryError,
)
from formcheck.validation import (
    ConstraintContext,
    Engine,
    FormValidator,
    Literal,
    Profile,
    Registry,
    Results,
    evaluate,
)

__version__ = "0.1.0"

__all__ = [
    "ConstraintContext",
    "Engine",
    "FormValidator",
    "FormcheckError",
    "Literal",
    "MessageFormatError",
    "PatternError",
    "Profile",
    "ProfileError",
    "ProfileLoadError",
    "Registry",
    "RegistryError",
    "Results",
    "evaluate",
]

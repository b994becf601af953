"""Custom exception classes for formcheck error handling.

This module defines the exception hierarchy for structural errors, the
failures that abort an evaluation because the profile or its environment is
wrong (as opposed to bad user input, which is reported in Results):

- ProfileError: Unknown profile options or malformed option values
- PatternError: A regular expression in a profile failed to compile
- RegistryError: A named filter, constraint or validator package cannot be resolved
- MessageFormatError: Message formatting configuration is unusable
- ProfileLoadError: Profile files cannot be read or do not hold profiles

All exceptions inherit from FormcheckError for consistent error handling.
"""

from typing import Any


class FormcheckError(Exception):
    """Base exception for all formcheck errors.

    Provides a common base class for all custom exceptions raised by the
    engine, enabling catch-all error handling when needed.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error description
            context: Optional dictionary of contextual information (option
                    names, patterns, field names, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        if not self.context:
            return self.message

        context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.message} [{context_str}]"


class ProfileError(FormcheckError):
    """Exception raised when a validation profile is structurally invalid.

    Context typically includes:
        - option: Name of the offending profile option
        - value: The value given for it
        - reason: Why the value is rejected
    """

    def __init__(
        self,
        message: str,
        option: str | None = None,
        value: Any = None,
        reason: str | None = None,
        **extra_context: Any,
    ) -> None:
        """Initialize profile error with option details.

        Args:
            message: Human-readable error description
            option: Profile option that is invalid
            value: Invalid value provided
            reason: Why the value is invalid
            **extra_context: Additional context information
        """
        context: dict[str, Any] = {}
        if option is not None:
            context["option"] = option
        if value is not None:
            context["value"] = value
        if reason is not None:
            context["reason"] = reason
        context.update(extra_context)

        super().__init__(message, context)


class PatternError(ProfileError):
    """Exception raised when a profile pattern cannot be compiled.

    Example:
        >>> raise PatternError(
        ...     "Error compiling regular expression /[a-/",
        ...     pattern="/[a-/",
        ...     reason="unterminated character set at position 1"
        ... )
    """

    def __init__(
        self,
        message: str,
        pattern: str | None = None,
        reason: str | None = None,
        **extra_context: Any,
    ) -> None:
        if pattern is not None:
            extra_context["pattern"] = pattern
        super().__init__(message, reason=reason, **extra_context)


class RegistryError(FormcheckError):
    """Exception raised when a filter, constraint or package cannot be resolved.

    Context typically includes:
        - kind: "filter", "constraint" or "package"
        - name: The name that was looked up
        - available: Comma-separated list of registered names
    """

    def __init__(
        self,
        message: str,
        kind: str | None = None,
        name: str | None = None,
        available: str | None = None,
        **extra_context: Any,
    ) -> None:
        """Initialize registry error with lookup details.

        Args:
            message: Human-readable error description
            kind: Kind of registry entry that was requested
            name: Name that could not be resolved
            available: Names that are registered for that kind
            **extra_context: Additional context information
        """
        context: dict[str, Any] = {}
        if kind is not None:
            context["kind"] = kind
        if name is not None:
            context["name"] = name
        if available is not None:
            context["available"] = available
        context.update(extra_context)

        super().__init__(message, context)


class MessageFormatError(FormcheckError):
    """Exception raised when message formatting controls are unusable."""

    def __init__(self, message: str, format: str | None = None, **extra_context: Any) -> None:
        context: dict[str, Any] = {}
        if format is not None:
            context["format"] = format
        context.update(extra_context)

        super().__init__(message, context)


class ProfileLoadError(FormcheckError):
    """Exception raised when profiles cannot be loaded from their source.

    Context typically includes:
        - file_path: Path to the profile file
        - profile: Name of the requested profile
        - reason: Specific reason for the failure
    """

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        profile: str | None = None,
        reason: str | None = None,
        **extra_context: Any,
    ) -> None:
        context: dict[str, Any] = {}
        if file_path is not None:
            context["file_path"] = file_path
        if profile is not None:
            context["profile"] = profile
        if reason is not None:
            context["reason"] = reason
        context.update(extra_context)

        super().__init__(message, context)

"""Custom exception hierarchy for condQL.

All public errors inherit from CondQLError so callers can catch the base
class for any condQL-specific failure.

Type coercion inside :class:`~condql.conditions.hash.ConditionHash` never
raises; failures there surface as ``ParseResult(ok=False, ...)`` instead.
"""
from __future__ import annotations


class CondQLError(Exception):
    """Base exception for all condQL errors."""


class ConfigurationError(CondQLError):
    """Raised when a builder call sequence cannot be rendered.

    Detected at :meth:`SqlBuilder.render` time: an INSERT/UPDATE/DELETE
    without exactly one table, an INSERT without values, an UPDATE without
    SET assignments, or a SELECT without any table.

    Args:
        message: Human-readable description.
        clause: The statement mode or clause being rendered when the error
            occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class PreconditionError(CondQLError):
    """Raised when a typed-builder argument is missing or empty.

    Args:
        message: Human-readable description.
        argument: Name of the offending argument.
    """

    def __init__(self, message: str, argument: str | None = None) -> None:
        super().__init__(message)
        self.argument = argument


def check_not_none(value: object, argument: str) -> None:
    """Raise :class:`PreconditionError` when ``value`` is ``None``."""
    if value is None:
        raise PreconditionError(f"'{argument}' can not be None.", argument=argument)


def check_not_empty(value: str | None, argument: str) -> None:
    """Raise :class:`PreconditionError` when ``value`` is ``None`` or ``""``."""
    if not value:
        raise PreconditionError(
            f"'{argument}' can not be None or empty.", argument=argument
        )

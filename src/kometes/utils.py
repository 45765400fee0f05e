"""
Utility functions for the Kometes package.
"""

import warnings
from enum import Enum
from typing import Type
from .config import config
from .errors import ParseError


class ConfigEnum(Enum):
    """Enum whose members are spelled in configuration by their value."""

    @classmethod
    def parse(cls, text):
        """
        Look up a member by its configuration spelling, ignoring case.

        Accepts an existing member unchanged.

        Raises
        ------
        ParseError
            If no member matches
        """
        if isinstance(text, cls):
            return text
        key = str(text).strip().lower()
        for member in cls:
            if member.value.lower() == key or member.name.lower() == key:
                return member
        raise ParseError(
            f"Unknown {cls.__name__} '{text}'; expected one of "
            f"{[member.value for member in cls]}")


def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent validation behavior across the package.
    When STRICT_VALIDATION is True (default), raises the specified exception.
    When False, issues a UserWarning instead.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False

    Examples
    --------
    >>> from kometes.utils import validation_error
    >>> from kometes import config
    >>> config.STRICT_VALIDATION = True
    >>> validation_error("Unknown block")  # Raises ValueError

    >>> config.STRICT_VALIDATION = False
    >>> validation_error("Unknown block")  # Issues warning
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=2)


def root_cause(exc: BaseException) -> BaseException:
    """Follow the ``__cause__`` chain of an exception to its origin."""
    while exc.__cause__ is not None:
        exc = exc.__cause__
    return exc


def describe_failure(exc: BaseException) -> str:
    """
    One-line description of an exception and, if chained, its root cause.

    Examples
    --------
    >>> try:
    ...     raise RuntimeError("outer") from ValueError("inner")
    ... except RuntimeError as e:
    ...     describe_failure(e)
    'Cause: "outer". Root Cause: "inner".'
    """
    base = root_cause(exc)
    if base is not exc:
        return f'Cause: "{exc}". Root Cause: "{base}".'
    return f'Cause: "{exc}".'

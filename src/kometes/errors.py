"""
Exception hierarchy for the Kometes package.

Each error kind also derives from the closest builtin exception, so callers
that only know about ``ValueError`` or ``LookupError`` keep working.
"""


class KometesError(Exception):
    """Base class for every error raised by Kometes."""


class ParseError(KometesError, ValueError):
    """A configuration string could not be interpreted."""


class BodyLookupError(KometesError, LookupError):
    """Unknown celestial body, body property, or reference frame."""


class InvalidParameterError(KometesError, ValueError):
    """Distribution parameters are outside the distribution's domain."""


class InvalidOperationError(KometesError, RuntimeError):
    """
    An operation cannot be carried out with the given state.

    Raised for inconsistent orbital elements, orbits that cannot be patched
    into a parent sphere of influence, and empty or degenerate weighted
    selections.
    """

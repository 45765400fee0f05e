"""
Relative frequencies of labelled outcomes, as written in configuration.

Each entry has the form ``"<weight> <label>"``, e.g. ``"0.75 PotatoRoid"``.
"""

import re
from .errors import ParseError

_OCCURRENCE = re.compile(r"(?P<rate>[-+.e\d]+)\s+(?P<id>\w+)", re.IGNORECASE)


def parse_proportions(entries):
    """
    Parse a list of ``"<weight> <label>"`` strings.

    Parameters
    ----------
    entries : iterable of str

    Returns
    -------
    list of (str, float)
        (label, weight) pairs in input order, ready for
        :meth:`RandomSource.weighted_choice`.

    Raises
    ------
    ParseError
        If an entry does not have the expected form or its weight is not
        a number.
    """
    proportions = []
    for entry in entries:
        match = _OCCURRENCE.match(entry.strip())
        if match is None:
            raise ParseError(f"Cannot parse '{entry}' as a number and name")
        try:
            weight = float(match.group("rate"))
        except ValueError as e:
            raise ParseError(
                f"Cannot parse '{match.group('rate')}' as a floating point number") from e
        proportions.append((match.group("id"), weight))
    return proportions

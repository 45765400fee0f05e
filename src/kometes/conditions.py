"""
Eligibility conditions for asteroid sets.

A condition combines predicates on the player's progress, such as
``"Dres.reached"`` or ``"Jool.nowOrbitManned"``, with AND or OR. It is
checked each time the set's spawn rate is asked for.

Examples
--------
>>> from kometes.conditions import Condition, Operator, ProgressState
>>> condition = Condition(Operator.OR, ["Duna.reached", "Dres.hadOrbitUnmanned"])
>>> state = ProgressState()
>>> condition.check(state)
False
>>> state.record_achievement("Duna", "Flyby", manned=True)
>>> condition.check(state)
True
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Protocol, Set, Tuple
from .errors import ParseError
from .utils import ConfigEnum


class Crew(ConfigEnum):
    """Which vessels satisfy a predicate."""
    ANY = "Any"
    MANNED = "Manned"
    UNMANNED = "Unmanned"


class VesselTest(Enum):
    PRESENT = "Present"
    ORBITING = "Orbiting"
    LANDED = "Landed"


class Operator(ConfigEnum):
    AND = "And"
    OR = "Or"


class GameState(Protocol):
    """What conditions need to know about the game."""

    def achievement_complete(self, body: str, achievement: str, crew: Crew) -> bool:
        ...

    def vessel_check(self, body: str, test: VesselTest, crew: Crew) -> bool:
        ...


class ProgressState:
    """
    In-memory :class:`GameState`.

    Achievements are names such as ``"Flyby"``, ``"Orbit"`` or ``"Landing"``.
    Vessels are recorded with the body they are at and whether they orbit
    it or are landed on it.
    """

    def __init__(self):
        self._achievements: Dict[Tuple[str, str], Set[Crew]] = {}
        self._vessels: List[Tuple[str, VesselTest, Crew]] = []

    def record_achievement(self, body: str, achievement: str, manned: bool = False):
        crew = Crew.MANNED if manned else Crew.UNMANNED
        self._achievements.setdefault((body, achievement.lower()), set()).add(crew)

    def add_vessel(self, body: str, situation: VesselTest, manned: bool = False):
        if situation is VesselTest.PRESENT:
            raise ValueError("A vessel must be either orbiting or landed")
        self._vessels.append((body, situation, Crew.MANNED if manned else Crew.UNMANNED))

    def clear_vessels(self):
        self._vessels.clear()

    def achievement_complete(self, body, achievement, crew=Crew.ANY):
        crews = self._achievements.get((body, achievement.lower()), set())
        return bool(crews) if crew is Crew.ANY else crew in crews

    def vessel_check(self, body, test, crew=Crew.ANY):
        for vessel_body, situation, vessel_crew in self._vessels:
            if vessel_body != body:
                continue
            if test is not VesselTest.PRESENT and situation is not test:
                continue
            if crew is Crew.ANY or crew is vessel_crew:
                return True
        return False


# ========== PREDICATES ==========
@dataclass(frozen=True)
class AchievementPredicate:
    """True if any of ``achievements`` has been completed at ``body``."""
    body: str
    keyword: str
    achievements: Tuple[str, ...]
    crew: Crew = Crew.ANY

    def check(self, state: GameState) -> bool:
        return any(state.achievement_complete(self.body, achievement, self.crew)
                   for achievement in self.achievements)

    def __str__(self):
        return _unparse(self.body, self.keyword, self.crew)


@dataclass(frozen=True)
class VesselPredicate:
    """True if a vessel currently satisfies ``test`` at ``body``."""
    body: str
    keyword: str
    test: VesselTest
    crew: Crew = Crew.ANY

    def check(self, state: GameState) -> bool:
        return state.vessel_check(self.body, self.test, self.crew)

    def __str__(self):
        return _unparse(self.body, self.keyword, self.crew)


_ACHIEVEMENTS = {
    "reached": ("Escape", "Flyby"),
    "hadorbit": ("Orbit",),
    "hadlanded": ("Landing", "Splashdown"),
    "science": ("Science",),
}
_VESSEL_TESTS = {
    "nowpresent": VesselTest.PRESENT,
    "noworbit": VesselTest.ORBITING,
    "nowlanded": VesselTest.LANDED,
}
_KEYWORDS = {
    "reached": "reached", "hadorbit": "hadOrbit", "hadlanded": "hadLanded",
    "science": "science", "nowpresent": "nowPresent", "noworbit": "nowOrbit",
    "nowlanded": "nowLanded",
}
_PREDICATE = re.compile(r"(?P<planet>.+)\s*\.\s*(?P<pred>\w+?)(?P<type>manned|unmanned)?",
                        re.IGNORECASE)


def _unparse(body, keyword, crew):
    return f"{body}.{keyword}" + ("" if crew is Crew.ANY else crew.value)


def parse_predicate(text: str):
    """
    Parse ``"<body>.<predicate>[Manned|Unmanned]"``.

    Raises
    ------
    ParseError
        If the string is malformed or names an unknown predicate
    """
    match = _PREDICATE.fullmatch(text.strip())
    if match is None:
        raise ParseError(f"Cannot parse '{text}' as a condition")
    body = match.group("planet").strip()
    pred = match.group("pred").lower()
    crew = Crew.parse(match.group("type")) if match.group("type") else Crew.ANY

    if pred in _ACHIEVEMENTS:
        return AchievementPredicate(body, _KEYWORDS[pred], _ACHIEVEMENTS[pred], crew)
    if pred in _VESSEL_TESTS:
        return VesselPredicate(body, _KEYWORDS[pred], _VESSEL_TESTS[pred], crew)
    raise ParseError(f"Unknown condition type '{match.group('pred')}' in '{text}'")


class Condition:
    """
    Predicates combined with a single AND or OR.

    Parameters
    ----------
    op : Operator or str
    clauses : iterable of str or predicate
        Strings are parsed with :func:`parse_predicate`

    Notes
    -----
    An empty condition is always true. Clauses are checked lazily, so the
    game state is only consulted until the result is known.
    """

    def __init__(self, op=Operator.AND, clauses: Iterable = ()):
        self.op = Operator.parse(op)
        self.clauses = [parse_predicate(clause) if isinstance(clause, str) else clause
                        for clause in clauses]

    @classmethod
    def from_config(cls, mapping):
        """
        Build a condition from a record with an optional ``combine`` operator
        and a ``condition`` entry holding one predicate string or a list of them.
        """
        clauses = mapping.get("condition", [])
        if isinstance(clauses, str):
            clauses = [clauses]
        return cls(mapping.get("combine", Operator.AND), clauses)

    def check(self, state: GameState) -> bool:
        if not self.clauses:
            return True
        if self.op is Operator.AND:
            return all(clause.check(state) for clause in self.clauses)
        return any(clause.check(state) for clause in self.clauses)

    def __len__(self):
        return len(self.clauses)

    def __str__(self):
        return f" {self.op.value} ".join(str(clause) for clause in self.clauses)

    def __repr__(self):
        return f"Condition({self.op.value}, {[str(clause) for clause in self.clauses]})"

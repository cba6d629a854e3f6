"""Dossier Records — plain, IO-free snapshot of one client's care dossier.

Invariants:
    - Records are immutable dataclasses; core functions never mutate them
    - Dates are datetime.date (no time component, no timezone)
    - Measure.score stays a string; numeric_score() parses on demand

Design Decisions:
    - Snapshot decoupled from ORM models: rule tables and heuristics run on test data
      without a database (services/dossier_loader.py converts ORM rows)
    - Collections ordered most-recent-first, matching repository ordering
"""

import calendar
from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class ClientRecord:
    client_id: str
    name: str = ""
    dob: str = ""
    wlz_profile: str = ""
    provider: str = ""


@dataclass(frozen=True)
class NoteRecord:
    id: str
    date: date
    author: str
    section: str
    text: str


@dataclass(frozen=True)
class MeasureRecord:
    id: str
    date: date
    type: str
    score: str
    comment: str | None = None

    def numeric_score(self) -> float | None:
        """Parse score as float; None when not numeric."""
        try:
            return float(str(self.score).replace(",", "."))
        except ValueError:
            return None


@dataclass(frozen=True)
class IncidentRecord:
    id: str
    date: date
    type: str
    severity: str
    description: str


@dataclass(frozen=True)
class Dossier:
    """Everything the rule engine and heuristics may look at for one client."""
    client: ClientRecord
    notes: list[NoteRecord] = field(default_factory=list)
    measures: list[MeasureRecord] = field(default_factory=list)
    incidents: list[IncidentRecord] = field(default_factory=list)

    def find_note(self, record_id: str) -> NoteRecord | None:
        return next((n for n in self.notes if n.id == record_id), None)

    def find_measure(self, record_id: str) -> MeasureRecord | None:
        return next((m for m in self.measures if m.id == record_id), None)

    def find_incident(self, record_id: str) -> IncidentRecord | None:
        return next((i for i in self.incidents if i.id == record_id), None)


def days_between(earlier: date, later: date) -> int:
    """Whole days from earlier to later (negative when earlier is in the future)."""
    return (later - earlier).days


def months_ago(today: date, months: int) -> date:
    """Calendar-month subtraction, clamping the day to the target month's length."""
    month_index = today.year * 12 + (today.month - 1) - months
    year, month0 = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month0 + 1)[1]
    return date(year, month0 + 1, min(today.day, last_day))

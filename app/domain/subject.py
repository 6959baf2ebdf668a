"""
Read-only views of registry entities consumed by the payment schedule.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class Subject:
    """A player or coach eligible for monthly billing."""
    id: int
    name: str
    subject_type: str  # player / coach
    group: str | None = None  # player age group or coach specialization
    base_amount: Decimal | None = None  # monthly fee / agreed salary


@dataclass(frozen=True)
class BillingSession:
    id: int
    name: str
    start_date: date
    end_date: date  # inclusive
    team_id: int | None = None

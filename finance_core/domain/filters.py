"""Movement search and quick period filters"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from finance_core.domain.exceptions import InvalidPeriodRange
from finance_core.domain.models import Movement
from finance_core.utils.date_utils import current_period

PERIOD_FILTERS = {"today": "daily", "week": "weekly", "month": "monthly"}


@dataclass
class MovementFilter:
    """Criteria combined with AND; empty collections match everything"""

    search: str = ""
    categories: Tuple[str, ...] = ()
    payment_methods: Tuple[str, ...] = ()
    entity_ids: Tuple[str, ...] = ()
    directions: Tuple[str, ...] = ()
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise InvalidPeriodRange(f"End date {self.end_date} is before start date {self.start_date}")

    def matches(self, movement: Movement) -> bool:
        if self.search and self.search.strip().lower() not in movement.description.lower():
            return False
        if self.categories and movement.category not in self.categories:
            return False
        if self.payment_methods and movement.payment_method not in self.payment_methods:
            return False
        if self.entity_ids and movement.entity_id not in self.entity_ids:
            return False
        if self.directions and movement.direction not in self.directions:
            return False
        if self.start_date and movement.date < self.start_date:
            return False
        if self.end_date and movement.date > self.end_date:
            return False
        return True


def filter_movements(movements: Iterable[Movement], criteria: MovementFilter) -> List[Movement]:
    """Matching movements, newest first"""
    matched = [m for m in movements if criteria.matches(m)]
    return sorted(matched, key=lambda m: (m.date, m.id), reverse=True)


def filter_by_period(movements: Iterable[Movement], key: str, today: date) -> List[Movement]:
    """Movements in today's day, ISO week or calendar month"""
    if key not in PERIOD_FILTERS:
        raise InvalidPeriodRange(f"Unsupported period filter: {key}")
    period = current_period(PERIOD_FILTERS[key], today)
    return [m for m in movements if period.contains(m.date)]

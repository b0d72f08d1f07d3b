"""Loan policy: loan periods, overdue fines and renewal eligibility.

Everything here is a pure function of dates and a member category. The
check-in and renewal tables disagree for teachers: check-in never treats a
teacher loan as overdue, while renewal extends it by 30 days like a class
loan. Both tables match current desk behavior until product settles which
one is right.
"""
from datetime import date, datetime, timedelta
from typing import Iterable, NamedTuple, Optional

DEFAULT_CATEGORY_DAYS = 15

# None means the category is never overdue.
CHECKIN_ALLOWED_DAYS = {
    "teacher": None,
    "class": 30,
    "student": 15,
}

RENEWAL_DAYS = {
    "teacher": 30,
    "class": 30,
}

CHECKOUT_DAYS = 15
RENEWAL_WINDOW_DAYS = 5

FIRST_OVERDUE_DAY_FINE = 3
EXTRA_OVERDUE_DAY_FINE = 1

RENEWAL_OVERDUE = "overdue"
RENEWAL_TOO_EARLY = "too_early"


class RenewalDecision(NamedTuple):
    allowed: bool
    reason: Optional[str] = None
    new_due_date: Optional[date] = None


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def checkin_allowed_days(category: str) -> Optional[int]:
    """Days a member may keep a book before it counts as overdue at check-in."""
    return CHECKIN_ALLOWED_DAYS.get(category, DEFAULT_CATEGORY_DAYS)


def renewal_days(category: str) -> int:
    return RENEWAL_DAYS.get(category, DEFAULT_CATEGORY_DAYS)


def checkout_due_date(issue_date) -> date:
    return _as_date(issue_date) + timedelta(days=CHECKOUT_DAYS)


def effective_days(borrow_date, return_date, excluded_days: int = 0) -> int:
    """Calendar days between borrow and return, less excluded leave days.

    No floor is applied; excluding more days than elapsed gives a negative
    count, which is still never overdue.
    """
    elapsed = (_as_date(return_date) - _as_date(borrow_date)).days
    return elapsed - excluded_days


def fine_for_days(days: int, allowed: Optional[int]) -> int:
    if allowed is None or days <= allowed:
        return 0
    return FIRST_OVERDUE_DAY_FINE + (days - allowed - 1) * EXTRA_OVERDUE_DAY_FINE


def compute_fine(borrow_date, return_date, category: str, excluded_days: int = 0) -> int:
    """Fine owed when a loan is checked in.

    The first overdue day costs 3, every further day costs 1 more:

    >>> compute_fine(date(2024, 1, 1), date(2024, 1, 20), "student")
    6
    >>> compute_fine(date(2024, 1, 1), date(2024, 1, 20), "student", excluded_days=5)
    0
    """
    days = effective_days(borrow_date, return_date, excluded_days)
    return fine_for_days(days, checkin_allowed_days(category))


def validate_excluded_dates(dates: Iterable, borrow_date, today) -> int:
    """Return how many distinct leave days are excluded from a loan.

    Each day must fall inside [borrow_date, today], both ends inclusive.
    Raises ``ValueError`` naming the first day outside that range.
    """
    start, end = _as_date(borrow_date), _as_date(today)
    seen = set()
    for day in dates:
        day = _as_date(day)
        if day < start or day > end:
            raise ValueError(
                f"Excluded day {day.isoformat()} is outside {start.isoformat()}..{end.isoformat()}"
            )
        seen.add(day)
    return len(seen)


def check_renewal(due_date, today, category: str) -> RenewalDecision:
    """Decide whether a loan may be renewed today.

    An overdue loan is refused before the window is considered, so an
    overdue book always has to be checked in. Renewal opens five days
    before the due date and extends from the current due date, not from
    today.
    """
    due, today = _as_date(due_date), _as_date(today)
    if today > due:
        return RenewalDecision(False, RENEWAL_OVERDUE)
    if (due - today).days > RENEWAL_WINDOW_DAYS:
        return RenewalDecision(False, RENEWAL_TOO_EARLY)
    return RenewalDecision(True, None, due + timedelta(days=renewal_days(category)))

"""Cohort selection shared by the role sweep and its preview.

Cohorts are checked in priority order and a user matched by one cohort is not
considered by the later ones, so a sweep plans at most one transition per user.
"""

from dataclasses import dataclass
from datetime import date

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from backend.core import config
from backend.lifecycle.evaluator import evaluate
from backend.lifecycle.standing import FINAL_YEAR
from backend.models.user import (
    ROLE_ALUMNI,
    ROLE_SENIOR,
    ROLE_STUDENT,
    VERIFICATION_APPROVED,
    User,
)

STUDENTS_TO_SENIOR = 'students_to_senior'
SENIORS_TO_ALUMNI = 'seniors_to_alumni'
OVERDUE = 'overdue'
YEARS_ADVANCED = 'years_advanced'


@dataclass
class PlannedTransition:
    user: User
    user_id: int
    cohort: str
    from_role: str
    to_role: str
    new_current_year: int
    graduated: bool

    @property
    def role_changed(self) -> bool:
        return self.from_role != self.to_role


def past_cutoff(today: date) -> bool:
    return today.month >= config.GRADUATION_CUTOFF_MONTH


def students_to_senior_filter(today: date):
    # After the cutoff this year's graduates go straight to alumni.
    if past_cutoff(today):
        return None
    return and_(
        User.role == ROLE_STUDENT,
        User.verification_status == VERIFICATION_APPROVED,
        User.graduation_year == today.year,
        User.current_year >= FINAL_YEAR,
    )


def seniors_to_alumni_filter(today: date):
    graduated_seniors = and_(
        User.role == ROLE_SENIOR,
        User.graduation_year < today.year,
    )
    if past_cutoff(today):
        this_year = and_(
            User.role.in_([ROLE_STUDENT, ROLE_SENIOR]),
            User.graduation_year == today.year,
        )
        graduated_seniors = or_(graduated_seniors, this_year)
    return and_(User.verification_status == VERIFICATION_APPROVED, graduated_seniors)


def overdue_filter(today: date):
    return and_(
        User.role == ROLE_STUDENT,
        User.verification_status == VERIFICATION_APPROVED,
        User.year_of_graduation.is_not(None),
        User.year_of_graduation != '',
        User.year_of_graduation < str(today.year),
    )


def years_advanced_filter(today: date):
    return and_(
        User.role.in_([ROLE_STUDENT, ROLE_SENIOR]),
        User.verification_status == VERIFICATION_APPROVED,
        User.admission_year.is_not(None),
        User.graduation_year.is_not(None),
    )


def _select(db: Session, criterion) -> list[User]:
    if criterion is None:
        return []
    return db.query(User).filter(criterion).order_by(User.id.asc()).all()


def _role_cohort(db: Session, cohort: str, criterion, to_role: str, seen: set[int]) -> list[PlannedTransition]:
    planned: list[PlannedTransition] = []
    for user in _select(db, criterion):
        if user.id in seen or user.is_administrator:
            continue
        seen.add(user.id)
        planned.append(
            PlannedTransition(
                user=user,
                user_id=user.id,
                cohort=cohort,
                from_role=user.role,
                to_role=to_role,
                new_current_year=max(user.current_year or 0, FINAL_YEAR),
                graduated=to_role == ROLE_ALUMNI,
            )
        )
    return planned


def plan_sweep(db: Session, today: date) -> list[PlannedTransition]:
    """Return every transition a sweep on ``today`` would apply, in order."""
    seen: set[int] = set()
    planned = _role_cohort(db, STUDENTS_TO_SENIOR, students_to_senior_filter(today), ROLE_SENIOR, seen)
    planned += _role_cohort(db, SENIORS_TO_ALUMNI, seniors_to_alumni_filter(today), ROLE_ALUMNI, seen)
    planned += _role_cohort(db, OVERDUE, overdue_filter(today), ROLE_ALUMNI, seen)

    for user in _select(db, years_advanced_filter(today)):
        if user.id in seen:
            continue
        seen.add(user.id)
        evaluation = evaluate(user, today)
        if not evaluation.updated:
            continue
        planned.append(
            PlannedTransition(
                user=user,
                user_id=user.id,
                cohort=YEARS_ADVANCED,
                from_role=user.role,
                to_role=evaluation.new_role or user.role,
                new_current_year=evaluation.new_current_year,
                graduated=evaluation.graduated,
            )
        )

    return planned

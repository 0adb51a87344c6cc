import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.lifecycle.cohorts import (
    OVERDUE,
    SENIORS_TO_ALUMNI,
    STUDENTS_TO_SENIOR,
    YEARS_ADVANCED,
    PlannedTransition,
    plan_sweep,
)
from backend.models.user import User
from backend.notifications.mailer import send_role_change_email

logger = logging.getLogger(__name__)

Notifier = Callable[[User, str, str], Awaitable[None]]


@dataclass
class SweepSummary:
    students_to_senior: int = 0
    seniors_to_alumni: int = 0
    overdue: int = 0
    years_advanced: int = 0

    @property
    def total(self) -> int:
        return self.students_to_senior + self.seniors_to_alumni + self.overdue + self.years_advanced

    def record(self, cohort: str) -> None:
        if cohort == STUDENTS_TO_SENIOR:
            self.students_to_senior += 1
        elif cohort == SENIORS_TO_ALUMNI:
            self.seniors_to_alumni += 1
        elif cohort == OVERDUE:
            self.overdue += 1
        elif cohort == YEARS_ADVANCED:
            self.years_advanced += 1


def persist_transition(db: Session, transition: PlannedTransition, now: datetime) -> None:
    user = transition.user
    user.current_year = transition.new_current_year
    if transition.graduated:
        user.graduated = True
    if transition.role_changed:
        user.role = transition.to_role
        user.role_last_updated = now
    db.commit()


async def notify_role_change(user: User, from_role: str, to_role: str, notifier: Notifier = send_role_change_email) -> None:
    try:
        await notifier(user, from_role, to_role)
    except Exception:
        logger.exception('Role change email to user %s (%s -> %s) failed', user.id, from_role, to_role)


def preview_sweep(db: Session, today: date | None = None) -> SweepSummary:
    """Count what ``run_sweep`` would do on ``today`` without changing anything."""
    summary = SweepSummary()
    for transition in plan_sweep(db, today or date.today()):
        summary.record(transition.cohort)
    return summary


async def run_sweep(
    db: Session,
    today: date | None = None,
    notifier: Notifier = send_role_change_email,
) -> SweepSummary:
    """Apply every planned transition, one user at a time.

    A store error on one user is rolled back and logged and the sweep moves on;
    only successful commits are counted. A failing cohort query propagates.
    """
    started_at = datetime.now()
    today = today or started_at.date()
    summary = SweepSummary()

    for transition in plan_sweep(db, today):
        user_id = transition.user_id
        try:
            persist_transition(db, transition, started_at)
        except SQLAlchemyError:
            db.rollback()
            logger.exception('Could not persist %s transition for user %s', transition.cohort, user_id)
            continue

        summary.record(transition.cohort)
        if transition.role_changed:
            logger.info('User %s moved from %s to %s', user_id, transition.from_role, transition.to_role)
            await notify_role_change(transition.user, transition.from_role, transition.to_role, notifier)

    logger.info(
        'Role sweep for %s finished: %s to senior, %s to alumni, %s overdue, %s year updates',
        today.isoformat(),
        summary.students_to_senior,
        summary.seniors_to_alumni,
        summary.overdue,
        summary.years_advanced,
    )
    return summary

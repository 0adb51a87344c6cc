import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from sqlalchemy.orm import Session

from backend.lifecycle.standing import compute_standing
from backend.models.user import (
    ROLE_ALUMNI,
    ROLE_SENIOR,
    ROLE_STUDENT,
    VERIFICATION_APPROVED,
    User,
)

logger = logging.getLogger(__name__)

ROLE_RANK = {ROLE_STUDENT: 0, ROLE_SENIOR: 1, ROLE_ALUMNI: 2}


class SkipReason(str, Enum):
    IS_ADMIN = 'is_admin'
    NOT_APPROVED = 'not_approved'
    MISSING_YEARS = 'missing_years'
    INVALID_YEARS = 'invalid_years'


@dataclass(frozen=True)
class Evaluation:
    updated: bool
    new_role: str | None = None
    new_current_year: int | None = None
    graduated: bool = False
    reason: SkipReason | None = None

    @property
    def role_changed(self) -> bool:
        return self.new_role is not None


def _skip(user: User, reason: SkipReason) -> Evaluation:
    logger.debug('Skipping role evaluation for user %s: %s', user.id, reason.value)
    return Evaluation(updated=False, reason=reason)


def eligibility_skip_reason(user: User) -> SkipReason | None:
    if user.is_administrator or user.role not in ROLE_RANK:
        return SkipReason.IS_ADMIN
    if user.verification_status != VERIFICATION_APPROVED:
        return SkipReason.NOT_APPROVED
    if not user.admission_year or not user.graduation_year:
        return SkipReason.MISSING_YEARS
    if min(user.admission_year, user.graduation_year) <= 0 or user.graduation_year <= user.admission_year:
        return SkipReason.INVALID_YEARS
    return None


def evaluate(user: User, today: date) -> Evaluation:
    """Decide whether ``user`` needs a role or academic-year update on ``today``.

    Ineligible users come back with ``updated=False`` and a skip reason. Roles
    only move forward and the stored academic year never goes down.
    """
    reason = eligibility_skip_reason(user)
    if reason is not None:
        return _skip(user, reason)

    standing = compute_standing(user.admission_year, user.graduation_year, today)

    new_role = None
    if ROLE_RANK[standing.suggested_role] > ROLE_RANK[user.role]:
        new_role = standing.suggested_role

    stored_year = user.current_year or 0
    year_advanced = standing.current_year > stored_year

    if new_role is None and not year_advanced:
        return Evaluation(updated=False)

    return Evaluation(
        updated=True,
        new_role=new_role,
        new_current_year=max(stored_year, standing.current_year),
        graduated=new_role == ROLE_ALUMNI,
    )


def apply_evaluation(user: User, evaluation: Evaluation, now: datetime | None = None) -> str | None:
    """Copy an update onto ``user`` and return the previous role when it changed."""
    if not evaluation.updated:
        return None

    previous_role = None
    if evaluation.new_current_year is not None:
        user.current_year = evaluation.new_current_year
    if evaluation.role_changed:
        previous_role = user.role
        user.role = evaluation.new_role
        user.role_last_updated = now or datetime.now()
    if evaluation.graduated:
        user.graduated = True
    return previous_role


def on_year_fields_changed(
    db: Session,
    user: User,
    today: date | None = None,
    commit: bool = True,
) -> Evaluation:
    """Reactive path run after a user edits their admission or graduation year.

    With ``commit=False`` the update is only applied to ``user`` and the caller
    commits it together with its own changes.
    """
    evaluation = evaluate(user, today or date.today())
    if not evaluation.updated:
        return evaluation

    previous_role = apply_evaluation(user, evaluation)
    if commit:
        db.commit()
        db.refresh(user)

    if previous_role is not None:
        logger.info('User %s moved from %s to %s after a profile edit', user.id, previous_role, user.role)
    return evaluation

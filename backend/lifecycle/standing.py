"""Academic standing derived from admission and graduation years."""

from dataclasses import dataclass
from datetime import date

from backend.core import config
from backend.models.user import ROLE_ALUMNI, ROLE_SENIOR, ROLE_STUDENT

FIRST_YEAR = 1
FINAL_YEAR = 4


@dataclass(frozen=True)
class Standing:
    current_year: int
    suggested_role: str
    graduated: bool


def has_graduated(graduation_year: int, today: date, cutoff_month: int | None = None) -> bool:
    cutoff = cutoff_month or config.GRADUATION_CUTOFF_MONTH
    if today.year > graduation_year:
        return True
    return today.year == graduation_year and today.month >= cutoff


def compute_standing(
    admission_year: int,
    graduation_year: int,
    today: date,
    cutoff_month: int | None = None,
) -> Standing:
    """Return the standing of a user on ``today``.

    The academic year is the number of calendar years since admission, clamped
    to 1-4. A user graduates after their graduation year, or during it once the
    cutoff month is reached. Graduated users keep ``current_year == 4``.
    """
    if admission_year <= 0 or graduation_year <= 0:
        raise ValueError('Admission and graduation years must be positive.')
    if graduation_year <= admission_year:
        raise ValueError('Graduation year must be after admission year.')

    if has_graduated(graduation_year, today, cutoff_month):
        return Standing(current_year=FINAL_YEAR, suggested_role=ROLE_ALUMNI, graduated=True)

    current_year = max(FIRST_YEAR, min(today.year - admission_year, FINAL_YEAR))
    suggested_role = ROLE_SENIOR if current_year == FINAL_YEAR else ROLE_STUDENT
    return Standing(current_year=current_year, suggested_role=suggested_role, graduated=False)

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin
from backend.database import get_db
from backend.lifecycle import sweep
from backend.models.user import User
from backend.routes.common import database_unavailable, ensure_database_ready

router = APIRouter(tags=['role-transition'])

logger = logging.getLogger(__name__)


class SweepCountsResponse(BaseModel):
    students_to_senior: int = Field(serialization_alias='studentsToSenior')
    seniors_to_alumni: int = Field(serialization_alias='seniorsToAlumni')
    overdue: int
    years_advanced: int = Field(serialization_alias='yearsAdvanced')


class PreviewResponse(SweepCountsResponse):
    total_to_upgrade: int = Field(serialization_alias='totalToUpgrade')


class UpgradeResponse(SweepCountsResponse):
    message: str
    total_upgraded: int = Field(serialization_alias='totalUpgraded')


def summary_counts(summary: sweep.SweepSummary) -> dict:
    return {
        'students_to_senior': summary.students_to_senior,
        'seniors_to_alumni': summary.seniors_to_alumni,
        'overdue': summary.overdue,
        'years_advanced': summary.years_advanced,
    }


@router.get('/preview', response_model=PreviewResponse)
async def preview_role_upgrades(
    on: date | None = Query(default=None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        summary = sweep.preview_sweep(db, on)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return PreviewResponse(total_to_upgrade=summary.total, **summary_counts(summary))


@router.post('/upgrade', response_model=UpgradeResponse)
async def upgrade_roles(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        summary = await sweep.run_sweep(db)
    except SQLAlchemyError as exc:
        logger.exception('Role sweep requested by admin %s failed', admin.id)
        raise database_unavailable() from exc

    return UpgradeResponse(
        message=f'Role upgrade completed: {summary.total} users upgraded',
        total_upgraded=summary.total,
        **summary_counts(summary),
    )

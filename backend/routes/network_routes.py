from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.user import (
    ROLE_ALUMNI,
    ROLE_SENIOR,
    ROLE_STUDENT,
    VERIFICATION_APPROVED,
    User,
)
from backend.routes.common import PublicUserResponse, database_unavailable, ensure_database_ready

router = APIRouter(tags=['network'])

DIRECTORY_LIMIT = 100


class DirectoryResponse(BaseModel):
    count: int
    users: list[PublicUserResponse]


class NetworkStatsResponse(BaseModel):
    students: int
    seniors: int
    alumni: int


def list_directory(db: Session, role: str, search: str | None, branch: str | None) -> DirectoryResponse:
    ensure_database_ready()

    try:
        query = db.query(User).filter(
            User.role == role,
            User.verification_status == VERIFICATION_APPROVED,
        )
        if search and search.strip():
            query = query.filter(User.name.ilike(f'%{search.strip()}%'))
        if branch and branch.strip():
            query = query.filter(User.branch.ilike(branch.strip()))

        users = query.order_by(User.graduation_year.desc(), User.name.asc()).limit(DIRECTORY_LIMIT).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return DirectoryResponse(count=len(users), users=[PublicUserResponse.model_validate(user) for user in users])


@router.get('/alumni', response_model=DirectoryResponse)
def list_alumni(
    search: str | None = Query(default=None),
    branch: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_directory(db, ROLE_ALUMNI, search, branch)


@router.get('/seniors', response_model=DirectoryResponse)
def list_seniors(
    search: str | None = Query(default=None),
    branch: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_directory(db, ROLE_SENIOR, search, branch)


@router.get('/stats', response_model=NetworkStatsResponse)
def get_network_stats(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        def count_role(role: str) -> int:
            return db.query(User).filter(
                User.role == role,
                User.verification_status == VERIFICATION_APPROVED,
            ).count()

        return NetworkStatsResponse(
            students=count_role(ROLE_STUDENT),
            seniors=count_role(ROLE_SENIOR),
            alumni=count_role(ROLE_ALUMNI),
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/user/{user_id}', response_model=PublicUserResponse)
def get_user_profile(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        user = db.query(User).filter(User.id == user_id).first()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='User not found.',
        )
    return user

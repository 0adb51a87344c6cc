from datetime import datetime

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from backend.database import ensure_user_schema

DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL and database credentials.'


class PublicUserResponse(BaseModel):
    id: int
    name: str
    role: str
    branch: str | None = None
    bio: str | None = None
    location: str | None = None
    skills: list[str] | None = None
    admission_year: int | None = None
    graduation_year: int | None = None
    current_year: int | None = None
    current_year_display: str
    graduated: bool | None = None

    class Config:
        from_attributes = True


class UserResponse(PublicUserResponse):
    email: str
    is_admin: bool | None = None
    verification_status: str
    rejection_reason: str | None = None
    role_last_updated: datetime | None = None
    created_at: datetime | None = None


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE,
    )


def ensure_database_ready() -> None:
    try:
        ensure_user_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

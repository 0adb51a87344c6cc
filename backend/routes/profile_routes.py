import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.lifecycle.evaluator import on_year_fields_changed
from backend.lifecycle.sweep import notify_role_change
from backend.models.user import User
from backend.routes.common import UserResponse, database_unavailable

router = APIRouter(tags=['profile'])

logger = logging.getLogger(__name__)

MAX_BIO_LENGTH = 500
MAX_LOCATION_LENGTH = 100
YEAR_FIELDS = ('admission_year', 'graduation_year')


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    bio: str | None = None
    branch: str | None = None
    location: str | None = None
    skills: list[str] | None = None
    admission_year: int | None = None
    graduation_year: int | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not 2 <= len(normalized) <= 50:
            raise ValueError('Name must be 2-50 characters.')
        return normalized

    @field_validator('bio')
    @classmethod
    def validate_bio(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if len(normalized) > MAX_BIO_LENGTH:
            raise ValueError(f'Bio must not exceed {MAX_BIO_LENGTH} characters.')
        return normalized

    @field_validator('location')
    @classmethod
    def validate_location(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if len(normalized) > MAX_LOCATION_LENGTH:
            raise ValueError(f'Location must not exceed {MAX_LOCATION_LENGTH} characters.')
        return normalized

    @field_validator('skills')
    @classmethod
    def validate_skills(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [skill.strip() for skill in value if skill.strip()]

    @field_validator('admission_year', 'graduation_year')
    @classmethod
    def validate_year(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError('Years must be positive.')
        return value


class ProfileUpdateResponse(BaseModel):
    message: str
    role_changed: bool = False
    user: UserResponse


@router.get('', response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put('', response_model=ProfileUpdateResponse)
def update_profile(
    data: UpdateProfileRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = data.model_dump(exclude_unset=True, exclude_none=True)

    admission_year = updates.get('admission_year', current_user.admission_year)
    graduation_year = updates.get('graduation_year', current_user.graduation_year)
    if admission_year and graduation_year and graduation_year <= admission_year:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Graduation year must be after admission year.',
        )

    years_changed = any(
        field in updates and updates[field] != getattr(current_user, field)
        for field in YEAR_FIELDS
    )
    previous_role = current_user.role

    try:
        for field, value in updates.items():
            setattr(current_user, field, value)

        role_changed = False
        if years_changed:
            evaluation = on_year_fields_changed(db, current_user, commit=False)
            role_changed = evaluation.role_changed

        # Profile fields and any role change land in one commit.
        db.commit()
        db.refresh(current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('User %s updated profile fields: %s', current_user.id, ', '.join(sorted(updates)) or 'none')
    if role_changed:
        background_tasks.add_task(notify_role_change, current_user, previous_role, current_user.role)

    return ProfileUpdateResponse(
        message='Profile updated successfully.',
        role_changed=role_changed,
        user=UserResponse.model_validate(current_user),
    )

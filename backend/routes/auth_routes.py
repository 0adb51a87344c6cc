import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.dependencies import get_current_user
from backend.auth.passwords import hash_password, verify_password
from backend.core import config
from backend.database import get_db
from backend.lifecycle.standing import compute_standing
from backend.models.user import (
    ROLE_ALUMNI,
    ROLE_SENIOR,
    ROLE_STUDENT,
    VERIFICATION_PENDING,
    VERIFICATION_REJECTED,
    User,
)
from backend.routes.common import UserResponse, database_unavailable, ensure_database_ready

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

SIGNUP_ROLES = (ROLE_STUDENT, ROLE_SENIOR, ROLE_ALUMNI)
PROGRAM_LENGTH_YEARS = 4
MIN_PASSWORD_LENGTH = 6


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError('Email is required.')
    local_part, _, domain = normalized.partition('@')
    if not local_part or '.' not in domain:
        raise ValueError('Invalid email format.')
    return normalized


def is_college_email(email: str) -> bool:
    return email.rsplit('@', 1)[-1] in config.ALLOWED_EMAIL_DOMAINS


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str
    role: str = ROLE_STUDENT
    admission_year: int | None = None
    graduation_year: int | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not 2 <= len(normalized) <= 50:
            raise ValueError('Name must be 2-50 characters.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long.')
        if not any(character.isdigit() for character in value):
            raise ValueError('Password must contain at least one number.')
        return value

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in SIGNUP_ROLES:
            raise ValueError('Invalid role.')
        return normalized

    @field_validator('admission_year', 'graduation_year')
    @classmethod
    def validate_year(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError('Years must be positive.')
        return value

    @model_validator(mode='after')
    def validate_years(self):
        if self.admission_year and self.graduation_year and self.graduation_year <= self.admission_year:
            raise ValueError('Graduation year must be after admission year.')
        return self


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return value.strip().lower()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    user: UserResponse
    message: str | None = None


def initial_academic_fields(data: SignupRequest, today: date) -> dict:
    admission_year = data.admission_year
    graduation_year = data.graduation_year
    if data.role == ROLE_STUDENT:
        admission_year = admission_year or today.year
        graduation_year = graduation_year or admission_year + PROGRAM_LENGTH_YEARS

    current_year = 1
    if admission_year and graduation_year and graduation_year > admission_year:
        current_year = compute_standing(admission_year, graduation_year, today).current_year

    return {
        'admission_year': admission_year,
        'graduation_year': graduation_year,
        'current_year': current_year,
    }


@router.post('/signup', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    if data.role == ROLE_STUDENT and not is_college_email(data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Kindly use a valid college email address.',
        )

    ensure_database_ready()

    try:
        if db.query(User).filter(User.email == data.email).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='User already exists.',
            )

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=hash_password(data.password),
            role=data.role,
            verification_status=VERIFICATION_PENDING,
            **initial_academic_fields(data, date.today()),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Registered user %s as %s', user.id, user.role)
    return TokenResponse(
        access_token=jwt_handler.issue_token(user.id, user.role),
        user=UserResponse.model_validate(user),
        message='User registered successfully.',
    )


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid email or password.',
        )

    if user.verification_status == VERIFICATION_REJECTED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f'Your account was not approved. Reason: {user.rejection_reason or "not provided"}',
        )

    return TokenResponse(
        access_token=jwt_handler.issue_token(user.id, user.role),
        user=UserResponse.model_validate(user),
    )


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user

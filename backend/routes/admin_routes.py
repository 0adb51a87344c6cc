import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin
from backend.database import get_db
from backend.models.user import (
    ROLE_STUDENT,
    ROLES,
    VERIFICATION_APPROVED,
    VERIFICATION_PENDING,
    VERIFICATION_REJECTED,
    VERIFICATION_STATUSES,
    User,
)
from backend.notifications.mailer import send_approval_email, send_rejection_email
from backend.routes.common import UserResponse, database_unavailable, ensure_database_ready

router = APIRouter(tags=['admin'])

logger = logging.getLogger(__name__)

USER_LIST_LIMIT = 100
RECENT_REGISTRATION_DAYS = 7


class RejectUserRequest(BaseModel):
    reason: str

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Rejection reason is required.')
        return normalized


class UserListResponse(BaseModel):
    count: int
    users: list[UserResponse]


class VerificationResponse(BaseModel):
    message: str
    user: UserResponse


class AdminStatsResponse(BaseModel):
    total_users: int
    pending_count: int
    approved_count: int
    rejected_count: int
    recent_registrations: int


async def send_verification_email(user: User, reason: str | None = None) -> None:
    try:
        if reason is None:
            await send_approval_email(user)
        else:
            await send_rejection_email(user, reason)
    except Exception:
        logger.exception('Verification email to user %s failed', user.id)


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='User not found.',
        )
    return user


@router.get('/pending-users', response_model=UserListResponse)
def list_pending_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        users = db.query(User).filter(
            User.verification_status == VERIFICATION_PENDING,
            User.role == ROLE_STUDENT,
        ).order_by(User.created_at.desc(), User.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return UserListResponse(count=len(users), users=[UserResponse.model_validate(user) for user in users])


@router.post('/approve/{user_id}', response_model=VerificationResponse)
def approve_user(
    user_id: int,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        user = get_user_or_404(db, user_id)
        if user.verification_status == VERIFICATION_APPROVED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='User already approved.',
            )

        user.verification_status = VERIFICATION_APPROVED
        user.rejection_reason = ''
        user.verified_by = admin.id
        user.verification_date = datetime.now()
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Admin %s approved user %s', admin.id, user.id)
    background_tasks.add_task(send_verification_email, user)
    return VerificationResponse(message='User approved successfully.', user=UserResponse.model_validate(user))


@router.post('/reject/{user_id}', response_model=VerificationResponse)
def reject_user(
    user_id: int,
    data: RejectUserRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        user = get_user_or_404(db, user_id)
        if user.verification_status == VERIFICATION_APPROVED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Cannot reject an approved user.',
            )

        user.verification_status = VERIFICATION_REJECTED
        user.rejection_reason = data.reason
        user.verified_by = admin.id
        user.verification_date = datetime.now()
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Admin %s rejected user %s', admin.id, user.id)
    background_tasks.add_task(send_verification_email, user, data.reason)
    return VerificationResponse(message='User rejected successfully.', user=UserResponse.model_validate(user))


@router.get('/stats', response_model=AdminStatsResponse)
def get_admin_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        def count_status(verification_status: str) -> int:
            return db.query(User).filter(User.verification_status == verification_status).count()

        recent_cutoff = datetime.now() - timedelta(days=RECENT_REGISTRATION_DAYS)
        return AdminStatsResponse(
            total_users=db.query(User).count(),
            pending_count=count_status(VERIFICATION_PENDING),
            approved_count=count_status(VERIFICATION_APPROVED),
            rejected_count=count_status(VERIFICATION_REJECTED),
            recent_registrations=db.query(User).filter(User.created_at >= recent_cutoff).count(),
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/users', response_model=UserListResponse)
def list_users(
    verification_status: str | None = Query(default=None, alias='status'),
    role: str | None = Query(default=None),
    search: str | None = Query(default=None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if verification_status and verification_status not in VERIFICATION_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid verification status.',
        )
    if role and role not in ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid role.',
        )

    ensure_database_ready()

    try:
        query = db.query(User)
        if verification_status:
            query = query.filter(User.verification_status == verification_status)
        if role:
            query = query.filter(User.role == role)
        if search and search.strip():
            pattern = f'%{search.strip()}%'
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        users = query.order_by(User.created_at.desc(), User.id.desc()).limit(USER_LIST_LIMIT).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return UserListResponse(count=len(users), users=[UserResponse.model_validate(user) for user in users])


@router.delete('/users/{user_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        user = get_user_or_404(db, user_id)
        if user.is_administrator:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Admin accounts cannot be deleted.',
            )

        db.delete(user)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Admin %s deleted user %s', admin.id, user_id)

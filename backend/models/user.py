"""User model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String
from backend.database import Base

ROLE_STUDENT = "student"
ROLE_SENIOR = "senior"
ROLE_ALUMNI = "alumni"
ROLE_ADMIN = "admin"
ROLES = (ROLE_STUDENT, ROLE_SENIOR, ROLE_ALUMNI, ROLE_ADMIN)

VERIFICATION_PENDING = "pending"
VERIFICATION_APPROVED = "approved"
VERIFICATION_REJECTED = "rejected"
VERIFICATION_STATUSES = (VERIFICATION_PENDING, VERIFICATION_APPROVED, VERIFICATION_REJECTED)

_ORDINAL_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


class User(Base):
    """Represents a CollegeConnect account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, default=ROLE_STUDENT, index=True)  # student/senior/alumni/admin
    is_admin = Column(Boolean, default=False)

    admission_year = Column(Integer, nullable=True)
    graduation_year = Column(Integer, nullable=True, index=True)
    year_of_graduation = Column(String, nullable=True)  # legacy string-typed graduation year
    current_year = Column(Integer, default=1)
    graduated = Column(Boolean, default=False)
    role_last_updated = Column(DateTime, default=datetime.now)

    verification_status = Column(String, default=VERIFICATION_PENDING, index=True)
    rejection_reason = Column(String, default="")
    verified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    verification_date = Column(DateTime, nullable=True)

    bio = Column(String, default="")
    branch = Column(String, default="")
    location = Column(String, default="")
    skills = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.now)

    @property
    def is_administrator(self) -> bool:
        return bool(self.is_admin) or self.role == ROLE_ADMIN

    @property
    def current_year_display(self) -> str:
        if self.graduated:
            return "Graduated"
        year = self.current_year or 1
        return f"{year}{_ORDINAL_SUFFIXES.get(year, 'th')} Year"

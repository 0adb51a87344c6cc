import itertools
import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from backend.core import config  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models.user import User  # noqa: E402


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'BCRYPT_ROUNDS', 4)


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__])

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=[User.__table__])


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make_user(**overrides) -> User:
        index = next(counter)
        fields = {
            'name': f'User {index}',
            'email': f'user{index}@college.edu',
            'hashed_password': '',
            'role': 'student',
            'verification_status': 'approved',
            'admission_year': 2021,
            'graduation_year': 2025,
            'current_year': 1,
        }
        fields.update(overrides)
        user = User(**fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user) -> User:
    return make_user(
        name='Admin User',
        email='admin@college.edu',
        role='admin',
        is_admin=True,
        admission_year=None,
        graduation_year=None,
    )

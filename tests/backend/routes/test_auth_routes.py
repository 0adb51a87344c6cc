from datetime import date, datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import ValidationError

from backend.auth import jwt_handler
from backend.auth.dependencies import get_current_user, require_admin
from backend.auth.passwords import hash_password, verify_password
from backend.core import config
from backend.routes.auth_routes import (
    LoginRequest,
    SignupRequest,
    initial_academic_fields,
    is_college_email,
    login,
    me,
    signup,
)

ISSUED_AT = datetime.now(timezone.utc)


def signup_request(**overrides) -> SignupRequest:
    fields = {
        'name': 'Riya Sharma',
        'email': 'riya@college.edu',
        'password': 'secret1',
    }
    fields.update(overrides)
    return SignupRequest(**fields)


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def signed_token(claims: dict) -> str:
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def test_signup_request_normalizes_fields() -> None:
    request = signup_request(name='  Riya Sharma ', email=' RIYA@College.EDU ', role=' Student ')

    assert request.name == 'Riya Sharma'
    assert request.email == 'riya@college.edu'
    assert request.role == 'student'


@pytest.mark.parametrize(
    'overrides',
    [
        {'name': 'R'},
        {'email': 'not-an-email'},
        {'password': 'short'},
        {'password': 'nodigitshere'},
        {'role': 'admin'},
        {'admission_year': 2025, 'graduation_year': 2025},
        {'admission_year': -5, 'graduation_year': 2025},
        {'graduation_year': 0},
    ],
)
def test_signup_request_rejects_invalid_input(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        signup_request(**overrides)


def test_is_college_email_checks_allowed_domains() -> None:
    assert is_college_email('riya@college.edu') is True
    assert is_college_email('riya@gmail.com') is False


def test_initial_academic_fields_defaults_a_four_year_program_for_students() -> None:
    fields = initial_academic_fields(signup_request(), date(2025, 9, 1))

    assert fields == {'admission_year': 2025, 'graduation_year': 2029, 'current_year': 1}


def test_initial_academic_fields_derives_current_year_from_given_years() -> None:
    request = signup_request(admission_year=2022, graduation_year=2026)

    assert initial_academic_fields(request, date(2025, 2, 1))['current_year'] == 3


def test_initial_academic_fields_keeps_missing_years_for_alumni() -> None:
    request = signup_request(role='alumni', email='riya@gmail.com')

    assert initial_academic_fields(request, date(2025, 2, 1)) == {
        'admission_year': None,
        'graduation_year': None,
        'current_year': 1,
    }


def test_signup_creates_pending_user_with_token(db) -> None:
    response = signup(signup_request(), db=db)

    assert response.message == 'User registered successfully.'
    assert response.user.verification_status == 'pending'
    assert response.user.role == 'student'
    assert jwt_handler.read_token(response.access_token)['sub'] == str(response.user.id)


def test_signup_rejects_students_outside_college_domains(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        signup(signup_request(email='riya@gmail.com'), db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Kindly use a valid college email address.'


def test_signup_allows_alumni_with_personal_email(db) -> None:
    response = signup(signup_request(email='riya@gmail.com', role='alumni'), db=db)

    assert response.user.role == 'alumni'


def test_signup_rejects_duplicate_email(db, make_user) -> None:
    make_user(email='riya@college.edu')

    with pytest.raises(HTTPException) as exception_info:
        signup(signup_request(), db=db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'User already exists.'


def test_login_returns_token_for_valid_credentials(db, make_user) -> None:
    user = make_user(email='riya@college.edu', hashed_password=hash_password('secret1'))

    response = login(LoginRequest(email=' Riya@College.edu ', password='secret1'), db=db)

    assert response.user.id == user.id
    assert jwt_handler.read_token(response.access_token)['sub'] == str(user.id)


@pytest.mark.parametrize(('email', 'password'), [('riya@college.edu', 'wrong1'), ('nobody@college.edu', 'secret1')])
def test_login_rejects_bad_credentials(db, make_user, email: str, password: str) -> None:
    make_user(email='riya@college.edu', hashed_password=hash_password('secret1'))

    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email=email, password=password), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid email or password.'


def test_login_blocks_rejected_accounts(db, make_user) -> None:
    make_user(
        email='riya@college.edu',
        hashed_password=hash_password('secret1'),
        verification_status='rejected',
        rejection_reason='ID card unreadable',
    )

    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email='riya@college.edu', password='secret1'), db=db)

    assert exception_info.value.status_code == 403
    assert 'ID card unreadable' in exception_info.value.detail


def test_verify_password_handles_empty_and_malformed_hashes() -> None:
    assert verify_password('secret1', '') is False
    assert verify_password('secret1', 'not-a-bcrypt-hash') is False


def test_get_current_user_resolves_token_subject(db, make_user) -> None:
    user = make_user()
    token = jwt_handler.issue_token(user.id, user.role)

    assert get_current_user(credentials=bearer(token), db=db).id == user.id
    assert me(current_user=user) is user


@pytest.mark.parametrize(
    ('token', 'detail'),
    [
        ('garbage', 'Invalid or expired token'),
        (signed_token({'sub': '1'}), 'Invalid or expired token'),
        (signed_token({'sub': 'abc', 'iat': ISSUED_AT, 'exp': ISSUED_AT + timedelta(hours=1)}), 'Invalid token subject'),
        (jwt_handler.issue_token(999, 'student'), 'User not found'),
    ],
)
def test_get_current_user_rejects_bad_tokens(db, token: str, detail: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=bearer(token), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == detail


def test_require_admin_rejects_regular_users(make_user, admin) -> None:
    assert require_admin(current_user=admin) is admin

    with pytest.raises(HTTPException) as exception_info:
        require_admin(current_user=make_user())

    assert exception_info.value.status_code == 403

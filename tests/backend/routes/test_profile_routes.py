from datetime import date

import pytest
from fastapi import BackgroundTasks, HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from backend.lifecycle.sweep import notify_role_change
from backend.models.user import User
from backend.routes.profile_routes import UpdateProfileRequest, get_profile, update_profile

THIS_YEAR = date.today().year


def test_update_profile_request_cleans_fields() -> None:
    request = UpdateProfileRequest(bio='  Loves compilers  ', skills=[' python ', '', 'sql'])

    assert request.bio == 'Loves compilers'
    assert request.skills == ['python', 'sql']


@pytest.mark.parametrize(
    'fields',
    [
        {'bio': 'x' * 501},
        {'location': 'y' * 101},
        {'admission_year': 0},
        {'name': 'A'},
    ],
)
def test_update_profile_request_rejects_invalid_fields(fields: dict) -> None:
    with pytest.raises(ValidationError):
        UpdateProfileRequest(**fields)


def test_get_profile_returns_current_user(make_user) -> None:
    user = make_user()

    assert get_profile(current_user=user) is user


def test_update_profile_without_year_change_keeps_role(db, make_user) -> None:
    user = make_user(admission_year=THIS_YEAR, graduation_year=THIS_YEAR + 4)
    background_tasks = BackgroundTasks()

    response = update_profile(
        UpdateProfileRequest(bio='Hello', branch='CSE'),
        background_tasks,
        current_user=user,
        db=db,
    )

    assert response.role_changed is False
    assert response.user.bio == 'Hello'
    assert response.user.branch == 'CSE'
    assert response.user.role == 'student'
    assert background_tasks.tasks == []


def test_moving_graduation_year_into_the_past_promotes_to_alumni(db, make_user) -> None:
    user = make_user(admission_year=THIS_YEAR - 3, graduation_year=THIS_YEAR + 1, current_year=3)
    background_tasks = BackgroundTasks()

    response = update_profile(
        UpdateProfileRequest(graduation_year=THIS_YEAR - 1),
        background_tasks,
        current_user=user,
        db=db,
    )

    assert response.role_changed is True
    assert response.user.role == 'alumni'
    assert response.user.graduated is True
    assert response.user.current_year_display == 'Graduated'

    assert len(background_tasks.tasks) == 1
    task = background_tasks.tasks[0]
    assert task.func is notify_role_change
    assert task.args[1:] == ('student', 'alumni')


def test_year_change_for_pending_user_does_not_change_role(db, make_user) -> None:
    user = make_user(
        verification_status='pending',
        admission_year=THIS_YEAR - 3,
        graduation_year=THIS_YEAR + 1,
    )
    background_tasks = BackgroundTasks()

    response = update_profile(
        UpdateProfileRequest(graduation_year=THIS_YEAR - 1),
        background_tasks,
        current_user=user,
        db=db,
    )

    assert response.role_changed is False
    assert response.user.role == 'student'
    assert response.user.graduation_year == THIS_YEAR - 1
    assert background_tasks.tasks == []


def test_update_profile_rejects_graduation_before_admission(db, make_user) -> None:
    user = make_user(admission_year=THIS_YEAR, graduation_year=THIS_YEAR + 4)

    with pytest.raises(HTTPException) as exception_info:
        update_profile(
            UpdateProfileRequest(graduation_year=THIS_YEAR - 1),
            BackgroundTasks(),
            current_user=user,
            db=db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Graduation year must be after admission year.'


def test_profile_fields_and_role_change_are_saved_in_one_commit(db, make_user, monkeypatch: pytest.MonkeyPatch) -> None:
    user = make_user(admission_year=THIS_YEAR - 3, graduation_year=THIS_YEAR + 1, current_year=3)
    commits = []
    commit = db.commit

    def counting_commit() -> None:
        commits.append(True)
        commit()

    monkeypatch.setattr(db, 'commit', counting_commit)

    response = update_profile(
        UpdateProfileRequest(bio='Moving on', graduation_year=THIS_YEAR - 1),
        BackgroundTasks(),
        current_user=user,
        db=db,
    )

    assert response.role_changed is True
    assert len(commits) == 1


def test_failed_save_keeps_old_years_and_role(db, make_user, monkeypatch: pytest.MonkeyPatch) -> None:
    user = make_user(admission_year=THIS_YEAR - 3, graduation_year=THIS_YEAR + 1, current_year=3)
    user_id = user.id

    def failing_commit() -> None:
        raise SQLAlchemyError('write failed')

    monkeypatch.setattr(db, 'commit', failing_commit)

    with pytest.raises(HTTPException) as exception_info:
        update_profile(
            UpdateProfileRequest(graduation_year=THIS_YEAR - 1),
            BackgroundTasks(),
            current_user=user,
            db=db,
        )

    assert exception_info.value.status_code == 503
    stored = db.query(User).filter(User.id == user_id).one()
    assert stored.graduation_year == THIS_YEAR + 1
    assert stored.role == 'student'

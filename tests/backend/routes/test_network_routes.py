import pytest
from fastapi import HTTPException

from backend.routes.network_routes import get_network_stats, get_user_profile, list_alumni, list_seniors


def test_list_alumni_only_returns_approved_alumni(db, make_user) -> None:
    alumni = make_user(name='Ananya Iyer', role='alumni', branch='CSE')
    make_user(name='Pending Alumni', role='alumni', verification_status='pending')
    make_user(name='Still Student')

    response = list_alumni(search=None, branch=None, db=db)

    assert response.count == 1
    assert response.users[0].id == alumni.id
    assert not hasattr(response.users[0], 'email')


def test_list_seniors_filters_by_name_and_branch(db, make_user) -> None:
    match = make_user(name='Vikram Nair', role='senior', branch='ECE')
    make_user(name='Vikram Das', role='senior', branch='CSE')
    make_user(name='Meera Pillai', role='senior', branch='ECE')

    response = list_seniors(search='vikram', branch='ece', db=db)

    assert [user.id for user in response.users] == [match.id]


def test_network_stats_counts_approved_users_by_role(db, make_user, admin) -> None:
    make_user()
    make_user(role='senior')
    make_user(role='alumni')
    make_user(role='alumni')
    make_user(role='alumni', verification_status='pending')

    response = get_network_stats(db=db)

    assert (response.students, response.seniors, response.alumni) == (1, 1, 2)


def test_get_user_profile_returns_user(db, make_user) -> None:
    viewer = make_user()
    target = make_user(role='alumni')

    assert get_user_profile(target.id, current_user=viewer, db=db).id == target.id


def test_get_user_profile_returns_404_for_unknown_user(db, make_user) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_user_profile(999, current_user=make_user(), db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'User not found.'

import pytest

from backend.core import config


def test_production_requires_a_real_jwt_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'change-me')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()


def test_cutoff_month_must_be_a_calendar_month(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'GRADUATION_CUTOFF_MONTH', 13)

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()


def test_get_list_splits_and_lowercases() -> None:
    assert config._get_list(' College.edu, ,IIT.edu ', []) == ['college.edu', 'iit.edu']
    assert config._get_list(None, ['kiet.edu']) == ['kiet.edu']

import pytest

from student_management.core.config import settings
from student_management.core.exceptions import BootstrapError, ConfigurationError
from student_management.main import check_authorization_settings
from student_management.models.user import Role, User
from student_management.services import account_service
from student_management.services.bootstrap import seed_identity


def test_seeding_twice_creates_nothing_new(db):
    seed_identity(db, settings.ADMIN_EMAIL, settings.ADMIN_INITIAL_PASSWORD)
    seed_identity(db, settings.ADMIN_EMAIL, settings.ADMIN_INITIAL_PASSWORD)

    assert sorted(role.name for role in db.query(Role).all()) == ["Admin", "Student"]
    assert db.query(User).count() == 1
    admin = account_service.get_user_by_email(db, settings.ADMIN_EMAIL)
    assert admin.role_names == ["Admin"]


def test_existing_admin_password_is_not_reset(db):
    seed_identity(db, settings.ADMIN_EMAIL, "Different1!")

    assert account_service.authenticate(db, settings.ADMIN_EMAIL, settings.ADMIN_INITIAL_PASSWORD)


def test_weak_admin_password_fails_loudly(db):
    with pytest.raises(BootstrapError):
        seed_identity(db, "other-admin@university.edu", "weak")

    assert account_service.get_user_by_email(db, "other-admin@university.edu") is None


def test_auth_disabled_outside_development_refuses_to_start(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")

    with pytest.raises(ConfigurationError):
        check_authorization_settings()


def test_auth_disabled_in_development_is_allowed(monkeypatch, caplog):
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")

    check_authorization_settings()

    assert "AUTH_DISABLED" in caplog.text

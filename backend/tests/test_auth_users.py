"""
Authentication, session and user administration tests.
"""

from datetime import timedelta

import pytest

from marketpos.errors import ConflictError, InvalidStateError, ValidationError
from marketpos.models import SessionToken, User
from marketpos.permissions import (
    ROLE_PERMISSIONS,
    Role,
    get_all_permission_codes,
    permissions_for_role,
    role_has_permission,
)
from marketpos.services import auth_service, session_service, user_service

from conftest import TEST_PASSWORD


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = auth_service.hash_password("hunter22")
        assert hashed != "hunter22"
        assert auth_service.verify_password("hunter22", hashed)
        assert not auth_service.verify_password("hunter23", hashed)

    def test_too_short(self):
        with pytest.raises(ValidationError):
            auth_service.hash_password("abc")

    def test_malformed_hash(self):
        assert auth_service.verify_password("whatever", "not-a-bcrypt-hash") is False


class TestAuthenticate:

    def test_success_sets_last_login(self, db_session, cashier_user):
        user = auth_service.authenticate("cashier", TEST_PASSWORD)
        assert user.id == cashier_user.id
        assert user.last_login_at is not None

    def test_inactive_user(self, db_session, cashier_user):
        cashier_user.is_active = False
        db_session.commit()
        assert auth_service.authenticate("cashier", TEST_PASSWORD) is None

    def test_change_password_revokes_sessions(self, db_session, cashier_user):
        _, token = session_service.create_session(user_id=cashier_user.id)

        auth_service.change_password(cashier_user, TEST_PASSWORD, "brand-new-pass")

        assert session_service.validate_session(token) is None
        assert auth_service.authenticate("cashier", "brand-new-pass") is not None

    def test_change_password_wrong_current(self, db_session, cashier_user):
        with pytest.raises(ValidationError):
            auth_service.change_password(cashier_user, "wrong-pass", "brand-new-pass")


class TestSessions:

    def test_token_stored_hashed(self, db_session, cashier_user):
        session, token = session_service.create_session(user_id=cashier_user.id)
        assert session.token_hash == session_service.hash_token(token)
        assert db_session.query(SessionToken).filter_by(token_hash=token).first() is None

    def test_validate(self, db_session, cashier_user):
        _, token = session_service.create_session(user_id=cashier_user.id)
        assert session_service.validate_session(token).id == cashier_user.id

    def test_idle_timeout(self, app, db_session, cashier_user):
        session, token = session_service.create_session(user_id=cashier_user.id)
        idle = timedelta(hours=app.config["SESSION_IDLE_TIMEOUT_HOURS"] + 1)
        session.last_used_at = session.last_used_at - idle
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert db_session.get(SessionToken, session.id).revoked_reason == "Idle timeout"

    def test_absolute_timeout(self, db_session, cashier_user):
        session, token = session_service.create_session(user_id=cashier_user.id)
        session.expires_at = session.created_at - timedelta(seconds=1)
        db_session.commit()
        assert session_service.validate_session(token) is None

    def test_revoke(self, db_session, cashier_user):
        _, token = session_service.create_session(user_id=cashier_user.id)
        assert session_service.revoke_session(token) is True
        assert session_service.revoke_session(token) is False
        assert session_service.validate_session(token) is None


class TestRolePermissions:

    def test_admin_has_everything(self):
        assert ROLE_PERMISSIONS[Role.ADMIN] == frozenset(get_all_permission_codes())

    def test_cashier(self):
        assert role_has_permission("cashier", "CREATE_SALE")
        assert not role_has_permission("cashier", "ADJUST_INVENTORY")
        assert not role_has_permission("cashier", "MANAGE_USERS")

    def test_staff(self):
        assert role_has_permission(Role.STAFF, "ADJUST_INVENTORY")
        assert role_has_permission(Role.STAFF, "MANAGE_PURCHASES")
        assert not role_has_permission(Role.STAFF, "CREATE_SALE")

    def test_unknown_role(self):
        assert permissions_for_role("owner") == frozenset()


class TestUserAdministration:

    def test_create(self, db_session):
        user = user_service.create_user({
            "username": "newbie",
            "full_name": "New Cashier",
            "role": "cashier",
            "password": "welcome1",
        })
        assert user.id is not None
        assert auth_service.verify_password("welcome1", user.password_hash)

    def test_duplicate_username(self, db_session, cashier_user):
        with pytest.raises(ConflictError):
            user_service.create_user({
                "username": "cashier", "full_name": "Dup", "role": "cashier", "password": "welcome1",
            })

    def test_unknown_role(self, db_session):
        with pytest.raises(ValidationError):
            user_service.create_user({
                "username": "x", "full_name": "X", "role": "owner", "password": "welcome1",
            })

    def test_cannot_deactivate_self(self, db_session, admin_user):
        with pytest.raises(InvalidStateError):
            user_service.deactivate_user(admin_user.id, acting_user_id=admin_user.id)

    def test_cannot_change_own_role(self, db_session, admin_user):
        with pytest.raises(InvalidStateError):
            user_service.update_user(admin_user.id, {"role": "cashier"}, acting_user_id=admin_user.id)

    def test_deactivate_revokes_sessions(self, db_session, admin_user, cashier_user):
        _, token = session_service.create_session(user_id=cashier_user.id)

        user_service.deactivate_user(cashier_user.id, acting_user_id=admin_user.id)

        assert db_session.get(User, cashier_user.id).is_active is False
        assert session_service.validate_session(token) is None

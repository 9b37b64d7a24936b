"""
Unit tests for authentication and permissions.
"""

import pytest

from taqueria.exceptions import NotFoundError, ValidationError
from taqueria.models import Permission, User
from taqueria.services import auth_service


class TestHasPermission:

    def test_granted_permission(self, session, cashier):
        assert auth_service.has_permission(session, cashier.id, 'pos_access') is True
        assert auth_service.has_permission(session, cashier.id, 'cash_manage') is False

    def test_case_insensitive(self, session, cashier):
        assert auth_service.has_permission(session, cashier.id, 'POS_ACCESS') is True
        assert auth_service.has_permission(session, cashier.id, Permission.POS_ACCESS) is True

    def test_super_admin_has_everything(self, session, make_user):
        root = make_user('super_admin')
        for permission in Permission:
            assert auth_service.has_permission(session, root.id, permission) is True

    def test_inactive_user_has_nothing(self, session, make_user):
        user = make_user('cashier', ['pos_access'], active=False)
        assert auth_service.has_permission(session, user.id, 'pos_access') is False

    def test_unknown_user_or_permission(self, session, cashier):
        assert auth_service.has_permission(session, 999, 'pos_access') is False
        assert auth_service.has_permission(session, cashier.id, 'launch_rockets') is False
        assert auth_service.has_permission(session, cashier.id, '') is False


class TestAuthenticate:

    def test_valid_credentials(self, session, cashier):
        user = auth_service.authenticate(session, cashier.email.upper(), 'password123')
        assert user is not None
        assert user.id == cashier.id
        assert user.last_login is not None

    def test_wrong_password(self, session, cashier):
        assert auth_service.authenticate(session, cashier.email, 'nope') is None

    def test_inactive_user(self, session, make_user):
        user = make_user('cashier', active=False)
        assert auth_service.authenticate(session, user.email, 'password123') is None


class TestUserManagement:

    def test_create_user(self, session):
        user = auth_service.create_user(
            session, 'Nueva@Test.com', 'Nueva Cajera', 'secret123',
            role='cashier', permissions=['POS_ACCESS', 'cash_manage']
        )
        assert user.email == 'nueva@test.com'
        assert user.permission_keys == ['cash_manage', 'pos_access']
        assert user.check_password('secret123')
        assert user.password_hash != 'secret123'

    def test_duplicate_email(self, session, cashier):
        with pytest.raises(ValidationError):
            auth_service.create_user(session, cashier.email, 'Otra', 'secret123')

    def test_unknown_role_or_permission(self, session):
        with pytest.raises(ValidationError):
            auth_service.create_user(session, 'a@test.com', 'A', 'secret123', role='owner')
        with pytest.raises(ValidationError):
            auth_service.create_user(session, 'b@test.com', 'B', 'secret123', permissions=['fly'])

    def test_grant_and_revoke(self, session, cashier, admin_user):
        auth_service.grant_permission(session, cashier.id, 'cash_manage', granted_by=admin_user.id)
        auth_service.grant_permission(session, cashier.id, 'CASH_MANAGE')
        assert auth_service.has_permission(session, cashier.id, 'cash_manage') is True
        user = session.query(User).filter_by(id=cashier.id).one()
        assert user.permission_keys.count('cash_manage') == 1

        auth_service.revoke_permission(session, cashier.id, 'cash_manage')
        assert auth_service.has_permission(session, cashier.id, 'cash_manage') is False

    def test_grant_to_unknown_user(self, session):
        with pytest.raises(NotFoundError):
            auth_service.grant_permission(session, 999, 'pos_access')

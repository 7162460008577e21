"""
Authentication and token tests.

Verifies:
- Login success/failure cases all map to UnauthorizedError
- Access/refresh tokens carry identity and a token_type discriminator
- Refresh tokens cannot be used as access tokens (and vice versa)
- Tampered, malformed and expired tokens are rejected
- Password change/reset rules
"""

from datetime import timedelta

import pytest
from jose import jwt

from layup.errors import ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from layup.models import User
from layup.services import auth_service, token_service
from layup.services.token_service import TOKEN_TYPE_ACCESS, TOKEN_TYPE_REFRESH
from layup.time_utils import utcnow

from conftest import PASSWORD


class TestPasswordHashing:

    def test_hash_and_verify(self, app):
        hashed = auth_service.hash_password("pa55word")
        assert hashed != "pa55word"
        assert auth_service.verify_password("pa55word", hashed)
        assert not auth_service.verify_password("wrong", hashed)

    def test_verify_rejects_empty_and_garbage(self, app):
        assert not auth_service.verify_password("", "whatever")
        assert not auth_service.verify_password("x", "")
        assert not auth_service.verify_password("x", "not-a-bcrypt-hash")

    @pytest.mark.parametrize("password", ["", "   ", None])
    def test_empty_password_rejected(self, app, password):
        with pytest.raises(ValidationError):
            auth_service.hash_password(password)


class TestLogin:

    def test_success_issues_token_pair(self, worker):
        tokens, user = auth_service.login("anna", PASSWORD)
        assert user.id == worker.id
        assert user.last_login_at is not None

        access = token_service.parse_token(tokens.access_token)
        assert access.user_id == worker.id
        assert access.name == "anna"
        assert access.role == "worker"
        assert access.is_active is True
        assert access.token_type == TOKEN_TYPE_ACCESS
        assert access.expires_at - access.issued_at == timedelta(minutes=15)

        refresh = token_service.parse_token(tokens.refresh_token, expected_type=TOKEN_TYPE_REFRESH)
        assert refresh.expires_at - refresh.issued_at == timedelta(days=7)

    def test_name_is_trimmed(self, worker):
        _, user = auth_service.login("  anna ", PASSWORD)
        assert user.id == worker.id

    def test_unknown_user(self, db_session):
        with pytest.raises(UnauthorizedError):
            auth_service.login("nobody", PASSWORD)

    def test_wrong_password(self, worker):
        with pytest.raises(UnauthorizedError):
            auth_service.login("anna", "not-it")

    def test_inactive_user(self, make_user):
        make_user("gone", "worker", is_active=False)
        with pytest.raises(UnauthorizedError):
            auth_service.login("gone", PASSWORD)

    def test_user_without_password(self, db_session):
        db_session.add(User(name="fresh", role="worker"))
        db_session.commit()
        with pytest.raises(UnauthorizedError):
            auth_service.login("fresh", "")


class TestTokens:

    def test_refresh_token_rejected_as_access(self, worker):
        tokens = token_service.issue_tokens(worker)
        with pytest.raises(UnauthorizedError):
            token_service.parse_token(tokens.refresh_token)

    def test_access_token_rejected_as_refresh(self, worker):
        tokens = token_service.issue_tokens(worker)
        with pytest.raises(UnauthorizedError):
            auth_service.refresh(tokens.access_token)

    def test_expired_token(self, worker):
        tokens = token_service.issue_tokens(worker, access_ttl=timedelta(seconds=-1))
        with pytest.raises(UnauthorizedError):
            token_service.parse_token(tokens.access_token)

    def test_wrong_secret(self, worker):
        now = utcnow().replace(microsecond=0)
        claims = token_service.Claims(
            user_id=worker.id,
            name=worker.name,
            role="admin",
            is_active=True,
            issued_at=now,
            expires_at=now + timedelta(minutes=5),
        )
        forged = token_service.sign_claims(claims, secret="someone-else")
        with pytest.raises(UnauthorizedError):
            token_service.parse_token(forged)

    def test_tampered_payload(self, worker):
        token = token_service.issue_tokens(worker).access_token
        header, payload, signature = token.split(".")
        other = token_service.issue_tokens(
            User(id=999, name="x", role="admin", is_active=True)
        ).access_token.split(".")[1]
        with pytest.raises(UnauthorizedError):
            token_service.parse_token(".".join([header, other, signature]))

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", None])
    def test_malformed(self, app, token):
        with pytest.raises(UnauthorizedError):
            token_service.parse_token(token)

    def test_missing_claim(self, app):
        token = jwt.encode({"user_id": 1}, app.config["SECRET_KEY"], algorithm="HS256")
        with pytest.raises(UnauthorizedError):
            token_service.parse_token(token)


class TestRefresh:

    def test_refresh_issues_new_pair(self, worker):
        tokens = token_service.issue_tokens(worker)
        new_tokens = auth_service.refresh(tokens.refresh_token)
        claims = token_service.parse_token(new_tokens.access_token)
        assert claims.user_id == worker.id

    def test_refresh_carries_current_role(self, worker, db_session):
        tokens = token_service.issue_tokens(worker)
        worker.role = "pattern_maker"
        db_session.commit()

        claims = token_service.parse_token(auth_service.refresh(tokens.refresh_token).access_token)
        assert claims.role == "pattern_maker"

    def test_refresh_rejected_for_deactivated_user(self, worker, db_session):
        tokens = token_service.issue_tokens(worker)
        worker.is_active = False
        db_session.commit()
        with pytest.raises(UnauthorizedError):
            auth_service.refresh(tokens.refresh_token)

    def test_refresh_rejected_for_deleted_user(self, worker, db_session):
        tokens = token_service.issue_tokens(worker)
        db_session.delete(worker)
        db_session.commit()
        with pytest.raises(UnauthorizedError):
            auth_service.refresh(tokens.refresh_token)


class TestPasswords:

    def test_change_password(self, worker):
        auth_service.change_password(worker.id, PASSWORD, "new-pass-2")
        auth_service.login("anna", "new-pass-2")
        with pytest.raises(UnauthorizedError):
            auth_service.login("anna", PASSWORD)

    def test_change_password_requires_old(self, worker):
        with pytest.raises(UnauthorizedError):
            auth_service.change_password(worker.id, "wrong", "new-pass-2")

    def test_change_password_rejects_empty_new(self, worker):
        with pytest.raises(ValidationError):
            auth_service.change_password(worker.id, PASSWORD, "  ")

    def test_change_password_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            auth_service.change_password(4242, PASSWORD, "new-pass-2")

    def test_set_initial_password(self, db_session):
        user = User(name="fresh", role="worker")
        db_session.add(user)
        db_session.commit()

        auth_service.set_initial_password(user.id, "first-pass")
        _, logged_in = auth_service.login("fresh", "first-pass")
        assert logged_in.id == user.id

    def test_set_initial_password_rejects_empty(self, worker):
        with pytest.raises(ValidationError):
            auth_service.set_initial_password(worker.id, "")

    def test_set_initial_password_inactive(self, make_user):
        user = make_user("gone", "worker", is_active=False)
        with pytest.raises(ForbiddenError):
            auth_service.set_initial_password(user.id, "first-pass")

    def test_set_initial_password_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            auth_service.set_initial_password(4242, "first-pass")

"""Tests for user mapping and auth session types."""

import time

from daybook.core.users import AuthSession, SignUpResult, display_name, map_user


class TestMapUser:
    def test_uses_profile_name(self):
        user = map_user(
            {
                "id": "u1",
                "email": "ann@example.com",
                "created_at": "2025-01-15T10:00:00Z",
                "user_metadata": {"full_name": "Ann Lee"},
            }
        )
        assert user.id == "u1"
        assert user.email == "ann@example.com"
        assert user.name == "Ann Lee"
        assert user.created_at == 1_736_935_200_000

    def test_name_falls_back_to_email_local_part(self):
        assert display_name({"email": "ann.lee@example.com", "user_metadata": {}}) == "ann.lee"

    def test_name_falls_back_to_user_without_email(self):
        user = map_user({"id": "u1"})
        assert user.name == "User"
        assert user.email == ""
        assert user.created_at == 0

    def test_empty_local_part_falls_back_to_user(self):
        assert display_name({"email": "@example.com"}) == "User"

    def test_users_compare_by_value(self):
        data = {"id": "u1", "email": "a@b.c"}
        assert map_user(data) == map_user(dict(data))


class TestAuthSession:
    def test_from_api_uses_expires_in_when_no_expires_at(self):
        before = int(time.time())
        session = AuthSession.from_api({"access_token": "a", "expires_in": 60})
        assert before + 60 <= session.expires_at <= int(time.time()) + 60
        assert session.refresh_token == ""
        assert session.user == {}

    def test_expires_soon(self):
        assert AuthSession("a", expires_at=int(time.time()) + 10).expires_soon()
        assert not AuthSession("a", expires_at=int(time.time()) + 3600).expires_soon()
        assert not AuthSession("a").expires_soon()


class TestSignUpResult:
    def test_needs_confirmation_when_user_without_session(self):
        assert SignUpResult(user={"id": "u1"}, session=None).needs_confirmation

    def test_no_confirmation_when_session_present(self):
        session = AuthSession("a", user={"id": "u1"})
        assert not SignUpResult(user=session.user, session=session).needs_confirmation

"""Tests for unity.api.deps: token extraction, caller classification and the three auth modes."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError
from starlette.requests import Request

from unity.api.deps import _resolve_identity, extract_token, is_api_request
from unity.core.security import TokenClaims, TokenService
from unity.repositories import users as users_repo
from unity.schemas.auth import CurrentUser
from tests.support import (
    TEST_SECRET,
    add_user,
    bearer,
    make_client,
    make_engine,
    make_session_factory,
)


def _request(path: str = "/", headers: dict[str, str] | None = None) -> Request:
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "headers": raw_headers,
        "scheme": "http",
        "server": ("testserver", 80),
    }
    return Request(scope)


class TestExtractToken(unittest.TestCase):
    """Authorization header wins over the cookie; 'Bearer ' is stripped."""

    def test_bearer_header(self) -> None:
        request = _request(headers={"Authorization": "Bearer abc.def.ghi"})
        self.assertEqual(extract_token(request, "token"), "abc.def.ghi")

    def test_raw_header_without_prefix(self) -> None:
        request = _request(headers={"Authorization": "abc.def.ghi"})
        self.assertEqual(extract_token(request, "token"), "abc.def.ghi")

    def test_cookie_fallback(self) -> None:
        request = _request(headers={"Cookie": "token=cookie.jwt.value"})
        self.assertEqual(extract_token(request, "token"), "cookie.jwt.value")

    def test_header_preferred_over_cookie(self) -> None:
        request = _request(
            headers={"Authorization": "Bearer from-header", "Cookie": "token=from-cookie"}
        )
        self.assertEqual(extract_token(request, "token"), "from-header")

    def test_custom_cookie_name(self) -> None:
        request = _request(headers={"Cookie": "session=xyz"})
        self.assertEqual(extract_token(request, "session"), "xyz")
        self.assertIsNone(extract_token(request, "token"))

    def test_missing_or_empty(self) -> None:
        self.assertIsNone(extract_token(_request(), "token"))
        self.assertIsNone(extract_token(_request(headers={"Authorization": "Bearer "}), "token"))


class TestIsApiRequest(unittest.TestCase):
    def test_api_path(self) -> None:
        self.assertTrue(is_api_request(_request("/api/posts")))

    def test_json_accept(self) -> None:
        self.assertTrue(is_api_request(_request("/admin/", {"Accept": "application/json"})))

    def test_json_content_type(self) -> None:
        self.assertTrue(
            is_api_request(_request("/admin/", {"Content-Type": "application/json; charset=utf-8"}))
        )

    def test_browser(self) -> None:
        self.assertFalse(is_api_request(_request("/admin/", {"Accept": "text/html"})))
        self.assertFalse(is_api_request(_request("/posts/1/like")))


class AuthHttpTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.factory = make_session_factory(self.engine)
        self.db = self.factory()
        self.alice = add_user(self.db, "alice")
        self.root = add_user(self.db, "root", role="admin")
        self.client = make_client(self.factory, follow_redirects=False)
        self.tokens: TokenService = self.client.app.state.tokens

    def tearDown(self) -> None:
        self.client.close()
        self.db.close()
        self.engine.dispose()

    def token_for(self, user) -> str:
        return self.tokens.issue(user.id, user.username, user.role)


class TestMandatoryAuth(AuthHttpTestCase):
    def test_missing_token_api_is_401(self) -> None:
        resp = self.client.post("/api/posts", json={"content": "hi"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Authentication required"})
        self.assertEqual(resp.headers.get("www-authenticate"), "Bearer")

    def test_missing_token_browser_redirects_to_login(self) -> None:
        resp = self.client.get("/admin/", headers={"Accept": "text/html"})
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp.headers["location"], "/login")

    def test_invalid_token_clears_cookie(self) -> None:
        self.client.cookies.set("token", "not-a-jwt")
        resp = self.client.get("/api/me")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Invalid or expired token"})
        set_cookie = resp.headers.get("set-cookie", "")
        self.assertIn("token=", set_cookie)
        self.assertIn("Max-Age=0", set_cookie)

    def test_invalid_token_browser_redirects_and_clears_cookie(self) -> None:
        self.client.cookies.set("token", "not-a-jwt")
        resp = self.client.post("/posts/1/like", headers={"Accept": "text/html"})
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp.headers["location"], "/login")
        self.assertIn("Max-Age=0", resp.headers.get("set-cookie", ""))

    def test_expired_token_rejected(self) -> None:
        expired = TokenService(secret=TEST_SECRET, ttl=timedelta(seconds=1)).issue(
            self.alice.id,
            "alice",
            "user",
            now=self.tokens.clock() - timedelta(hours=1),
        )
        resp = self.client.get("/api/me", headers=bearer(expired))
        self.assertEqual(resp.status_code, 401)

    def test_token_signed_with_other_secret_rejected(self) -> None:
        forged = TokenService(secret="some-other-secret-0123456789abcdef012345").issue(
            self.root.id, "root", "admin"
        )
        resp = self.client.get("/admin/users", headers=bearer(forged))
        self.assertEqual(resp.status_code, 401)

    def test_valid_header_token(self) -> None:
        resp = self.client.get("/api/me", headers=bearer(self.token_for(self.alice)))
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["id"], self.alice.id)
        self.assertEqual(body["username"], "alice")
        self.assertEqual(body["role"], "user")

    def test_valid_cookie_token(self) -> None:
        self.client.cookies.set("token", self.token_for(self.alice))
        resp = self.client.get("/api/me")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["username"], "alice")

    def test_deleted_user_degrades_to_token_identity(self) -> None:
        token = self.tokens.issue(424242, "ghost", "user")
        with self.assertLogs("unity.api.deps", level="WARNING"):
            resp = self.client.get("/api/me", headers=bearer(token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], None)
        self.assertEqual(resp.json()["username"], "ghost")

    def test_degraded_identity_cannot_write(self) -> None:
        token = self.tokens.issue(424242, "ghost", "user")
        resp = self.client.post("/api/posts", json={"content": "boo"}, headers=bearer(token))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Account is no longer available"})


class TestReusedUsername(AuthHttpTestCase):
    """A token issued to a deleted account does not carry over to a new account with its name."""

    def test_old_token_degrades_after_username_reregistered(self) -> None:
        bob = add_user(self.db, "bob")
        old_token = self.token_for(bob)
        old_id = bob.id
        users_repo.delete_user_cascade(self.db, old_id)
        # SQLite hands out max(rowid)+1, so a filler keeps the new bob off the old id.
        add_user(self.db, "filler")
        new_bob = add_user(self.db, "bob")
        self.assertNotEqual(new_bob.id, old_id)

        with self.assertLogs("unity.api.deps", level="WARNING"):
            me = self.client.get("/api/me", headers=bearer(old_token))
        self.assertEqual(me.status_code, 200)
        self.assertIsNone(me.json()["id"])
        self.assertEqual(me.json()["username"], "bob")

        resp = self.client.post("/api/posts", json={"content": "hijack"}, headers=bearer(old_token))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Account is no longer available"})

    def test_fresh_token_for_new_account_works(self) -> None:
        bob = add_user(self.db, "bob")
        users_repo.delete_user_cascade(self.db, bob.id)
        add_user(self.db, "filler")
        new_bob = add_user(self.db, "bob")
        me = self.client.get("/api/me", headers=bearer(self.token_for(new_bob)))
        self.assertEqual(me.json()["id"], new_bob.id)


class TestResolveIdentity(unittest.TestCase):
    def setUp(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        self.claims = TokenClaims(
            user_id=5,
            username="alice",
            role="user",
            issued_at=now,
            expires_at=now + timedelta(hours=24),
        )

    def test_lookup_failure_rolls_back_session(self) -> None:
        db = MagicMock()
        failure = OperationalError("SELECT", {}, Exception("connection reset"))
        with patch("unity.api.deps.users_repo.get_user_by_username", side_effect=failure):
            with self.assertLogs("unity.api.deps", level="WARNING"):
                identity = _resolve_identity(db, self.claims)
        db.rollback.assert_called_once()
        self.assertIsNone(identity.id)
        self.assertEqual(identity.username, "alice")

    def test_matching_id_resolves(self) -> None:
        user = MagicMock(id=5, username="alice", display_name="Alice")
        with patch("unity.api.deps.users_repo.get_user_by_username", return_value=user):
            identity = _resolve_identity(MagicMock(), self.claims)
        self.assertEqual(identity.id, 5)
        self.assertEqual(identity.display_name, "Alice")

    def test_mismatched_id_degrades(self) -> None:
        user = MagicMock(id=9, username="alice", display_name="alice")
        with patch("unity.api.deps.users_repo.get_user_by_username", return_value=user):
            with self.assertLogs("unity.api.deps", level="WARNING"):
                identity = _resolve_identity(MagicMock(), self.claims)
        self.assertIsNone(identity.id)


class TestCurrentUserRole(unittest.TestCase):
    def test_only_admin_role_is_admin(self) -> None:
        self.assertTrue(CurrentUser(id=1, username="root", role="admin").is_admin)
        for role in ("user", "moderator", "Admin", ""):
            with self.subTest(role=role):
                self.assertFalse(CurrentUser(id=1, username="x", role=role).is_admin)


class TestOptionalAuth(AuthHttpTestCase):
    def test_anonymous_feed(self) -> None:
        resp = self.client.get("/api/posts")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), [])
        self.assertNotIn("set-cookie", resp.headers)

    def test_invalid_cookie_cleared_but_request_continues(self) -> None:
        self.client.cookies.set("token", "garbage")
        resp = self.client.get("/api/posts")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("Max-Age=0", resp.headers.get("set-cookie", ""))

    def test_logged_in_feed_reports_liked_by_me(self) -> None:
        headers = bearer(self.token_for(self.alice))
        created = self.client.post("/api/posts", json={"content": "first"}, headers=headers)
        post_id = created.json()["id"]
        self.client.post(f"/api/posts/{post_id}/like", headers=headers)

        mine = self.client.get("/api/posts", headers=headers).json()
        self.assertTrue(mine[0]["liked_by_me"])
        anonymous = self.client.get("/api/posts").json()
        self.assertIsNone(anonymous[0]["liked_by_me"])


class TestAdminGate(AuthHttpTestCase):
    def test_non_admin_gets_403_not_401(self) -> None:
        headers = bearer(self.token_for(self.alice))
        for method, path in (
            ("GET", "/admin/"),
            ("GET", "/admin/users"),
            ("GET", "/admin/posts"),
            ("GET", "/admin/comments"),
            ("POST", "/admin/heroes"),
            ("DELETE", f"/admin/users/{self.root.id}"),
        ):
            with self.subTest(method=method, path=path):
                resp = self.client.request(method, path, headers=headers)
                self.assertEqual(resp.status_code, 403)
                self.assertEqual(resp.json(), {"error": "Admin access required"})

    def test_non_admin_browser_gets_403_without_redirect(self) -> None:
        self.client.cookies.set("token", self.token_for(self.alice))
        resp = self.client.get("/admin/", headers={"Accept": "text/html"})
        self.assertEqual(resp.status_code, 403)
        self.assertNotIn("location", resp.headers)

    def test_moderator_is_not_admin(self) -> None:
        mod = add_user(self.db, "mod", role="moderator")
        resp = self.client.get("/admin/users", headers=bearer(self.token_for(mod)))
        self.assertEqual(resp.status_code, 403)

    def test_admin_allowed(self) -> None:
        resp = self.client.get("/admin/", headers=bearer(self.token_for(self.root)))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["stats"]["users"], 2)


class TestFailClosed(AuthHttpTestCase):
    """Without an initialized token service nothing authenticates."""

    def test_requests_rejected_before_initialization(self) -> None:
        token = self.token_for(self.alice)
        self.client.app.state.tokens = None
        resp = self.client.get("/api/me", headers=bearer(token))
        self.assertEqual(resp.status_code, 503)
        resp = self.client.post("/api/login", json={"username": "alice", "password": "pw1"})
        self.assertEqual(resp.status_code, 503)
        resp = self.client.get("/api/posts", headers=bearer(token))
        self.assertEqual(resp.status_code, 503)


if __name__ == "__main__":
    unittest.main()

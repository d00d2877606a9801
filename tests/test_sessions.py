"""Tests for gatehouse.services.sessions: login and refresh against SQLite stores."""

import threading
import time
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt

from gatehouse.core.security import PasswordHasher
from gatehouse.models import RefreshToken, Role
from gatehouse.services.credentials import CredentialStore
from gatehouse.services.directory import DirectoryService
from gatehouse.services.refresh_tokens import RefreshTokenStore
from gatehouse.services.sessions import (
    INVALID_CREDENTIALS,
    INVALID_REFRESH_TOKEN,
    AuthFailure,
    SessionCredentialPair,
    SessionService,
)
from gatehouse.services.tokens import TokenIssuer
from tests.support import (
    TEST_SECRET,
    FileDatabase,
    add_user,
    make_session_factory,
    make_token_config,
)


class SessionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine, factory = make_session_factory()
        self.db = factory()
        self.hasher = PasswordHasher(rounds=4)
        self.config = make_token_config()
        self.issuer = TokenIssuer(self.config)
        self.service = SessionService(self.db, self.hasher, self.issuer)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def _role_id(self, name: str) -> int:
        return self.db.query(Role.id).filter(Role.name == name).scalar()


class TestLogin(SessionTestCase):
    def test_admin_login_returns_pair_with_exact_roles(self) -> None:
        admin = add_user(self.db, "admin@example.com", "Admin123!", roles=("Admin",))
        before = datetime.now(UTC).replace(microsecond=0)
        result = self.service.login("admin@example.com", "Admin123!")

        self.assertIsInstance(result, SessionCredentialPair)
        self.assertEqual(result.roles, ["Admin"])
        self.assertEqual(result.user.id, admin.id)
        payload = jwt.decode(
            result.access_token,
            TEST_SECRET,
            algorithms=["HS256"],
            audience=self.config.audience,
        )
        self.assertEqual(payload["roles"], ["Admin"])
        self.assertEqual(payload["sub"], str(admin.id))
        self.assertEqual(payload["exp"] - payload["iat"], 60 * 60)
        delta = result.expires_at - before
        self.assertGreaterEqual(delta, timedelta(minutes=60))
        self.assertLess(delta, timedelta(minutes=61))

    def test_multiple_roles_are_all_carried(self) -> None:
        add_user(self.db, "boss@example.com", "Password1", roles=("Manager", "Admin", "User"))
        result = self.service.login("boss@example.com", "Password1")
        self.assertEqual(result.roles, ["Admin", "Manager", "User"])

    def test_login_persists_only_refresh_token_digest(self) -> None:
        add_user(self.db, "a@example.com", "Password1", roles=("User",))
        result = self.service.login("a@example.com", "Password1")
        rows = self.db.query(RefreshToken).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].token_hash, self.issuer.refresh_token_digest(result.refresh_token))
        self.assertNotEqual(rows[0].token_hash, result.refresh_token)

    def test_failures_are_indistinguishable(self) -> None:
        add_user(self.db, "a@example.com", "Password1", roles=("User",))
        add_user(self.db, "off@example.com", "Password1", roles=("User",), is_active=False)
        attempts = [
            ("a@example.com", "wrong-password"),
            ("nobody@example.com", "Password1"),
            ("off@example.com", "Password1"),
            ("A@EXAMPLE.COM", "Password1"),
        ]
        for email, password in attempts:
            with self.subTest(email=email):
                self.assertEqual(self.service.login(email, password), AuthFailure(INVALID_CREDENTIALS))
        self.assertEqual(self.db.query(RefreshToken).count(), 0)


class TestRefresh(SessionTestCase):
    def test_refresh_returns_new_pair_with_current_roles(self) -> None:
        user = add_user(self.db, "a@example.com", "Password1", roles=("User",))
        first = self.service.login("a@example.com", "Password1")
        DirectoryService(self.db, self.hasher).assign_role(user.id, self._role_id("Manager"))

        second = self.service.refresh(first.refresh_token)

        self.assertIsInstance(second, SessionCredentialPair)
        self.assertEqual(second.roles, ["Manager", "User"])
        self.assertNotEqual(second.refresh_token, first.refresh_token)

    def test_refresh_token_is_single_use(self) -> None:
        add_user(self.db, "a@example.com", "Password1", roles=("User",))
        first = self.service.login("a@example.com", "Password1")
        self.assertIsInstance(self.service.refresh(first.refresh_token), SessionCredentialPair)
        self.assertEqual(
            self.service.refresh(first.refresh_token), AuthFailure(INVALID_REFRESH_TOKEN)
        )

    def test_unknown_or_empty_token_fails(self) -> None:
        for token in (None, "", "   ", "bm90LWEtcmVhbC10b2tlbg=="):
            with self.subTest(token=token):
                self.assertEqual(self.service.refresh(token), AuthFailure(INVALID_REFRESH_TOKEN))

    def test_expired_refresh_token_fails(self) -> None:
        user = add_user(self.db, "a@example.com", "Password1", roles=("User",))
        token = self.issuer.issue_refresh_token()
        self.db.add(
            RefreshToken(
                user_id=user.id,
                token_hash=self.issuer.refresh_token_digest(token),
                expires_at=datetime.now(UTC) - timedelta(minutes=1),
            )
        )
        self.db.commit()
        self.assertEqual(self.service.refresh(token), AuthFailure(INVALID_REFRESH_TOKEN))

    def test_deactivated_identity_cannot_refresh(self) -> None:
        user = add_user(self.db, "a@example.com", "Password1", roles=("User",))
        pair = self.service.login("a@example.com", "Password1")
        DirectoryService(self.db, self.hasher).deactivate_user(user.id)

        self.assertEqual(self.service.refresh(pair.refresh_token), AuthFailure(INVALID_REFRESH_TOKEN))
        self.assertEqual(self.db.query(RefreshToken).count(), 0)



class TestConcurrentRefresh(unittest.TestCase):
    """Two refreshes with the same token, each on its own connection, overlapping in time."""

    def setUp(self) -> None:
        self.database = FileDatabase()
        self.addCleanup(self.database.close)
        self.hasher = PasswordHasher(rounds=4)
        self.issuer = TokenIssuer(make_token_config())

    def _service(self, db) -> SessionService:
        return SessionService(db, self.hasher, self.issuer)

    def test_token_is_redeemed_once_when_refreshes_overlap(self) -> None:
        db = self.database.session_factory()
        try:
            add_user(db, "a@example.com", "Password1", roles=("User",))
            refresh_token = self._service(db).login("a@example.com", "Password1").refresh_token
        finally:
            db.close()

        first_consumed = threading.Event()
        original_lookup = CredentialStore.find_active_by_id

        def slow_first_lookup(store, user_id):
            if not first_consumed.is_set():
                first_consumed.set()
                # First refresh holds its uncommitted delete while the second one runs.
                time.sleep(0.5)
            return original_lookup(store, user_id)

        results = []

        def refresh() -> None:
            session = self.database.session_factory()
            try:
                results.append(self._service(session).refresh(refresh_token))
            finally:
                session.close()

        with patch.object(CredentialStore, "find_active_by_id", slow_first_lookup):
            first = threading.Thread(target=refresh)
            first.start()
            self.assertTrue(first_consumed.wait(timeout=5))
            second = threading.Thread(target=refresh)
            second.start()
            first.join(timeout=10)
            second.join(timeout=10)

        self.assertEqual(len(results), 2)
        pairs = [r for r in results if isinstance(r, SessionCredentialPair)]
        self.assertEqual(len(pairs), 1)
        self.assertIn(AuthFailure(INVALID_REFRESH_TOKEN), results)

        db = self.database.session_factory()
        try:
            [record] = db.query(RefreshToken).all()
            self.assertEqual(record.token_hash, self.issuer.refresh_token_digest(pairs[0].refresh_token))
        finally:
            db.close()


class TestRefreshTokenStore(SessionTestCase):
    def test_consume_is_single_use_and_ignores_expired(self) -> None:
        user = add_user(self.db, "a@example.com", "Password1")
        store = RefreshTokenStore(self.db)
        now = datetime.now(UTC)
        store.save(user.id, "a" * 64, now + timedelta(minutes=5))
        store.save(user.id, "b" * 64, now - timedelta(minutes=5))
        self.db.commit()

        self.assertEqual(store.consume("a" * 64), user.id)
        self.assertIsNone(store.consume("a" * 64))
        self.assertIsNone(store.consume("b" * 64))
        self.assertIsNone(store.consume("c" * 64))

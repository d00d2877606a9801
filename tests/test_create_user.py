"""Tests for the create_user CLI (gatehouse.scripts.create_user)."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from gatehouse.models import User
from gatehouse.scripts import create_user
from tests.support import make_session_factory, make_settings


class TestCreateUserScript(unittest.TestCase):
    def setUp(self) -> None:
        self.engine, self.factory = make_session_factory()
        patcher_factory = patch.object(create_user, "get_session_factory", return_value=self.factory)
        patcher_settings = patch.object(create_user, "get_settings", return_value=make_settings())
        patcher_factory.start()
        patcher_settings.start()
        self.addCleanup(patcher_factory.stop)
        self.addCleanup(patcher_settings.stop)
        self.addCleanup(self.engine.dispose)

    def run_main(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = create_user.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_creates_admin_and_seeds_roles(self) -> None:
        code, out, _ = self.run_main(
            "admin@example.com", "System Administrator", "Admin123!", "--role", "Admin"
        )
        self.assertEqual(code, 0)
        self.assertIn("roles: Admin", out)
        db = self.factory()
        try:
            user = db.query(User).filter(User.email == "admin@example.com").one()
            self.assertEqual(user.role_names, ["Admin"])
            self.assertTrue(user.is_active)
        finally:
            db.close()

    def test_duplicate_email_fails(self) -> None:
        self.run_main("admin@example.com", "Admin", "Admin123!")
        code, _, err = self.run_main("admin@example.com", "Admin", "Admin123!")
        self.assertEqual(code, 1)
        self.assertIn("Email already exists", err)

    def test_unknown_role_fails(self) -> None:
        code, _, err = self.run_main("a@example.com", "A", "Password1", "--role", "Wizard")
        self.assertEqual(code, 1)
        self.assertIn("Role 'Wizard' not found", err)

    def test_short_password_fails_before_touching_the_database(self) -> None:
        code, _, err = self.run_main("a@example.com", "A", "123")
        self.assertEqual(code, 1)
        self.assertIn("Password must be", err)

"""Tests for gatehouse.services.directory: uniqueness, role deletion rules and user deletion."""

import unittest
from datetime import UTC, datetime, timedelta

from gatehouse.core.errors import ConflictFailure, NotFoundFailure
from gatehouse.core.security import PasswordHasher
from gatehouse.models import AuditLog, RefreshToken, Role, User, UserRole
from gatehouse.services.audit import AuditRecorder
from gatehouse.services.directory import (
    EMAIL_EXISTS,
    ROLE_ALREADY_ASSIGNED,
    ROLE_IN_USE,
    DirectoryService,
)
from gatehouse.services.seed import DEFAULT_ROLES, ensure_default_roles
from tests.support import add_user, make_session_factory


class DirectoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine, self.factory = make_session_factory()
        self.db = self.factory()
        self.hasher = PasswordHasher(rounds=4)
        self.directory = DirectoryService(self.db, self.hasher)
        ensure_default_roles(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def _role(self, name: str) -> Role:
        return self.db.query(Role).filter(Role.name == name).one()


class TestSeed(DirectoryTestCase):
    def test_default_roles_seeded_once(self) -> None:
        self.assertEqual(self.db.query(Role).count(), len(DEFAULT_ROLES))
        self.assertEqual(ensure_default_roles(self.db), [])
        self.assertEqual(self.db.query(Role).count(), len(DEFAULT_ROLES))


class TestUsers(DirectoryTestCase):
    def test_create_user_hashes_password_and_assigns_roles(self) -> None:
        user = self.directory.create_user(
            "Ada", "ada@example.com", "Password1", role_names=["User", "Manager"]
        )
        self.assertTrue(self.hasher.verify("Password1", user.password_hash))
        self.assertEqual(user.role_names, ["Manager", "User"])
        self.assertTrue(user.is_active)

    def test_duplicate_email_is_a_conflict(self) -> None:
        self.directory.create_user("Ada", "ada@example.com", "Password1")
        with self.assertRaises(ConflictFailure) as ctx:
            self.directory.create_user("Other", "ada@example.com", "Password2")
        self.assertEqual(ctx.exception.message, EMAIL_EXISTS)
        self.assertEqual(self.db.query(User).count(), 1)

    def test_unknown_role_name_creates_nothing(self) -> None:
        with self.assertRaises(NotFoundFailure):
            self.directory.create_user("Ada", "ada@example.com", "Password1", role_names=["Nope"])
        self.assertEqual(self.db.query(User).count(), 0)

    def test_register_gives_default_role(self) -> None:
        user = self.directory.register("Ada", "ada@example.com", "Password1", "User")
        self.assertEqual(user.role_names, ["User"])

    def test_register_without_existing_default_role(self) -> None:
        user = self.directory.register("Ada", "ada@example.com", "Password1", "Customer")
        self.assertEqual(user.role_names, [])

    def test_update_user_changes_only_given_fields(self) -> None:
        user = self.directory.create_user("Ada", "ada@example.com", "Password1")
        updated = self.directory.update_user(user.id, full_name="Ada L.")
        self.assertEqual(updated.full_name, "Ada L.")
        self.assertEqual(updated.email, "ada@example.com")
        self.assertIsNotNone(updated.updated_at)
        self.assertTrue(self.hasher.verify("Password1", updated.password_hash))

    def test_update_email_to_taken_one_is_a_conflict(self) -> None:
        self.directory.create_user("Ada", "ada@example.com", "Password1")
        grace = self.directory.create_user("Grace", "grace@example.com", "Password1")
        with self.assertRaises(ConflictFailure):
            self.directory.update_user(grace.id, email="ada@example.com")

    def test_get_unknown_user(self) -> None:
        with self.assertRaises(NotFoundFailure):
            self.directory.get_user(404)

    def test_delete_user_removes_memberships_and_tokens_keeps_audit(self) -> None:
        user = add_user(self.db, "gone@example.com", "Password1", roles=("User", "Manager"))
        user_id = user.id
        self.db.add(
            RefreshToken(
                user_id=user_id,
                token_hash="0" * 64,
                expires_at=datetime.now(UTC) + timedelta(days=1),
            )
        )
        self.db.commit()
        recorder = AuditRecorder(self.factory)
        self.assertTrue(recorder.record("User", user_id, "Update", actor_id=user_id))

        self.directory.delete_user(user_id)

        check = self.factory()
        try:
            self.assertEqual(check.query(UserRole).filter(UserRole.user_id == user_id).count(), 0)
            self.assertEqual(
                check.query(RefreshToken).filter(RefreshToken.user_id == user_id).count(), 0
            )
            entry = check.query(AuditLog).one()
            self.assertIsNone(entry.actor_user_id)
            self.assertEqual(entry.entity_id, str(user_id))
        finally:
            check.close()


class TestRoles(DirectoryTestCase):
    def test_role_in_use_cannot_be_deleted(self) -> None:
        add_user(self.db, "a@example.com", "Password1", roles=("SalesStaff",))
        role = self._role("SalesStaff")
        with self.assertRaises(ConflictFailure) as ctx:
            self.directory.delete_role(role.id)
        self.assertEqual(ctx.exception.message, ROLE_IN_USE)
        self.assertIsNotNone(self.db.get(Role, role.id))

    def test_unused_role_can_be_deleted(self) -> None:
        role = self.directory.create_role("Auditor", "Reads the trail")
        self.directory.delete_role(role.id)
        self.assertIsNone(self.db.query(Role).filter(Role.name == "Auditor").first())

    def test_duplicate_role_name_is_a_conflict(self) -> None:
        with self.assertRaises(ConflictFailure):
            self.directory.create_role("Admin")

    def test_update_role(self) -> None:
        role = self.directory.create_role("Auditor")
        updated = self.directory.update_role(role.id, description="Reads the trail")
        self.assertEqual(updated.name, "Auditor")
        self.assertEqual(updated.description, "Reads the trail")


class TestMemberships(DirectoryTestCase):
    def test_assigning_held_role_is_a_conflict_without_duplicate(self) -> None:
        user = add_user(self.db, "a@example.com", "Password1", roles=("User",))
        role = self._role("User")
        with self.assertRaises(ConflictFailure) as ctx:
            self.directory.assign_role(user.id, role.id)
        self.assertEqual(ctx.exception.message, ROLE_ALREADY_ASSIGNED)
        self.assertEqual(
            self.db.query(UserRole).filter(UserRole.user_id == user.id).count(), 1
        )

    def test_assign_unknown_user_or_role(self) -> None:
        user = add_user(self.db, "a@example.com", "Password1")
        with self.assertRaises(NotFoundFailure):
            self.directory.assign_role(user.id, 9999)
        with self.assertRaises(NotFoundFailure):
            self.directory.assign_role(9999, self._role("User").id)

    def test_assign_and_remove(self) -> None:
        user = add_user(self.db, "a@example.com", "Password1", full_name="Ada")
        role = self._role("Manager")
        membership = self.directory.assign_role(user.id, role.id)
        self.assertEqual(membership.role.name, "Manager")

        self.assertEqual(self.directory.remove_role(user.id, role.id), ("Ada", "Manager"))
        with self.assertRaises(NotFoundFailure):
            self.directory.remove_role(user.id, role.id)

    def test_stats(self) -> None:
        add_user(self.db, "a@example.com", "Password1", roles=("Admin",))
        add_user(self.db, "b@example.com", "Password1", roles=("User",), is_active=False)
        stats = self.directory.stats()
        self.assertEqual(stats["total_users"], 2)
        self.assertEqual(stats["active_users"], 1)
        self.assertEqual(stats["inactive_users"], 1)
        self.assertEqual(stats["total_roles"], len(DEFAULT_ROLES))
        self.assertEqual(
            stats["users_by_role"], [{"role": "Admin", "count": 1}, {"role": "User", "count": 1}]
        )

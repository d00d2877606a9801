"""Unit tests for gatehouse.core.security: bcrypt hashing and verification."""

import unittest
from unittest.mock import patch

from gatehouse.core.security import BCRYPT_MAX_BYTES, PasswordHasher


class TestPasswordHasher(unittest.TestCase):
    def setUp(self) -> None:
        self.hasher = PasswordHasher(rounds=4)

    def test_hash_is_salted_and_not_plain(self) -> None:
        first = self.hasher.hash("Admin123!")
        second = self.hasher.hash("Admin123!")
        self.assertNotEqual(first, "Admin123!")
        self.assertNotEqual(first, second)
        self.assertTrue(first.startswith("$2"))

    def test_verify_matches_only_the_original_password(self) -> None:
        hashed = self.hasher.hash("Admin123!")
        self.assertTrue(self.hasher.verify("Admin123!", hashed))
        self.assertFalse(self.hasher.verify("admin123!", hashed))
        self.assertFalse(self.hasher.verify("", hashed))

    def test_malformed_or_missing_hash_never_matches(self) -> None:
        self.assertFalse(self.hasher.verify("Admin123!", "not-a-bcrypt-hash"))
        self.assertFalse(self.hasher.verify("Admin123!", ""))
        self.assertFalse(self.hasher.verify("Admin123!", None))

    def test_hash_from_other_cost_still_verifies(self) -> None:
        hashed = PasswordHasher(rounds=5).hash("secret-password")
        self.assertTrue(self.hasher.verify("secret-password", hashed))

    def test_only_first_72_bytes_are_significant(self) -> None:
        prefix = "a" * BCRYPT_MAX_BYTES
        hashed = self.hasher.hash(prefix + "tail-one")
        self.assertTrue(self.hasher.verify(prefix + "tail-two", hashed))

    def test_burn_does_not_hash_on_first_use(self) -> None:
        with patch.object(self.hasher, "hash") as hash_mock:
            self.hasher.burn("first-unknown-login")
        hash_mock.assert_not_called()

    def test_burn_never_raises(self) -> None:
        self.hasher.burn("whatever")
        self.hasher.burn("")

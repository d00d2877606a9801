"""Password hashing (bcrypt) and the input limits shared by auth schemas."""

import bcrypt

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

# Min/max lengths for email, full name and password validation.
EMAIL_MAX_LEN = 255
FULL_NAME_MAX_LEN = 100
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128


def _encode(plain_password: str) -> bytes:
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """
    One-way salted password hashing. The salt and cost are embedded in the output,
    so verify() needs only the stored string.
    """

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        # Hashed at the configured cost, so burn() matches a real verify.
        self._dummy_hash = self.hash("gatehouse-timing-dummy")

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        return bcrypt.hashpw(_encode(plain_password), bcrypt.gensalt(rounds=self.rounds)).decode(
            "utf-8"
        )

    def verify(self, plain_password: str, hashed: str | None) -> bool:
        """Verify a plain password against a stored hash. Malformed hashes never match."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(_encode(plain_password), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def burn(self, plain_password: str) -> None:
        """
        Run a verification that cannot succeed, at the same cost as a real one.

        Called when the email is unknown so response time does not reveal whether
        an account exists.
        """
        self.verify(plain_password, self._dummy_hash)

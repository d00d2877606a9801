"""Credential store: read-only identity and role lookups used by login and refresh."""

from sqlalchemy.orm import Session

from gatehouse.models import Role, User, UserRole


class CredentialStore:
    """Identity lookups over a SQLAlchemy session. No writes."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_active_by_email(self, email: str) -> User | None:
        """Active user with exactly this email (case-sensitive), or None."""
        return (
            self.db.query(User)
            .filter(User.email == email, User.is_active.is_(True))
            .first()
        )

    def find_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def find_active_by_id(self, user_id: int) -> User | None:
        user = self.find_by_id(user_id)
        if user is None or not user.is_active:
            return None
        return user

    def role_names(self, user_id: int) -> list[str]:
        """Current role set of the user, read through the membership join."""
        rows = (
            self.db.query(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .filter(UserRole.user_id == user_id)
            .order_by(Role.name)
            .all()
        )
        return [name for (name,) in rows]

"""Identity, role and membership administration.

Thin store-backed operations used by the admin, profile and registration
handlers. Uniqueness is enforced by the database (unique indexes and the
membership primary key); the explicit checks here only produce a friendlier
conflict message, and IntegrityError from a concurrent writer is translated
into the same ConflictFailure.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gatehouse.core.errors import ConflictFailure, NotFoundFailure
from gatehouse.core.security import PasswordHasher
from gatehouse.models import AuditLog, Role, User, UserRole

logger = logging.getLogger(__name__)

EMAIL_EXISTS = "Email already exists"
ROLE_NAME_EXISTS = "Role name already exists"
ROLE_IN_USE = "Cannot delete role that is assigned to users"
ROLE_ALREADY_ASSIGNED = "User already has this role"


class DirectoryService:
    """Store operations on users, roles and memberships. Each mutation commits."""

    def __init__(self, db: Session, hasher: PasswordHasher) -> None:
        self.db = db
        self.hasher = hasher

    # -- users ---------------------------------------------------------------

    def list_users(self) -> list[User]:
        return self.db.query(User).order_by(User.id).all()

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundFailure("User not found")
        return user

    def _email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        query = self.db.query(User.id).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def create_user(
        self,
        full_name: str,
        email: str,
        password: str,
        is_active: bool = True,
        role_names: list[str] | None = None,
    ) -> User:
        """Create a user, optionally with memberships in existing roles (by name)."""
        if self._email_taken(email):
            raise ConflictFailure(EMAIL_EXISTS)
        user = User(
            full_name=full_name,
            email=email,
            password_hash=self.hasher.hash(password),
            is_active=is_active,
        )
        self.db.add(user)
        for name in role_names or []:
            role = self.db.query(Role).filter(Role.name == name).first()
            if role is None:
                self.db.rollback()
                raise NotFoundFailure(f"Role '{name}' not found")
            user.memberships.append(UserRole(role=role))
        self._commit(EMAIL_EXISTS)
        self.db.refresh(user)
        logger.info("Created user_id=%s roles=%s", user.id, user.role_names)
        return user

    def register(self, full_name: str, email: str, password: str, default_role: str) -> User:
        """Self-registration: active account, default role when that role exists."""
        has_default = self.db.query(Role.id).filter(Role.name == default_role).first()
        if has_default is None:
            logger.warning("Default role %r does not exist; registering without a role", default_role)
        return self.create_user(
            full_name,
            email,
            password,
            is_active=True,
            role_names=[default_role] if has_default else [],
        )

    def update_user(
        self,
        user_id: int,
        full_name: str | None = None,
        email: str | None = None,
        password: str | None = None,
        is_active: bool | None = None,
    ) -> User:
        """Apply the given fields; None means unchanged. Bumps updated_at."""
        user = self.get_user(user_id)
        if full_name:
            user.full_name = full_name
        if email:
            if self._email_taken(email, exclude_id=user_id):
                raise ConflictFailure(EMAIL_EXISTS)
            user.email = email
        if password:
            user.password_hash = self.hasher.hash(password)
        if is_active is not None:
            user.is_active = is_active
        user.updated_at = datetime.now(UTC)
        self._commit(EMAIL_EXISTS)
        self.db.refresh(user)
        return user

    def deactivate_user(self, user_id: int) -> User:
        return self.update_user(user_id, is_active=False)

    def delete_user(self, user_id: int) -> None:
        """Delete the user and its memberships/refresh tokens. Audit rows keep a NULL actor."""
        user = self.get_user(user_id)
        self.db.delete(user)
        self.db.commit()
        logger.info("Deleted user_id=%s", user_id)

    # -- roles ---------------------------------------------------------------

    def list_roles(self) -> list[Role]:
        return self.db.query(Role).order_by(Role.id).all()

    def get_role(self, role_id: int) -> Role:
        role = self.db.get(Role, role_id)
        if role is None:
            raise NotFoundFailure("Role not found")
        return role

    def _role_name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        query = self.db.query(Role.id).filter(Role.name == name)
        if exclude_id is not None:
            query = query.filter(Role.id != exclude_id)
        return query.first() is not None

    def create_role(self, name: str, description: str | None = None) -> Role:
        if self._role_name_taken(name):
            raise ConflictFailure(ROLE_NAME_EXISTS)
        role = Role(name=name, description=description)
        self.db.add(role)
        self._commit(ROLE_NAME_EXISTS)
        self.db.refresh(role)
        return role

    def update_role(
        self,
        role_id: int,
        name: str | None = None,
        description: str | None = None,
    ) -> Role:
        role = self.get_role(role_id)
        if name:
            if self._role_name_taken(name, exclude_id=role_id):
                raise ConflictFailure(ROLE_NAME_EXISTS)
            role.name = name
        if description is not None:
            role.description = description
        self._commit(ROLE_NAME_EXISTS)
        self.db.refresh(role)
        return role

    def membership_count(self, role_id: int) -> int:
        return (
            self.db.query(func.count())
            .select_from(UserRole)
            .filter(UserRole.role_id == role_id)
            .scalar()
        )

    def delete_role(self, role_id: int) -> None:
        """Delete a role that nobody holds; a held role is a conflict."""
        role = self.get_role(role_id)
        if self.membership_count(role_id) > 0:
            raise ConflictFailure(ROLE_IN_USE)
        self.db.delete(role)
        self._commit(ROLE_IN_USE)
        logger.info("Deleted role_id=%s", role_id)

    # -- memberships ---------------------------------------------------------

    def get_membership(self, user_id: int, role_id: int) -> UserRole | None:
        return self.db.get(UserRole, (user_id, role_id))

    def assign_role(self, user_id: int, role_id: int) -> UserRole:
        """Give the user the role. Holding it already is a conflict; no second row is written."""
        self.get_user(user_id)
        self.get_role(role_id)
        if self.get_membership(user_id, role_id) is not None:
            raise ConflictFailure(ROLE_ALREADY_ASSIGNED)
        membership = UserRole(user_id=user_id, role_id=role_id)
        self.db.add(membership)
        self._commit(ROLE_ALREADY_ASSIGNED)
        self.db.refresh(membership)
        logger.info("Assigned role_id=%s to user_id=%s", role_id, user_id)
        return membership

    def remove_role(self, user_id: int, role_id: int) -> tuple[str, str]:
        """Remove a membership; returns (user full name, role name) for the audit trail."""
        membership = self.get_membership(user_id, role_id)
        if membership is None:
            raise NotFoundFailure("User role not found")
        names = (membership.user.full_name, membership.role.name)
        self.db.delete(membership)
        self.db.commit()
        logger.info("Removed role_id=%s from user_id=%s", role_id, user_id)
        return names

    # -- statistics ----------------------------------------------------------

    def stats(self) -> dict:
        total_users = self.db.query(func.count(User.id)).scalar()
        active_users = (
            self.db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar()
        )
        users_by_role = (
            self.db.query(Role.name, func.count(UserRole.user_id))
            .join(UserRole, UserRole.role_id == Role.id)
            .group_by(Role.name)
            .order_by(Role.name)
            .all()
        )
        return {
            "total_users": total_users,
            "active_users": active_users,
            "inactive_users": total_users - active_users,
            "total_roles": self.db.query(func.count(Role.id)).scalar(),
            "total_audit_logs": self.db.query(func.count(AuditLog.id)).scalar(),
            "users_by_role": [{"role": name, "count": count} for name, count in users_by_role],
        }

    def _commit(self, conflict_message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Store rejected write: %s", e.orig)
            raise ConflictFailure(conflict_message) from e

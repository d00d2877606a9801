"""ORM models for roles and role memberships."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from gatehouse.models.base import Base


class Role(Base):
    """Named permission bucket. Cannot be deleted while any membership references it."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(String(200), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    memberships = relationship("UserRole", back_populates="role", passive_deletes="all")


class UserRole(Base):
    """
    Membership of one user in one role.

    (user_id, role_id) is the primary key, so a user holds a role at most once.
    Cascades from the user side; restricts on the role side.
    """

    __tablename__ = "user_roles"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role_id = Column(
        Integer,
        ForeignKey("roles.id", ondelete="RESTRICT"),
        primary_key=True,
        index=True,
    )
    assigned_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user = relationship("User", back_populates="memberships")
    role = relationship("Role", back_populates="memberships", lazy="joined")

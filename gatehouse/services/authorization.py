"""Role-based authorization: does the identity's role set meet an operation's requirement?"""

from collections.abc import Iterable
from dataclasses import dataclass

from gatehouse.services.tokens import IdentityContext

INSUFFICIENT_ROLE = "Insufficient role"


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Deny:
    """Authorization refused. reason names the failed requirement, not the missing role."""

    reason: str


def authorize(identity: IdentityContext | None, required_roles: Iterable[str]) -> Allow | Deny:
    """
    Allow when required_roles is empty and there is an identity, or when the
    identity holds at least one of required_roles. Stateless.
    """
    if identity is None:
        return Deny("Not authenticated")
    required = frozenset(required_roles)
    if not required:
        return Allow()
    if identity.roles & required:
        return Allow()
    return Deny(INSUFFICIENT_ROLE)

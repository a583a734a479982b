"""
Back-office access rules.

Super and normal admins see every client. Middle admins see only the
clients of the countries assigned to them. These rules are pure and
are applied by the back-office use cases before any data leaves the
application layer.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from portal.domain.brokerage.entities import AdminRole, AdminUser, CountryAssignment, User
from portal.domain.brokerage.errors import (
    AuthenticationRequiredError,
    EntityNotFoundError,
    PermissionDeniedError,
)


@dataclass(frozen=True)
class AdminScope:
    """The set of clients an admin is allowed to see.

    Attributes:
        admin: The acting admin.
        countries: Visible client countries, or None for every client.
    """

    admin: AdminUser
    countries: Optional[frozenset[str]] = None

    @property
    def is_restricted(self) -> bool:
        return self.countries is not None

    def covers(self, user: User) -> bool:
        """Return True if ``user`` is visible within this scope."""
        if self.countries is None:
            return True
        return user.country is not None and user.country in self.countries

    def ensure_covers(self, user: Optional[User], user_id: str) -> User:
        """Return ``user`` if visible, else raise a not-found error.

        Clients outside the scope are reported as missing so that a
        middle admin cannot discover whether they exist.
        """
        if user is None or not self.covers(user):
            raise EntityNotFoundError("User", user_id)
        return user


def scope_for(admin: AdminUser, assignments: Iterable[CountryAssignment]) -> AdminScope:
    """Build the visibility scope of an admin from its country assignments."""
    if admin.role is AdminRole.MIDDLE_ADMIN:
        return AdminScope(admin=admin, countries=frozenset(a.country for a in assignments))
    return AdminScope(admin=admin)


def ensure_active_admin(admin: Optional[AdminUser]) -> AdminUser:
    """Reject missing and disabled admins.

    Raises:
        AuthenticationRequiredError: If there is no usable admin.
    """
    if admin is None or not admin.enabled:
        raise AuthenticationRequiredError("admin")
    return admin


def require_super_admin(admin: AdminUser) -> None:
    """Raises PermissionDeniedError unless ``admin`` is a super admin."""
    if not admin.is_super:
        raise PermissionDeniedError(AdminRole.SUPER_ADMIN.value)

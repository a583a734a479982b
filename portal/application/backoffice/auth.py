"""
Use cases: Admin sign-in, sign-out and session resolution.

Input: AdminSignInCommand / admin id from the session
Output: AdminUser / AdminScope
Side effects: Sign-in and sign-out append to the activity log.
Failure cases:
    - InvalidCredentialsError for an unknown, disabled or wrong-password
      admin.
    - AuthenticationRequiredError when the session admin is missing or
      disabled.
"""

import logging
from typing import Optional

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import AdminContext, AdminSignInCommand
from portal.domain.brokerage.access import AdminScope, ensure_active_admin, scope_for
from portal.domain.brokerage.entities import AdminUser
from portal.domain.brokerage.errors import AuthenticationRequiredError, InvalidCredentialsError
from portal.domain.brokerage.ports import (
    AdminRepository,
    CountryAssignmentRepository,
    PasswordHasher,
)

logger = logging.getLogger(__name__)


class AdminSignInUseCase:
    def __init__(
        self,
        admin_repo: AdminRepository,
        hasher: PasswordHasher,
        recorder: ActivityRecorder,
    ) -> None:
        self._admin_repo = admin_repo
        self._hasher = hasher
        self._recorder = recorder

    def execute(self, command: AdminSignInCommand) -> AdminUser:
        admin = self._admin_repo.get_by_username(command.username.strip())
        if (
            admin is None
            or not admin.enabled
            or not self._hasher.verify(command.password, admin.password_hash)
        ):
            logger.warning("Failed admin sign-in for username=%s", command.username)
            raise InvalidCredentialsError("username")

        self._recorder.record(
            AdminContext(scope=AdminScope(admin=admin), ip_address=command.ip_address),
            ActivityAction.SIGNIN,
            "admin",
            admin.id,
            "Admin signed in",
        )
        logger.info("Admin signed in: %s (%s)", admin.username, admin.role.value)
        return admin


class AdminSignOutUseCase:
    def __init__(self, recorder: ActivityRecorder) -> None:
        self._recorder = recorder

    def execute(self, context: AdminContext) -> None:
        self._recorder.record(
            context, ActivityAction.LOGOUT, "admin", context.admin.id, "Admin signed out"
        )


class ResolveAdminScopeUseCase:
    """Loads the session admin and its visibility scope."""

    def __init__(
        self,
        admin_repo: AdminRepository,
        assignment_repo: CountryAssignmentRepository,
    ) -> None:
        self._admin_repo = admin_repo
        self._assignment_repo = assignment_repo

    def execute(self, admin_id: Optional[str]) -> AdminScope:
        if not admin_id:
            raise AuthenticationRequiredError("admin")
        admin = ensure_active_admin(self._admin_repo.get(admin_id))
        return scope_for(admin, self._assignment_repo.list_for_admin(admin.id))

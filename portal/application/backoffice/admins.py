"""
Use cases: Back-office operator management and country assignments.

Input: CreateAdminCommand / UpdateAdminCommand / CountryAssignmentCommand
Output: AdminUser / list[AdminUser] / list[CountryAssignment]
Side effects: Writes admin_users and admin_country_assignments rows and
    appends to the activity log.
Failure cases:
    - PermissionDeniedError unless the acting admin is a super admin
      (except for reading one's own assignments).
    - DuplicateAdminError for a taken username or email.
    - ValidationError for blank fields, a short password, or assigning a
      country to an admin that is not a middle admin.
    - EntityNotFoundError for an unknown admin or assignment.
"""

import logging
from dataclasses import replace

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import (
    AdminContext,
    CountryAssignmentCommand,
    CreateAdminCommand,
    UpdateAdminCommand,
)
from portal.domain.brokerage.access import require_super_admin
from portal.domain.brokerage.credentials import MIN_PASSWORD_LENGTH, normalize_email
from portal.domain.brokerage.entities import (
    AdminRole,
    AdminUser,
    CountryAssignment,
    new_id,
    utcnow,
)
from portal.domain.brokerage.errors import (
    DuplicateAdminError,
    EntityNotFoundError,
    ValidationError,
)
from portal.domain.brokerage.ports import (
    AdminRepository,
    CountryAssignmentRepository,
    PasswordHasher,
)

logger = logging.getLogger(__name__)


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _require_admin(admin_repo: AdminRepository, admin_id: str) -> AdminUser:
    admin = admin_repo.get(admin_id)
    if admin is None:
        raise EntityNotFoundError("Admin", admin_id)
    return admin


class CreateAdminUseCase:
    def __init__(
        self,
        admin_repo: AdminRepository,
        hasher: PasswordHasher,
        recorder: ActivityRecorder,
    ) -> None:
        self._admin_repo = admin_repo
        self._hasher = hasher
        self._recorder = recorder

    def execute(self, command: CreateAdminCommand) -> AdminUser:
        require_super_admin(command.context.admin)
        username = command.username.strip()
        email = normalize_email(command.email)
        full_name = command.full_name.strip()
        if not username or not email or not full_name:
            raise ValidationError("Username, email and full name are required")
        _check_password(command.password)
        if self._admin_repo.get_by_username(username) is not None:
            raise DuplicateAdminError("username", username)
        if self._admin_repo.get_by_email(email) is not None:
            raise DuplicateAdminError("email", email)

        admin = AdminUser(
            id=new_id(),
            username=username,
            password_hash=self._hasher.hash(command.password),
            email=email,
            full_name=full_name,
            role=command.role,
            created_at=utcnow(),
            created_by=command.context.admin.id,
        )
        self._admin_repo.add(admin)
        self._recorder.record(
            command.context,
            ActivityAction.CREATE_ADMIN,
            "admin",
            admin.id,
            f"Created {admin.role.value} admin: {admin.username}",
        )
        logger.info("Admin created: %s (%s)", admin.username, admin.role.value)
        return admin


class ListAdminsUseCase:
    def __init__(self, admin_repo: AdminRepository) -> None:
        self._admin_repo = admin_repo

    def execute(self, context: AdminContext) -> list[AdminUser]:
        require_super_admin(context.admin)
        return self._admin_repo.list_all()


class UpdateAdminUseCase:
    """Edits an admin's profile, role, enabled flag or password."""

    def __init__(
        self,
        admin_repo: AdminRepository,
        hasher: PasswordHasher,
        recorder: ActivityRecorder,
    ) -> None:
        self._admin_repo = admin_repo
        self._hasher = hasher
        self._recorder = recorder

    def execute(self, command: UpdateAdminCommand) -> AdminUser:
        require_super_admin(command.context.admin)
        admin = _require_admin(self._admin_repo, command.admin_id)

        changes: dict = {}
        if command.full_name is not None:
            if not command.full_name.strip():
                raise ValidationError("Full name must not be blank")
            changes["full_name"] = command.full_name.strip()
        if command.email is not None:
            email = normalize_email(command.email)
            other = self._admin_repo.get_by_email(email)
            if other is not None and other.id != admin.id:
                raise DuplicateAdminError("email", email)
            changes["email"] = email
        if command.role is not None:
            changes["role"] = command.role
        if command.enabled is not None:
            changes["enabled"] = command.enabled
        if command.password:
            _check_password(command.password)
            changes["password_hash"] = self._hasher.hash(command.password)

        updated = replace(admin, **changes)
        self._admin_repo.update(updated)
        self._recorder.record(
            command.context,
            ActivityAction.UPDATE_ADMIN,
            "admin",
            admin.id,
            f"Updated admin: {admin.username}",
        )
        logger.info("Admin %s updated: %s", admin.username, sorted(changes))
        return updated


class AssignCountryUseCase:
    """Grants a middle admin visibility over one more country.

    Assigning a country twice is accepted and changes nothing.
    """

    def __init__(
        self,
        admin_repo: AdminRepository,
        assignment_repo: CountryAssignmentRepository,
        recorder: ActivityRecorder,
    ) -> None:
        self._admin_repo = admin_repo
        self._assignment_repo = assignment_repo
        self._recorder = recorder

    def execute(self, command: CountryAssignmentCommand) -> list[CountryAssignment]:
        require_super_admin(command.context.admin)
        target = _require_admin(self._admin_repo, command.admin_id)
        if target.role is not AdminRole.MIDDLE_ADMIN:
            raise ValidationError("Countries can only be assigned to middle admins")
        country = command.country.strip()
        if not country:
            raise ValidationError("Country is required")

        created = self._assignment_repo.add(
            CountryAssignment(
                id=new_id(), admin_id=target.id, country=country, created_at=utcnow()
            )
        )
        if created:
            self._recorder.record(
                command.context,
                ActivityAction.ASSIGN_COUNTRY,
                "admin",
                target.id,
                f"Assigned country {country} to {target.username}",
            )
        return self._assignment_repo.list_for_admin(target.id)


class RemoveCountryUseCase:
    def __init__(
        self,
        assignment_repo: CountryAssignmentRepository,
        recorder: ActivityRecorder,
    ) -> None:
        self._assignment_repo = assignment_repo
        self._recorder = recorder

    def execute(self, command: CountryAssignmentCommand) -> None:
        require_super_admin(command.context.admin)
        if not self._assignment_repo.remove(command.admin_id, command.country):
            raise EntityNotFoundError(
                "CountryAssignment", f"{command.admin_id}/{command.country}"
            )
        self._recorder.record(
            command.context,
            ActivityAction.REMOVE_COUNTRY,
            "admin",
            command.admin_id,
            f"Removed country {command.country} from admin",
        )


class ListCountryAssignmentsUseCase:
    """Every assignment (super admin) or the caller's own (any admin)."""

    def __init__(self, assignment_repo: CountryAssignmentRepository) -> None:
        self._assignment_repo = assignment_repo

    def execute(self, context: AdminContext, own_only: bool = False) -> list[CountryAssignment]:
        if own_only:
            return self._assignment_repo.list_for_admin(context.admin.id)
        require_super_admin(context.admin)
        return self._assignment_repo.list_all()

"""
Use case: Update the client's own profile.

Input: UpdateProfileCommand
Output: User (updated)
Side effects: Updates the users row.
Failure cases: EntityNotFoundError if the client no longer exists.

Only contact and address fields are editable here. Credentials, email,
verification and referral fields are changed elsewhere or not at all.
"""

import logging
from dataclasses import replace

from portal.application.brokerage.dtos import UpdateProfileCommand
from portal.application.brokerage.lookups import require_user
from portal.domain.brokerage.entities import User
from portal.domain.brokerage.ports import UserRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("full_name", "phone", "country", "city", "address", "zip_code")


class UpdateProfileUseCase:
    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def execute(self, command: UpdateProfileCommand) -> User:
        user = require_user(self._user_repo, command.user_id)
        changes = {
            name: getattr(command, name)
            for name in EDITABLE_FIELDS
            if getattr(command, name) is not None
        }
        if not changes:
            return user
        updated = replace(user, **changes)
        self._user_repo.update(updated)
        logger.info("Profile updated: id=%s fields=%s", user.id, sorted(changes))
        return updated

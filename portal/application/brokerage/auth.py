"""
Use cases: Client registration, sign-in and session identity.

Input: SignUpCommand / SignInCommand / user id
Output: User
Side effects: Sign-up inserts a user row.
Failure cases:
    - EmailAlreadyRegisteredError when the email is taken.
    - ValidationError for a short password or unknown referral code.
    - InvalidCredentialsError on any failed sign-in.
    - AuthenticationRequiredError / EntityNotFoundError for a stale session.
"""

import logging
from typing import Optional

from portal.application.brokerage.dtos import SignInCommand, SignUpCommand
from portal.domain.brokerage.credentials import (
    MIN_PASSWORD_LENGTH,
    normalize_email,
    referral_id_candidate,
    username_candidate,
)
from portal.domain.brokerage.entities import ReferralStatus, User, new_id, utcnow
from portal.domain.brokerage.errors import (
    AuthenticationRequiredError,
    EmailAlreadyRegisteredError,
    EntityNotFoundError,
    InvalidCredentialsError,
    ValidationError,
)
from portal.domain.brokerage.ports import PasswordHasher, UserRepository

logger = logging.getLogger(__name__)

MAX_IDENTIFIER_ATTEMPTS = 20


class SignUpUseCase:
    """Registers a new client.

    The username is derived from the email local part plus a random
    number and the referral id is a random 8-character code; both are
    retried until unused.
    """

    def __init__(self, user_repo: UserRepository, hasher: PasswordHasher) -> None:
        self._user_repo = user_repo
        self._hasher = hasher

    def execute(self, command: SignUpCommand) -> User:
        email = normalize_email(command.email)
        if len(command.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if self._user_repo.get_by_email(email) is not None:
            raise EmailAlreadyRegisteredError(email)

        referred_by = None
        if command.referral_code:
            referrer = self._user_repo.get_by_referral_id(command.referral_code.strip().upper())
            if referrer is None:
                raise ValidationError(f"Unknown referral code: {command.referral_code}")
            referred_by = referrer.id

        user = User(
            id=new_id(),
            username=self._unique(lambda: username_candidate(email), self._user_repo.get_by_username),
            password_hash=self._hasher.hash(command.password),
            email=email,
            full_name=command.full_name,
            referral_id=self._unique(referral_id_candidate, self._user_repo.get_by_referral_id),
            referred_by=referred_by,
            referral_status=ReferralStatus.PENDING,
            created_at=utcnow(),
        )
        self._user_repo.add(user)
        logger.info("Client registered: id=%s referred=%s", user.id, user.is_referred)
        return user

    @staticmethod
    def _unique(generate, lookup) -> str:
        for _ in range(MAX_IDENTIFIER_ATTEMPTS):
            candidate = generate()
            if lookup(candidate) is None:
                return candidate
        raise ValidationError("Could not allocate a unique identifier, try again")


class SignInUseCase:
    """Checks client credentials. Disabled clients cannot sign in."""

    def __init__(self, user_repo: UserRepository, hasher: PasswordHasher) -> None:
        self._user_repo = user_repo
        self._hasher = hasher

    def execute(self, command: SignInCommand) -> User:
        user = self._user_repo.get_by_email(normalize_email(command.email))
        if (
            user is None
            or not user.enabled
            or not self._hasher.verify(command.password, user.password_hash)
        ):
            logger.warning("Failed client sign-in")
            raise InvalidCredentialsError("email")
        logger.info("Client signed in: id=%s", user.id)
        return user


class GetCurrentUserUseCase:
    """Resolves the client of the current session."""

    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def execute(self, user_id: Optional[str]) -> User:
        if not user_id:
            raise AuthenticationRequiredError("client")
        user = self._user_repo.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user

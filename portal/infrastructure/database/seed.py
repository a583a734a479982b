"""
Initial data for a fresh database.

Creates a verified demo client when there are no clients and the three
default back-office operators when there are no admins. Existing data
is never modified, so seeding is safe to run on every start-up.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.engine import Engine

from portal.domain.brokerage.credentials import (
    MIN_PASSWORD_LENGTH,
    normalize_email,
    referral_id_candidate,
)
from portal.domain.brokerage.entities import AdminRole, AdminUser, User, new_id
from portal.domain.brokerage.errors import DuplicateAdminError, ValidationError
from portal.domain.brokerage.ports import PasswordHasher
from portal.infrastructure.brokerage.admin_repository import AdminRepositoryAdapter
from portal.infrastructure.brokerage.client_repository import UserRepositoryAdapter

logger = logging.getLogger(__name__)

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "demo123"
DEMO_EMAIL = "demo@mekness.com"

DEFAULT_ADMINS = (
    ("superadmin", "Admin@12345", "superadmin@mekness.com", "Super Administrator", AdminRole.SUPER_ADMIN),
    ("middleadmin", "Middle@12345", "middleadmin@mekness.com", "Middle Administrator", AdminRole.MIDDLE_ADMIN),
    ("normaladmin", "Normal@12345", "normaladmin@mekness.com", "Normal Administrator", AdminRole.NORMAL_ADMIN),
)


@dataclass
class SeedReport:
    """Usernames created by a seeding run."""

    users: list[str] = field(default_factory=list)
    admins: list[str] = field(default_factory=list)


def seed_database(engine: Engine, hasher: PasswordHasher) -> SeedReport:
    """Insert the demo client and default admins into empty tables.

    Args:
        engine: Engine bound to a bootstrapped database.
        hasher: Password hasher for the seeded credentials.

    Returns:
        What was created; empty when the tables were already populated.
    """
    report = SeedReport()
    user_repo = UserRepositoryAdapter(engine)
    admin_repo = AdminRepositoryAdapter(engine)

    if user_repo.count() == 0:
        user_repo.add(
            User(
                id=new_id(),
                username=DEMO_USERNAME,
                password_hash=hasher.hash(DEMO_PASSWORD),
                email=DEMO_EMAIL,
                full_name="Demo User",
                phone="+1234567890",
                country="United States",
                city="New York",
                address="123 Trading Street",
                zip_code="10001",
                referral_id=referral_id_candidate(),
                verified=True,
            )
        )
        report.users.append(DEMO_USERNAME)

    if admin_repo.count() == 0:
        for username, password, email, full_name, role in DEFAULT_ADMINS:
            admin_repo.add(
                AdminUser(
                    id=new_id(),
                    username=username,
                    password_hash=hasher.hash(password),
                    email=email,
                    full_name=full_name,
                    role=role,
                )
            )
            report.admins.append(username)

    if report.users or report.admins:
        logger.info("Seeded users=%s admins=%s", report.users, report.admins)
    else:
        logger.info("Seed skipped: users and admins already present")
    return report


def provision_admin(
    engine: Engine,
    hasher: PasswordHasher,
    username: str,
    email: str,
    full_name: str,
    role: AdminRole,
    password: str,
) -> AdminUser:
    """Create a back-office operator outside of any admin session.

    Raises:
        ValidationError: If a field is blank or the password is too short.
        DuplicateAdminError: If the username or email is taken.
    """
    username = username.strip()
    email = normalize_email(email)
    full_name = full_name.strip()
    if not username or not email or not full_name:
        raise ValidationError("Username, email and full name are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    admin_repo = AdminRepositoryAdapter(engine)
    if admin_repo.get_by_username(username) is not None:
        raise DuplicateAdminError("username", username)
    if admin_repo.get_by_email(email) is not None:
        raise DuplicateAdminError("email", email)

    admin = AdminUser(
        id=new_id(),
        username=username,
        password_hash=hasher.hash(password),
        email=email,
        full_name=full_name,
        role=role,
    )
    admin_repo.add(admin)
    logger.info("Provisioned %s admin %s", role.value, username)
    return admin

"""
Adapters: Back-office operators, their country assignments and the
activity log.

The activity log is append-only; this module exposes no way to
change or delete an entry.
"""

from typing import Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Engine

from portal.domain.brokerage.entities import ActivityLog, AdminUser, CountryAssignment
from portal.domain.brokerage.ports import (
    ActivityLogRepository,
    AdminRepository,
    CountryAssignmentRepository,
)
from portal.infrastructure.brokerage.mappers import (
    admin_to_values,
    row_to_activity,
    row_to_admin,
    row_to_assignment,
)
from portal.infrastructure.database.schema import (
    activity_logs,
    admin_country_assignments,
    admin_users,
)


class AdminRepositoryAdapter(AdminRepository):
    """SQL implementation of AdminRepository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _one(self, condition) -> Optional[AdminUser]:
        with self._engine.connect() as conn:
            row = conn.execute(select(admin_users).where(condition)).first()
        return row_to_admin(row) if row else None

    def get(self, admin_id: str) -> Optional[AdminUser]:
        return self._one(admin_users.c.id == admin_id)

    def get_by_username(self, username: str) -> Optional[AdminUser]:
        return self._one(admin_users.c.username == username)

    def get_by_email(self, email: str) -> Optional[AdminUser]:
        return self._one(func.lower(admin_users.c.email) == email.lower())

    def add(self, admin: AdminUser) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(admin_users).values(**admin_to_values(admin)))

    def update(self, admin: AdminUser) -> None:
        values = admin_to_values(admin)
        for immutable in ("id", "username", "created_at", "created_by"):
            del values[immutable]
        with self._engine.begin() as conn:
            conn.execute(
                update(admin_users).where(admin_users.c.id == admin.id).values(**values)
            )

    def list_all(self) -> list[AdminUser]:
        stmt = select(admin_users).order_by(admin_users.c.created_at.desc())
        with self._engine.connect() as conn:
            return [row_to_admin(row) for row in conn.execute(stmt)]

    def count(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(admin_users)).scalar_one()


class CountryAssignmentRepositoryAdapter(CountryAssignmentRepository):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list_for_admin(self, admin_id: str) -> list[CountryAssignment]:
        stmt = (
            select(admin_country_assignments)
            .where(admin_country_assignments.c.admin_id == admin_id)
            .order_by(admin_country_assignments.c.country)
        )
        with self._engine.connect() as conn:
            return [row_to_assignment(row) for row in conn.execute(stmt)]

    def list_all(self) -> list[CountryAssignment]:
        stmt = select(admin_country_assignments).order_by(
            admin_country_assignments.c.admin_id, admin_country_assignments.c.country
        )
        with self._engine.connect() as conn:
            return [row_to_assignment(row) for row in conn.execute(stmt)]

    def add(self, assignment: CountryAssignment) -> bool:
        table = admin_country_assignments
        with self._engine.begin() as conn:
            existing = conn.execute(
                select(table.c.id).where(
                    table.c.admin_id == assignment.admin_id,
                    table.c.country == assignment.country,
                )
            ).first()
            if existing:
                return False
            conn.execute(
                insert(table).values(
                    id=assignment.id,
                    admin_id=assignment.admin_id,
                    country=assignment.country,
                    created_at=assignment.created_at,
                )
            )
        return True

    def remove(self, admin_id: str, country: str) -> bool:
        table = admin_country_assignments
        with self._engine.begin() as conn:
            result = conn.execute(
                delete(table).where(table.c.admin_id == admin_id, table.c.country == country)
            )
        return result.rowcount > 0


class ActivityLogRepositoryAdapter(ActivityLogRepository):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def add(self, entry: ActivityLog) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                insert(activity_logs).values(
                    id=entry.id,
                    admin_id=entry.admin_id,
                    user_id=entry.user_id,
                    action=entry.action,
                    entity=entry.entity,
                    entity_id=entry.entity_id,
                    details=entry.details,
                    ip_address=entry.ip_address,
                    created_at=entry.created_at,
                )
            )

    def list_recent(self, admin_id: Optional[str] = None, limit: int = 200) -> list[ActivityLog]:
        stmt = select(activity_logs).order_by(activity_logs.c.created_at.desc()).limit(limit)
        if admin_id is not None:
            stmt = stmt.where(activity_logs.c.admin_id == admin_id)
        with self._engine.connect() as conn:
            return [row_to_activity(row) for row in conn.execute(stmt)]

"""
Adapter: Client repository.

Reads and writes the users table.
"""

from collections.abc import Collection
from typing import Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.engine import Engine

from portal.domain.brokerage.entities import User
from portal.domain.brokerage.ports import UserRepository
from portal.infrastructure.brokerage.mappers import row_to_user, user_to_values
from portal.infrastructure.database.schema import users


class UserRepositoryAdapter(UserRepository):
    """SQL implementation of UserRepository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _one(self, condition) -> Optional[User]:
        with self._engine.connect() as conn:
            row = conn.execute(select(users).where(condition)).first()
        return row_to_user(row) if row else None

    def get(self, user_id: str) -> Optional[User]:
        return self._one(users.c.id == user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._one(func.lower(users.c.email) == email.lower())

    def get_by_username(self, username: str) -> Optional[User]:
        return self._one(users.c.username == username)

    def get_by_referral_id(self, referral_id: str) -> Optional[User]:
        return self._one(users.c.referral_id == referral_id)

    def add(self, user: User) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(users).values(**user_to_values(user)))

    def update(self, user: User) -> None:
        values = user_to_values(user)
        del values["id"], values["created_at"]
        with self._engine.begin() as conn:
            conn.execute(update(users).where(users.c.id == user.id).values(**values))

    def list_all(self, countries: Optional[Collection[str]] = None) -> list[User]:
        stmt = select(users).order_by(users.c.created_at.desc())
        if countries is not None:
            stmt = stmt.where(users.c.country.in_(list(countries)))
        with self._engine.connect() as conn:
            return [row_to_user(row) for row in conn.execute(stmt)]

    def list_referred(self, referrer_id: Optional[str] = None) -> list[User]:
        stmt = (
            select(users)
            .where(users.c.referred_by.is_not(None))
            .order_by(users.c.created_at.desc())
        )
        if referrer_id is not None:
            stmt = stmt.where(users.c.referred_by == referrer_id)
        with self._engine.connect() as conn:
            return [row_to_user(row) for row in conn.execute(stmt)]

    def count(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(users)).scalar_one()

"""
Adapter: In-app notification repository.
"""

from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine

from portal.domain.brokerage.entities import Notification
from portal.domain.brokerage.ports import NotificationRepository
from portal.infrastructure.brokerage.mappers import row_to_notification
from portal.infrastructure.database.schema import notifications


class NotificationRepositoryAdapter(NotificationRepository):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def add(self, notification: Notification) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                insert(notifications).values(
                    id=notification.id,
                    user_id=notification.user_id,
                    title=notification.title,
                    message=notification.message,
                    type=notification.type.value,
                    read=notification.read,
                    created_at=notification.created_at,
                )
            )

    def get(self, notification_id: str) -> Optional[Notification]:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(notifications).where(notifications.c.id == notification_id)
            ).first()
        return row_to_notification(row) if row else None

    def list_for_user(self, user_id: str) -> list[Notification]:
        stmt = (
            select(notifications)
            .where(notifications.c.user_id == user_id)
            .order_by(notifications.c.created_at.desc())
        )
        with self._engine.connect() as conn:
            return [row_to_notification(row) for row in conn.execute(stmt)]

    def mark_read(self, notification_id: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(notifications)
                .where(notifications.c.id == notification_id)
                .values(read=True)
            )

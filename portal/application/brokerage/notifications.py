"""
Use cases: In-app notifications.

Notifier is the outbound helper other use cases call to inform a
client. ListNotificationsUseCase and MarkNotificationReadUseCase serve
the client's notification list.
"""

import logging

from portal.domain.brokerage.entities import (
    Notification,
    NotificationType,
    new_id,
    utcnow,
)
from portal.domain.brokerage.errors import EntityNotFoundError
from portal.domain.brokerage.ports import NotificationRepository

logger = logging.getLogger(__name__)


class Notifier:
    """Creates notifications for clients."""

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> Notification:
        notification = Notification(
            id=new_id(),
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            created_at=utcnow(),
        )
        self._notification_repo.add(notification)
        logger.debug("Notification '%s' sent to user %s", title, user_id)
        return notification


class ListNotificationsUseCase:
    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    def execute(self, user_id: str) -> list[Notification]:
        return self._notification_repo.list_for_user(user_id)


class MarkNotificationReadUseCase:
    """Marks one of the caller's own notifications as read.

    Failure cases:
        EntityNotFoundError: Missing, or owned by another client.
    """

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    def execute(self, user_id: str, notification_id: str) -> None:
        notification = self._notification_repo.get(notification_id)
        if notification is None or notification.user_id != user_id:
            raise EntityNotFoundError("Notification", notification_id)
        self._notification_repo.mark_read(notification_id)

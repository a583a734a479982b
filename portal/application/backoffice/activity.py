"""
Audit trail writer for back-office actions.

A failure to write an entry is logged with its traceback and does not
undo or fail the action being audited.
"""

import logging
from typing import Optional

from portal.application.backoffice.dtos import AdminContext
from portal.domain.brokerage.entities import ActivityLog, new_id, utcnow
from portal.domain.brokerage.ports import ActivityLogRepository

logger = logging.getLogger(__name__)


class ActivityAction:
    """Action names stored in the activity log."""

    SIGNIN = "signin"
    LOGOUT = "logout"
    ENABLE_USER = "enable_user"
    DISABLE_USER = "disable_user"
    ADD_FUNDS = "ADD_FUNDS"
    REMOVE_FUNDS = "REMOVE_FUNDS"
    IMPERSONATE_USER = "IMPERSONATE_USER"
    STOP_IMPERSONATION = "STOP_IMPERSONATION"
    APPROVE_DOCUMENT = "approve_document"
    REJECT_DOCUMENT = "reject_document"
    CREATE_ADMIN = "create_admin"
    UPDATE_ADMIN = "update_admin"
    ASSIGN_COUNTRY = "assign_country"
    REMOVE_COUNTRY = "remove_country"
    ENABLE_TRADING_ACCOUNT = "enable_trading_account"
    DISABLE_TRADING_ACCOUNT = "disable_trading_account"
    APPROVE_DEPOSIT = "approve_deposit"
    REJECT_DEPOSIT = "reject_deposit"
    APPROVE_WITHDRAWAL = "approve_withdrawal"
    REJECT_WITHDRAWAL = "reject_withdrawal"
    APPROVE_TRANSFER = "approve_transfer"
    REJECT_TRANSFER = "reject_transfer"
    ACCEPT_REFERRAL = "accept_referral"
    REJECT_REFERRAL = "reject_referral"
    REPLY_TICKET = "reply_ticket"
    UPDATE_TICKET_STATUS = "update_ticket_status"


class ActivityRecorder:
    def __init__(self, activity_repo: ActivityLogRepository) -> None:
        self._activity_repo = activity_repo

    def record(
        self,
        context: AdminContext,
        action: str,
        entity: str,
        entity_id: Optional[str] = None,
        details: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Append an entry for an action performed by ``context.admin``."""
        entry = ActivityLog(
            id=new_id(),
            action=action,
            entity=entity,
            admin_id=context.admin.id,
            user_id=user_id,
            entity_id=entity_id,
            details=details,
            ip_address=context.ip_address,
            created_at=utcnow(),
        )
        try:
            self._activity_repo.add(entry)
        except Exception:
            logger.exception("Failed to record activity %s on %s %s", action, entity, entity_id)

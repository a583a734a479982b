"""
Use cases: Back-office handling of support tickets.

Input: AdminContext / AdminReplyCommand / SetTicketStatusCommand
Output: list[SupportTicket] / TicketDetail / TicketReply / SupportTicket
Side effects:
    - A reply on an Open ticket moves it to In Progress and assigns it
      to the replying admin.
    - Resolving or closing stamps resolved_at and notifies the client.
Failure cases: EntityNotFoundError for unknown tickets; ValidationError
    for blank replies or replies to resolved and closed tickets.
"""

import logging
from dataclasses import replace
from typing import Optional

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import (
    AdminContext,
    AdminReplyCommand,
    SetTicketStatusCommand,
)
from portal.application.brokerage.dtos import TicketDetail
from portal.application.brokerage.notifications import Notifier
from portal.domain.brokerage.entities import (
    NotificationType,
    SupportTicket,
    TicketReply,
    TicketStatus,
    new_id,
    utcnow,
)
from portal.domain.brokerage.errors import EntityNotFoundError, ValidationError
from portal.domain.brokerage.ports import SupportTicketRepository

logger = logging.getLogger(__name__)


def _require_ticket(ticket_repo: SupportTicketRepository, ticket_id: str) -> SupportTicket:
    ticket = ticket_repo.get(ticket_id)
    if ticket is None:
        raise EntityNotFoundError("SupportTicket", ticket_id)
    return ticket


class ListAllTicketsUseCase:
    def __init__(self, ticket_repo: SupportTicketRepository) -> None:
        self._ticket_repo = ticket_repo

    def execute(
        self, context: AdminContext, status: Optional[TicketStatus] = None
    ) -> list[SupportTicket]:
        return self._ticket_repo.list_all(status=status)


class GetAnyTicketUseCase:
    def __init__(self, ticket_repo: SupportTicketRepository) -> None:
        self._ticket_repo = ticket_repo

    def execute(self, context: AdminContext, ticket_id: str) -> TicketDetail:
        ticket = _require_ticket(self._ticket_repo, ticket_id)
        return TicketDetail(ticket=ticket, replies=tuple(self._ticket_repo.list_replies(ticket.id)))


class AdminReplyUseCase:
    def __init__(
        self,
        ticket_repo: SupportTicketRepository,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        self._ticket_repo = ticket_repo
        self._notifier = notifier
        self._recorder = recorder

    def execute(self, command: AdminReplyCommand) -> TicketReply:
        message = command.message.strip()
        if not message:
            raise ValidationError("Message must not be blank")
        ticket = _require_ticket(self._ticket_repo, command.ticket_id)
        if ticket.is_closed:
            raise ValidationError(f"Ticket is {ticket.status.value} and accepts no replies")

        now = utcnow()
        reply = TicketReply(
            id=new_id(),
            ticket_id=ticket.id,
            message=message,
            admin_id=command.context.admin.id,
            created_at=now,
        )
        self._ticket_repo.add_reply(reply)
        if ticket.status is TicketStatus.OPEN:
            ticket = replace(
                ticket, status=TicketStatus.IN_PROGRESS, admin_id=command.context.admin.id
            )
        self._ticket_repo.update(replace(ticket, updated_at=now))

        if ticket.user_id is not None:
            self._notifier.notify(
                ticket.user_id,
                "Support Reply",
                f"Support replied to your ticket: {ticket.subject}",
                NotificationType.INFO,
            )
        self._recorder.record(
            command.context,
            ActivityAction.REPLY_TICKET,
            "support_ticket",
            ticket.id,
            f"Replied to ticket: {ticket.subject}",
            user_id=ticket.user_id,
        )
        return reply


class SetTicketStatusUseCase:
    def __init__(
        self,
        ticket_repo: SupportTicketRepository,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        self._ticket_repo = ticket_repo
        self._notifier = notifier
        self._recorder = recorder

    def execute(self, command: SetTicketStatusCommand) -> SupportTicket:
        ticket = _require_ticket(self._ticket_repo, command.ticket_id)
        now = utcnow()
        closing = command.status in (TicketStatus.RESOLVED, TicketStatus.CLOSED)
        updated = replace(
            ticket,
            status=command.status,
            admin_id=ticket.admin_id or command.context.admin.id,
            updated_at=now,
            resolved_at=now if closing else None,
        )
        self._ticket_repo.update(updated)

        if ticket.user_id is not None:
            self._notifier.notify(
                ticket.user_id,
                "Ticket Updated",
                f"Your ticket '{ticket.subject}' is now {command.status.value}.",
                NotificationType.SUCCESS if closing else NotificationType.INFO,
            )
        self._recorder.record(
            command.context,
            ActivityAction.UPDATE_TICKET_STATUS,
            "support_ticket",
            ticket.id,
            f"Ticket status {ticket.status.value} -> {command.status.value}",
            user_id=ticket.user_id,
        )
        logger.info("Ticket %s set to %s", ticket.id, command.status.value)
        return updated

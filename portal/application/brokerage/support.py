"""
Use cases: Client support tickets.

Input: OpenTicketCommand / ReplyToTicketCommand / user and ticket ids
Output: SupportTicket / TicketDetail / TicketReply
Side effects: Inserts tickets and replies; replies bump updated_at.
Failure cases:
    - ValidationError for a blank subject or message, or a reply to a
      resolved or closed ticket.
    - EntityNotFoundError for a ticket of another client.
"""

import logging
from dataclasses import replace

from portal.application.brokerage.dtos import (
    OpenTicketCommand,
    ReplyToTicketCommand,
    TicketDetail,
)
from portal.domain.brokerage.entities import (
    SupportTicket,
    TicketReply,
    TicketStatus,
    new_id,
    utcnow,
)
from portal.domain.brokerage.errors import EntityNotFoundError, ValidationError
from portal.domain.brokerage.ports import SupportTicketRepository

logger = logging.getLogger(__name__)


def _require_text(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationError(f"{label} must not be blank")
    return value


def require_own_ticket(
    ticket_repo: SupportTicketRepository, user_id: str, ticket_id: str
) -> SupportTicket:
    ticket = ticket_repo.get(ticket_id)
    if ticket is None or ticket.user_id != user_id:
        raise EntityNotFoundError("SupportTicket", ticket_id)
    return ticket


class OpenTicketUseCase:
    def __init__(self, ticket_repo: SupportTicketRepository) -> None:
        self._ticket_repo = ticket_repo

    def execute(self, command: OpenTicketCommand) -> SupportTicket:
        now = utcnow()
        ticket = SupportTicket(
            id=new_id(),
            subject=_require_text(command.subject, "Subject"),
            message=_require_text(command.message, "Message"),
            user_id=command.user_id,
            status=TicketStatus.OPEN,
            priority=command.priority,
            category=command.category,
            attachments=command.attachments,
            created_at=now,
            updated_at=now,
        )
        self._ticket_repo.add(ticket)
        logger.info(
            "Support ticket opened: id=%s category=%s priority=%s",
            ticket.id,
            command.category.value,
            command.priority.value,
        )
        return ticket


class ListTicketsUseCase:
    def __init__(self, ticket_repo: SupportTicketRepository) -> None:
        self._ticket_repo = ticket_repo

    def execute(self, user_id: str) -> list[SupportTicket]:
        return self._ticket_repo.list_for_user(user_id)


class GetTicketUseCase:
    def __init__(self, ticket_repo: SupportTicketRepository) -> None:
        self._ticket_repo = ticket_repo

    def execute(self, user_id: str, ticket_id: str) -> TicketDetail:
        ticket = require_own_ticket(self._ticket_repo, user_id, ticket_id)
        return TicketDetail(
            ticket=ticket, replies=tuple(self._ticket_repo.list_replies(ticket.id))
        )


class ReplyToTicketUseCase:
    """Adds a client reply. Resolved and closed tickets are read-only."""

    def __init__(self, ticket_repo: SupportTicketRepository) -> None:
        self._ticket_repo = ticket_repo

    def execute(self, command: ReplyToTicketCommand) -> TicketReply:
        ticket = require_own_ticket(self._ticket_repo, command.user_id, command.ticket_id)
        if ticket.is_closed:
            raise ValidationError(f"Ticket is {ticket.status.value} and accepts no replies")

        now = utcnow()
        reply = TicketReply(
            id=new_id(),
            ticket_id=ticket.id,
            message=_require_text(command.message, "Message"),
            user_id=command.user_id,
            attachments=command.attachments,
            created_at=now,
        )
        self._ticket_repo.add_reply(reply)
        self._ticket_repo.update(replace(ticket, updated_at=now))
        logger.info("Client replied to ticket %s", ticket.id)
        return reply

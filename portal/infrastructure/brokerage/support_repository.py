"""
Adapter: Support tickets and their replies.
"""

from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine

from portal.domain.brokerage.entities import SupportTicket, TicketReply, TicketStatus
from portal.domain.brokerage.ports import SupportTicketRepository
from portal.infrastructure.brokerage.mappers import (
    reply_to_values,
    row_to_reply,
    row_to_ticket,
    ticket_to_values,
)
from portal.infrastructure.database.schema import support_ticket_replies, support_tickets


class SupportTicketRepositoryAdapter(SupportTicketRepository):
    """SQL implementation of SupportTicketRepository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, ticket_id: str) -> Optional[SupportTicket]:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(support_tickets).where(support_tickets.c.id == ticket_id)
            ).first()
        return row_to_ticket(row) if row else None

    def add(self, ticket: SupportTicket) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(support_tickets).values(**ticket_to_values(ticket)))

    def update(self, ticket: SupportTicket) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(support_tickets)
                .where(support_tickets.c.id == ticket.id)
                .values(
                    status=ticket.status.value,
                    admin_id=ticket.admin_id,
                    updated_at=ticket.updated_at,
                    resolved_at=ticket.resolved_at,
                )
            )

    def list_for_user(self, user_id: str) -> list[SupportTicket]:
        stmt = (
            select(support_tickets)
            .where(support_tickets.c.user_id == user_id)
            .order_by(support_tickets.c.created_at.desc())
        )
        with self._engine.connect() as conn:
            return [row_to_ticket(row) for row in conn.execute(stmt)]

    def list_all(self, status: Optional[TicketStatus] = None) -> list[SupportTicket]:
        stmt = select(support_tickets).order_by(support_tickets.c.updated_at.desc())
        if status is not None:
            stmt = stmt.where(support_tickets.c.status == status.value)
        with self._engine.connect() as conn:
            return [row_to_ticket(row) for row in conn.execute(stmt)]

    def add_reply(self, reply: TicketReply) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(support_ticket_replies).values(**reply_to_values(reply)))

    def list_replies(self, ticket_id: str) -> list[TicketReply]:
        stmt = (
            select(support_ticket_replies)
            .where(support_ticket_replies.c.ticket_id == ticket_id)
            .order_by(support_ticket_replies.c.created_at.asc())
        )
        with self._engine.connect() as conn:
            return [row_to_reply(row) for row in conn.execute(stmt)]

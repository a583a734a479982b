"""
Adapter: KYC document repository.
"""

from collections.abc import Collection
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine

from portal.domain.brokerage.entities import Document
from portal.domain.brokerage.ports import DocumentRepository
from portal.infrastructure.brokerage.mappers import document_to_values, row_to_document
from portal.infrastructure.brokerage.scoping import restrict_to_countries
from portal.infrastructure.database.schema import documents


class DocumentRepositoryAdapter(DocumentRepository):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, document_id: str) -> Optional[Document]:
        with self._engine.connect() as conn:
            row = conn.execute(select(documents).where(documents.c.id == document_id)).first()
        return row_to_document(row) if row else None

    def add(self, document: Document) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(documents).values(**document_to_values(document)))

    def update(self, document: Document) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(documents)
                .where(documents.c.id == document.id)
                .values(
                    status=document.status.value,
                    rejection_reason=document.rejection_reason,
                    approved_by=document.approved_by,
                    verified_at=document.verified_at,
                )
            )

    def list_for_user(self, user_id: str) -> list[Document]:
        stmt = (
            select(documents)
            .where(documents.c.user_id == user_id)
            .order_by(documents.c.uploaded_at.desc())
        )
        with self._engine.connect() as conn:
            return [row_to_document(row) for row in conn.execute(stmt)]

    def list_all(self, countries: Optional[Collection[str]] = None) -> list[Document]:
        stmt = select(documents).order_by(documents.c.uploaded_at.desc())
        stmt = restrict_to_countries(stmt, documents.c.user_id, countries)
        with self._engine.connect() as conn:
            return [row_to_document(row) for row in conn.execute(stmt)]

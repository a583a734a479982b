"""
Use cases: KYC document upload and verification status.

Input: UploadDocumentCommand / user id
Output: Document / list[Document] / VerificationStatus
Side effects: Inserts a document row and an upload notification.
Failure cases: ValidationError for a blank file name or URL.
"""

import logging

from portal.application.brokerage.dtos import UploadDocumentCommand
from portal.application.brokerage.notifications import Notifier
from portal.domain.brokerage.entities import (
    Document,
    DocumentStatus,
    NotificationType,
    new_id,
    utcnow,
)
from portal.domain.brokerage.errors import ValidationError
from portal.domain.brokerage.ports import DocumentRepository
from portal.domain.brokerage.verification import VerificationStatus, evaluate_verification

logger = logging.getLogger(__name__)


class UploadDocumentUseCase:
    def __init__(self, document_repo: DocumentRepository, notifier: Notifier) -> None:
        self._document_repo = document_repo
        self._notifier = notifier

    def execute(self, command: UploadDocumentCommand) -> Document:
        if not command.file_name.strip() or not command.file_url.strip():
            raise ValidationError("File name and file URL are required")
        document = Document(
            id=new_id(),
            user_id=command.user_id,
            type=command.type,
            file_name=command.file_name.strip(),
            file_url=command.file_url.strip(),
            status=DocumentStatus.PENDING,
            uploaded_at=utcnow(),
        )
        self._document_repo.add(document)
        self._notifier.notify(
            command.user_id,
            "Document Uploaded",
            f"Your {command.type.value} has been uploaded and is pending verification.",
            NotificationType.SUCCESS,
        )
        logger.info("Document uploaded: id=%s type=%s", document.id, document.type.value)
        return document


class ListDocumentsUseCase:
    def __init__(self, document_repo: DocumentRepository) -> None:
        self._document_repo = document_repo

    def execute(self, user_id: str) -> list[Document]:
        return self._document_repo.list_for_user(user_id)


class GetVerificationStatusUseCase:
    def __init__(self, document_repo: DocumentRepository) -> None:
        self._document_repo = document_repo

    def execute(self, user_id: str) -> VerificationStatus:
        return evaluate_verification(self._document_repo.list_for_user(user_id))

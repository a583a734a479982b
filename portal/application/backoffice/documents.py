"""
Use cases: KYC document review.

Input: AdminContext / ReviewDocumentCommand
Output: list[Document] / Document
Side effects:
    - Updates the document's status, reviewer and timestamps.
    - Sets users.verified once every required document is verified.
    - Notifies the client and appends to the activity log.
Failure cases:
    - EntityNotFoundError for documents of clients outside the scope.
    - ValidationError for a status other than Verified/Rejected, or a
      rejection without a reason.
"""

import logging
from dataclasses import replace

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import AdminContext, ReviewDocumentCommand
from portal.application.brokerage.notifications import Notifier
from portal.domain.brokerage.entities import (
    Document,
    DocumentStatus,
    NotificationType,
    utcnow,
)
from portal.domain.brokerage.errors import EntityNotFoundError, ValidationError
from portal.domain.brokerage.ports import DocumentRepository, UserRepository
from portal.domain.brokerage.verification import evaluate_verification

logger = logging.getLogger(__name__)


class ListAllDocumentsUseCase:
    def __init__(self, document_repo: DocumentRepository) -> None:
        self._document_repo = document_repo

    def execute(self, context: AdminContext) -> list[Document]:
        return self._document_repo.list_all(countries=context.scope.countries)


class ReviewDocumentUseCase:
    """Approves or rejects a KYC document.

    Approve, reject and the combined verify endpoint all end here.
    """

    def __init__(
        self,
        document_repo: DocumentRepository,
        user_repo: UserRepository,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        self._document_repo = document_repo
        self._user_repo = user_repo
        self._notifier = notifier
        self._recorder = recorder

    def execute(self, command: ReviewDocumentCommand) -> Document:
        if command.status not in (DocumentStatus.VERIFIED, DocumentStatus.REJECTED):
            raise ValidationError("Status must be Verified or Rejected")
        reason = (command.reason or "").strip()
        if command.status is DocumentStatus.REJECTED and not reason:
            raise ValidationError("A rejection reason is required")

        document = self._document_repo.get(command.document_id)
        if document is None:
            raise EntityNotFoundError("Document", command.document_id)
        command.context.scope.ensure_covers(
            self._user_repo.get(document.user_id), document.user_id
        )

        now = utcnow()
        if command.status is DocumentStatus.VERIFIED:
            reviewed = replace(
                document,
                status=DocumentStatus.VERIFIED,
                rejection_reason=None,
                approved_by=command.context.admin.id,
                verified_at=now,
            )
        else:
            reviewed = replace(
                document,
                status=DocumentStatus.REJECTED,
                rejection_reason=reason,
                approved_by=command.context.admin.id,
                verified_at=None,
            )
        self._document_repo.update(reviewed)

        if reviewed.status is DocumentStatus.VERIFIED:
            self._notifier.notify(
                document.user_id,
                "Document Approved",
                f"Your {document.type.value} has been verified.",
                NotificationType.SUCCESS,
            )
            self._mark_user_verified(document.user_id)
            action, details = (
                ActivityAction.APPROVE_DOCUMENT,
                f"Approved {document.type.value} for user {document.user_id}",
            )
        else:
            self._notifier.notify(
                document.user_id,
                "Document Rejected",
                f"Your {document.type.value} was rejected: {reason}",
                NotificationType.ERROR,
            )
            action, details = (
                ActivityAction.REJECT_DOCUMENT,
                f"Rejected {document.type.value} for user {document.user_id}: {reason}",
            )

        self._recorder.record(
            command.context, action, "document", document.id, details, user_id=document.user_id
        )
        logger.info("Document %s %s", document.id, reviewed.status.value.lower())
        return reviewed

    def _mark_user_verified(self, user_id: str) -> None:
        status = evaluate_verification(self._document_repo.list_for_user(user_id))
        if not status.is_verified:
            return
        user = self._user_repo.get(user_id)
        if user is not None and not user.verified:
            self._user_repo.update(replace(user, verified=True))
            logger.info("User %s is now fully verified", user_id)

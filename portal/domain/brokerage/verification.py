"""
KYC verification rules.

A client is verified once every required document type has at least
one Verified document. Older rejected uploads of the same type do not
count against the client.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from portal.domain.brokerage.entities import (
    REQUIRED_KYC_DOCUMENTS,
    Document,
    DocumentStatus,
)


@dataclass(frozen=True)
class VerificationStatus:
    """Summary of a client's KYC progress.

    Attributes:
        is_verified: Every required document type has been verified.
        verified_count: Number of verified documents of required types.
        required_count: Number of required document types.
        has_pending: At least one document is awaiting review.
        documents: The client's documents, as stored.
    """

    is_verified: bool
    verified_count: int
    required_count: int
    has_pending: bool
    documents: tuple[Document, ...]


def evaluate_verification(documents: Sequence[Document]) -> VerificationStatus:
    """Compute the verification status of a client from its documents."""
    verified = [
        d
        for d in documents
        if d.status is DocumentStatus.VERIFIED and d.type in REQUIRED_KYC_DOCUMENTS
    ]
    verified_types = {d.type for d in verified}
    return VerificationStatus(
        is_verified=all(t in verified_types for t in REQUIRED_KYC_DOCUMENTS),
        verified_count=len(verified),
        required_count=len(REQUIRED_KYC_DOCUMENTS),
        has_pending=any(d.status is DocumentStatus.PENDING for d in documents),
        documents=tuple(documents),
    )

"""
Data Transfer Objects for the back-office application layer.

Every command carries the AdminContext of the acting operator: its
visibility scope and the request's client address for the audit trail.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from portal.domain.brokerage.access import AdminScope
from portal.domain.brokerage.entities import (
    AdminRole,
    AdminUser,
    DocumentStatus,
    TicketStatus,
    User,
)


@dataclass(frozen=True)
class AdminContext:
    """The acting admin and where the request came from.

    Attributes:
        scope: Visibility scope of the admin.
        ip_address: Client address of the request, for the audit trail.
    """

    scope: AdminScope
    ip_address: Optional[str] = None

    @property
    def admin(self) -> AdminUser:
        return self.scope.admin


@dataclass(frozen=True)
class AdminSignInCommand:
    username: str
    password: str
    ip_address: Optional[str] = None


@dataclass(frozen=True)
class FundsAdjustmentCommand:
    """Input DTO for a manual balance correction.

    Attributes:
        context: The acting super admin.
        user_id: Owner of the account.
        account_id: Internal id of the trading account.
        amount: Positive amount to add or remove.
        reason: Free-text justification recorded in the audit trail.
    """

    context: AdminContext
    user_id: str
    account_id: str
    amount: Decimal
    reason: Optional[str] = None


@dataclass(frozen=True)
class CreateAdminCommand:
    context: AdminContext
    username: str
    email: str
    password: str
    full_name: str
    role: AdminRole


@dataclass(frozen=True)
class UpdateAdminCommand:
    """Input DTO for editing an admin. ``None`` leaves a field unchanged."""

    context: AdminContext
    admin_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[AdminRole] = None
    enabled: Optional[bool] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class CountryAssignmentCommand:
    context: AdminContext
    admin_id: str
    country: str


@dataclass(frozen=True)
class ReviewDocumentCommand:
    """Input DTO for a KYC decision.

    Attributes:
        context: The reviewing admin.
        document_id: The document under review.
        status: Verified or Rejected.
        reason: Rejection reason; required when rejecting.
    """

    context: AdminContext
    document_id: str
    status: DocumentStatus
    reason: Optional[str] = None


@dataclass(frozen=True)
class ProcessRequestCommand:
    """Input DTO for approving or rejecting a deposit, withdrawal or transfer."""

    context: AdminContext
    record_id: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class AdminReplyCommand:
    context: AdminContext
    ticket_id: str
    message: str


@dataclass(frozen=True)
class SetTicketStatusCommand:
    context: AdminContext
    ticket_id: str
    status: TicketStatus


@dataclass(frozen=True)
class ReferralRecord:
    """Output DTO pairing a referred client with its referrer."""

    user: User
    referrer: Optional[User]


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: str

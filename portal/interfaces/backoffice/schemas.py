"""
Pydantic schemas for the back-office API.

Client-side record shapes (users, accounts, deposits...) are shared with
the client API; this module adds the admin-only requests and views.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from portal.domain.brokerage.entities import (
    MAX_AMOUNT,
    AdminRole,
    DocumentStatus,
    ReferralStatus,
    TicketStatus,
)
from portal.interfaces.brokerage.schemas import EMAIL_PATTERN, EntityModel


class AdminSignInRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)


class AdminResponse(EntityModel):
    id: str
    username: str
    email: str
    full_name: str
    role: AdminRole
    enabled: bool
    created_at: datetime
    created_by: Optional[str]


class AdminSessionResponse(BaseModel):
    """The signed-in admin and the client countries it can see.

    ``countries`` is null for admins without a country restriction.
    """

    admin: AdminResponse
    countries: Optional[list[str]]
    impersonating: Optional[str] = None


class CreateAdminRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: AdminRole


class UpdateAdminRequest(BaseModel):
    """Admin fields to change. Omitted fields are left unchanged."""

    full_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    role: Optional[AdminRole] = None
    enabled: Optional[bool] = None
    password: Optional[str] = Field(default=None, max_length=128)


class CountryRequest(BaseModel):
    country: str = Field(..., min_length=1, max_length=100)


class CountryAssignmentResponse(EntityModel):
    id: str
    admin_id: str
    country: str
    created_at: datetime


class FundsAdjustmentRequest(BaseModel):
    """Request schema for a manual balance correction.

    Attributes:
        account_id: Internal id of the client's trading account.
        amount: Positive amount to add or remove.
        reason: Justification written to the activity log.
    """

    account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., le=MAX_AMOUNT)
    reason: Optional[str] = Field(default=None, max_length=500)


class BalanceResponse(BaseModel):
    account_id: str
    account_number: str
    balance: Decimal


class ImpersonationResponse(BaseModel):
    message: str
    user_id: str


class ReasonRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class VerifyDocumentRequest(BaseModel):
    status: DocumentStatus
    reason: Optional[str] = Field(default=None, max_length=1000)


class AdminReplyRequest(BaseModel):
    message: str = Field(..., min_length=1)


class TicketStatusRequest(BaseModel):
    status: TicketStatus


class ReferralResponse(BaseModel):
    user_id: str
    email: str
    full_name: Optional[str]
    country: Optional[str]
    referral_status: ReferralStatus
    joined_at: datetime
    referrer_id: Optional[str]
    referrer_name: Optional[str]
    referrer_email: Optional[str]
    referrer_referral_id: Optional[str]


class AccountStatsResponse(EntityModel):
    total: int
    live: int
    demo: int
    bonus: int
    enabled: int
    disabled: int
    by_type: dict[str, int]
    by_group: dict[str, int]


class TransferStatsResponse(EntityModel):
    total: int
    internal: int
    external: int
    pending: int
    completed: int
    failed: int
    completed_amount: Decimal


class AdminStatsResponse(EntityModel):
    users_total: int
    users_enabled: int
    users_verified: int
    documents_pending: int
    documents_verified: int
    documents_rejected: int
    accounts_total: int
    accounts_live: int
    accounts_demo: int
    deposits_pending: int
    deposits_pending_amount: Decimal
    deposits_completed: int
    deposits_completed_amount: Decimal
    withdrawals_pending: int
    withdrawals_pending_amount: Decimal
    withdrawals_completed: int
    withdrawals_completed_amount: Decimal


class ActivityLogResponse(EntityModel):
    id: str
    admin_id: Optional[str]
    user_id: Optional[str]
    action: str
    entity: str
    entity_id: Optional[str]
    details: Optional[str]
    ip_address: Optional[str]
    created_at: datetime

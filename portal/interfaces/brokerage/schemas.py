"""
Pydantic schemas for the client API.

These schemas enforce input validation and define the API contract.
Responses are read from domain entities (``from_attributes``); money is
serialized as decimal strings. Password hashes never appear here.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from portal.domain.brokerage.entities import (
    MAX_AMOUNT,
    AccountGroup,
    AccountType,
    DepositStatus,
    DocumentStatus,
    DocumentType,
    NotificationType,
    ReferralStatus,
    TicketCategory,
    TicketPriority,
    TicketStatus,
    TradeSide,
    TradeStatus,
    TransferStatus,
    TransferType,
    WalletType,
    WithdrawalStatus,
)

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
ACCOUNT_NUMBER_PATTERN = r"^\d{8}$"


class EntityModel(BaseModel):
    """Base for responses built from domain entities."""

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Response schema for health check endpoint."""

    status: str
    version: str
    database: str


# --- Auth and profile ---


class SignUpRequest(BaseModel):
    """Request schema for client registration.

    Attributes:
        email: Login email.
        password: Plain-text password (at least 6 characters).
        full_name: Optional display name.
        referral_code: Referral id of the introducing client.
    """

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=128)
    full_name: Optional[str] = Field(default=None, max_length=255)
    referral_code: Optional[str] = Field(default=None, max_length=32)


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(EntityModel):
    id: str
    username: str
    email: str
    full_name: Optional[str]
    phone: Optional[str]
    country: Optional[str]
    city: Optional[str]
    address: Optional[str]
    zip_code: Optional[str]
    referral_id: Optional[str]
    referred_by: Optional[str]
    referral_status: ReferralStatus
    verified: bool
    enabled: bool
    created_at: datetime


class UpdateProfileRequest(BaseModel):
    """Editable profile fields. Omitted fields are left unchanged."""

    full_name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    country: Optional[str] = Field(default=None, max_length=100)
    city: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=255)
    zip_code: Optional[str] = Field(default=None, max_length=20)


# --- Trading accounts ---


class OpenTradingAccountRequest(BaseModel):
    type: AccountType = AccountType.DEMO
    group: AccountGroup = AccountGroup.STANDARD
    leverage: str = Field(default="1:100", max_length=10)


class ChangeLeverageRequest(BaseModel):
    leverage: str = Field(..., max_length=10)


class TradingAccountResponse(EntityModel):
    id: str
    user_id: str
    account_number: str
    type: AccountType
    group: AccountGroup
    leverage: str
    balance: Decimal
    equity: Decimal
    margin: Decimal
    free_margin: Decimal
    margin_level: Decimal
    currency: str
    server: str
    enabled: bool
    created_at: datetime


class TradingAccountCreatedResponse(TradingAccountResponse):
    """Returned once, on creation: includes the trading password."""

    password: str


class TradeResponse(EntityModel):
    id: str
    account_id: str
    ticket_id: str
    symbol: str
    side: TradeSide
    volume: Decimal
    open_price: Decimal
    close_price: Optional[Decimal]
    stop_loss: Optional[Decimal]
    take_profit: Optional[Decimal]
    profit: Optional[Decimal]
    commission: Decimal
    swap: Decimal
    status: TradeStatus
    open_time: datetime
    close_time: Optional[datetime]


class DashboardStatsResponse(EntityModel):
    balance: Decimal
    equity: Decimal
    margin: Decimal
    profit_loss: Decimal
    total_accounts: int
    open_trades: int
    total_deposits: int


# --- Funding ---


class DepositRequest(BaseModel):
    """Request schema for a deposit.

    Attributes:
        account_id: Internal id of the trading account to credit.
        amount: Amount in account currency.
        merchant: Payment channel label.
        verification_file: Proof-of-payment reference, if any.
    """

    account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., le=MAX_AMOUNT)
    merchant: str = Field(..., min_length=1, max_length=100)
    verification_file: Optional[str] = Field(default=None, max_length=500)


class DepositResponse(EntityModel):
    id: str
    user_id: str
    account_id: str
    merchant: str
    amount: Decimal
    currency: str
    status: DepositStatus
    transaction_id: Optional[str]
    verification_file: Optional[str]
    deposit_date: datetime
    created_at: datetime
    completed_at: Optional[datetime]


class WithdrawalRequest(BaseModel):
    account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., le=MAX_AMOUNT)
    method: str = Field(..., min_length=1, max_length=100)
    bank_name: Optional[str] = Field(default=None, max_length=255)
    account_number: Optional[str] = Field(default=None, max_length=100)
    account_holder_name: Optional[str] = Field(default=None, max_length=255)
    swift_code: Optional[str] = Field(default=None, max_length=50)


class WithdrawalResponse(EntityModel):
    id: str
    user_id: str
    account_id: str
    method: str
    amount: Decimal
    currency: str
    bank_name: Optional[str]
    account_number: Optional[str]
    account_holder_name: Optional[str]
    swift_code: Optional[str]
    status: WithdrawalStatus
    rejection_reason: Optional[str]
    created_at: datetime
    processed_at: Optional[datetime]


class InternalTransferRequest(BaseModel):
    from_account_id: str = Field(..., min_length=1)
    to_account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., le=MAX_AMOUNT)
    notes: Optional[str] = Field(default=None, max_length=500)


class ExternalTransferRequest(BaseModel):
    """Request schema for a transfer to another client.

    Attributes:
        from_account_id: Internal id of the sender's account.
        to_account_number: 8-digit login of the destination account.
        amount: Amount the destination receives; the fee is added on top.
        notes: Free-text note.
    """

    from_account_id: str = Field(..., min_length=1)
    to_account_number: str = Field(..., pattern=ACCOUNT_NUMBER_PATTERN)
    amount: Decimal = Field(..., le=MAX_AMOUNT)
    notes: Optional[str] = Field(default=None, max_length=500)


class FundTransferResponse(EntityModel):
    id: str
    user_id: str
    from_account_id: str
    to_account_id: str
    amount: Decimal
    fee: Decimal
    currency: str
    transfer_type: TransferType
    status: TransferStatus
    notes: Optional[str]
    processed_by: Optional[str]
    created_at: datetime
    processed_at: Optional[datetime]


# --- Documents ---


class DocumentUploadRequest(BaseModel):
    type: DocumentType
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1000)


class DocumentResponse(EntityModel):
    id: str
    user_id: str
    type: DocumentType
    file_name: str
    file_url: str
    status: DocumentStatus
    rejection_reason: Optional[str]
    approved_by: Optional[str]
    uploaded_at: datetime
    verified_at: Optional[datetime]


class VerificationStatusResponse(EntityModel):
    is_verified: bool
    verified_count: int
    required_count: int
    has_pending: bool
    documents: list[DocumentResponse]


# --- Notifications ---


class NotificationResponse(EntityModel):
    id: str
    title: str
    message: str
    type: NotificationType
    read: bool
    created_at: datetime


# --- Support ---


class OpenTicketRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    category: TicketCategory
    priority: TicketPriority = TicketPriority.MEDIUM
    attachments: list[str] = Field(default_factory=list)


class TicketReplyRequest(BaseModel):
    message: str = Field(..., min_length=1)
    attachments: list[str] = Field(default_factory=list)


class SupportTicketResponse(EntityModel):
    id: str
    user_id: Optional[str]
    admin_id: Optional[str]
    subject: str
    message: str
    status: TicketStatus
    priority: TicketPriority
    category: Optional[TicketCategory]
    attachments: list[str]
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime]


class TicketReplyResponse(EntityModel):
    id: str
    ticket_id: str
    user_id: Optional[str]
    admin_id: Optional[str]
    message: str
    attachments: list[str]
    created_at: datetime


class TicketDetailResponse(EntityModel):
    ticket: SupportTicketResponse
    replies: list[TicketReplyResponse]


# --- Introducing broker ---


class WalletResponse(EntityModel):
    id: str
    user_id: str
    wallet_type: WalletType
    balance: Decimal
    currency: str
    commission_rate: Decimal
    total_commission: Decimal
    enabled: bool
    created_at: datetime


class ReferredClientResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str]
    joined_at: datetime
    referral_status: ReferralStatus
    total_deposits: Decimal
    commission: Decimal


class IbStatsResponse(BaseModel):
    referral_id: Optional[str]
    wallet: Optional[WalletResponse]
    referrals: list[ReferredClientResponse]
    total_referrals: int
    active_referrals: int
    total_commission: Decimal
    pending_commission: Decimal

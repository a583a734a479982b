"""
Data Transfer Objects for the client-facing application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior. Use cases return domain
entities directly where no composition is needed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from portal.domain.brokerage.entities import (
    AccountGroup,
    AccountType,
    DocumentType,
    SupportTicket,
    TicketCategory,
    TicketPriority,
    TicketReply,
    TradeSide,
    TradeStatus,
    User,
    Wallet,
)


@dataclass(frozen=True)
class SignUpCommand:
    """Input DTO for client registration.

    Attributes:
        email: Login email; stored lower-cased.
        password: Plain-text password, hashed before storage.
        full_name: Optional display name.
        referral_code: Referral id of the introducing client, if any.
    """

    email: str
    password: str
    full_name: Optional[str] = None
    referral_code: Optional[str] = None


@dataclass(frozen=True)
class SignInCommand:
    email: str
    password: str


@dataclass(frozen=True)
class UpdateProfileCommand:
    """Input DTO for a profile change. ``None`` leaves a field unchanged.

    Attributes:
        user_id: The client being edited.
        full_name: New display name.
        phone: New phone number.
        country: New country of residence.
        city: New city.
        address: New street address.
        zip_code: New postal code.
    """

    user_id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    zip_code: Optional[str] = None


@dataclass(frozen=True)
class OpenTradingAccountCommand:
    user_id: str
    type: AccountType = AccountType.DEMO
    group: AccountGroup = AccountGroup.STANDARD
    leverage: str = "1:100"


@dataclass(frozen=True)
class ChangeLeverageCommand:
    user_id: str
    account_id: str
    leverage: str


@dataclass(frozen=True)
class TradingHistoryQuery:
    """Input DTO for the trade history of a client.

    Attributes:
        user_id: The client.
        account_id: Restrict to one of the client's accounts.
    """

    user_id: str
    account_id: Optional[str] = None


@dataclass(frozen=True)
class RecordTradeCommand:
    """Input DTO for storing a trade in a client's history."""

    user_id: str
    account_id: str
    ticket_id: str
    symbol: str
    side: TradeSide
    volume: Decimal
    open_price: Decimal
    status: TradeStatus = TradeStatus.OPEN
    close_price: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    open_time: Optional[datetime] = None
    close_time: Optional[datetime] = None


@dataclass(frozen=True)
class RequestDepositCommand:
    """Input DTO for a deposit request.

    Attributes:
        user_id: The depositing client.
        account_id: Internal id of the account to credit.
        amount: Amount in account currency.
        merchant: Payment channel label (card, bank wire, crypto...).
        verification_file: Optional proof-of-payment reference.
    """

    user_id: str
    account_id: str
    amount: Decimal
    merchant: str
    verification_file: Optional[str] = None


@dataclass(frozen=True)
class RequestWithdrawalCommand:
    user_id: str
    account_id: str
    amount: Decimal
    method: str
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_holder_name: Optional[str] = None
    swift_code: Optional[str] = None


@dataclass(frozen=True)
class InternalTransferCommand:
    user_id: str
    from_account_id: str
    to_account_id: str
    amount: Decimal
    notes: Optional[str] = None


@dataclass(frozen=True)
class ExternalTransferCommand:
    """Input DTO for a transfer to another client's account.

    Attributes:
        user_id: The sending client.
        from_account_id: Internal id of the sender's account.
        to_account_number: 8-digit login of the destination account.
        amount: Amount the destination receives.
        notes: Free-text note.
    """

    user_id: str
    from_account_id: str
    to_account_number: str
    amount: Decimal
    notes: Optional[str] = None


@dataclass(frozen=True)
class UploadDocumentCommand:
    user_id: str
    type: DocumentType
    file_name: str
    file_url: str


@dataclass(frozen=True)
class OpenTicketCommand:
    user_id: str
    subject: str
    message: str
    category: TicketCategory
    priority: TicketPriority = TicketPriority.MEDIUM
    attachments: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReplyToTicketCommand:
    user_id: str
    ticket_id: str
    message: str
    attachments: tuple[str, ...] = ()


@dataclass(frozen=True)
class TicketDetail:
    """A ticket with its replies in chronological order."""

    ticket: SupportTicket
    replies: tuple[TicketReply, ...]


@dataclass(frozen=True)
class ReferredClient:
    """Output DTO for one client referred by an introducing broker.

    Attributes:
        user: The referred client.
        total_deposits: Sum of the client's completed deposits.
        commission: Commission those deposits earned the broker.
    """

    user: User
    total_deposits: Decimal
    commission: Decimal


@dataclass(frozen=True)
class IbStats:
    """Output DTO for the introducing-broker page.

    Attributes:
        referral_id: Code the client shares with prospects.
        wallet: The client's IB wallet, if one was opened.
        referrals: Clients who signed up with the code.
        total_referrals: Number of referrals.
        active_referrals: Accepted referrals that are still enabled.
        total_commission: Commission credited to the wallet so far.
        pending_commission: Commission that Pending referrals would earn.
    """

    referral_id: Optional[str]
    wallet: Optional[Wallet]
    referrals: tuple[ReferredClient, ...]
    total_referrals: int
    active_referrals: int
    total_commission: Decimal
    pending_commission: Decimal

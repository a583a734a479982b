"""
Domain entities for the brokerage bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.
Monetary amounts are ``Decimal`` quantized to cents.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Optional
from uuid import uuid4

from portal.domain.brokerage.errors import InsufficientBalanceError, InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest amount a single request may carry.
MAX_AMOUNT = Decimal("1000000000.00")
LEVERAGE_OPTIONS = ("1:50", "1:100", "1:200", "1:500")


def new_id() -> str:
    """Return a new random entity identifier."""
    return str(uuid4())


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime (storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_money(value: Decimal | str | int | float | None) -> Decimal:
    """Quantize a value to cents, treating None and blanks as zero.

    Raises:
        InvalidAmountError: If the value is not a finite number that fits
            the decimal context at cent precision.
    """
    if value is None or value == "":
        return ZERO
    try:
        money = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(str(value)) from exc
    if not money.is_finite():
        raise InvalidAmountError(str(value))
    return money


class AccountType(Enum):
    """Trading account type."""

    LIVE = "Live"
    DEMO = "Demo"
    BONUS = "Bonus"


class AccountGroup(Enum):
    """Trading account group (pricing tier)."""

    STANDARD = "Standard"
    PRO = "Pro"
    VIP = "VIP"
    STARTUP = "Startup"
    STUDENT = "Student"


class DepositStatus(Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class WithdrawalStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class TransferStatus(Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


class TransferType(Enum):
    """Internal transfers stay between one client's accounts."""

    INTERNAL = "internal"
    EXTERNAL = "external"


class DocumentType(Enum):
    ID_PROOF = "ID Proof"
    ADDRESS_PROOF = "Address Proof"
    BANK_STATEMENT = "Bank Statement"
    OTHER = "Other"


class DocumentStatus(Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class NotificationType(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class TicketStatus(Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class TicketPriority(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class TicketCategory(Enum):
    TECHNICAL = "Technical"
    ACCOUNT = "Account"
    PAYMENT = "Payment"
    TRADING = "Trading"
    OTHER = "Other"


class ReferralStatus(Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class AdminRole(Enum):
    """Back-office role.

    Middle admins only see clients from the countries assigned to them.
    """

    SUPER_ADMIN = "super_admin"
    MIDDLE_ADMIN = "middle_admin"
    NORMAL_ADMIN = "normal_admin"


class WalletType(Enum):
    """Introducing Broker or Corporate Broker wallet."""

    IB = "IB"
    CB = "CB"


class TradeSide(Enum):
    BUY = "Buy"
    SELL = "Sell"


class TradeStatus(Enum):
    OPEN = "Open"
    CLOSED = "Closed"


REQUIRED_KYC_DOCUMENTS = (DocumentType.ID_PROOF, DocumentType.ADDRESS_PROOF)


@dataclass(frozen=True)
class User:
    """A portal client."""

    id: str
    username: str
    password_hash: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    zip_code: Optional[str] = None
    referral_id: Optional[str] = None
    referred_by: Optional[str] = None
    referral_status: ReferralStatus = ReferralStatus.PENDING
    verified: bool = False
    enabled: bool = True
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_referred(self) -> bool:
        """Return True when the client signed up with a referral code."""
        return self.referred_by is not None


@dataclass(frozen=True)
class TradingAccount:
    """A client's trading account on the broker's trading server.

    ``account_number`` is the 8-digit login shown to the client;
    ``id`` is the internal identifier other records reference.
    """

    id: str
    user_id: str
    account_number: str
    password: str
    type: AccountType
    group: AccountGroup
    leverage: str
    balance: Decimal = ZERO
    equity: Decimal = ZERO
    margin: Decimal = ZERO
    free_margin: Decimal = ZERO
    margin_level: Decimal = ZERO
    currency: str = "USD"
    server: str = "Mekness-Live"
    enabled: bool = True
    created_at: datetime = field(default_factory=utcnow)

    def credited(self, amount: Decimal) -> "TradingAccount":
        """Return a copy with ``amount`` added to balance, equity and free margin."""
        amount = to_money(amount)
        return replace(
            self,
            balance=self.balance + amount,
            equity=self.equity + amount,
            free_margin=self.free_margin + amount,
        )

    def debited(self, amount: Decimal) -> "TradingAccount":
        """Return a copy with ``amount`` removed from the balance.

        Raises:
            InsufficientBalanceError: If the balance does not cover the amount.
        """
        amount = to_money(amount)
        if self.balance < amount:
            raise InsufficientBalanceError(
                account_id=self.id, required=str(amount), available=str(self.balance)
            )
        return replace(
            self,
            balance=self.balance - amount,
            equity=self.equity - amount,
            free_margin=self.free_margin - amount,
        )


@dataclass(frozen=True)
class Deposit:
    """Money coming into a trading account."""

    id: str
    user_id: str
    account_id: str
    merchant: str
    amount: Decimal
    currency: str = "USD"
    status: DepositStatus = DepositStatus.PENDING
    transaction_id: Optional[str] = None
    verification_file: Optional[str] = None
    deposit_date: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class Withdrawal:
    """Money leaving a trading account, paid out by the back office."""

    id: str
    user_id: str
    account_id: str
    method: str
    amount: Decimal
    currency: str = "USD"
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_holder_name: Optional[str] = None
    swift_code: Optional[str] = None
    status: WithdrawalStatus = WithdrawalStatus.PENDING
    rejection_reason: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    processed_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        """Return True while the back office can still act on it."""
        return self.status in (WithdrawalStatus.PENDING, WithdrawalStatus.PROCESSING)


@dataclass(frozen=True)
class Trade:
    """A single position in a trading account's history."""

    id: str
    user_id: str
    account_id: str
    ticket_id: str
    symbol: str
    side: TradeSide
    volume: Decimal
    open_price: Decimal
    status: TradeStatus
    close_price: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    commission: Decimal = ZERO
    swap: Decimal = ZERO
    open_time: datetime = field(default_factory=utcnow)
    close_time: Optional[datetime] = None


@dataclass(frozen=True)
class Document:
    """A KYC document uploaded by a client."""

    id: str
    user_id: str
    type: DocumentType
    file_name: str
    file_url: str
    status: DocumentStatus = DocumentStatus.PENDING
    rejection_reason: Optional[str] = None
    approved_by: Optional[str] = None
    uploaded_at: datetime = field(default_factory=utcnow)
    verified_at: Optional[datetime] = None


@dataclass(frozen=True)
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    read: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class AdminUser:
    """A back-office operator."""

    id: str
    username: str
    password_hash: str
    email: str
    full_name: str
    role: AdminRole
    enabled: bool = True
    created_at: datetime = field(default_factory=utcnow)
    created_by: Optional[str] = None

    @property
    def is_super(self) -> bool:
        return self.role is AdminRole.SUPER_ADMIN


@dataclass(frozen=True)
class CountryAssignment:
    """Grants a middle admin visibility over clients of one country."""

    id: str
    admin_id: str
    country: str
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ActivityLog:
    """Immutable audit record of a back-office action."""

    id: str
    action: str
    entity: str
    admin_id: Optional[str] = None
    user_id: Optional[str] = None
    entity_id: Optional[str] = None
    details: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class SupportTicket:
    id: str
    subject: str
    message: str
    user_id: Optional[str] = None
    admin_id: Optional[str] = None
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.MEDIUM
    category: Optional[TicketCategory] = None
    attachments: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    resolved_at: Optional[datetime] = None

    @property
    def is_closed(self) -> bool:
        """Resolved and closed tickets accept no further replies."""
        return self.status in (TicketStatus.RESOLVED, TicketStatus.CLOSED)


@dataclass(frozen=True)
class TicketReply:
    id: str
    ticket_id: str
    message: str
    user_id: Optional[str] = None
    admin_id: Optional[str] = None
    attachments: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class FundTransfer:
    """Movement of funds between two trading accounts.

    For external transfers the sender also pays ``fee``; the
    destination only receives ``amount``.
    """

    id: str
    user_id: str
    from_account_id: str
    to_account_id: str
    amount: Decimal
    transfer_type: TransferType
    fee: Decimal = ZERO
    currency: str = "USD"
    status: TransferStatus = TransferStatus.PENDING
    notes: Optional[str] = None
    processed_by: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    processed_at: Optional[datetime] = None

    @property
    def total_debit(self) -> Decimal:
        return self.amount + self.fee


@dataclass(frozen=True)
class Wallet:
    """IB/CB commission wallet."""

    id: str
    user_id: str
    wallet_type: WalletType
    balance: Decimal = ZERO
    currency: str = "USD"
    commission_rate: Decimal = Decimal("0")
    total_commission: Decimal = ZERO
    enabled: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def commission_for(self, amount: Decimal) -> Decimal:
        """Return the commission earned on a referred client's deposit."""
        return to_money(amount * self.commission_rate)

"""
Port interfaces (ABCs) for the brokerage bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.

Listing methods that accept ``countries`` restrict results to clients
whose country is in the collection; ``None`` means no restriction.
"""

from abc import ABC, abstractmethod
from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from portal.domain.brokerage.entities import (
    ActivityLog,
    AdminUser,
    CountryAssignment,
    Deposit,
    DepositStatus,
    Document,
    FundTransfer,
    Notification,
    SupportTicket,
    TicketReply,
    TicketStatus,
    Trade,
    TradingAccount,
    User,
    Wallet,
    WalletType,
    Withdrawal,
    WithdrawalStatus,
)


class PasswordHasher(ABC):
    """Port for one-way password hashing."""

    @abstractmethod
    def hash(self, password: str) -> str:
        """Return a salted hash of ``password``."""
        raise NotImplementedError

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        """Return True when ``password`` matches ``password_hash``."""
        raise NotImplementedError


class UserRepository(ABC):
    """Port for client persistence."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_referral_id(self, referral_id: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def add(self, user: User) -> None:
        raise NotImplementedError

    @abstractmethod
    def update(self, user: User) -> None:
        """Persist every mutable column of ``user``."""
        raise NotImplementedError

    @abstractmethod
    def list_all(self, countries: Optional[Collection[str]] = None) -> list[User]:
        """Return clients newest first."""
        raise NotImplementedError

    @abstractmethod
    def list_referred(self, referrer_id: Optional[str] = None) -> list[User]:
        """Return clients who signed up with a referral code.

        Args:
            referrer_id: Only clients referred by this user, when given.
        """
        raise NotImplementedError

    @abstractmethod
    def count(self) -> int:
        raise NotImplementedError


class AdminRepository(ABC):
    """Port for back-office operator persistence."""

    @abstractmethod
    def get(self, admin_id: str) -> Optional[AdminUser]:
        raise NotImplementedError

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[AdminUser]:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[AdminUser]:
        raise NotImplementedError

    @abstractmethod
    def add(self, admin: AdminUser) -> None:
        raise NotImplementedError

    @abstractmethod
    def update(self, admin: AdminUser) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[AdminUser]:
        raise NotImplementedError

    @abstractmethod
    def count(self) -> int:
        raise NotImplementedError


class CountryAssignmentRepository(ABC):
    """Port for middle-admin country assignments."""

    @abstractmethod
    def list_for_admin(self, admin_id: str) -> list[CountryAssignment]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[CountryAssignment]:
        raise NotImplementedError

    @abstractmethod
    def add(self, assignment: CountryAssignment) -> bool:
        """Store an assignment. Returns False if it already existed."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, admin_id: str, country: str) -> bool:
        """Delete an assignment. Returns False if there was none."""
        raise NotImplementedError


class ActivityLogRepository(ABC):
    """Port for the append-only audit trail."""

    @abstractmethod
    def add(self, entry: ActivityLog) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_recent(self, admin_id: Optional[str] = None, limit: int = 200) -> list[ActivityLog]:
        """Return entries newest first, optionally for a single admin."""
        raise NotImplementedError


class TradingAccountRepository(ABC):
    """Port for trading account persistence.

    Balances are only changed through :class:`FundingLedger`.
    """

    @abstractmethod
    def get(self, account_id: str) -> Optional[TradingAccount]:
        raise NotImplementedError

    @abstractmethod
    def get_by_number(self, account_number: str) -> Optional[TradingAccount]:
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[TradingAccount]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self, countries: Optional[Collection[str]] = None) -> list[TradingAccount]:
        raise NotImplementedError

    @abstractmethod
    def add(self, account: TradingAccount) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_settings(self, account: TradingAccount) -> None:
        """Persist leverage and the enabled flag. Never touches balances."""
        raise NotImplementedError


class TradeRepository(ABC):
    """Port for trading history."""

    @abstractmethod
    def add(self, trade: Trade) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str, account_id: Optional[str] = None) -> list[Trade]:
        """Return trades newest first."""
        raise NotImplementedError


class DepositRepository(ABC):
    @abstractmethod
    def get(self, deposit_id: str) -> Optional[Deposit]:
        raise NotImplementedError

    @abstractmethod
    def add(self, deposit: Deposit) -> None:
        raise NotImplementedError

    @abstractmethod
    def update(self, deposit: Deposit) -> None:
        """Persist status and completion time of a pending deposit.

        Raises:
            InvalidStatusTransitionError: If the deposit is no longer pending.
        """
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Deposit]:
        raise NotImplementedError

    @abstractmethod
    def list_all(
        self,
        status: Optional[DepositStatus] = None,
        countries: Optional[Collection[str]] = None,
    ) -> list[Deposit]:
        raise NotImplementedError


class WithdrawalRepository(ABC):
    @abstractmethod
    def get(self, withdrawal_id: str) -> Optional[Withdrawal]:
        raise NotImplementedError

    @abstractmethod
    def add(self, withdrawal: Withdrawal) -> None:
        raise NotImplementedError

    @abstractmethod
    def update(self, withdrawal: Withdrawal) -> None:
        """Persist status, rejection reason and processing time of an open withdrawal.

        Raises:
            InvalidStatusTransitionError: If the withdrawal was already decided.
        """
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Withdrawal]:
        raise NotImplementedError

    @abstractmethod
    def list_all(
        self,
        status: Optional[WithdrawalStatus] = None,
        countries: Optional[Collection[str]] = None,
    ) -> list[Withdrawal]:
        raise NotImplementedError


class FundTransferRepository(ABC):
    @abstractmethod
    def get(self, transfer_id: str) -> Optional[FundTransfer]:
        raise NotImplementedError

    @abstractmethod
    def add(self, transfer: FundTransfer) -> None:
        raise NotImplementedError

    @abstractmethod
    def update(self, transfer: FundTransfer) -> None:
        """Persist status, notes and processing fields of a pending transfer.

        Raises:
            InvalidStatusTransitionError: If the transfer was already settled.
        """
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[FundTransfer]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self, countries: Optional[Collection[str]] = None) -> list[FundTransfer]:
        raise NotImplementedError


class DocumentRepository(ABC):
    @abstractmethod
    def get(self, document_id: str) -> Optional[Document]:
        raise NotImplementedError

    @abstractmethod
    def add(self, document: Document) -> None:
        raise NotImplementedError

    @abstractmethod
    def update(self, document: Document) -> None:
        """Persist the review outcome of a document."""
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Document]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self, countries: Optional[Collection[str]] = None) -> list[Document]:
        raise NotImplementedError


class NotificationRepository(ABC):
    @abstractmethod
    def add(self, notification: Notification) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, notification_id: str) -> Optional[Notification]:
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Notification]:
        """Return notifications newest first."""
        raise NotImplementedError

    @abstractmethod
    def mark_read(self, notification_id: str) -> None:
        raise NotImplementedError


class SupportTicketRepository(ABC):
    @abstractmethod
    def get(self, ticket_id: str) -> Optional[SupportTicket]:
        raise NotImplementedError

    @abstractmethod
    def add(self, ticket: SupportTicket) -> None:
        raise NotImplementedError

    @abstractmethod
    def update(self, ticket: SupportTicket) -> None:
        """Persist status, assignee and timestamps."""
        raise NotImplementedError

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[SupportTicket]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self, status: Optional[TicketStatus] = None) -> list[SupportTicket]:
        raise NotImplementedError

    @abstractmethod
    def add_reply(self, reply: TicketReply) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_replies(self, ticket_id: str) -> list[TicketReply]:
        """Return replies oldest first."""
        raise NotImplementedError


class WalletRepository(ABC):
    """Port for IB/CB commission wallets."""

    @abstractmethod
    def get_for_user(self, user_id: str, wallet_type: WalletType) -> Optional[Wallet]:
        raise NotImplementedError

    @abstractmethod
    def add(self, wallet: Wallet) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[Wallet]:
        raise NotImplementedError


@dataclass(frozen=True)
class CommissionCredit:
    """Commission to pay into a wallet together with a deposit."""

    wallet_id: str
    amount: Decimal


class FundingLedger(ABC):
    """Port for every operation that moves money.

    Each method runs in a single transaction: the rows involved are
    locked, the balance rule is re-checked against the locked state,
    and either every write happens or none does.
    """

    @abstractmethod
    def complete_deposit(
        self,
        deposit_id: str,
        completed_at: datetime,
        commission: Optional[CommissionCredit] = None,
    ) -> Deposit:
        """Move a Pending deposit to Completed and credit its account.

        Raises:
            EntityNotFoundError: If the deposit or account is missing.
            InvalidStatusTransitionError: If the deposit is not Pending.
        """
        raise NotImplementedError

    @abstractmethod
    def complete_withdrawal(self, withdrawal_id: str, processed_at: datetime) -> Withdrawal:
        """Move an open withdrawal to Completed and debit its account.

        Raises:
            InsufficientBalanceError: If the account can no longer cover it.
            InvalidStatusTransitionError: If the withdrawal is not open.
        """
        raise NotImplementedError

    @abstractmethod
    def execute_internal_transfer(self, transfer: FundTransfer) -> FundTransfer:
        """Move funds between two accounts and record a Completed transfer."""
        raise NotImplementedError

    @abstractmethod
    def settle_transfer(
        self, transfer_id: str, admin_id: str, processed_at: datetime
    ) -> FundTransfer:
        """Apply a Pending external transfer: debit amount plus fee, credit amount."""
        raise NotImplementedError

    @abstractmethod
    def credit_account(
        self, account_id: str, amount: Decimal, deposit: Optional[Deposit] = None
    ) -> TradingAccount:
        """Credit an account, optionally recording ``deposit`` in the same transaction."""
        raise NotImplementedError

    @abstractmethod
    def debit_account(self, account_id: str, amount: Decimal) -> TradingAccount:
        """Debit an account.

        Raises:
            InsufficientBalanceError: If the balance does not cover the amount.
        """
        raise NotImplementedError


class ReportExporter(ABC):
    """Port for rendering tabular back-office exports."""

    @abstractmethod
    def to_csv(self, rows: list[dict], columns: list[str]) -> str:
        """Render ``rows`` as CSV text with the given column order."""
        raise NotImplementedError

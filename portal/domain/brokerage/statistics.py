"""
Aggregate statistics for the client dashboard and the back office.

Pure functions over already-loaded (and, for admins, already-scoped)
entities. Amounts are summed as ``Decimal`` and rounded to cents.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from portal.domain.brokerage.entities import (
    ZERO,
    AccountType,
    Deposit,
    DepositStatus,
    Document,
    DocumentStatus,
    FundTransfer,
    Trade,
    TradeStatus,
    TradingAccount,
    TransferStatus,
    TransferType,
    User,
    Withdrawal,
    WithdrawalStatus,
    to_money,
)


@dataclass(frozen=True)
class DashboardStats:
    """Client dashboard figures.

    Attributes:
        balance: Sum of balances across the client's accounts.
        equity: Sum of equity across the client's accounts.
        margin: Sum of used margin across the client's accounts.
        profit_loss: Realised profit over closed trades.
        total_accounts: Number of trading accounts.
        open_trades: Number of trades still open.
        total_deposits: Number of completed deposits.
    """

    balance: Decimal
    equity: Decimal
    margin: Decimal
    profit_loss: Decimal
    total_accounts: int
    open_trades: int
    total_deposits: int


@dataclass(frozen=True)
class AccountStats:
    total: int
    live: int
    demo: int
    bonus: int
    enabled: int
    disabled: int
    by_type: dict[str, int] = field(default_factory=dict)
    by_group: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class TransferStats:
    total: int
    internal: int
    external: int
    pending: int
    completed: int
    failed: int
    completed_amount: Decimal


@dataclass(frozen=True)
class AdminStats:
    """Back-office overview, computed over the admin's visible clients."""

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


def _total(amounts) -> Decimal:
    return to_money(sum(amounts, ZERO))


def dashboard_stats(
    accounts: Sequence[TradingAccount],
    trades: Sequence[Trade],
    deposits: Sequence[Deposit],
) -> DashboardStats:
    closed = [t for t in trades if t.status is TradeStatus.CLOSED]
    return DashboardStats(
        balance=_total(a.balance for a in accounts),
        equity=_total(a.equity for a in accounts),
        margin=_total(a.margin for a in accounts),
        profit_loss=_total(t.profit or ZERO for t in closed),
        total_accounts=len(accounts),
        open_trades=sum(1 for t in trades if t.status is TradeStatus.OPEN),
        total_deposits=sum(1 for d in deposits if d.status is DepositStatus.COMPLETED),
    )


def account_stats(accounts: Sequence[TradingAccount]) -> AccountStats:
    by_type = Counter(a.type.value for a in accounts)
    by_group = Counter(a.group.value for a in accounts)
    enabled = sum(1 for a in accounts if a.enabled)
    return AccountStats(
        total=len(accounts),
        live=by_type.get(AccountType.LIVE.value, 0),
        demo=by_type.get(AccountType.DEMO.value, 0),
        bonus=by_type.get(AccountType.BONUS.value, 0),
        enabled=enabled,
        disabled=len(accounts) - enabled,
        by_type=dict(by_type),
        by_group=dict(by_group),
    )


def transfer_stats(transfers: Sequence[FundTransfer]) -> TransferStats:
    statuses = Counter(t.status for t in transfers)
    return TransferStats(
        total=len(transfers),
        internal=sum(1 for t in transfers if t.transfer_type is TransferType.INTERNAL),
        external=sum(1 for t in transfers if t.transfer_type is TransferType.EXTERNAL),
        pending=statuses[TransferStatus.PENDING],
        completed=statuses[TransferStatus.COMPLETED],
        failed=statuses[TransferStatus.FAILED],
        completed_amount=_total(
            t.amount for t in transfers if t.status is TransferStatus.COMPLETED
        ),
    )


def admin_stats(
    users: Sequence[User],
    documents: Sequence[Document],
    accounts: Sequence[TradingAccount],
    deposits: Sequence[Deposit],
    withdrawals: Sequence[Withdrawal],
) -> AdminStats:
    pending_deposits = [d for d in deposits if d.status is DepositStatus.PENDING]
    completed_deposits = [d for d in deposits if d.status is DepositStatus.COMPLETED]
    open_withdrawals = [w for w in withdrawals if w.is_open]
    completed_withdrawals = [
        w for w in withdrawals if w.status is WithdrawalStatus.COMPLETED
    ]
    return AdminStats(
        users_total=len(users),
        users_enabled=sum(1 for u in users if u.enabled),
        users_verified=sum(1 for u in users if u.verified),
        documents_pending=sum(1 for d in documents if d.status is DocumentStatus.PENDING),
        documents_verified=sum(1 for d in documents if d.status is DocumentStatus.VERIFIED),
        documents_rejected=sum(1 for d in documents if d.status is DocumentStatus.REJECTED),
        accounts_total=len(accounts),
        accounts_live=sum(1 for a in accounts if a.type is AccountType.LIVE),
        accounts_demo=sum(1 for a in accounts if a.type is AccountType.DEMO),
        deposits_pending=len(pending_deposits),
        deposits_pending_amount=_total(d.amount for d in pending_deposits),
        deposits_completed=len(completed_deposits),
        deposits_completed_amount=_total(d.amount for d in completed_deposits),
        withdrawals_pending=len(open_withdrawals),
        withdrawals_pending_amount=_total(w.amount for w in open_withdrawals),
        withdrawals_completed=len(completed_withdrawals),
        withdrawals_completed_amount=_total(w.amount for w in completed_withdrawals),
    )

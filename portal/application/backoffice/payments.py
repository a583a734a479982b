"""
Use cases: Deposit and withdrawal processing and exports.

Input: AdminContext / ProcessRequestCommand
Output: Deposit / Withdrawal / lists / CsvExport
Side effects:
    - Approvals move money through the funding ledger, atomically with
      the status change (and the IB commission for deposits).
    - Rejections only change the status.
    - The client is notified and the action is logged.
Failure cases:
    - EntityNotFoundError for records of clients outside the scope.
    - InvalidStatusTransitionError for records already processed.
    - InsufficientBalanceError when a withdrawal can no longer be covered.
    - ValidationError for a withdrawal rejection without a reason.
"""

import logging
from dataclasses import replace
from typing import Optional

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import (
    AdminContext,
    CsvExport,
    ProcessRequestCommand,
)
from portal.application.brokerage.notifications import Notifier
from portal.domain.brokerage.entities import (
    ZERO,
    Deposit,
    DepositStatus,
    NotificationType,
    ReferralStatus,
    WalletType,
    Withdrawal,
    WithdrawalStatus,
    utcnow,
)
from portal.domain.brokerage.errors import (
    EntityNotFoundError,
    InvalidStatusTransitionError,
    ValidationError,
)
from portal.domain.brokerage.ports import (
    CommissionCredit,
    DepositRepository,
    FundingLedger,
    ReportExporter,
    UserRepository,
    WalletRepository,
    WithdrawalRepository,
)

logger = logging.getLogger(__name__)

DEPOSIT_EXPORT_COLUMNS = [
    "id",
    "transaction_id",
    "user_id",
    "account_id",
    "merchant",
    "amount",
    "currency",
    "status",
    "deposit_date",
    "completed_at",
]
WITHDRAWAL_EXPORT_COLUMNS = [
    "id",
    "user_id",
    "account_id",
    "method",
    "amount",
    "currency",
    "bank_name",
    "account_holder_name",
    "status",
    "rejection_reason",
    "created_at",
    "processed_at",
]


def _timestamp(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


class _Scoped:
    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def _check_scope(self, context: AdminContext, user_id: str) -> None:
        context.scope.ensure_covers(self._user_repo.get(user_id), user_id)


class ListAllDepositsUseCase:
    def __init__(self, deposit_repo: DepositRepository) -> None:
        self._deposit_repo = deposit_repo

    def execute(
        self, context: AdminContext, status: Optional[DepositStatus] = None
    ) -> list[Deposit]:
        return self._deposit_repo.list_all(status=status, countries=context.scope.countries)


class ApproveDepositUseCase(_Scoped):
    """Completes a Pending deposit and pays the referrer's commission."""

    def __init__(
        self,
        user_repo: UserRepository,
        deposit_repo: DepositRepository,
        wallet_repo: WalletRepository,
        ledger: FundingLedger,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        super().__init__(user_repo)
        self._deposit_repo = deposit_repo
        self._wallet_repo = wallet_repo
        self._ledger = ledger
        self._notifier = notifier
        self._recorder = recorder

    def execute(self, command: ProcessRequestCommand) -> Deposit:
        deposit = self._deposit_repo.get(command.record_id)
        if deposit is None:
            raise EntityNotFoundError("Deposit", command.record_id)
        self._check_scope(command.context, deposit.user_id)

        completed = self._ledger.complete_deposit(
            deposit.id, utcnow(), commission=self._commission_for(deposit)
        )
        self._notifier.notify(
            deposit.user_id,
            "Deposit Approved",
            f"Your deposit of ${deposit.amount} has been credited to your account.",
            NotificationType.SUCCESS,
        )
        self._recorder.record(
            command.context,
            ActivityAction.APPROVE_DEPOSIT,
            "deposit",
            deposit.id,
            f"Approved deposit of ${deposit.amount}",
            user_id=deposit.user_id,
        )
        return completed

    def _commission_for(self, deposit: Deposit) -> Optional[CommissionCredit]:
        user = self._user_repo.get(deposit.user_id)
        if (
            user is None
            or user.referred_by is None
            or user.referral_status is not ReferralStatus.ACCEPTED
        ):
            return None
        wallet = self._wallet_repo.get_for_user(user.referred_by, WalletType.IB)
        if wallet is None or not wallet.enabled:
            return None
        amount = wallet.commission_for(deposit.amount)
        if amount <= ZERO:
            return None
        return CommissionCredit(wallet_id=wallet.id, amount=amount)


class RejectDepositUseCase(_Scoped):
    def __init__(
        self,
        user_repo: UserRepository,
        deposit_repo: DepositRepository,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        super().__init__(user_repo)
        self._deposit_repo = deposit_repo
        self._notifier = notifier
        self._recorder = recorder

    def execute(self, command: ProcessRequestCommand) -> Deposit:
        deposit = self._deposit_repo.get(command.record_id)
        if deposit is None:
            raise EntityNotFoundError("Deposit", command.record_id)
        self._check_scope(command.context, deposit.user_id)
        if deposit.status is not DepositStatus.PENDING:
            raise InvalidStatusTransitionError(
                "deposit", deposit.status.value, DepositStatus.REJECTED.value
            )

        rejected = replace(deposit, status=DepositStatus.REJECTED)
        self._deposit_repo.update(rejected)
        reason = (command.reason or "").strip()
        self._notifier.notify(
            deposit.user_id,
            "Deposit Rejected",
            f"Your deposit of ${deposit.amount} was rejected."
            + (f" Reason: {reason}" if reason else ""),
            NotificationType.ERROR,
        )
        self._recorder.record(
            command.context,
            ActivityAction.REJECT_DEPOSIT,
            "deposit",
            deposit.id,
            f"Rejected deposit of ${deposit.amount}: {reason or 'N/A'}",
            user_id=deposit.user_id,
        )
        logger.info("Deposit %s rejected", deposit.id)
        return rejected


class ListAllWithdrawalsUseCase:
    def __init__(self, withdrawal_repo: WithdrawalRepository) -> None:
        self._withdrawal_repo = withdrawal_repo

    def execute(
        self, context: AdminContext, status: Optional[WithdrawalStatus] = None
    ) -> list[Withdrawal]:
        return self._withdrawal_repo.list_all(status=status, countries=context.scope.countries)


class ApproveWithdrawalUseCase(_Scoped):
    """Completes an open withdrawal, debiting the account."""

    def __init__(
        self,
        user_repo: UserRepository,
        withdrawal_repo: WithdrawalRepository,
        ledger: FundingLedger,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        super().__init__(user_repo)
        self._withdrawal_repo = withdrawal_repo
        self._ledger = ledger
        self._notifier = notifier
        self._recorder = recorder

    def execute(self, command: ProcessRequestCommand) -> Withdrawal:
        withdrawal = self._withdrawal_repo.get(command.record_id)
        if withdrawal is None:
            raise EntityNotFoundError("Withdrawal", command.record_id)
        self._check_scope(command.context, withdrawal.user_id)

        completed = self._ledger.complete_withdrawal(withdrawal.id, utcnow())
        self._notifier.notify(
            withdrawal.user_id,
            "Withdrawal Completed",
            f"Your withdrawal of ${withdrawal.amount} has been processed.",
            NotificationType.SUCCESS,
        )
        self._recorder.record(
            command.context,
            ActivityAction.APPROVE_WITHDRAWAL,
            "withdrawal",
            withdrawal.id,
            f"Approved withdrawal of ${withdrawal.amount}",
            user_id=withdrawal.user_id,
        )
        return completed


class RejectWithdrawalUseCase(_Scoped):
    def __init__(
        self,
        user_repo: UserRepository,
        withdrawal_repo: WithdrawalRepository,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        super().__init__(user_repo)
        self._withdrawal_repo = withdrawal_repo
        self._notifier = notifier
        self._recorder = recorder

    def execute(self, command: ProcessRequestCommand) -> Withdrawal:
        reason = (command.reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
        withdrawal = self._withdrawal_repo.get(command.record_id)
        if withdrawal is None:
            raise EntityNotFoundError("Withdrawal", command.record_id)
        self._check_scope(command.context, withdrawal.user_id)
        if not withdrawal.is_open:
            raise InvalidStatusTransitionError(
                "withdrawal", withdrawal.status.value, WithdrawalStatus.REJECTED.value
            )

        rejected = replace(
            withdrawal,
            status=WithdrawalStatus.REJECTED,
            rejection_reason=reason,
            processed_at=utcnow(),
        )
        self._withdrawal_repo.update(rejected)
        self._notifier.notify(
            withdrawal.user_id,
            "Withdrawal Rejected",
            f"Your withdrawal of ${withdrawal.amount} was rejected. Reason: {reason}",
            NotificationType.ERROR,
        )
        self._recorder.record(
            command.context,
            ActivityAction.REJECT_WITHDRAWAL,
            "withdrawal",
            withdrawal.id,
            f"Rejected withdrawal of ${withdrawal.amount}: {reason}",
            user_id=withdrawal.user_id,
        )
        logger.info("Withdrawal %s rejected", withdrawal.id)
        return rejected


class ExportDepositsUseCase:
    """Renders the admin's visible deposits as CSV."""

    def __init__(self, deposit_repo: DepositRepository, exporter: ReportExporter) -> None:
        self._deposit_repo = deposit_repo
        self._exporter = exporter

    def execute(
        self, context: AdminContext, status: Optional[DepositStatus] = None
    ) -> CsvExport:
        rows = [
            {
                "id": d.id,
                "transaction_id": d.transaction_id,
                "user_id": d.user_id,
                "account_id": d.account_id,
                "merchant": d.merchant,
                "amount": str(d.amount),
                "currency": d.currency,
                "status": d.status.value,
                "deposit_date": _timestamp(d.deposit_date),
                "completed_at": _timestamp(d.completed_at),
            }
            for d in self._deposit_repo.list_all(status=status, countries=context.scope.countries)
        ]
        return CsvExport(
            filename=f"deposits-{utcnow():%Y%m%d}.csv",
            content=self._exporter.to_csv(rows, DEPOSIT_EXPORT_COLUMNS),
        )


class ExportWithdrawalsUseCase:
    def __init__(self, withdrawal_repo: WithdrawalRepository, exporter: ReportExporter) -> None:
        self._withdrawal_repo = withdrawal_repo
        self._exporter = exporter

    def execute(
        self, context: AdminContext, status: Optional[WithdrawalStatus] = None
    ) -> CsvExport:
        rows = [
            {
                "id": w.id,
                "user_id": w.user_id,
                "account_id": w.account_id,
                "method": w.method,
                "amount": str(w.amount),
                "currency": w.currency,
                "bank_name": w.bank_name,
                "account_holder_name": w.account_holder_name,
                "status": w.status.value,
                "rejection_reason": w.rejection_reason,
                "created_at": _timestamp(w.created_at),
                "processed_at": _timestamp(w.processed_at),
            }
            for w in self._withdrawal_repo.list_all(
                status=status, countries=context.scope.countries
            )
        ]
        return CsvExport(
            filename=f"withdrawals-{utcnow():%Y%m%d}.csv",
            content=self._exporter.to_csv(rows, WITHDRAWAL_EXPORT_COLUMNS),
        )

"""
Use cases: Back-office view and settlement of fund transfers.

Input: AdminContext / ProcessRequestCommand
Output: list[FundTransfer] / TransferStats / FundTransfer
Side effects: Approval settles the transfer through the funding ledger;
    rejection marks it Failed. Both notify the client and are logged.
Failure cases:
    - EntityNotFoundError for transfers of clients outside the scope.
    - InvalidStatusTransitionError for transfers that are not Pending.
    - InsufficientBalanceError when the sender can no longer cover
      amount plus fee.
"""

import logging
from dataclasses import replace

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import AdminContext, ProcessRequestCommand
from portal.application.brokerage.notifications import Notifier
from portal.domain.brokerage.entities import (
    FundTransfer,
    NotificationType,
    TransferStatus,
    utcnow,
)
from portal.domain.brokerage.errors import EntityNotFoundError, InvalidStatusTransitionError
from portal.domain.brokerage.ports import (
    FundTransferRepository,
    FundingLedger,
    UserRepository,
)
from portal.domain.brokerage.statistics import TransferStats, transfer_stats

logger = logging.getLogger(__name__)


class ListAllTransfersUseCase:
    def __init__(self, transfer_repo: FundTransferRepository) -> None:
        self._transfer_repo = transfer_repo

    def execute(self, context: AdminContext) -> list[FundTransfer]:
        return self._transfer_repo.list_all(countries=context.scope.countries)


class TransferStatsUseCase:
    def __init__(self, transfer_repo: FundTransferRepository) -> None:
        self._transfer_repo = transfer_repo

    def execute(self, context: AdminContext) -> TransferStats:
        return transfer_stats(self._transfer_repo.list_all(countries=context.scope.countries))


class _TransferDecision:
    def __init__(
        self,
        user_repo: UserRepository,
        transfer_repo: FundTransferRepository,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        self._user_repo = user_repo
        self._transfer_repo = transfer_repo
        self._notifier = notifier
        self._recorder = recorder

    def _load(self, command: ProcessRequestCommand) -> FundTransfer:
        transfer = self._transfer_repo.get(command.record_id)
        if transfer is None:
            raise EntityNotFoundError("FundTransfer", command.record_id)
        command.context.scope.ensure_covers(
            self._user_repo.get(transfer.user_id), transfer.user_id
        )
        return transfer


class ApproveTransferUseCase(_TransferDecision):
    def __init__(
        self,
        user_repo: UserRepository,
        transfer_repo: FundTransferRepository,
        ledger: FundingLedger,
        notifier: Notifier,
        recorder: ActivityRecorder,
    ) -> None:
        super().__init__(user_repo, transfer_repo, notifier, recorder)
        self._ledger = ledger

    def execute(self, command: ProcessRequestCommand) -> FundTransfer:
        transfer = self._load(command)
        settled = self._ledger.settle_transfer(transfer.id, command.context.admin.id, utcnow())
        self._notifier.notify(
            transfer.user_id,
            "Transfer Completed",
            f"Your transfer of ${transfer.amount} has been completed.",
            NotificationType.SUCCESS,
        )
        self._recorder.record(
            command.context,
            ActivityAction.APPROVE_TRANSFER,
            "fund_transfer",
            transfer.id,
            f"Approved transfer of ${transfer.amount} (fee ${transfer.fee})",
            user_id=transfer.user_id,
        )
        return settled


class RejectTransferUseCase(_TransferDecision):
    def execute(self, command: ProcessRequestCommand) -> FundTransfer:
        transfer = self._load(command)
        if transfer.status is not TransferStatus.PENDING:
            raise InvalidStatusTransitionError(
                "transfer", transfer.status.value, TransferStatus.FAILED.value
            )
        reason = (command.reason or "").strip() or None
        failed = replace(
            transfer,
            status=TransferStatus.FAILED,
            notes=reason if reason is not None else transfer.notes,
            processed_by=command.context.admin.id,
            processed_at=utcnow(),
        )
        self._transfer_repo.update(failed)
        self._notifier.notify(
            transfer.user_id,
            "Transfer Rejected",
            f"Your transfer of ${transfer.amount} was rejected."
            + (f" Reason: {reason}" if reason else ""),
            NotificationType.ERROR,
        )
        self._recorder.record(
            command.context,
            ActivityAction.REJECT_TRANSFER,
            "fund_transfer",
            transfer.id,
            f"Rejected transfer of ${transfer.amount}: {reason or 'N/A'}",
            user_id=transfer.user_id,
        )
        logger.info("Transfer %s rejected", transfer.id)
        return failed

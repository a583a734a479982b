"""
Use cases: Client fund transfers.

Input: InternalTransferCommand / ExternalTransferCommand / user id
Output: FundTransfer / list[FundTransfer]
Side effects:
    - Internal: funds move at once through the funding ledger.
    - External: a Pending transfer is recorded for back-office approval
      and the client is notified.
Failure cases:
    - InvalidAmountError for a non-positive amount.
    - ValidationError for a transfer to the same account or to one of
      the sender's own accounts as an external transfer.
    - InsufficientBalanceError when the source cannot cover the amount
      (plus fee, for external transfers).
    - EntityNotFoundError / AccountDisabledError for either account.
"""

import logging
from decimal import Decimal

from portal.application.brokerage.dtos import (
    ExternalTransferCommand,
    InternalTransferCommand,
)
from portal.application.brokerage.lookups import require_owned_account
from portal.application.brokerage.notifications import Notifier
from portal.domain.brokerage.entities import (
    ZERO,
    FundTransfer,
    NotificationType,
    TransferStatus,
    TransferType,
    new_id,
    to_money,
    utcnow,
)
from portal.domain.brokerage.errors import (
    AccountDisabledError,
    EntityNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    ValidationError,
)
from portal.domain.brokerage.ports import (
    FundTransferRepository,
    FundingLedger,
    TradingAccountRepository,
)

logger = logging.getLogger(__name__)


def _positive(amount: Decimal) -> Decimal:
    amount = to_money(amount)
    if amount <= ZERO:
        raise InvalidAmountError(str(amount))
    return amount


class InternalTransferUseCase:
    """Moves funds between two accounts of the same client atomically."""

    def __init__(self, account_repo: TradingAccountRepository, ledger: FundingLedger) -> None:
        self._account_repo = account_repo
        self._ledger = ledger

    def execute(self, command: InternalTransferCommand) -> FundTransfer:
        amount = _positive(command.amount)
        if command.from_account_id == command.to_account_id:
            raise ValidationError("Source and destination accounts must differ")
        source = require_owned_account(
            self._account_repo, command.user_id, command.from_account_id
        )
        require_owned_account(self._account_repo, command.user_id, command.to_account_id)
        if source.balance < amount:
            raise InsufficientBalanceError(
                account_id=source.id, required=str(amount), available=str(source.balance)
            )

        transfer = FundTransfer(
            id=new_id(),
            user_id=command.user_id,
            from_account_id=command.from_account_id,
            to_account_id=command.to_account_id,
            amount=amount,
            transfer_type=TransferType.INTERNAL,
            currency=source.currency,
            status=TransferStatus.PENDING,
            notes=command.notes,
            created_at=utcnow(),
        )
        return self._ledger.execute_internal_transfer(transfer)


class ExternalTransferUseCase:
    """Records a transfer to another client's account.

    The sender pays ``amount * fee_rate`` on top of the amount. Funds
    move only when the back office approves the transfer.
    """

    def __init__(
        self,
        account_repo: TradingAccountRepository,
        transfer_repo: FundTransferRepository,
        notifier: Notifier,
        fee_rate: Decimal,
    ) -> None:
        self._account_repo = account_repo
        self._transfer_repo = transfer_repo
        self._notifier = notifier
        self._fee_rate = fee_rate

    def execute(self, command: ExternalTransferCommand) -> FundTransfer:
        amount = _positive(command.amount)
        source = require_owned_account(
            self._account_repo, command.user_id, command.from_account_id
        )
        destination = self._account_repo.get_by_number(command.to_account_number.strip())
        if destination is None:
            raise EntityNotFoundError("TradingAccount", command.to_account_number)
        if destination.user_id == command.user_id:
            raise ValidationError("Use an internal transfer between your own accounts")
        if not destination.enabled:
            raise AccountDisabledError("TradingAccount", destination.account_number)

        fee = to_money(amount * self._fee_rate)
        if source.balance < amount + fee:
            raise InsufficientBalanceError(
                account_id=source.id,
                required=str(amount + fee),
                available=str(source.balance),
            )

        transfer = FundTransfer(
            id=new_id(),
            user_id=command.user_id,
            from_account_id=source.id,
            to_account_id=destination.id,
            amount=amount,
            transfer_type=TransferType.EXTERNAL,
            fee=fee,
            currency=source.currency,
            status=TransferStatus.PENDING,
            notes=command.notes,
            created_at=utcnow(),
        )
        self._transfer_repo.add(transfer)
        self._notifier.notify(
            command.user_id,
            "Transfer Submitted",
            f"Your transfer of ${amount} to account {destination.account_number} "
            f"(fee ${fee}) is pending approval.",
            NotificationType.INFO,
        )
        logger.info(
            "External transfer requested: id=%s amount=%s fee=%s", transfer.id, amount, fee
        )
        return transfer


class ListTransfersUseCase:
    def __init__(self, transfer_repo: FundTransferRepository) -> None:
        self._transfer_repo = transfer_repo

    def execute(self, user_id: str) -> list[FundTransfer]:
        return self._transfer_repo.list_for_user(user_id)

"""
Use cases: Client deposit and withdrawal requests.

Input: RequestDepositCommand / RequestWithdrawalCommand / user id
Output: Deposit / Withdrawal / lists of either
Side effects: Inserts the request and a notification for the client.
Failure cases:
    - InvalidAmountError below the minimum deposit or for a non-positive
      withdrawal.
    - InsufficientBalanceError when a withdrawal exceeds the balance.
    - EntityNotFoundError / AccountDisabledError for the target account.

Requests never touch balances. The back office completes them through
the funding ledger.
"""

import logging
from decimal import Decimal

from portal.application.brokerage.dtos import (
    RequestDepositCommand,
    RequestWithdrawalCommand,
)
from portal.application.brokerage.lookups import require_owned_account
from portal.application.brokerage.notifications import Notifier
from portal.domain.brokerage.credentials import transaction_id
from portal.domain.brokerage.entities import (
    ZERO,
    Deposit,
    DepositStatus,
    NotificationType,
    Withdrawal,
    WithdrawalStatus,
    new_id,
    to_money,
    utcnow,
)
from portal.domain.brokerage.errors import InsufficientBalanceError, InvalidAmountError
from portal.domain.brokerage.ports import (
    DepositRepository,
    TradingAccountRepository,
    WithdrawalRepository,
)

logger = logging.getLogger(__name__)


class RequestDepositUseCase:
    def __init__(
        self,
        account_repo: TradingAccountRepository,
        deposit_repo: DepositRepository,
        notifier: Notifier,
        min_amount: Decimal,
    ) -> None:
        self._account_repo = account_repo
        self._deposit_repo = deposit_repo
        self._notifier = notifier
        self._min_amount = to_money(min_amount)

    def execute(self, command: RequestDepositCommand) -> Deposit:
        amount = to_money(command.amount)
        if amount < self._min_amount:
            raise InvalidAmountError(str(amount), minimum=str(self._min_amount))
        account = require_owned_account(
            self._account_repo, command.user_id, command.account_id
        )

        now = utcnow()
        deposit = Deposit(
            id=new_id(),
            user_id=command.user_id,
            account_id=account.id,
            merchant=command.merchant,
            amount=amount,
            currency=account.currency,
            status=DepositStatus.PENDING,
            transaction_id=transaction_id(now),
            verification_file=command.verification_file,
            deposit_date=now,
            created_at=now,
        )
        self._deposit_repo.add(deposit)
        self._notifier.notify(
            command.user_id,
            "Deposit Initiated",
            f"Your deposit of ${amount} via {command.merchant} is being processed.",
            NotificationType.INFO,
        )
        logger.info(
            "Deposit requested: id=%s account=%s amount=%s", deposit.id, account.id, amount
        )
        return deposit


class ListDepositsUseCase:
    def __init__(self, deposit_repo: DepositRepository) -> None:
        self._deposit_repo = deposit_repo

    def execute(self, user_id: str) -> list[Deposit]:
        return self._deposit_repo.list_for_user(user_id)


class RequestWithdrawalUseCase:
    """Records a withdrawal request after checking the current balance.

    The balance is checked again, under a row lock, when the back
    office completes the withdrawal.
    """

    def __init__(
        self,
        account_repo: TradingAccountRepository,
        withdrawal_repo: WithdrawalRepository,
        notifier: Notifier,
    ) -> None:
        self._account_repo = account_repo
        self._withdrawal_repo = withdrawal_repo
        self._notifier = notifier

    def execute(self, command: RequestWithdrawalCommand) -> Withdrawal:
        amount = to_money(command.amount)
        if amount <= ZERO:
            raise InvalidAmountError(str(amount))
        account = require_owned_account(
            self._account_repo, command.user_id, command.account_id
        )
        if amount > account.balance:
            raise InsufficientBalanceError(
                account_id=account.id, required=str(amount), available=str(account.balance)
            )

        withdrawal = Withdrawal(
            id=new_id(),
            user_id=command.user_id,
            account_id=account.id,
            method=command.method,
            amount=amount,
            currency=account.currency,
            bank_name=command.bank_name,
            account_number=command.account_number,
            account_holder_name=command.account_holder_name,
            swift_code=command.swift_code,
            status=WithdrawalStatus.PENDING,
            created_at=utcnow(),
        )
        self._withdrawal_repo.add(withdrawal)
        self._notifier.notify(
            command.user_id,
            "Withdrawal Request Received",
            f"Your withdrawal request of ${amount} has been received and is pending review.",
            NotificationType.INFO,
        )
        logger.info(
            "Withdrawal requested: id=%s account=%s amount=%s",
            withdrawal.id,
            account.id,
            amount,
        )
        return withdrawal


class ListWithdrawalsUseCase:
    def __init__(self, withdrawal_repo: WithdrawalRepository) -> None:
        self._withdrawal_repo = withdrawal_repo

    def execute(self, user_id: str) -> list[Withdrawal]:
        return self._withdrawal_repo.list_for_user(user_id)

"""
Use cases: Client administration.

Input: AdminContext, user ids, FundsAdjustmentCommand
Output: User / list[User] / TradingAccount
Side effects:
    - Toggling flips users.enabled.
    - Fund adjustments change the account balance through the ledger;
      credits also record a Completed "Admin Credit" deposit.
    - Every change appends to the activity log.
Failure cases:
    - EntityNotFoundError for clients outside the admin's scope.
    - PermissionDeniedError for fund adjustments and impersonation by
      anyone but a super admin.
    - AccountOwnershipError when the account is not the client's.
    - InvalidAmountError / InsufficientBalanceError for bad amounts.
"""

import logging
from dataclasses import replace

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import AdminContext, FundsAdjustmentCommand
from portal.domain.brokerage.access import require_super_admin
from portal.domain.brokerage.credentials import transaction_id
from portal.domain.brokerage.entities import (
    ZERO,
    Deposit,
    DepositStatus,
    TradingAccount,
    User,
    new_id,
    to_money,
    utcnow,
)
from portal.domain.brokerage.errors import (
    AccountOwnershipError,
    EntityNotFoundError,
    InvalidAmountError,
)
from portal.domain.brokerage.ports import (
    FundingLedger,
    TradingAccountRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

ADMIN_CREDIT_MERCHANT = "Admin Credit"


class ListUsersUseCase:
    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def execute(self, context: AdminContext) -> list[User]:
        return self._user_repo.list_all(countries=context.scope.countries)


class GetUserUseCase:
    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def execute(self, context: AdminContext, user_id: str) -> User:
        return context.scope.ensure_covers(self._user_repo.get(user_id), user_id)


class ToggleUserUseCase:
    """Enables a disabled client or disables an enabled one."""

    def __init__(self, user_repo: UserRepository, recorder: ActivityRecorder) -> None:
        self._user_repo = user_repo
        self._recorder = recorder

    def execute(self, context: AdminContext, user_id: str) -> User:
        user = context.scope.ensure_covers(self._user_repo.get(user_id), user_id)
        updated = replace(user, enabled=not user.enabled)
        self._user_repo.update(updated)

        state = "enabled" if updated.enabled else "disabled"
        self._recorder.record(
            context,
            ActivityAction.ENABLE_USER if updated.enabled else ActivityAction.DISABLE_USER,
            "user",
            user.id,
            f"User {state}: {user.email}",
            user_id=user.id,
        )
        logger.info("User %s %s by admin %s", user.id, state, context.admin.username)
        return updated


class _FundsAdjustment:
    def __init__(
        self,
        user_repo: UserRepository,
        account_repo: TradingAccountRepository,
        ledger: FundingLedger,
        recorder: ActivityRecorder,
    ) -> None:
        self._user_repo = user_repo
        self._account_repo = account_repo
        self._ledger = ledger
        self._recorder = recorder

    def _prepare(self, command: FundsAdjustmentCommand) -> tuple[User, TradingAccount]:
        require_super_admin(command.context.admin)
        amount = to_money(command.amount)
        if amount <= ZERO:
            raise InvalidAmountError(str(amount))
        user = self._user_repo.get(command.user_id)
        if user is None:
            raise EntityNotFoundError("User", command.user_id)
        account = self._account_repo.get(command.account_id)
        if account is None:
            raise EntityNotFoundError("TradingAccount", command.account_id)
        if account.user_id != user.id:
            raise AccountOwnershipError(account.id, user.id)
        return user, account


class AddFundsUseCase(_FundsAdjustment):
    """Credits a client account and records it as a completed deposit."""

    def execute(self, command: FundsAdjustmentCommand) -> TradingAccount:
        user, account = self._prepare(command)
        amount = to_money(command.amount)
        now = utcnow()
        deposit = Deposit(
            id=new_id(),
            user_id=user.id,
            account_id=account.id,
            merchant=ADMIN_CREDIT_MERCHANT,
            amount=amount,
            currency=account.currency,
            status=DepositStatus.COMPLETED,
            transaction_id=transaction_id(now),
            deposit_date=now,
            created_at=now,
            completed_at=now,
        )
        updated = self._ledger.credit_account(account.id, amount, deposit=deposit)
        self._recorder.record(
            command.context,
            ActivityAction.ADD_FUNDS,
            "user",
            user.id,
            f"Added ${amount} to account {account.account_number}. "
            f"Reason: {command.reason or 'N/A'}",
            user_id=user.id,
        )
        logger.info("Admin credit of %s on account %s", amount, account.id)
        return updated


class RemoveFundsUseCase(_FundsAdjustment):
    """Debits a client account. The balance must cover the amount."""

    def execute(self, command: FundsAdjustmentCommand) -> TradingAccount:
        user, account = self._prepare(command)
        amount = to_money(command.amount)
        updated = self._ledger.debit_account(account.id, amount)
        self._recorder.record(
            command.context,
            ActivityAction.REMOVE_FUNDS,
            "user",
            user.id,
            f"Removed ${amount} from account {account.account_number}. "
            f"Reason: {command.reason or 'N/A'}",
            user_id=user.id,
        )
        logger.info("Admin debit of %s on account %s", amount, account.id)
        return updated


class ImpersonateUserUseCase:
    """Authorises a super admin to act as a client.

    The caller moves the session; this use case checks the role and
    the client, and writes the audit entry.
    """

    def __init__(self, user_repo: UserRepository, recorder: ActivityRecorder) -> None:
        self._user_repo = user_repo
        self._recorder = recorder

    def execute(self, context: AdminContext, user_id: str) -> User:
        require_super_admin(context.admin)
        user = self._user_repo.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        self._recorder.record(
            context,
            ActivityAction.IMPERSONATE_USER,
            "user",
            user.id,
            f"Admin impersonating user {user.email}",
            user_id=user.id,
        )
        logger.info("Admin %s impersonating user %s", context.admin.username, user.id)
        return user


class StopImpersonationUseCase:
    def __init__(self, recorder: ActivityRecorder) -> None:
        self._recorder = recorder

    def execute(self, context: AdminContext, user_id: str) -> None:
        self._recorder.record(
            context,
            ActivityAction.STOP_IMPERSONATION,
            "user",
            user_id,
            "Admin stopped impersonating user",
            user_id=user_id,
        )

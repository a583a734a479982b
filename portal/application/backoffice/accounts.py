"""
Use cases: Back-office view of trading accounts.

Input: AdminContext, account id
Output: list[TradingAccount] / TradingAccount / AccountStats
Side effects: Toggling flips the account's enabled flag and is logged.
Failure cases: EntityNotFoundError for accounts outside the scope.
"""

import logging
from dataclasses import replace

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import AdminContext
from portal.domain.brokerage.entities import TradingAccount
from portal.domain.brokerage.errors import EntityNotFoundError
from portal.domain.brokerage.ports import TradingAccountRepository, UserRepository
from portal.domain.brokerage.statistics import AccountStats, account_stats

logger = logging.getLogger(__name__)


class ListAllTradingAccountsUseCase:
    def __init__(self, account_repo: TradingAccountRepository) -> None:
        self._account_repo = account_repo

    def execute(self, context: AdminContext) -> list[TradingAccount]:
        return self._account_repo.list_all(countries=context.scope.countries)


class AccountStatsUseCase:
    def __init__(self, account_repo: TradingAccountRepository) -> None:
        self._account_repo = account_repo

    def execute(self, context: AdminContext) -> AccountStats:
        return account_stats(self._account_repo.list_all(countries=context.scope.countries))


class ToggleTradingAccountUseCase:
    def __init__(
        self,
        user_repo: UserRepository,
        account_repo: TradingAccountRepository,
        recorder: ActivityRecorder,
    ) -> None:
        self._user_repo = user_repo
        self._account_repo = account_repo
        self._recorder = recorder

    def execute(self, context: AdminContext, account_id: str) -> TradingAccount:
        account = self._account_repo.get(account_id)
        if account is None:
            raise EntityNotFoundError("TradingAccount", account_id)
        owner = self._user_repo.get(account.user_id)
        if owner is None or not context.scope.covers(owner):
            raise EntityNotFoundError("TradingAccount", account_id)

        updated = replace(account, enabled=not account.enabled)
        self._account_repo.update_settings(updated)
        state = "enabled" if updated.enabled else "disabled"
        self._recorder.record(
            context,
            ActivityAction.ENABLE_TRADING_ACCOUNT
            if updated.enabled
            else ActivityAction.DISABLE_TRADING_ACCOUNT,
            "trading_account",
            account.id,
            f"Trading account {account.account_number} {state}",
            user_id=account.user_id,
        )
        logger.info("Trading account %s %s", account.account_number, state)
        return updated

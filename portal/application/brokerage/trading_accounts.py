"""
Use cases: Trading accounts and trading history.

Input: OpenTradingAccountCommand / ChangeLeverageCommand /
       TradingHistoryQuery / RecordTradeCommand
Output: TradingAccount / list[Trade] / Trade
Side effects: Inserts trading account and trade rows; updates leverage.
Failure cases:
    - ValidationError for a leverage outside the offered options.
    - AccountDisabledError when a disabled client opens an account.
    - EntityNotFoundError for an account the client does not own.
"""

import logging
from dataclasses import replace

from portal.application.brokerage.dtos import (
    ChangeLeverageCommand,
    OpenTradingAccountCommand,
    RecordTradeCommand,
    TradingHistoryQuery,
)
from portal.application.brokerage.lookups import require_owned_account, require_user
from portal.domain.brokerage.credentials import account_number_candidate, account_password
from portal.domain.brokerage.entities import (
    LEVERAGE_OPTIONS,
    Trade,
    TradingAccount,
    new_id,
    to_money,
    utcnow,
)
from portal.domain.brokerage.errors import AccountDisabledError, ValidationError
from portal.domain.brokerage.ports import (
    TradeRepository,
    TradingAccountRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

MAX_ACCOUNT_NUMBER_ATTEMPTS = 20


def _check_leverage(leverage: str) -> None:
    if leverage not in LEVERAGE_OPTIONS:
        raise ValidationError(
            f"Leverage must be one of {', '.join(LEVERAGE_OPTIONS)}, got {leverage}"
        )


class ListTradingAccountsUseCase:
    def __init__(self, account_repo: TradingAccountRepository) -> None:
        self._account_repo = account_repo

    def execute(self, user_id: str) -> list[TradingAccount]:
        return self._account_repo.list_for_user(user_id)


class OpenTradingAccountUseCase:
    """Opens a new trading account for a client.

    The account gets a unique 8-digit login and a random 8-character
    password, which the caller shows to the client once.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        account_repo: TradingAccountRepository,
        server: str,
    ) -> None:
        self._user_repo = user_repo
        self._account_repo = account_repo
        self._server = server

    def execute(self, command: OpenTradingAccountCommand) -> TradingAccount:
        _check_leverage(command.leverage)
        user = require_user(self._user_repo, command.user_id)
        if not user.enabled:
            raise AccountDisabledError("User", user.id)

        account = TradingAccount(
            id=new_id(),
            user_id=user.id,
            account_number=self._free_account_number(),
            password=account_password(),
            type=command.type,
            group=command.group,
            leverage=command.leverage,
            server=self._server,
            created_at=utcnow(),
        )
        self._account_repo.add(account)
        logger.info(
            "Trading account opened: user=%s number=%s type=%s group=%s",
            user.id,
            account.account_number,
            account.type.value,
            account.group.value,
        )
        return account

    def _free_account_number(self) -> str:
        for _ in range(MAX_ACCOUNT_NUMBER_ATTEMPTS):
            candidate = account_number_candidate()
            if self._account_repo.get_by_number(candidate) is None:
                return candidate
        raise ValidationError("Could not allocate an account number, try again")


class ChangeLeverageUseCase:
    def __init__(self, account_repo: TradingAccountRepository) -> None:
        self._account_repo = account_repo

    def execute(self, command: ChangeLeverageCommand) -> TradingAccount:
        _check_leverage(command.leverage)
        account = require_owned_account(
            self._account_repo, command.user_id, command.account_id
        )
        updated = replace(account, leverage=command.leverage)
        self._account_repo.update_settings(updated)
        logger.info("Leverage of account %s set to %s", account.id, command.leverage)
        return updated


class GetTradingHistoryUseCase:
    """Returns a client's trades, newest first."""

    def __init__(
        self, account_repo: TradingAccountRepository, trade_repo: TradeRepository
    ) -> None:
        self._account_repo = account_repo
        self._trade_repo = trade_repo

    def execute(self, query: TradingHistoryQuery) -> list[Trade]:
        if query.account_id is not None:
            require_owned_account(
                self._account_repo, query.user_id, query.account_id, enabled=False
            )
        return self._trade_repo.list_for_user(query.user_id, query.account_id)


class RecordTradeUseCase:
    """Stores a trade in a client's history (seeding, platform sync)."""

    def __init__(
        self, account_repo: TradingAccountRepository, trade_repo: TradeRepository
    ) -> None:
        self._account_repo = account_repo
        self._trade_repo = trade_repo

    def execute(self, command: RecordTradeCommand) -> Trade:
        require_owned_account(
            self._account_repo, command.user_id, command.account_id, enabled=False
        )
        trade = Trade(
            id=new_id(),
            user_id=command.user_id,
            account_id=command.account_id,
            ticket_id=command.ticket_id,
            symbol=command.symbol,
            side=command.side,
            volume=command.volume,
            open_price=command.open_price,
            status=command.status,
            close_price=command.close_price,
            stop_loss=command.stop_loss,
            take_profit=command.take_profit,
            profit=None if command.profit is None else to_money(command.profit),
            open_time=command.open_time or utcnow(),
            close_time=command.close_time,
        )
        self._trade_repo.add(trade)
        logger.info("Trade %s recorded on account %s", trade.ticket_id, trade.account_id)
        return trade

"""
Adapters: Trading accounts and trading history.

Balance columns are written only by the funding ledger; this adapter
inserts new accounts and updates their settings.
"""

from collections.abc import Collection
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine

from portal.domain.brokerage.entities import Trade, TradingAccount
from portal.domain.brokerage.ports import TradeRepository, TradingAccountRepository
from portal.infrastructure.brokerage.mappers import (
    account_to_values,
    row_to_account,
    row_to_trade,
    trade_to_values,
)
from portal.infrastructure.brokerage.scoping import restrict_to_countries
from portal.infrastructure.database.schema import trading_accounts, trading_history


class TradingAccountRepositoryAdapter(TradingAccountRepository):
    """SQL implementation of TradingAccountRepository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _one(self, condition) -> Optional[TradingAccount]:
        with self._engine.connect() as conn:
            row = conn.execute(select(trading_accounts).where(condition)).first()
        return row_to_account(row) if row else None

    def get(self, account_id: str) -> Optional[TradingAccount]:
        return self._one(trading_accounts.c.id == account_id)

    def get_by_number(self, account_number: str) -> Optional[TradingAccount]:
        return self._one(trading_accounts.c.account_id == account_number)

    def list_for_user(self, user_id: str) -> list[TradingAccount]:
        stmt = (
            select(trading_accounts)
            .where(trading_accounts.c.user_id == user_id)
            .order_by(trading_accounts.c.created_at.desc())
        )
        with self._engine.connect() as conn:
            return [row_to_account(row) for row in conn.execute(stmt)]

    def list_all(self, countries: Optional[Collection[str]] = None) -> list[TradingAccount]:
        stmt = select(trading_accounts).order_by(trading_accounts.c.created_at.desc())
        stmt = restrict_to_countries(stmt, trading_accounts.c.user_id, countries)
        with self._engine.connect() as conn:
            return [row_to_account(row) for row in conn.execute(stmt)]

    def add(self, account: TradingAccount) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(trading_accounts).values(**account_to_values(account)))

    def update_settings(self, account: TradingAccount) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(trading_accounts)
                .where(trading_accounts.c.id == account.id)
                .values(leverage=account.leverage, enabled=account.enabled)
            )


class TradeRepositoryAdapter(TradeRepository):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def add(self, trade: Trade) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(trading_history).values(**trade_to_values(trade)))

    def list_for_user(self, user_id: str, account_id: Optional[str] = None) -> list[Trade]:
        stmt = (
            select(trading_history)
            .where(trading_history.c.user_id == user_id)
            .order_by(trading_history.c.open_time.desc())
        )
        if account_id is not None:
            stmt = stmt.where(trading_history.c.account_id == account_id)
        with self._engine.connect() as conn:
            return [row_to_trade(row) for row in conn.execute(stmt)]

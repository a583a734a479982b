"""
Adapter: IB/CB commission wallets.

Commission credits are applied by the funding ledger together with
the deposit that earned them.
"""

from typing import Optional

from sqlalchemy import insert, select
from sqlalchemy.engine import Engine

from portal.domain.brokerage.entities import Wallet, WalletType
from portal.domain.brokerage.ports import WalletRepository
from portal.infrastructure.brokerage.mappers import row_to_wallet, wallet_to_values
from portal.infrastructure.database.schema import ib_cb_wallets


class WalletRepositoryAdapter(WalletRepository):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get_for_user(self, user_id: str, wallet_type: WalletType) -> Optional[Wallet]:
        stmt = select(ib_cb_wallets).where(
            ib_cb_wallets.c.user_id == user_id,
            ib_cb_wallets.c.wallet_type == wallet_type.value,
        )
        with self._engine.connect() as conn:
            row = conn.execute(stmt).first()
        return row_to_wallet(row) if row else None

    def add(self, wallet: Wallet) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(ib_cb_wallets).values(**wallet_to_values(wallet)))

    def list_all(self) -> list[Wallet]:
        stmt = select(ib_cb_wallets).order_by(ib_cb_wallets.c.created_at.desc())
        with self._engine.connect() as conn:
            return [row_to_wallet(row) for row in conn.execute(stmt)]

"""
Adapters: Deposits, withdrawals and fund transfers.

These adapters record requests and review outcomes that do not move
money. Completions that change balances go through
``SqlFundingLedger``. A review outcome is written only while the record
is still open; the status check and the write are one conditional
``UPDATE``, so a decision that lost a race with an approval fails
instead of overwriting it.
"""

from collections.abc import Collection
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection, Engine

from portal.domain.brokerage.entities import (
    Deposit,
    DepositStatus,
    FundTransfer,
    TransferStatus,
    Withdrawal,
    WithdrawalStatus,
)
from portal.domain.brokerage.errors import EntityNotFoundError, InvalidStatusTransitionError
from portal.domain.brokerage.ports import (
    DepositRepository,
    FundTransferRepository,
    WithdrawalRepository,
)
from portal.infrastructure.brokerage.mappers import (
    deposit_to_values,
    row_to_deposit,
    row_to_transfer,
    row_to_withdrawal,
    transfer_to_values,
    withdrawal_to_values,
)
from portal.infrastructure.brokerage.scoping import restrict_to_countries
from portal.infrastructure.database.schema import deposits, fund_transfers, withdrawals

OPEN_DEPOSIT_STATUSES = (DepositStatus.PENDING.value,)
OPEN_WITHDRAWAL_STATUSES = (WithdrawalStatus.PENDING.value, WithdrawalStatus.PROCESSING.value)
OPEN_TRANSFER_STATUSES = (TransferStatus.PENDING.value,)


def _decide(
    conn: Connection,
    table,
    record_id: str,
    open_statuses: tuple[str, ...],
    values: dict,
    entity: str,
    label: str,
) -> None:
    """Write a review outcome on a record that is still open.

    Raises:
        EntityNotFoundError: If the record does not exist.
        InvalidStatusTransitionError: If it was decided in the meantime.
    """
    result = conn.execute(
        update(table)
        .where(table.c.id == record_id, table.c.status.in_(open_statuses))
        .values(**values)
    )
    if result.rowcount:
        return
    current = conn.execute(select(table.c.status).where(table.c.id == record_id)).scalar()
    if current is None:
        raise EntityNotFoundError(entity, record_id)
    raise InvalidStatusTransitionError(label, current, values["status"])


class DepositRepositoryAdapter(DepositRepository):
    """SQL implementation of DepositRepository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, deposit_id: str) -> Optional[Deposit]:
        with self._engine.connect() as conn:
            row = conn.execute(select(deposits).where(deposits.c.id == deposit_id)).first()
        return row_to_deposit(row) if row else None

    def add(self, deposit: Deposit) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(deposits).values(**deposit_to_values(deposit)))

    def update(self, deposit: Deposit) -> None:
        values = {"status": deposit.status.value, "completed_at": deposit.completed_at}
        with self._engine.begin() as conn:
            _decide(
                conn, deposits, deposit.id, OPEN_DEPOSIT_STATUSES, values, "Deposit", "deposit"
            )

    def list_for_user(self, user_id: str) -> list[Deposit]:
        stmt = (
            select(deposits)
            .where(deposits.c.user_id == user_id)
            .order_by(deposits.c.created_at.desc())
        )
        with self._engine.connect() as conn:
            return [row_to_deposit(row) for row in conn.execute(stmt)]

    def list_all(
        self,
        status: Optional[DepositStatus] = None,
        countries: Optional[Collection[str]] = None,
    ) -> list[Deposit]:
        stmt = select(deposits).order_by(deposits.c.created_at.desc())
        if status is not None:
            stmt = stmt.where(deposits.c.status == status.value)
        stmt = restrict_to_countries(stmt, deposits.c.user_id, countries)
        with self._engine.connect() as conn:
            return [row_to_deposit(row) for row in conn.execute(stmt)]


class WithdrawalRepositoryAdapter(WithdrawalRepository):
    """SQL implementation of WithdrawalRepository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, withdrawal_id: str) -> Optional[Withdrawal]:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(withdrawals).where(withdrawals.c.id == withdrawal_id)
            ).first()
        return row_to_withdrawal(row) if row else None

    def add(self, withdrawal: Withdrawal) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(withdrawals).values(**withdrawal_to_values(withdrawal)))

    def update(self, withdrawal: Withdrawal) -> None:
        values = {
            "status": withdrawal.status.value,
            "rejection_reason": withdrawal.rejection_reason,
            "processed_at": withdrawal.processed_at,
        }
        with self._engine.begin() as conn:
            _decide(
                conn,
                withdrawals,
                withdrawal.id,
                OPEN_WITHDRAWAL_STATUSES,
                values,
                "Withdrawal",
                "withdrawal",
            )

    def list_for_user(self, user_id: str) -> list[Withdrawal]:
        stmt = (
            select(withdrawals)
            .where(withdrawals.c.user_id == user_id)
            .order_by(withdrawals.c.created_at.desc())
        )
        with self._engine.connect() as conn:
            return [row_to_withdrawal(row) for row in conn.execute(stmt)]

    def list_all(
        self,
        status: Optional[WithdrawalStatus] = None,
        countries: Optional[Collection[str]] = None,
    ) -> list[Withdrawal]:
        stmt = select(withdrawals).order_by(withdrawals.c.created_at.desc())
        if status is not None:
            stmt = stmt.where(withdrawals.c.status == status.value)
        stmt = restrict_to_countries(stmt, withdrawals.c.user_id, countries)
        with self._engine.connect() as conn:
            return [row_to_withdrawal(row) for row in conn.execute(stmt)]


class FundTransferRepositoryAdapter(FundTransferRepository):
    """SQL implementation of FundTransferRepository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, transfer_id: str) -> Optional[FundTransfer]:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(fund_transfers).where(fund_transfers.c.id == transfer_id)
            ).first()
        return row_to_transfer(row) if row else None

    def add(self, transfer: FundTransfer) -> None:
        with self._engine.begin() as conn:
            conn.execute(insert(fund_transfers).values(**transfer_to_values(transfer)))

    def update(self, transfer: FundTransfer) -> None:
        values = {
            "status": transfer.status.value,
            "notes": transfer.notes,
            "processed_by": transfer.processed_by,
            "processed_at": transfer.processed_at,
        }
        with self._engine.begin() as conn:
            _decide(
                conn,
                fund_transfers,
                transfer.id,
                OPEN_TRANSFER_STATUSES,
                values,
                "FundTransfer",
                "transfer",
            )

    def list_for_user(self, user_id: str) -> list[FundTransfer]:
        stmt = (
            select(fund_transfers)
            .where(fund_transfers.c.user_id == user_id)
            .order_by(fund_transfers.c.created_at.desc())
        )
        with self._engine.connect() as conn:
            return [row_to_transfer(row) for row in conn.execute(stmt)]

    def list_all(self, countries: Optional[Collection[str]] = None) -> list[FundTransfer]:
        stmt = select(fund_transfers).order_by(fund_transfers.c.created_at.desc())
        stmt = restrict_to_countries(stmt, fund_transfers.c.user_id, countries)
        with self._engine.connect() as conn:
            return [row_to_transfer(row) for row in conn.execute(stmt)]

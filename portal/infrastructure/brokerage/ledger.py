"""
Adapter: Transactional funding ledger.

Every method opens one transaction, locks the rows it touches with
``SELECT ... FOR UPDATE`` (a no-op on SQLite, where the database-level
write lock serialises writers), re-validates against the locked state
and writes. An exception anywhere rolls the whole operation back.
Account rows are always locked in id order.
"""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection, Engine

from portal.domain.brokerage.entities import (
    Deposit,
    DepositStatus,
    FundTransfer,
    TradingAccount,
    TransferStatus,
    Withdrawal,
    WithdrawalStatus,
    to_money,
)
from portal.domain.brokerage.errors import (
    EntityNotFoundError,
    InvalidStatusTransitionError,
)
from portal.domain.brokerage.ports import CommissionCredit, FundingLedger
from portal.infrastructure.brokerage.mappers import (
    balance_values,
    deposit_to_values,
    money_text,
    row_to_account,
    row_to_deposit,
    row_to_transfer,
    row_to_wallet,
    row_to_withdrawal,
    transfer_to_values,
)
from portal.infrastructure.database.schema import (
    deposits,
    fund_transfers,
    ib_cb_wallets,
    trading_accounts,
    withdrawals,
)

logger = logging.getLogger(__name__)


def _lock(conn: Connection, table, row_id: str, entity: str):
    row = conn.execute(select(table).where(table.c.id == row_id).with_for_update()).first()
    if row is None:
        raise EntityNotFoundError(entity, row_id)
    return row


def _lock_accounts(conn: Connection, *account_ids: str) -> dict[str, TradingAccount]:
    return {
        account_id: row_to_account(_lock(conn, trading_accounts, account_id, "TradingAccount"))
        for account_id in sorted(set(account_ids))
    }


def _save_balance(conn: Connection, account: TradingAccount) -> None:
    conn.execute(
        update(trading_accounts)
        .where(trading_accounts.c.id == account.id)
        .values(**balance_values(account))
    )


class SqlFundingLedger(FundingLedger):
    """SQL implementation of FundingLedger."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def complete_deposit(
        self,
        deposit_id: str,
        completed_at: datetime,
        commission: Optional[CommissionCredit] = None,
    ) -> Deposit:
        with self._engine.begin() as conn:
            deposit = row_to_deposit(_lock(conn, deposits, deposit_id, "Deposit"))
            if deposit.status is not DepositStatus.PENDING:
                raise InvalidStatusTransitionError(
                    "deposit", deposit.status.value, DepositStatus.COMPLETED.value
                )
            account = _lock_accounts(conn, deposit.account_id)[deposit.account_id]
            _save_balance(conn, account.credited(deposit.amount))
            conn.execute(
                update(deposits)
                .where(deposits.c.id == deposit_id)
                .values(status=DepositStatus.COMPLETED.value, completed_at=completed_at)
            )
            if commission is not None:
                self._credit_wallet(conn, commission, completed_at)

        logger.info("Deposit %s completed: +%s", deposit_id, deposit.amount)
        return replace(deposit, status=DepositStatus.COMPLETED, completed_at=completed_at)

    def _credit_wallet(
        self, conn: Connection, commission: CommissionCredit, moment: datetime
    ) -> None:
        wallet = row_to_wallet(_lock(conn, ib_cb_wallets, commission.wallet_id, "Wallet"))
        amount = to_money(commission.amount)
        conn.execute(
            update(ib_cb_wallets)
            .where(ib_cb_wallets.c.id == wallet.id)
            .values(
                balance=money_text(wallet.balance + amount),
                total_commission=money_text(wallet.total_commission + amount),
                updated_at=moment,
            )
        )
        logger.info("Commission %s credited to wallet %s", amount, wallet.id)

    def complete_withdrawal(self, withdrawal_id: str, processed_at: datetime) -> Withdrawal:
        with self._engine.begin() as conn:
            withdrawal = row_to_withdrawal(
                _lock(conn, withdrawals, withdrawal_id, "Withdrawal")
            )
            if not withdrawal.is_open:
                raise InvalidStatusTransitionError(
                    "withdrawal", withdrawal.status.value, WithdrawalStatus.COMPLETED.value
                )
            account = _lock_accounts(conn, withdrawal.account_id)[withdrawal.account_id]
            _save_balance(conn, account.debited(withdrawal.amount))
            conn.execute(
                update(withdrawals)
                .where(withdrawals.c.id == withdrawal_id)
                .values(status=WithdrawalStatus.COMPLETED.value, processed_at=processed_at)
            )

        logger.info("Withdrawal %s completed: -%s", withdrawal_id, withdrawal.amount)
        return replace(
            withdrawal, status=WithdrawalStatus.COMPLETED, processed_at=processed_at
        )

    def execute_internal_transfer(self, transfer: FundTransfer) -> FundTransfer:
        completed = replace(
            transfer, status=TransferStatus.COMPLETED, processed_at=transfer.created_at
        )
        with self._engine.begin() as conn:
            accounts = _lock_accounts(conn, transfer.from_account_id, transfer.to_account_id)
            _save_balance(conn, accounts[transfer.from_account_id].debited(transfer.amount))
            _save_balance(conn, accounts[transfer.to_account_id].credited(transfer.amount))
            conn.execute(insert(fund_transfers).values(**transfer_to_values(completed)))

        logger.info(
            "Internal transfer %s: %s from %s to %s",
            completed.id,
            completed.amount,
            completed.from_account_id,
            completed.to_account_id,
        )
        return completed

    def settle_transfer(
        self, transfer_id: str, admin_id: str, processed_at: datetime
    ) -> FundTransfer:
        with self._engine.begin() as conn:
            transfer = row_to_transfer(_lock(conn, fund_transfers, transfer_id, "FundTransfer"))
            if transfer.status is not TransferStatus.PENDING:
                raise InvalidStatusTransitionError(
                    "transfer", transfer.status.value, TransferStatus.COMPLETED.value
                )
            accounts = _lock_accounts(conn, transfer.from_account_id, transfer.to_account_id)
            _save_balance(
                conn, accounts[transfer.from_account_id].debited(transfer.total_debit)
            )
            _save_balance(conn, accounts[transfer.to_account_id].credited(transfer.amount))
            settled = replace(
                transfer,
                status=TransferStatus.COMPLETED,
                processed_by=admin_id,
                processed_at=processed_at,
            )
            conn.execute(
                update(fund_transfers)
                .where(fund_transfers.c.id == transfer_id)
                .values(
                    status=settled.status.value,
                    processed_by=admin_id,
                    processed_at=processed_at,
                )
            )

        logger.info("External transfer %s settled by admin %s", transfer_id, admin_id)
        return settled

    def credit_account(
        self, account_id: str, amount: Decimal, deposit: Optional[Deposit] = None
    ) -> TradingAccount:
        with self._engine.begin() as conn:
            account = _lock_accounts(conn, account_id)[account_id].credited(amount)
            _save_balance(conn, account)
            if deposit is not None:
                conn.execute(insert(deposits).values(**deposit_to_values(deposit)))
        return account

    def debit_account(self, account_id: str, amount: Decimal) -> TradingAccount:
        with self._engine.begin() as conn:
            account = _lock_accounts(conn, account_id)[account_id].debited(amount)
            _save_balance(conn, account)
        return account

"""
Integration tests for the SQL adapters, schema bootstrap, seeding and CLI.

Runs against a temporary SQLite database prepared by the ``engine``
fixture.
"""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from portal import cli
from portal.domain.brokerage.entities import (
    AccountGroup,
    AccountType,
    AdminRole,
    CountryAssignment,
    Deposit,
    DepositStatus,
    FundTransfer,
    TradingAccount,
    TransferStatus,
    TransferType,
    User,
    Wallet,
    WalletType,
    Withdrawal,
    WithdrawalStatus,
    new_id,
)
from portal.domain.brokerage.errors import (
    DuplicateAdminError,
    EntityNotFoundError,
    InsufficientBalanceError,
    InvalidStatusTransitionError,
    SchemaBootstrapError,
    ValidationError,
)
from portal.domain.brokerage.ports import CommissionCredit
from portal.infrastructure.brokerage.account_repository import TradingAccountRepositoryAdapter
from portal.infrastructure.brokerage.admin_repository import (
    AdminRepositoryAdapter,
    CountryAssignmentRepositoryAdapter,
)
from portal.infrastructure.brokerage.client_repository import UserRepositoryAdapter
from portal.infrastructure.brokerage.csv_exporter import PandasCsvExporter
from portal.infrastructure.brokerage.funding_repository import (
    DepositRepositoryAdapter,
    FundTransferRepositoryAdapter,
    WithdrawalRepositoryAdapter,
)
from portal.infrastructure.brokerage.ledger import SqlFundingLedger
from portal.infrastructure.brokerage.wallet_repository import WalletRepositoryAdapter
from portal.infrastructure.database.migrations import (
    bootstrap_schema,
    is_duplicate_object_error,
)
from portal.infrastructure.database.schema import INDEXES, metadata
from portal.infrastructure.database.seed import provision_admin, seed_database

from conftest import DEMO_EMAIL


def _client(engine, country: str = "France") -> User:
    user = User(
        id=new_id(),
        username=f"c{new_id()[:8]}",
        password_hash="h",
        email=f"{new_id()[:8]}@x.io",
        country=country,
    )
    UserRepositoryAdapter(engine).add(user)
    return user


def _account(engine, user: User, balance: str, number: str) -> TradingAccount:
    account = TradingAccount(
        id=new_id(),
        user_id=user.id,
        account_number=number,
        password="PASSWORD",
        type=AccountType.LIVE,
        group=AccountGroup.STANDARD,
        leverage="1:100",
        balance=Decimal(balance),
        equity=Decimal(balance),
        free_margin=Decimal(balance),
    )
    TradingAccountRepositoryAdapter(engine).add(account)
    return account


def _balance(engine, account_id: str) -> Decimal:
    return TradingAccountRepositoryAdapter(engine).get(account_id).balance


# ─── Schema bootstrap and seeding ────────────────────────────────────────────


class TestSchemaBootstrap:
    def test_fresh_database_creates_every_table(self, tmp_path) -> None:
        engine = create_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
        report = bootstrap_schema(engine)
        assert report.dialect == "sqlite"
        assert set(report.created_tables) == set(metadata.tables)
        assert report.existing_tables == []
        engine.dispose()

    def test_second_run_is_a_no_op(self, engine) -> None:
        report = bootstrap_schema(engine)
        assert report.created_tables == []
        assert report.created_indexes == []
        assert set(report.existing_tables) == set(metadata.tables)

    def test_duplicate_object_errors_are_recognised(self) -> None:
        exc = OperationalError("CREATE TABLE users", {}, Exception("table users already exists"))
        assert is_duplicate_object_error(exc)

    def test_postgres_duplicate_sqlstate(self) -> None:
        class PgError(Exception):
            pgcode = "42P07"

        exc = OperationalError("CREATE INDEX", {}, PgError("relation exists"))
        assert is_duplicate_object_error(exc)

    def test_other_errors_are_not_duplicates(self) -> None:
        exc = OperationalError("CREATE TABLE users", {}, Exception("disk I/O error"))
        assert not is_duplicate_object_error(exc)

    @staticmethod
    def _empty_inspector(monkeypatch, has_users: bool = True) -> MagicMock:
        inspector = MagicMock()
        inspector.get_table_names.return_value = []
        inspector.has_table.return_value = has_users
        monkeypatch.setattr(
            "portal.infrastructure.database.migrations.inspect", lambda _engine: inspector
        )
        return inspector

    def test_ddl_failure_aborts_with_driver_error_attached(self, monkeypatch) -> None:
        self._empty_inspector(monkeypatch)
        failure = OperationalError("CREATE TABLE users", {}, Exception("disk I/O error"))
        engine = MagicMock()
        engine.dialect.name = "sqlite"
        engine.begin.side_effect = failure

        with pytest.raises(SchemaBootstrapError) as excinfo:
            bootstrap_schema(engine)

        assert excinfo.value.__cause__ is failure
        assert "disk I/O error" in excinfo.value.reason
        assert excinfo.value.statement.startswith("table ")

    def test_missing_users_table_after_bootstrap(self, monkeypatch) -> None:
        self._empty_inspector(monkeypatch, has_users=False)
        engine = MagicMock()
        engine.dialect.name = "sqlite"

        with pytest.raises(SchemaBootstrapError) as excinfo:
            bootstrap_schema(engine)

        assert excinfo.value.statement == "table users"
        assert engine.begin.call_count == len(metadata.tables) + len(INDEXES)


class TestSeeding:
    def test_seed_creates_demo_client_and_admins(self, engine) -> None:
        demo = UserRepositoryAdapter(engine).get_by_email(DEMO_EMAIL)
        assert demo is not None
        assert demo.verified
        assert demo.country == "United States"
        roles = {a.username: a.role for a in AdminRepositoryAdapter(engine).list_all()}
        assert roles == {
            "superadmin": AdminRole.SUPER_ADMIN,
            "middleadmin": AdminRole.MIDDLE_ADMIN,
            "normaladmin": AdminRole.NORMAL_ADMIN,
        }

    def test_seed_is_idempotent(self, engine, hasher) -> None:
        report = seed_database(engine, hasher)
        assert report.users == []
        assert report.admins == []
        assert UserRepositoryAdapter(engine).count() == 1

    def test_provision_admin(self, engine, hasher) -> None:
        admin = provision_admin(
            engine, hasher, " ops ", "Ops@Broker.io", "Ops", AdminRole.NORMAL_ADMIN, "secret1"
        )
        assert admin.username == "ops"
        assert hasher.verify("secret1", AdminRepositoryAdapter(engine).get(admin.id).password_hash)

    def test_provision_duplicate_admin(self, engine, hasher) -> None:
        with pytest.raises(DuplicateAdminError):
            provision_admin(
                engine, hasher, "superadmin", "x@y.io", "X", AdminRole.NORMAL_ADMIN, "secret1"
            )

    def test_provision_short_password(self, engine, hasher) -> None:
        with pytest.raises(ValidationError):
            provision_admin(engine, hasher, "ops", "x@y.io", "X", AdminRole.NORMAL_ADMIN, "123")


# ─── Repositories ────────────────────────────────────────────────────────────


class TestRepositories:
    def test_money_round_trips_as_decimal(self, engine) -> None:
        user = _client(engine)
        account = _account(engine, user, "1234.56", "30000001")
        stored = TradingAccountRepositoryAdapter(engine).get(account.id)
        assert stored.balance == Decimal("1234.56")
        assert isinstance(stored.balance, Decimal)

    def test_users_filtered_by_country(self, engine) -> None:
        _client(engine, "France")
        _client(engine, "Spain")
        repo = UserRepositoryAdapter(engine)
        assert {u.country for u in repo.list_all(countries={"France"})} == {"France"}
        assert repo.list_all(countries=set()) == []
        assert len(repo.list_all()) == 3

    def test_country_assignment_is_unique(self, engine) -> None:
        middle = AdminRepositoryAdapter(engine).get_by_username("middleadmin")
        repo = CountryAssignmentRepositoryAdapter(engine)
        assert repo.add(CountryAssignment(id=new_id(), admin_id=middle.id, country="France"))
        assert not repo.add(CountryAssignment(id=new_id(), admin_id=middle.id, country="France"))
        assert [a.country for a in repo.list_for_admin(middle.id)] == ["France"]
        assert repo.remove(middle.id, "France")
        assert not repo.remove(middle.id, "France")

    def test_csv_export_keeps_column_order(self) -> None:
        content = PandasCsvExporter().to_csv(
            [{"amount": "10.00", "id": "d1"}], ["id", "amount"]
        )
        assert content.splitlines() == ["id,amount", "d1,10.00"]


# ─── Funding ledger ──────────────────────────────────────────────────────────


class TestFundingLedger:
    def test_deposit_completion_credits_account_and_wallet(self, engine) -> None:
        referrer = _client(engine)
        user = _client(engine)
        account = _account(engine, user, "0.00", "30000002")
        wallet = Wallet(
            id=new_id(), user_id=referrer.id, wallet_type=WalletType.IB,
            commission_rate=Decimal("0.05"),
        )
        WalletRepositoryAdapter(engine).add(wallet)
        deposit = Deposit(
            id=new_id(), user_id=user.id, account_id=account.id, merchant="Card",
            amount=Decimal("200.00"),
        )
        DepositRepositoryAdapter(engine).add(deposit)

        SqlFundingLedger(engine).complete_deposit(
            deposit.id,
            datetime(2024, 1, 1),
            commission=CommissionCredit(wallet_id=wallet.id, amount=Decimal("10.00")),
        )

        assert _balance(engine, account.id) == Decimal("200.00")
        assert DepositRepositoryAdapter(engine).get(deposit.id).status is DepositStatus.COMPLETED
        stored_wallet = WalletRepositoryAdapter(engine).get_for_user(referrer.id, WalletType.IB)
        assert stored_wallet.total_commission == Decimal("10.00")
        assert stored_wallet.balance == Decimal("10.00")

    def test_deposit_cannot_complete_twice(self, engine) -> None:
        user = _client(engine)
        account = _account(engine, user, "0.00", "30000003")
        deposit = Deposit(
            id=new_id(), user_id=user.id, account_id=account.id, merchant="Card",
            amount=Decimal("50.00"),
        )
        DepositRepositoryAdapter(engine).add(deposit)
        ledger = SqlFundingLedger(engine)
        ledger.complete_deposit(deposit.id, datetime(2024, 1, 1))
        with pytest.raises(InvalidStatusTransitionError):
            ledger.complete_deposit(deposit.id, datetime(2024, 1, 2))
        assert _balance(engine, account.id) == Decimal("50.00")

    def test_uncovered_withdrawal_changes_nothing(self, engine) -> None:
        user = _client(engine)
        account = _account(engine, user, "10.00", "30000004")
        withdrawal = Withdrawal(
            id=new_id(), user_id=user.id, account_id=account.id, method="Bank",
            amount=Decimal("50.00"),
        )
        WithdrawalRepositoryAdapter(engine).add(withdrawal)

        with pytest.raises(InsufficientBalanceError):
            SqlFundingLedger(engine).complete_withdrawal(withdrawal.id, datetime(2024, 1, 1))

        assert _balance(engine, account.id) == Decimal("10.00")
        stored = WithdrawalRepositoryAdapter(engine).get(withdrawal.id)
        assert stored.status is WithdrawalStatus.PENDING

    def test_internal_transfer_moves_funds(self, engine) -> None:
        user = _client(engine)
        source = _account(engine, user, "100.00", "30000005")
        target = _account(engine, user, "5.00", "30000006")
        transfer = FundTransfer(
            id=new_id(), user_id=user.id, from_account_id=source.id,
            to_account_id=target.id, amount=Decimal("40.00"),
            transfer_type=TransferType.INTERNAL,
        )

        completed = SqlFundingLedger(engine).execute_internal_transfer(transfer)

        assert completed.status is TransferStatus.COMPLETED
        assert _balance(engine, source.id) == Decimal("60.00")
        assert _balance(engine, target.id) == Decimal("45.00")
        assert FundTransferRepositoryAdapter(engine).get(transfer.id) is not None

    def test_settle_external_transfer_charges_fee(self, engine) -> None:
        sender = _client(engine)
        receiver = _client(engine)
        source = _account(engine, sender, "200.00", "30000007")
        target = _account(engine, receiver, "0.00", "30000008")
        transfer = FundTransfer(
            id=new_id(), user_id=sender.id, from_account_id=source.id,
            to_account_id=target.id, amount=Decimal("100.00"), fee=Decimal("2.50"),
            transfer_type=TransferType.EXTERNAL,
        )
        FundTransferRepositoryAdapter(engine).add(transfer)

        admin = AdminRepositoryAdapter(engine).get_by_username("superadmin")

        settled = SqlFundingLedger(engine).settle_transfer(
            transfer.id, admin.id, datetime(2024, 1, 1)
        )

        assert settled.status is TransferStatus.COMPLETED
        assert settled.processed_by == admin.id
        assert FundTransferRepositoryAdapter(engine).get(transfer.id).processed_by == admin.id
        assert _balance(engine, source.id) == Decimal("97.50")
        assert _balance(engine, target.id) == Decimal("100.00")

    def test_debit_beyond_balance(self, engine) -> None:
        user = _client(engine)
        account = _account(engine, user, "1.00", "30000009")
        with pytest.raises(InsufficientBalanceError):
            SqlFundingLedger(engine).debit_account(account.id, Decimal("1.01"))
        assert _balance(engine, account.id) == Decimal("1.00")


class TestReviewDecisions:
    """A rejection read before an approval must not overwrite it."""

    def test_reject_after_deposit_completion_is_refused(self, engine) -> None:
        user = _client(engine)
        account = _account(engine, user, "0.00", "30000010")
        repo = DepositRepositoryAdapter(engine)
        repo.add(
            Deposit(
                id="dep-race", user_id=user.id, account_id=account.id, merchant="Card",
                amount=Decimal("100.00"),
            )
        )
        stale = repo.get("dep-race")
        SqlFundingLedger(engine).complete_deposit("dep-race", datetime(2024, 1, 1))

        with pytest.raises(InvalidStatusTransitionError) as excinfo:
            repo.update(replace(stale, status=DepositStatus.REJECTED))

        assert excinfo.value.current == DepositStatus.COMPLETED.value
        assert repo.get("dep-race").status is DepositStatus.COMPLETED
        assert _balance(engine, account.id) == Decimal("100.00")

    def test_pending_deposit_can_be_rejected(self, engine) -> None:
        user = _client(engine)
        account = _account(engine, user, "0.00", "30000011")
        repo = DepositRepositoryAdapter(engine)
        deposit = Deposit(
            id=new_id(), user_id=user.id, account_id=account.id, merchant="Card",
            amount=Decimal("25.00"),
        )
        repo.add(deposit)

        repo.update(replace(deposit, status=DepositStatus.REJECTED))

        assert repo.get(deposit.id).status is DepositStatus.REJECTED

    def test_reject_after_withdrawal_completion_is_refused(self, engine) -> None:
        user = _client(engine)
        account = _account(engine, user, "80.00", "30000012")
        repo = WithdrawalRepositoryAdapter(engine)
        withdrawal = Withdrawal(
            id=new_id(), user_id=user.id, account_id=account.id, method="Bank",
            amount=Decimal("30.00"),
        )
        repo.add(withdrawal)
        SqlFundingLedger(engine).complete_withdrawal(withdrawal.id, datetime(2024, 1, 1))

        with pytest.raises(InvalidStatusTransitionError):
            repo.update(
                replace(withdrawal, status=WithdrawalStatus.REJECTED, rejection_reason="late")
            )

        stored = repo.get(withdrawal.id)
        assert stored.status is WithdrawalStatus.COMPLETED
        assert stored.rejection_reason is None
        assert _balance(engine, account.id) == Decimal("50.00")

    def test_processing_withdrawal_can_be_rejected(self, engine) -> None:
        user = _client(engine)
        account = _account(engine, user, "80.00", "30000013")
        repo = WithdrawalRepositoryAdapter(engine)
        withdrawal = Withdrawal(
            id=new_id(), user_id=user.id, account_id=account.id, method="Bank",
            amount=Decimal("30.00"), status=WithdrawalStatus.PROCESSING,
        )
        repo.add(withdrawal)

        repo.update(
            replace(withdrawal, status=WithdrawalStatus.REJECTED, rejection_reason="KYC")
        )

        stored = repo.get(withdrawal.id)
        assert stored.status is WithdrawalStatus.REJECTED
        assert stored.rejection_reason == "KYC"

    def test_fail_after_transfer_settlement_is_refused(self, engine) -> None:
        sender = _client(engine)
        receiver = _client(engine)
        source = _account(engine, sender, "100.00", "30000014")
        target = _account(engine, receiver, "0.00", "30000015")
        repo = FundTransferRepositoryAdapter(engine)
        transfer = FundTransfer(
            id=new_id(), user_id=sender.id, from_account_id=source.id,
            to_account_id=target.id, amount=Decimal("40.00"),
            transfer_type=TransferType.EXTERNAL,
        )
        repo.add(transfer)
        admin = AdminRepositoryAdapter(engine).get_by_username("superadmin")
        SqlFundingLedger(engine).settle_transfer(transfer.id, admin.id, datetime(2024, 1, 1))

        with pytest.raises(InvalidStatusTransitionError):
            repo.update(replace(transfer, status=TransferStatus.FAILED, notes="too late"))

        stored = repo.get(transfer.id)
        assert stored.status is TransferStatus.COMPLETED
        assert stored.notes is None
        assert _balance(engine, target.id) == Decimal("40.00")

    def test_unknown_record_is_not_found(self, engine) -> None:
        user = _client(engine)
        ghost = Deposit(
            id="missing", user_id=user.id, account_id="nowhere", merchant="Card",
            amount=Decimal("1.00"), status=DepositStatus.REJECTED,
        )
        with pytest.raises(EntityNotFoundError):
            DepositRepositoryAdapter(engine).update(ghost)


# ─── CLI ─────────────────────────────────────────────────────────────────────


class TestCli:
    def test_parser_requires_a_command(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_parser_rejects_unknown_role(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(
                ["create-admin", "--username", "x", "--email", "x@y.io",
                 "--full-name", "X", "--role", "root", "--password", "secret1"]
            )

    def test_init_db(self, engine, monkeypatch, capsys) -> None:
        monkeypatch.setattr(cli, "get_engine", lambda: engine)
        assert cli.main(["init-db"]) == 0
        assert "Created tables: -" in capsys.readouterr().out

    def test_create_admin(self, engine, monkeypatch) -> None:
        monkeypatch.setattr(cli, "get_engine", lambda: engine)
        code = cli.main(
            ["create-admin", "--username", "ops", "--email", "ops@y.io",
             "--full-name", "Ops", "--role", "middle_admin", "--password", "secret1"]
        )
        assert code == 0
        assert AdminRepositoryAdapter(engine).get_by_username("ops").role is AdminRole.MIDDLE_ADMIN

    def test_create_duplicate_admin_fails(self, engine, monkeypatch) -> None:
        monkeypatch.setattr(cli, "get_engine", lambda: engine)
        code = cli.main(
            ["create-admin", "--username", "superadmin", "--email", "new@y.io",
             "--full-name", "Dup", "--role", "super_admin", "--password", "secret1"]
        )
        assert code == 1

"""
Unit tests for the back-office application layer.

Repositories and the funding ledger are mocked; these tests cover role
checks, country scoping, status rules and the audit trail.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.admins import (
    AssignCountryUseCase,
    CreateAdminUseCase,
    RemoveCountryUseCase,
)
from portal.application.backoffice.auth import AdminSignInUseCase, ResolveAdminScopeUseCase
from portal.application.backoffice.clients import (
    AddFundsUseCase,
    GetUserUseCase,
    ImpersonateUserUseCase,
    ListUsersUseCase,
    RemoveFundsUseCase,
    ToggleUserUseCase,
)
from portal.application.backoffice.documents import ReviewDocumentUseCase
from portal.application.backoffice.dtos import (
    AdminContext,
    AdminReplyCommand,
    AdminSignInCommand,
    CountryAssignmentCommand,
    CreateAdminCommand,
    FundsAdjustmentCommand,
    ProcessRequestCommand,
    ReviewDocumentCommand,
)
from portal.application.backoffice.payments import (
    ApproveDepositUseCase,
    RejectDepositUseCase,
    RejectWithdrawalUseCase,
)
from portal.application.backoffice.referrals import ProcessReferralUseCase
from portal.application.backoffice.reports import ListActivityLogsUseCase
from portal.application.backoffice.support import AdminReplyUseCase
from portal.application.brokerage.notifications import Notifier
from portal.domain.brokerage.access import AdminScope
from portal.domain.brokerage.entities import (
    AccountGroup,
    AccountType,
    AdminRole,
    AdminUser,
    CountryAssignment,
    Deposit,
    DepositStatus,
    Document,
    DocumentStatus,
    DocumentType,
    ReferralStatus,
    SupportTicket,
    TicketStatus,
    TradingAccount,
    User,
    Wallet,
    WalletType,
)
from portal.domain.brokerage.errors import (
    AccountOwnershipError,
    AuthenticationRequiredError,
    DuplicateAdminError,
    EntityNotFoundError,
    InvalidAmountError,
    InvalidCredentialsError,
    InvalidStatusTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from portal.domain.brokerage.ports import (
    ActivityLogRepository,
    AdminRepository,
    CountryAssignmentRepository,
    DepositRepository,
    DocumentRepository,
    FundingLedger,
    PasswordHasher,
    SupportTicketRepository,
    TradingAccountRepository,
    UserRepository,
    WalletRepository,
    WithdrawalRepository,
)


# ─── Builders ────────────────────────────────────────────────────────────────


def _admin(role: AdminRole = AdminRole.SUPER_ADMIN, admin_id: str = "a1", **kwargs) -> AdminUser:
    return AdminUser(
        id=admin_id,
        username=kwargs.pop("username", admin_id),
        password_hash=kwargs.pop("password_hash", "hashed"),
        email=f"{admin_id}@broker.io",
        full_name="Operator",
        role=role,
        **kwargs,
    )


def _context(role: AdminRole = AdminRole.SUPER_ADMIN, countries=None) -> AdminContext:
    return AdminContext(
        scope=AdminScope(admin=_admin(role), countries=countries), ip_address="10.0.0.1"
    )


def _user(user_id: str = "u1", **kwargs) -> User:
    return User(id=user_id, username=user_id, password_hash="h", email=f"{user_id}@x.io", **kwargs)


def _account(account_id: str = "acc1", user_id: str = "u1") -> TradingAccount:
    return TradingAccount(
        id=account_id,
        user_id=user_id,
        account_number="10000001",
        password="PASSWORD",
        type=AccountType.LIVE,
        group=AccountGroup.STANDARD,
        leverage="1:100",
        balance=Decimal("50.00"),
    )


@pytest.fixture
def user_repo() -> MagicMock:
    return MagicMock(spec=UserRepository)


@pytest.fixture
def recorder() -> MagicMock:
    return MagicMock(spec=ActivityRecorder)


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=Notifier)


# ─── Audit trail ─────────────────────────────────────────────────────────────


class TestActivityRecorder:
    def test_records_admin_and_ip(self) -> None:
        repo = MagicMock(spec=ActivityLogRepository)
        ActivityRecorder(repo).record(
            _context(), ActivityAction.ADD_FUNDS, "user", "u1", "details", user_id="u1"
        )
        entry = repo.add.call_args.args[0]
        assert entry.admin_id == "a1"
        assert entry.ip_address == "10.0.0.1"
        assert entry.action == "ADD_FUNDS"

    def test_repository_failure_is_swallowed(self) -> None:
        """A broken audit write must not fail the audited action."""
        repo = MagicMock(spec=ActivityLogRepository)
        repo.add.side_effect = RuntimeError("disk full")
        ActivityRecorder(repo).record(_context(), ActivityAction.SIGNIN, "admin")
        repo.add.assert_called_once()


# ─── Authentication and scope ────────────────────────────────────────────────


class TestAdminAuth:
    def test_sign_in_records_activity(self, recorder) -> None:
        admin_repo = MagicMock(spec=AdminRepository)
        hasher = MagicMock(spec=PasswordHasher)
        admin_repo.get_by_username.return_value = _admin()
        hasher.verify.return_value = True

        admin = AdminSignInUseCase(admin_repo, hasher, recorder).execute(
            AdminSignInCommand(" a1 ", "pw", ip_address="1.2.3.4")
        )

        assert admin.id == "a1"
        admin_repo.get_by_username.assert_called_once_with("a1")
        context, action = recorder.record.call_args.args[:2]
        assert action == ActivityAction.SIGNIN
        assert context.ip_address == "1.2.3.4"

    def test_disabled_admin_cannot_sign_in(self, recorder) -> None:
        admin_repo = MagicMock(spec=AdminRepository)
        hasher = MagicMock(spec=PasswordHasher)
        admin_repo.get_by_username.return_value = _admin(enabled=False)
        hasher.verify.return_value = True
        with pytest.raises(InvalidCredentialsError):
            AdminSignInUseCase(admin_repo, hasher, recorder).execute(AdminSignInCommand("a1", "pw"))
        recorder.record.assert_not_called()

    def test_middle_admin_scope_is_its_countries(self) -> None:
        admin_repo = MagicMock(spec=AdminRepository)
        assignment_repo = MagicMock(spec=CountryAssignmentRepository)
        admin_repo.get.return_value = _admin(AdminRole.MIDDLE_ADMIN)
        assignment_repo.list_for_admin.return_value = [
            CountryAssignment(id="c1", admin_id="a1", country="France"),
            CountryAssignment(id="c2", admin_id="a1", country="Spain"),
        ]
        scope = ResolveAdminScopeUseCase(admin_repo, assignment_repo).execute("a1")
        assert scope.countries == frozenset({"France", "Spain"})

    def test_missing_session_admin(self) -> None:
        admin_repo = MagicMock(spec=AdminRepository)
        admin_repo.get.return_value = None
        with pytest.raises(AuthenticationRequiredError):
            ResolveAdminScopeUseCase(
                admin_repo, MagicMock(spec=CountryAssignmentRepository)
            ).execute("gone")


# ─── Clients ─────────────────────────────────────────────────────────────────


class TestClientAdministration:
    def test_list_users_passes_scope_countries(self, user_repo) -> None:
        context = _context(AdminRole.MIDDLE_ADMIN, countries=frozenset({"France"}))
        ListUsersUseCase(user_repo).execute(context)
        user_repo.list_all.assert_called_once_with(countries=frozenset({"France"}))

    def test_user_outside_scope_is_not_found(self, user_repo) -> None:
        user_repo.get.return_value = _user(country="Germany")
        context = _context(AdminRole.MIDDLE_ADMIN, countries=frozenset({"France"}))
        with pytest.raises(EntityNotFoundError):
            GetUserUseCase(user_repo).execute(context, "u1")

    def test_toggle_disables_and_records(self, user_repo, recorder) -> None:
        user_repo.get.return_value = _user()
        updated = ToggleUserUseCase(user_repo, recorder).execute(_context(), "u1")
        assert not updated.enabled
        user_repo.update.assert_called_once_with(updated)
        assert recorder.record.call_args.args[1] == ActivityAction.DISABLE_USER

    @pytest.mark.parametrize("role", [AdminRole.MIDDLE_ADMIN, AdminRole.NORMAL_ADMIN])
    def test_only_super_admin_adjusts_funds(self, user_repo, recorder, role) -> None:
        ledger = MagicMock(spec=FundingLedger)
        use_case = AddFundsUseCase(
            user_repo, MagicMock(spec=TradingAccountRepository), ledger, recorder
        )
        with pytest.raises(PermissionDeniedError):
            use_case.execute(FundsAdjustmentCommand(_context(role), "u1", "acc1", Decimal("10")))
        ledger.credit_account.assert_not_called()

    def test_add_funds_records_admin_credit_deposit(self, user_repo, recorder) -> None:
        account_repo = MagicMock(spec=TradingAccountRepository)
        ledger = MagicMock(spec=FundingLedger)
        user_repo.get.return_value = _user()
        account_repo.get.return_value = _account()

        AddFundsUseCase(user_repo, account_repo, ledger, recorder).execute(
            FundsAdjustmentCommand(_context(), "u1", "acc1", Decimal("25"), reason="bonus")
        )

        call = ledger.credit_account.call_args
        assert call.args == ("acc1", Decimal("25.00"))
        deposit = call.kwargs["deposit"]
        assert deposit.merchant == "Admin Credit"
        assert deposit.status is DepositStatus.COMPLETED
        assert "bonus" in recorder.record.call_args.args[4]

    def test_account_of_another_client(self, user_repo, recorder) -> None:
        account_repo = MagicMock(spec=TradingAccountRepository)
        user_repo.get.return_value = _user()
        account_repo.get.return_value = _account(user_id="u2")
        with pytest.raises(AccountOwnershipError):
            RemoveFundsUseCase(
                user_repo, account_repo, MagicMock(spec=FundingLedger), recorder
            ).execute(FundsAdjustmentCommand(_context(), "u1", "acc1", Decimal("5")))

    def test_non_positive_adjustment(self, user_repo, recorder) -> None:
        with pytest.raises(InvalidAmountError):
            RemoveFundsUseCase(
                user_repo,
                MagicMock(spec=TradingAccountRepository),
                MagicMock(spec=FundingLedger),
                recorder,
            ).execute(FundsAdjustmentCommand(_context(), "u1", "acc1", Decimal("0")))

    def test_impersonation_requires_super_admin(self, user_repo, recorder) -> None:
        with pytest.raises(PermissionDeniedError):
            ImpersonateUserUseCase(user_repo, recorder).execute(
                _context(AdminRole.NORMAL_ADMIN), "u1"
            )

    def test_impersonation_is_audited(self, user_repo, recorder) -> None:
        user_repo.get.return_value = _user()
        ImpersonateUserUseCase(user_repo, recorder).execute(_context(), "u1")
        assert recorder.record.call_args.args[1] == ActivityAction.IMPERSONATE_USER


# ─── KYC review ──────────────────────────────────────────────────────────────


class TestReviewDocument:
    def _document(self, doc_type: DocumentType, status=DocumentStatus.PENDING) -> Document:
        return Document(
            id=f"doc-{doc_type.name}", user_id="u1", type=doc_type,
            file_name="f.pdf", file_url="https://f", status=status,
        )

    def test_rejection_needs_reason(self, user_repo, notifier, recorder) -> None:
        document_repo = MagicMock(spec=DocumentRepository)
        with pytest.raises(ValidationError):
            ReviewDocumentUseCase(document_repo, user_repo, notifier, recorder).execute(
                ReviewDocumentCommand(_context(), "d1", DocumentStatus.REJECTED, reason="  ")
            )
        document_repo.update.assert_not_called()

    def test_second_required_document_verifies_user(self, user_repo, notifier, recorder) -> None:
        document_repo = MagicMock(spec=DocumentRepository)
        pending = self._document(DocumentType.ADDRESS_PROOF)
        document_repo.get.return_value = pending
        document_repo.list_for_user.return_value = [
            self._document(DocumentType.ID_PROOF, DocumentStatus.VERIFIED),
            self._document(DocumentType.ADDRESS_PROOF, DocumentStatus.VERIFIED),
        ]
        user_repo.get.return_value = _user()

        reviewed = ReviewDocumentUseCase(document_repo, user_repo, notifier, recorder).execute(
            ReviewDocumentCommand(_context(), pending.id, DocumentStatus.VERIFIED)
        )

        assert reviewed.approved_by == "a1"
        assert reviewed.verified_at is not None
        assert user_repo.update.call_args.args[0].verified is True

    def test_one_document_does_not_verify_user(self, user_repo, notifier, recorder) -> None:
        document_repo = MagicMock(spec=DocumentRepository)
        pending = self._document(DocumentType.ID_PROOF)
        document_repo.get.return_value = pending
        document_repo.list_for_user.return_value = [
            self._document(DocumentType.ID_PROOF, DocumentStatus.VERIFIED)
        ]
        user_repo.get.return_value = _user()

        ReviewDocumentUseCase(document_repo, user_repo, notifier, recorder).execute(
            ReviewDocumentCommand(_context(), pending.id, DocumentStatus.VERIFIED)
        )
        user_repo.update.assert_not_called()


# ─── Deposits and withdrawals ────────────────────────────────────────────────


class TestPayments:
    def _deposit(self, status=DepositStatus.PENDING) -> Deposit:
        return Deposit(
            id="d1", user_id="u1", account_id="acc1", merchant="Card",
            amount=Decimal("200.00"), status=status,
        )

    def test_approval_pays_commission_to_accepted_referrer(
        self, user_repo, notifier, recorder
    ) -> None:
        deposit_repo = MagicMock(spec=DepositRepository)
        wallet_repo = MagicMock(spec=WalletRepository)
        ledger = MagicMock(spec=FundingLedger)
        deposit_repo.get.return_value = self._deposit()
        user_repo.get.return_value = _user(
            referred_by="ib", referral_status=ReferralStatus.ACCEPTED
        )
        wallet_repo.get_for_user.return_value = Wallet(
            id="w1", user_id="ib", wallet_type=WalletType.IB, commission_rate=Decimal("0.05")
        )

        ApproveDepositUseCase(
            user_repo, deposit_repo, wallet_repo, ledger, notifier, recorder
        ).execute(ProcessRequestCommand(_context(), "d1"))

        commission = ledger.complete_deposit.call_args.kwargs["commission"]
        assert commission.wallet_id == "w1"
        assert commission.amount == Decimal("10.00")
        wallet_repo.get_for_user.assert_called_once_with("ib", WalletType.IB)

    def test_pending_referral_earns_nothing(self, user_repo, notifier, recorder) -> None:
        deposit_repo = MagicMock(spec=DepositRepository)
        wallet_repo = MagicMock(spec=WalletRepository)
        ledger = MagicMock(spec=FundingLedger)
        deposit_repo.get.return_value = self._deposit()
        user_repo.get.return_value = _user(referred_by="ib")

        ApproveDepositUseCase(
            user_repo, deposit_repo, wallet_repo, ledger, notifier, recorder
        ).execute(ProcessRequestCommand(_context(), "d1"))

        assert ledger.complete_deposit.call_args.kwargs["commission"] is None
        wallet_repo.get_for_user.assert_not_called()

    def test_reject_processed_deposit(self, user_repo, notifier, recorder) -> None:
        deposit_repo = MagicMock(spec=DepositRepository)
        deposit_repo.get.return_value = self._deposit(DepositStatus.COMPLETED)
        user_repo.get.return_value = _user()
        with pytest.raises(InvalidStatusTransitionError):
            RejectDepositUseCase(user_repo, deposit_repo, notifier, recorder).execute(
                ProcessRequestCommand(_context(), "d1")
            )
        deposit_repo.update.assert_not_called()

    def test_withdrawal_rejection_needs_reason(self, user_repo, notifier, recorder) -> None:
        withdrawal_repo = MagicMock(spec=WithdrawalRepository)
        with pytest.raises(ValidationError):
            RejectWithdrawalUseCase(user_repo, withdrawal_repo, notifier, recorder).execute(
                ProcessRequestCommand(_context(), "w1", reason=None)
            )
        withdrawal_repo.get.assert_not_called()

    def test_deposit_outside_scope(self, user_repo, notifier, recorder) -> None:
        deposit_repo = MagicMock(spec=DepositRepository)
        ledger = MagicMock(spec=FundingLedger)
        deposit_repo.get.return_value = self._deposit()
        user_repo.get.return_value = _user(country="Italy")
        context = _context(AdminRole.MIDDLE_ADMIN, countries=frozenset({"France"}))
        with pytest.raises(EntityNotFoundError):
            ApproveDepositUseCase(
                user_repo, deposit_repo, MagicMock(spec=WalletRepository), ledger,
                notifier, recorder,
            ).execute(ProcessRequestCommand(context, "d1"))
        ledger.complete_deposit.assert_not_called()


# ─── Admins and countries ────────────────────────────────────────────────────


class TestAdminManagement:
    def test_duplicate_username(self, recorder) -> None:
        admin_repo = MagicMock(spec=AdminRepository)
        admin_repo.get_by_username.return_value = _admin(admin_id="other", username="ops")
        with pytest.raises(DuplicateAdminError):
            CreateAdminUseCase(admin_repo, MagicMock(spec=PasswordHasher), recorder).execute(
                CreateAdminCommand(_context(), "ops", "ops@b.io", "secret1", "Ops",
                                   AdminRole.NORMAL_ADMIN)
            )

    def test_create_records_creator(self, recorder) -> None:
        admin_repo = MagicMock(spec=AdminRepository)
        hasher = MagicMock(spec=PasswordHasher)
        hasher.hash.return_value = "hashed"
        admin_repo.get_by_username.return_value = None
        admin_repo.get_by_email.return_value = None

        admin = CreateAdminUseCase(admin_repo, hasher, recorder).execute(
            CreateAdminCommand(_context(), "ops", "Ops@B.io", "secret1", "Ops",
                               AdminRole.MIDDLE_ADMIN)
        )
        assert admin.created_by == "a1"
        assert admin.email == "ops@b.io"
        admin_repo.add.assert_called_once_with(admin)

    def test_middle_admin_cannot_create_admins(self, recorder) -> None:
        with pytest.raises(PermissionDeniedError):
            CreateAdminUseCase(
                MagicMock(spec=AdminRepository), MagicMock(spec=PasswordHasher), recorder
            ).execute(
                CreateAdminCommand(_context(AdminRole.MIDDLE_ADMIN), "x", "x@b.io", "secret1",
                                   "X", AdminRole.NORMAL_ADMIN)
            )

    def test_country_only_for_middle_admins(self, recorder) -> None:
        admin_repo = MagicMock(spec=AdminRepository)
        assignment_repo = MagicMock(spec=CountryAssignmentRepository)
        admin_repo.get.return_value = _admin(AdminRole.NORMAL_ADMIN, admin_id="n1")
        with pytest.raises(ValidationError):
            AssignCountryUseCase(admin_repo, assignment_repo, recorder).execute(
                CountryAssignmentCommand(_context(), "n1", "France")
            )
        assignment_repo.add.assert_not_called()

    def test_repeated_assignment_is_not_logged(self, recorder) -> None:
        admin_repo = MagicMock(spec=AdminRepository)
        assignment_repo = MagicMock(spec=CountryAssignmentRepository)
        admin_repo.get.return_value = _admin(AdminRole.MIDDLE_ADMIN, admin_id="m1")
        assignment_repo.add.return_value = False
        AssignCountryUseCase(admin_repo, assignment_repo, recorder).execute(
            CountryAssignmentCommand(_context(), "m1", "France")
        )
        recorder.record.assert_not_called()

    def test_remove_unknown_assignment(self, recorder) -> None:
        assignment_repo = MagicMock(spec=CountryAssignmentRepository)
        assignment_repo.remove.return_value = False
        with pytest.raises(EntityNotFoundError):
            RemoveCountryUseCase(assignment_repo, recorder).execute(
                CountryAssignmentCommand(_context(), "m1", "France")
            )


# ─── Referrals, support and activity ─────────────────────────────────────────


class TestReferralsSupportActivity:
    def test_accepting_referral_opens_ib_wallet(self, user_repo, recorder) -> None:
        wallet_repo = MagicMock(spec=WalletRepository)
        user_repo.get.return_value = _user(referred_by="ib")
        wallet_repo.get_for_user.return_value = None

        updated = ProcessReferralUseCase(
            user_repo, wallet_repo, recorder, Decimal("0.05")
        ).execute(_context(), "u1", accept=True)

        assert updated.referral_status is ReferralStatus.ACCEPTED
        wallet = wallet_repo.add.call_args.args[0]
        assert wallet.user_id == "ib"
        assert wallet.commission_rate == Decimal("0.05")

    def test_decided_referral_cannot_change(self, user_repo, recorder) -> None:
        user_repo.get.return_value = _user(
            referred_by="ib", referral_status=ReferralStatus.REJECTED
        )
        with pytest.raises(InvalidStatusTransitionError):
            ProcessReferralUseCase(
                user_repo, MagicMock(spec=WalletRepository), recorder, Decimal("0.05")
            ).execute(_context(), "u1", accept=True)

    def test_admin_reply_moves_open_ticket_in_progress(self, notifier, recorder) -> None:
        ticket_repo = MagicMock(spec=SupportTicketRepository)
        ticket_repo.get.return_value = SupportTicket(
            id="t1", subject="Help", message="m", user_id="u1"
        )
        reply = AdminReplyUseCase(ticket_repo, notifier, recorder).execute(
            AdminReplyCommand(_context(), "t1", "On it")
        )
        assert reply.admin_id == "a1"
        updated = ticket_repo.update.call_args.args[0]
        assert updated.status is TicketStatus.IN_PROGRESS
        assert updated.admin_id == "a1"
        notifier.notify.assert_called_once()

    def test_activity_logs_super_admin_sees_all(self) -> None:
        repo = MagicMock(spec=ActivityLogRepository)
        ListActivityLogsUseCase(repo).execute(_context())
        repo.list_recent.assert_called_once_with(admin_id=None, limit=200)

    def test_activity_logs_others_see_own(self) -> None:
        repo = MagicMock(spec=ActivityLogRepository)
        ListActivityLogsUseCase(repo).execute(_context(AdminRole.NORMAL_ADMIN), limit=5)
        repo.list_recent.assert_called_once_with(admin_id="a1", limit=5)

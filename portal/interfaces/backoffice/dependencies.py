"""
Dependency injection for the back office.

Resolves the acting admin from the session into an ``AdminContext``
and wires infrastructure adapters into the back-office use cases.
"""

from fastapi import Depends, Request
from sqlalchemy.engine import Engine

from portal.application.backoffice.accounts import (
    AccountStatsUseCase,
    ListAllTradingAccountsUseCase,
    ToggleTradingAccountUseCase,
)
from portal.application.backoffice.activity import ActivityRecorder
from portal.application.backoffice.admins import (
    AssignCountryUseCase,
    CreateAdminUseCase,
    ListAdminsUseCase,
    ListCountryAssignmentsUseCase,
    RemoveCountryUseCase,
    UpdateAdminUseCase,
)
from portal.application.backoffice.auth import (
    AdminSignInUseCase,
    AdminSignOutUseCase,
    ResolveAdminScopeUseCase,
)
from portal.application.backoffice.clients import (
    AddFundsUseCase,
    GetUserUseCase,
    ImpersonateUserUseCase,
    ListUsersUseCase,
    RemoveFundsUseCase,
    StopImpersonationUseCase,
    ToggleUserUseCase,
)
from portal.application.backoffice.documents import (
    ListAllDocumentsUseCase,
    ReviewDocumentUseCase,
)
from portal.application.backoffice.dtos import AdminContext
from portal.application.backoffice.payments import (
    ApproveDepositUseCase,
    ApproveWithdrawalUseCase,
    ExportDepositsUseCase,
    ExportWithdrawalsUseCase,
    ListAllDepositsUseCase,
    ListAllWithdrawalsUseCase,
    RejectDepositUseCase,
    RejectWithdrawalUseCase,
)
from portal.application.backoffice.referrals import (
    ListReferralsUseCase,
    ListWalletsUseCase,
    ProcessReferralUseCase,
)
from portal.application.backoffice.reports import (
    AdminStatsUseCase,
    ListActivityLogsUseCase,
)
from portal.application.backoffice.support import (
    AdminReplyUseCase,
    GetAnyTicketUseCase,
    ListAllTicketsUseCase,
    SetTicketStatusUseCase,
)
from portal.application.backoffice.transfers import (
    ApproveTransferUseCase,
    ListAllTransfersUseCase,
    RejectTransferUseCase,
    TransferStatsUseCase,
)
from portal.application.brokerage.notifications import Notifier
from portal.core.config import settings
from portal.domain.brokerage.access import require_super_admin
from portal.domain.brokerage.ports import PasswordHasher
from portal.infrastructure.brokerage.account_repository import TradingAccountRepositoryAdapter
from portal.infrastructure.brokerage.admin_repository import (
    ActivityLogRepositoryAdapter,
    AdminRepositoryAdapter,
    CountryAssignmentRepositoryAdapter,
)
from portal.infrastructure.brokerage.client_repository import UserRepositoryAdapter
from portal.infrastructure.brokerage.csv_exporter import PandasCsvExporter
from portal.infrastructure.brokerage.document_repository import DocumentRepositoryAdapter
from portal.infrastructure.brokerage.funding_repository import (
    DepositRepositoryAdapter,
    FundTransferRepositoryAdapter,
    WithdrawalRepositoryAdapter,
)
from portal.infrastructure.brokerage.ledger import SqlFundingLedger
from portal.infrastructure.brokerage.support_repository import SupportTicketRepositoryAdapter
from portal.infrastructure.brokerage.wallet_repository import WalletRepositoryAdapter
from portal.infrastructure.database.engine import get_engine
from portal.interfaces import session
from portal.interfaces.brokerage.dependencies import get_notifier, get_password_hasher


def get_activity_recorder(engine: Engine = Depends(get_engine)) -> ActivityRecorder:
    return ActivityRecorder(activity_repo=ActivityLogRepositoryAdapter(engine))


def get_admin_context(request: Request, engine: Engine = Depends(get_engine)) -> AdminContext:
    """Resolve the session admin and its visibility scope.

    Raises:
        AuthenticationRequiredError: Without an enabled admin in the session.
    """
    use_case = ResolveAdminScopeUseCase(
        admin_repo=AdminRepositoryAdapter(engine),
        assignment_repo=CountryAssignmentRepositoryAdapter(engine),
    )
    scope = use_case.execute(session.get_session_admin_id(request))
    return AdminContext(scope=scope, ip_address=session.client_ip(request))


def get_super_admin_context(context: AdminContext = Depends(get_admin_context)) -> AdminContext:
    """Like ``get_admin_context`` but rejects anyone but a super admin (403)."""
    require_super_admin(context.admin)
    return context


# --- Auth ---


def get_admin_sign_in_use_case(
    engine: Engine = Depends(get_engine),
    hasher: PasswordHasher = Depends(get_password_hasher),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> AdminSignInUseCase:
    return AdminSignInUseCase(
        admin_repo=AdminRepositoryAdapter(engine), hasher=hasher, recorder=recorder
    )


def get_admin_sign_out_use_case(
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> AdminSignOutUseCase:
    return AdminSignOutUseCase(recorder=recorder)


# --- Clients ---


def get_list_users_use_case(engine: Engine = Depends(get_engine)) -> ListUsersUseCase:
    return ListUsersUseCase(user_repo=UserRepositoryAdapter(engine))


def get_user_use_case(engine: Engine = Depends(get_engine)) -> GetUserUseCase:
    return GetUserUseCase(user_repo=UserRepositoryAdapter(engine))


def get_toggle_user_use_case(
    engine: Engine = Depends(get_engine),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ToggleUserUseCase:
    return ToggleUserUseCase(user_repo=UserRepositoryAdapter(engine), recorder=recorder)


def get_add_funds_use_case(
    engine: Engine = Depends(get_engine),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> AddFundsUseCase:
    return AddFundsUseCase(
        user_repo=UserRepositoryAdapter(engine),
        account_repo=TradingAccountRepositoryAdapter(engine),
        ledger=SqlFundingLedger(engine),
        recorder=recorder,
    )


def get_remove_funds_use_case(
    engine: Engine = Depends(get_engine),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> RemoveFundsUseCase:
    return RemoveFundsUseCase(
        user_repo=UserRepositoryAdapter(engine),
        account_repo=TradingAccountRepositoryAdapter(engine),
        ledger=SqlFundingLedger(engine),
        recorder=recorder,
    )


def get_impersonate_user_use_case(
    engine: Engine = Depends(get_engine),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ImpersonateUserUseCase:
    return ImpersonateUserUseCase(user_repo=UserRepositoryAdapter(engine), recorder=recorder)


def get_stop_impersonation_use_case(
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> StopImpersonationUseCase:
    return StopImpersonationUseCase(recorder=recorder)


# --- Admin management ---


def get_create_admin_use_case(
    engine: Engine = Depends(get_engine),
    hasher: PasswordHasher = Depends(get_password_hasher),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> CreateAdminUseCase:
    return CreateAdminUseCase(
        admin_repo=AdminRepositoryAdapter(engine), hasher=hasher, recorder=recorder
    )


def get_list_admins_use_case(engine: Engine = Depends(get_engine)) -> ListAdminsUseCase:
    return ListAdminsUseCase(admin_repo=AdminRepositoryAdapter(engine))


def get_update_admin_use_case(
    engine: Engine = Depends(get_engine),
    hasher: PasswordHasher = Depends(get_password_hasher),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> UpdateAdminUseCase:
    return UpdateAdminUseCase(
        admin_repo=AdminRepositoryAdapter(engine), hasher=hasher, recorder=recorder
    )


def get_assign_country_use_case(
    engine: Engine = Depends(get_engine),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> AssignCountryUseCase:
    return AssignCountryUseCase(
        admin_repo=AdminRepositoryAdapter(engine),
        assignment_repo=CountryAssignmentRepositoryAdapter(engine),
        recorder=recorder,
    )


def get_remove_country_use_case(
    engine: Engine = Depends(get_engine),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> RemoveCountryUseCase:
    return RemoveCountryUseCase(
        assignment_repo=CountryAssignmentRepositoryAdapter(engine), recorder=recorder
    )


def get_list_country_assignments_use_case(
    engine: Engine = Depends(get_engine),
) -> ListCountryAssignmentsUseCase:
    return ListCountryAssignmentsUseCase(
        assignment_repo=CountryAssignmentRepositoryAdapter(engine)
    )


# --- Documents ---


def get_list_all_documents_use_case(
    engine: Engine = Depends(get_engine),
) -> ListAllDocumentsUseCase:
    return ListAllDocumentsUseCase(document_repo=DocumentRepositoryAdapter(engine))


def get_review_document_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ReviewDocumentUseCase:
    return ReviewDocumentUseCase(
        document_repo=DocumentRepositoryAdapter(engine),
        user_repo=UserRepositoryAdapter(engine),
        notifier=notifier,
        recorder=recorder,
    )


# --- Trading accounts ---


def get_list_all_trading_accounts_use_case(
    engine: Engine = Depends(get_engine),
) -> ListAllTradingAccountsUseCase:
    return ListAllTradingAccountsUseCase(account_repo=TradingAccountRepositoryAdapter(engine))


def get_account_stats_use_case(engine: Engine = Depends(get_engine)) -> AccountStatsUseCase:
    return AccountStatsUseCase(account_repo=TradingAccountRepositoryAdapter(engine))


def get_toggle_trading_account_use_case(
    engine: Engine = Depends(get_engine),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ToggleTradingAccountUseCase:
    return ToggleTradingAccountUseCase(
        user_repo=UserRepositoryAdapter(engine),
        account_repo=TradingAccountRepositoryAdapter(engine),
        recorder=recorder,
    )


# --- Deposits and withdrawals ---


def get_list_all_deposits_use_case(
    engine: Engine = Depends(get_engine),
) -> ListAllDepositsUseCase:
    return ListAllDepositsUseCase(deposit_repo=DepositRepositoryAdapter(engine))


def get_approve_deposit_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ApproveDepositUseCase:
    """Build ApproveDepositUseCase; the ledger also pays IB commission."""
    return ApproveDepositUseCase(
        user_repo=UserRepositoryAdapter(engine),
        deposit_repo=DepositRepositoryAdapter(engine),
        wallet_repo=WalletRepositoryAdapter(engine),
        ledger=SqlFundingLedger(engine),
        notifier=notifier,
        recorder=recorder,
    )


def get_reject_deposit_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> RejectDepositUseCase:
    return RejectDepositUseCase(
        user_repo=UserRepositoryAdapter(engine),
        deposit_repo=DepositRepositoryAdapter(engine),
        notifier=notifier,
        recorder=recorder,
    )


def get_export_deposits_use_case(engine: Engine = Depends(get_engine)) -> ExportDepositsUseCase:
    return ExportDepositsUseCase(
        deposit_repo=DepositRepositoryAdapter(engine), exporter=PandasCsvExporter()
    )


def get_list_all_withdrawals_use_case(
    engine: Engine = Depends(get_engine),
) -> ListAllWithdrawalsUseCase:
    return ListAllWithdrawalsUseCase(withdrawal_repo=WithdrawalRepositoryAdapter(engine))


def get_approve_withdrawal_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ApproveWithdrawalUseCase:
    return ApproveWithdrawalUseCase(
        user_repo=UserRepositoryAdapter(engine),
        withdrawal_repo=WithdrawalRepositoryAdapter(engine),
        ledger=SqlFundingLedger(engine),
        notifier=notifier,
        recorder=recorder,
    )


def get_reject_withdrawal_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> RejectWithdrawalUseCase:
    return RejectWithdrawalUseCase(
        user_repo=UserRepositoryAdapter(engine),
        withdrawal_repo=WithdrawalRepositoryAdapter(engine),
        notifier=notifier,
        recorder=recorder,
    )


def get_export_withdrawals_use_case(
    engine: Engine = Depends(get_engine),
) -> ExportWithdrawalsUseCase:
    return ExportWithdrawalsUseCase(
        withdrawal_repo=WithdrawalRepositoryAdapter(engine), exporter=PandasCsvExporter()
    )


# --- Transfers ---


def get_list_all_transfers_use_case(
    engine: Engine = Depends(get_engine),
) -> ListAllTransfersUseCase:
    return ListAllTransfersUseCase(transfer_repo=FundTransferRepositoryAdapter(engine))


def get_transfer_stats_use_case(engine: Engine = Depends(get_engine)) -> TransferStatsUseCase:
    return TransferStatsUseCase(transfer_repo=FundTransferRepositoryAdapter(engine))


def get_approve_transfer_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ApproveTransferUseCase:
    return ApproveTransferUseCase(
        user_repo=UserRepositoryAdapter(engine),
        transfer_repo=FundTransferRepositoryAdapter(engine),
        ledger=SqlFundingLedger(engine),
        notifier=notifier,
        recorder=recorder,
    )


def get_reject_transfer_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> RejectTransferUseCase:
    return RejectTransferUseCase(
        user_repo=UserRepositoryAdapter(engine),
        transfer_repo=FundTransferRepositoryAdapter(engine),
        notifier=notifier,
        recorder=recorder,
    )


# --- Support ---


def get_list_all_tickets_use_case(engine: Engine = Depends(get_engine)) -> ListAllTicketsUseCase:
    return ListAllTicketsUseCase(ticket_repo=SupportTicketRepositoryAdapter(engine))


def get_any_ticket_use_case(engine: Engine = Depends(get_engine)) -> GetAnyTicketUseCase:
    return GetAnyTicketUseCase(ticket_repo=SupportTicketRepositoryAdapter(engine))


def get_admin_reply_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> AdminReplyUseCase:
    return AdminReplyUseCase(
        ticket_repo=SupportTicketRepositoryAdapter(engine), notifier=notifier, recorder=recorder
    )


def get_set_ticket_status_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> SetTicketStatusUseCase:
    return SetTicketStatusUseCase(
        ticket_repo=SupportTicketRepositoryAdapter(engine), notifier=notifier, recorder=recorder
    )


# --- Referrals and wallets ---


def get_list_referrals_use_case(engine: Engine = Depends(get_engine)) -> ListReferralsUseCase:
    return ListReferralsUseCase(user_repo=UserRepositoryAdapter(engine))


def get_process_referral_use_case(
    engine: Engine = Depends(get_engine),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> ProcessReferralUseCase:
    """Build ProcessReferralUseCase; new IB wallets get the default rate."""
    return ProcessReferralUseCase(
        user_repo=UserRepositoryAdapter(engine),
        wallet_repo=WalletRepositoryAdapter(engine),
        recorder=recorder,
        commission_rate=settings.ib_commission_rate,
    )


def get_list_wallets_use_case(engine: Engine = Depends(get_engine)) -> ListWalletsUseCase:
    return ListWalletsUseCase(wallet_repo=WalletRepositoryAdapter(engine))


# --- Reports ---


def get_admin_stats_use_case(engine: Engine = Depends(get_engine)) -> AdminStatsUseCase:
    return AdminStatsUseCase(
        user_repo=UserRepositoryAdapter(engine),
        document_repo=DocumentRepositoryAdapter(engine),
        account_repo=TradingAccountRepositoryAdapter(engine),
        deposit_repo=DepositRepositoryAdapter(engine),
        withdrawal_repo=WithdrawalRepositoryAdapter(engine),
    )


def get_list_activity_logs_use_case(
    engine: Engine = Depends(get_engine),
) -> ListActivityLogsUseCase:
    return ListActivityLogsUseCase(activity_repo=ActivityLogRepositoryAdapter(engine))

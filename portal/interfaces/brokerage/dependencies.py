"""
Dependency injection for the client-facing brokerage context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection.
These are the composition root for the client API.
"""

from fastapi import Depends
from sqlalchemy.engine import Engine

from portal.application.brokerage.auth import (
    GetCurrentUserUseCase,
    SignInUseCase,
    SignUpUseCase,
)
from portal.application.brokerage.dashboard import GetDashboardStatsUseCase
from portal.application.brokerage.documents import (
    GetVerificationStatusUseCase,
    ListDocumentsUseCase,
    UploadDocumentUseCase,
)
from portal.application.brokerage.funding import (
    ListDepositsUseCase,
    ListWithdrawalsUseCase,
    RequestDepositUseCase,
    RequestWithdrawalUseCase,
)
from portal.application.brokerage.notifications import (
    ListNotificationsUseCase,
    MarkNotificationReadUseCase,
    Notifier,
)
from portal.application.brokerage.profile import UpdateProfileUseCase
from portal.application.brokerage.referrals import GetIbStatsUseCase
from portal.application.brokerage.support import (
    GetTicketUseCase,
    ListTicketsUseCase,
    OpenTicketUseCase,
    ReplyToTicketUseCase,
)
from portal.application.brokerage.trading_accounts import (
    ChangeLeverageUseCase,
    GetTradingHistoryUseCase,
    ListTradingAccountsUseCase,
    OpenTradingAccountUseCase,
)
from portal.application.brokerage.transfers import (
    ExternalTransferUseCase,
    InternalTransferUseCase,
    ListTransfersUseCase,
)
from portal.core.config import settings
from portal.domain.brokerage.ports import PasswordHasher
from portal.infrastructure.brokerage.account_repository import (
    TradeRepositoryAdapter,
    TradingAccountRepositoryAdapter,
)
from portal.infrastructure.brokerage.client_repository import UserRepositoryAdapter
from portal.infrastructure.brokerage.document_repository import DocumentRepositoryAdapter
from portal.infrastructure.brokerage.funding_repository import (
    DepositRepositoryAdapter,
    FundTransferRepositoryAdapter,
    WithdrawalRepositoryAdapter,
)
from portal.infrastructure.brokerage.ledger import SqlFundingLedger
from portal.infrastructure.brokerage.notification_repository import (
    NotificationRepositoryAdapter,
)
from portal.infrastructure.brokerage.support_repository import (
    SupportTicketRepositoryAdapter,
)
from portal.infrastructure.brokerage.wallet_repository import WalletRepositoryAdapter
from portal.infrastructure.database.engine import get_engine
from portal.infrastructure.security.passwords import BcryptPasswordHasher


def get_password_hasher() -> PasswordHasher:
    """Build the password hasher with the configured bcrypt cost."""
    return BcryptPasswordHasher(rounds=settings.bcrypt_rounds)


def get_notifier(engine: Engine = Depends(get_engine)) -> Notifier:
    return Notifier(notification_repo=NotificationRepositoryAdapter(engine))


# --- Auth and profile ---


def get_sign_up_use_case(
    engine: Engine = Depends(get_engine),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> SignUpUseCase:
    """Build SignUpUseCase with its infrastructure dependencies."""
    return SignUpUseCase(user_repo=UserRepositoryAdapter(engine), hasher=hasher)


def get_sign_in_use_case(
    engine: Engine = Depends(get_engine),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> SignInUseCase:
    """Build SignInUseCase with its infrastructure dependencies."""
    return SignInUseCase(user_repo=UserRepositoryAdapter(engine), hasher=hasher)


def get_current_user_use_case(engine: Engine = Depends(get_engine)) -> GetCurrentUserUseCase:
    return GetCurrentUserUseCase(user_repo=UserRepositoryAdapter(engine))


def get_update_profile_use_case(engine: Engine = Depends(get_engine)) -> UpdateProfileUseCase:
    return UpdateProfileUseCase(user_repo=UserRepositoryAdapter(engine))


# --- Trading accounts ---


def get_list_trading_accounts_use_case(
    engine: Engine = Depends(get_engine),
) -> ListTradingAccountsUseCase:
    return ListTradingAccountsUseCase(account_repo=TradingAccountRepositoryAdapter(engine))


def get_open_trading_account_use_case(
    engine: Engine = Depends(get_engine),
) -> OpenTradingAccountUseCase:
    """Build OpenTradingAccountUseCase on the configured trading server."""
    return OpenTradingAccountUseCase(
        user_repo=UserRepositoryAdapter(engine),
        account_repo=TradingAccountRepositoryAdapter(engine),
        server=settings.default_trading_server,
    )


def get_change_leverage_use_case(engine: Engine = Depends(get_engine)) -> ChangeLeverageUseCase:
    return ChangeLeverageUseCase(account_repo=TradingAccountRepositoryAdapter(engine))


def get_trading_history_use_case(
    engine: Engine = Depends(get_engine),
) -> GetTradingHistoryUseCase:
    return GetTradingHistoryUseCase(
        account_repo=TradingAccountRepositoryAdapter(engine),
        trade_repo=TradeRepositoryAdapter(engine),
    )


def get_dashboard_stats_use_case(
    engine: Engine = Depends(get_engine),
) -> GetDashboardStatsUseCase:
    return GetDashboardStatsUseCase(
        account_repo=TradingAccountRepositoryAdapter(engine),
        trade_repo=TradeRepositoryAdapter(engine),
        deposit_repo=DepositRepositoryAdapter(engine),
    )


# --- Funding ---


def get_request_deposit_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
) -> RequestDepositUseCase:
    """Build RequestDepositUseCase with the configured minimum amount."""
    return RequestDepositUseCase(
        account_repo=TradingAccountRepositoryAdapter(engine),
        deposit_repo=DepositRepositoryAdapter(engine),
        notifier=notifier,
        min_amount=settings.min_deposit_amount,
    )


def get_list_deposits_use_case(engine: Engine = Depends(get_engine)) -> ListDepositsUseCase:
    return ListDepositsUseCase(deposit_repo=DepositRepositoryAdapter(engine))


def get_request_withdrawal_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
) -> RequestWithdrawalUseCase:
    return RequestWithdrawalUseCase(
        account_repo=TradingAccountRepositoryAdapter(engine),
        withdrawal_repo=WithdrawalRepositoryAdapter(engine),
        notifier=notifier,
    )


def get_list_withdrawals_use_case(
    engine: Engine = Depends(get_engine),
) -> ListWithdrawalsUseCase:
    return ListWithdrawalsUseCase(withdrawal_repo=WithdrawalRepositoryAdapter(engine))


# --- Transfers ---


def get_internal_transfer_use_case(
    engine: Engine = Depends(get_engine),
) -> InternalTransferUseCase:
    return InternalTransferUseCase(
        account_repo=TradingAccountRepositoryAdapter(engine),
        ledger=SqlFundingLedger(engine),
    )


def get_external_transfer_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
) -> ExternalTransferUseCase:
    """Build ExternalTransferUseCase with the configured fee rate."""
    return ExternalTransferUseCase(
        account_repo=TradingAccountRepositoryAdapter(engine),
        transfer_repo=FundTransferRepositoryAdapter(engine),
        notifier=notifier,
        fee_rate=settings.external_transfer_fee_rate,
    )


def get_list_transfers_use_case(engine: Engine = Depends(get_engine)) -> ListTransfersUseCase:
    return ListTransfersUseCase(transfer_repo=FundTransferRepositoryAdapter(engine))


# --- Documents ---


def get_upload_document_use_case(
    engine: Engine = Depends(get_engine),
    notifier: Notifier = Depends(get_notifier),
) -> UploadDocumentUseCase:
    return UploadDocumentUseCase(document_repo=DocumentRepositoryAdapter(engine), notifier=notifier)


def get_list_documents_use_case(engine: Engine = Depends(get_engine)) -> ListDocumentsUseCase:
    return ListDocumentsUseCase(document_repo=DocumentRepositoryAdapter(engine))


def get_verification_status_use_case(
    engine: Engine = Depends(get_engine),
) -> GetVerificationStatusUseCase:
    return GetVerificationStatusUseCase(document_repo=DocumentRepositoryAdapter(engine))


# --- Notifications ---


def get_list_notifications_use_case(
    engine: Engine = Depends(get_engine),
) -> ListNotificationsUseCase:
    return ListNotificationsUseCase(notification_repo=NotificationRepositoryAdapter(engine))


def get_mark_notification_read_use_case(
    engine: Engine = Depends(get_engine),
) -> MarkNotificationReadUseCase:
    return MarkNotificationReadUseCase(notification_repo=NotificationRepositoryAdapter(engine))


# --- Support ---


def get_open_ticket_use_case(engine: Engine = Depends(get_engine)) -> OpenTicketUseCase:
    return OpenTicketUseCase(ticket_repo=SupportTicketRepositoryAdapter(engine))


def get_list_tickets_use_case(engine: Engine = Depends(get_engine)) -> ListTicketsUseCase:
    return ListTicketsUseCase(ticket_repo=SupportTicketRepositoryAdapter(engine))


def get_ticket_use_case(engine: Engine = Depends(get_engine)) -> GetTicketUseCase:
    return GetTicketUseCase(ticket_repo=SupportTicketRepositoryAdapter(engine))


def get_reply_to_ticket_use_case(engine: Engine = Depends(get_engine)) -> ReplyToTicketUseCase:
    return ReplyToTicketUseCase(ticket_repo=SupportTicketRepositoryAdapter(engine))


# --- Introducing broker ---


def get_ib_stats_use_case(engine: Engine = Depends(get_engine)) -> GetIbStatsUseCase:
    """Build GetIbStatsUseCase with the default IB commission rate."""
    return GetIbStatsUseCase(
        user_repo=UserRepositoryAdapter(engine),
        deposit_repo=DepositRepositoryAdapter(engine),
        wallet_repo=WalletRepositoryAdapter(engine),
        default_rate=settings.ib_commission_rate,
    )

"""
FastAPI router for the client-facing brokerage API.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

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
from portal.application.brokerage.dtos import (
    ChangeLeverageCommand,
    ExternalTransferCommand,
    IbStats,
    InternalTransferCommand,
    OpenTicketCommand,
    OpenTradingAccountCommand,
    ReplyToTicketCommand,
    RequestDepositCommand,
    RequestWithdrawalCommand,
    SignInCommand,
    SignUpCommand,
    TradingHistoryQuery,
    UpdateProfileCommand,
    UploadDocumentCommand,
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
from portal.interfaces import session
from portal.interfaces.brokerage.dependencies import (
    get_change_leverage_use_case,
    get_current_user_use_case,
    get_dashboard_stats_use_case,
    get_external_transfer_use_case,
    get_ib_stats_use_case,
    get_internal_transfer_use_case,
    get_list_deposits_use_case,
    get_list_documents_use_case,
    get_list_notifications_use_case,
    get_list_tickets_use_case,
    get_list_trading_accounts_use_case,
    get_list_transfers_use_case,
    get_list_withdrawals_use_case,
    get_mark_notification_read_use_case,
    get_open_ticket_use_case,
    get_open_trading_account_use_case,
    get_reply_to_ticket_use_case,
    get_request_deposit_use_case,
    get_request_withdrawal_use_case,
    get_sign_in_use_case,
    get_sign_up_use_case,
    get_ticket_use_case,
    get_trading_history_use_case,
    get_update_profile_use_case,
    get_upload_document_use_case,
    get_verification_status_use_case,
)
from portal.interfaces.brokerage.schemas import (
    ChangeLeverageRequest,
    DashboardStatsResponse,
    DepositRequest,
    DepositResponse,
    DocumentResponse,
    DocumentUploadRequest,
    ErrorResponse,
    ExternalTransferRequest,
    FundTransferResponse,
    IbStatsResponse,
    InternalTransferRequest,
    MessageResponse,
    NotificationResponse,
    OpenTicketRequest,
    OpenTradingAccountRequest,
    ReferredClientResponse,
    SignInRequest,
    SignUpRequest,
    SupportTicketResponse,
    TicketDetailResponse,
    TicketReplyRequest,
    TicketReplyResponse,
    TradeResponse,
    TradingAccountCreatedResponse,
    TradingAccountResponse,
    UpdateProfileRequest,
    UserResponse,
    VerificationStatusResponse,
    WalletResponse,
    WithdrawalRequest,
    WithdrawalResponse,
)
from portal.shared.security.rate_limiting import AUTH_RATE_LIMIT, limiter

router = APIRouter(tags=["client"])

AUTH_RESPONSES = {401: {"model": ErrorResponse}}


# --- Auth ---


@router.post(
    "/auth/signup",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Register a client",
)
@limiter.limit(AUTH_RATE_LIMIT)
def sign_up(
    request: Request,
    payload: SignUpRequest,
    use_case: SignUpUseCase = Depends(get_sign_up_use_case),
) -> UserResponse:
    """Create a client account and start its session."""
    user = use_case.execute(
        SignUpCommand(
            email=payload.email,
            password=payload.password,
            full_name=payload.full_name,
            referral_code=payload.referral_code,
        )
    )
    session.start_client_session(request, user.id)
    return UserResponse.model_validate(user)


@router.post(
    "/auth/signin",
    response_model=UserResponse,
    responses=AUTH_RESPONSES,
    summary="Sign in a client",
)
@limiter.limit(AUTH_RATE_LIMIT)
def sign_in(
    request: Request,
    payload: SignInRequest,
    use_case: SignInUseCase = Depends(get_sign_in_use_case),
) -> UserResponse:
    user = use_case.execute(SignInCommand(email=payload.email, password=payload.password))
    session.start_client_session(request, user.id)
    return UserResponse.model_validate(user)


@router.post("/auth/logout", response_model=MessageResponse, summary="Sign out")
def sign_out(request: Request) -> MessageResponse:
    session.end_client_session(request)
    return MessageResponse(message="Signed out")


@router.get("/auth/me", response_model=UserResponse, responses=AUTH_RESPONSES)
def me(
    request: Request,
    use_case: GetCurrentUserUseCase = Depends(get_current_user_use_case),
) -> UserResponse:
    """Return the client of the current session."""
    return UserResponse.model_validate(use_case.execute(session.get_session_user_id(request)))


# --- Profile ---


@router.get("/profile", response_model=UserResponse, responses=AUTH_RESPONSES)
def get_profile(
    user_id: str = Depends(session.get_current_user_id),
    use_case: GetCurrentUserUseCase = Depends(get_current_user_use_case),
) -> UserResponse:
    return UserResponse.model_validate(use_case.execute(user_id))


@router.patch(
    "/profile",
    response_model=UserResponse,
    responses=AUTH_RESPONSES,
    summary="Update contact details",
)
def update_profile(
    payload: UpdateProfileRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: UpdateProfileUseCase = Depends(get_update_profile_use_case),
) -> UserResponse:
    user = use_case.execute(UpdateProfileCommand(user_id=user_id, **payload.model_dump()))
    return UserResponse.model_validate(user)


# --- Trading accounts ---


@router.get("/trading-accounts", response_model=list[TradingAccountResponse])
def list_trading_accounts(
    user_id: str = Depends(session.get_current_user_id),
    use_case: ListTradingAccountsUseCase = Depends(get_list_trading_accounts_use_case),
) -> list[TradingAccountResponse]:
    return [TradingAccountResponse.model_validate(a) for a in use_case.execute(user_id)]


@router.post(
    "/trading-accounts",
    response_model=TradingAccountCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, **AUTH_RESPONSES},
    summary="Open a trading account",
    description="The trading password is only returned in this response.",
)
def open_trading_account(
    payload: OpenTradingAccountRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: OpenTradingAccountUseCase = Depends(get_open_trading_account_use_case),
) -> TradingAccountCreatedResponse:
    account = use_case.execute(
        OpenTradingAccountCommand(
            user_id=user_id,
            type=payload.type,
            group=payload.group,
            leverage=payload.leverage,
        )
    )
    return TradingAccountCreatedResponse.model_validate(account)


@router.patch(
    "/trading-accounts/{account_id}",
    response_model=TradingAccountResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Change leverage",
)
def change_leverage(
    account_id: str,
    payload: ChangeLeverageRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: ChangeLeverageUseCase = Depends(get_change_leverage_use_case),
) -> TradingAccountResponse:
    account = use_case.execute(
        ChangeLeverageCommand(user_id=user_id, account_id=account_id, leverage=payload.leverage)
    )
    return TradingAccountResponse.model_validate(account)


@router.get("/trading-history", response_model=list[TradeResponse])
def trading_history(
    account_id: Optional[str] = Query(default=None),
    user_id: str = Depends(session.get_current_user_id),
    use_case: GetTradingHistoryUseCase = Depends(get_trading_history_use_case),
) -> list[TradeResponse]:
    trades = use_case.execute(TradingHistoryQuery(user_id=user_id, account_id=account_id))
    return [TradeResponse.model_validate(t) for t in trades]


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
def dashboard_stats(
    user_id: str = Depends(session.get_current_user_id),
    use_case: GetDashboardStatsUseCase = Depends(get_dashboard_stats_use_case),
) -> DashboardStatsResponse:
    return DashboardStatsResponse.model_validate(use_case.execute(user_id))


# --- Funding ---


@router.get("/deposits", response_model=list[DepositResponse])
def list_deposits(
    user_id: str = Depends(session.get_current_user_id),
    use_case: ListDepositsUseCase = Depends(get_list_deposits_use_case),
) -> list[DepositResponse]:
    return [DepositResponse.model_validate(d) for d in use_case.execute(user_id)]


@router.post(
    "/deposits",
    response_model=DepositResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Request a deposit",
    description="Records a Pending deposit for the back office to settle.",
)
def request_deposit(
    payload: DepositRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: RequestDepositUseCase = Depends(get_request_deposit_use_case),
) -> DepositResponse:
    deposit = use_case.execute(
        RequestDepositCommand(
            user_id=user_id,
            account_id=payload.account_id,
            amount=payload.amount,
            merchant=payload.merchant,
            verification_file=payload.verification_file,
        )
    )
    return DepositResponse.model_validate(deposit)


@router.get("/withdrawals", response_model=list[WithdrawalResponse])
def list_withdrawals(
    user_id: str = Depends(session.get_current_user_id),
    use_case: ListWithdrawalsUseCase = Depends(get_list_withdrawals_use_case),
) -> list[WithdrawalResponse]:
    return [WithdrawalResponse.model_validate(w) for w in use_case.execute(user_id)]


@router.post(
    "/withdrawals",
    response_model=WithdrawalResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Request a withdrawal",
)
def request_withdrawal(
    payload: WithdrawalRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: RequestWithdrawalUseCase = Depends(get_request_withdrawal_use_case),
) -> WithdrawalResponse:
    withdrawal = use_case.execute(RequestWithdrawalCommand(user_id=user_id, **payload.model_dump()))
    return WithdrawalResponse.model_validate(withdrawal)


# --- Transfers ---


@router.get("/fund-transfers", response_model=list[FundTransferResponse])
def list_transfers(
    user_id: str = Depends(session.get_current_user_id),
    use_case: ListTransfersUseCase = Depends(get_list_transfers_use_case),
) -> list[FundTransferResponse]:
    return [FundTransferResponse.model_validate(t) for t in use_case.execute(user_id)]


@router.post(
    "/fund-transfers/internal",
    response_model=FundTransferResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Move funds between own accounts",
)
def internal_transfer(
    payload: InternalTransferRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: InternalTransferUseCase = Depends(get_internal_transfer_use_case),
) -> FundTransferResponse:
    transfer = use_case.execute(InternalTransferCommand(user_id=user_id, **payload.model_dump()))
    return FundTransferResponse.model_validate(transfer)


@router.post(
    "/fund-transfers/external",
    response_model=FundTransferResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Send funds to another client",
    description="Records a Pending transfer; funds move on back-office approval.",
)
def external_transfer(
    payload: ExternalTransferRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: ExternalTransferUseCase = Depends(get_external_transfer_use_case),
) -> FundTransferResponse:
    transfer = use_case.execute(ExternalTransferCommand(user_id=user_id, **payload.model_dump()))
    return FundTransferResponse.model_validate(transfer)


# --- Documents ---


@router.get("/documents", response_model=list[DocumentResponse])
def list_documents(
    user_id: str = Depends(session.get_current_user_id),
    use_case: ListDocumentsUseCase = Depends(get_list_documents_use_case),
) -> list[DocumentResponse]:
    return [DocumentResponse.model_validate(d) for d in use_case.execute(user_id)]


@router.post(
    "/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a KYC document",
)
def upload_document(
    payload: DocumentUploadRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: UploadDocumentUseCase = Depends(get_upload_document_use_case),
) -> DocumentResponse:
    document = use_case.execute(UploadDocumentCommand(user_id=user_id, **payload.model_dump()))
    return DocumentResponse.model_validate(document)


@router.get("/documents/verification-status", response_model=VerificationStatusResponse)
def verification_status(
    user_id: str = Depends(session.get_current_user_id),
    use_case: GetVerificationStatusUseCase = Depends(get_verification_status_use_case),
) -> VerificationStatusResponse:
    return VerificationStatusResponse.model_validate(use_case.execute(user_id))


# --- Notifications ---


@router.get("/notifications", response_model=list[NotificationResponse])
def list_notifications(
    user_id: str = Depends(session.get_current_user_id),
    use_case: ListNotificationsUseCase = Depends(get_list_notifications_use_case),
) -> list[NotificationResponse]:
    return [NotificationResponse.model_validate(n) for n in use_case.execute(user_id)]


@router.patch(
    "/notifications/{notification_id}/read",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
def mark_notification_read(
    notification_id: str,
    user_id: str = Depends(session.get_current_user_id),
    use_case: MarkNotificationReadUseCase = Depends(get_mark_notification_read_use_case),
) -> MessageResponse:
    use_case.execute(user_id, notification_id)
    return MessageResponse(message="Notification marked as read")


# --- Support ---


@router.get("/support-tickets", response_model=list[SupportTicketResponse])
def list_tickets(
    user_id: str = Depends(session.get_current_user_id),
    use_case: ListTicketsUseCase = Depends(get_list_tickets_use_case),
) -> list[SupportTicketResponse]:
    return [SupportTicketResponse.model_validate(t) for t in use_case.execute(user_id)]


@router.post(
    "/support-tickets",
    response_model=SupportTicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a support ticket",
)
def open_ticket(
    payload: OpenTicketRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: OpenTicketUseCase = Depends(get_open_ticket_use_case),
) -> SupportTicketResponse:
    ticket = use_case.execute(
        OpenTicketCommand(
            user_id=user_id,
            subject=payload.subject,
            message=payload.message,
            category=payload.category,
            priority=payload.priority,
            attachments=tuple(payload.attachments),
        )
    )
    return SupportTicketResponse.model_validate(ticket)


@router.get(
    "/support-tickets/{ticket_id}",
    response_model=TicketDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_ticket(
    ticket_id: str,
    user_id: str = Depends(session.get_current_user_id),
    use_case: GetTicketUseCase = Depends(get_ticket_use_case),
) -> TicketDetailResponse:
    return TicketDetailResponse.model_validate(use_case.execute(user_id, ticket_id))


@router.post(
    "/support-tickets/{ticket_id}/reply",
    response_model=TicketReplyResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def reply_to_ticket(
    ticket_id: str,
    payload: TicketReplyRequest,
    user_id: str = Depends(session.get_current_user_id),
    use_case: ReplyToTicketUseCase = Depends(get_reply_to_ticket_use_case),
) -> TicketReplyResponse:
    reply = use_case.execute(
        ReplyToTicketCommand(
            user_id=user_id,
            ticket_id=ticket_id,
            message=payload.message,
            attachments=tuple(payload.attachments),
        )
    )
    return TicketReplyResponse.model_validate(reply)


# --- Introducing broker ---


def _ib_stats_response(stats: IbStats) -> IbStatsResponse:
    return IbStatsResponse(
        referral_id=stats.referral_id,
        wallet=WalletResponse.model_validate(stats.wallet) if stats.wallet else None,
        referrals=[
            ReferredClientResponse(
                id=r.user.id,
                email=r.user.email,
                full_name=r.user.full_name,
                joined_at=r.user.created_at,
                referral_status=r.user.referral_status,
                total_deposits=r.total_deposits,
                commission=r.commission,
            )
            for r in stats.referrals
        ],
        total_referrals=stats.total_referrals,
        active_referrals=stats.active_referrals,
        total_commission=stats.total_commission,
        pending_commission=stats.pending_commission,
    )


@router.get("/ib/stats", response_model=IbStatsResponse, summary="Introducing-broker stats")
def ib_stats(
    user_id: str = Depends(session.get_current_user_id),
    use_case: GetIbStatsUseCase = Depends(get_ib_stats_use_case),
) -> IbStatsResponse:
    return _ib_stats_response(use_case.execute(user_id))

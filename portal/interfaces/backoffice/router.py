"""
FastAPI router for the back office.

Every route except sign-in requires an enabled admin in the session.
Routes delegate to use cases, which apply the admin's visibility scope
and role rules. No business logic here.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from portal.application.backoffice.accounts import (
    AccountStatsUseCase,
    ListAllTradingAccountsUseCase,
    ToggleTradingAccountUseCase,
)
from portal.application.backoffice.admins import (
    AssignCountryUseCase,
    CreateAdminUseCase,
    ListAdminsUseCase,
    ListCountryAssignmentsUseCase,
    RemoveCountryUseCase,
    UpdateAdminUseCase,
)
from portal.application.backoffice.auth import AdminSignInUseCase, AdminSignOutUseCase
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
from portal.application.backoffice.dtos import (
    AdminContext,
    AdminReplyCommand,
    AdminSignInCommand,
    CountryAssignmentCommand,
    CreateAdminCommand,
    CsvExport,
    FundsAdjustmentCommand,
    ProcessRequestCommand,
    ReviewDocumentCommand,
    SetTicketStatusCommand,
    UpdateAdminCommand,
)
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
from portal.application.backoffice.reports import AdminStatsUseCase, ListActivityLogsUseCase
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
from portal.domain.brokerage.entities import (
    DepositStatus,
    DocumentStatus,
    TicketStatus,
    TradingAccount,
    WithdrawalStatus,
)
from portal.interfaces import session
from portal.interfaces.backoffice import dependencies as deps
from portal.interfaces.backoffice.schemas import (
    AccountStatsResponse,
    ActivityLogResponse,
    AdminReplyRequest,
    AdminResponse,
    AdminSessionResponse,
    AdminSignInRequest,
    AdminStatsResponse,
    BalanceResponse,
    CountryAssignmentResponse,
    CountryRequest,
    CreateAdminRequest,
    FundsAdjustmentRequest,
    ImpersonationResponse,
    ReasonRequest,
    ReferralResponse,
    TicketStatusRequest,
    TransferStatsResponse,
    UpdateAdminRequest,
    VerifyDocumentRequest,
)
from portal.interfaces.brokerage.schemas import (
    DepositResponse,
    DocumentResponse,
    ErrorResponse,
    FundTransferResponse,
    MessageResponse,
    SupportTicketResponse,
    TicketDetailResponse,
    TicketReplyResponse,
    TradingAccountResponse,
    UserResponse,
    WalletResponse,
    WithdrawalResponse,
)
from portal.shared.security.rate_limiting import AUTH_RATE_LIMIT, limiter

router = APIRouter(prefix="/admin", tags=["admin"])

SCOPED_RESPONSES = {401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
SUPER_RESPONSES = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
DECISION_RESPONSES = {400: {"model": ErrorResponse}, **SCOPED_RESPONSES}


def _csv_response(export: CsvExport) -> Response:
    return Response(
        content=export.content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


def _balance_response(account: TradingAccount) -> BalanceResponse:
    return BalanceResponse(
        account_id=account.id,
        account_number=account.account_number,
        balance=account.balance,
    )


# --- Auth ---


@router.post(
    "/auth/signin",
    response_model=AdminResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Sign in an admin",
)
@limiter.limit(AUTH_RATE_LIMIT)
def admin_sign_in(
    request: Request,
    payload: AdminSignInRequest,
    use_case: AdminSignInUseCase = Depends(deps.get_admin_sign_in_use_case),
) -> AdminResponse:
    admin = use_case.execute(
        AdminSignInCommand(
            username=payload.username,
            password=payload.password,
            ip_address=session.client_ip(request),
        )
    )
    session.start_admin_session(request, admin.id)
    return AdminResponse.model_validate(admin)


@router.post("/auth/logout", response_model=MessageResponse)
def admin_sign_out(
    request: Request,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: AdminSignOutUseCase = Depends(deps.get_admin_sign_out_use_case),
) -> MessageResponse:
    use_case.execute(context)
    session.end_admin_session(request)
    return MessageResponse(message="Signed out")


@router.get("/auth/me", response_model=AdminSessionResponse, responses=SCOPED_RESPONSES)
def admin_me(
    request: Request,
    context: AdminContext = Depends(deps.get_admin_context),
) -> AdminSessionResponse:
    """Return the signed-in admin, its countries, and any impersonated client."""
    countries = context.scope.countries
    impersonating = None
    if request.session.get(session.IMPERSONATOR_KEY):
        impersonating = session.get_session_user_id(request)
    return AdminSessionResponse(
        admin=AdminResponse.model_validate(context.admin),
        countries=sorted(countries) if countries is not None else None,
        impersonating=impersonating,
    )


# --- Overview ---


@router.get("/stats", response_model=AdminStatsResponse)
def admin_stats(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: AdminStatsUseCase = Depends(deps.get_admin_stats_use_case),
) -> AdminStatsResponse:
    return AdminStatsResponse.model_validate(use_case.execute(context))


@router.get("/activity-logs", response_model=list[ActivityLogResponse])
def activity_logs(
    limit: int = Query(default=200, ge=1, le=1000),
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListActivityLogsUseCase = Depends(deps.get_list_activity_logs_use_case),
) -> list[ActivityLogResponse]:
    """Return the activity log: all entries for super admins, own entries otherwise."""
    return [ActivityLogResponse.model_validate(e) for e in use_case.execute(context, limit)]


# --- Clients ---


@router.get("/users", response_model=list[UserResponse])
def list_users(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListUsersUseCase = Depends(deps.get_list_users_use_case),
) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in use_case.execute(context)]


@router.get("/users/{user_id}", response_model=UserResponse, responses=SCOPED_RESPONSES)
def get_user(
    user_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: GetUserUseCase = Depends(deps.get_user_use_case),
) -> UserResponse:
    return UserResponse.model_validate(use_case.execute(context, user_id))


@router.patch("/users/{user_id}/toggle", response_model=UserResponse, responses=SCOPED_RESPONSES)
def toggle_user(
    user_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ToggleUserUseCase = Depends(deps.get_toggle_user_use_case),
) -> UserResponse:
    return UserResponse.model_validate(use_case.execute(context, user_id))


@router.post(
    "/users/{user_id}/add-funds",
    response_model=BalanceResponse,
    responses={**DECISION_RESPONSES, **SUPER_RESPONSES},
    summary="Credit a client account",
)
def add_funds(
    user_id: str,
    payload: FundsAdjustmentRequest,
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: AddFundsUseCase = Depends(deps.get_add_funds_use_case),
) -> BalanceResponse:
    account = use_case.execute(
        FundsAdjustmentCommand(
            context=context,
            user_id=user_id,
            account_id=payload.account_id,
            amount=payload.amount,
            reason=payload.reason,
        )
    )
    return _balance_response(account)


@router.post(
    "/users/{user_id}/remove-funds",
    response_model=BalanceResponse,
    responses={**DECISION_RESPONSES, **SUPER_RESPONSES},
    summary="Debit a client account",
)
def remove_funds(
    user_id: str,
    payload: FundsAdjustmentRequest,
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: RemoveFundsUseCase = Depends(deps.get_remove_funds_use_case),
) -> BalanceResponse:
    account = use_case.execute(
        FundsAdjustmentCommand(
            context=context,
            user_id=user_id,
            account_id=payload.account_id,
            amount=payload.amount,
            reason=payload.reason,
        )
    )
    return _balance_response(account)


@router.post(
    "/users/{user_id}/impersonate",
    response_model=ImpersonationResponse,
    responses={**SCOPED_RESPONSES, **SUPER_RESPONSES},
    summary="Act as a client",
    description="Moves the session to the client; the admin session is kept.",
)
def impersonate(
    user_id: str,
    request: Request,
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: ImpersonateUserUseCase = Depends(deps.get_impersonate_user_use_case),
) -> ImpersonationResponse:
    user = use_case.execute(context, user_id)
    session.begin_impersonation(request, admin_id=context.admin.id, user_id=user.id)
    return ImpersonationResponse(message=f"Now impersonating {user.email}", user_id=user.id)


@router.post(
    "/stop-impersonation",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
)
def stop_impersonation(
    request: Request,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: StopImpersonationUseCase = Depends(deps.get_stop_impersonation_use_case),
) -> MessageResponse:
    user_id = session.impersonated_user_id(request)
    use_case.execute(context, user_id)
    session.end_impersonation(request)
    return MessageResponse(message="Impersonation stopped")


# --- Admin management ---


@router.get("/admins", response_model=list[AdminResponse], responses=SUPER_RESPONSES)
def list_admins(
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: ListAdminsUseCase = Depends(deps.get_list_admins_use_case),
) -> list[AdminResponse]:
    return [AdminResponse.model_validate(a) for a in use_case.execute(context)]


@router.post(
    "/admins",
    response_model=AdminResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, **SUPER_RESPONSES},
)
def create_admin(
    payload: CreateAdminRequest,
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: CreateAdminUseCase = Depends(deps.get_create_admin_use_case),
) -> AdminResponse:
    admin = use_case.execute(CreateAdminCommand(context=context, **payload.model_dump()))
    return AdminResponse.model_validate(admin)


@router.patch(
    "/admins/{admin_id}",
    response_model=AdminResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, **SUPER_RESPONSES},
)
def update_admin(
    admin_id: str,
    payload: UpdateAdminRequest,
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: UpdateAdminUseCase = Depends(deps.get_update_admin_use_case),
) -> AdminResponse:
    admin = use_case.execute(
        UpdateAdminCommand(context=context, admin_id=admin_id, **payload.model_dump())
    )
    return AdminResponse.model_validate(admin)


@router.get(
    "/country-assignments",
    response_model=list[CountryAssignmentResponse],
    responses=SUPER_RESPONSES,
)
def list_country_assignments(
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: ListCountryAssignmentsUseCase = Depends(deps.get_list_country_assignments_use_case),
) -> list[CountryAssignmentResponse]:
    return [CountryAssignmentResponse.model_validate(a) for a in use_case.execute(context)]


@router.get("/country-assignments/mine", response_model=list[CountryAssignmentResponse])
def my_country_assignments(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListCountryAssignmentsUseCase = Depends(deps.get_list_country_assignments_use_case),
) -> list[CountryAssignmentResponse]:
    assignments = use_case.execute(context, own_only=True)
    return [CountryAssignmentResponse.model_validate(a) for a in assignments]


@router.post(
    "/admins/{admin_id}/countries",
    response_model=list[CountryAssignmentResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, **SUPER_RESPONSES},
    summary="Assign a country to a middle admin",
)
def assign_country(
    admin_id: str,
    payload: CountryRequest,
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: AssignCountryUseCase = Depends(deps.get_assign_country_use_case),
) -> list[CountryAssignmentResponse]:
    assignments = use_case.execute(
        CountryAssignmentCommand(context=context, admin_id=admin_id, country=payload.country)
    )
    return [CountryAssignmentResponse.model_validate(a) for a in assignments]


@router.delete(
    "/admins/{admin_id}/countries/{country}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, **SUPER_RESPONSES},
)
def remove_country(
    admin_id: str,
    country: str,
    context: AdminContext = Depends(deps.get_super_admin_context),
    use_case: RemoveCountryUseCase = Depends(deps.get_remove_country_use_case),
) -> MessageResponse:
    use_case.execute(CountryAssignmentCommand(context=context, admin_id=admin_id, country=country))
    return MessageResponse(message=f"Country {country} removed")


# --- Documents ---


@router.get("/documents", response_model=list[DocumentResponse])
def list_documents(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListAllDocumentsUseCase = Depends(deps.get_list_all_documents_use_case),
) -> list[DocumentResponse]:
    return [DocumentResponse.model_validate(d) for d in use_case.execute(context)]


def _review(
    use_case: ReviewDocumentUseCase,
    context: AdminContext,
    document_id: str,
    status_: DocumentStatus,
    reason: Optional[str],
) -> DocumentResponse:
    document = use_case.execute(
        ReviewDocumentCommand(
            context=context, document_id=document_id, status=status_, reason=reason
        )
    )
    return DocumentResponse.model_validate(document)


@router.post(
    "/documents/{document_id}/approve",
    response_model=DocumentResponse,
    responses=DECISION_RESPONSES,
)
def approve_document(
    document_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ReviewDocumentUseCase = Depends(deps.get_review_document_use_case),
) -> DocumentResponse:
    return _review(use_case, context, document_id, DocumentStatus.VERIFIED, None)


@router.post(
    "/documents/{document_id}/reject",
    response_model=DocumentResponse,
    responses=DECISION_RESPONSES,
)
def reject_document(
    document_id: str,
    payload: ReasonRequest,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ReviewDocumentUseCase = Depends(deps.get_review_document_use_case),
) -> DocumentResponse:
    return _review(use_case, context, document_id, DocumentStatus.REJECTED, payload.reason)


@router.patch(
    "/documents/{document_id}/verify",
    response_model=DocumentResponse,
    responses=DECISION_RESPONSES,
    summary="Approve or reject a document",
)
def verify_document(
    document_id: str,
    payload: VerifyDocumentRequest,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ReviewDocumentUseCase = Depends(deps.get_review_document_use_case),
) -> DocumentResponse:
    return _review(use_case, context, document_id, payload.status, payload.reason)


# --- Trading accounts ---


@router.get("/trading-accounts", response_model=list[TradingAccountResponse])
def list_trading_accounts(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListAllTradingAccountsUseCase = Depends(deps.get_list_all_trading_accounts_use_case),
) -> list[TradingAccountResponse]:
    return [TradingAccountResponse.model_validate(a) for a in use_case.execute(context)]


@router.get("/trading-accounts/stats", response_model=AccountStatsResponse)
def trading_account_stats(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: AccountStatsUseCase = Depends(deps.get_account_stats_use_case),
) -> AccountStatsResponse:
    return AccountStatsResponse.model_validate(use_case.execute(context))


@router.patch(
    "/trading-accounts/{account_id}/toggle",
    response_model=TradingAccountResponse,
    responses=SCOPED_RESPONSES,
)
def toggle_trading_account(
    account_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ToggleTradingAccountUseCase = Depends(deps.get_toggle_trading_account_use_case),
) -> TradingAccountResponse:
    return TradingAccountResponse.model_validate(use_case.execute(context, account_id))


# --- Deposits ---


@router.get("/deposits", response_model=list[DepositResponse])
def list_deposits(
    status_filter: Optional[DepositStatus] = Query(default=None, alias="status"),
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListAllDepositsUseCase = Depends(deps.get_list_all_deposits_use_case),
) -> list[DepositResponse]:
    return [DepositResponse.model_validate(d) for d in use_case.execute(context, status_filter)]


@router.get("/deposits/export", response_class=Response, summary="Export deposits as CSV")
def export_deposits(
    status_filter: Optional[DepositStatus] = Query(default=None, alias="status"),
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ExportDepositsUseCase = Depends(deps.get_export_deposits_use_case),
) -> Response:
    return _csv_response(use_case.execute(context, status_filter))


@router.post(
    "/deposits/{deposit_id}/approve",
    response_model=DepositResponse,
    responses=DECISION_RESPONSES,
    summary="Complete a deposit",
    description="Credits the account and pays any IB commission atomically.",
)
def approve_deposit(
    deposit_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ApproveDepositUseCase = Depends(deps.get_approve_deposit_use_case),
) -> DepositResponse:
    deposit = use_case.execute(ProcessRequestCommand(context=context, record_id=deposit_id))
    return DepositResponse.model_validate(deposit)


@router.post(
    "/deposits/{deposit_id}/reject",
    response_model=DepositResponse,
    responses=DECISION_RESPONSES,
)
def reject_deposit(
    deposit_id: str,
    payload: ReasonRequest,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: RejectDepositUseCase = Depends(deps.get_reject_deposit_use_case),
) -> DepositResponse:
    deposit = use_case.execute(
        ProcessRequestCommand(context=context, record_id=deposit_id, reason=payload.reason)
    )
    return DepositResponse.model_validate(deposit)


# --- Withdrawals ---


@router.get("/withdrawals", response_model=list[WithdrawalResponse])
def list_withdrawals(
    status_filter: Optional[WithdrawalStatus] = Query(default=None, alias="status"),
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListAllWithdrawalsUseCase = Depends(deps.get_list_all_withdrawals_use_case),
) -> list[WithdrawalResponse]:
    withdrawals = use_case.execute(context, status_filter)
    return [WithdrawalResponse.model_validate(w) for w in withdrawals]


@router.get("/withdrawals/export", response_class=Response, summary="Export withdrawals as CSV")
def export_withdrawals(
    status_filter: Optional[WithdrawalStatus] = Query(default=None, alias="status"),
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ExportWithdrawalsUseCase = Depends(deps.get_export_withdrawals_use_case),
) -> Response:
    return _csv_response(use_case.execute(context, status_filter))


@router.post(
    "/withdrawals/{withdrawal_id}/approve",
    response_model=WithdrawalResponse,
    responses=DECISION_RESPONSES,
    summary="Complete a withdrawal",
    description="Debits the account; fails without changes if the balance no longer covers it.",
)
def approve_withdrawal(
    withdrawal_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ApproveWithdrawalUseCase = Depends(deps.get_approve_withdrawal_use_case),
) -> WithdrawalResponse:
    withdrawal = use_case.execute(ProcessRequestCommand(context=context, record_id=withdrawal_id))
    return WithdrawalResponse.model_validate(withdrawal)


@router.post(
    "/withdrawals/{withdrawal_id}/reject",
    response_model=WithdrawalResponse,
    responses=DECISION_RESPONSES,
)
def reject_withdrawal(
    withdrawal_id: str,
    payload: ReasonRequest,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: RejectWithdrawalUseCase = Depends(deps.get_reject_withdrawal_use_case),
) -> WithdrawalResponse:
    withdrawal = use_case.execute(
        ProcessRequestCommand(context=context, record_id=withdrawal_id, reason=payload.reason)
    )
    return WithdrawalResponse.model_validate(withdrawal)


# --- Transfers ---


@router.get("/fund-transfers", response_model=list[FundTransferResponse])
def list_transfers(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListAllTransfersUseCase = Depends(deps.get_list_all_transfers_use_case),
) -> list[FundTransferResponse]:
    return [FundTransferResponse.model_validate(t) for t in use_case.execute(context)]


@router.get("/fund-transfers/stats", response_model=TransferStatsResponse)
def transfer_stats(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: TransferStatsUseCase = Depends(deps.get_transfer_stats_use_case),
) -> TransferStatsResponse:
    return TransferStatsResponse.model_validate(use_case.execute(context))


@router.post(
    "/fund-transfers/{transfer_id}/approve",
    response_model=FundTransferResponse,
    responses=DECISION_RESPONSES,
)
def approve_transfer(
    transfer_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ApproveTransferUseCase = Depends(deps.get_approve_transfer_use_case),
) -> FundTransferResponse:
    transfer = use_case.execute(ProcessRequestCommand(context=context, record_id=transfer_id))
    return FundTransferResponse.model_validate(transfer)


@router.post(
    "/fund-transfers/{transfer_id}/reject",
    response_model=FundTransferResponse,
    responses=DECISION_RESPONSES,
)
def reject_transfer(
    transfer_id: str,
    payload: ReasonRequest,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: RejectTransferUseCase = Depends(deps.get_reject_transfer_use_case),
) -> FundTransferResponse:
    transfer = use_case.execute(
        ProcessRequestCommand(context=context, record_id=transfer_id, reason=payload.reason)
    )
    return FundTransferResponse.model_validate(transfer)


# --- Support ---


@router.get("/support-tickets", response_model=list[SupportTicketResponse])
def list_tickets(
    status_filter: Optional[TicketStatus] = Query(default=None, alias="status"),
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListAllTicketsUseCase = Depends(deps.get_list_all_tickets_use_case),
) -> list[SupportTicketResponse]:
    tickets = use_case.execute(context, status_filter)
    return [SupportTicketResponse.model_validate(t) for t in tickets]


@router.get(
    "/support-tickets/{ticket_id}",
    response_model=TicketDetailResponse,
    responses=SCOPED_RESPONSES,
)
def get_ticket(
    ticket_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: GetAnyTicketUseCase = Depends(deps.get_any_ticket_use_case),
) -> TicketDetailResponse:
    return TicketDetailResponse.model_validate(use_case.execute(context, ticket_id))


@router.post(
    "/support-tickets/{ticket_id}/reply",
    response_model=TicketReplyResponse,
    status_code=status.HTTP_201_CREATED,
    responses=DECISION_RESPONSES,
)
def reply_to_ticket(
    ticket_id: str,
    payload: AdminReplyRequest,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: AdminReplyUseCase = Depends(deps.get_admin_reply_use_case),
) -> TicketReplyResponse:
    reply = use_case.execute(
        AdminReplyCommand(context=context, ticket_id=ticket_id, message=payload.message)
    )
    return TicketReplyResponse.model_validate(reply)


@router.patch(
    "/support-tickets/{ticket_id}/status",
    response_model=SupportTicketResponse,
    responses=SCOPED_RESPONSES,
)
def set_ticket_status(
    ticket_id: str,
    payload: TicketStatusRequest,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: SetTicketStatusUseCase = Depends(deps.get_set_ticket_status_use_case),
) -> SupportTicketResponse:
    ticket = use_case.execute(
        SetTicketStatusCommand(context=context, ticket_id=ticket_id, status=payload.status)
    )
    return SupportTicketResponse.model_validate(ticket)


# --- Referrals and wallets ---


@router.get("/referrals", response_model=list[ReferralResponse])
def list_referrals(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListReferralsUseCase = Depends(deps.get_list_referrals_use_case),
) -> list[ReferralResponse]:
    return [
        ReferralResponse(
            user_id=r.user.id,
            email=r.user.email,
            full_name=r.user.full_name,
            country=r.user.country,
            referral_status=r.user.referral_status,
            joined_at=r.user.created_at,
            referrer_id=r.user.referred_by,
            referrer_name=r.referrer.full_name if r.referrer else None,
            referrer_email=r.referrer.email if r.referrer else None,
            referrer_referral_id=r.referrer.referral_id if r.referrer else None,
        )
        for r in use_case.execute(context)
    ]


@router.post(
    "/referrals/{user_id}/accept",
    response_model=UserResponse,
    responses=DECISION_RESPONSES,
    summary="Accept a referral",
    description="Opens an IB wallet for the referrer if it has none.",
)
def accept_referral(
    user_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ProcessReferralUseCase = Depends(deps.get_process_referral_use_case),
) -> UserResponse:
    return UserResponse.model_validate(use_case.execute(context, user_id, accept=True))


@router.post(
    "/referrals/{user_id}/reject",
    response_model=UserResponse,
    responses=DECISION_RESPONSES,
)
def reject_referral(
    user_id: str,
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ProcessReferralUseCase = Depends(deps.get_process_referral_use_case),
) -> UserResponse:
    return UserResponse.model_validate(use_case.execute(context, user_id, accept=False))


@router.get("/wallets", response_model=list[WalletResponse])
def list_wallets(
    context: AdminContext = Depends(deps.get_admin_context),
    use_case: ListWalletsUseCase = Depends(deps.get_list_wallets_use_case),
) -> list[WalletResponse]:
    return [WalletResponse.model_validate(w) for w in use_case.execute(context)]

"""
Row <-> entity conversion for the SQL adapters.

Money and quantities are stored as decimal text and come back as
``Decimal``. Attachment lists are stored as JSON arrays.
"""

import json
from decimal import Decimal
from typing import Any, Optional

from portal.domain.brokerage.entities import (
    AccountGroup,
    AccountType,
    ActivityLog,
    AdminRole,
    AdminUser,
    CountryAssignment,
    Deposit,
    DepositStatus,
    Document,
    DocumentStatus,
    DocumentType,
    FundTransfer,
    Notification,
    NotificationType,
    ReferralStatus,
    SupportTicket,
    TicketCategory,
    TicketPriority,
    TicketReply,
    TicketStatus,
    Trade,
    TradeSide,
    TradeStatus,
    TradingAccount,
    TransferStatus,
    TransferType,
    User,
    Wallet,
    WalletType,
    Withdrawal,
    WithdrawalStatus,
    to_money,
)


def dec(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def money_text(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(to_money(value))


def dec_text(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _attachments_out(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(json.loads(raw))


def _attachments_in(items: tuple[str, ...]) -> Optional[str]:
    return json.dumps(list(items)) if items else None


def row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password,
        email=row.email,
        full_name=row.full_name,
        phone=row.phone,
        country=row.country,
        city=row.city,
        address=row.address,
        zip_code=row.zip_code,
        referral_id=row.referral_id,
        referred_by=row.referred_by,
        referral_status=ReferralStatus(row.referral_status or ReferralStatus.PENDING.value),
        verified=bool(row.verified),
        enabled=bool(row.enabled),
        created_at=row.created_at,
    )


def user_to_values(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "password": user.password_hash,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "country": user.country,
        "city": user.city,
        "address": user.address,
        "zip_code": user.zip_code,
        "referral_id": user.referral_id,
        "referred_by": user.referred_by,
        "referral_status": user.referral_status.value,
        "verified": user.verified,
        "enabled": user.enabled,
        "created_at": user.created_at,
    }


def row_to_admin(row) -> AdminUser:
    return AdminUser(
        id=row.id,
        username=row.username,
        password_hash=row.password,
        email=row.email,
        full_name=row.full_name,
        role=AdminRole(row.role),
        enabled=bool(row.enabled),
        created_at=row.created_at,
        created_by=row.created_by,
    )


def admin_to_values(admin: AdminUser) -> dict:
    return {
        "id": admin.id,
        "username": admin.username,
        "password": admin.password_hash,
        "email": admin.email,
        "full_name": admin.full_name,
        "role": admin.role.value,
        "enabled": admin.enabled,
        "created_at": admin.created_at,
        "created_by": admin.created_by,
    }


def row_to_assignment(row) -> CountryAssignment:
    return CountryAssignment(
        id=row.id, admin_id=row.admin_id, country=row.country, created_at=row.created_at
    )


def row_to_activity(row) -> ActivityLog:
    return ActivityLog(
        id=row.id,
        action=row.action,
        entity=row.entity,
        admin_id=row.admin_id,
        user_id=row.user_id,
        entity_id=row.entity_id,
        details=row.details,
        ip_address=row.ip_address,
        created_at=row.created_at,
    )


def row_to_account(row) -> TradingAccount:
    return TradingAccount(
        id=row.id,
        user_id=row.user_id,
        account_number=row.account_id,
        password=row.password,
        type=AccountType(row.type),
        group=AccountGroup(row.group),
        leverage=row.leverage,
        balance=to_money(row.balance),
        equity=to_money(row.equity),
        margin=to_money(row.margin),
        free_margin=to_money(row.free_margin),
        margin_level=to_money(row.margin_level),
        currency=row.currency,
        server=row.server,
        enabled=bool(row.enabled),
        created_at=row.created_at,
    )


def account_to_values(account: TradingAccount) -> dict:
    return {
        "id": account.id,
        "user_id": account.user_id,
        "account_id": account.account_number,
        "password": account.password,
        "type": account.type.value,
        "group": account.group.value,
        "leverage": account.leverage,
        "currency": account.currency,
        "server": account.server,
        "enabled": account.enabled,
        "created_at": account.created_at,
        **balance_values(account),
    }


def balance_values(account: TradingAccount) -> dict:
    return {
        "balance": money_text(account.balance),
        "equity": money_text(account.equity),
        "margin": money_text(account.margin),
        "free_margin": money_text(account.free_margin),
        "margin_level": money_text(account.margin_level),
    }


def row_to_trade(row) -> Trade:
    return Trade(
        id=row.id,
        user_id=row.user_id,
        account_id=row.account_id,
        ticket_id=row.ticket_id,
        symbol=row.symbol,
        side=TradeSide(row.type),
        volume=dec(row.volume),
        open_price=dec(row.open_price),
        status=TradeStatus(row.status),
        close_price=dec(row.close_price),
        stop_loss=dec(row.stop_loss),
        take_profit=dec(row.take_profit),
        profit=None if row.profit is None else to_money(row.profit),
        commission=to_money(row.commission),
        swap=to_money(row.swap),
        open_time=row.open_time,
        close_time=row.close_time,
    )


def trade_to_values(trade: Trade) -> dict:
    return {
        "id": trade.id,
        "user_id": trade.user_id,
        "account_id": trade.account_id,
        "ticket_id": trade.ticket_id,
        "symbol": trade.symbol,
        "type": trade.side.value,
        "volume": dec_text(trade.volume),
        "open_price": dec_text(trade.open_price),
        "close_price": dec_text(trade.close_price),
        "stop_loss": dec_text(trade.stop_loss),
        "take_profit": dec_text(trade.take_profit),
        "profit": money_text(trade.profit),
        "commission": money_text(trade.commission),
        "swap": money_text(trade.swap),
        "status": trade.status.value,
        "open_time": trade.open_time,
        "close_time": trade.close_time,
    }


def row_to_deposit(row) -> Deposit:
    return Deposit(
        id=row.id,
        user_id=row.user_id,
        account_id=row.account_id,
        merchant=row.merchant,
        amount=to_money(row.amount),
        currency=row.currency,
        status=DepositStatus(row.status),
        transaction_id=row.transaction_id,
        verification_file=row.verification_file,
        deposit_date=row.deposit_date,
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


def deposit_to_values(deposit: Deposit) -> dict:
    return {
        "id": deposit.id,
        "user_id": deposit.user_id,
        "account_id": deposit.account_id,
        "merchant": deposit.merchant,
        "amount": money_text(deposit.amount),
        "currency": deposit.currency,
        "status": deposit.status.value,
        "transaction_id": deposit.transaction_id,
        "verification_file": deposit.verification_file,
        "deposit_date": deposit.deposit_date,
        "created_at": deposit.created_at,
        "completed_at": deposit.completed_at,
    }


def row_to_withdrawal(row) -> Withdrawal:
    return Withdrawal(
        id=row.id,
        user_id=row.user_id,
        account_id=row.account_id,
        method=row.method,
        amount=to_money(row.amount),
        currency=row.currency,
        bank_name=row.bank_name,
        account_number=row.account_number,
        account_holder_name=row.account_holder_name,
        swift_code=row.swift_code,
        status=WithdrawalStatus(row.status),
        rejection_reason=row.rejection_reason,
        created_at=row.created_at,
        processed_at=row.processed_at,
    )


def withdrawal_to_values(withdrawal: Withdrawal) -> dict:
    return {
        "id": withdrawal.id,
        "user_id": withdrawal.user_id,
        "account_id": withdrawal.account_id,
        "method": withdrawal.method,
        "amount": money_text(withdrawal.amount),
        "currency": withdrawal.currency,
        "bank_name": withdrawal.bank_name,
        "account_number": withdrawal.account_number,
        "account_holder_name": withdrawal.account_holder_name,
        "swift_code": withdrawal.swift_code,
        "status": withdrawal.status.value,
        "rejection_reason": withdrawal.rejection_reason,
        "created_at": withdrawal.created_at,
        "processed_at": withdrawal.processed_at,
    }


def row_to_transfer(row) -> FundTransfer:
    return FundTransfer(
        id=row.id,
        user_id=row.user_id,
        from_account_id=row.from_account_id,
        to_account_id=row.to_account_id,
        amount=to_money(row.amount),
        transfer_type=TransferType(row.transfer_type),
        fee=to_money(row.fee),
        currency=row.currency,
        status=TransferStatus(row.status),
        notes=row.notes,
        processed_by=row.processed_by,
        created_at=row.created_at,
        processed_at=row.processed_at,
    )


def transfer_to_values(transfer: FundTransfer) -> dict:
    return {
        "id": transfer.id,
        "user_id": transfer.user_id,
        "from_account_id": transfer.from_account_id,
        "to_account_id": transfer.to_account_id,
        "amount": money_text(transfer.amount),
        "transfer_type": transfer.transfer_type.value,
        "fee": money_text(transfer.fee),
        "currency": transfer.currency,
        "status": transfer.status.value,
        "notes": transfer.notes,
        "processed_by": transfer.processed_by,
        "created_at": transfer.created_at,
        "processed_at": transfer.processed_at,
    }


def row_to_document(row) -> Document:
    return Document(
        id=row.id,
        user_id=row.user_id,
        type=DocumentType(row.type),
        file_name=row.file_name,
        file_url=row.file_url,
        status=DocumentStatus(row.status),
        rejection_reason=row.rejection_reason,
        approved_by=row.approved_by,
        uploaded_at=row.uploaded_at,
        verified_at=row.verified_at,
    )


def document_to_values(document: Document) -> dict:
    return {
        "id": document.id,
        "user_id": document.user_id,
        "type": document.type.value,
        "file_name": document.file_name,
        "file_url": document.file_url,
        "status": document.status.value,
        "rejection_reason": document.rejection_reason,
        "approved_by": document.approved_by,
        "uploaded_at": document.uploaded_at,
        "verified_at": document.verified_at,
    }


def row_to_notification(row) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        message=row.message,
        type=NotificationType(row.type),
        read=bool(row.read),
        created_at=row.created_at,
    )


def row_to_ticket(row) -> SupportTicket:
    return SupportTicket(
        id=row.id,
        subject=row.subject,
        message=row.message,
        user_id=row.user_id,
        admin_id=row.admin_id,
        status=TicketStatus(row.status),
        priority=TicketPriority(row.priority),
        category=TicketCategory(row.category) if row.category else None,
        attachments=_attachments_out(row.attachments),
        created_at=row.created_at,
        updated_at=row.updated_at,
        resolved_at=row.resolved_at,
    )


def ticket_to_values(ticket: SupportTicket) -> dict:
    return {
        "id": ticket.id,
        "user_id": ticket.user_id,
        "admin_id": ticket.admin_id,
        "subject": ticket.subject,
        "message": ticket.message,
        "status": ticket.status.value,
        "priority": ticket.priority.value,
        "category": ticket.category.value if ticket.category else None,
        "attachments": _attachments_in(ticket.attachments),
        "created_at": ticket.created_at,
        "updated_at": ticket.updated_at,
        "resolved_at": ticket.resolved_at,
    }


def row_to_reply(row) -> TicketReply:
    return TicketReply(
        id=row.id,
        ticket_id=row.ticket_id,
        message=row.message,
        user_id=row.user_id,
        admin_id=row.admin_id,
        attachments=_attachments_out(row.attachments),
        created_at=row.created_at,
    )


def reply_to_values(reply: TicketReply) -> dict:
    return {
        "id": reply.id,
        "ticket_id": reply.ticket_id,
        "user_id": reply.user_id,
        "admin_id": reply.admin_id,
        "message": reply.message,
        "attachments": _attachments_in(reply.attachments),
        "created_at": reply.created_at,
    }


def row_to_wallet(row) -> Wallet:
    return Wallet(
        id=row.id,
        user_id=row.user_id,
        wallet_type=WalletType(row.wallet_type),
        balance=to_money(row.balance),
        currency=row.currency,
        commission_rate=dec(row.commission_rate) or Decimal("0"),
        total_commission=to_money(row.total_commission),
        enabled=bool(row.enabled),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def wallet_to_values(wallet: Wallet) -> dict:
    return {
        "id": wallet.id,
        "user_id": wallet.user_id,
        "wallet_type": wallet.wallet_type.value,
        "balance": money_text(wallet.balance),
        "currency": wallet.currency,
        "commission_rate": dec_text(wallet.commission_rate),
        "total_commission": money_text(wallet.total_commission),
        "enabled": wallet.enabled,
        "created_at": wallet.created_at,
        "updated_at": wallet.updated_at,
    }

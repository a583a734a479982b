"""
Relational schema of the portal.

A single SQLAlchemy ``MetaData`` definition that is compiled for the
target dialect (SQLite or PostgreSQL) at bootstrap time. Monetary
columns are decimal text so that no precision is lost on either
backend; the repositories convert them to ``Decimal``.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    Table,
    Text,
    text,
)

metadata = MetaData()

MONEY_ZERO = text("'0'")
TRUE = text("TRUE")
FALSE = text("FALSE")
NOW = text("CURRENT_TIMESTAMP")


def _created_at() -> Column:
    return Column("created_at", DateTime, nullable=False, server_default=NOW)


users = Table(
    "users",
    metadata,
    Column("id", Text, primary_key=True),
    Column("username", Text, nullable=False, unique=True),
    Column("password", Text, nullable=False),
    Column("email", Text, nullable=False, unique=True),
    Column("full_name", Text),
    Column("phone", Text),
    Column("country", Text),
    Column("city", Text),
    Column("address", Text),
    Column("zip_code", Text),
    Column("referral_id", Text, unique=True),
    Column("referred_by", Text),
    Column("referral_status", Text, server_default=text("'Pending'")),
    Column("verified", Boolean, nullable=False, server_default=FALSE),
    Column("enabled", Boolean, nullable=False, server_default=TRUE),
    _created_at(),
)

admin_users = Table(
    "admin_users",
    metadata,
    Column("id", Text, primary_key=True),
    Column("username", Text, nullable=False, unique=True),
    Column("password", Text, nullable=False),
    Column("email", Text, nullable=False, unique=True),
    Column("full_name", Text, nullable=False),
    Column("role", Text, nullable=False),
    Column("enabled", Boolean, nullable=False, server_default=TRUE),
    _created_at(),
    Column("created_by", Text),
)

trading_accounts = Table(
    "trading_accounts",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("account_id", Text, nullable=False, unique=True),
    Column("password", Text, nullable=False),
    Column("type", Text, nullable=False),
    Column("group", Text, nullable=False),
    Column("leverage", Text, nullable=False),
    Column("balance", Text, nullable=False, server_default=MONEY_ZERO),
    Column("equity", Text, nullable=False, server_default=MONEY_ZERO),
    Column("margin", Text, nullable=False, server_default=MONEY_ZERO),
    Column("free_margin", Text, nullable=False, server_default=MONEY_ZERO),
    Column("margin_level", Text, nullable=False, server_default=MONEY_ZERO),
    Column("currency", Text, nullable=False, server_default=text("'USD'")),
    Column("server", Text, nullable=False, server_default=text("'Mekness-Live'")),
    Column("enabled", Boolean, nullable=False, server_default=TRUE),
    _created_at(),
)

deposits = Table(
    "deposits",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("account_id", Text, ForeignKey("trading_accounts.id"), nullable=False),
    Column("merchant", Text, nullable=False),
    Column("amount", Text, nullable=False),
    Column("currency", Text, nullable=False, server_default=text("'USD'")),
    Column("status", Text, nullable=False, server_default=text("'Pending'")),
    Column("transaction_id", Text),
    Column("verification_file", Text),
    Column("deposit_date", DateTime, nullable=False, server_default=NOW),
    _created_at(),
    Column("completed_at", DateTime),
)

withdrawals = Table(
    "withdrawals",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("account_id", Text, ForeignKey("trading_accounts.id"), nullable=False),
    Column("method", Text, nullable=False),
    Column("amount", Text, nullable=False),
    Column("currency", Text, nullable=False, server_default=text("'USD'")),
    Column("bank_name", Text),
    Column("account_number", Text),
    Column("account_holder_name", Text),
    Column("swift_code", Text),
    Column("status", Text, nullable=False, server_default=text("'Pending'")),
    Column("rejection_reason", Text),
    _created_at(),
    Column("processed_at", DateTime),
)

trading_history = Table(
    "trading_history",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("account_id", Text, ForeignKey("trading_accounts.id"), nullable=False),
    Column("ticket_id", Text, nullable=False),
    Column("symbol", Text, nullable=False),
    Column("type", Text, nullable=False),
    Column("volume", Text, nullable=False),
    Column("open_price", Text, nullable=False),
    Column("close_price", Text),
    Column("stop_loss", Text),
    Column("take_profit", Text),
    Column("profit", Text),
    Column("commission", Text, server_default=MONEY_ZERO),
    Column("swap", Text, server_default=MONEY_ZERO),
    Column("status", Text, nullable=False),
    Column("open_time", DateTime, nullable=False),
    Column("close_time", DateTime),
)

documents = Table(
    "documents",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("type", Text, nullable=False),
    Column("file_name", Text, nullable=False),
    Column("file_url", Text, nullable=False),
    Column("status", Text, nullable=False, server_default=text("'Pending'")),
    Column("rejection_reason", Text),
    Column("approved_by", Text),
    Column("uploaded_at", DateTime, nullable=False, server_default=NOW),
    Column("verified_at", DateTime),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("title", Text, nullable=False),
    Column("message", Text, nullable=False),
    Column("type", Text, nullable=False, server_default=text("'info'")),
    Column("read", Boolean, nullable=False, server_default=FALSE),
    _created_at(),
)

admin_country_assignments = Table(
    "admin_country_assignments",
    metadata,
    Column("id", Text, primary_key=True),
    Column("admin_id", Text, ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False),
    Column("country", Text, nullable=False),
    _created_at(),
)

activity_logs = Table(
    "activity_logs",
    metadata,
    Column("id", Text, primary_key=True),
    Column("admin_id", Text, ForeignKey("admin_users.id")),
    Column("user_id", Text, ForeignKey("users.id")),
    Column("action", Text, nullable=False),
    Column("entity", Text, nullable=False),
    Column("entity_id", Text),
    Column("details", Text),
    Column("ip_address", Text),
    _created_at(),
)

support_tickets = Table(
    "support_tickets",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id")),
    Column("admin_id", Text, ForeignKey("admin_users.id")),
    Column("subject", Text, nullable=False),
    Column("message", Text, nullable=False),
    Column("status", Text, nullable=False, server_default=text("'Open'")),
    Column("priority", Text, nullable=False, server_default=text("'Medium'")),
    Column("category", Text),
    Column("attachments", Text),
    _created_at(),
    Column("updated_at", DateTime, nullable=False, server_default=NOW),
    Column("resolved_at", DateTime),
)

support_ticket_replies = Table(
    "support_ticket_replies",
    metadata,
    Column("id", Text, primary_key=True),
    Column(
        "ticket_id",
        Text,
        ForeignKey("support_tickets.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("user_id", Text, ForeignKey("users.id")),
    Column("admin_id", Text, ForeignKey("admin_users.id")),
    Column("message", Text, nullable=False),
    Column("attachments", Text),
    _created_at(),
)

fund_transfers = Table(
    "fund_transfers",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("from_account_id", Text, ForeignKey("trading_accounts.id"), nullable=False),
    Column("to_account_id", Text, ForeignKey("trading_accounts.id"), nullable=False),
    Column("amount", Text, nullable=False),
    Column("currency", Text, nullable=False, server_default=text("'USD'")),
    Column("status", Text, nullable=False, server_default=text("'Pending'")),
    Column("transfer_type", Text, nullable=False, server_default=text("'internal'")),
    Column("fee", Text, nullable=False, server_default=MONEY_ZERO),
    Column("notes", Text),
    Column("processed_by", Text, ForeignKey("admin_users.id")),
    _created_at(),
    Column("processed_at", DateTime),
)

ib_cb_wallets = Table(
    "ib_cb_wallets",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("wallet_type", Text, nullable=False),
    Column("balance", Text, nullable=False, server_default=MONEY_ZERO),
    Column("currency", Text, nullable=False, server_default=text("'USD'")),
    Column("commission_rate", Text, nullable=False, server_default=MONEY_ZERO),
    Column("total_commission", Text, nullable=False, server_default=MONEY_ZERO),
    Column("enabled", Boolean, nullable=False, server_default=TRUE),
    _created_at(),
    Column("updated_at", DateTime, nullable=False, server_default=NOW),
)

stripe_payments = Table(
    "stripe_payments",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id"), nullable=False),
    Column("deposit_id", Text, ForeignKey("deposits.id")),
    Column("stripe_payment_intent_id", Text, nullable=False, unique=True),
    Column("amount", Text, nullable=False),
    Column("currency", Text, nullable=False, server_default=text("'usd'")),
    Column("status", Text, nullable=False),
    Column("metadata", Text),
    _created_at(),
    Column("completed_at", DateTime),
)

INDEXES = (
    Index("ix_trading_accounts_user_id", trading_accounts.c.user_id),
    Index("ix_deposits_user_id", deposits.c.user_id),
    Index("ix_withdrawals_user_id", withdrawals.c.user_id),
    Index("ix_trading_history_user_id", trading_history.c.user_id),
    Index("ix_documents_user_id", documents.c.user_id),
    Index("ix_notifications_user_id", notifications.c.user_id),
    Index("ix_support_tickets_user_id", support_tickets.c.user_id),
    Index("ix_support_ticket_replies_ticket_id", support_ticket_replies.c.ticket_id),
    Index("ix_fund_transfers_user_id", fund_transfers.c.user_id),
    Index("ix_admin_country_assignments_admin_id", admin_country_assignments.c.admin_id),
)

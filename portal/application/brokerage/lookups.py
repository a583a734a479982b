"""
Shared lookups for client-facing use cases.

A record that belongs to another client is reported exactly like a
missing one.
"""

from portal.domain.brokerage.entities import TradingAccount, User
from portal.domain.brokerage.errors import AccountDisabledError, EntityNotFoundError
from portal.domain.brokerage.ports import TradingAccountRepository, UserRepository


def require_user(user_repo: UserRepository, user_id: str) -> User:
    user = user_repo.get(user_id)
    if user is None:
        raise EntityNotFoundError("User", user_id)
    return user


def require_owned_account(
    account_repo: TradingAccountRepository,
    user_id: str,
    account_id: str,
    enabled: bool = True,
) -> TradingAccount:
    """Return the client's trading account.

    Args:
        account_repo: Trading account repository.
        user_id: The owning client.
        account_id: Internal id of the account.
        enabled: Also require the account to be enabled.

    Raises:
        EntityNotFoundError: If the account is missing or not the client's.
        AccountDisabledError: If ``enabled`` and the account is disabled.
    """
    account = account_repo.get(account_id)
    if account is None or account.user_id != user_id:
        raise EntityNotFoundError("TradingAccount", account_id)
    if enabled and not account.enabled:
        raise AccountDisabledError("TradingAccount", account_id)
    return account

"""
Generators for client-facing identifiers.

Uniqueness is checked by the caller against the repository; these
helpers only produce well-formed candidates.
"""

import secrets
import string
from datetime import datetime

_UPPER_ALNUM = string.ascii_uppercase + string.digits

ACCOUNT_NUMBER_MIN = 10_000_000
ACCOUNT_NUMBER_MAX = 99_999_999
ACCOUNT_PASSWORD_LENGTH = 8
REFERRAL_ID_LENGTH = 8
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


def username_candidate(email: str) -> str:
    """Email local part followed by a random number in 0-999."""
    local_part = normalize_email(email).split("@", 1)[0]
    return f"{local_part}{secrets.randbelow(1000)}"


def referral_id_candidate() -> str:
    return "".join(secrets.choice(_UPPER_ALNUM) for _ in range(REFERRAL_ID_LENGTH))


def account_number_candidate() -> str:
    """Eight random digits, never starting with zero."""
    span = ACCOUNT_NUMBER_MAX - ACCOUNT_NUMBER_MIN + 1
    return str(ACCOUNT_NUMBER_MIN + secrets.randbelow(span))


def account_password() -> str:
    return "".join(secrets.choice(_UPPER_ALNUM) for _ in range(ACCOUNT_PASSWORD_LENGTH))


def transaction_id(moment: datetime) -> str:
    """``TXN`` followed by the epoch milliseconds of ``moment`` (naive UTC)."""
    epoch = datetime(1970, 1, 1)
    return f"TXN{int((moment - epoch).total_seconds() * 1000)}"

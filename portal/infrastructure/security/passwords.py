"""
Adapter: bcrypt password hashing.
"""

import bcrypt

from portal.domain.brokerage.ports import PasswordHasher


class BcryptPasswordHasher(PasswordHasher):
    """Hashes passwords with bcrypt.

    Args:
        rounds: bcrypt cost factor (log2 of the iteration count).
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed or non-bcrypt hash stored for this account.
            return False

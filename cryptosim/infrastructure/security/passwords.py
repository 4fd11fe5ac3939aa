"""
Adapter: bcrypt password hasher.

Implements the PasswordHasher port. bcrypt only considers the first
72 bytes of a password; request schemas cap passwords at that length.
"""

import bcrypt

from cryptosim.domain.accounts.ports import PasswordHasher


class BcryptPasswordHasher(PasswordHasher):
    """Salted bcrypt hashing with a configurable cost factor."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # malformed stored hash
            return False

"""
Port interfaces (ABCs) for the accounts bounded context.

Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from cryptosim.domain.accounts.entities import Admin, User
from cryptosim.domain.pagination import Page, PageRequest, SortOrder


@dataclass(frozen=True)
class UserFilter:
    """Criteria for the back-office user list.

    ``search`` matches email, display name and phone number,
    case-insensitively.
    """

    search: Optional[str] = None
    role: Optional[str] = None
    verification_status: Optional[str] = None
    is_active: Optional[bool] = None
    sort_by: str = "created_at"
    sort_order: SortOrder = SortOrder.DESC


@dataclass(frozen=True)
class AdminFilter:
    search: Optional[str] = None
    is_active: Optional[bool] = None
    sort_by: str = "created_at"
    sort_order: SortOrder = SortOrder.DESC


class UserRepository(ABC):
    """Port for trader persistence."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_phone(self, phone_number: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def search(self, criteria: UserFilter, page: PageRequest) -> Page[User]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[User]:
        raise NotImplementedError

    @abstractmethod
    def add(self, user: User) -> User:
        raise NotImplementedError

    @abstractmethod
    def save(self, user: User) -> User:
        """Persist changes to an existing user and return the stored copy."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, user_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def replace_verification_status(self, old: str, new: str) -> int:
        """Rewrite every ``old`` status to ``new``; return rows touched."""
        raise NotImplementedError


class AdminRepository(ABC):
    """Port for operator persistence."""

    @abstractmethod
    def get(self, admin_id: str) -> Optional[Admin]:
        raise NotImplementedError

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[Admin]:
        raise NotImplementedError

    @abstractmethod
    def get_first(self) -> Optional[Admin]:
        """Return the earliest created admin, if any."""
        raise NotImplementedError

    @abstractmethod
    def search(self, criteria: AdminFilter, page: PageRequest) -> Page[Admin]:
        raise NotImplementedError

    @abstractmethod
    def count_active(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def add(self, admin: Admin) -> Admin:
        raise NotImplementedError

    @abstractmethod
    def save(self, admin: Admin) -> Admin:
        raise NotImplementedError

    @abstractmethod
    def delete(self, admin_id: str) -> None:
        raise NotImplementedError


class PasswordHasher(ABC):
    """Port for one-way password hashing."""

    @abstractmethod
    def hash(self, password: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        raise NotImplementedError


class TokenService(ABC):
    """Port for issuing and verifying signed bearer tokens."""

    @abstractmethod
    def issue_access(self, claims: dict[str, Any]) -> str:
        raise NotImplementedError

    @abstractmethod
    def issue_refresh(self, claims: dict[str, Any]) -> str:
        raise NotImplementedError

    @abstractmethod
    def decode_access(self, token: str) -> dict[str, Any]:
        """Return the claims of a valid access token.

        Raises:
            InvalidTokenError: If the token is malformed, forged or expired.
        """
        raise NotImplementedError

    @abstractmethod
    def decode_refresh(self, token: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def fingerprint(self, token: str) -> str:
        """Return the digest stored server-side for a refresh token."""
        raise NotImplementedError

    @property
    @abstractmethod
    def access_ttl_seconds(self) -> int:
        raise NotImplementedError

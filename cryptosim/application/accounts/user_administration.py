"""
Use cases: Back-office trader administration.

Input: UserFilter/PageRequest, UpdateUserCommand, AdjustBalanceCommand,
    role lists, new passwords, uploaded images
Output: User or Page[User]
Side effects: Updates, deactivates or deletes users; writes images to storage.
Failure cases: EntityNotFoundError, ConflictError, NegativeBalanceError,
    InvalidUploadError.
"""

import logging
from typing import Literal

from cryptosim.application.accounts.dtos import (
    AdjustBalanceCommand,
    UpdateUserCommand,
    UploadCommand,
)
from cryptosim.domain.accounts.entities import User, VerificationStatus
from cryptosim.domain.accounts.ports import PasswordHasher, UserFilter, UserRepository
from cryptosim.domain.errors import ConflictError, EntityNotFoundError
from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.domain.storage import ImageStorage

logger = logging.getLogger(__name__)

AVATAR_FOLDER = "avatars"
ID_CARD_FOLDER = "id-cards"
REVIEWABLE_STATUSES = {VerificationStatus.PENDING.value, VerificationStatus.REJECTED.value}


class UserAdministrationService:
    """Operator-facing management of trader accounts."""

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        storage: ImageStorage,
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._storage = storage

    def _require(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user

    def list_users(self, criteria: UserFilter, page: PageRequest) -> Page[User]:
        return self._users.search(criteria, page)

    def get_user(self, user_id: str) -> User:
        return self._require(user_id)

    def update_user(self, command: UpdateUserCommand) -> User:
        """Apply profile changes, keeping email and phone unique."""
        user = self._require(command.user_id)

        if command.email is not None and command.email.lower() != user.email.lower():
            existing = self._users.get_by_email(command.email)
            if existing is not None and existing.id != user.id:
                raise ConflictError("email", command.email)
            user.email = command.email.lower()
        if command.phone_number is not None and command.phone_number != user.phone_number:
            existing = self._users.get_by_phone(command.phone_number)
            if existing is not None and existing.id != user.id:
                raise ConflictError("phone_number", command.phone_number)
            user.phone_number = command.phone_number or None

        if command.display_name is not None:
            user.display_name = command.display_name
        if command.avatar is not None:
            user.avatar = command.avatar
        if command.verification_status is not None:
            user.verification_status = VerificationStatus(command.verification_status).value
        if command.is_active is not None:
            user.is_active = command.is_active

        logger.info("Updated user id=%s", user.id)
        return self._users.save(user)

    def set_active(self, user_id: str, active: bool) -> User:
        user = self._require(user_id)
        user.is_active = active
        if not active:
            # forces a fresh login once re-activated
            user.refresh_token_hash = None
        logger.info("User id=%s active=%s", user_id, active)
        return self._users.save(user)

    def set_roles(self, user_id: str, roles: list[str]) -> User:
        user = self._require(user_id)
        user.roles = sorted(set(roles))
        logger.info("User id=%s roles=%s", user_id, user.roles)
        return self._users.save(user)

    def adjust_balance(self, command: AdjustBalanceCommand) -> User:
        """Add to, subtract from or overwrite one of the user's balances.

        Raises:
            NegativeBalanceError: If the resulting balance would be below zero.
        """
        user = self._require(command.user_id)
        new_balance = user.adjust_balance(
            command.balance_type, command.adjustment_type, command.amount
        )
        logger.info(
            "Balance adjusted user=%s type=%s op=%s amount=%s result=%s reason=%s",
            user.id,
            command.balance_type.value,
            command.adjustment_type.value,
            command.amount,
            new_balance,
            command.reason or "-",
        )
        return self._users.save(user)

    def delete_user(self, user_id: str) -> None:
        self._require(user_id)
        self._users.delete(user_id)
        logger.info("Deleted user id=%s", user_id)

    def reset_password(self, user_id: str, new_password: str) -> User:
        user = self._require(user_id)
        user.password_hash = self._hasher.hash(new_password)
        user.refresh_token_hash = None
        logger.info("Password reset for user id=%s", user_id)
        return self._users.save(user)

    def reset_password_by_email(self, email: str, new_password: str) -> User:
        user = self._users.get_by_email(email)
        if user is None:
            raise EntityNotFoundError("User", email)
        return self.reset_password(user.id, new_password)

    def upload_avatar(self, user_id: str, upload: UploadCommand) -> User:
        user = self._require(user_id)
        user.avatar = self._storage.save(
            AVATAR_FOLDER, upload.filename, upload.content_type, upload.data
        )
        return self._users.save(user)

    def upload_id_card(
        self, user_id: str, side: Literal["front", "back"], upload: UploadCommand
    ) -> User:
        """Store one side of an ID card; both sides submit the user for review."""
        user = self._require(user_id)
        url = self._storage.save(
            ID_CARD_FOLDER, upload.filename, upload.content_type, upload.data
        )
        if side == "front":
            user.id_card_front = url
        else:
            user.id_card_back = url
        if user.has_both_id_card_sides() and user.verification_status in REVIEWABLE_STATUSES:
            user.verification_status = VerificationStatus.IN_REVIEW.value
            logger.info("User id=%s submitted for identity review", user.id)
        return self._users.save(user)

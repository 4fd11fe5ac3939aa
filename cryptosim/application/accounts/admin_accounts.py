"""
Use cases: Operator (admin) account management.

Input: AdminFilter/PageRequest, CreateAdminCommand, UpdateAdminCommand
Output: Admin or Page[Admin]
Side effects: Creates, updates and deletes operator accounts.
Failure cases: EntityNotFoundError, ConflictError, LastAdminError,
    SelfDeletionError.
"""

import logging
import uuid
from typing import Optional

from cryptosim.application.accounts.dtos import CreateAdminCommand, UpdateAdminCommand
from cryptosim.domain.accounts.entities import Admin
from cryptosim.domain.accounts.errors import LastAdminError, SelfDeletionError
from cryptosim.domain.accounts.ports import AdminFilter, AdminRepository, PasswordHasher
from cryptosim.domain.errors import ConflictError, EntityNotFoundError
from cryptosim.domain.pagination import Page, PageRequest

logger = logging.getLogger(__name__)


class AdminAccountService:
    def __init__(self, admins: AdminRepository, hasher: PasswordHasher) -> None:
        self._admins = admins
        self._hasher = hasher

    def _require(self, admin_id: str) -> Admin:
        admin = self._admins.get(admin_id)
        if admin is None:
            raise EntityNotFoundError("Admin", admin_id)
        return admin

    def list_admins(self, criteria: AdminFilter, page: PageRequest) -> Page[Admin]:
        return self._admins.search(criteria, page)

    def get_admin(self, admin_id: str) -> Admin:
        return self._require(admin_id)

    def create_admin(self, command: CreateAdminCommand) -> Admin:
        if self._admins.get_by_username(command.username) is not None:
            raise ConflictError("username", command.username)
        admin = self._admins.add(
            Admin(
                id=str(uuid.uuid4()),
                username=command.username,
                password_hash=self._hasher.hash(command.password),
                email=command.email,
                display_name=command.display_name or command.username,
                permissions=list(command.permissions),
                is_active=command.is_active,
            )
        )
        logger.info("Created admin id=%s username=%s", admin.id, admin.username)
        return admin

    def ensure_admin(self, command: CreateAdminCommand) -> tuple[Admin, bool]:
        """Create the admin unless the username exists; report whether it was created."""
        existing = self._admins.get_by_username(command.username)
        if existing is not None:
            return existing, False
        return self.create_admin(command), True

    def update_admin(self, command: UpdateAdminCommand) -> Admin:
        admin = self._require(command.admin_id)

        if command.username is not None and command.username != admin.username:
            if self._admins.get_by_username(command.username) is not None:
                raise ConflictError("username", command.username)
            admin.username = command.username
        if command.password:
            admin.password_hash = self._hasher.hash(command.password)
            admin.refresh_token_hash = None
        if command.email is not None:
            admin.email = command.email
        if command.display_name is not None:
            admin.display_name = command.display_name
        if command.permissions is not None:
            admin.permissions = list(command.permissions)
        if command.is_active is not None and command.is_active != admin.is_active:
            if not command.is_active and self._admins.count_active() <= 1:
                raise LastAdminError()
            admin.is_active = command.is_active

        logger.info("Updated admin id=%s", admin.id)
        return self._admins.save(admin)

    def delete_admin(self, admin_id: str, acting_admin_id: Optional[str]) -> None:
        admin = self._require(admin_id)
        if admin_id == acting_admin_id:
            raise SelfDeletionError()
        if admin.is_active and self._admins.count_active() <= 1:
            raise LastAdminError()
        self._admins.delete(admin_id)
        logger.info("Deleted admin id=%s", admin_id)

    def update_primary_account(
        self, username: Optional[str], password: Optional[str]
    ) -> Admin:
        """Rename or re-password the earliest created operator."""
        first = self._admins.get_first()
        if first is None:
            raise EntityNotFoundError("Admin", "primary")
        return self.update_admin(
            UpdateAdminCommand(admin_id=first.id, username=username, password=password)
        )

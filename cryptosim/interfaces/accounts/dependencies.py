"""
Dependency injection for the accounts bounded context.

Wires the SQLAlchemy repositories and security adapters into the
account services. These are the composition root for the context.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from cryptosim.application.accounts.admin_accounts import AdminAccountService
from cryptosim.application.accounts.user_administration import UserAdministrationService
from cryptosim.core.database import get_db_session
from cryptosim.domain.accounts.ports import PasswordHasher
from cryptosim.domain.storage import ImageStorage
from cryptosim.infrastructure.accounts.admin_repository import AdminRepositoryAdapter
from cryptosim.infrastructure.accounts.user_repository import UserRepositoryAdapter
from cryptosim.interfaces.dependencies import get_image_storage, get_password_hasher


def get_user_administration_service(
    session: Session = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    storage: ImageStorage = Depends(get_image_storage),
) -> UserAdministrationService:
    """Build UserAdministrationService with its infrastructure dependencies."""
    return UserAdministrationService(
        users=UserRepositoryAdapter(session),
        hasher=hasher,
        storage=storage,
    )


def get_admin_account_service(
    session: Session = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> AdminAccountService:
    """Build AdminAccountService with its infrastructure dependencies."""
    return AdminAccountService(admins=AdminRepositoryAdapter(session), hasher=hasher)

"""
Dependency injection for the settings bounded context.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from cryptosim.application.settings.ip_whitelist import IpWhitelistService
from cryptosim.core.database import get_db_session
from cryptosim.infrastructure.settings.repositories import IpWhitelistRepositoryAdapter


def get_ip_whitelist_service(session: Session = Depends(get_db_session)) -> IpWhitelistService:
    return IpWhitelistService(IpWhitelistRepositoryAdapter(session))

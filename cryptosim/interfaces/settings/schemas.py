"""
Pydantic schemas for platform settings and the admin IP whitelist.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import ConfigDict, Field, model_validator

from cryptosim.interfaces.accounts.schemas import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from cryptosim.interfaces.schemas import CamelModel

KEY_PATTERN = r"^[A-Za-z0-9_]+(\.[A-Za-z0-9_]+)*$"


class SettingOut(CamelModel):
    id: str
    key: str
    value: Any
    category: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SettingUpsertRequest(CamelModel):
    """Create or overwrite one setting; the category comes from the key prefix."""

    key: str = Field(..., min_length=1, max_length=100, pattern=KEY_PATTERN)
    value: Any
    description: Optional[str] = Field(default=None, max_length=255)


class SettingsBatchRequest(CamelModel):
    settings: dict[str, Any] = Field(..., min_length=1)


class AdminAccountRequest(CamelModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=64)
    password: Optional[str] = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )

    @model_validator(mode="after")
    def _something_to_change(self) -> "AdminAccountRequest":
        if self.username is None and self.password is None:
            raise ValueError("username or password is required")
        return self


class TradingChannels(CamelModel):
    channels: list[Any]


class CustomerServiceConfig(CamelModel):
    """Support widget configuration; unknown keys are kept as sent."""

    model_config = ConfigDict(extra="allow")

    enabled: Optional[bool] = None
    position: Optional[str] = Field(default=None, max_length=32)
    theme: Optional[str] = Field(default=None, max_length=32)


class LatencyConfig(CamelModel):
    """Simulated delays in milliseconds."""

    trading_delay: Optional[int] = Field(default=None, ge=0)
    api_delay: Optional[int] = Field(default=None, ge=0)
    price_update_delay: Optional[int] = Field(default=None, ge=0)
    settlement_delay: Optional[int] = Field(default=None, ge=0)


class EnabledFlag(CamelModel):
    enabled: bool


class IpWhitelistIn(CamelModel):
    ip_address: str = Field(..., min_length=2, max_length=64)
    description: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = True


class IpWhitelistUpdate(CamelModel):
    ip_address: Optional[str] = Field(default=None, min_length=2, max_length=64)
    description: Optional[str] = Field(default=None, max_length=255)
    is_active: Optional[bool] = None


class IpWhitelistOut(CamelModel):
    id: str
    ip_address: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

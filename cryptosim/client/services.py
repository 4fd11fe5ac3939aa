"""
Endpoint helpers grouped the way the admin console groups its screens.

Each helper takes an ``ApiClient`` and returns the unwrapped ``data``
payload as plain JSON (dicts and lists, camelCase keys). Query
parameters are passed through with their wire names.
"""

from typing import Any, Optional

from cryptosim.client.api_client import ApiClient


class _Service:
    def __init__(self, client: ApiClient) -> None:
        self._client = client


class UserService(_Service):
    base = "/admin/users"

    def search(self, **params: Any) -> dict[str, Any]:
        return self._client.get(self.base, params=params)

    def get(self, user_id: str) -> dict[str, Any]:
        return self._client.get(f"{self.base}/{user_id}")

    def update(self, user_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"{self.base}/{user_id}", json=data)

    def activate(self, user_id: str) -> dict[str, Any]:
        return self._client.patch(f"{self.base}/{user_id}/activate")

    def deactivate(self, user_id: str) -> dict[str, Any]:
        return self._client.patch(f"{self.base}/{user_id}/deactivate")

    def update_roles(self, user_id: str, roles: list[str]) -> dict[str, Any]:
        return self._client.patch(f"{self.base}/{user_id}/roles", json={"roles": roles})

    def adjust_balance(
        self,
        user_id: str,
        balance_type: str,
        adjustment_type: str,
        amount: float,
        reason: Optional[str] = None,
    ) -> dict[str, Any]:
        return self._client.patch(
            f"{self.base}/{user_id}/balance",
            json={
                "balanceType": balance_type,
                "adjustmentType": adjustment_type,
                "amount": amount,
                "reason": reason,
            },
        )

    def reset_password(self, user_id: str, new_password: str) -> dict[str, Any]:
        return self._client.post(
            f"{self.base}/{user_id}/reset-password", json={"newPassword": new_password}
        )

    def delete(self, user_id: str) -> None:
        self._client.delete(f"{self.base}/{user_id}")


class AdminService(_Service):
    base = "/admin/auth/admins"

    def search(self, **params: Any) -> dict[str, Any]:
        return self._client.get(self.base, params=params)

    def get(self, admin_id: str) -> dict[str, Any]:
        return self._client.get(f"{self.base}/{admin_id}")

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.post(self.base, json=data)

    def update(self, admin_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"{self.base}/{admin_id}", json=data)

    def delete(self, admin_id: str) -> None:
        self._client.delete(f"{self.base}/{admin_id}")


class TransactionService(_Service):
    """Operator views of orders plus the trader-facing order endpoints."""

    def search(self, **params: Any) -> dict[str, Any]:
        return self._client.get("/admin/transactions", params=params)

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.post("/admin/transactions/create", json=data)

    def update(self, order_number: str, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"/admin/transactions/{order_number}", json=data)

    def force_settle(
        self, order_number: str, data: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        return self._client.post(
            f"/admin/transactions/{order_number}/force-settle", json=data or {}
        )

    def admin_cancel(self, order_number: str) -> dict[str, Any]:
        return self._client.post(f"/admin/transactions/{order_number}/cancel")

    def get(self, order_number: str) -> dict[str, Any]:
        return self._client.get(f"/transactions/{order_number}")

    def settle(self, order_number: str, exit_price: float) -> dict[str, Any]:
        return self._client.post(
            f"/transactions/{order_number}/settle", json={"exitPrice": exit_price}
        )

    def cancel(self, order_number: str) -> dict[str, Any]:
        return self._client.post(f"/transactions/{order_number}/cancel")

    def statistics(self, account_type: Optional[str] = None) -> dict[str, Any]:
        return self._client.get("/transactions/statistics", params={"accountType": account_type})

    def auto_settle(self) -> dict[str, Any]:
        return self._client.post("/transactions/auto-settle")


class SettingsService(_Service):
    base = "/admin/settings"

    def all(self, category: Optional[str] = None) -> dict[str, Any]:
        return self._client.get(self.base, params={"category": category})

    def get(self, key: str) -> dict[str, Any]:
        return self._client.get(f"{self.base}/{key}")

    def put(self, key: str, value: Any, description: Optional[str] = None) -> dict[str, Any]:
        return self._client.put(
            self.base, json={"key": key, "value": value, "description": description}
        )

    def put_many(self, values: dict[str, Any]) -> list[dict[str, Any]]:
        return self._client.put(f"{self.base}/batch", json={"settings": values})

    def update_admin_account(
        self, username: Optional[str] = None, password: Optional[str] = None
    ) -> dict[str, Any]:
        return self._client.put(
            f"{self.base}/admin-account", json={"username": username, "password": password}
        )

    def trading_channels(self) -> list[Any]:
        return self._client.get(f"{self.base}/trading/channels")

    def set_trading_channels(self, channels: list[Any]) -> list[Any]:
        return self._client.put(f"{self.base}/trading/channels", json={"channels": channels})

    def managed_mode(self) -> bool:
        return self._client.get(f"{self.base}/trading/managed-mode")["enabled"]

    def set_managed_mode(self, enabled: bool) -> bool:
        return self._client.put(
            f"{self.base}/trading/managed-mode", json={"enabled": enabled}
        )["enabled"]

    def customer_service(self) -> dict[str, Any]:
        return self._client.get(f"{self.base}/customer-service")

    def set_customer_service(self, config: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"{self.base}/customer-service", json=config)

    def latency(self) -> dict[str, Any]:
        return self._client.get(f"{self.base}/latency")

    def set_latency(self, config: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"{self.base}/latency", json=config)


class IpWhitelistService(_Service):
    base = "/admin/settings/ip-whitelist"

    def enabled(self) -> bool:
        return self._client.get(f"{self.base}/config")["enabled"]

    def set_enabled(self, enabled: bool) -> bool:
        return self._client.put(f"{self.base}/config", json={"enabled": enabled})["enabled"]

    def search(self, **params: Any) -> dict[str, Any]:
        return self._client.get(self.base, params=params)

    def get(self, entry_id: str) -> dict[str, Any]:
        return self._client.get(f"{self.base}/{entry_id}")

    def create(
        self, ip_address: str, description: Optional[str] = None, is_active: bool = True
    ) -> dict[str, Any]:
        return self._client.post(
            self.base,
            json={"ipAddress": ip_address, "description": description, "isActive": is_active},
        )

    def update(self, entry_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"{self.base}/{entry_id}", json=data)

    def delete(self, entry_id: str) -> None:
        self._client.delete(f"{self.base}/{entry_id}")


class CmsService(_Service):
    """Admin CRUD over one CMS collection, e.g. ``CmsService(client, "testimonials")``."""

    def __init__(self, client: ApiClient, collection: str) -> None:
        super().__init__(client)
        self.base = f"/admin/cms/{collection}"

    def search(self, **params: Any) -> list[dict[str, Any]]:
        return self._client.get(self.base, params=params)

    def get(self, record_id: str) -> dict[str, Any]:
        return self._client.get(f"{self.base}/{record_id}")

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.post(self.base, json=data)

    def update(self, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"{self.base}/{record_id}", json=data)

    def delete(self, record_id: str) -> None:
        self._client.delete(f"{self.base}/{record_id}")


class MarketSessionService(_Service):
    base = "/admin/market-sessions"

    def search(self, **params: Any) -> dict[str, Any]:
        return self._client.get(self.base, params=params)

    def get(self, session_id: str) -> dict[str, Any]:
        return self._client.get(f"{self.base}/{session_id}")

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.post(self.base, json=data)

    def update(self, session_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"{self.base}/{session_id}", json=data)

    def delete(self, session_id: str) -> None:
        self._client.delete(f"{self.base}/{session_id}")

    def start(self, session_id: str) -> dict[str, Any]:
        return self._client.post(f"{self.base}/{session_id}/start")

    def stop(self, session_id: str) -> dict[str, Any]:
        return self._client.post(f"{self.base}/{session_id}/stop")

    def order_stats(self, session_ids: list[str]) -> list[dict[str, Any]]:
        return self._client.get(f"{self.base}/order-stats", params={"ids": ",".join(session_ids)})

    def cycles(self, sub_market_id: str, **params: Any) -> dict[str, Any]:
        return self._client.get(f"{self.base}/sub-markets/{sub_market_id}/cycles", params=params)

    def active(self) -> list[dict[str, Any]]:
        return self._client.get("/market-sessions/active")


class MarketDataService(_Service):
    def ticker(self, symbol: str) -> dict[str, Any]:
        return self._client.get(f"/market/ticker/{symbol}")

    def tickers(self, symbols: list[str]) -> list[dict[str, Any]]:
        return self._client.get(f"/market/tickers/{','.join(symbols)}")

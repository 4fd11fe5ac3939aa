"""
API tests for order placement, settlement and the back-office order desk.

Balances are checked through ``/auth/me`` after every money movement.
"""

from datetime import datetime, timedelta, timezone

from cryptosim.domain.errors import UpstreamServiceError
from helpers import bearer, login_user, open_order


def _balances(client, headers) -> tuple[float, float]:
    user = client.get("/api/auth/me", headers=headers).json()["data"]
    return user["demoBalance"], user["realBalance"]


class TestOpenOrder:
    def test_open_debits_stake(self, client, trader) -> None:
        order = open_order(client, trader["headers"])

        assert order["status"] == "PENDING"
        assert order["orderNumber"].startswith("TXN")
        assert order["userName"] == "Trader 001"
        assert order["spread"] == 5
        assert order["isManaged"] is False
        assert _balances(client, trader["headers"]) == (9900, 500)

    def test_real_account(self, client, trader) -> None:
        open_order(client, trader["headers"], accountType="REAL", investAmount=200)
        assert _balances(client, trader["headers"]) == (10000, 300)

    def test_insufficient_balance(self, client, trader) -> None:
        resp = client.post(
            "/api/transactions",
            json={
                "type": "entryPrice",
                "price": 50000,
                "assetType": "BTC",
                "direction": "PUT",
                "duration": 60,
                "investAmount": 501,
                "returnRate": 0.85,
                "accountType": "REAL",
            },
            headers=trader["headers"],
        )
        assert resp.status_code == 400
        assert _balances(client, trader["headers"]) == (10000, 500)

    def test_entry_requires_order_fields(self, client, trader) -> None:
        resp = client.post(
            "/api/transactions",
            json={"type": "entryPrice", "price": 50000},
            headers=trader["headers"],
        )
        assert resp.status_code == 422

    def test_managed_mode_flags_new_orders(self, client, trader, operator) -> None:
        client.put(
            "/api/admin/settings/trading/managed-mode",
            json={"enabled": True},
            headers=operator["headers"],
        )
        order = open_order(client, trader["headers"])
        assert order["isManaged"] is True

    def test_operator_cannot_trade(self, client, operator) -> None:
        resp = client.post(
            "/api/transactions",
            json={"type": "exitPrice", "price": 1, "orderNumber": "TXN1"},
            headers=operator["headers"],
        )
        assert resp.status_code == 403


class TestSettleOrder:
    def test_win_pays_out(self, client, trader) -> None:
        order = open_order(client, trader["headers"])
        resp = client.post(
            f"/api/transactions/{order['orderNumber']}/settle",
            json={"exitPrice": 51000},
            headers=trader["headers"],
        )
        settled = resp.json()["data"]

        assert settled["status"] == "SETTLED"
        assert settled["actualReturn"] == 85
        assert settled["settledAt"] is not None
        assert _balances(client, trader["headers"]) == (10085, 500)

        stats = client.get("/api/transactions/statistics", headers=trader["headers"])
        data = stats.json()["data"]
        assert data["accountBalance"] == 10085
        assert data["totalProfitLoss"] == 85
        assert data["winningTrades"] == 1
        assert data["winRate"] == 100

    def test_loss_via_unified_endpoint(self, client, trader) -> None:
        order = open_order(client, trader["headers"], direction="PUT")
        resp = client.post(
            "/api/transactions",
            json={"type": "exitPrice", "price": 50000, "orderNumber": order["orderNumber"]},
            headers=trader["headers"],
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["actualReturn"] == -100
        assert _balances(client, trader["headers"]) == (9900, 500)

    def test_cannot_settle_twice(self, client, trader) -> None:
        order = open_order(client, trader["headers"])
        url = f"/api/transactions/{order['orderNumber']}/settle"
        client.post(url, json={"exitPrice": 51000}, headers=trader["headers"])
        again = client.post(url, json={"exitPrice": 51000}, headers=trader["headers"])
        assert again.status_code == 400

    def test_cancel_refunds(self, client, trader) -> None:
        order = open_order(client, trader["headers"])
        resp = client.post(
            f"/api/transactions/{order['orderNumber']}/cancel", headers=trader["headers"]
        )
        assert resp.json()["data"]["status"] == "CANCELED"
        assert _balances(client, trader["headers"]) == (10000, 500)

    def test_other_users_orders_are_invisible(self, client, trader, create_user) -> None:
        order = open_order(client, trader["headers"])
        create_user("other@mail.com", demo_balance=100)
        other = bearer(login_user(client, "other@mail.com")["tokens"]["accessToken"])

        url = f"/api/transactions/{order['orderNumber']}"
        assert client.get(url, headers=other).status_code == 404
        resp = client.post(f"{url}/cancel", headers=other)
        assert resp.status_code == 404
        assert resp.json()["error"] == "Transaction not found"


class TestListOrders:
    def test_list_own_orders(self, client, trader) -> None:
        for _ in range(3):
            open_order(client, trader["headers"], investAmount=10)
        open_order(client, trader["headers"], assetType="ETH", price=3000, investAmount=10)

        page = client.get("/api/transactions?limit=2", headers=trader["headers"]).json()["data"]
        assert page["total"] == 4
        assert page["limit"] == 2
        assert page["totalPages"] == 2
        assert len(page["data"]) == 2

        eth = client.get("/api/transactions?assetType=eth", headers=trader["headers"]).json()
        assert eth["data"]["total"] == 1

    def test_get_one(self, client, trader) -> None:
        order = open_order(client, trader["headers"])
        resp = client.get(f"/api/transactions/{order['orderNumber']}", headers=trader["headers"])
        assert resp.json()["data"]["id"] == order["id"]


class TestAdminOrders:
    def _create(self, client, operator, user_id, **overrides):
        body = {
            "userId": user_id,
            "assetType": "BTC",
            "direction": "CALL",
            "duration": 60,
            "investAmount": 100,
            "returnRate": 0.8,
            "entryPrice": 49000,
        }
        body.update(overrides)
        return client.post("/api/admin/transactions/create", json=body, headers=operator["headers"])

    def test_create_pending(self, client, trader, operator) -> None:
        resp = self._create(client, operator, trader["user"].id)
        assert resp.status_code == 201
        assert resp.json()["data"]["status"] == "PENDING"
        assert _balances(client, trader["headers"]) == (9900, 500)

    def test_create_and_settle_at_once(self, client, trader, operator) -> None:
        resp = self._create(client, operator, trader["user"].id, exitPrice=50000)
        order = resp.json()["data"]
        assert order["status"] == "SETTLED"
        assert order["actualReturn"] == 80
        assert _balances(client, trader["headers"]) == (10080, 500)

    def test_create_for_unknown_user(self, client, operator) -> None:
        assert self._create(client, operator, "ghost").status_code == 404

    def test_list_with_filters(self, client, trader, operator) -> None:
        open_order(client, trader["headers"])
        self._create(client, operator, trader["user"].id, assetType="ETH", entryPrice=3000)

        headers = operator["headers"]
        everything = client.get("/api/admin/transactions", headers=headers).json()["data"]
        assert everything["total"] == 2

        by_asset = client.get("/api/admin/transactions?assetType=ETH", headers=headers).json()
        assert by_asset["data"]["total"] == 1

        by_name = client.get("/api/admin/transactions?username=trader", headers=headers).json()
        assert by_name["data"]["total"] == 2

        by_user = client.get(
            "/api/admin/transactions", params={"userId": "nobody"}, headers=headers
        ).json()
        assert by_user["data"]["total"] == 0

    def test_update_leaves_balances(self, client, trader, operator) -> None:
        order = open_order(client, trader["headers"])
        resp = client.put(
            f"/api/admin/transactions/{order['orderNumber']}",
            json={"entryPrice": 40000, "duration": 120, "reason": "typo"},
            headers=operator["headers"],
        )
        updated = resp.json()["data"]
        assert updated["entryPrice"] == 40000
        assert updated["spread"] == 4
        assert updated["duration"] == 120
        assert _balances(client, trader["headers"]) == (9900, 500)

    def test_force_settle_with_result(self, client, trader, operator) -> None:
        order = open_order(client, trader["headers"])
        resp = client.post(
            f"/api/admin/transactions/{order['orderNumber']}/force-settle",
            json={"result": "LOSE", "exitPrice": 60000, "reason": "manual"},
            headers=operator["headers"],
        )
        assert resp.json()["data"]["actualReturn"] == -100
        assert _balances(client, trader["headers"]) == (9900, 500)

    def test_force_settle_without_body_uses_last_price(self, client, trader, operator) -> None:
        order = open_order(client, trader["headers"])
        resp = client.post(
            f"/api/admin/transactions/{order['orderNumber']}/force-settle",
            headers=operator["headers"],
        )
        settled = resp.json()["data"]
        assert settled["exitPrice"] == 50000
        assert settled["status"] == "SETTLED"

    def test_admin_cancel(self, client, trader, operator) -> None:
        order = open_order(client, trader["headers"])
        resp = client.post(
            f"/api/admin/transactions/{order['orderNumber']}/cancel",
            headers=operator["headers"],
        )
        assert resp.json()["data"]["status"] == "CANCELED"
        assert _balances(client, trader["headers"]) == (10000, 500)

    def test_traders_cannot_use_desk(self, client, trader) -> None:
        assert client.get("/api/admin/transactions", headers=trader["headers"]).status_code == 403


class TestAutoSettle:
    def test_settles_expired_orders_at_exchange_price(
        self, client, trader, operator, exchange
    ) -> None:
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
        expired = client.post(
            "/api/admin/transactions/create",
            json={
                "userId": trader["user"].id,
                "assetType": "BTC",
                "direction": "CALL",
                "duration": 60,
                "investAmount": 100,
                "returnRate": 0.8,
                "entryPrice": 49000,
                "entryTime": past,
            },
            headers=operator["headers"],
        ).json()["data"]
        running = open_order(client, trader["headers"])

        resp = client.post("/api/transactions/auto-settle", headers=operator["headers"])

        assert resp.json()["data"] == {"settled": 1, "failed": 0}
        assert exchange.price_calls == ["BTC"]
        settled = client.get(
            f"/api/transactions/{expired['orderNumber']}", headers=trader["headers"]
        ).json()["data"]
        assert settled["status"] == "SETTLED"
        assert settled["exitPrice"] == 50000
        pending = client.get(
            f"/api/transactions/{running['orderNumber']}", headers=trader["headers"]
        ).json()["data"]
        assert pending["status"] == "PENDING"

    def test_price_outage_counts_failures(self, client, trader, operator, exchange) -> None:
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
        client.post(
            "/api/admin/transactions/create",
            json={
                "userId": trader["user"].id,
                "assetType": "ETH",
                "direction": "PUT",
                "duration": 60,
                "investAmount": 10,
                "returnRate": 0.8,
                "entryPrice": 3100,
                "entryTime": past,
            },
            headers=operator["headers"],
        )
        exchange.error = UpstreamServiceError("Binance", "timeout")

        resp = client.post("/api/transactions/auto-settle", headers=operator["headers"])
        assert resp.json()["data"] == {"settled": 0, "failed": 1}

    def test_traders_cannot_trigger(self, client, trader) -> None:
        resp = client.post("/api/transactions/auto-settle", headers=trader["headers"])
        assert resp.status_code == 403

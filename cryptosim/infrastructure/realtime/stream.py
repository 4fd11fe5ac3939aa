"""
Websocket stream manager for order and price pushes.

Clients join channels (``symbol:<pair>``, ``orders:<userId>``) over one
websocket. Use cases publish from worker threads (sync endpoints, the
scheduler); the manager hands each message to the event loop that owns
the sockets, so publishing never blocks and never raises.

Protocol (JSON):
    → {"action": "subscribe:symbol", "symbol": "btc"}
    ← {"event": "subscribe:ack", "symbol": "BTCUSDT"}
    → {"action": "unsubscribe:symbol", "symbol": "BTCUSDT"}
    ← {"event": "unsubscribe:ack", "symbol": "BTCUSDT"}
    → {"action": "subscribe:orders", "userId": "..."}     (userId optional)
    ← {"event": "subscribe:ack", "userId": "..."}
    → {"action": "heartbeat"}
    ← {"event": "heartbeat:ack", "ts": 1700000000000}

    ← {"event": "price:update", "data": {"symbol", "price", "change24h", "ts"}}
    ← {"event": "order:update", "data": {"userId", "orderNumber", ...}}
"""

import asyncio
import json
import logging
import threading
import time
from collections import defaultdict
from typing import Any, Optional

from cryptosim.domain.accounts.entities import Principal
from cryptosim.domain.realtime import OrderUpdate, PriceUpdate, RealtimePublisher
from cryptosim.infrastructure.markets.binance_client import to_pair

logger = logging.getLogger(__name__)

ALL_ORDERS = "*"
SUPPORTED_ACTIONS = ["subscribe:symbol", "unsubscribe:symbol", "subscribe:orders", "heartbeat"]


def symbol_room(symbol: str) -> str:
    return f"symbol:{symbol.lower()}"


def order_room(user_id: str) -> str:
    return f"orders:{user_id}"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _message(event: str, **fields: Any) -> str:
    return json.dumps({"event": event, **fields}, default=str)


class RealtimeStreamManager(RealtimePublisher):
    """Tracks connected websockets and their channels; fans out events."""

    def __init__(self) -> None:
        self._rooms: dict[str, set[Any]] = defaultdict(set)
        self._principals: dict[Any, Optional[Principal]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()

    @property
    def active_connections(self) -> int:
        return len(self._principals)

    # ── Websocket lifecycle ──────────────────────────────────────

    async def connect(self, websocket: Any, principal: Optional[Principal]) -> None:
        await websocket.accept()
        with self._lock:
            self._loop = asyncio.get_running_loop()
            self._principals[websocket] = principal
        logger.debug("Realtime client connected. Active: %d", self.active_connections)
        await websocket.send_text(
            _message("connected", authenticated=principal is not None, ts=_now_ms())
        )

    def disconnect(self, websocket: Any) -> None:
        with self._lock:
            self._principals.pop(websocket, None)
            for room in list(self._rooms):
                self._rooms[room].discard(websocket)
                if not self._rooms[room]:
                    del self._rooms[room]
            if not self._principals:
                self._loop = None
        logger.debug("Realtime client disconnected. Active: %d", self.active_connections)

    def _join(self, websocket: Any, room: str) -> None:
        with self._lock:
            self._rooms[room].add(websocket)

    def _leave(self, websocket: Any, room: str) -> None:
        with self._lock:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(websocket)
                if not members:
                    del self._rooms[room]

    async def handle_client_message(self, websocket: Any, raw: str) -> None:
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            await websocket.send_text(_message("error", detail="Invalid JSON"))
            return
        if not isinstance(msg, dict):
            await websocket.send_text(_message("error", detail="Expected a JSON object"))
            return

        action = msg.get("action", "")
        if action == "heartbeat":
            await websocket.send_text(_message("heartbeat:ack", ts=_now_ms()))
        elif action in ("subscribe:symbol", "unsubscribe:symbol"):
            symbol = str(msg.get("symbol") or "").strip()
            if not symbol:
                await websocket.send_text(_message("error", detail="symbol is required"))
                return
            pair = to_pair(symbol)
            if action == "subscribe:symbol":
                self._join(websocket, symbol_room(pair))
                await websocket.send_text(_message("subscribe:ack", symbol=pair))
            else:
                self._leave(websocket, symbol_room(pair))
                await websocket.send_text(_message("unsubscribe:ack", symbol=pair))
        elif action == "subscribe:orders":
            await self._subscribe_orders(websocket, msg.get("userId"))
        else:
            await websocket.send_text(
                _message("error", detail=f"Unknown action: {action}", supported=SUPPORTED_ACTIONS)
            )

    async def _subscribe_orders(self, websocket: Any, user_id: Optional[str]) -> None:
        """Traders follow their own orders; admins any user's, or all with no userId."""
        principal = self._principals.get(websocket)
        if principal is None:
            await websocket.send_text(_message("error", detail="Sign in to follow orders"))
            return
        if principal.is_admin:
            target = user_id or ALL_ORDERS
        elif user_id in (None, principal.id):
            target = principal.id
        else:
            await websocket.send_text(_message("error", detail="Forbidden"))
            return
        self._join(websocket, order_room(target))
        await websocket.send_text(_message("subscribe:ack", userId=target))

    # ── Publishing ───────────────────────────────────────────────

    async def _broadcast(self, rooms: tuple[str, ...], text: str) -> int:
        with self._lock:
            targets = set().union(*(self._rooms.get(room, set()) for room in rooms))
        sent = 0
        for websocket in targets:
            try:
                await websocket.send_text(text)
                sent += 1
            except Exception:
                logger.debug("Dropping realtime client after failed send")
                self.disconnect(websocket)
        return sent

    def _dispatch(self, rooms: tuple[str, ...], text: str) -> None:
        with self._lock:
            loop = self._loop
            listening = any(self._rooms.get(room) for room in rooms)
        if loop is None or not listening or loop.is_closed():
            return
        try:
            asyncio.run_coroutine_threadsafe(self._broadcast(rooms, text), loop)
        except RuntimeError:
            logger.warning("Realtime loop unavailable; event dropped")

    def publish_order(self, update: OrderUpdate) -> None:
        data = {
            "userId": update.user_id,
            "orderNumber": update.order_number,
            "assetType": update.asset_type,
            "status": update.status,
            "exitPrice": float(update.exit_price) if update.exit_price is not None else None,
            "actualReturn": float(update.actual_return),
            "ts": _now_ms(),
        }
        self._dispatch(
            (order_room(update.user_id), order_room(ALL_ORDERS)),
            _message("order:update", data=data),
        )

    def publish_price(self, update: PriceUpdate) -> None:
        data = {
            "symbol": update.symbol,
            "price": float(update.price),
            "change24h": float(update.change_24h),
            "ts": _now_ms(),
        }
        self._dispatch((symbol_room(update.symbol),), _message("price:update", data=data))

    def subscribed_symbols(self) -> list[str]:
        with self._lock:
            rooms = [room for room, members in self._rooms.items() if members]
        return sorted(room.split(":", 1)[1].upper() for room in rooms if room.startswith("symbol:"))

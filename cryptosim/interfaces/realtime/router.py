"""
Websocket gateway for realtime order and price pushes.

Clients connect to ``/api/ws``, optionally with ``?token=<access token>``.
Anonymous clients may follow price channels only; following orders needs
a token. An invalid token closes the handshake with code 1008.
"""

import logging
from typing import Optional

from asgiref.sync import sync_to_async
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from cryptosim.core.database import session_scope
from cryptosim.domain.accounts.entities import Principal
from cryptosim.domain.errors import DomainError
from cryptosim.interfaces.dependencies import build_auth_service, get_realtime_stream

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def _authenticate(token: str) -> Principal:
    with session_scope() as session:
        return build_auth_service(session).authenticate(token)


@router.websocket("/ws")
async def realtime_ws(websocket: WebSocket, token: Optional[str] = Query(None)) -> None:
    principal: Optional[Principal] = None
    if token:
        try:
            principal = await sync_to_async(_authenticate)(token)
        except DomainError as exc:
            logger.info("Realtime handshake rejected: %s", exc.message)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

    manager = get_realtime_stream()
    await manager.connect(websocket, principal)
    try:
        while True:
            raw = await websocket.receive_text()
            await manager.handle_client_message(websocket, raw)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)

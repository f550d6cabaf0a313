# api/routes/realtime.py
import asyncio
import logging
from contextlib import suppress
from typing import Optional
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from core.exceptions import BookShareError
from core.realtime import feed, notifications_channel, messages_channel
from core.sa.database import get_db
from core.services.auth import AuthService
from core.services.lending import LendingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["realtime"])


def _notifications_channel_for(db: Session, token: str) -> Optional[str]:
    """Channel of the token's user, or None if the token is not accepted"""
    try:
        user = AuthService(db).get_current_user(token)
    except BookShareError:
        return None
    finally:
        db.close()
    return notifications_channel(user.id)


def _messages_channel_for(db: Session, token: str, request_id: str) -> Optional[str]:
    """Chat channel of a borrow request, or None unless the token's user takes part in it"""
    try:
        user = AuthService(db).get_current_user(token)
        borrow_request = LendingService(db).get_borrow_request(request_id)
    except BookShareError:
        return None
    finally:
        db.close()
    if not borrow_request.is_participant(user.id):
        return None
    return messages_channel(request_id)


async def _stream(websocket: WebSocket, channel: str) -> None:
    # Subscribed before the handshake completes, so no event after it is lost
    subscription = feed.subscribe(channel)
    await websocket.accept()

    async def forward():
        while True:
            await websocket.send_json(await subscription.get())

    sender = asyncio.create_task(forward())
    try:
        # Incoming frames are ignored; this only waits for the client to go away
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Subscriber left %s", channel)
    finally:
        feed.unsubscribe(subscription)
        sender.cancel()
        # A send error other than the client leaving propagates from here
        with suppress(asyncio.CancelledError, WebSocketDisconnect):
            await sender


@router.websocket("/notifications")
async def notifications_feed(
    websocket: WebSocket,
    token: str = Query(...),
    db: Session = Depends(get_db),
):
    """Push each new notification for the signed-in user."""
    channel = await run_in_threadpool(_notifications_channel_for, db, token)
    if channel is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await _stream(websocket, channel)


@router.websocket("/requests/{request_id}/messages")
async def messages_feed(
    websocket: WebSocket,
    request_id: str,
    token: str = Query(...),
    db: Session = Depends(get_db),
):
    """Push each new chat message on a borrow request to its participants."""
    channel = await run_in_threadpool(_messages_channel_for, db, token, request_id)
    if channel is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await _stream(websocket, channel)

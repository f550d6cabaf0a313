# tests/test_api/test_realtime_api.py

import asyncio
import pytest
from starlette.websockets import WebSocketDisconnect

import api.routes.realtime as realtime_routes
from core.realtime import feed


def test_notifications_stream(client, pending_request, owner, borrower, make_token, auth_headers):
    token = make_token(borrower)
    with client.websocket_connect(f"/ws/notifications?token={token}") as ws:
        client.post(f"/api/borrow-requests/{pending_request.id}/deny", headers=auth_headers(owner),
                    json={"response_message": "Sorry"})
        event = ws.receive_json()

    assert event["event"] == "INSERT"
    assert event["table"] == "notification"
    assert event["record"]["type"] == "request_denied"
    assert event["record"]["user_id"] == borrower.id

def test_messages_stream(client, pending_request, owner, borrower, make_token, auth_headers):
    token = make_token(owner)
    with client.websocket_connect(f"/ws/requests/{pending_request.id}/messages?token={token}") as ws:
        client.post(f"/api/borrow-requests/{pending_request.id}/messages", headers=auth_headers(borrower),
                    json={"content": "Hello there"})
        event = ws.receive_json()

    assert event["table"] == "message"
    assert event["record"]["content"] == "Hello there"
    assert event["record"]["sender_id"] == borrower.id

def test_bad_token_is_rejected(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/notifications?token=nope"):
            pass

def test_outsider_cannot_listen(client, pending_request, stranger, make_token):
    token = make_token(stranger)
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/ws/requests/{pending_request.id}/messages?token={token}"):
            pass

def test_token_lookup_runs_in_threadpool(client, borrower, make_token, monkeypatch):
    calls = []
    run_in_threadpool = realtime_routes.run_in_threadpool

    async def recording(func, *args):
        calls.append(func.__name__)
        return await run_in_threadpool(func, *args)

    monkeypatch.setattr(realtime_routes, "run_in_threadpool", recording)
    with client.websocket_connect(f"/ws/notifications?token={make_token(borrower)}"):
        pass
    assert calls == ["_notifications_channel_for"]


class BrokenSocket:
    """Accepts, then fails on the first send and reports the client gone."""

    def __init__(self):
        self.gone = asyncio.Event()

    async def accept(self):
        pass

    async def send_json(self, data):
        self.gone.set()
        raise RuntimeError("connection reset")

    async def receive_text(self):
        await self.gone.wait()
        raise WebSocketDisconnect(1006)


def test_send_errors_are_not_lost():
    channel = "messages:broken-socket"

    async def scenario():
        task = asyncio.create_task(realtime_routes._stream(BrokenSocket(), channel))
        await asyncio.sleep(0)
        feed.publish(channel, {"content": "hi"})
        await task

    with pytest.raises(RuntimeError, match="connection reset"):
        asyncio.run(scenario())
    assert feed.subscriber_count(channel) == 0

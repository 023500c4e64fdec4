"""Shared fixtures: a local stand-in for the 10MinuteMail HTTP API."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer


def make_record(index: int, **overrides: Any) -> Dict[str, Any]:
    record = {
        "read": False,
        "expanded": False,
        "forwarded": False,
        "repliedTo": False,
        "sentDate": "2021-11-28T08:21:06.000+0000",
        "sentDateFormatted": "Nov 28, 2021, 8:21:06 AM",
        "sender": f"sender{index}@example.com",
        "from": "[Ljavax.mail.internet.InternetAddress;@683d4237",
        "subject": f"Subject {index}",
        "bodyPlainText": f"body {index}",
        "bodyHtmlContent": f"<div>body {index}<br></div>",
        "bodyPreview": f"body {index}",
        "id": f"-{1000 + index}",
    }
    record.update(overrides)
    return record


@dataclass
class FakeMailbox:
    """State behind the fake server, mutated by tests"""

    address: str = "abc123@example.com"
    token: str = "token-1"
    send_cookie: bool = True
    address_body: Optional[str] = None
    reset_response: str = "reset"
    reset_token: Optional[str] = None
    seconds_left: int = 599
    server_expired: bool = False
    reply_status: int = 200
    forward_status: int = 200
    messages: List[Dict[str, Any]] = field(default_factory=list)
    blocked: Set[str] = field(default_factory=set)
    overrides: Dict[str, Tuple[int, str]] = field(default_factory=dict)
    truncated: Set[str] = field(default_factory=set)
    requests: List[Tuple[str, str, Optional[str]]] = field(default_factory=list)
    posted: List[Dict[str, Any]] = field(default_factory=list)
    base_url: str = ""

    def paths(self) -> List[str]:
        return [path for _, path, _ in self.requests]


def build_app(state: FakeMailbox) -> web.Application:
    @web.middleware
    async def record(request, handler):
        state.requests.append(
            (request.method, request.path, request.cookies.get("JSESSIONID"))
        )
        if request.path in state.blocked:
            return web.Response(status=403, text="Forbidden")
        if request.path in state.truncated:
            return await truncated_body(request)
        if request.path in state.overrides:
            status, text = state.overrides[request.path]
            return web.Response(
                status=status, text=text, content_type="application/json"
            )
        return await handler(request)

    async def truncated_body(request):
        # Promise more bytes than are sent, then hang up
        response = web.StreamResponse(
            status=200, headers={"Content-Type": "application/json"}
        )
        response.content_length = 1024
        await response.prepare(request)
        await response.write(b'[{"id": "1", "subject": "cut')
        request.transport.close()
        return response

    async def address(request):
        if state.address_body is not None:
            response = web.Response(text=state.address_body, content_type="application/json")
        else:
            response = web.json_response({"address": state.address})
        if state.send_cookie:
            response.set_cookie("JSESSIONID", state.token)
        return response

    async def reset(request):
        response = web.json_response({"Response": state.reset_response})
        if state.reset_token:
            response.set_cookie("JSESSIONID", state.reset_token)
        return response

    async def seconds_left(request):
        return web.json_response({"secondsLeft": state.seconds_left})

    async def expired(request):
        return web.json_response({"expired": state.server_expired})

    async def message_count(request):
        return web.json_response({"messageCount": len(state.messages)})

    async def messages_after(request):
        index = int(request.match_info["index"])
        return web.json_response(state.messages[index:])

    async def reply(request):
        state.posted.append(await request.json())
        return web.Response(status=state.reply_status)

    async def forward(request):
        state.posted.append(await request.json())
        return web.Response(status=state.forward_status)

    app = web.Application(middlewares=[record])
    app.router.add_get("/session/address", address)
    app.router.add_get("/session/reset", reset)
    app.router.add_get("/session/secondsLeft", seconds_left)
    app.router.add_get("/session/expired", expired)
    app.router.add_get("/messages/messageCount", message_count)
    app.router.add_get("/messages/messagesAfter/{index}", messages_after)
    app.router.add_post("/messages/reply", reply)
    app.router.add_post("/messages/forward", forward)
    return app


@pytest_asyncio.fixture
async def mailbox():
    state = FakeMailbox()
    server = TestServer(build_app(state))
    await server.start_server()
    state.base_url = f"http://{server.host}:{server.port}"
    try:
        yield state
    finally:
        await server.close()


@pytest.fixture
def records():
    return [make_record(i) for i in range(3)]

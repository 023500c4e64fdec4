#!/usr/bin/env python
"""
10MinuteMail session handling.

A Session owns one temporary address. It tracks when the address is due to
expire, renews it, and pulls new mail incrementally:

    session = await Session.create()
    print(session.address)

    while True:
        if session.expired() and not await session.renew():
            break
        for message in await session.latest():
            print(message.sender, message.subject)
        await asyncio.sleep(2)

Calls on one Session must not overlap; run them from a single task.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import aiohttp
from yarl import URL

from .config import ClientConfig
from .errors import (
    BlockedByServerError,
    MarshalError,
    MissingSessionError,
    ReadBodyError,
    RequestBuildError,
    RequestFailedError,
    UnmarshalError,
)
from .logging_config import get_logger
from .models import (
    Message,
    forward_request,
    read_address,
    read_expired,
    read_message_count,
    read_reset,
    read_seconds_left,
    reply_request,
)
from .utils import join

logger = get_logger(__name__)

SESSION_LIFETIME = timedelta(minutes=10)
SESSION_COOKIE = "JSESSIONID"

# As far as anyone knows, this is the only payload meaning success
RESET_SENTINEL = "reset"

ENDPOINT_ADDRESS = "session/address"
ENDPOINT_EXPIRED = "session/expired"
ENDPOINT_RESET = "session/reset"
ENDPOINT_SECONDS_LEFT = "session/secondsLeft"

ENDPOINT_MESSAGE_COUNT = "messages/messageCount"
ENDPOINT_MESSAGES_AFTER = "messages/messagesAfter"
ENDPOINT_MESSAGE_REPLY = "messages/reply"
ENDPOINT_MESSAGE_FORWARD = "messages/forward"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Session:
    """A single 10MinuteMail mailbox"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[aiohttp.ClientSession] = None,
        config: Optional[ClientConfig] = None,
    ):
        config = config or ClientConfig()
        self.base_url = base_url or config.base_url
        self._timeout = aiohttp.ClientTimeout(
            total=timeout if timeout is not None else config.timeout
        )
        self._http = http

        self._address = ""
        self._token = ""

        # It's better to assume that we have less time than more time
        self._last_reset = _now()

        # Number of messages already handed out, so latest() never repeats one
        self._last_count = 0

    @classmethod
    async def create(
        cls,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[aiohttp.ClientSession] = None,
        config: Optional[ClientConfig] = None,
    ) -> "Session":
        """Start a new session with a random address"""
        session = cls(base_url=base_url, timeout=timeout, http=http, config=config)
        await session._initialise()
        return session

    async def _initialise(self) -> None:
        logger.debug(f"Creating session against {self.base_url}")

        # Expiry counts from before the request is made
        self._last_reset = _now()

        status, body, cookies = await self._request(
            "GET", ENDPOINT_ADDRESS, authenticated=False
        )
        if status == 403:
            logger.warning("Session creation blocked by server")
            raise BlockedByServerError()

        token = cookies.get(SESSION_COOKIE)
        if not token:
            logger.error(f"No {SESSION_COOKIE} cookie in address response")
            raise MissingSessionError()
        self._token = token

        try:
            self._address = read_address(self._decode(body))
        except (KeyError, TypeError) as e:
            logger.error(f"Unexpected address payload: {e}")
            raise UnmarshalError(str(e), cause=e)

        logger.info(f"Session created: {self._address}")

    @property
    def address(self) -> str:
        return self._address

    @property
    def token(self) -> str:
        return self._token

    @property
    def cursor(self) -> int:
        """Number of messages already returned by messages()/latest()"""
        return self._last_count

    def expires_at(self) -> datetime:
        """The instant the session is due to expire, in UTC"""
        return self._last_reset + SESSION_LIFETIME

    def expired(self, now: Optional[datetime] = None) -> bool:
        """
        Whether the session is due to have expired and needs renewal.

        A naive `now` is taken as local time.
        """
        if now is None:
            now = _now()
        elif now.tzinfo is None:
            now = now.astimezone(timezone.utc)
        return not now < self.expires_at()

    async def renew(self) -> bool:
        """
        Ask the server to extend the session by another 10 minutes.

        Returns True only when the server answers with the reset sentinel.
        Any other answer returns False and leaves the expiry untouched.
        """
        # If the reset works, count from when we started asking
        reset_at = _now()

        status, body, cookies = await self._request("GET", ENDPOINT_RESET)
        if status == 403:
            logger.warning("Renewal blocked by server")
            raise BlockedByServerError()

        try:
            response = read_reset(self._decode(body))
        except (KeyError, TypeError) as e:
            logger.error(f"Unexpected reset payload: {e}")
            raise UnmarshalError(str(e), cause=e)

        if response != RESET_SENTINEL:
            logger.warning(f"Renewal not confirmed, server said {response!r}")
            return False

        if cookies.get(SESSION_COOKIE):
            self._token = cookies[SESSION_COOKIE]

        self._last_reset = reset_at
        logger.info(f"Session renewed, expires at {self.expires_at().isoformat()}")
        return True

    async def messages(self) -> List[Message]:
        """
        Every message received by this address.

        Also moves the cursor used by latest(), so there's no need to call
        latest() straight afterwards.
        """
        return await self._messages(0)

    async def latest(self) -> List[Message]:
        """Messages that this session hasn't returned yet"""
        return await self._messages(self._last_count)

    async def _messages(self, index: int) -> List[Message]:
        logger.debug(f"Fetching messages after {index}")

        status, body, _ = await self._request(
            "GET", ENDPOINT_MESSAGES_AFTER, str(index)
        )
        if status == 403:
            logger.warning("Message fetch blocked by server")
            raise BlockedByServerError()

        payload = self._decode(body)
        if payload is None:
            payload = []
        if not isinstance(payload, list):
            logger.error(f"Expected a list of messages, got {type(payload).__name__}")
            raise UnmarshalError(f"expected a list, got {type(payload).__name__}")
        try:
            messages = [Message.from_dict(record) for record in payload]
        except TypeError as e:
            logger.error(f"Unexpected message record: {e}")
            raise UnmarshalError(str(e), cause=e)

        # The cursor never moves backwards
        self._last_count = max(self._last_count, index + len(messages))

        if messages:
            logger.info(f"Retrieved {len(messages)} message(s) after {index}")
        return messages

    async def reply(self, message_id: str, body: str) -> bool:
        """
        Reply to the sender of a message.

        False means the server refused, which usually means the message is
        too old.
        """
        logger.info(f"Replying to message {message_id}")
        return await self._post_action(
            ENDPOINT_MESSAGE_REPLY, reply_request(message_id, body)
        )

    async def forward(self, message_id: str, recipient: str) -> bool:
        """
        Forward a message to another address.

        The server reports success even when the recipient is invalid or the
        mail bounces later, so True is not a delivery receipt.
        """
        logger.info(f"Forwarding message {message_id} to {recipient}")
        return await self._post_action(
            ENDPOINT_MESSAGE_FORWARD, forward_request(message_id, recipient)
        )

    async def _post_action(self, endpoint: str, envelope: Dict[str, Any]) -> bool:
        try:
            data = json.dumps(envelope)
        except (TypeError, ValueError) as e:
            raise MarshalError(str(e), cause=e)

        status, _, _ = await self._request(
            "POST",
            endpoint,
            data=data,
            headers={"Content-Type": "application/json"},
            read_body=False,
        )
        if status == 200:
            return True
        if status == 403:
            logger.warning(f"{endpoint} blocked by server")
            raise BlockedByServerError()

        logger.warning(f"{endpoint} rejected with status {status}")
        return False

    async def seconds_left(self) -> int:
        """The server's own count of seconds until expiry"""
        payload = await self._get_json(ENDPOINT_SECONDS_LEFT)
        try:
            return read_seconds_left(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise UnmarshalError(str(e), cause=e)

    async def server_expired(self) -> bool:
        """Whether the server considers the session expired"""
        payload = await self._get_json(ENDPOINT_EXPIRED)
        try:
            return read_expired(payload)
        except (KeyError, TypeError) as e:
            raise UnmarshalError(str(e), cause=e)

    async def message_count(self) -> int:
        """How many messages the server holds; doesn't move the cursor"""
        payload = await self._get_json(ENDPOINT_MESSAGE_COUNT)
        try:
            return read_message_count(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise UnmarshalError(str(e), cause=e)

    async def _get_json(self, endpoint: str) -> Any:
        status, body, _ = await self._request("GET", endpoint)
        if status == 403:
            logger.warning(f"{endpoint} blocked by server")
            raise BlockedByServerError()
        return self._decode(body)

    @staticmethod
    def _decode(body: bytes) -> Any:
        try:
            return json.loads(body)
        except ValueError as e:
            logger.error(f"Could not decode response body: {e}")
            raise UnmarshalError(str(e), cause=e)

    def _forget_session_cookie(self, url: URL) -> None:
        # A shared jar must not carry one session's token into another's requests
        host = url.raw_host
        self._http.cookie_jar.clear(
            lambda morsel: morsel.key == SESSION_COOKIE and morsel["domain"] == host
        )

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._http is not None:
            yield self._http
            return

        async with aiohttp.ClientSession(timeout=self._timeout) as http:
            yield http

    async def _request(
        self,
        method: str,
        *segments: str,
        authenticated: bool = True,
        data: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        read_body: bool = True,
    ) -> Tuple[int, bytes, Dict[str, str]]:
        """
        Perform one request and return (status, body, cookies).

        The body is not read on 403 or when read_body is False.
        """
        try:
            url = URL(join(self.base_url, *segments))
        except (TypeError, ValueError) as e:
            raise RequestBuildError(str(e), cause=e)
        if not url.is_absolute():
            raise RequestBuildError(f"not an absolute URL: {url}")

        # Per-request cookies win over whatever a shared client jar holds
        request_cookies = {SESSION_COOKIE: self._token} if authenticated else None

        logger.debug(f"{method} {url}")

        async with self._client() as http:
            try:
                async with http.request(
                    method,
                    url,
                    data=data,
                    headers=headers,
                    cookies=request_cookies,
                    timeout=self._timeout,
                ) as response:
                    status = response.status
                    cookies = {
                        name: morsel.value for name, morsel in response.cookies.items()
                    }
                    if http is self._http:
                        self._forget_session_cookie(url)

                    body = b""
                    if read_body and status != 403:
                        try:
                            body = await response.read()
                        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                            logger.error(f"Reading {url} failed: {e}")
                            raise ReadBodyError(str(e), cause=e)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"{method} {url} failed: {e}")
                raise RequestFailedError(str(e) or type(e).__name__, cause=e)

        logger.debug(f"{method} {url} -> {status}")
        return status, body, cookies

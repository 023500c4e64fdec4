#!/usr/bin/env python
import asyncio
import inspect
from typing import Any, Callable, Optional

from .config import DEFAULT_POLL_INTERVAL
from .errors import SessionExpiredError
from .logging_config import get_logger
from .models import Message
from .session import Session

# Get module logger
logger = get_logger(__name__)


class MailboxMonitor:
    """Polls a session for new mail, renewing it when it runs out"""

    def __init__(
        self,
        session: Session,
        message_callback: Callable[[Message], Any],
        interval: Optional[float] = None,
        forward_to: Optional[str] = None,
    ):
        self.session = session
        self.message_callback = message_callback
        self.interval = interval if interval is not None else DEFAULT_POLL_INTERVAL
        self.forward_to = forward_to
        self.poll_count = 0
        self._stop_monitoring = asyncio.Event()

    async def run(self) -> None:
        """
        Poll until stop() is called.

        BLOCKS. Errors from the session propagate; a refused renewal raises
        SessionExpiredError.
        """
        logger.info(f"Monitoring {self.session.address} every {self.interval}s")
        try:
            while not self._stop_monitoring.is_set():
                await self.poll_once()

                try:
                    await asyncio.wait_for(
                        self._stop_monitoring.wait(), timeout=self.interval
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            self._stop_monitoring.clear()
            logger.info("Monitoring stopped")

    async def poll_once(self) -> int:
        """Renew if needed, then deliver any new messages. Returns how many."""
        self.poll_count += 1
        logger.debug(f"Poll #{self.poll_count}")

        if self.session.expired():
            logger.info("Renewing session")
            if not await self.session.renew():
                logger.error("Session permanently expired")
                raise SessionExpiredError(self.session.address)
            logger.info("Successfully renewed session")

        messages = await self.session.latest()
        if not messages:
            logger.debug("No new messages found")
            return 0

        logger.info(f"Found {len(messages)} new message(s)")
        for message in messages:
            result = self.message_callback(message)
            if inspect.isawaitable(result):
                await result

            if self.forward_to:
                await self._forward(message)

        return len(messages)

    async def _forward(self, message: Message) -> None:
        ok = await self.session.forward(message.id, self.forward_to)
        if ok:
            logger.info(f"Forwarded message {message.id} to {self.forward_to}")
        else:
            logger.warning(f"Server refused to forward message {message.id}")

    def stop(self) -> None:
        """Stop after the current poll"""
        logger.debug("Stop requested")
        self._stop_monitoring.set()

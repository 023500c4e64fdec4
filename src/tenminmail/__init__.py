# SPDX-FileCopyrightText: 2025-present jonnieey <johnjahi55@gmail.com>
#
# SPDX-License-Identifier: MIT
#!/usr/bin/env python
"""
10MinuteMail client

Create a temporary address, poll it for mail, reply to or forward what
arrives:

    session = await Session.create()
    print(session.address)
    for message in await session.messages():
        print(message.plaintext)

Or hand the polling loop to a monitor:

    monitor = MailboxMonitor(session, print)
    await monitor.run()
"""

import logging

from .config import ClientConfig
from .errors import (
    ErrorKind,
    TenMinMailError,
    RequestBuildError,
    MarshalError,
    RequestFailedError,
    ReadBodyError,
    UnmarshalError,
    MissingSessionError,
    BlockedByServerError,
    SessionExpiredError,
)
from .models import Message
from .monitor import MailboxMonitor
from .session import Session, SESSION_LIFETIME
from .logging_config import setup_logging, get_logger

# Silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"
__all__ = [
    "ClientConfig",
    "ErrorKind",
    "TenMinMailError",
    "RequestBuildError",
    "MarshalError",
    "RequestFailedError",
    "ReadBodyError",
    "UnmarshalError",
    "MissingSessionError",
    "BlockedByServerError",
    "SessionExpiredError",
    "Message",
    "MailboxMonitor",
    "Session",
    "SESSION_LIFETIME",
    "setup_logging",
    "get_logger",
]

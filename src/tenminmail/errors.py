#!/usr/bin/env python
# errors.py - Error kinds raised by the 10MinuteMail client

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Every failure the client can report"""

    BUILDING_REQUEST = "failed to construct request object"
    MARSHAL_FAILED = "marshalling request body failed"
    REQUEST_FAILED = "request to 10minutemail failed"
    READ_BODY = "reading response body failed"
    UNMARSHAL_FAILED = "unmarshalling response body failed"
    MISSING_SESSION = "missing session cookie in response"
    BLOCKED_BY_SERVER = (
        "server is blocking requests from this host; probably rate limited"
    )
    SESSION_EXPIRED = "session permanently expired"


class TenMinMailError(Exception):
    """Base class for all client errors"""

    kind: ErrorKind = ErrorKind.REQUEST_FAILED

    def __init__(self, detail: Optional[str] = None, cause: Optional[Exception] = None):
        self.detail = detail
        self.cause = cause
        message = self.kind.value
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class RequestBuildError(TenMinMailError):
    kind = ErrorKind.BUILDING_REQUEST


class MarshalError(TenMinMailError):
    kind = ErrorKind.MARSHAL_FAILED


class RequestFailedError(TenMinMailError):
    """The request never completed (connection, DNS, timeout...)"""

    kind = ErrorKind.REQUEST_FAILED


class ReadBodyError(TenMinMailError):
    kind = ErrorKind.READ_BODY


class UnmarshalError(TenMinMailError):
    kind = ErrorKind.UNMARSHAL_FAILED


class MissingSessionError(TenMinMailError):
    kind = ErrorKind.MISSING_SESSION


class BlockedByServerError(TenMinMailError):
    """
    HTTP 403 from the service.

    Usually upstream rate limiting; may clear up after a while.
    """

    kind = ErrorKind.BLOCKED_BY_SERVER


class SessionExpiredError(TenMinMailError):
    """Renewal was refused; a brand-new session is required"""

    kind = ErrorKind.SESSION_EXPIRED

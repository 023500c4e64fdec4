#!/usr/bin/env python
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, Optional

from .logging_config import get_logger

logger = get_logger(__name__)

# e.g. 2021-11-28T08:21:06.000+0000
SENT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def parse_sent_date(value: Optional[str]) -> Optional[datetime]:
    """Parse the server's sentDate field, None if missing or malformed"""
    if not value:
        return None
    try:
        return datetime.strptime(value, SENT_DATE_FORMAT)
    except (TypeError, ValueError) as e:
        logger.debug(f"Could not parse sentDate {value!r}: {e}")
        return None


@dataclass(frozen=True)
class Message:
    """A single email received by a temporary address"""

    id: str
    sender: str = ""
    from_: str = ""
    subject: str = ""
    plaintext: str = ""
    html: str = ""
    preview: str = ""
    sent_date: Optional[datetime] = None
    sent_date_formatted: str = ""
    forwarded: bool = False
    replied_to: bool = False
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Create from a messagesAfter record"""
        if not isinstance(data, dict):
            raise TypeError(f"message record must be an object, got {type(data).__name__}")

        return cls(
            id=str(data.get("id") or ""),
            sender=data.get("sender") or "",
            from_=data.get("from") or "",
            subject=data.get("subject") or "",
            plaintext=data.get("bodyPlainText") or "",
            html=data.get("bodyHtmlContent") or "",
            preview=data.get("bodyPreview") or "",
            sent_date=parse_sent_date(data.get("sentDate")),
            sent_date_formatted=data.get("sentDateFormatted") or "",
            forwarded=bool(data.get("forwarded", False)),
            replied_to=bool(data.get("repliedTo", False)),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the server's field names"""
        data = asdict(self)
        data.pop("raw")
        return {
            "id": data["id"],
            "sender": data["sender"],
            "from": data["from_"],
            "subject": data["subject"],
            "bodyPlainText": data["plaintext"],
            "bodyHtmlContent": data["html"],
            "bodyPreview": data["preview"],
            "sentDate": self.raw.get("sentDate")
            or (self.sent_date.strftime(SENT_DATE_FORMAT) if self.sent_date else ""),
            "sentDateFormatted": data["sent_date_formatted"],
            "forwarded": data["forwarded"],
            "repliedTo": data["replied_to"],
        }


# Request envelopes


def reply_request(message_id: str, body: str) -> Dict[str, Any]:
    return {"Reply": {"messageId": message_id, "replyBody": body}}


def forward_request(message_id: str, recipient: str) -> Dict[str, Any]:
    return {"Forward": {"messageId": message_id, "forwardAddress": recipient}}


# Response envelopes. Each reader raises KeyError/TypeError/ValueError on a bad shape.


def read_address(payload: Any) -> str:
    address = payload["address"]
    if not isinstance(address, str):
        raise TypeError("address must be a string")
    return address


def read_reset(payload: Any) -> str:
    return str(payload["Response"])


def read_seconds_left(payload: Any) -> int:
    return int(payload["secondsLeft"])


def read_expired(payload: Any) -> bool:
    expired = payload["expired"]
    if not isinstance(expired, bool):
        raise TypeError("expired must be a boolean")
    return expired


def read_message_count(payload: Any) -> int:
    return int(payload["messageCount"])

"""QR check-in payloads.

The payload is base64-encoded JSON and carries no signature, so anyone holding
a copy can replay it until it expires. Expiry is the only protection.
"""
import base64
import binascii
import json
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .clock import as_utc, utcnow


@dataclass
class QRPayload:
    session_id: int
    activity_id: int
    timestamp: int  # milliseconds since epoch
    random_token: str

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "timestamp": self.timestamp,
            "randomToken": self.random_token,
            "activityId": self.activity_id,
        }


def build_payload(session_id: int, activity_id: int, now_ms: Optional[int] = None) -> QRPayload:
    return QRPayload(
        session_id=session_id,
        activity_id=activity_id,
        timestamp=now_ms if now_ms is not None else int(time.time() * 1000),
        random_token=secrets.token_hex(16),
    )


def encode_payload(payload: QRPayload) -> str:
    raw = json.dumps(payload.to_dict(), separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_payload(data: str) -> Optional[QRPayload]:
    """Returns None for anything that is not a well-formed payload."""
    try:
        raw = json.loads(base64.b64decode(data.encode("ascii"), validate=True))
        return QRPayload(
            session_id=int(raw["sessionId"]),
            activity_id=int(raw["activityId"]),
            timestamp=int(raw["timestamp"]),
            random_token=str(raw["randomToken"]),
        )
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError):
        return None


def expiry_from(issued_at: datetime, ttl_seconds: int) -> datetime:
    return issued_at + timedelta(seconds=ttl_seconds)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if expires_at is None:
        return True
    return as_utc(now or utcnow()) > as_utc(expires_at)


def within_check_in_window(session_start: datetime, check_in_at: datetime, window_minutes: int) -> bool:
    """Check-in is open from ``window_minutes`` before to ``window_minutes`` after the start."""
    window = timedelta(minutes=window_minutes)
    return session_start - window <= check_in_at <= session_start + window

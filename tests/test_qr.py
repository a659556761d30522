import base64
import json
from datetime import datetime, timedelta

from campus_connect.utils import qr


def test_payload_encodes_expected_fields():
    payload = qr.build_payload(7, 3, now_ms=1_700_000_000_000)
    data = json.loads(base64.b64decode(qr.encode_payload(payload)))

    assert data["sessionId"] == 7
    assert data["activityId"] == 3
    assert data["timestamp"] == 1_700_000_000_000
    assert len(data["randomToken"]) == 32


def test_decode_returns_payload():
    payload = qr.build_payload(1, 2)
    assert qr.decode_payload(qr.encode_payload(payload)) == payload


def test_decode_rejects_garbage():
    assert qr.decode_payload("not base64 !!") is None
    assert qr.decode_payload(base64.b64encode(b"[1, 2]").decode()) is None
    assert qr.decode_payload(base64.b64encode(b'{"sessionId": 1}').decode()) is None


def test_tokens_differ_between_payloads():
    assert qr.build_payload(1, 1).random_token != qr.build_payload(1, 1).random_token


def test_expiry():
    issued = datetime(2025, 1, 1, 10, 0, 0)
    expires = qr.expiry_from(issued, 30)

    assert expires == issued + timedelta(seconds=30)
    assert not qr.is_expired(expires, issued + timedelta(seconds=29))
    assert qr.is_expired(expires, issued + timedelta(seconds=31))
    assert qr.is_expired(None)


def test_check_in_window():
    start = datetime(2025, 1, 1, 9, 0)
    assert qr.within_check_in_window(start, start - timedelta(minutes=15), 15)
    assert qr.within_check_in_window(start, start + timedelta(minutes=10), 15)
    assert not qr.within_check_in_window(start, start - timedelta(minutes=16), 15)
    assert not qr.within_check_in_window(start, start + timedelta(minutes=16), 15)

from datetime import datetime, timedelta

from campus_connect.utils.cancellation import cancellation_deadline, validate_cancellation

START = datetime(2025, 3, 10, 9, 0)


def test_deadline_is_hours_before_start():
    assert cancellation_deadline(START, 24) == START - timedelta(hours=24)


def test_can_cancel_before_deadline():
    check = validate_cancellation(START, 24, now=START - timedelta(hours=48))
    assert check.can_cancel
    assert check.hours_until_event == 48
    assert "48 hours" in check.message


def test_cancel_exactly_at_deadline_allowed():
    assert validate_cancellation(START, 24, now=START - timedelta(hours=24)).can_cancel


def test_cannot_cancel_inside_deadline():
    check = validate_cancellation(START, 24, now=START - timedelta(hours=10))
    assert not check.can_cancel
    assert "contact the professor" in check.message

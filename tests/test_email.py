from unittest.mock import patch

import requests

from campus_connect.services import email as mail
from campus_connect.services.email import EmailSender


def make_sender(**overrides):
    options = dict(api_url="https://mail.test/emails", api_key="key", from_address="noreply@test",
                   from_name="Campus Connect", enabled=True, hourly_limit=2)
    options.update(overrides)
    return EmailSender(**options)


def test_disabled_sender_does_not_call_api():
    sender = make_sender(enabled=False)
    with patch("campus_connect.services.email.requests.post") as post:
        result = sender.send("a@example.com", "Hello", "<p>Hi</p>")
    assert result.success
    post.assert_not_called()


def test_send_posts_to_api():
    sender = make_sender()
    with patch("campus_connect.services.email.requests.post") as post:
        post.return_value.ok = True
        result = sender.send("a@example.com", "Hello", "<p>Hi</p>")

    assert result.success
    _, kwargs = post.call_args
    assert kwargs["json"]["to"] == ["a@example.com"]
    assert kwargs["headers"]["Authorization"] == "Bearer key"


def test_send_never_raises_on_network_error():
    sender = make_sender()
    with patch("campus_connect.services.email.requests.post", side_effect=requests.ConnectionError("down")):
        result = sender.send("a@example.com", "Hello", "<p>Hi</p>")
    assert not result.success
    assert "down" in result.error


def test_per_recipient_hourly_limit():
    sender = make_sender(enabled=False)
    assert sender.send("a@example.com", "1", "x").success
    assert sender.send("A@example.com", "2", "x").success
    third = sender.send("a@example.com", "3", "x")
    assert not third.success
    assert third.error == "Rate limit exceeded"
    assert sender.send("b@example.com", "1", "x").success


def test_templates_escape_user_text():
    subject, body = mail.application_rejected("Sam", "Clean-up", "<b>late</b>", waitlisted=True)
    assert "waiting list" in subject
    assert "&lt;b&gt;late&lt;/b&gt;" in body


def test_deliver_swallows_sender_errors():
    class Broken:
        def send(self, to, subject, body_html):
            raise RuntimeError("boom")

    assert mail.deliver(Broken(), "a@example.com", ("s", "b")) is False
    assert mail.deliver(Broken(), None, ("s", "b")) is False


def test_templates_render_through_shared_layout():
    subject, body = mail.application_accepted("Sam <Student>", "Beach clean-up", "Ada Lovelace",
                                              custom_message="Bring <gloves> & water")
    assert subject == "Your application was accepted - Beach clean-up"
    assert "Hello Sam &lt;Student&gt;," in body
    assert "Bring &lt;gloves&gt; &amp; water" in body
    assert "<strong>Beach clean-up</strong>" in body


def test_hours_templates_format_hours():
    _, body = mail.hours_approved("Sam", "Clean-up", "Ada", 2.0, "2026-03-01", notes=None)
    assert "approved 2 hours logged on 2026-03-01" in body
    assert "Notes:" not in body

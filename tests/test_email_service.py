import asyncio
import smtplib

import pytest

from storefront_api.config import Settings
from storefront_api.email_service import (
    EmailService,
    HostedProviderConfig,
    ResendConfig,
    SMTPConfig,
    SMTPTransport,
    TestSinkConfig,
    TestSinkTransport,
    select_transport_config,
)
from storefront_api.errors import TransportError


def make_settings(**overrides):
    return Settings(stripe_secret_key="sk_test", base_url="http://shop.test", **overrides)


SMTP = {"smtp_host": "mail.shop.test", "smtp_user": "orders@shop.test", "smtp_pass": "pw"}
GMAIL = {"gmail_user": "shop@gmail.com", "gmail_pass": "app-password"}


def test_smtp_wins_when_fully_configured():
    config = select_transport_config(make_settings(**SMTP, **GMAIL, resend_api_key="re_1"))

    assert isinstance(config, SMTPConfig)
    assert config.host == "mail.shop.test"
    assert config.port == 587
    assert config.secure is False


def test_partial_smtp_falls_through_to_hosted_provider():
    config = select_transport_config(make_settings(smtp_host="mail.shop.test", **GMAIL))

    assert isinstance(config, HostedProviderConfig)
    assert config.host == "smtp.gmail.com"
    assert config.port == 465


def test_resend_used_without_smtp_or_gmail():
    assert isinstance(select_transport_config(make_settings(resend_api_key="re_1")), ResendConfig)


def test_test_sink_without_credentials():
    assert isinstance(select_transport_config(make_settings()), TestSinkConfig)
    assert isinstance(EmailService(make_settings()).get_transport(), TestSinkTransport)


def test_config_repr_hides_password():
    config = select_transport_config(make_settings(**SMTP))

    assert "pw" not in repr(config)


def test_sink_captures_and_bounds_outbox():
    sink = TestSinkTransport(base_url="http://shop.test/", max_messages=2)
    service = EmailService(make_settings(), sink=sink)

    results = [
        asyncio.run(service.send_email(to=f"buyer{i}@shop.test", subject="Hi", html="<p>hi</p>"))
        for i in range(3)
    ]

    assert all(r.preview_url.startswith("http://shop.test/email-preview/") for r in results)
    assert [m.email.to for m in sink.messages] == ["buyer1@shop.test", "buyer2@shop.test"]
    assert sink.get(results[0].preview_url.rsplit("/", 1)[-1]) is None


def test_smtp_transport_uses_starttls_and_sends_both_parts(fake_smtp):
    service = EmailService(make_settings(**SMTP))

    result = asyncio.run(
        service.send_email(to="buyer@shop.test", subject="Order", html="<p>html</p>", text="plain")
    )

    server = fake_smtp.instances[-1]
    assert server.started_tls
    assert server.logged_in == ("orders@shop.test", "pw")
    sender, recipients, message = server.sent[0]
    assert sender == "orders@shop.test"
    assert recipients == ["buyer@shop.test"]
    assert "multipart/alternative" in message
    assert "text/plain" in message and "text/html" in message
    assert result.message_id.startswith("<") and result.preview_url is None


def test_secure_smtp_uses_implicit_tls(fake_smtp):
    transport = SMTPTransport(
        SMTPConfig(host="mail.shop.test", port=465, secure=True, user="u", password="p")
    )

    transport.verify()

    assert not fake_smtp.instances[-1].started_tls


def test_smtp_auth_failure_is_transport_error(fake_smtp):
    fake_smtp.login_error = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    transport = EmailService(make_settings(**GMAIL)).get_transport()

    with pytest.raises(TransportError) as exc_info:
        transport.verify()

    assert exc_info.value.service == "gmail"


def test_failed_login_closes_connection(fake_smtp):
    fake_smtp.login_error = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    transport = EmailService(make_settings(**SMTP)).get_transport()

    with pytest.raises(TransportError):
        transport.verify()

    assert fake_smtp.instances[-1].closed


def test_slow_transport_times_out():
    class SlowTransport:
        name = "smtp"

        def send(self, email):
            import time

            time.sleep(1)

    service = EmailService(make_settings(email_timeout_seconds=0.05))

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(
            service.send_email(to="a@shop.test", subject="s", html="h", transport=SlowTransport())
        )

    assert "timed out" in str(exc_info.value)

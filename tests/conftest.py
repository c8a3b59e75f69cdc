"""Pytest fixtures: settings, fake Stripe client, fake SMTP server and an app client."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from storefront_api.config import Settings
from storefront_api.domain.payments import PaymentIntentGateway
from storefront_api.email_service import EmailService
from storefront_api.main import create_app


class FakePaymentIntents:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    async def create_async(self, params):
        self.calls.append(params)
        if self.error:
            raise self.error
        return SimpleNamespace(id="pi_123", client_secret="pi_123_secret_abc")


class FakeStripeClient:
    def __init__(self, error=None):
        self.payment_intents = FakePaymentIntents(error)
        self.v1 = SimpleNamespace(payment_intents=self.payment_intents)


class FakeSMTP:
    """Stands in for smtplib.SMTP / SMTP_SSL and records what the transport does."""

    instances = []
    login_error = None

    def __init__(self, host, port, context=None, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        self.closed = False
        FakeSMTP.instances.append(self)

    def ehlo(self):
        return (250, b"ok")

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, user, password):
        if FakeSMTP.login_error:
            raise FakeSMTP.login_error
        self.logged_in = (user, password)

    def sendmail(self, sender, recipients, message):
        self.sent.append((sender, recipients, message))

    def quit(self):
        self.closed = True

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.quit()


@pytest.fixture
def fake_smtp(monkeypatch):
    import smtplib

    FakeSMTP.instances = []
    FakeSMTP.login_error = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


@pytest.fixture
def settings():
    return Settings(
        stripe_secret_key="sk_test_123",
        base_url="http://shop.test",
        brand_name="Pixel Studio",
        environment="development",
    )


@pytest.fixture
def stripe_client():
    return FakeStripeClient()


@pytest.fixture
def make_client(stripe_client):
    def _make(settings):
        app = create_app(
            settings,
            payment_gateway=PaymentIntentGateway(settings.stripe_secret_key, client=stripe_client),
            email_service=EmailService(settings),
        )
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client, settings):
    return make_client(settings)

"""
Unified Email Service using Custom SMTP, a hosted relay (Gmail), Resend, or a local test sink
Provides email functionality using MJML templates for responsive design
"""

import asyncio
import logging
import smtplib
import ssl
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid, parseaddr
from io import StringIO
from typing import Callable, Optional, Union

import resend
from mjml import mjml_to_html

from .config import Settings
from .errors import StorefrontError, TransportError

logger = logging.getLogger(__name__)

GMAIL_SMTP_HOST = "smtp.gmail.com"
GMAIL_SMTP_PORT = 465
SINK_OUTBOX_SIZE = 50


# ============================================
# Transport configurations
# Exactly one is chosen per send by select_transport_config()
# ============================================


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int
    secure: bool
    user: str
    password: str = field(repr=False)
    name: str = "smtp"


@dataclass(frozen=True)
class HostedProviderConfig:
    user: str
    password: str = field(repr=False)
    host: str = GMAIL_SMTP_HOST
    port: int = GMAIL_SMTP_PORT
    name: str = "gmail"


@dataclass(frozen=True)
class ResendConfig:
    api_key: str = field(repr=False)
    name: str = "resend"


@dataclass(frozen=True)
class TestSinkConfig:
    __test__ = False

    name: str = "test"


EmailTransportConfig = Union[SMTPConfig, HostedProviderConfig, ResendConfig, TestSinkConfig]


def select_transport_config(settings: Settings) -> EmailTransportConfig:
    """
    Choose the outbound mail configuration. First match wins:
    1. Custom SMTP when host, user and password are all set
    2. Gmail relay when a Gmail user and app password are set
    3. Resend when an API key is set
    4. Local test sink (accepts everything, delivers nothing)
    """
    if settings.smtp_host and settings.smtp_user and settings.smtp_pass:
        return SMTPConfig(
            host=settings.smtp_host,
            port=settings.smtp_port,
            secure=settings.smtp_secure,
            user=settings.smtp_user,
            password=settings.smtp_pass,
        )

    if settings.gmail_user and settings.gmail_pass:
        return HostedProviderConfig(user=settings.gmail_user, password=settings.gmail_pass)

    if settings.resend_api_key:
        return ResendConfig(api_key=settings.resend_api_key)

    return TestSinkConfig()


# ============================================
# Messages
# ============================================


@dataclass
class OutgoingEmail:
    from_address: str
    to: str
    subject: str
    html: str
    text: Optional[str] = None


@dataclass
class SendResult:
    message_id: str
    preview_url: Optional[str] = None


def _message_id_for(from_address: str) -> str:
    _, address = parseaddr(from_address)
    domain = address.split("@")[-1] if "@" in address else "localhost"
    return make_msgid(domain=domain)


def build_mime_message(email: OutgoingEmail, message_id: str) -> MIMEMultipart:
    """Build a multipart/alternative message (plain text first, HTML preferred)"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = email.subject
    msg["From"] = email.from_address
    msg["To"] = email.to
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = message_id

    if email.text:
        msg.attach(MIMEText(email.text, "plain", "utf-8"))
    msg.attach(MIMEText(email.html, "html", "utf-8"))
    return msg


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(StringIO(mjml_content))
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise StorefrontError(f"Failed to compile MJML template: {str(e)}") from e

    errors = getattr(result, "errors", None)
    if errors is None and isinstance(result, dict):
        errors = result.get("errors")
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")

    html = getattr(result, "html", None)
    if html is None and isinstance(result, dict):
        html = result.get("html")
    if html is None:
        html = str(result)
    return html


# ============================================
# Transports
# ============================================


class SMTPTransport:
    """Send through an SMTP server (custom host or the Gmail relay)"""

    def __init__(self, config: Union[SMTPConfig, HostedProviderConfig], timeout: float = 30):
        self.name = config.name
        self.host = config.host
        self.port = config.port
        self.user = config.user
        self._password = config.password
        self.timeout = timeout
        # Port 465 is always implicit TLS; for other ports an explicit setting decides
        self.secure = getattr(config, "secure", True) or self.port == 465

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.secure:
            server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

        try:
            if not self.secure:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls(context=context)
                    server.ehlo()
            server.login(self.user, self._password)
        except BaseException:
            server.close()
            raise
        return server

    def verify(self) -> None:
        """Connect and authenticate without sending anything"""
        try:
            with self._connect():
                pass
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP auth error for {self.host}: {e}")
            raise TransportError(
                "Authentication failed. Check username and password.", service=self.name
            ) from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP verification failed for {self.host}:{self.port}: {e}")
            raise TransportError(
                f"Could not connect to {self.host}:{self.port}: {str(e)}", service=self.name
            ) from e

    def send(self, email: OutgoingEmail) -> SendResult:
        message_id = _message_id_for(email.from_address)
        msg = build_mime_message(email, message_id)
        sender = parseaddr(email.from_address)[1] or email.from_address

        try:
            with self._connect() as server:
                server.sendmail(sender, [email.to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ SMTP send via {self.host} failed: {e}")
            raise TransportError(f"SMTP send failed: {str(e)}", service=self.name) from e

        logger.info(f"✅ SMTP email sent successfully via {self.host}")
        return SendResult(message_id=message_id)


class ResendTransport:
    """Send through the Resend HTTP API"""

    def __init__(self, config: ResendConfig):
        self.name = config.name
        self._api_key = config.api_key

    def verify(self) -> None:
        if not self._api_key:
            raise TransportError("RESEND_API_KEY is empty", service=self.name)

    def send(self, email: OutgoingEmail) -> SendResult:
        resend.api_key = self._api_key
        params = {
            "from": email.from_address,
            "to": [email.to],
            "subject": email.subject,
            "html": email.html,
        }
        if email.text:
            params["text"] = email.text

        try:
            response = resend.Emails.send(params)
        except Exception as e:
            logger.error(f"❌ Resend send error to {email.to}: {e}")
            raise TransportError(f"Failed to send email: {str(e)}", service=self.name) from e

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info(f"✅ Email sent successfully via Resend: {message_id}")
        return SendResult(message_id=message_id or "")


@dataclass
class CapturedEmail:
    preview_id: str
    message_id: str
    email: OutgoingEmail
    captured_at: datetime


class TestSinkTransport:
    """
    Accept every message without delivering it.

    The most recent messages are kept in memory so they can be previewed at
    /email-preview/<id> while developing without mail credentials.
    """

    __test__ = False

    name = "test"

    def __init__(self, base_url: str, max_messages: int = SINK_OUTBOX_SIZE):
        self.base_url = base_url.rstrip("/")
        self.max_messages = max_messages
        self._outbox: "OrderedDict[str, CapturedEmail]" = OrderedDict()

    def verify(self) -> None:
        return None

    def send(self, email: OutgoingEmail) -> SendResult:
        preview_id = uuid.uuid4().hex
        message_id = _message_id_for(email.from_address)
        self._outbox[preview_id] = CapturedEmail(
            preview_id=preview_id,
            message_id=message_id,
            email=email,
            captured_at=datetime.now(timezone.utc),
        )
        while len(self._outbox) > self.max_messages:
            self._outbox.popitem(last=False)

        preview_url = f"{self.base_url}/email-preview/{preview_id}"
        logger.info(f"📭 Test sink captured email to {email.to} (not delivered): {preview_url}")
        return SendResult(message_id=message_id, preview_url=preview_url)

    def get(self, preview_id: str) -> Optional[CapturedEmail]:
        return self._outbox.get(preview_id)

    @property
    def messages(self) -> list[CapturedEmail]:
        return list(self._outbox.values())


Transport = Union[SMTPTransport, ResendTransport, TestSinkTransport]


class EmailService:
    """Selects a transport per send and runs blocking I/O off the event loop with a timeout"""

    def __init__(self, settings: Settings, sink: Optional[TestSinkTransport] = None):
        self.settings = settings
        self.sink = sink or TestSinkTransport(base_url=settings.base_url)

    def get_transport(self) -> Transport:
        config = select_transport_config(self.settings)
        try:
            if isinstance(config, (SMTPConfig, HostedProviderConfig)):
                return SMTPTransport(config, timeout=self.settings.email_timeout_seconds)
            if isinstance(config, ResendConfig):
                return ResendTransport(config)
            return self.sink
        except Exception as e:
            logger.error(f"❌ Failed to build {config.name} email transport: {e}")
            raise TransportError(
                f"Invalid {config.name} email configuration: {str(e)}", service=config.name
            ) from e

    async def _run(self, transport: Transport, func: Callable, *args):
        if transport is self.sink:
            return func(*args)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args), timeout=self.settings.email_timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Email service timed out after {self.settings.email_timeout_seconds:g}s",
                service=transport.name,
            ) from e

    async def verify(self, transport: Optional[Transport] = None) -> Transport:
        transport = transport or self.get_transport()
        logger.info(f"🔌 Verifying {transport.name} email transport")
        await self._run(transport, transport.verify)
        return transport

    async def send_email(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
        from_address: Optional[str] = None,
        transport: Optional[Transport] = None,
    ) -> SendResult:
        """
        Send an email through the selected transport

        Args:
            to: Recipient email
            subject: Email subject line
            html: Compiled HTML body
            text: Optional plain-text alternative
            from_address: Optional override of the configured sender
            transport: Optional transport already chosen by the caller

        Returns:
            SendResult with the delivery identifier (and a preview URL for the test sink)
        """
        transport = transport or self.get_transport()
        email = OutgoingEmail(
            from_address=from_address or self.settings.from_address,
            to=to,
            subject=subject,
            html=html,
            text=text,
        )

        logger.info(f"📧 Sending email via {transport.name} to: {to}")
        return await self._run(transport, transport.send, email)

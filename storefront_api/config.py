import os
from collections.abc import Mapping
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError

TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_PORT = 4242
DEFAULT_SMTP_PORT = 587
DEFAULT_FROM_ADDRESS = "orders@localhost"


class Settings(BaseModel):
    """Process-wide configuration, built once at startup and passed to every component"""

    stripe_secret_key: str
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"  # noqa: S104 - container default
    base_url: str = f"http://localhost:{DEFAULT_PORT}"
    environment: str = "development"

    # Custom SMTP
    smtp_host: Optional[str] = None
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_secure: bool = False
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None

    # Hosted provider (Gmail relay)
    gmail_user: Optional[str] = None
    gmail_pass: Optional[str] = None

    # Resend API
    resend_api_key: Optional[str] = None

    email_from: Optional[str] = None
    test_email_to: Optional[str] = None

    brand_name: str = "Storefront"
    logo_path: str = "/images/logo.svg"
    static_dir: str = "public"
    allowed_origins: list[str] = ["*"]

    email_timeout_seconds: float = 30.0
    stripe_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    model_config = ConfigDict(frozen=True)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def from_address(self) -> str:
        """Sender address: explicit override, then the account we authenticate as"""
        return self.email_from or self.smtp_user or self.gmail_user or DEFAULT_FROM_ADDRESS

    @property
    def logo_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.logo_path.lstrip('/')}"


def _get(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Read a variable, treating blank values as unset"""
    value = environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _get_bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    value = _get(environ, name)
    if value is None:
        return default
    return value.lower() in TRUTHY


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = _get(environ, name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _get_float(environ: Mapping[str, str], name: str, default: float) -> float:
    value = _get(environ, name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


def payment_variables_present(environ: Mapping[str, str]) -> list[str]:
    """Names (never values) of payment-related variables found in the environment"""
    return sorted(name for name in environ if "STRIPE" in name.upper())


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    When no mapping is given, a .env file in the working directory is loaded first
    (variables already set in the process environment take precedence).

    Raises:
        ConfigurationError: STRIPE_SECRET_KEY is missing or a numeric setting is malformed
    """
    if environ is None:
        load_dotenv(override=False)
        environ = os.environ

    stripe_secret_key = _get(environ, "STRIPE_SECRET_KEY")
    if not stripe_secret_key:
        present = payment_variables_present(environ)
        raise ConfigurationError(
            "STRIPE_SECRET_KEY not found in environment variables. "
            f"Payment-related variables present: {', '.join(present) if present else 'none'}"
        )

    port = _get_int(environ, "PORT", DEFAULT_PORT)
    origins = _get(environ, "ALLOWED_ORIGINS") or "*"

    return Settings(
        stripe_secret_key=stripe_secret_key,
        port=port,
        host=_get(environ, "HOST") or "0.0.0.0",  # noqa: S104
        base_url=_get(environ, "BASE_URL") or f"http://localhost:{port}",
        environment=_get(environ, "ENVIRONMENT") or _get(environ, "NODE_ENV") or "development",
        smtp_host=_get(environ, "SMTP_HOST"),
        smtp_port=_get_int(environ, "SMTP_PORT", DEFAULT_SMTP_PORT),
        smtp_secure=_get_bool(environ, "SMTP_SECURE"),
        smtp_user=_get(environ, "SMTP_USER"),
        smtp_pass=_get(environ, "SMTP_PASS"),
        gmail_user=_get(environ, "GMAIL_USER"),
        gmail_pass=_get(environ, "GMAIL_PASS"),
        resend_api_key=_get(environ, "RESEND_API_KEY"),
        email_from=_get(environ, "EMAIL_FROM"),
        test_email_to=_get(environ, "TEST_EMAIL_TO"),
        brand_name=_get(environ, "BRAND_NAME") or "Storefront",
        logo_path=_get(environ, "LOGO_PATH") or "/images/logo.svg",
        static_dir=_get(environ, "STATIC_DIR") or "public",
        allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
        email_timeout_seconds=_get_float(environ, "EMAIL_TIMEOUT_SECONDS", 30.0),
        stripe_timeout_seconds=_get_float(environ, "STRIPE_TIMEOUT_SECONDS", 30.0),
        log_level=(_get(environ, "LOG_LEVEL") or "INFO").upper(),
    )

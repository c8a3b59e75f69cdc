import pydantic
import pytest

from storefront_api import main, schemas
from storefront_api.config import Settings, load_settings
from storefront_api.errors import ConfigurationError


def test_missing_stripe_key_lists_present_names_without_values():
    env = {"STRIPE_PUBLISHABLE_KEY": "pk_live_supersecret", "PORT": "5000"}

    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(env)

    message = str(exc_info.value)
    assert "STRIPE_SECRET_KEY" in message
    assert "STRIPE_PUBLISHABLE_KEY" in message
    assert "pk_live_supersecret" not in message


def test_missing_stripe_key_with_no_payment_variables():
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings({})

    assert "none" in str(exc_info.value)


def test_blank_stripe_key_counts_as_missing():
    with pytest.raises(ConfigurationError):
        load_settings({"STRIPE_SECRET_KEY": "   "})


def test_defaults():
    settings = load_settings({"STRIPE_SECRET_KEY": "sk_test_1"})

    assert settings.port == 4242
    assert settings.base_url == "http://localhost:4242"
    assert settings.environment == "development"
    assert settings.smtp_port == 587
    assert settings.smtp_secure is False
    assert settings.allowed_origins == ["*"]
    assert settings.from_address == "orders@localhost"
    assert settings.logo_url == "http://localhost:4242/images/logo.svg"
    assert not settings.is_production


def test_settings_are_frozen():
    settings = load_settings({"STRIPE_SECRET_KEY": "sk_test_1"})

    with pytest.raises(pydantic.ValidationError):
        settings.port = 5000


def test_models_are_configured_with_config_dict():
    assert Settings.model_config["frozen"] is True
    assert schemas.ServiceSelection.model_config["populate_by_name"] is True
    assert schemas.SendInvoiceEmailRequest.model_config["populate_by_name"] is True

    assert schemas.ServiceSelection(category_name="Branding").display_category == "Branding"
    assert schemas.ServiceSelection(categoryName="Branding").display_category == "Branding"


def test_values_are_read_from_environment():
    settings = load_settings(
        {
            "STRIPE_SECRET_KEY": "sk_test_1",
            "PORT": "8080",
            "BASE_URL": "https://shop.example.com/",
            "NODE_ENV": "production",
            "SMTP_HOST": "mail.example.com",
            "SMTP_PORT": "465",
            "SMTP_SECURE": "TRUE",
            "SMTP_USER": "orders@example.com",
            "SMTP_PASS": "hunter2",
            "ALLOWED_ORIGINS": "https://shop.example.com, https://admin.example.com",
            "LOGO_PATH": "static/logo.png",
        }
    )

    assert settings.port == 8080
    assert settings.is_production
    assert settings.smtp_secure is True
    assert settings.smtp_port == 465
    assert settings.from_address == "orders@example.com"
    assert settings.logo_url == "https://shop.example.com/static/logo.png"
    assert settings.allowed_origins == ["https://shop.example.com", "https://admin.example.com"]


def test_environment_takes_precedence_over_node_env():
    settings = load_settings(
        {"STRIPE_SECRET_KEY": "sk", "ENVIRONMENT": "staging", "NODE_ENV": "production"}
    )
    assert settings.environment == "staging"


def test_email_from_overrides_account_address():
    settings = load_settings(
        {"STRIPE_SECRET_KEY": "sk", "GMAIL_USER": "shop@gmail.com", "EMAIL_FROM": "Shop <hi@shop.com>"}
    )
    assert settings.from_address == "Shop <hi@shop.com>"


def test_malformed_port_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        load_settings({"STRIPE_SECRET_KEY": "sk", "SMTP_PORT": "smtp"})


def test_run_exits_non_zero_without_stripe_key(monkeypatch):
    def fail():
        raise ConfigurationError("STRIPE_SECRET_KEY not found in environment variables.")

    monkeypatch.setattr(main, "load_settings", fail)

    with pytest.raises(SystemExit) as exc_info:
        main.run()

    assert exc_info.value.code == 1

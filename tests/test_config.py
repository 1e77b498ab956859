"""Tests for environment-driven settings."""

import pytest

from config.settings import BusinessProfile, MailSettings, TransportSettings

SMTP_VARIABLES = (
    "CONTACT_SMTP_HOST", "CONTACT_SMTP_PORT", "CONTACT_SMTP_SECURE", "CONTACT_SMTP_USER", "CONTACT_SMTP_PASS",
    "SMTP_HOST", "SMTP_PORT", "SMTP_SECURE", "SMTP_USER", "SMTP_PASS", "SMTP_TIMEOUT",
    "MAIL_FROM_ADDRESS", "MAIL_FROM_NAME", "MAIL_MESSAGE_DOMAIN",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in SMTP_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_mail_settings_from_env(clean_env):
    clean_env.setenv("CONTACT_SMTP_HOST", "mail.nb-studio.net")
    clean_env.setenv("CONTACT_SMTP_PORT", "465")
    clean_env.setenv("CONTACT_SMTP_SECURE", "true")
    clean_env.setenv("CONTACT_SMTP_USER", "contact@nb-studio.net")
    clean_env.setenv("CONTACT_SMTP_PASS", "secret")
    clean_env.setenv("SMTP_HOST", "smtp.backup.net")
    clean_env.setenv("SMTP_USER", "noreply@nb-studio.net")
    clean_env.setenv("SMTP_PASS", "secret2")
    clean_env.setenv("SMTP_TIMEOUT", "20")

    settings = MailSettings.from_env()

    assert settings.primary.host == "mail.nb-studio.net"
    assert settings.primary.port == 465
    assert settings.primary.secure is True
    assert settings.secondary.port == 25
    assert settings.secondary.secure is False
    assert settings.primary.timeout == 20.0
    assert settings.from_address == "contact@nb-studio.net"
    assert settings.validate() == []


def test_missing_transport_reported(clean_env):
    clean_env.setenv("SMTP_HOST", "smtp.backup.net")
    clean_env.setenv("SMTP_PORT", "not-a-port")

    settings = MailSettings.from_env()
    problems = settings.validate()

    assert settings.secondary.port == 25
    assert "primary transport not configured, missing: host, username, password" in problems
    assert "secondary transport not configured, missing: username, password" in problems
    assert "sender address missing (MAIL_FROM_ADDRESS)" in problems


def test_password_masked():
    settings = TransportSettings(name="primary", host="h", username="u", password="hunter2")

    assert settings.masked()["password"] == "******"
    assert "hunter2" not in repr(settings)


def test_business_profile_from_env(monkeypatch):
    monkeypatch.setenv("BANK_IBAN", "HU42 1177 3016 1111 1018 0000 0000")
    monkeypatch.setenv("SHARE_BASE_URL", "https://share.example.com/")
    monkeypatch.delenv("INVOICE_LOGO_PATH", raising=False)

    profile = BusinessProfile.from_env()

    assert profile.iban == "HU42 1177 3016 1111 1018 0000 0000"
    assert profile.share_base_url == "https://share.example.com"
    assert profile.logo_path is None
    assert profile.footer_line == f"{profile.name} | {profile.website}"

# config/settings.py
"""
Configuration for the invoice document and notification services

Mail transports and the issuer's business profile are read from the process
environment once at startup and treated as read-only afterwards.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric value for {name}: {value!r}")
        return default


@dataclass(frozen=True)
class TransportSettings:
    """Connection settings of one SMTP transport"""
    name: str
    host: Optional[str] = None
    port: int = 25
    secure: bool = False
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    timeout: float = 15.0

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.host:
            missing.append('host')
        if not self.username:
            missing.append('username')
        if not self.password:
            missing.append('password')
        return missing

    def masked(self) -> dict:
        """Loggable view of the settings, password hidden"""
        return {
            'name': self.name,
            'host': self.host,
            'port': self.port,
            'secure': self.secure,
            'username': self.username,
            'password': '******' if self.password else None,
            'timeout': self.timeout,
        }


@dataclass(frozen=True)
class MailSettings:
    """
    Primary and secondary transport configuration plus sender identity

    Built once by the application factory and injected into the delivery
    pipeline; never looked up globally.
    """
    primary: TransportSettings
    secondary: TransportSettings
    from_name: str = 'Norbert Bartus'
    from_address: Optional[str] = None
    message_domain: str = 'nb-studio.net'

    @classmethod
    def from_env(cls) -> 'MailSettings':
        timeout = float(_env_int('SMTP_TIMEOUT', 15))

        primary = TransportSettings(
            name='primary',
            host=os.environ.get('CONTACT_SMTP_HOST'),
            port=_env_int('CONTACT_SMTP_PORT', 25),
            secure=_env_bool('CONTACT_SMTP_SECURE'),
            username=os.environ.get('CONTACT_SMTP_USER'),
            password=os.environ.get('CONTACT_SMTP_PASS'),
            timeout=timeout,
        )
        secondary = TransportSettings(
            name='secondary',
            host=os.environ.get('SMTP_HOST'),
            port=_env_int('SMTP_PORT', 25),
            secure=_env_bool('SMTP_SECURE'),
            username=os.environ.get('SMTP_USER'),
            password=os.environ.get('SMTP_PASS'),
            timeout=timeout,
        )

        from_address = (os.environ.get('MAIL_FROM_ADDRESS')
                        or primary.username
                        or secondary.username)

        return cls(
            primary=primary,
            secondary=secondary,
            from_name=os.environ.get('MAIL_FROM_NAME', 'Norbert Bartus'),
            from_address=from_address,
            message_domain=os.environ.get('MAIL_MESSAGE_DOMAIN', 'nb-studio.net'),
        )

    def validate(self) -> List[str]:
        """Return configuration problems; an empty list means fully configured"""
        problems = []
        for transport in (self.primary, self.secondary):
            missing = transport.missing_fields()
            if missing:
                problems.append(
                    f"{transport.name} transport not configured, missing: {', '.join(missing)}"
                )
        if not self.from_address:
            problems.append('sender address missing (MAIL_FROM_ADDRESS)')
        return problems


@dataclass(frozen=True)
class BusinessProfile:
    """Issuer identity and bank details printed on invoices and reminders"""
    name: str = 'NB Studio - Bartus Norbert'
    tax_number: str = '12345678-1-42'
    address: str = '1234 Budapest, Példa utca 1.'
    email: str = 'info@nb-studio.net'
    phone: str = '+36 30 123 4567'
    website: str = 'www.nb-studio.net'
    account_holder: str = 'Bartus Norbert'
    iban: str = 'DE47 6634 0014 0743 4638 00'
    swift: str = 'COBADEFFXXX'
    bank_name: str = 'Commerzbank AG'
    share_base_url: str = 'https://project.nb-studio.net'
    logo_path: Optional[str] = None
    font_path: Optional[str] = None
    font_bold_path: Optional[str] = None

    @property
    def footer_line(self) -> str:
        return f"{self.name} | {self.website}"

    @classmethod
    def from_env(cls) -> 'BusinessProfile':
        defaults = cls()
        return cls(
            name=os.environ.get('ISSUER_NAME', defaults.name),
            tax_number=os.environ.get('ISSUER_TAX_NUMBER', defaults.tax_number),
            address=os.environ.get('ISSUER_ADDRESS', defaults.address),
            email=os.environ.get('ISSUER_EMAIL', defaults.email),
            phone=os.environ.get('ISSUER_PHONE', defaults.phone),
            website=os.environ.get('ISSUER_WEBSITE', defaults.website),
            account_holder=os.environ.get('BANK_ACCOUNT_HOLDER', defaults.account_holder),
            iban=os.environ.get('BANK_IBAN', defaults.iban),
            swift=os.environ.get('BANK_SWIFT', defaults.swift),
            bank_name=os.environ.get('BANK_NAME', defaults.bank_name),
            share_base_url=os.environ.get('SHARE_BASE_URL', defaults.share_base_url).rstrip('/'),
            logo_path=os.environ.get('INVOICE_LOGO_PATH') or None,
            font_path=os.environ.get('INVOICE_FONT_PATH') or None,
            font_bold_path=os.environ.get('INVOICE_FONT_BOLD_PATH') or None,
        )


class AppConfig:
    """Flask configuration settings"""

    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')

    # Locale of the rendered PDF documents, independent of the viewer
    DOCUMENT_LOCALE = os.environ.get('DOCUMENT_LOCALE', 'hu')

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    NOTIFICATION_RATE_LIMIT = os.environ.get('NOTIFICATION_RATE_LIMIT', '30 per minute')

    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2MB JSON payloads

    # The SPA calling the API
    CORS_ORIGINS = [origin.strip() for origin in
                    os.environ.get('CORS_ORIGINS', 'https://project.nb-studio.net').split(',')
                    if origin.strip()]

    # Running behind nginx
    PROXY_FIX = _env_bool('PROXY_FIX')


class TestingConfig(AppConfig):
    __test__ = False

    TESTING = True
    RATELIMIT_ENABLED = False
    LOG_LEVEL = 'DEBUG'

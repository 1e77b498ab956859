"""Shared fixtures: sample records, stub transports and a test application."""

from __future__ import annotations

from typing import List, Optional

import pytest

from app import create_app
from config.settings import BusinessProfile, MailSettings, TestingConfig, TransportSettings
from core.models import Invoice, Project
from services.delivery import (
    DeliveryPipeline,
    MailTransport,
    TransportError,
    TransportNotConfiguredError,
)


class RecordingTransport(MailTransport):
    """Transport double that records every message handed to it."""

    def __init__(self, name: str, error: Optional[str] = None, configured: bool = True):
        self.name = name
        self.error = error
        self.configured = configured
        self.sent: List = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def send(self, msg):
        if not self.configured:
            raise TransportNotConfiguredError(f"{self.name} transport is not configured (missing: host)")
        self.sent.append(msg)
        if self.error:
            raise TransportError(self.error)
        return msg["Message-ID"]


def invoice_payload(**overrides) -> dict:
    payload = {
        "number": "INV-2024-001",
        "date": "2024-02-15",
        "dueDate": "2024-03-01",
        "status": "issued",
        "items": [
            {"description": "Design", "quantity": 1, "unitPrice": 500, "total": 500},
        ],
        "totalAmount": 500,
    }
    payload.update(overrides)
    return payload


def project_payload(**overrides) -> dict:
    payload = {
        "name": "Webshop redesign",
        "description": "New storefront",
        "client": {
            "name": "Kiss Anna",
            "email": "client@example.com",
            "companyName": "Példa Kft.",
            "taxNumber": "87654321-2-13",
            "address": {
                "postalCode": "1111",
                "city": "Budapest",
                "street": "Fő utca 2.",
                "country": "Magyarország",
            },
        },
        "sharing": {"token": "abc123", "expiresAt": "2024-12-31"},
    }
    payload.update(overrides)
    return payload


def make_items(count: int) -> list:
    return [
        {"description": f"Task {index + 1}", "quantity": 2, "unitPrice": 50, "total": 100}
        for index in range(count)
    ]


@pytest.fixture
def invoice() -> Invoice:
    return Invoice.from_dict(invoice_payload())


@pytest.fixture
def project() -> Project:
    return Project.from_dict(project_payload())


@pytest.fixture
def profile() -> BusinessProfile:
    return BusinessProfile()


@pytest.fixture
def mail_settings() -> MailSettings:
    return MailSettings(
        primary=TransportSettings(
            name="primary", host="smtp.primary.test", port=465, secure=True,
            username="contact@nb-studio.net", password="secret",
        ),
        secondary=TransportSettings(
            name="secondary", host="smtp.secondary.test", port=587,
            username="noreply@nb-studio.net", password="secret",
        ),
        from_name="Norbert Bartus",
        from_address="contact@nb-studio.net",
    )


@pytest.fixture
def primary() -> RecordingTransport:
    return RecordingTransport("primary")


@pytest.fixture
def secondary() -> RecordingTransport:
    return RecordingTransport("secondary")


@pytest.fixture
def pipeline(primary, secondary) -> DeliveryPipeline:
    return DeliveryPipeline(primary, secondary)


@pytest.fixture
def app(mail_settings, pipeline, profile):
    return create_app(
        config_class=TestingConfig,
        mail_settings=mail_settings,
        pipeline=pipeline,
        profile=profile,
    )


@pytest.fixture
def client(app):
    return app.test_client()

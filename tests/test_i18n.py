"""Tests for language resolution and locale formatting."""

from datetime import date
from decimal import Decimal

import pytest

from core.i18n import (
    DOCUMENT_LABELS,
    EMAIL_LABELS,
    format_amount,
    format_date,
    format_plain_amount,
    format_quantity,
    format_short_date,
    resolve_language,
    status_label,
)
from core.models import InvoiceStatus


@pytest.mark.parametrize("code, expected", [
    ("hu", "hu"),
    ("EN", "en"),
    ("de-AT", "de"),
    ("de_AT", "de"),
    ("en-US", "en"),
    ("fr", "hu"),
    ("english", "hu"),
    ("deutsch", "hu"),
    ("hungarian", "hu"),
    ("dex", "hu"),
    ("", "hu"),
    (None, "hu"),
])
def test_resolve_language(code, expected):
    assert resolve_language(code) == expected


@pytest.mark.parametrize("language, expected", [
    ("hu", "2024. március 1."),
    ("en", "March 1, 2024"),
    ("de", "1. März 2024"),
])
def test_format_date(language, expected):
    assert format_date(date(2024, 3, 1), language) == expected


def test_format_date_missing():
    assert format_date(None, "en") == "N/A"
    assert format_short_date(None, "en") == "-"


def test_format_short_date():
    assert format_short_date(date(2024, 3, 1), "hu") == "2024. 03. 01."
    assert format_short_date(date(2024, 3, 1), "en") == "03/01/2024"
    assert format_short_date(date(2024, 3, 1), "de") == "01.03.2024"


@pytest.mark.parametrize("language, expected", [
    ("hu", "1 500,00 EUR"),
    ("en", "1,500.00 EUR"),
    ("de", "1.500,00 EUR"),
])
def test_format_amount(language, expected):
    assert format_amount(Decimal("1500"), "EUR", language) == expected


def test_format_amount_rounds_half_up():
    assert format_amount(Decimal("0.125"), "EUR", "en") == "0.13 EUR"
    assert format_amount(Decimal("-1234.5"), "HUF", "hu") == "-1 234,50 HUF"


def test_format_plain_amount_keeps_stored_value():
    assert format_plain_amount(Decimal("500"), "EUR") == "500 EUR"
    assert format_plain_amount(None, "") == "0 EUR"


def test_format_quantity():
    assert format_quantity(Decimal("2")) == "2"
    assert format_quantity(Decimal("2.50")) == "2.5"


def test_status_labels():
    assert status_label(InvoiceStatus.ISSUED, "hu") == "kiállítva"
    assert status_label(InvoiceStatus.PAID, "en") == "paid"
    assert status_label(InvoiceStatus.OVERDUE, "de") == "überfällig"
    assert status_label(InvoiceStatus.CANCELED, "xx") == "törölve"


def test_label_tables_cover_every_language():
    for tables in (DOCUMENT_LABELS, EMAIL_LABELS):
        keys = set(tables["hu"])
        assert set(tables["en"]) == keys
        assert set(tables["de"]) == keys

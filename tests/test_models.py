"""Tests for parsing invoice and project payloads."""

from datetime import date
from decimal import Decimal

import pytest

from core.models import Invoice, InvoiceStatus, Project, ValidationError
from tests.conftest import invoice_payload, project_payload


def test_invoice_from_payload():
    invoice = Invoice.from_dict(invoice_payload(paidAmount="200", currency="HUF"))

    assert invoice.number == "INV-2024-001"
    assert invoice.date == date(2024, 2, 15)
    assert invoice.due_date == date(2024, 3, 1)
    assert invoice.status is InvoiceStatus.ISSUED
    assert invoice.total_amount == Decimal("500")
    assert invoice.currency == "HUF"
    assert len(invoice.items) == 1
    assert invoice.items[0].unit_price == Decimal("500")
    assert invoice.is_partially_paid
    assert invoice.remaining_amount == Decimal("300")


def test_invoice_accepts_javascript_timestamps():
    invoice = Invoice.from_dict(invoice_payload(dueDate="2024-03-01T10:00:00.000Z", date=None))

    assert invoice.due_date == date(2024, 3, 1)
    # Issue date defaults to the due date when the store has none
    assert invoice.date == invoice.due_date


def test_invoice_item_total_computed_when_missing():
    invoice = Invoice.from_dict(invoice_payload(items=[{"description": "Hosting", "quantity": "3", "unitPrice": "12.5"}]))

    assert invoice.items[0].total == Decimal("37.5")


def test_invoice_reports_every_problem():
    with pytest.raises(ValidationError) as excinfo:
        Invoice.from_dict({
            "status": "lost",
            "items": [{"description": "x", "quantity": "many"}],
        })

    problems = excinfo.value.problems
    assert "invoice.number: required" in problems
    assert "invoice.dueDate: required" in problems
    assert "invoice.totalAmount: required" in problems
    assert any(p.startswith("invoice.status") for p in problems)
    assert any(p.startswith("items[0].quantity") for p in problems)
    assert "items[0].unitPrice: required" in problems


def test_invoice_rejects_negative_quantity():
    with pytest.raises(ValidationError) as excinfo:
        Invoice.from_dict(invoice_payload(items=[{"quantity": -1, "unitPrice": 5}]))

    assert "items[0].quantity: must not be negative" in excinfo.value.problems


def test_invoice_rejects_non_object():
    with pytest.raises(ValidationError):
        Invoice.from_dict(None)


@pytest.mark.parametrize("raw, expected", [
    ("paid", InvoiceStatus.PAID),
    ("Fizetett", InvoiceStatus.PAID),
    ("pending", InvoiceStatus.ISSUED),
    ("cancelled", InvoiceStatus.CANCELED),
    ("überfällig", InvoiceStatus.OVERDUE),
])
def test_status_aliases(raw, expected):
    assert InvoiceStatus.parse(raw) is expected


def test_settled_statuses():
    assert InvoiceStatus.PAID.is_settled
    assert InvoiceStatus.CANCELED.is_settled
    assert not InvoiceStatus.ISSUED.is_settled
    assert not InvoiceStatus.OVERDUE.is_settled


def test_has_notes_ignores_whitespace():
    assert not Invoice.from_dict(invoice_payload(notes="   ")).has_notes
    assert Invoice.from_dict(invoice_payload(notes="Net 15")).has_notes


def test_project_from_payload():
    project = Project.from_dict(project_payload(financial={"currency": "USD"}, language="en"))

    assert project.client.name == "Kiss Anna"
    assert project.client.company_name == "Példa Kft."
    assert project.client.address.location_line() == "1111 Budapest, Fő utca 2."
    assert project.sharing.token == "abc123"
    assert project.sharing.expires_at == date(2024, 12, 31)
    assert project.language == "en"
    assert project.display_currency() == "USD"


def test_project_currency_falls_back_to_invoice(invoice):
    project = Project.from_dict(project_payload())

    assert project.display_currency(invoice) == "EUR"


def test_project_requires_name_and_client_name():
    with pytest.raises(ValidationError) as excinfo:
        Project.from_dict({"client": {"email": "a@b.hu"}})

    assert excinfo.value.problems == ["project.name: required", "project.client.name: required"]


def test_project_without_client():
    with pytest.raises(ValidationError) as excinfo:
        Project.from_dict({"name": "Site"})

    assert excinfo.value.problems == ["project.client: required"]

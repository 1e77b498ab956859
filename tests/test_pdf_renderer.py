"""Tests for the invoice PDF layout."""

import io
from dataclasses import replace

import pytest
from reportlab.pdfbase import pdfmetrics

from config.settings import BusinessProfile
from core.models import Invoice
from core.pdf_renderer import InvoicePDFRenderer, RenderError, StyleConfig, invoice_filename
from tests.conftest import invoice_payload, make_items


class BrokenStream(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise OSError("disk full")


@pytest.fixture
def renderer(profile):
    return InvoicePDFRenderer(profile)


def render(renderer, invoice, project):
    buffer = io.BytesIO()
    trace = renderer.render(invoice, project, buffer)
    return buffer.getvalue(), trace


def test_single_item_invoice(renderer, invoice, project):
    data, trace = render(renderer, invoice, project)

    assert data.startswith(b"%PDF")
    assert trace.page_count == 1
    assert trace.count("item_row") == 1
    assert trace.badge_label == "KIÁLLÍTVA"
    assert trace.pages_with("payment") == [1]
    assert "IBAN: DE47 6634 0014 0743 4638 00" in trace.texts()
    assert "Közlemény: INV-2024-001" in trace.texts()
    assert trace.watermark_page is None


def test_every_page_has_header_and_footer(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(items=make_items(60), status="paid", totalAmount=6000))

    _, trace = render(renderer, invoice, project)

    assert trace.page_count > 1
    assert trace.pages_with("header") == list(range(1, trace.page_count + 1))
    assert trace.pages_with("footer") == list(range(1, trace.page_count + 1))
    assert "Oldal: 1" in trace.pages[0].texts
    assert f"Oldal: {trace.page_count}" in trace.pages[-1].texts


def test_table_header_repeats_on_pages_with_rows(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(items=make_items(60), status="paid", totalAmount=6000))

    _, trace = render(renderer, invoice, project)

    rows = trace.rows_per_page()
    assert sum(rows.values()) == 60
    pages_with_rows = [number for number, count in rows.items() if count]
    assert len(pages_with_rows) > 1
    assert trace.table_header_pages == pages_with_rows
    for page in trace.pages:
        assert page.count("table_header") <= 1


def test_rows_keep_their_order_across_pages(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(items=make_items(45), status="paid", totalAmount=4500))

    _, trace = render(renderer, invoice, project)

    descriptions = [text for text in trace.texts() if text.startswith("Task ")]
    assert descriptions == [f"Task {index + 1}" for index in range(45)]


def test_row_shading_alternates_across_page_breaks(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(items=make_items(45), status="paid", totalAmount=4500))

    _, trace = render(renderer, invoice, project)

    row_pages = [page for page in trace.pages if page.rows]
    assert len(row_pages) > 1
    assert [index for page in row_pages for index in page.rows] == list(range(45))
    assert row_pages[1].rows[0] == row_pages[0].rows[-1] + 1
    for page in row_pages:
        assert page.shaded_rows == [index for index in page.rows if index % 2 == 1]


def test_pages_break_only_when_the_next_block_does_not_fit(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(items=make_items(60), totalAmount=6000))

    _, trace = render(renderer, invoice, project)

    assert trace.page_count > 1
    for page in trace.pages[:-1]:
        assert page.used_height + page.overflow_height > trace.printable_height
    assert trace.pages[-1].overflow_height is None

    layout = renderer.layout
    full_page_rows = int((trace.printable_height - layout.table_header_height) // layout.row_height)
    assert trace.rows_per_page()[2] == full_page_rows


def test_paid_watermark_drawn_once_on_totals_page(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(
        items=make_items(45), status="paid", paidDate="2024-02-20", totalAmount=4500))

    _, trace = render(renderer, invoice, project)

    assert trace.count("watermark") == 1
    assert trace.watermark_page == trace.totals_page
    assert trace.pages_with("watermark") == [trace.totals_page]
    assert trace.badge_label == "FIZETVE"
    assert "2024. 02. 20." in trace.texts()


@pytest.mark.parametrize("status", ["paid", "canceled"])
def test_settled_invoices_have_no_payment_block(renderer, project, status):
    invoice = Invoice.from_dict(invoice_payload(status=status))

    _, trace = render(renderer, invoice, project)

    assert trace.count("payment") == 0
    assert not any(text.startswith("IBAN") for text in trace.texts())


def test_canceled_invoice_has_no_watermark(renderer, project):
    _, trace = render(renderer, Invoice.from_dict(invoice_payload(status="canceled")), project)

    assert trace.count("watermark") == 0
    assert trace.badge_label == "TÖRÖLVE"


@pytest.mark.parametrize("status, color", [
    ("issued", "primary"),
    ("paid", "success"),
    ("overdue", "warning"),
    ("canceled", "neutral"),
])
def test_status_badge_color(renderer, project, status, color):
    _, trace = render(renderer, Invoice.from_dict(invoice_payload(status=status)), project)

    assert trace.badge_color.hexval() == getattr(StyleConfig(), color).hexval()


@pytest.mark.parametrize("status, color", [
    ("overdue", "warning"),
    ("issued", "text"),
])
def test_due_date_tone(renderer, project, status, color):
    _, trace = render(renderer, Invoice.from_dict(invoice_payload(status=status)), project)

    assert trace.due_date_color.hexval() == getattr(StyleConfig(), color).hexval()


def test_partial_payment_lines(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(paidAmount=200))

    _, trace = render(renderer, invoice, project)

    texts = trace.texts()
    assert "200 EUR" in texts
    assert "300 EUR" in texts


def test_empty_invoice_renders_placeholder(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(items=[], totalAmount=0))

    _, trace = render(renderer, invoice, project)

    assert trace.count("item_row") == 0
    assert trace.count("no_items") == 1
    assert trace.table_header_pages == [1]


def test_notes_only_when_present(renderer, project):
    _, without_notes = render(renderer, Invoice.from_dict(invoice_payload()), project)
    _, with_notes = render(renderer, Invoice.from_dict(invoice_payload(notes="Fizetés 8 napon belül.")), project)

    assert without_notes.count("notes") == 0
    assert with_notes.count("notes") >= 1
    assert "Fizetés 8 napon belül." in with_notes.texts()


def test_long_description_is_wrapped(renderer, project):
    description = "Very long line item description " * 8
    invoice = Invoice.from_dict(invoice_payload(items=[
        {"description": description, "quantity": 1, "unitPrice": 10, "total": 10},
    ], totalAmount=10))

    _, trace = render(renderer, invoice, project)

    assert trace.count("item_row") == 1
    wrapped = [text for text in trace.texts() if text and text in description]
    assert len(wrapped) > 1
    assert wrapped[0].startswith("Very long")


def test_long_unbroken_token_stays_inside_its_column(renderer, project):
    token = "X" * 200
    invoice = Invoice.from_dict(invoice_payload(items=[
        {"description": token, "quantity": 1, "unitPrice": 10, "total": 10},
    ], totalAmount=10))

    _, trace = render(renderer, invoice, project)

    layout = renderer.layout
    column = (layout.page_size[0] - 2 * layout.margin) * 0.5 - 16
    pieces = [text for text in trace.texts() if text and set(text) == {"X"}]
    assert len(pieces) > 1
    assert "".join(pieces) == token
    for piece in pieces:
        assert pdfmetrics.stringWidth(piece, "Helvetica", layout.font_size_normal) <= column


def test_overlong_description_is_truncated_to_one_page(renderer, project):
    invoice = Invoice.from_dict(invoice_payload(items=[
        {"description": "\n".join(["line"] * 200), "quantity": 1, "unitPrice": 10, "total": 10},
    ], totalAmount=10, status="paid"))

    _, trace = render(renderer, invoice, project)

    assert trace.count("item_row") == 1
    assert "line..." in trace.texts()


def test_output_is_deterministic(renderer, invoice, project):
    first, _ = render(renderer, invoice, project)
    second, _ = render(renderer, invoice, project)

    assert first == second


def test_missing_logo_still_renders(invoice, project):
    renderer = InvoicePDFRenderer(replace(BusinessProfile(), logo_path="/nonexistent/logo.png"))

    data, trace = render(renderer, invoice, project)

    assert data.startswith(b"%PDF")
    assert trace.page_count == 1


def test_missing_font_falls_back_to_helvetica(invoice, project):
    renderer = InvoicePDFRenderer(replace(BusinessProfile(), font_path="/nonexistent/font.ttf"))

    assert renderer.style.font_regular == "Helvetica"
    assert renderer.render_to_bytes(invoice, project).startswith(b"%PDF")


def test_unwritable_stream_raises_render_error(renderer, invoice, project):
    with pytest.raises(RenderError):
        renderer.render(invoice, project, BrokenStream())


def test_text_stream_raises_render_error(renderer, invoice, project):
    with pytest.raises(RenderError):
        renderer.render(invoice, project, io.StringIO())


def test_english_document_labels(profile, invoice, project):
    renderer = InvoicePDFRenderer(profile, locale="en")

    _, trace = render(renderer, invoice, project)

    assert trace.badge_label == "ISSUED"
    assert "Page: 1" in trace.texts()
    assert "03/01/2024" in trace.texts()


@pytest.mark.parametrize("number, locale, expected", [
    ("INV-2024-001", "hu", "szamla-INV-2024-001.pdf"),
    ("2024/07 #3", "en", "invoice-2024-07-3.pdf"),
    ("R 1", "de", "rechnung-R-1.pdf"),
])
def test_invoice_filename(number, locale, expected):
    invoice = Invoice.from_dict(invoice_payload(number=number))

    assert invoice_filename(invoice, locale) == expected

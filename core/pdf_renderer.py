# core/pdf_renderer.py
"""
Invoice PDF renderer

Lays out one invoice on A4 pages with reportlab: repeating header and footer,
dated info block with status badge, issuer and client panels, a paginated
line-items table, totals, payment instructions, notes and a PAID watermark.
Output is deterministic: identical input gives byte-identical documents.
"""

import io
import os
import re
import logging
from dataclasses import dataclass, field, replace
from typing import BinaryIO, Dict, List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError
from reportlab.pdfgen import canvas

from config.settings import BusinessProfile
from core.i18n import (
    document_labels, format_plain_amount, format_quantity, format_short_date,
    resolve_language, status_label,
)
from core.models import Invoice, InvoiceItem, InvoiceStatus, Project

logger = logging.getLogger(__name__)


class RenderError(Exception):
    """Raised when a document cannot be produced or written"""
    pass


@dataclass(frozen=True)
class LayoutConfig:
    """Page geometry in points, origin at the top-left corner"""
    page_size: tuple = A4
    margin: float = 50
    header_height: float = 120
    accent_height: float = 6
    content_top: float = 140
    footer_height: float = 30
    section_gap: float = 20

    logo_width: float = 140
    logo_max_height: float = 60

    info_box_height: float = 80
    party_box_height: float = 150
    party_gap: float = 20
    table_header_height: float = 30
    row_height: float = 30
    row_padding: float = 10
    line_height: float = 12
    totals_width: float = 250
    totals_line_height: float = 20
    payment_box_height: float = 120
    badge_width: float = 120
    badge_height: float = 28

    font_size_title: int = 28
    font_size_subtitle: int = 14
    font_size_heading: int = 12
    font_size_normal: int = 10
    font_size_small: int = 8
    font_size_watermark: int = 100


@dataclass(frozen=True)
class StyleConfig:
    primary: colors.Color = colors.HexColor('#1E6BB8')
    secondary: colors.Color = colors.HexColor('#2D3748')
    accent: colors.Color = colors.HexColor('#38B2AC')
    background: colors.Color = colors.HexColor('#F7FAFC')
    text: colors.Color = colors.HexColor('#1A202C')
    light_text: colors.Color = colors.HexColor('#4A5568')
    border: colors.Color = colors.HexColor('#E2E8F0')
    success: colors.Color = colors.HexColor('#38A169')
    warning: colors.Color = colors.HexColor('#E53E3E')
    pending: colors.Color = colors.HexColor('#DD6B20')
    neutral: colors.Color = colors.HexColor('#718096')

    font_regular: str = 'Helvetica'
    font_bold: str = 'Helvetica-Bold'

    def status_color(self, status: InvoiceStatus) -> colors.Color:
        if status is InvoiceStatus.PAID:
            return self.success
        if status is InvoiceStatus.OVERDUE:
            return self.warning
        if status is InvoiceStatus.CANCELED:
            return self.neutral
        return self.primary


@dataclass
class PageTrace:
    """What was drawn on one page"""
    number: int
    blocks: List[str] = field(default_factory=list)
    texts: List[str] = field(default_factory=list)
    rows: List[int] = field(default_factory=list)
    shaded_rows: List[int] = field(default_factory=list)
    used_height: float = 0.0
    # Height of the block that did not fit and opened the next page
    overflow_height: Optional[float] = None

    def count(self, block: str) -> int:
        return self.blocks.count(block)


@dataclass
class LayoutTrace:
    """Record of a finished layout, page by page"""
    pages: List[PageTrace] = field(default_factory=list)
    printable_height: float = 0.0
    badge_label: Optional[str] = None
    badge_color: Optional[colors.Color] = None
    due_date_color: Optional[colors.Color] = None
    totals_page: Optional[int] = None
    watermark_page: Optional[int] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def table_header_pages(self) -> List[int]:
        return [page.number for page in self.pages if 'table_header' in page.blocks]

    def pages_with(self, block: str) -> List[int]:
        return [page.number for page in self.pages if block in page.blocks]

    def count(self, block: str) -> int:
        return sum(page.count(block) for page in self.pages)

    def rows_per_page(self) -> Dict[int, int]:
        return {page.number: page.count('item_row') for page in self.pages}

    def texts(self) -> List[str]:
        return [text for page in self.pages for text in page.texts]


def invoice_filename(invoice: Invoice, locale: str = 'hu') -> str:
    """Attachment file name derived from the invoice number"""
    prefix = document_labels(locale)['filename_prefix']
    safe_number = re.sub(r'[^A-Za-z0-9._-]+', '-', invoice.number).strip('-.') or 'invoice'
    return f"{prefix}-{safe_number}.pdf"


class InvoicePDFRenderer:
    """
    Renders invoices into PDF documents

    The renderer only holds read-only configuration; every render() call
    builds its own page state, so one instance can serve concurrent requests.

    Example:
        renderer = InvoicePDFRenderer(BusinessProfile.from_env())
        with open('szamla.pdf', 'wb') as fh:
            renderer.render(invoice, project, fh)
    """

    def __init__(self,
                 profile: Optional[BusinessProfile] = None,
                 locale: str = 'hu',
                 layout: Optional[LayoutConfig] = None,
                 style: Optional[StyleConfig] = None):
        self.profile = profile or BusinessProfile()
        self.locale = resolve_language(locale)
        self.layout = layout or LayoutConfig()
        self.style = self._with_brand_fonts(style or StyleConfig())

    def _with_brand_fonts(self, style: StyleConfig) -> StyleConfig:
        """Register the configured TTF fonts, falling back to Helvetica"""
        if not self.profile.font_path:
            return style

        try:
            pdfmetrics.registerFont(TTFont('InvoiceSans', self.profile.font_path))
            regular = bold = 'InvoiceSans'
            if self.profile.font_bold_path:
                pdfmetrics.registerFont(TTFont('InvoiceSans-Bold', self.profile.font_bold_path))
                bold = 'InvoiceSans-Bold'
        except (TTFError, OSError) as e:
            logger.warning(f"Brand font could not be loaded, using Helvetica: {str(e)}")
            return style

        return replace(style, font_regular=regular, font_bold=bold)

    def render(self, invoice: Invoice, project: Project, stream: BinaryIO) -> LayoutTrace:
        """
        Render one invoice into a writable binary stream

        Raises:
            RenderError: drawing failed or the stream could not be written;
                nothing written before the failure is a valid document
        """
        data, trace = self._draw(invoice, project)
        try:
            stream.write(data)
            flush = getattr(stream, 'flush', None)
            if flush is not None:
                flush()
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Writing invoice {invoice.number} failed: {str(e)}")
            raise RenderError(f"Could not write invoice document: {str(e)}") from e

        logger.info(f"Rendered invoice {invoice.number}: {trace.page_count} page(s), {len(data):,} bytes")
        return trace

    def render_to_bytes(self, invoice: Invoice, project: Project) -> bytes:
        buffer = io.BytesIO()
        self.render(invoice, project, buffer)
        return buffer.getvalue()

    def _draw(self, invoice: Invoice, project: Project):
        buffer = io.BytesIO()
        layout = _InvoiceLayout(self, invoice, project, buffer)
        try:
            trace = layout.build()
        except RenderError:
            raise
        except Exception as e:
            logger.error(f"Drawing invoice {invoice.number} failed: {str(e)}")
            raise RenderError(f"Could not render invoice {invoice.number}: {str(e)}") from e
        return buffer.getvalue(), trace


class _InvoiceLayout:
    """Page state of a single render call; y grows downwards from the page top"""

    def __init__(self, renderer: InvoicePDFRenderer, invoice: Invoice, project: Project, buffer: BinaryIO):
        self.invoice = invoice
        self.project = project
        self.profile = renderer.profile
        self.locale = renderer.locale
        self.layout = renderer.layout
        self.style = renderer.style
        self.t = document_labels(self.locale)
        self.currency = project.display_currency(invoice)

        self._width, self._height = self.layout.page_size
        self._left = self.layout.margin
        self._right = self._width - self.layout.margin
        self._content_width = self._right - self._left
        self._content_bottom = self._height - self.layout.margin - self.layout.footer_height

        self._canvas = canvas.Canvas(buffer, pagesize=self.layout.page_size, invariant=1)
        self._canvas.setTitle(f"{self.t['title']} {invoice.number}")
        self._canvas.setAuthor(self.profile.name)
        self._canvas.setCreator(self.profile.name)

        self._logo = self._load_logo()
        self._trace = LayoutTrace(printable_height=self._printable_height)
        self._page: Optional[PageTrace] = None
        self._y = 0.0
        self._row_index = 0
        self._watermark_due = False

        # Table columns: description | quantity | unit price | total
        self._col_desc = self._left
        self._col_qty = self._left + self._content_width * 0.50
        self._col_unit = self._left + self._content_width * 0.65
        self._col_total = self._left + self._content_width * 0.825
        self._cell_padding = 8

    def build(self) -> LayoutTrace:
        self._start_new_page()
        self._render_info_block()
        self._render_parties()
        self._render_items_table()
        self._render_totals()
        if not self.invoice.status.is_settled:
            self._render_payment_info()
        if self.invoice.has_notes:
            self._render_notes()
        self._finish_page()
        self._canvas.save()
        return self._trace

    # Page handling

    def _start_new_page(self) -> None:
        if self._page is not None:
            self._finish_page()
            self._canvas.showPage()

        self._page = PageTrace(number=len(self._trace.pages) + 1)
        self._trace.pages.append(self._page)
        self._render_page_header()
        self._render_page_footer()
        self._y = self.layout.content_top

    def _finish_page(self) -> None:
        self._page.used_height = self._y - self.layout.content_top
        if self._watermark_due and self._trace.totals_page == self._page.number:
            self._render_watermark()
            self._watermark_due = False

    def _ensure_space(self, height: float) -> bool:
        """Start a new page when a block of this height does not fit; True if one was started"""
        if self._y + height > self._content_bottom:
            self._page.overflow_height = height
            self._start_new_page()
            return True
        return False

    @property
    def _printable_height(self) -> float:
        return self._content_bottom - self.layout.content_top

    # Drawing primitives

    def _text(self, x: float, y: float, text: str, bold: bool = False, size: Optional[int] = None,
              color: Optional[colors.Color] = None, align: str = 'left') -> None:
        c = self._canvas
        c.setFont(self.style.font_bold if bold else self.style.font_regular,
                  size or self.layout.font_size_normal)
        c.setFillColor(color or self.style.text)
        baseline = self._height - y
        if align == 'right':
            c.drawRightString(x, baseline, text)
        elif align == 'center':
            c.drawCentredString(x, baseline, text)
        else:
            c.drawString(x, baseline, text)
        self._page.texts.append(text)

    def _rect(self, x: float, y: float, width: float, height: float, fill: Optional[colors.Color] = None,
              stroke: Optional[colors.Color] = None, radius: float = 0) -> None:
        c = self._canvas
        if fill is not None:
            c.setFillColor(fill)
        if stroke is not None:
            c.setStrokeColor(stroke)
            c.setLineWidth(0.5)
        bottom = self._height - y - height
        if radius:
            c.roundRect(x, bottom, width, height, radius, stroke=int(stroke is not None), fill=int(fill is not None))
        else:
            c.rect(x, bottom, width, height, stroke=int(stroke is not None), fill=int(fill is not None))

    def _hline(self, x1: float, x2: float, y: float, color: Optional[colors.Color] = None) -> None:
        c = self._canvas
        c.setStrokeColor(color or self.style.border)
        c.setLineWidth(0.5)
        c.line(x1, self._height - y, x2, self._height - y)

    def _wrap(self, text: str, width: float, bold: bool = False, size: Optional[int] = None) -> List[str]:
        font = self.style.font_bold if bold else self.style.font_regular
        size = size or self.layout.font_size_normal
        lines: List[str] = []
        for paragraph in text.splitlines() or ['']:
            for line in simpleSplit(paragraph, font, size, width) or ['']:
                lines.extend(self._break_long(line, font, size, width))
        return lines

    @staticmethod
    def _break_long(line: str, font: str, size: int, width: float) -> List[str]:
        """Split a line with no usable spaces at character boundaries"""
        if pdfmetrics.stringWidth(line, font, size) <= width:
            return [line]
        pieces: List[str] = []
        current = ''
        for char in line:
            if current and pdfmetrics.stringWidth(current + char, font, size) > width:
                pieces.append(current)
                current = char.lstrip()
            else:
                current += char
        if current:
            pieces.append(current)
        return pieces

    def _fit(self, text: str, width: float, bold: bool = False, size: Optional[int] = None) -> str:
        """First wrapped line of text, marked when truncated"""
        lines = self._wrap(text, width, bold, size)
        if len(lines) > 1:
            return lines[0].rstrip() + '...'
        return lines[0]

    def _mark(self, block: str) -> None:
        self._page.blocks.append(block)

    # Repeating page parts

    def _load_logo(self) -> Optional[ImageReader]:
        path = self.profile.logo_path
        if not path:
            return None
        if not os.path.exists(path):
            logger.warning(f"Invoice logo not found, skipping: {path}")
            return None
        try:
            return ImageReader(path)
        except Exception as e:
            logger.warning(f"Invoice logo could not be loaded, skipping: {str(e)}")
            return None

    def _render_page_header(self) -> None:
        layout = self.layout
        self._rect(0, 0, self._width, layout.header_height, fill=self.style.primary)
        self._rect(0, layout.header_height, self._width, layout.accent_height, fill=self.style.accent)

        if self._logo is not None:
            try:
                self._canvas.drawImage(
                    self._logo,
                    self._left,
                    self._height - 30 - layout.logo_max_height,
                    width=layout.logo_width,
                    height=layout.logo_max_height,
                    mask='auto',
                    preserveAspectRatio=True,
                    anchor='nw',
                )
            except Exception as e:
                logger.warning(f"Invoice logo could not be drawn, skipping: {str(e)}")
                self._logo = None

        title_x = self._left + 250
        self._text(title_x, 40 + layout.font_size_title, self.t['title'], bold=True,
                   size=layout.font_size_title, color=colors.white)
        self._text(title_x, 75 + layout.font_size_subtitle, f"{self.t['number']}: {self.invoice.number}",
                   bold=True, size=layout.font_size_subtitle, color=colors.white)
        self._mark('header')

    def _render_page_footer(self) -> None:
        footer_top = self._height - self.layout.margin
        size = self.layout.font_size_small

        self._hline(self._left, self._right, footer_top - 20)
        self._text(self._left, footer_top - 15 + size, self.profile.footer_line,
                   size=size, color=self.style.light_text)
        self._text(self._right, footer_top - 15 + size, f"{self.t['page']}: {self._page.number}",
                   size=size, color=self.style.light_text, align='right')
        self._text(self._width / 2, footer_top - 5 + size, self.t['disclaimer'],
                   size=size, color=self.style.light_text, align='center')
        self._mark('footer')

    # Content blocks

    def _render_info_block(self) -> None:
        layout = self.layout
        invoice = self.invoice
        height = layout.info_box_height
        self._ensure_space(height)
        top = self._y

        self._rect(self._left, top, self._content_width, height,
                   fill=self.style.background, stroke=self.style.border, radius=4)

        label_x = self._left + 15
        value_x = self._left + 135
        self._text(label_x, top + 28, self.t['issue_date'], bold=True, color=self.style.secondary)
        self._text(value_x, top + 28, format_short_date(invoice.date, self.locale))

        due_color = self.style.warning if invoice.status is InvoiceStatus.OVERDUE else self.style.text
        self._text(label_x, top + 52, self.t['due_date'], bold=True, color=self.style.secondary)
        self._text(value_x, top + 52, format_short_date(invoice.due_date, self.locale),
                   bold=invoice.status is InvoiceStatus.OVERDUE, color=due_color)
        self._trace.due_date_color = due_color
        self._mark('info')

        self._render_status_badge(top)
        self._y = top + height + layout.section_gap

    def _render_status_badge(self, top: float) -> None:
        layout = self.layout
        invoice = self.invoice
        label = status_label(invoice.status, self.locale).upper()
        x = self._right - 15 - layout.badge_width
        y = top + 14

        badge_color = self.style.status_color(invoice.status)
        self._rect(x, y, layout.badge_width, layout.badge_height,
                   fill=badge_color, radius=4)
        self._text(x + layout.badge_width / 2, y + 18, label, bold=True,
                   size=layout.font_size_heading, color=colors.white, align='center')
        self._trace.badge_label = label
        self._trace.badge_color = badge_color

        if invoice.status is InvoiceStatus.PAID and invoice.paid_date:
            self._text(x + layout.badge_width / 2, y + layout.badge_height + 16,
                       format_short_date(invoice.paid_date, self.locale),
                       size=layout.font_size_small, color=self.style.light_text, align='center')
        self._mark('status_badge')

    def _render_parties(self) -> None:
        layout = self.layout
        height = layout.party_box_height
        self._ensure_space(height)
        top = self._y
        box_width = (self._content_width - layout.party_gap) / 2

        profile = self.profile
        issuer_lines = [
            (profile.name, True),
            (profile.address, False),
            (f"{self.t['tax_number']}: {profile.tax_number}", False),
            (f"{self.t['email']}: {profile.email}", False),
            (f"{self.t['phone']}: {profile.phone}", False),
        ]

        client = self.project.client
        client_lines = [(client.company_name or client.name, True)]
        if client.company_name and client.name != client.company_name:
            client_lines.append((client.name, False))
        if client.address is not None:
            if client.address.has_location:
                client_lines.append((client.address.location_line(), False))
            if client.address.country:
                client_lines.append((f"{self.t['country']}: {client.address.country}", False))
        if client.tax_number:
            client_lines.append((f"{self.t['tax_number']}: {client.tax_number}", False))
        if client.email:
            client_lines.append((f"{self.t['email']}: {client.email}", False))

        self._render_party_box(self._left, top, box_width, self.t['issuer'], issuer_lines)
        self._render_party_box(self._left + box_width + layout.party_gap, top, box_width,
                               self.t['client'], client_lines)
        self._mark('parties')
        self._y = top + height + layout.section_gap + 5

    def _render_party_box(self, x: float, top: float, width: float, title: str, lines) -> None:
        layout = self.layout
        self._rect(x, top, width, layout.party_box_height,
                   fill=self.style.background, stroke=self.style.border, radius=4)
        self._text(x + 15, top + 24, title, bold=True, size=layout.font_size_heading, color=self.style.primary)
        self._hline(x + 15, x + width - 15, top + 32, color=self.style.accent)

        y = top + 50
        max_y = top + layout.party_box_height - 8
        for text, bold in lines:
            if y > max_y:
                break
            self._text(x + 15, y, self._fit(text, width - 30, bold=bold), bold=bold)
            y += layout.line_height + 4

    def _render_table_header(self) -> None:
        layout = self.layout
        top = self._y
        self._rect(self._left, top, self._content_width, layout.table_header_height, fill=self.style.primary)

        baseline = top + 19
        pad = self._cell_padding
        self._text(self._col_desc + pad, baseline, self.t['col_description'], bold=True, color=colors.white)
        self._text((self._col_qty + self._col_unit) / 2, baseline, self.t['col_quantity'],
                   bold=True, color=colors.white, align='center')
        self._text(self._col_total - pad, baseline, self.t['col_unit_price'],
                   bold=True, color=colors.white, align='right')
        self._text(self._right - pad, baseline, self.t['col_total'],
                   bold=True, color=colors.white, align='right')
        self._mark('table_header')
        self._y = top + layout.table_header_height

    def _row_lines(self, item: InvoiceItem) -> List[str]:
        layout = self.layout
        width = self._col_qty - self._col_desc - 2 * self._cell_padding
        lines = self._wrap(item.description or self.t['unnamed_item'], width)

        # A single row never exceeds one page below the table header
        max_lines = int((self._printable_height - layout.table_header_height
                         - 2 * layout.row_padding) // layout.line_height)
        if len(lines) > max_lines:
            lines = lines[:max_lines]
            lines[-1] = lines[-1].rstrip() + '...'
        return lines

    def _row_height(self, lines: List[str]) -> float:
        layout = self.layout
        return max(layout.row_height, len(lines) * layout.line_height + 2 * layout.row_padding)

    def _render_items_table(self) -> None:
        layout = self.layout
        items = self.invoice.items

        if not items:
            self._ensure_space(layout.table_header_height + layout.row_height)
            self._render_table_header()
            self._text(self._width / 2, self._y + 19, self.t['no_items'],
                       color=self.style.light_text, align='center')
            self._hline(self._left, self._right, self._y + layout.row_height)
            self._mark('no_items')
            self._y += layout.row_height + layout.section_gap
            return

        first_lines = self._row_lines(items[0])
        self._ensure_space(layout.table_header_height + self._row_height(first_lines))
        self._render_table_header()

        for item in items:
            lines = self._row_lines(item)
            height = self._row_height(lines)
            if self._ensure_space(height):
                self._render_table_header()
            self._render_table_row(item, lines, height)

        self._y += layout.section_gap

    def _render_table_row(self, item: InvoiceItem, lines: List[str], height: float) -> None:
        layout = self.layout
        top = self._y
        pad = self._cell_padding

        # Shading follows the global row index, independent of page breaks
        self._page.rows.append(self._row_index)
        if self._row_index % 2 == 1:
            self._rect(self._left, top, self._content_width, height, fill=self.style.background)
            self._page.shaded_rows.append(self._row_index)
        self._row_index += 1

        y = top + layout.row_padding + layout.line_height - 2
        for line in lines:
            self._text(self._col_desc + pad, y, line)
            y += layout.line_height

        first_baseline = top + layout.row_padding + layout.line_height - 2
        self._text((self._col_qty + self._col_unit) / 2, first_baseline, format_quantity(item.quantity),
                   align='center')
        self._text(self._col_total - pad, first_baseline,
                   format_plain_amount(item.unit_price, self.currency), align='right')
        self._text(self._right - pad, first_baseline,
                   format_plain_amount(item.total, self.currency), bold=True, align='right')

        self._hline(self._left, self._right, top + height)
        self._mark('item_row')
        self._y = top + height

    def _render_totals(self) -> None:
        layout = self.layout
        invoice = self.invoice
        lines = 3 if invoice.is_partially_paid else 1
        height = lines * layout.totals_line_height + 20
        self._ensure_space(height)

        top = self._y
        x = self._right - layout.totals_width
        self._rect(x, top, layout.totals_width, height, fill=self.style.background,
                   stroke=self.style.border, radius=4)

        y = top + 25
        self._text(x + 15, y, self.t['grand_total'], bold=True, size=layout.font_size_heading)
        self._text(self._right - 15, y, format_plain_amount(invoice.total_amount, self.currency),
                   bold=True, size=layout.font_size_heading, color=self.style.primary, align='right')

        if invoice.is_partially_paid:
            y += layout.totals_line_height
            self._text(x + 15, y, self.t['paid_amount'], color=self.style.success)
            self._text(self._right - 15, y, format_plain_amount(invoice.paid_amount, self.currency),
                       color=self.style.success, align='right')
            y += layout.totals_line_height
            self._text(x + 15, y, self.t['remaining'], bold=True, color=self.style.warning)
            self._text(self._right - 15, y, format_plain_amount(invoice.remaining_amount, self.currency),
                       bold=True, color=self.style.warning, align='right')

        self._mark('totals')
        self._trace.totals_page = self._page.number
        self._watermark_due = invoice.status is InvoiceStatus.PAID
        self._y = top + height + layout.section_gap

    def _render_payment_info(self) -> None:
        layout = self.layout
        profile = self.profile
        height = layout.payment_box_height
        self._ensure_space(height)
        top = self._y

        self._rect(self._left, top, self._content_width, height,
                   fill=self.style.background, stroke=self.style.border, radius=4)
        self._text(self._left + 15, top + 22, self.t['payment_info'], bold=True,
                   size=layout.font_size_heading, color=self.style.primary)
        self._text(self._left + 15, top + 42, self.t['bank_transfer'], bold=True)

        details = [
            f"{self.t['holder']}: {profile.account_holder}",
            f"IBAN: {profile.iban}",
            f"SWIFT/BIC: {profile.swift}",
            profile.bank_name,
            f"{self.t['reference']}: {self.invoice.number}",
        ]
        y = top + 58
        for line in details:
            self._text(self._left + 25, y, line)
            y += layout.line_height

        self._text(self._left + 15, top + height - 6,
                   self._fit(self.t['payment_closing'], self._content_width - 30, size=layout.font_size_small),
                   size=layout.font_size_small, color=self.style.light_text)
        self._mark('payment')
        self._y = top + height + layout.section_gap

    def _render_notes(self) -> None:
        layout = self.layout
        lines = self._wrap(self.invoice.notes, self._content_width - 30)

        self._ensure_space(30 + layout.line_height)
        self._text(self._left, self._y + 14, self.t['notes'], bold=True,
                   size=layout.font_size_heading, color=self.style.primary)
        self._hline(self._left, self._right, self._y + 20, color=self.style.accent)
        self._mark('notes')
        self._y += 30

        for line in lines:
            if self._ensure_space(layout.line_height):
                self._mark('notes')
            self._y += layout.line_height
            self._text(self._left + 15, self._y, line, color=self.style.light_text)

        self._y += layout.section_gap

    def _render_watermark(self) -> None:
        c = self._canvas
        c.saveState()
        c.translate(self._width / 2, self._height / 2)
        c.rotate(45)
        c.setFillColor(self.style.success)
        c.setFillAlpha(0.15)
        c.setFont(self.style.font_bold, self.layout.font_size_watermark)
        c.drawCentredString(0, -self.layout.font_size_watermark / 3, self.t['watermark'])
        c.restoreState()
        self._page.texts.append(self.t['watermark'])
        self._mark('watermark')
        self._trace.watermark_page = self._page.number

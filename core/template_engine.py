# core/template_engine.py
"""
Template engine for the localized notification emails
Renders invoice and project-share events into a subject line, an HTML body
with inlined CSS and a plain-text alternative
"""

import re
import logging
from typing import Any, Dict, Optional
from dataclasses import dataclass
from enum import Enum

from jinja2 import Environment, DictLoader, select_autoescape, StrictUndefined
from jinja2.exceptions import TemplateError
import premailer
from bs4 import BeautifulSoup

from config.settings import BusinessProfile
from core.email_templates import TEMPLATES
from core.i18n import (
    email_labels, format_amount, format_date, resolve_language, status_label,
)

# Configure logging
logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r'[\r\n]+')


class TemplateRenderingError(Exception):
    """Raised when a notification cannot be rendered"""
    pass


class NotificationKind(Enum):
    """Business events that produce a notification"""
    INVOICE_CREATED = "invoice_created"
    INVOICE_REMINDER = "invoice_reminder"
    PROJECT_SHARE = "project_share"


class ReminderKind(Enum):
    """Variants of the invoice reminder mail"""
    NEW = "new"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class RenderedEmail:
    """Rendered notification, ready to be wrapped into a MIME message"""
    subject: str
    html: str
    text: str
    language: str


def header_safe(value: str) -> str:
    """Collapse line breaks so the value can be placed in a mail header"""
    return _LINE_BREAKS.sub(' ', value or '').strip()


class NotificationTemplateEngine:
    """
    Renders notification emails in hu (primary), en or de

    Every interpolated value is HTML-escaped by Jinja2's autoescaping, so
    client and project names cannot inject markup into the body.
    """

    def __init__(self,
                 profile: Optional[BusinessProfile] = None,
                 sender_name: str = 'Norbert Bartus',
                 inline_css: bool = True):
        self.profile = profile or BusinessProfile()
        self.sender_name = sender_name
        self.inline_css = inline_css

        self.env = Environment(
            loader=DictLoader(TEMPLATES),
            autoescape=select_autoescape(['html', 'xml']),
            undefined=StrictUndefined,  # Fail on undefined variables
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, kind, context: Dict[str, Any], language: Optional[str] = None) -> RenderedEmail:
        """
        Render one notification

        Args:
            kind: NotificationKind (or its value)
            context: event payload; ``invoice``/``project``/``link`` for the
                invoice kinds (plus ``reminder`` for reminders),
                ``project``/``link``/``pin`` for project shares
            language: requested language code; unknown codes fall back to hu

        Returns:
            RenderedEmail with a header-safe subject

        Raises:
            TemplateRenderingError: on unknown kinds, missing payload fields
                or template failures
        """
        try:
            kind = NotificationKind(kind)
        except ValueError:
            raise TemplateRenderingError(f"Unknown notification kind: {kind!r}")

        language = resolve_language(language)
        labels = email_labels(language)

        try:
            if kind is NotificationKind.PROJECT_SHARE:
                subject, variables = self._project_share(context, labels, language)
            else:
                subject, variables = self._invoice(kind, context, labels, language)
        except (KeyError, AttributeError, ValueError) as e:
            raise TemplateRenderingError(f"Incomplete payload for {kind.value}: {e}")

        variables.update({
            't': labels,
            'language': language,
            'issuer': self.profile,
            'sender_name': self.sender_name,
        })

        try:
            template = self.env.get_template(f"{kind.value}.html")
            rendered_html = template.render(**variables)
        except TemplateError as e:
            logger.error(f"Template rendering failed for {kind.value}: {str(e)}")
            raise TemplateRenderingError(f"Template rendering failed: {str(e)}")

        if self.inline_css:
            rendered_html = self._inline_css(rendered_html)

        result = RenderedEmail(
            subject=header_safe(subject),
            html=rendered_html,
            text=self._html_to_text(rendered_html),
            language=language,
        )
        logger.debug(f"Rendered {kind.value} notification in {language}, "
                     f"size: {len(result.html.encode('utf-8')):,} bytes")
        return result

    def _invoice(self, kind: NotificationKind, context: Dict[str, Any], labels: Dict[str, str], language: str):
        invoice = context['invoice']
        project = context['project']
        currency = project.display_currency(invoice)
        due_date = format_date(invoice.due_date, language)

        variables = {
            'invoice': invoice,
            'client_name': project.client.name,
            'project_name': project.name,
            'issue_date': format_date(invoice.date, language),
            'due_date': due_date,
            'status': status_label(invoice.status, language),
            'link': context.get('link') or '',
        }

        if kind is NotificationKind.INVOICE_CREATED:
            variables['amount'] = format_amount(invoice.total_amount, currency, language)
            subject = labels['invoice_subject'].format(number=invoice.number, project=project.name)
            return subject, variables

        reminder = ReminderKind(context.get('reminder') or ReminderKind.NEW.value)
        amount_due = invoice.remaining_amount if invoice.is_partially_paid else invoice.total_amount
        variables['amount'] = format_amount(amount_due, currency, language)
        variables['reminder'] = reminder.value
        variables['message'] = labels[f"reminder_{reminder.value}"].format(number=invoice.number, due=due_date)
        subject = labels[f"reminder_subject_{reminder.value}"].format(number=invoice.number)
        return subject, variables

    def _project_share(self, context: Dict[str, Any], labels: Dict[str, str], language: str):
        project = context['project']
        expires_at = project.sharing.expires_at if project.sharing else None

        variables = {
            'client_name': project.client.name,
            'project_name': project.name,
            'project_description': project.description,
            'link': context['link'],
            'pin': context['pin'],
            'expires_at': format_date(expires_at, language) if expires_at else None,
        }
        subject = labels['share_subject'].format(project=project.name)
        return subject, variables

    def _inline_css(self, html_content: str) -> str:
        """
        Inline CSS styles for better email client compatibility
        """
        try:
            p = premailer.Premailer(
                html_content,
                remove_classes=False,
                keep_style_tags=False,  # Styles end up in style="" attributes only
                strip_important=False,
                disable_validation=True,
                cssutils_logging_level=logging.CRITICAL,
                external_styles=None,  # Don't fetch external stylesheets
            )
            return p.transform()
        except Exception as e:
            logger.warning(f"CSS inlining failed: {str(e)}")
            return html_content

    def _html_to_text(self, html_content: str) -> str:
        """
        Convert HTML to plain text with proper formatting for email
        """
        soup = BeautifulSoup(html_content, 'html.parser')

        for tag in soup.find_all(['head', 'style']):
            tag.decompose()

        for br in soup.find_all('br'):
            br.replace_with('\n')

        for p in soup.find_all(['p', 'div']):
            p.insert_after('\n')

        for header in soup.find_all(['h1', 'h2', 'h3', 'h4', 'h5', 'h6']):
            header.insert_before('\n')
            header.insert_after('\n')

        # Handle links
        for link in soup.find_all('a', href=True):
            link_text = link.get_text()
            href = link['href']
            if href != link_text:
                link.replace_with(f"{link_text} ({href})")

        text = soup.get_text()

        # Clean up whitespace
        text = re.sub(r'[ \t]+', ' ', text)
        text = re.sub(r' *\n *', '\n', text)
        text = re.sub(r'\n{3,}', '\n\n', text)
        return text.strip()

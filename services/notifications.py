# services/notifications.py
"""
Business-event notifications: new invoice, invoice reminder, project share

Each operation validates the recipient, renders the localized mail, wraps it
into a MIME message and hands it to the delivery pipeline. Every failure is
returned as a structured result; nothing here raises into the caller.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from email_validator import validate_email, EmailNotValidError

from config.settings import BusinessProfile, MailSettings
from core.i18n import resolve_language
from core.models import Invoice, InvoiceStatus, Project
from core.template_engine import (
    NotificationKind, NotificationTemplateEngine, ReminderKind, TemplateRenderingError,
)
from services.delivery import DeliveryPipeline, DeliveryResult, compose_message

logger = logging.getLogger(__name__)

DUE_SOON_WINDOW_DAYS = 3


class NotificationErrorKind(Enum):
    VALIDATION = "validation"
    TEMPLATE = "template"
    CONFIGURATION = "configuration"
    TRANSPORT = "transport"


@dataclass
class NotificationResult:
    """Outcome of one notification, as returned to the business route"""
    success: bool
    kind: NotificationKind
    language: str
    recipient: Optional[str] = None
    subject: Optional[str] = None
    error_kind: Optional[NotificationErrorKind] = None
    error: Optional[str] = None
    delivery: Optional[DeliveryResult] = None

    @property
    def message_id(self) -> Optional[str]:
        return self.delivery.message_id if self.delivery else None

    @property
    def transport_used(self) -> Optional[str]:
        if self.delivery and self.delivery.transport_used:
            return self.delivery.transport_used.value
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'success': self.success,
            'kind': self.kind.value,
            'language': self.language,
            'recipient': self.recipient,
            'subject': self.subject,
            'messageId': self.message_id,
            'transportUsed': self.transport_used,
            'error': self.error,
            'errorKind': self.error_kind.value if self.error_kind else None,
        }
        if self.delivery is not None:
            data['attempts'] = [attempt.to_dict() for attempt in self.delivery.attempts]
        return data


def reminder_kind_for(invoice: Invoice, today: date,
                      window_days: int = DUE_SOON_WINDOW_DAYS) -> Optional[ReminderKind]:
    """
    Reminder due for an invoice on a given day

    Settled invoices get none; an unpaid invoice past its due date is
    overdue; one falling due within the window is due soon.
    """
    if invoice.status.is_settled:
        return None
    if invoice.status is InvoiceStatus.OVERDUE or invoice.due_date < today:
        return ReminderKind.OVERDUE
    if (invoice.due_date - today).days <= window_days:
        return ReminderKind.DUE_SOON
    return None


def share_link_for(project: Project, base_url: str = 'https://project.nb-studio.net') -> str:
    base_url = base_url.rstrip('/')
    if project.sharing and project.sharing.token:
        return f"{base_url}/shared-project/{project.sharing.token}"
    return base_url


class NotificationService:
    """
    Sends the transactional mails of the invoicing and project-sharing flows

    Built once at startup with read-only settings and an injected delivery
    pipeline.
    """

    def __init__(self,
                 settings: MailSettings,
                 pipeline: DeliveryPipeline,
                 engine: Optional[NotificationTemplateEngine] = None,
                 profile: Optional[BusinessProfile] = None):
        self.settings = settings
        self.pipeline = pipeline
        self.profile = profile or BusinessProfile()
        self.engine = engine or NotificationTemplateEngine(self.profile, sender_name=settings.from_name)

    def send_invoice_email(self, invoice: Invoice, project: Project,
                           language: Optional[str] = None) -> NotificationResult:
        context = {
            'invoice': invoice,
            'project': project,
            'link': share_link_for(project, self.profile.share_base_url),
        }
        return self._notify(NotificationKind.INVOICE_CREATED, project, context, language)

    def send_invoice_reminder(self, invoice: Invoice, project: Project,
                              kind: Optional[Any] = None,
                              language: Optional[str] = None,
                              today: Optional[date] = None) -> NotificationResult:
        """
        Send a payment reminder; without an explicit kind it is derived
        from the due date (overdue, due soon) or defaults to ``new``
        """
        language_code = resolve_language(language or project.language)

        if invoice.status.is_settled:
            return self._fail(NotificationKind.INVOICE_REMINDER, language_code, NotificationErrorKind.VALIDATION,
                              f"invoice {invoice.number} is {invoice.status.value}, no reminder needed")

        if kind is None:
            kind = reminder_kind_for(invoice, today or date.today()) or ReminderKind.NEW
        try:
            kind = ReminderKind(kind)
        except ValueError:
            return self._fail(NotificationKind.INVOICE_REMINDER, language_code, NotificationErrorKind.VALIDATION,
                              f"unknown reminder kind: {kind!r}")

        context = {
            'invoice': invoice,
            'project': project,
            'reminder': kind.value,
            'link': share_link_for(project, self.profile.share_base_url),
        }
        return self._notify(NotificationKind.INVOICE_REMINDER, project, context, language)

    def send_project_share_email(self, project: Project, share_link: Optional[str] = None,
                                 pin: Optional[str] = None,
                                 language: Optional[str] = None) -> NotificationResult:
        language_code = resolve_language(language or project.language)
        pin = str(pin).strip() if pin is not None else ''
        if not pin:
            return self._fail(NotificationKind.PROJECT_SHARE, language_code, NotificationErrorKind.VALIDATION,
                              'share PIN is required')

        context = {
            'project': project,
            'link': share_link or share_link_for(project, self.profile.share_base_url),
            'pin': pin,
        }
        return self._notify(NotificationKind.PROJECT_SHARE, project, context, language)

    def _notify(self, kind: NotificationKind, project: Project, context: Dict[str, Any],
                language: Optional[str]) -> NotificationResult:
        language = resolve_language(language or project.language)

        # Missing data is reported before any transport is touched
        try:
            recipient = self.validate_recipient(project.client.email)
        except EmailNotValidError as e:
            return self._fail(kind, language, NotificationErrorKind.VALIDATION,
                              f"invalid client email address: {str(e)}")

        try:
            rendered = self.engine.render(kind, context, language)
        except TemplateRenderingError as e:
            return self._fail(kind, language, NotificationErrorKind.TEMPLATE, str(e), recipient)

        msg = compose_message(rendered, recipient, self.settings, recipient_name=project.client.name)
        delivery = self.pipeline.send(msg)

        result = NotificationResult(
            success=delivery.success,
            kind=kind,
            language=language,
            recipient=recipient,
            subject=rendered.subject,
            delivery=delivery,
        )
        if not delivery.success:
            result.error = delivery.error
            result.error_kind = (NotificationErrorKind.CONFIGURATION if delivery.unconfigured
                                 else NotificationErrorKind.TRANSPORT)
            logger.error(f"{kind.value} notification to {recipient} failed ({result.error_kind.value})")
        else:
            logger.info(f"{kind.value} notification sent to {recipient} in {language} "
                        f"via {result.transport_used} transport")
        return result

    @staticmethod
    def validate_recipient(address: Optional[str]) -> str:
        """
        Normalized recipient address, syntax only (no DNS lookups)

        Raises:
            EmailNotValidError: missing or malformed address
        """
        if not address or not address.strip():
            raise EmailNotValidError('client has no email address')
        return validate_email(address.strip(), check_deliverability=False).normalized

    def _fail(self, kind: NotificationKind, language: str, error_kind: NotificationErrorKind,
              error: str, recipient: Optional[str] = None) -> NotificationResult:
        logger.warning(f"{kind.value} notification not sent ({error_kind.value}): {error}")
        return NotificationResult(
            success=False,
            kind=kind,
            language=language,
            recipient=recipient,
            error_kind=error_kind,
            error=error,
        )

# services/delivery.py
"""
Multi-transport email delivery

A rendered notification is sent through the primary SMTP transport; when that
fails, exactly one fallback attempt goes through the secondary transport.
There is no retry beyond that hop, no backoff and no queue: the send runs
synchronously inside the triggering request and nothing is persisted.
"""

import asyncio
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate

import aiosmtplib

from config.settings import MailSettings, TransportSettings
from core.smtp_rfc_handler import SMTPResponseAnalyzer
from core.template_engine import RenderedEmail, header_safe

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Base exception for email delivery operations"""
    pass


class TransportNotConfiguredError(EmailDeliveryError):
    """Transport settings are incomplete; no connection was attempted"""
    pass


class TransportError(EmailDeliveryError):
    """Connection, authentication or SMTP-level failure of one transport"""

    def __init__(self, message: str, reason: str = 'unknown'):
        super().__init__(message)
        self.reason = reason


class TransportRole(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class DeliveryState(Enum):
    """States of one send operation"""
    TRYING_PRIMARY = "trying_primary"
    TRYING_SECONDARY = "trying_secondary"
    DONE = "done"


def next_state(state: DeliveryState, succeeded: bool) -> DeliveryState:
    """Transition after an attempt made in the given state"""
    if state is DeliveryState.TRYING_PRIMARY:
        return DeliveryState.DONE if succeeded else DeliveryState.TRYING_SECONDARY
    return DeliveryState.DONE


STATE_ROLES = {
    DeliveryState.TRYING_PRIMARY: TransportRole.PRIMARY,
    DeliveryState.TRYING_SECONDARY: TransportRole.SECONDARY,
}


@dataclass
class DeliveryAttempt:
    """Outcome of one transport attempt; logged and returned, never stored"""
    transport: TransportRole
    success: bool
    message_id: Optional[str] = None
    error_detail: Optional[str] = None
    failure_reason: Optional[str] = None
    not_configured: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'transport': self.transport.value,
            'success': self.success,
            'messageId': self.message_id,
            'errorDetail': self.error_detail,
            'failureReason': self.failure_reason,
        }


@dataclass
class DeliveryResult:
    """Caller-visible result of a send operation"""
    success: bool
    message_id: Optional[str] = None
    transport_used: Optional[TransportRole] = None
    error: Optional[str] = None
    attempts: List[DeliveryAttempt] = field(default_factory=list)

    @property
    def error_details(self) -> List[str]:
        return [attempt.error_detail for attempt in self.attempts if attempt.error_detail]

    @property
    def unconfigured(self) -> bool:
        """Every attempt failed because its transport is not configured"""
        return bool(self.attempts) and all(attempt.not_configured for attempt in self.attempts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'messageId': self.message_id,
            'transportUsed': self.transport_used.value if self.transport_used else None,
            'error': self.error,
            'attempts': [attempt.to_dict() for attempt in self.attempts],
        }


class MailTransport:
    """One way of handing a message to a mail server"""

    name = 'transport'

    @property
    def is_configured(self) -> bool:
        return True

    def send(self, msg: MIMEMultipart) -> str:
        """
        Deliver the message and return its Message-ID

        Raises:
            TransportNotConfiguredError: settings incomplete, nothing attempted
            TransportError: the server could not be reached or refused the message
        """
        raise NotImplementedError


class SMTPTransport(MailTransport):
    """
    SMTP transport over aiosmtplib

    Implicit TLS when ``secure`` is set, otherwise opportunistic STARTTLS.
    Each attempt is bounded by the configured timeout.
    """

    def __init__(self, settings: TransportSettings):
        self.settings = settings
        self.name = settings.name
        self.analyzer = SMTPResponseAnalyzer()

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def send(self, msg: MIMEMultipart) -> str:
        if not self.settings.is_configured:
            missing = ', '.join(self.settings.missing_fields())
            raise TransportNotConfiguredError(f"{self.name} transport is not configured (missing: {missing})")

        try:
            return asyncio.run(self._send_with_timeout(msg))
        except aiosmtplib.SMTPResponseException as e:
            raise TransportError(self.analyzer.describe_failure(e.code, e.message),
                                 reason=self.analyzer.failure_reason(e.code, e.message)) from e
        except (asyncio.TimeoutError, aiosmtplib.SMTPTimeoutError) as e:
            raise TransportError(
                f"timeout after {self.settings.timeout:g}s talking to {self.settings.host}:{self.settings.port}",
                reason='timeout',
            ) from e
        except (aiosmtplib.SMTPException, OSError) as e:
            raise TransportError(
                f"connection to {self.settings.host}:{self.settings.port} failed: {str(e)}",
                reason='connection',
            ) from e

    async def _send_with_timeout(self, msg: MIMEMultipart) -> str:
        return await asyncio.wait_for(self._async_send_smtp(msg), timeout=self.settings.timeout)

    async def _async_send_smtp(self, msg: MIMEMultipart) -> str:
        settings = self.settings
        smtp = aiosmtplib.SMTP(
            hostname=settings.host,
            port=settings.port,
            timeout=settings.timeout,
            use_tls=settings.secure,
        )

        await smtp.connect()
        try:
            if settings.username and settings.password:
                await smtp.login(settings.username, settings.password)

            errors, response = await smtp.send_message(msg)
            if errors:
                refused = '; '.join(f"{address}: {error}" for address, error in errors.items())
                logger.warning(f"{self.name} transport refused recipients: {refused}")

            # Accepted by the server from here on
            try:
                await smtp.quit()
            except aiosmtplib.SMTPException as e:
                logger.warning(f"{self.name} transport QUIT failed after delivery: {str(e)}")
        finally:
            if smtp.is_connected:
                smtp.close()

        logger.debug(f"{self.name} transport accepted message: {response}")
        return msg['Message-ID']


class DeliveryPipeline:
    """
    Sends a message through the primary transport with one fallback hop to
    the secondary transport

    State machine per send:
        TRYING_PRIMARY  --success--> DONE (primary)
        TRYING_PRIMARY  --failure--> TRYING_SECONDARY
        TRYING_SECONDARY --success--> DONE (secondary)
        TRYING_SECONDARY --failure--> DONE (failure, both errors kept)
    """

    def __init__(self, primary: MailTransport, secondary: MailTransport):
        self.transports = {
            TransportRole.PRIMARY: primary,
            TransportRole.SECONDARY: secondary,
        }

    @classmethod
    def from_settings(cls, settings: MailSettings) -> 'DeliveryPipeline':
        return cls(SMTPTransport(settings.primary), SMTPTransport(settings.secondary))

    def send(self, msg: MIMEMultipart) -> DeliveryResult:
        recipient = msg['To']
        attempts: List[DeliveryAttempt] = []
        state = DeliveryState.TRYING_PRIMARY

        while state is not DeliveryState.DONE:
            role = STATE_ROLES[state]
            attempt = self._attempt(role, msg)
            attempts.append(attempt)
            state = next_state(state, attempt.success)

        final = attempts[-1]
        if final.success:
            logger.info(f"Email to {recipient} delivered via {final.transport.value} transport "
                        f"(Message-ID {final.message_id})")
            return DeliveryResult(
                success=True,
                message_id=final.message_id,
                transport_used=final.transport,
                attempts=attempts,
            )

        error = ' | '.join(f"{attempt.transport.value}: {attempt.error_detail}" for attempt in attempts)
        logger.error(f"Email to {recipient} could not be delivered: {error}")
        return DeliveryResult(success=False, error=error, attempts=attempts)

    def _attempt(self, role: TransportRole, msg: MIMEMultipart) -> DeliveryAttempt:
        transport = self.transports[role]
        try:
            message_id = transport.send(msg)
        except TransportNotConfiguredError as e:
            logger.warning(f"Skipping {role.value} transport: {str(e)}")
            return DeliveryAttempt(role, False, error_detail=str(e), failure_reason='configuration',
                                   not_configured=True)
        except EmailDeliveryError as e:
            logger.warning(f"{role.value} transport failed: {str(e)}")
            return DeliveryAttempt(role, False, error_detail=str(e),
                                   failure_reason=getattr(e, 'reason', 'unknown'))
        except Exception as e:
            logger.error(f"Unexpected error in {role.value} transport: {str(e)}", exc_info=True)
            return DeliveryAttempt(role, False, error_detail=f"unexpected error: {str(e)}",
                                   failure_reason='unknown')

        return DeliveryAttempt(role, True, message_id=message_id or msg['Message-ID'])


def compose_message(rendered: RenderedEmail, recipient: str, settings: MailSettings,
                    recipient_name: Optional[str] = None) -> MIMEMultipart:
    """Build the multipart/alternative message (plain text first, then HTML)"""
    msg = MIMEMultipart('alternative')

    msg['Subject'] = header_safe(rendered.subject)
    msg['From'] = formataddr((settings.from_name, settings.from_address or ''))
    msg['To'] = formataddr((header_safe(recipient_name or ''), recipient))
    msg['Date'] = formatdate(localtime=True)
    msg['Message-ID'] = f"<{uuid.uuid4()}@{settings.message_domain}>"
    msg['Content-Language'] = rendered.language

    msg.attach(MIMEText(rendered.text, 'plain', 'utf-8'))
    msg.attach(MIMEText(rendered.html, 'html', 'utf-8'))
    return msg

# api/documents.py
"""
Invoice document and notification API
"""

import logging
from typing import Any, Dict, List, Tuple

from flask import Blueprint, Response, current_app, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from core.models import Invoice, Project, ValidationError
from core.pdf_renderer import RenderError, invoice_filename
from services.notifications import NotificationErrorKind, NotificationResult

documents_bp = Blueprint('documents', __name__)
logger = logging.getLogger(__name__)

# Bound to the application in create_app()
limiter = Limiter(key_func=get_remote_address)

STATUS_BY_ERROR_KIND = {
    NotificationErrorKind.VALIDATION: 400,
    NotificationErrorKind.TEMPLATE: 500,
    NotificationErrorKind.CONFIGURATION: 502,
    NotificationErrorKind.TRANSPORT: 502,
}


def _notification_limit() -> str:
    return current_app.config.get('NOTIFICATION_RATE_LIMIT', '30 per minute')


def _json_payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError(['request body must be a JSON object'])
    return data


def _parse_records(data: Dict[str, Any], with_invoice: bool = True) -> Tuple[Invoice, Project]:
    """Parse invoice and project together so every problem is reported at once"""
    problems: List[str] = []
    invoice = project = None

    if with_invoice:
        try:
            invoice = Invoice.from_dict(data.get('invoice'))
        except ValidationError as e:
            problems.extend(e.problems)
    try:
        project = Project.from_dict(data.get('project'))
    except ValidationError as e:
        problems.extend(e.problems)

    if problems:
        raise ValidationError(problems)
    return invoice, project


def _notification_response(result: NotificationResult):
    status_code = 200 if result.success else STATUS_BY_ERROR_KIND[result.error_kind]
    return jsonify(result.to_dict()), status_code


@documents_bp.route('/invoices/pdf', methods=['POST'])
def invoice_pdf():
    """
    Render an invoice as a PDF attachment

    Body: {"invoice": {...}, "project": {...}}
    """
    invoice, project = _parse_records(_json_payload())
    renderer = current_app.extensions['invoice_renderer']

    try:
        pdf = renderer.render_to_bytes(invoice, project)
    except RenderError as e:
        logger.error(f"Invoice {invoice.number} could not be rendered: {str(e)}")
        return jsonify({
            'error': 'Render Failed',
            'message': str(e),
            'status_code': 500
        }), 500

    filename = invoice_filename(invoice, renderer.locale)
    response = Response(pdf, mimetype='application/pdf')
    response.headers['Content-Disposition'] = f'attachment; filename="{filename}"'
    response.headers['Content-Language'] = renderer.locale
    return response


@documents_bp.route('/notifications/invoice', methods=['POST'])
@limiter.limit(_notification_limit)
def notify_invoice():
    """
    Send the new-invoice email to the project's client

    Body: {"invoice": {...}, "project": {...}, "language": "hu"}
    """
    data = _json_payload()
    invoice, project = _parse_records(data)
    service = current_app.extensions['notification_service']
    result = service.send_invoice_email(invoice, project, data.get('language'))
    return _notification_response(result)


@documents_bp.route('/notifications/invoice-reminder', methods=['POST'])
@limiter.limit(_notification_limit)
def notify_invoice_reminder():
    """
    Send a payment reminder

    Body: {"invoice": {...}, "project": {...}, "kind": "overdue", "language": "en"}
    "kind" is one of new, due_soon, overdue; derived from the due date when omitted.
    """
    data = _json_payload()
    invoice, project = _parse_records(data)
    service = current_app.extensions['notification_service']
    result = service.send_invoice_reminder(invoice, project, data.get('kind'), data.get('language'))
    return _notification_response(result)


@documents_bp.route('/notifications/project-share', methods=['POST'])
@limiter.limit(_notification_limit)
def notify_project_share():
    """
    Send shared-project access (link and PIN) to the project's client

    Body: {"project": {...}, "pin": "123456", "shareLink": "...", "language": "de"}
    """
    data = _json_payload()
    _, project = _parse_records(data, with_invoice=False)
    service = current_app.extensions['notification_service']
    result = service.send_project_share_email(
        project,
        share_link=data.get('shareLink'),
        pin=data.get('pin'),
        language=data.get('language'),
    )
    return _notification_response(result)

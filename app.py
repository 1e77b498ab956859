# app.py
"""
Flask Application Factory for the invoice document and notification service

This application factory wires together:
- Mail transport settings and the issuer profile, read once from the environment
- The PDF renderer, template engine, delivery pipeline and notification service
- Rate limiting, CORS and security headers for the API
- JSON error handling and logging
"""

import os
import logging
import logging.handlers
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from api.documents import documents_bp, limiter
from config.settings import AppConfig, BusinessProfile, MailSettings
from core.models import ValidationError
from core.pdf_renderer import InvoicePDFRenderer
from core.template_engine import NotificationTemplateEngine
from middleware.security import log_request, security_headers
from services.delivery import DeliveryPipeline
from services.notifications import NotificationService


def setup_logging(app: Flask) -> None:
    """
    Configure application logging

    Module loggers propagate to the root logger, which gets a stream
    handler and, when LOG_FILE is set, a rotating file handler.
    """
    journal_formatter = logging.Formatter(
        fmt='%(name)s[%(process)d]: %(levelname)s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    detailed_formatter = logging.Formatter(
        fmt='%(asctime)s %(name)-20s %(levelname)-8s %(funcName)-15s:%(lineno)-4d %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not any(getattr(handler, '_invoice_service', False) for handler in root_logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(journal_formatter)
        stream_handler._invoice_service = True
        root_logger.addHandler(stream_handler)

        log_file = app.config.get('LOG_FILE')
        if log_file:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5
            )
            file_handler.setFormatter(detailed_formatter)
            file_handler._invoice_service = True
            root_logger.addHandler(file_handler)

    # Suppress verbose third-party logs in production
    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def check_mail_settings(app: Flask, settings: MailSettings) -> None:
    """Log transport configuration problems loudly; never abort startup"""
    for transport in (settings.primary, settings.secondary):
        app.logger.info(f"Mail transport configuration: {transport.masked()}")

    problems = settings.validate()
    for problem in problems:
        app.logger.error(f"Mail configuration problem: {problem}")
    if not problems:
        app.logger.info("Both mail transports configured")


def check_document_fonts(app: Flask, renderer: InvoicePDFRenderer) -> None:
    """Warn when Hungarian documents would be drawn with a core PDF font"""
    if renderer.locale == 'hu' and renderer.style.font_regular == 'Helvetica':
        app.logger.warning("No brand font configured for Hungarian documents; "
                           "Helvetica cannot draw ő and ű, set INVOICE_FONT_PATH to a TTF font")


def configure_extensions(app: Flask) -> None:
    """
    Configure rate limiting, CORS and proxy handling
    """
    limiter.init_app(app)

    CORS(app,
         resources={r'/api/*': {'origins': app.config.get('CORS_ORIGINS', [])}},
         allow_headers=['Content-Type', 'Authorization'])

    # Configure proxy handling for deployment behind nginx
    if app.config.get('PROXY_FIX'):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)


def configure_error_handlers(app: Flask) -> None:
    """
    Configure JSON error handling
    """
    @app.errorhandler(ValidationError)
    def invalid_payload(error):
        app.logger.warning(f"Rejected payload from {request.remote_addr}: {error}")
        return jsonify({
            'error': 'Bad Request',
            'message': 'Invalid or incomplete invoice/project data',
            'problems': error.problems,
            'status_code': 400
        }), 400

    @app.errorhandler(400)
    def bad_request(error):
        app.logger.warning(f"Bad request from {request.remote_addr}: {error}")
        return jsonify({
            'error': 'Bad Request',
            'message': 'Invalid request format or parameters',
            'status_code': 400
        }), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': 'The requested resource was not found',
            'status_code': 404
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'error': 'Method Not Allowed',
            'message': 'The method is not allowed for the requested URL',
            'status_code': 405
        }), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({
            'error': 'Payload Too Large',
            'message': 'Request body exceeds the allowed size',
            'status_code': 413
        }), 413

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        app.logger.warning(f"Rate limit exceeded for {request.remote_addr}")
        return jsonify({
            'error': 'Rate Limit Exceeded',
            'message': 'Too many requests. Please try again later.',
            'status_code': 429
        }), 429

    @app.errorhandler(Exception)
    def handle_exception(e):
        """Handle unexpected exceptions"""
        if isinstance(e, HTTPException):
            return jsonify({
                'error': e.name,
                'message': e.description,
                'status_code': e.code
            }), e.code

        app.logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred',
            'status_code': 500
        }), 500


def configure_health_checks(app: Flask) -> None:
    """
    Configure health check endpoint for monitoring
    """
    @app.route('/health')
    def health_check():
        settings = app.extensions['mail_settings']
        problems = settings.validate()
        return jsonify({
            'status': 'healthy' if not problems else 'degraded',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': app.config.get('VERSION', '1.0.0'),
            'transports': {
                'primary': settings.primary.is_configured,
                'secondary': settings.secondary.is_configured,
            },
        })


def create_app(config_overrides: Optional[Dict[str, Any]] = None,
               mail_settings: Optional[MailSettings] = None,
               pipeline: Optional[DeliveryPipeline] = None,
               profile: Optional[BusinessProfile] = None,
               config_class: type = AppConfig) -> Flask:
    """
    Flask application factory

    Args:
        config_overrides: values applied on top of AppConfig
        mail_settings: transport settings; read from the environment when omitted
        pipeline: delivery pipeline; built from mail_settings when omitted
        profile: issuer profile; read from the environment when omitted
        config_class: base configuration object (TestingConfig in tests)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config['VERSION'] = os.environ.get('APP_VERSION', '1.0.0')
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app)
    app.logger.info("Starting invoice document service")

    # Settings are read once and shared read-only
    mail_settings = mail_settings or MailSettings.from_env()
    profile = profile or BusinessProfile.from_env()
    check_mail_settings(app, mail_settings)

    pipeline = pipeline or DeliveryPipeline.from_settings(mail_settings)
    engine = NotificationTemplateEngine(profile, sender_name=mail_settings.from_name)

    renderer = InvoicePDFRenderer(profile, locale=app.config['DOCUMENT_LOCALE'])
    check_document_fonts(app, renderer)

    app.extensions['mail_settings'] = mail_settings
    app.extensions['business_profile'] = profile
    app.extensions['invoice_renderer'] = renderer
    app.extensions['notification_service'] = NotificationService(mail_settings, pipeline, engine, profile)

    configure_extensions(app)
    app.register_blueprint(documents_bp, url_prefix='/api')
    configure_error_handlers(app)
    configure_health_checks(app)

    app.after_request(security_headers)
    app.after_request(log_request)

    app.logger.info("Flask application factory completed successfully")
    return app


if __name__ == '__main__':
    # Development server
    app = create_app({'LOG_LEVEL': 'DEBUG'})
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=True)

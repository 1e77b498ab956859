# middleware/security.py
"""
Security Middleware for Request Processing
"""

import logging

from flask import request

logger = logging.getLogger(__name__)


def security_headers(response):
    """Add security headers to all responses"""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    response.headers['Permissions-Policy'] = 'camera=(), microphone=(), geolocation=()'

    # Rendered invoices carry client data
    if response.mimetype == 'application/pdf':
        response.headers['Cache-Control'] = 'no-store'

    return response


def log_request(response):
    """Log API calls with their outcome"""
    if request.path.startswith('/api/'):
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, f"{request.method} {request.path} -> {response.status_code} from {request.remote_addr}")
    return response

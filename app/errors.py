"""API error types and JSON error responses.

Every error response carries a stable machine-readable ``error`` code and a
human-readable ``message``. Server errors (status >= 500) also carry a
``timestamp``.
"""

from datetime import datetime
import logging

from flask import jsonify

logger = logging.getLogger(__name__)

# Substrings that identify a lost or slow database connection
CONNECTIVITY_MARKERS = (
    'connection refused',
    'could not connect',
    'connection reset',
    'server closed the connection',
    'connection timed out',
    'timeout expired',
    'timed out',
    'operationalerror',
    'database is locked',
    'too many connections',
    "can't reach database server",
    'connection pool',
)


class ApiError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code = 500
    code = 'INTERNAL_ERROR'

    def __init__(self, message, code=None, details=None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details


class AuthenticationError(ApiError):
    status_code = 401
    code = 'UNAUTHORIZED'


class ForbiddenError(ApiError):
    status_code = 403
    code = 'FORBIDDEN'


class ValidationError(ApiError):
    status_code = 400
    code = 'VALIDATION_ERROR'


class NotFoundError(ApiError):
    status_code = 404
    code = 'NOT_FOUND'


class ConflictError(ApiError):
    status_code = 409
    code = 'CONFLICT'


class RateLimitError(ApiError):
    status_code = 429
    code = 'RATE_LIMITED'


class ServiceUnavailableError(ApiError):
    status_code = 503
    code = 'DATABASE_UNAVAILABLE'


def is_connectivity_error(exc) -> bool:
    """Check whether an exception looks like a database connectivity/timeout failure."""
    text = f"{type(exc).__name__}: {exc}".lower()
    return any(marker in text for marker in CONNECTIVITY_MARKERS)


def error_body(code, message, status, details=None, **extra):
    body = {'error': code, 'message': message}
    if details:
        body['details'] = details
    if status >= 500:
        body['timestamp'] = datetime.utcnow().isoformat() + 'Z'
    body.update(extra)
    return body


def error_response(exc, **extra):
    """Convert any exception into a ``(response, status)`` pair."""
    if isinstance(exc, ApiError):
        status = exc.status_code
        body = error_body(exc.code, exc.message, status, exc.details, **extra)
    elif is_connectivity_error(exc):
        status = 503
        logger.error(f"Database connectivity error: {exc}")
        body = error_body(
            ServiceUnavailableError.code,
            'Database is temporarily unavailable. Please try again shortly.',
            status,
            **extra
        )
    else:
        status = 500
        logger.exception(f"Unhandled error: {exc}")
        body = error_body('INTERNAL_ERROR', 'An unexpected error occurred', status, **extra)
    return jsonify(body), status


def register_error_handlers(app):
    """Render ApiErrors raised outside route try-blocks (e.g. in decorators)."""

    @app.errorhandler(ApiError)
    def handle_api_error(exc):
        return error_response(exc)

    @app.errorhandler(404)
    def handle_not_found(_exc):
        return jsonify(error_body('NOT_FOUND', 'Resource not found', 404)), 404

    @app.errorhandler(429)
    def handle_too_many_requests(_exc):
        return jsonify(error_body('RATE_LIMITED', 'Too many requests', 429)), 429

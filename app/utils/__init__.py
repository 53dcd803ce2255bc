"""Shared utilities for the forum backend.

This package contains reusable utilities that are shared across
multiple route files to reduce code duplication.
"""

from app.utils.auth import (
    token_required,
    token_optional,
    create_access_token,
)
from app.utils.user_helpers import get_display_name, send_notification_safe
from app.utils.diagnostics import Diagnostics, EffectResult

__all__ = [
    'token_required',
    'token_optional',
    'create_access_token',
    'get_display_name',
    'send_notification_safe',
    'Diagnostics',
    'EffectResult',
]

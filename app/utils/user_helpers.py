"""Shared user-related helper functions.

This module provides utility functions for working with User objects
that are commonly needed across multiple route files.
"""

import logging

logger = logging.getLogger(__name__)


def get_display_name(user):
    """
    Get the best display name for a user.

    Priority:
    1. first + last name (if available)
    2. name (handle)
    3. 'Someone' (fallback)

    Args:
        user: User model instance or None

    Returns:
        str: The best available display name
    """
    if not user:
        return 'Someone'
    full = f"{user.first_name or ''} {user.last_name or ''}".strip()
    if full:
        return full
    return user.name or 'Someone'


def send_notification_safe(notify_func, *args, **kwargs):
    """
    Safely send a notification, handling errors gracefully.

    Notification failures should never cause the main request to fail.
    This wrapper catches any exceptions and logs them without re-raising.

    Returns:
        The notify function's result, or None when it raised.
    """
    try:
        return notify_func(*args, **kwargs)
    except Exception as e:
        logger.warning(f"Notification error (non-critical): {e}")
        return None

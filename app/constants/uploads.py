"""Attachment MIME detection by file extension."""

import os
from urllib.parse import urlparse

DEFAULT_MIME_TYPE = 'application/octet-stream'

MIME_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'heic': 'image/heic',
    'svg': 'image/svg+xml',
    'bmp': 'image/bmp',
    'pdf': 'application/pdf',
}


def filename_from_url(url: str) -> str:
    """Last path segment of ``url``, or 'attachment' when there is none."""
    path = urlparse(url).path
    name = os.path.basename(path.rstrip('/'))
    return name or 'attachment'


def mime_type_for(filename: str) -> str:
    _, ext = os.path.splitext(filename or '')
    return MIME_TYPES.get(ext.lstrip('.').lower(), DEFAULT_MIME_TYPE)

"""Shared constants for the application."""

from app.constants.categories import (
    LEGACY_CATEGORIES,
    DEFAULT_CATEGORY_NAME,
    FALLBACK_KEYWORDS,
    FALLBACK_CONFIDENCE_MATCHED,
    FALLBACK_CONFIDENCE_UNMATCHED,
    CLIENT_SUGGESTION_CONFIDENCE,
)
from app.constants.languages import ENGLISH, SUPPORTED_LANGUAGES, is_english
from app.constants.uploads import DEFAULT_MIME_TYPE, MIME_TYPES, mime_type_for, filename_from_url

__all__ = [
    'LEGACY_CATEGORIES',
    'DEFAULT_CATEGORY_NAME',
    'FALLBACK_KEYWORDS',
    'FALLBACK_CONFIDENCE_MATCHED',
    'FALLBACK_CONFIDENCE_UNMATCHED',
    'CLIENT_SUGGESTION_CONFIDENCE',
    'ENGLISH',
    'SUPPORTED_LANGUAGES',
    'is_english',
    'DEFAULT_MIME_TYPE',
    'MIME_TYPES',
    'mime_type_for',
    'filename_from_url',
]

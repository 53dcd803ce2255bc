"""AI classification and translation of post content (Google Gemini).

The Gemini REST API is called through ``requests``. Translations are cached
in ``TranslationCache``. A circuit breaker stops calling the API for a
cooldown period after repeated failures.
"""
import hashlib
import json
import logging
import os
import re
import time
from dataclasses import dataclass, field

import requests

from app.constants import (
    DEFAULT_CATEGORY_NAME,
    ENGLISH,
    FALLBACK_KEYWORDS,
    LEGACY_CATEGORIES,
)
from app.constants.categories import (
    FALLBACK_CONFIDENCE_MATCHED,
    FALLBACK_CONFIDENCE_UNMATCHED,
)

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.environ.get('GOOGLE_GEMINI_API_KEY', '')
GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-2.5-flash')
GEMINI_URL = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'
AI_REQUEST_TIMEOUT = float(os.environ.get('AI_REQUEST_TIMEOUT', '15'))

GENERATION_CONFIG = {
    'temperature': 0.7,
    'topP': 0.8,
    'topK': 40,
}

# Circuit breaker: after N consecutive failures, pause for a cooldown
_consecutive_failures = 0
_MAX_CONSECUTIVE_FAILURES = 3
_failure_cooldown_until = 0
_COOLDOWN_SECONDS = 300

# Pairs of categories reinforced when the translated text mentions both domains
_DOMAIN_WORDS = {
    'Construction': ('construction', 'building', 'engineering'),
    'Business': ('business', 'company', 'budgeting', 'management'),
    'Career': ('career', 'job', 'freelance', 'consultant'),
    'Design': ('design', 'interior', 'architecture'),
    'Academic': ('degree', 'student', 'university', 'study'),
}
_REINFORCED_PAIRS = (
    ('Construction', 'Business'),
    ('Career', 'Academic'),
    ('Career', 'Business'),
    ('Design', 'Construction'),
)


class ClassificationError(Exception):
    """The AI service is not configured or did not return a usable answer."""


@dataclass
class Translation:
    translated_text: str
    detected_language: str


@dataclass
class Classification:
    """Result of classifying a post against the available category names."""

    category: str
    categories: list = field(default_factory=list)
    tags: list = field(default_factory=list)
    confidence: float = 0.0
    original_language: str = ENGLISH
    translated_content: str = ''


def is_ai_enabled() -> bool:
    return bool(GEMINI_API_KEY and GEMINI_API_KEY.strip())


def _is_circuit_open() -> bool:
    global _consecutive_failures, _failure_cooldown_until

    if _consecutive_failures >= _MAX_CONSECUTIVE_FAILURES:
        if time.time() < _failure_cooldown_until:
            return True
        _consecutive_failures = 0
        _failure_cooldown_until = 0
        logger.info("[AI] Circuit breaker reset, retrying")
    return False


def _record_success():
    global _consecutive_failures
    _consecutive_failures = 0


def _record_failure():
    global _consecutive_failures, _failure_cooldown_until
    _consecutive_failures += 1
    if _consecutive_failures >= _MAX_CONSECUTIVE_FAILURES:
        _failure_cooldown_until = time.time() + _COOLDOWN_SECONDS
        logger.warning(
            f"[AI] Gemini failed {_consecutive_failures} times in a row. "
            f"Pausing for {_COOLDOWN_SECONDS}s."
        )


def extract_json(text: str):
    """Parse JSON from a model reply, tolerating markdown code fences."""
    try:
        return json.loads(text.strip())
    except (json.JSONDecodeError, AttributeError):
        pass
    match = re.search(r'```(?:json)?\s*([\s\S]*?)```', text or '')
    candidate = match.group(1).strip() if match else (text or '').strip()
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        raise ClassificationError('Invalid JSON response from AI')


def _generate(prompt: str) -> str:
    """Send ``prompt`` to Gemini and return the reply text."""
    if not is_ai_enabled():
        raise ClassificationError('GOOGLE_GEMINI_API_KEY is not configured')
    if _is_circuit_open():
        raise ClassificationError('AI service temporarily disabled after repeated failures')

    try:
        response = requests.post(
            GEMINI_URL.format(model=GEMINI_MODEL),
            params={'key': GEMINI_API_KEY},
            json={
                'contents': [{'parts': [{'text': prompt}]}],
                'generationConfig': GENERATION_CONFIG,
            },
            timeout=AI_REQUEST_TIMEOUT,
        )
        result = response.json()
    except requests.Timeout:
        _record_failure()
        raise ClassificationError('Gemini request timed out')
    except (requests.RequestException, ValueError) as e:
        _record_failure()
        raise ClassificationError(f'Gemini request failed: {e}')

    if 'error' in result:
        _record_failure()
        raise ClassificationError(f"Gemini error: {result['error'].get('message', 'unknown')}")

    try:
        text = result['candidates'][0]['content']['parts'][0]['text']
    except (KeyError, IndexError, TypeError):
        _record_failure()
        raise ClassificationError('Gemini returned an unexpected response format')

    _record_success()
    return text


def get_text_hash(text: str) -> str:
    return hashlib.sha256(text.encode('utf-8')).hexdigest()[:32]


def _get_cached_translation(text: str):
    try:
        from app.models import TranslationCache
        cached = TranslationCache.query.filter_by(
            text_hash=get_text_hash(text),
            target_lang='en'
        ).first()
        if cached:
            return Translation(cached.translated_text, cached.detected_language)
    except Exception as e:
        logger.debug(f"[AI] Cache lookup error: {e}")
    return None


def _cache_translation(text: str, translation: Translation):
    from app import db
    from app.models import TranslationCache
    try:
        text_hash = get_text_hash(text)
        if TranslationCache.query.filter_by(text_hash=text_hash, target_lang='en').first():
            return
        db.session.add(TranslationCache(
            text_hash=text_hash,
            detected_language=translation.detected_language,
            target_lang='en',
            original_text=text[:500],
            translated_text=translation.translated_text,
        ))
        db.session.commit()
    except Exception as e:
        logger.debug(f"[AI] Cache storage error: {e}")
        db.session.rollback()


def translate_to_english(text: str) -> Translation:
    """Detect the language of ``text`` and translate it to English.

    Falls back to the original text (reported as English) on any failure.
    """
    if not text or not text.strip():
        return Translation(text, ENGLISH)

    cached = _get_cached_translation(text)
    if cached:
        return cached

    prompt = (
        "Detect the language of the following text and translate it to English if it's not "
        "already in English. If the text is already in English, return the original text.\n\n"
        f'Text: "{text}"\n\n'
        "Return the response in this exact JSON format:\n"
        '{\n  "translatedText": "the translated or original text",\n'
        '  "detectedLanguage": "the detected language name in English"\n}'
    )

    try:
        data = extract_json(_generate(prompt))
    except ClassificationError as e:
        logger.warning(f"[AI] Translation skipped: {e}")
        return Translation(text, ENGLISH)

    if not isinstance(data, dict) or not data.get('translatedText') or not data.get('detectedLanguage'):
        logger.warning(f"[AI] Translation response missing required fields: {data}")
        return Translation(text, ENGLISH)

    translation = Translation(data['translatedText'], data['detectedLanguage'])
    if translation.detected_language.lower() != 'english':
        _cache_translation(text, translation)
    logger.info(f"[AI] Translated from {translation.detected_language}")
    return translation


def _match_categories(suggested, available):
    lookup = {name.lower(): name for name in available}
    matched = []
    for name in suggested:
        if not isinstance(name, str):
            continue
        found = lookup.get(name.strip().lower())
        if found and found not in matched:
            matched.append(found)

    if matched:
        return matched

    # Partial match on the first suggestion
    if suggested and isinstance(suggested[0], str):
        first = suggested[0].strip().lower()
        for name in available:
            if name.lower() in first or first in name.lower():
                return [name]

    fallback = lookup.get(DEFAULT_CATEGORY_NAME.lower())
    return [fallback or available[0]]


def _reinforce_domains(categories, translated_text, available):
    text = translated_text.lower()
    present = {
        name: any(word in text for word in words)
        for name, words in _DOMAIN_WORDS.items()
    }
    result = list(categories)
    for first, second in _REINFORCED_PAIRS:
        if present[first] and present[second] and first in available and second in available:
            for name in (first, second):
                if name not in result:
                    result.append(name)
    return result


def classify_post_strict(content: str, available_categories=None) -> Classification:
    """Classify ``content``. Raises ClassificationError when the AI cannot answer."""
    categories = [c for c in (available_categories or LEGACY_CATEGORIES) if c and c.strip()]
    if not categories:
        categories = list(LEGACY_CATEGORIES)

    translation = translate_to_english(content)

    prompt = (
        "Categorize this content into the relevant categories (1-3) when applicable.\n\n"
        f"AVAILABLE CATEGORIES: {', '.join(categories)}\n\n"
        f'CONTENT: "{translation.translated_text}"\n\n'
        "- construction, engineering, building, architecture -> Construction\n"
        "- starting companies, budgeting, consulting -> Business\n"
        "- career advice, job seeking, professional development -> Career\n"
        "- design, aesthetics, visual concepts -> Design\n"
        "- academic, research, educational content -> Academic\n"
        "- tutorials, guides, informational content -> Informative\n\n"
        "Respond with JSON only:\n"
        '{"categories": ["Category1", "Category2"], "tags": ["tag"], "confidence": 0.9}'
    )

    data = extract_json(_generate(prompt))
    if not isinstance(data, dict):
        raise ClassificationError('AI response is not an object')

    if isinstance(data.get('categories'), list):
        suggested = data['categories']
    elif data.get('category'):
        suggested = [data['category']]
    else:
        suggested = []

    matched = _match_categories(suggested, categories)
    final = _reinforce_domains(matched, translation.translated_text, categories)

    try:
        confidence = float(data.get('confidence', 0.5))
    except (TypeError, ValueError):
        confidence = 0.5

    tags = data.get('tags') if isinstance(data.get('tags'), list) else []

    classification = Classification(
        category=final[0],
        categories=final,
        tags=[str(t) for t in tags],
        confidence=min(max(confidence, 0.0), 1.0),
        original_language=translation.detected_language,
        translated_content=translation.translated_text,
    )
    logger.info(
        f"[AI] Classified as {classification.categories} "
        f"(confidence {classification.confidence:.2f}, language {classification.original_language})"
    )
    return classification


def fallback_classification(content: str, primary_name: str, category_names) -> Classification:
    """Keyword-table classification used when the AI service fails.

    Adds every existing category whose keywords occur in ``content`` as a
    secondary category behind ``primary_name``.
    """
    text = (content or '').lower()
    existing = {name.lower(): name for name in category_names}

    categories = [primary_name]
    for category_name, keywords in FALLBACK_KEYWORDS.items():
        name = existing.get(category_name.lower())
        if not name or name.lower() == (primary_name or '').lower():
            continue
        if any(keyword in text for keyword in keywords) and name not in categories:
            categories.append(name)

    matched = len(categories) > 1
    return Classification(
        category=primary_name,
        categories=categories,
        confidence=FALLBACK_CONFIDENCE_MATCHED if matched else FALLBACK_CONFIDENCE_UNMATCHED,
        original_language=ENGLISH,
        translated_content=content,
    )

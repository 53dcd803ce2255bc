"""Process-local TTL cache for GET /api/posts responses.

Entries are keyed by the normalized listing query and carry an ETag derived
from the payload, so clients can revalidate with ``If-None-Match``. Nothing
here is authoritative: any failure degrades to a cache miss.
"""

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict

from flask import current_app

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60
DEFAULT_MAX_ENTRIES = 100

# Defaults substituted for absent query parameters
KEY_DEFAULTS = (
    ('page', 1),
    ('limit', 10),
    ('category', 'all'),
    ('sortBy', 'createdAt'),
    ('sortOrder', 'desc'),
    ('authorId', 'all'),
)


class CacheEntry:
    """Snapshot of a response payload."""

    __slots__ = ('data', 'timestamp', 'etag')

    def __init__(self, data, timestamp, etag):
        self.data = data
        self.timestamp = timestamp
        self.etag = etag

    def __repr__(self):
        return f'<CacheEntry etag={self.etag}>'


def make_key(page=None, limit=None, category=None, sort_by=None, sort_order=None, author_id=None) -> str:
    """Build a deterministic cache key for a listing query.

    Parameters are emitted in a fixed order with defaults filled in, so two
    requests asking for the same thing always collide.
    """
    values = {
        'page': page,
        'limit': limit,
        'category': category,
        'sortBy': sort_by,
        'sortOrder': sort_order,
        'authorId': author_id,
    }
    parts = []
    for name, default in KEY_DEFAULTS:
        value = values[name]
        if value is None or value == '':
            value = default
        parts.append(f"{name}={value}")
    return 'posts:' + '&'.join(parts)


def compute_etag(data) -> str:
    """Short content hash of a JSON-serializable payload."""
    try:
        serialized = json.dumps(data, sort_keys=True, default=str)
        digest = hashlib.sha256(serialized.encode('utf-8')).hexdigest()[:16]
    except (TypeError, ValueError) as e:
        logger.warning(f"[CACHE] Could not serialize payload for ETag: {e}")
        digest = format(int(time.time() * 1000), 'x')
    return f'"{digest}"'


def _normalize_etag(value):
    value = value.strip()
    if value.startswith('W/'):
        value = value[2:]
    return value.strip('"')


class ResponseCache:
    """TTL + capacity bounded cache with insertion-order eviction."""

    def __init__(self, ttl=DEFAULT_TTL_SECONDS, max_entries=DEFAULT_MAX_ENTRIES, clock=time.monotonic):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries = OrderedDict()
        self._lock = threading.Lock()
        self._clear_timer = None

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return key in self._entries

    make_key = staticmethod(make_key)

    def get(self, key):
        """Return the live entry for ``key`` or ``None``. Expired entries are evicted."""
        try:
            with self._lock:
                entry = self._entries.get(key)
                if entry is None:
                    return None
                if self._clock() - entry.timestamp > self.ttl:
                    del self._entries[key]
                    logger.debug(f"[CACHE] Expired {key}")
                    return None
                return entry
        except Exception as e:
            logger.warning(f"[CACHE] get failed for {key}: {e}")
            return None

    @staticmethod
    def is_not_modified(entry, if_none_match) -> bool:
        """True when the client's ``If-None-Match`` header matches the entry's ETag."""
        if entry is None or not if_none_match:
            return False
        if if_none_match.strip() == '*':
            return True
        wanted = _normalize_etag(entry.etag)
        return any(_normalize_etag(tag) == wanted for tag in if_none_match.split(','))

    def set(self, key, data):
        """Store ``data`` under ``key``. Returns the entry, or ``None`` on failure."""
        try:
            entry = CacheEntry(data, self._clock(), compute_etag(data))
            with self._lock:
                if key in self._entries:
                    del self._entries[key]
                while len(self._entries) >= self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug(f"[CACHE] Evicted {evicted}")
                self._entries[key] = entry
            return entry
        except Exception as e:
            logger.warning(f"[CACHE] set failed for {key}: {e}")
            return None

    def clear(self):
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        if count:
            logger.info(f"[CACHE] Cleared {count} cached responses")

    def schedule_clear(self, delay):
        """Clear after ``delay`` seconds; a newer call replaces a pending one."""
        if not delay or delay <= 0:
            self.clear()
            return
        with self._lock:
            if self._clear_timer is not None:
                self._clear_timer.cancel()
            timer = threading.Timer(delay, self.clear)
            timer.daemon = True
            self._clear_timer = timer
        timer.start()


def get_response_cache():
    return current_app.extensions['response_cache']


def invalidate_posts_cache():
    """Debounced clear of cached listings after a write."""
    get_response_cache().schedule_clear(current_app.config['CACHE_CLEAR_DEBOUNCE_SECONDS'])

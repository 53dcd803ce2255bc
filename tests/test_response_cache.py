"""
Tests for the posts response cache.
"""

from app.services.response_cache import ResponseCache, compute_etag, make_key


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestMakeKey:
    """Tests for cache key construction"""

    def test_defaults_fill_missing_parameters(self):
        assert make_key() == (
            'posts:page=1&limit=10&category=all&sortBy=createdAt&sortOrder=desc&authorId=all'
        )

    def test_same_query_same_key(self):
        a = make_key(page=2, limit=20, sort_by='upvotes')
        b = make_key(sort_by='upvotes', limit=20, page=2, category=None)
        assert a == b

    def test_different_query_different_key(self):
        assert make_key(page=1) != make_key(page=2)


class TestResponseCache:
    """Tests for TTL, capacity and ETag behaviour"""

    def test_get_returns_stored_entry(self):
        cache = ResponseCache(ttl=60, max_entries=100, clock=FakeClock())
        cache.set('k', {'posts': []})

        entry = cache.get('k')

        assert entry.data == {'posts': []}
        assert entry.etag == compute_etag({'posts': []})

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(ttl=60, max_entries=100, clock=clock)
        cache.set('k', {'posts': []})

        clock.advance(61)

        assert cache.get('k') is None
        assert 'k' not in cache

    def test_entry_still_live_at_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(ttl=60, max_entries=100, clock=clock)
        cache.set('k', {'posts': []})

        clock.advance(60)

        assert cache.get('k') is not None

    def test_oldest_entry_evicted_at_capacity(self):
        cache = ResponseCache(ttl=60, max_entries=100, clock=FakeClock())
        for i in range(101):
            cache.set(f'key-{i}', {'i': i})

        assert len(cache) == 100
        assert cache.get('key-0') is None
        assert cache.get('key-100') is not None

    def test_etag_match_is_not_modified(self):
        cache = ResponseCache(clock=FakeClock())
        entry = cache.set('k', {'posts': [1]})

        assert ResponseCache.is_not_modified(entry, entry.etag)
        assert ResponseCache.is_not_modified(entry, f'W/{entry.etag}')
        assert not ResponseCache.is_not_modified(entry, '"something-else"')
        assert not ResponseCache.is_not_modified(entry, None)

    def test_etag_changes_with_payload(self):
        assert compute_etag({'a': 1}) != compute_etag({'a': 2})

    def test_schedule_clear_without_delay_clears_immediately(self):
        cache = ResponseCache(clock=FakeClock())
        cache.set('k', {})

        cache.schedule_clear(0)

        assert len(cache) == 0

    def test_schedule_clear_with_delay_is_deferred(self):
        cache = ResponseCache(clock=FakeClock())
        cache.set('k', {})

        cache.schedule_clear(30)
        try:
            assert len(cache) == 1
        finally:
            cache._clear_timer.cancel()

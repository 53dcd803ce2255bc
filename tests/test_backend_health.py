"""
Backend Health Test Suite
=========================
Smoke tests for the app factory, error handling and background jobs.

Run with:
    pytest tests/test_backend_health.py -v
"""

import pytest

from app.errors import ConflictError, is_connectivity_error
from app.services.tasks import BackgroundTaskQueue
from app.utils.diagnostics import Diagnostics


# ============================================================
#  HEALTH & SMOKE TESTS
# ============================================================

class TestHealthEndpoints:
    """Verify the server boots and responds."""

    def test_root_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json()['status'] == 'ok'

    def test_unknown_route_is_json_404(self, client):
        resp = client.get('/api/does-not-exist')
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'NOT_FOUND'

    def test_api_routes_registered(self, app):
        rules = {rule.rule for rule in app.url_map.iter_rules()}
        for expected in (
            '/api/posts',
            '/api/posts/<post_id>',
            '/api/posts/<post_id>/vote',
            '/api/posts/<post_id>/comments',
            '/api/posts/<post_id>/comments/count',
            '/api/users/<user_id>/export-zip-data',
            '/api/notifications/email',
            '/api/auth/login',
            '/api/categories',
        ):
            assert expected in rules


# ============================================================
#  ERROR HANDLING
# ============================================================

class TestErrors:
    """Error classification."""

    @pytest.mark.parametrize('message', [
        'could not connect to server',
        'Connection refused',
        'canceling statement due to statement timeout: timed out',
        'database is locked',
    ])
    def test_connectivity_messages_detected(self, message):
        assert is_connectivity_error(RuntimeError(message))

    def test_other_errors_not_connectivity(self):
        assert not is_connectivity_error(ValueError('division by zero'))

    def test_api_error_carries_code(self):
        error = ConflictError('Vote already recorded', code='DUPLICATE_VOTE')
        assert error.status_code == 409
        assert error.code == 'DUPLICATE_VOTE'


# ============================================================
#  BACKGROUND WORK
# ============================================================

class TestBackgroundTasks:
    """Background job runner and best-effort effects."""

    def test_synchronous_queue_runs_job(self, app):
        queue = BackgroundTaskQueue(app, synchronous=True)
        results = []

        queue.publish('collect', results.append, 42)

        assert results == [42]

    def test_failing_job_is_contained(self, app):
        queue = BackgroundTaskQueue(app, synchronous=True)

        def boom():
            raise RuntimeError('job failed')

        assert queue.publish('boom', boom) is None

    def test_threaded_queue_runs_job(self, app):
        queue = BackgroundTaskQueue(app, max_workers=1)
        try:
            future = queue.publish('double', lambda x: x * 2, 21)
            assert future.result(timeout=5) == 42
        finally:
            queue.shutdown()

    def test_diagnostics_records_failures(self):
        diagnostics = Diagnostics('[TEST]')

        ok = diagnostics.attempt('fine', lambda: 1)
        failed = diagnostics.attempt('broken', lambda: 1 / 0)

        assert ok.ok and ok.value == 1
        assert not failed.ok
        assert not diagnostics.ok
        assert diagnostics.to_list() == [{'effect': 'broken', 'ok': False, 'error': 'division by zero'}]

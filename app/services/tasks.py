"""Background job queue for work that must not delay an HTTP response.

Request handlers publish jobs (badge checks, mention dispatch, AI refinement);
a small worker pool runs each job inside an application context. Jobs own
their error handling: a failing job is logged and never reaches the client.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)


class BackgroundTaskQueue:
    """Fire-and-forget job runner bound to a Flask app."""

    def __init__(self, app, max_workers=4, synchronous=False):
        self.app = app
        self.synchronous = synchronous
        self._executor = None if synchronous else ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='forum-bg'
        )

    def publish(self, name, func, *args, **kwargs):
        """Schedule ``func(*args, **kwargs)``. Returns a Future, or None in synchronous mode."""
        if self.synchronous:
            self._run(name, func, args, kwargs)
            return None
        return self._executor.submit(self._run, name, func, args, kwargs)

    def _run(self, name, func, args, kwargs):
        with self.app.app_context():
            try:
                result = func(*args, **kwargs)
                logger.info(f"[TASKS] {name} finished")
                return result
            except Exception as e:
                logger.error(f"[TASKS] {name} failed: {e}", exc_info=True)
                try:
                    from app import db
                    db.session.rollback()
                except Exception:
                    logger.debug("[TASKS] rollback after failure also failed")
                return None
            finally:
                from app import db
                db.session.remove()

    def shutdown(self, wait=True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


def get_task_queue(app=None):
    from flask import current_app
    return (app or current_app).extensions['task_queue']

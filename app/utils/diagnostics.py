"""Outcome tracking for best-effort side effects.

Auxiliary work (category counters, attachments, notifications) must never
fail the primary write. Each effect runs through ``Diagnostics.attempt``,
which records success or failure instead of raising, so callers can log
and report what went wrong without wrapping every call in try/except.
"""

import logging

logger = logging.getLogger(__name__)


class EffectResult:
    """Outcome of one auxiliary effect."""

    __slots__ = ('name', 'ok', 'value', 'error')

    def __init__(self, name, ok, value=None, error=None):
        self.name = name
        self.ok = ok
        self.value = value
        self.error = error

    def to_dict(self):
        return {'effect': self.name, 'ok': self.ok, 'error': self.error}

    def __repr__(self):
        state = 'ok' if self.ok else f'failed: {self.error}'
        return f'<EffectResult {self.name} {state}>'


class Diagnostics:
    """Collects EffectResults for a single request or job."""

    def __init__(self, context=''):
        self.context = context
        self.results = []

    def attempt(self, name, func, *args, **kwargs):
        """Run ``func`` and record the outcome. Returns the EffectResult."""
        try:
            value = func(*args, **kwargs)
            result = EffectResult(name, True, value=value)
        except Exception as e:
            logger.warning(f"{self.context} {name} failed (non-critical): {e}".strip())
            result = EffectResult(name, False, error=str(e))
        self.results.append(result)
        return result

    @property
    def failures(self):
        return [r for r in self.results if not r.ok]

    @property
    def ok(self):
        return not self.failures

    def to_list(self):
        return [r.to_dict() for r in self.failures]

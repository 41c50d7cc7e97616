"""Process-local services: event history, oracle usage limits."""

from surveilens.infrastructure.event_history import EventHistory
from surveilens.infrastructure.usage import UsageLimitExceeded, UsageTracker

__all__ = ["EventHistory", "UsageLimitExceeded", "UsageTracker"]

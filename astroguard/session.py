"""
Conversational query session.

Wraps the query processor for multi-turn use: the previous result's intent is
handed to the next query, every query is written to the audit log and an
optional fixed delay simulates processing latency.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Optional, Sequence

from .engine import QueryProcessor
from .models import QueryIntent, QueryResult, SecurityEvent
from .storage import AuditLog

logger = logging.getLogger(__name__)


class QuerySession:
    """Stateful conversation over a caller-owned event dataset.

    Query processing in ask() is serialized so every query sees the intent of
    the one before it. The processing delay is spent outside the lock.
    """

    def __init__(
        self,
        events: Sequence[SecurityEvent],
        audit_log: Optional[AuditLog] = None,
        processing_delay: float = 0.0,
        processor: Optional[QueryProcessor] = None,
    ):
        """Initialize the session.

        Args:
            events: The dataset to query
            audit_log: Audit log to record into (a fresh one by default)
            processing_delay: Seconds to wait before processing each query
            processor: Query processor to use
        """
        self.events = tuple(events)
        self.audit_log = audit_log if audit_log is not None else AuditLog()
        self.processing_delay = processing_delay
        self.processor = processor or QueryProcessor()
        self._lock = threading.Lock()
        self._last_result: Optional[QueryResult] = None

    @property
    def previous_intent(self) -> Optional[QueryIntent]:
        with self._lock:
            return self._last_result.intent if self._last_result else None

    @property
    def last_result(self) -> Optional[QueryResult]:
        return self._last_result

    def ask(self, query: str, now: Optional[datetime] = None) -> QueryResult:
        """Process a query in the context of the conversation so far.

        Args:
            query: The free-text query
            now: Reference time for time-range filters

        Returns:
            The QueryResult, also recorded in the audit log
        """
        if self.processing_delay > 0:
            time.sleep(self.processing_delay)

        with self._lock:
            previous = self._last_result.intent if self._last_result else None
            result = self.processor.process(query, self.events, previous, now)
            self.audit_log.record(query, result)
            self._last_result = result

        logger.debug(f"Recorded query {query!r} ({len(self.audit_log)} audit entries)")
        return result

    def reset(self) -> None:
        """Forget the conversation context (the audit log is kept)."""
        with self._lock:
            self._last_result = None
        logger.debug("Query session context reset")

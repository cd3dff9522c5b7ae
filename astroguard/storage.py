"""
Thread-safe audit log of processed queries.

Keeps entries newest first. The JSON export uses the schema:
{
    "id": string,
    "timestamp": ISO8601 datetime,
    "query": string,
    "intent": {"action": string, "entities": object, "confidence": number},
    "dslQuery": string,
    "kqlQuery": string,
    "summary": string,
    "stats": {"total", "highSeverity", "mediumSeverity", "lowSeverity"},
    "eventCount": integer
}
"""

import itertools
import json
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import AuditLogEntry, QueryResult


class AuditLog:
    """Thread-safe in-memory audit trail."""

    def __init__(self, max_entries: Optional[int] = None):
        """Initialize the audit log.

        Args:
            max_entries: Oldest entries are dropped beyond this size (None keeps all)
        """
        self.max_entries = max_entries
        self._lock = threading.RLock()
        self._entries: List[AuditLogEntry] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(
        self,
        query: str,
        result: QueryResult,
        timestamp: Optional[datetime] = None,
    ) -> AuditLogEntry:
        """Record a processed query.

        Args:
            query: The query text
            result: The result it produced
            timestamp: When it was processed (defaults to now)

        Returns:
            The stored entry
        """
        with self._lock:
            entry = AuditLogEntry(
                id=f"audit-{next(self._ids)}",
                timestamp=timestamp or datetime.now(),
                query=query,
                result=result,
            )
            self._entries.insert(0, entry)
            if self.max_entries is not None:
                del self._entries[self.max_entries:]
            return entry

    def get_all(self) -> List[AuditLogEntry]:
        """Get all entries, newest first."""
        with self._lock:
            return list(self._entries)

    def get_by_id(self, entry_id: str) -> Optional[AuditLogEntry]:
        """Get an entry by ID.

        Args:
            entry_id: The entry ID

        Returns:
            The entry or None if not found
        """
        with self._lock:
            for entry in self._entries:
                if entry.id == entry_id:
                    return entry
            return None

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            return removed

    def stats(self) -> Dict[str, Any]:
        """Summarize the audit trail.

        Returns:
            Total queries, average confidence as a rounded percentage and the
            total number of events returned across all queries
        """
        with self._lock:
            total = len(self._entries)
            if total:
                avg_confidence = round(
                    sum(e.result.intent.confidence for e in self._entries) / total * 100
                )
            else:
                avg_confidence = 0
            return {
                'totalQueries': total,
                'avgConfidence': avg_confidence,
                'totalEventsReturned': sum(len(e.result.events) for e in self._entries),
            }

    def export(self) -> str:
        """Export all entries as a JSON string."""
        with self._lock:
            return json.dumps([entry.to_dict() for entry in self._entries], indent=2)

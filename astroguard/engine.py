"""
Query processing engine.

Applies a parsed intent to an event list as a chain of independent filters,
computes severity statistics and renders a one-sentence summary. Also hosts
the event explorer used to search, sort and paginate the raw dataset.
"""

import logging
import math
import time
from datetime import datetime, time as dt_time, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from .models import EventPage, QueryIntent, QueryResult, QueryStats, SecurityEvent
from .parser import IntentParser
from .translator import generate_dsl, generate_kql

logger = logging.getLogger(__name__)

ROLLING_WINDOWS: Dict[str, timedelta] = {
    'last_hour': timedelta(hours=1),
    'last_24_hours': timedelta(hours=24),
    'last_7_days': timedelta(days=7),
    'last_30_days': timedelta(days=30),
}

SEVERITY_ORDER = {'high': 3, 'medium': 2, 'low': 1}

SORT_KEYS: Dict[str, Callable[[SecurityEvent], object]] = {
    'timestamp': lambda e: e.timestamp,
    'severity': lambda e: SEVERITY_ORDER.get(e.severity, 0),
    'risk_score': lambda e: e.risk_score,
}


def filter_by_time_range(
    events: Sequence[SecurityEvent],
    time_range: str,
    now: Optional[datetime] = None,
) -> List[SecurityEvent]:
    """Keep events inside the window named by ``time_range``.

    Args:
        events: Events to filter
        time_range: One of yesterday, today, last_hour, last_24_hours,
            last_7_days, last_30_days
        now: Reference time (defaults to the current local time)

    Returns:
        Matching events in input order; unknown ranges keep everything
    """
    now = now or datetime.now()

    if time_range == 'yesterday':
        day = now.date() - timedelta(days=1)
        start = datetime.combine(day, dt_time.min)
        end = datetime.combine(day, dt_time.max)
    elif time_range == 'today':
        start = datetime.combine(now.date(), dt_time.min)
        end = now
    elif time_range in ROLLING_WINDOWS:
        start = now - ROLLING_WINDOWS[time_range]
        end = now
    else:
        return list(events)

    return [e for e in events if start <= e.timestamp <= end]


def filter_events(
    events: Sequence[SecurityEvent],
    intent: QueryIntent,
    now: Optional[datetime] = None,
) -> List[SecurityEvent]:
    """Apply the intent's entities as a sequence of filters.

    Absent entities skip their filter, so an empty intent returns every event.
    """
    entities = intent.entities
    filtered = list(events)

    if entities.event_type is not None:
        filtered = [e for e in filtered if e.event_type in entities.event_type]

    if entities.time_range is not None:
        filtered = filter_by_time_range(filtered, entities.time_range, now)

    if entities.severity is not None:
        filtered = [e for e in filtered if e.severity in entities.severity]

    if entities.username is not None:
        username = entities.username.lower()
        filtered = [e for e in filtered if username in e.username.lower()]

    if entities.ip is not None:
        filtered = [e for e in filtered if entities.ip in e.ip]

    return filtered


def calculate_stats(events: Sequence[SecurityEvent]) -> QueryStats:
    return QueryStats(
        total=len(events),
        high_severity=sum(1 for e in events if e.severity == 'high'),
        medium_severity=sum(1 for e in events if e.severity == 'medium'),
        low_severity=sum(1 for e in events if e.severity == 'low'),
    )


def generate_summary(intent: QueryIntent, stats: QueryStats) -> str:
    """Describe a result in one sentence.

    Example:
        Found 12 security events matching type: malware detection from
        last 7_days (12 high severity).
    """
    entities = intent.entities
    parts = [f"Found {stats.total} security events"]

    if entities.event_type:
        types = ', '.join(t.replace('_', ' ', 1) for t in entities.event_type)
        parts.append(f"matching type: {types}")

    if entities.time_range:
        parts.append(f"from {entities.time_range.replace('_', ' ', 1)}")

    severity_parts = []
    if stats.high_severity > 0:
        severity_parts.append(f"{stats.high_severity} high")
    if stats.medium_severity > 0:
        severity_parts.append(f"{stats.medium_severity} medium")
    if stats.low_severity > 0:
        severity_parts.append(f"{stats.low_severity} low")

    if severity_parts:
        parts.append(f"({', '.join(severity_parts)} severity)")

    return ' '.join(parts) + '.'


class QueryProcessor:
    """Processes natural language queries against an event list."""

    def __init__(self, parser: Optional[IntentParser] = None):
        """Initialize the processor.

        Args:
            parser: Intent parser to use (defaults to IntentParser())
        """
        self.parser = parser or IntentParser()

    def process(
        self,
        query: str,
        events: Sequence[SecurityEvent],
        previous_intent: Optional[QueryIntent] = None,
        now: Optional[datetime] = None,
    ) -> QueryResult:
        """Process a query against a list of events.

        Args:
            query: The free-text query
            events: Events to search
            previous_intent: Intent of the previous conversation turn
            now: Reference time for time-range filters

        Returns:
            QueryResult with intent, rendered queries, matches and stats
        """
        start_time = time.time()

        intent = self.parser.parse(query or '', previous_intent)
        dsl_query = generate_dsl(intent)
        kql_query = generate_kql(intent)

        matched = filter_events(events, intent, now)
        stats = calculate_stats(matched)
        summary = generate_summary(intent, stats)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Processed query {query!r}: action={intent.action} "
            f"confidence={intent.confidence} matches={stats.total}/{len(events)} "
            f"({elapsed_ms:.2f} ms)"
        )

        return QueryResult(
            intent=intent,
            dsl_query=dsl_query,
            kql_query=kql_query,
            summary=summary,
            events=matched,
            stats=stats,
        )


def process_query(
    query: str,
    events: Sequence[SecurityEvent],
    previous_intent: Optional[QueryIntent] = None,
    now: Optional[datetime] = None,
) -> QueryResult:
    """Process a natural language query.

    Args:
        query: The free-text query
        events: Events to search
        previous_intent: Intent of the previous turn, for 'filter' follow-ups
        now: Reference time for time-range filters

    Returns:
        The QueryResult; never raises for any query text
    """
    return QueryProcessor().process(query, events, previous_intent, now)


def search_events(
    events: Sequence[SecurityEvent],
    search: str = '',
    severity: str = 'all',
    event_type: str = 'all',
    sort_by: str = 'timestamp',
    sort_order: str = 'desc',
    page: int = 1,
    page_size: int = 25,
) -> EventPage:
    """Search, sort and paginate events for the event explorer.

    Args:
        events: Events to search
        search: Substring matched against id, username, location and ip
        severity: Severity to keep, or 'all'
        event_type: Event type to keep, or 'all'
        sort_by: timestamp, severity or risk_score
        sort_order: asc or desc
        page: 1-based page number
        page_size: Events per page

    Returns:
        The requested EventPage

    Raises:
        ValueError: If sort or paging arguments are invalid
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Invalid sort field: {sort_by}")
    if sort_order not in ('asc', 'desc'):
        raise ValueError(f"Invalid sort order: {sort_order}")
    if page < 1 or page_size < 1:
        raise ValueError("Page and page size must be positive")

    term = search.lower()

    def matches(event: SecurityEvent) -> bool:
        matches_search = (
            term in event.id.lower()
            or term in event.username.lower()
            or search in event.ip
            or term in event.location.lower()
        )
        matches_severity = severity == 'all' or event.severity == severity
        matches_type = event_type == 'all' or event.event_type == event_type
        return matches_search and matches_severity and matches_type

    filtered = [e for e in events if matches(e)]
    ordered = sorted(filtered, key=SORT_KEYS[sort_by], reverse=(sort_order == 'desc'))

    total_pages = math.ceil(len(ordered) / page_size)
    offset = (page - 1) * page_size

    return EventPage(
        events=ordered[offset:offset + page_size],
        total=len(ordered),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )

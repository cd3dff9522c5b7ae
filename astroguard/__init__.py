"""
AstroGuard SIEM Assistant Package.

A keyword-driven natural language query assistant over synthetic security
events for satellite-operations security monitoring.
"""

from .engine import QueryProcessor, filter_events, process_query, search_events
from .generator import DEFAULT_EVENT_COUNT, generate_security_events
from .models import (
    AuditLogEntry,
    EventPage,
    QueryEntities,
    QueryIntent,
    QueryResult,
    QueryStats,
    SecurityEvent,
)
from .parser import IntentParser, parse_intent
from .reports import generate_report
from .session import QuerySession
from .storage import AuditLog
from .translator import generate_dsl, generate_kql

__all__ = [
    'AuditLog',
    'AuditLogEntry',
    'DEFAULT_EVENT_COUNT',
    'EventPage',
    'IntentParser',
    'QueryEntities',
    'QueryIntent',
    'QueryProcessor',
    'QueryResult',
    'QuerySession',
    'QueryStats',
    'SecurityEvent',
    'filter_events',
    'generate_dsl',
    'generate_kql',
    'generate_report',
    'generate_security_events',
    'parse_intent',
    'process_query',
    'search_events',
]

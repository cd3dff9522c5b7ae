"""
Data models for the AstroGuard SIEM assistant.

Defines dataclasses for security events, parsed query intents, query results
and audit log entries. Serialized field names (``eventType``, ``risk_score``,
``mitreAttack`` ...) are the contract with API and CLI consumers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


EVENT_TYPES = (
    'failed_login',
    'vpn_connection',
    'malware_detection',
    'successful_login',
    'firewall_block',
    'ground_station_access',
    'telemetry_data_access',
    'command_control_access',
    'satellite_comm_anomaly',
)

MISSION_CRITICAL_TYPES = (
    'ground_station_access',
    'telemetry_data_access',
    'command_control_access',
    'satellite_comm_anomaly',
)

SEVERITIES = ('high', 'medium', 'low')


def parse_timestamp(value: Any) -> datetime:
    """Coerce a timestamp value into a naive local datetime.

    Args:
        value: A datetime, ISO-8601 string or epoch seconds

    Returns:
        Naive datetime in local time

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            raise ValueError(f"Invalid timestamp: {value!r}")
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class SecurityEvent:
    """A single synthetic security event.

    Attributes:
        id: Sequential identifier (EVT-000001)
        timestamp: When the event happened (naive local time)
        event_type: One of EVENT_TYPES
        severity: One of SEVERITIES
        ip: Source address in dotted-quad form
        username: Account involved in the event
        location: City and country code (e.g. 'Bangalore, IN')
        details: Human readable cause
        risk_score: Integer risk in [0, 100]
        latitude: Latitude of the location
        longitude: Longitude of the location
        mitre_attack: Optional MITRE ATT&CK technique
        is_mission_critical: Whether the event type is mission-critical
    """
    id: str
    timestamp: datetime
    event_type: str
    severity: str
    ip: str
    username: str
    location: str
    details: str
    risk_score: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    mitre_attack: Optional[str] = None
    is_mission_critical: bool = False

    @property
    def is_domestic(self) -> bool:
        """Whether the event originated from an Indian location."""
        return self.location.endswith(', IN')

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to a JSON-friendly dictionary."""
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'eventType': self.event_type,
            'severity': self.severity,
            'ip': self.ip,
            'username': self.username,
            'location': self.location,
            'details': self.details,
            'risk_score': self.risk_score,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'mitreAttack': self.mitre_attack,
            'isMissionCritical': self.is_mission_critical,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SecurityEvent':
        """Build an event from its serialized form.

        Args:
            data: Dictionary as produced by to_dict()

        Returns:
            The reconstructed event

        Raises:
            ValueError: If a required field is missing or malformed
        """
        try:
            event_type = data['eventType']
            return cls(
                id=str(data['id']),
                timestamp=parse_timestamp(data['timestamp']),
                event_type=event_type,
                severity=data['severity'],
                ip=str(data['ip']),
                username=str(data['username']),
                location=str(data['location']),
                details=str(data.get('details', '')),
                risk_score=int(data['risk_score']),
                latitude=data.get('latitude'),
                longitude=data.get('longitude'),
                mitre_attack=data.get('mitreAttack'),
                is_mission_critical=bool(
                    data.get('isMissionCritical', event_type in MISSION_CRITICAL_TYPES)
                ),
            )
        except KeyError as e:
            raise ValueError(f"Event is missing required field {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Malformed event: {e}")


@dataclass
class QueryEntities:
    """Entities extracted from a free-text query.

    Every attribute is optional; None means the entity was not mentioned and
    the corresponding filter is skipped.
    """
    event_type: Optional[List[str]] = None
    time_range: Optional[str] = None
    severity: Optional[List[str]] = None
    username: Optional[str] = None
    ip: Optional[str] = None

    def is_empty(self) -> bool:
        return (
            self.event_type is None
            and self.time_range is None
            and self.severity is None
            and self.username is None
            and self.ip is None
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert entities to a dictionary, omitting absent ones."""
        data: Dict[str, Any] = {}
        if self.event_type is not None:
            data['eventType'] = list(self.event_type)
        if self.time_range is not None:
            data['timeRange'] = self.time_range
        if self.severity is not None:
            data['severity'] = list(self.severity)
        if self.username is not None:
            data['username'] = self.username
        if self.ip is not None:
            data['ip'] = self.ip
        return data


@dataclass
class QueryIntent:
    """Structured interpretation of a free-text query.

    Attributes:
        action: One of filter, show, count or analyze
        entities: Extracted entities
        confidence: Additive confidence score in [0.5, 1.0]
    """
    action: str
    entities: QueryEntities = field(default_factory=QueryEntities)
    confidence: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {
            'action': self.action,
            'entities': self.entities.to_dict(),
            'confidence': self.confidence,
        }


@dataclass
class QueryStats:
    """Severity counts over a filtered event list."""
    total: int = 0
    high_severity: int = 0
    medium_severity: int = 0
    low_severity: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'highSeverity': self.high_severity,
            'mediumSeverity': self.medium_severity,
            'lowSeverity': self.low_severity,
        }


@dataclass
class QueryResult:
    """Result of processing a natural language query.

    Attributes:
        intent: The parsed intent
        dsl_query: Intent rendered in the assistant's search DSL
        kql_query: Intent rendered as a Kibana-style query string
        summary: One sentence describing the result
        events: Matching events, in input order
        stats: Severity counts over the matching events
    """
    intent: QueryIntent
    dsl_query: str
    kql_query: str
    summary: str
    events: List[SecurityEvent]
    stats: QueryStats

    def to_dict(self) -> Dict[str, Any]:
        return {
            'intent': self.intent.to_dict(),
            'dslQuery': self.dsl_query,
            'kqlQuery': self.kql_query,
            'summary': self.summary,
            'events': [event.to_dict() for event in self.events],
            'stats': self.stats.to_dict(),
        }


@dataclass
class AuditLogEntry:
    """A processed query kept for the audit trail."""
    id: str
    timestamp: datetime
    query: str
    result: QueryResult

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the entry without the full event list."""
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'query': self.query,
            'intent': self.result.intent.to_dict(),
            'dslQuery': self.result.dsl_query,
            'kqlQuery': self.result.kql_query,
            'summary': self.result.summary,
            'stats': self.result.stats.to_dict(),
            'eventCount': len(self.result.events),
        }


@dataclass
class EventPage:
    """One page of events returned by the event explorer."""
    events: List[SecurityEvent]
    total: int
    page: int
    page_size: int
    total_pages: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'events': [event.to_dict() for event in self.events],
            'total': self.total,
            'page': self.page,
            'page_size': self.page_size,
            'total_pages': self.total_pages,
        }

"""
Security report records.

Each report type is an explicit dataclass tagged by ``report_type`` and
carrying the shared statistics, chart data and high-risk event table plus the
fields specific to that report.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Type

from .analytics import event_type_distribution, severity_breakdown, timeline
from .models import SecurityEvent

REPORT_TABLE_SIZE = 10


@dataclass
class ReportStats:
    """Aggregate statistics shared by every report type."""
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    mission_critical: int = 0
    foreign_access: int = 0
    malware: int = 0
    mitre_mapped: int = 0
    avg_risk_score: int = 0

    @classmethod
    def from_events(cls, events: Sequence[SecurityEvent]) -> 'ReportStats':
        severities = severity_breakdown(events)
        avg_risk = round(sum(e.risk_score for e in events) / len(events)) if events else 0
        return cls(
            total=len(events),
            high=severities['high'],
            medium=severities['medium'],
            low=severities['low'],
            mission_critical=sum(1 for e in events if e.is_mission_critical),
            foreign_access=sum(1 for e in events if not e.is_domestic),
            malware=sum(1 for e in events if e.event_type == 'malware_detection'),
            mitre_mapped=sum(1 for e in events if e.mitre_attack),
            avg_risk_score=avg_risk,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'high': self.high,
            'medium': self.medium,
            'low': self.low,
            'missionCritical': self.mission_critical,
            'foreignAccess': self.foreign_access,
            'malware': self.malware,
            'mitreMapped': self.mitre_mapped,
            'avgRiskScore': self.avg_risk_score,
        }


@dataclass
class ReportRow:
    """One row of the high-risk event table."""
    id: str
    timestamp: datetime
    type: str
    ip: str
    username: str
    risk_score: int
    mitre: Optional[str] = None

    @classmethod
    def from_event(cls, event: SecurityEvent) -> 'ReportRow':
        return cls(
            id=event.id,
            timestamp=event.timestamp,
            type=event.event_type.replace('_', ' '),
            ip=event.ip,
            username=event.username,
            risk_score=event.risk_score,
            mitre=event.mitre_attack,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'type': self.type,
            'ip': self.ip,
            'username': self.username,
            'riskScore': self.risk_score,
            'mitre': self.mitre,
        }


@dataclass
class SecurityReport:
    """Fields common to every report.

    Attributes:
        generated_at: When the report was built
        summary: Narrative summary for the report type
        stats: Aggregate statistics
        event_type_data: Event counts per type
        severity_data: Event counts per severity
        timeline_data: Daily counts for the last 7 days
        table: Top high-severity events
    """
    generated_at: datetime
    summary: str
    stats: ReportStats
    event_type_data: List[Dict[str, Any]] = field(default_factory=list)
    severity_data: Dict[str, int] = field(default_factory=dict)
    timeline_data: List[Dict[str, Any]] = field(default_factory=list)
    table: List[ReportRow] = field(default_factory=list)

    report_type = 'base'

    @staticmethod
    def build_summary(stats: ReportStats) -> str:
        raise NotImplementedError

    def extra_fields(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'type': self.report_type,
            'generatedAt': self.generated_at.isoformat(),
            'summary': self.summary,
            'stats': self.stats.to_dict(),
            'chartData': {
                'eventTypeData': self.event_type_data,
                'severityData': self.severity_data,
                'timelineData': self.timeline_data,
            },
            'tableData': [row.to_dict() for row in self.table],
        }
        data.update(self.extra_fields())
        return data


@dataclass
class ExecutiveReport(SecurityReport):
    mission_critical_events: int = 0

    report_type = 'executive'

    @staticmethod
    def build_summary(stats: ReportStats) -> str:
        return (
            f"Executive Summary: Analyzed {stats.total} security events over the past 30 days. "
            f"Detected {stats.high} high-severity incidents requiring immediate attention. "
            f"{stats.mission_critical} mission-critical events identified affecting ISRO ground "
            f"stations, telemetry systems, and satellite operations."
        )

    def extra_fields(self) -> Dict[str, Any]:
        return {'missionCriticalEvents': self.mission_critical_events}


@dataclass
class DetailedReport(SecurityReport):
    severity_breakdown: Dict[str, int] = field(default_factory=dict)

    report_type = 'detailed'

    @staticmethod
    def build_summary(stats: ReportStats) -> str:
        return (
            f"Detailed Analysis: Comprehensive examination of {stats.total} security events "
            f"reveals {stats.high} high-severity threats, {stats.medium} medium-severity "
            f"incidents, and {stats.low} low-severity events. Mission-critical infrastructure "
            f"affected in {stats.mission_critical} cases."
        )

    def extra_fields(self) -> Dict[str, Any]:
        return {'severityBreakdown': dict(self.severity_breakdown)}


@dataclass
class ComplianceReport(SecurityReport):
    mitre_mapped_events: int = 0

    report_type = 'compliance'

    @staticmethod
    def build_summary(stats: ReportStats) -> str:
        return (
            f"Compliance Report: Security audit covering {stats.total} events for CERT-In "
            f"compliance. All incidents logged with complete audit trail. {stats.high} "
            f"high-priority incidents flagged for mandatory reporting. MITRE ATT&CK framework "
            f"applied to {stats.mitre_mapped} events."
        )

    def extra_fields(self) -> Dict[str, Any]:
        return {'mitreMappedEvents': self.mitre_mapped_events}


@dataclass
class ThreatReport(SecurityReport):
    malware_incidents: int = 0
    foreign_access_attempts: int = 0

    report_type = 'threat'

    @staticmethod
    def build_summary(stats: ReportStats) -> str:
        return (
            f"Threat Intelligence Report: Active threat landscape analysis of {stats.total} "
            f"security events. {stats.high} critical threats detected with {stats.malware} "
            f"malware incidents and {stats.foreign_access} foreign access attempts identified."
        )

    def extra_fields(self) -> Dict[str, Any]:
        return {
            'malwareIncidents': self.malware_incidents,
            'foreignAccessAttempts': self.foreign_access_attempts,
        }


REPORT_TYPES: Dict[str, Type[SecurityReport]] = {
    'executive': ExecutiveReport,
    'detailed': DetailedReport,
    'compliance': ComplianceReport,
    'threat': ThreatReport,
}


def generate_report(
    report_type: str,
    events: Sequence[SecurityEvent],
    now: Optional[datetime] = None,
) -> SecurityReport:
    """Build a report of the requested type.

    Args:
        report_type: executive, detailed, compliance or threat
        events: Events to report on
        now: Report timestamp and timeline reference (defaults to now)

    Returns:
        The tagged report record

    Raises:
        ValueError: If the report type is unknown
    """
    report_cls = REPORT_TYPES.get(report_type)
    if report_cls is None:
        raise ValueError(
            f"Unknown report type: {report_type} "
            f"(expected one of: {', '.join(REPORT_TYPES)})"
        )

    now = now or datetime.now()
    stats = ReportStats.from_events(events)
    high_events = [e for e in events if e.severity == 'high'][:REPORT_TABLE_SIZE]

    common = dict(
        generated_at=now,
        summary=report_cls.build_summary(stats),
        stats=stats,
        event_type_data=event_type_distribution(events),
        severity_data=severity_breakdown(events),
        timeline_data=[bucket.to_dict() for bucket in timeline(events, days=7, now=now)],
        table=[ReportRow.from_event(e) for e in high_events],
    )

    if report_cls is ExecutiveReport:
        return ExecutiveReport(**common, mission_critical_events=stats.mission_critical)
    if report_cls is DetailedReport:
        return DetailedReport(**common, severity_breakdown=severity_breakdown(events))
    if report_cls is ComplianceReport:
        return ComplianceReport(**common, mitre_mapped_events=stats.mitre_mapped)
    return ThreatReport(
        **common,
        malware_incidents=stats.malware,
        foreign_access_attempts=stats.foreign_access,
    )

"""
Dashboard analytics over the event dataset.

Aggregations consumed by the dashboard, threat map and alert views: headline
counters, a daily timeline, event-type distribution, per-location threat
intensity, the riskiest users and proactive alerts.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import SEVERITIES, SecurityEvent

DEFAULT_DETECTION_RATE = 97.5


@dataclass
class DashboardStats:
    """Headline counters shown on the dashboard."""
    total_events: int
    high_risk_events: int
    active_threats: int
    detection_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalEvents': self.total_events,
            'highRiskEvents': self.high_risk_events,
            'activeThreats': self.active_threats,
            'detectionRate': self.detection_rate,
        }


@dataclass
class TimelineBucket:
    date: str
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'total': self.total,
            'high': self.high,
            'medium': self.medium,
            'low': self.low,
        }


@dataclass
class LocationThreat:
    """Threat intensity for a single location.

    Attributes:
        location: City and country code
        count: Number of events from the location
        high: High severity events
        medium: Medium severity events
        low: Low severity events
        latitude: Location latitude (0 when unknown)
        longitude: Location longitude (0 when unknown)
    """
    location: str
    count: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    latitude: float = 0.0
    longitude: float = 0.0

    @property
    def weight(self) -> int:
        return self.high * 3 + self.medium * 2 + self.low

    def to_dict(self) -> Dict[str, Any]:
        return {
            'location': self.location,
            'count': self.count,
            'high': self.high,
            'medium': self.medium,
            'low': self.low,
            'lat': self.latitude,
            'lon': self.longitude,
        }


@dataclass
class UserRisk:
    username: str
    avg_risk: int
    events: int

    def to_dict(self) -> Dict[str, Any]:
        return {'username': self.username, 'avgRisk': self.avg_risk, 'events': self.events}


@dataclass
class SuspiciousIP:
    ip: str
    failed_logins: int

    def to_dict(self) -> Dict[str, Any]:
        return {'ip': self.ip, 'count': self.failed_logins}


@dataclass
class AlertSummary:
    """Proactive alerts raised from the dataset.

    Attributes:
        high_risk_events: Most recent high-risk events not yet dismissed
        suspicious_ips: Sources with repeated failed logins
        malware_events: All malware detections
    """
    high_risk_events: List[SecurityEvent] = field(default_factory=list)
    suspicious_ips: List[SuspiciousIP] = field(default_factory=list)
    malware_events: List[SecurityEvent] = field(default_factory=list)

    @property
    def total_active(self) -> int:
        return len(self.high_risk_events) + len(self.suspicious_ips)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'highRiskEvents': [e.to_dict() for e in self.high_risk_events],
            'suspiciousIPs': [s.to_dict() for s in self.suspicious_ips],
            'malwareAlerts': [e.to_dict() for e in self.malware_events],
            'totalActiveAlerts': self.total_active,
        }


def severity_breakdown(events: Sequence[SecurityEvent]) -> Dict[str, int]:
    counts = Counter(e.severity for e in events)
    return {severity: counts[severity] for severity in SEVERITIES}


def dashboard_stats(
    events: Sequence[SecurityEvent],
    detection_rate: float = DEFAULT_DETECTION_RATE,
) -> DashboardStats:
    """Compute the dashboard headline counters.

    Active threats are malware detections plus high severity failed logins.
    The detection rate is a configured demo figure, not a measurement.
    """
    active_threats = sum(
        1 for e in events
        if e.event_type == 'malware_detection'
        or (e.event_type == 'failed_login' and e.severity == 'high')
    )
    return DashboardStats(
        total_events=len(events),
        high_risk_events=sum(1 for e in events if e.severity == 'high'),
        active_threats=active_threats,
        detection_rate=detection_rate,
    )


def display_name(event_type: str) -> str:
    """Title-case an event type ('failed_login' -> 'Failed Login')."""
    return ' '.join(word.capitalize() for word in event_type.split('_'))


def event_type_distribution(events: Sequence[SecurityEvent]) -> List[Dict[str, Any]]:
    """Count events per type, in first-seen order."""
    counts = Counter(e.event_type for e in events)
    return [
        {'eventType': event_type, 'name': display_name(event_type), 'count': count}
        for event_type, count in counts.items()
    ]


def timeline(
    events: Sequence[SecurityEvent],
    days: int = 7,
    now: Optional[datetime] = None,
) -> List[TimelineBucket]:
    """Bucket events per calendar day for the last ``days`` days.

    Args:
        events: Events to bucket
        days: Number of daily buckets, ending today
        now: Reference time (defaults to now)

    Returns:
        Buckets ordered oldest first, labelled like 'Oct 18'
    """
    now = now or datetime.now()
    today = now.date()
    buckets = {}
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        buckets[day] = TimelineBucket(date=f"{day:%b} {day.day}")

    for event in events:
        bucket = buckets.get(event.timestamp.date())
        if bucket is None:
            continue
        bucket.total += 1
        if event.severity == 'high':
            bucket.high += 1
        elif event.severity == 'medium':
            bucket.medium += 1
        elif event.severity == 'low':
            bucket.low += 1

    return list(buckets.values())


def location_threats(
    events: Iterable[SecurityEvent],
    limit: int = 10,
    severity: str = 'all',
    event_type: str = 'all',
) -> List[LocationThreat]:
    """Rank locations by weighted threat intensity (3*high + 2*medium + low)."""
    threats: Dict[str, LocationThreat] = {}

    for event in events:
        if severity != 'all' and event.severity != severity:
            continue
        if event_type != 'all' and event.event_type != event_type:
            continue

        threat = threats.get(event.location)
        if threat is None:
            threat = LocationThreat(
                location=event.location,
                latitude=event.latitude or 0.0,
                longitude=event.longitude or 0.0,
            )
            threats[event.location] = threat

        threat.count += 1
        if event.severity in ('high', 'medium', 'low'):
            setattr(threat, event.severity, getattr(threat, event.severity) + 1)

    ranked = sorted(threats.values(), key=lambda t: t.weight, reverse=True)
    return ranked[:limit]


def top_risky_users(events: Iterable[SecurityEvent], limit: int = 5) -> List[UserRisk]:
    """Rank users by their average risk score."""
    totals: Dict[str, int] = {}
    counts: Dict[str, int] = {}

    for event in events:
        totals[event.username] = totals.get(event.username, 0) + event.risk_score
        counts[event.username] = counts.get(event.username, 0) + 1

    users = [
        UserRisk(username=name, avg_risk=round(totals[name] / counts[name]), events=counts[name])
        for name in totals
    ]
    users.sort(key=lambda u: u.avg_risk, reverse=True)
    return users[:limit]


def proactive_alerts(
    events: Sequence[SecurityEvent],
    dismissed: Iterable[str] = (),
    limit: Optional[int] = 5,
    brute_force_threshold: int = 5,
) -> AlertSummary:
    """Raise proactive alerts from the dataset.

    Args:
        events: Events to inspect
        dismissed: Event ids the analyst has dismissed
        limit: Maximum high-risk events to return (None for all)
        brute_force_threshold: Failed logins from one ip that mark it suspicious

    Returns:
        AlertSummary with high-risk events, suspicious ips and malware alerts
    """
    dismissed_ids = set(dismissed)

    high_risk = [
        e for e in events
        if (e.severity == 'high' or e.risk_score >= 80) and e.id not in dismissed_ids
    ]
    if limit is not None:
        high_risk = high_risk[:limit]

    failed_by_ip = Counter(e.ip for e in events if e.event_type == 'failed_login')
    suspicious = [
        SuspiciousIP(ip=ip, failed_logins=count)
        for ip, count in failed_by_ip.items()
        if count >= brute_force_threshold
    ]

    return AlertSummary(
        high_risk_events=high_risk,
        suspicious_ips=suspicious,
        malware_events=[e for e in events if e.event_type == 'malware_detection'],
    )

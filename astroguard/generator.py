"""
Synthetic security event generator.

Produces a dataset of security events for a satellite-operations SOC with a
weighted event-type mix, severity derived from the event type and risk scores
bucketed by severity.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from .models import MISSION_CRITICAL_TYPES, SecurityEvent

logger = logging.getLogger(__name__)

DEFAULT_EVENT_COUNT = 250

# Weighting pool: parts out of 102, not a clean 100.
EVENT_TYPE_WEIGHTS = [
    ('failed_login', 40),
    ('ground_station_access', 12),
    ('telemetry_data_access', 8),
    ('command_control_access', 5),
    ('malware_detection', 15),
    ('vpn_connection', 10),
    ('firewall_block', 7),
    ('successful_login', 3),
    ('satellite_comm_anomaly', 2),
]

USERNAMES = [
    'admin', 'john.doe', 'jane.smith', 'bob.wilson', 'alice.jones',
    'charlie.brown', 'david.lee', 'emma.davis', 'frank.miller', 'grace.taylor',
    'mission.control', 'satellite.ops', 'ground.station', 'isro.admin', 'telemetry.eng',
]

LOCATION_COORDS: Dict[str, Tuple[float, float]] = {
    'Bangalore, IN': (12.9716, 77.5946),
    'Thiruvananthapuram, IN': (8.5241, 76.9366),
    'Sriharikota, IN': (13.7199, 80.2304),
    'Ahmedabad, IN': (23.0225, 72.5714),
    'Mumbai, IN': (19.0760, 72.8777),
    'New York, US': (40.7128, -74.0060),
    'London, UK': (51.5074, -0.1278),
    'Beijing, CN': (39.9042, 116.4074),
    'Moscow, RU': (55.7558, 37.6173),
    'Sydney, AU': (-33.8688, 151.2093),
    'Berlin, DE': (52.5200, 13.4050),
    'Paris, FR': (48.8566, 2.3522),
    'Toronto, CA': (43.6532, -79.3832),
    'Singapore, SG': (1.3521, 103.8198),
    'Dubai, AE': (25.2048, 55.2708),
}

DOMESTIC_LOCATIONS = [loc for loc in LOCATION_COORDS if loc.endswith(', IN')]
FOREIGN_LOCATIONS = [loc for loc in LOCATION_COORDS if not loc.endswith(', IN')]
DOMESTIC_RATIO = 0.7

MALWARE_FAMILIES = [
    'Trojan.GenericKD', 'Ransomware.WannaCry', 'Spyware.Agent',
    'Adware.BrowseFox', 'Rootkit.Hidden', 'Worm.Conficker',
]

MITRE_TECHNIQUES: Dict[str, List[str]] = {
    'failed_login': ['T1110 - Brute Force', 'T1078 - Valid Accounts'],
    'malware_detection': ['T1486 - Data Encrypted for Impact', 'T1204 - User Execution'],
    'ground_station_access': ['T1078.004 - Cloud Accounts', 'T1552 - Unsecured Credentials'],
    'telemetry_data_access': ['T1530 - Data from Cloud Storage', 'T1213 - Data from Information Repositories'],
    'command_control_access': ['T1071 - Application Layer Protocol', 'T1090 - Proxy'],
    'satellite_comm_anomaly': ['T1499 - Endpoint Denial of Service', 'T1565 - Data Manipulation'],
    'vpn_connection': ['T1133 - External Remote Services'],
    'firewall_block': ['T1595 - Active Scanning'],
}

# Severity per event type; None marks a coin flip between high and medium.
SEVERITY_BY_TYPE: Dict[str, Optional[str]] = {
    'malware_detection': 'high',
    'command_control_access': 'high',
    'satellite_comm_anomaly': 'high',
    'failed_login': None,
    'ground_station_access': None,
    'telemetry_data_access': None,
    'firewall_block': 'medium',
    'vpn_connection': 'low',
    'successful_login': 'low',
}
HIGH_SEVERITY_THRESHOLD = 0.6

RISK_SCORE_BANDS: Dict[str, Tuple[int, int]] = {
    'high': (70, 99),
    'medium': (40, 69),
    'low': (10, 39),
}

HISTORY_DAYS = 30


def _weighted_pool() -> List[str]:
    pool: List[str] = []
    for event_type, weight in EVENT_TYPE_WEIGHTS:
        pool.extend([event_type] * weight)
    return pool


def generate_ip(rng: random.Random) -> str:
    """Generate a random dotted-quad address (no validity constraints)."""
    return '.'.join(str(rng.randint(0, 254)) for _ in range(4))


def random_timestamp(rng: random.Random, now: datetime, days_ago: int = HISTORY_DAYS) -> datetime:
    """Pick a uniformly distributed time within the last ``days_ago`` days."""
    window = timedelta(days=days_ago)
    return now - window * rng.random()


def determine_severity(event_type: str, rng: random.Random) -> str:
    """Derive severity from the event type.

    Args:
        event_type: The event type
        rng: Random source used for the probabilistic types

    Returns:
        'high', 'medium' or 'low'
    """
    if event_type not in SEVERITY_BY_TYPE:
        return 'low'
    severity = SEVERITY_BY_TYPE[event_type]
    if severity is None:
        return 'high' if rng.random() > HIGH_SEVERITY_THRESHOLD else 'medium'
    return severity


def calculate_risk_score(severity: str, rng: random.Random) -> int:
    """Draw a risk score from the band implied by ``severity``."""
    low, high = RISK_SCORE_BANDS.get(severity, (20, 20))
    return rng.randint(low, high)


def generate_details(event_type: str, rng: random.Random) -> str:
    """Build the human readable cause for an event type."""
    if event_type == 'failed_login':
        return 'Invalid password attempt'
    if event_type == 'vpn_connection':
        return 'VPN connection established' if rng.random() > 0.3 else 'VPN connection failed'
    if event_type == 'malware_detection':
        return f"Malware detected: {rng.choice(MALWARE_FAMILIES)}"
    if event_type == 'successful_login':
        return 'User authenticated successfully'
    if event_type == 'firewall_block':
        return 'Suspicious traffic blocked by firewall'
    if event_type == 'ground_station_access':
        return 'Unauthorized access attempt to ground station controls'
    if event_type == 'telemetry_data_access':
        return 'Suspicious telemetry data query detected'
    if event_type == 'command_control_access':
        return 'Unauthorized command & control system access'
    if event_type == 'satellite_comm_anomaly':
        return 'Anomalous satellite communication pattern detected'
    return 'Security event logged'


def pick_location(rng: random.Random) -> str:
    if rng.random() < DOMESTIC_RATIO:
        return rng.choice(DOMESTIC_LOCATIONS)
    return rng.choice(FOREIGN_LOCATIONS)


def pick_username(is_mission_critical: bool, rng: random.Random) -> str:
    """Pick a username, biased to operational accounts for mission-critical events."""
    if is_mission_critical and rng.random() < 0.6:
        return rng.choice([name for name in USERNAMES if '.' in name])
    return rng.choice(USERNAMES)


def generate_security_events(
    count: int = 200,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[SecurityEvent]:
    """Generate synthetic security events.

    Values are not reproducible unless a seeded ``rng`` is supplied.

    Args:
        count: Number of events to generate; non-positive yields []
        now: Reference time for the 30 day window (defaults to now)
        rng: Random source (defaults to a fresh unseeded Random)

    Returns:
        Events sorted by timestamp, most recent first
    """
    if count <= 0:
        return []

    rng = rng or random.Random()
    now = now or datetime.now()
    pool = _weighted_pool()
    events = []

    for i in range(count):
        event_type = rng.choice(pool)
        severity = determine_severity(event_type, rng)
        location = pick_location(rng)
        latitude, longitude = LOCATION_COORDS[location]
        is_mission_critical = event_type in MISSION_CRITICAL_TYPES

        mitre_options = MITRE_TECHNIQUES.get(event_type)
        mitre_attack = rng.choice(mitre_options) if mitre_options else None

        events.append(SecurityEvent(
            id=f"EVT-{i + 1:06d}",
            timestamp=random_timestamp(rng, now),
            event_type=event_type,
            severity=severity,
            ip=generate_ip(rng),
            username=pick_username(is_mission_critical, rng),
            location=location,
            details=generate_details(event_type, rng),
            risk_score=calculate_risk_score(severity, rng),
            latitude=latitude,
            longitude=longitude,
            mitre_attack=mitre_attack,
            is_mission_critical=is_mission_critical,
        ))

    events.sort(key=lambda e: e.timestamp, reverse=True)
    logger.debug(f"Generated {len(events)} synthetic security events")
    return events

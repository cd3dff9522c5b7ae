"""
Shared fixtures for the AstroGuard test suite.
"""

import random
from datetime import datetime, timedelta

import pytest

from astroguard import SecurityEvent, generate_security_events
from astroguard.generator import LOCATION_COORDS
from astroguard.models import MISSION_CRITICAL_TYPES

FIXED_NOW = datetime(2026, 10, 18, 12, 0, 0)


def build_event(index, timestamp, event_type="failed_login", severity="medium", **overrides):
    """Build a SecurityEvent with sensible defaults."""
    location = overrides.pop("location", "Bangalore, IN")
    lat, lon = LOCATION_COORDS.get(location, (0.0, 0.0))
    values = dict(
        id=f"EVT-{index:06d}",
        timestamp=timestamp,
        event_type=event_type,
        severity=severity,
        ip=f"10.0.0.{index}",
        username="john.doe",
        location=location,
        details="test event",
        risk_score={"high": 85, "medium": 50, "low": 20}[severity],
        latitude=lat,
        longitude=lon,
        mitre_attack=None,
        is_mission_critical=event_type in MISSION_CRITICAL_TYPES,
    )
    values.update(overrides)
    return SecurityEvent(**values)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def sample_events(now):
    """A small hand-built dataset spanning the last 30 days."""
    return [
        build_event(1, now - timedelta(minutes=30), "malware_detection", "high",
                    username="admin", ip="192.168.1.10", mitre_attack="T1204 - User Execution"),
        build_event(2, now - timedelta(hours=2), "failed_login", "high",
                    username="alice.jones", ip="192.168.1.20"),
        build_event(3, now - timedelta(hours=20), "vpn_connection", "low",
                    username="bob.wilson", location="London, UK"),
        build_event(4, datetime(2026, 10, 17, 23, 59, 59, 999999), "failed_login", "medium",
                    username="satellite.ops"),
        build_event(5, datetime(2026, 10, 17, 0, 0, 0), "ground_station_access", "medium",
                    username="ground.station"),
        build_event(6, now - timedelta(days=3), "malware_detection", "high",
                    location="Beijing, CN"),
        build_event(7, now - timedelta(days=10), "firewall_block", "medium",
                    location="Moscow, RU"),
        build_event(8, now - timedelta(days=25), "successful_login", "low",
                    username="isro.admin"),
    ]


@pytest.fixture
def generated_events(now):
    """A seeded synthetic dataset."""
    return generate_security_events(500, now=now, rng=random.Random(1234))

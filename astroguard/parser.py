"""
Keyword-based intent parser.

Turns a free-text question into a QueryIntent using ordered lists of
(trigger phrases -> effect) rules. Each extractor works on a lower-cased copy
of the text and is independent of the others.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from .models import MISSION_CRITICAL_TYPES, QueryEntities, QueryIntent

logger = logging.getLogger(__name__)

Rule = Tuple[Tuple[str, ...], Tuple[str, ...]]


class IntentParser:
    """Extracts entities and an action from natural language queries."""

    # First match wins.
    TIME_RANGE_RULES: List[Tuple[Tuple[str, ...], str]] = [
        (('yesterday',), 'yesterday'),
        (('today',), 'today'),
        (('last 7 days', 'past week'), 'last_7_days'),
        (('last 24 hours',), 'last_24_hours'),
        (('last 30 days', 'past month'), 'last_30_days'),
        (('last hour',), 'last_hour'),
    ]

    # Every matching rule contributes.
    EVENT_TYPE_RULES: List[Rule] = [
        (('failed login', 'login fail'), ('failed_login',)),
        (('vpn',), ('vpn_connection',)),
        (('malware',), ('malware_detection',)),
        (('successful login', 'login success'), ('successful_login',)),
        (('firewall',), ('firewall_block',)),
        (('ground station', 'ground-station'), ('ground_station_access',)),
        (('telemetry',), ('telemetry_data_access',)),
        (('command', 'control', 'c&c'), ('command_control_access',)),
        (('satellite', 'comm anomaly'), ('satellite_comm_anomaly',)),
        (('mission critical', 'mission-critical'), MISSION_CRITICAL_TYPES),
    ]

    SEVERITY_RULES: List[Rule] = [
        (('high risk', 'critical'), ('high',)),
        (('medium',), ('medium',)),
        (('low',), ('low',)),
    ]

    # First match wins; default is 'show'.
    ACTION_RULES: List[Tuple[Tuple[str, ...], str]] = [
        (('show', 'display', 'list'), 'show'),
        (('filter', 'only'), 'filter'),
        (('count', 'how many'), 'count'),
        (('analyze', 'summary'), 'analyze'),
    ]
    DEFAULT_ACTION = 'show'

    USERNAME_PATTERN = re.compile(r'user(?:name)?\s+["\']?(\w+\.?\w*)["\']?', re.IGNORECASE | re.ASCII)

    BASE_CONFIDENCE = 0.5
    CONFIDENCE_WEIGHTS = [
        ('event_type', 0.2),
        ('time_range', 0.2),
        ('severity', 0.1),
        ('username', 0.1),
        ('ip', 0.1),
    ]

    CONTEXT_TRIGGER = 'filter'

    @staticmethod
    def _contains_any(text: str, phrases: Sequence[str]) -> bool:
        return any(phrase in text for phrase in phrases)

    def _collect(self, text: str, rules: List[Rule]) -> Optional[List[str]]:
        """Apply every rule and collect the values, dropping duplicates."""
        values: List[str] = []
        for phrases, effect in rules:
            if self._contains_any(text, phrases):
                for value in effect:
                    if value not in values:
                        values.append(value)
        return values or None

    def extract_time_range(self, query: str) -> Optional[str]:
        """Extract a time range tag such as 'last_7_days'.

        Args:
            query: Raw query text

        Returns:
            The first matching time range, or None
        """
        lowered = query.lower()
        for phrases, time_range in self.TIME_RANGE_RULES:
            if self._contains_any(lowered, phrases):
                return time_range
        return None

    def extract_event_types(self, query: str) -> Optional[List[str]]:
        """Extract the event types mentioned in the query."""
        return self._collect(query.lower(), self.EVENT_TYPE_RULES)

    def extract_severity(self, query: str) -> Optional[List[str]]:
        """Extract the severities mentioned in the query."""
        return self._collect(query.lower(), self.SEVERITY_RULES)

    def extract_username(self, query: str) -> Optional[str]:
        """Extract a username following 'user' or 'username'.

        Falls back to 'admin' when that word appears anywhere in the query.
        """
        match = self.USERNAME_PATTERN.search(query)
        if match:
            return match.group(1)
        if 'admin' in query.lower():
            return 'admin'
        return None

    def determine_action(self, query: str) -> str:
        """Classify the query action with the ordered action rules."""
        lowered = query.lower()
        for phrases, action in self.ACTION_RULES:
            if self._contains_any(lowered, phrases):
                return action
        return self.DEFAULT_ACTION

    def calculate_confidence(self, entities: QueryEntities) -> float:
        """Score how much of the query was understood.

        Args:
            entities: Extracted entities

        Returns:
            Additive score starting at 0.5, capped at 1.0
        """
        confidence = self.BASE_CONFIDENCE
        for name, weight in self.CONFIDENCE_WEIGHTS:
            if getattr(entities, name) is not None:
                confidence += weight
        return round(min(confidence, 1.0), 2)

    def extract_entities(self, query: str) -> QueryEntities:
        """Run every extractor; ip is left unset and only comes from caller-built intents."""
        return QueryEntities(
            event_type=self.extract_event_types(query),
            time_range=self.extract_time_range(query),
            severity=self.extract_severity(query),
            username=self.extract_username(query),
        )

    def apply_context(
        self,
        query: str,
        entities: QueryEntities,
        previous_intent: Optional[QueryIntent],
    ) -> QueryEntities:
        """Carry event types and time range over from the previous turn.

        Only applies to 'filter' follow-ups that mention neither an event type
        nor a time range. Severity, username and ip are never carried over.
        """
        if previous_intent is None:
            return entities
        if self.CONTEXT_TRIGGER not in query.lower():
            return entities
        if entities.event_type is not None or entities.time_range is not None:
            return entities

        previous = previous_intent.entities
        if previous.event_type is not None:
            entities.event_type = list(previous.event_type)
        if previous.time_range is not None:
            entities.time_range = previous.time_range
        logger.debug(f"Carried over context from previous intent: {entities.to_dict()}")
        return entities

    def parse(self, query: str, previous_intent: Optional[QueryIntent] = None) -> QueryIntent:
        """Parse a query into an intent."""
        entities = self.extract_entities(query)
        entities = self.apply_context(query, entities, previous_intent)

        intent = QueryIntent(
            action=self.determine_action(query),
            entities=entities,
            confidence=self.calculate_confidence(entities),
        )
        logger.debug(f"Parsed intent for {query!r}: {intent.to_dict()}")
        return intent


def parse_intent(query: str, previous_intent: Optional[QueryIntent] = None) -> QueryIntent:
    """Parse a natural language query.

    Args:
        query: The free-text query
        previous_intent: Intent of the previous turn, used for follow-ups

    Returns:
        The parsed QueryIntent; never raises
    """
    return IntentParser().parse(query, previous_intent)

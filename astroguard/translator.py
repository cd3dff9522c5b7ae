"""
Query string renderers.

Serializes a QueryIntent into the assistant's own search DSL and into a
Kibana-style KQL string. The two renderers share no logic; the strings are
cosmetic and are never executed.
"""

from .models import QueryIntent


def generate_dsl(intent: QueryIntent) -> str:
    """Render the intent as a DSL query.

    Example:
        SEARCH AND event_type IN ["malware_detection"] AND time_range="last_7_days"

    Args:
        intent: The parsed intent

    Returns:
        'SEARCH' followed by one AND-joined clause per present entity
    """
    entities = intent.entities
    parts = ['SEARCH']

    if entities.event_type:
        types = ', '.join(f'"{t}"' for t in entities.event_type)
        parts.append(f'event_type IN [{types}]')
    if entities.time_range:
        parts.append(f'time_range="{entities.time_range}"')
    if entities.severity:
        severities = ', '.join(f'"{s}"' for s in entities.severity)
        parts.append(f'severity IN [{severities}]')
    if entities.username:
        parts.append(f'username="{entities.username}"')

    return ' AND '.join(parts)


def generate_kql(intent: QueryIntent) -> str:
    """Render the intent as a KQL query, or '*' when nothing was extracted."""
    entities = intent.entities
    parts = []

    if entities.event_type:
        parts.append(f"eventType:({' OR '.join(entities.event_type)})")
    if entities.time_range:
        parts.append(f"@timestamp:{entities.time_range}")
    if entities.severity:
        parts.append(f"severity:({' OR '.join(entities.severity)})")
    if entities.username:
        parts.append(f'username:"{entities.username}"')

    return ' AND '.join(parts) or '*'

"""
Unit tests for the query pipeline.

Tests intent extraction rules, context carry-over, DSL/KQL rendering,
time-range windows, the filter chain, summaries and the event explorer.
"""

from datetime import datetime, timedelta

import pytest

from astroguard import (
    IntentParser,
    QueryEntities,
    QueryIntent,
    QueryProcessor,
    QueryStats,
    filter_events,
    generate_dsl,
    generate_kql,
    parse_intent,
    process_query,
    search_events,
)
from astroguard.engine import calculate_stats, filter_by_time_range, generate_summary


def ids(events):
    return [e.id for e in events]


class TestEntityExtraction:
    """Test cases for the keyword extraction rules."""

    def test_time_range_phrases(self):
        """Test every time range trigger phrase."""
        parser = IntentParser()
        cases = {
            "events from yesterday": "yesterday",
            "what happened today": "today",
            "malware in the last 7 days": "last_7_days",
            "logins over the past week": "last_7_days",
            "alerts in the last 24 hours": "last_24_hours",
            "vpn in the last 30 days": "last_30_days",
            "firewall blocks in the past month": "last_30_days",
            "anything in the last hour": "last_hour",
        }
        for query, expected in cases.items():
            assert parser.extract_time_range(query) == expected, query

    def test_time_range_first_match_wins(self):
        """Test that earlier rules take priority."""
        parser = IntentParser()
        assert parser.extract_time_range("yesterday and today") == "yesterday"
        assert parser.extract_time_range("today or the last 7 days") == "today"

    def test_time_range_case_insensitive(self):
        assert IntentParser().extract_time_range("LAST 24 HOURS") == "last_24_hours"

    def test_time_range_absent(self):
        assert IntentParser().extract_time_range("show everything") is None

    def test_single_event_type(self):
        parser = IntentParser()
        assert parser.extract_event_types("Show failed logins") == ["failed_login"]
        assert parser.extract_event_types("any login failures") == ["failed_login"]
        assert parser.extract_event_types("VPN sessions") == ["vpn_connection"]
        assert parser.extract_event_types("firewall blocks") == ["firewall_block"]
        assert parser.extract_event_types("successful logins") == ["successful_login"]
        assert parser.extract_event_types("ground-station access") == ["ground_station_access"]
        assert parser.extract_event_types("C&C traffic") == ["command_control_access"]
        assert parser.extract_event_types("comm anomaly") == ["satellite_comm_anomaly"]

    def test_multiple_event_types(self):
        """Test that independent triggers accumulate."""
        types = IntentParser().extract_event_types("malware and vpn and telemetry")
        assert types == ["vpn_connection", "malware_detection", "telemetry_data_access"]

    def test_mission_critical_expands_to_all_types(self):
        types = IntentParser().extract_event_types("mission-critical events")
        assert types == [
            "ground_station_access",
            "telemetry_data_access",
            "command_control_access",
            "satellite_comm_anomaly",
        ]

    def test_mission_critical_deduplicates(self):
        """Test that overlapping triggers do not duplicate types."""
        types = IntentParser().extract_event_types("mission critical telemetry")
        assert types == [
            "telemetry_data_access",
            "ground_station_access",
            "command_control_access",
            "satellite_comm_anomaly",
        ]
        assert len(types) == len(set(types))

    def test_event_type_absent(self):
        assert IntentParser().extract_event_types("show everything") is None

    def test_severity_extraction(self):
        parser = IntentParser()
        assert parser.extract_severity("high risk events") == ["high"]
        assert parser.extract_severity("critical alerts") == ["high"]
        assert parser.extract_severity("medium and low events") == ["medium", "low"]
        assert parser.extract_severity("show everything") is None

    def test_username_after_keyword(self):
        parser = IntentParser()
        assert parser.extract_username("events for user john.doe") == "john.doe"
        assert parser.extract_username("username 'alice.jones' logins") == "alice.jones"
        assert parser.extract_username('User "bob" activity') == "bob"

    def test_username_admin_fallback(self):
        parser = IntentParser()
        assert parser.extract_username("Display admin activity") == "admin"
        assert parser.extract_username("show everything") is None

    def test_username_ascii_only(self):
        parser = IntentParser()
        assert parser.extract_username("user jos\u00e9 logins") == "jos"
        assert parser.extract_username("user \u0440\u0430\u0432\u0438 logins") is None

    def test_addresses_are_not_extracted(self):
        entities = IntentParser().extract_entities("show events from 192.168.1.10")
        assert entities.ip is None
        assert entities.to_dict() == {}


class TestIntentParsing:
    """Test cases for actions, confidence and context carry-over."""

    def test_action_rules_in_order(self):
        parser = IntentParser()
        assert parser.determine_action("Show malware") == "show"
        assert parser.determine_action("display alerts") == "show"
        assert parser.determine_action("list vpn events") == "show"
        assert parser.determine_action("filter to high risk") == "filter"
        assert parser.determine_action("only malware") == "filter"
        assert parser.determine_action("count failed logins") == "count"
        assert parser.determine_action("How many failed logins today") == "count"
        assert parser.determine_action("analyze vpn activity") == "analyze"
        assert parser.determine_action("give me a summary") == "analyze"
        assert parser.determine_action("malware") == "show"

    def test_action_first_match_wins(self):
        assert IntentParser().determine_action("show only malware") == "show"

    def test_confidence_scoring(self):
        parser = IntentParser()
        assert parser.calculate_confidence(QueryEntities()) == 0.5
        assert parser.calculate_confidence(QueryEntities(event_type=["vpn_connection"])) == 0.7
        assert parser.calculate_confidence(
            QueryEntities(event_type=["vpn_connection"], time_range="today")
        ) == 0.9

    def test_confidence_capped(self):
        entities = QueryEntities(
            event_type=["vpn_connection"],
            time_range="today",
            severity=["low"],
            username="admin",
            ip="10.0.0.1",
        )
        assert IntentParser().calculate_confidence(entities) == 1.0

    def test_empty_query(self):
        intent = parse_intent("")
        assert intent.action == "show"
        assert intent.entities.is_empty()
        assert intent.confidence == 0.5

    def test_filter_carries_previous_context(self):
        previous = QueryIntent(
            action="show",
            entities=QueryEntities(
                event_type=["failed_login"],
                time_range="last_7_days",
                severity=["high"],
                username="admin",
            ),
            confidence=1.0,
        )
        intent = parse_intent("filter", previous)

        assert intent.action == "filter"
        assert intent.entities.event_type == ["failed_login"]
        assert intent.entities.time_range == "last_7_days"
        assert intent.entities.severity is None
        assert intent.entities.username is None
        assert intent.confidence == 0.9

    def test_no_carry_over_without_filter_keyword(self):
        previous = QueryIntent("show", QueryEntities(event_type=["failed_login"]), 0.7)
        intent = parse_intent("show high risk events", previous)
        assert intent.entities.event_type is None

    def test_no_carry_over_when_new_entities(self):
        previous = QueryIntent("show", QueryEntities(event_type=["failed_login"], time_range="today"), 0.9)
        intent = parse_intent("filter malware", previous)
        assert intent.entities.event_type == ["malware_detection"]
        assert intent.entities.time_range is None

    def test_carry_over_does_not_alias_previous(self):
        previous = QueryIntent("show", QueryEntities(event_type=["failed_login"]), 0.7)
        intent = parse_intent("filter", previous)
        intent.entities.event_type.append("vpn_connection")
        assert previous.entities.event_type == ["failed_login"]


class TestQueryRendering:
    """Test cases for the DSL and KQL renderers."""

    def test_dsl_all_clauses(self):
        intent = QueryIntent(
            "show",
            QueryEntities(
                event_type=["failed_login", "vpn_connection"],
                time_range="last_7_days",
                severity=["high"],
                username="admin",
            ),
            1.0,
        )
        assert generate_dsl(intent) == (
            'SEARCH AND event_type IN ["failed_login", "vpn_connection"] '
            'AND time_range="last_7_days" AND severity IN ["high"] AND username="admin"'
        )

    def test_kql_all_clauses(self):
        intent = QueryIntent(
            "show",
            QueryEntities(
                event_type=["failed_login", "vpn_connection"],
                time_range="last_7_days",
                severity=["high", "medium"],
                username="admin",
            ),
            1.0,
        )
        assert generate_kql(intent) == (
            'eventType:(failed_login OR vpn_connection) AND @timestamp:last_7_days '
            'AND severity:(high OR medium) AND username:"admin"'
        )

    def test_empty_intent_rendering(self):
        intent = QueryIntent("show", QueryEntities(), 0.5)
        assert generate_dsl(intent) == "SEARCH"
        assert generate_kql(intent) == "*"

    def test_ip_not_rendered(self):
        intent = QueryIntent("show", QueryEntities(ip="10.0.0.5"), 0.6)
        assert generate_dsl(intent) == "SEARCH"
        assert generate_kql(intent) == "*"

    def test_rendering_is_stable(self, sample_events, now):
        first = process_query("Show high risk malware in last 7 days", sample_events, now=now)
        second = process_query("Show high risk malware in last 7 days", sample_events, now=now)
        assert first.dsl_query == second.dsl_query
        assert first.kql_query == second.kql_query


class TestTimeRangeFiltering:
    """Test cases for time-range windows against a fixed now."""

    def test_last_hour(self, sample_events, now):
        assert ids(filter_by_time_range(sample_events, "last_hour", now)) == ["EVT-000001"]

    def test_last_24_hours(self, sample_events, now):
        result = filter_by_time_range(sample_events, "last_24_hours", now)
        assert ids(result) == ["EVT-000001", "EVT-000002", "EVT-000003", "EVT-000004"]

    def test_today(self, sample_events, now):
        result = filter_by_time_range(sample_events, "today", now)
        assert ids(result) == ["EVT-000001", "EVT-000002"]

    def test_yesterday_inclusive_bounds(self, sample_events, now):
        result = filter_by_time_range(sample_events, "yesterday", now)
        assert ids(result) == ["EVT-000003", "EVT-000004", "EVT-000005"]

    def test_last_7_days(self, sample_events, now):
        result = filter_by_time_range(sample_events, "last_7_days", now)
        assert len(result) == 6
        assert all(e.timestamp >= now - timedelta(days=7) for e in result)

    def test_last_30_days(self, sample_events, now):
        assert len(filter_by_time_range(sample_events, "last_30_days", now)) == 8

    def test_future_events_excluded_from_rolling_window(self, sample_events, now):
        result = filter_by_time_range(sample_events, "last_hour", now - timedelta(hours=1))
        assert "EVT-000001" not in ids(result)

    def test_unknown_range_keeps_everything(self, sample_events, now):
        assert filter_by_time_range(sample_events, "last_decade", now) == sample_events


class TestFilterChain:
    """Test cases for applying intents as filters."""

    def test_empty_intent_is_identity(self, sample_events, now):
        intent = QueryIntent("show", QueryEntities(), 0.5)
        result = filter_events(sample_events, intent, now)
        assert result == sample_events
        assert result is not sample_events

    def test_event_type_membership(self, sample_events, now):
        intent = QueryIntent("show", QueryEntities(event_type=["malware_detection", "vpn_connection"]), 0.7)
        assert ids(filter_events(sample_events, intent, now)) == ["EVT-000001", "EVT-000003", "EVT-000006"]

    def test_username_substring_case_insensitive(self, sample_events, now):
        intent = QueryIntent("show", QueryEntities(username="ADMIN"), 0.6)
        assert ids(filter_events(sample_events, intent, now)) == ["EVT-000001", "EVT-000008"]

    def test_ip_substring(self, sample_events, now):
        intent = QueryIntent("show", QueryEntities(ip="192.168.1."), 0.6)
        assert ids(filter_events(sample_events, intent, now)) == ["EVT-000001", "EVT-000002"]

    def test_combined_filters(self, sample_events, now):
        intent = QueryIntent(
            "show",
            QueryEntities(event_type=["failed_login"], time_range="last_24_hours", severity=["medium"]),
            0.9,
        )
        assert ids(filter_events(sample_events, intent, now)) == ["EVT-000004"]


class TestSummaryAndStats:
    """Test cases for statistics and summary sentences."""

    def test_stats(self, sample_events):
        stats = calculate_stats(sample_events)
        assert stats == QueryStats(total=8, high_severity=3, medium_severity=3, low_severity=2)

    def test_summary_full(self):
        intent = QueryIntent(
            "show",
            QueryEntities(event_type=["failed_login", "ground_station_access"], time_range="last_7_days"),
            0.9,
        )
        stats = QueryStats(total=3, high_severity=2, medium_severity=0, low_severity=1)
        assert generate_summary(intent, stats) == (
            "Found 3 security events matching type: failed login, ground station_access "
            "from last 7_days (2 high, 1 low severity)."
        )

    def test_summary_no_matches(self):
        intent = QueryIntent("show", QueryEntities(), 0.5)
        assert generate_summary(intent, QueryStats()) == "Found 0 security events."


class TestQueryProcessor:
    """End-to-end tests for process_query."""

    def test_show_high_risk_events(self, generated_events, now):
        result = process_query("show high risk events", generated_events, now=now)

        assert result.intent.action == "show"
        assert result.intent.entities.severity == ["high"]
        assert result.events
        assert all(e.severity == "high" for e in result.events)
        assert all(e in generated_events for e in result.events)
        assert result.stats.total == result.stats.high_severity == len(result.events)

    def test_empty_query_returns_everything(self, generated_events, now):
        result = process_query("", generated_events, now=now)

        assert result.intent.entities.is_empty()
        assert result.intent.entities.to_dict() == {}
        assert result.intent.confidence == 0.5
        assert result.events == generated_events
        assert result.kql_query == "*"
        assert result.dsl_query == "SEARCH"

    def test_address_in_query_is_ignored(self, sample_events, now):
        result = process_query("show events from 192.168.1.10", sample_events, now=now)

        assert result.intent.entities.to_dict() == {}
        assert result.intent.confidence == 0.5
        assert result.kql_query == "*"
        assert result.dsl_query == "SEARCH"
        assert result.events == sample_events

    def test_malware_last_7_days(self, generated_events, now):
        result = process_query("Show malware detections in last 7 days", generated_events, now=now)

        assert result.intent.entities.event_type == ["malware_detection"]
        assert result.intent.entities.time_range == "last_7_days"
        assert result.intent.confidence == 0.9
        cutoff = now - timedelta(days=7)
        assert all(e.event_type == "malware_detection" for e in result.events)
        assert all(e.timestamp >= cutoff for e in result.events)
        expected = [
            e for e in generated_events
            if e.event_type == "malware_detection" and e.timestamp >= cutoff
        ]
        assert result.events == expected

    def test_filter_follow_up(self, sample_events, now):
        previous = QueryIntent("show", QueryEntities(event_type=["failed_login"]), 0.7)
        result = process_query("filter", sample_events, previous, now=now)

        assert result.intent.entities.event_type == ["failed_login"]
        assert ids(result.events) == ["EVT-000002", "EVT-000004"]

    def test_order_preserved(self, sample_events, now):
        reversed_events = list(reversed(sample_events))
        result = process_query("show malware", reversed_events, now=now)
        assert ids(result.events) == ["EVT-000006", "EVT-000001"]

    def test_empty_dataset(self, now):
        result = QueryProcessor().process("show malware today", [], now=now)
        assert result.events == []
        assert result.stats.total == 0
        assert result.summary == "Found 0 security events matching type: malware detection from today."

    def test_result_serialization(self, sample_events, now):
        data = process_query("show high risk malware", sample_events, now=now).to_dict()
        assert set(data) == {"intent", "dslQuery", "kqlQuery", "summary", "events", "stats"}
        assert data["intent"]["entities"] == {"eventType": ["malware_detection"], "severity": ["high"]}
        assert data["stats"] == {"total": 2, "highSeverity": 2, "mediumSeverity": 0, "lowSeverity": 0}
        assert data["events"][0]["eventType"] == "malware_detection"


class TestEventExplorer:
    """Test cases for search, sort and pagination."""

    def test_default_sorts_newest_first(self, sample_events):
        page = search_events(list(reversed(sample_events)))
        assert ids(page.events) == [
            "EVT-000001", "EVT-000002", "EVT-000004", "EVT-000003",
            "EVT-000005", "EVT-000006", "EVT-000007", "EVT-000008",
        ]
        assert page.total == 8
        assert page.total_pages == 1

    def test_search_by_username_and_location(self, sample_events):
        assert ids(search_events(sample_events, search="ADMIN").events) == ["EVT-000001", "EVT-000008"]
        assert ids(search_events(sample_events, search="london").events) == ["EVT-000003"]

    def test_severity_and_type_filters(self, sample_events):
        page = search_events(sample_events, severity="high", event_type="malware_detection")
        assert ids(page.events) == ["EVT-000001", "EVT-000006"]

    def test_sort_by_risk_score_ascending(self, sample_events):
        page = search_events(sample_events, sort_by="risk_score", sort_order="asc")
        scores = [e.risk_score for e in page.events]
        assert scores == sorted(scores)

    def test_pagination(self, sample_events):
        page = search_events(sample_events, page=2, page_size=3)
        assert ids(page.events) == ["EVT-000003", "EVT-000005", "EVT-000006"]
        assert page.total_pages == 3

    def test_invalid_arguments(self, sample_events):
        with pytest.raises(ValueError):
            search_events(sample_events, sort_by="username")
        with pytest.raises(ValueError):
            search_events(sample_events, sort_order="sideways")
        with pytest.raises(ValueError):
            search_events(sample_events, page=0)

#!/usr/bin/env python3
"""
CLI entry point for the AstroGuard SIEM assistant.

Generates synthetic event datasets, answers natural language queries against
a generated or loaded dataset (a single query, or a file of queries processed
as one conversation) and builds security reports.
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from astroguard import QuerySession, SecurityEvent, generate_report, generate_security_events
from astroguard.config import load_config
from astroguard.reports import REPORT_TYPES

logger = logging.getLogger('astroguard.cli')


def serialize_for_json(obj: Any) -> Any:
    """Recursively serialize objects for JSON output.

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable version of the object
    """
    if isinstance(obj, datetime):
        return obj.isoformat()
    elif hasattr(obj, 'to_dict'):
        return serialize_for_json(obj.to_dict())
    elif isinstance(obj, dict):
        return {k: serialize_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [serialize_for_json(item) for item in obj]
    else:
        return obj


def load_events(input_file: str) -> List[SecurityEvent]:
    """Load events from an NDJSON or JSON array file.

    Args:
        input_file: Path to input file (NDJSON or JSON)

    Returns:
        List of security events

    Raises:
        ValueError: If the file is missing or its format is invalid
    """
    path = Path(input_file)

    if not path.exists():
        raise ValueError(f"Input file not found: {input_file}")

    content = path.read_text().strip()
    if not content:
        return []

    records: List[Dict[str, Any]] = []
    if content.startswith('['):
        # JSON array format
        try:
            records = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}")
    else:
        # NDJSON format
        for line_num, line in enumerate(content.split('\n'), 1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"Line {line_num}: Invalid JSON: {e}")

    events = []
    for index, record in enumerate(records, 1):
        if not isinstance(record, dict):
            raise ValueError(f"Event {index}: Event must be a JSON object")
        try:
            events.append(SecurityEvent.from_dict(record))
        except ValueError as e:
            raise ValueError(f"Event {index}: {e}")
    return events


def load_queries(queries_file: str) -> List[str]:
    """Load queries from a text file, one per line.

    Blank lines and lines starting with '#' are skipped.

    Raises:
        ValueError: If the file does not exist
    """
    path = Path(queries_file)
    if not path.exists():
        raise ValueError(f"Queries file not found: {queries_file}")

    return [
        line.strip() for line in path.read_text().splitlines()
        if line.strip() and not line.strip().startswith('#')
    ]


def write_events(events: List[SecurityEvent], output_file: Optional[str], ndjson: bool = False) -> None:
    """Write events as a JSON array or NDJSON to a file or stdout."""
    records = [event.to_dict() for event in events]
    if ndjson:
        output = '\n'.join(json.dumps(record) for record in records)
    else:
        output = json.dumps(records, indent=2)

    if output_file:
        Path(output_file).write_text(output + '\n')
        logger.info(f"Wrote {len(events)} events to {output_file}")
    else:
        print(output)


def run_queries(
    queries: List[str],
    events: List[SecurityEvent],
    include_events: bool = False,
) -> List[Dict[str, Any]]:
    """Process queries in order as one conversation.

    Args:
        queries: Query strings
        events: Dataset to query
        include_events: Whether to include matched events in the output

    Returns:
        One JSON-ready result per query
    """
    session = QuerySession(events)
    results = []

    for query in queries:
        result = session.ask(query)
        output = result.to_dict()
        if not include_events:
            output['eventCount'] = len(output.pop('events'))
        results.append({'query': query, **output})

    return results


def build_events(args: argparse.Namespace, event_count: int) -> List[SecurityEvent]:
    if args.events:
        logger.info(f"Loading events from {args.events}")
        events = load_events(args.events)
    else:
        events = generate_security_events(args.count or event_count)
    logger.info(f"Using {len(events)} events")
    return events


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="AstroGuard - natural language queries over security events"
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    generate_parser = subparsers.add_parser("generate", help="Generate a synthetic dataset")
    generate_parser.add_argument("-n", "--count", type=int, help="Number of events")
    generate_parser.add_argument("-o", "--output", help="Output file (stdout by default)")
    generate_parser.add_argument("--ndjson", action="store_true", help="Write NDJSON instead of a JSON array")

    query_parser = subparsers.add_parser("query", help="Answer natural language queries")
    query_parser.add_argument("query", nargs="?", help="Query string to process")
    query_parser.add_argument("-f", "--file", help="File of queries, one per line, run as a conversation")
    query_parser.add_argument("-e", "--events", help="Events file (NDJSON or JSON array); generated if omitted")
    query_parser.add_argument("-n", "--count", type=int, help="Number of events to generate")
    query_parser.add_argument("--include-events", action="store_true", help="Include matched events in output")

    report_parser = subparsers.add_parser("report", help="Build a security report")
    report_parser.add_argument("type", choices=sorted(REPORT_TYPES), help="Report type")
    report_parser.add_argument("-e", "--events", help="Events file (NDJSON or JSON array); generated if omitted")
    report_parser.add_argument("-n", "--count", type=int, help="Number of events to generate")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        config = load_config(args.config)
        if not args.debug:
            logging.getLogger().setLevel(config.log_level.upper())
    except ValueError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "generate":
        count = args.count if args.count is not None else config.event_count
        write_events(generate_security_events(count), args.output, args.ndjson)
        return 0

    try:
        events = build_events(args, config.event_count)
    except ValueError as e:
        print(f"Error loading events: {e}", file=sys.stderr)
        return 1

    if args.command == "report":
        report = generate_report(args.type, events)
        print(json.dumps(serialize_for_json(report), indent=2))
        return 0

    if args.file:
        try:
            queries = load_queries(args.file)
        except ValueError as e:
            print(f"Error loading queries: {e}", file=sys.stderr)
            return 1
    elif args.query is not None:
        queries = [args.query]
    else:
        query_parser.print_help()
        return 1

    results = run_queries(queries, events, args.include_events)
    output = results[0] if len(results) == 1 and not args.file else results
    print(json.dumps(serialize_for_json(output), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

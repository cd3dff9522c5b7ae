"""
FastAPI application for the AstroGuard SIEM assistant.

Provides endpoints for:
- Asking natural language questions about the event dataset
- Browsing events, dashboard analytics, alerts and the threat map
- Generating security reports
- Reading and exporting the query audit trail
"""

from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from .analytics import (
    dashboard_stats,
    event_type_distribution,
    location_threats,
    proactive_alerts,
    severity_breakdown,
    timeline,
    top_risky_users,
)
from .config import AssistantConfig, load_config
from .engine import search_events
from .generator import generate_security_events
from .models import SecurityEvent
from .reports import REPORT_TYPES, generate_report
from .session import QuerySession
from .storage import AuditLog


# Pydantic models for API requests/responses


class EventModel(BaseModel):
    """A security event as exposed by the API."""
    id: str
    timestamp: str
    eventType: str
    severity: str
    ip: str
    username: str
    location: str
    details: str
    risk_score: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    mitreAttack: Optional[str] = None
    isMissionCritical: bool = False


class EntitiesModel(BaseModel):
    """Entities extracted from a query."""
    eventType: Optional[List[str]] = None
    timeRange: Optional[str] = None
    severity: Optional[List[str]] = None
    username: Optional[str] = None
    ip: Optional[str] = None


class IntentModel(BaseModel):
    """Parsed query intent."""
    action: str
    entities: EntitiesModel
    confidence: float


class StatsModel(BaseModel):
    """Severity counts over the matched events."""
    total: int
    highSeverity: int
    mediumSeverity: int
    lowSeverity: int


class QueryRequest(BaseModel):
    """Request to process a natural language query."""
    query: str = Field(..., description="Free-text question about the events")
    use_context: bool = Field(True, description="Use the previous query as context")


class QueryResponse(BaseModel):
    """Response from the query endpoint."""
    intent: IntentModel
    dslQuery: str
    kqlQuery: str
    summary: str
    events: List[EventModel]
    stats: StatsModel


class EventPageResponse(BaseModel):
    """A page of events from the event explorer."""
    events: List[EventModel]
    total: int
    page: int
    page_size: int
    total_pages: int


class AuditEntryModel(BaseModel):
    """A recorded query."""
    id: str
    timestamp: str
    query: str
    intent: IntentModel
    dslQuery: str
    kqlQuery: str
    summary: str
    stats: StatsModel
    eventCount: int


class AuditStatsModel(BaseModel):
    """Audit trail statistics."""
    totalQueries: int
    avgConfidence: int
    totalEventsReturned: int


def create_app(
    events: Optional[Sequence[SecurityEvent]] = None,
    config: Optional[AssistantConfig] = None,
    audit_log: Optional[AuditLog] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        events: Dataset to serve (generated from config when omitted)
        config: Assistant configuration (loaded from $ASTROGUARD_CONFIG when omitted)
        audit_log: Optional AuditLog instance (for testing)

    Returns:
        Configured FastAPI app
    """
    config = config or load_config()

    app = FastAPI(
        title="AstroGuard SIEM Assistant API",
        description="Natural language querying and analytics over security events",
        version="1.0.0"
    )

    # The dataset is built once and only read afterwards
    dataset = tuple(events) if events is not None else tuple(
        generate_security_events(config.event_count)
    )
    events_by_id = {event.id: event for event in dataset}
    audit = audit_log if audit_log is not None else AuditLog()
    session = QuerySession(dataset, audit_log=audit, processing_delay=config.processing_delay)

    # API Routes

    @app.post("/api/query", response_model=QueryResponse)
    def run_query(request: QueryRequest) -> QueryResponse:
        """Process a natural language query.

        Args:
            request: Query request

        Returns:
            QueryResponse with intent, rendered queries, matches and stats
        """
        if not request.use_context:
            session.reset()
        result = session.ask(request.query)
        return QueryResponse(**result.to_dict())

    @app.post("/api/session/reset")
    def reset_session() -> Dict[str, str]:
        """Forget the conversation context."""
        session.reset()
        return {"message": "Session context reset"}

    @app.get("/api/events", response_model=EventPageResponse)
    async def list_events(
        search: str = "",
        severity: str = "all",
        event_type: str = "all",
        sort_by: str = "timestamp",
        sort_order: str = "desc",
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1, le=500),
    ) -> EventPageResponse:
        """Search, sort and paginate the dataset.

        Raises:
            HTTPException: If sort arguments are invalid
        """
        try:
            result = search_events(
                dataset,
                search=search,
                severity=severity,
                event_type=event_type,
                sort_by=sort_by,
                sort_order=sort_order,
                page=page,
                page_size=page_size or config.page_size,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return EventPageResponse(**result.to_dict())

    @app.get("/api/events/{event_id}", response_model=EventModel)
    async def get_event(event_id: str) -> EventModel:
        """Get an event by ID.

        Raises:
            HTTPException: If the event is not found
        """
        event = events_by_id.get(event_id)
        if event is None:
            raise HTTPException(
                status_code=404,
                detail=f"Event '{event_id}' not found"
            )
        return EventModel(**event.to_dict())

    @app.get("/api/dashboard")
    async def dashboard() -> Dict[str, Any]:
        """Dashboard counters and chart data."""
        return {
            "stats": dashboard_stats(dataset, config.detection_rate).to_dict(),
            "severity": severity_breakdown(dataset),
            "timeline": [bucket.to_dict() for bucket in timeline(dataset)],
            "eventTypes": event_type_distribution(dataset),
            "topRiskyUsers": [user.to_dict() for user in top_risky_users(dataset)],
            "recentEvents": [event.to_dict() for event in dataset[:10]],
        }

    @app.get("/api/alerts")
    async def alerts(dismissed: List[str] = Query(default=[])) -> Dict[str, Any]:
        """Proactive alerts, skipping dismissed event IDs."""
        summary = proactive_alerts(
            dataset,
            dismissed=dismissed,
            limit=config.alert_limit,
            brute_force_threshold=config.brute_force_threshold,
        )
        return summary.to_dict()

    @app.get("/api/threat-map")
    async def threat_map(
        severity: str = "all",
        event_type: str = "all",
        limit: int = Query(10, ge=1, le=100),
    ) -> List[Dict[str, Any]]:
        """Locations ranked by threat intensity."""
        threats = location_threats(dataset, limit=limit, severity=severity, event_type=event_type)
        return [threat.to_dict() for threat in threats]

    @app.get("/api/reports/{report_type}")
    async def get_report(report_type: str) -> Dict[str, Any]:
        """Generate a report.

        Raises:
            HTTPException: If the report type is unknown
        """
        if report_type not in REPORT_TYPES:
            raise HTTPException(
                status_code=404,
                detail=f"Report type '{report_type}' not found"
            )
        return generate_report(report_type, dataset).to_dict()

    @app.get("/api/audit", response_model=List[AuditEntryModel])
    async def list_audit() -> List[AuditEntryModel]:
        """Get the audit trail, newest first."""
        return [AuditEntryModel(**entry.to_dict()) for entry in audit.get_all()]

    @app.get("/api/audit/stats", response_model=AuditStatsModel)
    async def audit_stats() -> AuditStatsModel:
        return AuditStatsModel(**audit.stats())

    @app.get("/api/audit/export")
    async def export_audit() -> PlainTextResponse:
        """Export the audit trail as JSON text."""
        return PlainTextResponse(audit.export(), media_type="application/json")

    @app.delete("/api/audit")
    async def clear_audit() -> Dict[str, Any]:
        removed = audit.clear()
        return {"message": "Audit log cleared", "removed": removed}

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint.

        Returns:
            Health status
        """
        return {"status": "healthy", "events": len(dataset)}

    return app


# Create the app instance
app = create_app()

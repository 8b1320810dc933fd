from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from counter_store.base import CounterStore
from ticket_service.audit import AuditLogger
from ticket_service.config import Settings, settings
from ticket_service.metrics import MetricsCollector, metrics
from ticket_service.storage import build_store
from ticketing.engine import TicketEngine
from ticketing.errors import InvalidArgument, NotFound, StorageUnavailable, TicketServiceError
from ticketing.validators import validate_http_queue_id

_STATUS_BY_ERROR = {
    InvalidArgument: 400,
    NotFound: 404,
    StorageUnavailable: 503,
}


class BatchRequest(BaseModel):
    queue_ids: List[str] = Field(alias="queueIds")


def _status_for(exc: TicketServiceError) -> int:
    for kind, status in _STATUS_BY_ERROR.items():
        if isinstance(exc, kind):
            return status
    return 500


def create_app(
    config: Settings,
    store: CounterStore | None = None,
    audit: AuditLogger | None = None,
    collector: MetricsCollector | None = None,
) -> FastAPI:
    app = FastAPI(title="Queue Ticket Service", version=config.service_version)
    started = time.monotonic()

    collector = collector or metrics
    engine = TicketEngine(
        store=store if store is not None else build_store(config),
        audit=audit or AuditLogger(config.audit_log_path),
        metrics=collector,
        key_prefix=config.key_prefix,
    )
    app.state.engine = engine

    @app.exception_handler(TicketServiceError)
    def handle_ticket_error(_request: Request, exc: TicketServiceError) -> JSONResponse:
        return JSONResponse(
            status_code=_status_for(exc),
            content={"error": str(exc), "code": exc.code},
        )

    @app.exception_handler(RequestValidationError)
    def handle_bad_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(err.get("msg", "invalid value") for err in exc.errors())
        return JSONResponse(
            status_code=400,
            content={"error": f"Invalid request: {problems}", "code": InvalidArgument.code},
        )

    @app.get("/health")
    def health() -> JSONResponse:
        body: Dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "uptime": round(time.monotonic() - started, 3),
            "version": config.service_version,
            "backend": config.storage_backend,
        }
        try:
            reachable = engine.ping()
        except StorageUnavailable as exc:
            reachable = False
            body["message"] = str(exc)
        if not reachable:
            body.update(status="error", storage="unreachable")
            return JSONResponse(status_code=503, content=body)
        body.update(status="ok", storage="reachable")
        return JSONResponse(status_code=200, content=body)

    @app.get("/api/v1/tickets")
    def list_queues() -> Dict[str, Any]:
        collector.inc("http_requests_total", "list_queues")
        queues = [s.to_dict() for s in engine.list_queues()]
        return {"queues": queues, "count": len(queues)}

    @app.post("/api/v1/tickets/batch")
    def issue_batch(req: BatchRequest) -> Dict[str, Any]:
        collector.inc("http_requests_total", "issue_batch")
        if not req.queue_ids:
            raise InvalidArgument("At least one queue ID is required")
        ids = [validate_http_queue_id(q) for q in req.queue_ids]
        return {"tickets": [t.to_dict() for t in engine.issue_batch(ids)]}

    @app.get("/api/v1/tickets/{queue_id}")
    def issue_ticket(queue_id: str) -> Dict[str, Any]:
        collector.inc("http_requests_total", "issue_ticket")
        ticket = engine.issue_ticket(validate_http_queue_id(queue_id))
        return ticket.to_dict()

    @app.get("/api/v1/tickets/{queue_id}/current")
    def current_ticket(queue_id: str) -> Dict[str, Any]:
        collector.inc("http_requests_total", "current_ticket")
        status = engine.peek_status(validate_http_queue_id(queue_id))
        return {
            "queueId": status.queue_id,
            "currentTicket": status.current_ticket,
            "nextTicket": status.next_ticket,
        }

    @app.get("/api/v1/tickets/{queue_id}/stats")
    def queue_stats(queue_id: str) -> Dict[str, Any]:
        collector.inc("http_requests_total", "queue_stats")
        return engine.queue_status(validate_http_queue_id(queue_id)).to_dict()

    @app.post("/api/v1/tickets/{queue_id}/reset")
    def reset_queue(queue_id: str) -> Dict[str, Any]:
        collector.inc("http_requests_total", "reset_queue")
        queue_id = validate_http_queue_id(queue_id)
        engine.reset_queue(queue_id)
        return {"success": True, "queueId": queue_id, "message": f"Queue {queue_id} reset"}

    @app.delete("/api/v1/tickets/{queue_id}")
    def delete_queue(queue_id: str) -> Dict[str, Any]:
        collector.inc("http_requests_total", "delete_queue")
        queue_id = validate_http_queue_id(queue_id)
        if not engine.delete_queue(queue_id):
            raise NotFound(f"Queue not found: {queue_id}")
        return {"success": True, "queueId": queue_id}

    @app.get(config.metrics_path, response_class=PlainTextResponse)
    def metrics_export() -> str:
        if not config.metrics_enabled:
            return ""
        return collector.render_prometheus()

    return app


app = create_app(settings)

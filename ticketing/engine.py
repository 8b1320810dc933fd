from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from counter_store.base import CounterStore
from ticketing.errors import NotFound, TicketServiceError
from ticketing.models import TICKET_MODULUS, QueueStatus, Ticket, format_number
from ticketing.validators import require_queue_id, require_queue_ids

DEFAULT_KEY_PREFIX = "queue:"
KEY_SUFFIX = ":ticket"


class TicketEngine:
    """
    Issues sequential four-digit tickets per queue on top of a CounterStore.

    The store holds, per queue, the number the next issue will hand out.
    A missing key and a stored 0 both mean "next ticket is 0000", which is
    what lets reset persist 0 and still restart the sequence at 0000.

    The engine keeps no counter state between calls; the atomicity of
    issuing comes from store.advance().
    """

    format_number = staticmethod(format_number)

    def __init__(self, store: CounterStore, audit=None, metrics=None, key_prefix: str = DEFAULT_KEY_PREFIX):
        self.store = store
        self.audit = audit
        self.metrics = metrics
        self.key_prefix = key_prefix

    def key_for(self, queue_id: str) -> str:
        return f"{self.key_prefix}{queue_id}{KEY_SUFFIX}"

    def queue_id_from_key(self, key: str) -> Optional[str]:
        if not (key.startswith(self.key_prefix) and key.endswith(KEY_SUFFIX)):
            return None
        queue_id = key[len(self.key_prefix) : len(key) - len(KEY_SUFFIX)]
        return queue_id or None

    def issue_next(self, queue_id: str) -> str:
        return self.issue_ticket(queue_id).formatted_number

    def issue_ticket(self, queue_id: str) -> Ticket:
        def action(qid: str) -> Ticket:
            number = self.store.advance(self.key_for(qid), TICKET_MODULUS)
            return Ticket(queue_id=qid, number=number)

        ticket = self._run("issue", queue_id, action, lambda t: {"ticket": t.formatted_number})
        if self.metrics is not None:
            self.metrics.inc("tickets_issued_total", ticket.queue_id)
        return ticket

    def issue_batch(self, queue_ids: Iterable[str]) -> List[Ticket]:
        ids = require_queue_ids(queue_ids)
        return [self.issue_ticket(qid) for qid in ids]

    def peek_current(self, queue_id: str) -> str:
        return self._run("peek", queue_id, lambda qid: self._status(qid).current_ticket)

    def peek_next(self, queue_id: str) -> str:
        return self._run("peek_next", queue_id, lambda qid: self._status(qid).next_ticket)

    def peek_status(self, queue_id: str) -> QueueStatus:
        """Current and next numbers from a single read; absent queues are not an error."""
        return self._run("peek", queue_id, self._status)

    def queue_status(self, queue_id: str) -> QueueStatus:
        def action(qid: str) -> QueueStatus:
            status = self._status(qid)
            if not status.exists:
                raise NotFound(f"Queue not found: {qid}")
            return status

        return self._run("status", queue_id, action)

    def reset_queue(self, queue_id: str) -> bool:
        return self._run("reset", queue_id, lambda qid: bool(self.store.set(self.key_for(qid), 0)))

    def delete_queue(self, queue_id: str) -> bool:
        return self._run(
            "delete",
            queue_id,
            lambda qid: bool(self.store.delete(self.key_for(qid))),
            lambda existed: {"existed": existed},
        )

    def list_queues(self) -> List[QueueStatus]:
        statuses: List[QueueStatus] = []
        for key in self.store.keys(self.key_prefix):
            queue_id = self.queue_id_from_key(key)
            if queue_id is None:
                continue
            value = self.store.get(key)
            if value is None:
                # deleted between the scan and the read
                continue
            statuses.append(QueueStatus(queue_id=queue_id, tickets_in_cycle=value))
        statuses.sort(key=lambda s: s.queue_id)
        return statuses

    def ping(self) -> bool:
        return bool(self.store.ping())

    def _status(self, queue_id: str) -> QueueStatus:
        value = self.store.get(self.key_for(queue_id))
        if value is None:
            return QueueStatus(queue_id=queue_id, tickets_in_cycle=0, exists=False)
        return QueueStatus(queue_id=queue_id, tickets_in_cycle=value)

    def _run(
        self,
        operation: str,
        queue_id: Any,
        action: Callable[[str], Any],
        summarize: Optional[Callable[[Any], Dict[str, Any]]] = None,
    ) -> Any:
        t0 = time.perf_counter()
        try:
            qid = require_queue_id(queue_id)
            result = action(qid)
        except TicketServiceError as exc:
            self._record(operation, queue_id, t0, "error", {"error_code": exc.code, "error": str(exc)})
            raise
        self._record(operation, qid, t0, "ok", summarize(result) if summarize else None)
        return result

    def _record(
        self,
        operation: str,
        queue_id: Any,
        t0: float,
        outcome: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        latency_ms = (time.perf_counter() - t0) * 1000.0
        if self.metrics is not None:
            self.metrics.inc("ticket_operations_total", operation)
            if outcome != "ok":
                self.metrics.inc("ticket_errors_total", (extra or {}).get("error_code", "UNKNOWN"))
            self.metrics.observe_latency(operation, latency_ms)
        if self.audit is not None:
            event = {
                "event": f"queue.{operation}",
                "queue_id": queue_id if isinstance(queue_id, str) else repr(queue_id),
                "outcome": outcome,
                "latency_ms": latency_ms,
            }
            if extra:
                event.update(extra)
            try:
                self.audit.emit(event)
            except OSError:
                # the operation already happened; its result is returned regardless
                if self.metrics is not None:
                    self.metrics.inc("audit_write_errors_total", operation)

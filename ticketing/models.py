from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict

from ticketing.errors import InvalidArgument

MIN_TICKET_NUMBER = 0
MAX_TICKET_NUMBER = 9999
TICKET_MODULUS = MAX_TICKET_NUMBER + 1
TICKET_WIDTH = 4


def _require_int(n: Any) -> int:
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidArgument(f"ticket number must be an integer, got {type(n).__name__}")
    return n


def format_number(n: int) -> str:
    """Wrap ``n`` into 0..9999 and zero-pad it to four digits."""
    return f"{_require_int(n) % TICKET_MODULUS:0{TICKET_WIDTH}d}"


def is_valid_number(n: Any) -> bool:
    return (
        isinstance(n, int)
        and not isinstance(n, bool)
        and MIN_TICKET_NUMBER <= n <= MAX_TICKET_NUMBER
    )


@dataclass(frozen=True)
class Ticket:
    """
    A single issued ticket. Unlike format_number(), the constructor refuses
    out-of-range numbers instead of wrapping them.
    """

    queue_id: str
    number: int
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not isinstance(self.queue_id, str) or not self.queue_id:
            raise InvalidArgument("queue id is required")
        if not is_valid_number(self.number):
            raise InvalidArgument(
                f"ticket number must be between {MIN_TICKET_NUMBER} and {MAX_TICKET_NUMBER}, "
                f"got {self.number!r}"
            )

    @property
    def formatted_number(self) -> str:
        return format_number(self.number)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queueId": self.queue_id,
            "ticketNumber": self.formatted_number,
            "timestamp": self.issued_at.isoformat(),
        }


@dataclass(frozen=True)
class QueueStatus:
    queue_id: str
    tickets_in_cycle: int
    exists: bool = True

    @property
    def next_ticket(self) -> str:
        return format_number(self.tickets_in_cycle)

    @property
    def current_ticket(self) -> str:
        # 0 means nothing handed out since creation or reset
        if self.tickets_in_cycle == 0:
            return format_number(0)
        return format_number(self.tickets_in_cycle - 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queueId": self.queue_id,
            "currentTicket": self.current_ticket,
            "nextTicket": self.next_ticket,
            "ticketsInCycle": self.tickets_in_cycle,
        }

from __future__ import annotations


class TicketServiceError(Exception):
    code = "TICKET_SERVICE_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code:
            self.code = code


class InvalidArgument(TicketServiceError):
    code = "INVALID_ARGUMENT"


class NotFound(TicketServiceError):
    code = "NOT_FOUND"


class StorageUnavailable(TicketServiceError):
    """Backend I/O failed (unreachable, timed out, or returned garbage)."""

    code = "STORAGE_UNAVAILABLE"

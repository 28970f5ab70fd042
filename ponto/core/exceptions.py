"""
Domain errors raised by the report pipeline and its collaborators.

The HTTP layer maps them onto responses; the report core itself only
raises and never logs.
"""

from __future__ import annotations

from typing import Literal

EncodingErrorKind = Literal["pdf-engine-unavailable", "generic"]


class PontoError(Exception):
    pass


class UnknownEmployeeError(PontoError):
    """Punch events reference an employee missing from the directory."""

    def __init__(self, employee_id: object) -> None:
        super().__init__(f"Unknown employee referenced by punch events: {employee_id}")
        self.employee_id = employee_id


class StorageError(PontoError):
    """A record or settings store query failed."""


class ReportGenerationError(PontoError):
    def __init__(self, message: str, kind: EncodingErrorKind = "generic") -> None:
        super().__init__(message)
        self.kind = kind


class EncodingError(ReportGenerationError):
    """The CSV serializer or the PDF layout engine failed."""


class EmailDeliveryError(PontoError):
    """The report was built but could not be delivered."""


class MissingRecipientError(EmailDeliveryError):
    """No ``report_email`` setting has been configured."""


class InvalidTokenError(PontoError):
    """A JWT failed verification or carries an unexpected type claim."""

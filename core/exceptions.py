"""
Error kinds and exception hierarchy for the recommendation core.

Every failure surfaced by the pipeline is classified into one ErrorKind,
which fixes the HTTP status reported to the caller.
"""
from enum import Enum
from typing import List, Optional

import requests


class ErrorKind(str, Enum):
    """Failure classes reported by the orchestrator."""
    VALIDATION = "Validation"
    TIMEOUT = "Timeout"
    CONNECTION_REFUSED = "ConnectionRefused"
    CONTRACT_VIOLATION = "ContractViolation"
    UNKNOWN = "Unknown"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.CONNECTION_REFUSED: 503,
    ErrorKind.CONTRACT_VIOLATION: 500,
    ErrorKind.UNKNOWN: 500,
}


class RecommenderError(Exception):
    """Base exception for recommendation service errors."""
    kind = ErrorKind.UNKNOWN


class ConfigurationError(RecommenderError):
    """Raised at startup when configuration cannot be used."""
    pass


class FieldMappingError(ConfigurationError):
    """Raised when the field mapping table is incomplete or ambiguous."""
    pass


class UnresolvedFieldError(FieldMappingError, KeyError):
    """Raised when an internal symbol has no external name."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"No field mapping configured for '{symbol}'")

    def __str__(self) -> str:
        return self.args[0]


class CandidateValidationError(RecommenderError):
    """Raised when a candidate is missing required attributes."""
    kind = ErrorKind.VALIDATION

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class OperationTimeoutError(RecommenderError, TimeoutError):
    """Raised when a collaborator call misses its deadline."""
    kind = ErrorKind.TIMEOUT

    def __init__(self, label: str, duration_ms: int):
        self.label = label
        self.duration_ms = duration_ms
        super().__init__(f"{label} timeout after {duration_ms}ms")


class ScoringServiceUnavailableError(RecommenderError):
    """Raised when the scoring service refuses or drops the connection."""
    kind = ErrorKind.CONNECTION_REFUSED


class ContractViolationError(RecommenderError):
    """Raised when a collaborator does not honour its contract."""
    kind = ErrorKind.CONTRACT_VIOLATION


class MissingOperationError(ContractViolationError):
    """Raised when a storage operation is not implemented by the backend."""

    def __init__(self, operation: str, external_name: str):
        self.operation = operation
        self.external_name = external_name
        super().__init__(f"Database method {external_name} not found")


class EmptyScoringResponseError(ContractViolationError):
    """Raised when the scoring service answers with no body."""

    def __init__(self, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(f"Scoring service returned an empty response (status {status_code})")


class CandidateNotFoundError(RecommenderError):
    """Raised by storage when a candidate id does not exist."""

    def __init__(self, candidate_id: str):
        self.candidate_id = candidate_id
        super().__init__(f"Candidate {candidate_id} not found")


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Map an exception surfaced by a pipeline stage to its ErrorKind.

    Timeouts are checked before connection errors because
    requests.ConnectTimeout is both.
    """
    if isinstance(exc, RecommenderError):
        return exc.kind
    if isinstance(exc, (requests.Timeout, TimeoutError)):
        return ErrorKind.TIMEOUT
    if isinstance(exc, (requests.ConnectionError, ConnectionRefusedError)):
        return ErrorKind.CONNECTION_REFUSED
    return ErrorKind.UNKNOWN

"""Scoring service client with connection reuse."""

import asyncio
import logging
import threading
from typing import Any, Dict, Optional, Sequence

import requests

from core.exceptions import (
    ContractViolationError,
    EmptyScoringResponseError,
    OperationTimeoutError,
    ScoringServiceUnavailableError,
)
from core.field_mapping import FieldMappingTable
from core.interfaces import ScoringCollaborator
from core.models import Candidate

logger = logging.getLogger(__name__)


class HttpScoringClient(ScoringCollaborator):
    """
    Client for the AI recommendation service.

    Responsibilities:
    - Own one requests.Session per worker thread for connection reuse
      (requests does not guarantee a Session is safe across threads)
    - Build the payload under the mapped AI payload keys
    - Translate transport failures into classified errors

    Retries and the pipeline deadline are applied by the orchestrator; the
    per-request timeout here only keeps worker threads from hanging forever.
    """

    def __init__(
        self,
        url: str,
        field_map: FieldMappingTable,
        request_timeout_ms: int = 20000,
        health_url: Optional[str] = None,
        health_timeout_ms: int = 3000,
    ):
        """
        Initialize scoring client.

        Args:
            url: Recommendation endpoint (POST)
            field_map: Field mapping table for payload keys
            request_timeout_ms: Timeout for the recommendation request
            health_url: Liveness endpoint (GET); derived from url when None
            health_timeout_ms: Timeout for the liveness probe
        """
        self.url = url
        self.field_map = field_map
        self.request_timeout_ms = request_timeout_ms
        self.health_url = health_url or url.replace("/recommend", "/health")
        self.health_timeout_ms = health_timeout_ms

        self._local = threading.local()
        self._sessions = []
        self._sessions_lock = threading.Lock()

        logger.info(
            f"HttpScoringClient initialized: url={self.url}, "
            f"health_url={self.health_url}, timeout={request_timeout_ms}ms"
        )

    @property
    def session(self) -> requests.Session:
        """Session of the calling thread, created on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            with self._sessions_lock:
                self._sessions.append(session)
            self._local.session = session
        return session

    def build_payload(self, candidate: Candidate, careers: Sequence[Any]) -> Dict[str, Any]:
        return {
            self.field_map.resolve("ai_payload.candidate"): candidate.to_payload(self.field_map),
            self.field_map.resolve("ai_payload.careers"): list(careers),
        }

    def _post_recommendation(self, payload: Dict[str, Any]) -> Any:
        try:
            response = self.session.post(
                self.url,
                json=payload,
                timeout=self.request_timeout_ms / 1000,
                headers={"Content-Type": "application/json"},
            )
        except requests.Timeout as e:
            raise OperationTimeoutError("AI recommendation request", self.request_timeout_ms) from e
        except requests.ConnectionError as e:
            raise ScoringServiceUnavailableError(f"Scoring service unreachable at {self.url}: {e}") from e

        response.raise_for_status()
        if not response.content or not response.content.strip():
            raise EmptyScoringResponseError(response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise ContractViolationError(
                f"Scoring service returned invalid JSON (status {response.status_code})"
            ) from e
        if body is None:
            raise EmptyScoringResponseError(response.status_code)
        return body

    async def submit(self, candidate: Candidate, careers: Sequence[Any]) -> Any:
        payload = self.build_payload(candidate, careers)
        logger.info(f"Submitting candidate {candidate.id} with {len(careers)} careers for scoring")
        return await asyncio.to_thread(self._post_recommendation, payload)

    def _get_health(self) -> None:
        response = self.session.get(self.health_url, timeout=self.health_timeout_ms / 1000)
        response.raise_for_status()

    async def check_health(self) -> None:
        await asyncio.to_thread(self._get_health)

    def close(self):
        """Close every worker session and release resources."""
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()
        logger.info(f"HttpScoringClient closed {len(sessions)} session(s)")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

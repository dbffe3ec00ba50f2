"""
Recommendation Orchestrator - the end-to-end recommendation pipeline.

Stages run strictly in order:

    validating -> saving -> fetching_careers -> scoring -> persisting -> done

Any stage failure moves the pipeline to ``failed`` and aborts the rest.
Storage calls are bounded by the storage timeout; the scoring call is the
only one that is also retried, since it is the only remote network call
subject to transient failure. The recommendation write is never retried
because the storage contract does not guarantee idempotence.

A candidate saved before a later failure is left in place: a saved
candidate without recommendations is an accepted intermediate state.
"""
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from core.exceptions import (
    CandidateValidationError,
    ContractViolationError,
    ErrorKind,
    classify_error,
)
from core.field_mapping import FieldMappingTable
from core.interfaces import ScoringCollaborator, StorageCollaborator
from core.models import (
    Candidate,
    PipelineFailure,
    PipelineStage,
    RecommendationResult,
    SaveResult,
)
from core.resilience import with_retry, with_timeout

logger = logging.getLogger(__name__)

RECOMMENDATION_FAILED = "AI recommendation failed"
SAVE_FAILED = "Failed to save user"
VALIDATION_FAILED = "Validation failed"


@dataclass(frozen=True)
class PipelineSettings:
    """Timeout and retry policy of the pipeline."""
    storage_timeout_ms: int = 5000
    scoring_timeout_ms: int = 20000
    scoring_max_attempts: int = 2
    scoring_retry_base_delay_ms: int = 2000
    expose_error_details: bool = False

    @classmethod
    def from_config(cls, config) -> "PipelineSettings":
        return cls(
            storage_timeout_ms=config.storage.timeout_ms,
            scoring_timeout_ms=config.scoring.timeout_ms,
            scoring_max_attempts=config.scoring.max_attempts,
            scoring_retry_base_delay_ms=config.scoring.retry_base_delay_ms,
            expose_error_details=config.expose_error_details,
        )


def _is_record_sequence(value: Any) -> bool:
    return (
        isinstance(value, Sequence)
        and not isinstance(value, (str, bytes, bytearray))
        and not isinstance(value, Mapping)
    )


class RecommendationOrchestrator:
    """
    Runs one recommendation request.

    Instances are created per request; only the field mapping table, the
    settings and the collaborator handles are shared between requests.
    """

    def __init__(
        self,
        storage: StorageCollaborator,
        scoring: ScoringCollaborator,
        field_map: FieldMappingTable,
        settings: Optional[PipelineSettings] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.storage = storage
        self.scoring = scoring
        self.field_map = field_map
        self.settings = settings or PipelineSettings()
        self.clock = clock

        self.stage = PipelineStage.VALIDATING
        self.candidate_id: Optional[str] = None
        self._started_at = 0.0

    def _enter(self, stage: PipelineStage) -> None:
        logger.debug(f"Pipeline stage {self.stage.value} -> {stage.value} (candidate={self.candidate_id})")
        self.stage = stage

    def _elapsed_ms(self) -> int:
        return int((self.clock() - self._started_at) * 1000)

    def _validated_candidate(self, payload: Mapping) -> Candidate:
        self._enter(PipelineStage.VALIDATING)
        if not isinstance(payload, Mapping):
            raise CandidateValidationError(["Candidate must be an object"])
        candidate = Candidate.from_payload(payload, self.field_map)
        errors = candidate.validate()
        if errors:
            raise CandidateValidationError(errors)
        return candidate

    async def _save(self, candidate: Candidate) -> None:
        self._enter(PipelineStage.SAVING)
        candidate_id = await with_timeout(
            self.storage.save_candidate(candidate),
            self.settings.storage_timeout_ms,
            "Save candidate",
        )
        if candidate_id is None:
            raise ContractViolationError("Storage returned no id for the saved candidate")
        candidate.id = candidate_id
        self.candidate_id = candidate_id

    def _fail(self, exc: Exception, message: str) -> PipelineFailure:
        failed_stage = self.stage
        kind = classify_error(exc)
        self._enter(PipelineStage.FAILED)

        if kind is ErrorKind.VALIDATION:
            message = VALIDATION_FAILED
            details = getattr(exc, "errors", [str(exc)])
        elif self.settings.expose_error_details:
            details = str(exc)
        else:
            details = None

        if kind is ErrorKind.VALIDATION:
            logger.info(f"Candidate rejected: {details}")
        else:
            logger.error(
                f"Pipeline failed at {failed_stage.value} "
                f"(kind={kind.value}, candidate={self.candidate_id}): {exc!r}"
            )

        return PipelineFailure(
            kind=kind,
            error=message,
            stage=failed_stage,
            candidate_id=self.candidate_id,
            processing_time_ms=self._elapsed_ms(),
            details=details,
        )

    async def recommend(self, payload: Mapping) -> Union[RecommendationResult, PipelineFailure]:
        """
        Run the full pipeline for an inbound candidate payload.

        Args:
            payload: Candidate attributes under their external (mapped) names

        Returns:
            RecommendationResult on success, PipelineFailure otherwise.
        """
        self._started_at = self.clock()
        try:
            candidate = self._validated_candidate(payload)
            await self._save(candidate)

            self._enter(PipelineStage.FETCHING_CAREERS)
            careers = await with_timeout(
                self.storage.fetch_careers(candidate.sector),
                self.settings.storage_timeout_ms,
                "Fetch careers",
            )
            if not _is_record_sequence(careers):
                raise ContractViolationError(
                    f"fetch_careers returned {type(careers).__name__}, expected a sequence"
                )

            self._enter(PipelineStage.SCORING)
            recommendations = await with_retry(
                lambda: with_timeout(
                    self.scoring.submit(candidate, careers),
                    self.settings.scoring_timeout_ms,
                    "AI recommendation",
                ),
                max_attempts=self.settings.scoring_max_attempts,
                base_delay_ms=self.settings.scoring_retry_base_delay_ms,
            )
            if not _is_record_sequence(recommendations):
                raise ContractViolationError(
                    f"Scoring service returned {type(recommendations).__name__}, expected a sequence"
                )

            self._enter(PipelineStage.PERSISTING)
            await with_timeout(
                self.storage.update_recommendations(self.candidate_id, recommendations),
                self.settings.storage_timeout_ms,
                "Update recommendations",
            )
        except Exception as e:
            return self._fail(e, RECOMMENDATION_FAILED)

        self._enter(PipelineStage.DONE)
        result = RecommendationResult(
            candidate_id=self.candidate_id,
            recommendations=recommendations,
            processing_time_ms=self._elapsed_ms(),
            careers_analyzed=len(careers),
            recommendations_generated=len(recommendations),
        )
        logger.info(
            f"Candidate {result.candidate_id}: {result.recommendations_generated} recommendations "
            f"from {result.careers_analyzed} careers in {result.processing_time_ms}ms"
        )
        return result

    async def save_candidate(self, payload: Mapping) -> Union[SaveResult, PipelineFailure]:
        """Validate and persist a candidate without requesting recommendations."""
        self._started_at = self.clock()
        try:
            candidate = self._validated_candidate(payload)
            await self._save(candidate)
        except Exception as e:
            return self._fail(e, SAVE_FAILED)

        self._enter(PipelineStage.DONE)
        return SaveResult(candidate_id=self.candidate_id, processing_time_ms=self._elapsed_ms())

"""Value types exchanged between the orchestrator and its collaborators."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from core.exceptions import ErrorKind
from core.field_mapping import CANDIDATE_FIELDS, FieldMappingTable

REQUIRED_CANDIDATE_FIELDS = ("name", "sector")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


@dataclass
class Candidate:
    """
    Candidate profile submitted for career recommendation.

    Attributes are held under internal names; inbound and outbound payloads
    use the external names of the field mapping table. Keys that are not
    mapped are kept verbatim in ``extra``.
    """
    name: Optional[str] = None
    sector: Optional[str] = None
    skills: Optional[List[str]] = None
    experience: Any = None
    education: Any = None
    preferences: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], field_map: FieldMappingTable) -> "Candidate":
        external_names = field_map.section("candidate")
        values = {
            internal: payload.get(external)
            for internal, external in external_names.items()
        }
        mapped_keys = set(external_names.values())
        extra = {k: v for k, v in payload.items() if k not in mapped_keys}
        return cls(extra=extra, **values)

    def validate(self) -> List[str]:
        """Return validation error messages. Empty list means valid."""
        errors = []
        for attr in REQUIRED_CANDIDATE_FIELDS:
            value = getattr(self, attr)
            if _is_blank(value):
                errors.append(f"{attr.capitalize()} is required")
            elif not isinstance(value, str):
                errors.append(f"{attr.capitalize()} must be a string")
        return errors

    def to_payload(self, field_map: FieldMappingTable) -> Dict[str, Any]:
        """Serialize under external names; unset optional attributes are omitted."""
        payload = dict(self.extra)
        for attr in CANDIDATE_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                payload[field_map.resolve(f"candidate.{attr}")] = value
        if self.id is not None:
            payload["id"] = self.id
        return payload


class PipelineStage(str, Enum):
    """Stages of the recommendation pipeline."""
    VALIDATING = "validating"
    SAVING = "saving"
    FETCHING_CAREERS = "fetching_careers"
    SCORING = "scoring"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RecommendationResult:
    """Successful pipeline outcome."""
    candidate_id: str
    recommendations: Sequence[Any]
    processing_time_ms: int
    careers_analyzed: int
    recommendations_generated: int

    success = True
    status_code = 200

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "candidateId": self.candidate_id,
            "recommendations": list(self.recommendations),
            "processingTime": self.processing_time_ms,
            "metadata": {
                "careersAnalyzed": self.careers_analyzed,
                "recommendationsGenerated": self.recommendations_generated,
            },
        }


@dataclass
class SaveResult:
    """Outcome of the save-only flow."""
    candidate_id: str
    processing_time_ms: int

    success = True
    status_code = 200

    def to_response(self) -> Dict[str, Any]:
        return {"success": True, "id": self.candidate_id}


@dataclass
class PipelineFailure:
    """
    Classified pipeline failure.

    candidate_id is set whenever the save step completed before the failure,
    so callers can associate the error with the partially created record.
    """
    kind: ErrorKind
    error: str
    stage: PipelineStage
    candidate_id: Optional[str]
    processing_time_ms: int
    details: Any = None

    success = False

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_response(self) -> Dict[str, Any]:
        response = {
            "success": False,
            "error": self.error,
            "type": self.kind.value,
            "candidateId": self.candidate_id,
            "processingTime": self.processing_time_ms,
        }
        if self.details is not None:
            response["details"] = self.details
        return response

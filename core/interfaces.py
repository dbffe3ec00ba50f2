"""
Collaborator Interfaces - contracts the recommendation core depends on.

Storage and scoring internals are out of scope; the orchestrator only sees
these fixed method sets. External naming conventions are handled by the
implementations through the field mapping table.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence

from core.field_mapping import STORAGE_OPERATIONS, FieldMappingTable
from core.models import Candidate


class StorageCollaborator(ABC):
    """
    Abstract Interface for the storage collaborator.
    """

    @abstractmethod
    async def save_candidate(self, candidate: Candidate) -> str:
        """
        Persist a candidate profile.

        Returns:
            The id assigned by storage.
        """
        pass

    @abstractmethod
    async def fetch_careers(self, sector: str) -> Sequence[Any]:
        """
        Fetch careers for a sector, as an ordered sequence of records.
        """
        pass

    @abstractmethod
    async def update_recommendations(self, candidate_id: str, recommendations: Sequence[Any]) -> None:
        """
        Store recommendations verbatim against a candidate id.
        """
        pass

    @abstractmethod
    async def get_dropdown_options(self) -> Mapping[str, List[str]]:
        """
        Form metadata: option lists keyed by form field.
        """
        pass

    def describe_operations(self, field_map: FieldMappingTable) -> Dict[str, bool]:
        """
        Report which operations the backend implements, keyed by external name.

        The default suits backends implementing every method of this interface.
        """
        return {
            field_map.resolve(f"storage.{operation}"): True
            for operation in STORAGE_OPERATIONS
        }

    async def ping(self) -> None:
        """Raise if the backend is unreachable."""
        return None


class ScoringCollaborator(ABC):
    """
    Abstract Interface for the remote scoring (AI) service.
    """

    @abstractmethod
    async def submit(self, candidate: Candidate, careers: Sequence[Any]) -> Any:
        """
        Submit a candidate with its careers and return the raw response body,
        expected to be a sequence of recommendation records.
        """
        pass

    async def check_health(self) -> None:
        """Raise if the service liveness probe fails."""
        return None

"""
Module Storage Adapter - binds a teammate-provided storage module.

The data team ships a plain Python module whose functions follow their own
naming conventions (``saveCandidate``, ``fetchCareers``, ...). The
adapter looks functions up by the external names of the field mapping table
and translates candidate payloads and the career filter accordingly.
"""
import asyncio
import importlib
import inspect
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from core.exceptions import ConfigurationError, ContractViolationError, MissingOperationError
from core.field_mapping import STORAGE_OPERATIONS, FieldMappingTable
from core.interfaces import StorageCollaborator
from core.models import Candidate

logger = logging.getLogger(__name__)


class ModuleStorageAdapter(StorageCollaborator):
    """
    StorageCollaborator backed by an arbitrary object exposing mapped functions.

    Functions may be sync or async. Sync functions run in a worker thread so
    they never block the event loop.
    """

    def __init__(self, backend: Any, field_map: FieldMappingTable):
        self.backend = backend
        self.field_map = field_map

        missing = [name for name, ok in self.describe_operations().items() if not ok]
        if missing:
            logger.warning(f"Storage backend is missing operations: {', '.join(missing)}")

    @classmethod
    def from_module_path(cls, module_path: str, field_map: FieldMappingTable) -> "ModuleStorageAdapter":
        """Import the storage module by dotted path."""
        if not module_path:
            raise ConfigurationError("storage.module must be set when storage.backend is 'module'")
        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            raise ConfigurationError(
                f"Database service not found. Make sure {module_path} is importable."
            ) from e
        logger.info(f"Loaded storage module {module_path}")
        return cls(module, field_map)

    def _operation(self, operation: str):
        external_name = self.field_map.resolve(f"storage.{operation}")
        func = getattr(self.backend, external_name, None)
        if not callable(func):
            raise MissingOperationError(operation, external_name)
        return func

    async def _invoke(self, operation: str, *args: Any) -> Any:
        func = self._operation(operation)
        if inspect.iscoroutinefunction(func):
            return await func(*args)
        result = await asyncio.to_thread(func, *args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def save_candidate(self, candidate: Candidate) -> str:
        candidate_id = await self._invoke("save_candidate", candidate.to_payload(self.field_map))
        if candidate_id is None:
            raise ContractViolationError("Storage returned no id for the saved candidate")
        return candidate_id

    async def fetch_careers(self, sector: str) -> Sequence[Any]:
        career_filter = {self.field_map.resolve("career_filter.sector"): sector}
        return await self._invoke("fetch_careers", career_filter)

    async def update_recommendations(self, candidate_id: str, recommendations: Sequence[Any]) -> None:
        await self._invoke("update_recommendations", candidate_id, recommendations)

    async def get_dropdown_options(self) -> Mapping[str, List[str]]:
        return await self._invoke("get_dropdown_options")

    def describe_operations(self, field_map: Optional[FieldMappingTable] = None) -> Dict[str, bool]:
        if field_map is None:
            field_map = self.field_map
        report = {}
        for operation in STORAGE_OPERATIONS:
            external_name = field_map.resolve(f"storage.{operation}")
            report[external_name] = callable(getattr(self.backend, external_name, None))
        return report

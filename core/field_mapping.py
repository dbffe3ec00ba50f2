"""
Field Mapping Table - translation between internal and external names.

The orchestrator only speaks internal symbols ("candidate.name",
"storage.save_candidate", ...). Collaborators (the storage module of the
data team, the AI scoring service) agree on external names which can change
through configuration without touching pipeline logic.
"""
import logging
from types import MappingProxyType
from typing import Dict, Mapping, Optional, TYPE_CHECKING

from core.exceptions import FieldMappingError, UnresolvedFieldError

if TYPE_CHECKING:
    from core.config_loader import FieldMappingConfig

logger = logging.getLogger(__name__)

CANDIDATE_FIELDS = ("name", "sector", "skills", "experience", "education", "preferences")
STORAGE_OPERATIONS = ("get_dropdown_options", "save_candidate", "fetch_careers", "update_recommendations")

# Every symbol the core resolves at request time
REQUIRED_SYMBOLS = (
    tuple(f"candidate.{field}" for field in CANDIDATE_FIELDS)
    + tuple(f"storage.{op}" for op in STORAGE_OPERATIONS)
    + ("career_filter.sector", "ai_payload.candidate", "ai_payload.careers")
)


class FieldMappingTable:
    """
    Immutable mapping from internal symbol to external name.

    Validated eagerly on construction: a missing, unknown, blank or
    duplicated (within one section) entry raises FieldMappingError, so a
    bad table stops the process at startup rather than failing a request.
    """

    def __init__(self, mapping: Mapping[str, str]):
        self._validate(mapping)
        self._mapping = MappingProxyType(dict(mapping))
        self._reverse = MappingProxyType({
            (symbol.split(".", 1)[0], external): symbol
            for symbol, external in self._mapping.items()
        })

    @classmethod
    def from_config(cls, config: "FieldMappingConfig") -> "FieldMappingTable":
        """Flatten the sectioned configuration into dotted internal symbols."""
        mapping: Dict[str, str] = {}
        for section, entries in config.model_dump().items():
            for key, external in entries.items():
                mapping[f"{section}.{key}"] = external
        table = cls(mapping)
        logger.info(f"Field mapping table loaded with {len(table)} entries")
        return table

    @staticmethod
    def _validate(mapping: Mapping[str, str]) -> None:
        missing = [symbol for symbol in REQUIRED_SYMBOLS if symbol not in mapping]
        if missing:
            raise FieldMappingError(f"Missing field mappings: {', '.join(missing)}")

        unknown = sorted(set(mapping) - set(REQUIRED_SYMBOLS))
        if unknown:
            raise FieldMappingError(f"Unknown field mapping symbols: {', '.join(unknown)}")

        seen: Dict[tuple, str] = {}
        for symbol, external in mapping.items():
            if not isinstance(external, str) or not external.strip():
                raise FieldMappingError(f"Field mapping for '{symbol}' must be a non-empty string")
            key = (symbol.split(".", 1)[0], external)
            if key in seen:
                raise FieldMappingError(
                    f"'{seen[key]}' and '{symbol}' both map to '{external}'"
                )
            seen[key] = symbol

    def resolve(self, symbol: str) -> str:
        """Return the external name for an internal symbol."""
        try:
            return self._mapping[symbol]
        except KeyError:
            raise UnresolvedFieldError(symbol) from None

    def reverse(self, external: str, section: str) -> Optional[str]:
        """Return the internal symbol for an external name within a section, if any."""
        return self._reverse.get((section, external))

    def section(self, name: str) -> Dict[str, str]:
        """Return {short internal name: external name} for one section."""
        prefix = f"{name}."
        return {
            symbol[len(prefix):]: external
            for symbol, external in self._mapping.items()
            if symbol.startswith(prefix)
        }

    def as_dict(self) -> Dict[str, Dict[str, str]]:
        """Nested view used by diagnostics endpoints."""
        sections: Dict[str, Dict[str, str]] = {}
        for symbol, external in self._mapping.items():
            section, key = symbol.split(".", 1)
            sections.setdefault(section, {})[key] = external
        return sections

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:
        return f"FieldMappingTable({dict(self._mapping)!r})"

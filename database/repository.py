import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import select, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from core.exceptions import CandidateNotFoundError
from core.interfaces import StorageCollaborator
from core.models import Candidate
from database.database import build_session_factory, session_scope
from database.models import Base, CandidateRecord, CareerRecord

logger = logging.getLogger(__name__)


class CareerRepository:
    """Synchronous data access for candidates and careers."""

    def __init__(self, db: Session):
        self.db = db

    def create_candidate(self, candidate: Candidate) -> CandidateRecord:
        record = CandidateRecord(
            name=candidate.name,
            sector=candidate.sector,
            skills=candidate.skills,
            experience=candidate.experience,
            education=candidate.education,
            preferences=candidate.preferences,
            extra=dict(candidate.extra),
        )
        self.db.add(record)
        self.db.flush()  # Generate ID
        return record

    def get_candidate(self, candidate_id: str) -> Optional[CandidateRecord]:
        return self.db.get(CandidateRecord, candidate_id)

    def set_recommendations(self, candidate_id: str, recommendations: Sequence[Any]) -> None:
        record = self.get_candidate(candidate_id)
        if record is None:
            raise CandidateNotFoundError(candidate_id)
        record.recommendations = list(recommendations)
        record.recommendations_updated_at = datetime.now(timezone.utc)

    def careers_by_sector(self, sector: str) -> List[CareerRecord]:
        stmt = (
            select(CareerRecord)
            .where(CareerRecord.sector == sector)
            .order_by(CareerRecord.title)
        )
        return list(self.db.execute(stmt).scalars())

    def add_career(self, data: Mapping[str, Any]) -> CareerRecord:
        known = {"title", "sector", "description", "required_skills", "education_level"}
        record = CareerRecord(
            title=data["title"],
            sector=data["sector"],
            description=data.get("description"),
            required_skills=list(data.get("required_skills") or []),
            education_level=data.get("education_level"),
            attributes={k: v for k, v in data.items() if k not in known and k != "id"},
        )
        self.db.add(record)
        self.db.flush()
        return record

    def dropdown_options(self) -> Dict[str, List[str]]:
        sectors = set()
        skills = set()
        education = set()
        for career in self.db.execute(select(CareerRecord)).scalars():
            sectors.add(career.sector)
            skills.update(career.required_skills or [])
            if career.education_level:
                education.add(career.education_level)
        return {
            "sectors": sorted(sectors),
            "skills": sorted(skills),
            "education": sorted(education),
        }


class SqlStorage(StorageCollaborator):
    """
    StorageCollaborator backed by SQLAlchemy.

    Each operation runs in its own transaction in a worker thread, so a
    deadline on the caller does not roll back a write that is in flight.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = build_session_factory(engine)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def _save_candidate(self, candidate: Candidate) -> str:
        with session_scope(self.session_factory) as session:
            record = CareerRepository(session).create_candidate(candidate)
            logger.info(f"Saved candidate {record.id} (sector={record.sector})")
            return record.id

    def _fetch_careers(self, sector: str) -> List[Dict[str, Any]]:
        with session_scope(self.session_factory) as session:
            return [career.to_dict() for career in CareerRepository(session).careers_by_sector(sector)]

    def _update_recommendations(self, candidate_id: str, recommendations: Sequence[Any]) -> None:
        with session_scope(self.session_factory) as session:
            CareerRepository(session).set_recommendations(candidate_id, recommendations)

    def _dropdown_options(self) -> Dict[str, List[str]]:
        with session_scope(self.session_factory) as session:
            return CareerRepository(session).dropdown_options()

    def _ping(self) -> None:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    async def save_candidate(self, candidate: Candidate) -> str:
        return await asyncio.to_thread(self._save_candidate, candidate)

    async def fetch_careers(self, sector: str) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._fetch_careers, sector)

    async def update_recommendations(self, candidate_id: str, recommendations: Sequence[Any]) -> None:
        await asyncio.to_thread(self._update_recommendations, candidate_id, recommendations)

    async def get_dropdown_options(self) -> Dict[str, List[str]]:
        return await asyncio.to_thread(self._dropdown_options)

    async def ping(self) -> None:
        await asyncio.to_thread(self._ping)

    def close(self) -> None:
        self.engine.dispose()

import uuid

from sqlalchemy import Column, String, Text, TIMESTAMP, JSON, func, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class CandidateRecord(Base):
    __tablename__ = 'candidate'

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    sector = Column(Text, nullable=False, index=True)

    # Optional profile attributes, stored as given
    skills = Column(JSON)
    experience = Column(JSON)
    education = Column(JSON)
    preferences = Column(JSON)
    extra = Column(JSON, nullable=False, default=dict)  # Unmapped inbound attributes

    # Scoring service output, persisted verbatim
    recommendations = Column(JSON)
    recommendations_updated_at = Column(TIMESTAMP(timezone=True))

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())


class CareerRecord(Base):
    __tablename__ = 'career'

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(Text, nullable=False)
    sector = Column(Text, nullable=False)
    description = Column(Text)
    required_skills = Column(JSON, nullable=False, default=list)
    education_level = Column(Text)
    attributes = Column(JSON, nullable=False, default=dict)  # Free-form fields passed to the scoring service

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_career_sector_title', 'sector', 'title'),
    )

    def to_dict(self) -> dict:
        record = dict(self.attributes or {})
        record.update({
            'id': self.id,
            'title': self.title,
            'sector': self.sector,
            'description': self.description,
            'required_skills': list(self.required_skills or []),
            'education_level': self.education_level,
        })
        return record

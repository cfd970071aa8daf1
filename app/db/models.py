"""
SQLAlchemy models for the FasalDoc case store.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, Integer, Text, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CaseRecordRow(Base):
    """One tracked crop disease case."""
    __tablename__ = "case_records"

    id = Column(String(64), primary_key=True)
    # Head of the collection has position 0
    position = Column(Integer, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)
    display_date = Column(String(32), nullable=False)
    region = Column(String(64), nullable=False, index=True)

    crop_name = Column(String(100), nullable=False, index=True)
    disease_name = Column(String(255), nullable=False)
    confidence = Column(Integer, nullable=False)
    severity = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False, index=True)

    description = Column(Text, nullable=False, default="")
    causes = Column(Text, nullable=False, default="")
    organic_treatment = Column(Text, nullable=False, default="")
    soil_care = Column(Text, nullable=False, default="")
    local_recommendation = Column(Text, nullable=False, default="")
    government_scheme = Column(Text, nullable=False, default="")
    warning = Column(Text, nullable=False, default="")

    # Nested fields stored as JSON
    symptoms = Column(JSON, nullable=False, default=list)
    chemical_treatment = Column(JSON, nullable=False, default=dict)
    recovery_plan = Column(JSON, nullable=False, default=list)
    notes = Column(JSON, nullable=False, default=list)

    last_updated = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_status_position', 'status', 'position'),
    )

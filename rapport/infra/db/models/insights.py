"""Emotional bank and pattern metrics database models (maintained by the analysis pipeline)."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, JSON

from rapport.infra.db.base import Base
from rapport.domain.relationships.models import InsightsSummary


class EmotionalBankLedgerModel(Base):
    """Running emotional bank balance of a relationship."""

    __tablename__ = "emotional_bank_ledgers"

    id = Column(String, primary_key=True)
    relationship_id = Column(String, ForeignKey("relationships.id"), unique=True, nullable=False)
    balance = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PatternMetricsCacheModel(Base):
    """Precomputed pattern metrics (topic frequency, score trends, horsemen)."""

    __tablename__ = "pattern_metrics_cache"

    id = Column(String, primary_key=True)
    relationship_id = Column(String, ForeignKey("relationships.id"), unique=True, nullable=False)
    sessions_count = Column(Integer, default=0, nullable=False)
    metrics = Column(JSON, nullable=False, default=dict)
    last_updated = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_summary(self) -> InsightsSummary:
        """Convert to the insights summary."""
        return InsightsSummary(
            relationship_id=self.relationship_id,
            has_enough_data=True,
            sessions_count=self.sessions_count or 0,
            metrics=self.metrics or {},
            last_updated=self.last_updated,
        )

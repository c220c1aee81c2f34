"""Session and analysis database models.

Written by the sessions and analysis pipeline; the relationship service only
reads them.
"""
from datetime import datetime
from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, Integer, Enum as SQLEnum

from rapport.infra.db.base import Base
from rapport.domain.relationships.models import (
    AnalysisSummary,
    SessionStatus,
    SessionSummary,
)


class SessionModel(Base):
    """Session database model."""

    __tablename__ = "sessions"

    id = Column(String, primary_key=True)
    relationship_id = Column(String, ForeignKey("relationships.id"), nullable=False, index=True)
    title = Column(String, nullable=True)
    source_type = Column(String, nullable=True)  # AUDIO | WHATSAPP_IMPORT | ...
    status = Column(SQLEnum(SessionStatus), nullable=False, default=SessionStatus.RECORDING)
    created_by_user_id = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_summary(self, analysis: "AnalysisResultModel | None" = None) -> SessionSummary:
        """Convert to the read-side summary."""
        return SessionSummary(
            id=self.id,
            relationship_id=self.relationship_id,
            title=self.title,
            source_type=self.source_type,
            status=self.status,
            created_at=self.created_at,
            analysis=analysis.to_summary() if analysis is not None else None,
        )


class AnalysisResultModel(Base):
    """Analysis result database model (one per analysed session)."""

    __tablename__ = "analysis_results"

    id = Column(String, primary_key=True)
    session_id = Column(String, ForeignKey("sessions.id"), unique=True, nullable=False)
    overall_score = Column(Integer, nullable=False)
    green_card_count = Column(Integer, default=0, nullable=False)
    yellow_card_count = Column(Integer, default=0, nullable=False)
    red_card_count = Column(Integer, default=0, nullable=False)
    bank_change = Column(Integer, default=0, nullable=False)
    safety_flag_triggered = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_summary(self) -> AnalysisSummary:
        """Convert to the analysis summary."""
        return AnalysisSummary(
            overall_score=self.overall_score,
            green_card_count=self.green_card_count or 0,
            yellow_card_count=self.yellow_card_count or 0,
            red_card_count=self.red_card_count or 0,
            bank_change=self.bank_change or 0,
            safety_flag_triggered=bool(self.safety_flag_triggered),
        )

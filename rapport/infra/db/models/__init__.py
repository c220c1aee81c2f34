"""Database models."""
from rapport.infra.db.models.user import UserModel
from rapport.infra.db.models.relationship import (
    RelationshipModel,
    RelationshipMemberModel,
    RelationshipLifecycleEventModel,
)
from rapport.infra.db.models.session import SessionModel, AnalysisResultModel
from rapport.infra.db.models.insights import EmotionalBankLedgerModel, PatternMetricsCacheModel

__all__ = [
    "UserModel",
    "RelationshipModel",
    "RelationshipMemberModel",
    "RelationshipLifecycleEventModel",
    "SessionModel",
    "AnalysisResultModel",
    "EmotionalBankLedgerModel",
    "PatternMetricsCacheModel",
]

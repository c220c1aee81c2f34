"""User database model."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime

from rapport.infra.db.base import Base
from rapport.domain.relationships.models import UserSummary


class UserModel(Base):
    """User database model. Owned by the auth service; read here for member summaries."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_summary(self) -> UserSummary:
        """Convert to the public user summary."""
        return UserSummary(
            id=self.id,
            email=self.email,
            name=self.name,
            avatar_url=self.avatar_url,
        )

"""API dependencies."""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from rapport.domain.relationships.services import RelationshipLifecycleService
from rapport.infra.db.models.user import UserModel
from rapport.infra.db.repositories.relationship_repo import (
    RelationshipRepositoryImpl,
    SessionReadRepositoryImpl,
)
from rapport.infra.db.session import get_db
from rapport.infra.security.jwt import decode_token
from rapport.settings import settings

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> str:
    """Id of the authenticated caller."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    user_id: Optional[str] = payload.get("sub")
    token_type: Optional[str] = payload.get("type")
    if user_id is None or token_type != "access":
        raise credentials_exception

    user = await db.get(UserModel, user_id)
    if user is None:
        raise credentials_exception
    return user_id


def get_relationship_service(db: AsyncSession = Depends(get_db)) -> RelationshipLifecycleService:
    """Build the relationship service on the request's database session."""
    return RelationshipLifecycleService(
        RelationshipRepositoryImpl(db),
        SessionReadRepositoryImpl(db),
        invite_code_length=settings.invite_code_length,
        health_window_days=settings.health_window_days,
        health_trend_min_sessions=settings.health_trend_min_sessions,
        health_trend_threshold=settings.health_trend_threshold,
    )

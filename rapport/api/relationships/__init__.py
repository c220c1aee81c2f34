"""Relationship API routes."""
from fastapi import APIRouter

from rapport.api.relationships import routes_relationships

router = APIRouter()

router.include_router(routes_relationships.router, prefix="/relationships", tags=["relationships"])

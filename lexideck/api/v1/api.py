"""API router for version 1."""
from fastapi import APIRouter

from lexideck.api.v1.endpoints import decks, review


api_router = APIRouter()
api_router.include_router(decks.router)
api_router.include_router(review.router)

"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from loguru import logger


class LexideckException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DeckNotLoadedError(LexideckException):
    """Raised when a deck is mutated before its initial load finished."""
    pass


class CardNotFoundError(LexideckException):
    """Raised when a card id is not part of the deck."""
    pass


class SessionError(LexideckException):
    """Review session lifecycle errors."""
    pass


def handle_deck_not_loaded_error(error: DeckNotLoadedError) -> HTTPException:
    """Handle access to a deck that is still loading."""
    logger.warning(f"Deck not loaded: {error.message}")
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error.message
    )


def handle_card_not_found_error(error: CardNotFoundError) -> HTTPException:
    """Handle unknown card ids."""
    logger.info(f"Card not found: {error.message}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "message": error.message,
            "details": error.details
        }
    )


def handle_session_error(error: SessionError) -> HTTPException:
    """Handle review session errors."""
    logger.error(f"Session error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error.message
    )

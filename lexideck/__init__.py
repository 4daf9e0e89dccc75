"""Lexideck: spaced-repetition decks and review sessions."""
__version__ = "0.1.0"

"""cardvault: account credential and session-token service for the flashcard backend."""

__version__ = "0.1.0"

"""Persistence-related exceptions."""


class PersistenceError(Exception):
    """Base exception for persistence-related errors."""


class StorageCorruptionError(PersistenceError):
    """Stored JSON could not be parsed or validated."""

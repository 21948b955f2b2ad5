"""
Exception hierarchy for secondbrain-mcp.

Extraction functions never raise; these cover caller mistakes and storage.
"""


class SecondBrainError(Exception):
    """Base exception for all secondbrain-mcp errors."""

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class InvalidRangeError(SecondBrainError):
    """
    Summary window whose start lies after its end.
    """

    pass


class StoreError(SecondBrainError):
    """Base exception for memory store operations."""

    pass


class NoteNotFoundError(StoreError):
    """Raised when an operation targets a memory that does not exist."""

    pass


class ProtectedNoteError(StoreError):
    """Raised when attempting to delete the long-term memory."""

    pass

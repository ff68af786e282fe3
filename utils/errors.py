# utils/errors.py


class HighlightError(Exception):
    """Base class for highlight and category errors."""


class PersistenceError(HighlightError):
    """A call to the remote store failed (network or server-side rejection)."""

    def __init__(self, message, operation=None):
        super().__init__(message)
        self.operation = operation


class NotFoundError(HighlightError):
    """A referenced color, category or highlight no longer exists."""


class ValidationError(HighlightError):
    """Input rejected before reaching the store."""


class DeletionInProgressError(HighlightError):
    """Another category deletion is still running for this session."""


class PartialDeletionError(PersistenceError):
    """Some ids of a category deletion could not be removed.

    ``report`` holds the ids that were confirmed deleted and the ones that
    failed, so callers can show an accurate "N of M removed" state.
    """

    def __init__(self, message, report, operation='bulk_delete'):
        super().__init__(message, operation=operation)
        self.report = report


class LabelCleanupError(PartialDeletionError):
    """Every highlight of a category was deleted but the label could not be
    dropped from its colors. Retrying the deletion finishes the cleanup."""

    def __init__(self, message, report):
        super().__init__(message, report, operation='cleanup')

"""State and workspace errors."""


class StateError(Exception):
    """Base exception for state repository operations."""


class MissingStateError(StateError):
    """Raised when no state is available for a collection."""


class WorkspaceError(Exception):
    """Raised when the workspace backend rejects a structural mutation."""


class ItemNotFoundError(WorkspaceError):
    """Raised when a mutation names a folder or document that does not exist."""


class FolderNotEmptyError(WorkspaceError):
    """Raised when deleting a folder that still contains documents."""


class InvalidReferenceError(WorkspaceError):
    """Raised when a mutation would point a document at a foreign or unknown folder."""

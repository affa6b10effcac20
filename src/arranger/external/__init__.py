"""Native (operating system) file drops onto the sidebar."""

from .errors import UploadError
from .handler import ExternalDropHandler
from .models import (
    DropTarget,
    ExternalDropReport,
    FolderTarget,
    IncomingFile,
    Placement,
    PlaceholderTarget,
    RootTarget,
)
from .resolver import ExternalDropResolver
from .uploader import WorkspaceUploader

__all__ = [
    "UploadError",
    "ExternalDropHandler",
    "ExternalDropResolver",
    "WorkspaceUploader",
    "DropTarget",
    "ExternalDropReport",
    "FolderTarget",
    "IncomingFile",
    "Placement",
    "PlaceholderTarget",
    "RootTarget",
]

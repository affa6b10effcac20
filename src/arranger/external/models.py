"""Files dropped from the operating system and where they land."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import List, Optional, Union

from arranger.state.models import Document


@dataclass(slots=True, frozen=True)
class IncomingFile:
    """A file handed over by a native drag.

    Attributes:
        name: File name including its extension.
        size: Size in bytes.
        content_type: MIME type reported by the platform, if any.
        data: Raw content, empty when the upload streams it separately.
    """

    name: str
    size: int
    content_type: Optional[str] = None
    data: bytes = b""

    @property
    def extension(self) -> str:
        return PurePath(self.name).suffix.lower()


@dataclass(slots=True, frozen=True)
class PlaceholderTarget:
    """Replace a placeholder document with a single file."""

    document_id: str


@dataclass(slots=True, frozen=True)
class FolderTarget:
    """Insert files into a folder starting at ``index``."""

    folder_id: str
    index: int


@dataclass(slots=True, frozen=True)
class RootTarget:
    """Insert files into the root mixed order starting at ``index``."""

    index: int


DropTarget = Union[PlaceholderTarget, FolderTarget, RootTarget]


@dataclass(slots=True, frozen=True)
class Placement:
    """Where a single upload should be created.

    Attributes:
        folder_id: Destination folder, or ``None`` for the root.
        position: Index inside the destination container.
    """

    folder_id: Optional[str]
    position: int


@dataclass(slots=True)
class ExternalDropReport:
    """Summary of a native file drop.

    Attributes:
        target: Resolved target the files were sent to.
        uploaded: Documents created by successful uploads, in slot order.
        skipped: Names of files ignored for an unsupported extension.
        failed: Names of files whose upload failed.
        rejected_reason: Why the whole drop was refused, if it was.
    """

    target: Optional[DropTarget] = None
    uploaded: List[Document] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    rejected_reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.rejected_reason is None


__all__ = [
    "IncomingFile",
    "PlaceholderTarget",
    "FolderTarget",
    "RootTarget",
    "DropTarget",
    "Placement",
    "ExternalDropReport",
]

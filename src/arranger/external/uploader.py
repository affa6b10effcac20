"""Uploader that registers dropped files directly in a local workspace."""

from __future__ import annotations

import logging

from arranger.state.models import Document
from arranger.state.workspace import CollectionWorkspace

from .errors import UploadError
from .models import IncomingFile, Placement

LOGGER = logging.getLogger(__name__)


class WorkspaceUploader:
    """Create documents for dropped files without any file conversion.

    Only the file name is kept; the content is not stored anywhere.
    """

    def __init__(self, workspace: CollectionWorkspace) -> None:
        self.workspace = workspace

    async def upload(self, file: IncomingFile, collection_id: str, placement: Placement) -> Document:
        if not file.name:
            raise UploadError("Dropped file has no name")
        document = await self.workspace.add_document(
            collection_id, file.name, placement.folder_id, placement.position
        )
        LOGGER.debug("Registered %s as %s", file.name, document.id)
        return document

    async def upload_into_placeholder(self, placeholder_id: str, file: IncomingFile) -> Document:
        if not file.name:
            raise UploadError("Dropped file has no name")
        return await self.workspace.fill_placeholder(placeholder_id, file.name)


__all__ = ["WorkspaceUploader"]

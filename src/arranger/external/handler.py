"""Upload natively dropped files into the resolved target."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Set

from arranger.config.models import UploadSettings
from arranger.notices import Notice
from arranger.ports import Notifier, Uploader, WorkspacePort
from arranger.state.errors import WorkspaceError
from arranger.state.models import CollectionState, Document
from arranger.suggestions import SuggestionBoard

from .errors import UploadError
from .models import (
    DropTarget,
    ExternalDropReport,
    FolderTarget,
    IncomingFile,
    Placement,
    PlaceholderTarget,
    RootTarget,
)

LOGGER = logging.getLogger(__name__)


class ExternalDropHandler:
    """Validate, upload and place files dropped from the operating system.

    Uploads of one drop run in parallel, each pre-assigned a consecutive slot
    from the target index. Suggestion requests for the new documents run in
    the background and never block the drop.
    """

    def __init__(
        self,
        state: CollectionState,
        workspace: WorkspacePort,
        uploader: Uploader,
        notifier: Notifier,
        settings: UploadSettings | None = None,
        suggestions: Optional[SuggestionBoard] = None,
    ) -> None:
        self.state = state
        self.workspace = workspace
        self.uploader = uploader
        self.notifier = notifier
        self.settings = settings or UploadSettings()
        self.suggestions = suggestions
        self._followups: Set[asyncio.Task] = set()

    @property
    def collection_id(self) -> str:
        return self.state.collection_id

    async def drop(self, files: Sequence[IncomingFile], target: Optional[DropTarget]) -> ExternalDropReport:
        """Handle a native drop of ``files`` onto ``target``.

        Args:
            files: Dropped files.
            target: Resolved target; ``None`` appends to the root order.

        Returns:
            ExternalDropReport: What was uploaded, skipped or refused.
        """
        report = ExternalDropReport(target=target)
        supported_extensions = {ext.lower() for ext in self.settings.supported_extensions}
        accepted = [file for file in files if file.extension in supported_extensions]
        report.skipped = [file.name for file in files if file.extension not in supported_extensions]

        if not accepted:
            formats = ", ".join(self.settings.supported_extensions)
            return self._reject(report, f"No supported files. Supported formats: {formats}", level="warning")

        limit = self.settings.max_file_size_mb * 1024 * 1024
        oversized = [file.name for file in accepted if file.size > limit]
        if oversized:
            return self._reject(
                report,
                f"{', '.join(oversized)} exceeds the {self.settings.max_file_size_mb} MB limit",
            )

        if isinstance(target, PlaceholderTarget):
            if len(accepted) > 1:
                return self._reject(report, "Only one file can be dropped onto a placeholder", level="warning")
            await self._fill_placeholder(target, accepted[0], report)
        elif isinstance(target, FolderTarget):
            await self._upload_into_folder(target, accepted, report)
        else:
            await self._upload_into_root(target, accepted, report)

        if report.failed:
            self.notifier.notify(Notice(level="error", message=f"Failed to upload {', '.join(report.failed)}"))
        return report

    async def wait_for_followups(self) -> None:
        """Wait for background suggestion requests started by earlier drops."""
        while self._followups:
            await asyncio.gather(*list(self._followups))

    # ------------------------------------------------------------------ #
    # Targets                                                            #
    # ------------------------------------------------------------------ #

    async def _fill_placeholder(
        self, target: PlaceholderTarget, file: IncomingFile, report: ExternalDropReport
    ) -> None:
        try:
            document = await self.uploader.upload_into_placeholder(target.document_id, file)
        except (UploadError, WorkspaceError) as exc:
            LOGGER.error("Upload of %s into placeholder %s failed: %s", file.name, target.document_id, exc)
            report.failed.append(file.name)
            return
        report.uploaded.append(document)

    async def _upload_into_folder(
        self, target: FolderTarget, files: Sequence[IncomingFile], report: ExternalDropReport
    ) -> None:
        folder_id = target.folder_id
        order = [child.id for child in self.state.folder_children(folder_id)]
        base = max(0, min(target.index, len(order)))
        documents = await self._upload_all(files, folder_id, base, report)
        if not documents:
            return
        order = [item_id for item_id in order if item_id not in {doc.id for doc in documents}]
        for offset, document in enumerate(documents):
            order.insert(base + offset, document.id)
        if not await self._persist(self.workspace.reorder_documents(folder_id, order, True)):
            return
        if self.suggestions is not None:
            for document in documents:
                self._spawn(
                    self.suggestions.request_suggestion_for_targeted_drop(
                        document.id, self.collection_id, folder_id
                    )
                )

    async def _upload_into_root(
        self, target: Optional[RootTarget], files: Sequence[IncomingFile], report: ExternalDropReport
    ) -> None:
        order = self.state.mixed_order()
        base = len(order) if target is None else max(0, min(target.index, len(order)))
        documents = await self._upload_all(files, None, base, report)
        if not documents:
            return
        order = [item_id for item_id in order if item_id not in {doc.id for doc in documents}]
        for offset, document in enumerate(documents):
            order.insert(base + offset, document.id)
        if not await self._persist(self.workspace.update_mixed_order(self.collection_id, order)):
            return
        if self.suggestions is not None:
            for document in documents:
                self._spawn(self.suggestions.request_auto_organize(document, self.collection_id))

    async def _upload_all(
        self,
        files: Sequence[IncomingFile],
        folder_id: Optional[str],
        base: int,
        report: ExternalDropReport,
    ) -> List[Document]:
        results = await asyncio.gather(
            *(
                self.uploader.upload(file, self.collection_id, Placement(folder_id, base + index))
                for index, file in enumerate(files)
            ),
            return_exceptions=True,
        )
        documents: List[Document] = []
        for file, result in zip(files, results):
            if isinstance(result, (UploadError, WorkspaceError)):
                LOGGER.error("Upload of %s failed: %s", file.name, result)
                report.failed.append(file.name)
            elif isinstance(result, BaseException):
                raise result
            else:
                documents.append(result)
        report.uploaded.extend(documents)
        LOGGER.info("Uploaded %d of %d file(s) into %s", len(documents), len(files), folder_id or "root")
        return documents

    async def _persist(self, call) -> bool:
        try:
            await call
        except WorkspaceError as exc:
            LOGGER.error("Failed to persist order after upload: %s", exc)
            self.notifier.notify(Notice(level="error", message="Failed to save document order"))
            return False
        return True

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._followups.add(task)
        task.add_done_callback(self._followups.discard)

    def _reject(self, report: ExternalDropReport, message: str, level: str = "error") -> ExternalDropReport:
        LOGGER.info("Rejected external drop: %s", message)
        report.rejected_reason = message
        self.notifier.notify(Notice(level=level, message=message))  # type: ignore[arg-type]
        return report


__all__ = ["ExternalDropHandler"]

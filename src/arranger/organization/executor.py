"""Executor for reorganization plans."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from arranger.ports import WorkspacePort
from arranger.state.models import CollectionState

from .errors import ReorganizationApplyError
from .models import ApplyResult, ReorganizationPlan
from .planner import PLACEHOLDER_PREFIX, find_folder_by_name, is_placeholder_key, placeholder_key

LOGGER = logging.getLogger(__name__)


class ReorganizationExecutor:
    """Apply a plan as three fanned-out steps: create, move, delete.

    Each call commits on its own; nothing is rolled back when a later call
    fails.
    """

    def __init__(self, workspace: WorkspacePort, state: CollectionState) -> None:
        self.workspace = workspace
        self.state = state

    async def apply(self, plan: ReorganizationPlan) -> ApplyResult:
        """Apply ``plan`` through the workspace.

        Args:
            plan: Plan computed by the planner.

        Returns:
            ApplyResult: Created, moved and deleted ids.

        Raises:
            ReorganizationApplyError: If a target cannot be resolved or a
                folder is not empty when its delete is due.
            WorkspaceError: If the workspace rejects a call.
        """
        result = ApplyResult()
        operations = plan.operations
        collection_id = plan.collection_id

        folders = await asyncio.gather(
            *(self.workspace.add_folder(collection_id, name) for name in operations.folders_to_create)
        )
        for name, folder in zip(operations.folders_to_create, folders):
            result.created_folder_ids.append(folder.id)
            result.folder_ids_by_key[placeholder_key(name)] = folder.id
            LOGGER.debug("Created folder %s for %s", folder.id, name)

        moves = [
            (move.document_id, self._resolve_target(move.target_folder_id, result.folder_ids_by_key))
            for move in operations.documents_to_move
        ]
        indices = self._append_indices(moves)
        await asyncio.gather(
            *(
                self.workspace.move_document(document_id, collection_id, target, index)
                for (document_id, target), index in zip(moves, indices)
            )
        )
        result.moved_document_ids = [document_id for document_id, _ in moves]

        await asyncio.gather(*(self._delete(folder_id) for folder_id in operations.folders_to_delete))
        result.deleted_folder_ids = list(operations.folders_to_delete)

        LOGGER.info(
            "Applied reorganization: %d created, %d moved, %d deleted",
            len(result.created_folder_ids),
            len(result.moved_document_ids),
            len(result.deleted_folder_ids),
        )
        return result

    def _resolve_target(self, target: Optional[str], mapping: Dict[str, str]) -> Optional[str]:
        if target is None:
            return None
        resolved = mapping.get(target)
        if resolved is not None:
            return resolved
        if not is_placeholder_key(target) or self.state.find_folder(target) is not None:
            return target
        folder = find_folder_by_name(self.state.folders, target[len(PLACEHOLDER_PREFIX) :])
        if folder is None:
            raise ReorganizationApplyError(f"Could not resolve new folder {target}")
        return folder.id

    def _append_indices(self, moves: List[tuple[str, Optional[str]]]) -> List[int]:
        """Return end-of-container indices so incoming documents keep plan order."""
        moving = {document_id for document_id, _ in moves}
        next_index: Dict[Optional[str], int] = {}
        counters: Dict[Optional[str], int] = defaultdict(int)
        indices: List[int] = []
        for _, target in moves:
            if target not in next_index:
                if target is None:
                    staying = [item_id for item_id in self.state.mixed_order() if item_id not in moving]
                else:
                    staying = [doc.id for doc in self.state.folder_children(target) if doc.id not in moving]
                next_index[target] = len(staying)
            indices.append(next_index[target] + counters[target])
            counters[target] += 1
        return indices

    async def _delete(self, folder_id: str) -> None:
        remaining = self.state.folder_children(folder_id)
        if remaining:
            raise ReorganizationApplyError(
                f"Folder {folder_id} still contains {len(remaining)} document(s) at deletion time"
            )
        await self.workspace.delete_folder(folder_id)


__all__ = ["ReorganizationExecutor"]

"""Planner for collection reorganizations."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from arranger.state.models import CollectionState, Folder

from .models import DocumentMove, Operations, ProposedStructure, ReorganizationDiff, ReorganizationPlan

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "new_"


def placeholder_key(name: str) -> str:
    """Return the temporary folder id used for a folder that is about to be created."""
    return f"{PLACEHOLDER_PREFIX}{name}"


def is_placeholder_key(folder_id: Optional[str]) -> bool:
    return folder_id is not None and folder_id.startswith(PLACEHOLDER_PREFIX)


def find_folder_by_name(folders: List[Folder], name: str) -> Optional[Folder]:
    """Return the first folder whose name matches ``name`` case-insensitively."""
    lowered = name.lower()
    return next((folder for folder in folders if folder.name.lower() == lowered), None)


def build_operations(state: CollectionState, proposed: ProposedStructure) -> Operations:
    """Derive operations that turn ``state`` into the proposed structure.

    Proposed folders matching an existing folder name (case-insensitively)
    reuse it; the others are created under a placeholder key. Existing
    folders the proposal does not use are deleted.

    Args:
        state: Current collection structure.
        proposed: Target structure from the organizing model.

    Returns:
        Operations: Creates, moves and deletes for the proposal.
    """
    existing_by_name = {folder.name.lower(): folder.id for folder in state.folders}
    to_create: List[str] = []
    moves: Dict[str, Optional[str]] = {}
    used_folder_ids: set[str] = set()

    for proposed_folder in proposed.folders:
        folder_id = existing_by_name.get(proposed_folder.name.lower())
        if folder_id is None:
            folder_id = placeholder_key(proposed_folder.name)
            if proposed_folder.name not in to_create:
                to_create.append(proposed_folder.name)
        else:
            used_folder_ids.add(folder_id)
        for document in proposed_folder.documents:
            moves[document.id] = folder_id

    for document in proposed.root_documents:
        moves[document.id] = None

    return Operations(
        folders_to_create=to_create,
        documents_to_move=[
            DocumentMove(document_id=document_id, target_folder_id=target) for document_id, target in moves.items()
        ],
        folders_to_delete=[folder.id for folder in state.folders if folder.id not in used_folder_ids],
    )


class ReorganizationPlanner:
    """Validate proposed operations against the current structure."""

    def compute_plan(self, state: CollectionState, operations: Operations) -> ReorganizationPlan:
        """Filter no-op moves, validate deletes and partition the items.

        Args:
            state: Current collection structure.
            operations: Proposed operations.

        Returns:
            ReorganizationPlan: Effective operations, the item partition and notes.
        """
        notes: List[str] = []
        folder_ids = {folder.id for folder in state.folders}
        creating = list(dict.fromkeys(name for name in operations.folders_to_create if name))
        creating_keys = {placeholder_key(name) for name in creating}

        requested: Dict[str, Optional[str]] = {}
        for move in operations.documents_to_move:
            requested[move.document_id] = move.target_folder_id

        effective: List[DocumentMove] = []
        for document_id, target in requested.items():
            document = state.find_document(document_id)
            if document is None:
                notes.append(f"Skipped move of unknown document {document_id}")
                continue
            if is_placeholder_key(target) and target not in creating_keys and target not in folder_ids:
                existing = find_folder_by_name(state.folders, target[len(PLACEHOLDER_PREFIX) :])
                if existing is None:
                    notes.append(f"Skipped move of {document_id} into uncreated folder {target}")
                    continue
                target = existing.id
            if target is not None and target not in folder_ids and target not in creating_keys:
                notes.append(f"Skipped move of {document_id} into unknown folder {target}")
                continue
            if target not in creating_keys and target == document.folder_id:
                continue
            effective.append(DocumentMove(document_id=document_id, target_folder_id=target))

        moving_ids = {move.document_id for move in effective}
        final_folder = {doc.id: doc.folder_id for doc in state.documents}
        final_folder.update({move.document_id: move.target_folder_id for move in effective})

        deletes: List[str] = []
        rejected: List[str] = []
        for folder_id in dict.fromkeys(operations.folders_to_delete):
            if folder_id not in folder_ids:
                notes.append(f"Skipped delete of unknown folder {folder_id}")
                continue
            remaining = [doc_id for doc_id, target in final_folder.items() if target == folder_id]
            if remaining:
                rejected.append(folder_id)
                notes.append(
                    f"Kept folder {folder_id}: {len(remaining)} document(s) would remain after the moves"
                )
                continue
            deletes.append(folder_id)

        deleting_ids = set(deletes)
        staying = {folder.id for folder in state.folders if folder.id not in deleting_ids}
        staying |= {doc.id for doc in state.documents if doc.id not in moving_ids}

        plan = ReorganizationPlan(
            collection_id=state.collection_id,
            operations=Operations(
                folders_to_create=creating,
                documents_to_move=effective,
                folders_to_delete=deletes,
            ),
            diff=ReorganizationDiff(
                moving_doc_ids=moving_ids,
                deleting_folder_ids=deleting_ids,
                creating_folders=creating,
                staying_item_ids=staying,
            ),
            rejected_deletes=rejected,
            notes=notes,
        )
        LOGGER.info(
            "Planned reorganization: %d create(s), %d move(s), %d delete(s), %d rejected delete(s)",
            len(creating),
            len(effective),
            len(deletes),
            len(rejected),
        )
        return plan


__all__ = [
    "PLACEHOLDER_PREFIX",
    "placeholder_key",
    "is_placeholder_key",
    "find_folder_by_name",
    "build_operations",
    "ReorganizationPlanner",
]

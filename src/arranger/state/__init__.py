"""State persistence helpers for Arranger collections."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from .errors import (
    FolderNotEmptyError,
    InvalidReferenceError,
    ItemNotFoundError,
    MissingStateError,
    StateError,
    WorkspaceError,
)
from .models import CollectionState, Document, Folder, Item

DEFAULT_STATE_DIRNAME = ".arranger"


class StateRepository:
    """Manage the persistence of collection structure."""

    def __init__(self, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        """Initialize the repository with an optional base directory name.

        Args:
            base_dirname: Name of the directory that stores collection state.
        """
        self._base_dirname = base_dirname

    @property
    def base_dirname(self) -> str:
        """Return the directory name used for collection metadata."""
        return self._base_dirname

    def exists(self, root: Path) -> bool:
        return self._state_path(root).exists()

    def load(self, root: Path) -> CollectionState:
        """Load collection state for the given root.

        Args:
            root: Directory that holds the collection metadata.

        Returns:
            CollectionState: Deserialized structure for the collection.

        Raises:
            MissingStateError: If no state file is present.
            StateError: If stored data cannot be parsed or violates folder references.
        """
        state_path = self._state_path(root)
        if not state_path.exists():
            raise MissingStateError(f"No collection state found at {state_path}")

        try:
            data = json.loads(state_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StateError(f"Invalid collection state data: {exc}") from exc

        try:
            return CollectionState.model_validate(data)
        except ValidationError as exc:
            raise StateError(f"Invalid collection structure: {exc}") from exc

    def save(self, root: Path, state: CollectionState) -> None:
        """Persist collection state for the given root.

        Args:
            root: Directory that holds the collection metadata.
            state: Structure to serialize to disk.
        """
        directory = self.initialize(root)
        state.updated_at = datetime.now(timezone.utc)
        if state.created_at.tzinfo is None:
            state.created_at = state.created_at.replace(tzinfo=timezone.utc)
        state.root_order = state.mixed_order()
        payload = state.model_dump(mode="json")
        (directory / "state.json").write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def initialize(self, root: Path) -> Path:
        """Create the metadata directory for a tracked collection.

        Args:
            root: Directory that holds the collection metadata.

        Returns:
            Path: Directory containing the state artifacts.
        """
        directory = root / self._base_dirname
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def _state_path(self, root: Path) -> Path:
        return root / self._base_dirname / "state.json"


__all__ = [
    "StateRepository",
    "DEFAULT_STATE_DIRNAME",
    "CollectionState",
    "Document",
    "Folder",
    "Item",
    "StateError",
    "MissingStateError",
    "WorkspaceError",
    "ItemNotFoundError",
    "FolderNotEmptyError",
    "InvalidReferenceError",
]

"""End-to-end reorganization flow: request, plan, animate, apply."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from arranger.config.models import AnimationSettings
from arranger.notices import Notice
from arranger.ports import Notifier, WorkspacePort
from arranger.state.errors import WorkspaceError
from arranger.state.models import CollectionState
from arranger.timing import AsyncioClock, Clock

from .animation import AnimationOrchestrator
from .client import ReorganizeClient
from .errors import ReorganizationError
from .executor import ReorganizationExecutor
from .models import ApplyResult, Operations, ReorganizationPlan
from .planner import ReorganizationPlanner

LOGGER = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to reorganize collection"


@dataclass(slots=True)
class ReorganizationReport:
    """Outcome of one reorganization run.

    Attributes:
        success: Whether every step completed.
        plan: Computed plan, when planning was reached.
        result: Committed changes, when the apply step finished.
        error: Failure description for unsuccessful runs.
    """

    success: bool
    plan: Optional[ReorganizationPlan] = None
    result: Optional[ApplyResult] = None
    error: Optional[str] = None


class ReorganizationService:
    """Run reorganizations for one collection.

    Failures of any step are logged and reported with a single notice; the
    animation state is always cleared and already committed calls stay.
    """

    def __init__(
        self,
        state: CollectionState,
        workspace: WorkspacePort,
        notifier: Notifier,
        *,
        client: Optional[ReorganizeClient] = None,
        settings: AnimationSettings | None = None,
        clock: Clock | None = None,
        orchestrator: Optional[AnimationOrchestrator] = None,
        planner: Optional[ReorganizationPlanner] = None,
    ) -> None:
        self.state = state
        self.workspace = workspace
        self.notifier = notifier
        self.client = client
        self.settings = settings or AnimationSettings()
        self.clock = clock or AsyncioClock()
        self.orchestrator = orchestrator or AnimationOrchestrator(self.settings, self.clock)
        self.planner = planner or ReorganizationPlanner()
        self.executor = ReorganizationExecutor(workspace, state)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def reorganize(self, organization_prompt: Optional[str] = None) -> ReorganizationReport:
        """Request a proposal from the endpoint and apply it."""
        if self.client is None:
            return self._fail(None, "No reorganization endpoint configured")
        if self._running:
            return ReorganizationReport(success=False, error="Reorganization already in progress")
        self._running = True
        try:
            try:
                reorganization = await self.client.request(
                    self.state.collection_id, self.state.name or self.state.collection_id, organization_prompt
                )
            except ReorganizationError as exc:
                return self._fail(None, str(exc))
            return await self._run(reorganization.operations)
        finally:
            self._running = False

    async def apply_operations(self, operations: Operations) -> ReorganizationReport:
        """Apply an ``Operations`` payload that is already in hand."""
        if self._running:
            return ReorganizationReport(success=False, error="Reorganization already in progress")
        self._running = True
        try:
            return await self._run(operations)
        finally:
            self._running = False

    def plan(self, operations: Operations) -> ReorganizationPlan:
        return self.planner.compute_plan(self.state, operations)

    async def _run(self, operations: Operations) -> ReorganizationReport:
        plan: Optional[ReorganizationPlan] = None
        try:
            plan = self.plan(operations)
            for note in plan.notes:
                LOGGER.warning(note)
            await self.clock.sleep(self.settings.pre_exit_ms)
            result = await self.orchestrator.run(plan, lambda: self.executor.apply(plan))
        except (ReorganizationError, WorkspaceError) as exc:
            return self._fail(plan, str(exc))
        LOGGER.info("Reorganized collection %s", self.state.collection_id)
        return ReorganizationReport(success=True, plan=plan, result=result)

    def _fail(self, plan: Optional[ReorganizationPlan], error: str) -> ReorganizationReport:
        LOGGER.error("Reorganization of %s failed: %s", self.state.collection_id, error)
        self.notifier.notify(Notice(level="error", message=FAILURE_MESSAGE))
        return ReorganizationReport(success=False, plan=plan, error=error)


__all__ = ["FAILURE_MESSAGE", "ReorganizationReport", "ReorganizationService"]

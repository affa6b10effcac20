"""Sequencing of the exit, apply and enter phases of a reorganization."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, FrozenSet, List, Literal, Optional

from arranger.config.models import AnimationSettings
from arranger.timing import AsyncioClock, Clock

from .models import ApplyResult, ReorganizationPlan

LOGGER = logging.getLogger(__name__)

AnimationPhase = Literal["idle", "exiting", "applying", "entering"]


@dataclass(frozen=True)
class AnimationState:
    """Transient visual state of the sidebar during a reorganization.

    Attributes:
        phase: Current phase.
        exiting_ids: Documents fading out.
        exiting_folder_ids: Folders fading out before deletion.
        hidden_ids: Moved documents kept invisible between exit and enter.
        entering_ids: Documents fading in at their new location.
        entering_folder_ids: Created folders fading in.
    """

    phase: AnimationPhase = "idle"
    exiting_ids: FrozenSet[str] = field(default_factory=frozenset)
    exiting_folder_ids: FrozenSet[str] = field(default_factory=frozenset)
    hidden_ids: FrozenSet[str] = field(default_factory=frozenset)
    entering_ids: FrozenSet[str] = field(default_factory=frozenset)
    entering_folder_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_clear(self) -> bool:
        return not (
            self.exiting_ids
            or self.exiting_folder_ids
            or self.hidden_ids
            or self.entering_ids
            or self.entering_folder_ids
        )


AnimationListener = Callable[[AnimationState], None]
ApplyStep = Callable[[], Awaitable[ApplyResult]]


class AnimationOrchestrator:
    """Drive the three reorganization phases with awaited delays.

    Every transition is published to subscribers. Whatever happens during the
    run, the state returns to an empty ``idle`` snapshot afterwards.
    """

    def __init__(self, settings: AnimationSettings | None = None, clock: Clock | None = None) -> None:
        self.settings = settings or AnimationSettings()
        self.clock = clock or AsyncioClock()
        self._state = AnimationState()
        self._listeners: List[AnimationListener] = []

    @property
    def state(self) -> AnimationState:
        return self._state

    def subscribe(self, listener: AnimationListener) -> None:
        self._listeners.append(listener)

    async def run(self, plan: ReorganizationPlan, apply: ApplyStep) -> ApplyResult:
        """Animate and apply ``plan``.

        Args:
            plan: Plan whose diff selects the exiting items.
            apply: Coroutine factory performing the structural mutations.

        Returns:
            ApplyResult: Value returned by ``apply``.
        """
        diff = plan.diff
        settings = self.settings
        try:
            self._publish(
                AnimationState(
                    phase="exiting",
                    exiting_ids=frozenset(diff.moving_doc_ids),
                    exiting_folder_ids=frozenset(diff.deleting_folder_ids),
                )
            )
            await self.clock.sleep(settings.exit_ms + settings.exit_buffer_ms)

            self._publish(
                replace(
                    self._state,
                    phase="applying",
                    exiting_ids=frozenset(),
                    hidden_ids=frozenset(diff.moving_doc_ids),
                )
            )
            result = await apply()
            self._publish(replace(self._state, exiting_folder_ids=frozenset()))
            await self.clock.sleep(settings.apply_settle_ms)

            await self._enter(result)
            return result
        except Exception:
            LOGGER.warning("Reorganization animation aborted; clearing transient state")
            raise
        finally:
            self._publish(AnimationState())

    async def _enter(self, result: ApplyResult) -> None:
        schedule = reveal_schedule(result, self.settings)
        created = set(result.created_folder_ids)

        self._publish(replace(self._state, phase="entering"))
        elapsed = 0.0
        for item_id, due in schedule:
            if due > elapsed:
                await self.clock.sleep(due - elapsed)
                elapsed = due
            if item_id in created:
                self._publish(
                    replace(self._state, entering_folder_ids=self._state.entering_folder_ids | {item_id})
                )
            else:
                self._publish(
                    replace(
                        self._state,
                        hidden_ids=self._state.hidden_ids - {item_id},
                        entering_ids=self._state.entering_ids | {item_id},
                    )
                )
        await self.clock.sleep(enter_duration(len(schedule), self.settings) - elapsed)

    def _publish(self, state: AnimationState) -> None:
        self._state = state
        for listener in self._listeners:
            listener(state)


def reveal_schedule(result: ApplyResult, settings: AnimationSettings | None = None) -> List[tuple[str, float]]:
    """Return ``(item_id, delay_ms)`` pairs for the enter phase, folders first."""
    settings = settings or AnimationSettings()
    ordered = [*result.created_folder_ids, *result.moved_document_ids]
    return [(item_id, index * settings.stagger_ms) for index, item_id in enumerate(ordered)]


def enter_duration(count: int, settings: Optional[AnimationSettings] = None) -> float:
    settings = settings or AnimationSettings()
    return count * settings.stagger_ms + settings.enter_total_ms


__all__ = [
    "AnimationPhase",
    "AnimationState",
    "AnimationListener",
    "AnimationOrchestrator",
    "reveal_schedule",
    "enter_duration",
]

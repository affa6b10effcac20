"""Configuration models describing Arranger settings."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ArrangerBaseModel(BaseModel):
    """Shared configuration for Arranger Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LayoutSettings(ArrangerBaseModel):
    """Geometry used by the position model.

    Attributes:
        gap: Vertical gap between stacked items.
        fallback_height: Height assumed for items that have not been measured yet.
        settle_delay_ms: Delay before re-measuring after a structural mutation.
        folder_header_height: Height of a folder row without its children.
        child_gap: Vertical gap between documents listed inside a folder.
        sidebar_width: Width of the scroll container used by the stacked renderer.
    """

    gap: float = 6
    fallback_height: float = 48
    settle_delay_ms: int = 50
    folder_header_height: float = 48
    child_gap: float = 4
    sidebar_width: float = 280


class DragSettings(ArrangerBaseModel):
    """Hit-testing and auto-scroll tuning for internal drags.

    Attributes:
        folder_padding: Outward padding applied to folder bounds when hit-testing.
        group_band_ratio: Middle share of a document row that counts as a grouping target.
        group_horizontal_padding: Horizontal slack applied to the grouping band.
        auto_scroll_threshold: Distance from the container edge that triggers auto-scroll.
        auto_scroll_max_speed: Maximum scroll distance applied per tick.
    """

    folder_padding: float = 20
    group_band_ratio: float = Field(default=0.5, gt=0, le=1)
    group_horizontal_padding: float = 16
    auto_scroll_threshold: float = Field(default=60, gt=0)
    auto_scroll_max_speed: float = 12


class AnimationSettings(ArrangerBaseModel):
    """Durations used when sequencing reorganization animations.

    Attributes:
        pre_exit_ms: Pause between receiving a plan and starting the exit phase.
        exit_ms: Duration of the exit animation.
        exit_buffer_ms: Extra wait appended to the exit animation.
        apply_settle_ms: Wait after structural mutations before revealing items.
        stagger_ms: Delay increment between consecutive entering items.
        enter_total_ms: Total duration of a single entrance animation.
    """

    pre_exit_ms: int = 300
    exit_ms: int = 300
    exit_buffer_ms: int = 100
    apply_settle_ms: int = 100
    stagger_ms: int = 100
    enter_total_ms: int = 430


class UploadSettings(ArrangerBaseModel):
    """Validation applied to natively dropped files.

    Attributes:
        max_file_size_mb: Largest accepted file size.
        supported_extensions: File extensions accepted for upload.
    """

    max_file_size_mb: int = 50
    supported_extensions: List[str] = Field(
        default_factory=lambda: [
            ".pdf",
            ".docx",
            ".pptx",
            ".odt",
            ".rtf",
            ".txt",
            ".html",
            ".md",
            ".tex",
            ".epub",
        ]
    )


class ReorganizeSettings(ArrangerBaseModel):
    """Remote reorganization endpoint settings.

    Attributes:
        endpoint: URL receiving reorganization requests.
        timeout_seconds: Request timeout.
        organization_prompt: Optional custom instructions forwarded with each request.
    """

    endpoint: Optional[str] = None
    timeout_seconds: float = 60
    organization_prompt: Optional[str] = None


class LoggingSettings(ArrangerBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(ArrangerBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class ArrangerConfig(ArrangerBaseModel):
    """Top-level configuration struct for Arranger.

    Attributes:
        layout: Position model settings.
        drag: Drag session settings.
        animation: Reorganization animation timings.
        uploads: External file drop validation.
        reorganize: Reorganization endpoint settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    drag: DragSettings = Field(default_factory=DragSettings)
    animation: AnimationSettings = Field(default_factory=AnimationSettings)
    uploads: UploadSettings = Field(default_factory=UploadSettings)
    reorganize: ReorganizeSettings = Field(default_factory=ReorganizeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "ArrangerBaseModel",
    "LayoutSettings",
    "DragSettings",
    "AnimationSettings",
    "UploadSettings",
    "ReorganizeSettings",
    "LoggingSettings",
    "CLIOptions",
    "ArrangerConfig",
]

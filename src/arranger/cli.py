"""Command line interface for the Arranger project."""

from __future__ import annotations

import asyncio
import difflib
import logging
from pathlib import Path
from typing import Any

import click
import yaml
from click.core import ParameterSource
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from arranger.config import ArrangerConfig, ConfigError, ConfigManager
from arranger.layout import compute_positions, content_extent, stacked_measure
from arranger.notices import NoticeLog
from arranger.organization import (
    Operations,
    ProposedStructure,
    Reorganization,
    ReorganizationError,
    ReorganizationPlan,
    ReorganizationService,
    ReorganizeClient,
    ReorganizeResponse,
    build_operations,
)
from arranger.state import CollectionState, MissingStateError, StateError, StateRepository
from arranger.state.workspace import CollectionWorkspace
from arranger.timing import ManualClock

console = Console()
LOGGER = logging.getLogger(__name__)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        root: Target root path relevant to the command.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    formatted_root = str(root)
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {formatted_root}: {parts}.[/green]"


def _configure_logging(config: ArrangerConfig) -> None:
    """Attach a rich handler to the root logger once per process."""
    root_logger = logging.getLogger()
    level = logging.getLevelName(config.logging.level.upper())
    root_logger.setLevel(level if isinstance(level, int) else logging.WARNING)
    if any(isinstance(handler, RichHandler) for handler in root_logger.handlers):
        return
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)


def _resolve_output_modes(
    ctx: click.Context,
    config: ArrangerConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> tuple[bool, bool]:
    """Combine explicit flags with configured defaults.

    Returns:
        tuple[bool, bool]: Effective quiet and summary-only flags.

    Raises:
        click.ClickException: If the requested modes conflict.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _load_config() -> ArrangerConfig:
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load()
    _configure_logging(config)
    return config


def _load_state(repository: StateRepository, root: Path) -> CollectionState:
    try:
        return repository.load(root)
    except MissingStateError as exc:
        raise click.ClickException(
            f"No collection state found for {root}. Run `arranger init {root}` first."
        ) from exc


def _load_operations(path: Path, state: CollectionState) -> Operations:
    """Read operations from a JSON or YAML file.

    The file may hold a full endpoint response, a ``reorganization`` body,
    bare ``operations`` or a proposed structure (``folders`` plus
    ``rootDocuments``), which is converted against ``state``.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse operations file: {exc}") from exc
    if not isinstance(data, dict):
        raise click.ClickException("Operations file must contain a mapping at the top level.")

    try:
        if "reorganization" in data:
            return ReorganizeResponse.model_validate(data).reorganization.operations
        if "operations" in data:
            return Reorganization.model_validate(data).operations
        if "rootDocuments" in data or "root_documents" in data:
            return build_operations(state, ProposedStructure.model_validate(data))
        return Operations.model_validate(data)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid operations payload: {exc}") from exc


def _plan_payload(plan: ReorganizationPlan) -> dict[str, Any]:
    diff = plan.diff
    return {
        "collection_id": plan.collection_id,
        "moving": sorted(diff.moving_doc_ids),
        "deleting": sorted(diff.deleting_folder_ids),
        "creating": list(diff.creating_folders),
        "staying": sorted(diff.staying_item_ids),
        "rejected_deletes": list(plan.rejected_deletes),
        "notes": list(plan.notes),
        "operations": plan.operations.model_dump(mode="json", by_alias=True),
    }


def _plan_table(plan: ReorganizationPlan, state: CollectionState) -> Table:
    table = Table(title="Reorganization plan", show_lines=False)
    table.add_column("Item")
    table.add_column("Name")
    table.add_column("Change")
    for move in plan.effective_moves:
        document = state.find_document(move.document_id)
        target = move.target_folder_id or "(root)"
        table.add_row(move.document_id, document.name if document else "", f"move -> {target}")
    for name in plan.diff.creating_folders:
        table.add_row("", name, "create folder")
    for folder_id in sorted(plan.diff.deleting_folder_ids):
        folder = state.find_folder(folder_id)
        table.add_row(folder_id, folder.name if folder else "", "delete folder")
    for folder_id in plan.rejected_deletes:
        folder = state.find_folder(folder_id)
        table.add_row(folder_id, folder.name if folder else "", "[yellow]kept (not empty)[/yellow]")
    return table


def _collection_tree(state: CollectionState) -> Tree:
    tree = Tree(f"[bold]{state.name or state.collection_id}[/bold] ({state.collection_id})")
    for item_id in state.mixed_order():
        folder = state.find_folder(item_id)
        if folder is None:
            document = state.find_document(item_id)
            if document is not None:
                tree.add(f"{document.name} [dim]{document.id}[/dim]")
            continue
        marker = "v" if folder.is_expanded else ">"
        branch = tree.add(f"{marker} [cyan]{folder.name}[/cyan] [dim]{folder.id}[/dim]")
        for child in state.folder_children(folder.id):
            branch.add(f"{child.name} [dim]{child.id}[/dim]")
    return tree


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="arranger")
def cli() -> None:
    """Arranger keeps a document sidebar ordered, drag-sortable and reorganizable."""


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@click.option("--collection-id", type=str, help="Identifier of the new collection (defaults to the directory name).")
@click.option("--name", type=str, default="", help="Display name of the collection.")
@click.option("--force", is_flag=True, help="Overwrite existing collection state.")
def init(path: str, collection_id: str | None, name: str, force: bool) -> None:
    """Create empty collection state under PATH.

    Args:
        path: Directory that will hold the collection metadata.
        collection_id: Identifier of the collection.
        name: Display name of the collection.
        force: Replace existing state when True.

    Raises:
        click.ClickException: If state already exists and ``force`` is not set.
    """
    _load_config()
    root = Path(path).expanduser().resolve()
    repository = StateRepository()
    if repository.exists(root) and not force:
        raise click.ClickException(f"Collection state already exists for {root}. Use --force to replace it.")

    state = CollectionState(collection_id=collection_id or root.name, name=name)
    repository.save(root, state)
    console.print(f"[green]Initialized collection {state.collection_id} at {root}.[/green]")


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit status information as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def status(ctx: click.Context, path: str, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Display the structure and computed root positions of the collection at PATH.

    Args:
        ctx: Click context for parameter source inspection.
        path: Root directory whose state should be inspected.
        json_output: When True, emit JSON instead of textual output.
        summary_mode: When True, restrict output to summary lines and warnings.
        quiet: When True, suppress non-error output entirely.

    Raises:
        click.ClickException: If state cannot be loaded or arguments conflict.
    """

    json_enabled = json_output
    try:
        config = _load_config()
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )

        root = Path(path).expanduser().resolve()
        state = _load_state(StateRepository(), root)

        settings = config.layout
        order = state.mixed_order()
        bounds = stacked_measure(state, settings)
        heights = {item_id: rect.height for item_id, rect in bounds.items()}
        positions = compute_positions(order, heights, settings.gap, settings.fallback_height)
        extent = content_extent(order, heights, settings.gap, settings.fallback_height)

        metrics = {
            "folders": len(state.folders),
            "documents": len(state.documents),
            "root_items": len(order),
            "extent": f"{extent:g}",
        }

        if json_enabled:
            payload = {
                "collection": {"id": state.collection_id, "name": state.name},
                "root_order": order,
                "folders": {
                    folder.id: [child.id for child in state.folder_children(folder.id)] for folder in state.folders
                },
                "positions": positions,
                "extent": extent,
            }
            console.print_json(data=payload)
            return

        _emit_message(_collection_tree(state), mode="detail", quiet=quiet_enabled, summary_only=summary_only)

        table = Table(title="Root positions")
        table.add_column("#", justify="right")
        table.add_column("Item")
        table.add_column("Kind")
        table.add_column("Top", justify="right")
        table.add_column("Height", justify="right")
        for index, item_id in enumerate(order):
            kind = "folder" if state.find_folder(item_id) is not None else "document"
            table.add_row(str(index), item_id, kind, f"{positions[item_id]:g}", f"{heights.get(item_id, 0):g}")
        _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)
        _emit_message(
            _format_summary_line("Status", root, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_enabled, original=exc)


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option(
    "--operations",
    "operations_file",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    help="JSON or YAML file with the proposed operations.",
)
@click.option("--endpoint", type=str, help="Reorganization endpoint URL (defaults to configuration).")
@click.option("--prompt", type=str, help="Extra organization instructions sent to the endpoint.")
@click.option("--dry-run", is_flag=True, help="Preview the plan without modifying state.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the plan.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def reorganize(
    ctx: click.Context,
    path: str,
    operations_file: str | None,
    endpoint: str | None,
    prompt: str | None,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Plan and apply a reorganization of the collection at PATH.

    Operations come from ``--operations`` or from the reorganization endpoint.
    Animation delays are fast-forwarded; the resulting structure is saved.

    Args:
        ctx: Click context for parameter source inspection.
        path: Root directory of the collection.
        operations_file: File holding the operations to apply.
        endpoint: Endpoint URL overriding ``reorganize.endpoint``.
        prompt: Instructions overriding ``reorganize.organization_prompt``.
        dry_run: If True, only print the plan.
        json_output: If True, emit JSON describing the plan.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error CLI output entirely.

    Raises:
        click.ClickException: If inputs are missing or the reorganization fails.
    """

    json_enabled = json_output
    try:
        config = _load_config()
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        if operations_file and endpoint:
            raise click.ClickException("Use either --operations or --endpoint, not both.")

        root = Path(path).expanduser().resolve()
        repository = StateRepository()
        state = _load_state(repository, root)

        if operations_file:
            operations = _load_operations(Path(operations_file), state)
        else:
            url = endpoint or config.reorganize.endpoint
            if not url:
                raise click.ClickException(
                    "No reorganization endpoint configured. Pass --endpoint or set reorganize.endpoint."
                )
            client = ReorganizeClient(url, timeout=config.reorganize.timeout_seconds)
            reorganization = asyncio.run(
                client.request(
                    state.collection_id,
                    state.name or state.collection_id,
                    prompt or config.reorganize.organization_prompt,
                )
            )
            operations = reorganization.operations

        notices = NoticeLog()
        service = ReorganizationService(
            state,
            CollectionWorkspace(state),
            notices,
            settings=config.animation,
            clock=ManualClock(),
        )

        if dry_run:
            plan = service.plan(operations)
        else:
            report = asyncio.run(service.apply_operations(operations))
            if not report.success or report.plan is None:
                if report.plan is not None:
                    # Calls committed before the failure stay applied.
                    repository.save(root, state)
                    LOGGER.warning("Saved partially applied reorganization for %s", root)
                raise click.ClickException(report.error or "Reorganization failed.")
            plan = report.plan
            repository.save(root, state)

        for note in plan.notes:
            _emit_message(f"[yellow]{note}[/yellow]", mode="warning", quiet=quiet_enabled, summary_only=summary_only)

        metrics = {
            "moved": len(plan.diff.moving_doc_ids),
            "created": len(plan.diff.creating_folders),
            "deleted": len(plan.diff.deleting_folder_ids),
            "rejected": len(plan.rejected_deletes),
            "dry_run": dry_run,
        }

        if json_enabled:
            console.print_json(data={"plan": _plan_payload(plan), "summary": metrics})
            return

        _emit_message(_plan_table(plan, state), mode="detail", quiet=quiet_enabled, summary_only=summary_only)
        _emit_message(
            _format_summary_line("Reorganize", root, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except ReorganizationError as exc:
        _handle_cli_error(str(exc), code="reorganize_error", json_output=json_enabled, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while reorganizing: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.group()
def config() -> None:
    """Manage Arranger configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'drag.folder_padding'.")

    before = manager.read_text().splitlines()
    try:
        manager.set_value(".".join(segments), value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    after = manager.read_text().splitlines()

    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
        if not line.lstrip("+-").startswith("# Last updated:")
    ]

    if not any(line.startswith(("+", "-")) and not line.startswith(("+++", "---")) for line in diff):
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()

from __future__ import annotations

import json
import logging
import sys
from collections import Counter
from typing import Any, NoReturn, Optional

import typer

from activity_graph.core.config.status_config import (
    StatusConfigError,
    load_and_merge,
    parse_status,
)
from activity_graph.core.errors import GraphError, SnapshotLoadError, SnapshotValidationError
from activity_graph.core.graph import (
    activity_labels,
    can_start,
    get_blocked_activities,
    get_dependency_chain,
    get_transitively_blocked,
    unmet_dependencies,
    validate_dependency,
    would_create_cycle,
)
from activity_graph.core.io.load_snapshot import load_snapshot
from activity_graph.core.lint.lint_snapshot import lint_snapshot
from activity_graph.core.model import Activity, ActivityId, ActivityStatus, GraphSnapshot
from activity_graph.core.transition import validate_transition
from activity_graph.core.validate.validate_snapshot import summarize_snapshot, validate_snapshot

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)

# Exit code for a query that was answered, but negatively.
EXIT_REJECTED = 3

FORMAT_HELP = "Output format: text|json"
STATUS_FILE_HELP = "Optional YAML file to add status aliases"


@app.callback()
def _callback(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        envvar="ACTIVITY_GRAPH_LOG_LEVEL",
        help="Logging level for diagnostics on stderr",
    ),
) -> None:
    """Activity dependency graph CLI."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        _print_errors(
            [
                SnapshotValidationError(
                    code="E_UNKNOWN_LOG_LEVEL",
                    message=f"unknown log level: {log_level}",
                    path="log_level",
                )
            ]
        )
        raise typer.Exit(code=2)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("activity_graph").setLevel(level)


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a snapshot file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    status_file: Optional[str] = typer.Option(None, "--status-file", help=STATUS_FILE_HELP),
    allow_cycles: bool = typer.Option(
        False, "--allow-cycles", help="Accept snapshots that already contain a dependency cycle"
    ),
) -> None:
    """Validate a snapshot file."""
    _check_format(format, "validate")
    aliases = _load_aliases(status_file, format, "validate")
    snapshot = _load_or_exit(
        path, format=format, command="validate", aliases=aliases, reject_cycles=not allow_cycles
    )

    if format == "text":
        typer.echo(summarize_snapshot(snapshot))
        return

    counts = Counter([a.status.value for a in snapshot])
    summary = {
        "activity_count": len(snapshot),
        "status_counts": {k: int(v) for k, v in counts.items()},
        "dependency_count": sum(len(a.dependencies) for a in snapshot),
        "process": snapshot.process,
    }
    _emit_json("validate", ok=True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a snapshot file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    status_file: Optional[str] = typer.Option(None, "--status-file", help=STATUS_FILE_HELP),
) -> None:
    """Lint a snapshot file (consistency rules beyond validation)."""
    _check_format(format, "lint")
    aliases = _load_aliases(status_file, format, "lint")

    try:
        data = load_snapshot(path)
    except SnapshotLoadError as e:
        _fail(format, "lint", [e], exit_code=1)

    lint_errors = lint_snapshot(data, status_aliases=aliases)
    _, validation_errors = validate_snapshot(data, status_aliases=aliases, reject_cycles=False)
    errors: list[GraphError] = [*lint_errors, *validation_errors]

    if errors:
        _fail(format, "lint", errors, exit_code=2)
    if format == "json":
        _emit_json("lint", ok=True, exit_code=0, errors=[])
    typer.echo("OK: lint passed")


@app.command("can-start")
def can_start_cmd(
    path: str = typer.Argument(..., help="Path to a snapshot file (.yaml/.yml/.json)"),
    activity_id: str = typer.Argument(..., help="Activity id"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    status_file: Optional[str] = typer.Option(None, "--status-file", help=STATUS_FILE_HELP),
) -> None:
    """Report whether an activity's dependencies are all completed."""
    _check_format(format, "can-start")
    aliases = _load_aliases(status_file, format, "can-start")
    snapshot = _load_or_exit(path, format=format, command="can-start", aliases=aliases)
    activity = _resolve_activity(snapshot, activity_id, format=format, command="can-start")

    ready = can_start(activity, snapshot)
    unmet = unmet_dependencies(activity, snapshot)
    exit_code = 0 if ready else EXIT_REJECTED

    if format == "json":
        _emit_json(
            "can-start",
            ok=ready,
            exit_code=exit_code,
            activity=activity.id,
            can_start=ready,
            unmet_dependencies=_id_items(unmet, snapshot),
        )

    if ready:
        typer.echo(f"READY: {activity.name}")
        return
    typer.echo(f"BLOCKED: {activity.name} waits on: " + ", ".join(activity_labels(unmet, snapshot)))
    raise typer.Exit(code=exit_code)


@app.command("blocked")
def blocked(
    path: str = typer.Argument(..., help="Path to a snapshot file (.yaml/.yml/.json)"),
    activity_id: str = typer.Argument(..., help="Activity id"),
    transitive: bool = typer.Option(
        False, "--transitive", help="Include activities blocked through intermediate activities"
    ),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    status_file: Optional[str] = typer.Option(None, "--status-file", help=STATUS_FILE_HELP),
) -> None:
    """List the unfinished activities waiting on an activity."""
    _check_format(format, "blocked")
    aliases = _load_aliases(status_file, format, "blocked")
    snapshot = _load_or_exit(path, format=format, command="blocked", aliases=aliases)
    activity = _resolve_activity(snapshot, activity_id, format=format, command="blocked")

    if transitive:
        ids = get_transitively_blocked(activity.id, snapshot)
    else:
        ids = get_blocked_activities(activity.id, snapshot)

    if format == "json":
        _emit_json(
            "blocked",
            ok=True,
            exit_code=0,
            activity=activity.id,
            transitive=transitive,
            blocked=_id_items(ids, snapshot),
        )

    typer.echo(f"Blocked by {activity.name}: {len(ids)}")
    _echo_id_lines(ids, snapshot)


@app.command("chain")
def chain(
    path: str = typer.Argument(..., help="Path to a snapshot file (.yaml/.yml/.json)"),
    activity_id: str = typer.Argument(..., help="Activity id"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    status_file: Optional[str] = typer.Option(None, "--status-file", help=STATUS_FILE_HELP),
) -> None:
    """Show every prerequisite an activity transitively depends on."""
    _check_format(format, "chain")
    aliases = _load_aliases(status_file, format, "chain")
    snapshot = _load_or_exit(path, format=format, command="chain", aliases=aliases)
    activity = _resolve_activity(snapshot, activity_id, format=format, command="chain")

    ids = get_dependency_chain(activity.id, snapshot)

    if format == "json":
        _emit_json(
            "chain", ok=True, exit_code=0, activity=activity.id, chain=_id_items(ids, snapshot)
        )

    if not ids:
        typer.echo(f"{activity.name} has no dependencies")
        return
    typer.echo(f"Dependency chain for {activity.name}: " + " -> ".join(activity_labels(ids, snapshot)))
    _echo_id_lines(ids, snapshot)


@app.command("check-dependency")
def check_dependency(
    path: str = typer.Argument(..., help="Path to a snapshot file (.yaml/.yml/.json)"),
    activity_id: str = typer.Argument(..., help="Activity that would receive the dependency"),
    dependency_id: str = typer.Argument(..., help="Proposed prerequisite activity"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    status_file: Optional[str] = typer.Option(None, "--status-file", help=STATUS_FILE_HELP),
) -> None:
    """Check whether a new dependency edge can be added without creating a cycle."""
    _check_format(format, "check-dependency")
    aliases = _load_aliases(status_file, format, "check-dependency")
    snapshot = _load_or_exit(path, format=format, command="check-dependency", aliases=aliases)
    activity = _resolve_activity(snapshot, activity_id, format=format, command="check-dependency")
    dependency = _resolve_activity(
        snapshot, dependency_id, format=format, command="check-dependency"
    )

    result = validate_dependency(snapshot, activity.id, dependency.id)
    exit_code = 0 if result.valid else EXIT_REJECTED

    if format == "json":
        _emit_json(
            "check-dependency",
            ok=result.valid,
            exit_code=exit_code,
            activity=activity.id,
            dependency=dependency.id,
            would_create_cycle=would_create_cycle(snapshot, activity.id, dependency.id),
            reason=result.reason,
        )

    if result.valid:
        typer.echo(f"OK: {activity.name} may depend on {dependency.name}")
        return
    typer.echo(f"REJECTED: {result.reason}")
    raise typer.Exit(code=exit_code)


@app.command("transition")
def transition(
    path: str = typer.Argument(..., help="Path to a snapshot file (.yaml/.yml/.json)"),
    activity_id: str = typer.Argument(..., help="Activity id"),
    new_status: str = typer.Argument(..., help="Requested status (canonical value or alias)"),
    format: str = typer.Option("text", "--format", help=FORMAT_HELP),
    status_file: Optional[str] = typer.Option(None, "--status-file", help=STATUS_FILE_HELP),
) -> None:
    """Validate a status change against the activity's dependencies and dependents."""
    _check_format(format, "transition")
    aliases = _load_aliases(status_file, format, "transition")
    snapshot = _load_or_exit(path, format=format, command="transition", aliases=aliases)
    activity = _resolve_activity(snapshot, activity_id, format=format, command="transition")

    status = parse_status(new_status, aliases)
    if status is None:
        _fail(
            format,
            "transition",
            [
                SnapshotValidationError(
                    code="E_TRANSITION_UNKNOWN_STATUS",
                    message=f"unknown status: {new_status} (choose one of: "
                    + ", ".join(s.value for s in ActivityStatus)
                    + ")",
                    path="new_status",
                )
            ],
            exit_code=2,
        )

    result = validate_transition(activity, status, snapshot)
    exit_code = 0 if result.valid else EXIT_REJECTED

    if format == "json":
        _emit_json(
            "transition",
            ok=result.valid,
            exit_code=exit_code,
            activity=activity.id,
            from_status=activity.status.value,
            to_status=status.value,
            valid=result.valid,
            reason=result.reason,
        )

    if result.valid:
        typer.echo(f"OK: {activity.name}: {activity.status.value} -> {status.value}")
        return
    typer.echo(f"REJECTED: {result.reason}")
    raise typer.Exit(code=exit_code)


def _check_format(format: str, command: str) -> None:
    if format in ("text", "json"):
        return
    code = "E_" + command.upper().replace("-", "_") + "_UNKNOWN_FORMAT"
    _print_errors(
        [
            SnapshotValidationError(
                code=code,
                message=f"unknown format: {format} (choose one of: text, json)",
                path="format",
            )
        ]
    )
    raise typer.Exit(code=2)


def _load_aliases(status_file: Optional[str], format: str, command: str) -> dict[str, ActivityStatus]:
    try:
        return load_and_merge(status_file)
    except FileNotFoundError:
        _fail(
            format,
            command,
            [
                SnapshotLoadError(
                    code="E_STATUS_FILE_NOT_FOUND",
                    message=f"status file not found: {status_file}",
                    path="status_file",
                )
            ],
            exit_code=1,
        )
    except StatusConfigError as e:
        _fail(
            format,
            command,
            [
                SnapshotValidationError(
                    code="E_STATUS_FILE_INVALID",
                    message=str(e),
                    file=status_file,
                    path="status_file",
                )
            ],
            exit_code=2,
        )


def _load_or_exit(
    path: str,
    *,
    format: str,
    command: str,
    aliases: dict[str, ActivityStatus],
    reject_cycles: bool = True,
) -> GraphSnapshot:
    try:
        data = load_snapshot(path)
    except SnapshotLoadError as e:
        _fail(format, command, [e], exit_code=1)

    snapshot, errors = validate_snapshot(data, status_aliases=aliases, reject_cycles=reject_cycles)
    if errors or snapshot is None:
        _fail(format, command, list(errors), exit_code=2)
    logger.debug("loaded %d activities from %s", len(snapshot), path)
    return snapshot


def _resolve_activity(
    snapshot: GraphSnapshot, raw_id: str, *, format: str, command: str
) -> Activity:
    """Match a command-line id against the snapshot, which may key by int or str."""
    candidates: list[ActivityId] = [raw_id]
    try:
        candidates.append(int(raw_id.strip()))
    except ValueError:
        pass

    for candidate in candidates:
        activity = snapshot.get(candidate)
        if activity is not None:
            return activity

    _fail(
        format,
        command,
        [
            SnapshotValidationError(
                code="E_UNKNOWN_ACTIVITY",
                message=f"activity not found in snapshot: {raw_id}",
                path="activity_id",
            )
        ],
        exit_code=2,
    )


def _id_items(ids: list[ActivityId], snapshot: GraphSnapshot) -> list[dict[str, Any]]:
    return [{"id": aid, "name": name} for aid, name in zip(ids, activity_labels(ids, snapshot))]


def _echo_id_lines(ids: list[ActivityId], snapshot: GraphSnapshot) -> None:
    for aid, name in zip(ids, activity_labels(ids, snapshot)):
        typer.echo(f"- {aid}: {name}")


def _emit_json(command: str, *, ok: bool, exit_code: int, **fields: Any) -> NoReturn:
    payload: dict[str, Any] = {"tool": "activity-graph", "command": command, "ok": ok}
    if "errors" in fields:
        errors = fields.pop("errors")
        payload["error_count"] = len(errors)
        payload["errors"] = [e.as_item() for e in errors]
    payload.update(fields)
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=exit_code)


def _fail(format: str, command: str, errors: list[GraphError], *, exit_code: int) -> NoReturn:
    if format == "json":
        _emit_json(command, ok=False, exit_code=exit_code, errors=errors)
    _print_errors(errors)
    raise typer.Exit(code=exit_code)


def _print_errors(errors: list[GraphError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: e.sort_key())
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="activity-graph")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()

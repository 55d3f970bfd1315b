from __future__ import annotations

import json
import sys
from typing import Any, List, Optional

import typer

from laneboard.api import get_record, list_records, update_record
from laneboard.config import Settings, StoreBackend, get_settings
from laneboard.domain.errors import LaneboardError
from laneboard.domain.models import Record
from laneboard.infrastructure.db_factory import build_dsn, get_sync_connection
from laneboard.infrastructure.schema import ensure_schema
from laneboard.stores import open_store
from laneboard.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Laneboard: ranked client pipeline CLI.")
log = get_logger(__name__)

# HTTP-equivalent status -> process exit code.
_EXIT_CODES = {400: 2, 404: 3, 409: 4, 500: 1}


def _echo_records(records: List[Record]) -> None:
    typer.echo(json.dumps([r.to_wire() for r in records], indent=2))


def _fail(exc: LaneboardError) -> None:
    body: dict[str, Any] = exc.to_dict()
    if exc.retryable:
        body["retryable"] = True
    typer.echo(json.dumps(body), err=True)
    raise typer.Exit(code=_EXIT_CODES.get(exc.status_code, 1))


def _durable_settings() -> Settings:
    """
    Settings for a command that reads or writes clients.

    Each CLI invocation is its own process, so the memory backend would start
    empty and lose every write on exit. Those commands refuse it.
    """
    settings = get_settings()
    if settings.store_backend is StoreBackend.MEMORY:
        body = {
            "message": "Unsupported store backend.",
            "long_message": (
                "The memory backend does not persist between CLI invocations; "
                "set STORE_BACKEND=postgres."
            ),
        }
        typer.echo(json.dumps(body), err=True)
        raise typer.Exit(code=2)
    return settings


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"backend={settings.store_backend.value} rank_policy={settings.rank_policy.value} "
        f"lane_move_policy={settings.lane_move_policy.value}"
    )


@app.command("init-db")
def init_db(
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
) -> None:
    """
    Create the clients table if it does not exist.
    """
    settings = get_settings()
    if settings.store_backend is StoreBackend.MEMORY and dsn is None:
        typer.echo("Memory backend selected; nothing to initialize.")
        return
    with get_sync_connection(dsn or build_dsn(settings)) as conn:
        ensure_schema(conn)
    typer.echo("Schema ready.")


@app.command("list")
def list_command(
    lane: Optional[str] = typer.Option(
        None,
        "--lane",
        "--status",
        "-l",
        help="Only list clients in this lane (backlog, inProgress, complete).",
    ),
) -> None:
    """
    List all clients, optionally filtered by lane.
    """
    try:
        with open_store(_durable_settings()) as store:
            _echo_records(list_records(store, lane))
    except LaneboardError as exc:
        _fail(exc)


@app.command()
def get(record_id: str = typer.Argument(..., metavar="ID", help="Client id.")) -> None:
    """
    Show one client.
    """
    try:
        with open_store(_durable_settings()) as store:
            typer.echo(json.dumps(get_record(store, record_id).to_wire(), indent=2))
    except LaneboardError as exc:
        _fail(exc)


@app.command()
def update(
    record_id: str = typer.Argument(..., metavar="ID", help="Client id."),
    lane: Optional[str] = typer.Option(
        None, "--lane", "--status", "-l", help="Target lane (backlog, inProgress, complete)."
    ),
    rank: Optional[str] = typer.Option(
        None, "--rank", "--priority", "-r", help="Target rank (positive integer)."
    ),
) -> None:
    """
    Move a client to another lane and/or rank, then print every client.
    """
    settings = _durable_settings()
    try:
        with open_store(settings) as store:
            _echo_records(update_record(store, record_id, lane=lane, rank=rank, settings=settings))
    except LaneboardError as exc:
        _fail(exc)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()

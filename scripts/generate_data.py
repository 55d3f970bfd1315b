"""
Seed data generation and loading script for laneboard.

Generates a deterministic set of clients spread over the three lanes with
dense 1..n ranks per lane, writes them to CSV, and loads them with Postgres
COPY.
"""

from __future__ import annotations

import csv
import json
import random
import sys
import tempfile
import time
from pathlib import Path
from typing import List

import psycopg
import typer

from laneboard.domain.models import Lane, Record
from laneboard.infrastructure.db_factory import build_dsn
from laneboard.infrastructure.schema import ensure_schema

app = typer.Typer(help="Generate seed clients and load them into Postgres (CSV + COPY).")

CSV_HEADER = ["id", "name", "lane", "rank", "attributes"]


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _generate_records(rows: int, seed: int) -> List[Record]:
    rng = random.Random(seed)
    lanes = list(Lane)
    next_rank = {lane: 1 for lane in lanes}
    industries = ["retail", "finance", "health", "logistics", "media"]

    records: List[Record] = []
    for client_id in range(1, rows + 1):
        lane = rng.choice(lanes)
        records.append(
            Record(
                id=client_id,
                name=f"Client {client_id:05d}",
                lane=lane,
                rank=next_rank[lane],
                attributes={
                    "industry": rng.choice(industries),
                    "seats": rng.randint(1, 500),
                },
            )
        )
        next_rank[lane] += 1
    return records


def _generate_rows_csv(csv_path: Path, rows: int, seed: int) -> None:
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for record in _generate_records(rows, seed):
            writer.writerow(
                [
                    record.id,
                    record.name,
                    record.lane.value,
                    record.rank,
                    json.dumps(record.attributes),
                ]
            )


def _copy_into_db(dsn: str, csv_path: Path, truncate: bool = False) -> None:
    with psycopg.connect(dsn) as conn:
        ensure_schema(conn)
        with conn.cursor() as cur:
            if truncate:
                cur.execute("TRUNCATE TABLE public.clients;")
            with cur.copy(
                """
                COPY public.clients (id, name, lane, rank, attributes)
                FROM STDIN WITH (FORMAT csv, HEADER TRUE)
                """
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()


@app.command()
def main(
    rows: int = typer.Option(30, "--rows", "-r", help="Number of clients to generate."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
    truncate: bool = typer.Option(
        False, "--truncate", help="Empty the clients table before loading."
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate seed clients and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="laneboard_csv_"))
        csv_path = tmpdir / "clients.csv"

    typer.echo(f"Generating {rows:,} clients -> {csv_path} (seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, seed=seed)

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(_build_dsn(dsn), csv_path, truncate=truncate)
    typer.echo(f"Done in {time.perf_counter() - start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)

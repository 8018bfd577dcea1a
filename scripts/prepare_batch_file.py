#!/usr/bin/env python3
"""Build a batch file from a CSV of inputs and transcripts.

This script reads a CSV with a 'path' column (and an optional 'transcript'
column), checks each input exists, and writes a batch file with one
"<path> <TRANSCRIPT>" line per row.

Run this when the source CSV changes. The output file can be checked into
version control and split across workers with `batchdecode plan`.

Usage:
    python scripts/prepare_batch_file.py data/test_clean.csv -o batch.txt
"""

import csv
from pathlib import Path

import typer


app = typer.Typer(
    help="Build a batch file from a CSV of inputs",
    add_completion=False,
)


@app.command()
def main(
    csv_file: Path = typer.Argument(
        ...,
        help="Path to CSV file with 'path' and optional 'transcript' columns",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output batch file (one input per line)",
    ),
    check_files: bool = typer.Option(
        True,
        "--check-files/--no-check-files",
        help="Skip rows whose input file does not exist",
    ),
) -> None:
    """
    Write a batch file from CSV rows.

    For each row in the CSV:
    - Checks the input file exists (unless --no-check-files)
    - Collapses whitespace in the transcript so it stays on one line
    - Logs skipped rows to stderr

    Example:
        python scripts/prepare_batch_file.py data/test_clean.csv -o batch.txt
    """
    typer.echo(f"Reading CSV: {csv_file}")

    if not csv_file.exists():
        typer.echo(f"Error: CSV file not found: {csv_file}", err=True)
        raise typer.Exit(code=1)

    lines: list[str] = []
    skipped: list[tuple[str, str]] = []  # (path, reason)

    with csv_file.open("r", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if "path" not in (reader.fieldnames or []):
            typer.echo("Error: CSV file must have 'path' column", err=True)
            raise typer.Exit(code=1)

        for row in reader:
            path = (row.get("path") or "").strip()
            if not path:
                continue
            if any(c.isspace() for c in path):
                skipped.append((path, "path contains whitespace"))
                typer.echo(f"  Skipped: {path} (path contains whitespace)", err=True)
                continue
            if check_files and not Path(path).expanduser().is_file():
                skipped.append((path, "not found"))
                typer.echo(f"  Skipped: {path} (not found)", err=True)
                continue

            transcript = " ".join((row.get("transcript") or "").split())
            lines.append(f"{path} {transcript}" if transcript else path)

    if skipped:
        typer.echo(f"\nSkipped {len(skipped)} row(s)", err=True)

    if not lines:
        typer.echo("Error: No usable rows found", err=True)
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        for line in lines:
            f.write(f"{line}\n")

    typer.secho(
        f"\nWrote {len(lines)} line(s) to {output}",
        fg=typer.colors.GREEN,
        bold=True,
    )


if __name__ == "__main__":
    app()

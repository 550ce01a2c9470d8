"""packedancestrymap: inspect and decode PackedAncestryMap genotype files."""

import json
import logging
import threading
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConfigValidationError, load_config, validate_config
from .decoder import PackedGenoReader
from .errors import PackedAncestryMapError
from .integrity import check_integrity, compute_digest, format_digest
from .metadata import read_ind_file, read_snp_file
from .models import MISSING_GENOTYPE, Individual, Marker
from .reader import DecodeConfig, process_geno_rows

# EIGENSTRAT text genotypes write missing calls as 9.
TEXT_MISSING = "9"


def version_callback(value: bool) -> None:
    if value:
        print(__version__)
        raise typer.Exit()


app = typer.Typer(
    name="packedancestrymap", help="Verify and decode PackedAncestryMap genotype files"
)
console = Console()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", callback=version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = None,
) -> None:
    pass


def setup_logging(verbose: bool, quiet: bool) -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("packedancestrymap").setLevel(level)


def _check_exists(*paths: Path) -> None:
    for path in paths:
        if not path.exists():
            console.print(f"[red]Error: File not found: {path}[/red]")
            raise typer.Exit(1)


@app.command()
def digest(
    table_path: Path = typer.Argument(..., help="Path to a *.ind or *.snp table"),
) -> None:
    """Print the first-column digest of a metadata table."""
    _check_exists(table_path)
    try:
        print(format_digest(compute_digest(table_path)))
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None


@app.command()
def verify(
    geno_path: Path = typer.Argument(..., help="Path to packed *.geno file"),
    ind_path: Path = typer.Argument(..., help="Path to *.ind individual table"),
    snp_path: Path = typer.Argument(..., help="Path to *.snp marker table"),
    strict: bool = typer.Option(
        False, "--strict", help="Require exact match against the header hash fields"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Check that the *.geno header authenticates the *.ind / *.snp pair."""
    _check_exists(geno_path, ind_path, snp_path)

    try:
        report = check_integrity(geno_path, ind_path, snp_path, strict=strict)
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if as_json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        console.print(f"Individual digest: {report.ind_hex}")
        console.print(f"Marker digest: {report.snp_hex}")
        for problem in report.problems:
            console.print(f"  [yellow]{problem}[/yellow]")

    if report.is_valid:
        if not as_json:
            console.print("[green]✓ Integrity check passed[/green]")
    else:
        if not as_json:
            console.print("[red]✗ Integrity check failed[/red]")
        raise typer.Exit(1)


@app.command()
def info(
    geno_path: Path = typer.Argument(..., help="Path to packed *.geno file"),
    ind_path: Path = typer.Argument(..., help="Path to *.ind individual table"),
    snp_path: Path = typer.Argument(..., help="Path to *.snp marker table"),
) -> None:
    """Show header fields, table sizes and record layout."""
    _check_exists(geno_path, ind_path, snp_path)

    try:
        report = check_integrity(geno_path, ind_path, snp_path)
        markers = read_snp_file(snp_path)
        individuals = read_ind_file(ind_path)
    except (OSError, PackedAncestryMapError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    geno_reader = PackedGenoReader(geno_path, len(individuals))
    header = report.header

    table = Table(title=geno_path.name)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Header magic", header.magic or "-")
    table.add_row("Declared individuals", _or_dash(header.n_individuals))
    table.add_row("Declared markers", _or_dash(header.n_markers))
    table.add_row("Individuals", f"{len(individuals):,}")
    table.add_row("Markers", f"{len(markers):,}")
    table.add_row("Unsupported chromosomes", f"{sum(not m.is_supported for m in markers):,}")
    table.add_row("Record width", f"{geno_reader.record_width} bytes")
    table.add_row("Expected size", f"{geno_reader.expected_size(len(markers)):,} bytes")
    table.add_row("Actual size", f"{geno_path.stat().st_size:,} bytes")
    table.add_row("Integrity", "passed" if report.is_valid else "failed")
    console.print(table)


def _or_dash(value: int | None) -> str:
    return "-" if value is None else f"{value:,}"


def format_row(row: list[int]) -> str:
    """Render codes as an EIGENSTRAT text line (9 for missing)."""
    return "".join(TEXT_MISSING if code == MISSING_GENOTYPE else str(code) for code in row)


@app.command()
def dump(
    geno_path: Path = typer.Argument(..., help="Path to packed *.geno file"),
    ind_path: Path = typer.Argument(..., help="Path to *.ind individual table"),
    snp_path: Path = typer.Argument(..., help="Path to *.snp marker table"),
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write rows to file instead of stdout")
    ] = None,
    config_file: Annotated[
        Path | None, typer.Option("--config", "-c", help="TOML configuration file")
    ] = None,
    max_concurrency: Annotated[
        int | None, typer.Option("--max-concurrency", help="Cap on concurrent row handlers")
    ] = None,
    strict: bool = typer.Option(False, "--strict", help="Strict header digest matching"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Decode every marker and print one line of genotype codes per marker."""
    setup_logging(verbose, quiet)
    _check_exists(geno_path, ind_path, snp_path)

    overrides = {}
    if max_concurrency is not None:
        overrides["max_concurrency"] = max_concurrency
    if strict:
        overrides["strict_header"] = True
    if verbose or quiet:
        overrides["log_level"] = "DEBUG" if verbose else "WARNING"

    try:
        if config_file:
            config = load_config(config_file, overrides)
        else:
            validate_config(overrides)
            config = DecodeConfig(**overrides)
    except (ConfigValidationError, FileNotFoundError) as e:
        console.print(f"[red]Configuration Error: {e}[/red]")
        raise typer.Exit(1) from None

    logging.getLogger("packedancestrymap").setLevel(config.log_level)

    rows: dict[int, tuple[str, str]] = {}
    lock = threading.Lock()

    def collect(row: list[int], marker: Marker, individuals: tuple[Individual, ...]) -> None:
        line = format_row(row)
        with lock:
            rows[marker.index] = (marker.name, line)

    try:
        result = process_geno_rows(geno_path, ind_path, snp_path, collect, config)
    except PackedAncestryMapError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    lines = [f"{name}\t{codes}\n" for _, (name, codes) in sorted(rows.items())]
    if output:
        with open(output, "w") as f:
            f.writelines(lines)
        if not quiet:
            console.print(
                f"[green]✓[/green] Wrote {result.markers_dispatched:,} markers to {output}"
            )
    else:
        print("".join(lines), end="")

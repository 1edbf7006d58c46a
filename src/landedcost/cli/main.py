"""Command-line interface for the landed-cost engine."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from pydantic import ValidationError

from landedcost.customs.missing_codes import find_unmatched, suggest_codes
from landedcost.customs.pipeline import compute_landed_cost
from landedcost.customs.rate_tables import load_rate_tables
from landedcost.customs.reconciliation import reconcile
from landedcost.customs.schemas import (
    LandedCostRequestModel,
    LandedCostResponseModel,
    ReconciliationResponseModel,
    TariffSuggestionModel,
    UnmatchedLineModel,
)
from landedcost.customs.settings import MissingSettingError, load_settings
from landedcost.observability import RunIdFilter, run_scope
from landedcost.version import __version__

logger = logging.getLogger(__name__)

_path_type = click.Path(exists=True, dir_okay=False, path_type=Path)


def _tables_options(func):
    for flag, dest, help_text in (
        ("--port-fees", "port_fees_path", "Port-fee seed (JSON)."),
        ("--exemptions", "exemptions_path", "Exemption seed (JSON)."),
        ("--tariffs", "tariffs_path", "Tariff seed (JSON or CSV)."),
    ):
        func = click.option(flag, dest, type=_path_type, default=None, help=help_text)(func)
    return func


def _read_scenario(path: Path) -> LandedCostRequestModel:
    try:
        return LandedCostRequestModel.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise click.ClickException(f"Invalid scenario {path.name}:\n{exc}") from exc


def _emit(payload: Any, pretty: bool) -> None:
    click.echo(json.dumps(payload, indent=2 if pretty else None, sort_keys=False))


@click.group()
@click.version_option(__version__, prog_name="landedcost")
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
def cli(verbose: bool) -> None:
    """Landed-cost engine command suite."""
    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(RunIdFilter())
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(run_id)s %(name)s: %(message)s",
        handlers=[handler],
    )


@cli.command()
@click.argument("scenario", type=_path_type)
@_tables_options
@click.option("--settings", "settings_path", type=_path_type, default=None, help="Settings overrides (JSON).")
@click.option("--pretty", is_flag=True, help="Indent the JSON output.")
def compute(
    scenario: Path,
    tariffs_path: Optional[Path],
    exemptions_path: Optional[Path],
    port_fees_path: Optional[Path],
    settings_path: Optional[Path],
    pretty: bool,
) -> None:
    """Run SCENARIO through the engine and print the landed-cost result."""
    request = _read_scenario(scenario)
    settings = load_settings(settings_path).with_overrides(request.settings_overrides)
    tables = load_rate_tables(tariffs_path, exemptions_path, port_fees_path)
    with run_scope() as run_id:
        try:
            result = compute_landed_cost(
                request.shipment.to_context(),
                request.line_items(),
                settings,
                tables,
                request.toggles.to_toggles(),
            )
        except MissingSettingError as exc:
            raise click.ClickException(str(exc)) from exc
    response = LandedCostResponseModel.from_result(result, engine_version=__version__, run_id=run_id)
    _emit(response.model_dump(mode="json"), pretty)


@cli.command("reconcile")
@click.argument("scenario", type=_path_type)
@click.option("--pretty", is_flag=True, help="Indent the JSON output.")
def reconcile_command(scenario: Path, pretty: bool) -> None:
    """Compare the declared invoice of SCENARIO with its line items."""
    request = _read_scenario(scenario)
    report = reconcile(request.shipment.to_context(), request.line_items())
    _emit(ReconciliationResponseModel.from_report(report).model_dump(mode="json"), pretty)
    if report.requires_review:
        click.echo(f"Review required: {report.worst_level.value} discrepancy", err=True)


@cli.group()
def codes() -> None:
    """Tariff code helpers."""


@codes.command("search")
@click.argument("query")
@click.option("--limit", type=int, default=10, show_default=True, help="Maximum number of suggestions.")
@_tables_options
def codes_search(
    query: str,
    limit: int,
    tariffs_path: Optional[Path],
    exemptions_path: Optional[Path],
    port_fees_path: Optional[Path],
) -> None:
    """Suggest tariff entries matching QUERY (code or description)."""
    tables = load_rate_tables(tariffs_path, exemptions_path, port_fees_path)
    results = suggest_codes(query, tables, limit=limit)
    if not results:
        click.echo(f"No tariff entry matches {query!r}", err=True)
    _emit([TariffSuggestionModel.from_entry(entry).model_dump() for entry in results], pretty=True)


@codes.command("missing")
@click.argument("scenario", type=_path_type)
@_tables_options
def codes_missing(
    scenario: Path,
    tariffs_path: Optional[Path],
    exemptions_path: Optional[Path],
    port_fees_path: Optional[Path],
) -> None:
    """List the lines of SCENARIO whose code is not in the tariff."""
    request = _read_scenario(scenario)
    tables = load_rate_tables(tariffs_path, exemptions_path, port_fees_path)
    unmatched = find_unmatched(request.line_items(), tables)
    _emit([UnmatchedLineModel.from_unmatched(item).model_dump() for item in unmatched], pretty=True)


@cli.group()
def db() -> None:
    """SQL reference-table maintenance."""


@db.command("init")
def db_init() -> None:
    """Create the reference tables in LCE_DATABASE_URL."""
    from landedcost.db.session import DATABASE_URL, init_db

    init_db()
    click.echo(f"Initialized reference tables at {DATABASE_URL}")


@db.command("load-seed")
def db_load_seed() -> None:
    """Load the configured seed files into LCE_DATABASE_URL."""
    from landedcost.db.repository import load_packaged_seed
    from landedcost.db.session import get_standalone_session, init_db

    init_db()
    with get_standalone_session() as session:
        counts = load_packaged_seed(session)
    click.echo(
        f"Loaded {counts['tariffs']} tariffs, {counts['exemptions']} exemptions, {counts['port_fees']} port fees"
    )


if __name__ == "__main__":
    cli()

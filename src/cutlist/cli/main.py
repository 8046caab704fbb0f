"""Typer CLI for cutlist optimization."""

from pathlib import Path
from typing import Annotated

import typer

from cutlist.application import OptimizationService
from cutlist.application.config import (
    ConfigError,
    ProjectConfiguration,
    config_to_design_items,
    config_to_parts,
    load_config,
)
from cutlist.cli.commands import display_load_error, validate_command
from cutlist.domain import (
    CutlistError,
    UnplaceablePartError,
)
from cutlist.domain.services import apply_invalidation, detect, project_state
from cutlist.domain.value_objects import OptimizationState, ProductionResult
from cutlist.infrastructure import (
    EstimationFormatter,
    InMemoryOffcutStore,
    InvalidationReasonFormatter,
    JsonExporter,
    NestingFormatter,
    OffcutTracker,
    RAGMessageFormatter,
)

OUTPUT_FORMATS = ("text", "json")

app = typer.Typer(
    name="cutlist",
    help="Estimate sheet material, nest parts and sequence guillotine cuts.",
)

# Register validate command
app.command(name="validate")(validate_command)


def _load(project_file: Path) -> ProjectConfiguration:
    """Load a project file or exit with code 1."""
    try:
        return load_config(project_file)
    except ConfigError as e:
        display_load_error(e)
        raise typer.Exit(code=1)


def _service(config: ProjectConfiguration) -> OptimizationService:
    try:
        return OptimizationService.from_config(config)
    except CutlistError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _check_format(output_format: str) -> None:
    if output_format not in OUTPUT_FORMATS:
        typer.echo(
            f"Error: unknown format '{output_format}', expected one of: "
            f"{', '.join(OUTPUT_FORMATS)}",
            err=True,
        )
        raise typer.Exit(code=1)


def _emit(text: str, output_file: Path | None) -> None:
    if output_file is None:
        typer.echo(text)
        return
    output_file.write_text(text + "\n", encoding="utf-8")
    typer.echo(f"Wrote {output_file}")


def _run_production(config: ProjectConfiguration) -> ProductionResult:
    """Estimate then nest a project, exiting with code 1 on engine errors."""
    service = _service(config)
    parts = config_to_parts(config)
    try:
        state = service.run_estimation(None, parts)
        state = service.run_production(state, parts)
    except UnplaceablePartError as e:
        typer.echo(f"Error: {e}", err=True)
        if isinstance(e.partial_result, ProductionResult):
            typer.echo(
                f"{e.partial_result.total_placements} part instance(s) were nested "
                "on the remaining sheets.",
                err=True,
            )
        raise typer.Exit(code=1)
    except CutlistError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    return state.production


@app.command()
def estimate(
    project_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON project file"),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text, json"),
    ] = "text",
    output_file: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write output to a file"),
    ] = None,
) -> None:
    """Estimate sheets and cost for a project."""
    _check_format(output_format)
    config = _load(project_file)
    service = _service(config)
    try:
        result = service.estimate(config_to_parts(config))
    except CutlistError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if output_format == "json":
        _emit(JsonExporter().export_estimation(result), output_file)
    else:
        _emit(EstimationFormatter().format(result), output_file)


@app.command()
def nest(
    project_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON project file"),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text, json"),
    ] = "text",
    cuts: Annotated[
        bool,
        typer.Option("--cuts", help="Include the cut sequence in text output"),
    ] = False,
    output_file: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write output to a file"),
    ] = None,
) -> None:
    """Nest parts onto sheets and sequence the cuts."""
    _check_format(output_format)
    config = _load(project_file)
    result = _run_production(config)

    if output_format == "json":
        _emit(JsonExporter().export_production(result), output_file)
    else:
        _emit(NestingFormatter().format(result, include_cuts=cuts), output_file)


@app.command()
def offcuts(
    project_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON project file"),
    ],
) -> None:
    """List the reusable offcuts a production nesting leaves."""
    config = _load(project_file)
    result = _run_production(config)

    tracker = OffcutTracker(InMemoryOffcutStore())
    harvested = tracker.harvest(result, project_id=config.project_id or None)
    if not harvested:
        typer.echo("No reusable offcuts.")
        return

    typer.echo(f"{'Sheet':<10} {'Material':<16} {'Length':>8} {'Width':>8} {'Thick':>6}")
    for offcut in harvested:
        typer.echo(
            f"{offcut.origin_sheet_id or '':<10} {offcut.material:<16} "
            f"{offcut.length:>8.1f} {offcut.width:>8.1f} {offcut.thickness:>6g}"
        )
    typer.echo(f"{len(harvested)} reusable offcut(s)")


@app.command()
def diff(
    previous_file: Annotated[
        Path,
        typer.Argument(help="Project file the results were computed from"),
    ],
    current_file: Annotated[
        Path,
        typer.Argument(help="Current project file"),
    ],
    with_production: Annotated[
        bool,
        typer.Option("--production", help="Also nest the previous project"),
    ] = False,
) -> None:
    """Show which results a project change invalidates."""
    previous_config = _load(previous_file)
    current_config = _load(current_file)
    previous_service = _service(previous_config)
    current_service = _service(current_config)

    previous_parts = config_to_parts(previous_config)
    try:
        state = previous_service.run_estimation(OptimizationState(), previous_parts)
        if with_production:
            state = previous_service.run_production(state, previous_parts)
    except CutlistError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    previous_snapshot = previous_service.snapshot(
        previous_parts, config_to_design_items(previous_config)
    )
    current_snapshot = current_service.snapshot(
        config_to_parts(current_config), config_to_design_items(current_config)
    )
    invalidation = detect(previous_snapshot, current_snapshot, state)

    reason_formatter = InvalidationReasonFormatter()
    if invalidation.any_invalidated:
        typer.echo("Invalidated:")
        for reason in invalidation.reasons:
            typer.echo(f"  {reason.trigger.value}: {reason_formatter.format(reason)}")
        state = apply_invalidation(state, invalidation, formatter=reason_formatter)
    else:
        typer.echo("No changes affecting optimization results.")

    rag = project_state(state.estimation, state.production)
    messages = RAGMessageFormatter().format(rag)
    typer.echo()
    typer.echo(f"Estimation:  {rag.estimation.value:<6} {messages['estimation']}")
    typer.echo(f"Production:  {rag.production.value:<6} {messages['production']}")
    typer.echo(f"Katana BOM:  {rag.katana_bom.value:<6} {messages['katana_bom']}")
    typer.echo(f"Overall:     {rag.overall.value}")


if __name__ == "__main__":
    app()

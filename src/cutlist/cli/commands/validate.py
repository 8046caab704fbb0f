"""The ``validate`` command.

Loads a project file, then runs the stock coverage and optimization
advisory checks on it. Load failures and errors go to stderr, warnings to
stdout.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer

from cutlist.application.config import (
    ConfigError,
    ProjectConfiguration,
    ValidationError,
    ValidationResult,
    ValidationWarning,
    load_config,
    validate_config,
)


def display_load_error(error: ConfigError) -> None:
    """Print a ConfigError raised while loading a project file."""
    if error.error_type == "json_parse":
        typer.echo("JSON syntax error:", err=True)
        for detail in error.details:
            typer.echo(
                f"  Line {detail['line']}, column {detail['column']}: {detail['message']}",
                err=True,
            )
        return

    if error.error_type != "validation":
        typer.echo(f"Error: {error.message}", err=True)
        return

    typer.echo("Errors:", err=True)
    for detail in error.details:
        typer.echo(f"  {detail['path'] or '<root>'}: {detail['message']}", err=True)
        value = detail.get("value")
        if value is not None and not isinstance(value, (dict, list)):
            typer.echo(f"    Value: {value!r}", err=True)


def _echo_issues(
    heading: str, issues: Sequence[ValidationError | ValidationWarning], err: bool
) -> None:
    if not issues:
        return
    typer.echo(heading, err=err)
    for issue in issues:
        typer.echo(f"  {issue.path}: {issue.message}", err=err)
        if isinstance(issue, ValidationError) and issue.value is not None:
            typer.echo(f"    Value: {issue.value!r}", err=err)
        if isinstance(issue, ValidationWarning) and issue.suggestion:
            typer.echo(f"    Suggestion: {issue.suggestion}", err=err)
    typer.echo()


def _summary(config: ProjectConfiguration) -> str:
    pieces = sum(part.quantity for part in config.parts)
    name = config.project_id or "(unnamed)"
    return (
        f"Project {name}: {len(config.parts)} part line(s), {pieces} piece(s), "
        f"{len(config.stock_sheets)} stock sheet(s)"
    )


def _report(result: ValidationResult) -> None:
    _echo_issues("Errors:", result.errors, err=True)
    _echo_issues("Warnings:", result.warnings, err=False)

    if result.errors:
        typer.echo(
            f"Validation failed: {len(result.errors)} error(s), "
            f"{len(result.warnings)} warning(s)",
            err=True,
        )
    elif result.warnings:
        typer.echo(f"Validation passed with {len(result.warnings)} warning(s)")
    else:
        typer.echo("Validation passed. Project file is valid.")


def validate_command(
    project_file: Annotated[
        Path,
        typer.Argument(help="Path to the JSON project file to validate"),
    ],
) -> None:
    """Validate a cutlist project file.

    Checks the project file for:
    - JSON syntax errors
    - Schema errors (unknown fields, out of range values, duplicate ids)
    - Stock coverage (parts without stock, oversized parts, unused stock)
    - Optimization advisories (grain without rotation, zero kerf)

    Exit codes:
        0 - Project file is valid with no warnings
        1 - Project file has errors
        2 - Project file is valid but has warnings

    Example:
        cutlist validate kitchen.json
    """
    typer.echo(f"Validating {project_file}...")

    try:
        config = load_config(project_file)
    except ConfigError as e:
        typer.echo()
        display_load_error(e)
        typer.echo()
        typer.echo("Validation failed.", err=True)
        raise typer.Exit(code=1)

    typer.echo(_summary(config))
    typer.echo()

    result = validate_config(config)
    _report(result)

    if result.exit_code != 0:
        raise typer.Exit(code=result.exit_code)

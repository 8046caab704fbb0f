"""Project file loading.

Reads a JSON project file and validates it against ProjectConfiguration.
Every failure surfaces as a ConfigError whose ``error_type`` tells the CLI
how to render it and whose ``details`` point at the offending location.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from cutlist.application.config.schema import ProjectConfiguration


class ConfigError(Exception):
    """A project file could not be read, parsed or validated.

    Attributes:
        message: Human-readable summary
        error_type: One of file_not_found, permission_denied, file_read_error,
            json_parse or validation
        path: Project file, when loading from disk
        details: For json_parse, one dict with line, column and message. For
            validation, one dict per issue with path, message, value and
            error_type.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "unknown",
        path: Path | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.message = message
        self.error_type = error_type
        self.path = path
        self.details = details or []
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


def _format_json_path(loc: tuple[str | int, ...]) -> str:
    """Render a Pydantic error location the way it reads in the project file.

    Examples:
        >>> _format_json_path(("optimization", "kerf"))
        'optimization.kerf'
        >>> _format_json_path(("parts", 0, "length"))
        'parts[0].length'
    """
    path = ""
    for segment in loc:
        if isinstance(segment, int):
            path += f"[{segment}]"
        else:
            path = f"{path}.{segment}" if path else str(segment)
    return path


def _issues(error: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {
            "path": _format_json_path(err["loc"]),
            "message": err["msg"],
            "value": err.get("input"),
            "error_type": err["type"],
        }
        for err in error.errors()
    ]


def _summarize(issues: list[dict[str, Any]]) -> str:
    lines = ["Configuration validation failed:"]
    for issue in issues:
        line = f"  - {issue['path'] or '<root>'}: {issue['message']}"
        # Whole objects echoed back are noise
        if issue["value"] is not None and not isinstance(issue["value"], (dict, list)):
            line += f" (got: {issue['value']!r})"
        lines.append(line)
    return "\n".join(lines)


def _validate(data: Any, path: Path | None = None) -> ProjectConfiguration:
    if not isinstance(data, dict):
        issue = {
            "path": "",
            "message": f"Project file must hold a JSON object, got {type(data).__name__}",
            "value": None,
            "error_type": "model_type",
        }
        raise ConfigError(_summarize([issue]), "validation", path, [issue])
    try:
        return ProjectConfiguration.model_validate(data)
    except PydanticValidationError as e:
        issues = _issues(e)
        raise ConfigError(_summarize(issues), "validation", path, issues) from e


def _read(path: Path) -> str:
    if not path.exists():
        raise ConfigError(f"Project file not found: {path}", "file_not_found", path)
    try:
        return path.read_text(encoding="utf-8")
    except PermissionError as e:
        raise ConfigError(
            f"Permission denied reading project file: {path}", "permission_denied", path
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Could not read project file {path}: {e}", "file_read_error", path
        ) from e


def load_config(path: Path) -> ProjectConfiguration:
    """Load and validate a project file.

    Args:
        path: JSON project file

    Returns:
        The validated ProjectConfiguration.

    Raises:
        ConfigError: If the file is missing or unreadable, is not valid JSON,
            or does not match the project schema.
    """
    content = _read(path)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"Invalid JSON in project file {path} "
            f"(line {e.lineno}, column {e.colno}): {e.msg}",
            "json_parse",
            path,
            [{"line": e.lineno, "column": e.colno, "message": e.msg}],
        ) from e
    return _validate(data, path)


def load_config_from_dict(data: dict[str, Any]) -> ProjectConfiguration:
    """Validate an already parsed project, e.g. one built in code.

    Raises:
        ConfigError: With error_type "validation".
    """
    return _validate(data)

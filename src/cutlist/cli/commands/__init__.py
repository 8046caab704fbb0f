"""CLI command implementations for the cutlist application.

This package contains subcommands for the cutlist CLI, including:
- validate: Validate a project file
"""

from cutlist.cli.commands.validate import display_load_error, validate_command

__all__ = ["display_load_error", "validate_command"]

"""Path utilities for the pos-sales-report project.

This module provides centralized path utilities shared by the report writer,
the CSV upload flow and the configuration loader.
"""

from pathlib import Path


def get_workspace_root() -> Path:
    """Get the project workspace root directory.

    The workspace root is the parent directory of the src/ directory.
    This is calculated from the location of this file to work correctly
    regardless of where the module is imported from.

    Returns:
        Path: The workspace root directory.
    """
    return Path(__file__).parent.parent.parent


def resolve_path(path: Path) -> Path:
    """Resolve a configured path against the workspace root.

    Absolute paths are returned unchanged.

    Args:
        path: Path from configuration.

    Returns:
        Absolute path.
    """
    if path.is_absolute():
        return path
    return get_workspace_root() / path

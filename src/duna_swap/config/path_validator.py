"""Path validation utilities to prevent dangerous file operations.

Every delete and copy performed by a swap goes through these checks so a
crafted profile or game id can never point outside the userdata folder.
"""

import os
from pathlib import Path

from ..logging_config import get_logger

logger = get_logger("path_validator")

# System directories that must never be the target of a delete
PROTECTED_DIRECTORIES = [
    "C:\\Windows",
    "C:\\Program Files",
    "C:\\Program Files (x86)",
    "C:\\ProgramData",
    "/",
    "/bin",
    "/etc",
    "/usr",
    "/System",
]

PROTECTED_ENV_PATHS = [
    "WINDIR",
    "SYSTEMROOT",
    "HOME",
    "USERPROFILE",
]


def _get_protected_paths() -> set[Path]:
    """Build the set of protected paths including environment-based ones."""
    protected = set()

    for dir_path in PROTECTED_DIRECTORIES:
        try:
            protected.add(Path(dir_path).resolve())
        except (OSError, ValueError):
            pass

    for env_var in PROTECTED_ENV_PATHS:
        env_value = os.environ.get(env_var)
        if env_value:
            try:
                protected.add(Path(env_value).resolve())
            except (OSError, ValueError):
                pass

    return protected


def is_protected_path(path: Path) -> bool:
    """Check if a path is exactly one of the protected system directories.

    Args:
        path: The path to check

    Returns:
        True if the path must not be modified
    """
    try:
        resolved = path.resolve()
    except (OSError, ValueError) as e:
        logger.warning("Failed to resolve path %s: %s", path, e)
        return True
    return resolved in _get_protected_paths()


def is_path_under_root(path: Path, root: Path) -> bool:
    """Check if a path is strictly below a given root directory.

    Args:
        path: The path to check
        root: The root directory

    Returns:
        True if path is inside root (and not root itself), False otherwise
    """
    try:
        path_resolved = path.resolve()
        root_resolved = root.resolve()
        return root_resolved in path_resolved.parents
    except (OSError, ValueError) as e:
        logger.warning("Failed to check path relationship: %s", e)
        return False


def validate_swap_path(path: Path, data_root: Path) -> tuple[bool, str]:
    """Validate a path before a swap deletes or writes it.

    Args:
        path: A game folder or backup slot that is about to change
        data_root: The userdata folder the swap operates in

    Returns:
        Tuple of (is_valid, error_message)
    """
    if ".." in path.parts:
        return False, "Path contains directory traversal"

    if not is_path_under_root(path, data_root):
        return False, f"Path must be under userdata folder: {data_root}"

    if is_protected_path(path):
        return False, "Path is a protected system directory"

    return True, ""

"""Field lookups in Steam's text VDF files (localconfig.vdf, appmanifest_*.acf,
libraryfolders.vdf).

Files are parsed with the ``vdf`` package. Unreadable or malformed content
never raises; callers get ``None`` or an empty list and fall back to their
own defaults.
"""

from pathlib import Path
from typing import Optional

import vdf

from ..logging_config import get_logger

logger = get_logger("vdf_text")


def parse_text(content: str) -> Optional[dict]:
    """Parse VDF text into nested dicts, or None if it is malformed."""
    # Steam occasionally writes C-style comment lines
    content = "\n".join(
        line for line in content.splitlines() if not line.strip().startswith("//")
    )
    try:
        return vdf.loads(content, mapper=dict)
    except (SyntaxError, ValueError, TypeError) as e:
        logger.debug(f"Could not parse VDF text: {e}")
        return None


def _iter_values(node: dict, field: str):
    for key, value in node.items():
        if key == field and isinstance(value, str):
            yield value
        elif isinstance(value, dict):
            yield from _iter_values(value, field)


def read_all_fields(content: str, field: str) -> list[str]:
    """Return every string value stored under ``field``, in document order.

    Args:
        content: VDF text
        field: Key name to look for at any depth (case-sensitive)

    Returns:
        List of values, empty if the field is absent or the text is malformed
    """
    document = parse_text(content)
    if document is None:
        return []
    return list(_iter_values(document, field))


def read_field(content: str, field: str) -> Optional[str]:
    """Return the first non-empty value stored under ``field``, trimmed."""
    for value in read_all_fields(content, field):
        value = value.strip()
        if value:
            return value
    return None


def read_file_field(path: Path, field: str) -> Optional[str]:
    """Read a VDF file and return the first non-empty ``field`` value.

    Missing or unreadable files return None.
    """
    content = read_file_text(path)
    if content is None:
        return None
    return read_field(content, field)


def read_file_text(path: Path) -> Optional[str]:
    """Read a VDF file as text, trying UTF-8 then Latin-1."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.debug(f"Could not read {path}: {e}")
        return None
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning(f"Encoding error reading VDF '{path.name}', using latin-1")
        return raw.decode("latin-1")

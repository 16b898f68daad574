"""Index of known Steam apps built from appinfo.vdf.

The index maps app ids to a display name and the executable file names
the app launches. Decoding appinfo.vdf is slow (tens of MB), so callers go
through LibraryIndexCache, which rebuilds only when the file's modification
time changes.
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping, Optional

from ..errors import CatalogDecodeError, InvalidIdentifierError
from ..logging_config import get_logger
from .appinfo import decode_appinfo
from .ids import GameId

logger = get_logger("library_index")

CatalogDecoder = Callable[..., dict]


@dataclass(frozen=True)
class LibraryEntry:
    """A single app in the library index."""
    display_name: str
    executables: tuple[str, ...] = ()


class LibraryIndex:
    """Read-only mapping of GameId to LibraryEntry."""

    def __init__(self, entries: Optional[Mapping[GameId, LibraryEntry]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    def lookup(self, game_id: str) -> Optional[LibraryEntry]:
        return self._entries.get(game_id)

    def executables_for(self, game_ids: Iterable[str]) -> list[str]:
        """Collect executable names for the given apps, without duplicates.

        Apps missing from the index contribute nothing.
        """
        names = []
        for game_id in game_ids:
            entry = self._entries.get(game_id)
            if entry is None:
                continue
            for name in entry.executables:
                if name not in names:
                    names.append(name)
        return names

    def __contains__(self, game_id) -> bool:
        return game_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[GameId]:
        return iter(self._entries)


def executable_file_name(path: str) -> str:
    """Reduce a launch path such as ``bin\\win64\\dota2.exe`` to ``dota2.exe``."""
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def _launch_executables(entry: dict) -> list[str]:
    config = entry.get("config")
    launch = config.get("launch") if isinstance(config, dict) else None
    if not isinstance(launch, dict):
        return []

    executables = []
    for launch_config in launch.values():
        if not isinstance(launch_config, dict):
            continue
        exe_path = launch_config.get("executable")
        if not isinstance(exe_path, str):
            continue
        file_name = executable_file_name(exe_path)
        if file_name and file_name not in executables:
            executables.append(file_name)
    return executables


def index_from_document(document: dict) -> LibraryIndex:
    """Build a LibraryIndex from a decoded appinfo document.

    Entries without an integer ``appid`` or without a ``common.name`` are
    skipped; the manifest fallback may still name them later.
    """
    entries = {}
    raw_entries = document.get("entries") if isinstance(document, dict) else None
    for entry in raw_entries or []:
        if not isinstance(entry, dict):
            continue
        appid = entry.get("appid")
        if not isinstance(appid, int) or isinstance(appid, bool):
            continue

        common = entry.get("common")
        name = common.get("name") if isinstance(common, dict) else None
        if not isinstance(name, str) or not name.strip():
            continue

        try:
            game_id = GameId(appid)
        except InvalidIdentifierError:
            continue
        entries[game_id] = LibraryEntry(
            display_name=name.strip(),
            executables=tuple(_launch_executables(entry)),
        )
    return LibraryIndex(entries)


def build_library_index(catalog_path: Path, decoder: CatalogDecoder = decode_appinfo) -> LibraryIndex:
    """Decode a catalog file into a LibraryIndex.

    Args:
        catalog_path: Path to appinfo.vdf
        decoder: Callable taking (path, strict) and returning the decoded document

    Returns:
        The index; empty if the file is missing or cannot be decoded
    """
    if not catalog_path.exists():
        logger.debug(f"No catalog at {catalog_path}")
        return LibraryIndex()

    try:
        document = decoder(catalog_path, False)
    except (CatalogDecodeError, OSError) as e:
        logger.warning(f"Could not decode {catalog_path}: {e}")
        return LibraryIndex()

    index = index_from_document(document)
    logger.info(f"Library index built with {len(index)} apps from {catalog_path}")
    return index


class LibraryIndexCache:
    """Holds the most recently built LibraryIndex.

    The cached index is reused only while the catalog file's path and
    modification time (nanoseconds) match the ones it was built from. The
    check and the rebuild happen under one lock, so concurrent callers never
    see a half-built index and never rebuild twice for the same snapshot.
    """

    def __init__(self, decoder: CatalogDecoder = decode_appinfo):
        self._decoder = decoder
        self._lock = threading.Lock()
        self._index: Optional[LibraryIndex] = None
        self._source: Optional[tuple[Path, int]] = None

    def get(self, catalog_path: Path) -> LibraryIndex:
        """Return the index for ``catalog_path``, rebuilding it if stale."""
        with self._lock:
            try:
                mtime = catalog_path.stat().st_mtime_ns
            except OSError:
                # Missing catalog: nothing to cache
                self._index = None
                self._source = None
                return LibraryIndex()

            source = (catalog_path, mtime)
            if self._index is not None and self._source == source:
                return self._index

            logger.debug(f"Rebuilding library index from {catalog_path}")
            self._index = build_library_index(catalog_path, self._decoder)
            self._source = source
            return self._index

    def invalidate(self) -> None:
        """Forget the cached index so the next get() rebuilds it."""
        with self._lock:
            self._index = None
            self._source = None


_default_cache: Optional[LibraryIndexCache] = None
_default_cache_lock = threading.Lock()


def default_cache() -> LibraryIndexCache:
    """Return the shared cache used by the command layer, creating it on first use."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = LibraryIndexCache()
        return _default_cache

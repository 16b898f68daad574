"""Operations exposed to a front end.

Each function runs to completion on its own; the only state shared
between calls is the library index cache. Paths may be given as strings
or Path objects, ids as strings or ints.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from .config.paths import SteamLayout
from .config.schema import SteamInstallation
from .core.ids import GameId, ProfileId
from .core.library_index import LibraryIndex, LibraryIndexCache, default_cache
from .core.manifests import ManifestResolver
from .core.process_guard import ProcessGuard
from .core.profile_scanner import GameInfo, Profile, ProfileScanner
from .core.steam_detector import SteamDetector
from .core.swap_service import SwapResult, SwapService, SwapSummary
from .errors import InvalidIdentifierError, NoGamesSelectedError
from .logging_config import get_logger

logger = get_logger("commands")

PathLike = Union[str, Path]


def _library_index(install_root: Path, cache: Optional[LibraryIndexCache]) -> LibraryIndex:
    cache = cache or default_cache()
    return cache.get(SteamLayout.catalog_path(install_root))


def _scanner(data_root: Path, install_root: Path, cache: Optional[LibraryIndexCache]) -> ProfileScanner:
    return ProfileScanner(
        data_root,
        _library_index(install_root, cache),
        ManifestResolver.for_installation(install_root),
    )


def detect_installation(detector: Optional[SteamDetector] = None) -> SteamInstallation:
    """Locate Steam and its userdata folder.

    Raises:
        InstallationNotFoundError: If nothing is found
    """
    return (detector or SteamDetector()).detect_installation()


def validate_install_path(path: PathLike) -> SteamInstallation:
    """Resolve a user-chosen Steam or userdata folder.

    Raises:
        InstallationNotFoundError: If no userdata folder is found at path
    """
    return SteamDetector.validate_install_path(Path(path))


def list_profiles(data_root: PathLike, install_root: PathLike,
                  cache: Optional[LibraryIndexCache] = None) -> list[Profile]:
    """All live profiles followed by backup profiles. Never raises."""
    return _scanner(Path(data_root), Path(install_root), cache).discover()


def list_games_for_profile(install_root: PathLike, data_root: PathLike, profile_id,
                           is_backup: bool, cache: Optional[LibraryIndexCache] = None) -> list[GameInfo]:
    """Games a profile has save data for, sorted by name. Never raises."""
    try:
        profile_id = ProfileId(profile_id)
    except InvalidIdentifierError as e:
        logger.warning(str(e))
        return []
    return _scanner(Path(data_root), Path(install_root), cache).list_games(profile_id, is_backup)


def summarize_swap(data_root: PathLike, install_root: PathLike, source_id, source_is_backup: bool,
                   target_ids: Iterable, game_ids: Iterable,
                   cache: Optional[LibraryIndexCache] = None) -> SwapSummary:
    """Describe a swap before running it.

    Raises:
        NoGamesSelectedError: If game_ids is empty (checked before any disk access)
        InvalidIdentifierError: If an id is not numeric
        SourceNotFoundError: If the source profile does not exist
        NoValidTargetsError: If no target is a live profile other than the source
    """
    game_ids = GameId.parse_many(game_ids)
    if not game_ids:
        raise NoGamesSelectedError()
    source_id = ProfileId(source_id)
    target_ids = ProfileId.parse_many(target_ids)

    data_root = Path(data_root)
    profiles = _scanner(data_root, Path(install_root), cache).discover()
    return SwapService(data_root).summarize(profiles, source_id, source_is_backup, target_ids, game_ids)


def execute_swap(data_root: PathLike, source_id, source_is_backup: bool,
                 target_ids: Iterable, game_ids: Iterable) -> SwapResult:
    """Run a swap. Never raises; failures are reported in the result."""
    try:
        source_id = ProfileId(source_id)
        target_ids = ProfileId.parse_many(target_ids)
        game_ids = GameId.parse_many(game_ids)
    except InvalidIdentifierError as e:
        logger.warning(f"Swap rejected: {e}")
        return SwapResult.rejected(str(e))

    if not game_ids:
        return SwapResult.rejected("No games selected")
    if not target_ids:
        return SwapResult.rejected("No target profiles selected")

    return SwapService(Path(data_root)).execute(source_id, source_is_backup, target_ids, game_ids)


def are_games_running(install_root: PathLike, game_ids: Iterable,
                      cache: Optional[LibraryIndexCache] = None,
                      guard: Optional[ProcessGuard] = None) -> bool:
    """True if any selected game's executable is running. Invalid ids are ignored."""
    valid_ids = []
    for game_id in game_ids:
        try:
            valid_ids.append(GameId(game_id))
        except InvalidIdentifierError:
            logger.debug(f"Ignoring invalid game id {game_id!r}")
    if not valid_ids:
        return False

    if guard is None:
        guard = ProcessGuard(_library_index(Path(install_root), cache))
    return guard.is_any_running(valid_ids)

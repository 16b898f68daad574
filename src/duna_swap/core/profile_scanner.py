"""Discovery of Steam account profiles and the games they hold saves for.

A profile is a numeric folder directly under ``userdata`` that has a
``config/localconfig.vdf``. Backup profiles live under
``userdata/dunabackups/<account id>`` and mirror the same per-app layout.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config.paths import SteamLayout
from ..logging_config import get_logger
from .ids import GameId, ProfileId, is_numeric_name
from .library_index import LibraryIndex
from .manifests import ManifestResolver
from .vdf_text import read_file_field

logger = get_logger("profile_scanner")

NEVER = "Never"
BACKUP_PREFIX = "Backup - "
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class GameInfo:
    """An app a profile has save data for."""
    id: GameId
    name: str

    def to_dict(self) -> dict:
        return {"id": str(self.id), "name": self.name}


@dataclass
class Profile:
    """A Steam account folder, either live or in the backup namespace."""
    id: ProfileId
    display_name: str
    path: Path
    is_backup: bool = False
    owned_game_ids: tuple[GameId, ...] = ()
    last_activity: int = 0  # Unix seconds, 0 = never

    @property
    def game_count(self) -> int:
        return len(self.owned_game_ids)

    @property
    def last_activity_display(self) -> str:
        return format_timestamp(self.last_activity)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.display_name,
            "game_count": self.game_count,
            "owned_game_ids": [str(g) for g in self.owned_game_ids],
            "is_backup": self.is_backup,
            "path": self.path.as_posix(),
            "last_login": self.last_activity_display,
        }


def format_timestamp(secs: int) -> str:
    """Format Unix seconds as UTC ``YYYY-MM-DD HH:MM:SS``, or "Never" for 0."""
    if not secs:
        return NEVER
    return datetime.fromtimestamp(secs, tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


def latest_modified_time(directory: Path) -> int:
    """Return the newest file modification time below a folder, in seconds.

    Returns:
        Unix seconds, or 0 if the folder holds no files
    """
    latest = 0
    for path in directory.rglob("*"):
        try:
            if path.is_file():
                latest = max(latest, int(path.stat().st_mtime))
        except OSError:
            continue
    return latest


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def has_meaningful_game_data(game_path: Path) -> bool:
    """Check if an app folder holds anything besides Steam's remotecache.vdf.

    Steam creates ``<appid>/remotecache.vdf`` for apps that were merely
    launched, so a folder containing only that file is not save data.
    """
    try:
        entries = list(game_path.iterdir())
    except OSError:
        return False

    for entry in entries:
        if entry.name.lower() == SteamLayout.REMOTE_CACHE_MARKER and _is_file(entry):
            continue
        return True
    return False


def read_persona_name(data_root: Path, profile_id: str) -> Optional[str]:
    """Read the account's persona name from its localconfig.vdf."""
    config_file = SteamLayout.profile_config_file(data_root / profile_id)
    if not _is_file(config_file):
        return None
    return read_file_field(config_file, SteamLayout.PERSONA_FIELD)


def profile_path(data_root: Path, profile_id: str, is_backup: bool) -> Path:
    """Folder of a live or backup profile."""
    if is_backup:
        return SteamLayout.backup_root(data_root) / profile_id
    return data_root / profile_id


def _subdirectories(directory: Path) -> list[Path]:
    try:
        return sorted(p for p in directory.iterdir() if _is_dir(p))
    except OSError as e:
        logger.warning(f"Could not list {directory}: {e}")
        return []


class ProfileScanner:
    """Enumerates profiles and their games under one userdata folder.

    App names come from the library index first and the appmanifest
    fallback second; apps neither source knows are ignored.
    """

    def __init__(self, data_root: Path, library_index: LibraryIndex, manifest_resolver: ManifestResolver):
        self.data_root = data_root
        self.library_index = library_index
        self.manifest_resolver = manifest_resolver

    @property
    def backup_root(self) -> Path:
        return SteamLayout.backup_root(self.data_root)

    def resolve_game_name(self, game_id: str) -> Optional[str]:
        entry = self.library_index.lookup(game_id)
        if entry is not None:
            return entry.display_name
        return self.manifest_resolver.resolve(game_id)

    def owned_games(self, profile_dir: Path) -> list[GameInfo]:
        """List the recognised apps with real save data in a profile folder."""
        games = []
        for game_dir in _subdirectories(profile_dir):
            if not is_numeric_name(game_dir.name):
                continue
            if not has_meaningful_game_data(game_dir):
                continue
            name = self.resolve_game_name(game_dir.name)
            if name is None:
                logger.debug(f"Ignoring unknown app {game_dir.name} in {profile_dir}")
                continue
            games.append(GameInfo(id=GameId(game_dir.name), name=name))
        return games

    def list_games(self, profile_id: ProfileId, is_backup: bool) -> list[GameInfo]:
        """Games of one profile, sorted by name (case-insensitive)."""
        games = self.owned_games(profile_path(self.data_root, profile_id, is_backup))
        games.sort(key=lambda g: (g.name.lower(), int(g.id)))
        return games

    def discover(self) -> list[Profile]:
        """Find all live and backup profiles.

        Live profiles come first, then backups; each group is ordered by
        last activity, most recent first. Backups without any recognised
        game are left out.

        Returns:
            Ordered list of Profile objects, empty if userdata is missing
        """
        if not _is_dir(self.data_root):
            logger.info(f"Userdata folder not found: {self.data_root}")
            return []

        profiles = self._discover_live()
        profiles.extend(self._discover_backups())
        profiles.sort(key=lambda p: (p.is_backup, -p.last_activity, int(p.id)))

        logger.info(
            f"Discovered {sum(not p.is_backup for p in profiles)} profiles and "
            f"{sum(p.is_backup for p in profiles)} backups in {self.data_root}"
        )
        return profiles

    def _discover_live(self) -> list[Profile]:
        profiles = []
        for path in _subdirectories(self.data_root):
            if path.name == SteamLayout.BACKUP_NAMESPACE or not is_numeric_name(path.name):
                continue

            config_file = SteamLayout.profile_config_file(path)
            if not _is_file(config_file):
                logger.debug(f"Skipping {path.name}: no {SteamLayout.PROFILE_CONFIG_FILE}")
                continue

            profile_id = ProfileId(path.name)
            try:
                last_activity = int(config_file.stat().st_mtime)
            except OSError:
                last_activity = 0

            profiles.append(Profile(
                id=profile_id,
                display_name=read_persona_name(self.data_root, profile_id) or str(profile_id),
                path=path,
                is_backup=False,
                owned_game_ids=tuple(g.id for g in self.owned_games(path)),
                last_activity=last_activity,
            ))
        return profiles

    def _discover_backups(self) -> list[Profile]:
        if not _is_dir(self.backup_root):
            return []

        profiles = []
        for path in _subdirectories(self.backup_root):
            if not is_numeric_name(path.name):
                continue

            owned = tuple(g.id for g in self.owned_games(path))
            if not owned:
                # Empty backup folder
                continue

            profile_id = ProfileId(path.name)
            persona = read_persona_name(self.data_root, profile_id) or str(profile_id)
            profiles.append(Profile(
                id=profile_id,
                display_name=f"{BACKUP_PREFIX}{persona}",
                path=path,
                is_backup=True,
                owned_game_ids=owned,
                last_activity=latest_modified_time(path),
            ))
        return profiles

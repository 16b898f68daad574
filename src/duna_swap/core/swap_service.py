"""Backup-then-copy swap of per-app save folders between profiles.

For every (target, game) pair the target's current ``<appid>`` folder is
copied to ``userdata/dunabackups/<target>/<appid>`` before it is replaced
with the source's folder. Pairs are independent: a failure is recorded in
the outcome log and the next pair still runs. Replaced target data is
not rolled back.
"""

import shutil
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from ..config.path_validator import validate_swap_path
from ..config.paths import SteamLayout
from ..errors import CopyCycleError, CopyError, NoGamesSelectedError, NoValidTargetsError, SourceNotFoundError
from ..logging_config import get_logger
from .ids import GameId, ProfileId
from .profile_scanner import Profile, TIMESTAMP_FORMAT, profile_path

logger = get_logger("swap_service")

UNKNOWN = "Unknown"
SUCCESS_MESSAGE = "All games swapped successfully!"
FAILURE_MESSAGE = "Some operations failed. Check details."
STAGING_DIR = ".staging"

# Save folders are shallow; anything deeper than this is a link loop
MAX_COPY_DEPTH = 64


class OutcomeLevel(Enum):
    """Severity of one swap log line"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_PREFIXES = {
    OutcomeLevel.INFO: "",
    OutcomeLevel.WARNING: "Warning: ",
    OutcomeLevel.ERROR: "Error: ",
}


@dataclass(frozen=True)
class SwapOutcome:
    """One line of the swap log, tied to a (target, game) pair."""
    level: OutcomeLevel
    target_id: str
    game_id: str
    message: str

    def __str__(self) -> str:
        return f"{_PREFIXES[self.level]}{self.message}"

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "target_id": str(self.target_id),
            "game_id": str(self.game_id),
            "message": self.message,
        }


@dataclass
class SwapResult:
    """Result of one swap invocation."""
    success: bool
    message: str
    outcomes: list[SwapOutcome] = field(default_factory=list)

    @property
    def details(self) -> list[str]:
        return [str(outcome) for outcome in self.outcomes]

    @property
    def errors(self) -> list[SwapOutcome]:
        return [o for o in self.outcomes if o.level is OutcomeLevel.ERROR]

    @property
    def warnings(self) -> list[SwapOutcome]:
        return [o for o in self.outcomes if o.level is OutcomeLevel.WARNING]

    @classmethod
    def from_outcomes(cls, outcomes: list[SwapOutcome]) -> "SwapResult":
        success = not any(o.level is OutcomeLevel.ERROR for o in outcomes)
        return cls(
            success=success,
            message=SUCCESS_MESSAGE if success else FAILURE_MESSAGE,
            outcomes=list(outcomes),
        )

    @classmethod
    def rejected(cls, message: str) -> "SwapResult":
        """A request refused before any pair was processed."""
        return cls(success=False, message=message, outcomes=[])

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "details": self.details,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass
class DirectoryStats:
    """Totals for a folder tree (the root itself is not counted)."""
    total_size: int = 0
    file_count: int = 0
    folder_count: int = 0
    latest_modified: Optional[float] = None

    def add(self, other: "DirectoryStats") -> None:
        self.total_size += other.total_size
        self.file_count += other.file_count
        self.folder_count += other.folder_count
        if other.latest_modified is not None:
            if self.latest_modified is None or other.latest_modified > self.latest_modified:
                self.latest_modified = other.latest_modified


@dataclass
class SwapSummary:
    """What a swap would copy, shown before the user confirms."""
    source: Profile
    targets: list[Profile]
    game_ids: list[GameId]
    total_size: int
    file_count: int
    folder_count: int
    last_modified: str

    def to_dict(self) -> dict:
        return {
            "source": self.source.to_dict(),
            "targets": [t.to_dict() for t in self.targets],
            "game_ids": [str(g) for g in self.game_ids],
            "source_total_size": self.total_size,
            "source_file_count": self.file_count,
            "source_folder_count": self.folder_count,
            "source_last_modified": self.last_modified,
        }


def directory_stats(directory: Path) -> DirectoryStats:
    """Count size, files and sub-folders below a folder."""
    stats = DirectoryStats()
    for path in directory.rglob("*"):
        try:
            if path.is_file():
                st = path.stat()
                stats.file_count += 1
                stats.total_size += st.st_size
                if stats.latest_modified is None or st.st_mtime > stats.latest_modified:
                    stats.latest_modified = st.st_mtime
            elif path.is_dir():
                stats.folder_count += 1
        except OSError as e:
            logger.debug(f"Could not stat {path}: {e}")
    return stats


def format_local_time(timestamp: Optional[float]) -> str:
    """Format a timestamp in local time, or "Unknown" if there is none."""
    if timestamp is None:
        return UNKNOWN
    return datetime.fromtimestamp(timestamp).strftime(TIMESTAMP_FORMAT)


def copy_tree(src: Path, dst: Path, max_depth: int = MAX_COPY_DEPTH) -> int:
    """Copy a folder tree into ``dst``, creating it if needed.

    Existing files in ``dst`` with the same names are overwritten; nothing
    already copied is removed when a later file fails.

    Args:
        src: Folder to copy
        dst: Destination folder
        max_depth: Maximum nesting below ``src``

    Returns:
        Number of files copied

    Raises:
        CopyCycleError: If a folder links back to one of its ancestors or
            the tree is deeper than ``max_depth``
        CopyError: On any other I/O failure
    """
    return _copy_tree(src, dst, max_depth, [], 0)


def _copy_tree(src: Path, dst: Path, max_depth: int, ancestors: list, depth: int) -> int:
    if depth > max_depth:
        raise CopyCycleError(f"Folder depth limit of {max_depth} exceeded at {src}", src)

    try:
        st = src.stat()
    except OSError as e:
        raise CopyError(f"Failed to read dir {src}: {e}", src) from e

    key = (st.st_dev, st.st_ino)
    if st.st_ino and key in ancestors:
        raise CopyCycleError(f"Folder cycle detected at {src}", src)

    try:
        dst.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CopyError(f"Failed to create dir {dst}: {e}", dst) from e

    try:
        entries = sorted(src.iterdir())
    except OSError as e:
        raise CopyError(f"Failed to read dir {src}: {e}", src) from e

    ancestors.append(key)
    copied = 0
    try:
        for entry in entries:
            target = dst / entry.name
            if entry.is_dir():
                copied += _copy_tree(entry, target, max_depth, ancestors, depth + 1)
                continue
            try:
                shutil.copy2(entry, target)
            except OSError as e:
                raise CopyError(f"Failed to copy {entry} -> {target}: {e}", entry) from e
            copied += 1
    finally:
        ancestors.pop()
    return copied


class SwapService:
    """Runs swap summaries and swaps inside one userdata folder."""

    def __init__(self, data_root: Path):
        self.data_root = data_root

    @property
    def backup_root(self) -> Path:
        return SteamLayout.backup_root(self.data_root)

    def backup_slot(self, target_id: str, game_id: str) -> Path:
        """Folder holding the last overwritten copy of a target's game data."""
        return self.backup_root / target_id / game_id

    def summarize(
        self,
        profiles: list[Profile],
        source_id: ProfileId,
        source_is_backup: bool,
        target_ids: Iterable[ProfileId],
        game_ids: list[GameId],
    ) -> SwapSummary:
        """Describe what a swap would copy.

        Args:
            profiles: Current discovery results
            source_id: Profile to copy from
            source_is_backup: Whether the source is in the backup namespace
            target_ids: Live profiles to copy into
            game_ids: Apps to copy

        Returns:
            SwapSummary with totals over the source's selected game folders

        Raises:
            NoGamesSelectedError: If game_ids is empty
            SourceNotFoundError: If the source is not among profiles
            NoValidTargetsError: If no live profile other than the source matches target_ids
        """
        if not game_ids:
            raise NoGamesSelectedError()

        source = next(
            (p for p in profiles if p.id == source_id and p.is_backup == source_is_backup),
            None,
        )
        if source is None:
            raise SourceNotFoundError(source_id)

        wanted = set(target_ids)
        targets = [
            p for p in profiles
            if p.id in wanted and not p.is_backup and not (p.id == source.id and not source.is_backup)
        ]
        if not targets:
            raise NoValidTargetsError()

        stats = DirectoryStats()
        for game_id in game_ids:
            game_path = source.path / game_id
            if game_path.is_dir():
                stats.add(directory_stats(game_path))

        return SwapSummary(
            source=source,
            targets=targets,
            game_ids=list(game_ids),
            total_size=stats.total_size,
            file_count=stats.file_count,
            folder_count=stats.folder_count,
            last_modified=format_local_time(stats.latest_modified),
        )

    def execute(
        self,
        source_id: ProfileId,
        source_is_backup: bool,
        target_ids: list[ProfileId],
        game_ids: list[GameId],
    ) -> SwapResult:
        """Copy the source's game folders into every target.

        Pairs run in order (targets outer, games inner). The overall result
        is successful when no pair produced an error; warnings (missing
        source data, failed backups) do not count as failures.

        A backup source is snapshotted into ``dunabackups/.staging`` before
        the first pair, so every target receives the same data even when a
        target's own backup stage overwrites the source slot.

        Returns:
            SwapResult with one or more outcomes per pair
        """
        source_base = profile_path(self.data_root, source_id, source_is_backup)
        logger.info(
            f"Swapping games {list(map(str, game_ids))} from "
            f"{'backup ' if source_is_backup else ''}profile {source_id} "
            f"to {list(map(str, target_ids))}"
        )

        outcomes: list[SwapOutcome] = []
        snapshots: Optional[dict] = None
        try:
            if source_is_backup:
                snapshots = self._stage_backup_source(source_base, game_ids)
            for target_id in target_ids:
                for game_id in game_ids:
                    pair = _PairLog(outcomes, target_id, game_id)
                    self._swap_pair(source_base, snapshots, target_id, game_id, pair)
        finally:
            if snapshots is not None:
                self._clear_staging()

        result = SwapResult.from_outcomes(outcomes)
        logger.info(f"Swap finished: {result.message} ({len(result.errors)} errors, {len(result.warnings)} warnings)")
        return result

    @property
    def staging_root(self) -> Path:
        return self.backup_root / STAGING_DIR

    def _stage_backup_source(self, source_base: Path, game_ids: list[GameId]) -> dict:
        """Copy each selected backup game folder into the staging area.

        Returns:
            Dict of game id to staged folder, or to None when staging failed.
            Games the source has no folder for are left out.
        """
        self._clear_staging()
        snapshots = {}
        for game_id in game_ids:
            source_game = source_base / game_id
            if game_id in snapshots or not source_game.is_dir():
                continue
            staged = self.staging_root / game_id
            try:
                copy_tree(source_game, staged)
            except CopyError as e:
                logger.error(f"Could not stage backup of game {game_id}: {e}")
                staged = None
            snapshots[game_id] = staged
        return snapshots

    def _clear_staging(self) -> None:
        if not self.staging_root.exists():
            return
        try:
            shutil.rmtree(self.staging_root)
        except OSError as e:
            logger.warning(f"Could not remove staging folder {self.staging_root}: {e}")

    def _swap_pair(self, source_base: Path, snapshots: Optional[dict],
                   target_id: ProfileId, game_id: GameId, log: "_PairLog") -> None:
        source_game = source_base / game_id
        target_profile = self.data_root / target_id
        target_game = target_profile / game_id

        has_source = source_game.is_dir() if snapshots is None else game_id in snapshots
        if not has_source:
            log.warning(f"Source has no data for game {game_id}, skipped for target {target_id}")
            return

        if not target_profile.is_dir():
            log.error(f"Target profile {target_id} not found")
            return

        valid, reason = validate_swap_path(target_game, self.data_root)
        if not valid:
            log.error(f"Refusing to modify {target_id}/{game_id}: {reason}")
            return

        if _same_path(source_game, target_game):
            log.warning(f"Profile {target_id} is the source, skipped game {game_id}")
            return

        if snapshots is None:
            self._replace_game_data(source_game, target_game, target_id, game_id, log)
            return

        staged = snapshots.get(game_id)
        if staged is None:
            log.error(f"Could not stage backup of game {game_id}, skipped for target {target_id}")
            return

        # Restoring a profile from its own backup slot
        restore_slot_from = staged if _same_path(source_game, self.backup_slot(target_id, game_id)) else None
        self._replace_game_data(staged, target_game, target_id, game_id, log, restore_slot_from)

    def _replace_game_data(self, source_game: Path, target_game: Path, target_id: ProfileId,
                           game_id: GameId, log: "_PairLog", restore_slot_from: Optional[Path] = None) -> None:
        if target_game.exists():
            if not self._backup_target(target_game, target_id, game_id, log, restore_slot_from):
                return
            try:
                shutil.rmtree(target_game)
            except OSError as e:
                log.error(f"Failed to clear target {target_id}/{game_id}: {e}")
                return

        try:
            target_game.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error(f"Failed to create target dir for {target_id}/{game_id}: {e}")
            return

        try:
            copy_tree(source_game, target_game)
        except CopyError as e:
            log.error(f"Failed to copy game {game_id} to {target_id}: {e}")
            return

        log.info(f"Successfully swapped game {game_id} for profile {target_id}")

    def _backup_target(self, target_game: Path, target_id: ProfileId, game_id: GameId,
                       log: "_PairLog", restore_slot_from: Optional[Path] = None) -> bool:
        """Copy the target's current data into its backup slot.

        When ``restore_slot_from`` is given the slot is also the swap source,
        and a failed backup puts that snapshot back into the slot.

        Returns:
            True if the target may now be overwritten
        """
        slot = self.backup_slot(target_id, game_id)
        valid, reason = validate_swap_path(slot, self.data_root)
        if not valid:
            log.warning(f"Backup slot for {target_id}/{game_id} rejected: {reason}")
            return False

        if self._fill_backup_slot(slot, target_game, target_id, game_id, log):
            log.info(f"Backed up game {game_id} for profile {target_id} to {SteamLayout.BACKUP_NAMESPACE}")
            return True

        if restore_slot_from is not None:
            self._restore_slot(slot, restore_slot_from, target_id, game_id, log)
        return False

    def _fill_backup_slot(self, slot: Path, target_game: Path,
                          target_id: ProfileId, game_id: GameId, log: "_PairLog") -> bool:
        if slot.exists():
            try:
                shutil.rmtree(slot)
            except OSError as e:
                log.warning(f"Failed to remove old backup for {target_id}/{game_id}: {e}")
                return False

        try:
            slot.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.warning(f"Failed to create backup dir for {target_id}/{game_id}: {e}")
            return False

        try:
            copy_tree(target_game, slot)
        except CopyError as e:
            log.warning(f"Backup failed for {target_id}/{game_id}: {e}")
            return False
        return True

    def _restore_slot(self, slot: Path, snapshot: Path,
                      target_id: ProfileId, game_id: GameId, log: "_PairLog") -> None:
        try:
            if slot.exists():
                shutil.rmtree(slot)
            copy_tree(snapshot, slot)
        except (OSError, CopyError) as e:
            log.error(f"Could not restore backup slot {target_id}/{game_id}: {e}")
            return
        logger.info(f"Restored backup slot {target_id}/{game_id} after failed backup")


class _PairLog:
    """Appends outcomes for one (target, game) pair and mirrors them to the log."""

    def __init__(self, outcomes: list[SwapOutcome], target_id: str, game_id: str):
        self.outcomes = outcomes
        self.target_id = target_id
        self.game_id = game_id

    def _add(self, level: OutcomeLevel, message: str) -> None:
        self.outcomes.append(SwapOutcome(level, self.target_id, self.game_id, message))

    def info(self, message: str) -> None:
        logger.info(message)
        self._add(OutcomeLevel.INFO, message)

    def warning(self, message: str) -> None:
        logger.warning(message)
        self._add(OutcomeLevel.WARNING, message)

    def error(self, message: str) -> None:
        logger.error(message)
        self._add(OutcomeLevel.ERROR, message)


def _same_path(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return False

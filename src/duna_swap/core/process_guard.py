"""Check whether any of a set of games is currently running.

Games are matched by the executable file names listed in their launch
options in appinfo.vdf. Apps missing from the library index cannot be
checked and are treated as not running.
"""

from typing import Callable, Iterable

import psutil

from ..logging_config import get_logger
from .library_index import LibraryIndex

logger = get_logger("process_guard")


def running_process_names() -> list[str]:
    """Names of all processes visible to the current user."""
    names = []
    for proc in psutil.process_iter(["name"]):
        try:
            name = proc.info.get("name")
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
        if name:
            names.append(name)
    return names


class ProcessGuard:
    """Matches running processes against games' executable names."""

    def __init__(self, library_index: LibraryIndex,
                 process_names: Callable[[], Iterable[str]] = running_process_names):
        self.library_index = library_index
        self.process_names = process_names

    def running_executables(self, game_ids: Iterable[str]) -> list[str]:
        """Return the executables of the given games that are running now.

        The process list is only read when at least one game has a known
        executable. Names are compared case-insensitively.
        """
        candidates = self.library_index.executables_for(game_ids)
        if not candidates:
            return []

        wanted = {name.lower(): name for name in candidates}
        running = []
        for process_name in self.process_names():
            match = wanted.get(process_name.lower())
            if match is not None and match not in running:
                running.append(match)
        return running

    def is_any_running(self, game_ids: Iterable[str]) -> bool:
        """True as soon as one process matches one of the games' executables."""
        game_ids = list(game_ids)
        if not game_ids:
            return False

        candidates = self.library_index.executables_for(game_ids)
        if not candidates:
            return False

        wanted = {name.lower() for name in candidates}
        for process_name in self.process_names():
            if process_name.lower() in wanted:
                logger.info(f"Game process running: {process_name}")
                return True
        return False

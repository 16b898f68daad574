"""Fallback app names from appmanifest files in Steam library folders.

Apps that are installed but missing from appinfo.vdf (or present there
without a name) still have an ``appmanifest_<appid>.acf`` in the
``steamapps`` folder of the library they are installed to.
"""

from pathlib import Path
from typing import Optional

from ..config.paths import SteamLayout
from ..logging_config import get_logger
from .vdf_text import parse_text, read_all_fields, read_file_field, read_file_text

logger = get_logger("manifests")


def _declared_library_roots(content: str) -> list[str]:
    roots = read_all_fields(content, "path")
    if roots:
        return roots

    # Older libraryfolders.vdf: "LibraryFolders" { "1" "D:\\SteamLibrary" }
    document = parse_text(content) or {}
    roots = []
    for section in document.values():
        if not isinstance(section, dict):
            continue
        for key, value in section.items():
            if key.isdigit() and isinstance(value, str):
                roots.append(value)
    return roots


def find_library_directories(install_root: Path) -> list[Path]:
    """List every ``steamapps`` folder known to this Steam installation.

    The install root's own ``steamapps`` comes first, followed by the
    libraries declared in libraryfolders.vdf in file order. Folders that do
    not exist and repeated folders are left out.

    Args:
        install_root: Steam installation folder

    Returns:
        Ordered list of existing steamapps directories
    """
    dirs: list[Path] = []
    main_steamapps = SteamLayout.steamapps_dir(install_root)
    if main_steamapps.is_dir():
        dirs.append(main_steamapps)

    content = read_file_text(SteamLayout.library_folders_file(install_root))
    if content is None:
        return dirs

    for raw_path in _declared_library_roots(content):
        lib_steamapps = SteamLayout.steamapps_dir(Path(raw_path))
        if lib_steamapps.is_dir() and lib_steamapps not in dirs:
            dirs.append(lib_steamapps)

    logger.debug(f"Found {len(dirs)} library folders under {install_root}")
    return dirs


class ManifestResolver:
    """Look up app names in appmanifest files.

    Results (including misses) are remembered for the lifetime of the
    resolver, which is created per command invocation.
    """

    def __init__(self, library_dirs: list[Path]):
        self.library_dirs = list(library_dirs)
        self._names: dict[str, Optional[str]] = {}

    @classmethod
    def for_installation(cls, install_root: Path) -> "ManifestResolver":
        return cls(find_library_directories(install_root))

    def resolve(self, game_id: str) -> Optional[str]:
        """Return the app's name from the first manifest that has one.

        Args:
            game_id: Steam app id

        Returns:
            The name, or None if no library has a named manifest for it
        """
        if game_id in self._names:
            return self._names[game_id]

        name = None
        manifest_name = SteamLayout.manifest_name(game_id)
        for directory in self.library_dirs:
            manifest_path = directory / manifest_name
            if not manifest_path.is_file():
                continue
            name = read_file_field(manifest_path, SteamLayout.MANIFEST_NAME_FIELD)
            if name:
                break

        self._names[game_id] = name
        return name

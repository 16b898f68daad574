"""Default paths for configuration and the Steam directory layout"""

import os
import platform
from pathlib import Path


def _default_config_dir() -> Path:
    override = os.environ.get("DUNA_SWAP_CONFIG_DIR")
    if override:
        return Path(override)

    system = platform.system()
    if system == "Windows":
        base = os.environ.get("APPDATA") or os.path.expanduser("~")
        return Path(base) / "DunaSwap"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "DunaSwap"
    xdg_config = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return Path(xdg_config) / "duna-swap"


class AppPaths:
    """Locations of the application's own files."""

    CONFIG_DIR = _default_config_dir()
    CONFIG_FILE = CONFIG_DIR / "configuration.xml"
    LOG_FILE_NAME = "duna_swap.log"

    @classmethod
    def ensure_config_dir(cls) -> Path:
        """Ensure the configuration directory exists.

        Returns:
            Path to the configuration directory
        """
        cls.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        return cls.CONFIG_DIR


class SteamLayout:
    """Names of the files and folders inside a Steam installation.

    All helpers take the install root (the folder holding ``steam.exe``,
    ``userdata``, ``appcache`` and ``steamapps``) or the userdata folder.
    """

    USERDATA_DIR = "userdata"
    APPCACHE_DIR = "appcache"
    CATALOG_FILE = "appinfo.vdf"
    STEAMAPPS_DIR = "steamapps"
    LIBRARY_FOLDERS_FILE = "libraryfolders.vdf"
    MANIFEST_TEMPLATE = "appmanifest_{}.acf"

    # Per-profile files
    PROFILE_CONFIG_DIR = "config"
    PROFILE_CONFIG_FILE = "localconfig.vdf"
    PERSONA_FIELD = "PersonaName"
    MANIFEST_NAME_FIELD = "name"

    # Steam Cloud writes this into every app folder it has seen, even without saves
    REMOTE_CACHE_MARKER = "remotecache.vdf"

    # Reserved folder under userdata holding overwritten target data
    BACKUP_NAMESPACE = "dunabackups"

    @classmethod
    def data_root(cls, install_root: Path) -> Path:
        return install_root / cls.USERDATA_DIR

    @classmethod
    def catalog_path(cls, install_root: Path) -> Path:
        return install_root / cls.APPCACHE_DIR / cls.CATALOG_FILE

    @classmethod
    def steamapps_dir(cls, library_root: Path) -> Path:
        return library_root / cls.STEAMAPPS_DIR

    @classmethod
    def library_folders_file(cls, install_root: Path) -> Path:
        return cls.steamapps_dir(install_root) / cls.LIBRARY_FOLDERS_FILE

    @classmethod
    def manifest_name(cls, game_id: str) -> str:
        return cls.MANIFEST_TEMPLATE.format(game_id)

    @classmethod
    def profile_config_file(cls, profile_dir: Path) -> Path:
        return profile_dir / cls.PROFILE_CONFIG_DIR / cls.PROFILE_CONFIG_FILE

    @classmethod
    def backup_root(cls, data_root: Path) -> Path:
        return data_root / cls.BACKUP_NAMESPACE

"""Auto-detect the Steam installation and its userdata folder"""

import os
import platform
from pathlib import Path
from typing import Optional

from ..config.paths import SteamLayout
from ..config.schema import SteamInstallation
from ..errors import InstallationNotFoundError
from ..logging_config import get_logger
from .ids import is_numeric_name

logger = get_logger("steam_detector")

STEAM_REGISTRY_KEY = r"Software\Valve\Steam"


def _registry_steam_path() -> Optional[Path]:
    """Read SteamPath from the Windows registry (HKCU, then HKLM)."""
    try:
        import winreg
    except ImportError:
        return None

    for hive, hive_name in ((winreg.HKEY_CURRENT_USER, "HKCU"), (winreg.HKEY_LOCAL_MACHINE, "HKLM")):
        try:
            with winreg.OpenKey(hive, STEAM_REGISTRY_KEY) as key:
                value, _ = winreg.QueryValueEx(key, "SteamPath")
        except OSError:
            logger.debug(f"SteamPath not found in {hive_name}\\{STEAM_REGISTRY_KEY}")
            continue
        path = Path(os.path.normpath(value))
        if path.is_dir():
            logger.info(f"Found Steam via registry ({hive_name}): {path}")
            return path
    return None


def default_candidates(system: Optional[str] = None) -> list[Path]:
    """Well-known Steam install folders for the current OS."""
    system = system or platform.system()
    home = Path.home()
    if system == "Linux":
        return [
            home / ".steam" / "steam",
            home / ".local" / "share" / "Steam",
            home / ".steam" / "root",
            home / ".var" / "app" / "com.valvesoftware.Steam" / "data" / "Steam",
        ]
    if system == "Darwin":
        return [home / "Library" / "Application Support" / "Steam"]
    if system == "Windows":
        program_files = os.environ.get("PROGRAMFILES(X86)", r"C:\Program Files (x86)")
        return [Path(program_files) / "Steam"]
    return []


def find_userdata_path(install_root: Path) -> Optional[Path]:
    """Return ``<install_root>/userdata`` if it is a folder."""
    userdata = SteamLayout.data_root(install_root)
    return userdata if userdata.is_dir() else None


def _has_numeric_subdirectory(path: Path) -> bool:
    try:
        return any(p.is_dir() and is_numeric_name(p.name) for p in path.iterdir())
    except OSError:
        return False


class SteamDetector:
    """Locate a Steam installation.

    Checks the registry on Windows, then the default install folders.
    """

    def __init__(self, candidates: Optional[list[Path]] = None, use_registry: bool = True):
        self.candidates = candidates
        self.use_registry = use_registry

    def detect_install_root(self) -> Optional[Path]:
        """Find the Steam install folder.

        Returns:
            Path to the install folder, or None if not found
        """
        if self.use_registry:
            registry_path = _registry_steam_path()
            if registry_path is not None:
                return registry_path

        candidates = self.candidates if self.candidates is not None else default_candidates()
        for candidate in candidates:
            if candidate.is_dir():
                logger.info(f"Found Steam at {candidate}")
                return candidate
            logger.debug(f"No Steam at {candidate}")
        return None

    def detect_installation(self) -> SteamInstallation:
        """Find Steam and its userdata folder.

        Raises:
            InstallationNotFoundError: If Steam or its userdata folder is missing
        """
        install_root = self.detect_install_root()
        if install_root is None:
            raise InstallationNotFoundError("Could not detect Steam installation")

        data_root = find_userdata_path(install_root)
        if data_root is None:
            raise InstallationNotFoundError("Could not find userdata folder in Steam directory")

        return SteamInstallation(data_root=data_root, install_root=install_root)

    @staticmethod
    def validate_install_path(path: Path) -> SteamInstallation:
        """Accept either a Steam folder or its userdata folder.

        Args:
            path: Folder chosen by the user

        Returns:
            The matching SteamInstallation

        Raises:
            InstallationNotFoundError: If no userdata folder can be found at path
        """
        path = Path(path)
        if not path.exists():
            raise InstallationNotFoundError("Path does not exist")

        if path.name == SteamLayout.USERDATA_DIR and path.is_dir() and _has_numeric_subdirectory(path):
            return SteamInstallation(data_root=path, install_root=path.parent)

        data_root = find_userdata_path(path)
        if data_root is not None:
            return SteamInstallation(data_root=data_root, install_root=path)

        raise InstallationNotFoundError(
            "Could not find 'userdata' folder. Please select the Steam folder "
            "or the userdata folder directly."
        )

"""Configuration data models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class SteamInstallation:
    """A located Steam installation and its userdata folder"""
    data_root: Path
    install_root: Path

    def is_valid(self) -> bool:
        """Check if both folders still exist.

        Returns:
            True if the data root and install root are directories
        """
        return self.data_root.is_dir() and self.install_root.is_dir()

    def to_dict(self) -> dict:
        return {
            "data_root": self.data_root.as_posix(),
            "install_root": self.install_root.as_posix(),
        }


@dataclass
class Settings:
    """Application settings"""
    first_run_complete: bool = False
    install_root: Optional[Path] = None
    data_root: Optional[Path] = None
    check_running_before_swap: bool = True


@dataclass
class AppConfiguration:
    """Complete application configuration"""
    settings: Settings = field(default_factory=Settings)

    def get_installation(self) -> Optional[SteamInstallation]:
        """Get the remembered installation, if one was saved.

        Returns:
            SteamInstallation or None if no paths are stored
        """
        if self.settings.install_root is None or self.settings.data_root is None:
            return None
        return SteamInstallation(
            data_root=self.settings.data_root,
            install_root=self.settings.install_root,
        )

    def remember_installation(self, installation: SteamInstallation) -> None:
        self.settings.install_root = installation.install_root
        self.settings.data_root = installation.data_root
        self.settings.first_run_complete = True

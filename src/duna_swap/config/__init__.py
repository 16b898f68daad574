"""Configuration management module.

Submodules:
    manager: ConfigurationManager for loading/saving XML configuration
    schema: Data classes defining configuration structure (SteamInstallation, Settings)
    paths: AppPaths for the config folder and SteamLayout for Steam's file names
    path_validator: Checks that keep swap deletes and copies inside userdata

The configuration is stored as XML in <config dir>/configuration.xml.
"""

from .manager import ConfigurationManager
from .schema import AppConfiguration, Settings, SteamInstallation
from .paths import AppPaths, SteamLayout

__all__ = [
    "ConfigurationManager",
    "AppConfiguration",
    "Settings",
    "SteamInstallation",
    "AppPaths",
    "SteamLayout",
]

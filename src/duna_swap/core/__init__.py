"""Core business logic module.

Submodules:
    appinfo: Reader for the binary appcache/appinfo.vdf catalog
    vdf_text: Field lookups in text VDF files
    library_index: LibraryIndex of app names/executables and its mtime-checked cache
    manifests: App-name fallback through appmanifest files in every library folder
    profile_scanner: ProfileScanner for live and backup profiles
    swap_service: SwapService, the backup-then-copy swap transaction
    process_guard: ProcessGuard for detecting running games
    steam_detector: SteamDetector for locating Steam and userdata
"""

from .ids import GameId, ProfileId
from .library_index import LibraryEntry, LibraryIndex, LibraryIndexCache
from .manifests import ManifestResolver
from .process_guard import ProcessGuard
from .profile_scanner import GameInfo, Profile, ProfileScanner
from .steam_detector import SteamDetector
from .swap_service import OutcomeLevel, SwapOutcome, SwapResult, SwapService, SwapSummary

__all__ = [
    "GameId",
    "ProfileId",
    "LibraryEntry",
    "LibraryIndex",
    "LibraryIndexCache",
    "ManifestResolver",
    "ProcessGuard",
    "GameInfo",
    "Profile",
    "ProfileScanner",
    "SteamDetector",
    "OutcomeLevel",
    "SwapOutcome",
    "SwapResult",
    "SwapService",
    "SwapSummary",
]

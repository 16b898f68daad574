"""Command line entry point and orchestrator"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from . import __app_name__, __version__
from . import commands
from .config.manager import ConfigurationManager
from .config.schema import SteamInstallation
from .errors import DunaSwapError
from .logging_config import get_logger, setup_logging

logger = get_logger("app")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_GAME_RUNNING = 2


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


class DunaSwapApp:
    """Resolves the Steam installation and dispatches CLI commands.

    The last installation that was found or validated is remembered in the
    configuration file so later runs skip detection.
    """

    def __init__(self, config_manager: Optional[ConfigurationManager] = None):
        self.config_manager = config_manager or ConfigurationManager()
        self.config = self.config_manager.load_or_default()

    def resolve_installation(self, steam_path: Optional[str] = None) -> SteamInstallation:
        """Find the installation to work on.

        Order: explicit ``--steam-path``, the remembered installation, detection.

        Raises:
            InstallationNotFoundError: If none of them yields a userdata folder
        """
        if steam_path:
            installation = commands.validate_install_path(steam_path)
        else:
            installation = self.config.get_installation()
            if installation is None or not installation.is_valid():
                installation = commands.detect_installation()

        if installation != self.config.get_installation():
            self.config.remember_installation(installation)
            try:
                self.config_manager.save()
            except OSError as e:
                logger.warning(f"Could not save configuration: {e}")
        return installation

    def run(self, args: argparse.Namespace) -> int:
        installation = self.resolve_installation(args.steam_path)
        data_root, install_root = installation.data_root, installation.install_root

        if args.command == "detect":
            _print_json(installation.to_dict())
            return EXIT_OK

        if args.command == "profiles":
            _print_json([p.to_dict() for p in commands.list_profiles(data_root, install_root)])
            return EXIT_OK

        if args.command == "games":
            games = commands.list_games_for_profile(install_root, data_root, args.profile, args.backup)
            _print_json([g.to_dict() for g in games])
            return EXIT_OK

        if args.command == "running":
            running = commands.are_games_running(install_root, args.game)
            _print_json({"running": running})
            return EXIT_OK

        if args.command == "summary":
            summary = commands.summarize_swap(
                data_root, install_root, args.source, args.source_backup, args.target, args.game
            )
            _print_json(summary.to_dict())
            return EXIT_OK

        if args.command == "swap":
            return self._swap(args, data_root, install_root)

        raise ValueError(f"Unknown command: {args.command}")

    def _swap(self, args: argparse.Namespace, data_root: Path, install_root: Path) -> int:
        check_running = self.config.settings.check_running_before_swap and not args.force
        if check_running and commands.are_games_running(install_root, args.game):
            _print_json({
                "success": False,
                "message": "Close the selected games before swapping (or pass --force)",
                "details": [],
            })
            return EXIT_GAME_RUNNING

        # Raises SwapRequestError for an unknown source or no valid target
        commands.summarize_swap(data_root, install_root, args.source, args.source_backup, args.target, args.game)

        result = commands.execute_swap(data_root, args.source, args.source_backup, args.target, args.game)
        _print_json(result.to_dict())
        return EXIT_OK if result.success else EXIT_FAILED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="duna-swap",
        description=f"{__app_name__} - copy Steam game saves between profiles",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="log to the console as well")
    parser.add_argument("--steam-path", help="Steam folder or its userdata folder")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("detect", help="show the Steam installation in use")
    subparsers.add_parser("profiles", help="list profiles and backups")

    games = subparsers.add_parser("games", help="list games a profile has saves for")
    games.add_argument("--profile", required=True)
    games.add_argument("--backup", action="store_true", help="profile is in the backup folder")

    running = subparsers.add_parser("running", help="check whether games are running")
    running.add_argument("--game", action="append", default=[], required=True)

    for name, help_text in (("summary", "preview a swap"), ("swap", "copy saves from source to targets")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--source", required=True)
        sub.add_argument("--source-backup", action="store_true", help="source is in the backup folder")
        sub.add_argument("--target", action="append", default=[], required=True)
        sub.add_argument("--game", action="append", default=[], required=True)
        if name == "swap":
            sub.add_argument("--force", action="store_true", help="skip the running-game check")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    # Initialize logging first
    logger = setup_logging(debug=args.debug)
    logger.info(f"Starting {__app_name__} v{__version__}: {args.command}")

    try:
        return DunaSwapApp().run(args)
    except DunaSwapError as e:
        logger.error(f"{args.command} failed: {e}")
        _print_json({"success": False, "message": str(e), "details": []})
        return EXIT_FAILED
    except Exception:
        logger.exception(f"Fatal error running {args.command}")
        raise
    finally:
        logger.info(f"{__app_name__} shutting down")


if __name__ == "__main__":
    sys.exit(main())

"""Shared fixtures: a throwaway Steam folder tree and a fake catalog decoder."""
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from duna_swap.config.paths import AppPaths
from duna_swap.core.library_index import LibraryIndexCache


LOCALCONFIG_TEMPLATE = '''"UserLocalConfigStore"
{
\t"friends"
\t{
\t\t"PersonaName"\t\t"%s"
\t}
}
'''

MANIFEST_TEMPLATE = '''"AppState"
{
\t"appid"\t\t"%s"
\t"name"\t\t"%s"
\t"installdir"\t\t"%s"
}
'''


class FakeDecoder:
    """Stands in for the appinfo.vdf reader and counts how often it runs."""

    def __init__(self, apps=None):
        self.apps = apps or {}
        self.calls = 0

    def __call__(self, path, strict=False):
        self.calls += 1
        entries = []
        for appid, (name, executables) in self.apps.items():
            launch = {str(i): {"executable": exe} for i, exe in enumerate(executables)}
            entries.append({
                "appid": int(appid),
                "common": {"name": name},
                "config": {"launch": launch},
            })
        return {"magic": 0x07564429, "universe": 1, "entries": entries}


class SteamTree:
    """Builds a fake Steam installation under a temp folder."""

    def __init__(self, root: Path):
        self.install_root = root / "Steam"
        self.data_root = self.install_root / "userdata"
        self.steamapps = self.install_root / "steamapps"
        self.catalog = self.install_root / "appcache" / "appinfo.vdf"
        self.data_root.mkdir(parents=True)
        self.steamapps.mkdir(parents=True)
        self.catalog.parent.mkdir(parents=True)
        self.catalog.write_bytes(b"fake")

    def add_profile(self, profile_id, persona=None, games=None, config=True, mtime=None):
        profile = self.data_root / str(profile_id)
        profile.mkdir(parents=True, exist_ok=True)
        if config:
            config_file = profile / "config" / "localconfig.vdf"
            config_file.parent.mkdir(parents=True, exist_ok=True)
            config_file.write_text(LOCALCONFIG_TEMPLATE % (persona or ""), encoding="utf-8")
            if mtime is not None:
                os.utime(config_file, (mtime, mtime))
        for game_id, files in (games or {}).items():
            write_files(profile / str(game_id), files)
        return profile

    def add_backup(self, profile_id, games, mtime=None):
        backup = self.data_root / "dunabackups" / str(profile_id)
        backup.mkdir(parents=True, exist_ok=True)
        for game_id, files in games.items():
            write_files(backup / str(game_id), files, mtime=mtime)
        return backup

    def add_manifest(self, game_id, name, steamapps=None):
        steamapps = steamapps or self.steamapps
        steamapps.mkdir(parents=True, exist_ok=True)
        (steamapps / f"appmanifest_{game_id}.acf").write_text(
            MANIFEST_TEMPLATE % (game_id, name, name), encoding="utf-8"
        )


def write_files(directory: Path, files: dict, mtime=None):
    """Create files from a {relative path: content} mapping."""
    directory.mkdir(parents=True, exist_ok=True)
    for rel_path, content in files.items():
        path = directory / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))


def read_tree(directory: Path) -> dict:
    """Snapshot a folder as {relative posix path: bytes}."""
    return {
        p.relative_to(directory).as_posix(): p.read_bytes()
        for p in sorted(directory.rglob("*"))
        if p.is_file()
    }


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Keep configuration and log files inside the test's temp folder."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(AppPaths, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(AppPaths, "CONFIG_FILE", config_dir / "configuration.xml")
    return config_dir


@pytest.fixture
def steam(tmp_path):
    return SteamTree(tmp_path)


@pytest.fixture
def decoder():
    return FakeDecoder({
        "570": ("Dota 2", ["game\\bin\\win64\\dota2.exe", "game/bin/linuxsteamrt64/dota2"]),
        "730": ("Counter-Strike 2", ["cs2.exe"]),
        "440": ("Team Fortress 2", ["tf_win64.exe", "tf_win64.exe"]),
    })


@pytest.fixture
def cache(decoder):
    return LibraryIndexCache(decoder=decoder)

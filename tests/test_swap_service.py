"""tests for the backup-then-copy swap transaction."""
import os
import shutil

import pytest

from duna_swap.core.profile_scanner import Profile
from duna_swap.core.swap_service import (
    OutcomeLevel,
    SwapOutcome,
    SwapResult,
    SwapService,
    copy_tree,
    directory_stats,
    format_local_time,
)
from duna_swap.errors import (
    CopyCycleError,
    CopyError,
    NoGamesSelectedError,
    NoValidTargetsError,
    SourceNotFoundError,
)

from conftest import read_tree, write_files

A_DATA = {"remote/slot1.sav": b"source save", "remote/sub/deep.bin": b"\x00\x01"}
B_DATA = {"remote/slot1.sav": b"target save", "remote/only_in_b.txt": "b"}


@pytest.fixture
def service(steam):
    return SwapService(steam.data_root)


@pytest.fixture
def profiles(steam):
    steam.add_profile(111, persona="Alice", games={570: A_DATA})
    steam.add_profile(222, persona="Bob", games={570: B_DATA})
    steam.add_profile(333, persona="Carol")
    return steam


class TestSwapResult:
    def test_success_ignores_warnings(self):
        result = SwapResult.from_outcomes([
            SwapOutcome(OutcomeLevel.WARNING, "1", "2", "meh"),
            SwapOutcome(OutcomeLevel.INFO, "1", "2", "ok"),
        ])
        assert result.success
        assert result.details == ["Warning: meh", "ok"]

    def test_any_error_fails(self):
        result = SwapResult.from_outcomes([SwapOutcome(OutcomeLevel.ERROR, "1", "2", "boom")])
        assert not result.success
        assert result.message == "Some operations failed. Check details."
        assert result.to_dict()["outcomes"][0]["level"] == "error"

    def test_message_text_does_not_decide_level(self):
        result = SwapResult.from_outcomes([SwapOutcome(OutcomeLevel.INFO, "1", "2", "Error: not really")])
        assert result.success


class TestExecute:
    def test_round_trip_with_backup(self, profiles, service):
        a_before = read_tree(profiles.data_root / "111" / "570")
        b_before = read_tree(profiles.data_root / "222" / "570")

        result = service.execute("111", False, ["222"], ["570"])

        assert result.success, result.details
        assert read_tree(service.backup_slot("222", "570")) == b_before
        assert read_tree(profiles.data_root / "222" / "570") == a_before
        assert read_tree(profiles.data_root / "111" / "570") == a_before
        assert [o.level for o in result.outcomes] == [OutcomeLevel.INFO, OutcomeLevel.INFO]
        assert result.details[-1] == "Successfully swapped game 570 for profile 222"

    def test_rerun_is_idempotent(self, profiles, service):
        a_before = read_tree(profiles.data_root / "111" / "570")
        service.execute("111", False, ["222"], ["570"])
        result = service.execute("111", False, ["222"], ["570"])

        assert result.success
        assert read_tree(profiles.data_root / "222" / "570") == a_before
        assert read_tree(service.backup_slot("222", "570")) == a_before

    def test_target_without_data_gets_copy_and_no_backup(self, profiles, service):
        result = service.execute("111", False, ["333"], ["570"])

        assert result.success
        assert read_tree(profiles.data_root / "333" / "570") == read_tree(profiles.data_root / "111" / "570")
        assert not service.backup_slot("333", "570").exists()
        assert len(result.outcomes) == 1

    def test_missing_source_game_warns_per_target(self, profiles, service):
        result = service.execute("111", False, ["222", "333"], ["100"])

        assert result.success
        assert [o.level for o in result.outcomes] == [OutcomeLevel.WARNING, OutcomeLevel.WARNING]
        assert [o.target_id for o in result.outcomes] == ["222", "333"]
        assert not (profiles.data_root / "dunabackups").exists()

    def test_pairs_are_independent(self, profiles, service):
        write_files(profiles.data_root / "111" / "730", {"cfg.txt": "cs"})
        result = service.execute("111", False, ["222", "404"], ["100", "570", "730"])

        errors = [(o.target_id, o.game_id) for o in result.errors]
        assert errors == [("404", "570"), ("404", "730")]
        assert not result.success
        assert (profiles.data_root / "222" / "730" / "cfg.txt").read_text() == "cs"
        assert not (profiles.data_root / "404").exists()

    def test_old_backup_is_replaced(self, profiles, service):
        write_files(service.backup_slot("222", "570"), {"stale.txt": "old"})
        b_before = read_tree(profiles.data_root / "222" / "570")

        service.execute("111", False, ["222"], ["570"])
        assert read_tree(service.backup_slot("222", "570")) == b_before

    def test_failed_backup_leaves_target_untouched(self, profiles, service):
        # A file where the per-target backup folder should be
        slot_parent = profiles.data_root / "dunabackups" / "222"
        slot_parent.parent.mkdir(parents=True)
        slot_parent.write_text("in the way")
        b_before = read_tree(profiles.data_root / "222" / "570")

        result = service.execute("111", False, ["222"], ["570"])

        assert result.success
        assert [o.level for o in result.outcomes] == [OutcomeLevel.WARNING]
        assert read_tree(profiles.data_root / "222" / "570") == b_before

    def test_source_is_never_its_own_target(self, profiles, service):
        a_before = read_tree(profiles.data_root / "111" / "570")
        result = service.execute("111", False, ["111"], ["570"])

        assert result.success
        assert result.outcomes[0].level is OutcomeLevel.WARNING
        assert read_tree(profiles.data_root / "111" / "570") == a_before

    def test_restore_from_own_backup_swaps_contents(self, profiles, service):
        a_before = read_tree(profiles.data_root / "111" / "570")
        b_before = read_tree(profiles.data_root / "222" / "570")
        service.execute("111", False, ["222"], ["570"])

        result = service.execute("222", True, ["222"], ["570"])

        assert result.success, result.details
        assert read_tree(profiles.data_root / "222" / "570") == b_before
        assert read_tree(service.backup_slot("222", "570")) == a_before
        assert not (profiles.data_root / "dunabackups" / ".staging").exists()

    def test_backup_source_to_other_target(self, profiles, service):
        profiles.add_backup(111, {570: {"old.sav": b"from backup"}})
        result = service.execute("111", True, ["333"], ["570"])

        assert result.success
        assert (profiles.data_root / "333" / "570" / "old.sav").read_bytes() == b"from backup"

    @pytest.mark.parametrize("targets", [["222", "111"], ["111", "222"]])
    def test_backup_source_reaches_every_target_unchanged(self, profiles, service, targets):
        profiles.add_backup(222, {570: {"save.dat": b"B backup"}})
        b_live = read_tree(profiles.data_root / "222" / "570")
        result = service.execute("222", True, targets, ["570"])

        assert result.success, result.details
        assert read_tree(profiles.data_root / "222" / "570") == {"save.dat": b"B backup"}
        assert read_tree(profiles.data_root / "111" / "570") == {"save.dat": b"B backup"}
        assert read_tree(service.backup_slot("222", "570")) == b_live
        assert not (profiles.data_root / "dunabackups" / ".staging").exists()

    def test_failed_self_restore_keeps_the_backup(self, profiles, service):
        profiles.add_backup(222, {570: {"save.dat": b"precious backup"}})
        live = profiles.data_root / "222" / "570"
        try:
            os.symlink(live / "missing-target", live / "broken-link")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        live_before = {p.name for p in live.rglob("*")}

        result = service.execute("222", True, ["222"], ["570"])

        assert [o.level for o in result.outcomes] == [OutcomeLevel.WARNING]
        assert read_tree(service.backup_slot("222", "570")) == {"save.dat": b"precious backup"}
        assert {p.name for p in live.rglob("*")} == live_before
        assert not (profiles.data_root / "dunabackups" / ".staging").exists()


class TestSummarize:
    def _profiles(self, steam):
        def live(pid):
            return Profile(id=pid, display_name=pid, path=steam.data_root / pid)
        backup = Profile(id="222", display_name="Backup - 222",
                         path=steam.data_root / "dunabackups" / "222", is_backup=True)
        return [live("111"), live("222"), live("333"), backup]

    def test_no_games_selected_checked_first(self, tmp_path):
        service = SwapService(tmp_path / "does-not-exist")
        with pytest.raises(NoGamesSelectedError):
            service.summarize([], "1", False, ["2"], [])

    def test_source_not_found(self, steam, service):
        with pytest.raises(SourceNotFoundError):
            service.summarize(self._profiles(steam), "111", True, ["222"], ["570"])

    def test_no_valid_targets(self, steam, service):
        profiles = self._profiles(steam)
        with pytest.raises(NoValidTargetsError):
            service.summarize(profiles, "111", False, ["111", "999"], ["570"])

    def test_backup_targets_are_not_valid(self, steam, service):
        profiles = [p for p in self._profiles(steam) if p.id != "222" or p.is_backup]
        with pytest.raises(NoValidTargetsError):
            service.summarize(profiles, "111", False, ["222"], ["570"])

    def test_totals(self, steam, service):
        write_files(steam.data_root / "111" / "570", {"a.bin": b"12345", "d/b.bin": b"123"}, mtime=1000)
        write_files(steam.data_root / "111" / "730", {"c.bin": b"1"}, mtime=2000)

        summary = service.summarize(self._profiles(steam), "111", False, ["222", "333"], ["570", "730", "100"])

        assert [t.id for t in summary.targets] == ["222", "333"]
        assert summary.total_size == 9
        assert summary.file_count == 3
        assert summary.folder_count == 1
        assert summary.last_modified == format_local_time(2000)
        assert summary.to_dict()["source"]["id"] == "111"

    def test_unknown_when_no_files(self, steam, service):
        summary = service.summarize(self._profiles(steam), "111", False, ["222"], ["570"])
        assert summary.last_modified == "Unknown"
        assert summary.file_count == 0


class TestCopyTree:
    def test_copies_nested_tree(self, tmp_path):
        src = tmp_path / "src"
        write_files(src, {"a.txt": "a", "x/y/z.bin": b"z"})
        (src / "empty").mkdir()

        assert copy_tree(src, tmp_path / "dst") == 2
        assert read_tree(tmp_path / "dst") == read_tree(src)
        assert (tmp_path / "dst" / "empty").is_dir()

    def test_missing_source(self, tmp_path):
        with pytest.raises(CopyError):
            copy_tree(tmp_path / "missing", tmp_path / "dst")

    @pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="needs POSIX symlinks")
    def test_symlink_cycle_is_reported(self, tmp_path):
        src = tmp_path / "src"
        write_files(src, {"a.txt": "a"})
        os.symlink(src, src / "loop")

        with pytest.raises(CopyCycleError):
            copy_tree(src, tmp_path / "dst")

    def test_depth_limit(self, tmp_path):
        src = tmp_path / "src"
        deep = src / "1" / "2" / "3"
        deep.mkdir(parents=True)

        with pytest.raises(CopyCycleError):
            copy_tree(src, tmp_path / "dst", max_depth=2)

    def test_directory_stats(self, tmp_path):
        write_files(tmp_path / "g", {"a": b"12", "s/b": b"345"}, mtime=500)
        stats = directory_stats(tmp_path / "g")
        assert (stats.total_size, stats.file_count, stats.folder_count) == (5, 2, 1)
        assert stats.latest_modified == 500

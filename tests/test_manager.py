"""Tests for the coordinating layer: registry, engine and host kept in sync."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from hotreload.manager import HotReloadManager
from hotreload.registry import WatchEntry
from tests.conftest import FakeHost


def bump(path: Path, content: str) -> None:
    before = path.stat().st_mtime_ns
    path.write_text(content, encoding="utf-8")
    os.utime(path, ns=(before + 2_000_000_000, before + 2_000_000_000))


def entries(host: FakeHost) -> list[dict[str, object]]:
    assert host.blob is not None
    return host.blob["fileWatchers"]


class TestAdd:
    """Adding watchers."""

    @pytest.mark.asyncio
    async def test_add_existing_file(self, host: FakeHost, base_dir: Path, make_file) -> None:
        make_file("themes/a.css")
        manager = HotReloadManager(host)

        assert manager.add("themes/a.css") is True

        assert manager.registry.list() == [WatchEntry("themes/a.css", True)]
        assert entries(host) == [{"file": "themes/a.css", "active": True}]
        live = manager.engine.live()
        assert len(live) == 1
        assert live[0].resolved_path == base_dir / "themes" / "a.css"
        manager.unload()

    @pytest.mark.asyncio
    async def test_add_missing_file_rolls_back(self, host: FakeHost) -> None:
        manager = HotReloadManager(host)

        assert manager.add("missing.css") is False

        assert manager.registry.list() == []
        assert len(manager.engine) == 0
        assert host.saves == []
        assert any("does not exist" in n for n in host.notifications)

    @pytest.mark.asyncio
    async def test_add_directory_rolls_back(self, host: FakeHost, base_dir: Path) -> None:
        (base_dir / "themes").mkdir()
        manager = HotReloadManager(host)

        assert manager.add("themes") is False
        assert manager.registry.list() == []
        assert any("must point to a file" in n for n in host.notifications)

    @pytest.mark.asyncio
    async def test_add_twice_reports_already_exists(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        manager = HotReloadManager(host)
        manager.add("a.css")
        saves_before = len(host.saves)

        assert manager.add("a.css") is False

        assert manager.registry.list() == [WatchEntry("a.css", True)]
        assert len(manager.engine) == 1
        assert len(host.saves) == saves_before
        assert any("already exists" in n for n in host.notifications)
        manager.unload()

    @pytest.mark.asyncio
    async def test_add_blank_path_reports_invalid(self, host: FakeHost) -> None:
        manager = HotReloadManager(host)

        assert manager.add("") is False
        assert any("Invalid file path" in n for n in host.notifications)

    @pytest.mark.asyncio
    async def test_add_path_below_a_file_rolls_back(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        manager = HotReloadManager(host)

        assert manager.add("a.css/child.css") is False

        assert manager.registry.list() == []
        assert len(manager.engine) == 0
        assert host.saves == []
        assert any("does not exist" in n for n in host.notifications)

    @pytest.mark.asyncio
    async def test_add_invalid_name_rolls_back(self, host: FakeHost) -> None:
        manager = HotReloadManager(host)

        assert manager.add("bad\x00name.css") is False

        assert manager.registry.list() == []
        assert host.saves == []
        assert any("Cannot access file" in n for n in host.notifications)


class TestRemove:
    """Removing watchers."""

    @pytest.mark.asyncio
    async def test_remove_stops_watcher_and_persists(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        manager = HotReloadManager(host)
        manager.add("a.css")
        watcher = manager.engine.get("a.css")

        manager.remove("a.css")

        assert watcher is not None and not watcher.is_running
        assert manager.registry.list() == []
        assert len(manager.engine) == 0
        assert entries(host) == []

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        manager = HotReloadManager(host)
        manager.add("a.css")

        manager.remove(WatchEntry("a.css"))
        manager.remove("a.css")
        manager.remove("never-added.css")

        assert manager.registry.list() == []
        assert host.notifications == []


class TestActivation:
    """Enabling and disabling watchers."""

    @pytest.mark.asyncio
    async def test_deactivate_then_activate_restores_one_watcher(
        self, host: FakeHost, make_file
    ) -> None:
        make_file("a.css")
        manager = HotReloadManager(host)
        manager.add("a.css")

        manager.deactivate("a.css")
        assert len(manager.engine) == 0
        assert entries(host) == [{"file": "a.css", "active": False}]

        assert manager.activate("a.css") is True
        assert len(manager.engine) == 1
        assert manager.engine.live()[0].is_running
        assert entries(host) == [{"file": "a.css", "active": True}]
        manager.unload()

    @pytest.mark.asyncio
    async def test_activate_twice_does_not_duplicate(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        manager = HotReloadManager(host)
        manager.add("a.css")
        watcher = manager.engine.get("a.css")

        manager.activate("a.css")

        assert manager.engine.live() == [watcher]
        manager.unload()

    @pytest.mark.asyncio
    async def test_activate_missing_file_keeps_flag(
        self, host: FakeHost, base_dir: Path, make_file
    ) -> None:
        path = make_file("a.css")
        manager = HotReloadManager(host)
        manager.add("a.css")
        manager.deactivate("a.css")
        path.unlink()

        assert manager.activate("a.css") is False

        assert manager.registry.get("a.css") == WatchEntry("a.css", True)
        assert entries(host) == [{"file": "a.css", "active": True}]
        assert len(manager.engine) == 0
        assert any("does not exist" in n for n in host.notifications)

    @pytest.mark.asyncio
    async def test_activate_unknown_path_is_noop(self, host: FakeHost) -> None:
        manager = HotReloadManager(host)

        assert manager.activate("ghost.css") is False
        assert manager.registry.list() == []


class TestIntervalAndRestart:
    """Interval changes only apply after restart_all()."""

    @pytest.mark.asyncio
    async def test_set_interval_clamps_and_persists(self, host: FakeHost) -> None:
        manager = HotReloadManager(host)

        assert manager.set_interval(50000) == 10000
        assert host.blob is not None
        assert host.blob["fileWatcherInterval"] == 10000

        assert manager.set_interval("abc") == 200

    @pytest.mark.asyncio
    async def test_interval_applies_after_restart(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        make_file("b.css")
        manager = HotReloadManager(host)
        manager.add("a.css")
        manager.add("b.css")
        manager.deactivate("b.css")

        manager.set_interval(1000)
        assert manager.engine.get("a.css").interval_ms == 200

        failures = manager.restart_all()

        assert failures == []
        assert [w.path for w in manager.engine.live()] == ["a.css"]
        assert manager.engine.get("a.css").interval_ms == 1000
        assert host.notifications[-1] == "Restarted all file watchers."
        manager.unload()

    @pytest.mark.asyncio
    async def test_restart_continues_when_parent_becomes_a_file(
        self, host: FakeHost, base_dir: Path, make_file
    ) -> None:
        make_file("themes/a.css")
        make_file("b.css")
        manager = HotReloadManager(host)
        manager.add("themes/a.css")
        manager.add("b.css")
        (base_dir / "themes" / "a.css").unlink()
        (base_dir / "themes").rmdir()
        make_file("themes")

        failures = manager.restart_all()

        assert [f.path for f in failures] == ["themes/a.css"]
        assert [w.path for w in manager.engine.live()] == ["b.css"]
        assert host.notifications[-1] == "Restarted all file watchers."
        manager.unload()

    @pytest.mark.asyncio
    async def test_restart_reports_failures(self, host: FakeHost, make_file) -> None:
        path = make_file("a.css")
        manager = HotReloadManager(host)
        manager.add("a.css")
        path.unlink()

        failures = manager.restart_all()

        assert [f.path for f in failures] == ["a.css"]
        assert manager.registry.get("a.css") == WatchEntry("a.css", True)
        assert len(manager.engine) == 0
        assert any("does not exist" in n for n in host.notifications)


class TestLoadAndList:
    """Startup from persisted settings."""

    @pytest.mark.asyncio
    async def test_load_starts_active_entries(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        make_file("b.css")
        host.blob = {
            "fileWatchers": [
                {"file": "a.css", "active": True},
                {"file": "b.css", "active": False},
                {"file": "gone.css", "active": True},
            ],
            "fileWatcherInterval": 400,
        }
        manager = HotReloadManager(host)

        failures = manager.load()

        assert [f.path for f in failures] == ["gone.css"]
        assert manager.interval_ms == 400
        assert [e.path for e in manager.registry.list()] == ["a.css", "b.css", "gone.css"]
        assert [w.path for w in manager.engine.live()] == ["a.css"]
        manager.unload()

    @pytest.mark.asyncio
    async def test_load_continues_past_uninspectable_entries(
        self, host: FakeHost, make_file
    ) -> None:
        make_file("a.css")
        make_file("b.css")
        host.blob = {
            "fileWatchers": [
                {"file": "a.css/x", "active": True},
                {"file": "bad\x00name.css", "active": True},
                {"file": "b.css", "active": True},
            ],
        }
        manager = HotReloadManager(host)

        failures = manager.load()

        assert [f.path for f in failures] == ["a.css/x", "bad\x00name.css"]
        assert [w.path for w in manager.engine.live()] == ["b.css"]
        assert [s.live for s in manager.list()] == [False, False, True]
        assert len(host.notifications) == 2
        manager.unload()

    @pytest.mark.asyncio
    async def test_list_reports_live_status(self, host: FakeHost, base_dir: Path, make_file) -> None:
        make_file("a.css")
        make_file("b.css")
        manager = HotReloadManager(host)
        manager.add("a.css")
        manager.add("b.css")
        manager.deactivate("b.css")

        statuses = manager.list()

        assert [(s.path, s.active, s.live) for s in statuses] == [
            ("a.css", True, True),
            ("b.css", False, False),
        ]
        assert statuses[0].full_path == base_dir / "a.css"
        manager.unload()

    @pytest.mark.asyncio
    async def test_unload_keeps_registry(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        manager = HotReloadManager(host)
        manager.add("a.css")

        manager.unload()

        assert len(manager.engine) == 0
        assert manager.registry.list() == [WatchEntry("a.css", True)]

    @pytest.mark.asyncio
    async def test_persisted_state_round_trips(self, host: FakeHost, make_file) -> None:
        for name in ["a.css", "b.css", "c.css"]:
            make_file(name)
        manager = HotReloadManager(host)
        manager.add("c.css")
        manager.add("a.css")
        manager.add("b.css")
        manager.deactivate("a.css")
        manager.remove("b.css")
        manager.set_interval(750)
        manager.unload()

        restored = HotReloadManager(host)
        restored.load()

        assert restored.registry.list() == manager.registry.list()
        assert restored.interval_ms == 750
        assert [w.path for w in restored.engine.live()] == ["c.css"]
        restored.unload()

    @pytest.mark.asyncio
    async def test_save_failure_is_reported_not_raised(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        host.fail_save = True
        manager = HotReloadManager(host)

        assert manager.add("a.css") is True
        assert any("Failed to save settings" in n for n in host.notifications)
        manager.unload()


class TestReload:
    """Reloading resources into the host cache."""

    @pytest.mark.asyncio
    async def test_change_reloads_into_cache(self, host: FakeHost, make_file) -> None:
        path = make_file("a.css", "old")
        manager = HotReloadManager(host)
        manager.interval_ms = 10
        manager.add("a.css")

        bump(path, "new content")
        for _ in range(200):
            if host.cache.get("a.css") == b"new content":
                break
            await asyncio.sleep(0.01)
        await manager.drain()

        assert host.cache["a.css"] == b"new content"
        assert host.reload_requests >= 1
        manager.unload()

    @pytest.mark.asyncio
    async def test_read_failure_is_reported(self, host: FakeHost, make_file) -> None:
        make_file("a.css")
        host.fail_reads.add("a.css")
        manager = HotReloadManager(host)

        assert await manager.reload_file("a.css") is False

        assert "a.css" not in host.cache
        assert host.reload_requests == 0
        assert any("Failed to read 'a.css'" in n for n in host.notifications)

    @pytest.mark.asyncio
    async def test_reload_all_rereads_cached_files(self, host: FakeHost, make_file) -> None:
        make_file("a.css", "fresh a")
        make_file("b.css", "fresh b")
        host.cache = {"a.css": b"stale", "b.css": b"stale"}
        manager = HotReloadManager(host)

        assert await manager.reload_all() == 2

        assert host.cache == {"a.css": b"fresh a", "b.css": b"fresh b"}
        assert host.reload_requests == 2

"""Root pytest configuration for all tests."""

from __future__ import annotations

import copy
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from hotreload.config import reset_config

# Redundant with pyproject.toml but ensures the plugin is loaded
pytest_plugins = ("pytest_asyncio",)


class FakeHost:
    """In-memory Host that records everything the manager does."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.blob: dict[str, Any] | None = None
        self.saves: list[dict[str, Any]] = []
        self.notifications: list[str] = []
        self.cache: dict[str, bytes] = {}
        self.reload_requests = 0
        self.fail_save = False
        self.fail_reads: set[str] = set()

    async def read_file(self, path: str) -> bytes:
        if path in self.fail_reads:
            raise PermissionError(f"cannot read {path}")
        return (self.base_path / path).read_bytes()

    def load_settings_blob(self) -> dict[str, Any] | None:
        return copy.deepcopy(self.blob)

    def save_settings_blob(self, blob: dict[str, Any]) -> None:
        if self.fail_save:
            raise OSError("disk full")
        self.blob = copy.deepcopy(blob)
        self.saves.append(copy.deepcopy(blob))

    def resolve_base_path(self) -> Path:
        return self.base_path

    def notify_user(self, message: str) -> None:
        self.notifications.append(message)

    def update_resource(self, path: str, content: bytes) -> None:
        self.cache[path] = content

    def request_reload(self) -> None:
        self.reload_requests += 1

    def cached_paths(self) -> list[str]:
        return list(self.cache)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user-level config and env overrides out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("HOTRELOAD_LOG", raising=False)
    monkeypatch.delenv("HOTRELOAD_LOG_LEVEL", raising=False)
    reset_config()


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Resolved base directory that watched paths are relative to."""
    base = tmp_path / "vault"
    base.mkdir()
    return base.resolve()


@pytest.fixture
def host(base_dir: Path) -> FakeHost:
    return FakeHost(base_dir)


@pytest.fixture
def make_file(base_dir: Path) -> Callable[..., Path]:
    """Create a file under the base directory and return its path."""

    def _make(relative: str, content: str = "body { color: red; }") -> Path:
        path = base_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _make

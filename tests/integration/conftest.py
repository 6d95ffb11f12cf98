"""Fixtures for integration tests running real shell processes."""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Protocol

import pytest

from hash_autorun.director import RunDirector
from hash_autorun.models.config import RunnerConfig


class WriteScriptFn(Protocol):
    """Protocol for script creation function."""

    def __call__(self, name: str, body: str | bytes) -> Path:
        """Write a script into the media directory and return its path."""


class MakeDirectorFn(Protocol):
    """Protocol for director creation function."""

    def __call__(
        self,
        *,
        decoder: str | None = None,
        encoder: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> RunDirector:
        """Create a director with the given filters."""


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Directory standing in for a mounted removable drive."""
    media = tmp_path / "media"
    media.mkdir()
    return media.resolve()


@pytest.fixture
def write_script(media_dir: Path) -> WriteScriptFn:
    """Return a function writing scripts into the media directory."""

    def _write(name: str, body: str | bytes) -> Path:
        path = media_dir / name
        if isinstance(body, bytes):
            path.write_bytes(body)
        else:
            path.write_text(body)
        return path

    return _write


@pytest.fixture
def make_director() -> MakeDirectorFn:
    """Return a function creating directors for a test host."""

    def _make(
        *,
        decoder: str | None = None,
        encoder: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> RunDirector:
        config = RunnerConfig(host_id="test-host", decoder=decoder, encoder=encoder)
        if clock is None:
            return RunDirector(config=config)
        return RunDirector(config=config, clock=clock)

    return _make


def run_dirs(directory: Path) -> list[Path]:
    """List run directories created inside ``directory``."""
    return sorted(p for p in directory.iterdir() if p.is_dir() and "-run-" in p.name)


@pytest.fixture
def list_run_dirs() -> Callable[[Path], list[Path]]:
    """Return a function listing run directories."""
    return run_dirs

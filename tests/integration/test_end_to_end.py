"""End-to-end scenarios through the sweep and CLI entry points."""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeAlias

import pytest

from hash_autorun.cli import run
from hash_autorun.debouncer import MountDebouncer
from hash_autorun.errors import RunFailedError
from hash_autorun.models.config import RunnerConfig
from hash_autorun.models.event import MountEvent
from hash_autorun.mounts.base import MountCallback, MountEventSource
from hash_autorun.sweeper import sweep_directory

from .conftest import MakeDirectorFn, WriteScriptFn

ListRunDirsFn: TypeAlias = Callable[[Path], list[Path]]


class TestScenarios:
    """Reference scenarios for a single script and a directory."""

    async def test_plain_script_captures_stdout(
        self,
        write_script: WriteScriptFn,
        make_director: MakeDirectorFn,
        list_run_dirs: ListRunDirsFn,
    ) -> None:
        """A plain script leaves only stdout.log in its run directory."""
        path = write_script("t.ha.sh", "echo hi\n")

        await make_director().execute(path)

        (run_dir,) = list_run_dirs(path.parent)
        assert (run_dir / "stdout.log").read_text() == "hi\n"
        assert not (run_dir / "stderr.log").exists()
        assert not (run_dir / "error.log").exists()

    async def test_failing_decoder_leaves_error_log(
        self,
        write_script: WriteScriptFn,
        make_director: MakeDirectorFn,
        list_run_dirs: ListRunDirsFn,
    ) -> None:
        """A failing decoder leaves only error.log describing the failure."""
        path = write_script("t.ha.sh", "echo hi\n")

        with pytest.raises(RunFailedError):
            await make_director(decoder="false").execute(path)

        (run_dir,) = list_run_dirs(path.parent)
        assert [p.name for p in run_dir.iterdir()] == ["error.log"]
        assert (run_dir / "error.log").read_text().startswith(
            "DecodeFailedError: Decode failed"
        )

    async def test_sweep_runs_only_visible_top_level_scripts(
        self,
        media_dir: Path,
        write_script: WriteScriptFn,
        make_director: MakeDirectorFn,
        list_run_dirs: ListRunDirsFn,
    ) -> None:
        """Hidden scripts, subdirectories and other files are left alone."""
        write_script("a.ha.sh", "echo a\n")
        write_script(".hidden.ha.sh", "echo hidden\n")
        write_script("readme.txt", "not a script\n")
        (media_dir / "sub").mkdir()
        write_script("sub/b.ha.sh", "echo b\n")

        report = await sweep_directory(media_dir, make_director())

        run_dirs = list_run_dirs(media_dir)
        assert len(run_dirs) == 1
        assert run_dirs[0].name.startswith("a-run-")
        assert (run_dirs[0] / "stdout.log").read_text() == "a\n"
        assert list_run_dirs(media_dir / "sub") == []
        assert report.ran == [media_dir / "a.ha.sh"]
        assert report.skipped == [media_dir / "readme.txt"]

    async def test_sweep_survives_failing_script(
        self,
        media_dir: Path,
        write_script: WriteScriptFn,
        make_director: MakeDirectorFn,
        list_run_dirs: ListRunDirsFn,
    ) -> None:
        """A failing encoder on one script does not stop the others."""
        write_script("a.ha.sh", "echo a\n")
        write_script("b.ha.sh", "true\n")

        report = await sweep_directory(media_dir, make_director(encoder="false"))

        assert report.failed == [media_dir / "a.ha.sh"]
        assert report.ran == [media_dir / "b.ha.sh"]
        assert len(list_run_dirs(media_dir)) == 2


class TestCli:
    """Tests for the CLI run function against real scripts."""

    async def test_directory_exit_code(
        self, media_dir: Path, write_script: WriteScriptFn
    ) -> None:
        """Returns 0 after a clean sweep."""
        write_script("a.ha.sh", "echo a\n")

        exit_code = await run(media_dir, RunnerConfig(host_id="cli-host"))

        assert exit_code == 0

    async def test_unsupported_file_exit_code(
        self, write_script: WriteScriptFn, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Returns 1 for a file named directly without the suffix."""
        path = write_script("notes.txt", "echo hi\n")

        with caplog.at_level(logging.ERROR):
            exit_code = await run(path, RunnerConfig(host_id="cli-host"))

        assert exit_code == 1
        assert "Unsupported script" in caplog.text


class FakeMountSource(MountEventSource):
    """Source emitting one mount notification per call to ``mount``."""

    def __init__(self) -> None:
        self.callback: MountCallback | None = None

    def start(self, callback: MountCallback) -> None:
        """Remember the callback."""
        self.callback = callback

    def stop(self) -> None:
        """Forget the callback."""
        self.callback = None

    def mount(self, mount_point: str, timestamp: float) -> None:
        """Report ``mount_point`` as newly mounted."""
        assert self.callback is not None
        event = MountEvent(mounted=frozenset({mount_point}), timestamp=timestamp)
        self.callback(event)


class TestWatch:
    """Tests for mount-triggered sweeps."""

    async def test_mount_burst_sweeps_once(
        self,
        media_dir: Path,
        write_script: WriteScriptFn,
        make_director: MakeDirectorFn,
        list_run_dirs: ListRunDirsFn,
    ) -> None:
        """Duplicate notifications spawn each script once."""
        write_script("a.ha.sh", "touch done\n")
        director = make_director()
        source = FakeMountSource()
        debouncer = MountDebouncer(
            mount_point=str(media_dir),
            source=source,
            on_trigger=lambda: sweep_directory(media_dir, director, wait=False),
        )

        task = asyncio.create_task(debouncer.run())
        await asyncio.sleep(0)
        source.mount(str(media_dir), 50.0)
        source.mount(str(media_dir), 50.3)
        await asyncio.sleep(0.5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.gather(*director._reapers)

        (run_dir,) = list_run_dirs(media_dir)
        assert (run_dir / "done").exists()
        assert source.callback is None

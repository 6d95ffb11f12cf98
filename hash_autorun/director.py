"""Run director executing one script inside its own run directory."""

import asyncio
import io
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from hash_autorun.errors import (
    DecodeFailedError,
    HashError,
    RunFailedError,
    TransformFailedError,
    UnsupportedScriptError,
)
from hash_autorun.models.config import RunnerConfig
from hash_autorun.models.script import MAX_SCRIPT_SIZE, Script
from hash_autorun.shell import build_environment, spawn_shell
from hash_autorun.transform import transform

log = logging.getLogger(__name__)

RUN_DIR_TIME_FORMAT = "%Y-%m-%d-%H-%M-%S"
STDOUT_LOG = "stdout.log"
STDERR_LOG = "stderr.log"
ERROR_LOG = "error.log"


def utcnow() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def run_dir_name(script: Script, started_at: datetime) -> str:
    """Build the run directory name for a script started at ``started_at``."""
    return f"{script.name}-run-{started_at.strftime(RUN_DIR_TIME_FORMAT)}"


@dataclass(frozen=True, kw_only=True)
class RunDirector:
    """Decodes, executes and records scripts.

    In wait mode the script's output is captured, encoded and persisted. In
    no-wait mode the script is only spawned; a reaper task collects its exit
    status in the background so callers never block on it.
    """

    config: RunnerConfig
    clock: Callable[[], datetime] = utcnow
    _reapers: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False, compare=False
    )

    async def execute(self, path: Path, *, wait: bool = True) -> Path:
        """Run the script at ``path`` and return its run directory.

        Args:
            path: Path of the script file
            wait: Wait for the script and persist its output when True,
                spawn it and return immediately when False

        Returns:
            The run directory created for this attempt

        Raises:
            ScriptNotFoundError: If the path is not an existing file
            UnsupportedScriptError: If the path lacks the script suffix
            RunFailedError: If the run failed after its directory was created;
                the cause is written to error.log
            OSError: If the script path or run directory cannot be set up

        """
        script = Script.from_path(path)
        run_dir = self._create_run_dir(script)
        log.info("Running %s in %s", script.path, run_dir)

        try:
            await self._run(script, run_dir, wait=wait)
        except (HashError, OSError) as e:
            log.error("Run of %s failed: %s", script.path, e)
            try:
                (run_dir / ERROR_LOG).write_text(f"{type(e).__name__}: {e}\n")
            except OSError as write_error:
                log.error("Cannot write %s: %s", run_dir / ERROR_LOG, write_error)
            raise RunFailedError(run_dir, e) from e

        return run_dir

    def _create_run_dir(self, script: Script) -> Path:
        """Create a fresh run directory beside the script.

        Runs started within the same second get a numeric suffix.
        """
        base = script.parent / run_dir_name(script, self.clock())
        candidate, attempt = base, 1
        while True:
            try:
                candidate.mkdir()
            except FileExistsError:
                attempt += 1
                candidate = base.with_name(f"{base.name}-{attempt}")
                continue
            return candidate

    def environment(self, script: Script, run_dir: Path) -> dict[str, str]:
        """Environment exposed to the script and to its filters."""
        return build_environment(
            {
                "HASH_HOST": self.config.host_id,
                "HASH_DECODER": self.config.decoder or "",
                "HASH_ENCODER": self.config.encoder or "",
                "HASH_SCRIPT": script.name,
                "HASH_SCRIPT_PATH": str(script.path),
                "HASH_RUN_DIR": str(run_dir),
            }
        )

    async def _run(self, script: Script, run_dir: Path, *, wait: bool) -> None:
        size = script.path.stat().st_size
        if size > MAX_SCRIPT_SIZE:
            raise UnsupportedScriptError(
                script.path, f"{size} bytes exceeds limit of {MAX_SCRIPT_SIZE}"
            )

        env = self.environment(script, run_dir)
        text = await self._decode(script, env)

        if wait:
            process = await spawn_shell(
                text,
                cwd=run_dir,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
            log.info(
                "Script %s exited with status %s", script.name, process.returncode
            )

            await self._persist(run_dir / STDOUT_LOG, stdout, env)
            await self._persist(run_dir / STDERR_LOG, stderr, env)
        else:
            process = await spawn_shell(text, cwd=run_dir, env=env)
            log.info("Spawned %s (pid %d)", script.name, process.pid)
            reaper = asyncio.create_task(self._reap(script, process))
            self._reapers.add(reaper)
            reaper.add_done_callback(self._reapers.discard)

    async def _decode(self, script: Script, env: Mapping[str, str]) -> str:
        """Decode the script body into shell text."""
        decoded = io.BytesIO()
        try:
            await transform(
                script.path.read_bytes(), decoded, self.config.decoder, env=env
            )
        except TransformFailedError as e:
            raise DecodeFailedError(e.command, e.returncode, e.stderr) from e

        try:
            text = decoded.getvalue().decode("utf-8")
        except UnicodeDecodeError as e:
            raise UnsupportedScriptError(
                script.path, "decoded script is not UTF-8 text"
            ) from e
        if "\x00" in text:
            raise UnsupportedScriptError(script.path, "decoded script contains NUL")
        return text

    async def _persist(
        self, path: Path, output: bytes, env: Mapping[str, str]
    ) -> None:
        """Encode non-empty output and write it to ``path``."""
        if not output:
            return
        encoded = io.BytesIO()
        await transform(output, encoded, self.config.encoder, env=env)
        path.write_bytes(encoded.getvalue())

    async def _reap(self, script: Script, process: asyncio.subprocess.Process) -> None:
        returncode = await process.wait()
        log.info(
            "Script %s (pid %d) exited with status %d",
            script.name,
            process.pid,
            returncode,
        )

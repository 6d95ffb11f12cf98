"""Command interpreter dispatch.

Every external command (decoders, encoders and script bodies) runs through
``sh -c`` so that it may use shell syntax.
"""

import asyncio
import os
from collections.abc import Mapping
from pathlib import Path
from typing import IO, TypeAlias

SHELL = "sh"

Stream: TypeAlias = int | IO[bytes] | None


def build_environment(overrides: Mapping[str, str]) -> dict[str, str]:
    """Return the inherited process environment extended with ``overrides``."""
    return {**os.environ, **overrides}


async def spawn_shell(
    command: str,
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    stdin: Stream = asyncio.subprocess.DEVNULL,
    stdout: Stream = asyncio.subprocess.DEVNULL,
    stderr: Stream = asyncio.subprocess.DEVNULL,
) -> asyncio.subprocess.Process:
    """Start ``command`` under the system shell without waiting for it.

    Raises:
        OSError: If the shell cannot be spawned

    """
    return await asyncio.create_subprocess_exec(
        SHELL,
        "-c",
        command,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdin=stdin,
        stdout=stdout,
        stderr=stderr,
    )

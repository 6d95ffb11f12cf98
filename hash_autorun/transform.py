"""Byte stream filtering through external shell commands."""

import asyncio
import logging
from collections.abc import Mapping
from typing import BinaryIO

from hash_autorun.errors import TransformFailedError
from hash_autorun.shell import spawn_shell

log = logging.getLogger(__name__)


async def transform(
    source: bytes,
    sink: BinaryIO,
    command: str | None,
    *,
    env: Mapping[str, str] | None = None,
) -> None:
    """Pass ``source`` through ``command`` and write the result to ``sink``.

    Without a command the bytes are copied verbatim. With a command, the
    source is fed to its standard input and its standard output is written
    to the sink only once the command exited successfully.

    Args:
        source: Bytes to filter
        sink: Binary stream receiving the filtered bytes
        command: Shell command line of the filter, or None for passthrough
        env: Environment of the filter process (inherited when None)

    Raises:
        TransformFailedError: If the filter exits with a non-zero status
        OSError: If the filter cannot be spawned

    """
    if command is None:
        sink.write(source)
        return

    process = await spawn_shell(
        command,
        env=env,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate(source)
    returncode = process.returncode if process.returncode is not None else -1

    if stderr:
        log.debug("Filter '%s' stderr: %s", command, stderr.decode(errors="replace"))

    if returncode != 0:
        raise TransformFailedError(command, returncode, stderr)

    sink.write(stdout)

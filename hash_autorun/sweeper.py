"""Directory sweeps running every eligible script once."""

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from hash_autorun.director import RunDirector
from hash_autorun.errors import HashError, RunFailedError, UnsupportedScriptError

log = logging.getLogger(__name__)

HIDDEN_PREFIX = "."


@dataclass(frozen=True, kw_only=True)
class SweepReport:
    """Outcome of one sweep, as paths of the entries handed to the director."""

    ran: Sequence[Path]
    failed: Sequence[Path]
    skipped: Sequence[Path]


def list_candidates(directory: Path) -> Sequence[Path]:
    """List the visible regular entries of ``directory`` in listing order."""
    with os.scandir(directory) as entries:
        return [
            Path(entry.path)
            for entry in entries
            if not entry.name.startswith(HIDDEN_PREFIX) and not entry.is_dir()
        ]


async def sweep_directory(
    directory: Path, director: RunDirector, *, wait: bool = True
) -> SweepReport:
    """Run every eligible script found directly inside ``directory``.

    Per-file failures are logged and never abort the sweep. Files without
    the script suffix are skipped quietly.

    Raises:
        OSError: If the directory cannot be listed

    """
    ran: list[Path] = []
    failed: list[Path] = []
    skipped: list[Path] = []

    for path in list_candidates(directory):
        try:
            await director.execute(path, wait=wait)
        except UnsupportedScriptError as e:
            log.debug("Skipping %s: %s", path, e.reason)
            skipped.append(path)
        except RunFailedError as e:
            log.error("Script evaluation error: %s (see %s)", e.cause, e.run_dir)
            failed.append(path)
        except (HashError, OSError) as e:
            log.error("Script evaluation error: %s", e)
            failed.append(path)
        else:
            ran.append(path)

    log.info(
        "Swept %s: %d ran, %d failed, %d skipped",
        directory,
        len(ran),
        len(failed),
        len(skipped),
    )
    return SweepReport(ran=ran, failed=failed, skipped=skipped)

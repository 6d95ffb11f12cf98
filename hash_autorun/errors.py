"""Error taxonomy for script discovery and execution."""

from pathlib import Path


class HashError(Exception):
    """Base class for all autorun errors."""


class ScriptNotFoundError(HashError):
    """Raised when a script path is missing or is not a regular file."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Script not found: {path}")
        self.path = path


class UnsupportedScriptError(HashError):
    """Raised when a file is not something this host executes."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Unsupported script: {path} ({reason})")
        self.path = path
        self.reason = reason


class TransformFailedError(HashError):
    """Raised when an external filter command exits with a non-zero status."""

    stage = "Transform"

    def __init__(self, command: str, returncode: int, stderr: bytes = b"") -> None:
        super().__init__(
            f"{self.stage} failed: '{command}' exited with status {returncode}"
        )
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class DecodeFailedError(TransformFailedError):
    """Raised when the configured decoder rejects a script body."""

    stage = "Decode"


class RunFailedError(HashError):
    """Raised when a run fails after its run directory was created.

    The cause has already been persisted to ``error.log`` inside ``run_dir``.
    """

    def __init__(self, run_dir: Path, cause: Exception) -> None:
        super().__init__(f"Run failed in {run_dir}: {cause}")
        self.run_dir = run_dir
        self.cause = cause

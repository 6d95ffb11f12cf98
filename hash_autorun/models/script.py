"""Script discovery and identity."""

from dataclasses import dataclass
from pathlib import Path

from hash_autorun.errors import ScriptNotFoundError, UnsupportedScriptError

SCRIPT_SUFFIX = ".ha.sh"
MAX_SCRIPT_SIZE = 655_360


def is_script_name(name: str) -> bool:
    """Check whether a file name carries the script suffix."""
    return name.endswith(SCRIPT_SUFFIX)


@dataclass(frozen=True, kw_only=True)
class Script:
    """A validated script file.

    ``path`` is absolute with symlinks resolved, so run directories derived
    from it stay stable. ``name`` is the file name without the suffix.
    """

    path: Path
    name: str

    @classmethod
    def from_path(cls, path: Path) -> "Script":
        """Validate ``path`` and build its canonical identity.

        Raises:
            UnsupportedScriptError: If the name lacks the script suffix
            ScriptNotFoundError: If the path is not an existing regular file
            OSError: If the path cannot be canonicalized

        """
        if not is_script_name(path.name):
            raise UnsupportedScriptError(path, f"name must end with {SCRIPT_SUFFIX}")
        if not path.is_file():
            raise ScriptNotFoundError(path)

        return cls(
            path=path.resolve(strict=True),
            name=path.name.removesuffix(SCRIPT_SUFFIX),
        )

    @property
    def parent(self) -> Path:
        """Directory holding the script, where run directories are created."""
        return self.path.parent

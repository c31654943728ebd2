"""Local destination filesystem operations used by the mirror walker."""

import logging
from pathlib import Path
from typing import Optional

from ..exceptions import LocalDirectoryError, LocalStatError
from .path_stack import SEPARATOR

logger = logging.getLogger(__name__)


class LocalFS:
    """Destination directory tree with an explicitly tracked current directory.

    ``enter_directory`` and ``leave_directory`` move this object's notion of
    the current directory; the process working directory is never changed.
    Every name is resolved relative to the current directory.
    """

    def __init__(self, root: Path):
        """Initialize the local filesystem view.

        Args:
            root: Destination root directory (must exist)
        """
        self.root = Path(root)
        self._parts: list[str] = []

    @property
    def _current(self) -> Path:
        return self.root.joinpath(*self._parts)

    def current_working_path(self) -> Path:
        """Return the absolute path of the current directory (diagnostics)."""
        return self._current

    def relative_path(self) -> str:
        """Return the current directory relative to the root, "" at the root.

        Uses the same format as ``PathStack.current_path()``.
        """
        return "".join(part + SEPARATOR for part in self._parts)

    def path_for(self, name: str) -> Path:
        """Return the path of ``name`` inside the current directory."""
        return self._current / name

    def create_directory_if_absent(self, name: str) -> None:
        """Create a directory in the current directory unless it exists.

        Raises:
            LocalDirectoryError: If creation fails for any reason other than
                the directory already existing
        """
        path = self.path_for(name)
        try:
            path.mkdir(mode=0o755)
            logger.debug("Created directory %s", path)
        except FileExistsError as e:
            if not path.is_dir():
                raise LocalDirectoryError(
                    f"couldn't mkdir {name} in {self._current}: "
                    f"a non-directory with that name exists",
                    name=name,
                    context_path=self.relative_path(),
                    errno=e.errno,
                ) from e
        except OSError as e:
            raise LocalDirectoryError(
                f"couldn't mkdir {name} in {self._current}, errno: {e.errno}",
                name=name,
                context_path=self.relative_path(),
                errno=e.errno,
            ) from e

    def enter_directory(self, name: str) -> None:
        """Make ``name`` the current directory.

        Raises:
            LocalDirectoryError: If ``name`` is not a directory
        """
        path = self.path_for(name)
        if not path.is_dir():
            raise LocalDirectoryError(
                f"couldn't enter {name} in {self._current}: not a directory",
                name=name,
                context_path=self.relative_path(),
            )
        self._parts.append(name)

    def leave_directory(self) -> None:
        """Return to the parent of the current directory.

        Raises:
            LocalDirectoryError: If already at the root or the current
                directory disappeared
        """
        if not self._parts:
            raise LocalDirectoryError(
                f"couldn't leave {self.root}: already at the destination root",
                context_path="",
            )
        if not self._current.is_dir():
            raise LocalDirectoryError(
                f"couldn't leave {self._current}: directory vanished",
                name=self._parts[-1],
                context_path=self.relative_path(),
            )
        self._parts.pop()

    def stat_by_name(self, name: str) -> Optional[int]:
        """Return the size of ``name`` in the current directory.

        Returns:
            Size in bytes, or None if nothing with that name exists

        Raises:
            LocalStatError: If stat fails for a reason other than not-found
        """
        path = self.path_for(name)
        try:
            return path.stat().st_size
        except FileNotFoundError:
            return None
        except OSError as e:
            raise LocalStatError(
                f"couldn't stat {name} in {self._current}, errno: {e.errno}",
                name=name,
                context_path=self.relative_path(),
                errno=e.errno,
            ) from e

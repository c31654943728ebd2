"""In-memory record of the destination directory currently entered."""

import os

from ..exceptions import PathStackError

SEPARATOR = "/"


def is_valid_segment(name: str) -> bool:
    """Check if a name can be used as a single path component.

    Examples:
        >>> is_valid_segment("Music")
        True
        >>> is_valid_segment("a/b")
        False
        >>> is_valid_segment("..")
        False
    """
    if not name or name in (".", ".."):
        return False
    if SEPARATOR in name or "\0" in name:
        return False
    if os.sep != SEPARATOR and os.sep in name:
        return False
    return True


class PathStack:
    """Ordered stack of directory names from the destination root to the leaf.

    The stack is pushed right after a directory has been entered and popped
    right before it is left, so ``current_path()`` always names the directory
    the walker is in without asking the filesystem.

    Examples:
        >>> stack = PathStack()
        >>> stack.push("DCIM")
        >>> stack.push("Camera")
        >>> stack.current_path()
        'DCIM/Camera/'
        >>> stack.pop()
        'Camera'
        >>> stack.depth()
        1
    """

    def __init__(self) -> None:
        self._segments: list[str] = []

    def push(self, segment: str) -> None:
        """Append a directory name.

        Raises:
            PathStackError: If ``segment`` is not a single path component
        """
        if not is_valid_segment(segment):
            raise PathStackError(f"Invalid path segment: {segment!r}")
        self._segments.append(segment)

    def pop(self) -> str:
        """Remove and return the last directory name.

        Raises:
            PathStackError: If the stack is empty
        """
        if not self._segments:
            raise PathStackError("pop from empty path stack")
        return self._segments.pop()

    def current_path(self) -> str:
        """Return the relative path with a trailing separator ("" at the root)."""
        return "".join(segment + SEPARATOR for segment in self._segments)

    def depth(self) -> int:
        """Return the number of segments."""
        return len(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self):
        return iter(tuple(self._segments))

    def __repr__(self) -> str:
        return f"PathStack({self.current_path()!r})"

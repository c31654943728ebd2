"""Decide whether a remote file has to be fetched."""

import logging
from dataclasses import dataclass
from typing import Optional

from .local_fs import LocalFS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyDecision:
    """Outcome of comparing a remote file with its local counterpart."""

    copy: bool
    """True if the file must be fetched"""

    reason: str
    """Human-readable reason for this decision"""

    local_size: Optional[int] = None
    """Size of the local file, None if it does not exist"""


class SyncDecision:
    """Compares a remote file's declared size with the local file's size.

    Size is the only criterion: no hashing, no timestamps.
    """

    def __init__(self, local_fs: LocalFS):
        self.local_fs = local_fs

    def explain(self, remote_name: str, declared_size: Optional[int]) -> CopyDecision:
        """Compare a remote file against the current local directory.

        Args:
            remote_name: Name of the remote file
            declared_size: Size reported by the device, None if unknown

        Returns:
            CopyDecision describing the outcome

        Raises:
            LocalStatError: If the local file can't be inspected
        """
        local_size = self.local_fs.stat_by_name(remote_name)

        if local_size is None:
            decision = CopyDecision(True, "New remote file")
        elif declared_size is None:
            decision = CopyDecision(
                True, "Remote size unknown (abstract file)", local_size
            )
        elif local_size != declared_size:
            decision = CopyDecision(
                True,
                f"Size differs (local {local_size} vs remote {declared_size})",
                local_size,
            )
        else:
            decision = CopyDecision(
                False, "Files are identical (same size)", local_size
            )

        logger.debug(
            "%s%s: %s -> %s",
            self.local_fs.relative_path(),
            remote_name,
            decision.reason,
            "copy" if decision.copy else "skip",
        )
        return decision

    def should_copy(self, remote_name: str, declared_size: Optional[int]) -> bool:
        """Return True if ``remote_name`` must be fetched."""
        return self.explain(remote_name, declared_size).copy

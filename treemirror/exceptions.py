"""Exceptions raised by treemirror."""

from typing import Optional


class MirrorError(Exception):
    """Base exception for all treemirror errors."""


# =============================================================================
# Remote (device bridge) errors - recoverable per listing / per file
# =============================================================================


class MirrorAPIError(MirrorError):
    """Base exception for errors reported by the device bridge API."""


class MirrorConfigError(MirrorAPIError):
    """The client is missing required configuration."""


class MirrorAuthenticationError(MirrorAPIError):
    """Invalid API key or unauthorized access."""


class MirrorPermissionError(MirrorAPIError):
    """Access to a resource was forbidden."""


class MirrorNotFoundError(MirrorAPIError):
    """The requested device resource does not exist."""


class MirrorRateLimitError(MirrorAPIError):
    """The bridge asked us to slow down."""


class MirrorNetworkError(MirrorAPIError):
    """Transport-level failure talking to the bridge."""


class MirrorInvalidResponseError(MirrorAPIError):
    """The bridge answered with something that is not the expected JSON."""


class MirrorDownloadError(MirrorAPIError):
    """Fetching file content failed."""


# =============================================================================
# Fatal errors - abort the whole mirror run
# =============================================================================


class MirrorAbort(MirrorError):
    """A fatal condition; the mirror run must stop immediately.

    The local mirror is left in whatever partial state it reached.
    """


class PathStackError(MirrorAbort):
    """The path stack was used incorrectly (empty pop, invalid segment)."""


class LocalDirectoryError(MirrorAbort):
    """Creating, entering or leaving a local directory failed."""

    def __init__(
        self,
        message: str,
        name: str = "",
        context_path: str = "",
        errno: Optional[int] = None,
    ):
        super().__init__(message)
        self.name = name
        self.context_path = context_path
        self.errno = errno


class LocalStatError(MirrorAbort):
    """Stat on a local file failed for a reason other than not-found."""

    def __init__(
        self,
        message: str,
        name: str = "",
        context_path: str = "",
        errno: Optional[int] = None,
    ):
        super().__init__(message)
        self.name = name
        self.context_path = context_path
        self.errno = errno


class FailureBudgetExceeded(MirrorAbort):
    """Too many file transfers failed during one run."""

    def __init__(self, failures: int, threshold: int):
        super().__init__(
            f"Aborting: {failures} transfer failures exceed the limit of {threshold}"
        )
        self.failures = failures
        self.threshold = threshold


class RemoteCycleError(MirrorAbort):
    """The remote tree reported a container as its own ancestor."""

    def __init__(self, container_id: object, context_path: str = ""):
        super().__init__(
            f"Remote container {container_id} appears twice on the path "
            f"'{context_path}' - refusing to recurse into a cycle"
        )
        self.container_id = container_id
        self.context_path = context_path

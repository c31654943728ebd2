"""treemirror - mirror a remote device file tree onto the local filesystem."""

from .api import DeviceClient
from .exceptions import (
    FailureBudgetExceeded,
    LocalDirectoryError,
    LocalStatError,
    MirrorAbort,
    MirrorAPIError,
    MirrorAuthenticationError,
    MirrorConfigError,
    MirrorDownloadError,
    MirrorError,
    MirrorInvalidResponseError,
    MirrorNetworkError,
    MirrorNotFoundError,
    MirrorPermissionError,
    MirrorRateLimitError,
    PathStackError,
    RemoteCycleError,
)
from .models import ROOT_NODE_ID, DeviceInfo, NodeKind, RemoteNode, StorageInfo
from .remote_tree import ClientRemoteTree, RemoteTree

__all__ = [
    "DeviceClient",
    "ClientRemoteTree",
    "RemoteTree",
    "RemoteNode",
    "NodeKind",
    "StorageInfo",
    "DeviceInfo",
    "ROOT_NODE_ID",
    "MirrorError",
    "MirrorAPIError",
    "MirrorAuthenticationError",
    "MirrorConfigError",
    "MirrorDownloadError",
    "MirrorInvalidResponseError",
    "MirrorNetworkError",
    "MirrorNotFoundError",
    "MirrorPermissionError",
    "MirrorRateLimitError",
    "MirrorAbort",
    "PathStackError",
    "LocalDirectoryError",
    "LocalStatError",
    "FailureBudgetExceeded",
    "RemoteCycleError",
]

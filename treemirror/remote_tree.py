"""Access to the remote tree: listing children and fetching file content."""

import logging
from collections.abc import Generator
from pathlib import Path
from typing import Optional, Protocol

from .api import DeviceClient
from .exceptions import MirrorAPIError
from .models import ROOT_NODE_ID, RemoteNode, StorageInfo
from .utils import DEFAULT_PER_PAGE, format_node_id

logger = logging.getLogger(__name__)


class RemoteTree(Protocol):
    """What the mirror needs from a remote hierarchical store.

    Failures of ``list_children`` and ``fetch_file`` are not raised; they are
    pushed onto an error stack the caller inspects with ``get_errors`` and
    resets with ``clear_errors``.
    """

    def list_storages(self) -> list[StorageInfo]: ...

    def list_children(
        self, storage_id: int, container_id: Optional[int]
    ) -> list[RemoteNode]: ...

    def fetch_file(self, node: RemoteNode, destination: Path) -> bool: ...

    def get_errors(self) -> list[str]: ...

    def clear_errors(self) -> None: ...


class ClientRemoteTree:
    """RemoteTree backed by the device bridge HTTP API."""

    def __init__(self, client: DeviceClient, per_page: int = DEFAULT_PER_PAGE):
        """Initialize the remote tree.

        Args:
            client: Device bridge client
            per_page: Number of entries requested per page (default: 100)
        """
        self.client = client
        self.per_page = per_page
        self._errors: list[str] = []

    def _push_error(self, message: str) -> None:
        logger.debug("Remote error: %s", message)
        self._errors.append(message)

    def get_errors(self) -> list[str]:
        """Return a snapshot of the errors recorded since the last clear."""
        return list(self._errors)

    def clear_errors(self) -> None:
        """Forget all recorded errors."""
        self._errors.clear()

    def list_storages(self) -> list[StorageInfo]:
        """List the storage partitions of the device.

        Returns:
            Storages, empty if the listing failed (see ``get_errors``)
        """
        try:
            result = self.client.get_storages()
        except MirrorAPIError as e:
            self._push_error(f"Could not list storages: {e}")
            return []
        return [StorageInfo.from_dict(s) for s in result.get("storages", [])]

    def list_children(
        self, storage_id: int, container_id: Optional[int] = ROOT_NODE_ID
    ) -> list[RemoteNode]:
        """Get all children of a container with automatic pagination.

        A failed listing yields no children at all, never a partial list.
        A single malformed entry fails the whole listing.

        Args:
            storage_id: Storage partition to list
            container_id: Container id (None for the storage root)

        Returns:
            Child nodes in the order provided by the device
        """
        children: list[RemoteNode] = []
        current_page = 1

        try:
            while True:
                result = self.client.get_file_entries(
                    storage_id=storage_id,
                    parent_id=container_id,
                    per_page=self.per_page,
                    page=current_page,
                )
                children.extend(RemoteNode.from_dict(e) for e in result.get("data", []))

                current = result.get("current_page")
                last = result.get("last_page")
                if current is not None and last is not None and current < last:
                    current_page += 1
                    continue
                break
        except MirrorAPIError as e:
            self._push_error(
                f"Could not list container {format_node_id(container_id)} "
                f"on storage {storage_id}: {e}"
            )
            return []
        except (KeyError, TypeError, ValueError) as e:
            self._push_error(
                f"Malformed entry in container {format_node_id(container_id)} "
                f"on storage {storage_id}: {e!r}"
            )
            return []

        logger.debug(
            "Listed %d children of %s on storage %s",
            len(children),
            format_node_id(container_id),
            storage_id,
        )
        return children

    def fetch_file(self, node: RemoteNode, destination: Path) -> bool:
        """Download a file node's content.

        Args:
            node: File node to fetch
            destination: Local path to write

        Returns:
            True on success, False if the transfer failed (see ``get_errors``)
        """
        try:
            self.client.download_file(node.id, destination)
        except (MirrorAPIError, OSError) as e:
            self._push_error(f"Could not fetch {node.name} (id {node.id}): {e}")
            return False
        return True

    def iter_tree(
        self,
        storage_id: int,
        container_id: Optional[int] = ROOT_NODE_ID,
        path_prefix: str = "",
        visited: Optional[set[int]] = None,
    ) -> "Generator[tuple[RemoteNode, str], None, None]":
        """Recursively iterate every node below a container, depth first.

        Args:
            storage_id: Storage partition to walk
            container_id: Container to start from (None for the storage root)
            path_prefix: Path prefix for nested folders
            visited: Set of visited container ids (for cycle detection)

        Yields:
            Tuples of (RemoteNode, relative_path)
        """
        if visited is None:
            visited = set()

        if container_id is not None:
            if container_id in visited:
                logger.warning(
                    "Container %s already visited, skipping cycle", container_id
                )
                return
            visited.add(container_id)

        for node in self.list_children(storage_id, container_id):
            node_path = f"{path_prefix}/{node.name}" if path_prefix else node.name
            yield node, node_path
            if node.is_container:
                yield from self.iter_tree(
                    storage_id,
                    container_id=node.id,
                    path_prefix=node_path,
                    visited=visited,
                )

"""Data models for device bridge responses."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .utils import ABSTRACT_FILE_SIZES

# Synthetic id of the top of every storage tree
ROOT_NODE_ID = None


class NodeKind(str, Enum):
    """Kinds of remote nodes."""

    CONTAINER = "container"
    """A folder; may have children"""

    FILE = "file"
    """A regular file with content"""

    ABSTRACT_FILE = "abstract"
    """A virtual entry (e.g. a playlist) without real content"""


@dataclass(frozen=True)
class RemoteNode:
    """A single entry of the remote tree."""

    id: int
    """Remote node identifier"""

    parent_id: Optional[int]
    """Parent node id (None for direct children of the storage root)"""

    storage_id: int
    """Storage partition this node lives on"""

    name: str
    """Entry name"""

    kind: NodeKind
    """Container, file or abstract file"""

    declared_size: Optional[int] = None
    """Size reported by the device, None when unknown / not applicable"""

    filetype: str = ""
    """Free-form file type description"""

    @property
    def is_container(self) -> bool:
        """Check if this node is a folder."""
        return self.kind == NodeKind.CONTAINER

    @property
    def is_abstract(self) -> bool:
        """Check if this node is a virtual entry without content."""
        return self.kind == NodeKind.ABSTRACT_FILE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RemoteNode":
        """Create a RemoteNode from a file entry JSON object.

        Args:
            data: Entry as returned by ``GET /file-entries``

        Returns:
            RemoteNode instance
        """
        entry_type = data.get("type") or ""
        raw_size = data.get("file_size")
        declared_size: Optional[int] = None
        if raw_size is not None:
            declared_size = int(raw_size)
            if declared_size in ABSTRACT_FILE_SIZES:
                declared_size = None

        if entry_type == "folder":
            kind = NodeKind.CONTAINER
            declared_size = None
        elif entry_type == "abstract" or declared_size is None:
            kind = NodeKind.ABSTRACT_FILE
        else:
            kind = NodeKind.FILE

        parent_id = data.get("parent_id")
        return cls(
            id=int(data["id"]),
            parent_id=int(parent_id) if parent_id else None,
            storage_id=int(data.get("storage_id") or 0),
            name=data.get("name") or "",
            kind=kind,
            declared_size=declared_size,
            filetype=data.get("filetype") or entry_type,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "storage_id": self.storage_id,
            "name": self.name,
            "kind": self.kind.value,
            "declared_size": self.declared_size,
            "filetype": self.filetype,
        }


@dataclass(frozen=True)
class StorageInfo:
    """An independent storage partition of the device."""

    id: int
    description: str = ""
    max_capacity: Optional[int] = None
    free_space: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StorageInfo":
        """Create StorageInfo from a storage JSON object."""
        return cls(
            id=int(data["id"]),
            description=data.get("description") or "",
            max_capacity=data.get("max_capacity"),
            free_space=data.get("free_space"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "description": self.description,
            "max_capacity": self.max_capacity,
            "free_space": self.free_space,
        }


@dataclass(frozen=True)
class DeviceInfo:
    """Identification of the connected device."""

    friendly_name: Optional[str] = None
    manufacturer: str = ""
    model: str = ""
    serial: str = ""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "DeviceInfo":
        """Create DeviceInfo from a ``GET /device`` response."""
        device = data.get("device") or {}
        return cls(
            friendly_name=device.get("friendly_name"),
            manufacturer=device.get("manufacturer") or "",
            model=device.get("model") or "",
            serial=device.get("serial") or "",
        )

    @property
    def display_name(self) -> str:
        """Name to show to the user."""
        return self.friendly_name if self.friendly_name else "(NULL)"

"""Utility functions and constants for treemirror."""

# =============================================================================
# Constants
# =============================================================================

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Entries requested per page when listing a container
DEFAULT_PER_PAGE: int = 100

# Download stream chunk size
DOWNLOAD_CHUNK_SIZE: int = 8192

# A run is aborted once more transfer failures than this have occurred
MAX_TRANSFER_FAILURES: int = 10

# Size reported by devices for abstract files (no real content)
ABSTRACT_FILE_SIZES: frozenset = frozenset({-1, 0xFFFFFFFF})


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


def format_node_id(node_id: object) -> str:
    """Format a remote node id for display.

    Examples:
        >>> format_node_id(None)
        'root'
        >>> format_node_id(42)
        '42'
    """
    if node_id is None:
        return "root"
    return str(node_id)

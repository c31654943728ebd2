"""Recursive traversal that mirrors one remote storage tree locally."""

import logging
from typing import Callable, Optional

from ..exceptions import PathStackError, RemoteCycleError
from ..models import ROOT_NODE_ID, RemoteNode
from ..output import OutputFormatter
from ..remote_tree import RemoteTree
from ..utils import format_node_id, format_size
from .budget import FailureBudget
from .decision import SyncDecision
from .local_fs import LocalFS
from .path_stack import PathStack, is_valid_segment

logger = logging.getLogger(__name__)


def create_empty_stats() -> dict:
    """Create an empty statistics dictionary.

    Returns:
        Dictionary with zero counts for all stat categories
    """
    return {
        "directories": 0,
        "files": 0,
        "downloads": 0,
        "skips": 0,
        "failures": 0,
        "abstract": 0,
        "invalid": 0,
    }


class TreeWalker:
    """Depth-first mirror of a remote container hierarchy.

    For every child of a container the walker either creates, enters and
    recurses into the matching local directory, or asks the sync decision
    whether the file has to be fetched. The path stack and the local
    filesystem's current directory always move together.

    Examples:
        >>> local_fs = LocalFS(Path("/mirror"))
        >>> walker = TreeWalker(remote, local_fs, FailureBudget())
        >>> stats = walker.walk(storage_id=65537)
        >>> print(f"Fetched {stats['downloads']} files")
    """

    def __init__(
        self,
        remote: RemoteTree,
        local_fs: LocalFS,
        budget: FailureBudget,
        path_stack: Optional[PathStack] = None,
        decision: Optional[SyncDecision] = None,
        output: Optional[OutputFormatter] = None,
        include_abstract: bool = False,
        on_progress: Optional[Callable[[str], None]] = None,
    ):
        """Initialize the walker.

        Args:
            remote: Remote tree to read from
            local_fs: Destination filesystem, positioned at the destination root
            budget: Failure budget shared by the whole run
            path_stack: Path stack to maintain (a new empty one by default)
            decision: Sync decision (one bound to ``local_fs`` by default)
            output: Output formatter for user-facing diagnostics
            include_abstract: Also try to fetch abstract files
            on_progress: Called with the relative path of every visited file
        """
        self.remote = remote
        self.local_fs = local_fs
        self.budget = budget
        self.path_stack = path_stack if path_stack is not None else PathStack()
        self.decision = decision or SyncDecision(local_fs)
        self.output = output
        self.include_abstract = include_abstract
        self.on_progress = on_progress
        self.stats = create_empty_stats()
        self._ancestors: set[int] = set()

    def walk(self, storage_id: int, container_id: Optional[int] = ROOT_NODE_ID) -> dict:
        """Mirror everything below a container of one storage.

        Args:
            storage_id: Storage partition to walk
            container_id: Container to start from (the storage root by default)

        Returns:
            Statistics dictionary

        Raises:
            MirrorAbort: On any fatal condition; the run must stop
        """
        if self.path_stack.depth() != 0:
            raise PathStackError(
                f"walk started with a non-empty path stack: {self.path_stack!r}"
            )
        self._ancestors = set()
        self._walk(storage_id, container_id)
        self._check_coherence()
        if self.path_stack.depth() != 0:
            raise PathStackError(
                f"walk finished with a non-empty path stack: {self.path_stack!r}"
            )
        return self.stats

    def _walk(self, storage_id: int, container_id: Optional[int]) -> None:
        if container_id is not None:
            self._ancestors.add(container_id)

        children = self.remote.list_children(storage_id, container_id)
        self._report_remote_errors(
            f"listing {format_node_id(container_id)} "
            f"in '{self.path_stack.current_path()}'"
        )

        for child in children:
            self._dispatch(storage_id, child)

        if container_id is not None:
            self._ancestors.discard(container_id)

    def _dispatch(self, storage_id: int, child: RemoteNode) -> None:
        if not is_valid_segment(child.name):
            self.stats["invalid"] += 1
            self._warn(
                f"Skipping entry {child.id} with unusable name {child.name!r} "
                f"in '{self.path_stack.current_path()}'"
            )
            return

        if child.is_container:
            self._descend(storage_id, child.id, child.name)
        else:
            self._process_file(child)

    def _descend(self, storage_id: int, node_id: int, name: str) -> None:
        """Create, enter, recurse into and leave one directory."""
        if node_id in self._ancestors:
            raise RemoteCycleError(node_id, self.path_stack.current_path())

        logger.info("ENTER DIRECTORY: %s%s", self.path_stack.current_path(), name)

        self.local_fs.create_directory_if_absent(name)
        self.local_fs.enter_directory(name)
        self.path_stack.push(name)
        self._check_coherence()
        self.stats["directories"] += 1

        self._walk(storage_id, node_id)

        self.path_stack.pop()
        self.local_fs.leave_directory()
        self._check_coherence()

        logger.info("LEAVE DIRECTORY: %s%s", self.path_stack.current_path(), name)

    def _process_file(self, node: RemoteNode) -> None:
        context = self.path_stack.current_path()
        relative_path = f"{context}{node.name}"
        self.stats["files"] += 1
        if self.on_progress is not None:
            self.on_progress(relative_path)

        size_text = (
            "abstract file"
            if node.declared_size is None
            else format_size(node.declared_size)
        )
        logger.debug(
            "File %s: id=%s parent=%s size=%s type=%s",
            relative_path,
            node.id,
            format_node_id(node.parent_id),
            size_text,
            node.filetype,
        )

        decision = self.decision.explain(node.name, node.declared_size)
        if not decision.copy:
            self.stats["skips"] += 1
            return

        if node.is_abstract and not self.include_abstract:
            self.stats["abstract"] += 1
            logger.info("Not fetching abstract file %s", relative_path)
            return

        destination = self.local_fs.path_for(node.name)
        if self.remote.fetch_file(node, destination):
            self.stats["downloads"] += 1
            if self.output is not None:
                self.output.info(f"Fetched: {relative_path} ({size_text})")
            return

        errors = self.remote.get_errors()
        self.remote.clear_errors()
        cause = "; ".join(errors) if errors else "unknown error"
        message = (
            f"couldn't write {node.name} in dir "
            f"{self.local_fs.current_working_path()}: {cause}"
        )
        logger.error(message)
        if self.output is not None:
            self.output.error(message)

        self.stats["failures"] += 1
        self.budget.record_failure()
        self.budget.check()

    def _report_remote_errors(self, context: str) -> None:
        """Report and clear whatever the remote tree recorded."""
        errors = self.remote.get_errors()
        if not errors:
            return
        for error in errors:
            self._warn(f"Remote error while {context}: {error}")
        self.remote.clear_errors()

    def _check_coherence(self) -> None:
        stack_path = self.path_stack.current_path()
        fs_path = self.local_fs.relative_path()
        if stack_path != fs_path:
            raise PathStackError(
                f"Path stack '{stack_path}' diverged from local directory '{fs_path}'"
            )

    def _warn(self, message: str) -> None:
        logger.warning(message)
        if self.output is not None:
            self.output.warning(message)

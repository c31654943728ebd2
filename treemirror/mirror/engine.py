"""Mirror engine: runs the tree walker over every storage of a device."""

import logging
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..exceptions import MirrorAbort
from ..models import ROOT_NODE_ID, StorageInfo
from ..output import OutputFormatter
from ..remote_tree import RemoteTree
from ..utils import MAX_TRANSFER_FAILURES
from .budget import FailureBudget
from .local_fs import LocalFS
from .path_stack import PathStack
from .walker import TreeWalker, create_empty_stats

logger = logging.getLogger(__name__)


class MirrorEngine:
    """Mirrors the storages of a remote device into a local directory."""

    def __init__(
        self,
        remote: RemoteTree,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize mirror engine.

        Args:
            remote: Remote tree to mirror
            output: Output formatter for displaying progress/status
        """
        self.remote = remote
        self.output = output or OutputFormatter()

    def mirror(
        self,
        destination: Path,
        storage_ids: Optional[Iterable[int]] = None,
        include_abstract: bool = False,
        max_failures: int = MAX_TRANSFER_FAILURES,
    ) -> dict:
        """Mirror the device into ``destination``.

        Storages are processed one after the other, each with a fresh path
        stack starting at ``destination``. The failure budget is shared by
        all storages of the run.

        Args:
            destination: Existing local directory to mirror into
            storage_ids: Only mirror these storages (all by default)
            include_abstract: Also try to fetch abstract files
            max_failures: Transfer failures tolerated before aborting

        Returns:
            Dictionary with mirror statistics

        Raises:
            ValueError: If ``destination`` is not an existing directory
            MirrorAbort: On any fatal condition

        Examples:
            >>> engine = MirrorEngine(ClientRemoteTree(client))
            >>> stats = engine.mirror(Path("/backup/phone"))
            >>> print(f"Fetched {stats['downloads']} files")
        """
        destination = Path(destination)
        if not destination.exists():
            raise ValueError(f"Destination does not exist: {destination}")
        if not destination.is_dir():
            raise ValueError(f"Destination is not a directory: {destination}")

        storages = self._select_storages(storage_ids)
        budget = FailureBudget(threshold=max_failures)
        stats = create_empty_stats()
        stats["storages"] = 0

        start_time = time.time()
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=self.output.quiet or self.output.json_output,
        ) as progress:
            task = progress.add_task("Mirroring...", total=None)

            def on_progress(relative_path: str) -> None:
                progress.update(task, description=f"Checking {relative_path}")

            for storage in storages:
                self.output.info(
                    f"Mirroring storage {storage.id} "
                    f"({storage.description or 'no description'}) into {destination}"
                )
                walker = TreeWalker(
                    self.remote,
                    LocalFS(destination),
                    budget,
                    path_stack=PathStack(),
                    output=self.output,
                    include_abstract=include_abstract,
                    on_progress=on_progress,
                )
                try:
                    storage_stats = walker.walk(storage.id, ROOT_NODE_ID)
                except MirrorAbort as e:
                    logger.error(
                        "Aborting mirror in storage %s at '%s': %s",
                        storage.id,
                        walker.path_stack.current_path(),
                        e,
                    )
                    raise
                for key, value in storage_stats.items():
                    stats[key] += value
                stats["storages"] += 1

        logger.debug("Mirror took %.2fs", time.time() - start_time)
        self._display_summary(stats)
        return stats

    def _select_storages(
        self, storage_ids: Optional[Iterable[int]]
    ) -> list[StorageInfo]:
        storages = self.remote.list_storages()
        for error in self.remote.get_errors():
            logger.warning(error)
            self.output.warning(error)
        self.remote.clear_errors()

        if storage_ids is None:
            return storages

        wanted = set(storage_ids)
        selected = [s for s in storages if s.id in wanted]
        missing = wanted - {s.id for s in selected}
        for storage_id in sorted(missing):
            self.output.warning(f"Storage {storage_id} not found on device")
        return selected

    def _display_summary(self, stats: dict) -> None:
        """Display mirror summary."""
        if self.output.quiet or self.output.json_output:
            return
        self.output.print("")
        self.output.success(
            f"Mirrored {stats['storages']} storage(s): "
            f"{stats['directories']} directories, {stats['files']} files"
        )
        self.output.info(f"  Fetched: {stats['downloads']}")
        self.output.info(f"  Up to date: {stats['skips']}")
        if stats["abstract"]:
            self.output.info(f"  Abstract (not fetched): {stats['abstract']}")
        if stats["invalid"]:
            self.output.info(f"  Skipped (unusable name): {stats['invalid']}")
        if stats["failures"]:
            self.output.warning(f"{stats['failures']} file(s) failed to transfer")

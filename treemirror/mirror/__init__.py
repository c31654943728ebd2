"""Mirror engine for treemirror - recursive one-way copy of a remote tree."""

from .budget import FailureBudget
from .decision import CopyDecision, SyncDecision
from .engine import MirrorEngine
from .local_fs import LocalFS
from .path_stack import PathStack, is_valid_segment
from .walker import TreeWalker, create_empty_stats

__all__ = [
    "MirrorEngine",
    "TreeWalker",
    "PathStack",
    "is_valid_segment",
    "SyncDecision",
    "CopyDecision",
    "FailureBudget",
    "LocalFS",
    "create_empty_stats",
]

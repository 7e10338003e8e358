"""
IssueKeeper - Record Store

Storage of intent records with optimistic concurrency, finalizer-gated
deletion and change notification.
"""

from issuekeeper.store.base import ChangeCallback, RecordStore
from issuekeeper.store.file import FileRecordStore
from issuekeeper.store.manifest import ManifestError, load_manifest, parse_manifest
from issuekeeper.store.memory import InMemoryRecordStore
from issuekeeper.store.patch import apply_merge_patch, create_merge_patch

__all__ = [
    # Stores
    "ChangeCallback",
    "FileRecordStore",
    "InMemoryRecordStore",
    "RecordStore",
    # Manifests
    "ManifestError",
    "load_manifest",
    "parse_manifest",
    # Patches
    "apply_merge_patch",
    "create_merge_patch",
]

"""
In-memory version store for document revision history.

Keeps one append-only log of immutable revisions per document, with
lookup, line-set comparison, restore-as-new-revision, a retention cap and
history statistics. Nothing here survives a process restart.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..core.exceptions import InvalidArgumentError, NotFoundError
from ..core.models import (
    ANONYMOUS_AUTHOR,
    Comparison,
    HistoryExport,
    Revision,
    RevisionAction,
    RevisionStats,
    TimelineEntry,
    VersionPage,
    VersionStats,
)
from ..core.sanitizer import sanitize
from .diff_engine import diff_lines

logger = logging.getLogger(__name__)

DEFAULT_MAX_VERSIONS = 50
DEFAULT_KEEP_COUNT = 10
DEFAULT_PAGE_SIZE = 50


class _RevisionClock:
    """Issues strictly increasing microsecond ticks, even if the wall clock stalls."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last = 0

    def tick(self) -> Tuple[str, datetime]:
        with self._lock:
            now = time.time_ns() // 1000
            if now <= self._last:
                now = self._last + 1
            self._last = now
        timestamp = datetime.fromtimestamp(now / 1_000_000, tz=timezone.utc)
        return f"{now:016d}", timestamp


def _require(message: str, *values: Any) -> None:
    if not all(values):
        raise InvalidArgumentError(message)


class VersionStore:
    """
    Authoritative per-document revision log.

    Each document's list is guarded by its own lock so that append plus
    retention trim is one atomic step and reads see a consistent snapshot.
    """

    def __init__(self, max_versions: int = DEFAULT_MAX_VERSIONS, default_keep_count: int = DEFAULT_KEEP_COUNT):
        if max_versions < 0:
            raise InvalidArgumentError("max_versions must not be negative")
        self.max_versions = max_versions
        self.default_keep_count = default_keep_count

        self._logs: Dict[str, List[Revision]] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._clock = _RevisionClock()

    def _lock_for(self, document_id: str, create: bool = False) -> Optional[threading.RLock]:
        """Per-document lock; unknown documents only get one when ``create`` is set."""
        with self._registry_lock:
            lock = self._locks.get(document_id)
            if lock is None and create:
                lock = threading.RLock()
                self._locks[document_id] = lock
                self._logs[document_id] = []
            return lock

    def _snapshot(self, document_id: str) -> List[Revision]:
        """Copy of the log in creation order (oldest first)."""
        lock = self._lock_for(document_id)
        if lock is None:
            return []
        with lock:
            return list(self._logs[document_id])

    @staticmethod
    def _trim(log: List[Revision], keep: int) -> int:
        """Drop oldest entries until ``keep`` remain; the newest always stays."""
        keep = max(keep, 1)
        excess = len(log) - keep
        if excess <= 0:
            return 0
        del log[:excess]
        return excess

    def document_ids(self) -> List[str]:
        with self._registry_lock:
            return sorted(doc_id for doc_id, log in self._logs.items() if log)

    def save_version(
        self,
        document_id: str,
        content: str,
        author_id: Optional[str] = None,
        action: str = RevisionAction.EDIT.value,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Revision:
        """
        Append a new revision to a document's history.

        Args:
            document_id: Owning document
            content: Raw content; sanitized before it is stored
            author_id: Acting user (default: anonymous)
            action: Why the revision was created (edit, auto-save, restore, import, ...)
            extra: Free-form caller metadata

        Returns:
            The created Revision
        """
        _require("Document ID and content are required", document_id, content)

        if isinstance(action, RevisionAction):
            action = action.value
        clean_content = sanitize(content)
        if not clean_content:
            raise InvalidArgumentError("Content is empty after sanitization")
        clean_author = sanitize(author_id or ANONYMOUS_AUTHOR)
        clean_action = sanitize(action or RevisionAction.EDIT.value)

        with self._lock_for(document_id, create=True):
            # Ticking under the document lock keeps id order equal to log order.
            revision_id, timestamp = self._clock.tick()
            revision = Revision(
                id=revision_id,
                document_id=document_id,
                content=clean_content,
                author_id=clean_author,
                action=clean_action,
                timestamp=timestamp,
                stats=RevisionStats.from_content(clean_content),
                extra=dict(extra or {}),
            )
            log = self._logs[document_id]
            log.append(revision)
            evicted = self._trim(log, self.max_versions)

        logger.debug(
            "Saved revision %s for document %s (%s, %d words)",
            revision.id, document_id, revision.action, revision.stats.word_count,
        )
        if evicted:
            logger.debug("Retention cap evicted %d revision(s) from %s", evicted, document_id)

        return revision

    def get_versions(self, document_id: str) -> List[Revision]:
        """All retained revisions, newest first. Unknown documents yield []."""
        _require("Document ID is required", document_id)
        return sorted(
            self._snapshot(document_id),
            key=lambda r: (r.timestamp, r.id),
            reverse=True,
        )

    def list_versions(self, document_id: str, offset: int = 0, limit: int = DEFAULT_PAGE_SIZE) -> VersionPage:
        """Paginated view over ``get_versions``."""
        if offset < 0 or limit < 0:
            raise InvalidArgumentError("offset and limit must not be negative")
        versions = self.get_versions(document_id)
        return VersionPage(
            versions=versions[offset:offset + limit],
            total=len(versions),
            offset=offset,
            limit=limit,
        )

    def get_version(self, document_id: str, version_id: str) -> Optional[Revision]:
        """Look up one revision; absence is reported as ``None``."""
        _require("Document ID and version ID are required", document_id, version_id)
        for revision in self._snapshot(document_id):
            if revision.id == version_id:
                return revision
        return None

    def get_latest_version(self, document_id: str) -> Optional[Revision]:
        versions = self.get_versions(document_id)
        return versions[0] if versions else None

    def compare_versions(self, document_id: str, version_id1: str, version_id2: str) -> Comparison:
        """
        Compare two revisions of one document.

        ``added`` holds lines of version 2 missing from version 1 and
        ``removed`` the reverse, so swapping the ids swaps the two lists.

        Raises:
            NotFoundError: If either revision is not in the document's history
        """
        _require("Document ID and both version IDs are required", document_id, version_id1, version_id2)

        snapshot = {r.id: r for r in self._snapshot(document_id)}
        first = snapshot.get(version_id1)
        second = snapshot.get(version_id2)
        if first is None or second is None:
            raise NotFoundError("One or both versions not found")

        diff = diff_lines(first.content, second.content)
        return Comparison(version1=first, version2=second, added=diff.added, removed=diff.removed)

    def restore_version(self, document_id: str, version_id: str, author_id: Optional[str] = None) -> Revision:
        """
        Bring back an earlier revision as a new head revision.

        History is never rewritten: the target stays where it is and a copy
        of its content is appended with action ``restore``.

        Raises:
            NotFoundError: If the revision is not in the document's history
        """
        target = self.get_version(document_id, version_id)
        if target is None:
            raise NotFoundError("Version not found")

        restored = self.save_version(
            document_id,
            target.content,
            author_id,
            RevisionAction.RESTORE.value,
            {
                "restored_from": version_id,
                "original_timestamp": target.timestamp,
            },
        )
        logger.info("Restored %s from revision %s as %s", document_id, version_id, restored.id)
        return restored

    def get_version_stats(self, document_id: str) -> VersionStats:
        versions = self.get_versions(document_id)
        if not versions:
            return VersionStats()

        total_words = sum(v.stats.word_count for v in versions)
        average = int(total_words / len(versions) + 0.5)

        return VersionStats(
            total_versions=len(versions),
            first_version=versions[-1],
            last_version=versions[0],
            average_word_count=average,
            total_edits=len([v for v in versions if v.action == RevisionAction.EDIT.value]),
            timeline=[
                TimelineEntry(timestamp=v.timestamp, action=v.action, word_count=v.stats.word_count)
                for v in versions
            ],
        )

    def cleanup_old_versions(self, document_id: str, keep_count: Optional[int] = None) -> int:
        """
        Keep only the most recent ``keep_count`` revisions.

        Args:
            document_id: Document to trim
            keep_count: Revisions to keep (default: the store's default keep count);
                0 still keeps the newest revision

        Returns:
            Number of revisions discarded
        """
        _require("Document ID is required", document_id)
        if keep_count is None:
            keep_count = self.default_keep_count
        if keep_count < 0:
            raise InvalidArgumentError("keepCount must not be negative")

        lock = self._lock_for(document_id)
        if lock is None:
            return 0
        with lock:
            log = self._logs[document_id]
            if len(log) <= keep_count:
                return 0
            removed = self._trim(log, keep_count)

        logger.info("Cleaned up %d old revision(s) of %s", removed, document_id)
        return removed

    def export_version_history(self, document_id: str) -> HistoryExport:
        return HistoryExport(
            document_id=document_id,
            exported_at=datetime.now(timezone.utc),
            versions=self.get_versions(document_id),
        )

    @staticmethod
    def history_filename(document_id: str) -> str:
        return f"version-history-{document_id}.json"

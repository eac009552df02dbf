"""
Data model for document revision history.

A document is only a grouping key; its state is the ordered log of
immutable ``Revision`` records kept by the version store.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

ANONYMOUS_AUTHOR = "anonymous"


class RevisionAction(str, Enum):
    """Known reasons a revision gets created. Other tags are allowed."""

    EDIT = "edit"
    AUTO_SAVE = "auto-save"
    RESTORE = "restore"
    IMPORT = "import"


@dataclass(frozen=True)
class RevisionStats:
    """Counts captured when a revision is created; never recomputed."""

    word_count: int = 0
    character_count: int = 0
    line_count: int = 0

    @classmethod
    def from_content(cls, content: str) -> RevisionStats:
        return cls(
            word_count=len(content.split()),
            character_count=len(content),
            line_count=content.count("\n") + 1,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "word_count": self.word_count,
            "character_count": self.character_count,
            "line_count": self.line_count,
        }


@dataclass(frozen=True)
class Revision:
    """One immutable saved snapshot of a document's content."""

    id: str
    document_id: str
    content: str
    author_id: str
    action: str
    timestamp: datetime
    stats: RevisionStats
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Private read-only copy; callers cannot reach into the stored log.
        object.__setattr__(self, "extra", MappingProxyType(copy.deepcopy(dict(self.extra))))

    def to_dict(self, include_content: bool = True) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {
            "id": self.id,
            "document_id": self.document_id,
            "author_id": self.author_id,
            "action": self.action,
            "timestamp": self.timestamp.isoformat(),
            "stats": self.stats.to_dict(),
            "extra": _jsonable(self.extra),
        }
        if include_content:
            data["content"] = self.content
        return data


@dataclass
class Comparison:
    """Line-set comparison between two revisions of one document."""

    version1: Revision
    version2: Revision
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def removed_count(self) -> int:
        return len(self.removed)

    @property
    def total_changes(self) -> int:
        return self.added_count + self.removed_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version1": self.version1.to_dict(),
            "version2": self.version2.to_dict(),
            "differences": {
                "added": list(self.added),
                "removed": list(self.removed),
                "added_count": self.added_count,
                "removed_count": self.removed_count,
                "total_changes": self.total_changes,
            },
        }


@dataclass(frozen=True)
class TimelineEntry:
    timestamp: datetime
    action: str
    word_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "action": self.action,
            "word_count": self.word_count,
        }


@dataclass
class VersionStats:
    """Summary of a document's retained history."""

    total_versions: int = 0
    first_version: Optional[Revision] = None
    last_version: Optional[Revision] = None
    average_word_count: int = 0
    total_edits: int = 0
    timeline: List[TimelineEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_versions": self.total_versions,
            "first_version": self.first_version.to_dict() if self.first_version else None,
            "last_version": self.last_version.to_dict() if self.last_version else None,
            "average_word_count": self.average_word_count,
            "total_edits": self.total_edits,
            "timeline": [entry.to_dict() for entry in self.timeline],
        }


@dataclass
class VersionPage:
    """A newest-first slice of a document's history."""

    versions: List[Revision]
    total: int
    offset: int
    limit: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "versions": [v.to_dict() for v in self.versions],
            "total": self.total,
            "offset": self.offset,
            "limit": self.limit,
            "has_more": self.has_more,
        }


@dataclass
class HistoryExport:
    """
    Metadata-only snapshot of a document's history.

    Revision content is deliberately left out: this is an audit export,
    not a backup.
    """

    document_id: str
    exported_at: datetime
    versions: List[Revision] = field(default_factory=list)

    @property
    def total_versions(self) -> int:
        return len(self.versions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "exported_at": self.exported_at.isoformat(),
            "total_versions": self.total_versions,
            "versions": [
                {
                    "id": v.id,
                    "timestamp": v.timestamp.isoformat(),
                    "author_id": v.author_id,
                    "action": v.action,
                    "stats": v.stats.to_dict(),
                }
                for v in self.versions
            ],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value

"""
Diff engine for comparing revision contents line by line.

``diff_lines`` is a coarse set-membership comparison: a line counts as
added when no equal line exists anywhere in the other text, regardless of
position. Reordered or duplicated lines are not changes. Reported counts
depend on this, so it must not be replaced with a minimal edit script.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class LineDiff:
    """Lines only in the second text (``added``) and only in the first (``removed``)."""

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

    def swapped(self) -> LineDiff:
        """The same diff seen from the other side."""
        return LineDiff(added=list(self.removed), removed=list(self.added))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": list(self.added),
            "removed": list(self.removed),
            "added_count": self.added_count,
            "removed_count": self.removed_count,
            "total_changes": self.total_changes,
        }


def split_lines(text: str) -> List[str]:
    """Split on newline only; an empty text is one empty line."""
    return text.split("\n")


def diff_lines(text_a: str, text_b: str) -> LineDiff:
    """
    Compare two texts as line sets.

    Args:
        text_a: Earlier text
        text_b: Later text

    Returns:
        LineDiff whose lists keep the order (and repeats) of the text they
        were taken from
    """
    lines_a = split_lines(text_a)
    lines_b = split_lines(text_b)

    seen_a = set(lines_a)
    seen_b = set(lines_b)

    return LineDiff(
        added=[line for line in lines_b if line not in seen_a],
        removed=[line for line in lines_a if line not in seen_b],
    )


def unified_diff(
    text_a: str,
    text_b: str,
    context_lines: int = 3,
    from_label: str = "version1",
    to_label: str = "version2",
) -> str:
    """
    Generate a unified text diff similar to git diff, for display only.

    Counts reported by ``diff_lines`` are unaffected by this view.
    """
    diff = difflib.unified_diff(
        split_lines(text_a),
        split_lines(text_b),
        fromfile=from_label,
        tofile=to_label,
        n=context_lines,
        lineterm="",
    )
    return "\n".join(diff)

"""
Document revision history and line-set comparison.
"""

from .version_control import VersionStore
from .diff_engine import LineDiff, diff_lines, unified_diff

__all__ = ["VersionStore", "LineDiff", "diff_lines", "unified_diff"]

"""
Summary Desk: summarize transcripts, then edit, version and export the summaries.
"""

__version__ = "0.1.0"

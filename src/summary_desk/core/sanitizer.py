"""
Content sanitizer applied to every string before it is stored or rendered.

Markup is parsed with BeautifulSoup. A small allow-list of inert inline tags
survives with all attributes removed; script-bearing elements are dropped
together with their content and every other tag is unwrapped so only its
text remains.

Character references are never decoded: a literal ``&`` stays a literal
``&``, and text-level angle brackets come out as ``&lt`` / ``&gt``. Neither
form carries a semicolon, so the quote and semicolon pass cannot break them
and a second run leaves the output unchanged.
"""

from __future__ import annotations

import re
import warnings
from typing import Any

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter

ALLOWED_TAGS = frozenset({"b", "i", "em", "strong", "u", "br", "p"})

# Removed together with everything inside them.
DROPPED_TAGS = [
    "script",
    "style",
    "iframe",
    "frame",
    "frameset",
    "object",
    "embed",
    "noscript",
    "noembed",
    "noframes",
    "template",
    "xmp",
    "title",
    "head",
    "svg",
    "math",
]

_QUOTES_AND_SEMICOLONS = re.compile(r"[\"'`;]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_ANGLE_BRACKETS = re.compile(r"[<>]")
_ANGLE_ESCAPES = {"<": "&lt", ">": "&gt"}

# Plain prose that happens to look like a URL or file name is still text here.
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


def _escape_angle_brackets(text: str) -> str:
    return _ANGLE_BRACKETS.sub(lambda m: _ANGLE_ESCAPES[m.group()], text)


_TEXT_FORMATTER = HTMLFormatter(entity_substitution=_escape_angle_brackets)


def _clean_markup(text: str) -> str:
    # Hide every "&" from the parser so no character reference gets decoded.
    soup = BeautifulSoup(text.replace("&", "&amp;"), "html.parser")

    while True:
        tag = soup.find(DROPPED_TAGS)
        if tag is None:
            break
        tag.decompose()

    # Comments, doctypes, CDATA sections and processing instructions
    for node in soup.find_all(string=lambda s: isinstance(s, PreformattedString)):
        node.extract()

    for tag in soup.find_all(True):
        if tag.name in ALLOWED_TAGS:
            tag.attrs = {}
        else:
            tag.unwrap()

    return soup.decode(formatter=_TEXT_FORMATTER)


def sanitize(value: Any) -> str:
    """
    Return a cleaned copy of ``value`` that is safe to store and render.

    Non-string values, ``None`` included, are coerced with ``str()`` and go
    through the same pipeline. Quotes, backticks, semicolons and ASCII
    control characters (including newlines) are removed and the result is
    stripped. The function is pure and idempotent.
    """
    text = value if isinstance(value, str) else str(value)

    text = _CONTROL_CHARS.sub("", text)
    if not text:
        return ""

    text = _clean_markup(text)
    text = _QUOTES_AND_SEMICOLONS.sub("", text)
    text = _CONTROL_CHARS.sub("", text)
    return text.strip()

"""Index page parsing — pull anchors out of directory-listing lines.

Repository index pages put one anchor per line, optionally inside a ``<pre>``
block::

    <pre><a href="../">../</a>
    <a href="org/">org/</a>                      12-Jan-2024 10:01    -
    <a href="a.jar">a.jar</a>                    12-Jan-2024 10:01  1.2 KB

Only that shape is recognised; this is a line matcher, not an HTML parser.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from .models import DirectoryEntry

_ANCHOR_PREFIXES = ("<a href=", "<pre><a href=")
_HREF_TOKEN = 'href="'
_CLOSE_TAG = "</a>"


def normalize_line(line: str) -> str:
    return line.replace("\t", "").lstrip(" ")


def parse_line(line: str) -> Optional[DirectoryEntry]:
    """Return the anchor on *line*, or None if it is not a well-formed one."""
    line = normalize_line(line).rstrip("\r\n")
    if not line.startswith(_ANCHOR_PREFIXES):
        return None

    anchor = line.find("<a ")
    href_start = line.find(_HREF_TOKEN, anchor)
    if href_start < 0:
        return None
    href_start += len(_HREF_TOKEN)
    href_end = line.find('"', href_start)
    if href_end < 0:
        return None
    href = line[href_start:href_end]

    label_start = line.find(">", href_end)
    if label_start < 0:
        return None
    label_start += 1
    label_end = line.find(_CLOSE_TAG, label_start)
    if label_end < 0:
        return None

    return DirectoryEntry(href=href, label=line[label_start:label_end])


def iter_entries(lines: Iterable[str]) -> Iterator[DirectoryEntry]:
    """Yield every well-formed entry from *lines*, skipping the rest."""
    for line in lines:
        entry = parse_line(line)
        if entry is not None:
            yield entry

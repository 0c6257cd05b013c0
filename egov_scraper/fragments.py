"""Substring-delimited fragment extraction over raw markup.

This is not an HTML parser. A fragment is the text strictly between the first
occurrence of a start marker and the next occurrence of an end marker after it.
Nested tags with the same name are not understood, so callers narrow the text
first (e.g. extract ``<tbody>`` before iterating ``<tr``) and pick markers that
cannot occur inside the fragment they want.
"""

from typing import Iterator


class FragmentNotFound(LookupError):
    """Raised when a start or end marker is missing from the text."""

    def __init__(self, start: str, end: str):
        super().__init__(f"no fragment between {start!r} and {end!r}")
        self.start = start
        self.end = end


def _locate(text: str, start: str, end: str, pos: int = 0):
    """Return (fragment_start, fragment_end) or None."""
    i = text.find(start, pos)
    if i < 0:
        return None
    begin = i + len(start)
    j = text.find(end, begin)
    if j < 0:
        return None
    return begin, j


def extract_one(text: str, start: str, end: str) -> str:
    span = _locate(text, start, end)
    if span is None:
        raise FragmentNotFound(start, end)
    return text[span[0]:span[1]]


def extract_all(text: str, start: str, end: str) -> Iterator[str]:
    """Yield every non-overlapping fragment, left to right.

    Scanning resumes after the end marker of the previous match, so the
    spans never overlap. The iterator is single-pass.
    """
    pos = 0
    while True:
        span = _locate(text, start, end, pos)
        if span is None:
            return
        yield text[span[0]:span[1]]
        pos = span[1] + len(end)


def cookie_value(cookie: str) -> str:
    """Value of a ``name=value; attr=...`` cookie string.

    >>> cookie_value("name=abc123; Path=/; HttpOnly")
    'abc123'
    """
    begin = cookie.find("=") + 1
    stop = cookie.find(";")
    if stop < 0:
        stop = len(cookie)
    return cookie[begin:stop]

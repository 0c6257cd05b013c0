"""Byte encoding detection for archive entries and their filenames.

Checks run in a fixed order and the first hit wins:

    UTF32, UTF16, BINARY, ASCII, JIS, UTF8, EUCJP, SJIS

The wide-text checks only look at the first NUL run before any high byte, so
most binary formats (PDF, images, office files) fall through to BINARY via
their low control bytes. Nothing matching returns None.
"""

from typing import Optional

from .models import Encoding

CODECS = {
    Encoding.UTF32: "utf-32",
    Encoding.UTF16: "utf-16",
    Encoding.ASCII: "ascii",
    Encoding.JIS: "iso2022_jp",
    Encoding.UTF8: "utf-8",
    Encoding.EUCJP: "euc_jp",
    Encoding.SJIS: "cp932",
}

_ESC = 0x1B
_TEXT_CONTROLS = {0x09, 0x0A, 0x0D}


def _first_nul_run(data: bytes, width: int) -> Optional[int]:
    """Index of the first run of ``width`` NULs, or None if a high byte comes first."""
    run = b"\x00" * width
    for i, b in enumerate(data):
        if b >= 0x80:
            return None
        if b == 0 and data[i:i + width] == run:
            return i
    return None


def _ascii_neighbour(data: bytes, pos: int, after: int) -> bool:
    nxt = data[pos + after] if pos + after < len(data) else None
    prev = data[pos - 1] if pos > 0 else None
    return any(b is not None and 0 < b < 0x80 for b in (nxt, prev))


def is_utf32(data: bytes) -> bool:
    if len(data) < 4:
        return False
    if data[:4] in (b"\x00\x00\xfe\xff", b"\xff\xfe\x00\x00"):
        return True
    pos = _first_nul_run(data, 3)
    return pos is not None and _ascii_neighbour(data, pos, 3)


def is_utf16(data: bytes) -> bool:
    if len(data) < 2:
        return False
    if data[:2] in (b"\xfe\xff", b"\xff\xfe"):
        return True
    pos = _first_nul_run(data, 1)
    return pos is not None and _ascii_neighbour(data, pos, 1)


def is_binary(data: bytes) -> bool:
    return any(b <= 0x07 or b == 0xFF for b in data)


def is_ascii(data: bytes) -> bool:
    return all(b < 0x80 and b != _ESC for b in data)


def is_jis(data: bytes) -> bool:
    """ISO-2022-JP: 7-bit bytes with a known escape sequence."""
    if any(b >= 0x80 for b in data):
        return False
    i = data.find(_ESC)
    while 0 <= i < len(data) - 2:
        seq = data[i + 1:i + 3]
        if seq in (b"$@", b"$B", b"$(", b"&@", b"(B", b"(I", b"(J"):
            return True
        i = data.find(_ESC, i + 1)
    return False


def is_utf8(data: bytes) -> bool:
    if any((b < 0x20 and b not in _TEXT_CONTROLS) or b == 0x7F for b in data):
        return False
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def is_eucjp(data: bytes) -> bool:
    i, n = 0, len(data)
    while i < n:
        b = data[i]
        if b < 0x80:
            i += 1
            continue
        if b < 0x8E or b == 0xFF:
            return False
        if b == 0x8E:  # half-width katakana
            if i + 1 < n and not 0xA1 <= data[i + 1] <= 0xDF:
                return False
            i += 2
        elif b == 0x8F:  # JIS X 0212
            if any(not 0xA1 <= c <= 0xFE for c in data[i + 1:i + 3]):
                return False
            i += 3
        elif 0xA1 <= b <= 0xFE:
            if i + 1 < n and not 0xA1 <= data[i + 1] <= 0xFE:
                return False
            i += 2
        else:
            return False
    return True


def is_sjis(data: bytes) -> bool:
    i, n = 0, len(data)
    while i < n:
        b = data[i]
        if b <= 0x80 or 0xA1 <= b <= 0xDF:
            i += 1
            continue
        if b == 0xA0 or b > 0xEF or i + 1 >= n:
            return False
        trail = data[i + 1]
        if trail < 0x40 or trail == 0x7F or trail > 0xFC:
            return False
        i += 2
    return True


_CHECKS = (
    (Encoding.UTF32, is_utf32),
    (Encoding.UTF16, is_utf16),
    (Encoding.BINARY, is_binary),
    (Encoding.ASCII, is_ascii),
    (Encoding.JIS, is_jis),
    (Encoding.UTF8, is_utf8),
    (Encoding.EUCJP, is_eucjp),
    (Encoding.SJIS, is_sjis),
)


def detect(data: bytes) -> Optional[Encoding]:
    if not data:
        return None
    for encoding, check in _CHECKS:
        if check(data):
            return encoding
    return None


def decode_name(raw: bytes, fallback: str) -> str:
    """Decode a zip entry name stored in a legacy encoding."""
    encoding = detect(raw)
    codec = CODECS.get(encoding)
    if codec is None:
        return fallback
    return raw.decode(codec, errors="replace")

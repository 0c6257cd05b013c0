"""Download zip attachments and turn their entries into upload-ready files.

Entry handling by detected content encoding:

    UTF8 / ASCII  -> text: decoded and re-encoded as UTF-8
    BINARY        -> bytes passed through
    UTF32         -> bytes passed through
    anything else -> dropped, one warning logged

Entry names written without the zip UTF-8 flag are recovered as raw bytes and
decoded with their own detected encoding (usually Shift_JIS from Windows).
"""

import io
import logging
import mimetypes
import zipfile
import zlib
from dataclasses import dataclass, field
from typing import Iterator, List

from .downloader import PortalHttp
from .encoding import CODECS, decode_name, detect
from .errors import ArchiveUnreadable, EncodingUndetectable
from .models import DEFAULT_USER_AGENT, ArchiveEntry, EntryKind, OutputFile, Session

logger = logging.getLogger("egov_scraper")

UTF8_NAME_FLAG = 0x800


@dataclass
class DecodedArchive:
    files: List[OutputFile] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def __iter__(self):
        return iter(self.files)

    def __len__(self):
        return len(self.files)


def content_type_for(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


def entry_name(info: zipfile.ZipInfo) -> str:
    if info.flag_bits & UTF8_NAME_FLAG:
        return info.filename
    # zipfile decodes unflagged names as cp437; undo that to get the raw bytes.
    try:
        raw = info.filename.encode("cp437")
    except UnicodeEncodeError:
        return info.filename
    return decode_name(raw, info.filename)


def read_entries(blob: bytes) -> Iterator[ArchiveEntry]:
    try:
        zf = zipfile.ZipFile(io.BytesIO(blob))
    except zipfile.BadZipFile as e:
        raise ArchiveUnreadable(f"not a zip archive ({len(blob)} bytes): {e}") from e

    with zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            try:
                data = zf.read(info)
            except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, OSError) as e:
                raise ArchiveUnreadable(f"cannot decompress {info.filename}: {e}") from e
            yield ArchiveEntry(filename=entry_name(info), data=data, encoding=detect(data))


def to_output_file(entry: ArchiveEntry) -> OutputFile:
    """Raises EncodingUndetectable for entries outside the supported set."""
    kind = entry.kind
    content_type = content_type_for(entry.filename)

    if kind is EntryKind.TEXT:
        text = entry.data.decode(CODECS[entry.encoding])
        return OutputFile(entry.filename, text.encode("utf-8"), content_type)
    if kind is EntryKind.BINARY or kind is EntryKind.WIDE_TEXT:
        return OutputFile(entry.filename, entry.data, content_type)

    detected = entry.encoding.value if entry.encoding else ""
    raise EncodingUndetectable(entry.filename, detected)


def decode_archive(blob: bytes) -> DecodedArchive:
    result = DecodedArchive()
    for entry in read_entries(blob):
        try:
            result.files.append(to_output_file(entry))
        except EncodingUndetectable as e:
            logger.warning(f"Skipped archive entry {e}")
            result.skipped.append(entry.filename)
    return result


def unpack(http: PortalHttp, session: Session, download_url: str,
           user_agent: str = DEFAULT_USER_AGENT) -> DecodedArchive:
    blob = http.fetch_bytes(download_url, headers=session.headers(user_agent))
    logger.debug(f"Downloaded {download_url} ({len(blob):,} bytes)")
    return decode_archive(blob)

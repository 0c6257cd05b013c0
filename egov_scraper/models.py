"""Data models for the filing scraper."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

DRIVE_FOLDER_PREFIX = "https://drive.google.com/drive/folders/"

# Placeholder marketing cookies the portal sets on every visitor.
_UTM_COOKIES = "utm_campaign=; utm_content=; utm_medium=; utm_source=organic; utm_term=;"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_3) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/13.0.5 Safari/605.1.15"
)

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ja-jp",
}


@dataclass(frozen=True)
class Credentials:
    login_id: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(login_id={self.login_id!r}, password='***')"


@dataclass(frozen=True)
class Client:
    """One row of the client roster. Read-only to the workflow."""
    name: str
    url: str
    drive: str

    @property
    def folder_id(self) -> str:
        return self.drive.replace(DRIVE_FOLDER_PREFIX, "").strip("/")

    @property
    def base_url(self) -> str:
        m = re.match(r"^https?:/{2,}(.*?)(?:/|\?|#|$)", self.url)
        if not m or not m.group(1):
            raise ValueError(f"not a portal URL: {self.url!r}")
        return "https://" + m.group(1)

    @property
    def login_url(self) -> str:
        return self.make_url("/login")

    def make_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path


@dataclass(frozen=True)
class Session:
    """Server-issued tokens for one client run. Never persisted or shared."""
    session_id: str
    session_x_key: str
    base_url: str

    def cookie_header(self) -> str:
        return (
            f"{_UTM_COOKIES}_smarthr_session_id={self.session_id}; {_UTM_COOKIES}"
            f" _smarthr_x_session_key={self.session_x_key}; "
        )

    def headers(self, user_agent: str = DEFAULT_USER_AGENT) -> dict:
        return {"Cookie": self.cookie_header(), "User-Agent": user_agent, **BROWSER_HEADERS}


def login_headers(session_id: str, user_agent: str = DEFAULT_USER_AGENT) -> dict:
    """Headers for the credential POST, which only knows the first cookie."""
    cookie = f"{_UTM_COOKIES} _smarthr_session_id={session_id}; {_UTM_COOKIES}"
    return {"Cookie": cookie, "User-Agent": user_agent, **BROWSER_HEADERS}


@dataclass
class FilingDetail:
    reference_number: str
    documents: List[str] = field(default_factory=list)   # official documents
    comments: List[str] = field(default_factory=list)    # comment notifications

    @property
    def download_links(self) -> List[str]:
        return self.documents + self.comments


class Encoding(str, Enum):
    """Byte encodings the detector can recognise."""
    UTF32 = "UTF32"
    UTF16 = "UTF16"
    BINARY = "BINARY"
    ASCII = "ASCII"
    JIS = "JIS"
    UTF8 = "UTF8"
    EUCJP = "EUCJP"
    SJIS = "SJIS"


class EntryKind(Enum):
    TEXT = "text"            # canonical UTF-8 text
    BINARY = "binary"
    WIDE_TEXT = "wide_text"  # 32-bit text, stored as raw bytes
    UNDETECTED = "undetected"

    @classmethod
    def classify(cls, encoding: Optional[Encoding]) -> "EntryKind":
        if encoding in (Encoding.UTF8, Encoding.ASCII):
            return cls.TEXT
        if encoding is Encoding.BINARY:
            return cls.BINARY
        if encoding is Encoding.UTF32:
            return cls.WIDE_TEXT
        return cls.UNDETECTED


@dataclass
class ArchiveEntry:
    filename: str                        # decoded name
    data: bytes                          # decompressed content
    encoding: Optional[Encoding] = None  # None when undetectable

    @property
    def kind(self) -> EntryKind:
        return EntryKind.classify(self.encoding)


@dataclass
class OutputFile:
    name: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class FilingOutcome:
    detail_link: str
    reference_number: Optional[str] = None
    uploaded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    status: str = "pending"  # pending, completed, failed
    error: Optional[str] = None


@dataclass
class ClientOutcome:
    client: str
    filings: List[FilingOutcome] = field(default_factory=list)
    status: str = "pending"  # pending, done, aborted
    error: Optional[str] = None

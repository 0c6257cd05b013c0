import io
import zipfile
from urllib.parse import parse_qs

import httpx
import pytest

from egov_scraper.config import AppConfig, HttpConfig
from egov_scraper.downloader import PortalHttp
from egov_scraper.models import Client, Credentials

BASE = "https://acme.smarthr.jp"

LOGIN_PAGE = """<html><body>
<form action="/login" method="post">
<input type="hidden" name="authenticity_token" value="tok-123" />
<input type="text" name="user[login]" />
</form></body></html>"""

TABLE_OPEN = "<table class='table valign-middle js-egov-requests-table'>"


def listing_row(status: str, href: str) -> str:
    return (
        "<tr>\n"
        "<td>2024/04/01</td>\n"
        f"<td><span class='badge'>{status}</span></td>\n"
        "<td>health insurance</td>\n"
        f'<td><a class="btn" href="{href}">detail</a></td>\n'
        "</tr>\n"
    )


def listing_page(rows) -> str:
    body = "".join(listing_row(status, href) for status, href in rows)
    return (
        "<html><body>\n"
        f"{TABLE_OPEN}\n<thead><tr><th>date</th><th>status</th></tr></thead>\n"
        f"<tbody>\n{body}</tbody>\n</table>\n</body></html>"
    )


def detail_page(reference="20240401123456789", documents=(), comments=()) -> str:
    parts = [f"<html><body><p>到達番号: {reference} </p>"]
    if documents is not None:
        links = "".join(f'<li><a href="{u}">doc</a></li>' for u in documents)
        parts.append(f"<div class='documents'><ul>{links}</ul></div>")
    if comments is not None:
        links = "".join(f'<li><a href="{u}">comment</a></li>' for u in comments)
        parts.append(f"<div class='comments'><ul>{links}</ul></div>")
    parts.append("</body></html>")
    return "\n".join(parts)


def make_zip(entries) -> bytes:
    """entries: list of (name, bytes). Names are stored as given."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries:
            zf.writestr(name, data)
    return buf.getvalue()


def make_legacy_name_zip(name: str, data: bytes, codec: str = "cp932") -> bytes:
    """Zip whose entry name is stored as raw ``codec`` bytes without the UTF-8 flag."""
    raw = name.encode(codec)
    ext = name.rsplit(".", 1)[1]
    placeholder = ("x" * (len(raw) - len(ext) - 1) + "." + ext).encode("ascii")
    blob = make_zip([(placeholder.decode("ascii"), data)])
    return blob.replace(placeholder, raw)


def corrupt_zip(blob: bytes) -> bytes:
    """Break the deflate stream of the first entry, leaving the directory intact."""
    with zipfile.ZipFile(io.BytesIO(blob)) as zf:
        offset = zf.infolist()[0].header_offset
    name_len = int.from_bytes(blob[offset + 26:offset + 28], "little")
    extra_len = int.from_bytes(blob[offset + 28:offset + 30], "little")
    start = offset + 30 + name_len + extra_len
    # 0xFF sets BTYPE=11, a reserved block type zlib refuses.
    return blob[:start] + b"\xff" + blob[start + 1:]


class FakePortal:
    """Minimal portal behind httpx.MockTransport. Records every request."""

    def __init__(self, listing="", details=None, downloads=None,
                 login_page=LOGIN_PAGE, accept_password="secret",
                 redirects=None, external=None):
        self.listing = listing
        self.details = details or {}
        self.downloads = downloads or {}
        self.login_page = login_page
        self.accept_password = accept_password
        self.redirects = redirects or {}
        self.external = external or {}
        self.requests = []

    def paths(self, method=None):
        return [r.url.path for r in self.requests if method is None or r.method == method]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if str(request.url) in self.external:
            return httpx.Response(200, content=self.external[str(request.url)])

        if path == "/login" and request.method == "GET":
            return httpx.Response(
                200, text=self.login_page,
                headers=[("set-cookie", "_smarthr_session_id=first; path=/; HttpOnly")],
            )
        if path == "/login" and request.method == "POST":
            form = parse_qs(request.content.decode())
            if form.get("user[password]") != [self.accept_password]:
                return httpx.Response(200, text=self.login_page, headers=[
                    ("set-cookie", "_smarthr_session_id=first; path=/; HttpOnly"),
                ])
            return httpx.Response(302, headers=[
                ("location", BASE + "/"),
                ("set-cookie", "_smarthr_x_session_key=xkey; path=/; HttpOnly"),
                ("set-cookie", "_smarthr_session_id=rotated; path=/; HttpOnly"),
            ])

        cookie = request.headers.get("cookie", "")
        if "_smarthr_x_session_key=xkey" not in cookie:
            return httpx.Response(302, headers={"location": BASE + "/login"})

        if path == "/egov_requests":
            return httpx.Response(200, text=self.listing)
        if path in self.details:
            return httpx.Response(200, text=self.details[path])
        if path in self.redirects:
            return httpx.Response(302, headers={"location": self.redirects[path]})
        if path in self.downloads:
            return httpx.Response(200, content=self.downloads[path],
                                  headers={"content-type": "application/zip"})
        return httpx.Response(404, text="not found")


@pytest.fixture
def client():
    return Client(
        name="Acme",
        url=BASE + "/egov_requests",
        drive="https://drive.google.com/drive/folders/acme-folder",
    )


@pytest.fixture
def credentials():
    return Credentials("hr@acme.example", "secret")


@pytest.fixture
def config(tmp_path):
    cfg = AppConfig(db_path=str(tmp_path / "egov.db"), log_dir=str(tmp_path / "logs"))
    cfg.http = HttpConfig(rate_limit=0)
    cfg.storage.root_dir = str(tmp_path / "drive")
    return cfg


def portal_http(portal: FakePortal, config: AppConfig = None) -> PortalHttp:
    http_config = config.http if config else HttpConfig(rate_limit=0)
    return PortalHttp(http_config, transport=httpx.MockTransport(portal))

import pytest

from egov_scraper.encoding import decode_name, detect
from egov_scraper.models import Encoding, EntryKind

PDF_HEAD = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Length 5 >>\x00\x01"
PNG_HEAD = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


@pytest.mark.parametrize("data, expected", [
    (b"plain ascii\r\n", Encoding.ASCII),
    ("電子申請の公文書です\n".encode("utf-8"), Encoding.UTF8),
    ("電子申請の公文書です".encode("cp932"), Encoding.SJIS),
    ("こんにちは".encode("euc_jp"), Encoding.EUCJP),
    ("こんにちは".encode("iso2022_jp"), Encoding.JIS),
    ("abc".encode("utf-32"), Encoding.UTF32),
    ("abc".encode("utf-32-be"), Encoding.UTF32),
    ("abc".encode("utf-16-le"), Encoding.UTF16),
    (PDF_HEAD, Encoding.BINARY),
    (PNG_HEAD, Encoding.BINARY),
])
def test_detect(data, expected):
    assert detect(data) is expected


def test_detect_undetectable():
    assert detect(b"abc \xa0 def") is None
    assert detect(b"") is None


@pytest.mark.parametrize("encoding, kind", [
    (Encoding.UTF8, EntryKind.TEXT),
    (Encoding.ASCII, EntryKind.TEXT),
    (Encoding.BINARY, EntryKind.BINARY),
    (Encoding.UTF32, EntryKind.WIDE_TEXT),
    (Encoding.SJIS, EntryKind.UNDETECTED),
    (Encoding.UTF16, EntryKind.UNDETECTED),
    (None, EntryKind.UNDETECTED),
])
def test_classify(encoding, kind):
    assert EntryKind.classify(encoding) is kind


def test_decode_name_shift_jis():
    assert decode_name("申請書.pdf".encode("cp932"), "fallback") == "申請書.pdf"


def test_decode_name_falls_back():
    assert decode_name(b"\xa0.pdf", "fallback.pdf") == "fallback.pdf"

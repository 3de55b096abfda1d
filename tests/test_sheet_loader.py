import pytest
import requests

from memocards import sheet_loader
from memocards.sheet_loader import SheetFetchError, decode_bytes, fetch_text


class _Response:
    def __init__(self, content, ok=True):
        self.content = content
        self.ok = ok


def test_decode_utf8_with_bom():
    assert decode_bytes("\ufeffメモ,頻度".encode("utf-8")) == "メモ,頻度"


def test_decode_shift_jis_falls_back():
    raw = "メモ,頻度,タグ\n犬,3,動物\n".encode("cp932")
    assert "犬" in decode_bytes(raw)


def test_fetch_local_file(tmp_path):
    path = tmp_path / "cards.csv"
    path.write_text("メモ\n犬\n", encoding="utf-8")
    assert fetch_text(path) == "メモ\n犬\n"


def test_missing_local_file_raises_fetch_error(tmp_path):
    with pytest.raises(SheetFetchError):
        fetch_text(tmp_path / "missing.csv")


def test_fetch_url(monkeypatch):
    monkeypatch.setattr(
        sheet_loader.requests, "get", lambda url, timeout: _Response("メモ\n犬\n".encode("utf-8"))
    )
    assert fetch_text("https://example.com/sheet.csv") == "メモ\n犬\n"


def test_http_error_status_raises_fetch_error(monkeypatch):
    monkeypatch.setattr(sheet_loader.requests, "get", lambda url, timeout: _Response(b"", ok=False))
    with pytest.raises(SheetFetchError, match="共有設定"):
        fetch_text("https://example.com/sheet.csv")


def test_network_error_raises_fetch_error(monkeypatch):
    def boom(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(sheet_loader.requests, "get", boom)
    with pytest.raises(SheetFetchError):
        fetch_text("https://example.com/sheet.csv")

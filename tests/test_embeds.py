from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from linearcli.embeds import (
    FileDownloader,
    extract_embeds,
    filename_from_url,
    is_linear_upload_url,
)

UPLOAD = "https://uploads.linear.app/org/abc/report.pdf"


@dataclass
class _Resp:
    status_code: int
    content: bytes = b""
    reason: str = "OK"

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class _Session:
    def __init__(self, response: _Resp):
        self.response = response
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def get(self, url: str, *, headers: dict[str, str], timeout: float) -> _Resp:
        self.calls.append((url, dict(headers)))
        return self.response


def test_upload_url_detection():
    assert is_linear_upload_url(UPLOAD)
    assert not is_linear_upload_url("https://example.com/report.pdf")
    assert not is_linear_upload_url("")
    assert filename_from_url(UPLOAD) == "report.pdf"
    assert filename_from_url("https://uploads.linear.app/") == "download"


def test_extract_embeds_images_then_links():
    content = (
        f"[doc]({UPLOAD}) and ![]({UPLOAD}?img) "
        "plus [elsewhere](https://example.com/x)"
    )
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    embeds = extract_embeds(content, now=now)
    assert [(e.label, e.url) for e in embeds] == [("file", f"{UPLOAD}?img"), ("doc", UPLOAD)]
    assert embeds[0].to_dict()["expiresAt"] == "2025-01-01T01:00:00+00:00"
    assert extract_embeds(None) == []


def test_download_writes_file_with_bearer(tmp_path):
    session = _Session(_Resp(200, b"pdf-bytes"))
    target = tmp_path / "out" / "report.pdf"
    result = FileDownloader("tok", session=session).download(UPLOAD, str(target))  # type: ignore[arg-type]
    assert result.success
    assert target.read_bytes() == b"pdf-bytes"
    assert session.calls[0][1] == {"Authorization": "Bearer tok"}
    assert result.to_dict()["message"] == f"File downloaded successfully to {target}"


def test_signed_url_sends_no_token(tmp_path):
    session = _Session(_Resp(200, b"x"))
    FileDownloader("tok", session=session).download(  # type: ignore[arg-type]
        f"{UPLOAD}?signature=abc", str(tmp_path / "f")
    )
    assert session.calls[0][1] == {}


def test_download_refuses_other_domains_and_existing_files(tmp_path):
    session = _Session(_Resp(200, b"x"))
    downloader = FileDownloader("tok", session=session)  # type: ignore[arg-type]
    result = downloader.download("https://example.com/a.png")
    assert result.to_dict() == {
        "success": False,
        "error": "URL must be from uploads.linear.app domain",
    }

    existing = tmp_path / "a.png"
    existing.write_bytes(b"old")
    result = downloader.download(UPLOAD, str(existing))
    assert not result.success
    assert "--overwrite" in (result.error or "")
    assert session.calls == []

    assert downloader.download(UPLOAD, str(existing), overwrite=True).success
    assert existing.read_bytes() == b"x"


def test_http_failure_reports_status(tmp_path):
    session = _Session(_Resp(403, reason="Forbidden"))
    result = FileDownloader("tok", session=session).download(UPLOAD, str(tmp_path / "f"))  # type: ignore[arg-type]
    assert result.to_dict() == {"success": False, "error": "HTTP 403: Forbidden", "statusCode": 403}

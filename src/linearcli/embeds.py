"""Files embedded in Linear markdown (``uploads.linear.app``).

``extract_embeds`` finds image and link references to Linear's upload
storage; :class:`FileDownloader` fetches one of them to disk. Signed URLs
carry their own credentials, so the API token is only sent for unsigned
ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

import requests

from .logging import get_logger

UPLOAD_HOST = "uploads.linear.app"
SIGNED_URL_TTL = timedelta(hours=1)

_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_LINK_RE = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)]+)\)")


@dataclass(frozen=True)
class EmbedInfo:
    label: str
    url: str
    expires_at: str

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "url": self.url, "expiresAt": self.expires_at}


@dataclass
class DownloadResult:
    success: bool
    file_path: str | None = None
    error: str | None = None
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.success:
            out["filePath"] = self.file_path
            out["message"] = f"File downloaded successfully to {self.file_path}"
            return out
        out["error"] = self.error
        if self.status_code is not None:
            out["statusCode"] = self.status_code
        return out


def is_linear_upload_url(url: str) -> bool:
    if not url:
        return False
    try:
        return urlparse(url).hostname == UPLOAD_HOST
    except ValueError:
        return False


def filename_from_url(url: str) -> str:
    try:
        name = urlparse(url).path.rsplit("/", 1)[-1]
    except ValueError:
        return "download"
    return name or "download"


def extract_embeds(content: str | None, *, now: datetime | None = None) -> list[EmbedInfo]:
    """Return every ``uploads.linear.app`` reference in ``content``.

    Images come first, then plain links, each in document order.
    """
    if not content:
        return []
    expires_at = ((now or datetime.now(timezone.utc)) + SIGNED_URL_TTL).isoformat()
    embeds: list[EmbedInfo] = []
    for pattern in (_IMAGE_RE, _LINK_RE):
        for match in pattern.finditer(content):
            label, url = match.group(1) or "file", match.group(2)
            if is_linear_upload_url(url):
                embeds.append(EmbedInfo(label=label, url=url, expires_at=expires_at))
    return embeds


class FileDownloader:
    """Downloads files from Linear's private storage."""

    def __init__(self, token: str, session: requests.Session | None = None, timeout: float = 60):
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = get_logger()

    def download(
        self, url: str, output: str | None = None, *, overwrite: bool = False
    ) -> DownloadResult:
        if not is_linear_upload_url(url):
            return DownloadResult(False, error=f"URL must be from {UPLOAD_HOST} domain")

        target = Path(output or filename_from_url(url))
        if target.exists() and not overwrite:
            return DownloadResult(
                False, error=f"File already exists: {target}. Use --overwrite to replace."
            )

        headers: dict[str, str] = {}
        if "signature" not in parse_qs(urlparse(url).query):
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            return DownloadResult(False, error=str(exc))
        if not response.ok:
            return DownloadResult(
                False,
                error=f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
            )

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(response.content)
        self.logger.log_operation("embed_downloaded", file_path=str(target))
        return DownloadResult(True, file_path=str(target))


__all__ = [
    "DownloadResult",
    "EmbedInfo",
    "FileDownloader",
    "extract_embeds",
    "filename_from_url",
    "is_linear_upload_url",
]

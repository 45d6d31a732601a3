"""External document sources feeding the ingest pipeline."""

from __future__ import annotations

import fnmatch
import logging
import mimetypes
from pathlib import Path
from typing import Any, Iterable, Protocol

import requests

from compliance_kb.core.errors import ConfigurationError, ExternalServiceError, ValidationError
from compliance_kb.ingest.types import SourceFile
from compliance_kb.utils.time import parse_timestamp

logger = logging.getLogger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3"
FOLDER_MIME = "application/vnd.google-apps.folder"

# Google-native formats have no binary content and must be exported.
_EXPORT_MIME: dict[str, str] = {
    "application/vnd.google-apps.document": "text/plain",
    "application/vnd.google-apps.presentation": "text/plain",
    "application/vnd.google-apps.spreadsheet": "text/csv",
}

mimetypes.add_type("text/markdown", ".md")
mimetypes.add_type("text/markdown", ".markdown")


class FileSource(Protocol):
    name: str

    def list_files(self, folder_id: str) -> list[SourceFile]: ...

    def get_file_content(self, file_id: str, mime_type: str) -> bytes: ...

    def text_mime_type(self, mime_type: str) -> str: ...


class LocalFolderSource:
    """Files below a local directory; ids are POSIX paths relative to the root."""

    name = "local"

    def __init__(self, root: Path, include_glob: str | None = None, exclude_glob: str | None = None) -> None:
        self.root = root.expanduser().resolve()
        self.include_glob = include_glob
        self.exclude_glob = exclude_glob

    def list_files(self, folder_id: str = ".") -> list[SourceFile]:
        base = (self.root / folder_id).resolve()
        if not base.is_relative_to(self.root):
            raise ValidationError(f"Folder {folder_id} is outside {self.root}")
        if not base.is_dir():
            raise ValidationError(f"Folder not found: {base}")
        files: list[SourceFile] = []
        for path in sorted(base.rglob("*")):
            if not path.is_file() or not self._matches_patterns(path):
                continue
            mime, _ = mimetypes.guess_type(path.name)
            files.append(
                SourceFile(
                    file_id=path.relative_to(self.root).as_posix(),
                    name=path.name,
                    mime_type=mime or "application/octet-stream",
                    modified_time=parse_timestamp(path.stat().st_mtime),
                )
            )
        return files

    def get_file_content(self, file_id: str, mime_type: str) -> bytes:
        path = (self.root / file_id).resolve()
        if not path.is_relative_to(self.root):
            raise ValidationError(f"File {file_id} is outside {self.root}")
        return path.read_bytes()

    def text_mime_type(self, mime_type: str) -> str:
        return mime_type

    def _matches_patterns(self, path: Path) -> bool:
        path_str = path.relative_to(self.root).as_posix()
        if self.exclude_glob and any(fnmatch.fnmatch(path_str, p) for p in expand_patterns(self.exclude_glob)):
            return False
        if self.include_glob:
            return any(fnmatch.fnmatch(path_str, p) for p in expand_patterns(self.include_glob))
        return True


class GoogleDriveSource:
    """Google Drive v3 REST client limited to listing a folder and downloading files.

    Authenticates with an OAuth access token, or with an API key for
    publicly shared folders.
    """

    name = "google_drive"

    def __init__(
        self,
        access_token: str | None = None,
        api_key: str | None = None,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        if not access_token and not api_key:
            raise ConfigurationError(
                "Google Drive access token or API key must be set",
                provider_name="google_drive",
            )
        self.timeout = timeout
        self._api_key = api_key
        self._session = session or requests.Session()
        if access_token:
            self._session.headers["Authorization"] = f"Bearer {access_token}"

    def list_files(self, folder_id: str) -> list[SourceFile]:
        files: list[SourceFile] = []
        params: dict[str, Any] = {
            "q": f"'{folder_id}' in parents and trashed = false",
            "fields": "nextPageToken, files(id, name, mimeType, modifiedTime)",
            "pageSize": 1000,
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        while True:
            payload = self._get_json(f"{DRIVE_API}/files", params)
            for item in payload.get("files", []):
                if item.get("mimeType") == FOLDER_MIME:
                    continue
                files.append(
                    SourceFile(
                        file_id=item.get("id") or "",
                        name=item.get("name") or "",
                        mime_type=item.get("mimeType") or "text/plain",
                        modified_time=parse_timestamp(item.get("modifiedTime")),
                    )
                )
            token = payload.get("nextPageToken")
            if not token:
                break
            params["pageToken"] = token
        logger.info("Listed %s file(s) in Drive folder %s", len(files), folder_id)
        return files

    def get_file_content(self, file_id: str, mime_type: str) -> bytes:
        export_mime = _EXPORT_MIME.get(mime_type)
        if export_mime:
            url = f"{DRIVE_API}/files/{file_id}/export"
            params: dict[str, Any] = {"mimeType": export_mime}
        else:
            url = f"{DRIVE_API}/files/{file_id}"
            params = {"alt": "media", "supportsAllDrives": "true"}
        return self._get(url, params).content

    def text_mime_type(self, mime_type: str) -> str:
        """MIME type of the bytes returned by :meth:`get_file_content`."""
        return _EXPORT_MIME.get(mime_type, mime_type)

    def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        return self._get(url, params).json()

    def _get(self, url: str, params: dict[str, Any]) -> requests.Response:
        if self._api_key:
            params = {**params, "key": self._api_key}
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise ExternalServiceError(f"Google Drive request failed: {exc}", provider_name="google_drive") from exc
        return resp


def expand_patterns(pattern: str) -> list[str]:
    """Expand ``a/**/*.{md,txt}`` style brace groups into plain fnmatch patterns."""
    patterns: list[str] = []
    for part in _split_top_level(pattern):
        part = part.strip()
        if not part:
            continue
        if "{" in part and "}" in part:
            prefix = part[: part.index("{")]
            suffix = part[part.index("}") + 1 :]
            options = part[part.index("{") + 1 : part.index("}")].split(",")
            patterns.extend(f"{prefix}{option.strip()}{suffix}" for option in options)
        else:
            patterns.append(part)
    return patterns or [pattern]


def _split_top_level(pattern: str) -> Iterable[str]:
    depth = 0
    current: list[str] = []
    for char in pattern:
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(0, depth - 1)
        if char == "," and depth == 0:
            yield "".join(current)
            current = []
            continue
        current.append(char)
    yield "".join(current)


__all__ = ["FileSource", "LocalFolderSource", "GoogleDriveSource", "expand_patterns"]

"""
MIME type detection for local files, remote URLs and in-memory buffers
"""

import logging
import mimetypes
import os
from typing import Optional
from urllib.parse import urlparse

import filetype
import requests

from assetmint.config import settings
from assetmint.models.generic_file import DEFAULT_CONTENT_TYPE

logger = logging.getLogger(__name__)

# filetype never looks further than this into a file
HEADER_BYTES = 8192


def is_url(source: str) -> bool:
    """Check if source is an http(s) URL"""
    return urlparse(source).scheme in ('http', 'https')


class ContentSniffer:
    """Magic-number detection with extension and caller-supplied fallbacks"""

    def __init__(self, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.timeout = timeout or settings.request_timeout
        self.session = session or requests.Session()

    def detect(self, source: str, default: Optional[str] = None) -> str:
        """Detect the content type of a file path or URL. Never raises."""
        if is_url(source):
            header = self._read_remote_header(source)
            name = urlparse(source).path
        else:
            header = self._read_local_header(source)
            name = source
        return self.from_buffer(header, name, default)

    def from_buffer(self, data: bytes, name: str = "", default: Optional[str] = None) -> str:
        guessed = filetype.guess_mime(data) if data else None
        if guessed:
            return guessed
        return self.fallback(name, default)

    def fallback(self, name: str, default: Optional[str] = None) -> str:
        ext = os.path.splitext(name or "")[1].lower()
        if ext == ".json":
            return "application/json"
        by_extension, _ = mimetypes.guess_type(name or "")
        return by_extension or default or DEFAULT_CONTENT_TYPE

    def _read_local_header(self, path: str) -> bytes:
        try:
            with open(path, 'rb') as f:
                return f.read(HEADER_BYTES)
        except OSError as e:
            logger.warning(f"Could not read {path} for type detection: {e}")
            return b""

    def _read_remote_header(self, url: str) -> bytes:
        """Read just the first bytes of the response body"""
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                return next(response.iter_content(chunk_size=HEADER_BYTES), b"")
        except requests.RequestException as e:
            logger.warning(f"Could not sniff content type of {url}: {e}")
            return b""

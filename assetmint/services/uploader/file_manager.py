import logging
from typing import Optional
from urllib.parse import urlparse

import requests

from assetmint.config import settings
from assetmint.core.exceptions import TransientIOError, ValidationError
from assetmint.models.generic_file import GenericFile, create_generic_file
from assetmint.models.upload import UploadRequest
from assetmint.services.uploader.content_sniffer import ContentSniffer
from assetmint.services.uploader.interfaces import FileResolver

logger = logging.getLogger(__name__)


class FileManager(FileResolver):
    """Loads request bytes from disk or over HTTP and builds a GenericFile"""

    def __init__(self,
                 sniffer: Optional[ContentSniffer] = None,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.session = session or requests.Session()
        self.timeout = timeout or settings.request_timeout
        self.sniffer = sniffer or ContentSniffer(timeout=self.timeout, session=self.session)

    def resolve(self, request: UploadRequest) -> GenericFile:
        request.validate()

        if request.file_url:
            buffer = self._fetch(request.file_url)
            name = urlparse(request.file_url).path
        else:
            buffer = self._read(request.file_path)
            name = request.file_path
        content_type = request.type or self.sniffer.from_buffer(buffer, name)

        # Empty content has no signature to detect, only a declared type can save it
        if not buffer and not request.type:
            raise ValidationError("Failed to read file buffer and determine MIME type")

        return create_generic_file(buffer, request.resolved_name, content_type=content_type)

    def _read(self, path: str) -> bytes:
        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise ValidationError(f"Error reading file from path {path}: {e}") from e

    def _fetch(self, url: str) -> bytes:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransientIOError(f"Failed to fetch file from URL {url}: {e}") from e
        return response.content

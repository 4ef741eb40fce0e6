"""
Upload request and batch report models
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

from assetmint.core.exceptions import ValidationError


@dataclass(frozen=True)
class UploadRequest:
    """One file to upload, either from disk or from a URL"""
    file_path: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    type: Optional[str] = None  # declared content type, skips sniffing

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadRequest":
        """Build from the camelCase JSON form used by request files"""
        if not isinstance(data, dict):
            raise ValidationError(f"Upload request must be an object, got {type(data).__name__}")
        return cls(
            file_path=data.get("filePath"),
            file_url=data.get("fileUrl"),
            file_name=data.get("fileName"),
            type=data.get("type"),
        )

    @property
    def source(self) -> Optional[str]:
        return self.file_url or self.file_path

    @property
    def resolved_name(self) -> str:
        if self.file_name:
            return self.file_name
        if self.file_url:
            return os.path.basename(urlparse(self.file_url).path) or "file"
        return os.path.basename(self.file_path or "") or "file"

    def validate(self) -> None:
        # Non-string paths would reach open() as file descriptors
        for key, value in (("filePath", self.file_path), ("fileUrl", self.file_url),
                           ("fileName", self.file_name), ("type", self.type)):
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{key} must be a string, got {type(value).__name__}")
        if self.file_path and self.file_url:
            raise ValidationError("Provide either filePath or fileUrl, not both")
        if not self.file_path and not self.file_url:
            raise ValidationError("Either filePath or fileUrl is required")


@dataclass(frozen=True)
class UploadSuccess:
    uri: str
    original_source: str
    content_type: str

    def to_dict(self) -> Dict[str, str]:
        return {"fileUrl": self.uri, "originalUri": self.original_source, "type": self.content_type}


@dataclass(frozen=True)
class UploadFailure:
    original_source: Optional[str]
    error_message: str
    file_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"failedUri": self.original_source, "error": self.error_message}


UploadOutcome = Union[UploadSuccess, UploadFailure]


@dataclass(frozen=True)
class BatchReport:
    """Partitioned result of a batch. Order is completion order, not request order."""
    uploaded: Tuple[UploadSuccess, ...] = field(default_factory=tuple)
    failed: Tuple[UploadFailure, ...] = field(default_factory=tuple)

    @property
    def attempted(self) -> int:
        return len(self.uploaded) + len(self.failed)

    def not_attempted(self, requests: List[UploadRequest]) -> List[UploadRequest]:
        """Requests that never got scheduled, e.g. after cancellation"""
        remaining = {}
        for outcome in self.uploaded + self.failed:
            remaining[outcome.original_source] = remaining.get(outcome.original_source, 0) + 1

        skipped = []
        for request in requests:
            if remaining.get(request.source, 0) > 0:
                remaining[request.source] -= 1
            else:
                skipped.append(request)
        return skipped

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "uploaded": [item.to_dict() for item in self.uploaded],
            "failed": [item.to_dict() for item in self.failed],
        }

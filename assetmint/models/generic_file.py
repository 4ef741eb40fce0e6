import hashlib
import json
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class GenericFile:
    """Bytes plus the naming and tagging a storage backend needs"""
    buffer: bytes
    file_name: str
    unique_name: str
    content_type: str
    extension: str
    tags: Mapping[str, str]

    @property
    def size(self) -> int:
        return len(self.buffer)


def content_key(buffer: bytes) -> str:
    """Storage key derived from the bytes alone"""
    return hashlib.sha256(buffer).hexdigest()


def create_generic_file(buffer: bytes,
                        file_name: str,
                        content_type: Optional[str] = None,
                        tags: Optional[Mapping[str, str]] = None) -> GenericFile:
    content_type = content_type or DEFAULT_CONTENT_TYPE
    merged_tags = dict(tags or {})
    merged_tags.setdefault("Content-Type", content_type)

    _, ext = os.path.splitext(file_name)
    return GenericFile(
        buffer=bytes(buffer),
        file_name=file_name,
        unique_name=content_key(buffer),
        content_type=content_type,
        extension=ext.lstrip(".").lower(),
        tags=MappingProxyType(merged_tags),
    )


def create_generic_file_from_json(value: Any, file_name: str = "metadata.json") -> GenericFile:
    buffer = json.dumps(value).encode("utf-8")
    return create_generic_file(buffer, file_name, content_type="application/json")

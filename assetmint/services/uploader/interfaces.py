import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from assetmint.core.cancellation import CancellationToken
from assetmint.models.generic_file import GenericFile, create_generic_file_from_json
from assetmint.models.upload import UploadRequest
from assetmint.services.wallet import Keypair

ProgressCallback = Callable[[float], None]


class StorageBackend(ABC):
    """Abstract storage backend interface"""

    name = "storage"

    def __init__(self, payer: Optional[Keypair] = None):
        # Delegated payer, resolved once by the builder
        self.payer = payer
        self._provision_lock = threading.Lock()
        self._provisioned = False

    @abstractmethod
    def upload(self,
               file: GenericFile,
               on_progress: Optional[ProgressCallback] = None,
               cancel: Optional[CancellationToken] = None) -> str:
        """Upload one file and return its URI"""
        pass

    def upload_many(self,
                    files: List[GenericFile],
                    on_progress: Optional[ProgressCallback] = None,
                    cancel: Optional[CancellationToken] = None) -> List[str]:
        """Upload files one after another. URIs come back in input order."""
        uris = []
        for index, file in enumerate(files, start=1):
            uris.append(self.upload(file, cancel=cancel))
            if on_progress:
                on_progress(index / len(files) * 100)
        return uris

    def upload_json(self,
                    value: Any,
                    on_progress: Optional[ProgressCallback] = None,
                    cancel: Optional[CancellationToken] = None) -> str:
        return self.upload(create_generic_file_from_json(value), on_progress=on_progress, cancel=cancel)

    def ensure_provisioned(self) -> None:
        """Run `_provision` exactly once, even under concurrent first calls"""
        if self._provisioned:
            return
        with self._provision_lock:
            if not self._provisioned:
                self._provision()
                self._provisioned = True

    def _provision(self) -> None:
        """Create the storage area if the backend needs one"""
        pass

    @staticmethod
    def _check_cancelled(cancel: Optional[CancellationToken]) -> None:
        if cancel is not None:
            cancel.raise_if_cancelled()


class FileResolver(ABC):
    """Turns an upload request into an in-memory file"""
    @abstractmethod
    def resolve(self, request: UploadRequest) -> GenericFile:
        pass

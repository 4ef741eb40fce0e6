import logging
from typing import List, Optional

import requests

from assetmint.config import settings
from assetmint.core.cancellation import CancellationToken
from assetmint.core.exceptions import TransientIOError
from assetmint.models.generic_file import GenericFile
from assetmint.services.uploader.interfaces import ProgressCallback, StorageBackend
from assetmint.services.wallet import Keypair

logger = logging.getLogger(__name__)


class NftStorageUploader(StorageBackend):
    """NFT.Storage (IPFS pinning) upload implementation"""

    name = "nft_storage"

    def __init__(self,
                 token: str,
                 endpoint: str = "https://api.nft.storage",
                 gateway_host: Optional[str] = None,
                 batch_size: int = 50,
                 use_gateway_urls: bool = True,
                 payer: Optional[Keypair] = None,
                 timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        super().__init__(payer)
        self.token = token
        self.endpoint = endpoint.rstrip('/')
        self.gateway_host = (gateway_host or settings.ipfs_gateway).rstrip('/')
        self.batch_size = batch_size
        self.use_gateway_urls = use_gateway_urls
        self.timeout = timeout or settings.request_timeout
        self.session = session or requests.Session()

    def upload(self,
               file: GenericFile,
               on_progress: Optional[ProgressCallback] = None,
               cancel: Optional[CancellationToken] = None) -> str:
        self._check_cancelled(cancel)
        cid = self._post(data=file.buffer, headers={"Content-Type": file.content_type})
        if on_progress:
            on_progress(100)
        return self.cid_url(cid)

    def upload_many(self,
                    files: List[GenericFile],
                    on_progress: Optional[ProgressCallback] = None,
                    cancel: Optional[CancellationToken] = None) -> List[str]:
        """Upload in directory batches of `batch_size`, one request per batch"""
        uris = []
        for start in range(0, len(files), self.batch_size):
            self._check_cancelled(cancel)
            batch = files[start:start + self.batch_size]
            multipart = [
                ("file", (file.unique_name, file.buffer, file.content_type))
                for file in batch
            ]
            cid = self._post(files=multipart)
            uris.extend(self.cid_url(f"{cid}/{file.unique_name}") for file in batch)
            if on_progress:
                on_progress(len(uris) / len(files) * 100)
        return uris

    def cid_url(self, path: str) -> str:
        if self.use_gateway_urls:
            return f"{self.gateway_host}/ipfs/{path}"
        return f"ipfs://{path}"

    def _post(self, **kwargs) -> str:
        headers = {"Authorization": f"Bearer {self.token}"}
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self.session.post(
                f"{self.endpoint}/upload",
                headers=headers,
                timeout=self.timeout,
                **kwargs
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.error(f"NFT.Storage upload failed: {e}")
            raise TransientIOError(f"NFT.Storage upload failed: {e}") from e
        except ValueError as e:
            raise TransientIOError(f"NFT.Storage returned an invalid response: {e}") from e

        if not body.get("ok"):
            message = body.get("error", {}).get("message", "unknown error")
            raise TransientIOError(f"NFT.Storage rejected the upload: {message}")
        return body["value"]["cid"]

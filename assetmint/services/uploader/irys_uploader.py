"""
Irys (pay-per-byte, Arweave-backed) uploader.

Talks to an Irys node over HTTP. Each upload is priced first and checked
against the payer's node balance. Files are sent as ANS-104 data items
signed with the payer key; funding the balance is left to the wallet owner.
"""

import logging
import math
from typing import Optional

import requests

from assetmint.config import settings
from assetmint.core.cancellation import CancellationToken
from assetmint.core.exceptions import TransientIOError
from assetmint.models.generic_file import GenericFile
from assetmint.services.uploader.data_item import create_data_item
from assetmint.services.uploader.interfaces import ProgressCallback, StorageBackend
from assetmint.services.wallet import Keypair

logger = logging.getLogger(__name__)

CURRENCY = "solana"


class IrysUploader(StorageBackend):
    """Irys node upload implementation"""

    name = "irys"

    def __init__(self,
                 payer: Keypair,
                 address: str = "https://node1.irys.xyz",
                 timeout: Optional[float] = None,
                 price_multiplier: float = 1.0,
                 gateway: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        super().__init__(payer)
        self.address = address.rstrip('/')
        self.timeout = timeout or settings.request_timeout
        self.price_multiplier = price_multiplier
        self.gateway = (gateway or settings.irys_gateway).rstrip('/')
        self.session = session or requests.Session()

    def get_upload_price(self, num_bytes: int) -> int:
        """Price in lamports for `num_bytes`, scaled by the price multiplier"""
        response = self._request("GET", f"{self.address}/price/{CURRENCY}/{num_bytes}")
        return math.ceil(int(response.text) * self.price_multiplier)

    def get_balance(self) -> int:
        response = self._request(
            "GET",
            f"{self.address}/account/balance/{CURRENCY}",
            params={"address": self.payer.public_key},
        )
        return int(response.json()["balance"])

    def upload(self,
               file: GenericFile,
               on_progress: Optional[ProgressCallback] = None,
               cancel: Optional[CancellationToken] = None) -> str:
        self._check_cancelled(cancel)

        item = create_data_item(file.buffer, file.tags.items(), self.payer)
        price = self.get_upload_price(item.size)
        balance = self.get_balance()
        if balance < price:
            raise TransientIOError(
                f"Insufficient Irys balance for {file.file_name}: need {price} lamports, have {balance}"
            )

        self._check_cancelled(cancel)
        response = self._request(
            "POST",
            f"{self.address}/tx/{CURRENCY}",
            data=item.to_bytes(),
            headers={"Content-Type": "application/octet-stream"},
        )
        try:
            tx_id = response.json().get("id") or item.id
        except ValueError:
            tx_id = item.id

        if on_progress:
            on_progress(100)
        return f"{self.gateway}/{tx_id}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Irys request {method} {url} failed: {e}")
            raise TransientIOError(f"Irys request failed: {e}") from e
        return response

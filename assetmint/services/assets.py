"""
Asset and collection minting on top of uploaded files.

Transaction construction and signing belong to the chain SDK behind
AssetTransactionBuilder; this module only feeds it resolved URIs, royalty
settings and compute-budget settings.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from assetmint.core.exceptions import AssetNotFoundError, ConfigurationError, TransientIOError
from assetmint.models.collection import RoyaltyConfig
from assetmint.models.upload import UploadRequest
from assetmint.services.uploader.file_manager import FileManager
from assetmint.services.uploader.interfaces import FileResolver, StorageBackend
from assetmint.services.wallet import Keypair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComputeBudget:
    """Priority fee (micro-lamports per unit) and compute-unit ceiling. Either may be set alone."""
    price: Optional[int] = None
    units: Optional[int] = None

    def instructions(self) -> List[Tuple[str, int]]:
        instructions = []
        if self.price and self.price > 0:
            instructions.append(("set_compute_unit_price", self.price))
        if self.units and self.units > 0:
            instructions.append(("set_compute_unit_limit", self.units))
        return instructions


@dataclass(frozen=True)
class AssetReceipt:
    address: str
    signature: str

    def to_dict(self):
        return {"address": self.address, "signature": self.signature}


@dataclass(frozen=True)
class AssetRecord:
    """Current on-chain name and URI of an asset or collection"""
    address: str
    name: str
    uri: str


class AssetTransactionBuilder(ABC):
    """Chain SDK adapter that builds and submits asset transactions"""

    def __init__(self, identity: Optional[Keypair] = None):
        # Signing wallet; also the default royalty authority
        self.identity = identity

    @abstractmethod
    def build(self,
              name: str,
              uri: str,
              collection: Optional[str] = None,
              compute_budget: Optional[ComputeBudget] = None) -> Any:
        """Return a signed asset creation transaction handle"""
        pass

    @abstractmethod
    def build_collection(self,
                         name: str,
                         uri: str,
                         royalties: Optional[RoyaltyConfig] = None,
                         compute_budget: Optional[ComputeBudget] = None) -> Any:
        pass

    @abstractmethod
    def build_asset_update(self,
                           address: str,
                           name: str,
                           uri: str,
                           collection: Optional[str] = None,
                           compute_budget: Optional[ComputeBudget] = None) -> Any:
        pass

    @abstractmethod
    def build_collection_update(self,
                                address: str,
                                name: str,
                                uri: str,
                                compute_budget: Optional[ComputeBudget] = None) -> Any:
        pass

    @abstractmethod
    def fetch(self, address: str) -> Optional[AssetRecord]:
        """Current state of an asset or collection, None when it does not exist"""
        pass

    @abstractmethod
    def submit(self, handle: Any) -> AssetReceipt:
        pass


BuilderFactory = Callable[..., AssetTransactionBuilder]


def load_builder_factory(path: str) -> BuilderFactory:
    """Import a builder factory given as `package.module:attribute`"""
    module_name, sep, attribute = path.partition(':')
    if not sep or not module_name or not attribute:
        raise ConfigurationError(f"Asset builder must look like package.module:factory, got {path!r}")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Could not load asset builder {path}: {e}") from e


class AssetService:
    """Uploads backing files and mints or updates assets pointing at them"""

    def __init__(self,
                 builder: AssetTransactionBuilder,
                 backend: Optional[StorageBackend] = None,
                 resolver: Optional[FileResolver] = None):
        self.builder = builder
        self.backend = backend
        self.resolver = resolver or FileManager()

    def create_asset(self,
                     name: str,
                     uri: str,
                     collection: Optional[str] = None,
                     compute: Optional[ComputeBudget] = None) -> AssetReceipt:
        handle = self.builder.build(name, uri, collection=collection, compute_budget=compute)
        receipt = self.builder.submit(handle)
        logger.info(f"Created asset {receipt.address}")
        return receipt

    def create_collection(self,
                          name: str,
                          uri: str,
                          royalties: Optional[RoyaltyConfig] = None,
                          compute: Optional[ComputeBudget] = None) -> AssetReceipt:
        royalties = self._with_authority(royalties)
        handle = self.builder.build_collection(name, uri, royalties=royalties, compute_budget=compute)
        receipt = self.builder.submit(handle)
        logger.info(f"Created collection {receipt.address}")
        return receipt

    def update_asset(self,
                     address: str,
                     new_name: Optional[str] = None,
                     new_uri: Optional[str] = None,
                     collection: Optional[str] = None,
                     compute: Optional[ComputeBudget] = None) -> AssetReceipt:
        """Rename and/or repoint an asset. Unset fields keep their current value."""
        current = self._fetch(address, "asset")
        handle = self.builder.build_asset_update(
            address,
            new_name or current.name,
            new_uri or current.uri,
            collection=collection,
            compute_budget=compute
        )
        receipt = self.builder.submit(handle)
        logger.info(f"Updated asset {address}")
        return AssetReceipt(address=address, signature=receipt.signature)

    def update_collection(self,
                          address: str,
                          new_name: Optional[str] = None,
                          new_uri: Optional[str] = None,
                          compute: Optional[ComputeBudget] = None) -> AssetReceipt:
        current = self._fetch(address, "collection")
        handle = self.builder.build_collection_update(
            address,
            new_name or current.name,
            new_uri or current.uri,
            compute_budget=compute
        )
        receipt = self.builder.submit(handle)
        logger.info(f"Updated collection {address}")
        return AssetReceipt(address=address, signature=receipt.signature)

    def upload(self, request: UploadRequest) -> str:
        """Upload a single file. Errors propagate; there is no partial result here."""
        if self.backend is None:
            raise ConfigurationError("No storage backend configured for uploads")
        file = self.resolver.resolve(request)
        uri = self.backend.upload(file)
        if not uri:
            raise TransientIOError("No URI returned from uploader")
        logger.info(f"Uploaded URI: {uri}")
        return uri

    def create_asset_from_upload(self,
                                 name: str,
                                 request: UploadRequest,
                                 collection: Optional[str] = None,
                                 compute: Optional[ComputeBudget] = None) -> AssetReceipt:
        uri = self.upload(request)
        return self.create_asset(name, uri, collection=collection, compute=compute)

    def create_collection_from_upload(self,
                                      name: str,
                                      request: UploadRequest,
                                      royalties: Optional[RoyaltyConfig] = None,
                                      compute: Optional[ComputeBudget] = None) -> AssetReceipt:
        uri = self.upload(request)
        return self.create_collection(name, uri, royalties=royalties, compute=compute)

    def _fetch(self, address: str, kind: str) -> AssetRecord:
        current = self.builder.fetch(address)
        if current is None:
            raise AssetNotFoundError(f"{kind} {address} not found")
        return current

    def _with_authority(self, royalties: Optional[RoyaltyConfig]) -> Optional[RoyaltyConfig]:
        if royalties is None or royalties.authority or self.builder.identity is None:
            return royalties
        return royalties.model_copy(update={"authority": self.builder.identity.public_key})

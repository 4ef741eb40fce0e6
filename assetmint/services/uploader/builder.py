import logging
from typing import Any, Dict, List, Optional, Union

from assetmint.core.cancellation import CancellationToken
from assetmint.core.exceptions import ConfigurationError
from assetmint.models.upload import BatchReport, UploadRequest
from assetmint.services.uploader.interfaces import FileResolver, StorageBackend
from assetmint.services.uploader.irys_uploader import IrysUploader
from assetmint.services.uploader.nft_storage_uploader import NftStorageUploader
from assetmint.services.uploader.s3_uploader import S3Uploader
from assetmint.services.uploader.storage_config import (
    AWS,
    IRYS,
    AwsUploaderOptions,
    IrysUploaderOptions,
    NftStorageUploaderOptions,
    StorageConfig,
)
from assetmint.services.uploader.upload_service import BatchUploadOrchestrator, OutcomeCallback
from assetmint.services.wallet import Keypair, load_keypair

logger = logging.getLogger(__name__)


def build_storage_backend(config: StorageConfig, identity: Optional[Keypair] = None) -> StorageBackend:
    """
    Select and construct the single configured backend.

    Everything here runs before any network activity, so a bad config
    never leaves a half-finished batch behind.

    Args:
        config: Parsed storage configuration
        identity: Primary wallet, used as payer when no delegated payer is set
    """
    variant, options = config.selected()
    payer = load_keypair(options.payer) if options.payer else identity

    if variant == AWS:
        backend = _build_s3(options, payer)
    elif variant == IRYS:
        backend = _build_irys(options, payer)
    else:
        backend = _build_nft_storage(options, payer)

    logger.info(f"Using {backend.name} storage backend")
    return backend


def _build_s3(options: AwsUploaderOptions, payer: Optional[Keypair]) -> S3Uploader:
    client_config = options.client_config
    credentials = client_config.credentials
    if credentials is None or not credentials.access_key_id or not credentials.secret_access_key:
        raise ConfigurationError("AWS uploader requires accessKeyId and secretAccessKey credentials")
    if not client_config.region and not client_config.endpoint:
        raise ConfigurationError("AWS uploader requires a region or an endpoint")

    return S3Uploader(
        bucket_name=options.bucket_name,
        region=client_config.region,
        access_key=credentials.access_key_id,
        secret_key=credentials.secret_access_key,
        endpoint_url=client_config.endpoint,
        create_bucket_if_missing=options.create_bucket_if_missing,
        payer=payer,
    )


def _build_irys(options: IrysUploaderOptions, payer: Optional[Keypair]) -> IrysUploader:
    if payer is None:
        raise ConfigurationError("Irys uploader requires a payer keypair or a wallet identity")
    return IrysUploader(
        payer=payer,
        address=options.address,
        timeout=options.timeout / 1000 if options.timeout else None,
        price_multiplier=options.price_multiplier,
    )


def _build_nft_storage(options: NftStorageUploaderOptions, payer: Optional[Keypair]) -> NftStorageUploader:
    if not options.token:
        raise ConfigurationError("NFT Storage token is required")
    return NftStorageUploader(
        token=options.token,
        endpoint=options.endpoint,
        gateway_host=options.gateway_host,
        batch_size=options.batch_size,
        use_gateway_urls=options.use_gateway_urls,
        payer=payer,
    )


class UploadServiceBuilder:
    """Constructs the orchestrator with its dependencies"""
    @staticmethod
    def build(config: StorageConfig,
              identity: Optional[Keypair] = None,
              resolver: Optional[FileResolver] = None,
              chunk_size: Optional[int] = None,
              handle_interrupts: bool = True) -> BatchUploadOrchestrator:
        backend = build_storage_backend(config, identity)
        return BatchUploadOrchestrator(
            backend,
            resolver=resolver,
            chunk_size=chunk_size,
            handle_interrupts=handle_interrupts
        )


def bulk_upload_files(config: Union[StorageConfig, Dict[str, Any]],
                      files: List[Union[UploadRequest, Dict[str, Any]]],
                      identity: Optional[Keypair] = None,
                      chunk_size: Optional[int] = None,
                      cancel: Optional[CancellationToken] = None,
                      on_progress: Optional[OutcomeCallback] = None) -> BatchReport:
    """Validate the storage config, build the backend and upload everything"""
    if not isinstance(config, StorageConfig):
        config = StorageConfig.from_dict(config)
    requests = [f if isinstance(f, UploadRequest) else UploadRequest.from_dict(f) for f in files]

    orchestrator = UploadServiceBuilder.build(config, identity=identity, chunk_size=chunk_size)
    return orchestrator.run(requests, cancel=cancel, on_progress=on_progress)

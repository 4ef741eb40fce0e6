"""
Uploader Service Package

Provides the storage backend abstraction and the bulk upload orchestrator
that pushes files to it with bounded concurrency.

Key Components:
- StorageBackend: Abstract base class for storage backends
- FileResolver: Abstract base class for turning requests into files
- S3Uploader / IrysUploader / NftStorageUploader: Backend variants
- FileManager: Loads request bytes and sniffs content types
- ContentSniffer: MIME type detection
- BatchUploadOrchestrator: Chunked, cancellable batch uploads
- UploadServiceBuilder: Dependency injection helper
"""

from .interfaces import FileResolver, StorageBackend
from .content_sniffer import ContentSniffer
from .file_manager import FileManager
from .s3_uploader import S3Uploader
from .irys_uploader import IrysUploader
from .nft_storage_uploader import NftStorageUploader
from .storage_config import StorageConfig
from .upload_service import BatchUploadOrchestrator
from .builder import UploadServiceBuilder, build_storage_backend, bulk_upload_files

__all__ = [
    # Interfaces
    'StorageBackend',
    'FileResolver',

    # Implementations
    'S3Uploader',
    'IrysUploader',
    'NftStorageUploader',
    'FileManager',
    'ContentSniffer',

    # Configuration
    'StorageConfig',

    # Services
    'BatchUploadOrchestrator',
    'UploadServiceBuilder',
    'build_storage_backend',
    'bulk_upload_files',
]

# Package version
__version__ = "1.0.0"

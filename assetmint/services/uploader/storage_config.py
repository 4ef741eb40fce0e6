"""
Storage backend configuration.

Exactly one of the uploader option blocks may be set. JSON keys are
camelCase, matching the config files the CLI reads:

    {"nftStorageUploaderOptions": {"token": "...", "useGatewayUrls": true}}
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from assetmint.core.exceptions import ConfigurationError

AWS = "awsUploaderOptions"
IRYS = "irysUploaderOptions"
NFT_STORAGE = "nftStorageUploaderOptions"


class _Options(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AwsCredentials(_Options):
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None


class AwsClientConfig(_Options):
    region: Optional[str] = None
    credentials: Optional[AwsCredentials] = None
    endpoint: Optional[str] = None  # S3-compatible services such as R2


class AwsUploaderOptions(_Options):
    client_config: AwsClientConfig
    bucket_name: Optional[str] = None
    create_bucket_if_missing: bool = False
    payer: Optional[str] = None


class IrysUploaderOptions(_Options):
    address: str = "https://node1.irys.xyz"
    timeout: Optional[int] = None  # milliseconds
    price_multiplier: float = Field(1.0, gt=0)
    payer: Optional[str] = None


class NftStorageUploaderOptions(_Options):
    token: Optional[str] = None
    endpoint: str = "https://api.nft.storage"
    gateway_host: Optional[str] = None
    batch_size: int = Field(50, gt=0)
    use_gateway_urls: bool = True
    payer: Optional[str] = None


class StorageConfig(_Options):
    aws_uploader_options: Optional[AwsUploaderOptions] = None
    irys_uploader_options: Optional[IrysUploaderOptions] = None
    nft_storage_uploader_options: Optional[NftStorageUploaderOptions] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorageConfig":
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid storage configuration: {e}") from e

    @classmethod
    def from_file(cls, path: str) -> "StorageConfig":
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not read storage config {path}: {e}") from e
        return cls.from_dict(data)

    def configured_variants(self) -> List[str]:
        variants = []
        if self.aws_uploader_options is not None:
            variants.append(AWS)
        if self.irys_uploader_options is not None:
            variants.append(IRYS)
        if self.nft_storage_uploader_options is not None:
            variants.append(NFT_STORAGE)
        return variants

    def selected(self) -> Tuple[str, _Options]:
        """Return the single configured variant and its options"""
        variants = self.configured_variants()
        if not variants:
            raise ConfigurationError("No uploader selected")
        if len(variants) > 1:
            raise ConfigurationError(f"Only one uploader may be configured, got: {', '.join(variants)}")

        variant = variants[0]
        options = {
            AWS: self.aws_uploader_options,
            IRYS: self.irys_uploader_options,
            NFT_STORAGE: self.nft_storage_uploader_options,
        }[variant]
        return variant, options

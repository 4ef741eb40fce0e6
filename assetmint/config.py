# config.py
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=Path(__file__).parents[1] / ".env",
        env_prefix="ASSETMINT_",
        extra="ignore",
    )

    # Batch uploads
    upload_chunk_size: int = 5
    request_timeout: float = 30.0

    # Reports
    output_dir: str = "./out"
    log_level: str = "INFO"

    # Chain
    env: str = "devnet"  # mainnet-beta, testnet, devnet
    rpc_url: Optional[str] = None
    asset_builder: Optional[str] = None  # "package.module:factory"

    # Public gateways used to build resolved URIs
    irys_gateway: str = "https://gateway.irys.xyz"
    ipfs_gateway: str = "https://nftstorage.link"


settings = Settings()

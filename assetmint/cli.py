"""
Command line interface for bulk uploads, asset minting and collection management
"""

import argparse
import json
import logging
import os
import sys
import time
from typing import Any, List, Optional

from tqdm import tqdm

from assetmint.config import settings
from assetmint.core.exceptions import ConfigurationError, UploaderError, ValidationError
from assetmint.models.collection import CollectionConfig, build_royalties
from assetmint.models.upload import UploadRequest, UploadSuccess
from assetmint.services.assets import AssetService, ComputeBudget, load_builder_factory
from assetmint.services.uploader import StorageConfig, UploadServiceBuilder
from assetmint.services.uploader import builder as storage_builder
from assetmint.services.wallet import load_keypair

logger = logging.getLogger(__name__)


def write_report(data: Any, file_name: str, out_dir: Optional[str] = None, enabled: bool = True) -> Optional[str]:
    """Write `data` as indented JSON into the output directory"""
    if not enabled:
        return None
    out_dir = out_dir or settings.output_dir
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, file_name)
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)
    print(f"✅ Data saved to {path}")
    return path


def load_requests(path: str) -> List[UploadRequest]:
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ValidationError(f"Could not read upload requests from {path}: {e}") from e
    if not isinstance(data, list):
        raise ValidationError(f"{path} must contain a JSON array of upload requests")
    return [UploadRequest.from_dict(item) for item in data]


def _add_chain_options(command: argparse.ArgumentParser):
    command.add_argument("-k", "--keypair", required=True,
                         help="Wallet keypair file or base58 secret")
    command.add_argument("-e", "--env", default=settings.env,
                         help=f"Cluster name: mainnet-beta, testnet, devnet (default: {settings.env})")
    command.add_argument("-r", "--rpc", default=settings.rpc_url,
                         help="RPC URL, overrides the cluster default")
    command.add_argument("-cp", "--compute-price", type=int, default=0,
                         help="Compute unit price in micro-lamports")
    command.add_argument("-cl", "--compute-limit", type=int, default=0,
                         help="Compute unit limit")
    command.add_argument("--builder", default=settings.asset_builder,
                         help="Transaction builder factory as package.module:factory")
    command.add_argument("--out-dir", default=settings.output_dir,
                         help=f"Directory for the result file (default: {settings.output_dir})")
    command.add_argument("--no-log", dest="log", action="store_false",
                         help="Do not write the result to a file")


def _add_upload_options(command: argparse.ArgumentParser):
    command.add_argument("--file",
                         help="Upload this file first and use its URI")
    command.add_argument("--file-type",
                         help="MIME type of --file, sniffed when omitted")
    command.add_argument("--storage-config",
                         help="JSON storage config used with --file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetmint",
        description="Upload asset media and metadata, then mint and manage assets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upload everything listed in files.json to NFT.Storage
  assetmint upload --requests files.json --storage-config nft-storage.json

  # Pay for Irys uploads with a delegated wallet, smaller chunks
  assetmint upload --requests files.json --storage-config irys.json -k ~/wallet.json --chunk-size 2

  # Collection with 5% royalties split between two creators
  assetmint createCollection -k ~/wallet.json -n "My Collection" -ex https://x/c.json \\
      -f 500 -cts <address1>:60,<address2>:40

  # Asset whose metadata is uploaded first
  assetmint createAsset -k ~/wallet.json -n "Asset #1" --file 1.json --storage-config irys.json
        """
    )
    parser.add_argument("--log-level", default=settings.log_level,
                        help=f"Logging level (default: {settings.log_level})")

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload = subparsers.add_parser("upload", help="Bulk upload files")
    upload.add_argument("--requests", required=True,
                        help="JSON array of {filePath|fileUrl, fileName, type}")
    upload.add_argument("--storage-config", required=True,
                        help="JSON storage config with exactly one uploader")
    upload.add_argument("-k", "--keypair",
                        help="Wallet keypair file or base58 secret")
    upload.add_argument("--chunk-size", type=int, default=settings.upload_chunk_size,
                        help=f"Concurrent uploads per chunk (default: {settings.upload_chunk_size})")
    upload.add_argument("--out-dir", default=settings.output_dir,
                        help=f"Directory for the upload report (default: {settings.output_dir})")
    upload.add_argument("--no-log", dest="log", action="store_false",
                        help="Do not write the report to a file")

    collection = subparsers.add_parser("createCollection", aliases=["create-collection"],
                                       help="Create a new collection")
    collection.add_argument("-n", "--name", help="Collection name")
    collection.add_argument("-ex", "--external-url", help="External JSON URL with metadata")
    collection.add_argument("-f", "--seller-fee-basis-points", type=int,
                            help="Royalty in basis points, used with --creators")
    collection.add_argument("-cts", "--creators",
                            help="Creators as <address>:<percentage>, comma separated")
    collection.add_argument("-cf", "--collection-config",
                            help="JSON collection config, overrides name, URL and royalties")
    _add_upload_options(collection)
    _add_chain_options(collection)
    collection.set_defaults(handler=run_create_collection)

    asset = subparsers.add_parser("createAsset", aliases=["create-asset"], help="Create a new asset")
    asset.add_argument("-n", "--name", required=True, help="Asset name")
    asset.add_argument("-ex", "--external-url", help="External JSON URL with metadata")
    asset.add_argument("-cc", "--collection", help="Collection address")
    _add_upload_options(asset)
    _add_chain_options(asset)
    asset.set_defaults(handler=run_create_asset)

    update_asset = subparsers.add_parser("updateAsset", aliases=["update-asset"],
                                         help="Rename or repoint an asset")
    update_asset.add_argument("address", help="Asset address")
    update_asset.add_argument("--new-name", help="New asset name")
    update_asset.add_argument("--new-uri", help="New metadata URI")
    update_asset.add_argument("-cc", "--collection", help="Collection the asset belongs to")
    _add_chain_options(update_asset)
    update_asset.set_defaults(handler=run_update_asset)

    update_collection = subparsers.add_parser("updateCollection", aliases=["update-collection"],
                                              help="Rename or repoint a collection")
    update_collection.add_argument("address", help="Collection address")
    update_collection.add_argument("--new-name", help="New collection name")
    update_collection.add_argument("--new-uri", help="New metadata URI")
    _add_chain_options(update_collection)
    update_collection.set_defaults(handler=run_update_collection)
    return parser


def run_upload(args) -> int:
    try:
        config = StorageConfig.from_file(args.storage_config)
        requests = load_requests(args.requests)
        identity = load_keypair(args.keypair) if args.keypair else None
        orchestrator = UploadServiceBuilder.build(config, identity=identity, chunk_size=args.chunk_size)
    except (ConfigurationError, ValidationError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 2

    counts = {"uploaded": 0, "failed": 0}
    pbar = tqdm(total=len(requests), desc="Uploading files")

    def on_progress(outcome):
        counts["uploaded" if isinstance(outcome, UploadSuccess) else "failed"] += 1
        pbar.update(1)
        pbar.set_description(f"Uploaded: {counts['uploaded']}, Failed: {counts['failed']}")

    report = orchestrator.run(requests, on_progress=on_progress)
    pbar.close()

    print(f"\nUpload Summary:")
    print(f"✓ Uploaded: {len(report.uploaded)}")
    print(f"✗ Failed: {len(report.failed)}")
    skipped = len(requests) - report.attempted
    if skipped:
        print(f"⏹️  Not attempted: {skipped}")
    for failure in report.failed:
        print(f"  - {failure.original_source}: {failure.error_message}")

    write_report(report.to_dict(), f"upload-{int(time.time())}.json", args.out_dir, enabled=args.log)
    return 0


def _asset_service(args) -> AssetService:
    """Wallet, transaction builder and optional storage backend from command line options"""
    if not args.builder:
        raise ConfigurationError("No asset transaction builder configured, pass --builder or set ASSETMINT_ASSET_BUILDER")
    identity = load_keypair(args.keypair)
    factory = load_builder_factory(args.builder)
    tx_builder = factory(identity=identity, rpc_url=args.rpc, env=args.env)

    backend = None
    if getattr(args, "file", None):
        if not args.storage_config:
            raise ConfigurationError("--storage-config is required with --file")
        config = StorageConfig.from_file(args.storage_config)
        backend = storage_builder.build_storage_backend(config, identity=identity)
    return AssetService(tx_builder, backend=backend)


def _compute(args) -> ComputeBudget:
    return ComputeBudget(price=args.compute_price, units=args.compute_limit)


def _upload_request(args) -> UploadRequest:
    return UploadRequest(file_path=args.file, type=args.file_type)


def _run_chain_command(args, action, report_prefix: str) -> int:
    """Run `action(service)` and report the receipt, mapping errors to exit codes"""
    try:
        service = _asset_service(args)
        receipt = action(service)
    except (ConfigurationError, ValidationError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 2
    except UploaderError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"❌ Failed: {e}", file=sys.stderr)
        return 1

    print(f"✓ Address: {receipt.address}")
    print(f"✓ Signature: {receipt.signature}")
    write_report(receipt.to_dict(), f"{report_prefix}-{receipt.address}.json", args.out_dir, enabled=args.log)
    return 0


def run_create_collection(args) -> int:
    def action(service: AssetService):
        if args.collection_config:
            config = CollectionConfig.from_file(args.collection_config)
            name, uri, royalties = config.name, config.uri, config.royalty_enforcement_config
        else:
            if not args.name:
                raise ValidationError("--name is required without --collection-config")
            name, uri = args.name, args.external_url
            royalties = build_royalties(args.seller_fee_basis_points, args.creators)

        if args.file:
            return service.create_collection_from_upload(name, _upload_request(args),
                                                         royalties=royalties, compute=_compute(args))
        if not uri:
            raise ValidationError("Either --external-url or --file is required")
        return service.create_collection(name, uri, royalties=royalties, compute=_compute(args))

    return _run_chain_command(args, action, "collection")


def run_create_asset(args) -> int:
    def action(service: AssetService):
        if args.file:
            return service.create_asset_from_upload(args.name, _upload_request(args),
                                                    collection=args.collection, compute=_compute(args))
        if not args.external_url:
            raise ValidationError("Either --external-url or --file is required")
        return service.create_asset(args.name, args.external_url,
                                    collection=args.collection, compute=_compute(args))

    return _run_chain_command(args, action, "asset")


def run_update_asset(args) -> int:
    def action(service: AssetService):
        return service.update_asset(args.address, new_name=args.new_name, new_uri=args.new_uri,
                                    collection=args.collection, compute=_compute(args))

    return _run_chain_command(args, action, "asset")


def run_update_collection(args) -> int:
    def action(service: AssetService):
        return service.update_collection(args.address, new_name=args.new_name, new_uri=args.new_uri,
                                         compute=_compute(args))

    return _run_chain_command(args, action, "collection")


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format='%(asctime)s - %(levelname)s - %(message)s')

    if args.command == "upload":
        return run_upload(args)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())

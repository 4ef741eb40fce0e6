import logging
import time
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from assetmint.core.cancellation import CancellationToken
from assetmint.core.exceptions import TransientIOError
from assetmint.models.generic_file import GenericFile
from assetmint.services.uploader.interfaces import ProgressCallback, StorageBackend
from assetmint.services.wallet import Keypair

logger = logging.getLogger(__name__)

# Regions where create_bucket must not send a LocationConstraint
NO_LOCATION_CONSTRAINT = (None, "us-east-1", "auto")


def _error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        code = error.get("Code")
        if code == "NoSuchBucket":
            return "S3 bucket does not exist"
        if code == "AccessDenied":
            return "Access denied to S3 bucket. Check your credentials and bucket permissions"
        if code == "InvalidAccessKeyId":
            return "Invalid AWS credentials. Check your access key and secret key"
        return error.get("Message") or str(e)
    return str(e)


class S3Uploader(StorageBackend):
    """S3 (or S3-compatible) bucket upload implementation"""

    name = "aws"

    def __init__(self,
                 bucket_name: Optional[str],
                 region: Optional[str],
                 access_key: str,
                 secret_key: str,
                 endpoint_url: Optional[str] = None,
                 create_bucket_if_missing: bool = False,
                 payer: Optional[Keypair] = None,
                 boto_client=None):
        super().__init__(payer)
        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        self.create_bucket_if_missing = create_bucket_if_missing
        self.boto_client = boto_client or boto3.client(
                's3',
                endpoint_url=self.endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=Config(
                    region_name=region or 'auto',
                    signature_version='s3v4'
                )
            )

    def upload(self,
               file: GenericFile,
               on_progress: Optional[ProgressCallback] = None,
               cancel: Optional[CancellationToken] = None) -> str:
        self._check_cancelled(cancel)
        self.ensure_provisioned()

        put_params = {
            "Bucket": self.bucket_name,
            "Key": file.unique_name,
            "Body": file.buffer,
            "ContentType": file.content_type,
        }
        if self.payer is not None:
            put_params["Metadata"] = {"payer": self.payer.public_key}

        try:
            self.boto_client.put_object(**put_params)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload failed for {file.unique_name}: {e}")
            raise TransientIOError(f"Failed to upload {file.file_name} to S3: {_error_message(e)}") from e

        if on_progress:
            on_progress(100)
        return self.object_url(file.unique_name)

    def object_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def _provision(self) -> None:
        if self.bucket_name and not self.create_bucket_if_missing:
            return
        if self.bucket_name and self._bucket_exists():
            return
        if not self.bucket_name:
            self.bucket_name = f"assetmint-{int(time.time())}"
        self._create_bucket()

    def _bucket_exists(self) -> bool:
        try:
            self.boto_client.head_bucket(Bucket=self.bucket_name)
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchBucket", "NotFound"):
                return False
            raise TransientIOError(f"Could not check bucket {self.bucket_name}: {_error_message(e)}") from e
        except BotoCoreError as e:
            raise TransientIOError(f"Could not check bucket {self.bucket_name}: {e}") from e

    def _create_bucket(self) -> None:
        params = {"Bucket": self.bucket_name}
        if self.region not in NO_LOCATION_CONSTRAINT:
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.boto_client.create_bucket(**params)
        except (BotoCoreError, ClientError) as e:
            raise TransientIOError(f"Failed to create bucket {self.bucket_name}: {_error_message(e)}") from e
        logger.info(f"Created bucket {self.bucket_name}")

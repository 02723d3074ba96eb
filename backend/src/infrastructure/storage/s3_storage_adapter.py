"""S3 Storage Adapter - Implementation of BlobStoragePort using boto3.

Provides path-addressed storage on AWS S3, MinIO and other S3-compatible
services. Storage paths are used verbatim as object keys.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
import mimetypes
from typing import Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from domain.publications.errors import FileNotFound, StorageError, StorageWriteError
from domain.storage.ports.blob_storage_port import BlobStoragePort

logger = logging.getLogger(__name__)


class S3StorageAdapter(BlobStoragePort):
    """S3-compatible storage adapter using boto3.

    S3 has no rename, so move() is copy_object followed by delete_object.
    If the copy fails the source object is left untouched. If the delete
    fails after a successful copy, the copy is removed again so the file
    exists in exactly one place.

    Example:
        config = load_storage_config(get_settings())
        storage = S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )
        storage.put("temp_publications/a/2024/01/02/a.pdf", data)
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        public_base_url: Optional[str] = None,
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region (default: 'us-east-1')
            public_base_url: Base URL for url(); defaults to the bucket URL

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except (ClientError, ValueError) as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        if public_base_url:
            self.public_base_url = public_base_url.rstrip("/")
        elif endpoint_url:
            self.public_base_url = f"{endpoint_url.rstrip('/')}/{bucket_name}"
        else:
            self.public_base_url = f"https://{bucket_name}.s3.{region}.amazonaws.com"

        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    def exists(self, path: str) -> bool:
        """Check if an object exists (HEAD request, faster than GET)."""
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=path)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            logger.error(f"Error checking file existence: path={path}, error={error_code}")
            raise StorageError(f"Failed to check file: {error_code}", details={"path": path})

    def get(self, path: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=path)
            return response["Body"].read()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey"):
                logger.warning(f"File not found: path={path}")
                raise FileNotFound(f"File not found: {path}", details={"path": path})
            logger.error(f"S3 retrieval failed: path={path}, error={error_code}")
            raise StorageError(f"Failed to retrieve file: {error_code}", details={"path": path})

    def put(self, path: str, data: bytes) -> None:
        content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
            logger.info(f"Uploaded file: path={path}, size={len(data)}")
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 upload failed: path={path}, error={error_code}, message={e}")
            raise StorageWriteError(f"Failed to upload file: {error_code}", details={"path": path})

    def move(self, source: str, destination: str) -> None:
        if not self.exists(source):
            raise FileNotFound(f"File not found: {source}", details={"path": source})
        if self.exists(destination):
            raise StorageWriteError(
                f"Destination already exists: {destination}",
                details={"path": destination},
            )

        try:
            self.s3_client.copy_object(
                Bucket=self.bucket_name,
                Key=destination,
                CopySource={"Bucket": self.bucket_name, "Key": source},
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 copy failed: {source} -> {destination}, error={error_code}")
            raise StorageWriteError(
                f"Failed to move file: {error_code}",
                details={"source": source, "destination": destination},
            )

        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=source)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 delete after copy failed: {source}, error={error_code}")
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=destination)
            raise StorageWriteError(
                f"Failed to move file: {error_code}",
                details={"source": source, "destination": destination},
            )

    def delete(self, path: str) -> bool:
        if not self.exists(path):
            logger.info(f"File not found for deletion: path={path}")
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=path)
            logger.info(f"Deleted file: path={path}")
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"S3 deletion failed: path={path}, error={error_code}")
            raise StorageWriteError(f"Failed to delete file: {error_code}", details={"path": path})

    def make_directory(self, path: str) -> None:
        # Object stores have no directories; keys carry the full path
        return None

    def url(self, path: str) -> str:
        return f"{self.public_base_url}/{path.lstrip('/')}"

    def health_check(self) -> bool:
        """Verify that the configured bucket is reachable."""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Bucket check failed: bucket={self.bucket_name}, error={error_code}")
            return False

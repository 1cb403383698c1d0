"""
Object Store Gateway

Byte blobs addressed by storage key, plus time-limited signed download URLs.
The lifecycle engine only talks to `ObjectStoreGateway`; `GCSObjectStore` is
the production implementation on google-cloud-storage.
"""

import logging
from datetime import timedelta
from typing import Optional

from google.api_core.client_options import ClientOptions
from google.auth.credentials import AnonymousCredentials
from google.cloud import storage
from google.cloud.exceptions import GoogleCloudError, NotFound

from fileshare.core.config import settings
from fileshare.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStoreGateway:
    """
    Contract the share lifecycle expects from object storage.

    Implementations raise `StorageError` for any transport or service failure.
    """

    def put(self, key: str, data: bytes, content_type: str) -> None:
        raise NotImplementedError

    def get(self, key: str) -> bytes:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def public_url(self, key: str) -> str:
        raise NotImplementedError

    def signed_url(self, key: str, filename: str, ttl: timedelta) -> str:
        raise NotImplementedError


class GCSObjectStore(ObjectStoreGateway):
    """
    Google Cloud Storage implementation of ObjectStoreGateway.

    Attributes:
        bucket_name: Name of the bucket holding every shared blob
        client: Google Cloud Storage client instance
        bucket: Bucket object
    """

    def __init__(self, bucket_name: str, project: Optional[str] = None, api_endpoint: Optional[str] = None):
        """
        Args:
            bucket_name: Name of the bucket to use
            project: GCP project, None to take it from the environment
            api_endpoint: Alternate API address (emulator or compatible gateway)

        Raises:
            ValueError: If bucket_name is empty
        """
        if not bucket_name or not bucket_name.strip():
            raise ValueError("bucket_name cannot be empty")

        self.bucket_name = bucket_name
        self.api_endpoint = (api_endpoint or "").rstrip("/")
        if self.api_endpoint:
            # Emulators accept unauthenticated requests
            self.client = storage.Client(
                project=project or "local",
                credentials=AnonymousCredentials(),
                client_options=ClientOptions(api_endpoint=self.api_endpoint),
            )
        else:
            self.client = storage.Client(project=project or None)
        self.bucket = self.client.bucket(bucket_name)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            blob = self.bucket.blob(key)
            blob.upload_from_string(data, content_type=content_type)
        except GoogleCloudError as e:
            logger.error(f"Upload of {key} failed: {e}")
            raise StorageError(f"Failed to store object: {e}") from e

    def get(self, key: str) -> bytes:
        try:
            return self.bucket.blob(key).download_as_bytes()
        except NotFound as e:
            raise StorageError(f"Object not found: {key}") from e
        except GoogleCloudError as e:
            raise StorageError(f"Failed to read object: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.bucket.blob(key).delete()
        except GoogleCloudError as e:
            logger.error(f"Delete of {key} failed: {e}")
            raise StorageError(f"Failed to delete object: {e}") from e

    def public_url(self, key: str) -> str:
        if self.api_endpoint:
            return f"{self.api_endpoint}/{self.bucket_name}/{key}"
        return self.bucket.blob(key).public_url

    def signed_url(self, key: str, filename: str, ttl: timedelta) -> str:
        try:
            return self.bucket.blob(key).generate_signed_url(
                version="v4",
                expiration=ttl,
                method="GET",
                response_disposition=f'attachment; filename="{filename}"',
            )
        except (GoogleCloudError, AttributeError, ValueError) as e:
            # AttributeError/ValueError: credentials that cannot sign
            raise StorageError(f"Failed to generate signed URL: {e}") from e


def build_object_store() -> ObjectStoreGateway:
    return GCSObjectStore(
        settings.GCS_BUCKET_NAME,
        project=settings.GCS_PROJECT or None,
        api_endpoint=settings.GCS_API_ENDPOINT or None,
    )

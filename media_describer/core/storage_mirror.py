"""Cloud Storage mirror for downloaded assets."""

import logging
import posixpath
import threading
from typing import Optional

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from media_describer.errors import MirrorError

logger = logging.getLogger(__name__)


def object_path(folder_path: str, object_name: str) -> str:
    """Join a folder prefix and an object name into a blob path."""
    prefix = (folder_path or "").strip("/")
    name = object_name.lstrip("/")
    return posixpath.join(prefix, name) if prefix else name


class GCSMirror:
    """
    Uploads asset bytes to a single bucket, skipping objects that exist.

    The storage client is created on first use with Application Default
    Credentials, so a missing ADC setup only fails the mirror step.
    """

    def __init__(self, bucket_name: str, project_id: Optional[str] = None, client=None):
        bucket = (bucket_name or "").strip()
        if not bucket:
            raise ValueError("GCS bucket name is required.")

        self.bucket_name = bucket
        self.project_id = project_id
        self._client = client
        self._bucket = None
        self._lock = threading.Lock()

    @property
    def bucket(self):
        with self._lock:
            if self._bucket is None:
                if self._client is None:
                    try:
                        self._client = storage.Client(project=self.project_id)
                    except (GoogleAuthError, GoogleAPIError, OSError) as e:
                        raise MirrorError(f"failed to create client: {e}") from e
                self._bucket = self._client.bucket(self.bucket_name)
            return self._bucket

    def exists(self, path: str) -> bool:
        """
        Probe object metadata.

        Raises:
            MirrorError: On any probe failure other than "not found"
        """
        bucket = self.bucket
        try:
            return bucket.get_blob(path) is not None
        except (GoogleAPIError, OSError) as e:
            raise MirrorError(f"failed to check object existence: {e}") from e

    def upload(
        self,
        folder_path: str,
        object_name: str,
        data: bytes,
        override: bool = False,
        content_type: Optional[str] = None
    ) -> bool:
        """
        Ensure the object exists at folder_path/object_name.

        Args:
            folder_path: Prefix inside the bucket, may be empty
            object_name: Object name, the asset's display name
            data: Content to upload
            override: Upload even when the object already exists
            content_type: Content type stored on the object

        Returns:
            True if bytes were uploaded, False if an existing object was kept

        Raises:
            MirrorError: If the probe or the upload fails
        """
        path = object_path(folder_path, object_name)

        if not override and self.exists(path):
            logger.info(f"File '{path}' already exists in GCS {self.bucket_name}. Skipping upload.")
            return False

        blob = self.bucket.blob(path)
        try:
            blob.upload_from_string(data, content_type=content_type)
        except (GoogleAPIError, OSError) as e:
            raise MirrorError(f"failed to write file to GCS: {e}") from e

        logger.info(f"uploaded to {self.bucket_name}/{path}")
        return True

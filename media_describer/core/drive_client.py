"""
Google Drive Client for the Media Describer pipeline.

Lists the media files of a folder and downloads their content using the
user's OAuth credentials.
"""

import io
import logging
import threading
from typing import Any, Callable, List, Optional, Sequence

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload
from pydantic import ValidationError

from media_describer.errors import ConfigurationError, ListingError, TransferError
from media_describer.core.models import Asset

logger = logging.getLogger(__name__)

LIST_FIELDS = 'nextPageToken, files(id, name, mimeType, size)'


def _quote(value: str) -> str:
    """Quote a string literal for a Drive query."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def build_list_query(folder_id: str, mime_types: Sequence[str]) -> str:
    """
    Build a Drive query for direct children of a folder matching any MIME type.

    ref https://developers.google.com/drive/api/guides/search-files
    """
    mime_filter = " or ".join(f"mimeType = {_quote(mime)}" for mime in mime_types)
    return f"{_quote(folder_id)} in parents and ({mime_filter}) and trashed = false"


class GoogleDriveClient:
    """
    Google Drive client for asset discovery and download.

    The discovery-based service object is not thread-safe, so each worker
    thread gets its own service built from the shared credentials.
    """

    def __init__(self, credentials: Any = None, service_factory: Optional[Callable[[], Any]] = None):
        """
        Args:
            credentials: Authorized google-auth credentials
            service_factory: Builds a Drive v3 service. Defaults to
                             googleapiclient's build() with the credentials.
        """
        if credentials is None and service_factory is None:
            raise ValueError("Drive client needs credentials or a service factory")

        self.creds = credentials
        self._service_factory = service_factory or self._build_service
        self._local = threading.local()

    def _build_service(self):
        return build('drive', 'v3', credentials=self.creds, cache_discovery=False)

    @property
    def service(self):
        service = getattr(self._local, "service", None)
        if service is None:
            service = self._service_factory()
            self._local.service = service
        return service

    def list_assets(
        self,
        folder_id: str,
        mime_types: Sequence[str],
        page_size: int = 1000
    ) -> List[Asset]:
        """
        List files directly inside a folder whose MIME type is in mime_types.

        Follows continuation tokens until the listing is exhausted.

        Args:
            folder_id: Google Drive folder ID
            mime_types: Allowed MIME types (matched with OR)
            page_size: Files requested per page

        Returns:
            Assets in the order Drive returned them

        Raises:
            ConfigurationError: If mime_types is empty
            ListingError: If Drive cannot be queried
        """
        allowed = {mime for mime in mime_types if mime}
        if not allowed:
            raise ConfigurationError("At least one MIME type is required to list assets")

        query = build_list_query(folder_id, [mime for mime in mime_types if mime])

        files = []
        page_token = None

        while True:
            try:
                results = self.service.files().list(
                    q=query,
                    spaces='drive',
                    fields=LIST_FIELDS,
                    pageSize=page_size,
                    pageToken=page_token,
                    supportsAllDrives=True,
                    includeItemsFromAllDrives=True
                ).execute()
            except HttpError as e:
                raise ListingError(f"error occurred while listing files: {e}") from e
            except OSError as e:
                raise ListingError(f"unable to reach Drive while listing files: {e}") from e

            files.extend(results.get('files', []))
            page_token = results.get('nextPageToken')
            if not page_token:
                break

        assets = []
        for f in files:
            if not f or f.get('mimeType') not in allowed:
                continue
            try:
                assets.append(Asset.model_validate(f))
            except ValidationError as e:
                logger.warning(f"Skipping file with unusable metadata {f.get('id')}: {e}")

        logger.info(f"{folder_id} has {len(assets)} files matching {query}")
        return assets

    def download_bytes(self, file_id: str) -> bytes:
        """
        Download a file's content.

        Args:
            file_id: Google Drive file ID

        Returns:
            File bytes

        Raises:
            TransferError: On a non-success HTTP status or transport failure
        """
        try:
            request = self.service.files().get_media(fileId=file_id)
            buffer = io.BytesIO()

            downloader = MediaIoBaseDownload(buffer, request)

            done = False
            while not done:
                _, done = downloader.next_chunk()

            return buffer.getvalue()

        except HttpError as e:
            status = getattr(e.resp, "status", "unknown")
            raise TransferError(f"HTTP status code {status} downloading {file_id}") from e
        except OSError as e:
            raise TransferError(f"Unable to read response body for {file_id}: {e}") from e

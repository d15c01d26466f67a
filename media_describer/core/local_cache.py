"""
Local download cache.

Keeps one copy of each asset on disk, named after its Drive display name.
A file that already exists is never overwritten; there is no checksum or
modification-time comparison.
"""

import logging
from pathlib import Path

from media_describer.errors import TransferError
from media_describer.core.drive_client import GoogleDriveClient
from media_describer.core.models import Asset

logger = logging.getLogger(__name__)


class LocalCache:
    """Downloads assets and writes them to a local folder once."""

    def __init__(self, drive_client: GoogleDriveClient, folder: Path):
        self.drive = drive_client
        self.folder = Path(folder)

    def path_for(self, asset: Asset) -> Path:
        """
        Local path of an asset's copy, always inside the local folder.

        Raises:
            TransferError: If the display name resolves outside the folder
        """
        path = self.folder / asset.name.lstrip("/")
        if not path.resolve().is_relative_to(self.folder.resolve()):
            raise TransferError(f"file name {asset.name!r} resolves outside {self.folder}")
        return path

    def ensure_folder(self) -> None:
        """Create the local folder (and parents) if it doesn't exist."""
        self.folder.mkdir(parents=True, exist_ok=True)

    def fetch(self, asset: Asset) -> bytes:
        """
        Download an asset and store it locally unless a copy already exists.

        The bytes are always fetched from Drive, so callers get data even on
        a cache hit. The cache only avoids rewriting the local file.

        Raises:
            TransferError: If the name is unusable, or the download or the
                           local write fails
        """
        local_path = self.path_for(asset)

        data = self.drive.download_bytes(asset.id)
        logger.info(f"Obtained file bytes {asset.name} ({len(data)})")

        try:
            self.ensure_folder()
        except OSError as e:
            raise TransferError(f"Unable to create local folder: {e}") from e

        # "x" mode: two assets sharing a display name never both write
        try:
            with open(local_path, "xb") as f:
                logger.info(f"writing {asset.name} ...")
                f.write(data)
        except FileExistsError:
            logger.info(f"File '{local_path}' exists locally, skipping write.")
        except OSError as e:
            raise TransferError(f"unable to write file: {e}") from e

        return data

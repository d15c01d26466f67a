"""
Describe Orchestrator for the Media Describer pipeline.

Coordinates the per-asset pipeline and collects one report row per asset.
"""

import asyncio
import threading
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from media_describer.errors import MirrorError, PromptTemplateError, TransferError
from media_describer.core.local_cache import LocalCache
from media_describer.core.models import Asset, DescriptionRecord
from media_describer.core.report_writer import ReportWriter
from media_describer.core.storage_mirror import GCSMirror
from media_describer.core.vision_service import GeminiVisionService

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counts for a finished run."""
    total: int = 0
    described: int = 0
    failed: int = 0
    mirror_failures: int = 0
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    completed_at: Optional[str] = None

    @property
    def status(self) -> str:
        return "success" if self.failed == 0 and self.mirror_failures == 0 else "partial"


class DescribeOrchestrator:
    """
    Main orchestration logic for the describe pipeline.

    Workflow, per asset:
    1. Download bytes from Drive and keep a local copy
    2. Mirror the bytes to Cloud Storage (failures are logged only)
    3. Describe the asset with Gemini
    4. Append a row to the report

    Every asset spawns its own task. max_concurrent bounds how many run at
    once (0 means all of them). Assets finish in no particular order.
    """

    def __init__(
        self,
        local_cache: LocalCache,
        mirror: GCSMirror,
        vision_service: GeminiVisionService,
        report: ReportWriter,
        storage_folder_path: str = "",
        always_upload: bool = False,
        max_files: int = 0,
        max_concurrent: int = 0
    ):
        """
        Initialize describe orchestrator.

        Args:
            local_cache: Downloader with local copy
            mirror: Cloud Storage uploader
            vision_service: Gemini describer
            report: Shared CSV writer
            storage_folder_path: Prefix for mirrored objects
            always_upload: Overwrite mirrored objects that already exist
            max_files: Cap on assets processed, 0 for no cap
            max_concurrent: Cap on assets in flight, 0 for one worker per asset
        """
        self.cache = local_cache
        self.mirror = mirror
        self.vision = vision_service
        self.report = report
        self.storage_folder_path = storage_folder_path
        self.always_upload = always_upload
        self.max_files = max_files
        self.max_concurrent = max_concurrent
        self._counter_lock = threading.Lock()
        self._mirror_failures = 0

    def select(self, assets: Sequence[Asset]) -> List[Asset]:
        """Apply the max_files cap."""
        selected = list(assets)
        if self.max_files > 0:
            selected = selected[:self.max_files]
        return selected

    def process_asset(self, asset: Asset) -> DescriptionRecord:
        """
        Run download, mirror and describe for one asset.

        Download and prompt template failures produce an error record. A
        failed model call produces an empty description with size 0 and is
        not counted as a failure.
        """
        try:
            data = self.cache.fetch(asset)
        except TransferError as e:
            logger.warning(f"unable to describe {asset.name}: {e}")
            return DescriptionRecord.from_error(asset, e)

        try:
            self.mirror.upload(
                self.storage_folder_path,
                asset.name,
                data,
                override=self.always_upload,
                content_type=asset.mime_type
            )
        except MirrorError as e:
            logger.warning(f"Unable to upload {asset.name} to GCS: {e}")
            with self._counter_lock:
                self._mirror_failures += 1

        try:
            description = self.vision.describe(data, asset.mime_type, asset.name)
        except PromptTemplateError as e:
            logger.warning(f"unable to describe {asset.name}: {e}")
            return DescriptionRecord.from_error(asset, e)

        if description is None:
            return DescriptionRecord(
                name=asset.name,
                mime_type=asset.mime_type,
                file_id=asset.id
            )

        return DescriptionRecord(
            name=asset.name,
            size=len(data),
            mime_type=asset.mime_type,
            file_id=asset.id,
            description=description
        )

    async def run(self, assets: Sequence[Asset]) -> RunSummary:
        """
        Process assets concurrently and write one report row per asset.

        Returns once every asset has been written.
        """
        selected = self.select(assets)
        summary = RunSummary(total=len(selected))
        self._mirror_failures = 0

        if not selected:
            logger.info("No assets to process")
            summary.completed_at = datetime.now(timezone.utc).isoformat()
            return summary

        workers = self.max_concurrent or len(selected)
        semaphore = asyncio.Semaphore(workers)
        loop = asyncio.get_running_loop()

        logger.info(f"Processing {len(selected)} assets with up to {workers} in flight")

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="describe") as executor:

            async def run_one(asset: Asset) -> DescriptionRecord:
                async with semaphore:
                    try:
                        record = await loop.run_in_executor(executor, self.process_asset, asset)
                    except Exception as e:
                        logger.error(f"Unexpected error processing {asset.name}: {e}", exc_info=True)
                        record = DescriptionRecord.from_error(asset, e)

                    await loop.run_in_executor(executor, self.report.write_record, record)

                logger.info(f"{record.name} ({record.mime_type}) {record.file_id} = {record.description}")
                return record

            records = await asyncio.gather(*(run_one(asset) for asset in selected))

        summary.failed = sum(1 for r in records if r.is_error)
        summary.described = summary.total - summary.failed
        summary.mirror_failures = self._mirror_failures
        summary.completed_at = datetime.now(timezone.utc).isoformat()

        logger.info(
            f"Run complete: {summary.total} assets, "
            f"{summary.described} described, {summary.failed} failed"
        )
        return summary

    def run_sync(self, assets: Sequence[Asset]) -> RunSummary:
        return asyncio.run(self.run(assets))

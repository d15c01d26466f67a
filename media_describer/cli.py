"""
Command line entry point for the Media Describer pipeline.

Authorizes against Google Drive, lists the source folder, then downloads,
mirrors and describes every matching asset into a CSV report.
"""

import logging
from typing import Optional, Sequence

from google.auth.exceptions import GoogleAuthError

from media_describer.config.settings import PipelineConfig, get_pipeline_config
from media_describer.errors import FATAL_ERRORS, ConfigurationError
from media_describer.core.describe_orchestrator import DescribeOrchestrator, RunSummary
from media_describer.core.drive_client import GoogleDriveClient
from media_describer.core.local_cache import LocalCache
from media_describer.core.oauth_manager import CredentialStore, build_credential_store
from media_describer.core.report_writer import ReportWriter
from media_describer.core.storage_mirror import GCSMirror
from media_describer.core.vision_service import GeminiVisionService, PromptRenderer

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def create_vision_service(config: PipelineConfig) -> GeminiVisionService:
    """Build the describer; a client that cannot be created is fatal."""
    try:
        return GeminiVisionService(
            project_id=config.vision.project_id,
            location=config.vision.location,
            model_name=config.vision.model_name,
            enabled=config.vision.enabled,
            prompt_renderer=PromptRenderer(config.vision.prompt_template_path)
        )
    except (GoogleAuthError, ValueError) as e:
        raise ConfigurationError(f"Unable to create genai client: {e}") from e


def run_pipeline(
    config: PipelineConfig,
    credential_store: Optional[CredentialStore] = None,
    drive_client: Optional[GoogleDriveClient] = None,
    vision_service: Optional[GeminiVisionService] = None,
    mirror: Optional[GCSMirror] = None
) -> RunSummary:
    """
    Run the whole pipeline for one configuration.

    Collaborators may be supplied pre-built; anything omitted is created
    from the configuration.

    Raises:
        MediaDescriberError: One of the fatal errors (configuration,
                             authorization, listing, report)
    """
    if drive_client is None:
        store = credential_store or build_credential_store(
            token_file=config.auth.token_file,
            client_secrets_file=config.auth.client_secrets_file,
            scopes=config.auth.scopes,
            manual_auth=config.auth.manual_auth
        )
        drive_client = GoogleDriveClient(store.get_credentials())

    vision_service = vision_service or create_vision_service(config)
    mirror = mirror or GCSMirror(config.storage.bucket, project_id=config.vision.project_id)

    assets = drive_client.list_assets(
        config.drive.folder_id,
        config.drive.mime_types,
        page_size=config.drive.page_size
    )
    logger.info(f"Files {len(assets)}")

    cache = LocalCache(drive_client, config.local_folder)
    try:
        cache.ensure_folder()
    except OSError as e:
        raise ConfigurationError(f"Unable to create local folder {config.local_folder}: {e}") from e

    with ReportWriter.create(config.output_path) as report:
        orchestrator = DescribeOrchestrator(
            local_cache=cache,
            mirror=mirror,
            vision_service=vision_service,
            report=report,
            storage_folder_path=config.storage.folder_path,
            always_upload=config.storage.always_upload,
            max_files=config.max_files,
            max_concurrent=config.max_concurrent
        )
        summary = orchestrator.run_sync(assets)

    logger.info(f"CSV file written successfully to {config.output_path} ({summary.status}).")
    return summary


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    try:
        config = get_pipeline_config(argv)
        logging.getLogger().setLevel(config.log_level)
        run_pipeline(config)
    except FATAL_ERRORS as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""
Configuration settings for the Media Describer pipeline.

Built once at startup from command line flags and environment variables
(optionally loaded from a .env file) and passed to each component.
"""

import os
import argparse
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple

from dotenv import load_dotenv

from media_describer.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "us-central1"
DEFAULT_MODEL_NAME = "gemini-2.0-flash"
DEFAULT_MIME_TYPES = "image/jpeg,image/png"


@dataclass(frozen=True)
class AuthConfig:
    """OAuth settings for Drive access."""
    client_secrets_file: Path
    token_file: Path = Path("token.json")
    manual_auth: bool = False
    scopes: Tuple[str, ...] = ("https://www.googleapis.com/auth/drive",)


@dataclass(frozen=True)
class DriveConfig:
    """Google Drive source settings."""
    folder_id: str
    mime_types: Tuple[str, ...] = ("image/jpeg", "image/png")
    page_size: int = 1000  # Files per list request


@dataclass(frozen=True)
class StorageConfig:
    """Cloud Storage mirror settings."""
    bucket: str
    folder_path: str = ""
    always_upload: bool = False


@dataclass(frozen=True)
class VisionConfig:
    """Gemini on Vertex AI settings."""
    project_id: str
    location: str = DEFAULT_LOCATION
    model_name: str = DEFAULT_MODEL_NAME
    enabled: bool = True
    prompt_template_path: Optional[Path] = None


@dataclass(frozen=True)
class PipelineConfig:
    """Main pipeline configuration."""
    auth: AuthConfig
    drive: DriveConfig
    storage: StorageConfig
    vision: VisionConfig
    local_folder: Path = Path("local")
    output_path: Path = Path("descriptions.csv")
    max_files: int = 0  # 0 = no cap
    max_concurrent: int = 0  # 0 = one worker per asset
    log_level: str = "INFO"


def parse_mime_types(value: str) -> Tuple[str, ...]:
    """Split a comma-separated MIME type list, dropping blanks."""
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return number


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-describer",
        description="Describe Google Drive media with Gemini and mirror it to Cloud Storage."
    )
    parser.add_argument("--folder", required=True, help="source Drive folder ID")
    parser.add_argument("--local", default="local", help="local folder name")
    parser.add_argument(
        "--max", type=_non_negative_int, default=0,
        help="max files to process, useful for processing a small batch"
    )

    parser.add_argument("--gcs-bucket", default="", help="GCS bucket (default: <PROJECT_ID>-media)")
    parser.add_argument("--gcs-path", default="", help="GCS path")
    parser.add_argument("--always-upload", action="store_true", help="always upload to GCS")

    parser.add_argument(
        "--describe", action=argparse.BooleanOptionalAction, default=True,
        help="describe the asset using Gemini"
    )
    parser.add_argument("--prompt", default="", help="a custom prompt template to use")
    parser.add_argument("--mime-types", default=DEFAULT_MIME_TYPES, help="comma-separated list of MIME types")
    parser.add_argument("--model", default=None, help=f"Gemini model (default: $GEMINI_MODEL_NAME or {DEFAULT_MODEL_NAME})")

    parser.add_argument("--output", default="descriptions.csv", help="CSV report path")
    parser.add_argument("--token-file", default="token.json", help="OAuth token cache")
    parser.add_argument(
        "--manual-auth", action="store_true",
        help="paste the authorization code instead of using a local callback"
    )
    parser.add_argument(
        "--concurrency", type=_non_negative_int, default=0,
        help="max assets processed at once, 0 for one worker per asset"
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level"
    )
    return parser


def get_pipeline_config(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> PipelineConfig:
    """
    Create pipeline configuration from command line flags and environment.

    Environment variables:
        PROJECT_ID: Google Cloud project ID (required)
        LOCATION: Vertex AI region (default: us-central1)
        GOOGLE_CREDENTIALS: Path to the OAuth client secret JSON (required)
        GEMINI_MODEL_NAME: Default Gemini model when --model is not given

    Args:
        argv: Command line arguments, sys.argv[1:] if None
        environ: Environment mapping, os.environ (after loading .env) if None

    Returns:
        Immutable PipelineConfig

    Raises:
        ConfigurationError: If a required setting is missing or invalid
    """
    args = build_arg_parser().parse_args(argv)

    if environ is None:
        load_dotenv()
        environ = os.environ

    project_id = environ.get("PROJECT_ID", "").strip()
    if not project_id:
        raise ConfigurationError(
            "Please provide PROJECT_ID environment variable, "
            "e.g. export PROJECT_ID=$(gcloud config get-value core/project)"
        )

    location = environ.get("LOCATION", "").strip() or DEFAULT_LOCATION

    credentials = environ.get("GOOGLE_CREDENTIALS", "").strip()
    if not credentials:
        raise ConfigurationError("GOOGLE_CREDENTIALS not set")

    mime_types = parse_mime_types(args.mime_types)
    if not mime_types:
        raise ConfigurationError("At least one MIME type is required")

    # Default mirror target is gs://PROJECT_ID-media
    bucket = args.gcs_bucket.strip() or f"{project_id}-media"

    model_name = args.model or environ.get("GEMINI_MODEL_NAME", "").strip() or DEFAULT_MODEL_NAME

    config = PipelineConfig(
        auth=AuthConfig(
            client_secrets_file=Path(credentials),
            token_file=Path(args.token_file),
            manual_auth=args.manual_auth
        ),
        drive=DriveConfig(folder_id=args.folder, mime_types=mime_types),
        storage=StorageConfig(
            bucket=bucket,
            folder_path=args.gcs_path,
            always_upload=args.always_upload
        ),
        vision=VisionConfig(
            project_id=project_id,
            location=location,
            model_name=model_name,
            enabled=args.describe,
            prompt_template_path=Path(args.prompt) if args.prompt else None
        ),
        local_folder=Path(args.local),
        output_path=Path(args.output),
        max_files=args.max,
        max_concurrent=args.concurrency,
        log_level=args.log_level
    )

    logger.debug(f"Loaded pipeline config: {config}")
    return config

"""Core components for the Media Describer pipeline."""

from .drive_client import GoogleDriveClient
from .local_cache import LocalCache
from .storage_mirror import GCSMirror
from .vision_service import GeminiVisionService, PromptRenderer
from .report_writer import ReportWriter
from .oauth_manager import CredentialStore, TokenState
from .describe_orchestrator import DescribeOrchestrator, RunSummary

__all__ = [
    "GoogleDriveClient",
    "LocalCache",
    "GCSMirror",
    "GeminiVisionService",
    "PromptRenderer",
    "ReportWriter",
    "CredentialStore",
    "TokenState",
    "DescribeOrchestrator",
    "RunSummary",
]

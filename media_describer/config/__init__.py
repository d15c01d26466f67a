"""Configuration management for the Media Describer pipeline."""

from .settings import (
    PipelineConfig,
    AuthConfig,
    DriveConfig,
    StorageConfig,
    VisionConfig,
    get_pipeline_config,
    parse_mime_types,
)

__all__ = [
    "PipelineConfig",
    "AuthConfig",
    "DriveConfig",
    "StorageConfig",
    "VisionConfig",
    "get_pipeline_config",
    "parse_mime_types",
]

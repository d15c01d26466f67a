"""
Exceptions raised by the media description pipeline.

Fatal errors abort the whole run. Per-asset errors are recorded against a
single asset and the rest of the batch carries on.
"""


class MediaDescriberError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(MediaDescriberError):
    """Raised when required configuration is missing or invalid."""


class AuthorizationError(MediaDescriberError):
    """Raised when an OAuth token cannot be loaded or minted."""


class ListingError(MediaDescriberError):
    """Raised when the source folder cannot be listed."""


class ReportError(MediaDescriberError):
    """Raised when the output report cannot be created or written."""


class TransferError(MediaDescriberError):
    """Raised when an asset cannot be downloaded or cached locally."""


class MirrorError(MediaDescriberError):
    """Raised when an asset cannot be mirrored to Cloud Storage."""


class PromptTemplateError(MediaDescriberError):
    """Raised when a prompt template cannot be loaded or rendered."""


FATAL_ERRORS = (ConfigurationError, AuthorizationError, ListingError, ReportError)

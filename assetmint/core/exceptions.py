"""
Error taxonomy for upload and minting workflows
"""


class UploaderError(Exception):
    """Base class for all assetmint errors"""


class ConfigurationError(UploaderError):
    """Bad or missing storage configuration. Raised before any work starts."""


class ValidationError(UploaderError):
    """A single upload request is malformed"""


class TransientIOError(UploaderError):
    """Network or backend failure for one file"""


class CancellationObserved(UploaderError):
    """An operation noticed that cancellation was requested"""


class AssetNotFoundError(UploaderError):
    """An asset or collection address has no on-chain account"""

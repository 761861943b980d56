"""Error taxonomy for asset persistence and file synchronization.

Every failure is per-operation: callers receive one of these and the
process keeps serving other requests.
"""


class ConfigurationError(Exception):
    """Raised when settings or the mapping file cannot be loaded."""
    pass


class AssetError(Exception):
    """Base class for all asset operation failures."""

    code = "ASSET_ERROR"

    def __init__(self, message: str, context: str = ""):
        super().__init__(message)
        self.message = message
        self.context = context


class DuplicateAsset(AssetError):
    """An asset for the same (curriculum, month) pair already exists."""

    code = "DUPLICATE_ASSET"


class MappingNotFound(AssetError):
    """The mapping table has no book id for the (curriculum, month) pair."""

    code = "MAPPING_NOT_FOUND"


class NotFound(AssetError):
    """No asset record matches the given id."""

    code = "NOT_FOUND"


class FileNotFound(AssetError):
    """A referenced staged or asset file does not exist."""

    code = "FILE_NOT_FOUND"


class IOFailure(AssetError):
    """A file system call failed or a call exceeded its timeout."""

    code = "IO_FAILURE"

    def __init__(self, message: str, context: str = "", retryable: bool = False):
        super().__init__(message, context)
        self.retryable = retryable


class DatabaseFailure(AssetError):
    """The database rejected or failed a call."""

    code = "DATABASE_FAILURE"


class ValidationFailure(AssetError):
    """The request is malformed."""

    code = "VALIDATION_FAILURE"


__all__ = [
    "AssetError",
    "ConfigurationError",
    "DatabaseFailure",
    "DuplicateAsset",
    "FileNotFound",
    "IOFailure",
    "MappingNotFound",
    "NotFound",
    "ValidationFailure",
]

"""Custom exception hierarchy for wiki dump processing."""


class WikiDumpError(Exception):
    """Base exception for all wikidump errors."""

    def __init__(self, message: str, is_retryable: bool = False) -> None:
        """Initialize exception.

        Args:
            message: Error message
            is_retryable: Whether the operation can be retried
        """
        super().__init__(message)
        self.message = message
        self.is_retryable = is_retryable


class ConfigurationError(WikiDumpError):
    """Configuration or environment setup error."""

    pass


class DumpSourceError(WikiDumpError):
    """Dump could not be opened, read or decompressed."""

    pass


class DumpParseError(DumpSourceError):
    """Dump markup is malformed or truncated."""

    pass


class IndexingAbortedError(WikiDumpError):
    """Raised by an indexing sink to end the run without counting a failure."""

    pass

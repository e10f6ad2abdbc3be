"""Dump source adapter: opens a local or remote dump and decompresses it."""

import bz2
import gzip
import io
from collections.abc import Iterator
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO
from urllib.parse import unquote, urlparse

import requests
import structlog
from urllib3.exceptions import HTTPError as TransportError

from wikidump.utils.exceptions import DumpSourceError

BZIP2_MAGIC = b"BZ"
DEFAULT_CHUNK_SIZE = 64 * 1024

logger = structlog.get_logger(__name__)


def detect_compression(locator: str | Path) -> str | None:
    """Pick a decoder from the trailing name of ``locator``.

    Returns:
        ``"gzip"``, ``"bzip2"`` or None for uncompressed text
    """
    name = str(locator)
    if "://" in name:
        name = urlparse(name).path
    if name.endswith(".gz"):
        return "gzip"
    if name.endswith(".bz2"):
        return "bzip2"
    return None


class DumpSource:
    """A dump file or URL exposed as one stream of decompressed bytes.

    Use as a context manager; the underlying file or HTTP response is released
    exactly once however the block exits.

    Example:
        >>> with DumpSource("enwiki-latest-pages-articles.xml.bz2") as source:
        ...     for chunk in source.iter_chunks():
        ...         ...
    """

    def __init__(
        self,
        locator: str | Path,
        total_size_limit: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the source without opening it.

        Args:
            locator: Local path, ``file://`` URL or ``http(s)://`` URL
            total_size_limit: Maximum decompressed bytes to read (None or 0 = unlimited)
            chunk_size: Bytes requested per read
            timeout: HTTP connect/read timeout in seconds
        """
        self.locator = str(locator)
        self.total_size_limit = total_size_limit or None
        self.chunk_size = chunk_size
        self.timeout = timeout
        self.compression = detect_compression(self.locator)
        self.bytes_read = 0
        self.logger = logger.bind(component="dump_source", locator=self.locator)

        self._stack: ExitStack | None = None
        self._stream: BinaryIO | None = None
        self._closed = False

    def __enter__(self) -> "DumpSource":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def stream(self) -> BinaryIO:
        """The decompressed byte stream.

        Raises:
            DumpSourceError: If the source is not open
        """
        if self._stream is None:
            raise DumpSourceError(f"Dump source is not open: {self.locator}")
        return self._stream

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> "DumpSource":
        """Open the underlying stream and attach the decoder.

        Raises:
            DumpSourceError: If the source cannot be opened or is not the
                compression format its name claims
        """
        if self._closed:
            raise DumpSourceError(f"Dump source already closed: {self.locator}")
        if self._stream is not None:
            return self

        stack = ExitStack()
        try:
            raw = self._open_raw(stack)
            self._stream = self._attach_decoder(raw, stack)
        except DumpSourceError:
            stack.close()
            raise
        except (OSError, requests.RequestException) as e:
            stack.close()
            raise DumpSourceError(f"Could not open dump {self.locator}: {e}") from e

        self._stack = stack
        self.logger.info("dump_source_opened", compression=self.compression)
        return self

    def close(self) -> None:
        """Release the stream and any HTTP response; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self._stream = None
        if self._stack is not None:
            self._stack.close()
            self._stack = None
        self.logger.info("dump_source_closed", bytes_read=self.bytes_read)

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield decompressed chunks until the stream is exhausted.

        Raises:
            DumpSourceError: On read/decompression failure or when more than
                ``total_size_limit`` bytes have been decoded
        """
        stream = self.stream
        while True:
            try:
                chunk = stream.read(self.chunk_size)
            except (OSError, EOFError, TransportError) as e:
                raise DumpSourceError(f"Failed to read dump {self.locator}: {e}") from e

            if not chunk:
                return

            self.bytes_read += len(chunk)
            if self.total_size_limit is not None and self.bytes_read > self.total_size_limit:
                raise DumpSourceError(
                    f"Decoded size of {self.locator} exceeds limit of "
                    f"{self.total_size_limit} bytes"
                )
            yield chunk

    def _open_raw(self, stack: ExitStack) -> io.BufferedReader:
        parsed = urlparse(self.locator)
        if parsed.scheme in ("http", "https"):
            response = requests.get(self.locator, stream=True, timeout=self.timeout)
            stack.callback(response.close)
            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise DumpSourceError(
                    f"Could not download dump {self.locator}: {e}",
                    is_retryable=response.status_code >= 500,
                ) from e
            response.raw.decode_content = True
            return stack.enter_context(io.BufferedReader(response.raw))

        if parsed.scheme == "file":
            path = Path(unquote(parsed.path))
        else:
            path = Path(self.locator)
        return stack.enter_context(path.open("rb"))

    def _attach_decoder(self, raw: io.BufferedReader, stack: ExitStack) -> BinaryIO:
        if self.compression == "gzip":
            return stack.enter_context(gzip.GzipFile(fileobj=raw, mode="rb"))

        if self.compression == "bzip2":
            # Command-line bzip2 writes a "BZ" magic that the decoder itself consumes
            if raw.peek(len(BZIP2_MAGIC))[: len(BZIP2_MAGIC)] != BZIP2_MAGIC:
                raise DumpSourceError(f"Not a bzip2 stream: {self.locator}")
            return stack.enter_context(bz2.BZ2File(raw, mode="rb"))

        return raw

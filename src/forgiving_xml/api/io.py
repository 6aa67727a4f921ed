"""File access for XML documents: reading raw bytes and writing rendered trees.

Filesystem access goes through a ``FileSystem`` collaborator so that
documents can be loaded from places other than the local disk (archives,
HTTP caches) and so tests can substitute failures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, ContextManager, Optional, Union

from forgiving_xml.shared import FileOpenError, get_logger
from forgiving_xml.tree import XmlEngine, default_engine

PathLike = Union[str, Path]

# Chunk size for reading file-like objects
BUFFER_SIZE = 4096


class FileSystem(ABC):
    """Filesystem collaborator used by the loader and serializer."""

    @abstractmethod
    def read_all(self, path: PathLike) -> bytes:
        """Return the whole content of ``path``; raise OSError on failure."""

    @abstractmethod
    def open_for_write(self, path: PathLike, truncate: bool = True) -> ContextManager[BinaryIO]:
        """Open ``path`` for binary writing; raise OSError on failure."""

    def content_charset_hint(self, path: PathLike) -> Optional[str]:
        """Charset reported by the transport for ``path``, if any."""
        return None


class LocalFileSystem(FileSystem):
    """Local disk access through pathlib."""

    def read_all(self, path: PathLike) -> bytes:
        return Path(path).read_bytes()

    def open_for_write(self, path: PathLike, truncate: bool = True) -> ContextManager[BinaryIO]:
        return Path(path).open("wb" if truncate else "ab")


@dataclass
class LoadedSource:
    """Raw bytes of a document together with what the transport said about them."""

    path: str
    data: bytes
    content_charset: Optional[str] = None


class FileLoader:
    """Read document bytes; unreadable and empty sources are errors."""

    def __init__(
        self,
        filesystem: Optional[FileSystem] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.filesystem = filesystem or LocalFileSystem()
        self.logger = get_logger(__name__, correlation_id, "file_loader")

    def load(self, path: PathLike) -> LoadedSource:
        """Read ``path`` completely.

        Raises:
            FileOpenError: If the file cannot be read or holds zero bytes
        """
        location = str(path)
        try:
            data = self.filesystem.read_all(path)
        except OSError as e:
            self.logger.error(
                "Cannot read XML file",
                extra={"file_path": location, "error": str(e)}
            )
            raise FileOpenError(f"Cannot open file {location}: {e}", location) from e

        if not data:
            self.logger.error("XML file is empty", extra={"file_path": location})
            raise FileOpenError(f"File {location} is empty", location)

        return LoadedSource(
            path=location,
            data=data,
            content_charset=self.filesystem.content_charset_hint(path),
        )

    def read_stream(self, stream: BinaryIO, chunk_size: int = BUFFER_SIZE) -> bytes:
        """Read a binary file-like object to its end in ``chunk_size`` pieces."""
        chunks = []
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


class Serializer:
    """Render trees with an engine and write them through the filesystem."""

    def __init__(
        self,
        engine: Optional[XmlEngine] = None,
        filesystem: Optional[FileSystem] = None,
        flush: bool = True,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.engine = engine or default_engine()
        self.filesystem = filesystem or LocalFileSystem()
        self.flush = flush
        self.logger = get_logger(__name__, correlation_id, "serializer")

    def save(self, tree: Any, path: PathLike) -> bool:
        """Write ``tree`` to ``path``.

        Returns:
            True only if every rendered byte was written
        """
        rendered = self.engine.render(tree)
        try:
            with self.filesystem.open_for_write(path, truncate=True) as handle:
                written = handle.write(rendered)
                success = written == len(rendered)
                if success and self.flush:
                    handle.flush()
        except OSError as e:
            self.logger.error(
                "Cannot write XML file",
                extra={"file_path": str(path), "error": str(e)}
            )
            return False

        if not success:
            self.logger.error(
                "Short write while saving XML file",
                extra={"file_path": str(path), "written": written, "expected": len(rendered)}
            )
        return success

"""XML document with charset bookkeeping.

An ``XmlDocument`` remembers which charset the caller expects, which charset
finally produced a tree, and either that tree or the error explaining why no
tree could be built. It is never in a state holding both a tree and an error.
"""

from enum import Enum, auto
from typing import Any, BinaryIO, List, Optional, Union

from forgiving_xml.api.io import FileLoader, FileSystem, PathLike, Serializer
from forgiving_xml.api.resolver import CharsetResolver, ResolutionResult
from forgiving_xml.character import normalize_charset
from forgiving_xml.shared import (
    ConfigValidationError,
    DiagnosticEntry,
    DocumentConfig,
    FileOpenError,
    ForgivingXmlError,
    get_logger,
)
from forgiving_xml.tree import XmlEncoding, XmlEngine


class DocumentState(Enum):
    """Observable states of a document."""

    EMPTY = auto()   # No tree and no error
    PARSED = auto()  # Tree present
    FAILED = auto()  # Error present


class XmlDocument:
    """Document loaded from bytes of unknown or unreliable encoding.

    Attributes:
        source_location: Path the document was loaded from, empty for buffers
        suggested_charset: Caller's charset hint, uppercase
        used_charset: Charset that produced the tree, empty if none or unknown
        tree: Parsed element tree or None
        error: Error of the last load or None
        diagnostics: Diagnostics of the last resolution

    Examples:
        >>> doc = XmlDocument()
        >>> doc.parse(b'<url>a?b=1&c=2</url>')
        True
        >>> doc.root.text
        'a?b=1&c=2'
    """

    def __init__(
        self,
        source_location: PathLike = "",
        suggested_charset: Optional[str] = "",
        *,
        engine: Optional[XmlEngine] = None,
        resolver: Optional[CharsetResolver] = None,
        filesystem: Optional[FileSystem] = None,
        config: Optional[DocumentConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        if resolver is not None and engine is not None:
            raise ConfigValidationError(
                "Pass the engine to the injected resolver, not to the document",
                field_name="engine",
                suggestions=["CharsetResolver(engine=...)"]
            )
        self.config = config or DocumentConfig()
        if not self.config.global_.enable_correlation_tracking:
            correlation_id = None
        self.correlation_id = correlation_id
        if resolver is None:
            resolver = CharsetResolver(
                engine=engine,
                config=self.config.resolver,
                correlation_id=correlation_id,
            )
        elif config is not None:
            # An explicit document configuration governs the injected resolver too
            resolver.config = self.config.resolver
        self.resolver = resolver
        self.loader = FileLoader(filesystem, correlation_id)
        self.serializer = Serializer(
            self.resolver.engine,
            self.loader.filesystem,
            flush=self.config.io.flush_on_save,
            correlation_id=correlation_id,
        )
        self.logger = get_logger(__name__, correlation_id, "xml_document")
        for component in (self, self.resolver, self.loader, self.serializer):
            component.logger.set_level(self.config.global_.logging_level)

        self._source_location = str(source_location)
        self._suggested_charset = normalize_charset(suggested_charset)
        self.used_charset = ""
        self.tree: Any = None
        self.error: Optional[ForgivingXmlError] = None
        self.diagnostics: List[DiagnosticEntry] = []

    @property
    def source_location(self) -> str:
        return self._source_location

    @property
    def suggested_charset(self) -> str:
        return self._suggested_charset

    @suggested_charset.setter
    def suggested_charset(self, value: Optional[str]) -> None:
        self._suggested_charset = normalize_charset(value)

    @property
    def root(self) -> Any:
        """Root element of the tree, or None."""
        return self.tree.getroot() if self.tree is not None else None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def error_message(self) -> str:
        return str(self.error) if self.error is not None else ""

    @property
    def is_parsed(self) -> bool:
        return self.tree is not None

    @property
    def state(self) -> DocumentState:
        if self.tree is not None:
            return DocumentState.PARSED
        if self.error is not None:
            return DocumentState.FAILED
        return DocumentState.EMPTY

    def clear(self) -> None:
        """Drop tree, error and used charset."""
        self.tree = None
        self.error = None
        self.used_charset = ""
        self.diagnostics = []

    def parse(
        self,
        data: Union[bytes, str],
        charset: Optional[str] = None,
        encoding: XmlEncoding = XmlEncoding.AUTO,
    ) -> bool:
        """Parse an in-memory buffer.

        Text input has already been decoded, so it is parsed as UTF-8 unless
        another forced encoding is given.

        Args:
            data: Raw bytes or text
            charset: New suggested charset; None keeps the current one
            encoding: ``XmlEncoding.AUTO`` runs the charset candidate chain,
                any other value parses once in that mode and drops the suggestion

        Returns:
            True if a tree was built
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
            if encoding is XmlEncoding.AUTO:
                encoding = XmlEncoding.UTF8
        if charset is not None:
            self.suggested_charset = charset
        return self._resolve(data, encoding)

    def load_file(
        self,
        path: Optional[PathLike] = None,
        encoding: XmlEncoding = XmlEncoding.AUTO,
        charset: Optional[str] = None,
    ) -> bool:
        """Load and parse a file.

        Args:
            path: File to read; defaults to ``source_location``
            encoding: See ``parse``
            charset: New suggested charset; None keeps the current one

        Returns:
            True if a tree was built. A missing, unreadable or empty file
            sets a ``FileOpenError`` without attempting to parse.
        """
        if path is not None:
            self._source_location = str(path)
        if charset is not None:
            self.suggested_charset = charset

        self.clear()
        if not self._source_location:
            self.error = FileOpenError("No file name given")
            return False

        try:
            source = self.loader.load(self._source_location)
        except FileOpenError as e:
            self.error = e
            return False

        return self._resolve(source.data, encoding, source.content_charset)

    def load_stream(
        self,
        stream: BinaryIO,
        encoding: XmlEncoding = XmlEncoding.AUTO,
    ) -> bool:
        """Read a binary file-like object to its end and parse it."""
        data = self.loader.read_stream(stream, self.config.io.read_chunk_size)
        return self._resolve(data, encoding)

    def save_file(self, path: Optional[PathLike] = None) -> bool:
        """Write the tree to ``path`` (default ``source_location``).

        Returns:
            True only if the complete rendering was written
        """
        target = str(path) if path is not None else self._source_location
        if self.tree is None or not target:
            self.logger.error(
                "Nothing to save",
                extra={"file_path": target, "has_tree": self.tree is not None}
            )
            return False
        return self.serializer.save(self.tree, target)

    def to_bytes(self) -> bytes:
        """Render the tree as UTF-8 bytes; empty when there is no tree."""
        if self.tree is None:
            return b""
        return self.resolver.engine.render(self.tree)

    def _resolve(
        self,
        data: bytes,
        encoding: XmlEncoding,
        content_charset: Optional[str] = None,
    ) -> bool:
        self.clear()
        if encoding is not XmlEncoding.AUTO:
            self._suggested_charset = ""

        result = self.resolver.resolve(
            data,
            suggested_charset=self._suggested_charset,
            forced_encoding=encoding,
            content_charset_hint=content_charset,
            source_location=self._source_location,
        )
        self._commit(result)
        return result.success

    def _commit(self, result: ResolutionResult) -> None:
        self.diagnostics = result.diagnostics
        if result.success:
            self.tree = result.tree
            self.used_charset = result.used_charset
        else:
            self.error = result.error

    def __repr__(self) -> str:
        return (
            f"XmlDocument(source_location={self._source_location!r}, "
            f"state={self.state.name}, used_charset={self.used_charset!r})"
        )

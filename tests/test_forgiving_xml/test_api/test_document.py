"""Tests for XmlDocument state handling, loading and saving."""

import io
import tempfile
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import Mock

import pytest

from forgiving_xml.api.document import DocumentState, XmlDocument
from forgiving_xml.api.io import LocalFileSystem
from forgiving_xml.api.resolver import CandidateKind, CharsetResolver
from forgiving_xml.character import CharsetConverter, FixedLocaleProvider
from forgiving_xml.shared import (
    ConfigValidationError,
    ConversionError,
    DocumentConfig,
    ExhaustedFallbackError,
    FileOpenError,
    ResolverConfig,
)
from forgiving_xml.tree import ElementTreeEngine, XmlEncoding

ASCII_DOCUMENT = (
    b'<?xml version="1.0"?>\n'
    b'<library name="main">\n'
    b'  <book id="1" lang="en">Dune</book>\n'
    b'  <book id="2">Solaris &amp; more</book>\n'
    b"  <empty/>\n"
    b"</library>"
)


def make_document(*args, engine=None, **kwargs):
    resolver = CharsetResolver(engine=engine, locale_provider=FixedLocaleProvider("ISO-8859-1"))
    return XmlDocument(*args, resolver=resolver, **kwargs)


def element_signature(element):
    """Comparable structure of an element and its descendants."""
    return (
        element.tag,
        dict(element.attrib),
        (element.text or "").strip(),
        [element_signature(child) for child in element],
    )


class CharsetHintFileSystem(LocalFileSystem):
    """Local files served with a transport charset, like an HTTP content type."""

    def __init__(self, charset):
        self.charset = charset

    def content_charset_hint(self, path):
        return self.charset


class ShortWriteFileSystem(LocalFileSystem):
    """Filesystem whose handles accept only half of each write."""

    def __init__(self):
        self.flushed = False

    @contextmanager
    def open_for_write(self, path, truncate=True):
        filesystem = self

        class Handle:
            def write(self, data):
                return len(data) // 2

            def flush(self):
                filesystem.flushed = True

        yield Handle()


class TestDocumentState:
    """Test the document state machine."""

    def test_initial_state(self):
        """Test a new document is empty."""
        doc = make_document("feed.xml", "iso-8859-1")

        assert doc.state == DocumentState.EMPTY
        assert doc.source_location == "feed.xml"
        assert doc.suggested_charset == "ISO-8859-1"
        assert doc.used_charset == ""
        assert doc.tree is None and doc.root is None
        assert doc.has_error is False
        assert doc.error_message == ""

    def test_suggested_charset_normalized(self):
        """Test assignment uppercases the suggestion."""
        doc = make_document()
        doc.suggested_charset = " windows-1252 "
        assert doc.suggested_charset == "WINDOWS-1252"

    def test_parse_success(self):
        """Test a successful parse commits tree and charset."""
        doc = make_document()

        assert doc.parse(b"<a>caf\xe9</a>", charset="iso-8859-1") is True
        assert doc.state == DocumentState.PARSED
        assert doc.used_charset == "ISO-8859-1"
        assert doc.root.text == "café"
        assert doc.error is None

    def test_parse_failure_then_success(self):
        """Test failure leaves no tree, and a later success clears the error."""
        doc = make_document()

        assert doc.parse(b"<a><b></a>") is False
        assert doc.state == DocumentState.FAILED
        assert doc.tree is None
        assert isinstance(doc.error, ExhaustedFallbackError)
        assert doc.error_message

        assert doc.parse(b"<a/>") is True
        assert doc.state == DocumentState.PARSED
        assert doc.error is None

    def test_failure_discards_previous_tree(self):
        """Test a failed parse never keeps an earlier tree."""
        doc = make_document()
        doc.parse(b"<a/>")

        doc.parse(b"<broken")

        assert doc.tree is None
        assert doc.used_charset == ""

    def test_text_input_parsed_as_utf8(self):
        """Test already decoded text is not re-guessed."""
        doc = make_document(suggested_charset="ISO-8859-1")

        assert doc.parse('<?xml version="1.0" encoding="ISO-8859-1"?><a>é</a>') is True
        assert doc.used_charset == "UTF-8"
        assert doc.root.text == "é"

    def test_forced_encoding_clears_suggestion(self):
        """Test a forced encoding drops the suggested charset."""
        doc = make_document(suggested_charset="KOI8-R")

        assert doc.parse(b"<a/>", encoding=XmlEncoding.UTF8) is True
        assert doc.suggested_charset == ""
        assert doc.used_charset == "UTF-8"

    def test_forced_legacy_leaves_used_charset_empty(self):
        """Test legacy mode makes no charset claim."""
        doc = make_document()

        assert doc.parse(b"<a/>", encoding=XmlEncoding.LEGACY) is True
        assert doc.used_charset == ""

    def test_diagnostics_exposed(self):
        """Test substitution warnings reach the document."""
        doc = make_document()

        doc.parse("<a>é</a>".encode("utf-8"), charset="US-ASCII")

        assert any("instead of suggested" in d.message for d in doc.diagnostics)

    def test_clear(self):
        """Test clear returns to the empty state."""
        doc = make_document()
        doc.parse(b"<a/>")

        doc.clear()

        assert doc.state == DocumentState.EMPTY

    def test_config_applies_to_injected_resolver(self):
        """Test an explicit configuration governs an injected resolver."""
        converter = Mock(spec=CharsetConverter)
        converter.to_utf8.side_effect = ConversionError("conversion disabled", "ANY")
        resolver = CharsetResolver(
            converter=converter,
            locale_provider=FixedLocaleProvider("ISO-8859-1"),
        )

        doc = XmlDocument(resolver=resolver, config=DocumentConfig.strict())

        assert doc.parse(b'<?xml version="1.0" encoding="ISO-8859-1"?><a>\xe9</a>') is False
        assert resolver.config == DocumentConfig.strict().resolver
        assert [a.candidate.kind for a in doc.error.attempts] == [CandidateKind.DETECTED]

    def test_injected_resolver_keeps_own_config(self):
        """Test a resolver's configuration is kept when the document has none."""
        resolver = CharsetResolver(config=ResolverConfig(allow_unknown_fallback=False))

        XmlDocument(resolver=resolver)

        assert resolver.config.allow_unknown_fallback is False

    def test_engine_with_injected_resolver(self):
        """Test an engine cannot be given alongside a resolver that has its own."""
        with pytest.raises(ConfigValidationError, match="engine"):
            XmlDocument(resolver=CharsetResolver(), engine=ElementTreeEngine())

    def test_repr(self):
        """Test the representation names state and charset."""
        doc = make_document()
        doc.parse(b"<a/>")
        assert "PARSED" in repr(doc)


class TestLoading:
    """Test loading from files and streams."""

    def test_load_file(self):
        """Test loading a legacy encoded file with a suggestion."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "legacy.xml"
            path.write_bytes(b"<a>caf\xe9 &amp; cr\xe8me</a>")
            doc = make_document()

            assert doc.load_file(path, charset="iso-8859-1") is True
            assert doc.source_location == str(path)
            assert doc.root.text == "café & crème"
            assert doc.used_charset == "ISO-8859-1"

    def test_load_file_uses_source_location(self):
        """Test the constructor path is used when none is passed."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "doc.xml"
            path.write_bytes(ASCII_DOCUMENT)

            doc = make_document(path)

            assert doc.load_file() is True
            assert doc.root.tag == "library"

    def test_missing_file(self):
        """Test a missing file is a FileOpenError, not a parse failure."""
        doc = make_document()

        assert doc.load_file("/nonexistent/file.xml") is False
        assert isinstance(doc.error, FileOpenError)
        assert doc.state == DocumentState.FAILED
        assert doc.source_location == "/nonexistent/file.xml"

    def test_empty_file(self):
        """Test a zero-byte file is an error rather than an empty document."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "empty.xml"
            path.write_bytes(b"")
            doc = make_document()

            assert doc.load_file(path) is False
            assert isinstance(doc.error, FileOpenError)
            assert "empty" in doc.error_message

    def test_no_file_name(self):
        """Test loading without any path."""
        doc = make_document()

        assert doc.load_file() is False
        assert isinstance(doc.error, FileOpenError)

    def test_content_charset_hint(self):
        """Test a transport charset seeds the detected candidate."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "page.xml"
            path.write_bytes("<a>привет</a>".encode("koi8-r"))
            doc = make_document(filesystem=CharsetHintFileSystem("koi8-r"))

            assert doc.load_file(path) is True
            assert doc.used_charset == "KOI8-R"
            assert doc.root.text == "привет"

    def test_load_stream(self):
        """Test reading a binary stream in chunks."""
        config = DocumentConfig().override(io__read_chunk_size=7)
        doc = make_document(config=config)

        assert doc.load_stream(io.BytesIO(ASCII_DOCUMENT)) is True
        assert len(doc.root.findall("book")) == 2


class TestSaving:
    """Test writing documents back to disk."""

    @pytest.mark.parametrize("engine", [None, ElementTreeEngine()], ids=["lxml", "elementtree"])
    def test_round_trip(self, engine):
        """Test save followed by load reproduces the structure."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out.xml"
            original = make_document(engine=engine)
            assert original.parse(ASCII_DOCUMENT) is True

            assert original.save_file(path) is True

            reloaded = make_document(engine=engine)
            assert reloaded.load_file(path) is True
            assert element_signature(reloaded.root) == element_signature(original.root)

    def test_save_defaults_to_source_location(self):
        """Test saving without a path writes back to the source."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "doc.xml"
            path.write_bytes(b"<a>x&y</a>")
            doc = make_document(path)
            doc.load_file()

            assert doc.save_file() is True
            assert b"x&amp;y" in path.read_bytes()

    def test_save_without_tree(self):
        """Test there is nothing to save before a successful parse."""
        with tempfile.TemporaryDirectory() as tmp:
            assert make_document().save_file(Path(tmp) / "out.xml") is False

    def test_save_to_missing_directory(self):
        """Test an unwritable path reports failure."""
        doc = make_document()
        doc.parse(b"<a/>")

        assert doc.save_file("/nonexistent/dir/out.xml") is False

    def test_short_write(self):
        """Test a partial write is a failure and is not flushed."""
        filesystem = ShortWriteFileSystem()
        doc = make_document(filesystem=filesystem)
        doc.parse(b"<a/>")

        assert doc.save_file("ignored.xml") is False
        assert filesystem.flushed is False

    def test_to_bytes(self):
        """Test rendering to bytes."""
        doc = make_document()
        assert doc.to_bytes() == b""

        doc.parse(b"<a>x&y</a>")
        assert b"<a>x&amp;y</a>" in doc.to_bytes()

"""XML engines that turn decoded bytes into element trees.

The resolver never parses XML itself. It hands bytes to an engine together
with an ``XmlEncoding`` flag and treats any ``ParseError`` as a failed
attempt. Engines hold no state between calls: every call either returns a
brand new tree or raises, so a failed attempt leaves nothing behind.

``LxmlEngine`` is the default. ``ElementTreeEngine`` runs on the standard
library alone.
"""

import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Optional

from lxml import etree

from forgiving_xml.shared.errors import ParseError


class XmlEncoding(Enum):
    """How the bytes handed to an engine are to be interpreted."""

    AUTO = auto()    # Not an engine mode: run the resolver's candidate chain
    UTF8 = auto()    # Bytes are UTF-8 whatever the declaration claims
    LEGACY = auto()  # No charset claim; the engine reads BOM and declaration


class XmlEngine(ABC):
    """Swappable XML parsing capability."""

    name = "abstract"

    @abstractmethod
    def parse(self, data: bytes, encoding: XmlEncoding = XmlEncoding.UTF8) -> Any:
        """Parse ``data`` into an element tree.

        Args:
            data: Document bytes
            encoding: ``XmlEncoding.UTF8`` or ``XmlEncoding.LEGACY``

        Returns:
            An ElementTree-compatible tree

        Raises:
            ParseError: If the document is not well-formed
        """

    @abstractmethod
    def render(self, tree: Any) -> bytes:
        """Serialize ``tree`` to UTF-8 bytes with an XML declaration."""

    def _check_mode(self, encoding: XmlEncoding) -> Optional[str]:
        if encoding is XmlEncoding.AUTO:
            raise ValueError("XmlEncoding.AUTO is resolved before reaching an engine")
        return "utf-8" if encoding is XmlEncoding.UTF8 else None


class LxmlEngine(XmlEngine):
    """Engine backed by ``lxml.etree`` with entity expansion and network access disabled."""

    name = "lxml"

    def _make_parser(self, override: Optional[str]) -> etree.XMLParser:
        return etree.XMLParser(
            encoding=override,
            resolve_entities=False,
            no_network=True,
            huge_tree=False,
            remove_blank_text=False,
            recover=False,
        )

    def parse(self, data: bytes, encoding: XmlEncoding = XmlEncoding.UTF8) -> Any:
        parser = self._make_parser(self._check_mode(encoding))
        try:
            root = etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            raise ParseError(
                e.msg or str(e),
                line=getattr(e, "lineno", None),
                column=getattr(e, "offset", None),
            ) from e
        except (ValueError, LookupError) as e:
            # Unsupported declared encodings surface as LookupError
            raise ParseError(str(e)) from e
        if root is None:
            raise ParseError("Document has no root element")
        return root.getroottree()

    def render(self, tree: Any) -> bytes:
        return etree.tostring(tree, encoding="UTF-8", xml_declaration=True)


class ElementTreeEngine(XmlEngine):
    """Engine backed by the standard library ``xml.etree.ElementTree``."""

    name = "elementtree"

    def parse(self, data: bytes, encoding: XmlEncoding = XmlEncoding.UTF8) -> Any:
        parser = ET.XMLParser(encoding=self._check_mode(encoding))
        try:
            parser.feed(data)
            root = parser.close()
        except ET.ParseError as e:
            line, column = getattr(e, "position", (None, None))
            raise ParseError(str(e), line=line, column=column) from e
        except (ValueError, LookupError) as e:
            raise ParseError(str(e)) from e
        return ET.ElementTree(root)

    def render(self, tree: Any) -> bytes:
        root = tree.getroot() if hasattr(tree, "getroot") else tree
        return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


def default_engine() -> XmlEngine:
    """Return the engine used when none is injected."""
    return LxmlEngine()

"""Content-based charset detection for XML byte streams.

Detection looks only at what the document says about itself: a byte order
mark, the byte pattern of ``<?`` in the wide Unicode encodings, and the
``encoding`` attribute of the XML declaration. It never guesses from
statistics; an inconclusive result is reported as ``None`` and left to the
resolver's fallback candidates.
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple

UTF8 = "UTF-8"

# Bytes examined when looking for the XML declaration
DECLARATION_SCAN_LIMIT = 1024


class DetectionMethod(Enum):
    """How a charset was determined."""
    BOM = "bom"
    WIDE_SIGNATURE = "wide_signature"
    XML_DECLARATION = "xml_declaration"
    XML_DEFAULT = "xml_default"


@dataclass
class DetectionResult:
    """Detected charset together with the evidence used.

    Attributes:
        charset: Uppercase charset name
        method: Detection method used
        issues: Problems noticed while detecting
    """
    charset: str
    method: DetectionMethod
    issues: List[str] = field(default_factory=list)


def normalize_charset(name: Optional[str]) -> str:
    """Strip and uppercase a charset name; ``None`` becomes empty."""
    if not name:
        return ""
    return name.strip().upper()


def is_valid_utf8(data: bytes) -> bool:
    """Return True if ``data`` is well-formed UTF-8.

    Overlong forms, encoded surrogates and truncated sequences are all
    rejected by the strict codec.
    """
    try:
        data.decode("utf-8", errors="strict")
    except UnicodeDecodeError:
        return False
    return True


class BOMDetector:
    """Byte Order Mark (BOM) detection for the Unicode encodings."""

    # UTF-32 marks come first because the UTF-32LE mark starts with the UTF-16LE one
    BOM_PATTERNS: ClassVar[Tuple[Tuple[bytes, str], ...]] = (
        (b"\x00\x00\xfe\xff", "UTF-32BE"),
        (b"\xff\xfe\x00\x00", "UTF-32LE"),
        (b"\xef\xbb\xbf", UTF8),
        (b"\xfe\xff", "UTF-16BE"),
        (b"\xff\xfe", "UTF-16LE"),
    )

    def detect(self, data: bytes) -> Optional[DetectionResult]:
        """Detect charset based on a leading BOM.

        Args:
            data: Byte data to analyze

        Returns:
            DetectionResult if a BOM is present, None otherwise
        """
        for bom_bytes, charset in self.BOM_PATTERNS:
            if data.startswith(bom_bytes):
                return DetectionResult(charset, DetectionMethod.BOM)
        return None


class XMLDeclarationParser:
    """Parser for XML encoding declarations."""

    DECLARATION_PATTERN = re.compile(r"^\s*<\?xml\s+[^>]*?\?>", re.DOTALL)
    ENCODING_PATTERN = re.compile(r"""\sencoding\s*=\s*["']([A-Za-z][A-Za-z0-9._:-]*)["']""")

    # "<?" as it appears without a BOM in the wide encodings
    WIDE_SIGNATURES: ClassVar[Tuple[Tuple[bytes, str], ...]] = (
        (b"\x3c\x00\x00\x00", "UTF-32LE"),
        (b"\x00\x00\x00\x3c", "UTF-32BE"),
        (b"\x3c\x00\x3f\x00", "UTF-16LE"),
        (b"\x00\x3c\x00\x3f", "UTF-16BE"),
    )

    def find_declaration(self, text: str) -> Optional[str]:
        """Return the text of the XML declaration at the start of ``text``."""
        match = self.DECLARATION_PATTERN.match(text)
        return match.group(0) if match else None

    def declared_encoding(self, declaration: str) -> Optional[str]:
        """Return the uppercase ``encoding`` value of a declaration, if any."""
        match = self.ENCODING_PATTERN.search(declaration)
        return normalize_charset(match.group(1)) if match else None

    def parse_wide(self, data: bytes) -> Optional[DetectionResult]:
        """Recognize BOM-less UTF-16 and UTF-32 documents starting with ``<?``."""
        for signature, charset in self.WIDE_SIGNATURES:
            if not data.startswith(signature):
                continue
            issues = []
            sample_size = DECLARATION_SCAN_LIMIT * 4
            text = data[:sample_size].decode(charset.lower(), errors="ignore")
            declaration = self.find_declaration(text)
            declared = self.declared_encoding(declaration) if declaration else None
            family = charset[:6]
            if declared and not declared.startswith(family):
                issues.append(
                    f"Declared encoding {declared} contradicts {charset} byte layout"
                )
            return DetectionResult(charset, DetectionMethod.WIDE_SIGNATURE, issues)
        return None

    def parse_declaration(self, data: bytes) -> Optional[DetectionResult]:
        """Parse the charset from an ASCII-compatible XML declaration.

        Args:
            data: Byte data to analyze, BOM already stripped

        Returns:
            DetectionResult if a declaration is present, None otherwise
        """
        header = data[:DECLARATION_SCAN_LIMIT].decode("latin-1")
        declaration = self.find_declaration(header)
        if declaration is None:
            return None

        declared = self.declared_encoding(declaration)
        if declared is None:
            # XML 1.0: no encoding declaration and no BOM means UTF-8
            return DetectionResult(UTF8, DetectionMethod.XML_DEFAULT)

        issues = []
        if not self._is_known_charset(declared):
            issues.append(f"Declared encoding is not supported: {declared}")
        return DetectionResult(declared, DetectionMethod.XML_DECLARATION, issues)

    def _is_known_charset(self, charset: str) -> bool:
        """Check if the charset is supported by Python codecs."""
        try:
            codecs.lookup(charset)
        except LookupError:
            return False
        else:
            return True


class CharsetDetector:
    """Content-based charset sniffing.

    Implements a cascading strategy:
    1. BOM detection
    2. BOM-less UTF-16/UTF-32 signature
    3. XML declaration parsing (declaration without encoding means UTF-8)
    """

    def __init__(self) -> None:
        """Initialize detection components."""
        self.bom_detector = BOMDetector()
        self.declaration_parser = XMLDeclarationParser()

    def detect_with_method(self, data: bytes) -> Optional[DetectionResult]:
        """Detect the charset and report how it was found.

        Args:
            data: Raw document bytes

        Returns:
            DetectionResult, or None when the content says nothing about its charset
        """
        if len(data) < 2:
            return None

        bom_result = self.bom_detector.detect(data)
        if bom_result is not None:
            return bom_result

        wide_result = self.declaration_parser.parse_wide(data)
        if wide_result is not None:
            return wide_result

        return self.declaration_parser.parse_declaration(data)

    def detect(self, data: bytes) -> Optional[str]:
        """Return the uppercase charset name detected from content, or None."""
        result = self.detect_with_method(data)
        return result.charset if result else None

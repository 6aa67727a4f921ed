"""Forgiving XML loader.

Loads XML from bytes whose character encoding is unknown or mislabelled and
tolerates stray ``&`` characters, by trying an ordered list of charset
candidates against a strict XML engine.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file()
- Level 2: Documents - XmlDocument with load_file(), parse(), save_file()
- Level 3: Resolver - CharsetResolver with injected engine and collaborators
"""

__version__ = "0.1.0"
__author__ = "Forgiving XML Team"

from .api import (
    CharsetResolver,
    DocumentState,
    ResolutionResult,
    XmlDocument,
    parse,
    parse_file,
    parse_string,
)
from .character import FixedLocaleProvider, repair_entities
from .shared.config import DocumentConfig
from .shared.errors import (
    ConversionError,
    ExhaustedFallbackError,
    InputTooLargeError,
    FileOpenError,
    ForgivingXmlError,
    ParseError,
)
from .tree import ElementTreeEngine, LxmlEngine, XmlEncoding

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_string",
    "parse_file",

    # Level 2: Documents
    "XmlDocument",
    "DocumentState",
    "XmlEncoding",

    # Level 3: Resolution and collaborators
    "CharsetResolver",
    "ResolutionResult",
    "FixedLocaleProvider",
    "LxmlEngine",
    "ElementTreeEngine",
    "repair_entities",

    # Configuration
    "DocumentConfig",

    # Errors
    "ForgivingXmlError",
    "FileOpenError",
    "ConversionError",
    "ParseError",
    "ExhaustedFallbackError",
    "InputTooLargeError",
]

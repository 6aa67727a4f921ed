"""Character layer: byte-level work done before any XML parsing.

This package provides charset detection, strict charset conversion, locale
charset providers and the stray-ampersand repair pass.
"""

from .conversion import CharsetConverter
from .encoding import (
    BOMDetector,
    CharsetDetector,
    DetectionMethod,
    DetectionResult,
    XMLDeclarationParser,
    is_valid_utf8,
    normalize_charset,
)
from .entities import (
    MAX_ENTITY_LENGTH,
    is_legal_entity_at,
    repair_entities_counted,
    repair_entities,
)
from .locale_provider import (
    FixedLocaleProvider,
    LocaleProvider,
    SystemLocaleProvider,
    canonical_charset,
)

__all__ = [
    "CharsetConverter",
    "BOMDetector",
    "CharsetDetector",
    "DetectionMethod",
    "DetectionResult",
    "XMLDeclarationParser",
    "is_valid_utf8",
    "normalize_charset",
    "MAX_ENTITY_LENGTH",
    "is_legal_entity_at",
    "repair_entities_counted",
    "repair_entities",
    "FixedLocaleProvider",
    "LocaleProvider",
    "SystemLocaleProvider",
    "canonical_charset",
]

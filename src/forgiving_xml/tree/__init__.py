"""XML engine layer.

Key Components:
    XmlEngine: Interface every engine implements (parse and render)
    LxmlEngine: Default engine built on lxml.etree
    ElementTreeEngine: Standard library engine
    XmlEncoding: Interpretation flag passed with the bytes to parse
"""

from .engine import (
    ElementTreeEngine,
    LxmlEngine,
    XmlEncoding,
    XmlEngine,
    default_engine,
)

__all__ = [
    "ElementTreeEngine",
    "LxmlEngine",
    "XmlEncoding",
    "XmlEngine",
    "default_engine",
]

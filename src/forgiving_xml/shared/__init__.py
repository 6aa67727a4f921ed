"""Shared utilities for encoding-tolerant XML loading.

This module provides the configuration objects, diagnostic types, exceptions
and logging helpers used across all layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    DocumentConfig,
    GlobalConfig,
    IOConfig,
    ResolverConfig,
)
from .errors import (
    ConversionError,
    ExhaustedFallbackError,
    InputTooLargeError,
    FileOpenError,
    ForgivingXmlError,
    ParseError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ResolutionMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "DocumentConfig",
    "GlobalConfig",
    "IOConfig",
    "ResolverConfig",
    "ConversionError",
    "ExhaustedFallbackError",
    "InputTooLargeError",
    "FileOpenError",
    "ForgivingXmlError",
    "ParseError",
    "CorrelationLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "ResolutionMetrics",
]

"""Diagnostic and metric types shared by the resolver and document layers."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Attempt-level detail
    INFO = auto()       # Informational messages
    WARNING = auto()    # Charset substitutions and fallbacks
    ERROR = auto()      # Failures surfaced to the caller


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class ResolutionMetrics:
    """Counters collected during a single resolution call."""

    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    attempt_count: int = 0
    conversion_failures: int = 0
    parse_failures: int = 0
    entity_repairs: int = 0

    @property
    def failed_attempts(self) -> int:
        """Total number of candidates that did not produce a tree."""
        return self.conversion_failures + self.parse_failures

    @property
    def bytes_per_second(self) -> float:
        """Calculate input throughput."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_processed * 1000.0) / self.processing_time_ms

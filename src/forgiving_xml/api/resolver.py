"""Charset resolution: ordered decode-and-parse attempts over raw XML bytes.

The resolver tries a short, fixed list of charset hypotheses for a document
whose encoding is unknown or untrustworthy:

1. the charset suggested by the caller,
2. the charset the content declares about itself (BOM, XML declaration),
   or a transport hint when the content says nothing,
3. UTF-8, if the bytes are valid UTF-8 and it was not tried already,
4. the locale charset,
5. the raw bytes with no charset claim, letting the engine decide.

Each attempt is a pure function of the bytes and the candidate: it either
returns a fresh tree or raises. Nothing is committed until an attempt
succeeds, so failed attempts never leave partial state behind.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from forgiving_xml.character import (
    CharsetConverter,
    CharsetDetector,
    LocaleProvider,
    SystemLocaleProvider,
    is_valid_utf8,
    normalize_charset,
    repair_entities_counted,
)
from forgiving_xml.character.encoding import UTF8
from forgiving_xml.shared import (
    ConversionError,
    DiagnosticEntry,
    DiagnosticSeverity,
    ExhaustedFallbackError,
    ForgivingXmlError,
    InputTooLargeError,
    ParseError,
    ResolutionMetrics,
    ResolverConfig,
    get_logger,
)
from forgiving_xml.tree import XmlEncoding, XmlEngine, default_engine

MS_PER_SECOND = 1000


class CandidateKind(Enum):
    """Where a charset candidate came from."""

    SUGGESTED = "suggested"
    DETECTED = "detected"
    UTF8_PROBE = "utf8_probe"
    LOCALE = "locale"
    UNKNOWN = "unknown"
    FORCED = "forced"


@dataclass(frozen=True)
class CharsetCandidate:
    """One charset hypothesis. An empty charset means no conversion at all."""

    charset: str
    kind: CandidateKind

    @property
    def label(self) -> str:
        """Charset name for messages; the raw fallback reads as "unknown encoding"."""
        return self.charset or "unknown encoding"


@dataclass
class CandidateAttempt:
    """Outcome of trying one candidate."""

    candidate: CharsetCandidate
    error: Optional[ForgivingXmlError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ResolutionResult:
    """Outcome of a full resolution call.

    Exactly one of ``tree`` and ``error`` is set.
    """

    tree: Any = None
    used_charset: str = ""
    error: Optional[ForgivingXmlError] = None
    attempts: List[CandidateAttempt] = field(default_factory=list)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: ResolutionMetrics = field(default_factory=ResolutionMetrics)
    correlation_id: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.tree is not None and self.error is None

    @property
    def warnings(self) -> List[str]:
        return [
            d.message for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        ]

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str = "charset_resolver",
        details: Optional[dict] = None,
    ) -> None:
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            details=details,
            correlation_id=self.correlation_id,
        ))


class CharsetResolver:
    """Find the charset under which raw bytes parse as well-formed XML.

    Attributes:
        engine: XML engine used for every attempt
        detector: Content-based charset sniffer
        converter: Strict charset-to-UTF-8 converter
        locale_provider: Source of the locale fallback charset
        config: Resolver configuration

    Examples:
        >>> resolver = CharsetResolver()
        >>> result = resolver.resolve(b"<a>x&y</a>", suggested_charset="iso-8859-1")
        >>> result.used_charset
        'ISO-8859-1'
    """

    def __init__(
        self,
        engine: Optional[XmlEngine] = None,
        detector: Optional[CharsetDetector] = None,
        converter: Optional[CharsetConverter] = None,
        locale_provider: Optional[LocaleProvider] = None,
        config: Optional[ResolverConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.engine = engine or default_engine()
        self.detector = detector or CharsetDetector()
        self.converter = converter or CharsetConverter()
        self.locale_provider = locale_provider or SystemLocaleProvider()
        self.config = config or ResolverConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "charset_resolver")

    def resolve(
        self,
        raw: bytes,
        suggested_charset: str = "",
        forced_encoding: XmlEncoding = XmlEncoding.AUTO,
        content_charset_hint: Optional[str] = None,
        source_location: str = "",
    ) -> ResolutionResult:
        """Parse ``raw`` under the first charset candidate that works.

        Args:
            raw: Document bytes
            suggested_charset: Caller hint, empty for none
            forced_encoding: ``UTF8`` or ``LEGACY`` to skip the candidate
                chain and parse once in that mode
            content_charset_hint: Transport-level charset (e.g. from an HTTP
                content type), used when the content declares nothing
            source_location: File name used in diagnostics

        Returns:
            ResolutionResult holding either the tree or the final error
        """
        start_time = time.time()
        result = ResolutionResult(correlation_id=self.correlation_id)
        result.metrics.bytes_processed = len(raw)
        origin = f'file "{source_location}"' if source_location else "XML data"

        limit = self.config.max_input_size_bytes
        if limit is not None and len(raw) > limit:
            result.error = InputTooLargeError(
                f"{origin} of {len(raw)} bytes exceeds the {limit} byte limit",
                size=len(raw),
                limit=limit,
            )
            result.add_diagnostic(DiagnosticSeverity.ERROR, str(result.error))
            self.logger.warning(
                "Input rejected before parsing",
                extra={"origin": origin, "size": len(raw), "limit": limit}
            )
        elif forced_encoding is not XmlEncoding.AUTO:
            self._resolve_forced(raw, forced_encoding, result)
        else:
            self._resolve_chain(
                raw,
                normalize_charset(suggested_charset),
                normalize_charset(content_charset_hint),
                origin,
                result,
            )

        result.metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        result.metrics.attempt_count = len(result.attempts)
        return result

    def candidates(
        self,
        raw: bytes,
        suggested: str = "",
        content_charset_hint: str = "",
    ) -> Tuple[List[CharsetCandidate], str]:
        """Build the ordered candidate list for ``raw``.

        Returns:
            The candidates and the detected charset (empty when inconclusive)
        """
        detected, _ = self.detect_charset(raw, content_charset_hint)
        return self._order_candidates(raw, suggested, detected), detected

    def detect_charset(
        self, raw: bytes, content_charset_hint: Optional[str] = ""
    ) -> Tuple[str, List[str]]:
        """Sniff the charset of ``raw``, falling back to the transport hint.

        Returns:
            The detected charset (empty when inconclusive) and the problems
            the detector noticed in the document's own charset claims
        """
        detection = self.detector.detect_with_method(raw)
        if detection is None:
            return normalize_charset(content_charset_hint), []
        return detection.charset, list(detection.issues)

    def _order_candidates(
        self, raw: bytes, suggested: str, detected: str
    ) -> List[CharsetCandidate]:
        """Ordered, de-duplicated candidate list for already sniffed input."""
        candidates = []
        if suggested:
            candidates.append(CharsetCandidate(suggested, CandidateKind.SUGGESTED))
        if detected and detected != suggested:
            candidates.append(CharsetCandidate(detected, CandidateKind.DETECTED))
        if (self.config.try_utf8_probe and UTF8 not in (suggested, detected)
                and is_valid_utf8(raw)):
            candidates.append(CharsetCandidate(UTF8, CandidateKind.UTF8_PROBE))
        if self.config.try_locale_fallback:
            locale_charset = normalize_charset(self.locale_provider.default_gui_charset())
            if locale_charset and all(c.charset != locale_charset for c in candidates):
                candidates.append(CharsetCandidate(locale_charset, CandidateKind.LOCALE))
        if self.config.allow_unknown_fallback:
            candidates.append(CharsetCandidate("", CandidateKind.UNKNOWN))
        return candidates

    def _resolve_forced(
        self, raw: bytes, encoding: XmlEncoding, result: ResolutionResult
    ) -> None:
        charset = UTF8 if encoding is XmlEncoding.UTF8 else ""
        candidate = CharsetCandidate(charset, CandidateKind.FORCED)
        data, repairs = self._repair(raw)
        try:
            tree = self.engine.parse(data, encoding)
        except ParseError as e:
            result.attempts.append(CandidateAttempt(candidate, e))
            result.metrics.parse_failures += 1
            result.error = e
            result.add_diagnostic(
                DiagnosticSeverity.ERROR,
                f"Parsing with forced {encoding.name} encoding failed: {e}",
                details={"location": e.location},
            )
            return
        result.attempts.append(CandidateAttempt(candidate))
        result.metrics.entity_repairs = repairs
        result.tree = tree
        result.used_charset = charset

    def _resolve_chain(
        self,
        raw: bytes,
        suggested: str,
        content_hint: str,
        origin: str,
        result: ResolutionResult,
    ) -> None:
        detected, issues = self.detect_charset(raw, content_hint)
        for issue in issues:
            message = f"{issue} in {origin}"
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                message,
                component="charset_detector",
                details={"detected": detected},
            )
            self.logger.warning(message, extra={"detected": detected})
        candidates = self._order_candidates(raw, suggested, detected)
        self.logger.debug(
            "Resolving charset",
            extra={
                "origin": origin,
                "suggested": suggested,
                "detected": detected,
                "candidates": [c.label for c in candidates],
            }
        )

        passthrough: Optional[Tuple[bytes, int]] = None
        for candidate in candidates:
            try:
                if candidate.charset in (UTF8, ""):
                    if passthrough is None:
                        passthrough = self._repair(raw)
                    tree, repairs = self._parse_passthrough(candidate, *passthrough)
                else:
                    tree, repairs = self._parse_converted(candidate, raw)
            except ConversionError as e:
                self._record_failure(result, candidate, e, origin)
                result.metrics.conversion_failures += 1
                continue
            except ParseError as e:
                self._record_failure(result, candidate, e, origin)
                result.metrics.parse_failures += 1
                continue

            result.attempts.append(CandidateAttempt(candidate))
            result.tree = tree
            result.used_charset = candidate.charset
            result.metrics.entity_repairs = repairs
            self._report_substitution(result, candidate, suggested, detected, origin)
            return

        result.error = ExhaustedFallbackError(
            f"No charset candidate could parse {origin}",
            attempts=result.attempts,
        )
        result.add_diagnostic(
            DiagnosticSeverity.ERROR,
            str(result.error),
            details={"tried": [c.label for c in candidates]},
        )
        self.logger.warning(
            "All charset candidates failed",
            extra={"origin": origin, "tried": [c.label for c in candidates]}
        )

    def _repair(self, data: bytes) -> Tuple[bytes, int]:
        """Apply entity repair unless disabled; returns the data and the repair count."""
        if not self.config.enable_entity_repair:
            return data, 0
        return repair_entities_counted(data)

    def _parse_passthrough(
        self, candidate: CharsetCandidate, data: bytes, repairs: int
    ) -> Tuple[Any, int]:
        """Parse the repaired raw bytes: UTF8 mode for the probe, LEGACY for the raw fallback."""
        mode = XmlEncoding.UTF8 if candidate.charset == UTF8 else XmlEncoding.LEGACY
        return self.engine.parse(data, mode), repairs

    def _parse_converted(self, candidate: CharsetCandidate, raw: bytes) -> Tuple[Any, int]:
        """Strictly convert ``raw`` to UTF-8, repair it and parse it in UTF8 mode."""
        converted = self.converter.to_utf8(candidate.charset, raw, strict=True)
        if not converted and raw:
            raise ConversionError(
                f"Conversion from {candidate.charset} produced no output",
                candidate.charset,
            )
        # Converted output is repaired on its own: wide charsets such as
        # UTF-16 are not ASCII-compatible in their raw form.
        data, repairs = self._repair(converted)
        return self.engine.parse(data, XmlEncoding.UTF8), repairs

    def _record_failure(
        self,
        result: ResolutionResult,
        candidate: CharsetCandidate,
        error: ForgivingXmlError,
        origin: str,
    ) -> None:
        """Record a failed attempt as a DEBUG diagnostic and log line."""
        result.attempts.append(CandidateAttempt(candidate, error))
        message = f'Charset "{candidate.label}" failed for {origin}: {error}'
        result.add_diagnostic(
            DiagnosticSeverity.DEBUG,
            message,
            details={"charset": candidate.charset, "kind": candidate.kind.value},
        )
        self.logger.debug(message, extra={"error_type": type(error).__name__})

    def _report_substitution(
        self,
        result: ResolutionResult,
        winner: CharsetCandidate,
        suggested: str,
        detected: str,
        origin: str,
    ) -> None:
        message = None
        if winner.kind is CandidateKind.DETECTED:
            if suggested:
                message = (f'"{winner.charset}" charset was used instead of '
                           f'suggested charset "{suggested}" for {origin}')
        elif winner.kind is CandidateKind.UNKNOWN:
            if suggested:
                message = (f"Processed {origin} as unknown encoding instead of "
                           f'suggested "{suggested}"')
            elif detected:
                message = (f"Processed {origin} as unknown encoding instead of "
                           f'detected "{detected}"')
        elif winner.kind is not CandidateKind.SUGGESTED:
            if suggested:
                message = (f'"{winner.charset}" charset was used instead of '
                           f'suggested charset "{suggested}" for {origin}')
            elif detected:
                message = (f'"{winner.charset}" charset was used instead of '
                           f'detected charset "{detected}" for {origin}')

        if message is None:
            result.add_diagnostic(
                DiagnosticSeverity.INFO,
                f"Parsed {origin} as {winner.label}",
            )
            return
        if self.config.warn_on_substitution:
            self.logger.warning(message, extra={"used_charset": winner.charset})
        result.add_diagnostic(
            DiagnosticSeverity.WARNING,
            message,
            details={"used_charset": winner.charset, "kind": winner.kind.value},
        )

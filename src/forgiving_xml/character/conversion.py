"""Charset conversion of raw document bytes to UTF-8.

Conversion is strict by default: a single byte sequence that is invalid in
the source charset fails the whole conversion. Some wrong charsets leave the
ASCII markup intact while garbling non-English text, so a lenient conversion
would let the wrong candidate win.
"""

import codecs

from forgiving_xml.shared.errors import ConversionError

BYTE_ORDER_MARK = "\ufeff"


class CharsetConverter:
    """Convert bytes in a named charset to UTF-8 using Python codecs."""

    def lookup(self, charset: str) -> codecs.CodecInfo:
        """Resolve a charset name to a codec.

        Raises:
            ConversionError: If Python has no codec for the charset
        """
        try:
            return codecs.lookup(charset)
        except LookupError as e:
            raise ConversionError(f"Unsupported charset: {charset}", charset) from e

    def decode(self, source_charset: str, data: bytes, strict: bool = True) -> str:
        """Decode ``data`` from ``source_charset`` into text without a leading BOM."""
        codec = self.lookup(source_charset)
        try:
            text, _ = codec.decode(data, "strict" if strict else "replace")
        except UnicodeDecodeError as e:
            raise ConversionError(
                f"Invalid {source_charset} byte sequence at offset {e.start}",
                source_charset
            ) from e
        if text.startswith(BYTE_ORDER_MARK):
            text = text[1:]
        return text

    def to_utf8(self, source_charset: str, data: bytes, strict: bool = True) -> bytes:
        """Convert ``data`` from ``source_charset`` to UTF-8.

        Args:
            source_charset: Charset name understood by ``codecs``
            data: Raw bytes
            strict: Fail on the first invalid byte sequence; when False,
                invalid sequences become U+FFFD

        Returns:
            UTF-8 encoded bytes

        Raises:
            ConversionError: If the charset is unknown or the bytes are invalid
        """
        text = self.decode(source_charset, data, strict)
        try:
            return text.encode("utf-8", errors="strict")
        except UnicodeEncodeError as e:
            # Lone surrogates produced by a few legacy codecs
            raise ConversionError(
                f"{source_charset} data cannot be represented as UTF-8",
                source_charset
            ) from e

"""Repair of stray ampersands that do not start a legal XML entity reference.

Scraped and hand-written XML frequently contains bare ``&`` characters, for
example inside URLs. A strict XML engine rejects such documents outright. The
repair pass rewrites each offending ``&`` as ``&amp;`` and leaves every legal
reference untouched, so running it twice gives the same result as running it
once.

The check at each ampersand only looks at a short window of characters, just
long enough for the longest legal reference (``&#xFFFF;`` or ``&#65535;``).
"""

from typing import List, Tuple, TypeVar, Union

# Size of the largest entity "&#xNNNN;"
MAX_ENTITY_LENGTH = 8

NAMED_ENTITIES = ("amp", "lt", "gt", "quot", "apos")
MAX_DECIMAL_DIGITS = 5
MAX_HEX_DIGITS = 4

DECIMAL_DIGITS = frozenset("0123456789")
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

TextOrBytes = TypeVar("TextOrBytes", str, bytes)


def _count_digits(window: str, start: int, alphabet: frozenset) -> int:
    count = 0
    while start + count < len(window) and window[start + count] in alphabet:
        count += 1
    return count


def _window_is_entity(window: str) -> bool:
    """Match ``window`` (starting with ``&``) against the entity grammar."""
    for name in NAMED_ENTITIES:
        if window.startswith(f"&{name};"):
            return True

    if window[1:2] != "#":
        return False

    if window[2:3] == "x":
        start, alphabet, limit = 3, HEX_DIGITS, MAX_HEX_DIGITS
    else:
        start, alphabet, limit = 2, DECIMAL_DIGITS, MAX_DECIMAL_DIGITS

    digits = _count_digits(window, start, alphabet)
    if not 1 <= digits <= limit:
        return False
    return window[start + digits:start + digits + 1] == ";"


def is_legal_entity_at(data: Union[str, bytes], pos: int) -> bool:
    """Check whether the ``&`` at ``pos`` starts a legal entity reference.

    Args:
        data: Text or raw bytes; ``data[pos]`` must be an ampersand
        pos: Offset of the ampersand

    Returns:
        True if the bounded lookahead window holds a complete legal reference
    """
    window = data[pos:pos + MAX_ENTITY_LENGTH]
    if isinstance(window, bytes):
        # Entity syntax is pure ASCII; latin-1 maps each byte to one character.
        window = window.decode("latin-1")
    if not window.startswith("&"):
        raise ValueError(f"No ampersand at offset {pos}")
    return _window_is_entity(window)


def repair_entities_counted(data: TextOrBytes) -> Tuple[TextOrBytes, int]:
    """Like ``repair_entities`` but also return the number of escapes inserted."""
    if isinstance(data, bytes):
        ampersand, escape, empty = b"&", b"amp;", b""
    else:
        ampersand, escape, empty = "&", "amp;", ""

    pos = data.find(ampersand)
    if pos < 0:
        return data, 0

    # Escapes are only ever inserted before the current position, so the
    # lookahead at ``pos`` always sees unmodified input.
    pieces: List[TextOrBytes] = []
    start = 0
    repairs = 0
    while pos >= 0:
        if not is_legal_entity_at(data, pos):
            pieces.append(data[start:pos + 1])
            pieces.append(escape)
            start = pos + 1
            repairs += 1
        pos = data.find(ampersand, pos + 1)

    if not repairs:
        return data, 0
    pieces.append(data[start:])
    return empty.join(pieces), repairs


def repair_entities(data: TextOrBytes) -> TextOrBytes:
    """Escape every ``&`` that does not begin a legal entity reference.

    Args:
        data: XML text or ASCII-compatible raw bytes

    Returns:
        Repaired data of the same type; the input object itself when
        nothing needed repair

    Examples:
        >>> repair_entities("a=1&b=2&amp;c")
        'a=1&amp;b=2&amp;c'
        >>> repair_entities(b"&#x3f;&#0063;")
        b'&#x3f;&#0063;'
    """
    repaired, _ = repair_entities_counted(data)
    return repaired


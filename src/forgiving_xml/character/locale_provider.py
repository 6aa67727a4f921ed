"""Locale charset providers used as the resolver's last charset guess."""

import codecs
import locale
from abc import ABC, abstractmethod
from typing import Optional

from forgiving_xml.character.encoding import normalize_charset

DEFAULT_GUI_CHARSET = "CP1252"

# Python codec names mapped to the names XML documents normally use
_CANONICAL_NAMES = {
    "utf-8": "UTF-8",
    "cp1252": "CP1252",
    "latin-1": "ISO-8859-1",
    "iso8859-1": "ISO-8859-1",
    "iso8859-15": "ISO-8859-15",
    "ascii": "US-ASCII",
}


def canonical_charset(name: Optional[str], default: str = DEFAULT_GUI_CHARSET) -> str:
    """Map a charset name to an uppercase canonical name Python can decode."""
    normalized = normalize_charset(name)
    if not normalized:
        return default
    try:
        codec_name = codecs.lookup(normalized).name
    except LookupError:
        return default
    return _CANONICAL_NAMES.get(codec_name, normalize_charset(codec_name))


class LocaleProvider(ABC):
    """Source of the user's preferred legacy charset."""

    @abstractmethod
    def default_gui_charset(self) -> str:
        """Return the uppercase charset configured for the user interface."""


class SystemLocaleProvider(LocaleProvider):
    """Charset of the process locale, read once on first use."""

    def __init__(self) -> None:
        self._charset: Optional[str] = None

    def default_gui_charset(self) -> str:
        if self._charset is None:
            self._charset = canonical_charset(locale.getpreferredencoding(False))
        return self._charset


class FixedLocaleProvider(LocaleProvider):
    """Provider returning a fixed charset, for embedding and tests."""

    def __init__(self, charset: str = DEFAULT_GUI_CHARSET) -> None:
        self._charset = canonical_charset(charset)

    def default_gui_charset(self) -> str:
        return self._charset

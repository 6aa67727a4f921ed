"""Module-level convenience functions over ``XmlDocument``.

These cover the common one-shot cases. Use ``XmlDocument`` directly to
inject an engine, filesystem or configuration, or to reuse a document.
"""

from pathlib import Path
from typing import BinaryIO, Optional, Union

from forgiving_xml.api.document import XmlDocument
from forgiving_xml.shared import DocumentConfig
from forgiving_xml.tree import XmlEncoding

InputType = Union[bytes, str, Path, BinaryIO]


def parse(
    input_data: InputType,
    charset: Optional[str] = None,
    config: Optional[DocumentConfig] = None,
    correlation_id: Optional[str] = None,
) -> XmlDocument:
    """Parse XML from bytes, text, a path or a binary file-like object.

    Strings are treated as XML text, not as file names; pass a ``Path`` to
    load a file.

    Args:
        input_data: XML content or its location
        charset: Suggested charset for byte input
        config: Optional document configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The document; check ``is_parsed`` or ``error``

    Examples:
        >>> parse(b'<?xml version="1.0" encoding="UTF-8"?><root/>').used_charset
        'UTF-8'
    """
    if isinstance(input_data, Path):
        return parse_file(input_data, charset, config, correlation_id)

    document = XmlDocument(suggested_charset=charset, config=config,
                           correlation_id=correlation_id)
    if isinstance(input_data, (bytes, str)):
        document.parse(input_data)
    elif hasattr(input_data, "read"):
        document.load_stream(input_data)
    else:
        raise TypeError(f"Unsupported input type: {type(input_data).__name__}")
    return document


def parse_string(
    xml_string: str,
    config: Optional[DocumentConfig] = None,
    correlation_id: Optional[str] = None,
) -> XmlDocument:
    """Parse already decoded XML text."""
    document = XmlDocument(config=config, correlation_id=correlation_id)
    document.parse(xml_string, encoding=XmlEncoding.UTF8)
    return document


def parse_file(
    file_path: Union[str, Path],
    charset: Optional[str] = None,
    config: Optional[DocumentConfig] = None,
    correlation_id: Optional[str] = None,
) -> XmlDocument:
    """Load and parse an XML file.

    Args:
        file_path: Path to the XML file
        charset: Suggested charset of the file content
        config: Optional document configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The document; a missing or empty file leaves a ``FileOpenError``
    """
    document = XmlDocument(file_path, charset, config=config,
                           correlation_id=correlation_id)
    document.load_file()
    return document

"""Public API: documents, charset resolution and file access."""

from .document import DocumentState, XmlDocument
from .io import FileLoader, FileSystem, LoadedSource, LocalFileSystem, Serializer
from .parser import parse, parse_file, parse_string
from .resolver import (
    CandidateAttempt,
    CandidateKind,
    CharsetCandidate,
    CharsetResolver,
    ResolutionResult,
)

__all__ = [
    "DocumentState",
    "XmlDocument",
    "FileLoader",
    "FileSystem",
    "LoadedSource",
    "LocalFileSystem",
    "Serializer",
    "parse",
    "parse_file",
    "parse_string",
    "CandidateAttempt",
    "CandidateKind",
    "CharsetCandidate",
    "CharsetResolver",
    "ResolutionResult",
]

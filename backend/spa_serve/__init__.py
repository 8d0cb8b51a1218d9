import logging

from .errors import (
    ConfigSerializationFailed,
    DirectoryCreationFailed,
    DocumentParseFailed,
    DocumentRenderFailed,
    EntryDocumentMissing,
    FileOpenFailed,
    FileReadFailed,
    FileWriteFailed,
    HeadElementMissing,
    InvalidNamespace,
    MissingNamespace,
    SnapshotError,
    SPAServeError,
    UnexpectedWalkError,
)
from .inject import inject_web_env
from .options import SPAServeOptions
from .snapshot import Snapshot, build_snapshot
from .source import DirectorySource, SourceTree
from .static_files import Outcome, SPAStaticFiles, static_files_handler

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConfigSerializationFailed",
    "DirectoryCreationFailed",
    "DirectorySource",
    "DocumentParseFailed",
    "DocumentRenderFailed",
    "EntryDocumentMissing",
    "FileOpenFailed",
    "FileReadFailed",
    "FileWriteFailed",
    "HeadElementMissing",
    "InvalidNamespace",
    "MissingNamespace",
    "Outcome",
    "SPAServeError",
    "SPAServeOptions",
    "SPAStaticFiles",
    "Snapshot",
    "SnapshotError",
    "SourceTree",
    "UnexpectedWalkError",
    "build_snapshot",
    "inject_web_env",
    "static_files_handler",
]

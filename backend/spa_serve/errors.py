"""Construction-time failures.

Every error raised while building a snapshot or rewriting the entry document
derives from :class:`SPAServeError`. Low-level causes are chained through
``__cause__``.
"""


class SPAServeError(Exception):
    """Base class for snapshot and rewrite failures."""


class InvalidNamespace(SPAServeError, ValueError):
    """Namespace is not a valid JavaScript identifier."""


class MissingNamespace(InvalidNamespace):
    pass


class EntryDocumentMissing(SPAServeError):
    pass


class ConfigSerializationFailed(SPAServeError):
    pass


class DocumentParseFailed(SPAServeError):
    pass


class HeadElementMissing(SPAServeError):
    pass


class DocumentRenderFailed(SPAServeError):
    pass


class SnapshotError(SPAServeError):
    """Copying the source tree into memory failed."""

    default_message = "could not copy"

    def __init__(self, path: str, message: str = "") -> None:
        self.path = path
        super().__init__(f"{message or self.default_message}: {path!r}")


class UnexpectedWalkError(SnapshotError):
    default_message = "unexpected walk error"


class DirectoryCreationFailed(SnapshotError):
    default_message = "could not make dir"


class FileOpenFailed(SnapshotError):
    default_message = "could not open file"


class FileReadFailed(SnapshotError):
    default_message = "could not read file"


class FileWriteFailed(SnapshotError):
    default_message = "could not write file"

"""Read-only source trees that a snapshot can be copied from."""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import BinaryIO, Iterator, Protocol


class SourceTree(Protocol):
    def walk(self) -> Iterator[tuple[str, bool]]:
        """Yield ``(path, is_dir)`` in lexical pre-order, starting with ``"."``."""
        ...

    def open(self, path: str) -> BinaryIO: ...


def split_path(path: str) -> list[str]:
    """Split a slash-separated relative path, rejecting anything that could escape the root.

    ``"."`` and ``""`` denote the root and return an empty list.
    """
    if path in ("", "."):
        return []
    parts = path.split("/")
    if path.startswith("/") or any(p in ("", ".", "..") for p in parts) or "\x00" in path:
        raise OSError(errno.EINVAL, "invalid path", path)
    return parts


class DirectorySource:
    """A directory on disk, addressed with slash-separated relative paths."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.directory)!r})"

    def walk(self) -> Iterator[tuple[str, bool]]:
        if not self.directory.is_dir():
            raise NotADirectoryError(errno.ENOTDIR, "not a directory", str(self.directory))
        yield ".", True
        yield from self._walk(self.directory, "")

    def _walk(self, directory: Path, prefix: str) -> Iterator[tuple[str, bool]]:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
        for entry in entries:
            path = prefix + entry.name
            if entry.is_dir():
                yield path, True
                yield from self._walk(Path(entry.path), path + "/")
            else:
                yield path, False

    def open(self, path: str) -> BinaryIO:
        parts = split_path(path)
        return self.directory.joinpath(*parts).open("rb")

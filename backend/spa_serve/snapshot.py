"""In-memory copy of a source tree, built once at startup."""

from __future__ import annotations

import errno
import io
import logging
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterator, Mapping, Optional

from .errors import (
    DirectoryCreationFailed,
    FileOpenFailed,
    FileReadFailed,
    FileWriteFailed,
    UnexpectedWalkError,
)
from .source import SourceTree, split_path

logger = logging.getLogger(__name__)

DIR_MODE = 0o755

TransformHook = Callable[[str, bytes], bytes]


@dataclass(frozen=True)
class Entry:
    path: str
    is_dir: bool
    size: int = 0


class Snapshot:
    """Hierarchical path → bytes mapping with explicit directory nodes.

    Writes require the parent directory to exist. Once :meth:`freeze` is called
    (``build_snapshot`` does this) the snapshot rejects further writes and can
    be shared between concurrent requests without locking.
    """

    def __init__(self) -> None:
        self._dirs: dict[str, int] = {".": DIR_MODE}
        self._files: dict[str, bytes] = {}
        self._frozen = False
        self.created_at = time.time()

    def __repr__(self) -> str:
        return f"<Snapshot files={len(self._files)} dirs={len(self._dirs)}>"

    @property
    def files(self) -> Mapping[str, bytes]:
        return MappingProxyType(self._files)

    @property
    def directories(self) -> frozenset[str]:
        return frozenset(self._dirs)

    def mode(self, path: str) -> int:
        return self._dirs[_key(split_path(path))]

    def freeze(self) -> None:
        self._frozen = True

    def _check_writable(self, path: str) -> None:
        if self._frozen:
            raise PermissionError(errno.EROFS, "snapshot is read-only", path)

    def mkdir_all(self, path: str, mode: int = DIR_MODE) -> None:
        self._check_writable(path)
        parts = split_path(path)
        for i in range(1, len(parts) + 1):
            key = _key(parts[:i])
            if key in self._files:
                raise NotADirectoryError(errno.ENOTDIR, "not a directory", key)
            self._dirs.setdefault(key, mode)

    def write_file(self, path: str, data: bytes) -> None:
        self._check_writable(path)
        parts = split_path(path)
        if not parts:
            raise IsADirectoryError(errno.EISDIR, "is a directory", path)
        key = _key(parts)
        if _key(parts[:-1]) not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "parent directory does not exist", path)
        if key in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "is a directory", path)
        self._files[key] = bytes(data)

    def stat(self, path: str) -> Entry:
        key = _key(split_path(path))
        if key in self._dirs:
            return Entry(key, is_dir=True)
        if key in self._files:
            return Entry(key, is_dir=False, size=len(self._files[key]))
        raise FileNotFoundError(errno.ENOENT, "no such file", path)

    def read(self, path: str) -> bytes:
        key = _key(split_path(path))
        if key in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "is a directory", path)
        try:
            return self._files[key]
        except KeyError:
            raise FileNotFoundError(errno.ENOENT, "no such file", path) from None

    # SourceTree, so one snapshot can seed another.

    def open(self, path: str) -> io.BytesIO:
        return io.BytesIO(self.read(path))

    def walk(self) -> Iterator[tuple[str, bool]]:
        entries = [(p, True) for p in self._dirs] + [(p, False) for p in self._files]
        # "." first, then each directory ahead of the paths below it
        entries.sort(key=lambda e: [] if e[0] == "." else e[0].split("/"))
        yield from entries


def _key(parts: list[str]) -> str:
    return "/".join(parts) or "."


def build_snapshot(source: SourceTree, hook: Optional[TransformHook] = None) -> Snapshot:
    """Copy every directory and file of ``source`` into a new :class:`Snapshot`.

    Each file's bytes pass through ``hook`` when one is given; exceptions raised
    by the hook propagate unchanged. Any other failure aborts the walk with a
    :class:`~spa_serve.errors.SnapshotError` chained to its cause.
    """
    snapshot = Snapshot()
    entries = iter(source.walk())
    while True:
        try:
            path, is_dir = next(entries)
        except StopIteration:
            break
        except OSError as exc:
            raise UnexpectedWalkError(str(exc.filename or "")) from exc

        if is_dir:
            try:
                snapshot.mkdir_all(path, DIR_MODE)
            except OSError as exc:
                raise DirectoryCreationFailed(path) from exc
            continue

        try:
            f = source.open(path)
        except OSError as exc:
            raise FileOpenFailed(path) from exc
        with f:
            try:
                data = f.read()
            except OSError as exc:
                raise FileReadFailed(path) from exc

        if hook is not None:
            data = hook(path, data)

        try:
            snapshot.write_file(path, data)
        except OSError as exc:
            raise FileWriteFailed(path) from exc

    snapshot.freeze()
    logger.debug(
        "Built snapshot from %r: %d files, %d directories",
        source, len(snapshot.files), len(snapshot.directories),
    )
    return snapshot

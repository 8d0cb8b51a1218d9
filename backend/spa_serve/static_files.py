from __future__ import annotations

import hashlib
import logging
import mimetypes
import os
import posixpath
from dataclasses import dataclass
from email.utils import formatdate
from enum import Enum
from http import HTTPStatus
from typing import Optional, Union

from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse, Response
from starlette.staticfiles import NotModifiedResponse, StaticFiles
from starlette.types import ASGIApp, Scope

from .inject import ENTRY_DOCUMENT, inject_web_env
from .options import ErrorHandler, SPAServeOptions
from .snapshot import Snapshot, build_snapshot
from .source import DirectorySource, SourceTree


class Outcome(Enum):
    SERVE_ASSET = "serve_asset"
    SERVE_ENTRY_DOCUMENT = "serve_entry_document"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"


@dataclass(frozen=True)
class Resolution:
    outcome: Outcome
    path: str


class SPAStaticFiles(StaticFiles):
    """Serve a snapshot with SPA fallback to index.html.

    Missing paths with an extension are real 404s; missing extension-less
    paths are client-side routes and get the entry document.
    """

    def __init__(
        self,
        snapshot: Snapshot,
        *,
        base_path: str = "/",
        logger: Optional[logging.Logger] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        super().__init__(directory=None, check_dir=False)
        self.snapshot = snapshot
        self.base_path = base_path
        self.logger = logger or logging.getLogger(__name__)
        self.error_handler = error_handler

    def get_path(self, scope: Scope) -> str:
        return scope["path"]

    def clean_path(self, path: str) -> str:
        cleaned = posixpath.normpath("/" + path.lstrip("/"))
        prefix = self.base_path.rstrip("/")
        if prefix and (cleaned == prefix or cleaned.startswith(prefix + "/")):
            cleaned = cleaned[len(prefix):]
        return cleaned.strip("/")

    def resolve(self, request_path: str) -> Resolution:
        prefix = self.base_path.rstrip("/")
        under_base = request_path == prefix or request_path.startswith(prefix + "/")
        if prefix and request_path != "/" and not under_base:
            self.logger.info(
                "base path may not be set correctly",
                extra={"request_path": request_path, "base_path": self.base_path},
            )

        cleaned = self.clean_path(request_path)
        if cleaned in ("", ENTRY_DOCUMENT):
            return self._decide(Outcome.SERVE_ENTRY_DOCUMENT, "", logging.DEBUG, "serve index")

        try:
            self.snapshot.stat(cleaned)
        except FileNotFoundError:
            if has_extension(cleaned):
                return self._decide(Outcome.NOT_FOUND, cleaned, logging.ERROR, "could not find file")
            return self._decide(Outcome.SERVE_ENTRY_DOCUMENT, cleaned, logging.DEBUG, "not found, serve index")
        except OSError:
            return self._decide(Outcome.SERVER_ERROR, cleaned, logging.ERROR, "could not open file")
        return Resolution(Outcome.SERVE_ASSET, cleaned)

    def _decide(self, outcome: Outcome, cleaned: str, level: int, msg: str) -> Resolution:
        self.logger.log(level, msg, extra={"cleaned_path": cleaned, "outcome": outcome.value})
        return Resolution(outcome, cleaned)

    async def get_response(self, path: str, scope: Scope) -> Union[Response, ASGIApp]:
        resolution = self.resolve(path)
        if resolution.outcome is Outcome.NOT_FOUND:
            return self.error_response(404)
        if resolution.outcome is Outcome.SERVER_ERROR:
            return self.error_response(500)
        if resolution.outcome is Outcome.SERVE_ENTRY_DOCUMENT:
            return self.serve(".", scope)
        return self.serve(resolution.path, scope)

    def error_response(self, status_code: int) -> Union[Response, ASGIApp]:
        if self.error_handler is not None:
            return self.error_handler(status_code)
        return PlainTextResponse(HTTPStatus(status_code).phrase, status_code=status_code)

    def serve(self, path: str, scope: Scope) -> Union[Response, ASGIApp]:
        """Deliver a snapshot file; directories serve their own index.html."""
        try:
            if self.snapshot.stat(path).is_dir:
                path = posixpath.join(path, ENTRY_DOCUMENT) if path != "." else ENTRY_DOCUMENT
            data = self.snapshot.read(path)
        except FileNotFoundError:
            self.logger.error("could not find file", extra={"cleaned_path": path, "outcome": Outcome.NOT_FOUND.value})
            return self.error_response(404)
        except OSError:
            self.logger.exception("could not read file", extra={"cleaned_path": path, "outcome": Outcome.SERVER_ERROR.value})
            return self.error_response(500)
        return self.content_response(path, data, scope)

    def content_response(self, path: str, data: bytes, scope: Scope) -> Response:
        headers = {
            "etag": '"' + hashlib.md5(data, usedforsecurity=False).hexdigest() + '"',
            "last-modified": formatdate(self.snapshot.created_at, usegmt=True),
            "accept-ranges": "bytes",
        }
        media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"

        request_headers = Headers(scope=scope)
        if self.is_not_modified(Headers(headers), request_headers):
            return NotModifiedResponse(Headers(headers))

        byte_range = parse_range(request_headers.get("range"), len(data))
        if byte_range is None:
            return Response(data, media_type=media_type, headers=headers)
        if byte_range == ():
            return Response(
                status_code=416,
                headers={"content-range": f"bytes */{len(data)}"},
            )
        start, end = byte_range
        headers["content-range"] = f"bytes {start}-{end}/{len(data)}"
        return Response(data[start:end + 1], status_code=206, media_type=media_type, headers=headers)


def has_extension(path: str) -> bool:
    """True when the last path element has a dot, leading dots included (".env")."""
    return "." in posixpath.basename(path)


def parse_range(header: Optional[str], size: int) -> Optional[tuple]:
    """Parse a single ``bytes=`` range.

    Returns ``(start, end)`` inclusive, ``()`` when unsatisfiable, or None when
    the whole body should be sent (no header, multiple ranges, bad syntax).
    """
    if not header or not header.startswith("bytes=") or "," in header:
        return None
    first, sep, last = header[len("bytes="):].strip().partition("-")
    if not sep:
        return None
    try:
        if not first:
            suffix = int(last)
            if suffix <= 0:
                return ()
            return (max(size - suffix, 0), size - 1) if size else ()
        start = int(first)
        end = int(last) if last else size - 1
    except ValueError:
        return None
    if start < 0 or end < start:
        return None
    if start >= size:
        return ()
    return start, min(end, size - 1)


def static_files_handler(
    source: Union[SourceTree, str, "os.PathLike[str]"],
    options: Optional[SPAServeOptions] = None,
    **kwargs,
) -> SPAStaticFiles:
    """Snapshot ``source`` (injecting ``web_env`` when set) and wrap it in an ASGI app.

    Construction errors propagate; the returned app never touches ``source`` again.
    """
    if options is None:
        options = SPAServeOptions(**kwargs)
    elif kwargs:
        raise TypeError("pass either options or keyword settings, not both")
    if isinstance(source, (str, os.PathLike)):
        source = DirectorySource(source)

    if options.web_env is not None:
        snapshot = inject_web_env(source, options.web_env, options.namespace)
    else:
        snapshot = build_snapshot(source)

    return SPAStaticFiles(
        snapshot,
        base_path=options.base_path,
        logger=options.logger,
        error_handler=options.error_handler,
    )


def mount_frontend(app, source, options: Optional[SPAServeOptions] = None) -> None:
    app.mount("/", static_files_handler(source, options), name="spa")

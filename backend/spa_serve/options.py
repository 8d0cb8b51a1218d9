from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from starlette.types import ASGIApp

from .inject import DEFAULT_NAMESPACE

# maps an HTTP status code to the ASGI app (usually a Response) that answers it
ErrorHandler = Callable[[int], ASGIApp]


class SPAServeOptions(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_path: str = "/"
    namespace: str = DEFAULT_NAMESPACE
    web_env: Any = None
    logger: Optional[logging.Logger] = None
    error_handler: Optional[ErrorHandler] = None

    @field_validator("base_path")
    @classmethod
    def _normalize_base_path(cls, v: str) -> str:
        if not v:
            return "/"
        if not v.startswith("/"):
            v = "/" + v
        if not v.endswith("/"):
            v = v + "/"
        return v

    @field_validator("namespace")
    @classmethod
    def _default_namespace(cls, v: str) -> str:
        return v or DEFAULT_NAMESPACE

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from .options import SPAServeOptions


class Mode(Enum):
    DEV = "dev"
    PRODUCTION = "production"


def get_mode() -> Mode:
    env = os.environ.get("SPA_SERVE_MODE", "").lower()
    if env == "dev":
        return Mode.DEV
    return Mode.PRODUCTION


def get_dist_path() -> Path:
    env = os.environ.get("SPA_SERVE_DIST")
    if env:
        return Path(env)
    return Path.cwd() / "dist"


def get_web_env() -> Any:
    """Runtime config injected into index.html, from ``SPA_SERVE_WEB_ENV`` (a JSON object)."""
    raw = os.environ.get("SPA_SERVE_WEB_ENV", "").strip()
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"SPA_SERVE_WEB_ENV is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise ValueError("SPA_SERVE_WEB_ENV must be a JSON object")
    return value


def get_options() -> SPAServeOptions:
    return SPAServeOptions(
        base_path=os.environ.get("SPA_SERVE_BASE_PATH", "/"),
        namespace=os.environ.get("SPA_SERVE_NAMESPACE", ""),
        web_env=get_web_env(),
    )

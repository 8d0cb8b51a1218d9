import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router as api_router
from .config import Mode, get_dist_path, get_mode, get_options
from .options import SPAServeOptions
from .static_files import mount_frontend

logger = logging.getLogger(__name__)


def create_app(dist: Optional[Path] = None, options: Optional[SPAServeOptions] = None) -> FastAPI:
    """Build the application: ``/api`` routes plus the SPA bundle mounted at ``/``.

    In dev mode the bundle is served by the frontend dev server instead, so
    nothing is mounted and CORS is opened for it.
    """
    mode = get_mode()
    app = FastAPI(title="spa-serve")

    if mode == Mode.DEV:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["http://localhost:5173"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router)

    if mode != Mode.DEV:
        dist = dist or get_dist_path()
        options = options or get_options()
        logger.info("Serving %s at %s", dist, options.base_path)
        mount_frontend(app, dist, options)

    return app

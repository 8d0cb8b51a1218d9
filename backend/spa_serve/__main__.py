import argparse
import logging
from pathlib import Path

import uvicorn

from .app import create_app


def main() -> None:
    parser = argparse.ArgumentParser(prog="spa_serve", description="Serve a built single-page application.")
    parser.add_argument("dist", nargs="?", type=Path, help="bundle directory (default: $SPA_SERVE_DIST or ./dist)")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper())
    app = create_app(dist=args.dist)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Entry point for the Image Insight API server."""
import argparse
import logging
import os

import uvicorn

from ..config import load_config


def main(argv=None):
    parser = argparse.ArgumentParser(description="Image Insight API server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--config", default=None, help="YAML config file")
    args = parser.parse_args(argv)

    if args.config:
        os.environ["INSIGHT_CONFIG"] = args.config

    config = load_config(args.config)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "insight.server.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()

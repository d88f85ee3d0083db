from __future__ import annotations

import argparse
import logging
from typing import Sequence

import uvicorn

from .settings import load_settings

APP_FACTORIES = {
    "service": "eventcal.service:create_app",
    "ui": "eventcal.main:create_app",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eventcal", description="Run the event calendar apps.")
    parser.add_argument("component", choices=sorted(APP_FACTORIES), help="Which app to serve.")
    parser.add_argument("--host", help="Bind address (defaults to the YAML config).")
    parser.add_argument("--port", type=int, help="Bind port (defaults to the YAML config).")
    return parser


def run(component: str, *, host: str | None = None, port: int | None = None) -> None:
    settings = load_settings()
    log_level = settings.env.eventcal_log_level
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if component == "service":
        default_host, default_port = settings.yaml.service.host, settings.yaml.service.port
    else:
        default_host, default_port = settings.yaml.ui_server.host, settings.yaml.ui_server.port

    uvicorn.run(
        APP_FACTORIES[component],
        factory=True,
        host=host or default_host,
        port=port or default_port,
        log_level=log_level,
        workers=1,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    run(args.component, host=args.host, port=args.port)


def run_service() -> None:
    run("service")


def run_ui() -> None:
    run("ui")


if __name__ == "__main__":
    main()

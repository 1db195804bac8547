from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from nicegui import ui

from obs_delay.common.logging_config import configure_logging
from obs_delay.config import Config, parse_obs_url, parse_sources
from obs_delay.constants import LOG_LEVEL, resolve_log_level
from obs_delay.pages.list_view import PAGE_TITLE
from obs_delay.pages.panel import register_panel
from obs_delay.routes import build_router
from obs_delay.services.delay_service import DelayService
from obs_delay.services.obs_client import ObsClient

PANEL_PATH = "/panel"


def create_app(
    service: DelayService, client: ObsClient | None = None, auto_connect: bool = True
) -> FastAPI:
    """
    HTTP app for ``service``.

    With a ``client``, the OBS connection is attempted once at startup and
    closed at shutdown. A failed attempt is logged and the app keeps serving
    (every source then reads as unavailable).
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if client is not None and auto_connect:
            await client.connect()
        try:
            yield
        finally:
            if client is not None:
                await client.disconnect()

    fastapi_app = FastAPI(title=PAGE_TITLE, lifespan=lifespan)
    fastapi_app.include_router(build_router(service))
    return fastapi_app


def mount_panel(
    fastapi_app: FastAPI, service: DelayService, client: ObsClient, refresh_s: float
) -> None:
    """Serve the NiceGUI live panel under PANEL_PATH."""
    register_panel(service, client.state, refresh_s)
    ui.run_with(
        fastapi_app,
        title=PAGE_TITLE,
        mount_path=PANEL_PATH,
        binding_refresh_interval=0.1,
        show_welcome_message=False,
    )


def build_parser(cfg: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OBS render delay control server")
    parser.add_argument("--host", default=cfg.SERVER_HOST, help="HTTP bind host")
    parser.add_argument(
        "--port", type=int, default=cfg.SERVER_PORT, help="HTTP bind port"
    )
    parser.add_argument(
        "--obs-url", help="obs-websocket URL, e.g. ws://studio.lan:4455"
    )
    parser.add_argument("--obs-host", default=cfg.OBS_HOST, help="OBS host")
    parser.add_argument(
        "--obs-port", type=int, default=cfg.OBS_PORT, help="obs-websocket port"
    )
    parser.add_argument(
        "--obs-password", default=cfg.OBS_PASSWORD, help="obs-websocket password"
    )
    parser.add_argument(
        "--filter-name", default=cfg.FILTER_NAME, help="Delay filter name"
    )
    parser.add_argument(
        "--sources",
        type=parse_sources,
        default=cfg.SOURCES,
        help="Comma separated OBS source names, in display order",
    )
    parser.add_argument(
        "--call-timeout",
        type=float,
        default=cfg.CALL_TIMEOUT_S,
        help="Seconds before an OBS request is abandoned",
    )
    parser.add_argument(
        "--panel-refresh",
        type=float,
        default=cfg.PANEL_REFRESH_S,
        help="Live panel refresh period in seconds (0 disables)",
    )
    parser.add_argument(
        "--no-panel", action="store_true", help=f"Do not serve {PANEL_PATH}"
    )
    parser.add_argument(
        "--no-connect",
        dest="auto_connect",
        action="store_false",
        default=cfg.AUTO_CONNECT,
        help="Skip the OBS connection at startup (overrides OBS_DELAY_AUTO_CONNECT)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set log level",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only log errors"
    )
    return parser


def apply_args(cfg: Config, args: argparse.Namespace) -> Config:
    host, port = args.obs_host, args.obs_port
    if args.obs_url:
        host, port = parse_obs_url(args.obs_url)
    return dataclasses.replace(
        cfg,
        OBS_HOST=host,
        OBS_PORT=port,
        OBS_PASSWORD=args.obs_password or None,
        FILTER_NAME=args.filter_name,
        SOURCES=list(args.sources),
        CALL_TIMEOUT_S=args.call_timeout,
        AUTO_CONNECT=args.auto_connect,
        SERVER_HOST=args.host,
        SERVER_PORT=args.port,
        PANEL_REFRESH_S=args.panel_refresh,
    )


def cli_log_level(args: argparse.Namespace) -> int:
    """Explicit --log-level > -v/-q > OBS_DELAY_LOG_LEVEL."""
    if args.log_level:
        return resolve_log_level(args.log_level)
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    if args.quiet:
        return logging.ERROR
    return LOG_LEVEL


def main(argv: list[str] | None = None) -> None:
    base = Config.from_env()
    args = build_parser(base).parse_args(argv)
    cfg = apply_args(base, args)

    level = cli_log_level(args)
    configure_logging(level, add_ui_handler=not args.no_panel)
    logging.info("HTTP bind: host=%s port=%s", cfg.SERVER_HOST, cfg.SERVER_PORT)
    logging.info(
        "OBS target: %s filter=%r sources=%s", cfg.obs_url, cfg.FILTER_NAME, cfg.SOURCES
    )

    client = ObsClient(
        cfg.OBS_HOST, cfg.OBS_PORT, cfg.OBS_PASSWORD, timeout=cfg.CALL_TIMEOUT_S
    )
    service = DelayService(client, cfg.SOURCES, cfg.FILTER_NAME)
    fastapi_app = create_app(service, client, auto_connect=cfg.AUTO_CONNECT)
    if not args.no_panel:
        mount_panel(fastapi_app, service, client, cfg.PANEL_REFRESH_S)

    uvicorn.run(
        fastapi_app,
        host=cfg.SERVER_HOST,
        port=cfg.SERVER_PORT,
        loop="uvloop" if sys.platform != "win32" else "asyncio",
        http="httptools",
        ws="wsproto",
        log_level=logging.getLevelName(level).lower(),
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()

"""CLI entry point for the metashelf server and maintenance commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import socket
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from metashelf.config.settings import Settings


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="metashelf",
        description="metashelf — Book and audiobook metadata search server",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"metashelf {_get_version()}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP server")
    _add_config_argument(serve)
    serve.add_argument("--host", type=str, default=None, help="Server bind address (overrides config)")
    serve.add_argument("--port", "-p", type=int, default=None, help="Server port (overrides config)")
    serve.add_argument("--workers", "-w", type=int, default=None, help="Number of worker processes")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    serve.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )

    providers = subparsers.add_parser("providers", help="Load provider plugins and print their configs")
    _add_config_argument(providers)

    clear = subparsers.add_parser("clear-cache", help="Delete cached search and lookup results")
    _add_config_argument(clear)
    clear.add_argument("--provider", type=str, default=None, help="Only clear entries of this provider id")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, (getattr(args, "log_level", None) or "info").upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings = _load_settings(args.config)

    if args.command == "serve":
        _serve(args, settings)
    elif args.command == "providers":
        asyncio.run(_print_providers(settings))
    elif args.command == "clear-cache":
        asyncio.run(_clear_cache(settings, args.provider))


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", "-c", type=str, default=None, help="Path to YAML configuration file")


def _load_settings(config: str | None) -> Settings:
    from metashelf.config.settings import Settings

    if not config:
        return Settings()

    config_path = Path(config)
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        sys.exit(1)
    # Picked up again by create_app() inside the uvicorn worker
    os.environ["METASHELF_CONFIG"] = str(config_path.resolve())
    return Settings.from_yaml(config_path)


def _serve(args: argparse.Namespace, settings: Settings) -> None:
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.workers:
        settings.server.workers = args.workers
    if args.log_level:
        settings.observability.log_level = args.log_level

    _check_port(settings.server.host, settings.server.port)

    import uvicorn

    uvicorn.run(
        "metashelf.api.app:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers if not args.reload else 1,
        reload=args.reload,
        log_level=settings.observability.log_level.lower(),
    )


async def _print_providers(settings: Settings) -> None:
    from metashelf.providers.base.registry import ProviderRegistry

    registry = ProviderRegistry(reject_duplicates=settings.providers.reject_duplicate_ids)
    report = registry.load_providers(settings.providers.directory, disabled=set(settings.providers.disabled))
    try:
        configs = [c.model_dump(by_alias=True, exclude_none=True) for c in registry.get_all_configs()]
        print(json.dumps({"providers": configs, "warnings": report.warnings}, indent=2, ensure_ascii=False))
    finally:
        await registry.aclose_all()


async def _clear_cache(settings: Settings, provider_id: str | None) -> None:
    from metashelf.cache.store import CacheStore

    store = CacheStore(settings.cache)
    await store.initialize()
    try:
        await store.clear(provider_id)
    finally:
        await store.shutdown()
    print(f"Cleared cache for {provider_id or 'all providers'}")


def _check_port(host: str, port: int) -> None:
    """Exit with a readable message if the port is already taken."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host if host != "0.0.0.0" else "127.0.0.1", port))
    except OSError:
        print(f"Error: Port {port} is already in use. Run 'lsof -i :{port}' to find the process.", file=sys.stderr)
        sys.exit(1)
    finally:
        sock.close()


def _get_version() -> str:
    """Get the package version."""
    from metashelf import __version__

    return __version__


if __name__ == "__main__":
    main()

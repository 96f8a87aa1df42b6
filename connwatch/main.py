"""Entry point for connwatch."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel

from connwatch.config import MonitorConfig, settings
from connwatch.monitor import ConnectivityMonitor, ConnectivityStatus

console = Console()

_STYLES = {
    ConnectivityStatus.ONLINE: "bold green",
    ConnectivityStatus.OFFLINE: "bold red",
    ConnectivityStatus.SLOW: "bold yellow",
    ConnectivityStatus.UNKNOWN: "dim",
}


def _config_from_args(args: argparse.Namespace) -> MonitorConfig:
    return settings.monitor_config(
        url=args.url,
        timeout=args.timeout,
        check_frequency=getattr(args, "interval", None),
        check_slow_connection=True if args.slow else None,
        max_retries=args.retries,
    )


def _render(status: ConnectivityStatus) -> str:
    return f"[{_STYLES[status]}]{status.value.upper()}[/{_STYLES[status]}]"


async def check_once(config: MonitorConfig) -> ConnectivityStatus:
    """Run a single probe through a short-lived monitor."""
    config = config.model_copy(update={"check_on_start": False})
    async with ConnectivityMonitor(config) as monitor:
        status = await monitor.check_now()
        result = monitor.last_result
    detail = f" ({result.message}, {result.latency_ms}ms)" if result else ""
    console.print(f"{config.url}: {_render(status)}{detail}")
    return status


async def watch(config: MonitorConfig) -> None:
    """Print status changes until interrupted."""
    console.print(Panel(f"Watching {config.url} every {config.check_frequency}s", style="bold blue"))
    async with ConnectivityMonitor(config) as monitor:
        previous: ConnectivityStatus | None = None
        async for status in monitor.status():
            if status == previous:
                continue
            previous = status
            console.print(f"[dim]{monitor.last_check or '-'}[/dim] {_render(status)}")


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting connwatch API server", style="bold green"))
    uvicorn.run(
        "connwatch.api.server:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def _add_probe_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--url", help="Endpoint to probe")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--slow", action="store_true", help="Report timeouts as 'slow'")
    parser.add_argument("--retries", type=int, help="Retries on timeout / connection failure")


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    parser = argparse.ArgumentParser(description="connwatch: HTTP reachability monitor")
    sub = parser.add_subparsers(dest="command")

    check_parser = sub.add_parser("check", help="Probe once; exit 0 when online")
    _add_probe_options(check_parser)

    watch_parser = sub.add_parser("watch", help="Print status changes until interrupted")
    _add_probe_options(watch_parser)
    watch_parser.add_argument("--interval", type=float, help="Seconds between checks")

    sub.add_parser("serve", help="Start the API server")

    args = parser.parse_args()

    if args.command == "check":
        status = asyncio.run(check_once(_config_from_args(args)))
        sys.exit(0 if status == ConnectivityStatus.ONLINE else 1)
    elif args.command == "watch":
        try:
            asyncio.run(watch(_config_from_args(args)))
        except KeyboardInterrupt:
            console.print("[dim]Stopped[/dim]")
    elif args.command == "serve":
        run_server()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

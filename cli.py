#!/usr/bin/env python3
"""
Command-line interface for the restaurant dashboard.

Installed as `restaurant-dashboard`, or run as `python cli.py`.

    stats <page>   Summary numbers for orders, reservations, customers,
                   notifications, loyalty or the dashboard home page
    dispatch       Push scheduled campaigns whose time has come
    test           Run pytest
    serve          Serve the API with uvicorn

Settings come from DASHBOARD_* environment variables (see restaurant/config.py).
"""

import argparse
import logging
import subprocess
import sys
from datetime import datetime
from typing import Optional

STATS_TARGETS = ["orders", "reservations", "customers", "notifications", "loyalty", "dashboard"]


def _build_clients():
    from dashboard.services import Clients
    from restaurant.config import Settings

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
        datefmt="%H:%M:%S",
    )
    return Clients(settings)


def _parse_now(value: Optional[str]) -> datetime:
    return datetime.fromisoformat(value) if value else datetime.now()


def run_stats(target: str, now: datetime) -> None:
    """Print stats for one page as JSON."""
    from dashboard.metrics import compute_dashboard_metrics

    clients = _build_clients()
    if target == "orders":
        result = clients.orders.stats(now)
    elif target == "reservations":
        result = clients.reservations.stats(now)
    elif target == "customers":
        result = clients.customers.stats(now)
    elif target == "notifications":
        result = clients.notifications.stats(now)
    elif target == "loyalty":
        result = clients.loyalty.stats(now)
    else:
        result = compute_dashboard_metrics(
            clients.orders.get_orders(),
            clients.reservations.get_reservations(),
            now,
            clients.settings.popular_items_limit,
            clients.settings.recent_activity_limit,
        )

    print(result.model_dump_json(indent=2))


def run_dispatch(now: datetime) -> None:
    """Send due scheduled notifications."""
    clients = _build_clients()
    sent = clients.notifications.dispatch_due(now)
    if not sent:
        print("No scheduled notifications due")
        return
    for notification in sent:
        print(
            f"{notification.id}: {notification.status} "
            f"({notification.delivered_count}/{notification.recipient_count} delivered)"
        )


def run_tests(pytest_args: list[str]) -> int:
    """Run pytest in this interpreter's environment and return its exit code."""
    return subprocess.call([sys.executable, "-m", "pytest", *pytest_args])


def run_server(host: str, port: int, reload: bool) -> None:
    """Serve the dashboard API with uvicorn."""
    import uvicorn
    from restaurant.config import Settings

    settings = Settings.from_env()
    print(f"Dashboard for {settings.restaurant_id} at http://{host}:{port} (docs at /docs)")
    uvicorn.run("api.main:app", host=host, port=port, reload=reload, log_level=settings.log_level.lower())


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Restaurant Dashboard CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s stats orders
  %(prog)s stats dashboard --now 2024-06-01T12:00:00
  %(prog)s dispatch
  %(prog)s test -k reservations
  %(prog)s serve --port 8080
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    stats_parser = subparsers.add_parser("stats", help="Print a page's summary numbers as JSON")
    stats_parser.add_argument("target", choices=STATS_TARGETS)
    stats_parser.add_argument("--now", help="ISO 8601 reference time (default: current time)")

    dispatch_parser = subparsers.add_parser("dispatch", help="Push scheduled campaigns that are due")
    dispatch_parser.add_argument("--now", help="ISO 8601 reference time (default: current time)")

    test_parser = subparsers.add_parser("test", help="Run pytest")
    test_parser.add_argument("pytest_args", nargs=argparse.REMAINDER, help="Passed through to pytest")

    serve_parser = subparsers.add_parser("serve", help="Serve the dashboard API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Restart on code changes")

    args = parser.parse_args()

    if args.command == "stats":
        run_stats(args.target, _parse_now(args.now))
    elif args.command == "dispatch":
        run_dispatch(_parse_now(args.now))
    elif args.command == "test":
        sys.exit(run_tests(args.pytest_args))
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()

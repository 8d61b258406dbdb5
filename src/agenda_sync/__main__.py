"""CLI entry point for Agenda Sync application."""

import argparse
import sys

# Initialize SSL truststore early, before any HTTPS connection
from .utils.ssl_utils import init_ssl

init_ssl()

from .config import config
from .service import create_service
from .utils.exceptions import CalendarSyncError
from .utils.logging import setup_logging


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Agenda Sync - Two-way synchronization with Google Calendar"
    )
    parser.add_argument(
        "--user",
        type=str,
        help="User id to operate on",
    )
    parser.add_argument(
        "--sync",
        action="store_true",
        help="Run one reconciliation pass",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show connection status",
    )
    parser.add_argument(
        "--disconnect",
        action="store_true",
        help="Forget the stored credential and unlink events",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the HTTP API",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Bind address for --serve",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for --serve",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    log_level = "DEBUG" if args.verbose else config.log_level
    logger = setup_logging(level=log_level, log_file=config.log_file)

    try:
        if args.serve:
            import uvicorn

            from .api.app import create_app

            uvicorn.run(create_app(config), host=args.host, port=args.port)
            return 0

        if not (args.sync or args.status or args.disconnect):
            parser.print_help()
            return 0

        if not args.user:
            logger.error("--user is required")
            return 1

        service = create_service(config)

        if args.status:
            status = service.status(args.user)
            if not status["connected"]:
                print("Not connected")
                return 0
            print(f"Connected as: {status['email'] or 'unknown'}")
            print(f"  Calendar: {status['calendar_id']}")
            print(f"  Sync enabled: {status['sync_enabled']}")
            print(f"  Last sync: {status['last_sync'] or 'never'}")
            return 0

        if args.disconnect:
            service.disconnect(args.user)
            print("Disconnected")
            return 0

        result = service.run_sync(args.user)
        print("\nSync Results:")
        print(f"  Imported: {result.imported}")
        print(f"  Exported: {result.exported}")
        print(f"  Conflicts: {result.conflicts}")
        if result.errors:
            print(f"\nErrors ({len(result.errors)}):")
            for err in result.errors:
                print(f"  - {err}")
            return 1
        return 0

    except CalendarSyncError as e:
        logger.error(f"Calendar sync error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

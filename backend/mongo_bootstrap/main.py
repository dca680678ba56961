#!/usr/bin/env python3
"""
MongoDB Bootstrap

Ensures the users, validated collections and indexes declared in a manifest
exist in MongoDB. Safe to run repeatedly: objects that already exist with a
compatible definition are reported as already-exists.

Usage:
    mongo-bootstrap [--manifest PATH] [--uri URI] [--production] [-v]

Environment Variables:
    MONGO_URI: MongoDB connection string
    MONGO_INITDB_ROOT_USERNAME / MONGO_INITDB_ROOT_PASSWORD: Admin credentials
    AI_MEMORY_DB_NAME: Database for the bundled AI memory manifest
    MANIFEST_PATH: JSON manifest replacing the bundled one
    PRODUCTION_MODE: Refuse the insecure default password (default: false)
    LOG_LEVEL: Logging level (default: INFO)

Exit codes:
    0  every object created or already present
    1  at least one conflict or failure
    2  invalid configuration, no connection, or the manifest could not be loaded
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from mongo_bootstrap.config import Settings, get_settings
from mongo_bootstrap.core.errors import BootstrapError
from mongo_bootstrap.core.secrets import PasswordResolver
from mongo_bootstrap.database.connections import connect
from mongo_bootstrap.database.registry import resolve_manifest
from mongo_bootstrap.models.specs import BootstrapManifest
from mongo_bootstrap.schemas.report import EXIT_FATAL, BootstrapReport
from mongo_bootstrap.services.bootstrap_service import BootstrapService

logger = logging.getLogger("mongo_bootstrap")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Command-line arguments. If None, sys.argv[1:] is used.

    Returns:
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Apply users, collections and indexes to MongoDB"
    )
    parser.add_argument(
        "--manifest", help="JSON manifest file (defaults to the bundled AI memory manifest)"
    )
    parser.add_argument("--uri", help="MongoDB connection string (overrides MONGO_URI)")
    parser.add_argument(
        "--production",
        action="store_true",
        help="Refuse the insecure default password",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    return parser.parse_args(args)


async def bootstrap(settings: Settings, manifest: BootstrapManifest) -> BootstrapReport:
    """
    Connect and apply every spec in the manifest.

    Raises:
        DatabaseConnectionError: If the initial connection fails
    """
    handle = await connect(settings)
    try:
        service = BootstrapService(
            handle,
            PasswordResolver.from_settings(settings),
            apply_timeout=settings.apply_timeout_seconds,
        )
        results = await service.run(manifest.specs())
    finally:
        handle.close()
    return BootstrapReport(results=results)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging("INFO")
        logger.error(f"Invalid configuration: {e}")
        return EXIT_FATAL

    updates = {}
    if args.uri:
        updates["mongo_uri"] = args.uri
    if args.production:
        updates["production_mode"] = True
    if args.verbose:
        updates["log_level"] = "DEBUG"
    if updates:
        settings = settings.model_copy(update=updates)

    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("MongoDB Bootstrap")
    if settings.production_mode:
        logger.info("Production mode: insecure default password refused")
    logger.info("=" * 60)

    try:
        manifest = resolve_manifest(settings, args.manifest)
        report = asyncio.run(bootstrap(settings, manifest))
    except BootstrapError as e:
        logger.error(f"Bootstrap aborted: {e}")
        return EXIT_FATAL

    for line in report.lines():
        print(line)
    return report.exit_code


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()

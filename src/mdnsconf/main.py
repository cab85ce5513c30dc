from __future__ import annotations

import argparse
import logging
from typing import List

from .announcer import announce_file
from .config.logging_config import init_logging
from .config.service_config import ConfigError, FileAccessError
from .config.settings import SettingsError, load_settings
from .engine import RecordTable
from .identity import detect_local_identity


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdnsconf",
        description="Build mDNS/DNS-SD records from service description files",
    )
    parser.add_argument(
        "service_files",
        nargs="*",
        metavar="SERVICE_FILE",
        help="Service description file(s); defaults to settings service_files",
    )
    parser.add_argument("--settings", default=None, help="Path to YAML settings")
    parser.add_argument("--hostname", default=None, help="Override local host name")
    parser.add_argument("--address", default=None, help="Override local IPv4 address")
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Reject malformed service file lines instead of skipping them",
    )
    parser.add_argument(
        "--format",
        choices=("zone", "wire"),
        default=None,
        help="Print records as zone text or as a hex-encoded mDNS response",
    )
    parser.add_argument("--log-level", default=None, help="debug, info, warn, error")
    return parser


def main(argv: List[str] | None = None) -> int:
    """
    Announce one or more service files into an in-memory record table and
    print the resulting records.

    Args:
        argv: Command-line arguments.

    Returns:
        0 on success, 1 when any service file could not be announced,
        2 for invalid settings or when no service file was given.

    Example use:
        CLI:
            mdnsconf --hostname myhost --address 192.0.2.10 http.service
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.settings)
    except SettingsError as exc:
        print(str(exc))
        return 2

    init_logging(settings.logging, level=args.log_level)
    logger = logging.getLogger("mdnsconf.main")
    if args.settings:
        logger.info("Loaded settings from %s", args.settings)

    hostname = args.hostname or settings.identity.hostname
    address = args.address or settings.identity.address
    try:
        identity = detect_local_identity(hostname=hostname, address=address)
    except ValueError as exc:
        logger.error("Invalid local address %r: %s", address, exc)
        return 2

    files = list(args.service_files) or list(settings.service_files)
    if not files:
        logger.error("No service files given")
        return 2

    strict = settings.strict if args.strict is None else args.strict
    output = args.format or settings.output

    table = RecordTable(identity)
    failed = 0
    for path in files:
        try:
            announce_file(table, path, identity, strict=strict)
        except FileAccessError as exc:
            logger.error("%s", exc)
            failed += 1
        except ConfigError as exc:
            logger.error("Not announcing %s: %s", path, exc)
            failed += 1

    if output == "wire":
        print(table.pack_response().hex())
    else:
        for line in table.to_zone():
            print(line)

    if failed:
        logger.warning("%d of %d service file(s) not announced", failed, len(files))
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

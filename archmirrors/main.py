#!/usr/bin/env python3

import sys
import os
import argparse
import logging
from typing import List, Optional

from .config.manager import ConfigManager, ToolConfig, Protocol, IPVersion
from .errors import MirrorListError, ConfigError, FetchError
from .fetcher.mirrorlist import MirrorListFetcher
from .storage.manager import StorageManager

def setup_logging(level: str = "INFO"):
    """Configure logging for the application"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Determine log file path
    if os.geteuid() == 0:
        log_file = "/var/log/arch-mirrorlist.log"
    else:
        log_file = os.path.expanduser("~/.local/log/arch-mirrorlist.log")
        # Ensure the log directory exists
        os.makedirs(os.path.dirname(log_file), exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )

def str_to_bool(value: str) -> bool:
    """Parse the value of a boolean flag given as -flag=value"""
    normalized = str(value).strip().lower()
    if normalized in ("1", "t", "true", "yes", "on"):
        return True
    if normalized in ("0", "f", "false", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")

def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser"""
    parser = argparse.ArgumentParser(
        description="Arch Linux Mirror List Fetcher",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -country DE                        # HTTPS, IPv4 mirrors in Germany
  %(prog)s -country DE -6 -out mirrorlist.de  # Include IPv6 mirrors
  %(prog)s -country FR -http -https=false     # Only plain HTTP mirrors
  %(prog)s -country US --timeout 30           # Give up after 30 seconds
        """
    )

    # Mirror selection, spelled like the original single-dash flags.
    # None means "not given" so the config file default applies.
    parser.add_argument(
        "-4", dest="ipv4", nargs="?", const=True, default=None, type=str_to_bool,
        help="Include IPv4 mirrors (default: true)"
    )
    parser.add_argument(
        "-6", dest="ipv6", nargs="?", const=True, default=None, type=str_to_bool,
        help="Include IPv6 mirrors (default: false)"
    )
    parser.add_argument(
        "-http", dest="http", nargs="?", const=True, default=None, type=str_to_bool,
        help="Include HTTP mirrors (default: false)"
    )
    parser.add_argument(
        "-https", dest="https", nargs="?", const=True, default=None, type=str_to_bool,
        help="Include HTTPS mirrors (default: true)"
    )
    parser.add_argument(
        "-country", dest="country", default=None,
        help="Mirror location"
    )
    parser.add_argument(
        "-out", dest="out", default=None,
        help="Output file (default: mirrorlist)"
    )

    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
        default=None
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level"
    )

    parser.add_argument(
        "--base-url",
        default=None,
        help="Mirror list endpoint"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the server (default: wait forever)"
    )

    parser.add_argument(
        "--allow-partial",
        action="store_true",
        default=None,
        help="Write the mirror list even if the download was cut short"
    )

    return parser

def _selected(flag: Optional[bool], fallback: bool) -> bool:
    return fallback if flag is None else flag

def build_tool_config(args, config_manager: ConfigManager) -> ToolConfig:
    """Merge command-line flags over the configuration file defaults"""
    defaults = config_manager.get_config()

    protocols: List[Protocol] = []
    if _selected(args.http, Protocol.HTTP in defaults.protocols):
        protocols.append(Protocol.HTTP)
    if _selected(args.https, Protocol.HTTPS in defaults.protocols):
        protocols.append(Protocol.HTTPS)

    ip_versions: List[IPVersion] = []
    if _selected(args.ipv4, IPVersion.IPV4 in defaults.ip_versions):
        ip_versions.append(IPVersion.IPV4)
    if _selected(args.ipv6, IPVersion.IPV6 in defaults.ip_versions):
        ip_versions.append(IPVersion.IPV6)

    return ToolConfig(
        base_url=args.base_url or defaults.base_url,
        protocols=protocols,
        ip_versions=ip_versions,
        country=defaults.country if args.country is None else args.country,
        output=defaults.output if args.out is None else args.out,
        timeout=defaults.timeout if args.timeout is None else args.timeout,
        log_level=args.log_level or defaults.log_level,
        allow_partial=defaults.allow_partial if args.allow_partial is None else args.allow_partial,
    )

def cmd_fetch(tool_config: ToolConfig, fetcher: MirrorListFetcher, storage_manager: StorageManager) -> int:
    """Fetch the mirror list and write it to the output file"""
    logger = logging.getLogger(__name__)

    try:
        fetch_config = tool_config.to_fetch_config()
        # Everything is checked before the first request goes out
        fetch_config.validate()
        if not tool_config.output:
            raise ConfigError("No output file specified!")
    except ConfigError as e:
        print(e)
        return 1

    try:
        result = fetcher.fetch(fetch_config)
        if not tool_config.allow_partial:
            result.raise_for_incomplete()
    except FetchError as e:
        print(f"Failed requesting the mirrorlist: {e}")
        return 1

    if not result.complete:
        logger.warning(f"Writing truncated mirror list ({len(result.lines)} lines)")
    if result.html_detected:
        logger.warning("The mirror list looks like an HTML page")

    try:
        storage_manager.write_mirrorlist(tool_config.output, result.lines)
    except MirrorListError as e:
        print(e)
        return 1

    return 0

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    config_manager = ConfigManager(args.config)
    try:
        config_manager.load_config()
    except ConfigError as e:
        print(e)
        return 1

    tool_config = build_tool_config(args, config_manager)

    # Setup logging
    setup_logging(tool_config.log_level)
    logger = logging.getLogger(__name__)
    logger.debug(f"Config file settings: {config_manager.describe()}")

    try:
        fetcher = MirrorListFetcher(
            base_url=tool_config.base_url,
            timeout=tool_config.timeout
        )
        storage_manager = StorageManager()

        return cmd_fetch(tool_config, fetcher, storage_manager)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if tool_config.log_level == "DEBUG":
            import traceback
            traceback.print_exc()
        return 1

if __name__ == "__main__":
    sys.exit(main())

# src/preload_hints/app.py
import argparse
import logging
import sys
from typing import List, Optional

from preload_hints.core.command_registry import CommandRegistry, register_all_commands, usage
from preload_hints.core.context.cli_context import CliContext
from preload_hints.core.managers.config_manager import config_manager
from preload_hints.core.utils.configure_logging import configure_logger

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="preload-hints", add_help=False)
    parser.add_argument("--log-level", help="Overrides debug.level from settings.json.")
    parser.add_argument("--set", action="append", default=[], metavar="KEY=VALUE",
                        help="Override a configuration value for this run.")
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("command", nargs="?")
    parser.add_argument("args", nargs=argparse.REMAINDER)
    return parser


def apply_overrides(pairs: List[str]) -> bool:
    """Applies KEY=VALUE pairs to the configuration. Returns False on a malformed pair."""
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            print(f"❌ Malformed --set value '{pair}', expected KEY=VALUE.")
            return False
        if not config_manager.set_nested(key.strip(), value):
            print(f"❌ Rejected --set value '{pair}'.")
            return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the preload-hints command line tool."""
    parsed = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    if not apply_overrides(parsed.set):
        return 1

    configure_logger(parsed.log_level or config_manager.get_nested("debug.level", "WARNING"))
    register_all_commands()

    if parsed.help or not parsed.command:
        print(usage())
        return 0 if parsed.help else 1

    handler = CommandRegistry.get(parsed.command)
    if handler is None:
        print(f"Unknown command: '{parsed.command}'.")
        print(usage())
        return 1

    logger.debug("Dispatching command '%s' with args %s", parsed.command, parsed.args)
    return handler(parsed.args, CliContext())


if __name__ == "__main__":
    sys.exit(main())

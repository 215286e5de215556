# src/preload_hints/core/handlers/config_handler.py
import json
import logging
from typing import List, Optional

from preload_hints.core.context.cli_context import CliContext

logger = logging.getLogger(__name__)

HELP_TEXT = """
  config list                Show the effective configuration as JSON.
  config get <key>           Show one value (e.g., preload.rel).
  config set <key> <value>   Set a value for this run (e.g., preload.rel prefetch).
  config reset               Reload the configuration from settings.json.
""".strip()


def handle_config(args: List[str], ctx: CliContext, _stdin: Optional[str] = None) -> int:
    """
    Handles the 'config' command. Values given with the global
    `--set key=value` flag are already applied when this runs.
    """
    if not args:
        print(HELP_TEXT)
        return 1

    command = args[0]

    if command == "list":
        print(json.dumps(ctx.config.get_all(), indent=2))
        return 0

    if command == "get":
        if len(args) < 2:
            print("Usage: config get <key>")
            return 1
        value = ctx.config.get_nested(args[1])
        if value is None:
            print(f"❌ Error: No config value for key '{args[1]}'.")
            return 1
        print(json.dumps(value, indent=2) if isinstance(value, (dict, list)) else value)
        return 0

    if command == "set":
        if len(args) < 3:
            print("Usage: config set <key> <value>")
            return 1
        key_path = args[1]
        value = " ".join(args[2:])
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        if ctx.config.set_nested(key_path, value):
            new_value = ctx.config.get_nested(key_path)
            print(f"✅ Config updated: {key_path} = {new_value} (type: {type(new_value).__name__})")
            return 0
        print(f"❌ Error: Failed to set config value for key '{key_path}'.")
        return 1

    if command == "reset":
        ctx.config.reset()
        print("✅ Configuration has been reset to the values from settings.json.")
        return 0

    print(f"Unknown command: 'config {command}'.")
    return 1

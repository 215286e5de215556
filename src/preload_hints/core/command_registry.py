# src/preload_hints/core/command_registry.py
import logging
from typing import Callable, Dict

from preload_hints.core.handlers import config_handler, inject_handler

logger = logging.getLogger(__name__)

# The central registries of CLI commands.
CommandRegistry: Dict[str, Callable[..., int]] = {}
COMMAND_HELP_TEXTS: Dict[str, str] = {}


def register_command(name: str, handler: Callable[..., int], help_text: str = "") -> None:
    """Adds a command and its handler function to the registry."""
    CommandRegistry[name] = handler
    COMMAND_HELP_TEXTS[name] = help_text
    logger.debug("Registered command '%s'", name)


def register_all_commands() -> None:
    """Registers every built-in command handler."""
    for name, module, handler in (
            ("inject", inject_handler, inject_handler.handle_inject),
            ("config", config_handler, config_handler.handle_config),
    ):
        if name not in CommandRegistry:
            register_command(name, handler, module.HELP_TEXT)
    logger.debug("Successfully registered %d handlers.", len(CommandRegistry))


def usage() -> str:
    lines = ["Usage: preload-hints [--log-level LEVEL] [--set key=value ...] <command> [args]", "", "Commands:"]
    lines.extend(COMMAND_HELP_TEXTS[name] for name in sorted(COMMAND_HELP_TEXTS))
    return "\n".join(lines)

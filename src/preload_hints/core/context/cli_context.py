# src/preload_hints/core/context/cli_context.py
from typing import Any, List, Optional

from preload_hints.core.managers.config_manager import config_manager


class CliContext:
    """State shared between CLI handlers during one invocation."""

    def __init__(self, show_progress: Optional[bool] = None):
        self.config = config_manager
        if show_progress is None:
            show_progress = bool(config_manager.get_nested("cli.show_progress", True))
        self.show_progress = show_progress
        # Per-document InjectionResults of the last 'inject' run
        self.last_results: List[Any] = []

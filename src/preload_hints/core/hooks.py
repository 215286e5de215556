# src/preload_hints/core/hooks.py
import logging
from typing import Any, Callable, List, Tuple

from preload_hints.model import Compilation, HtmlPluginData

logger = logging.getLogger(__name__)


class SyncHook:
    """
    An ordered list of named callbacks ("taps") invoked with the same arguments.
    """

    def __init__(self, name: str):
        self.name = name
        self._taps: List[Tuple[str, Callable[..., Any]]] = []

    def tap(self, plugin_name: str, fn: Callable[..., Any]) -> None:
        """Registers a callback under the given plugin name."""
        self._taps.append((plugin_name, fn))
        logger.debug("Plugin '%s' tapped hook '%s'", plugin_name, self.name)

    @property
    def taps(self) -> List[str]:
        return [plugin_name for plugin_name, _ in self._taps]

    def call(self, *args: Any) -> None:
        for _, fn in self._taps:
            fn(*args)


class SyncWaterfallHook(SyncHook):
    """A hook whose taps each receive the value returned by the previous tap."""

    def call(self, value: Any) -> Any:
        for plugin_name, fn in self._taps:
            result = fn(value)
            if result is not None:
                value = result
            else:
                logger.debug("Tap '%s' on '%s' returned nothing; keeping previous value.", plugin_name, self.name)
        return value


class CompilationRun:
    """
    One build's compilation as seen by plugins: the chunk graph plus the hooks
    fired while documents are generated for it.
    """

    def __init__(self, compilation: Compilation):
        self.compilation = compilation
        self.before_html_processing = SyncWaterfallHook("before_html_processing")
        # Per-document results appended by plugins, owned by this run only.
        self.results: List[Any] = []

    def process_html(self, data: HtmlPluginData) -> HtmlPluginData:
        """Runs an HTML document through every tap of before_html_processing."""
        return self.before_html_processing.call(data)


class Compiler:
    """Minimal build driver exposing a `compilation` hook to plugins."""

    def __init__(self):
        self.compilation_hook = SyncHook("compilation")

    def apply(self, *plugins: Any) -> "Compiler":
        for plugin in plugins:
            plugin.apply(self)
        return self

    def compile(self, compilation: Compilation) -> CompilationRun:
        run = CompilationRun(compilation)
        self.compilation_hook.call(run)
        return run

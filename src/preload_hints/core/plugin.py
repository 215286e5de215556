# src/preload_hints/core/plugin.py
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from preload_hints.core.chunk_selector import ChunkSelector, SelectionOutcome
from preload_hints.core.hint_renderer import HintRenderer, InsertionOutcome
from preload_hints.core.hooks import CompilationRun, Compiler
from preload_hints.core.reachability import ChunkGraph, filter_reachable
from preload_hints.model import Compilation, HintRecord, HtmlPluginData, PreloadOptions

logger = logging.getLogger(__name__)


@dataclass
class InjectionResult:
    """What a single pass did to one document."""
    output_name: str
    selection: SelectionOutcome
    insertion: InsertionOutcome
    candidates: int = 0
    reachable: int = 0
    hints: List[HintRecord] = field(default_factory=list)


def inject_hints(
        compilation: Compilation,
        data: HtmlPluginData,
        options: PreloadOptions,
        selector: Optional[ChunkSelector] = None,
) -> InjectionResult:
    """
    Runs selection, reachability filtering, rendering and the splice for one
    HTML document. `data.html` is replaced with the spliced document.
    """
    selector = selector or ChunkSelector()
    selection = selector.select(compilation.chunks, compilation.assets, options)

    if selection.bypasses_reachability:
        reachable = selection.chunks
    else:
        graph = ChunkGraph(compilation.chunks)
        reachable = filter_reachable(selection.chunks, data.root_hashes, graph)

    renderer = HintRenderer(options)
    rendered = renderer.render(reachable, compilation.public_path)
    spliced = renderer.splice(data.html, rendered.markup)
    data.html = spliced.html

    logger.info(
        "%s: %d candidate(s), %d reachable, %d hint(s) [%s, %s]",
        data.output_name, len(selection.chunks), len(reachable), len(rendered.records),
        selection.outcome.value, spliced.outcome.value,
    )
    return InjectionResult(
        output_name=data.output_name,
        selection=selection.outcome,
        insertion=spliced.outcome,
        candidates=len(selection.chunks),
        reachable=len(reachable),
        hints=rendered.records if spliced.outcome is not InsertionOutcome.NO_INSERTION_POINT else [],
    )


class PreloadPlugin:
    """
    Build plugin that adds <link rel="preload|prefetch"> hints to every HTML
    document generated for a compilation.
    """
    name = "PreloadPlugin"

    def __init__(self, options: Union[PreloadOptions, Dict[str, Any], None] = None):
        if isinstance(options, PreloadOptions):
            self.options = options
        else:
            self.options = PreloadOptions.from_config(options)
        self.selector = ChunkSelector()

    def apply(self, compiler: Compiler) -> None:
        compiler.compilation_hook.tap(self.name, self._on_compilation)

    def _on_compilation(self, run: CompilationRun) -> None:
        def before_html_processing(data: HtmlPluginData) -> HtmlPluginData:
            run.results.append(inject_hints(run.compilation, data, self.options, self.selector))
            return data

        run.before_html_processing.tap(self.name, before_html_processing)

# src/preload_hints/core/handlers/inject_handler.py
import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from tqdm.auto import tqdm

from preload_hints.core.context.cli_context import CliContext
from preload_hints.core.hooks import Compiler
from preload_hints.core.plugin import PreloadPlugin
from preload_hints.core.services.html_scan_service import HtmlScanService
from preload_hints.core.services.manifest_service import ManifestError, ManifestService
from preload_hints.core.services.report_service import ReportService
from preload_hints.core.utils.path_utils import PathUtils
from preload_hints.model import PreloadOptions

logger = logging.getLogger(__name__)

HELP_TEXT = """
  inject --manifest <stats.json> <html> [<html> ...] [options]
                      Adds <link rel="preload|prefetch"> hints for the build's
                      chunks to each HTML document. Documents are rewritten in
                      place unless --out-dir is given.
""".strip()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="preload-hints inject", description="Inject resource hints into HTML.")
    parser.add_argument("html", nargs="+", help="HTML documents to process.")
    parser.add_argument("--manifest", "-m", required=True, help="Build manifest (stats JSON).")
    parser.add_argument("--rel", choices=["preload", "prefetch"], help="Hint kind (default from settings).")
    include = parser.add_mutually_exclusive_group()
    include.add_argument("--include", help="asyncChunks, initial, all or all-assets.")
    include.add_argument("--chunk", action="append", dest="chunks", help="Only hint this named chunk (repeatable).")
    parser.add_argument("--as", dest="as_value", help="Fixed 'as' value for preload hints.")
    parser.add_argument("--whitelist", action="append", help="Regex a file must match (repeatable).")
    parser.add_argument("--blacklist", action="append", help="Regex that drops a file (repeatable).")
    parser.add_argument("--public-path", help="Override the manifest's publicPath.")
    parser.add_argument("--out-dir", "-o", help="Write processed documents to this directory, keeping their layout below the inputs' common directory.")
    parser.add_argument("--report", help="Export the injected hints to CSV or JSON.")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    return parser


def options_from_args(parsed: argparse.Namespace) -> Dict[str, Any]:
    """Translates CLI flags into preload option overrides."""
    overrides: Dict[str, Any] = {
        "rel": parsed.rel,
        "include": parsed.chunks or parsed.include,
        "as": parsed.as_value,
        "fileWhitelist": parsed.whitelist,
        "fileBlacklist": parsed.blacklist,
    }
    return {k: v for k, v in overrides.items() if v is not None}


def handle_inject(args: List[str], ctx: CliContext, _stdin: Optional[str] = None) -> int:
    """
    Runs the hint pipeline for every HTML document given on the command line.

    Returns:
        0 when every document was processed, 1 otherwise.
    """
    parser = _build_parser()
    try:
        parsed = parser.parse_args(args)
    except SystemExit:
        return 1

    try:
        options = PreloadOptions.from_config(options_from_args(parsed))
    except ValidationError as e:
        logger.error("Invalid preload options: %s", e)
        print(f"❌ Invalid options: {e}")
        return 1

    try:
        compilation = ManifestService().load(parsed.manifest, public_path=parsed.public_path)
    except ManifestError as e:
        logger.error("%s", e)
        print(f"❌ {e}")
        return 1

    run = Compiler().apply(PreloadPlugin(options)).compile(compilation)
    scanner = HtmlScanService(compilation)
    out_dir = Path(parsed.out_dir) if parsed.out_dir else None

    failures = 0
    unwritten = set()
    paths = [Path(p) for p in parsed.html]
    base = PathUtils.common_base(paths) if out_dir is not None else None
    show_progress = ctx.show_progress and not parsed.no_progress
    iterator = tqdm(paths, desc="Injecting hints", unit="doc") if show_progress else paths

    for html_path in iterator:
        try:
            html = html_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Cannot read %s: %s", html_path, e)
            print(f"❌ Cannot read {html_path}: {e}")
            failures += 1
            continue

        data = run.process_html(scanner.build_plugin_data(html, output_name=str(html_path)))
        try:
            target = PathUtils.resolve_output_path(html_path, out_dir, base)
            target.write_text(data.html, encoding="utf-8")
        except OSError as e:
            logger.error("Cannot write output for %s: %s", html_path, e)
            print(f"❌ Cannot write output for {html_path}: {e}")
            failures += 1
            unwritten.add(str(html_path))

    ctx.last_results = [r for r in run.results if r.output_name not in unwritten]
    for result in ctx.last_results:
        print(
            f"✅ {result.output_name}: {len(result.hints)} hint(s) "
            f"({result.reachable}/{result.candidates} chunks reachable, {result.insertion.value})"
        )

    if parsed.report:
        written = ReportService().export(ctx.last_results, parsed.report)
        print(f"Report written to {written}")

    return 1 if failures else 0

# src/preload_hints/core/hint_renderer.py
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from preload_hints.model import (
    AsPolicy,
    Chunk,
    ComputedAs,
    HintRecord,
    PreloadOptions,
    StaticAs,
    UnsetAs,
)

logger = logging.getLogger(__name__)

HEAD_CLOSE_TAG = "</head>"
BODY_OPEN_TAG = "<body>"

CSS_SUFFIX = re.compile(r"\.css$")
WOFF2_SUFFIX = re.compile(r"\.woff2$")


class InsertionOutcome(str, Enum):
    HEAD_CLOSE = "head_close"
    SYNTHESIZED_HEAD = "synthesized_head"
    NO_INSERTION_POINT = "no_insertion_point"
    NO_HINTS = "no_hints"


@dataclass
class RenderedHints:
    """Markup fragments in file order, plus the structured hint behind each one."""
    fragments: List[str] = field(default_factory=list)
    records: List[HintRecord] = field(default_factory=list)

    @property
    def markup(self) -> str:
        return "".join(self.fragments)


@dataclass
class SpliceResult:
    html: str
    outcome: InsertionOutcome


def collect_files(chunks: Iterable[Chunk]) -> List[str]:
    """Flattens the chunks' file lists, chunk order first, then file order. No dedup."""
    return [entry for chunk in chunks for entry in chunk.files]


def filter_files(files: Iterable[str], options: PreloadOptions) -> List[str]:
    """Applies the whitelist (if any), then the blacklist."""
    kept = []
    for entry in files:
        if options.file_whitelist is not None and not any(p.search(entry) for p in options.file_whitelist):
            continue
        if any(p.search(entry) for p in options.file_blacklist):
            continue
        kept.append(entry)
    return kept


def classify_as(href: str, policy: AsPolicy) -> str:
    """Resolves the `as` attribute for a preloaded href."""
    if isinstance(policy, UnsetAs):
        if CSS_SUFFIX.search(href):
            return "style"
        if WOFF2_SUFFIX.search(href):
            return "font"
        return "script"
    if isinstance(policy, StaticAs):
        return policy.value
    if isinstance(policy, ComputedAs):
        return policy.classifier(href)
    raise TypeError(f"Unknown as-policy variant: {type(policy).__name__}")


def format_hint(record: HintRecord) -> str:
    if record.as_value is None:
        return f'<link rel="{record.rel}" href="{record.href}">\n'
    cross_origin = 'crossorigin="crossorigin" ' if record.crossorigin else ""
    return f'<link rel="{record.rel}" as="{record.as_value}" {cross_origin}href="{record.href}">\n'


class HintRenderer:
    """
    Turns the files of the reachable chunks into <link> resource hints and
    splices them into an HTML document.
    """

    def __init__(self, options: PreloadOptions):
        self.options = options

    def render(self, chunks: Iterable[Chunk], public_path: Optional[str] = "") -> RenderedHints:
        """
        Builds one fragment per surviving file.

        Only rel="preload" gets an `as` attribute; fonts additionally get a
        crossorigin attribute. Any other rel is rendered as a plain rel/href pair.
        """
        prefix = public_path or ""
        rendered = RenderedHints()

        for entry in filter_files(collect_files(chunks), self.options):
            href = f"{prefix}{entry}"
            if self.options.rel == "preload":
                as_value = classify_as(href, self.options.as_policy)
                record = HintRecord(
                    rel=self.options.rel, href=href, as_value=as_value, crossorigin=as_value == "font"
                )
            else:
                record = HintRecord(rel=self.options.rel, href=href)
            rendered.records.append(record)
            rendered.fragments.append(format_hint(record))

        logger.debug("Rendered %d %s hint(s).", len(rendered.fragments), self.options.rel)
        return rendered

    @staticmethod
    def splice(html: str, markup: str) -> SpliceResult:
        """
        Inserts markup before the first </head>, or wraps it in a new <head>
        placed before the first <body>. Without either tag the document is
        returned unchanged.
        """
        if not markup:
            return SpliceResult(html, InsertionOutcome.NO_HINTS)

        if HEAD_CLOSE_TAG in html:
            return SpliceResult(
                html.replace(HEAD_CLOSE_TAG, markup + HEAD_CLOSE_TAG, 1), InsertionOutcome.HEAD_CLOSE
            )

        if BODY_OPEN_TAG in html:
            return SpliceResult(
                html.replace(BODY_OPEN_TAG, f"<head>{markup}</head>{BODY_OPEN_TAG}", 1),
                InsertionOutcome.SYNTHESIZED_HEAD,
            )

        logger.warning("No </head> or <body> found; document left unchanged.")
        return SpliceResult(html, InsertionOutcome.NO_INSERTION_POINT)

# src/preload_hints/core/chunk_selector.py
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Sequence

from preload_hints.model import Chunk, PreloadOptions

logger = logging.getLogger(__name__)

ALL_ASSETS_CHUNK_ID = "__all_assets__"


class SelectionOutcome(str, Enum):
    SELECTED = "selected"
    FALLBACK_UNFILTERED = "fallback_unfiltered"  # initial-load flag unavailable
    ALL_ASSETS = "all_assets"
    POLICY_MISS = "policy_miss"  # unrecognized include value


@dataclass
class ChunkSelection:
    chunks: List[Chunk]
    outcome: SelectionOutcome

    @property
    def bypasses_reachability(self) -> bool:
        return self.outcome is SelectionOutcome.ALL_ASSETS


class ChunkSelector:
    """
    Picks the candidate chunks for hinting according to the `include` policy.

    Modes: 'asyncChunks' (default), 'initial', 'all', 'all-assets', or an
    explicit list of chunk names. Any other value selects nothing.
    """

    def select(self, chunks: Sequence[Chunk], assets: Sequence[str], options: PreloadOptions) -> ChunkSelection:
        include: Any = options.include

        if include is None or include == "asyncChunks":
            return self._by_initial_flag(chunks, wanted=False)

        if include == "initial":
            return self._by_initial_flag(chunks, wanted=True)

        if include == "all":
            return ChunkSelection(list(chunks), SelectionOutcome.SELECTED)

        if include == "all-assets":
            pseudo = Chunk(id=ALL_ASSETS_CHUNK_ID, hash=ALL_ASSETS_CHUNK_ID, files=list(assets))
            return ChunkSelection([pseudo], SelectionOutcome.ALL_ASSETS)

        if isinstance(include, (list, tuple)):
            # Works only for named chunks
            named = [c for c in chunks if c.name and c.name in include]
            logger.debug("Explicit include list %s matched %d chunk(s).", list(include), len(named))
            return ChunkSelection(named, SelectionOutcome.SELECTED)

        logger.warning("Unrecognized include value %r; no chunks selected.", include)
        return ChunkSelection([], SelectionOutcome.POLICY_MISS)

    @staticmethod
    def _by_initial_flag(chunks: Sequence[Chunk], wanted: bool) -> ChunkSelection:
        if any(c.initial is None for c in chunks):
            logger.info("Initial-load flag unavailable on the chunk graph; using all chunks.")
            return ChunkSelection(list(chunks), SelectionOutcome.FALLBACK_UNFILTERED)
        return ChunkSelection([c for c in chunks if c.is_initial() is wanted], SelectionOutcome.SELECTED)

# tests/core/test_chunk_selector.py
import pytest

from preload_hints.core.chunk_selector import ALL_ASSETS_CHUNK_ID, ChunkSelector, SelectionOutcome
from preload_hints.model import Chunk, PreloadOptions, UnsupportedFeatureError


@pytest.fixture
def chunks():
    return [
        Chunk(id=0, hash="h0", name="app", initial=True, files=["app.js"]),
        Chunk(id=1, hash="h1", name="vendor", initial=True, files=["vendor.js"]),
        Chunk(id=2, hash="h2", initial=False, files=["2.chunk.js"], parents=[0]),
        Chunk(id=3, hash="h3", name="settings", initial=False, files=["settings.js"], parents=[0]),
    ]


@pytest.fixture
def selector():
    return ChunkSelector()


def ids(selection):
    return [c.id for c in selection.chunks]


def test_async_chunks_by_default(selector, chunks):
    selection = selector.select(chunks, [], PreloadOptions())
    assert ids(selection) == [2, 3]
    assert selection.outcome is SelectionOutcome.SELECTED


def test_missing_include_means_async_chunks(selector, chunks):
    selection = selector.select(chunks, [], PreloadOptions(include=None))
    assert ids(selection) == [2, 3]


def test_initial_chunks(selector, chunks):
    selection = selector.select(chunks, [], PreloadOptions(include="initial"))
    assert ids(selection) == [0, 1]


@pytest.mark.parametrize("include", ["asyncChunks", "initial"])
def test_unavailable_initial_flag_falls_back_to_all_chunks(selector, chunks, include):
    chunks.append(Chunk(id=4, hash="h4", files=["legacy.js"]))
    selection = selector.select(chunks, [], PreloadOptions(include=include))
    assert ids(selection) == [0, 1, 2, 3, 4]
    assert selection.outcome is SelectionOutcome.FALLBACK_UNFILTERED


def test_all_chunks(selector, chunks):
    selection = selector.select(chunks, [], PreloadOptions(include="all"))
    assert ids(selection) == [0, 1, 2, 3]


def test_all_assets_builds_single_pseudo_chunk(selector, chunks):
    assets = ["app.js", "app.js.map", "logo.png"]
    selection = selector.select(chunks, assets, PreloadOptions(include="all-assets"))
    assert len(selection.chunks) == 1
    assert selection.chunks[0].id == ALL_ASSETS_CHUNK_ID
    assert selection.chunks[0].files == assets
    assert selection.bypasses_reachability


def test_explicit_name_list(selector, chunks):
    selection = selector.select(chunks, [], PreloadOptions(include=["vendor"]))
    assert ids(selection) == [1]
    assert not selection.bypasses_reachability


def test_explicit_name_list_skips_unnamed_chunks(selector, chunks):
    selection = selector.select(chunks, [], PreloadOptions(include=["vendor", "settings", ""]))
    assert ids(selection) == [1, 3]


def test_unrecognized_include_selects_nothing(selector, chunks):
    selection = selector.select(chunks, [], PreloadOptions(include="everything"))
    assert selection.chunks == []
    assert selection.outcome is SelectionOutcome.POLICY_MISS


def test_selector_does_not_mutate_input(selector, chunks):
    before = [c.model_dump() for c in chunks]
    selector.select(chunks, [], PreloadOptions(include="all"))
    assert [c.model_dump() for c in chunks] == before


def test_is_initial_without_flag_raises():
    with pytest.raises(UnsupportedFeatureError):
        Chunk(id=9, hash="h9").is_initial()
    assert Chunk(id=9, hash="h9", initial=False).is_initial() is False

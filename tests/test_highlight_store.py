"""
Tests for utils/highlight_store.py.

Covers the loaded-color cache, display and uncached fetches, text
enrichment, batched best-effort deletes and the verse highlight writes.
"""

import pytest

from config import Config
from tests.conftest import BLUE, GREEN, RED, USER_ID
from utils.errors import NotFoundError, PersistenceError
from utils.highlight_store import BulkDeleteResult, LoadedColorCache


class TestLoadedColorCache:
    """Tests for LoadedColorCache."""

    def test_has_requires_every_color(self):
        cache = LoadedColorCache()
        cache.mark_loaded([RED])

        assert cache.has([RED])
        assert not cache.has([RED, BLUE])
        assert cache.has([])

    def test_invalidate_selected_colors(self):
        cache = LoadedColorCache()
        cache.mark_loaded([RED, BLUE])

        cache.invalidate([RED])

        assert not cache.has([RED])
        assert cache.has([BLUE])

    def test_invalidate_everything(self):
        cache = LoadedColorCache()
        cache.mark_loaded([RED, BLUE])

        cache.invalidate()

        assert not cache.has([BLUE])


class TestFetching:
    """Tests for fetch_highlights_for_colors and load_for_display."""

    @pytest.mark.asyncio
    async def test_fetch_returns_only_requested_colors(self, session, seed):
        red_id = seed.highlight(RED)
        seed.highlight(GREEN)

        highlights = await session.highlights.fetch_highlights_for_colors([RED])

        assert [h.id for h in highlights] == [red_id]
        assert highlights[0].color == RED

    @pytest.mark.asyncio
    async def test_fetch_scopes_to_user(self, session, seed, store):
        seed.highlight(RED)
        store.seed("verse_highlights", {
            "user_id": "someone-else", "book_id": 1, "chapter": 1, "verse": 1,
            "version": "KJV", "color": RED, "label": None,
        })

        highlights = await session.highlights.fetch_highlights_for_colors([RED])

        assert len(highlights) == 1

    @pytest.mark.asyncio
    async def test_fetch_with_no_colors_skips_store(self, session, store):
        assert await session.highlights.fetch_highlights_for_colors([]) == []
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_display_loads_each_color_once(self, session, seed, store):
        seed.highlight(RED)
        seed.highlight(BLUE)

        await session.highlights.load_for_display([RED])
        await session.highlights.load_for_display([RED])
        highlights = await session.highlights.load_for_display([RED, BLUE])

        selects = store.calls_for("select", "verse_highlights")
        assert [c[2]["in_filters"]["color"] for c in selects] == [[RED], [BLUE]]
        assert {h.color for h in highlights} == {RED, BLUE}
        assert session.cache.has([RED, BLUE])

    @pytest.mark.asyncio
    async def test_uncached_fetch_ignores_cache(self, session, seed, store):
        seed.highlight(RED)
        await session.highlights.load_for_display([RED])

        await session.highlights.fetch_highlights_for_colors([RED])

        assert len(store.calls_for("select", "verse_highlights")) == 2

    @pytest.mark.asyncio
    async def test_invalidated_color_is_refetched(self, session, seed):
        seed.highlight(RED)
        await session.highlights.load_for_display([RED])
        seed.highlight(RED)

        assert len(await session.highlights.load_for_display([RED])) == 1
        session.cache.invalidate([RED])
        assert len(await session.highlights.load_for_display([RED])) == 2


class TestRowCap:
    """Reads past the server-side cap on rows per response."""

    @pytest.fixture(autouse=True)
    def capped(self, store, monkeypatch):
        monkeypatch.setattr(Config, "SELECT_PAGE_SIZE", 2)
        store.max_rows = 2

    @pytest.mark.asyncio
    async def test_fetch_reads_every_page(self, session, seed, store):
        ids = [seed.highlight(RED) for _ in range(5)]
        seed.highlight(GREEN)

        highlights = await session.highlights.fetch_highlights_for_colors([RED])

        assert [h.id for h in highlights] == ids
        offsets = [c[2]["offset"] for c in store.calls_for("select", "verse_highlights")]
        assert offsets == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_exact_multiple_of_page_size(self, session, seed, store):
        ids = [seed.highlight(RED) for _ in range(4)]

        highlights = await session.highlights.fetch_highlights_for_colors([RED])

        assert [h.id for h in highlights] == ids
        assert len(store.calls_for("select", "verse_highlights")) == 3

    @pytest.mark.asyncio
    async def test_highlighted_colors_sees_later_pages(self, session, seed):
        seed.highlight(RED)
        seed.highlight(RED)
        seed.highlight(RED)
        seed.highlight(BLUE)

        assert await session.highlights.highlighted_colors() == [BLUE, RED]


class TestEnrichWithText:
    """Tests for enrich_with_text."""

    @pytest.mark.asyncio
    async def test_returns_copies_with_text(self, session, seed):
        seed.highlight(BLUE, text="Now faith is the substance of things hoped for")
        highlights = await session.highlights.load_for_display([BLUE])

        enriched = await session.highlights.enrich_with_text(highlights)

        assert enriched[0].text.startswith("Now faith")
        assert highlights[0].text is None
        stored = await session.highlights.load_for_display([BLUE])
        assert stored[0].text is None

    @pytest.mark.asyncio
    async def test_merge_keeps_text_for_session(self, session, seed):
        seed.highlight(BLUE, text="Rejoice in hope")
        highlights = await session.highlights.load_for_display([BLUE])

        session.highlights.merge(await session.highlights.enrich_with_text(highlights))

        assert (await session.highlights.load_for_display([BLUE]))[0].text == "Rejoice in hope"

    @pytest.mark.asyncio
    async def test_same_verse_looked_up_once(self, session, seed, lookup):
        """Distinct highlights on the same verse share one lookup."""
        seed.highlight(RED, text="Jesus wept", verse=35, chapter=11)
        highlights = await session.highlights.fetch_highlights_for_colors([RED])

        await session.highlights.enrich_with_text(highlights + highlights)

        assert lookup.calls == [(43, 11, 35, "KJV")]

    @pytest.mark.asyncio
    async def test_existing_text_is_not_fetched(self, session, seed, lookup):
        seed.highlight(RED, text="Jesus wept")
        highlights = await session.highlights.fetch_highlights_for_colors([RED])
        highlights[0].text = "already here"

        enriched = await session.highlights.enrich_with_text(highlights)

        assert enriched[0].text == "already here"
        assert lookup.calls == []


class TestBulkDelete:
    """Tests for bulk_delete."""

    @pytest.mark.asyncio
    async def test_deletes_in_batches(self, session, seed, store):
        ids = [seed.highlight(RED) for _ in range(5)]

        result = await session.highlights.bulk_delete(ids)

        assert result == BulkDeleteResult(deleted_ids=ids, failed_ids=[])
        assert result.deleted_count == 5
        assert len(store.calls_for("delete", "verse_highlights")) == 3
        assert seed.highlight_ids() == []

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_undo_others(self, session, seed, store):
        ids = [seed.highlight(RED) for _ in range(5)]
        store.fail_when("delete", lambda table, kw: ids[2] in kw["in_filters"]["id"])

        result = await session.highlights.bulk_delete(ids)

        assert result.deleted_ids == ids[:2] + ids[4:]
        assert result.failed_ids == ids[2:4]
        assert not result.complete
        assert seed.highlight_ids() == ids[2:4]

    @pytest.mark.asyncio
    async def test_duplicate_ids_deleted_once(self, session, seed):
        hid = seed.highlight(RED)

        result = await session.highlights.bulk_delete([hid, hid])

        assert result.deleted_ids == [hid]


class TestVerseHighlights:
    """Tests for saving, removing and listing verse highlights."""

    @pytest.mark.asyncio
    async def test_save_replaces_highlight_in_any_version(self, session, seed, store):
        seed.highlight(RED, book_id=19, chapter=23, verse=1, version="NKJV")

        highlight = await session.highlights.save_highlight(19, 23, 1, "KJV", "#00ff00", label=" Comfort ")

        rows = store.tables["verse_highlights"]
        assert len(rows) == 1
        assert rows[0]["color"] == GREEN
        assert rows[0]["version"] == "KJV"
        assert highlight.label == "Comfort"
        assert highlight.color == GREEN

    @pytest.mark.asyncio
    async def test_save_invalidates_loaded_colors(self, session, seed):
        seed.highlight(RED, book_id=19, chapter=23, verse=1)
        await session.highlights.load_for_display([RED, GREEN])

        await session.highlights.save_highlight(19, 23, 1, "KJV", GREEN)

        assert not session.cache.has([RED])
        assert not session.cache.has([GREEN])
        assert await session.highlights.load_for_display([RED]) == []

    @pytest.mark.asyncio
    async def test_save_rejects_unknown_color(self, session, store):
        with pytest.raises(NotFoundError):
            await session.highlights.save_highlight(1, 1, 1, "KJV", "#abcdef")
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_save_surfaces_store_failure(self, session, store):
        store.fail_when("insert")

        with pytest.raises(PersistenceError):
            await session.highlights.save_highlight(1, 1, 1, "KJV", RED)

    @pytest.mark.asyncio
    async def test_remove_highlight(self, session, seed):
        seed.highlight(RED, book_id=1, chapter=1, verse=1, version="KJV")
        seed.highlight(RED, book_id=1, chapter=1, verse=2)

        assert await session.highlights.remove_highlight(1, 1, 1) == 1
        assert len(seed.highlight_ids()) == 1

    @pytest.mark.asyncio
    async def test_remove_missing_highlight(self, session):
        with pytest.raises(NotFoundError):
            await session.highlights.remove_highlight(1, 1, 1)

    @pytest.mark.asyncio
    async def test_chapter_highlights_map(self, session, seed):
        seed.highlight(RED, book_id=1, chapter=1, verse=1)
        seed.highlight(BLUE, book_id=1, chapter=1, verse=3, version="ASV")
        seed.highlight(GREEN, book_id=1, chapter=2, verse=1)

        assert await session.highlights.chapter_highlights(1, 1) == {1: RED, 3: BLUE}

    @pytest.mark.asyncio
    async def test_all_highlights_newest_first(self, session, seed):
        first = seed.highlight(RED)
        second = seed.highlight(BLUE)

        highlights = await session.highlights.all_highlights()

        assert [h.id for h in highlights] == [second, first]

    @pytest.mark.asyncio
    async def test_highlighted_colors(self, session, seed, store):
        seed.highlight(RED)
        seed.highlight(RED)
        seed.highlight(BLUE)

        assert await session.highlights.highlighted_colors() == [BLUE, RED]
        assert store.calls_for("select")[0][2]["filters"] == {"user_id": USER_ID}

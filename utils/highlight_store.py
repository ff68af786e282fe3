# utils/highlight_store.py
from dataclasses import dataclass, field, replace
import asyncio
import logging

from config import Config
from database import select_all
from models import HIGHLIGHT_COLORS, Highlight, find_color
from utils.errors import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class LoadedColorCache:
    """Colors whose highlights were already fetched for display this session."""

    def __init__(self):
        self._colors = set()

    def has(self, colors):
        return all(color in self._colors for color in colors)

    def mark_loaded(self, colors):
        self._colors.update(colors)

    def invalidate(self, colors=None):
        if colors is None:
            self._colors.clear()
        else:
            self._colors.difference_update(colors)


@dataclass
class BulkDeleteResult:
    deleted_ids: list = field(default_factory=list)
    failed_ids: list = field(default_factory=list)

    @property
    def deleted_count(self):
        return len(self.deleted_ids)

    @property
    def complete(self):
        return not self.failed_ids


class HighlightStore:
    """Highlight records of one user plus verse text enrichment.

    Display reads go through ``load_for_display`` and the session cache, so a
    color is fetched at most once until it is invalidated. Destructive paths
    use ``fetch_highlights_for_colors`` directly and always hit the store.
    """

    def __init__(self, store, user_id, verse_lookup, cache=None, palette=HIGHLIGHT_COLORS,
                 table=None, batch_size=None):
        self.store = store
        self.user_id = user_id
        self.verse_lookup = verse_lookup
        self.cache = cache if cache is not None else LoadedColorCache()
        self.palette = tuple(palette)
        self.table = table or Config.HIGHLIGHTS_TABLE
        self.batch_size = batch_size or Config.DELETE_BATCH_SIZE
        self._records = {}

    async def fetch_highlights_for_colors(self, colors):
        colors = list(dict.fromkeys(colors))
        if not colors:
            return []
        rows = await select_all(
            self.store,
            self.table,
            order_by='id',
            filters={'user_id': self.user_id},
            in_filters={'color': colors},
        )
        wanted = set(colors)
        return [Highlight.from_row(row) for row in rows if row['color'] in wanted]

    async def load_for_display(self, colors):
        colors = list(dict.fromkeys(colors))
        missing = [color for color in colors if not self.cache.has([color])]
        if missing:
            fetched = await self.fetch_highlights_for_colors(missing)
            stale = [hid for hid, h in self._records.items() if h.color in missing]
            for hid in stale:
                del self._records[hid]
            for highlight in fetched:
                self._records[highlight.id] = highlight
            self.cache.mark_loaded(missing)
            logger.debug(f"Loaded {len(fetched)} highlights for colors {missing}")

        wanted = set(colors)
        return [replace(h) for h in self._records.values() if h.color in wanted]

    async def enrich_with_text(self, highlights):
        """Return copies of ``highlights`` with verse text filled in.

        Each distinct verse is looked up once. The store's own records are
        left alone; use ``merge`` to keep the fetched text for the session.
        """
        keys = list(dict.fromkeys(h.verse_key for h in highlights if h.text is None))
        texts = {}
        if keys:
            results = await asyncio.gather(
                *(self.verse_lookup.get_verse_text(*key) for key in keys)
            )
            texts = dict(zip(keys, results))

        return [
            replace(h, text=h.text if h.text is not None else texts.get(h.verse_key))
            for h in highlights
        ]

    def merge(self, highlights):
        for highlight in highlights:
            if highlight.id in self._records:
                self._records[highlight.id] = replace(highlight)

    async def bulk_delete(self, ids):
        """Delete ids in batches, best effort.

        A failed batch does not undo the batches before it; the result lists
        which ids were confirmed deleted and which were not.
        """
        ids = list(dict.fromkeys(ids))
        result = BulkDeleteResult()
        for start in range(0, len(ids), self.batch_size):
            batch = ids[start:start + self.batch_size]
            try:
                await self.store.delete(
                    self.table,
                    filters={'user_id': self.user_id},
                    in_filters={'id': batch},
                )
            except PersistenceError as e:
                logger.error(f"Failed to delete {len(batch)} highlights: {str(e)}")
                result.failed_ids.extend(batch)
                continue
            result.deleted_ids.extend(batch)
            for hid in batch:
                self._records.pop(hid, None)

        logger.info(f"Bulk delete removed {result.deleted_count} of {len(ids)} highlights")
        return result

    async def highlighted_colors(self):
        rows = await select_all(
            self.store, self.table, order_by='id', filters={'user_id': self.user_id}, columns='color'
        )
        return sorted({row['color'] for row in rows})

    async def chapter_highlights(self, book_id, chapter):
        """Highlights of a chapter as a verse -> color map.

        Highlights apply to every Bible version, so the version is not part
        of the query.
        """
        rows = await self.store.select(
            self.table,
            filters={'user_id': self.user_id, 'book_id': book_id, 'chapter': chapter},
        )
        return {row['verse']: row['color'] for row in rows}

    async def all_highlights(self):
        rows = await self.store.select(
            self.table,
            filters={'user_id': self.user_id},
            order_by='created_at',
            desc=True,
        )
        return [Highlight.from_row(row) for row in rows]

    async def save_highlight(self, book_id, chapter, verse, version, color, label=None):
        """Highlight a verse, replacing its previous highlight in any version."""
        entry = find_color(self.palette, color)
        if entry is None:
            raise NotFoundError(f"Unknown highlight color: {color}")
        label = label.strip() if label else None

        verse_filter = {'user_id': self.user_id, 'book_id': book_id, 'chapter': chapter, 'verse': verse}
        removed = await self.store.delete(self.table, filters=verse_filter)
        rows = await self.store.insert(self.table, [{
            **verse_filter,
            'version': version,
            'color': entry.hex,
            'label': label or None,
        }])
        if not rows:
            raise NotFoundError(f"Highlight for {book_id} {chapter}:{verse} was not returned by the store")

        self._forget(removed)
        self.cache.invalidate([entry.hex])
        highlight = Highlight.from_row(rows[0])
        logger.info(f"Highlight saved for {book_id} {chapter}:{verse} ({entry.hex})")
        return highlight

    async def remove_highlight(self, book_id, chapter, verse):
        removed = await self.store.delete(
            self.table,
            filters={'user_id': self.user_id, 'book_id': book_id, 'chapter': chapter, 'verse': verse},
        )
        if not removed:
            raise NotFoundError(f"No highlight on {book_id} {chapter}:{verse}")
        self._forget(removed)
        return len(removed)

    def _forget(self, rows):
        colors = set()
        for row in rows:
            self._records.pop(row.get('id'), None)
            if row.get('color'):
                colors.add(row['color'])
        if colors:
            self.cache.invalidate(colors)

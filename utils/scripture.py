# utils/scripture.py
import logging

from config import Config

logger = logging.getLogger(__name__)


class SupabaseVerseLookup:
    """Fetches the text of single verses from the verses table."""

    def __init__(self, store, table=None):
        self.store = store
        self.table = table or Config.VERSES_TABLE

    async def get_verse_text(self, book_id, chapter, verse, version):
        rows = await self.store.select(
            self.table,
            filters={'book_id': book_id, 'chapter': chapter, 'verse': verse, 'version': version},
            columns='text',
        )
        if not rows:
            logger.warning(f"No text for {book_id} {chapter}:{verse} ({version})")
            return None
        return rows[0].get('text')

# utils/notes.py
from datetime import datetime, timezone
import logging

from config import Config
from models import Note
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class NoteStore:
    """Free-text notes of one user, one per verse and Bible version."""

    def __init__(self, store, user_id, table=None):
        self.store = store
        self.user_id = user_id
        self.table = table or Config.NOTES_TABLE

    def _verse_filter(self, book_id, chapter, verse, version):
        return {
            'user_id': self.user_id,
            'book_id': book_id,
            'chapter': chapter,
            'verse': verse,
            'version': version,
        }

    async def get_note(self, book_id, chapter, verse, version):
        rows = await self.store.select(
            self.table, filters=self._verse_filter(book_id, chapter, verse, version), limit=1
        )
        return Note.from_row(rows[0]) if rows else None

    async def save_note(self, book_id, chapter, verse, version, text):
        """Create or replace the note on a verse."""
        text = (text or '').strip()
        if not text:
            raise ValidationError("Note text must not be empty")

        rows = await self.store.upsert(
            self.table,
            {
                **self._verse_filter(book_id, chapter, verse, version),
                'note_text': text,
                'updated_at': datetime.now(timezone.utc).isoformat(),
            },
            on_conflict='user_id,book_id,chapter,verse,version',
        )
        if not rows:
            raise NotFoundError(f"Note for {book_id} {chapter}:{verse} was not returned by the store")
        logger.info(f"Note saved for {book_id} {chapter}:{verse} ({version})")
        return Note.from_row(rows[0])

    async def delete_note(self, note_id):
        removed = await self.store.delete(self.table, filters={'user_id': self.user_id, 'id': note_id})
        if not removed:
            raise NotFoundError(f"Note {note_id} not found")
        logger.info(f"Note {note_id} deleted")

    async def all_notes(self):
        """Every note of the user, most recently edited first."""
        rows = await self.store.select(
            self.table, filters={'user_id': self.user_id}, order_by='updated_at', desc=True
        )
        return [Note.from_row(row) for row in rows]

# utils/session.py
from collections import OrderedDict
import logging
import threading

from config import Config
from database import SupabaseRecordStore
from models import HIGHLIGHT_COLORS
from utils.categories import CategoryRegistry
from utils.deletion import CategoryDeletionEngine
from utils.highlight_store import HighlightStore, LoadedColorCache
from utils.membership import MembershipResolver
from utils.notes import NoteStore
from utils.scripture import SupabaseVerseLookup

logger = logging.getLogger(__name__)


class HighlightSession:
    """The highlight and note components of one user. The highlight parts
    share one loaded-color cache."""

    def __init__(self, user_id, store, verse_lookup=None, palette=HIGHLIGHT_COLORS, batch_size=None):
        self.user_id = user_id
        self.cache = LoadedColorCache()
        self.highlights = HighlightStore(
            store,
            user_id,
            verse_lookup or SupabaseVerseLookup(store),
            cache=self.cache,
            palette=palette,
            batch_size=batch_size,
        )
        self.categories = CategoryRegistry(store, user_id, self.highlights, palette=palette)
        self.membership = MembershipResolver(self.categories, self.highlights)
        self.deletion = CategoryDeletionEngine(self.categories, self.highlights, cache=self.cache)
        self.notes = NoteStore(store, user_id)


_sessions = OrderedDict()
_sessions_lock = threading.Lock()

def get_session(user_id):
    """Get the session for a user, creating it on first use.

    Sessions are kept in least recently used order and the oldest ones are
    dropped once there are more than Config.MAX_SESSIONS.
    """
    with _sessions_lock:
        session = _sessions.get(user_id)
        if session is None:
            logger.info(f"Starting highlight session for user {user_id}")
            session = HighlightSession(user_id, SupabaseRecordStore())
            _sessions[user_id] = session
            _evict_idle_sessions(keep=user_id)
        else:
            _sessions.move_to_end(user_id)
    return session

def _evict_idle_sessions(keep):
    # Caller holds _sessions_lock. A session with a deletion running is kept
    # so a second session for the same user cannot start another one.
    excess = len(_sessions) - Config.MAX_SESSIONS
    for user_id in list(_sessions):
        if excess <= 0:
            break
        if user_id == keep or _sessions[user_id].deletion.in_flight:
            continue
        del _sessions[user_id]
        excess -= 1
        logger.debug(f"Evicted highlight session for user {user_id}")

def clear_sessions():
    with _sessions_lock:
        _sessions.clear()

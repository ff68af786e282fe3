"""
Pytest fixtures for highlight tests.

Provides:
- An in-memory record store with the same async surface as SupabaseRecordStore
- A verse text lookup that counts its calls
- A highlight session wired to both, using a small test palette
"""

from collections import defaultdict

import pytest

from models import HighlightColor
from utils.errors import PersistenceError
from utils.session import HighlightSession

USER_ID = "11111111-2222-3333-4444-555555555555"

RED = "#FF0000"
GREEN = "#00FF00"
BLUE = "#0000FF"
GOLD = "#FFD700"

TEST_PALETTE = (
    HighlightColor(RED, "red"),
    HighlightColor(GREEN, "green"),
    HighlightColor(BLUE, "blue"),
    HighlightColor(GOLD, "gold"),
)


def _matches(row, filters, in_filters):
    for column, value in (filters or {}).items():
        if row.get(column) != value:
            return False
    for column, values in (in_filters or {}).items():
        if row.get(column) not in values:
            return False
    return True


class FakeRecordStore:
    """In-memory stand-in for the Supabase tables."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.calls = []
        self.failures = []
        self._next_id = 1
        self._clock = 0
        # Server-side cap on rows per select response, like PostgREST max-rows
        self.max_rows = None

    def fail_when(self, operation, predicate=None):
        """Make matching calls raise PersistenceError.

        ``predicate`` receives (table, kwargs) and decides per call.
        """
        self.failures.append((operation, predicate))

    def _check(self, operation, table, **kwargs):
        self.calls.append((operation, table, kwargs))
        for failing_operation, predicate in self.failures:
            if failing_operation == operation and (predicate is None or predicate(table, kwargs)):
                raise PersistenceError(f"{operation} on {table} failed", operation=operation)

    def calls_for(self, operation, table=None):
        return [c for c in self.calls if c[0] == operation and (table is None or c[1] == table)]

    def seed(self, table, row):
        row = dict(row)
        if "id" not in row:
            row["id"] = f"h{self._next_id:04d}"
            self._next_id += 1
        self._clock += 1
        row.setdefault("created_at", self._clock)
        self.tables[table].append(row)
        return row

    async def select(self, table, filters=None, in_filters=None, columns="*", order_by=None, desc=False,
                     limit=None, offset=None):
        self._check("select", table, filters=filters, in_filters=in_filters, columns=columns, offset=offset)
        rows = [dict(r) for r in self.tables[table] if _matches(r, filters, in_filters)]
        if order_by:
            rows.sort(key=lambda r: r.get(order_by), reverse=desc)
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        if offset:
            rows = rows[offset:]
        if limit:
            rows = rows[:limit]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        return rows

    async def insert(self, table, rows):
        self._check("insert", table, rows=rows)
        return [dict(self.seed(table, row)) for row in rows]

    async def upsert(self, table, row, on_conflict):
        self._check("upsert", table, row=row, on_conflict=on_conflict)
        keys = {k: row[k] for k in on_conflict.split(",")}
        for existing in self.tables[table]:
            if _matches(existing, keys, None):
                existing.update(row)
                return [dict(existing)]
        return [dict(self.seed(table, row))]

    async def delete(self, table, filters=None, in_filters=None):
        self._check("delete", table, filters=filters, in_filters=in_filters)
        kept, removed = [], []
        for row in self.tables[table]:
            (removed if _matches(row, filters, in_filters) else kept).append(row)
        self.tables[table] = kept
        return [dict(r) for r in removed]


class FakeVerseLookup:
    def __init__(self):
        self.texts = {}
        self.calls = []

    async def get_verse_text(self, book_id, chapter, verse, version):
        self.calls.append((book_id, chapter, verse, version))
        return self.texts.get((book_id, chapter, verse, version))


class Seeder:
    """Writes highlight and assignment rows straight into the fake store."""

    def __init__(self, store, lookup):
        self.store = store
        self.lookup = lookup
        self._verse = 0

    def highlight(self, color, text=None, label=None, book_id=43, chapter=3, verse=None, version="KJV"):
        if verse is None:
            self._verse += 1
            verse = self._verse
        row = self.store.seed("verse_highlights", {
            "user_id": USER_ID,
            "book_id": book_id,
            "chapter": chapter,
            "verse": verse,
            "version": version,
            "color": color,
            "label": label,
        })
        if text is not None:
            self.lookup.texts[(book_id, chapter, verse, version)] = text
        return row["id"]

    def assignment(self, color, label):
        self.store.seed("highlight_categories", {"user_id": USER_ID, "color": color, "label": label})

    def highlight_ids(self, color=None):
        return [
            r["id"] for r in self.store.tables["verse_highlights"]
            if color is None or r["color"] == color
        ]

    def assignment_rows(self):
        return {r["color"]: r["label"] for r in self.store.tables["highlight_categories"]}


@pytest.fixture
def store():
    return FakeRecordStore()


@pytest.fixture
def lookup():
    return FakeVerseLookup()


@pytest.fixture
def seed(store, lookup):
    return Seeder(store, lookup)


@pytest.fixture
def session(store, lookup):
    return HighlightSession(USER_ID, store, verse_lookup=lookup, palette=TEST_PALETTE, batch_size=2)

from supabase import create_client
import asyncio
import logging

from config import Config
from utils.errors import PersistenceError

logger = logging.getLogger(__name__)


# --- Supabase Client Logic ---
_supabase_client_instance = None

class SupabaseClient:
    def __init__(self):
        self._client = None
        # Defer initialization to first access

    def _get_or_init_client(self):
        if self._client is None:
            try:
                supabase_url = Config.SUPABASE_URL
                supabase_key = Config.SUPABASE_SERVICE_KEY

                if not supabase_url or not supabase_key:
                    raise ValueError("SUPABASE_URL or SUPABASE_SERVICE_KEY not found")
                if not supabase_key.startswith('eyJ'):
                    raise ValueError("SUPABASE_SERVICE_KEY appears invalid (use service_role key)")

                logger.info("Initializing Supabase client...")
                self._client = create_client(supabase_url, supabase_key)
                logger.info("Successfully initialized Supabase client")
            except Exception as e:
                logger.error(f"Error initializing Supabase client: {str(e)}")
                self._client = None
                raise
        return self._client

    @property
    def client(self):
        """Get the Supabase client, initializing if needed."""
        return self._get_or_init_client()


def _get_supabase_instance():
    global _supabase_client_instance
    if _supabase_client_instance is None:
        _supabase_client_instance = SupabaseClient()
    return _supabase_client_instance

def get_supabase():
    """Get the Supabase client API instance."""
    instance = _get_supabase_instance()
    return instance.client


class SupabaseRecordStore:
    """Async record store over the (blocking) Supabase table API.

    Every call runs the request in a worker thread so callers can await it,
    and any client or server failure is re-raised as PersistenceError.
    There are no transactions across calls.
    """

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    async def _execute(self, operation, table, build):
        try:
            query = build(self.client.table(table))
            response = await asyncio.to_thread(query.execute)
        except Exception as e:
            logger.error(f"Supabase {operation} on {table} failed: {str(e)}", exc_info=True)
            raise PersistenceError(f"{operation} on {table} failed: {e}", operation=operation) from e
        return response.data or []

    @staticmethod
    def _apply_filters(query, filters, in_filters):
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        for column, values in (in_filters or {}).items():
            query = query.in_(column, list(values))
        return query

    async def select(self, table, filters=None, in_filters=None, columns='*', order_by=None, desc=False,
                     limit=None, offset=None):
        def build(query):
            query = self._apply_filters(query.select(columns), filters, in_filters)
            if order_by:
                query = query.order(order_by, desc=desc)
            if offset is not None:
                query = query.range(offset, offset + limit - 1)
            elif limit:
                query = query.limit(limit)
            return query
        return await self._execute('select', table, build)

    async def insert(self, table, rows):
        return await self._execute('insert', table, lambda query: query.insert(rows))

    async def upsert(self, table, row, on_conflict):
        return await self._execute(
            'upsert', table, lambda query: query.upsert(row, on_conflict=on_conflict)
        )

    async def delete(self, table, filters=None, in_filters=None):
        """Delete matching rows and return the rows the server removed."""
        if not filters and not in_filters:
            raise ValueError("Refusing to delete without a filter")
        return await self._execute(
            'delete', table, lambda query: self._apply_filters(query.delete(), filters, in_filters)
        )


async def select_all(store, table, order_by, page_size=None, **kwargs):
    """Select every matching row, one range page at a time.

    PostgREST silently caps a response at its max-rows setting (1000 on
    Supabase), so a single select can come back short. Pages are ordered by
    ``order_by``, which must be unique per row for the pages not to overlap,
    and ``page_size`` must not exceed the server cap.
    """
    page_size = page_size or Config.SELECT_PAGE_SIZE
    rows = []
    offset = 0
    while True:
        page = await store.select(table, order_by=order_by, limit=page_size, offset=offset, **kwargs)
        rows.extend(page)
        if len(page) < page_size:
            return rows
        offset += page_size

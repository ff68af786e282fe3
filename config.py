# config.py
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

load_dotenv()


class Config:
    SUPABASE_URL = os.getenv('SUPABASE_URL')
    SUPABASE_SERVICE_KEY = os.getenv('SUPABASE_SERVICE_KEY')
    JWT_SECRET = os.getenv('JWT_SECRET', 'your-secret-key')  # In production, use a proper secret key
    JWT_AUDIENCE = 'authenticated'

    HIGHLIGHTS_TABLE = os.getenv('HIGHLIGHTS_TABLE', 'verse_highlights')
    CATEGORIES_TABLE = os.getenv('CATEGORIES_TABLE', 'highlight_categories')
    VERSES_TABLE = os.getenv('VERSES_TABLE', 'verses')
    NOTES_TABLE = os.getenv('NOTES_TABLE', 'verse_notes')

    # Rows per select page; keep at or below the PostgREST max-rows setting
    SELECT_PAGE_SIZE = int(os.getenv('SELECT_PAGE_SIZE', '1000'))

    # Ids per remote delete call during category deletion
    DELETE_BATCH_SIZE = int(os.getenv('DELETE_BATCH_SIZE', '100'))

    # Per-user highlight sessions kept in memory by each worker
    MAX_SESSIONS = int(os.getenv('MAX_SESSIONS', '500'))

    PORT = int(os.getenv('PORT', '8080'))

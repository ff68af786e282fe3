# routes/highlight.py
from flask import Blueprint, request, jsonify
from pydantic import ValidationError as SchemaError
import asyncio
import logging

from schemas.highlight_schemas import HighlightCreate, HighlightRead, HighlightRemove
from utils.auth import token_required
from utils.errors import NotFoundError, PersistenceError
from utils.session import get_session

logger = logging.getLogger(__name__)

highlight_bp = Blueprint('highlight_bp', __name__)


@highlight_bp.route("/api/highlights", methods=['POST'])
@token_required
def create_highlight(current_user_id):
    """Highlights a verse. Any earlier highlight on the same verse, in any
    Bible version, is replaced."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        payload = HighlightCreate.model_validate(data)
    except SchemaError as e:
        return jsonify({"error": "Invalid highlight", "details": e.errors(include_url=False, include_context=False)}), 400

    session = get_session(current_user_id)
    try:
        highlight = asyncio.run(session.highlights.save_highlight(
            payload.book_id, payload.chapter, payload.verse, payload.version, payload.color, payload.label
        ))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError as e:
        logger.error(f"Error saving highlight for {payload.book_id} {payload.chapter}:{payload.verse}: {str(e)}")
        return jsonify({"error": "Failed to save highlight"}), 500

    return jsonify(HighlightRead.model_validate(highlight).model_dump()), 201


@highlight_bp.route("/api/highlights", methods=['DELETE'])
@token_required
def delete_highlight(current_user_id):
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        payload = HighlightRemove.model_validate(data)
    except SchemaError as e:
        return jsonify({"error": "Invalid verse reference", "details": e.errors(include_url=False, include_context=False)}), 400

    session = get_session(current_user_id)
    try:
        removed = asyncio.run(session.highlights.remove_highlight(payload.book_id, payload.chapter, payload.verse))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError as e:
        logger.error(f"Error removing highlight: {str(e)}")
        return jsonify({"error": "Failed to remove highlight"}), 500

    return jsonify({"removed": removed}), 200


@highlight_bp.route("/api/highlights/chapter/<int:book_id>/<int:chapter>", methods=['GET'])
@token_required
def get_highlights_by_chapter(current_user_id, book_id, chapter):
    """Fetches the verse -> color map of a chapter for the current user."""
    session = get_session(current_user_id)
    try:
        highlight_map = asyncio.run(session.highlights.chapter_highlights(book_id, chapter))
    except PersistenceError as e:
        logger.error(f"Error fetching highlights for book {book_id} chapter {chapter}: {str(e)}")
        return jsonify({"error": "Failed to fetch highlights"}), 500

    return jsonify({str(verse): color for verse, color in highlight_map.items()}), 200


@highlight_bp.route("/api/highlights", methods=['GET'])
@token_required
def get_all_highlights(current_user_id):
    session = get_session(current_user_id)
    try:
        highlights = asyncio.run(session.highlights.all_highlights())
    except PersistenceError as e:
        logger.error(f"Error fetching all highlights: {str(e)}")
        return jsonify({"error": "Failed to fetch highlights"}), 500

    return jsonify([HighlightRead.model_validate(h).model_dump() for h in highlights]), 200

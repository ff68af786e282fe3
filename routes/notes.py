# routes/notes.py
from flask import Blueprint, request, jsonify
from pydantic import ValidationError as SchemaError
import asyncio
import logging

from schemas.highlight_schemas import NoteRead, NoteSave
from utils.auth import token_required
from utils.errors import NotFoundError, PersistenceError, ValidationError
from utils.session import get_session

logger = logging.getLogger(__name__)

notes_bp = Blueprint('notes_bp', __name__, url_prefix='/api/notes')


@notes_bp.route("/", methods=['GET'])
@token_required
def get_notes(current_user_id):
    session = get_session(current_user_id)
    try:
        notes = asyncio.run(session.notes.all_notes())
    except PersistenceError as e:
        logger.error(f"Error fetching notes: {str(e)}")
        return jsonify({"error": "Failed to fetch notes"}), 500

    return jsonify([NoteRead.model_validate(n).model_dump() for n in notes]), 200


@notes_bp.route("/<int:book_id>/<int:chapter>/<int:verse>", methods=['GET'])
@token_required
def get_verse_note(current_user_id, book_id, chapter, verse):
    version = request.args.get('version', 'KJV')
    session = get_session(current_user_id)
    try:
        note = asyncio.run(session.notes.get_note(book_id, chapter, verse, version))
    except PersistenceError as e:
        logger.error(f"Error fetching note for {book_id} {chapter}:{verse}: {str(e)}")
        return jsonify({"error": "Failed to fetch note"}), 500

    if note is None:
        return jsonify({"error": "Note not found"}), 404
    return jsonify(NoteRead.model_validate(note).model_dump()), 200


@notes_bp.route("/", methods=['PUT'])
@token_required
def save_note(current_user_id):
    """Creates the note on a verse, or replaces it when there is one."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        payload = NoteSave.model_validate(data)
    except SchemaError as e:
        return jsonify({"error": "Invalid note", "details": e.errors(include_url=False, include_context=False)}), 400

    session = get_session(current_user_id)
    try:
        note = asyncio.run(session.notes.save_note(
            payload.book_id, payload.chapter, payload.verse, payload.version, payload.text
        ))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError as e:
        logger.error(f"Error saving note: {str(e)}")
        return jsonify({"error": "Failed to save note"}), 500

    return jsonify(NoteRead.model_validate(note).model_dump()), 200


@notes_bp.route("/<note_id>", methods=['DELETE'])
@token_required
def delete_note(current_user_id, note_id):
    session = get_session(current_user_id)
    try:
        asyncio.run(session.notes.delete_note(note_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError as e:
        logger.error(f"Error deleting note {note_id}: {str(e)}")
        return jsonify({"error": "Failed to delete note"}), 500

    return jsonify({"message": "Note deleted successfully"}), 200

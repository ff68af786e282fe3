# routes/categories.py
from flask import Blueprint, request, jsonify
from pydantic import ValidationError as SchemaError
import asyncio
import logging

from schemas.highlight_schemas import CategoryLabelUpdate, CategoryRead, DeletionReportRead, HighlightRead
from utils.auth import token_required
from utils.errors import (
    DeletionInProgressError,
    NotFoundError,
    PartialDeletionError,
    PersistenceError,
    ValidationError,
)
from utils.session import get_session

logger = logging.getLogger(__name__)

categories_bp = Blueprint('categories_bp', __name__, url_prefix='/api/highlight-categories')


@categories_bp.route("/", methods=['GET'])
@token_required
def list_categories(current_user_id):
    session = get_session(current_user_id)
    try:
        categories = asyncio.run(session.categories.list_categories())
    except PersistenceError as e:
        logger.error(f"Error listing categories: {str(e)}")
        return jsonify({"error": "Failed to fetch categories"}), 500

    return jsonify([CategoryRead.model_validate(c).model_dump() for c in categories]), 200


@categories_bp.route("/colors/<path:color>", methods=['PUT'])
@token_required
def set_color_label(current_user_id, color):
    """Names (or renames) a highlight color. Several categories can be given
    in one label, e.g. "Faith, Hope"."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid JSON payload"}), 400
    try:
        payload = CategoryLabelUpdate.model_validate(data)
    except SchemaError as e:
        return jsonify({"error": "Invalid label", "details": e.errors(include_url=False, include_context=False)}), 400

    session = get_session(current_user_id)
    try:
        assignment = asyncio.run(session.categories.set_label(color, payload.label))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError as e:
        logger.error(f"Error saving label for color {color}: {str(e)}")
        return jsonify({"error": "Failed to save label"}), 500

    return jsonify({"color": assignment.color, "label": assignment.label_string, "labels": list(assignment.labels)}), 200


@categories_bp.route("/<path:name>/highlights", methods=['GET'])
@token_required
def get_category_highlights(current_user_id, name):
    session = get_session(current_user_id)
    try:
        highlights = asyncio.run(session.membership.highlights_for_category(name))
    except PersistenceError as e:
        logger.error(f"Error expanding category '{name}': {str(e)}")
        return jsonify({"error": "Failed to fetch highlights"}), 500

    return jsonify([HighlightRead.model_validate(h).model_dump() for h in highlights]), 200


@categories_bp.route("/<path:name>", methods=['DELETE'])
@token_required
def delete_category(current_user_id, name):
    """Deletes the highlights of a category, keeping highlights shared with
    sibling categories, then drops the label from its colors."""
    session = get_session(current_user_id)
    try:
        report = asyncio.run(session.deletion.delete_category(name))
    except DeletionInProgressError as e:
        return jsonify({"error": str(e)}), 409
    except PartialDeletionError as e:
        logger.error(f"Partial deletion of category '{name}': {str(e)}")
        body = DeletionReportRead.model_validate(e.report.to_json()).model_dump()
        body["error"] = str(e)
        return jsonify(body), 500
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceError as e:
        logger.error(f"Error deleting category '{name}': {str(e)}")
        return jsonify({"error": "Failed to delete category"}), 500

    return jsonify(DeletionReportRead.model_validate(report.to_json()).model_dump()), 200

# utils/auth.py
import jwt
from functools import wraps
from flask import request, jsonify
import logging

from config import Config

logger = logging.getLogger(__name__)


def token_required(f):
    """Decorator that passes the Supabase user id (``sub`` claim) to the route."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = None
        auth_header = request.headers.get('Authorization')

        if auth_header:
            try:
                token = auth_header.split(" ")[1]
            except IndexError:
                logger.warning("Invalid token format in Authorization header.")
                return jsonify({'error': 'Invalid token format'}), 401
        else:
            logger.warning(f"Authorization header missing for {request.path}")

        if not token:
            return jsonify({'error': 'Token is required'}), 401

        try:
            data = jwt.decode(token, Config.JWT_SECRET, algorithms=["HS256"], audience=Config.JWT_AUDIENCE)
            current_user_id = data['sub']
        except jwt.ExpiredSignatureError:
            logger.warning("Token has expired.")
            return jsonify({'error': 'Token has expired'}), 401
        except (jwt.InvalidTokenError, KeyError) as e:
            logger.warning(f"Invalid token: {e}")
            return jsonify({'error': 'Invalid token'}), 401

        return f(current_user_id, *args, **kwargs)

    return decorated

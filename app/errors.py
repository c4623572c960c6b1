"""Central error handlers: plain text for pages, JSON for API clients."""
from flask import jsonify, request, current_app
from markupsafe import escape
from werkzeug.exceptions import HTTPException
from app.exceptions import StoreError
from app.utils import wants_json_response, is_loopback_request
import traceback
import logging

logger = logging.getLogger(__name__)


def _show_stack():
    return (
        current_app.config.get('APP_ENV') != 'production'
        and is_loopback_request()
    )


def _record_last_error(text):
    path = current_app.config.get('LAST_ERROR_FILE')
    if not path:
        return
    try:
        with open(path, 'w', encoding='utf-8') as fh:
            fh.write(text)
    except OSError as e:
        logger.warning("Could not write %s: %s", path, e)


def register_error_handlers(app):

    @app.errorhandler(403)
    def forbidden(error):
        if wants_json_response():
            return jsonify({'error': 'Forbidden'}), 403
        return 'Forbidden', 403

    @app.errorhandler(404)
    def not_found(error):
        if wants_json_response():
            return jsonify({'error': 'Not found'}), 404
        return 'Not found', 404

    @app.errorhandler(StoreError)
    def store_error(error):
        logger.warning("%s: %s", type(error).__name__, error.message)
        if wants_json_response():
            return jsonify({'error': error.message}), error.status_code
        return error.message, error.status_code

    @app.errorhandler(Exception)
    def unhandled(error):
        if isinstance(error, HTTPException):
            return error
        stack = ''.join(traceback.format_exception(
            type(error), error, error.__traceback__))
        logger.error("Unhandled exception on %s %s\n%s",
                     request.method, request.path, stack)
        _record_last_error(stack)
        if wants_json_response():
            return jsonify({'error': 'Server error'}), 500
        if _show_stack():
            return f'<pre>Server error\n\n{escape(stack)}</pre>', 500
        return 'Server error', 500

    logger.info("Error handlers registered")

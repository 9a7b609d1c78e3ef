"""
routes/common.py — Helpers shared by the JSON API blueprints.

- payload(): JSON body or form fields as a plain dict
- controller_for(): a screen controller bound to this request's notifier
- respond(): JSON envelope with success flag and pending notifications
- register_error_handlers(): maps application errors to HTTP statuses
"""

import logging

from flask import g, jsonify, request

from errors import (
    FarmLogError, NotFoundError, PersistenceError, ReferentialIntegrityError, ValidationError
)
from services import current_services
from utils.notifications import Notifier

logger = logging.getLogger(__name__)


def notifier():
    if 'notifier' not in g:
        g.notifier = Notifier()
    return g.notifier


def payload():
    """Submitted field values keyed by attribute name."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def controller_for(controller_cls):
    return controller_cls(current_services().repositories, notifier=notifier())


def respond(status=200, success=True, **body):
    body['success'] = success
    body['notifications'] = notifier().drain()
    return jsonify(body), status


def load_or_fail(controller):
    """Load a screen; None when ready, else the 503 response."""
    if controller.load():
        return None
    return respond(503, success=False, error=controller.error, state=controller.state)


def register_error_handlers(app):

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return respond(400, success=False, error="Please correct the highlighted fields", errors=e.errors)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return respond(404, success=False, error=e.message)

    @app.errorhandler(ReferentialIntegrityError)
    def handle_integrity(e):
        return respond(409, success=False, error=e.message, dependents=e.dependents)

    @app.errorhandler(PersistenceError)
    def handle_persistence(e):
        return respond(502, success=False, error=e.message, failures=e.failures)

    @app.errorhandler(FarmLogError)
    def handle_other(e):
        logger.error("Unhandled application error: %s", e)
        return respond(500, success=False, error=str(e))

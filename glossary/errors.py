from flask import jsonify, request


class GlossaryError(Exception):
    """Base class for errors raised by the glossary core."""


class ValidationError(GlossaryError, ValueError):
    """One or more term fields were rejected.

    ``errors`` maps a field name (``title``, ``content`` or ``tags``) to a
    human-readable message so callers can mark the offending input.
    """

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{field}: {message}" for field, message in self.errors.items()))


class StoreError(GlossaryError):
    """The underlying persistence layer failed."""


class TermNotFound(GlossaryError, LookupError):
    def __init__(self, public_id):
        self.public_id = public_id
        super().__init__(f"Term {public_id!r} does not exist.")


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def validation_failed(e):
        return jsonify({"errors": e.errors}), 400

    @app.errorhandler(TermNotFound)
    def term_not_found(e):
        return jsonify({"error": "Term not found"}), 404

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({"error": "Bad request"}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(429)
    def too_many_requests(e):
        app.logger.warning("429 Too Many Requests: %s", request.path)
        return jsonify({"error": "Too many requests"}), 429

    @app.errorhandler(500)
    def internal_error(e):
        app.logger.exception("Internal server error: %s", e)
        return jsonify({"error": "Internal server error"}), 500

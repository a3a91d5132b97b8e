"""Error taxonomy shared by HTTP routes, socket handlers and services.

Every error carries the HTTP status it maps to so transport layers can
render it without re-classifying.
"""

from flask import jsonify


class SudokuError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(SudokuError):
    status_code = 400


class AuthenticationError(SudokuError):
    status_code = 401


class AuthorizationError(SudokuError):
    status_code = 403


class NotFoundError(SudokuError):
    status_code = 404


class ConflictError(SudokuError):
    status_code = 409


class StateTransitionError(ConflictError):
    """Raised when an action is attempted from a state that does not allow it."""


class PersistenceError(SudokuError):
    status_code = 500


class LedgerWriteError(PersistenceError):
    pass


class GroupRecordError(PersistenceError):
    pass


def register_error_handlers(flask_app):
    @flask_app.errorhandler(SudokuError)
    def handle_sudoku_error(exc):
        if exc.status_code >= 500:
            flask_app.logger.error(f"[error] {type(exc).__name__}: {exc.message}")
        return jsonify(exc.to_dict()), exc.status_code

    @flask_app.errorhandler(404)
    def handle_not_found(exc):
        return jsonify({'error': 'Not found'}), 404

    @flask_app.errorhandler(405)
    def handle_method_not_allowed(exc):
        return jsonify({'error': 'Method not allowed'}), 405

from contextlib import contextmanager
from typing import Optional, Type

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sudoku_api import db
from sudoku_api.errors import ConflictError, PersistenceError, SudokuError


@contextmanager
def transaction(action: str, error_cls: Type[PersistenceError] = PersistenceError,
                conflict: Optional[str] = None):
    """Run the body as one unit of work.

    Commits on success. Any failure rolls the whole session back; database
    errors are re-raised as ``error_cls`` with ``action`` as context, domain
    errors propagate unchanged. When ``conflict`` is given, a unique key
    violation becomes a ConflictError carrying that message.
    """
    try:
        yield db.session
        db.session.commit()
    except SudokuError:
        db.session.rollback()
        raise
    except IntegrityError as exc:
        db.session.rollback()
        if conflict is not None:
            current_app.logger.info(f"[db] {action} conflicted: {conflict}")
            raise ConflictError(conflict) from exc
        current_app.logger.exception(f"[db] {action} failed")
        raise error_cls(f"{action} failed") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"[db] {action} failed")
        raise error_cls(f"{action} failed") from exc
    except Exception:
        db.session.rollback()
        raise

"""
Commit handling shared by the services.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..utils.exceptions import ConcurrencyError, DuplicateError


def commit(resource: str, identifier=None) -> None:
    """
    Commit the session or roll it back.

    Storage conflicts are translated to domain errors:
    - StaleDataError (version mismatch on the row) -> ConcurrencyError
    - IntegrityError (unique constraint) -> DuplicateError
    """
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        current_app.logger.warning(f"Concurrent update rejected for {resource} {identifier}")
        raise ConcurrencyError(resource, identifier) from None
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.warning(f"Integrity error on {resource} {identifier}: {e.orig}")
        raise DuplicateError(resource, identifier) from None
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Commit failed for {resource} {identifier}: {e}")
        raise

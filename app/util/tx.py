from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging
from app.util.errors import ConflictError

log = logging.getLogger(__name__)

CONSTRAINT_FAILED = "Write rejected by a database constraint."

def is_unique_violation(exc: IntegrityError) -> bool:
    # psycopg exposes the SQLSTATE; sqlite and mysql only say it in the message
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    text = str(exc.orig).lower()
    return "unique" in text or "duplicate" in text

@contextmanager
def atomic(db: Session, conflict_message: str = "Record already exists."):
    """
    One commit for everything done inside the block.
    Any exception rolls the whole unit back; constraint violations come out as ConflictError,
    carrying `conflict_message` only when a unique key was hit.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        log.warning("constraint violation, write rolled back: %s", exc.orig)
        if is_unique_violation(exc):
            raise ConflictError(conflict_message) from exc
        raise ConflictError(CONSTRAINT_FAILED) from exc
    except Exception:
        db.rollback()
        raise

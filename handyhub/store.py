"""Transaction scope and uniqueness-conflict translation.

``unit_of_work`` wraps a multi-row write in one commit/rollback scope.
``translate_conflicts`` turns a storage uniqueness violation into a
:class:`~handyhub.errors.Conflict` of the matching kind. The mapping
itself (``CONFLICT_KINDS`` / ``conflict_for``) only knows constraint
names; ``constraint_name`` is the one place that reads driver-specific
error details.
"""

import logging
import re
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import UniqueConstraint
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models  # noqa: F401  (populates Base.metadata)
from .database import Base
from .errors import Conflict, ConflictKind

logger = logging.getLogger(__name__)


CONFLICT_KINDS: dict[str, ConflictKind] = {
    "uq_accounts_email": ConflictKind.EMAIL_TAKEN,
    "uq_user_reviews_reviewer_reviewee": ConflictKind.DUPLICATE_USER_REVIEW,
    "uq_work_reviews_reviewer_work": ConflictKind.DUPLICATE_WORK_REVIEW,
    "uq_skills_skill_name": ConflictKind.DUPLICATE_SKILL,
    "uq_handyman_skills_account_skill": ConflictKind.DUPLICATE_HANDYMAN_SKILL,
    "uq_work_images_work_url": ConflictKind.DUPLICATE_WORK_IMAGE,
    "uq_phone_numbers_phone_number": ConflictKind.PHONE_ALREADY_REGISTERED,
}

_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?P<columns>.+)$")
_MYSQL_DUPLICATE = re.compile(r"for key '(?:[\w]+\.)?(?P<name>[\w]+)'")


def conflict_for(constraint: str | None) -> ConflictKind | None:
    """Return the conflict kind guarded by ``constraint``, if any."""
    if constraint is None:
        return None
    return CONFLICT_KINDS.get(constraint)


def _unique_constraint_for_columns(table_name: str, columns: set[str]) -> str | None:
    table = Base.metadata.tables.get(table_name)
    if table is None:
        return None
    for constraint in table.constraints:
        if not isinstance(constraint, UniqueConstraint):
            continue
        if {column.name for column in constraint.columns} == columns:
            return constraint.name
    return None


def constraint_name(exc: IntegrityError) -> str | None:
    """
    Extract the name of the violated constraint from a driver error.

    PostgreSQL drivers report it directly. SQLite only lists the
    ``table.column`` pairs, which are matched against the named unique
    constraints declared on the models.

    Args:
        exc (IntegrityError): Error raised by SQLAlchemy.

    Returns:
        str | None: Constraint name, or ``None`` when it cannot be told.
    """
    orig = getattr(exc, "orig", None)

    diag = getattr(orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name

    message = str(orig) if orig is not None else str(exc)

    match = _SQLITE_UNIQUE.search(message)
    if match:
        pairs = [part.strip() for part in match.group("columns").split(",")]
        tables = {pair.split(".", 1)[0] for pair in pairs}
        if len(tables) != 1:
            return None
        columns = {pair.split(".", 1)[1] for pair in pairs}
        return _unique_constraint_for_columns(tables.pop(), columns)

    match = _MYSQL_DUPLICATE.search(message)
    if match:
        return match.group("name")

    return None


@contextmanager
def translate_conflicts(db: Session) -> Iterator[None]:
    """
    Turn uniqueness violations raised inside the block into ``Conflict``.

    The session is rolled back before the conflict is raised. Integrity
    errors that do not map to a known conflict, and every other error,
    propagate unchanged.

    Args:
        db (Session): Session the guarded write runs on.

    Raises:
        Conflict: When a mapped unique constraint was violated.
    """
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        kind = conflict_for(constraint_name(exc))
        if kind is None:
            raise
        logger.info("Write rejected by uniqueness rule: %s", kind.value)
        raise Conflict(kind) from exc


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Run a block of writes as one all-or-nothing transaction.

    Commits when the block finishes normally. On any exception every
    write made inside the block is rolled back before the exception is
    re-raised, so no partial state becomes visible to other sessions.

    Args:
        db (Session): Session to run the writes on.

    Yields:
        Session: The same session.
    """
    try:
        yield db
        db.commit()
    except Exception as exc:
        logger.warning("Rolling back unit of work after %s", type(exc).__name__)
        db.rollback()
        raise

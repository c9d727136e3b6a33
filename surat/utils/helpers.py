"""Shared utility functions for services and blueprints.

parse_datetime:  lenient ISO date/datetime parsing for list filters
transaction:     commit-or-rollback boundary around one workflow operation
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime

from surat.models import db

logger = logging.getLogger(__name__)


def parse_datetime(value, *, end_of_day: bool = False):
    """Parse an ISO date or datetime string to a ``datetime``.

    Returns None for empty/invalid input.  A bare date becomes midnight, or
    23:59:59.999999 when *end_of_day* is set (inclusive upper bounds).
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.max.time() if end_of_day else datetime.min.time())
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text)
    except (ValueError, TypeError):
        return None
    if end_of_day and len(text) == 10:
        return datetime.combine(parsed.date(), datetime.max.time())
    return parsed


@contextmanager
def transaction():
    """Run one workflow operation as a single unit of work.

    Commits when the block exits cleanly.  Any exception rolls back every
    pending write (status, handler, assignments, tracking rows) and is
    re-raised unchanged, so no partial state is ever committed.

    Usage::

        with transaction():
            req.status = "TTD_READY"
            write_tracking_log(...)
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.debug("Transaction rolled back", exc_info=True)
        raise

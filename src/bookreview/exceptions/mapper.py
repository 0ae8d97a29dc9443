# src/bookreview/exceptions/mapper.py
"""
Data-access error boundary.

Purpose
-------
Store operations (insert a comment, update a review, toggle a site setting) fail
with whatever the driver or SQLAlchemy raises: IntegrityError carrying a Postgres
SQLSTATE, a row-level security denial, a dropped connection. Callers should not
have to know any of that. `db_error_handler` wraps the operation, cleans up the
session and turns the failure into a SafeError whose message is fit for the
audience of the request (site visitor or admin).

Flow
----
1. The wrapped block raises.
2. The session is rolled back so it can be reused. A rollback that itself fails is
   logged with its stack and otherwise ignored; the original failure is the one
   that gets reported.
3. SafeError raised inside the block was classified already and is re-raised as is.
4. Anything else goes through the classifier at the given trust level. The result's
   category decides the SafeError's HTTP status later (see base.py).
5. The new SafeError is chained from the original (`raise ... from exc`), so the
   full cause stays available to logging and debuggers but not to the client.

Logging
-------
- INFO `mapper.classified`: expected failures the table recognised (duplicates,
  permission denials). Only the category and the matching step are logged.
- WARNING `mapper.unclassified`: nothing matched; logged with the stack.
- DEBUG `mapper.raw_error`: the raw error text. It may name tables, constraints or
  echo user input, and the RedactFilter masks it outside development.

Example
-------
    async with db_error_handler(session, "comment.create", fallback="Failed to submit comment."):
        session.add(comment)
        await session.flush()
"""

import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from .base import SafeError
from .classifier import ErrorClassifier, classify_detailed
from .rules import ErrorCategory, TrustLevel

logger = logging.getLogger(__name__)


async def _rollback(db: AsyncSession | None, operation: str) -> None:
    if db is None:
        return
    try:
        await db.rollback()
    except Exception:
        # A failed rollback is unusual; keep the stack in the logs, but report the original failure.
        logger.exception("mapper.rollback_failed", extra={"operation": operation})


# -----------------------
# Async context manager to DRY error handling around store operations
# -----------------------
@asynccontextmanager
async def db_error_handler(
    db: AsyncSession | None,
    operation: str,
    *,
    trust_level: TrustLevel = TrustLevel.PUBLIC,
    fallback: str | None = None,
    classifier: ErrorClassifier | None = None,
):
    """
    Usage:
        async with db_error_handler(session, "comment.create", fallback="Failed to submit comment."):
            ... store operations that may fail ...

    On failure the session is rolled back and a SafeError is raised, chained from the
    original exception. Its message was classified for `trust_level`, so it can go
    straight to a toast / JSON response.
    """
    try:
        yield
    except SafeError:
        # Already classified further down; don't classify twice.
        await _rollback(db, operation)
        raise
    except Exception as exc:
        await _rollback(db, operation)

        result = classify_detailed(exc, trust_level, fallback, classifier=classifier)
        context = {
            "operation": operation,
            "category": result.category.value,
            "matched": result.matched,
            "trust_level": TrustLevel(trust_level).value,
        }

        # INFO: expected client-level failures (duplicates, RLS denials...) carry only the category.
        # Unclassified failures get a stack trace. The raw store message may name
        # tables/constraints, so it stays at DEBUG.
        if result.category is ErrorCategory.INTERNAL:
            logger.warning("mapper.unclassified", extra=context, exc_info=True)
        else:
            logger.info("mapper.classified", extra=context)
        logger.debug("mapper.raw_error", extra={"operation": operation, "raw_error": repr(exc)})

        raise SafeError(result.message, category=result.category) from exc


__all__ = ["db_error_handler"]

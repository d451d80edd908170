import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from pymongo.errors import PyMongoError

from campusmart.core.config import settings

logger = logging.getLogger(__name__)

TRANSIENT_LABEL = "TransientTransactionError"
UNKNOWN_COMMIT_LABEL = "UnknownTransactionCommitResult"


async def _commit(session, max_attempts: int):
    """Commit, re-sending the commit while the server's answer is unknown"""
    attempt = 0
    while True:
        attempt += 1
        try:
            await session.commit_transaction()
            return
        except PyMongoError as e:
            if not e.has_error_label(UNKNOWN_COMMIT_LABEL) or attempt >= max_attempts:
                raise
            logger.warning(f"Commit result unknown (attempt {attempt}/{max_attempts}), retrying commit: {str(e)}")


async def run_transaction(
    client,
    callback: Callable[[Any], Awaitable[Any]],
    max_attempts: Optional[int] = None,
    backoff: Optional[float] = None,
):
    """Run callback(session) inside a multi-document transaction.

    The whole callback is re-run when the server labels the failure as a
    TransientTransactionError (write conflict, primary stepdown), up to
    max_attempts times. A commit labelled UnknownTransactionCommitResult may
    already have been applied, so only the commit is re-sent, never the
    callback. Any other exception aborts the transaction and propagates
    unchanged, so nothing the callback wrote is committed.
    """
    max_attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS
    backoff = settings.TRANSACTION_RETRY_BACKOFF if backoff is None else backoff

    async with await client.start_session() as session:
        attempt = 0
        while True:
            attempt += 1
            try:
                session.start_transaction()
                try:
                    result = await callback(session)
                except BaseException:
                    if session.in_transaction:
                        await session.abort_transaction()
                    raise
                await _commit(session, max_attempts)
                return result
            except PyMongoError as e:
                if not e.has_error_label(TRANSIENT_LABEL) or attempt >= max_attempts:
                    raise
                delay = backoff * (2 ** (attempt - 1))
                logger.warning(
                    f"Transaction conflict (attempt {attempt}/{max_attempts}), retrying in {delay:.3f}s: {str(e)}"
                )
                await asyncio.sleep(delay)

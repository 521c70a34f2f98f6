"""State machine for requests whose identity and storage key are known.

This module drives an activated request through its stored record::

    find_or_create
      created ------------------------------------------> lock
      existing, identity differs ----------------------> 422 key_payload_mismatch
      existing, PROCESSING ----------------------------> 409 key_conflict
      existing, PROCESSED -----------------------------> replay stored response
      existing, UNPROCESSED (earlier attempt never locked) -> lock
    lock -> execute handler -> store response and unlock -> success

A record found in PROCESSING is always a conflict, even if the execution
that locked it has died. Clearing such a lock is left to an operator or to
the storage driver's expiry policy.

The interval between acquiring the lock and storing the response runs in a
``try/finally`` block: whatever the handler does, a response is stored and
the lock released. When the handler raises, a generic 500 response is
stored and the exception propagates to the caller afterwards.
"""

import time
from collections.abc import Awaitable, Callable

from idempotent_request.core.hooks import Hooks, ResponseSituation
from idempotent_request.core.request import Request
from idempotent_request.core.serializer import (
    Response,
    deserialize_response,
    internal_error_response,
    problem_response,
    serialize_response,
)
from idempotent_request.exceptions import (
    ClientProtocolError,
    IdempotencyKeyConflictError,
    IdempotencyKeyPayloadMismatchError,
)
from idempotent_request.identity import is_identical_request
from idempotent_request.models import IdempotentRecord, RecordState, RequestIdentity
from idempotent_request.observability.logging import get_logger
from idempotent_request.observability.metrics import record_execution_time, record_request
from idempotent_request.storage.store import RecordStore

logger = get_logger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


class StateResult:
    """Result of state machine processing.

    Attributes:
        response: The response to return (already passed through hooks)
        situation: Why this response is returned
        execution_time_ms: Handler execution time (None unless freshly executed)
    """

    def __init__(
        self,
        response: Response,
        situation: ResponseSituation,
        execution_time_ms: float | None = None,
    ) -> None:
        self.response = response
        self.situation = situation
        self.execution_time_ms = execution_time_ms

    @property
    def was_replayed(self) -> bool:
        return self.situation is ResponseSituation.RETRIEVED_STORED_RESPONSE


async def process_request(
    store: RecordStore,
    hooks: Hooks,
    identity: RequestIdentity,
    storage_key: str,
    handler: Handler,
    request: Request,
) -> StateResult:
    """Process an activated request with a valid key.

    Args:
        store: Record store over the storage driver
        hooks: Response hooks
        identity: Identity of the incoming request
        storage_key: Storage key of the request's record
        handler: Async function producing the response; called at most once
        request: The request passed to the handler

    Returns:
        StateResult with the response and its situation

    Raises:
        StorageError: If the storage driver fails
        Exception: Whatever the handler raised, after its error response was stored
    """
    found = await store.find_or_create(identity, storage_key)

    if found.created:
        record = found.record
    else:
        stored = found.record

        if not is_identical_request(stored.identity, identity):
            logger.info("idempotency.payload_mismatch", storage_key=storage_key)
            return await _reject(hooks, IdempotencyKeyPayloadMismatchError())

        state = stored.state
        if state is RecordState.PROCESSING:
            logger.info("idempotency.conflict", storage_key=storage_key, locked_at=str(stored.locked_at))
            return await _reject(hooks, IdempotencyKeyConflictError())
        elif state is RecordState.PROCESSED:
            return await replay_stored_response(hooks, stored)
        elif state is RecordState.UNPROCESSED:
            # An earlier attempt created the record but never locked it.
            logger.info("idempotency.retry_unlocked_record", storage_key=storage_key)
            record = stored
        else:
            raise RuntimeError(f"Unexpected record state: {state}")

    locked = await store.acquire_lock(record)
    return await execute_and_unlock(store, hooks, locked, handler, request)


async def replay_stored_response(hooks: Hooks, record: IdempotentRecord) -> StateResult:
    """Replay the response stored in a PROCESSED record verbatim."""
    if record.response is None:
        raise ValueError(f"Record {record.storage_key} has no stored response")

    logger.info("idempotency.replayed", storage_key=record.storage_key, status=record.response.status)
    situation = ResponseSituation.RETRIEVED_STORED_RESPONSE
    response = await hooks.apply(deserialize_response(record.response), situation)
    return StateResult(response=response, situation=situation)


async def execute_and_unlock(
    store: RecordStore,
    hooks: Hooks,
    locked: IdempotentRecord,
    handler: Handler,
    request: Request,
) -> StateResult:
    """Run the handler once and store its response, releasing the lock.

    The success response is passed through hooks before it is stored, so a
    replay returns exactly what the first client received.

    Args:
        store: Record store
        hooks: Response hooks
        locked: The PROCESSING record returned by ``acquire_lock``
        handler: The downstream handler
        request: The request passed to the handler

    Returns:
        StateResult with the fresh response

    Raises:
        StorageError: If the response cannot be stored; the record stays locked
        Exception: Whatever the handler or the success hook raised, after the error
            response was stored and counted
    """
    response: Response | None = None
    step = "handler"
    start_time = time.perf_counter()

    try:
        try:
            produced = await handler(request)
            step = "success_hook"
            response = await hooks.apply(produced, ResponseSituation.SUCCESS)
        except Exception:
            logger.exception(f"idempotency.{step}_failed", storage_key=locked.storage_key)
            response = internal_error_response()
            response = await hooks.apply(response, ResponseSituation.ERROR)
            record_request(ResponseSituation.ERROR.value, response.status)
            raise
    finally:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        record_execution_time(execution_time_ms)
        if response is not None:
            await store.set_response_and_unlock(locked, serialize_response(response))
        else:
            logger.warning(
                "idempotency.left_locked",
                storage_key=locked.storage_key,
                reason="execution interrupted",
            )

    return StateResult(
        response=response,
        situation=ResponseSituation.SUCCESS,
        execution_time_ms=execution_time_ms,
    )


async def _reject(hooks: Hooks, error: ClientProtocolError) -> StateResult:
    situation = ResponseSituation(error.situation)
    response = await hooks.apply(problem_response(error), situation)
    return StateResult(response=response, situation=situation)

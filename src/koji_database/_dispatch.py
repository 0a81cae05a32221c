"""Dispatch strategies — send store mutations now, or queue them for one commit."""

from __future__ import annotations

import abc
import enum
import logging
from typing import TYPE_CHECKING

import httpx

from koji_database._errors import NotInTransaction, ServiceError, UnavailableInTransaction
from koji_database._transport import status_code_of

if TYPE_CHECKING:
    from koji_database._models import PendingRequest
    from koji_database._transport import HttpTransport

log = logging.getLogger(__name__)

# Failures while encoding or sending a mutation. TypeError and ValueError come from
# JSON-encoding a body that holds non-JSON values.
_SEND_FAILURES = (httpx.HTTPError, TypeError, ValueError)

TRANSACTION_PATH = "/v1/store/transaction"


class DispatchMode(enum.Enum):
    """How a client routes queueable operations."""

    IMMEDIATE = "immediate"
    TRANSACTION = "transaction"


class Dispatcher(abc.ABC):
    """Routes store operations to the network.

    Queueable operations (the mutation family) go through :meth:`submit`.
    Network-only operations call :meth:`require_immediate` first and then talk
    to the transport themselves.
    """

    def __init__(self, transport: HttpTransport) -> None:
        self._transport = transport

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    @property
    @abc.abstractmethod
    def mode(self) -> DispatchMode:
        """The mode this dispatcher implements."""

    @abc.abstractmethod
    def submit(self, request: PendingRequest) -> bool | None:
        """Handle one queueable operation.

        :returns: ``True``/``False`` when sent immediately, ``None`` when queued.
        """

    @abc.abstractmethod
    def require_immediate(self, operation: str) -> None:
        """Fail if ``operation`` cannot run under this dispatcher.

        :raises UnavailableInTransaction: When queueing.
        """

    @abc.abstractmethod
    def commit(self) -> None:
        """Flush queued operations as one combined call.

        :raises NotInTransaction: If there is no open transaction to commit.
        """


class ImmediateDispatcher(Dispatcher):
    """Sends every operation as soon as it is submitted."""

    @property
    def mode(self) -> DispatchMode:
        return DispatchMode.IMMEDIATE

    def submit(self, request: PendingRequest) -> bool:
        """Send ``request`` now.

        Any failure is logged and reported as ``False``; nothing is raised.
        """
        try:
            self._transport.post_json(request.target_path, request.payload)
        except _SEND_FAILURES as exc:
            log.warning(
                "%s failed (status=%s): %s",
                request.target_path,
                status_code_of(exc),
                exc,
            )
            return False
        return True

    def require_immediate(self, operation: str) -> None:
        return None

    def commit(self) -> None:
        raise NotInTransaction("Not in a transaction; call begin_transaction() first")


class QueueingDispatcher(Dispatcher):
    """Buffers submitted operations in call order until :meth:`commit`.

    Single-use: once committed, the dispatcher rejects further submits and
    commits. Not safe for concurrent submits from several threads.
    """

    def __init__(self, transport: HttpTransport) -> None:
        super().__init__(transport)
        self._queue: list[PendingRequest] = []
        self._spent = False

    def __repr__(self) -> str:
        return f"QueueingDispatcher(pending={len(self._queue)}, spent={self._spent})"

    @property
    def mode(self) -> DispatchMode:
        return DispatchMode.TRANSACTION

    @property
    def pending(self) -> tuple[PendingRequest, ...]:
        """Snapshot of the queued operations, oldest first."""
        return tuple(self._queue)

    @property
    def spent(self) -> bool:
        return self._spent

    def submit(self, request: PendingRequest) -> None:
        if self._spent:
            raise NotInTransaction("Transaction has already been committed")
        log.debug("Queued %s (%d pending)", request.target_path, len(self._queue) + 1)
        self._queue.append(request)

    def require_immediate(self, operation: str) -> None:
        raise UnavailableInTransaction(
            f"{operation}() is not available inside a transaction",
            operation=operation,
        )

    def commit(self) -> None:
        """Send every queued operation, in order, as one transaction request.

        :raises NotInTransaction: If this transaction was already committed.
        :raises ServiceError: If the transaction request fails, including when a queued body
            cannot be encoded as JSON. The transaction is spent either way.
        """
        if self._spent:
            raise NotInTransaction("Transaction has already been committed")
        self._spent = True
        operations = [{"uri": self._transport.url_for(r.target_path), "body": r.payload} for r in self._queue]
        log.info("Committing transaction with %d operation(s)", len(operations))
        try:
            self._transport.post_json(TRANSACTION_PATH, {"operations": operations}, auth_only=True)
        except _SEND_FAILURES as exc:
            raise ServiceError("Transaction commit failed", status_code=status_code_of(exc)) from exc

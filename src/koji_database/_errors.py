"""Normalized error hierarchy for koji_database."""

from __future__ import annotations

from typing import Optional


class KojiDatabaseError(Exception):
    """Base class for all koji_database errors.

    :param message: Human-readable error description.
    :param collection: The collection involved in the error, if any.
    :param document_name: The document involved in the error, if any.
    :param status_code: HTTP status returned by the service, if any.
    """

    def __init__(
        self,
        message: str = "",
        *,
        collection: Optional[str] = None,
        document_name: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.collection = collection
        self.document_name = document_name
        self.status_code = status_code
        super().__init__(message)

    def _details(self) -> list[str]:
        parts = []
        if self.collection is not None:
            parts.append(f"collection={self.collection!r}")
        if self.document_name is not None:
            parts.append(f"document_name={self.document_name!r}")
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code!r}")
        return parts

    def __str__(self) -> str:
        parts = [super().__str__(), *self._details()]
        return " | ".join(parts) if len(parts) > 1 else parts[0]

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(super().__str__()), *self._details()]
        return f"{cls}({', '.join(args)})"


class ConfigurationMissing(KojiDatabaseError):
    """Raised when project credentials cannot be resolved."""


class DocumentNotFound(KojiDatabaseError):
    """Raised when a read targets a document the service does not have."""


class ServiceError(KojiDatabaseError):
    """Raised for any other failure reported by, or talking to, the service."""


class NotInTransaction(KojiDatabaseError):
    """Raised when committing a client that is not an open transaction."""


class UnavailableInTransaction(KojiDatabaseError):
    """Raised when a network-only operation is called on a transaction client.

    :param operation: The name of the rejected operation.
    """

    def __init__(self, message: str = "", *, operation: str = "") -> None:
        self.operation = operation
        super().__init__(message)

    def _details(self) -> list[str]:
        parts = super()._details()
        if self.operation:
            parts.append(f"operation={self.operation!r}")
        return parts

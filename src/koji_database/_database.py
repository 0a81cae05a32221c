"""Database — the primary user-facing client."""

from __future__ import annotations

import contextlib
import logging
import os
from typing import TYPE_CHECKING, Any

import httpx

from koji_database._config import resolve_base_url, resolve_config
from koji_database._dispatch import DispatchMode, ImmediateDispatcher, QueueingDispatcher
from koji_database._errors import DocumentNotFound, ServiceError
from koji_database._models import (
    PendingRequest,
    SignedRequest,
    SignedUploadRequest,
    TranscodeJob,
    TranscodeStatus,
)
from koji_database._transport import DEFAULT_TIMEOUT, HttpTransport, status_code_of
from koji_database._values import value_types as _value_types

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from koji_database._config import Config, ConfigProvider
    from koji_database._dispatch import Dispatcher
    from koji_database._types import Document, JSONValue, PathLike, Payload

log = logging.getLogger(__name__)

# Ways a 2xx response body can fail to have the expected shape.
_MALFORMED_RESPONSE = (ValueError, KeyError, IndexError, TypeError)


def _decode(response: httpx.Response, key: str | None = None) -> Any:
    """Parse a JSON response body, optionally returning one top-level field.

    :raises ServiceError: If the body is not JSON or lacks ``key``.
    """
    try:
        data = response.json()
        return data if key is None else data[key]
    except _MALFORMED_RESPONSE as exc:
        raise ServiceError("Malformed response", status_code=response.status_code) from exc


class Database:
    """Client for a project's document store and object store.

    Reads and object-store calls always go to the network immediately and
    raise typed errors. Mutations (``set``, ``update``, ``array_push``,
    ``array_remove``, ``delete``) return ``True``/``False`` on an immediate
    client and are queued, returning ``None``, on a transaction client
    obtained from :meth:`begin_transaction`.

    Mutation failures, including bodies that cannot be encoded as JSON, are
    reported only as ``False``; the cause is logged but never raised. Reads
    and object-store calls with non-JSON arguments raise the encoder's own
    ``TypeError``/``ValueError``, not :class:`ServiceError`.

    :param config: Explicit credentials. When omitted they are resolved from
        ``provider``, or from ``KOJI_PROJECT_ID``/``KOJI_PROJECT_TOKEN``.
    :param provider: Source of credentials used when ``config`` is omitted.
    :param base_url: API host. Defaults to :func:`resolve_base_url`.
    :param timeout: Per-request timeout in seconds.
    :param transport: Optional ``httpx`` transport, mainly for tests.
    :raises ConfigurationMissing: If no credentials can be resolved.
    """

    value_types = _value_types

    def __init__(
        self,
        config: Config | None = None,
        *,
        provider: ConfigProvider | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        resolved = resolve_config(config, provider)
        http = HttpTransport(
            resolved,
            base_url or resolve_base_url(),
            timeout=timeout,
            transport=transport,
        )
        self._config = resolved
        self._dispatcher: Dispatcher = ImmediateDispatcher(http)
        self._owns_transport = True

    @classmethod
    def _with_dispatcher(cls, config: Config, dispatcher: Dispatcher) -> Database:
        instance = cls.__new__(cls)
        instance._config = config
        instance._dispatcher = dispatcher
        instance._owns_transport = False
        return instance

    def __repr__(self) -> str:
        return f"Database(project_id={self._config.project_id!r}, mode={self.mode.value!r})"

    @property
    def config(self) -> Config:
        return self._config

    @property
    def mode(self) -> DispatchMode:
        return self._dispatcher.mode

    @property
    def in_transaction(self) -> bool:
        return self._dispatcher.mode is DispatchMode.TRANSACTION

    @property
    def _http(self) -> HttpTransport:
        return self._dispatcher.transport

    def close(self) -> None:
        """Close the HTTP client. Transaction clients leave the shared client open."""
        if self._owns_transport:
            self._http.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # region: helpers

    def _read(self, operation: str, path: str, body: Payload, key: str, *, collection: str | None = None) -> Any:
        """Run a read-family call and return ``response[key]``.

        :raises DocumentNotFound: On a 404.
        :raises ServiceError: On any other failure.
        """
        self._dispatcher.require_immediate(operation)
        document_name = body.get("documentName")
        try:
            response = self._http.post_json(path, body)
        except httpx.HTTPError as exc:
            status = status_code_of(exc)
            if status == 404:
                raise DocumentNotFound(
                    "Document not found",
                    collection=collection,
                    document_name=document_name,
                    status_code=status,
                ) from exc
            raise ServiceError(
                "Service error",
                collection=collection,
                document_name=document_name,
                status_code=status,
            ) from exc
        return _decode(response, key)

    def _call_object_store(self, operation: str, path: str, body: Payload) -> Any:
        self._dispatcher.require_immediate(operation)
        try:
            response = self._http.post_json(path, body, auth_only=True)
        except httpx.HTTPError as exc:
            raise ServiceError("Service error", status_code=status_code_of(exc)) from exc
        return _decode(response)

    def _mutate(self, path: str, payload: Payload) -> bool | None:
        return self._dispatcher.submit(PendingRequest(target_path=path, payload=payload))

    # endregion

    # region: store reads

    def get(self, collection: str, document_name: str | None = None) -> Any:
        """Fetch a document by name.

        :raises DocumentNotFound: If the document does not exist.
        :raises ServiceError: On any other failure.
        :raises UnavailableInTransaction: On a transaction client.
        """
        body: Payload = {"collection": collection}
        if document_name is not None:
            body["documentName"] = document_name
        return self._read("get", "/v1/store/get", body, "document", collection=collection)

    def get_collections(self) -> list[str]:
        """List the project's collection names.

        :raises ServiceError: On any failure, including a 404.
        :raises UnavailableInTransaction: On a transaction client.
        """
        self._dispatcher.require_immediate("get_collections")
        try:
            response = self._http.post_json("/v1/store/getCollections", {})
        except httpx.HTTPError as exc:
            raise ServiceError("Service error", status_code=status_code_of(exc)) from exc
        return _decode(response, "collections")

    def search(self, collection: str, query_key: str, query_value: str) -> list[Document]:
        """Search ``collection`` for documents whose ``query_key`` matches ``query_value``."""
        body = {"collection": collection, "queryKey": query_key, "queryValue": query_value}
        return self._read("search", "/v1/store/search", body, "results", collection=collection)

    def get_where(
        self,
        collection: str,
        predicate_key: str,
        predicate_operation: str,
        predicate_value: JSONValue,
    ) -> Any:
        """Fetch documents matching a ``{key, operation, value}`` predicate."""
        body = {
            "collection": collection,
            "predicate": {
                "key": predicate_key,
                "operation": predicate_operation,
                "value": predicate_value,
            },
        }
        return self._read("get_where", "/v1/store/get", body, "document", collection=collection)

    def get_all(self, collection: str, document_names: list[str]) -> list[Document]:
        """Fetch several documents by name."""
        body = {"collection": collection, "documentNames": list(document_names)}
        return self._read("get_all", "/v1/store/getAll", body, "results", collection=collection)

    def get_all_where(
        self,
        collection: str,
        predicate_key: str,
        predicate_operation: str,
        predicate_values: list[JSONValue],
    ) -> list[Document]:
        """Fetch documents whose ``predicate_key`` matches any of ``predicate_values``."""
        body = {
            "collection": collection,
            "predicateKey": predicate_key,
            "predicateOperation": predicate_operation,
            "predicateValues": list(predicate_values),
        }
        return self._read("get_all_where", "/v1/store/getAllWhere", body, "results", collection=collection)

    # endregion

    # region: store mutations

    def set(self, collection: str, document_name: str, document_body: Document) -> bool | None:
        """Create or replace a document."""
        return self._mutate(
            "/v1/store/set",
            {"collection": collection, "documentName": document_name, "documentBody": document_body},
        )

    def update(self, collection: str, document_name: str, document_body: Document) -> bool | None:
        """Merge ``document_body`` into an existing document."""
        return self._mutate(
            "/v1/store/update",
            {"collection": collection, "documentName": document_name, "documentBody": document_body},
        )

    def array_push(self, collection: str, document_name: str, document_body: Document) -> bool | None:
        """Append each value in ``document_body`` to the array field of the same name."""
        return self._mutate(
            "/v1/store/update/push",
            {"collection": collection, "documentName": document_name, "documentBody": document_body},
        )

    def array_remove(self, collection: str, document_name: str, document_body: Document) -> bool | None:
        """Remove each value in ``document_body`` from the array field of the same name."""
        return self._mutate(
            "/v1/store/update/remove",
            {"collection": collection, "documentName": document_name, "documentBody": document_body},
        )

    def delete(self, collection: str, document_name: str) -> bool | None:
        """Delete a document."""
        return self._mutate("/v1/store/delete", {"collection": collection, "documentName": document_name})

    # endregion

    # region: object store

    def upload_file(self, path: PathLike, filename: str | None = None, content_type: str | None = None) -> str:
        """Upload a local file and return its public URL.

        :param filename: Name to upload under. Defaults to the file's base name.
        :raises FileNotFoundError: If ``path`` does not exist locally.
        :raises ServiceError: If the upload fails.
        :raises UnavailableInTransaction: On a transaction client.
        """
        self._dispatcher.require_immediate("upload_file")
        upload_name = filename or os.path.basename(os.fspath(path))
        with open(path, "rb") as fh:
            try:
                response = self._http.post_file(
                    "/v1/objectStore/upload",
                    fh,
                    filename=upload_name,
                    content_type=content_type,
                )
            except httpx.HTTPError as exc:
                raise ServiceError("Service error", status_code=status_code_of(exc)) from exc
        return _decode(response, "url")

    def generate_signed_upload_request(self, file_name: str) -> SignedUploadRequest:
        """Get a pre-signed request for uploading ``file_name`` directly to the CDN bucket.

        :raises ServiceError: On any failure.
        :raises UnavailableInTransaction: On a transaction client.
        """
        data = self._call_object_store(
            "generate_signed_upload_request",
            "/v1/objectStore/generateSignedRequest",
            {"fileName": file_name},
        )
        try:
            signed = data["signedRequest"]
            return SignedUploadRequest(
                url=data["url"],
                signed_request=SignedRequest(url=signed["url"], fields=dict(signed.get("fields") or {})),
            )
        except _MALFORMED_RESPONSE as exc:
            raise ServiceError("Malformed signed request response") from exc

    def transcode_asset(self, path: str, transcode_type: str = "video+hls") -> TranscodeJob:
        """Start transcoding an asset already on the CDN.

        Poll :meth:`get_transcode_status` with the returned callback token
        until ``is_finished``; short videos usually finish within seconds.

        :raises ServiceError: On any failure.
        :raises UnavailableInTransaction: On a transaction client.
        """
        data = self._call_object_store(
            "transcode_asset",
            "/v1/objectStore/transcode",
            {"path": path, "type": transcode_type},
        )
        try:
            return TranscodeJob(url=data["url"], callback_token=data["callbackTokens"][0])
        except _MALFORMED_RESPONSE as exc:
            raise ServiceError("Malformed transcode response") from exc

    def get_transcode_status(self, callback_token: str) -> TranscodeStatus:
        """Check whether a transcode has finished."""
        data = self._call_object_store(
            "get_transcode_status",
            "/v1/objectStore/transcode/status",
            {"callbackToken": callback_token},
        )
        try:
            return TranscodeStatus(is_finished=bool(data["isResolved"]))
        except _MALFORMED_RESPONSE as exc:
            raise ServiceError("Malformed transcode status response") from exc

    # endregion

    # region: transactions

    def begin_transaction(self) -> Database:
        """Return a new client that queues mutations until :meth:`commit_transaction`.

        The new client shares this client's config and HTTP connection; this
        client is unaffected.
        """
        log.debug("Beginning transaction for project %s", self._config.project_id)
        return type(self)._with_dispatcher(self._config, QueueingDispatcher(self._http))

    def commit_transaction(self) -> None:
        """Send all queued mutations as one transaction request, in call order.

        The client must not be used afterwards.

        :raises NotInTransaction: If this is not an uncommitted transaction client.
        :raises ServiceError: If the commit request fails.
        """
        self._dispatcher.commit()

    @contextlib.contextmanager
    def transaction(self) -> Iterator[Database]:
        """Open a transaction, committing it when the block exits normally.

        If the block raises, the queued operations are discarded unsent.
        """
        tx = self.begin_transaction()
        yield tx
        tx.commit_transaction()

    # endregion

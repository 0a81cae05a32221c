"""Shared test fixtures, marker registration, and an in-memory fake of the database API."""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx
import pytest

from koji_database import Config, Database

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

PROJECT_ID = "p1"
PROJECT_TOKEN = "t1"
BASE_URL = "http://koji.test"
CDN = "https://objects.koji-cdn.com"


def pytest_configure(config: object) -> None:
    """Register custom markers."""
    if isinstance(config, pytest.Config):
        config.addinivalue_line("markers", "integration: requires the live database service")


class FakeKojiService:
    """In-memory stand-in for the database API, served through ``httpx.MockTransport``.

    Every request is recorded in :attr:`requests` as ``(path, headers, body)``.
    Set ``fail_with[path] = status`` to make the next call to ``path`` fail,
    set ``respond_with[path] = text`` to answer the next call with a raw 200 body,
    or :attr:`unreachable` to raise a connection error on every request.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.requests: list[tuple[str, httpx.Headers, Any]] = []
        self.fail_with: dict[str, int] = {}
        self.respond_with: dict[str, str] = {}
        self.unreachable = False
        self.status_polls_until_done = 1
        self._status_polls = 0
        self._routes: dict[str, Callable[[dict[str, Any]], tuple[int, Any]]] = {
            "/v1/store/get": self._get,
            "/v1/store/getCollections": self._get_collections,
            "/v1/store/search": self._search,
            "/v1/store/getAll": self._get_all,
            "/v1/store/getAllWhere": self._get_all_where,
            "/v1/store/set": self._set,
            "/v1/store/update": self._update,
            "/v1/store/update/push": self._push,
            "/v1/store/update/remove": self._remove,
            "/v1/store/delete": self._delete,
            "/v1/store/transaction": self._transaction,
            "/v1/objectStore/generateSignedRequest": self._signed_request,
            "/v1/objectStore/transcode": self._transcode,
            "/v1/objectStore/transcode/status": self._transcode_status,
        }

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def paths(self) -> list[str]:
        return [path for path, _, _ in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        path = request.url.path
        if path == "/v1/objectStore/upload":
            self.requests.append((path, request.headers, request.content))
        else:
            body = json.loads(request.content or b"{}")
            self.requests.append((path, request.headers, body))

        if request.headers.get("X-Koji-Project-Id") != PROJECT_ID or (
            request.headers.get("X-Koji-Project-Token") != PROJECT_TOKEN
        ):
            return httpx.Response(401, json={"error": "unauthorized"})
        if path in self.fail_with:
            return httpx.Response(self.fail_with.pop(path), json={"error": "injected"})
        if path in self.respond_with:
            return httpx.Response(200, text=self.respond_with.pop(path))
        if path == "/v1/objectStore/upload":
            return self._upload(request.content)
        if path not in self._routes:
            return httpx.Response(404, json={"error": "no such route"})
        status, payload = self._routes[path](body)
        return httpx.Response(status, json=payload)

    # region: store

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(name, {})

    @staticmethod
    def _with_id(name: str, doc: dict[str, Any]) -> dict[str, Any]:
        return {**copy.deepcopy(doc), "_id": name}

    def _get(self, body: dict[str, Any]) -> tuple[int, Any]:
        docs = self._collection(body["collection"])
        if "predicate" in body:
            pred = body["predicate"]
            matches = [self._with_id(n, d) for n, d in docs.items() if d.get(pred["key"]) == pred["value"]]
            return 200, {"document": matches}
        name = body.get("documentName")
        if name not in docs:
            return 404, {"error": "not found"}
        return 200, {"document": self._with_id(name, docs[name])}

    def _get_collections(self, body: dict[str, Any]) -> tuple[int, Any]:
        return 200, {"collections": sorted(self.collections)}

    def _search(self, body: dict[str, Any]) -> tuple[int, Any]:
        docs = self._collection(body["collection"])
        key, needle = body["queryKey"], str(body["queryValue"])
        return 200, {"results": [self._with_id(n, d) for n, d in docs.items() if needle in str(d.get(key, ""))]}

    def _get_all(self, body: dict[str, Any]) -> tuple[int, Any]:
        docs = self._collection(body["collection"])
        return 200, {"results": [self._with_id(n, docs[n]) for n in body["documentNames"] if n in docs]}

    def _get_all_where(self, body: dict[str, Any]) -> tuple[int, Any]:
        docs = self._collection(body["collection"])
        key, values = body["predicateKey"], body["predicateValues"]
        return 200, {"results": [self._with_id(n, d) for n, d in docs.items() if d.get(key) in values]}

    def _set(self, body: dict[str, Any]) -> tuple[int, Any]:
        self._collection(body["collection"])[body["documentName"]] = copy.deepcopy(body["documentBody"])
        return 200, {}

    def _existing(self, body: dict[str, Any]) -> dict[str, Any] | None:
        return self._collection(body["collection"]).get(body["documentName"])

    def _update(self, body: dict[str, Any]) -> tuple[int, Any]:
        doc = self._existing(body)
        if doc is None:
            return 404, {"error": "not found"}
        for key, value in body["documentBody"].items():
            if isinstance(value, dict) and value.get("$$valueType") == "increment":
                doc[key] = doc.get(key, 0) + value["value"]
            else:
                doc[key] = value
        return 200, {}

    def _push(self, body: dict[str, Any]) -> tuple[int, Any]:
        doc = self._existing(body)
        if doc is None:
            return 404, {"error": "not found"}
        for key, value in body["documentBody"].items():
            doc.setdefault(key, []).append(value)
        return 200, {}

    def _remove(self, body: dict[str, Any]) -> tuple[int, Any]:
        doc = self._existing(body)
        if doc is None:
            return 404, {"error": "not found"}
        for key, value in body["documentBody"].items():
            doc[key] = [item for item in doc.get(key, []) if item != value]
        return 200, {}

    def _delete(self, body: dict[str, Any]) -> tuple[int, Any]:
        docs = self._collection(body["collection"])
        if body["documentName"] not in docs:
            return 404, {"error": "not found"}
        del docs[body["documentName"]]
        return 200, {}

    def _transaction(self, body: dict[str, Any]) -> tuple[int, Any]:
        for op in body["operations"]:
            status, payload = self._routes[urlparse(op["uri"]).path](op["body"])
            if status >= 400:
                return status, payload
        return 200, {}

    # endregion

    # region: object store

    def _upload(self, content: bytes) -> httpx.Response:
        marker = b'filename="'
        start = content.index(marker) + len(marker)
        filename = content[start : content.index(b'"', start)].decode()
        # The real service answers with a JSON document in a text body.
        return httpx.Response(200, text=json.dumps({"url": f"{CDN}/{PROJECT_ID}/{filename}"}))

    def _signed_request(self, body: dict[str, Any]) -> tuple[int, Any]:
        key = f"{PROJECT_ID}/{body['fileName']}"
        return 200, {
            "url": f"{CDN}/{key}",
            "signedRequest": {"url": "https://koji-cdn.s3.amazonaws.com", "fields": {"key": key}},
        }

    def _transcode(self, body: dict[str, Any]) -> tuple[int, Any]:
        return 200, {"url": f"{body['path']}.m3u8", "callbackTokens": ["cb-1", "cb-2"]}

    def _transcode_status(self, body: dict[str, Any]) -> tuple[int, Any]:
        self._status_polls += 1
        return 200, {"isResolved": self._status_polls >= self.status_polls_until_done}

    # endregion


@pytest.fixture
def config() -> Config:
    return Config(project_id=PROJECT_ID, project_token=PROJECT_TOKEN)


@pytest.fixture
def service() -> FakeKojiService:
    return FakeKojiService()


@pytest.fixture
def db(config: Config, service: FakeKojiService) -> Iterator[Database]:
    with Database(config, base_url=BASE_URL, transport=service.transport) as database:
        yield database

"""Shared fixtures: an in-memory content store behind a fake HTTP session."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
from urllib.parse import urlparse

import pytest

from contentfix.cms.client import ContentStoreClient
from contentfix.core.config import ClientConfig, ContentFixConfig
from contentfix.core.models import Credentials
from contentfix.fix.context import RunContext
from contentfix.fix.writer import ContentWriter
from contentfix.store.sqlite import SQLiteStore

SITE_URL = "https://example.com"


def no_sleep(_seconds: float) -> None:
    pass


class FakeResponse:
    def __init__(self, status_code: int, data: Any = None, headers: dict | None = None):
        self.status_code = status_code
        self._data = data
        self.headers = headers or {}
        self.text = "" if data is None else str(data)

    def json(self) -> Any:
        return self._data


class FakeCMS:
    """Stands in for ``requests.Session`` in front of a content API.

    Documents are stored per (kind, id).  ``write_filters`` lets a test
    change what the store keeps on a POST, e.g. to simulate truncation or a
    write that does not stick.  ``auth_status`` denies every request,
    ``list_status`` only the listing endpoints.
    """

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.docs: dict[tuple[str, int], dict[str, Any]] = {}
        self.media: dict[int, dict[str, Any]] = {}
        self.calls: list[tuple[str, str, dict | None, dict | None]] = []
        self.write_filters: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {}
        self.fail_writes: set[int] = set()
        self.auth_status: int | None = None
        self.list_status: int | None = None

    # -- setup helpers --------------------------------------------------

    def add(
        self,
        doc_id: int,
        title: str = "A reasonable post title for testing",
        content: str = "<p>Hello world.</p>",
        excerpt: str = "",
        kind: str = "posts",
        modified: str | None = None,
        link: str | None = None,
    ) -> dict[str, Any]:
        doc = {
            "id": doc_id,
            "title": title,
            "content": content,
            "excerpt": excerpt,
            "modified": modified or f"2026-01-{doc_id % 28 + 1:02d}T10:00:00",
            "link": link if link is not None else f"{SITE_URL}/{kind}/{doc_id}/",
            "status": "publish",
        }
        self.docs[(kind, doc_id)] = doc
        return doc

    def add_media(self, media_id: int, width: int, height: int) -> None:
        self.media[media_id] = {
            "id": media_id,
            "alt_text": "",
            "media_details": {"width": width, "height": height},
        }

    def doc(self, doc_id: int, kind: str = "posts") -> dict[str, Any]:
        return self.docs[(kind, doc_id)]

    @property
    def writes(self) -> list[tuple[str, str, dict | None, dict | None]]:
        return [c for c in self.calls if c[0] == "POST"]

    # -- requests.Session interface --------------------------------------

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        path = urlparse(url).path.split("/content-api/", 1)[1]
        self.calls.append((method, path, params, json))
        if self.auth_status:
            return FakeResponse(self.auth_status, {"message": "denied"})

        parts = path.strip("/").split("/")
        if parts == ["users", "me"]:
            return FakeResponse(200, {"id": 1, "name": "admin"})
        if parts[0] == "media":
            return self._media(method, int(parts[1]), json)
        if len(parts) == 1 and self.list_status:
            return FakeResponse(self.list_status, {"message": "denied"})
        if len(parts) == 1:
            return self._list(parts[0], params or {})
        return self._document(method, parts[0], int(parts[1]), json)

    def _api(self, doc: dict[str, Any]) -> dict[str, Any]:
        data = dict(doc)
        for key in ("title", "content", "excerpt"):
            data[key] = {"raw": doc[key], "rendered": doc[key]}
        return data

    def _list(self, kind: str, params: dict[str, Any]) -> FakeResponse:
        items = sorted(
            (d for (k, _), d in self.docs.items() if k == kind),
            key=lambda d: d["modified"],
            reverse=True,
        )
        per_page = int(params.get("per_page", 10))
        page = int(params.get("page", 1))
        total_pages = max(1, -(-len(items) // per_page))
        chunk = items[(page - 1) * per_page: page * per_page]
        return FakeResponse(
            200, [self._api(d) for d in chunk], {"X-WP-TotalPages": str(total_pages)}
        )

    def _document(self, method: str, kind: str, doc_id: int, body: dict | None) -> FakeResponse:
        doc = self.docs.get((kind, doc_id))
        if doc is None:
            return FakeResponse(404, {"code": "rest_post_invalid_id"})
        if method == "GET":
            return FakeResponse(200, self._api(doc))
        if doc_id in self.fail_writes:
            return FakeResponse(500, {"message": "internal error"})
        updated = {**doc, **(body or {})}
        if doc_id in self.write_filters:
            updated = self.write_filters[doc_id](updated)
        self.docs[(kind, doc_id)] = updated
        return FakeResponse(200, self._api(updated))

    def _media(self, method: str, media_id: int, body: dict | None) -> FakeResponse:
        item = self.media.get(media_id)
        if item is None:
            return FakeResponse(404, {"code": "rest_post_invalid_id"})
        if method == "POST":
            item.update(body or {})
        return FakeResponse(200, item)


class ScriptedWriter(ContentWriter):
    """A generation backend that returns queued responses."""

    def __init__(self, expansions: list[str | None] | None = None) -> None:
        super().__init__(api_key="test-key")
        self.expansions = list(expansions or [])
        self.expand_calls: list[int] = []

    def _complete(self, system: str, prompt: str, max_tokens: int) -> str | None:
        return None

    def expand(self, title: str, html: str, target_words: int) -> str | None:
        self.expand_calls.append(target_words)
        return self.expansions.pop(0) if self.expansions else None


def words_html(count: int, word: str = "word") -> str:
    return "<p>" + " ".join([word] * count) + "</p>"


@pytest.fixture
def cms() -> FakeCMS:
    return FakeCMS()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(url=SITE_URL, username="admin", application_password="app-secret")


@pytest.fixture
def client(cms: FakeCMS, credentials: Credentials) -> ContentStoreClient:
    return ContentStoreClient(
        credentials, ClientConfig(page_delay=0), session=cms, sleep=no_sleep
    )


@pytest.fixture
def ctx() -> RunContext:
    return RunContext()


@pytest.fixture
def fast_config() -> ContentFixConfig:
    config = ContentFixConfig()
    config.verification.settle_delay = 0
    config.remediation.reanalysis_delay = 0
    config.client.page_delay = 0
    return config


@pytest.fixture
def store(tmp_path: Path) -> SQLiteStore:
    return SQLiteStore(tmp_path)

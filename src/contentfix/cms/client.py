"""HTTP client for the remote content store.

All endpoints live under ``{base}/content-api/``::

    GET  /content-api/{kind}/{id}
    GET  /content-api/{kind}?per_page=N&page=P&status=publish
    POST /content-api/{kind}/{id}          (changed fields only)
    POST /content-api/media/{id}           (alt_text)
    GET  /content-api/users/me             (connection test)

Authentication is HTTP Basic with ``username:application-secret``.  Reads ask
for ``context=edit`` so the raw field is returned next to the rendered one.
"""

from __future__ import annotations

import base64
import logging
import time
from typing import Any, Callable, Iterator

import requests

from contentfix.core.config import ClientConfig
from contentfix.core.models import Credentials, Document

logger = logging.getLogger(__name__)

CONTENT_KINDS = ("posts", "pages")

# Fields the store accepts on a document update.
WRITABLE_FIELDS = (
    "title",
    "content",
    "excerpt",
    "modified",
    "status",
    "comment_status",
    "ping_status",
)


class ContentStoreError(Exception):
    """A request to the content store failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class AccessError(ContentStoreError):
    """The site or a document is not reachable or not authorized."""


def basic_auth_header(username: str, secret: str) -> str:
    token = base64.b64encode(f"{username}:{secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class ContentStoreClient:
    """Sequential client for one site's content API.

    Usage::

        client = ContentStoreClient(site.credentials())
        doc = client.fetch_document(42, "posts")
        client.update_document(42, "posts", {"excerpt": "..."})
    """

    def __init__(
        self,
        credentials: Credentials,
        config: ClientConfig | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.credentials = credentials
        self.config = config or ClientConfig()
        self.base_url = credentials.url.rstrip("/") + "/content-api"
        self._session = session or requests.Session()
        self._sleep = sleep
        self._session.headers.update({
            "Authorization": basic_auth_header(
                credentials.username, credentials.application_password
            ),
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        })

    # ------------------------------------------------------------------
    # Low-level request
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug("%s %s params=%s body_keys=%s", method, url, params,
                     sorted(json_body) if json_body else None)
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise ContentStoreError(f"{method} {url} failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise AccessError(
                _access_message(response.status_code), status=response.status_code
            )
        if response.status_code >= 400:
            raise ContentStoreError(
                f"{method} {url} returned {response.status_code}: {response.text[:300]}",
                status=response.status_code,
            )
        return response

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def test_connection(self) -> dict[str, Any]:
        """Check that the credentials work.  Raises :class:`AccessError` otherwise."""
        try:
            response = self._request("GET", "users/me")
        except AccessError:
            raise
        except ContentStoreError as exc:
            if exc.status == 404:
                raise AccessError(
                    "Content API not found. Check the site URL.", status=404
                ) from exc
            raise AccessError(str(exc), status=exc.status) from exc
        return response.json()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def fetch_document(self, content_id: int, kind: str, fresh: bool = False) -> Document:
        """Fetch one document.

        With ``fresh=True`` a cache-busting parameter and no-cache headers are
        sent so that a just-written value is read back from the origin.
        """
        params: dict[str, Any] = {"context": "edit"}
        headers = None
        if fresh:
            params["_cb"] = str(int(time.time() * 1000))
            headers = {"Cache-Control": "no-cache", "Pragma": "no-cache"}
        response = self._request("GET", f"{kind}/{content_id}", params=params, headers=headers)
        return Document.from_api(response.json(), kind)

    def find_document(self, content_id: int, fresh: bool = False) -> Document:
        """Probe posts then pages; the first successful fetch wins."""
        last_error: ContentStoreError | None = None
        for kind in CONTENT_KINDS:
            try:
                return self.fetch_document(content_id, kind, fresh=fresh)
            except AccessError:
                raise
            except ContentStoreError as exc:
                last_error = exc
        raise ContentStoreError(
            f"Content {content_id} not found as post or page"
            + (f" ({last_error})" if last_error else ""),
            status=404,
        )

    def iter_documents(self, kind: str, max_items: int | None = None) -> Iterator[Document]:
        """Yield published documents page by page, newest first."""
        per_page = self.config.per_page
        yielded = 0
        for page in range(1, self.config.max_pages + 1):
            if page > 1:
                self._sleep(self.config.page_delay)
            response = self._request(
                "GET",
                kind,
                params={
                    "per_page": per_page,
                    "page": page,
                    "status": "publish",
                    "context": "edit",
                },
            )
            items = response.json() or []
            for item in items:
                yield Document.from_api(item, kind)
                yielded += 1
                if max_items is not None and yielded >= max_items:
                    return
            total_pages = response.headers.get("X-WP-TotalPages")
            if len(items) < per_page or (total_pages and page >= int(total_pages)):
                return

    def list_documents(self, kind: str, max_items: int | None = None) -> list[Document]:
        return list(self.iter_documents(kind, max_items=max_items))

    def recent_documents(self, limit: int) -> list[Document]:
        """The most recently modified posts and pages, ``limit`` in total."""
        docs: list[Document] = []
        for kind in CONTENT_KINDS:
            try:
                docs.extend(self.list_documents(kind, max_items=limit))
            except AccessError:
                raise
            except ContentStoreError as exc:
                logger.warning("Could not list %s: %s", kind, exc)
        docs.sort(key=lambda d: d.modified, reverse=True)
        return docs[:limit]

    def update_document(
        self, content_id: int, kind: str, payload: dict[str, Any]
    ) -> Document:
        """Write the changed fields of ``payload`` back to the store.

        The current state is fetched first and only fields that differ from it
        are sent, so every unspecified field keeps its stored value.
        """
        unknown = set(payload) - set(WRITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not writable: {', '.join(sorted(unknown))}")

        current = self.fetch_document(content_id, kind, fresh=True)
        body = {
            key: value
            for key, value in payload.items()
            if getattr(current, key, None) != value
        }
        if not body:
            return current

        response = self._request("POST", f"{kind}/{content_id}", json_body=body)
        return Document.from_api(response.json(), kind)

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def fetch_media(self, media_id: int) -> dict[str, Any]:
        return self._request("GET", f"media/{media_id}", params={"context": "edit"}).json()

    def update_media(self, media_id: int, alt_text: str) -> dict[str, Any]:
        return self._request("POST", f"media/{media_id}", json_body={"alt_text": alt_text}).json()


def _access_message(status: int) -> str:
    if status == 401:
        return "Authentication failed. Check the username and application password."
    return "Access forbidden. The user may not have sufficient permissions."

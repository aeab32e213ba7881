"""HTTP client for the remote document store."""
import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class HttpDocumentStore:
    """Talks to a JSON document API laid out by path.

    ``GET /{path}`` returns a document (404 when absent), ``PUT`` replaces it,
    ``PATCH`` merges top-level fields, ``DELETE`` removes it. Reading a
    collection path returns ``{"documents": {doc_id: data}}``.
    Network errors propagate as ``requests.RequestException``.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 2.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Accept"] = "application/json"
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.strip('/')}"

    def get(self, path: str) -> Optional[dict]:
        resp = self.session.get(self._url(path), timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def set(self, path: str, data: dict, merge: bool = False) -> None:
        method = self.session.patch if merge else self.session.put
        resp = method(self._url(path), json=data, timeout=self.timeout)
        resp.raise_for_status()
        logger.debug("Remote write ok: %s", path)

    def delete(self, path: str) -> None:
        resp = self.session.delete(self._url(path), timeout=self.timeout)
        if resp.status_code != 404:
            resp.raise_for_status()

    def list(self, collection: str) -> dict[str, dict]:
        resp = self.session.get(self._url(collection), timeout=self.timeout)
        if resp.status_code == 404:
            return {}
        resp.raise_for_status()
        return resp.json().get("documents", {})

    def close(self) -> None:
        self.session.close()

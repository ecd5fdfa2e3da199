"""Wikimedia HTTP access: base map download, redirect lookups, and page export."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import requests

from .config import ProjectConfig


_LOGGER = logging.getLogger("qualitymap.wiki")


class WikimediaClient:
    """Thin `requests` wrapper around the MediaWiki endpoints used by the build.

    Requests are sent one at a time and are never retried; any HTTP error
    status is raised as `requests.HTTPError`.
    """

    def __init__(self, cfg: ProjectConfig, session: requests.Session | None = None) -> None:
        self.cfg = cfg
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"User-Agent": cfg.user_agent})

    def __enter__(self) -> WikimediaClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def fetch_bytes(self, url: str) -> bytes:
        response = self._session.get(url, timeout=self.cfg.request_timeout_s)
        response.raise_for_status()
        return response.content

    def query_redirects(self, titles: Sequence[str]) -> dict[str, str]:
        """Resolve `titles` through the query API and return redirect sources to targets."""
        payload = self._post(
            self.cfg.api_url,
            data={
                "action": "query",
                "format": "json",
                "titles": "|".join(titles),
                "redirects": 1,
                "formatversion": "2",
            },
        ).json()
        if not isinstance(payload, Mapping):
            raise RuntimeError("Query API returned a non-object JSON payload")
        if "error" in payload:
            error = payload["error"]
            info = error.get("info") if isinstance(error, Mapping) else error
            raise RuntimeError(f"Query API error: {info}")

        query = payload.get("query", {})
        redirects_raw = query.get("redirects", []) if isinstance(query, Mapping) else []
        redirects: dict[str, str] = {}
        if isinstance(redirects_raw, list):
            for row in redirects_raw:
                if not isinstance(row, Mapping):
                    continue
                source = row.get("from")
                target = row.get("to")
                if isinstance(source, str) and isinstance(target, str):
                    redirects[source] = target
        return redirects

    def export_pages(self, titles: Sequence[str]) -> str:
        """Export the current revision of every page in `titles` as one XML dump."""
        response = self._post(
            self.cfg.export_url,
            data={
                "title": "Special:Export",
                "pages": "\n".join(titles),
                "curonly": 1,
            },
        )
        return response.text

    def _post(self, url: str, *, data: Mapping[str, Any]) -> requests.Response:
        _LOGGER.debug("POST %s", url)
        # Form-encoded body; requests sets the Content-Type header.
        response = self._session.post(url, data=dict(data), timeout=self.cfg.request_timeout_s)
        response.raise_for_status()
        return response

"""Remote collaborators consumed by the resolver.

``IndexFetcher`` is the capability the resolver depends on; tests substitute
fixed fixture data, the CLI uses ``HttpIndexFetcher``.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from constants import Constants
from common.http_client import get_json, robust_get
from common.logging_utils import extra_context, is_debug_enabled, safe_url

from .errors import FetchError
from .models import TagEntry

logger = logging.getLogger(__name__)


class IndexFetcher(ABC):
    """Read-only access to the package index and the image tag registry."""

    @abstractmethod
    def fetch_index_document(self) -> str:
        """Return the whole package-index listing."""

    @abstractmethod
    def fetch_tags(self, prefix: str) -> List[TagEntry]:
        """Return registry tags whose name matches ``prefix`` server-side."""


class HttpIndexFetcher(IndexFetcher):
    """Fetch the listing and registry tags over HTTP."""

    def __init__(self, index_url: Optional[str] = None, tag_registry_url: Optional[str] = None):
        self.index_url = index_url or Constants.INDEX_URL
        self.tag_registry_url = tag_registry_url or Constants.TAG_REGISTRY_URL

    def fetch_index_document(self) -> str:
        status_code, _, text = robust_get(self.index_url)
        if status_code != 200:
            raise FetchError(
                "Failed to fetch the package index",
                url=safe_url(self.index_url),
                status_code=status_code or None,
            )
        return text

    def fetch_tags(self, prefix: str) -> List[TagEntry]:
        params = {"page_size": Constants.TAG_PAGE_SIZE, "name": prefix}
        status_code, _, data = get_json(
            self.tag_registry_url,
            headers={"Accept": "application/json"},
            params=params,
        )
        if status_code != 200:
            raise FetchError(
                "Failed to fetch image tags",
                url=safe_url(self.tag_registry_url),
                status_code=status_code or None,
            )
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise FetchError(
                "Unexpected tag registry response",
                url=safe_url(self.tag_registry_url),
                status_code=status_code,
            )

        if is_debug_enabled(logger):
            logger.debug(
                "Found %s tags",
                data.get("count", len(data["results"])),
                extra=extra_context(event="tag_lookup", component="fetchers", prefix=prefix),
            )

        entries = []
        for item in data["results"]:
            name = item.get("name") if isinstance(item, dict) else None
            if isinstance(name, str):
                entries.append(TagEntry(name=name))
        return entries

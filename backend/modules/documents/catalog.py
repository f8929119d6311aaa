"""
Document type catalog.

Fetches the published document-types index and per-type validation specs
over HTTP. Both are cached in-process for CACHE_TTL_SECONDS.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from shared.config import Settings, get_settings

from .exceptions import CatalogFetchError
from .models import DocumentTypesIndex, ValidationSpec

logger = logging.getLogger(__name__)


class DocumentTypeCatalog:
    """
    Lookup of document types and their validation specs.

    Failures raise CatalogFetchError; callers that treat the catalog as
    optional should use find_validation_spec(), which degrades to None.
    """

    CACHE_TTL_SECONDS = 300  # 5 minutes

    def __init__(self, settings: Optional[Settings] = None, timeout: float = 30.0):
        self._settings = settings or get_settings()
        self._timeout = timeout
        self._index: Optional[DocumentTypesIndex] = None
        self._index_timestamp: Optional[datetime] = None
        self._specs: dict[str, tuple[ValidationSpec, datetime]] = {}

    def _is_fresh(self, timestamp: Optional[datetime]) -> bool:
        if not timestamp:
            return False
        age = (datetime.now(timezone.utc) - timestamp).total_seconds()
        return age < self.CACHE_TTL_SECONDS

    async def _fetch_json(self, url: str) -> Any:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, timeout=self._timeout)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            raise CatalogFetchError(f"Failed to fetch {url}: {e}")
        except ValueError as e:
            raise CatalogFetchError(f"Invalid JSON from {url}: {e}")

    async def get_index(self) -> DocumentTypesIndex:
        """Get the document-types index, refreshing the cache if needed."""
        if self._index is not None and self._is_fresh(self._index_timestamp):
            return self._index

        data = await self._fetch_json(self._settings.document_types_index_url)
        if not isinstance(data, dict) or not isinstance(data.get("types"), list):
            raise CatalogFetchError("Invalid document-types index (missing types)")

        try:
            index = DocumentTypesIndex.model_validate(data)
        except ValidationError as e:
            raise CatalogFetchError(f"Invalid document-types index: {e}")

        self._index = index
        self._index_timestamp = datetime.now(timezone.utc)
        logger.info(f"Refreshed document types index: {len(self._index.types)} types")
        return self._index

    async def get_validation_spec(self, validation_slug: str) -> ValidationSpec:
        """Get the validation spec for a slug, refreshing the cache if needed."""
        cached = self._specs.get(validation_slug)
        if cached and self._is_fresh(cached[1]):
            return cached[0]

        base = self._settings.validation_spec_base_url.rstrip("/")
        data = await self._fetch_json(f"{base}/{quote(validation_slug, safe='')}.json")
        if not isinstance(data, dict):
            raise CatalogFetchError(f"Invalid validation spec ({validation_slug})")

        self._specs[validation_slug] = (data, datetime.now(timezone.utc))
        return data

    async def find_validation_slug(self, type_id: Optional[str]) -> Optional[str]:
        """Validation slug for a type, or None when unknown or unavailable."""
        if not type_id:
            return None
        try:
            index = await self.get_index()
        except CatalogFetchError:
            logger.warning("Could not load document types index", exc_info=True)
            return None

        entry = index.find(type_id)
        return entry.validation_slug if entry else None

    async def find_validation_spec(self, validation_slug: Optional[str]) -> Optional[ValidationSpec]:
        """Validation spec for a slug, or None when unavailable."""
        if not validation_slug:
            return None
        try:
            return await self.get_validation_spec(validation_slug)
        except CatalogFetchError:
            logger.warning(f"Could not load validation spec {validation_slug}", exc_info=True)
            return None

    def clear_cache(self) -> None:
        self._index = None
        self._index_timestamp = None
        self._specs.clear()

"""
Parameter Service Client

Reads reference data from the parameter service through its GraphQL
endpoint. The cache calls it only on misses.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from ...core.config import Settings, get_settings
from ...domain.cache.entities import ENTITY_CLASSES, CachedEntity
from ...domain.cache.exceptions import UpstreamUnavailableException
from ...domain.cache.value_objects import EntityKind

logger = structlog.get_logger(__name__)


class UpstreamClient(ABC):
    """Source of truth consulted on cache misses."""

    @abstractmethod
    async def fetch_by_key(self, kind: EntityKind, key: str) -> Optional[CachedEntity]:
        """Entity of ``kind`` named ``key``, or None if the upstream has none."""

    @abstractmethod
    async def fetch_all(self, kind: EntityKind) -> List[CachedEntity]:
        """Every entity of ``kind``."""

    async def close(self) -> None:
        """Release client resources."""


# Day tags as the parameter service still names them
LEGACY_DAY_TYPES = {
    "HOY": "TODAY",
    "AYER": "YESTERDAY",
    "MANANA": "TOMORROW",
    "REPROCESO": "REPROCESS",
    "FESTIVO": "HOLIDAY",
}

QUERIES = {
    "getSystemRate": (
        "query getSystemRate($input: String!) "
        "{ systemRate(name: $input) { id name rate } }"
    ),
    "allSystemRates": "query allSystemRates { systemRates { id name rate } }",
    "allSystemDates": "query allSystemDates { systemDates { id name day } }",
    "allDocumentTypes": (
        "query allDocumentTypes { documentTypes { id name expiration } }"
    ),
}

# (query name, response field) used to list each kind
LIST_QUERIES = {
    EntityKind.SYSTEM_RATE: ("allSystemRates", "systemRates"),
    EntityKind.SYSTEM_DATE: ("allSystemDates", "systemDates"),
    EntityKind.DOCUMENT_TYPE: ("allDocumentTypes", "documentTypes"),
}


class ParamServiceClient(UpstreamClient):
    """
    GraphQL client for the parameter service.

    Every failure (transport, HTTP status, GraphQL errors or a malformed
    payload) is raised as UpstreamUnavailableException. No retries here.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = settings or get_settings()
        self._client = client or httpx.AsyncClient(
            base_url=settings.PARAM_SERVICE_URL,
            timeout=settings.PARAM_SERVICE_TIMEOUT,
            headers={"Accept": "application/json"},
        )
        self._adapters = {
            kind: TypeAdapter(List[entity_cls])
            for kind, entity_cls in ENTITY_CLASSES.items()
        }

    async def _query(
        self,
        kind: EntityKind,
        query_name: str,
        variables: Optional[Dict[str, Any]] = None,
        key: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"query": QUERIES[query_name], "variables": variables or {}}

        try:
            response = await self._client.post("/param/graphql", json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                "Parameter service request failed",
                query=query_name,
                kind=kind.value,
                error=str(e),
            )
            raise UpstreamUnavailableException(
                message=f"Parameter service request {query_name} failed",
                kind=kind,
                key=key,
                original_error=e,
            )

        if not isinstance(payload, dict) or payload.get("errors"):
            errors = payload.get("errors") if isinstance(payload, dict) else payload
            logger.error(
                "Parameter service returned errors",
                query=query_name,
                kind=kind.value,
                errors=errors,
            )
            raise UpstreamUnavailableException(
                message=f"Parameter service answered {query_name} with errors",
                kind=kind,
                key=key,
            )

        return payload.get("data") or {}

    def _parse(self, kind: EntityKind, items: Any, key: Optional[str] = None) -> List[CachedEntity]:
        if items is None:
            return []
        if not isinstance(items, list):
            items = [items]

        if kind is EntityKind.SYSTEM_DATE:
            items = [
                {**item, "name": LEGACY_DAY_TYPES.get(item.get("name"), item.get("name"))}
                if isinstance(item, dict)
                else item
                for item in items
            ]

        try:
            return self._adapters[kind].validate_python(items)
        except ValidationError as e:
            logger.error(
                "Malformed parameter service payload",
                kind=kind.value,
                errors=e.error_count(),
            )
            raise UpstreamUnavailableException(
                message=f"Malformed {kind.value} payload from parameter service",
                kind=kind,
                key=key,
                original_error=e,
            )

    async def fetch_by_key(self, kind: EntityKind, key: str) -> Optional[CachedEntity]:
        if kind is EntityKind.SYSTEM_RATE:
            data = await self._query(kind, "getSystemRate", {"input": key}, key=key)
            found = self._parse(kind, data.get("systemRate"), key=key)
            return found[0] if found else None

        # No single-item query for the other kinds
        entity_cls = ENTITY_CLASSES[kind]
        for entity in await self.fetch_all(kind):
            if entity_cls.name_key(entity.name) == key:
                return entity
        return None

    async def fetch_all(self, kind: EntityKind) -> List[CachedEntity]:
        query_name, field = LIST_QUERIES[kind]
        data = await self._query(kind, query_name)
        entities = self._parse(kind, data.get(field))
        logger.debug(
            "Read from parameter service", kind=kind.value, count=len(entities)
        )
        return entities

    async def close(self) -> None:
        await self._client.aclose()

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

import httpx
from pydantic import ValidationError

from enjoyrecord.core.config import Settings
from enjoyrecord.schemas.search import SearchItem
from enjoyrecord.services.providers.errors import (
    ConfigurationError,
    ParseError,
    ProviderError,
    UpstreamHTTPError,
    UpstreamTimeout,
)

logger = logging.getLogger(__name__)

MAX_RESULTS = 3
_REDACTED_PARAMS = ("api_key", "apikey", "key")


@dataclass(frozen=True)
class ProviderConfig:
    tmdb_api_key: str | None = None
    omdb_api_key: str | None = None
    rawg_api_key: str | None = None
    timeout_seconds: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderConfig":
        return cls(
            tmdb_api_key=settings.tmdb_api_key,
            omdb_api_key=settings.omdb_api_key,
            rawg_api_key=settings.rawg_api_key,
            timeout_seconds=settings.search_timeout_seconds,
        )


def redact_url(value: str | httpx.URL) -> str:
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError):
        return str(value)
    for name in _REDACTED_PARAMS:
        if name in url.params:
            url = url.copy_set_param(name, "REDACTED")
    return str(url)


class SearchProvider:
    """One external catalog. Subclasses map the payload into ``SearchItem``s."""

    name: ClassVar[str]
    label: ClassVar[str]
    key_env: ClassVar[str | None] = None

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
    ):
        self._client = client
        self._api_key = api_key
        self._timeout = timeout
        self.config_error: ConfigurationError | None = None
        if self.key_env and not api_key:
            self.config_error = ConfigurationError(self.name, f"缺少 {self.key_env}")

    def _ensure_configured(self) -> None:
        if self.config_error is not None:
            logger.warning(
                "provider not configured",
                extra={"provider": self.name, "error": self.config_error.message},
            )
            raise self.config_error

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        request_url = httpx.URL(url, params=params)
        safe_url = redact_url(request_url)
        logger.info("provider request", extra={"provider": self.name, "url": safe_url})

        try:
            response = await self._client.get(request_url, headers=headers, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            logger.error(
                "provider fetch failed",
                extra={"provider": self.name, "url": safe_url, "error": "timeout"},
            )
            raise UpstreamTimeout(self.name, f"{self.label} 请求超时") from exc
        except httpx.HTTPError as exc:
            logger.error(
                "provider fetch failed",
                extra={"provider": self.name, "url": safe_url, "error": str(exc) or type(exc).__name__},
            )
            raise ProviderError(self.name, f"{self.label} 请求失败") from exc

        status = response.status_code
        if not response.is_success:
            logger.warning(
                "provider response",
                extra={"provider": self.name, "url": safe_url, "status": status},
            )
            raise UpstreamHTTPError(self.name, status, f"{self.label} 请求失败 (HTTP {status})")

        logger.info(
            "provider response",
            extra={"provider": self.name, "url": safe_url, "status": status},
        )
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(self.name, f"{self.label} 返回数据无法解析") from exc

    def _list_field(self, data: Any, field: str, *, required: bool = True) -> list[Any]:
        if not isinstance(data, dict):
            raise ParseError(self.name, f"{self.label} 返回数据无法解析")
        value = data.get(field)
        if value is None and not required:
            return []
        if not isinstance(value, list):
            raise ParseError(self.name, f"{self.label} 返回数据无法解析")
        return value

    def _build_items(self, rows: list[Any], limit: int | None = MAX_RESULTS) -> list[SearchItem]:
        out: list[SearchItem] = []
        for row in rows[:limit]:
            if not isinstance(row, dict):
                continue
            try:
                item = self.map_item(row)
            except (ValueError, TypeError, ValidationError) as exc:
                logger.warning(
                    "provider row unmappable",
                    extra={"provider": self.name, "error": str(exc)},
                )
                raise ParseError(self.name, f"{self.label} 返回数据无法解析") from exc
            if item is not None:
                out.append(item)
        return out

    def map_item(self, row: dict[str, Any]) -> SearchItem | None:
        raise NotImplementedError

    async def search(self, query: str) -> list[SearchItem]:
        raise NotImplementedError

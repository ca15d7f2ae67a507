from __future__ import annotations

from fastapi import HTTPException

from enjoyrecord.services.providers.errors import (
    InvalidToken,
    NoProvidersSucceeded,
    ProviderError,
    UpstreamTimeout,
)

SEARCH_TIMEOUT_DETAIL = "搜索请求超时，请稍后重试"
NEODB_TIMEOUT_DETAIL = "NeoDB API 请求超时，请稍后重试"


def not_found(exc: LookupError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc) or "Not found.")


def is_timeout(exc: ProviderError) -> bool:
    if isinstance(exc, UpstreamTimeout):
        return True
    return isinstance(exc, NoProvidersSucceeded) and exc.timed_out


def provider_error(
    exc: ProviderError,
    *,
    timeout_detail: str = SEARCH_TIMEOUT_DETAIL,
    default_status: int = 502,
) -> HTTPException:
    if is_timeout(exc):
        return HTTPException(status_code=504, detail=timeout_detail)
    if isinstance(exc, InvalidToken):
        return HTTPException(status_code=401, detail=exc.message)
    return HTTPException(status_code=default_status, detail=exc.message)


def value_error(exc: ValueError, *, default_status: int = 400) -> HTTPException:
    return HTTPException(status_code=default_status, detail=str(exc))

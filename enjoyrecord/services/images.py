from __future__ import annotations

import base64
import logging

import httpx

from enjoyrecord.core.config import settings

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_CONTENT_TYPE = "image/jpeg"


class ImageFetchError(RuntimeError):
    pass


def to_data_url(content: bytes, content_type: str | None) -> str:
    media_type = (content_type or "").split(";", 1)[0].strip() or DEFAULT_CONTENT_TYPE
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


async def fetch_image_data_url(url: str, *, client: httpx.AsyncClient | None = None) -> str:
    """Download an image and inline it as a data URL (used by share cards)."""
    headers = {"User-Agent": BROWSER_USER_AGENT}

    async def _get(c: httpx.AsyncClient) -> httpx.Response:
        response = await c.get(url, headers=headers, timeout=settings.image_timeout_seconds)
        response.raise_for_status()
        return response

    try:
        if client is not None:
            response = await _get(client)
        else:
            async with httpx.AsyncClient(proxy=settings.http_proxy, follow_redirects=True) as owned:
                response = await _get(owned)
    except httpx.TimeoutException as exc:
        logger.warning("image fetch failed", extra={"url": url, "error": "timeout"})
        raise ImageFetchError("Request timeout") from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.warning("image fetch failed", extra={"url": url, "status": status})
        raise ImageFetchError(f"HTTP {status}") from exc
    except httpx.HTTPError as exc:
        logger.warning("image fetch failed", extra={"url": url, "error": str(exc)})
        raise ImageFetchError(str(exc) or "Failed to fetch image") from exc
    except httpx.InvalidURL as exc:
        logger.warning("image fetch failed", extra={"url": url, "error": str(exc)})
        raise ImageFetchError("Failed to fetch image") from exc

    return to_data_url(response.content, response.headers.get("content-type"))

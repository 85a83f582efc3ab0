import base64
import json
import logging
from typing import Any, Optional
from urllib.parse import urlsplit

import aiohttp

logger = logging.getLogger(__name__)


def safe_url(url: str) -> str:
    """Strip query strings (which may carry keys) before logging a URL."""
    if url.startswith('data:'):
        return 'data:...'
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


def bearer(api_key: str) -> dict:
    return {'Authorization': f'Bearer {api_key}'}


async def request_json(method: str,
                       url: str,
                       headers: Optional[dict] = None,
                       json_data: Any = None,
                       data: Any = None,
                       params: Optional[dict] = None,
                       raise_for_status: bool = True) -> Any:
    kwargs = {
        'method': method.upper(),
        'url': url,
        'headers': headers or {},
    }
    if json_data is not None:
        kwargs['json'] = json_data
    elif data is not None:
        kwargs['data'] = data
    if params:
        kwargs['params'] = params

    logger.info("%s %s", kwargs['method'], safe_url(url))
    async with aiohttp.ClientSession() as session:
        async with session.request(**kwargs) as response:
            logger.debug("%s %s -> %s", kwargs['method'], safe_url(url), response.status)
            if raise_for_status:
                response.raise_for_status()
            text = await response.text()
    try:
        return json.loads(text) if text else {}
    except json.JSONDecodeError:
        logger.error("Non-JSON response from %s: %s", safe_url(url), text[:200])
        raise


async def fetch_bytes(url: str) -> tuple[bytes, str]:
    """Download ``url`` (or decode a data URI) and return (body, mime type)."""
    if url.startswith('data:'):
        header, _, payload = url.partition(',')
        mime_type = header[len('data:'):].split(';')[0] or 'application/octet-stream'
        return base64.b64decode(payload), mime_type

    logger.debug("GET %s", safe_url(url))
    async with aiohttp.ClientSession() as session:
        async with session.get(url) as response:
            response.raise_for_status()
            body = await response.read()
            mime_type = response.content_type or 'application/octet-stream'
    return body, mime_type

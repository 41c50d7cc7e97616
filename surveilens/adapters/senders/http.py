"""Shared aiohttp request helper for senders."""

from typing import Any

import aiohttp

from surveilens.domain.errors import ExternalCallError


async def request_json(method: str, url: str, **kwargs) -> Any:
    """Issue one HTTP request and return the decoded JSON body ({} if none).

    HTTP status >= 400 and transport failures raise ExternalCallError.
    """
    try:
        async with aiohttp.ClientSession() as session:
            async with session.request(method, url, **kwargs) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise ExternalCallError(f"HTTP {resp.status} from {url}: {body[:200]}")
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    return {}
                return data if data is not None else {}
    except aiohttp.ClientError as e:
        raise ExternalCallError(f"{method} {url} failed: {e}") from e

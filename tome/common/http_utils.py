"""Common HTTP utilities for the vision and search calls.

Every helper makes exactly one request with its own session and returns None on
any failure, after logging it. Callers never see transport exceptions.
"""

import aiohttp
from typing import Dict, Any, Optional
from tome.logging import get_logger

logger = get_logger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


def _session(timeout: Optional[float]) -> aiohttp.ClientSession:
    if timeout:
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout))
    return aiohttp.ClientSession()


async def post_request(
    url: str,
    headers: Dict[str, str],
    data: Dict[str, Any],
    timeout: Optional[float] = None
) -> Optional[Dict[str, Any]]:
    """
    Make an async POST request and return JSON response.

    Args:
        url: The URL to make the request to
        headers: Request headers
        data: Request data to send as JSON
        timeout: Request timeout in seconds, aiohttp default when None

    Returns:
        Response JSON data or None if request failed
    """
    try:
        async with _session(timeout) as session:
            async with session.post(url, headers=headers, json=data) as response:
                if response.status == 200:
                    return await response.json()
                else:
                    body = await response.text()
                    logger.error(f"POST {url} failed with status {response.status}: {body[:200]}")
                    return None
    except Exception as e:
        logger.error(f"POST {url} failed: {str(e)}")
        return None


async def get_request(
    url: str,
    params: Dict[str, Any],
    timeout: Optional[float] = None
) -> Optional[Dict[str, Any]]:
    """
    Make an async GET request and return the decoded JSON body.

    Returns:
        Response JSON data or None if request failed
    """
    try:
        async with _session(timeout) as session:
            async with session.get(url, params=params) as response:
                if response.status == 200:
                    # some APIs answer JSON with a javascript content type
                    return await response.json(content_type=None)
                else:
                    logger.warning(f"GET {url} failed with status {response.status}")
                    return None
    except Exception as e:
        logger.warning(f"GET {url} failed: {str(e)}")
        return None


async def head_status(url: str, timeout: Optional[float] = None) -> Optional[int]:
    """Return the HTTP status of a HEAD request, None when the host is unreachable."""
    try:
        async with _session(timeout) as session:
            async with session.head(url, allow_redirects=True) as response:
                return response.status
    except Exception as e:
        logger.debug(f"HEAD {url} failed: {str(e)}")
        return None


async def make_anthropic_request(
    api_key: str,
    model: str,
    prompt: str,
    image_base64: str,
    media_type: str = "image/png",
    max_tokens: int = 1000,
) -> Optional[str]:
    """
    Send one image plus an instruction prompt to the Anthropic Messages API.

    Args:
        api_key: Anthropic API key
        model: Model id to use
        prompt: The instruction text
        image_base64: Base64 encoded image
        media_type: MIME type of the image
        max_tokens: Maximum tokens in response

    Returns:
        Text of the first content block or None if request failed
    """
    headers = {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "Content-Type": "application/json"
    }
    data = {
        "model": model,
        "max_tokens": max_tokens,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": media_type,
                            "data": image_base64,
                        },
                    },
                ],
            }
        ],
    }

    response = await post_request(ANTHROPIC_API_URL, headers, data)
    if not response:
        return None

    for block in response.get("content") or []:
        if block.get("type") == "text" and block.get("text"):
            return block["text"].strip()

    logger.warning("Vision response contained no text block")
    return None

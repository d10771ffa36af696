from __future__ import annotations

import json
from typing import Any, Dict

import httpx
from loguru import logger

from ..errors import ConnectivityError, GatewayTimeoutError, UpstreamError
from ..schemas import GenerationRequest
from ..settings import settings


def make_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


def upstream_error_message(text: str) -> str:
    """`error.message` from a JSON error body, else `error`, else the raw text."""
    try:
        body = json.loads(text)
    except ValueError:
        return text
    if not isinstance(body, dict):
        return text
    err = body.get("error")
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    if isinstance(err, str) and err:
        return err
    return text


async def forward(req: GenerationRequest, api_key: str) -> Dict[str, Any]:
    """
    Single outbound call to DeepSeek. Returns the decoded JSON body on 2xx,
    raises a QuizProxyError subclass otherwise. Never retried.
    """
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
        "Accept": "application/json",
    }
    try:
        async with make_client(settings.UPSTREAM_TIMEOUT) as client:
            r = await client.post(settings.DEEPSEEK_API_URL, headers=headers, json=req.to_upstream())
    except httpx.TimeoutException as e:
        logger.error(f"[proxy] upstream timed out after {settings.UPSTREAM_TIMEOUT}s: {e!r}")
        raise GatewayTimeoutError("Request to DeepSeek API timed out. Please try again.") from e
    except httpx.TransportError as e:
        logger.error(f"[proxy] cannot reach upstream: {e!r}")
        raise ConnectivityError("Cannot connect to DeepSeek API. Please check your network.") from e

    logger.info(f"[proxy] DeepSeek response status: {r.status_code}")
    if not r.is_success:
        logger.error(f"[proxy] DeepSeek API error: {r.status_code} {r.text}")
        raise UpstreamError(r.status_code, upstream_error_message(r.text))

    return r.json()

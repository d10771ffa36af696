"""
Caller-side helpers: talk to the proxy endpoint, never to DeepSeek directly.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from ..errors import (
    ConnectivityError,
    GatewayTimeoutError,
    InputValidationError,
    ParseError,
    QuizProxyError,
    UpstreamError,
)
from ..schemas import ChatCompletion, Question, QuizConfig
from ..settings import settings
from .parse import parse_quiz
from .prompts import build_quiz_prompt, build_theory_prompt

THEORY_PLACEHOLDER = "Không thể tải lý thuyết lúc này: {reason}"


async def _post(payload: Dict[str, Any], timeout: float, client: Optional[httpx.AsyncClient]) -> httpx.Response:
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as c:
                return await c.post(settings.PROXY_URL, json=payload)
        return await client.post(settings.PROXY_URL, json=payload, timeout=timeout)
    except httpx.TimeoutException as e:
        raise GatewayTimeoutError("Request timeout - please retry with fewer questions") from e
    except httpx.TransportError as e:
        raise ConnectivityError(f"Network error while contacting the proxy: {e}") from e


def _raise_for_proxy_status(r: httpx.Response) -> None:
    if r.status_code == 200:
        return
    try:
        body = r.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = str(body.get("message") or r.text or r.reason_phrase)
    error = body.get("error") if isinstance(body.get("error"), str) else None
    if r.status_code == 504:
        raise GatewayTimeoutError(message)
    if r.status_code == 502:
        raise ConnectivityError(message)
    raise UpstreamError(r.status_code, message, error=error)


def _completion(r: httpx.Response) -> ChatCompletion:
    _raise_for_proxy_status(r)
    try:
        return ChatCompletion.model_validate(r.json())
    except (ValueError, ValidationError) as e:
        raise ParseError(f"DeepSeek returned an unexpected response shape: {e}") from e


async def generate_quiz(
    config: QuizConfig, api_key: str, *, client: Optional[httpx.AsyncClient] = None
) -> List[Question]:
    if not api_key:
        logger.error("[quiz] rejected: API key is empty")
        raise InputValidationError("API Key is required", error="Missing API Key")
    try:
        prompt = build_quiz_prompt(config)
    except InputValidationError as e:
        logger.error(f"[quiz] rejected: {e.error}: {e.message}")
        raise

    total = config.distribution.total()
    logger.info(f"[quiz] topic={config.topic!r} total={total} key_len={len(api_key)}")

    payload = {
        "messages": [
            {"role": "system", "content": prompt.system_text},
            {"role": "user", "content": prompt.user_text},
        ],
        "apiKey": api_key,
        "model": settings.DEFAULT_MODEL,
        "temperature": settings.DEFAULT_TEMPERATURE,
        "max_tokens": settings.DEFAULT_MAX_TOKENS,
        "response_format": {"type": "json_object"},
    }
    try:
        r = await _post(payload, settings.QUIZ_TIMEOUT, client)
        content = _completion(r).content
        logger.info(f"[quiz] content received, length={len(content)}")
        questions = parse_quiz(content, expected_total=total)
    except QuizProxyError as e:
        logger.error(f"[quiz] generation failed: {e.status_code} {e.error}: {e.message}")
        raise

    logger.info(f"[quiz] parsed {len(questions)} questions")
    return questions


async def generate_theory(topic: str, api_key: str, *, client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Markdown theory summary for `topic`. Any error status the proxy answers
    with (bad key, quota, 504, 502) is raised. Failing to reach the proxy at
    all, or a 200 body that is not a completion, comes back as a readable
    placeholder instead.
    """
    if not api_key:
        logger.error("[theory] rejected: API key is empty")
        raise InputValidationError("API Key is required", error="Missing API Key")

    logger.info(f"[theory] topic={topic!r}")
    payload = {
        "messages": [{"role": "user", "content": build_theory_prompt(topic)}],
        "apiKey": api_key,
        "model": settings.DEFAULT_MODEL,
        "temperature": 0.2,
        "max_tokens": 2000,
    }
    try:
        r = await _post(payload, settings.THEORY_TIMEOUT, client)
    except QuizProxyError as e:
        logger.error(f"[theory] proxy not reached: {e.error}: {e.message}")
        return THEORY_PLACEHOLDER.format(reason=e.message)
    try:
        return _completion(r).content
    except ParseError as e:
        logger.error(f"[theory] unexpected body: {e.message}")
        return THEORY_PLACEHOLDER.format(reason=e.message)
    except QuizProxyError as e:
        logger.error(f"[theory] proxy answered {e.status_code} {e.error}: {e.message}")
        raise


async def test_api_key(api_key: str, *, client: Optional[httpx.AsyncClient] = None) -> bool:
    if not api_key:
        return False

    payload = {
        "messages": [{"role": "user", "content": "Hello"}],
        "apiKey": api_key,
        "model": settings.DEFAULT_MODEL,
        "temperature": 0.1,
        "max_tokens": 10,
    }
    try:
        r = await _post(payload, settings.KEY_TEST_TIMEOUT, client)
    except QuizProxyError as e:
        logger.warning(f"[apikey] API key test failed: {e.error}: {e.message}")
        return False
    except Exception as e:
        logger.warning(f"[apikey] API key test failed: {e!r}")
        return False
    if r.status_code != 200:
        logger.warning(f"[apikey] API key test failed: status {r.status_code}")
    return r.status_code == 200

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from ..errors import InputValidationError, QuizProxyError, UnknownError
from ..schemas import GenerationRequest
from ..services.upstream import forward

router = APIRouter()

PROXY_PATH = "/api/deepseek-proxy"

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,PATCH,DELETE,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version"
    ),
}

GENERATION_FIELDS = ("model", "temperature", "max_tokens", "response_format")


async def quiz_proxy_error_handler(request: Request, exc: QuizProxyError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=CORS_HEADERS)


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405 and request.url.path == PROXY_PATH:
        return JSONResponse(
            status_code=405,
            content={"error": "Method not allowed", "message": "Only POST requests are accepted"},
            headers={**CORS_HEADERS, **(exc.headers or {})},
        )
    return await http_exception_handler(request, exc)


def _generation_request(body: Dict[str, Any]) -> GenerationRequest:
    api_key = body.get("apiKey")
    if not isinstance(api_key, str) or not api_key.strip():
        raise InputValidationError("API Key is required", error="Missing API Key")

    messages = body.get("messages")
    if not isinstance(messages, list) or not messages:
        raise InputValidationError("Messages must be a non-empty array", error="Invalid messages")

    fields = {k: body[k] for k in GENERATION_FIELDS if body.get(k) is not None}
    try:
        return GenerationRequest.model_validate({"messages": messages, **fields})
    except ValidationError as e:
        raise InputValidationError(str(e), error="Invalid parameters") from e


@router.api_route(PROXY_PATH, methods=["OPTIONS", "POST"])
async def deepseek_proxy(request: Request):
    # any other method is answered by method_not_allowed_handler
    if request.method.upper() == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    logger.info("[proxy] Received DeepSeek API request")
    try:
        try:
            body = await request.json()
        except ValueError as e:
            raise InputValidationError("Request body must be a JSON object", error="Invalid JSON") from e
        if not isinstance(body, dict):
            raise InputValidationError("Request body must be a JSON object", error="Invalid JSON")

        req = _generation_request(body)
        logger.info(
            f"[proxy] Forwarding to DeepSeek: model={req.model} messages={len(req.messages)} "
            f"key_len={len(body['apiKey'])}"
        )
        data = await forward(req, body["apiKey"])
        logger.info("[proxy] Request successful")
        return JSONResponse(status_code=200, content=data, headers=CORS_HEADERS)

    except QuizProxyError as e:
        logger.warning(f"[proxy] {e.status_code} {e.error}: {e.message}")
        raise
    except Exception as e:
        logger.exception(f"[proxy] unexpected error: {e}")
        raise UnknownError(str(e) or "An unexpected error occurred") from e

from __future__ import annotations

from typing import Any, Dict, Optional


class QuizProxyError(Exception):
    """
    Base failure carried through the proxy and the caller helpers.
    `error` is the short kind shown to the browser, `message` the detail.
    """
    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str, *, error: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class InputValidationError(QuizProxyError):
    status_code = 400
    error = "Invalid request"


class UpstreamError(QuizProxyError):
    """Non-success status from DeepSeek; the status is relayed as-is."""
    error = "DeepSeek API Error"

    def __init__(self, status_code: int, message: str, *, error: Optional[str] = None):
        super().__init__(message, error=error, status_code=status_code)

    def to_body(self) -> Dict[str, Any]:
        return {**super().to_body(), "status": self.status_code}


class GatewayTimeoutError(QuizProxyError):
    status_code = 504
    error = "Gateway Timeout"


class ConnectivityError(QuizProxyError):
    status_code = 502
    error = "Bad Gateway"


class ParseError(QuizProxyError):
    status_code = 422
    error = "Invalid model output"


class UnknownError(QuizProxyError):
    status_code = 500
    error = "Internal Server Error"

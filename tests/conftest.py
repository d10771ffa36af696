"""Shared test fixtures and configuration for pytest."""

import json
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient
from loguru import logger

from quizproxy.main import app
from quizproxy.schemas import QuizConfig
from quizproxy.services import upstream


def completion_body(content: str) -> dict[str, Any]:
    """Build a DeepSeek-style success body wrapping `content`."""
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "model": "deepseek-chat",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
    }


class FakeUpstream:
    """Stands in for the DeepSeek endpoint and records what the proxy sent."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.timeouts: list[float] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json=completion_body("[]")
        )

    def respond_with(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler

    def reply(self, status_code: int = 200, **kwargs: Any) -> None:
        self.handler = lambda request: httpx.Response(status_code, **kwargs)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self, timeout: float) -> httpx.AsyncClient:
        self.timeouts.append(timeout)
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle), timeout=timeout)

    @property
    def last_json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def fake_upstream(monkeypatch: pytest.MonkeyPatch) -> FakeUpstream:
    """Route the proxy's outbound calls to an in-memory upstream."""
    fake = FakeUpstream()
    monkeypatch.setattr(upstream, "make_client", fake.client)
    return fake


@pytest.fixture
def client(fake_upstream: FakeUpstream) -> TestClient:
    return TestClient(app)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def proxy_client(fake_upstream: FakeUpstream):
    """An AsyncClient whose requests land on the proxy app in-process."""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app)) as c:
        yield c


@pytest.fixture
def log_messages():
    """Collect loguru output emitted during the test."""
    messages: list[str] = []
    sink_id = logger.add(lambda msg: messages.append(str(msg)), level="DEBUG", format="{level} {message}")
    yield messages
    logger.remove(sink_id)


@pytest.fixture
def sample_config() -> QuizConfig:
    return QuizConfig.model_validate(
        {
            "topic": "Hàm số bậc ba",
            "distribution": {
                "TN": {"BIET": 1, "HIEU": 1},
                "TLN": {"VANDUNG": 1},
                "DS": {"HIEU": 1},
            },
            "additionalPrompt": "Ưu tiên câu có bảng biến thiên",
        }
    )


@pytest.fixture
def sample_questions_payload() -> list[dict[str, Any]]:
    return [
        {
            "id": "q1",
            "type": "TN",
            "difficulty": "BIET",
            "questionText": "Hàm số $y=x^3-3x$ đồng biến trên khoảng nào?",
            "options": ["$(-1;1)$", "$(1;+\\infty)$", "$(-\\infty;1)$", "$(0;2)$"],
            "correctAnswer": "B",
            "explanation": "$y'=3x^2-3>0 \\iff |x|>1$.",
        },
        {
            "id": "q2",
            "type": "TN",
            "difficulty": "HIEU",
            "questionText": "Số điểm cực trị của $y=x^3-3x$ là",
            "options": ["0", "1", "2", "3"],
            "correctAnswer": "C",
            "explanation": "$y'$ có hai nghiệm đơn.",
            "variationTableData": {
                "xNodes": ["-\\infty", "-1", "1", "+\\infty"],
                "yPrimeSigns": ["+", "-", "+"],
                "yPrimeVals": ["", "0", "0", ""],
                "yNodes": ["-\\infty", "2", "-2", "+\\infty"],
            },
        },
        {
            "id": "q3",
            "type": "TLN",
            "difficulty": "VANDUNG",
            "questionText": "Giá trị lớn nhất của $y=x^3-3x$ trên $[0;2]$?",
            "correctAnswer": 2,
            "explanation": "$y(2)=2$.",
        },
        {
            "id": "q4",
            "type": "DS",
            "difficulty": "HIEU",
            "questionText": "Cho hàm số $y=\\frac{x+1}{x-2}$.",
            "explanation": "Xét từng mệnh đề.",
            "asymptotes": ["x=2", "y=1"],
            "statements": [
                {"id": "a", "content": "Tiệm cận đứng $x=2$", "isCorrect": True},
                {"id": "b", "content": "Tiệm cận ngang $y=-1$", "isCorrect": False},
                {"id": "c", "content": "Hàm số nghịch biến trên từng khoảng", "isCorrect": True},
                {"id": "d", "content": "Đồ thị đi qua $(0;1)$", "isCorrect": False},
            ],
        },
    ]

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger

from .errors import QuizProxyError
from .settings import settings
from .routers import proxy
from .routers.proxy import PROXY_PATH, method_not_allowed_handler, quiz_proxy_error_handler

# ---------- logging ----------
logger.remove()
logger.add(
    lambda msg: print(msg, end=""),
    format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {message}",
    level=settings.LOG_LEVEL,
)

# ---------- app ----------
class AppCORSMiddleware(CORSMiddleware):
    """CORS for every route except the proxy, which answers its own pre-flight."""

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["path"] == PROXY_PATH:
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


app = FastAPI(title="DeepSeek Quiz Proxy", version="1.0.0")

# ---------- CORS ----------
app.add_middleware(
    AppCORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "Authorization", "Content-Type", "X-Requested-With"],
)

app.add_exception_handler(QuizProxyError, quiz_proxy_error_handler)
app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)

# ---------- health ----------
@app.get("/health")
def health():
    return {
        "ok": True,
        "model": settings.DEFAULT_MODEL,
        "upstream": settings.DEEPSEEK_API_URL,
        "timeout": settings.UPSTREAM_TIMEOUT,
    }

# ---------- routers ----------
app.include_router(proxy.router, tags=["proxy"])

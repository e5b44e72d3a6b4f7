"""Shared rate limiting utilities using SlowAPI."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .config import get_settings

settings = get_settings()


def client_key(request: Request) -> str:
    """Key authenticated callers by bearer token, anonymous ones by address."""

    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith("bearer "):
        return f"token:{authorization[7:][-32:]}"
    return get_remote_address(request)


limiter = Limiter(key_func=client_key, default_limits=[settings.default_rate_limit], enabled=settings.rate_limiting_enabled)


def rate_limit_handler(_: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": f"Rate limit exceeded: {exc.detail}", "code": "rate_limited"})


def apply_rate_limiter(app: FastAPI) -> None:
    """Attach the limiter middleware and exception handler to an app."""

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

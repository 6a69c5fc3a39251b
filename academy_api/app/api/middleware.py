"""
Authentication middleware.

Runs before routing, so every request outside the public set needs a
valid bearer token even when its path matches no route: an anonymous
request to an unknown path gets 401, an authenticated one gets 404.
The resolved :class:`Principal` is stored on ``request.state`` for the
role checks attached to each route.
"""

from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from academy_api.app.core.errors import AuthenticationError
from academy_api.app.core.security import authenticate_request


# Interactive documentation is served without a token.
DOC_PATHS = frozenset({"/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json"})


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"


def register_auth_gate(app: FastAPI, public_routes: Iterable[tuple[str, str]]) -> None:
    """Install the gate; ``public_routes`` holds ``(METHOD, path)`` pairs."""
    public = frozenset((method.upper(), _normalize(path)) for method, path in public_routes)

    @app.middleware("http")
    async def auth_gate(request: Request, call_next):
        path = _normalize(request.url.path)
        if path in DOC_PATHS or (request.method, path) in public:
            return await call_next(request)
        try:
            request.state.principal = authenticate_request(request.headers.get("Authorization"))
        except AuthenticationError as exc:
            return JSONResponse(
                status_code=exc.http_status,
                content=exc.to_response(),
                headers={"WWW-Authenticate": "Bearer"},
            )
        return await call_next(request)

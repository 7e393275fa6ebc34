from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .api.error_handlers import (
    oauth_reauthorization_handler,
    upstream_error_handler,
    validation_error_handler,
)
from .api.router import api_router
from .config import settings
from .core.exceptions import OAuthReauthorizationRequired, UpstreamError
from .utils.logging import setup_logging


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="CAD Notes API",
        debug=settings.debug,
        version="0.1.0",
        root_path=settings.root_path or "",
    )

    # Signed cookie session: user, Supabase and Onshape tokens, active note
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.session_https_only,
    )

    # Proxy headers (X-Forwarded-*) so redirects keep the public scheme
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    app.add_exception_handler(OAuthReauthorizationRequired, oauth_reauthorization_handler)
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(api_router)
    return app


app = create_app()

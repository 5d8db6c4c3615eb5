"""
FastAPI backend for the identity resolver.

Every response uses the ``{"success": ..., "data" | "error": ...}``
envelope. Resolver errors map to status codes:

- ``UpstreamFetchError``        -> 500 (store failed, nothing computed)
- ``MissingInputError``         -> 400
- ``GroupNotFoundError``        -> 404
- ``MergeNotImplementedError``  -> 501
"""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from resolver.api.routes import router
from resolver.errors import (
    GroupNotFoundError,
    MergeNotImplementedError,
    MissingInputError,
    ResolverError,
    UpstreamFetchError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    MissingInputError: 400,
    GroupNotFoundError: 404,
    MergeNotImplementedError: 501,
    UpstreamFetchError: 500,
}


async def resolver_error_handler(request: Request, exc: ResolverError) -> JSONResponse:
    status_code = STATUS_BY_ERROR.get(type(exc), 500)
    if status_code >= 500 and status_code != 501:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.message},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Identity Resolver API",
        description="Duplicate user detection over the Supabase user store",
    )
    app.add_exception_handler(ResolverError, resolver_error_handler)
    app.include_router(router)
    return app


app = create_app()

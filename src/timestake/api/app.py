from __future__ import annotations

import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from timestake.api.errors import ApiError, error_body, status_for_pool_error
from timestake.api.routes import router
from timestake.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from timestake.runtime.errors import PoolError
from timestake.runtime.executor_boot import build_executor as _build_executor


def build_executor():
    """Build a StakingExecutor for API runtime.

    This wrapper exists so tests can monkeypatch `timestake.api.app.build_executor`
    without reaching into runtime modules.
    """
    return _build_executor()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load pool config + attach executor
      - False: keep lightweight for unit tests; attach app.state.executor yourself
    """
    configure_structured_logging()

    app_state_executor = build_executor() if boot_runtime else None

    # Config loading in build_executor exports TIMESTAKE_MODE; read it after.
    mode = os.environ.get("TIMESTAKE_MODE", "prod").strip().lower()
    if mode == "prod":
        app = FastAPI(title="timestake pool API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="timestake pool API")

    app.state.executor = app_state_executor

    @app.exception_handler(PoolError)
    async def _pool_error_handler(_request: Request, exc: PoolError) -> JSONResponse:
        return JSONResponse(status_code=status_for_pool_error(exc), content=error_body(exc.code, exc.reason, exc.details))

    @app.exception_handler(ApiError)
    async def _api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message, exc.details))

    app.add_middleware(RequestLogMiddleware)
    app.include_router(router)

    return app

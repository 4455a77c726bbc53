"""
HTTP API for drivers and their tip totals (FastAPI).

Routes stay thin: they translate HTTP into service calls and typed service
errors into status codes. `create_app()` without arguments builds its own
container from settings during startup; tests pass a pre-wired container.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.config import Settings, get_settings
from src.container import Container, build_container
from src.domain.exceptions import NotFoundError, StoreError, ValidationError
from src.domain.models import CreateDriverRequest
from src.utils.logging import get_logger

log = get_logger(__name__)


def _container(request: Request) -> Container:
    return request.app.state.container


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(ValidationError)
    async def _invalid(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"message": str(exc), "errors": jsonable_encoder(exc.details)},
        )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"message": "Validation failed", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StoreError)
    async def _store_failure(request: Request, exc: StoreError) -> JSONResponse:
        log.error(
            "Storage failure while serving request",
            extra={"path": request.url.path, "error": str(exc)},
        )
        return JSONResponse(status_code=503, content={"message": "Storage temporarily unavailable"})


def create_app(container: Optional[Container] = None, settings: Optional[Settings] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = container is None
        app.state.container = container or await build_container(settings or get_settings())
        try:
            yield
        finally:
            if owned:
                await app.state.container.aclose()

    app = FastAPI(title="Driver Tips API", lifespan=lifespan)
    if container is not None:
        app.state.container = container
    _register_error_handlers(app)

    @app.get("/health")
    async def health() -> Dict[str, bool]:
        return {"ok": True}

    @app.post("/drivers", status_code=201)
    async def create_driver(body: CreateDriverRequest, request: Request) -> JSONResponse:
        driver = await _container(request).driver_service.create_driver(body)
        return JSONResponse(status_code=201, content=driver.to_wire())

    @app.get("/drivers")
    async def list_drivers(request: Request) -> List[Dict[str, Any]]:
        drivers = await _container(request).driver_service.get_drivers()
        return [d.to_wire() for d in drivers]

    @app.get("/drivers/{driver_id}")
    async def get_driver(driver_id: str, request: Request) -> Dict[str, Any]:
        driver = await _container(request).driver_service.get_driver_by_id(driver_id)
        return driver.to_wire()

    @app.get("/drivers/{driver_id}/tips")
    async def get_driver_tips(driver_id: str, request: Request) -> Dict[str, Any]:
        tips = await _container(request).query.get_driver_tips(driver_id)
        return tips.to_wire()

    return app


__all__ = ["create_app"]

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from ib_engine.controllers.underlyings import UnderlyingsController
from ib_engine.schemas import RouteNotFoundOut
from ib_engine.services.dispatch import ActionNotFound, Dispatcher
from ib_engine.services.route_table import (
    UNDERLYINGS_CONTROLLER,
    RouteNotFound,
    Router,
    default_router,
)

logger = logging.getLogger(__name__)

# Every verb reaches the route table, so unknown verbs are reported as
# missing routes instead of 405 responses.
ENGINE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]

router = APIRouter()


def _engine_path(request: Request) -> str:
    """Path relative to the engine mount point, still percent-encoded."""

    scope = request.scope
    root_path = scope.get("root_path") or ""
    raw_path = scope.get("raw_path")
    if raw_path:
        text = raw_path.decode("utf-8", errors="surrogateescape").split("?", 1)[0]
        if root_path and text.startswith(root_path):
            return text[len(root_path):] or "/"
        if not root_path:
            return text or "/"
    return quote("/" + request.path_params.get("path", ""), safe="/")


@router.api_route("/{path:path}", methods=ENGINE_METHODS, include_in_schema=False)
async def dispatch_request(request: Request):
    route_match = request.app.state.router.resolve(request.method, _engine_path(request))
    request.state.route_match = route_match
    return await request.app.state.dispatcher.dispatch(route_match, request)


async def _route_not_found(request: Request, exc: RouteNotFound) -> JSONResponse:
    logger.info("No route for %s %s", exc.method, exc.path)
    return JSONResponse(
        status_code=404,
        content=RouteNotFoundOut(method=exc.method, path=exc.path).model_dump(),
    )


async def _action_not_found(request: Request, exc: ActionNotFound) -> JSONResponse:
    logger.warning("Missing action %s#%s", exc.controller, exc.action)
    return JSONResponse(
        status_code=404,
        content={
            "detail": "action_not_found",
            "controller": exc.controller,
            "action": exc.action,
        },
    )


def build_default_dispatcher() -> Dispatcher:
    dispatcher = Dispatcher()
    dispatcher.register(UNDERLYINGS_CONTROLLER, UnderlyingsController())
    return dispatcher


def create_engine_app(
    route_router: Router | None = None,
    dispatcher: Dispatcher | None = None,
) -> FastAPI:
    engine = FastAPI(title="IB Engine", docs_url=None, redoc_url=None, openapi_url=None)
    engine.state.router = route_router if route_router is not None else default_router
    engine.state.dispatcher = dispatcher if dispatcher is not None else build_default_dispatcher()
    engine.add_exception_handler(RouteNotFound, _route_not_found)
    engine.add_exception_handler(ActionNotFound, _action_not_found)
    engine.include_router(router)
    return engine
